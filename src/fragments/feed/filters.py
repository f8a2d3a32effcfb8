"""Rules mapping a tag selection onto the feed request and the displayed cards."""

from enum import Enum
from typing import Iterable, Optional

from fragments.models import NewsCard, Tag


class FilterStrategy(str, Enum):
    """How a multi-tag selection becomes the backend's single ``tag`` parameter."""

    FIRST_SELECTED = "first_selected"
    SINGLE_ONLY = "single_only"
    NONE = "none"


def pick_server_tag(
    selected: Iterable[Tag], strategy: FilterStrategy = FilterStrategy.FIRST_SELECTED
) -> Optional[str]:
    """Choose the one tag to send to the backend, or None for an unfiltered feed.

    ``selected`` must be in store order; FIRST_SELECTED depends on it.
    """
    selected = list(selected)
    if strategy is FilterStrategy.NONE or not selected:
        return None
    if strategy is FilterStrategy.SINGLE_ONLY:
        return selected[0].name if len(selected) == 1 else None
    return selected[0].name


def narrow_cards(cards: Iterable[NewsCard], names: Iterable[str]) -> tuple[NewsCard, ...]:
    """Keep cards with at least one topic in ``names`` (case-insensitive).

    An empty ``names`` keeps everything.
    """
    names = {n.lower() for n in names}
    if not names:
        return tuple(cards)
    return tuple(card for card in cards if card.has_topic(names))
