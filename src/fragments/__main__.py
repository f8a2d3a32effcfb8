"""Entry point: python -m fragments"""

import asyncio
import sys
from pathlib import Path

from fragments.config import Secrets, load_config
from fragments.logging_config import configure_logging
from fragments.models import FeedState, FeedStatus
from fragments.session import NewsSession


def print_feed(state: FeedState, server_tag: str | None) -> None:
    print(f"Filter: {server_tag or 'all topics'}")
    for card in state.visible_cards:
        published = card.published_at
        when = published.strftime("%Y-%m-%d %H:%M") if published else card.date
        topics = ", ".join(card.topics)
        print(f"  [{when}] {card.title}" + (f"  ({topics})" if topics else ""))
    print(f"{len(state.visible_cards)} shown, {len(state.cards)} loaded, total {state.total}")


async def run(session: NewsSession) -> FeedState:
    try:
        return await session.start()
    finally:
        session.close()


def main():
    config = load_config(Path("config/settings.yaml"))
    try:
        secrets = Secrets()
    except Exception as e:
        print(f"Failed to load secrets from .env: {e}")
        sys.exit(1)

    configure_logging(config.logging)

    session = NewsSession(config, secrets)
    state = asyncio.run(run(session))
    print_feed(state, session.server_tag())

    if state.status is FeedStatus.ERROR:
        print(f"Feed failed to load: {state.error}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
