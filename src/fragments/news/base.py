"""Abstract base class for news backends and the errors they raise."""

from abc import ABC, abstractmethod
from typing import Optional

from fragments.models import NewsCard, NewsPage


class NewsClientError(Exception):
    """Raised when a news backend call fails."""


class InvalidRequestError(NewsClientError):
    """Raised before any I/O when request parameters are malformed."""


class ServerError(NewsClientError):
    """Raised when the backend answers with a non-2xx status."""

    def __init__(self, status: int, message: str = ""):
        self.status = status
        super().__init__(message or f"Server responded with HTTP {status}")


class DecodeError(NewsClientError):
    """Raised when a response body does not match the expected schema."""


class CardNotFoundError(NewsClientError):
    """Raised when the backend reports that a card does not exist."""


class NewsClient(ABC):
    """Interface for reading news cards from a backend.

    Implementations keep no per-request state, so one instance may be used
    from several callers at once.
    """

    @abstractmethod
    def fetch_latest(
        self, tag: Optional[str] = None, limit: int = 20, offset: int = 0
    ) -> NewsPage:
        """Fetch one page of the latest cards, optionally filtered by a single tag.

        Raises:
            InvalidRequestError: If limit or offset are malformed.
            ServerError: If the backend answers outside 200-299.
            DecodeError: If the body does not match the page schema.
        """
        ...

    @abstractmethod
    def fetch_by_id(self, card_id: str) -> NewsCard:
        """Fetch a single card. Raises CardNotFoundError on 404."""
        ...

    @abstractmethod
    def fetch_tags(self) -> list[str]:
        """Fetch the tag names the backend knows about."""
        ...
