"""News backend clients."""

from fragments.news.base import (
    CardNotFoundError,
    DecodeError,
    InvalidRequestError,
    NewsClient,
    NewsClientError,
    ServerError,
)
from fragments.news.rest import RestNewsClient

__all__ = [
    "NewsClient",
    "NewsClientError",
    "InvalidRequestError",
    "ServerError",
    "DecodeError",
    "CardNotFoundError",
    "RestNewsClient",
]
