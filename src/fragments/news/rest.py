"""News backend client over the JSON REST API."""

from typing import Any, Optional
from urllib.parse import quote

import requests
import structlog
from pydantic import BaseModel, ValidationError

from fragments.config import AppConfig, Secrets
from fragments.models import NewsCard, NewsPage
from fragments.news.base import (
    CardNotFoundError,
    DecodeError,
    InvalidRequestError,
    NewsClient,
    NewsClientError,
    ServerError,
)

logger = structlog.get_logger(__name__)


class TagsResponse(BaseModel):
    tags: list[str]


class RestNewsClient(NewsClient):
    """Issues one GET per call against ``{base_url}/news/...``.

    No retries are attempted; a failed call raises and the caller decides
    whether to try again.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: Optional[float] = None,
        api_token: str = "",
        session: Optional[requests.Session] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"Accept": "application/json"})
        if api_token:
            self._session.headers.update({"Authorization": f"Bearer {api_token}"})

    @classmethod
    def from_config(cls, config: AppConfig, secrets: Secrets) -> "RestNewsClient":
        return cls(
            config.api.base_url,
            timeout=config.api.timeout_seconds,
            api_token=secrets.news_api_token,
        )

    def fetch_latest(
        self, tag: Optional[str] = None, limit: int = 20, offset: int = 0
    ) -> NewsPage:
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise InvalidRequestError(f"limit must be a positive integer, got {limit!r}")
        if isinstance(offset, bool) or not isinstance(offset, int) or offset < 0:
            raise InvalidRequestError(f"offset must be a non-negative integer, got {offset!r}")

        params: dict[str, Any] = {"limit": limit, "offset": offset}
        if tag is not None and tag.strip():
            params["tag"] = tag.strip()

        logger.debug("news.fetch_latest", tag=params.get("tag"), limit=limit, offset=offset)
        data = self._get_json("/news/latest", params=params)
        page = self._validate(NewsPage, data, "/news/latest")

        logger.info(
            "news.page_fetched",
            tag=params.get("tag"),
            offset=offset,
            received=len(page.cards),
            total=page.total,
        )
        return page

    def fetch_by_id(self, card_id: str) -> NewsCard:
        if not isinstance(card_id, str) or not card_id.strip():
            raise InvalidRequestError("card id must be a non-empty string")

        path = f"/news/card/{quote(card_id.strip(), safe='')}"
        logger.debug("news.fetch_card", card_id=card_id)
        data = self._get_json(path, not_found=card_id)
        return self._validate(NewsCard, data, path)

    def fetch_tags(self) -> list[str]:
        data = self._get_json("/news/tags")
        tags = self._validate(TagsResponse, data, "/news/tags").tags
        logger.info("news.tags_fetched", count=len(tags))
        return tags

    def close(self) -> None:
        self._session.close()

    def _get_json(
        self,
        path: str,
        params: Optional[dict] = None,
        not_found: Optional[str] = None,
    ) -> Any:
        """GET ``path`` and return the decoded JSON body.

        When ``not_found`` is given a 404 is reported as CardNotFoundError
        naming that id, instead of a generic ServerError.
        """
        url = f"{self._base_url}{path}"
        try:
            response = self._session.get(url, params=params, timeout=self._timeout)
        except requests.RequestException as e:
            logger.error("news.request_failed", path=path, error=str(e))
            raise NewsClientError(f"Request to {path} failed: {e}") from e

        status = response.status_code
        if not_found is not None and status == 404:
            logger.warning("news.card_not_found", card_id=not_found)
            raise CardNotFoundError(f"Card '{not_found}' not found")
        if not 200 <= status <= 299:
            logger.error("news.server_error", path=path, status=status)
            raise ServerError(status)

        try:
            return response.json()
        except ValueError as e:
            logger.error("news.decode_failed", path=path, error=str(e))
            raise DecodeError(f"Response from {path} is not valid JSON") from e

    @staticmethod
    def _validate(model: type[BaseModel], data: Any, path: str):
        try:
            return model.model_validate(data)
        except ValidationError as e:
            logger.error(
                "news.decode_failed",
                path=path,
                errors=e.error_count(),
            )
            raise DecodeError(f"Response from {path} does not match the expected schema") from e
