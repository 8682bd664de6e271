# npb_sync/scrapers/serpapi_client.py

from typing import Any, Dict, Optional

import httpx
from loguru import logger

from npb_sync.config.settings import settings
from npb_sync.exceptions import ConfigurationError, UpstreamApiError
from .base_scraper import BaseScraper

# SerpApi search engine used for every query
SERPAPI_ENGINE = "google"


class SerpApiClient(BaseScraper):
    """Runs single Google searches through SerpApi and returns the raw JSON."""

    source_name = "SerpApi"

    def __init__(
        self,
        api_key: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        base_url: Optional[str] = None,
    ):
        api_key = api_key if api_key is not None else settings.serpapi_key
        if not api_key:
            logger.error("SerpApi API key is not set in environment variables.")
            raise ConfigurationError("SerpApi API key is required")
        super().__init__(client)
        self._api_key = api_key
        self.base_url = base_url or settings.serpapi_base_url

    async def search(self, query: str) -> Dict[str, Any]:
        """Search SerpApi with a query string (e.g. "Yomiuri Giants standings 2026").

        Returns:
            The decoded response object.

        Raises:
            ValueError: the query is blank.
            TransportError: SerpApi could not be reached or returned a non-2xx status.
            UpstreamApiError: the response carries an ``error`` field.
        """
        if not query or not query.strip():
            raise ValueError("SerpApi query must be a non-empty string")

        params = {"engine": SERPAPI_ENGINE, "q": query, "api_key": self._api_key}
        logger.info(f'[SerpApi] Query: "{query}"')
        payload = await self._get_json(
            self.base_url, params=params, log_context={"query": query}
        )

        if payload.get("error"):
            logger.error(f'SerpApi reported an error for "{query}": {payload["error"]}')
            raise UpstreamApiError(str(payload["error"]))

        return payload
