from abc import ABC
from typing import Any, Dict, Optional

import httpx
from loguru import logger

from npb_sync.config.settings import settings
from npb_sync.exceptions import TransportError, UpstreamApiError


class BaseScraper(ABC):
    """Shared HTTP plumbing for upstream data sources.

    Makes exactly one attempt per request; retry policy belongs to whoever
    schedules the sync.
    """

    source_name: str = "unknown"

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(settings.request_timeout_seconds),
            follow_redirects=True,
            headers={"Accept": "application/json"},
        )

    async def _get_json(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        log_context: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Issues one GET and returns the decoded JSON object.

        Raises:
            TransportError: network failure, timeout, or a non-2xx status.
            UpstreamApiError: the body is not a JSON object.
        """
        log_context = log_context or {}
        logger.debug(f"Requesting {self.source_name}", **log_context)
        try:
            response = await self.client.get(url, params=params)
        except httpx.TimeoutException as e:
            logger.warning(f"Timeout calling {self.source_name}: {e!r}")
            raise TransportError(None, f"request timed out ({type(e).__name__})") from e
        except httpx.RequestError as e:
            logger.warning(f"Request error calling {self.source_name}: {e!r}")
            raise TransportError(None, f"{type(e).__name__}: {e}") from e

        if not response.is_success:
            logger.error(
                f"HTTP error from {self.source_name}: {response.status_code} {response.reason_phrase}"
            )
            raise TransportError(response.status_code, response.reason_phrase)

        try:
            payload = response.json()
        except ValueError as e:
            logger.error(f"{self.source_name} returned a non-JSON body")
            logger.debug(f"Raw response content: {response.text[:500]}")
            raise UpstreamApiError("response body is not valid JSON") from e

        if not isinstance(payload, dict):
            raise UpstreamApiError(
                f"expected a JSON object, got {type(payload).__name__}"
            )
        logger.debug(f"Request successful: {response.status_code} from {self.source_name}")
        return payload

    async def close(self) -> None:
        """Closes the underlying HTTP client."""
        await self.client.aclose()
        logger.info(f"Closed HTTP client for {self.source_name}")
