"""
Wallhaven search API client.
"""

import logging
import httpx
from typing import Optional, Dict, Any, List, Sequence, Tuple
from urllib.parse import urlencode
from .config import DEFAULT_SEARCH_URL
from .models import ImageDescriptor
from .wallhaven_parser import parse_search_response, summarize_meta

logger = logging.getLogger(__name__)


class UpstreamSearchError(Exception):
    """Search API call failed or returned unusable data."""
    def __init__(self, message: str, status_code: Optional[int]):
        super().__init__(message)
        self.status_code = status_code


class WallhavenClient:
    """
    Wallhaven search API client.

    Performs exactly one request per call; failures are not retried.
    """

    def __init__(
        self,
        search_url: str = DEFAULT_SEARCH_URL,
        api_key: Optional[str] = None,
        timeout: Optional[float] = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize search client.

        Args:
            search_url: Full URL of the search endpoint
            api_key: Optional Wallhaven API key, added to outgoing searches
            timeout: Request deadline in seconds, None for no deadline
            transport: Optional httpx transport (used by tests)
        """
        self.search_url = search_url
        self.api_key = api_key
        self.client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def close(self):
        """Close HTTP client."""
        await self.client.aclose()

    def _build_url(self, params: Sequence[Tuple[str, str]]) -> str:
        """Append the query string to the search URL, keeping parameter order."""
        pairs = list(params)
        if self.api_key and not any(name == "apikey" for name, _ in pairs):
            pairs.append(("apikey", self.api_key))
        if not pairs:
            return self.search_url
        return f"{self.search_url}?{urlencode(pairs)}"

    async def _fetch(self, params: Sequence[Tuple[str, str]]) -> Tuple[Any, int]:
        """
        Run a search and decode the JSON body.

        Args:
            params: Query parameters, sent verbatim

        Returns:
            (parsed JSON response, upstream status code)

        Raises:
            UpstreamSearchError: On transport errors, non-2xx status or invalid JSON
        """
        url = self._build_url(params)
        logger.info("Searching %s", self.search_url)

        try:
            response = await self.client.get(url, headers={"accept": "application/json"})
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise UpstreamSearchError(
                f"{e.response.status_code}: {e.response.reason_phrase or 'HTTP error'}",
                status_code=e.response.status_code
            )
        except httpx.RequestError as e:
            raise UpstreamSearchError(f"Request error: {str(e) or type(e).__name__}", None)

        try:
            return response.json(), response.status_code
        except ValueError:
            raise UpstreamSearchError("Malformed response: body is not JSON", response.status_code)

    async def search_raw(self, params: Sequence[Tuple[str, str]]) -> Dict[str, Any]:
        """
        Run a search and return the decoded JSON body unchanged.

        Raises:
            UpstreamSearchError: On transport errors, non-2xx status or invalid JSON
        """
        data, _ = await self._fetch(params)
        return data

    async def search(self, params: Sequence[Tuple[str, str]]) -> List[ImageDescriptor]:
        """
        Search for wallpapers.

        Args:
            params: Query parameters, sent verbatim

        Returns:
            Image descriptors in result order

        Raises:
            UpstreamSearchError: On failed call or malformed response
        """
        data, status_code = await self._fetch(params)

        try:
            images = parse_search_response(data)
        except ValueError as e:
            raise UpstreamSearchError(f"Malformed response: {e}", status_code)

        logger.info("Search returned %d images %s", len(images), summarize_meta(data))
        return images
