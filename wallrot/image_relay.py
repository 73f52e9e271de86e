"""
Streams upstream images back to the client.
"""

import logging
import httpx
from typing import Optional
from starlette.background import BackgroundTask
from fastapi.responses import StreamingResponse
from .models import ImageDescriptor

logger = logging.getLogger(__name__)


class UpstreamImageError(Exception):
    """Image host returned an error or could not be reached."""
    def __init__(self, status_code: int, reason: str):
        super().__init__(f"{status_code}: {reason}")
        self.status_code = status_code
        self.reason = reason


class ImageRelay:
    """
    Fetches images and forwards them unchanged.

    Responses are marked no-store so that nothing between the proxy and the
    client keeps a copy; each request must reach the proxy to rotate.
    """

    def __init__(
        self,
        timeout: Optional[float] = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize relay.

        Args:
            timeout: Request deadline in seconds, None for no deadline
            transport: Optional httpx transport (used by tests)
        """
        self.client = httpx.AsyncClient(timeout=timeout, transport=transport, follow_redirects=True)

    async def close(self):
        """Close HTTP client."""
        await self.client.aclose()

    async def relay(self, descriptor: ImageDescriptor) -> StreamingResponse:
        """
        Fetch an image and build a streaming response for it.

        Args:
            descriptor: Image to fetch

        Returns:
            StreamingResponse with upstream body, content type and status

        Raises:
            UpstreamImageError: On non-2xx status or transport failure
        """
        request = self.client.build_request("GET", descriptor.path)

        try:
            response = await self.client.send(request, stream=True)
        except httpx.TimeoutException as e:
            raise UpstreamImageError(504, f"Gateway Timeout: {type(e).__name__}")
        except httpx.RequestError as e:
            raise UpstreamImageError(502, f"Bad Gateway: {str(e) or type(e).__name__}")

        if not response.is_success:
            await response.aclose()
            logger.warning("Image fetch failed with %d: %s", response.status_code, descriptor.path)
            raise UpstreamImageError(response.status_code, response.reason_phrase or "HTTP error")

        headers = {"Cache-Control": "no-store"}
        content_type = response.headers.get("content-type")
        if content_type:
            headers["Content-Type"] = content_type

        logger.debug("Relaying %s (%s)", descriptor.path, content_type)
        return StreamingResponse(
            response.aiter_bytes(),
            status_code=response.status_code,
            headers=headers,
            background=BackgroundTask(response.aclose),
        )
