from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException
from typing import Optional
from contextlib import asynccontextmanager
import httpx
import logging
from wallrot.call_log import CallLog
from wallrot.config import Settings, load_settings
from wallrot.image_relay import ImageRelay, UpstreamImageError
from wallrot.models import ImageDescriptor
from wallrot.query_key import normalize_query
from wallrot.rotation_cache import RotationCache, EmptyResultSet
from wallrot.wallhaven_client import WallhavenClient, UpstreamSearchError

logger = logging.getLogger("wallrot")


def _request_url(request: Request) -> str:
    """Path and query string of a request, as recorded in the call log."""
    if request.url.query:
        return f"{request.url.path}?{request.url.query}"
    return request.url.path


async def _record_call(request: Request):
    call_log: Optional[CallLog] = request.app.state.call_log
    if call_log is not None:
        await run_in_threadpool(call_log.record, _request_url(request))


async def _relay(request: Request, descriptor: ImageDescriptor) -> Response:
    """Relay an image, turning upstream failures into a plain text response."""
    try:
        response = await request.app.state.relay.relay(descriptor)
    except UpstreamImageError as e:
        return PlainTextResponse(f"Error fetching image: {e.reason}", status_code=e.status_code)

    await _record_call(request)
    return response


async def get_rotated_image(request: Request) -> Response:
    """
    Serve the next image for the request's search parameters.

    The first request for a parameter set runs the search; later requests
    with the same parameters (in any order) walk through the stored result
    list and start over after the last image.

    With type=json the selected image URL is returned as
    {"code": 200, "url": ...} instead of the image bytes. The type
    parameter is not part of the search, so both forms share one rotation.
    """
    response_type = request.query_params.get("type")
    params = [(k, v) for k, v in request.query_params.multi_items() if k != "type"]
    key = normalize_query(params)
    cache: RotationCache = request.app.state.cache
    search_client: WallhavenClient = request.app.state.search_client

    try:
        entry = await cache.get_or_create(key, lambda: search_client.search(params))
        descriptor = cache.next(entry)
    except UpstreamSearchError as e:
        logger.warning("Search failed for %r: %s", key, e)
        return PlainTextResponse(f"Error fetching data from search API: {e}", status_code=500)
    except EmptyResultSet as e:
        return PlainTextResponse(str(e), status_code=404)

    logger.info("Serving %s for %r", descriptor.path, key)
    if response_type == "json":
        await _record_call(request)
        return JSONResponse({"code": 200, "url": descriptor.path})

    return await _relay(request, descriptor)


async def get_image_by_path(request: Request) -> Response:
    """Relay the image named by the path parameter without caching."""
    path = request.query_params.get("path")
    if not path:
        return PlainTextResponse("Image path is required", status_code=400)

    return await _relay(request, ImageDescriptor(path=path))


async def list_images(request: Request) -> Response:
    """Proxy a search and return the upstream JSON unchanged."""
    search_client: WallhavenClient = request.app.state.search_client

    try:
        data = await search_client.search_raw(request.query_params.multi_items())
    except UpstreamSearchError as e:
        status_code = e.status_code if e.status_code and e.status_code >= 400 else 500
        return PlainTextResponse(f"Error fetching data from search API: {e}", status_code=status_code)

    return JSONResponse(data)


async def http_exception_handler(_: Request, exc: StarletteHTTPException) -> Response:
    """Plain text bodies for routing errors (404, 405)."""
    return PlainTextResponse(str(exc.detail), status_code=exc.status_code, headers=exc.headers)


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Build the proxy application.

    Args:
        settings: Settings to use, read from the environment when omitted
        transport: Optional httpx transport shared by upstream clients (used by tests)

    Returns:
        FastAPI app serving /img, plus /list in passthrough mode
    """
    if settings is None:
        settings = load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan event handler - runs on startup and shutdown."""
        timeout = settings.upstream_timeout
        app.state.search_client = WallhavenClient(
            search_url=settings.search_url,
            api_key=settings.api_key,
            timeout=timeout,
            transport=transport,
        )
        app.state.relay = ImageRelay(timeout=timeout, transport=transport)
        app.state.call_log = CallLog(settings.database_url) if settings.database_url else None

        yield

        await app.state.search_client.close()
        await app.state.relay.close()
        if app.state.call_log is not None:
            app.state.call_log.close()

    app = FastAPI(
        title="wallrot",
        description="Rotating wallpaper proxy for the Wallhaven search API",
        version="0.1.0",
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.cache = None
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    if settings.rotation_cache_enabled:
        app.state.cache = RotationCache(max_entries=settings.rotation_cache_max_entries)
        app.add_api_route("/img", get_rotated_image, methods=["GET"])
    else:
        app.add_api_route("/img", get_image_by_path, methods=["GET"])
        app.add_api_route("/list", list_images, methods=["GET"])

    return app


_settings = load_settings()
logging.basicConfig(
    level=_settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)

app = create_app(_settings)
