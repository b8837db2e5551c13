import logging

import aiohttp
from aiohttp import web

from aggregator import build_report, encode_report, ReportEncodingError
from config import (
    FIRE_ROUTE, COUNT_HEADER, URL_HEADER,
    REQUEST_TIMEOUT_SECONDS, MAX_FIRE_COUNT, MAX_INBOUND_BODY_BYTES,
)
from coordinator import FanOutCoordinator
from template import (
    RequestValidationError, parse_fire_count, parse_target_url, build_template,
)

logger = logging.getLogger(__name__)

TIMEOUT_KEY = web.AppKey("timeout_seconds", float)
MAX_COUNT_KEY = web.AppKey("max_fire_count", int)
COORDINATOR_KEY = web.AppKey("coordinator", FanOutCoordinator)

# Inbound bodies are replayed byte for byte, so the server must not inflate them.
SERVER_OPTIONS = {"auto_decompress": False}


def make_client_session(timeout_seconds: float = REQUEST_TIMEOUT_SECONDS) -> aiohttp.ClientSession:
    # No connector limit: every launcher must be able to hold its own connection.
    # Response bodies are reported raw; Accept-Encoding is only sent when the caller sent one.
    return aiohttp.ClientSession(
        connector=aiohttp.TCPConnector(limit=0),
        timeout=aiohttp.ClientTimeout(total=timeout_seconds),
        auto_decompress=False,
        skip_auto_headers=("Accept-Encoding",),
    )


async def load_and_fire(request: web.Request) -> web.Response:
    try:
        count = parse_fire_count(request.headers.get(COUNT_HEADER), request.app[MAX_COUNT_KEY])
        target_url = parse_target_url(request.headers.get(URL_HEADER))
    except RequestValidationError as e:
        logger.warning(f"Rejected {request.method} {request.path} from {request.remote}: {e}")
        raise web.HTTPBadRequest(text=str(e))

    try:
        body = await request.read()
    except web.HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error reading inbound body from {request.remote}: {e}", exc_info=True)
        raise web.HTTPInternalServerError(text=f"Error reading request body: {e}")

    template = build_template(request.method, target_url, request.headers, body)
    logger.info(f"Firing {count}x {template.method} {target_url} ({len(body)} byte body) for {request.remote}")

    result = await request.app[COORDINATOR_KEY].fire(template, count)

    try:
        payload = encode_report(build_report(result))
    except ReportEncodingError as e:
        logger.error(f"Failed to encode report for {target_url}: {e}", exc_info=True)
        raise web.HTTPInternalServerError(text=str(e))

    return web.Response(text=payload, content_type='application/json')


async def _client_session_ctx(app: web.Application):
    timeout_seconds = app[TIMEOUT_KEY]
    session = make_client_session(timeout_seconds)
    app[COORDINATOR_KEY] = FanOutCoordinator(session, timeout_seconds)
    logger.info(f"Outbound client ready (timeout {timeout_seconds}s per request).")
    yield
    await session.close()
    logger.info("Outbound client closed.")


def create_app(timeout_seconds: float = REQUEST_TIMEOUT_SECONDS,
               max_fire_count: int = MAX_FIRE_COUNT,
               max_body_bytes: int = MAX_INBOUND_BODY_BYTES) -> web.Application:
    app = web.Application(client_max_size=max_body_bytes)
    app[TIMEOUT_KEY] = float(timeout_seconds)
    app[MAX_COUNT_KEY] = max_fire_count
    app.cleanup_ctx.append(_client_session_ctx)
    # Prefix route: anything under FIRE_ROUTE is handled, whatever the method.
    app.router.add_route('*', FIRE_ROUTE + '{tail:.*}', load_and_fire)
    return app
