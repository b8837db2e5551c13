import asyncio
import logging
import re
from typing import NamedTuple, Optional, Any

import aiohttp
from multidict import CIMultiDictProxy
from yarl import URL

from gate import StartingGate
from outcome import OutcomeRecord
from template import RequestTemplate

logger = logging.getLogger(__name__)

_METHOD_TOKEN_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")
_SUPPORTED_SCHEMES = ('http', 'https')

# Errors the client raises for a single failed round trip.
_REQUEST_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError, OSError, ValueError)


class PreparedRequest(NamedTuple):
    method: str
    url: URL
    headers: CIMultiDictProxy
    data: Optional[Any]


def _describe(exc: BaseException) -> str:
    text = str(exc)
    return f"{type(exc).__name__}: {text}" if text else type(exc).__name__


def prepare_request(template: RequestTemplate) -> PreparedRequest:
    if not template.method or not _METHOD_TOKEN_RE.match(template.method):
        raise ValueError(f"invalid method {template.method!r}")
    url = URL(template.url)
    if not url.is_absolute() or url.scheme not in _SUPPORTED_SCHEMES:
        raise ValueError(f"unsupported URL {template.url!r}: expected an absolute http(s) URL")
    if not url.host:
        raise ValueError(f"URL {template.url!r} has no host")
    data = template.open_body() if template.body else None
    return PreparedRequest(template.method.upper(), url, template.headers, data)


async def _round_trip(session: aiohttp.ClientSession, prepared: PreparedRequest,
                      target: str, timeout_seconds: float) -> OutcomeRecord:
    try:
        async with session.request(
            prepared.method, prepared.url,
            headers=prepared.headers, data=prepared.data,
            timeout=aiohttp.ClientTimeout(total=timeout_seconds),
        ) as response:
            status_code = response.status
            try:
                payload = await response.read()
            except _REQUEST_ERRORS as e:
                return OutcomeRecord.failure(target, f"error reading response body: {_describe(e)}",
                                             status_code=status_code)
            return OutcomeRecord(target, status_code, payload.decode('utf-8', errors='replace'))
    except _REQUEST_ERRORS as e:
        return OutcomeRecord.failure(target, f"error performing request: {_describe(e)}")


async def launch_request(session: aiohttp.ClientSession, template: RequestTemplate,
                         gate: StartingGate, sink: asyncio.Queue,
                         timeout_seconds: float) -> None:
    """Perform one round trip and put exactly one OutcomeRecord into ``sink``."""
    target = template.url
    try:
        prepared = prepare_request(template)
    except Exception as e:
        gate.withdraw()
        logger.debug(f"Could not build {template.method} {target}: {e}")
        sink.put_nowait(OutcomeRecord.failure(target, f"error creating request: {_describe(e)}"))
        return

    await gate.wait()

    try:
        record = await _round_trip(session, prepared, target, timeout_seconds)
    except Exception as e:
        logger.error(f"Unexpected error firing {prepared.method} {target}: {e}", exc_info=True)
        record = OutcomeRecord.failure(target, f"error performing request: {_describe(e)}")

    if record.failed:
        logger.debug(f"{prepared.method} {target} failed: {record.error}")
    sink.put_nowait(record)
