import io
import re
from typing import NamedTuple, Optional, Mapping

from multidict import CIMultiDict, CIMultiDictProxy

from config import COUNT_HEADER, URL_HEADER, MAX_FIRE_COUNT

_COUNT_RE = re.compile(r'^\+?[0-9]+$')

# Control headers belong to this endpoint; the rest are framing/hop-by-hop
# headers that the outbound client sets for each request itself.
STRIPPED_HEADERS = frozenset(h.lower() for h in (
    COUNT_HEADER, URL_HEADER,
    'Host', 'Content-Length', 'Transfer-Encoding',
    'Connection', 'Keep-Alive', 'Proxy-Connection', 'TE', 'Trailer', 'Upgrade',
))


class RequestValidationError(ValueError):
    """Inbound call is malformed; reported to the caller before any fan-out."""


class RequestTemplate(NamedTuple):
    method: str
    url: str
    headers: CIMultiDictProxy
    body: bytes

    def open_body(self) -> io.BytesIO:
        # Fresh cursor per caller over the shared bytes
        return io.BytesIO(self.body)


def parse_fire_count(raw: Optional[str], max_count: int = MAX_FIRE_COUNT) -> int:
    if raw is None or not _COUNT_RE.match(raw.strip()):
        raise RequestValidationError(f"Invalid {COUNT_HEADER} value: {raw!r}")
    count = int(raw.strip())
    if count < 1:
        raise RequestValidationError(f"{COUNT_HEADER} must be a positive integer, got {count}")
    if count > max_count:
        raise RequestValidationError(f"{COUNT_HEADER} must not exceed {max_count}, got {count} "
                                     f"(start the server with --max-count to raise the limit)")
    return count


def parse_target_url(raw: Optional[str]) -> str:
    if raw is None or not raw.strip():
        raise RequestValidationError(f"Missing {URL_HEADER}")
    return raw.strip()


def forwarded_headers(headers: Mapping[str, str]) -> CIMultiDictProxy:
    items = headers.items()
    copied = CIMultiDict((k, v) for k, v in items if k.lower() not in STRIPPED_HEADERS)
    return CIMultiDictProxy(copied)


def build_template(method: str, url: str, headers: Mapping[str, str], body: bytes) -> RequestTemplate:
    return RequestTemplate(
        method=method,
        url=url,
        headers=forwarded_headers(headers),
        body=bytes(body),
    )
