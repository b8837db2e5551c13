import json
from typing import Dict, Any

from coordinator import FanOutResult

_NS_PER_US = 1000
_NS_PER_MS = 1000 * _NS_PER_US
_NS_PER_S = 1000 * _NS_PER_MS
_NS_PER_MIN = 60 * _NS_PER_S
_NS_PER_H = 60 * _NS_PER_MIN


class ReportEncodingError(Exception):
    pass


def _with_fraction(value: int, unit: int) -> str:
    whole, frac = divmod(value, unit)
    if not frac:
        return str(whole)
    digits = len(str(unit)) - 1
    return f"{whole}.{frac:0{digits}d}".rstrip('0')


def format_duration(seconds: float) -> str:
    # Go time.Duration style: "101.5µs", "1.5s", "2m3.25s"
    ns = int(round(seconds * _NS_PER_S))
    if ns == 0:
        return "0s"
    sign = "-" if ns < 0 else ""
    ns = abs(ns)

    if ns < _NS_PER_US:
        return f"{sign}{ns}ns"
    if ns < _NS_PER_MS:
        return f"{sign}{_with_fraction(ns, _NS_PER_US)}µs"
    if ns < _NS_PER_S:
        return f"{sign}{_with_fraction(ns, _NS_PER_MS)}ms"

    hours, rem = divmod(ns, _NS_PER_H)
    minutes, rem = divmod(rem, _NS_PER_MIN)
    secs = f"{_with_fraction(rem, _NS_PER_S)}s"
    if hours:
        return f"{sign}{hours}h{minutes}m{secs}"
    if minutes:
        return f"{sign}{minutes}m{secs}"
    return f"{sign}{secs}"


def build_report(result: FanOutResult) -> Dict[str, Any]:
    return {
        "duration": format_duration(result.duration_seconds),
        "results": [record.to_dict() for record in result.results],
    }


def encode_report(report: Dict[str, Any]) -> str:
    try:
        return json.dumps(report)
    except (TypeError, ValueError) as e:
        raise ReportEncodingError(f"Could not encode report: {e}") from e
