from __future__ import annotations

from datetime import datetime

from logrequest.config import ObserverConfig


TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

_NS_PER_US = 1_000
_NS_PER_MS = 1_000_000
_NS_PER_S = 1_000_000_000
_NS_PER_MIN = 60 * _NS_PER_S


def _scaled(value: int, digits: int) -> str:
    """Render value / 10**digits without trailing fractional zeros."""
    unit = 10**digits
    whole, frac = divmod(value, unit)
    frac_text = f"{frac:0{digits}d}".rstrip("0")
    return f"{whole}.{frac_text}" if frac_text else str(whole)


def format_duration(duration_ns: int) -> str:
    """Human-readable, unit-scaled duration: ``850ns``, ``15.2ms``, ``1.003s``, ``2m0.5s``."""
    if duration_ns == 0:
        return "0s"

    sign = "-" if duration_ns < 0 else ""
    ns = abs(duration_ns)

    if ns < _NS_PER_US:
        return f"{sign}{ns}ns"
    if ns < _NS_PER_MS:
        return f"{sign}{_scaled(ns, 3)}µs"
    if ns < _NS_PER_S:
        return f"{sign}{_scaled(ns, 6)}ms"

    minutes, rem = divmod(ns, _NS_PER_MIN)
    text = f"{_scaled(rem, 9)}s"
    if minutes:
        hours, minutes = divmod(minutes, 60)
        text = f"{minutes}m{text}"
        if hours:
            text = f"{hours}h{text}"
    return sign + text


def render_started(
    method: str,
    request_uri: str,
    remote_addr: str,
    proto: str,
    started_at: datetime,
    config: ObserverConfig,
) -> str:
    line = f'Started {method} "{request_uri}" {remote_addr} {proto}'
    if config.include_timestamp:
        line += f" at {started_at.strftime(TIMESTAMP_FORMAT)}"
    return line


def render_completed(status_code: int, duration_ns: int, config: ObserverConfig) -> str:
    line = f"Completed {status_code}"
    if not config.suppress_duration:
        line += f" in {format_duration(duration_ns)}"
    return line


def blank_lines(config: ObserverConfig) -> list[str]:
    return [""] * max(0, config.trailing_blank_lines)
