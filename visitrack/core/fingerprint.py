"""Device fingerprinting from client-observable browser signals.

The hash is a 32-bit rolling hash (``hash * 31 + code unit``) rendered in
base 36, the same value the browser computes with ``charCodeAt`` over the
joined signal string. It is not collision resistant: two devices reporting an
identical signal tuple share a fingerprint.
"""

from typing import Iterable, Union

from ..schemas import ClientSignals

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"

Signal = Union[str, int, bool, None]


def _js_str(value: Signal) -> str:
    # Array.prototype.join semantics
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def rolling_hash(data: str) -> str:
    """Hash a string over its UTF-16 code units, truncated to a signed 32-bit int."""
    value = 0
    encoded = data.encode("utf-16-le", errors="surrogatepass")
    for i in range(0, len(encoded), 2):
        code_unit = encoded[i] | (encoded[i + 1] << 8)
        value = (value * 31 + code_unit) & 0xFFFFFFFF
    if value & 0x80000000:
        value -= 0x100000000
    return _to_base36(abs(value))


def _join(parts: Iterable[Signal]) -> str:
    return "|".join(_js_str(part) for part in parts)


def generate_fingerprint(signals: ClientSignals, user_agent: str = "") -> str:
    """Derive the primary visitor identity from the full signal tuple."""
    return rolling_hash(_join([
        user_agent or signals.user_agent or "",
        signals.language,
        f"{signals.screen_width}x{signals.screen_height}",
        signals.color_depth,
        signals.timezone_offset,
        signals.platform,
        signals.cookie_enabled,
        signals.local_storage,
        signals.session_storage,
        signals.canvas_data_url,
    ]))


def generate_client_hash(signals: ClientSignals, user_agent: str = "") -> str:
    """Coarser secondary hash used as a fallback correlation key."""
    return rolling_hash(_join([
        user_agent or signals.user_agent or "",
        signals.language,
        signals.screen_width,
        signals.screen_height,
        signals.timezone_offset,
    ]))
