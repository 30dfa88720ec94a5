"""
Query digests for anonymized popularity counting.

A 32-bit polynomial rolling hash (multiplier 31) over the query's UTF-16
code units, wrapped to a signed 32-bit integer after every step, then
the absolute value in lowercase base 36. This is the same digest the
extension computes in the browser, so digests stay comparable across a
persisted snapshot. It is a bucketing key, not an identifier: collisions
are expected and harmless.
"""

from __future__ import annotations

_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"
_MASK = 0xFFFFFFFF
_SIGN = 0x80000000


def _to_int32(value: int) -> int:
    value &= _MASK
    return value - (1 << 32) if value & _SIGN else value


def _base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_DIGITS[rem])
    return "".join(reversed(digits))


def hash_query(query: str) -> str:
    """Return the base-36 digest of `query`. The text cannot be recovered from it."""
    data = query.encode("utf-16-le", errors="surrogatepass")
    h = 0
    for i in range(0, len(data), 2):
        code = data[i] | (data[i + 1] << 8)
        h = _to_int32(h * 31 + code)
    return _base36(abs(h))


__all__ = ["hash_query"]
