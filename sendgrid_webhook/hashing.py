"""
Stable ID hashing — pseudonymous user IDs derived from email addresses.

Two-lane 53-bit multiply-xor-shift hash over UTF-16 code units. The output
is joined against IDs produced by other services, so the arithmetic (32-bit
wraparound on every multiply) must stay bit-exact.
"""

UNKNOWN_ID = "unknown_id"

SEED = 0x12475790

_MASK32 = 0xFFFFFFFF
_MASK21 = 0x1FFFFF


def _imul(a: int, b: int) -> int:
    """32-bit wraparound multiply, kept unsigned."""
    return (a * b) & _MASK32


def _utf16_units(text: str):
    data = text.encode("utf-16-le", "surrogatepass")
    for i in range(0, len(data), 2):
        yield data[i] | (data[i + 1] << 8)


def stable_id(value) -> str:
    """Hash an email into a stable ID, or UNKNOWN_ID for non-strings.

    The empty string is a string and is hashed like any other.
    """
    if not isinstance(value, str):
        return UNKNOWN_ID

    h1 = (0xDEADBEEF ^ SEED) & _MASK32
    h2 = (0x41C6CE57 ^ SEED) & _MASK32
    for ch in _utf16_units(value):
        h1 = _imul(h1 ^ ch, 2654435761)
        h2 = _imul(h2 ^ ch, 1597334677)

    # Both lanes mix from the same pre-mix pair
    mixed1 = _imul(h1 ^ (h1 >> 16), 2246822507) ^ _imul(h2 ^ (h2 >> 13), 3266489909)
    mixed2 = _imul(h2 ^ (h2 >> 16), 2246822507) ^ _imul(h1 ^ (h1 >> 13), 3266489909)

    return format(4294967296 * (mixed2 & _MASK21) + mixed1, "x")
