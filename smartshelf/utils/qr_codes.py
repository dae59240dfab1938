"""QR code identifier generation."""

import secrets
import string
import time

BASE36_ALPHABET: str = string.digits + string.ascii_lowercase


def to_base36(value: int) -> str:
    """Encode a non-negative integer in base 36.

    Args:
        value (int): The integer to encode.

    Returns:
        str: The lowercase base 36 representation.
    """
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))


def generate_qr_code_id(now_ms: int | None = None) -> str:
    """Generate the identifier printed on an item's QR code.

    Args:
        now_ms (int | None): Timestamp in milliseconds, defaults to now.

    Returns:
        str: ``"{base36 timestamp}_{6 random base36 chars}"``.
    """
    timestamp: int = (
        now_ms if now_ms is not None else time.time_ns() // 1_000_000
    )
    suffix: str = "".join(secrets.choice(BASE36_ALPHABET) for _ in range(6))
    return f"{to_base36(timestamp)}_{suffix}"
