"""Human-readable rendering for byte counts and durations in health payloads."""

from typing import Final

BYTE_UNIT: Final[int] = 1024
BYTE_UNIT_PREFIXES: Final[str] = "KMGTPE"


def format_bytes(byte_count: int) -> str:
    """Render a byte count on the binary (1024-based) unit ladder.

    Args:
        byte_count: Number of bytes.

    Returns:
        str: `"<n> B"` below 1024, otherwise one decimal place with a
        KB/MB/GB/TB/PB/EB suffix, e.g. `"1.5 KB"`.
    """

    if byte_count < BYTE_UNIT:
        return f"{byte_count} B"

    divisor = BYTE_UNIT
    exponent = 0
    remaining = byte_count // BYTE_UNIT
    while remaining >= BYTE_UNIT and exponent < len(BYTE_UNIT_PREFIXES) - 1:
        divisor *= BYTE_UNIT
        exponent += 1
        remaining //= BYTE_UNIT
    return f"{byte_count / divisor:.1f} {BYTE_UNIT_PREFIXES[exponent]}B"


def format_duration(seconds: float) -> str:
    """Render an elapsed duration compactly.

    Args:
        seconds: Elapsed time in seconds.

    Returns:
        str: `"12.345ms"` below one second, `"4.200s"` below one minute,
        otherwise `"1h2m3s"` style.
    """

    if seconds < 1:
        return f"{seconds * 1000:.3f}ms"
    if seconds < 60:
        return f"{seconds:.3f}s"

    whole_seconds = int(seconds)
    hours, remainder = divmod(whole_seconds, 3600)
    minutes, remaining_seconds = divmod(remainder, 60)
    if hours:
        return f"{hours}h{minutes}m{remaining_seconds}s"
    return f"{minutes}m{remaining_seconds}s"
