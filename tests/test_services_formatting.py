"""Tests for byte and duration rendering used by health payloads."""

import pytest

from tenant_service.services import format_bytes, format_duration


@pytest.mark.parametrize(
    ("byte_count", "expected"),
    [
        (0, "0 B"),
        (1023, "1023 B"),
        (1024, "1.0 KB"),
        (1536, "1.5 KB"),
        (1048576, "1.0 MB"),
        (5 * 1024**3, "5.0 GB"),
    ],
)
def test_services_format_bytes_uses_binary_ladder(byte_count: int, expected: str) -> None:
    assert format_bytes(byte_count) == expected


@pytest.mark.parametrize(
    ("seconds", "expected"),
    [
        (0.0123, "12.300ms"),
        (4.2, "4.200s"),
        (125, "2m5s"),
        (3723, "1h2m3s"),
    ],
)
def test_services_format_duration_picks_unit_by_magnitude(seconds: float, expected: str) -> None:
    """Render milliseconds, seconds and h/m/s forms by magnitude.

    Raises:
        AssertionError: Raised when rendering diverges.
    """

    assert format_duration(seconds) == expected
