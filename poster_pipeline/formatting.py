"""Human-readable formatting helpers shared by verdicts and compression stats."""

_BYTE_UNITS: tuple[str, ...] = ("bytes", "KB", "MB", "GB")
_UNIT_STEP: int = 1000


def format_byte_count(byte_count: int) -> str:
    """Format a byte count with decimal units, as file browsers display it.

    Args:
        byte_count: Number of bytes.

    Returns:
        A string such as "512 bytes", "48 KB" or "4.2 MB".
    """
    if byte_count < _UNIT_STEP:
        return f"{byte_count} bytes"

    value = float(byte_count)
    unit_index = 0
    while value >= _UNIT_STEP and unit_index < len(_BYTE_UNITS) - 1:
        value /= _UNIT_STEP
        unit_index += 1

    unit = _BYTE_UNITS[unit_index]
    if unit == "KB":
        return f"{value:.0f} {unit}"
    return f"{value:.1f} {unit}"


def format_dimensions(width: int, height: int) -> str:
    """Format pixel dimensions as WIDTHxHEIGHT."""
    return f"{width}x{height}"
