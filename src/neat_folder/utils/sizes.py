"""Human-readable byte sizes."""

import re
from typing import Optional

from ..exceptions import ConfigurationError

KB = 1024
MB = KB * 1024
GB = MB * 1024
TB = GB * 1024

_MULTIPLIERS = {"B": 1, "KB": KB, "MB": MB, "GB": GB, "TB": TB}
_SIZE_PATTERN = re.compile(r'^(\d+(?:\.\d+)?)\s*(B|KB|MB|GB|TB)?$', re.IGNORECASE)
_UNITS = ["B", "KB", "MB", "GB", "TB"]


def parse_size(size_str: Optional[str]) -> Optional[int]:
    """Parse strings like "100", "1KB", "2MB" or "1.5GB" into bytes.

    An empty string or "Infinity" means no bound and yields None.
    """
    if size_str is None:
        return None
    size_str = str(size_str).strip()
    if size_str == "" or size_str.lower() == "infinity":
        return None
    if size_str == "0":
        return 0

    match = _SIZE_PATTERN.match(size_str)
    if not match:
        raise ConfigurationError(
            f"Invalid size format: {size_str}. Use formats like: 100, 1KB, 2MB, 1.5GB"
        )

    value = float(match.group(1))
    unit = (match.group(2) or "B").upper()
    return int(value * _MULTIPLIERS[unit])


def format_size(num_bytes: int, decimals: int = 2) -> str:
    """Format a byte count as e.g. "1.5 MB"."""
    if num_bytes <= 0:
        return "0 B"

    i = 0
    value = float(num_bytes)
    while value >= 1024 and i < len(_UNITS) - 1:
        value /= 1024
        i += 1
    value = round(value, decimals)
    # Drop trailing zeros ("1.50" -> "1.5", "2.00" -> "2")
    text = f"{value:.{decimals}f}".rstrip("0").rstrip(".") if decimals else f"{value:.0f}"
    return f"{text} {_UNITS[i]}"
