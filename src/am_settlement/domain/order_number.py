"""Human-readable order numbers: ORD-<YYYYMMDD>-<NNNN>.

The sequence part is zero-padded to four digits and simply grows wider
past 9999; uniqueness comes from the per-day counter, not the width.
"""

import re
from datetime import date

ORDER_NUMBER_PREFIX = "ORD"
_PATTERN = re.compile(r"^ORD-(\d{8})-(\d{4,})$")


def format_order_number(day: date, sequence: int) -> str:
    if sequence < 1:
        raise ValueError(f"sequence must be >= 1, got {sequence}")
    return f"{ORDER_NUMBER_PREFIX}-{day:%Y%m%d}-{sequence:04d}"


def parse_order_number(order_number: str) -> tuple[str, int] | None:
    """Return (YYYYMMDD, sequence) or None when the string is not an order number."""
    m = _PATTERN.match(order_number)
    if m is None:
        return None
    return m.group(1), int(m.group(2))
