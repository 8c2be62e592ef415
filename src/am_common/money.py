"""Integer arithmetic utilities for money.

All prices, amounts and commissions use int minor units (cents/paise).
No float, no Decimal. Rates are expressed in basis points (1 bps = 0.01%).
"""

_BPS_DENOMINATOR = 10_000


def cents_to_display(cents: int) -> str:
    """Convert cents to display string: 550000 -> '₹5,500.00', -1200 -> '-₹12.00'."""
    if cents < 0:
        abs_cents = -cents
        return f"-₹{abs_cents // 100:,}.{abs_cents % 100:02d}"
    return f"₹{cents // 100:,}.{cents % 100:02d}"


def bps_to_rate(bps: int) -> float:
    """200 -> 0.02. Display only; never used for arithmetic."""
    return bps / _BPS_DENOMINATOR


def calculate_commission(total_cents: int, rate_bps: int) -> int:
    """Commission rounded half-up to the nearest cent.

    commission = floor(total * bps / 10000 + 1/2)
    Using integer arithmetic: (a * b + 5000) // 10000
    """
    if total_cents < 0:
        raise ValueError(f"total must be non-negative, got {total_cents}")
    if not (0 <= rate_bps <= _BPS_DENOMINATOR):
        raise ValueError(f"rate_bps must be between 0 and 10000, got {rate_bps}")
    return (total_cents * rate_bps + _BPS_DENOMINATOR // 2) // _BPS_DENOMINATOR
