"""Revenue split between the platform and the selling creator.

Fee formula
-----------
1. ``platform_fee = round(amount * fee_percent / 100)``, rounding halves up
   to the nearest whole minor currency unit.
2. ``creator_payout = amount - platform_fee``.

The payout is the remainder rather than an independently rounded value, so
``platform_fee + creator_payout`` always reconstructs ``amount`` exactly.
"""

from __future__ import annotations

from typing import Optional

from app.config import settings


def split_amount(amount: int, fee_percent: Optional[int] = None) -> tuple[int, int]:
    """Split a sale amount (in cents) into ``(platform_fee, creator_payout)``.

    Parameters
    ----------
    amount:
        Sale total in minor currency units. Must be non-negative.
    fee_percent:
        Platform share in whole percent, 0-100. Defaults to
        ``settings.PLATFORM_FEE_PERCENT``.
    """
    if fee_percent is None:
        fee_percent = settings.PLATFORM_FEE_PERCENT
    if not 0 <= fee_percent <= 100:
        raise ValueError(f"fee_percent must be within [0, 100], got {fee_percent}")
    if amount < 0:
        raise ValueError(f"amount must be non-negative, got {amount}")

    # Integer half-up rounding; float round() would use banker's rounding
    platform_fee = (amount * fee_percent + 50) // 100
    creator_payout = amount - platform_fee
    return platform_fee, creator_payout


def format_price(price_cents: int, currency: str = "USD") -> str:
    """Render a minor-unit amount for logs and line-item descriptions, e.g. ``$49.99``."""
    symbol = "$" if currency.upper() == "USD" else f"{currency.upper()} "
    return f"{symbol}{price_cents / 100:,.2f}"
