"""Slot pricing: hourly base rate with weekend and peak-hour multipliers."""
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Optional

from courtbook.core.config import settings
from courtbook.services.intervals import overlaps, to_minutes

CENT = Decimal("0.01")
ONE = Decimal("1")
SATURDAY = 5


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PriceBreakdown:
    base: Decimal
    weekend_multiplier: Decimal
    peak_multiplier: Decimal
    total: Decimal
    platform_fee: Decimal
    owner_earnings: Decimal

    def as_dict(self) -> Dict[str, Any]:
        return {
            "base": self.base,
            "weekend_multiplier": self.weekend_multiplier,
            "peak_multiplier": self.peak_multiplier,
            "total": self.total,
            "platform_fee": self.platform_fee,
            "owner_earnings": self.owner_earnings,
        }


class PricingCalculator:
    """Pure price computation; no database access."""

    def __init__(self, platform_fee_percent: Optional[int] = None):
        if platform_fee_percent is None:
            platform_fee_percent = settings.PLATFORM_FEE_PERCENT
        self.platform_fee_rate = Decimal(platform_fee_percent) / Decimal(100)

    def price(self, court, slot_date: date, start: int, end: int) -> PriceBreakdown:
        """
        Price the interval [start, end) on slot_date.

        Multipliers compose multiplicatively. Among peak windows overlapping the
        interval only the largest multiplier applies.
        """
        hours = Decimal(end - start) / Decimal(60)
        base = _money(hours * Decimal(str(court.price_per_hour)))

        weekend = ONE
        peak = ONE
        rules = court.pricing_rules or {}
        if rules and rules.get("enabled", True):
            if slot_date.weekday() >= SATURDAY:
                weekend = Decimal(str(rules.get("weekend_multiplier", 1)))
            for window in rules.get("peak_hours") or []:
                if overlaps(start, end, to_minutes(window["start"]), to_minutes(window["end"])):
                    peak = max(peak, Decimal(str(window.get("multiplier", 1))))

        total = _money(base * weekend * peak)
        fee = _money(total * self.platform_fee_rate)
        return PriceBreakdown(
            base=base,
            weekend_multiplier=weekend,
            peak_multiplier=peak,
            total=total,
            platform_fee=fee,
            owner_earnings=total - fee,
        )


pricing_calculator = PricingCalculator()
