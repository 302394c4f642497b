"""Shipping estimator — flat zone rates scaled by basket weight.

Pure functions only. Costs are integer cents; the weight multiplier is kept in
tenths so the arithmetic never leaves the integers.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class ShippingZone:
    name: str
    rate_cents: int
    description: str


class Zone(Enum):
    LOCAL = ShippingZone("Local", 500, "Same state shipping")
    REGIONAL = ShippingZone("Regional", 1000, "Neighboring states")
    NATIONAL = ShippingZone("National", 1500, "Rest of US")
    INTERNATIONAL = ShippingZone("International", 2500, "International shipping")


LOCAL_REGIONS = frozenset({"CA", "NV", "AZ"})
REGIONAL_REGIONS = frozenset({"OR", "WA", "ID", "UT", "NM", "TX", "CO", "WY", "MT"})
NATIONAL_REGIONS = frozenset(
    {
        "AL", "AK", "AR", "CT", "DE", "FL", "GA", "HI", "IL", "IN", "IA", "KS", "KY",
        "LA", "ME", "MD", "MA", "MI", "MN", "MS", "MO", "NE", "NH", "NJ", "NY", "NC",
        "ND", "OH", "OK", "PA", "RI", "SC", "SD", "TN", "VT", "VA", "WV", "WI",
    }
)  # fmt: skip

# (upper bound in ounces, multiplier in tenths); the last bound is open.
WEIGHT_BANDS = (
    (16, 10),
    (48, 15),
    (None, 20),
)


@dataclass(frozen=True)
class BasketLine:
    """Anything with a per-unit weight and a quantity."""

    weight_oz: int
    quantity: int


@dataclass(frozen=True)
class ShippingQuote:
    cost_cents: int
    zone: str
    description: str
    weight_oz: int
    multiplier_tenths: int

    @property
    def supported(self) -> bool:
        return bool(self.zone)

    @property
    def multiplier(self) -> float:
        return self.multiplier_tenths / 10


def normalize_region(region: str | None) -> str:
    return (region or "").strip().upper()


def shipping_zone_for(region: str | None) -> Zone | None:
    """Map a two-letter US state code to its shipping zone, or ``None``."""
    code = normalize_region(region)
    if len(code) != 2:
        return None
    if code in LOCAL_REGIONS:
        return Zone.LOCAL
    if code in REGIONAL_REGIONS:
        return Zone.REGIONAL
    if code in NATIONAL_REGIONS:
        return Zone.NATIONAL
    return None


def basket_weight(lines: Iterable[BasketLine]) -> int:
    return sum(line.weight_oz * line.quantity for line in lines)


def weight_multiplier(weight_oz: int) -> int:
    for upper_bound, tenths in WEIGHT_BANDS[:-1]:
        if weight_oz <= upper_bound:
            return tenths
    return WEIGHT_BANDS[-1][1]


def estimate_shipping(lines: Iterable[BasketLine], region: str | None) -> ShippingQuote:
    """Quote shipping for a basket going to ``region``.

    Unsupported regions yield a zero-cost quote with an empty zone; callers
    decide whether that is acceptable.
    """
    weight = basket_weight(lines)
    zone = shipping_zone_for(region)
    if zone is None:
        return ShippingQuote(cost_cents=0, zone="", description="", weight_oz=weight, multiplier_tenths=0)

    tenths = weight_multiplier(weight)
    return ShippingQuote(
        cost_cents=zone.value.rate_cents * tenths // 10,
        zone=zone.value.name,
        description=zone.value.description,
        weight_oz=weight,
        multiplier_tenths=tenths,
    )
