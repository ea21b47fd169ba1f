from dataclasses import dataclass, asdict
from typing import Optional, Dict, Any


@dataclass(frozen=True)
class QuantityTier:
    """A quantity range mapped to a discount fraction"""
    min: int
    max: Optional[int]  # None means unbounded
    discount: float
    label: str

    @property
    def discount_percent(self) -> int:
        return int(round(self.discount * 100))

    def contains(self, quantity: int) -> bool:
        return quantity >= self.min and (self.max is None or quantity <= self.max)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "min": self.min,
            "max": self.max,
            "discount": self.discount,
            "discountPercent": self.discount_percent,
            "label": self.label,
        }


@dataclass(frozen=True)
class PriceBreakdown:
    """
    Itemised decomposition of a sticker price.

    total_price_cents is always unit_price_cents * quantity.
    """
    base_price_cents: int
    material_adjustment_cents: int
    cutting_adjustment_cents: int
    subtotal_cents: int
    discount_percent: int
    savings_cents: int
    unit_price_cents: int
    total_price_cents: int
    tier_label: str
    quantity: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "basePriceCents": self.base_price_cents,
            "materialAdjustmentCents": self.material_adjustment_cents,
            "cuttingAdjustmentCents": self.cutting_adjustment_cents,
            "subtotalCents": self.subtotal_cents,
            "discountPercent": self.discount_percent,
            "savingsCents": self.savings_cents,
            "unitPriceCents": self.unit_price_cents,
            "totalPriceCents": self.total_price_cents,
            "tierLabel": self.tier_label,
            "quantity": self.quantity,
        }


@dataclass(frozen=True)
class PriceQuote:
    """Result shared by every pricing strategy"""
    unit_price_cents: int
    total_price_cents: int
    tier_label: str
    breakdown: Optional[PriceBreakdown] = None

    @classmethod
    def from_breakdown(cls, breakdown: PriceBreakdown) -> "PriceQuote":
        return cls(
            unit_price_cents=breakdown.unit_price_cents,
            total_price_cents=breakdown.total_price_cents,
            tier_label=breakdown.tier_label,
            breakdown=breakdown,
        )


@dataclass(frozen=True)
class TierHint:
    next_tier_min_quantity: int
    discount_percent: int
    units_to_add: int
    message: str
    tier_label: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nextTierMinQuantity": self.next_tier_min_quantity,
            "discountPercent": self.discount_percent,
            "unitsToAdd": self.units_to_add,
            "message": self.message,
            "tierLabel": self.tier_label,
        }


@dataclass(frozen=True)
class QuantityBracket:
    """Discrete quantity range used by the DTF transfer price sheets"""
    min: int
    max: Optional[int]
    label: str

    def contains(self, quantity: int) -> bool:
        return quantity >= self.min and (self.max is None or quantity <= self.max)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
