"""
Sticker pricing engine.

Two independent strategies live here and are selected by product type:

* ``sticker`` - continuous size (1"-12") x material x cutting x quantity tier,
  computed by :func:`calculate_price`.
* ``single-image`` / ``gang-sheet`` - DTF transfer price sheets keyed by a
  discrete size label and a quantity bracket, computed by
  :func:`calculate_legacy_price`.

Every function is pure; identical inputs always give identical cents.
"""
import logging
import math
import re
from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

from stickershop.core.exceptions import ValidationError
from stickershop.core.pricing_tables import (
    DEFAULT_GANG_SHEET_SIZE,
    GANG_SHEET_BRACKETS,
    GANG_SHEET_PRICES,
    MIN_UNIT_PRICE_CENTS,
    PRODUCT_GANG_SHEET,
    PRODUCT_SINGLE_IMAGE,
    PRODUCT_STICKER,
    QUANTITY_MAX,
    QUANTITY_MIN,
    QUANTITY_TIERS,
    SINGLE_IMAGE_BRACKETS,
    SINGLE_IMAGE_PRICES,
    SIZE_BASE_PRICES,
    SIZE_MAX_INCHES,
    SIZE_MIN_INCHES,
)
from stickershop.models.pricing import (
    PriceBreakdown,
    PriceQuote,
    QuantityBracket,
    QuantityTier,
    TierHint,
)
from stickershop.services.catalog_service import get_cutting_option, get_material
from stickershop.utils.formatting_utils import round_half_up, to_decimal

logger = logging.getLogger(__name__)

Number = Union[int, float, Decimal]

LEGACY_PRICE_SHEETS: Dict[str, Tuple[Sequence[QuantityBracket], Mapping[str, Tuple[int, ...]]]] = {
    PRODUCT_SINGLE_IMAGE: (SINGLE_IMAGE_BRACKETS, SINGLE_IMAGE_PRICES),
    PRODUCT_GANG_SHEET: (GANG_SHEET_BRACKETS, GANG_SHEET_PRICES),
}

_NUMBER_RE = re.compile(r"\d+(?:\.\d+)?")
_UNIT_RE = re.compile(r"(inches|inch|in)$")


def _is_number(value) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def is_valid_size(size_inches) -> bool:
    return _is_number(size_inches) and SIZE_MIN_INCHES <= size_inches <= SIZE_MAX_INCHES


def is_valid_quantity(quantity) -> bool:
    return (
        isinstance(quantity, int)
        and not isinstance(quantity, bool)
        and QUANTITY_MIN <= quantity <= QUANTITY_MAX
    )


def snap_size(size_inches: Number) -> float:
    """Snap to the 0.5" grid (round half up: 6.25 -> 6.5) and clamp to 1"-12"."""
    if not _is_number(size_inches) or not math.isfinite(size_inches):
        raise ValidationError(f"Invalid size: {size_inches!r}")
    snapped = round_half_up(to_decimal(size_inches) * 2) / 2
    return max(SIZE_MIN_INCHES, min(SIZE_MAX_INCHES, snapped))


def get_base_price(size_inches: Number, table: Optional[Mapping[float, int]] = None) -> int:
    """
    Base price in cents for one sticker.

    Uses the table entry at the snapped size when there is one, otherwise
    interpolates linearly between the nearest entries below and above.
    """
    table = SIZE_BASE_PRICES if table is None else table
    size = snap_size(size_inches)

    if size in table:
        return table[size]

    lower = max((k for k in table if k <= size), default=None)
    upper = min((k for k in table if k >= size), default=None)
    if lower is None:
        return table[upper]
    if upper is None:
        return table[lower]

    ratio = (to_decimal(size) - to_decimal(lower)) / (to_decimal(upper) - to_decimal(lower))
    return round_half_up(table[lower] + (table[upper] - table[lower]) * ratio)


def get_quantity_tier(quantity: int, tiers: Sequence[QuantityTier] = QUANTITY_TIERS) -> QuantityTier:
    """First tier, in ascending order, whose [min, max] contains quantity."""
    for tier in tiers:
        if tier.contains(quantity):
            return tier
    raise ValidationError(f"No quantity tier for quantity {quantity}")


def get_quantity_tiers() -> List[QuantityTier]:
    return list(QUANTITY_TIERS)


def calculate_price(
    size_inches: Number,
    quantity: int,
    material_modifier: Number = 1.0,
    cutting_surcharge_cents: int = 0,
    *,
    min_unit_price_cents: int = MIN_UNIT_PRICE_CENTS,
) -> PriceBreakdown:
    """
    Price a sticker configuration.

    Steps: base price for the size, material modifier (multiplicative,
    rounded to the cent), cutting surcharge (flat, added after the
    material), quantity tier discount (rounded to the cent), then the
    minimum unit price floor.

    Raises:
        ValidationError: quantity outside 1-9999, or a non-numeric size,
            negative modifier or negative surcharge.
    """
    if not is_valid_quantity(quantity):
        raise ValidationError(f"Quantity must be an integer between {QUANTITY_MIN} and {QUANTITY_MAX}")
    if not _is_number(material_modifier) or material_modifier <= 0:
        raise ValidationError(f"Invalid material modifier: {material_modifier!r}")
    if not isinstance(cutting_surcharge_cents, int) or cutting_surcharge_cents < 0:
        raise ValidationError(f"Invalid cutting surcharge: {cutting_surcharge_cents!r}")

    base_price = get_base_price(size_inches)
    material_price = round_half_up(Decimal(base_price) * to_decimal(material_modifier))
    subtotal = material_price + cutting_surcharge_cents

    tier = get_quantity_tier(quantity)
    unit_price = round_half_up(subtotal * (1 - to_decimal(tier.discount)))
    unit_price = max(unit_price, min_unit_price_cents)

    total_price = unit_price * quantity
    savings = subtotal * quantity - total_price

    return PriceBreakdown(
        base_price_cents=base_price,
        material_adjustment_cents=material_price - base_price,
        cutting_adjustment_cents=cutting_surcharge_cents,
        subtotal_cents=subtotal,
        discount_percent=tier.discount_percent,
        savings_cents=savings,
        unit_price_cents=unit_price,
        total_price_cents=total_price,
        tier_label=tier.label,
        quantity=quantity,
    )


def get_next_tier_hint(current_quantity: int) -> Optional[TierHint]:
    """Upsell hint for the next discount tier, or None in the top tier."""
    current = get_quantity_tier(current_quantity)
    index = QUANTITY_TIERS.index(current)
    if index >= len(QUANTITY_TIERS) - 1:
        return None

    next_tier = QUANTITY_TIERS[index + 1]
    add_more = next_tier.min - current_quantity
    return TierHint(
        next_tier_min_quantity=next_tier.min,
        discount_percent=next_tier.discount_percent,
        units_to_add=add_more,
        message=f"Add {add_more} more to save {next_tier.discount_percent}%",
        tier_label=next_tier.label,
    )


def normalize_size_label(size: Optional[str]) -> Optional[str]:
    """
    Canonical size label: '22" x 12"' -> '22x12', '3 X 3 in' -> '3x3'.

    Returns None for empty input.
    """
    if size is None:
        return None
    label = re.sub(r"[\"'“”″\s]", "", str(size)).lower()
    label = label.replace("×", "x")
    if not label:
        return None

    parts = [_UNIT_RE.sub("", p) for p in label.split("x")]
    if len(parts) == 2 and all(parts):
        return f"{parts[0]}x{parts[1]}"
    return _UNIT_RE.sub("", label) or label


def normalize_gang_sheet_size(size: Optional[str]) -> str:
    return normalize_size_label(size) or DEFAULT_GANG_SHEET_SIZE


def parse_size_inches(size) -> Optional[float]:
    """
    Longest dimension in inches from a number or a label such as '3"',
    '3.5 in' or '3 x 2.5'. None when no number is present.
    """
    if _is_number(size):
        return float(size)
    if not isinstance(size, str):
        return None
    numbers = [float(n) for n in _NUMBER_RE.findall(size)]
    return max(numbers) if numbers else None


def calculate_legacy_price(product_type: str, size_label: Optional[str], quantity: int) -> Optional[PriceQuote]:
    """
    DTF transfer price from the discrete price sheets.

    Returns None when the product type, size label or quantity has no
    entry; callers turn that into a pricing error.
    """
    sheet = LEGACY_PRICE_SHEETS.get(product_type)
    if sheet is None:
        logger.debug(f"No price sheet for product type {product_type!r}")
        return None
    brackets, prices = sheet

    label = normalize_size_label(size_label)
    row = prices.get(label) if label else None
    if row is None or not is_valid_quantity(quantity):
        return None

    for bracket, unit_price in zip(brackets, row):
        if bracket.contains(quantity):
            return PriceQuote(
                unit_price_cents=unit_price,
                total_price_cents=unit_price * quantity,
                tier_label=bracket.label,
            )
    return None


def price_for_product(
    product_type: str,
    size,
    quantity: int,
    material_id: Optional[str] = None,
    cutting_id: Optional[str] = None,
    *,
    min_unit_price_cents: int = MIN_UNIT_PRICE_CENTS,
) -> Optional[PriceQuote]:
    """Price any product type with its own strategy; None when unpriceable."""
    if product_type != PRODUCT_STICKER:
        return calculate_legacy_price(product_type, size, quantity)

    size_inches = parse_size_inches(size)
    if size_inches is None or not is_valid_size(size_inches) or not is_valid_quantity(quantity):
        return None

    material = get_material(material_id)
    cutting = get_cutting_option(cutting_id)
    breakdown = calculate_price(
        size_inches,
        quantity,
        material.price_modifier,
        cutting.price_cents,
        min_unit_price_cents=min_unit_price_cents,
    )
    return PriceQuote.from_breakdown(breakdown)
