"""
Sticker product catalog.

Lookups by id never fail: an unknown id resolves to the first entry of the
catalog, while get_default_* resolves to the recommended entry. The two
fallbacks differ on purpose and callers rely on both.
"""
from typing import List, Optional, Sequence, TypeVar, Dict, Any

from stickershop.core.pricing_tables import (
    QUANTITY_DEFAULT,
    QUANTITY_MAX,
    QUANTITY_MIN,
    SIZE_DEFAULT_INCHES,
    SIZE_MAX_INCHES,
    SIZE_MIN_INCHES,
    SIZE_STEP_INCHES,
)
from stickershop.models.catalog import CuttingOption, FinishOption, MaterialOption

T = TypeVar("T", MaterialOption, CuttingOption)

STICKER_MATERIALS: Sequence[MaterialOption] = (
    MaterialOption(
        id="premium-vinyl",
        name="Premium Vinyl",
        subtitle="Most popular",
        description="Weather-resistant matte laminate, 3-5 year outdoor life",
        price_modifier=1.0,
        icon="⭐",
        recommended=True,
        finish="matte-laminate",
    ),
    MaterialOption(
        id="glossy-vinyl",
        name="Glossy Vinyl",
        subtitle="Vibrant colors",
        description="High-shine finish, UV-protected, 3-5 year outdoor life",
        price_modifier=1.0,
        icon="✨",
        finish="glossy",
    ),
    MaterialOption(
        id="matte-vinyl",
        name="Matte Vinyl",
        subtitle="Elegant finish",
        description="No-glare premium matte, 3-5 year outdoor life",
        price_modifier=1.0,
        icon="🎨",
        finish="matte",
    ),
    MaterialOption(
        id="clear-vinyl",
        name="Clear Vinyl",
        subtitle="Transparent",
        description="See-through background, perfect for glass and windows",
        price_modifier=1.15,
        icon="💎",
        finish="transparent",
    ),
    MaterialOption(
        id="holographic",
        name="Holographic",
        subtitle="Rainbow effect",
        description="Eye-catching rainbow shimmer, premium specialty finish",
        price_modifier=1.3,
        icon="🌈",
        finish="holographic",
        specialty=True,
    ),
    MaterialOption(
        id="glitter",
        name="Glitter",
        subtitle="Sparkle finish",
        description="Bold sparkle effect, polyester blend material",
        price_modifier=1.4,
        icon="✨",
        finish="glitter",
        specialty=True,
    ),
    MaterialOption(
        id="metallic",
        name="Metallic",
        subtitle="Brushed metal",
        description="Premium metallic finish, available in gold and silver",
        price_modifier=1.35,
        icon="🥇",
        finish="metallic",
        specialty=True,
        finish_options=(
            FinishOption(id="metallic-gold", name="Gold", icon="🥇"),
            FinishOption(id="metallic-silver", name="Silver", icon="🥈"),
        ),
    ),
    MaterialOption(
        id="economy",
        name="Economy",
        subtitle="Budget-friendly",
        description="Non-laminated vinyl, indoor use only",
        price_modifier=0.7,
        icon="💰",
        durability="indoor",
        finish="paper",
        warning="Indoor use only - not weather resistant",
    ),
)

CUTTING_OPTIONS: Sequence[CuttingOption] = (
    CuttingOption(
        id="die-cut",
        name="Die Cut",
        description="Cut to exact shape of your design with no border",
        price_cents=15,
        icon="✂️",
        recommended=True,
        details="Follows the contour of your design precisely",
    ),
    CuttingOption(
        id="kiss-cut",
        name="Kiss Cut",
        description="Cut through sticker only, backing stays intact for easy peeling",
        price_cents=10,
        icon="📄",
        details="Perfect for sticker sheets and easy distribution",
    ),
    CuttingOption(
        id="rectangle",
        name="Rectangle",
        description="Simple rectangular cut with optional border",
        price_cents=0,
        icon="▭",
        details="Clean and classic shape",
    ),
    CuttingOption(
        id="circle",
        name="Circle",
        description="Circular or oval shaped stickers",
        price_cents=0,
        icon="⭕",
        details="Round shape for logos and badges",
    ),
)

SIZE_RANGE: Dict[str, float] = {
    "min": SIZE_MIN_INCHES,
    "max": SIZE_MAX_INCHES,
    "step": SIZE_STEP_INCHES,
    "default": SIZE_DEFAULT_INCHES,
}

QUANTITY_LIMITS: Dict[str, int] = {
    "min": QUANTITY_MIN,
    "max": QUANTITY_MAX,
    "default": QUANTITY_DEFAULT,
}


def _find(options: Sequence[T], option_id: Optional[str]) -> T:
    return next((o for o in options if o.id == option_id), options[0])


def _recommended(options: Sequence[T]) -> T:
    return next((o for o in options if o.recommended), options[0])


def get_material(material_id: Optional[str]) -> MaterialOption:
    """Material by id; unknown ids fall back to the first material."""
    return _find(STICKER_MATERIALS, material_id)


def get_cutting_option(cutting_id: Optional[str]) -> CuttingOption:
    """Cutting option by id; unknown ids fall back to the first option."""
    return _find(CUTTING_OPTIONS, cutting_id)


def get_default_material() -> MaterialOption:
    return _recommended(STICKER_MATERIALS)


def get_default_cutting() -> CuttingOption:
    return _recommended(CUTTING_OPTIONS)


def list_materials() -> List[MaterialOption]:
    return list(STICKER_MATERIALS)


def list_cutting_options() -> List[CuttingOption]:
    return list(CUTTING_OPTIONS)


def catalog_to_dict() -> Dict[str, Any]:
    return {
        "materials": [m.to_dict() for m in STICKER_MATERIALS],
        "cuttingOptions": [c.to_dict() for c in CUTTING_OPTIONS],
        "sizeRange": dict(SIZE_RANGE),
        "quantityLimits": dict(QUANTITY_LIMITS),
        "defaultMaterialId": get_default_material().id,
        "defaultCuttingId": get_default_cutting().id,
    }
