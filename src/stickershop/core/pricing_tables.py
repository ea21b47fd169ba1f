"""
Static price tables.

All amounts are integer cents. SIZE_BASE_PRICES is keyed by the 0.5" grid
and must stay non-decreasing from 1" to 12"; QUANTITY_TIERS must cover
[1, inf) in ascending order with no gaps or overlaps.
"""
from typing import Dict, Tuple

from stickershop.models.pricing import QuantityBracket, QuantityTier

SIZE_MIN_INCHES = 1.0
SIZE_MAX_INCHES = 12.0
SIZE_STEP_INCHES = 0.5
SIZE_DEFAULT_INCHES = 3.0

QUANTITY_MIN = 1
QUANTITY_MAX = 9999
QUANTITY_DEFAULT = 25

MIN_UNIT_PRICE_CENTS = 10

# Price of a single sticker before material, cutting and quantity discounts
SIZE_BASE_PRICES: Dict[float, int] = {
    1.0: 45,
    1.5: 55,
    2.0: 65,
    2.5: 75,
    3.0: 90,
    3.5: 105,
    4.0: 120,
    4.5: 137,
    5.0: 155,
    5.5: 175,
    6.0: 195,
    6.5: 217,
    7.0: 240,
    7.5: 265,
    8.0: 290,
    8.5: 317,
    9.0: 345,
    9.5: 375,
    10.0: 405,
    10.5: 437,
    11.0: 470,
    11.5: 505,
    12.0: 540,
}

QUANTITY_TIERS: Tuple[QuantityTier, ...] = (
    QuantityTier(min=1, max=9, discount=0.0, label="Single"),
    QuantityTier(min=10, max=49, discount=0.10, label="Small batch"),
    QuantityTier(min=50, max=99, discount=0.15, label="Medium batch"),
    QuantityTier(min=100, max=249, discount=0.20, label="Large batch"),
    QuantityTier(min=250, max=None, discount=0.25, label="Bulk"),
)

# DTF transfer price sheets: size label -> price per unit for each bracket,
# listed in the same order as the product's brackets.
SINGLE_IMAGE_BRACKETS: Tuple[QuantityBracket, ...] = (
    QuantityBracket(min=1, max=9, label="1-9"),
    QuantityBracket(min=10, max=49, label="10-49"),
    QuantityBracket(min=50, max=99, label="50-99"),
    QuantityBracket(min=100, max=249, label="100-249"),
    QuantityBracket(min=250, max=None, label="250+"),
)

SINGLE_IMAGE_PRICES: Dict[str, Tuple[int, ...]] = {
    "2x2": (150, 125, 95, 75, 60),
    "3x3": (200, 165, 130, 100, 80),
    "4x4": (275, 225, 180, 140, 115),
    "5x5": (350, 290, 230, 180, 150),
    "6x6": (425, 350, 280, 220, 180),
    "8x8": (600, 495, 395, 310, 255),
    "10x10": (800, 660, 525, 415, 340),
    "12x12": (1000, 825, 660, 520, 425),
    "11x14": (1100, 905, 725, 570, 465),
    "12x16": (1250, 1030, 825, 650, 530),
}

GANG_SHEET_BRACKETS: Tuple[QuantityBracket, ...] = (
    QuantityBracket(min=1, max=4, label="1-4"),
    QuantityBracket(min=5, max=9, label="5-9"),
    QuantityBracket(min=10, max=24, label="10-24"),
    QuantityBracket(min=25, max=None, label="25+"),
)

GANG_SHEET_PRICES: Dict[str, Tuple[int, ...]] = {
    "22x12": (800, 720, 650, 580),
    "22x24": (1500, 1350, 1215, 1095),
    "22x36": (2100, 1890, 1700, 1530),
    "22x48": (2700, 2430, 2185, 1965),
    "22x60": (3300, 2970, 2670, 2400),
    "22x120": (6000, 5400, 4860, 4375),
    "22x240": (11000, 9900, 8910, 8020),
}

DEFAULT_GANG_SHEET_SIZE = "22x12"

PRODUCT_STICKER = "sticker"
PRODUCT_SINGLE_IMAGE = "single-image"
PRODUCT_GANG_SHEET = "gang-sheet"
