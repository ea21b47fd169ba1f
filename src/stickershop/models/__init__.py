from .pricing import PriceBreakdown, PriceQuote, QuantityBracket, QuantityTier, TierHint
from .catalog import CuttingOption, FinishOption, MaterialOption
from .cart import CartItem, UploadedFile
from .order import CustomerDetails, NewOrder, OrderRecord, OrderStatus, StickerOrder

__all__ = [
    "PriceBreakdown", "PriceQuote", "QuantityBracket", "QuantityTier", "TierHint",
    "CuttingOption", "FinishOption", "MaterialOption",
    "CartItem", "UploadedFile",
    "CustomerDetails", "NewOrder", "OrderRecord", "OrderStatus", "StickerOrder",
]
