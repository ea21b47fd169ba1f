from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from stickershop.core.pricing_tables import (
    PRODUCT_GANG_SHEET,
    PRODUCT_SINGLE_IMAGE,
    PRODUCT_STICKER,
    QUANTITY_MAX,
)


class UploadedFileRef(BaseModel):
    """File already uploaded to object storage"""
    model_config = ConfigDict(extra="ignore")

    key: str = Field(min_length=1, description="Object storage key")
    filename: Optional[str] = Field(default=None, description="Original filename")
    mimetype: Optional[str] = Field(default=None, description="Detected MIME type")
    url: Optional[str] = Field(default=None, description="Storage URL")


class CartItemBase(BaseModel):
    """Fields shared by every cart item variant"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    id: Optional[str] = Field(default=None, description="Client-side cart item id")
    quantity: int = Field(default=1, ge=1, le=QUANTITY_MAX, description="Quantity (1-9999)")
    name: Optional[str] = None
    transfer_name: Optional[str] = None
    notes: str = ""
    garment_color: str = ""
    file_url: Optional[str] = None
    file_key: Optional[str] = None
    file_name: Optional[str] = None
    file_type: Optional[str] = None

    @field_validator("quantity", mode="before")
    @classmethod
    def coerce_quantity(cls, v):
        # Clients send numbers or numeric strings; a missing quantity means one
        if v is None:
            return 1
        if isinstance(v, bool):
            raise ValueError("quantity must be a whole number")
        if isinstance(v, int):
            return v
        try:
            number = float(str(v).strip())
        except ValueError:
            raise ValueError("quantity must be a whole number")
        if not number.is_integer():
            raise ValueError("quantity must be a whole number")
        return int(number)

    @field_validator("notes", "garment_color", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return "" if v is None else v

    @property
    def display_name(self) -> str:
        return self.transfer_name or self.name or ""

    def file_refs(self) -> List[UploadedFileRef]:
        if self.file_key:
            return [UploadedFileRef(
                key=self.file_key,
                filename=self.file_name or "artwork",
                mimetype=self.file_type or "image/png",
            )]
        return []


class SingleImageItem(CartItemBase):
    """Flat DTF transfer priced from the single-image price sheet"""
    type: str = PRODUCT_SINGLE_IMAGE
    size: Optional[str] = None

    @field_validator("type", mode="before")
    @classmethod
    def force_type(cls, v):
        return PRODUCT_SINGLE_IMAGE


class StickerItem(CartItemBase):
    """Custom sticker priced by the continuous size calculator"""
    type: Literal["sticker"] = PRODUCT_STICKER
    size: Union[float, str, None] = None
    material_id: Optional[str] = None
    cutting_id: Optional[str] = None


class GangSheetItem(CartItemBase):
    """Composite sheet carrying several uploaded files and optional layout data"""
    type: Literal["gang-sheet"] = PRODUCT_GANG_SHEET
    size: Optional[str] = None
    sheet_size: Optional[str] = None
    uploaded_files: List[UploadedFileRef] = Field(default_factory=list)
    gang_sheet_data: Optional[Dict[str, Any]] = None

    def file_refs(self) -> List[UploadedFileRef]:
        if self.uploaded_files:
            return list(self.uploaded_files)
        return super().file_refs()


CheckoutItem = Union[SingleImageItem, StickerItem, GangSheetItem]

_ITEM_MODELS = {
    PRODUCT_GANG_SHEET: GangSheetItem,
    PRODUCT_STICKER: StickerItem,
}


def parse_checkout_item(raw: Dict[str, Any]) -> CheckoutItem:
    """
    Build the item variant named by its ``type`` field; anything that is not
    a gang sheet or a sticker is a single-image transfer.

    Raises pydantic.ValidationError on malformed input.
    """
    model = _ITEM_MODELS.get(raw.get("type"), SingleImageItem)
    return model.model_validate(raw)
