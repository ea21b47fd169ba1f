from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any


@dataclass
class UploadedFile:
    """Reference to an artwork file already stored in object storage"""
    key: str
    filename: Optional[str] = None
    mimetype: Optional[str] = None
    url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {"key": self.key, "filename": self.filename, "mimetype": self.mimetype}
        if self.url:
            data["url"] = self.url
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UploadedFile":
        return cls(
            key=data["key"],
            filename=data.get("filename"),
            mimetype=data.get("mimetype"),
            url=data.get("url"),
        )


@dataclass
class CartItem:
    """
    A priced line item held by the cart store.

    Identity is the generated id: two items with the same configuration are
    still two entries. id and added_at are blank until the store adds it.
    """
    type: str
    name: str
    size: str
    quantity: int
    unit_price_cents: int
    total_price_cents: int
    id: str = ""
    added_at: int = 0  # epoch milliseconds
    material_id: Optional[str] = None
    cutting_id: Optional[str] = None
    notes: str = ""
    garment_color: str = ""
    file_url: Optional[str] = None
    file_key: Optional[str] = None
    file_name: Optional[str] = None
    file_type: Optional[str] = None
    uploaded_files: List[UploadedFile] = field(default_factory=list)
    gang_sheet_data: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Wire/storage form, camelCase keys as the checkout endpoint expects"""
        data: Dict[str, Any] = {
            "id": self.id,
            "type": self.type,
            "name": self.name,
            "size": self.size,
            "quantity": self.quantity,
            "unitPriceCents": self.unit_price_cents,
            "totalPriceCents": self.total_price_cents,
            "addedAt": self.added_at,
            "notes": self.notes,
            "garmentColor": self.garment_color,
        }
        optional = {
            "materialId": self.material_id,
            "cuttingId": self.cutting_id,
            "fileUrl": self.file_url,
            "fileKey": self.file_key,
            "fileName": self.file_name,
            "fileType": self.file_type,
            "gangSheetData": self.gang_sheet_data,
        }
        data.update({k: v for k, v in optional.items() if v is not None})
        if self.uploaded_files:
            data["uploadedFiles"] = [f.to_dict() for f in self.uploaded_files]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CartItem":
        return cls(
            id=data.get("id", ""),
            type=data.get("type", "single-image"),
            name=data.get("name", ""),
            size=data.get("size", ""),
            quantity=int(data.get("quantity", 1)),
            unit_price_cents=int(data.get("unitPriceCents", 0)),
            total_price_cents=int(data.get("totalPriceCents", 0)),
            added_at=int(data.get("addedAt", 0)),
            material_id=data.get("materialId"),
            cutting_id=data.get("cuttingId"),
            notes=data.get("notes", ""),
            garment_color=data.get("garmentColor", ""),
            file_url=data.get("fileUrl"),
            file_key=data.get("fileKey"),
            file_name=data.get("fileName"),
            file_type=data.get("fileType"),
            uploaded_files=[UploadedFile.from_dict(f) for f in data.get("uploadedFiles", [])],
            gang_sheet_data=data.get("gangSheetData"),
        )
