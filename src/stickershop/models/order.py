import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy import BigInteger, CheckConstraint, Column, DateTime, Index, Integer, Text, func

from stickershop.db import Base


class OrderStatus(Enum):
    """An order row is created with the session and completed exactly once"""
    CREATED = "created"
    COMPLETED = "completed"


class StickerOrder(Base):
    """
    One row per checkout line item.

    stripe_session_id correlates the row with the payment session;
    cart_order_id groups rows created from a single cart and is NULL for
    single-item checkouts. files, gang_sheet_data and shipping_address hold
    serialised JSON so they survive on both PostgreSQL and SQLite.
    """

    __tablename__ = "sticker_orders"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    product_type = Column(Text, nullable=False, default="sticker")
    job_name = Column(Text, nullable=False)
    material_id = Column(Text, nullable=True)
    material_name = Column(Text, nullable=True)
    size = Column(Text, nullable=False)
    cutting_id = Column(Text, nullable=True)
    cutting_name = Column(Text, nullable=True)
    quantity = Column(Integer, nullable=False)
    notes = Column(Text, nullable=True)
    file_key = Column(Text, nullable=True)
    file_url = Column(Text, nullable=True)
    file_name = Column(Text, nullable=True)
    files = Column(Text, nullable=True)
    gang_sheet_data = Column(Text, nullable=True)
    garment_color = Column(Text, nullable=True)
    unit_price_cents = Column(BigInteger, nullable=False)
    total_price_cents = Column(BigInteger, nullable=False)
    stripe_session_id = Column(Text, nullable=False)
    cart_order_id = Column(Text, nullable=True)
    status = Column(Text, nullable=False, server_default=OrderStatus.CREATED.value)
    customer_email = Column(Text, nullable=True)
    customer_name = Column(Text, nullable=True)
    customer_phone = Column(Text, nullable=True)
    shipping_address = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    completed_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint("status IN ('created','completed')", name="ck_sticker_order_status"),
        CheckConstraint("quantity > 0", name="ck_sticker_order_quantity"),
        CheckConstraint("unit_price_cents >= 0", name="ck_sticker_order_unit_price"),
        CheckConstraint("total_price_cents >= 0", name="ck_sticker_order_total"),
        Index("ix_sticker_orders_session", "stripe_session_id"),
        Index("ix_sticker_orders_cart", "cart_order_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<StickerOrder id={self.id} session={self.stripe_session_id!r} "
            f"status={self.status!r}>"
        )


@dataclass
class NewOrder:
    """Values for a freshly created order row"""
    job_name: str
    size: str
    quantity: int
    unit_price_cents: int
    total_price_cents: int
    stripe_session_id: str
    product_type: str = "sticker"
    material_id: Optional[str] = None
    material_name: Optional[str] = None
    cutting_id: Optional[str] = None
    cutting_name: Optional[str] = None
    notes: Optional[str] = None
    file_key: Optional[str] = None
    file_url: Optional[str] = None
    file_name: Optional[str] = None
    files: List[Dict[str, Any]] = field(default_factory=list)
    gang_sheet_data: Optional[Dict[str, Any]] = None
    garment_color: Optional[str] = None
    cart_order_id: Optional[str] = None

    def to_params(self) -> Dict[str, Any]:
        return {
            "product_type": self.product_type,
            "job_name": self.job_name,
            "material_id": self.material_id,
            "material_name": self.material_name,
            "size": self.size,
            "cutting_id": self.cutting_id,
            "cutting_name": self.cutting_name,
            "quantity": self.quantity,
            "notes": self.notes or None,
            "file_key": self.file_key,
            "file_url": self.file_url,
            "file_name": self.file_name,
            "files": json.dumps(self.files) if self.files else None,
            "gang_sheet_data": json.dumps(self.gang_sheet_data) if self.gang_sheet_data else None,
            "garment_color": self.garment_color or None,
            "unit_price_cents": self.unit_price_cents,
            "total_price_cents": self.total_price_cents,
            "stripe_session_id": self.stripe_session_id,
            "cart_order_id": self.cart_order_id,
        }


@dataclass
class CustomerDetails:
    """Customer and shipping details reported by the payment provider"""
    email: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    shipping_address: Optional[Dict[str, Any]] = None


def _load_json(value):
    if value is None or isinstance(value, (dict, list)):
        return value
    return json.loads(value)


def _iso(value):
    return value.isoformat() if hasattr(value, "isoformat") else value


@dataclass
class OrderRecord:
    """A persisted order row as returned by the repository"""
    id: int
    product_type: str
    job_name: str
    size: str
    quantity: int
    unit_price_cents: int
    total_price_cents: int
    stripe_session_id: str
    status: OrderStatus
    created_at: Any
    material_id: Optional[str] = None
    material_name: Optional[str] = None
    cutting_id: Optional[str] = None
    cutting_name: Optional[str] = None
    notes: Optional[str] = None
    file_key: Optional[str] = None
    file_url: Optional[str] = None
    file_name: Optional[str] = None
    files: List[Dict[str, Any]] = field(default_factory=list)
    gang_sheet_data: Optional[Dict[str, Any]] = None
    garment_color: Optional[str] = None
    cart_order_id: Optional[str] = None
    customer_email: Optional[str] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    shipping_address: Optional[Dict[str, Any]] = None
    completed_at: Any = None

    @property
    def is_completed(self) -> bool:
        return self.status is OrderStatus.COMPLETED

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "OrderRecord":
        return cls(
            id=int(row["id"]),
            product_type=row["product_type"],
            job_name=row["job_name"],
            size=row["size"],
            quantity=int(row["quantity"]),
            unit_price_cents=int(row["unit_price_cents"]),
            total_price_cents=int(row["total_price_cents"]),
            stripe_session_id=row["stripe_session_id"],
            status=OrderStatus(row["status"]),
            created_at=row["created_at"],
            material_id=row.get("material_id"),
            material_name=row.get("material_name"),
            cutting_id=row.get("cutting_id"),
            cutting_name=row.get("cutting_name"),
            notes=row.get("notes"),
            file_key=row.get("file_key"),
            file_url=row.get("file_url"),
            file_name=row.get("file_name"),
            files=_load_json(row.get("files")) or [],
            gang_sheet_data=_load_json(row.get("gang_sheet_data")),
            garment_color=row.get("garment_color"),
            cart_order_id=row.get("cart_order_id"),
            customer_email=row.get("customer_email"),
            customer_name=row.get("customer_name"),
            customer_phone=row.get("customer_phone"),
            shipping_address=_load_json(row.get("shipping_address")),
            completed_at=row.get("completed_at"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return {
            "id": self.id,
            "productType": self.product_type,
            "jobName": self.job_name,
            "materialId": self.material_id,
            "materialName": self.material_name,
            "size": self.size,
            "cuttingId": self.cutting_id,
            "cuttingName": self.cutting_name,
            "quantity": self.quantity,
            "notes": self.notes,
            "fileKey": self.file_key,
            "fileUrl": self.file_url,
            "fileName": self.file_name,
            "files": self.files,
            "gangSheetData": self.gang_sheet_data,
            "garmentColor": self.garment_color,
            "unitPriceCents": self.unit_price_cents,
            "totalPriceCents": self.total_price_cents,
            "sessionId": self.stripe_session_id,
            "cartOrderId": self.cart_order_id,
            "status": self.status.value,
            "customerEmail": self.customer_email,
            "customerName": self.customer_name,
            "customerPhone": self.customer_phone,
            "shippingAddress": self.shipping_address,
            "createdAt": _iso(self.created_at),
            "completedAt": _iso(self.completed_at),
        }
