import json
import logging
import secrets
import string
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from pydantic import ValidationError as PydanticValidationError

from stickershop.core.config import PaymentConfig, PricingConfig
from stickershop.core.exceptions import DatabaseError, PricingError, ValidationError
from stickershop.core.pricing_tables import (
    PRODUCT_STICKER,
    QUANTITY_MAX,
    QUANTITY_MIN,
)
from stickershop.models.order import NewOrder
from stickershop.repositories.order_repository import OrderRepository
from stickershop.schemas.checkout_schemas import CheckoutItem, GangSheetItem, StickerItem, parse_checkout_item
from stickershop.services.catalog_service import get_cutting_option, get_material
from stickershop.services.payment_gateway import (
    METADATA_VALUE_LIMIT,
    CheckoutSessionRequest,
    LineItem,
    PaymentGateway,
)
from stickershop.services.pricing_service import (
    is_valid_size,
    normalize_gang_sheet_size,
    parse_size_inches,
    price_for_product,
)
from stickershop.utils.formatting_utils import FormattingUtils
from stickershop.utils.validators import ValidationUtils

logger = logging.getLogger(__name__)

SESSION_ID_PLACEHOLDER = "{CHECKOUT_SESSION_ID}"
_BASE36 = string.digits + string.ascii_lowercase

SINGLE_ITEM_REQUIRED = ("job_name", "material", "material_id", "size", "cutting", "cutting_id", "quantity")
SINGLE_ITEM_FILE_FIELDS = ("file_url", "file_key", "file_name")


def _now_ms() -> int:
    return int(time.time() * 1000)


def generate_cart_id(clock: Callable[[], int] = _now_ms) -> str:
    """Cart correlation id, e.g. cart_1718123456789_k3j9x0a2b"""
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"cart_{clock()}_{suffix}"


def clip_metadata(value: Any, limit: int = METADATA_VALUE_LIMIT) -> str:
    return FormattingUtils.truncate_text(str(value), limit, ellipsis="")


def _as_int(value) -> Optional[int]:
    """Integer from an int, an integral float or a digit string; None otherwise"""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _with_query(url: str, query: str) -> str:
    return f"{url}{'&' if '?' in url else '?'}{query}"


@dataclass
class CheckoutResult:
    checkout_url: str
    session_id: str
    cart_id: Optional[str] = None
    processed_items: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "checkoutUrl": self.checkout_url,
            "sessionId": self.session_id,
        }
        if self.cart_id is not None:
            body["cartId"] = self.cart_id
            body["processedItems"] = self.processed_items
        return body


@dataclass
class _PricedItem:
    index: int
    item: CheckoutItem
    size: str
    name: str
    description: str
    unit_price_cents: int
    total_price_cents: int
    material_name: Optional[str] = None
    cutting_name: Optional[str] = None
    gang_sheet_data: Optional[Dict[str, Any]] = None


class CheckoutService:
    """
    Builds payment sessions for single sticker orders and whole carts.

    Prices are always re-derived here from the raw item descriptors; a
    client-computed price is only used when the item cannot be repriced.
    The session is created first and the order rows are written after it;
    a failed write is logged and does not fail the checkout.
    """

    def __init__(
        self,
        order_repository: OrderRepository,
        payment_gateway: PaymentGateway,
        payment_config: PaymentConfig,
        pricing_config: Optional[PricingConfig] = None,
        clock: Callable[[], int] = _now_ms,
    ):
        self.order_repo = order_repository
        self.gateway = payment_gateway
        self.payment_config = payment_config
        self.pricing_config = pricing_config or PricingConfig()
        self.clock = clock

    # ------------------------------------------------------------------ #
    # Single sticker order                                                 #
    # ------------------------------------------------------------------ #

    def create_single_item_checkout(self, request: Mapping[str, Any]) -> CheckoutResult:
        """
        Checkout for one configured sticker with an already uploaded file.

        Expects snake_case keys: job_name, material, material_id, size,
        cutting, cutting_id, quantity, notes, file_url, file_key, file_name,
        unit_price_cents, total_price_cents.
        """
        if any(not request.get(name) for name in SINGLE_ITEM_REQUIRED):
            raise ValidationError("Missing required fields")

        if any(not request.get(name) for name in SINGLE_ITEM_FILE_FIELDS):
            raise ValidationError("File must be uploaded before checkout")

        if request.get("unit_price_cents") is None or request.get("total_price_cents") is None:
            raise ValidationError("Pricing information required")

        quantity = _as_int(request["quantity"])
        if quantity is None or not QUANTITY_MIN <= quantity <= QUANTITY_MAX:
            raise ValidationError("Invalid quantity")

        client_unit = _as_int(request["unit_price_cents"])
        client_total = _as_int(request["total_price_cents"])
        if not (ValidationUtils.is_non_negative_cents(client_unit) and ValidationUtils.is_non_negative_cents(client_total)):
            raise ValidationError("Invalid pricing")

        size_inches = parse_size_inches(request["size"])
        if size_inches is not None and not is_valid_size(size_inches):
            raise ValidationError("Invalid size")

        unit_price_cents, total_price_cents = self._resolve_single_price(
            request, quantity, client_unit, client_total
        )

        job_name = str(request["job_name"])
        size = str(request["size"])
        material_name = str(request["material"])
        cutting_name = str(request["cutting"])

        line_item = LineItem(
            name=clip_metadata(f"Custom Stickers: {job_name}"),
            description=f"{size} · {material_name} · {cutting_name} · Qty: {quantity}",
            unit_amount_cents=unit_price_cents,
            quantity=quantity,
            metadata={
                "type": PRODUCT_STICKER,
                "jobName": clip_metadata(job_name),
                "material": clip_metadata(material_name),
                "size": clip_metadata(size),
                "cutting": clip_metadata(cutting_name),
                "quantity": str(quantity),
            },
        )
        session_metadata = {
            "type": PRODUCT_STICKER,
            "jobName": job_name,
            "materialId": request["material_id"],
            "material": material_name,
            "size": size,
            "cuttingId": request["cutting_id"],
            "cutting": cutting_name,
            "quantity": str(quantity),
            "fileKey": request["file_key"],
            "fileUrl": request["file_url"],
            "fileName": request["file_name"],
        }

        session = self.gateway.create_checkout_session(CheckoutSessionRequest(
            line_items=[line_item],
            success_url=_with_query(self.payment_config.success_url, f"session_id={SESSION_ID_PLACEHOLDER}"),
            cancel_url=_with_query(self.payment_config.cancel_url, "canceled=1"),
            currency=self.payment_config.currency,
            metadata={k: clip_metadata(v) for k, v in session_metadata.items()},
        ))
        logger.info(f"Created checkout session {session.id} for sticker order {job_name!r}")

        self._persist_orders(session.id, [NewOrder(
            product_type=PRODUCT_STICKER,
            job_name=job_name,
            material_id=str(request["material_id"]),
            material_name=material_name,
            size=size,
            cutting_id=str(request["cutting_id"]),
            cutting_name=cutting_name,
            quantity=quantity,
            notes=request.get("notes") or None,
            file_key=request["file_key"],
            file_url=request["file_url"],
            file_name=request["file_name"],
            unit_price_cents=unit_price_cents,
            total_price_cents=total_price_cents,
            stripe_session_id=session.id,
            cart_order_id=None,
        )])

        return CheckoutResult(checkout_url=session.url, session_id=session.id)

    def _resolve_single_price(self, request: Mapping[str, Any], quantity: int,
                              client_unit: int, client_total: int):
        if parse_size_inches(request["size"]) is None:
            total = client_unit * quantity
            if total != client_total:
                logger.warning(
                    f"Client total {client_total} does not match {client_unit} x {quantity}; using {total}"
                )
            return client_unit, total

        quote = price_for_product(
            PRODUCT_STICKER,
            request["size"],
            quantity,
            request["material_id"],
            request["cutting_id"],
            min_unit_price_cents=self.pricing_config.min_unit_price_cents,
        )
        if quote is None:
            raise ValidationError("Invalid size")

        if quote.unit_price_cents != client_unit or quote.total_price_cents != client_total:
            logger.warning(
                f"Price mismatch for {request['size']} x {quantity}: client "
                f"{client_unit}/{client_total}, server {quote.unit_price_cents}/{quote.total_price_cents}"
            )
        return quote.unit_price_cents, quote.total_price_cents

    # ------------------------------------------------------------------ #
    # Cart                                                                 #
    # ------------------------------------------------------------------ #

    def create_cart_checkout(self, items: Optional[Sequence[Mapping[str, Any]]]) -> CheckoutResult:
        if not items:
            raise ValidationError("Cart is empty")

        logger.info(f"Processing cart with {len(items)} items")
        priced = [self._price_item(index, raw) for index, raw in enumerate(items)]

        cart_id = generate_cart_id(self.clock)
        cart_total = sum(p.total_price_cents for p in priced)
        logger.info(f"Cart {cart_id} total: {cart_total} cents")

        session = self.gateway.create_checkout_session(CheckoutSessionRequest(
            line_items=[self._line_item(p) for p in priced],
            success_url=_with_query(
                self.payment_config.success_url,
                f"session_id={SESSION_ID_PLACEHOLDER}&cart_id={cart_id}",
            ),
            cancel_url=_with_query(self.payment_config.cancel_url, "canceled=1"),
            currency=self.payment_config.currency,
            metadata={
                "cartId": cart_id,
                "itemCount": str(len(priced)),
                "isCartOrder": "true",
            },
            shipping_countries=tuple(self.payment_config.allowed_countries),
            collect_phone=self.payment_config.collect_phone,
        ))
        logger.info(f"Created checkout session {session.id} for cart {cart_id}")

        self._persist_orders(session.id, [self._new_order(p, session.id, cart_id) for p in priced])

        return CheckoutResult(
            checkout_url=session.url,
            session_id=session.id,
            cart_id=cart_id,
            processed_items=[self._processed_item(p) for p in priced],
        )

    def _price_item(self, index: int, raw: Mapping[str, Any]) -> _PricedItem:
        if not isinstance(raw, Mapping):
            raise ValidationError(f"Invalid item {index + 1}")
        try:
            item = parse_checkout_item(dict(raw))
        except PydanticValidationError as e:
            raise ValidationError(
                f"Invalid item {index + 1}",
                field_errors=[
                    {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
                    for err in e.errors()
                ],
            )

        size = self._size_label(item)
        material_id = item.material_id if isinstance(item, StickerItem) else None
        cutting_id = item.cutting_id if isinstance(item, StickerItem) else None
        quote = price_for_product(
            item.type,
            item.size if isinstance(item, StickerItem) else size,
            item.quantity,
            material_id,
            cutting_id,
            min_unit_price_cents=self.pricing_config.min_unit_price_cents,
        )
        if quote is None:
            logger.error(
                f"Invalid pricing for item {index}: type={item.type}, size={size}, qty={item.quantity}"
            )
            raise PricingError(
                f"Invalid pricing for item {index + 1} ({item.type} - {size})",
                item_index=index,
            )

        priced = _PricedItem(
            index=index,
            item=item,
            size=size,
            name="",
            description="",
            unit_price_cents=quote.unit_price_cents,
            total_price_cents=quote.total_price_cents,
        )
        if isinstance(item, GangSheetItem):
            priced.name = item.name or f"Gang Sheet ({size})"
            priced.description = f"{size} gang sheet"
            priced.gang_sheet_data = item.gang_sheet_data or {"type": "uploaded-sheet"}
        elif isinstance(item, StickerItem):
            material = get_material(material_id)
            cutting = get_cutting_option(cutting_id)
            priced.material_name = material.name
            priced.cutting_name = cutting.name
            priced.name = item.display_name or "Custom Stickers"
            priced.description = f"{size} · {material.name} · {cutting.name} · Qty: {item.quantity}"
        else:
            priced.name = item.display_name or "DTF Transfer"
            priced.description = f"{size} · Qty: {item.quantity}"

        logger.info(
            f"Priced item {index}: type={item.type}, size={size}, "
            f"unit={priced.unit_price_cents}, qty={item.quantity}, total={priced.total_price_cents}"
        )
        return priced

    @staticmethod
    def _size_label(item: CheckoutItem) -> str:
        if isinstance(item, GangSheetItem):
            return normalize_gang_sheet_size(item.sheet_size or item.size)
        if isinstance(item, StickerItem) and isinstance(item.size, (int, float)):
            return f'{item.size:g}"'
        return str(item.size or "")

    @staticmethod
    def _files_metadata(item: CheckoutItem) -> str:
        refs = [
            {"key": ref.key, "filename": ref.filename, "mimetype": ref.mimetype}
            for ref in item.file_refs()
        ]
        files_json = json.dumps(refs, separators=(",", ":"))
        if len(files_json) <= METADATA_VALUE_LIMIT:
            return files_json
        # Too long for one metadata value; keys are enough to find the files
        keys_json = json.dumps([ref["key"] for ref in refs], separators=(",", ":"))
        return clip_metadata(keys_json)

    def _line_item(self, priced: _PricedItem) -> LineItem:
        item = priced.item
        metadata = {
            "cartItemIndex": str(priced.index),
            "itemType": item.type,
            "size": priced.size,
            "quantity": str(item.quantity),
            "garmentColor": item.garment_color,
            "transferName": item.display_name,
            "notes": item.notes,
            "hasGangSheetData": "true" if getattr(item, "gang_sheet_data", None) else "false",
        }
        metadata = {k: clip_metadata(v) for k, v in metadata.items()}
        metadata["files"] = self._files_metadata(item)

        return LineItem(
            name=clip_metadata(priced.name),
            description=clip_metadata(priced.description),
            unit_amount_cents=priced.unit_price_cents,
            quantity=item.quantity,
            metadata=metadata,
        )

    @staticmethod
    def _new_order(priced: _PricedItem, session_id: str, cart_id: str) -> NewOrder:
        item = priced.item
        sticker = isinstance(item, StickerItem)
        return NewOrder(
            product_type=item.type,
            job_name=priced.name,
            size=priced.size,
            quantity=item.quantity,
            unit_price_cents=priced.unit_price_cents,
            total_price_cents=priced.total_price_cents,
            stripe_session_id=session_id,
            cart_order_id=cart_id,
            material_id=get_material(item.material_id).id if sticker else None,
            material_name=priced.material_name,
            cutting_id=get_cutting_option(item.cutting_id).id if sticker else None,
            cutting_name=priced.cutting_name,
            notes=item.notes or None,
            file_key=item.file_key,
            file_url=item.file_url,
            file_name=item.file_name,
            files=[ref.model_dump(exclude_none=True) for ref in item.file_refs()],
            gang_sheet_data=priced.gang_sheet_data,
            garment_color=item.garment_color or None,
        )

    @staticmethod
    def _processed_item(priced: _PricedItem) -> Dict[str, Any]:
        item = priced.item
        processed = {
            "id": item.id,
            "type": item.type,
            "name": priced.name,
            "size": priced.size,
            "quantity": item.quantity,
            "unitPriceCents": priced.unit_price_cents,
            "totalPriceCents": priced.total_price_cents,
            "garmentColor": item.garment_color,
            "notes": item.notes,
            "transferName": item.display_name,
            "gangSheetData": priced.gang_sheet_data,
            "fileUrl": item.file_url,
            "fileKey": item.file_key,
            "fileName": item.file_name,
            "fileType": item.file_type,
        }
        if isinstance(item, StickerItem):
            processed["materialName"] = priced.material_name
            processed["cuttingName"] = priced.cutting_name
        return processed

    def _persist_orders(self, session_id: str, orders: List[NewOrder]) -> None:
        try:
            ids = self.order_repo.insert_orders(orders)
            logger.info(f"Stored {len(ids)} order rows for session {session_id}")
        except DatabaseError as e:
            # Session already exists; the customer can still pay
            logger.error(
                f"Failed to store orders for session {session_id}: {e.internal_message}"
            )
