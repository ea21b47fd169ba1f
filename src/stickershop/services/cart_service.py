"""
Client-side cart store.

The store keeps an ordered list of priced items, persists it through a
swappable storage port after every mutation and notifies subscribers
synchronously. In-memory state stays authoritative when persistence fails.
"""
import copy
import json
import logging
import time
import uuid
from abc import ABC, abstractmethod
from dataclasses import replace
from functools import lru_cache
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from stickershop.core.config import config
from stickershop.core.exceptions import ExternalServiceError, PricingError, ValidationError
from stickershop.core.pricing_tables import PRODUCT_GANG_SHEET, PRODUCT_STICKER
from stickershop.models.cart import CartItem, UploadedFile
from stickershop.services.catalog_service import get_cutting_option, get_material
from stickershop.services.pricing_service import (
    calculate_legacy_price,
    calculate_price,
    normalize_gang_sheet_size,
    normalize_size_label,
)
from stickershop.utils.formatting_utils import format_price

logger = logging.getLogger(__name__)

CART_STORAGE_KEY = "sticker_order_cart"

Listener = Callable[[List[CartItem]], None]


class CartStorage(ABC):
    """Persistence port for the cart"""

    @abstractmethod
    def load(self) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    def save(self, items: List[Dict[str, Any]]) -> None:
        pass


class InMemoryCartStorage(CartStorage):
    def __init__(self, items: Optional[List[Dict[str, Any]]] = None):
        self.data: Dict[str, str] = {}
        if items is not None:
            self.save(items)

    def load(self) -> List[Dict[str, Any]]:
        stored = self.data.get(CART_STORAGE_KEY)
        return json.loads(stored) if stored else []

    def save(self, items: List[Dict[str, Any]]) -> None:
        self.data[CART_STORAGE_KEY] = json.dumps(items)


class JsonFileCartStorage(CartStorage):
    """Stores the cart as a JSON document on disk"""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def load(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            return []
        with open(self.path, "r", encoding="utf-8") as f:
            return json.load(f)

    def save(self, items: List[Dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(items, f, indent=2)


def _generate_id() -> str:
    return uuid.uuid4().hex


def _now_ms() -> int:
    return int(time.time() * 1000)


class CartStore:
    """
    Ordered collection of priced cart items.

    Loaded from storage on first access. add/remove/clear are the only
    mutations; each one persists and then notifies every subscriber.
    """

    def __init__(
        self,
        storage: CartStorage,
        id_factory: Callable[[], str] = _generate_id,
        clock: Callable[[], int] = _now_ms,
    ):
        self.storage = storage
        self._id_factory = id_factory
        self._clock = clock
        self._items: Optional[List[CartItem]] = None
        self._listeners: List[Listener] = []

    # ------------------------------------------------------------------ #
    # State and persistence                                              #
    # ------------------------------------------------------------------ #
    @property
    def _state(self) -> List[CartItem]:
        if self._items is None:
            self._items = self._load()
        return self._items

    def _load(self) -> List[CartItem]:
        try:
            stored = self.storage.load()
            if not isinstance(stored, list) or not all(isinstance(d, dict) for d in stored):
                raise ValueError(f"expected a list of cart items, got {type(stored).__name__}")
            return [CartItem.from_dict(d) for d in stored]
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.error(f"Failed to load cart: {e}")
            return []

    def _save(self) -> None:
        try:
            self.storage.save([item.to_dict() for item in self._state])
        except (OSError, ValueError, TypeError) as e:
            logger.error(f"Failed to save cart: {e}")

    def _notify(self) -> None:
        snapshot = self.items()
        for listener in list(self._listeners):
            listener(snapshot)

    def _commit(self) -> None:
        self._save()
        self._notify()

    # ------------------------------------------------------------------ #
    # Mutations                                                          #
    # ------------------------------------------------------------------ #
    def add(self, item: Union[CartItem, Dict[str, Any]]) -> CartItem:
        """Append an item under a fresh id and timestamp; returns the stored copy."""
        if isinstance(item, dict):
            item = CartItem.from_dict(item)
        stored = replace(copy.deepcopy(item), id=self._id_factory(), added_at=self._clock())
        self._state.append(stored)
        logger.info(f"Added {stored.type} item {stored.id} to cart ({format_price(stored.total_price_cents)})")
        self._commit()
        return copy.deepcopy(stored)

    def remove(self, item_id: str) -> None:
        """Drop the item with this id; unknown ids leave the cart unchanged."""
        self._items = [item for item in self._state if item.id != item_id]
        self._commit()

    def clear(self) -> None:
        self._items = []
        self._commit()

    # ------------------------------------------------------------------ #
    # Queries                                                            #
    # ------------------------------------------------------------------ #
    def items(self) -> List[CartItem]:
        return copy.deepcopy(self._state)

    def total(self) -> int:
        return sum(item.total_price_cents or 0 for item in self._state)

    def count(self) -> int:
        return len(self._state)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; it is called now and after every mutation."""
        self._listeners.append(listener)
        listener(self.items())

        def unsubscribe() -> None:
            self._listeners = [fn for fn in self._listeners if fn is not listener]

        return unsubscribe

    # ------------------------------------------------------------------ #
    # Checkout                                                           #
    # ------------------------------------------------------------------ #
    def to_checkout_payload(self) -> Dict[str, Any]:
        return {"items": [item.to_dict() for item in self._state]}

    def checkout(self, submit: Callable[[Dict[str, Any]], Dict[str, Any]]) -> Dict[str, Any]:
        """
        Send the cart to the cart checkout endpoint through ``submit`` and
        clear it once a checkout URL comes back.
        """
        if self.count() == 0:
            raise ValidationError("Cart is empty")

        response = submit(self.to_checkout_payload())
        if not response or not response.get("checkoutUrl"):
            raise ExternalServiceError("checkout", "No checkout URL received")

        self.clear()
        return response


def build_sticker_item(
    size_inches: float,
    quantity: int,
    material_id: Optional[str] = None,
    cutting_id: Optional[str] = None,
    name: str = "Custom Stickers",
    notes: str = "",
    file: Optional[UploadedFile] = None,
) -> CartItem:
    """Price a sticker configuration and return an unsaved cart item."""
    material = get_material(material_id)
    cutting = get_cutting_option(cutting_id)
    breakdown = calculate_price(size_inches, quantity, material.price_modifier, cutting.price_cents)

    return CartItem(
        type=PRODUCT_STICKER,
        name=name,
        size=f'{size_inches:g}"',
        quantity=quantity,
        unit_price_cents=breakdown.unit_price_cents,
        total_price_cents=breakdown.total_price_cents,
        material_id=material.id,
        cutting_id=cutting.id,
        notes=notes,
        file_url=file.url if file else None,
        file_key=file.key if file else None,
        file_name=file.filename if file else None,
        file_type=file.mimetype if file else None,
    )


def build_transfer_item(
    product_type: str,
    size: Optional[str],
    quantity: int,
    name: str = "",
    notes: str = "",
    garment_color: str = "",
    files: Optional[List[UploadedFile]] = None,
    gang_sheet_data: Optional[Dict[str, Any]] = None,
) -> CartItem:
    """Price a DTF transfer (single image or gang sheet) from the price sheets."""
    if product_type == PRODUCT_GANG_SHEET:
        label = normalize_gang_sheet_size(size)
    else:
        label = normalize_size_label(size)

    quote = calculate_legacy_price(product_type, label, quantity)
    if quote is None:
        raise PricingError(f"Invalid pricing for {product_type} - {label}")

    files = files or []
    single = files[0] if product_type != PRODUCT_GANG_SHEET and files else None
    return CartItem(
        type=product_type,
        name=name or ("Gang Sheet" if product_type == PRODUCT_GANG_SHEET else "DTF Transfer"),
        size=label,
        quantity=quantity,
        unit_price_cents=quote.unit_price_cents,
        total_price_cents=quote.total_price_cents,
        notes=notes,
        garment_color=garment_color,
        file_url=single.url if single else None,
        file_key=single.key if single else None,
        file_name=single.filename if single else None,
        file_type=single.mimetype if single else None,
        uploaded_files=files if product_type == PRODUCT_GANG_SHEET else [],
        gang_sheet_data=gang_sheet_data,
    )


@lru_cache()
def default_cart_store() -> CartStore:
    """Process-wide cart backed by the configured JSON file"""
    return CartStore(JsonFileCartStorage(config.cart.storage_path))
