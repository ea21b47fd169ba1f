import itertools
import json

import pytest

from stickershop.core.config import CartConfig, config
from stickershop.core.exceptions import ExternalServiceError, PricingError, ValidationError
from stickershop.models.cart import CartItem, UploadedFile
from stickershop.services.cart_service import (
    CART_STORAGE_KEY,
    CartStorage,
    CartStore,
    InMemoryCartStorage,
    JsonFileCartStorage,
    build_sticker_item,
    build_transfer_item,
    default_cart_store,
)
from stickershop.utils.formatting_utils import format_price


class BrokenStorage(CartStorage):
    def load(self):
        raise ValueError("corrupt cart document")

    def save(self, items):
        raise OSError("quota exceeded")


def make_store(storage=None):
    ids = (f"item-{n}" for n in itertools.count(1))
    clock = itertools.count(1000)
    return CartStore(storage or InMemoryCartStorage(), id_factory=lambda: next(ids), clock=lambda: next(clock))


def sticker(quantity=50, size=3):
    return build_sticker_item(size, quantity, "premium-vinyl", "die-cut")


class TestCartStore:
    def test_add_assigns_id_and_timestamp(self):
        store = make_store()
        added = store.add(sticker())

        assert added.id == "item-1"
        assert added.added_at == 1000
        assert store.count() == 1
        assert store.total() == 4450

    def test_same_configuration_twice_is_two_items(self):
        store = make_store()
        store.add(sticker())
        store.add(sticker())

        assert [i.id for i in store.items()] == ["item-1", "item-2"]
        assert store.total() == 8900

    def test_add_accepts_wire_dict(self):
        store = make_store()
        store.add({"type": "single-image", "name": "Logo", "size": "3x3", "quantity": 10,
                   "unitPriceCents": 165, "totalPriceCents": 1650})
        assert store.items()[0].name == "Logo"
        assert store.total() == 1650

    def test_remove_and_clear(self):
        store = make_store()
        store.add(sticker())
        store.add(sticker(quantity=10))
        store.remove("item-1")

        assert [i.id for i in store.items()] == ["item-2"]
        store.clear()
        assert store.count() == 0
        assert store.total() == 0

    def test_remove_unknown_id_still_notifies(self):
        store = make_store()
        store.add(sticker())
        seen = []
        store.subscribe(seen.append)

        store.remove("missing")

        assert len(seen) == 2
        assert store.count() == 1

    def test_subscribe_is_called_immediately_and_on_mutation(self):
        store = make_store()
        seen = []
        unsubscribe = store.subscribe(lambda items: seen.append(len(items)))

        store.add(sticker())
        store.add(sticker())
        unsubscribe()
        store.clear()

        assert seen == [0, 1, 2]

    def test_items_returns_a_copy(self):
        store = make_store()
        store.add(sticker())
        store.items()[0].quantity = 999
        assert store.items()[0].quantity == 50

    def test_persists_after_every_mutation(self):
        storage = InMemoryCartStorage()
        store = make_store(storage)
        store.add(sticker())

        saved = json.loads(storage.data[CART_STORAGE_KEY])
        assert saved[0]["id"] == "item-1"
        assert saved[0]["unitPriceCents"] == 89

        store.clear()
        assert json.loads(storage.data[CART_STORAGE_KEY]) == []

    def test_loads_lazily_from_storage(self):
        storage = InMemoryCartStorage([sticker().to_dict()])
        store = make_store(storage)
        assert store.count() == 1

    def test_storage_failures_keep_memory_state(self):
        store = make_store(BrokenStorage())
        assert store.count() == 0

        store.add(sticker())
        assert store.count() == 1

    @pytest.mark.parametrize("document", [
        {"items": []},
        ["not-an-item"],
        [{"id": "a", "uploadedFiles": ["k1"]}],
        "cart",
    ])
    def test_malformed_cart_document_yields_empty_cart(self, tmp_path, document):
        path = tmp_path / "cart.json"
        path.write_text(json.dumps(document))
        store = make_store(JsonFileCartStorage(path))

        assert store.items() == []
        store.add(sticker())
        assert json.loads(path.read_text())[0]["id"] == "item-1"

    def test_json_file_storage_round_trip(self, tmp_path):
        path = tmp_path / "cart.json"
        store = make_store(JsonFileCartStorage(path))
        store.add(sticker())

        reloaded = CartStore(JsonFileCartStorage(path))
        assert reloaded.items()[0].id == "item-1"
        assert reloaded.total() == 4450

    def test_default_store_uses_configured_file(self, tmp_path, monkeypatch):
        path = tmp_path / "configured.json"
        monkeypatch.setattr(config, "cart", CartConfig(storage_path=str(path)))
        default_cart_store.cache_clear()
        try:
            store = default_cart_store()
            assert store is default_cart_store()
            store.add(sticker())
            assert json.loads(path.read_text())
        finally:
            default_cart_store.cache_clear()


class TestCartCheckout:
    def test_payload_uses_wire_format(self):
        store = make_store()
        store.add(sticker())
        payload = store.to_checkout_payload()

        item = payload["items"][0]
        assert item["type"] == "sticker"
        assert item["materialId"] == "premium-vinyl"
        assert item["size"] == '3"'

    def test_empty_cart_is_rejected(self):
        with pytest.raises(ValidationError, match="Cart is empty"):
            make_store().checkout(lambda payload: {"checkoutUrl": "x"})

    def test_clears_cart_on_checkout_url(self):
        store = make_store()
        store.add(sticker())
        sent = []

        response = store.checkout(lambda payload: sent.append(payload) or {"checkoutUrl": "https://pay"})

        assert response["checkoutUrl"] == "https://pay"
        assert len(sent[0]["items"]) == 1
        assert store.count() == 0

    def test_keeps_cart_without_checkout_url(self):
        store = make_store()
        store.add(sticker())

        with pytest.raises(ExternalServiceError):
            store.checkout(lambda payload: {"error": "nope"})
        assert store.count() == 1


class TestItemBuilders:
    def test_sticker_item_is_priced_by_calculator(self):
        item = build_sticker_item(3, 50, "premium-vinyl", "die-cut",
                                  file=UploadedFile(key="dtf-orders/a.png", filename="a.png", mimetype="image/png"))
        assert isinstance(item, CartItem)
        assert item.unit_price_cents == 89
        assert item.total_price_cents == 4450
        assert item.file_key == "dtf-orders/a.png"
        assert item.id == ""

    def test_transfer_item_uses_price_sheet(self):
        item = build_transfer_item("gang-sheet", '22" x 24"', 5,
                                   files=[UploadedFile(key="k1"), UploadedFile(key="k2")])
        assert item.size == "22x24"
        assert item.unit_price_cents == 1350
        assert len(item.uploaded_files) == 2

    def test_unpriceable_transfer_raises(self):
        with pytest.raises(PricingError):
            build_transfer_item("single-image", "7x9", 5)


def test_format_price():
    assert format_price(4450) == "$44.50"
    assert format_price(5) == "$0.05"
    assert format_price(123456) == "$1234.56"
