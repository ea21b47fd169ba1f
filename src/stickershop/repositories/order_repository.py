from typing import List, Optional

from stickershop.models.order import CustomerDetails, NewOrder, OrderRecord, OrderStatus
from stickershop.repositories.base import SqlRepository
import json
import logging

logger = logging.getLogger(__name__)

_INSERT_COLUMNS = (
    "product_type", "job_name", "material_id", "material_name", "size",
    "cutting_id", "cutting_name", "quantity", "notes", "file_key", "file_url",
    "file_name", "files", "gang_sheet_data", "garment_color",
    "unit_price_cents", "total_price_cents", "stripe_session_id", "cart_order_id",
)


class OrderRepository(SqlRepository):
    """Repository for sticker order rows"""

    INSERT_SQL = (
        f"INSERT INTO sticker_orders ({', '.join(_INSERT_COLUMNS)}, status, created_at) "
        f"VALUES ({', '.join(':' + c for c in _INSERT_COLUMNS)}, :status, CURRENT_TIMESTAMP)"
    )

    def insert_orders(self, orders: List[NewOrder]) -> List[int]:
        """Insert the rows of one cart in a single transaction"""
        params_list = []
        for order in orders:
            params = order.to_params()
            params["status"] = OrderStatus.CREATED.value
            params_list.append(params)
        ids = self.insert_returning_ids(self.INSERT_SQL, params_list)
        logger.info(f"Inserted {len(ids)} order rows")
        return ids

    def mark_completed(self, stripe_session_id: str, customer: CustomerDetails) -> int:
        """
        Attach customer details and mark every row of the session completed.

        Re-applying the same details is harmless, so duplicate provider
        callbacks are safe. Returns the number of rows touched.
        """
        return self.execute(
            """
            UPDATE sticker_orders
            SET
                customer_email = :email,
                customer_name = :name,
                customer_phone = :phone,
                shipping_address = :shipping_address,
                status = :status,
                completed_at = COALESCE(completed_at, CURRENT_TIMESTAMP)
            WHERE stripe_session_id = :session_id
            """,
            {
                "email": customer.email or None,
                "name": customer.name or None,
                "phone": customer.phone or None,
                "shipping_address": (
                    json.dumps(customer.shipping_address) if customer.shipping_address else None
                ),
                "status": OrderStatus.COMPLETED.value,
                "session_id": stripe_session_id,
            },
        )

    def get_by_session(self, stripe_session_id: str) -> Optional[OrderRecord]:
        row = self.fetch_one(
            """
            SELECT * FROM sticker_orders
            WHERE stripe_session_id = :session_id
            ORDER BY id
            LIMIT 1
            """,
            {"session_id": stripe_session_id},
        )
        return OrderRecord.from_row(row) if row else None

    def list_by_session(self, stripe_session_id: str) -> List[OrderRecord]:
        rows = self.fetch_all(
            "SELECT * FROM sticker_orders WHERE stripe_session_id = :session_id ORDER BY id",
            {"session_id": stripe_session_id},
        )
        return [OrderRecord.from_row(r) for r in rows]

    def list_by_cart(self, cart_order_id: str) -> List[OrderRecord]:
        """All rows of a cart, most recent first"""
        rows = self.fetch_all(
            """
            SELECT * FROM sticker_orders
            WHERE cart_order_id = :cart_id
            ORDER BY created_at DESC, id DESC
            """,
            {"cart_id": cart_order_id},
        )
        return [OrderRecord.from_row(r) for r in rows]
