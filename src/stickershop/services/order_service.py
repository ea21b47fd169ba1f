import logging
from typing import Any, Dict, List, Optional

from stickershop.core.exceptions import NotFoundError, ValidationError
from stickershop.models.order import CustomerDetails, OrderRecord
from stickershop.repositories.order_repository import OrderRepository
from stickershop.services.payment_gateway import PaymentGateway
from stickershop.utils.validators import ValidationUtils

logger = logging.getLogger(__name__)

CHECKOUT_COMPLETED_EVENT = "checkout.session.completed"


class OrderService:
    """
    Order lookup and payment confirmation

    Responsibilities:
    - Attach customer and shipping details once payment is confirmed
    - Translate payment provider callbacks into confirmations
    - Serve order lookups by session and by cart
    """

    def __init__(self, order_repository: OrderRepository, payment_gateway: Optional[PaymentGateway] = None):
        self.order_repo = order_repository
        self.gateway = payment_gateway

    def confirm_order(self, session_id: str, customer: CustomerDetails) -> List[OrderRecord]:
        """
        Mark every row of a session completed with the customer's details.

        Safe to repeat: a second delivery re-applies the same update and
        keeps the original completion time.
        """
        if not session_id:
            raise ValidationError("Session id is required")

        if customer.email and ValidationUtils.validate_email(customer.email):
            customer.email = ValidationUtils.normalize_email(customer.email)
        customer.name = ValidationUtils.sanitize_text(customer.name, 200)
        customer.phone = ValidationUtils.sanitize_text(customer.phone, 40)

        updated = self.order_repo.mark_completed(session_id, customer)
        if updated == 0:
            logger.warning(f"Confirmation for unknown session {session_id}")
            raise NotFoundError("Order", session_id)

        logger.info(f"Confirmed {updated} order rows for session {session_id}")
        return self.order_repo.list_by_session(session_id)

    def get_order_by_session(self, session_id: str) -> OrderRecord:
        order = self.order_repo.get_by_session(session_id)
        if order is None:
            raise NotFoundError("Order", session_id)
        return order

    def get_orders_by_cart(self, cart_id: str) -> List[OrderRecord]:
        """Rows of a cart checkout, newest first; empty when the cart is unknown"""
        return self.order_repo.list_by_cart(cart_id)

    def handle_payment_event(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        if self.gateway is None:
            raise ValidationError("Payment callbacks are not configured")

        event = self.gateway.parse_event(payload, signature)
        if event.type != CHECKOUT_COMPLETED_EVENT:
            logger.info(f"Ignoring payment event {event.type}")
            return {"received": True, "handled": False}

        session_id = event.data.get("id")
        customer = customer_from_session(event.data)
        try:
            records = self.confirm_order(session_id, customer)
        except NotFoundError:
            # Session created without an order row; left for reconciliation
            return {"received": True, "handled": False, "sessionId": session_id}

        return {"received": True, "handled": True, "sessionId": session_id, "orders": len(records)}


def customer_from_session(session: Dict[str, Any]) -> CustomerDetails:
    """Customer and shipping details from a completed checkout session object"""
    details = session.get("customer_details") or {}
    shipping = (
        session.get("shipping_details")
        or (session.get("collected_information") or {}).get("shipping_details")
        or {}
    )
    return CustomerDetails(
        email=details.get("email") or session.get("customer_email"),
        name=details.get("name") or shipping.get("name"),
        phone=details.get("phone"),
        shipping_address=shipping.get("address"),
    )
