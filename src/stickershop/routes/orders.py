from flask import Blueprint, request

from stickershop.core.dependencies import get_service
from stickershop.routes.utils import success_response
from stickershop.services.order_service import OrderService

orders_bp = Blueprint("orders", __name__)


@orders_bp.route("/orders/session/<session_id>", methods=["GET"])
def get_order_by_session(session_id: str):
    order = get_service(OrderService).get_order_by_session(session_id)
    return success_response({"order": order.to_dict()})


@orders_bp.route("/orders/cart/<cart_id>", methods=["GET"])
def get_orders_by_cart(cart_id: str):
    orders = get_service(OrderService).get_orders_by_cart(cart_id)
    return success_response({
        "cartId": cart_id,
        "orders": [o.to_dict() for o in orders],
        "count": len(orders),
    })


@orders_bp.route("/webhooks/stripe", methods=["POST"])
def stripe_webhook():
    result = get_service(OrderService).handle_payment_event(
        request.get_data(),
        request.headers.get("Stripe-Signature"),
    )
    return success_response(result)
