from flask import Blueprint

from stickershop.core.dependencies import get_service
from stickershop.routes.schemas import CartCheckoutSchema, SingleCheckoutSchema
from stickershop.routes.utils import json_body, load_or_400, success_response
from stickershop.services.checkout_service import CheckoutService

checkout_bp = Blueprint("checkout", __name__)

_single_schema = SingleCheckoutSchema()
_cart_schema = CartCheckoutSchema()


@checkout_bp.route("/orders", methods=["POST"])
def create_order():
    """Checkout session for a single configured sticker."""
    body = load_or_400(_single_schema, json_body())
    result = get_service(CheckoutService).create_single_item_checkout(body)
    return success_response(result.to_dict())


@checkout_bp.route("/cart-checkout", methods=["POST"])
def cart_checkout():
    """
    Checkout session for every item in a cart.

    Prices are recomputed per item; the first item that cannot be priced
    fails the whole request with its 1-based position in the message.
    """
    body = load_or_400(_cart_schema, json_body())
    result = get_service(CheckoutService).create_cart_checkout(body["items"])
    return success_response(result.to_dict())
