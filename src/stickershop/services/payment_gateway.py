"""
Payment provider port and its Stripe adapter.

The checkout service only ever sees CheckoutSessionRequest/CheckoutSession;
everything Stripe specific stays in StripePaymentGateway.
"""
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import stripe

from stickershop.core.exceptions import ExternalServiceError, ValidationError

logger = logging.getLogger(__name__)

# Stripe rejects metadata values longer than this
METADATA_VALUE_LIMIT = 500


@dataclass
class LineItem:
    name: str
    description: str
    unit_amount_cents: int
    quantity: int
    metadata: Dict[str, str] = field(default_factory=dict)


@dataclass
class CheckoutSessionRequest:
    line_items: List[LineItem]
    success_url: str
    cancel_url: str
    currency: str = "usd"
    metadata: Dict[str, str] = field(default_factory=dict)
    shipping_countries: Tuple[str, ...] = ()
    collect_phone: bool = False


@dataclass
class CheckoutSession:
    id: str
    url: str


@dataclass
class PaymentEvent:
    type: str
    data: Dict[str, Any]


class PaymentGateway(ABC):
    @abstractmethod
    def create_checkout_session(self, request: CheckoutSessionRequest) -> CheckoutSession:
        """Create a hosted checkout session; raises ExternalServiceError on failure"""
        pass

    @abstractmethod
    def parse_event(self, payload: bytes, signature: Optional[str]) -> PaymentEvent:
        """Verify and decode a provider callback; raises ValidationError when invalid"""
        pass


class StripePaymentGateway(PaymentGateway):
    def __init__(self, secret_key: str, webhook_secret: str = ""):
        self.secret_key = secret_key
        self.webhook_secret = webhook_secret

    def _line_item_params(self, item: LineItem, currency: str) -> Dict[str, Any]:
        return {
            "price_data": {
                "currency": currency,
                "product_data": {
                    "name": item.name,
                    "description": item.description,
                    "metadata": item.metadata,
                },
                "unit_amount": item.unit_amount_cents,
            },
            "quantity": item.quantity,
        }

    def create_checkout_session(self, request: CheckoutSessionRequest) -> CheckoutSession:
        if not self.secret_key:
            raise ExternalServiceError("stripe", "Stripe not configured")

        params: Dict[str, Any] = {
            "mode": "payment",
            "payment_method_types": ["card"],
            "line_items": [self._line_item_params(i, request.currency) for i in request.line_items],
            "success_url": request.success_url,
            "cancel_url": request.cancel_url,
            "metadata": request.metadata,
        }
        if request.shipping_countries:
            params["shipping_address_collection"] = {
                "allowed_countries": list(request.shipping_countries),
            }
        if request.collect_phone:
            params["phone_number_collection"] = {"enabled": True}

        try:
            session = stripe.checkout.Session.create(api_key=self.secret_key, **params)
        except stripe.StripeError as e:
            logger.error(f"Stripe session creation failed: {e}")
            raise ExternalServiceError(
                "stripe",
                "Failed to create checkout session",
                internal_message=str(e),
            )

        return CheckoutSession(id=session.id, url=session.url)

    def parse_event(self, payload: bytes, signature: Optional[str]) -> PaymentEvent:
        if not self.webhook_secret:
            logger.error("STRIPE_WEBHOOK_SECRET not set; refusing unsigned webhook")
            raise ExternalServiceError("stripe", "Webhook verification not configured")

        try:
            stripe.Webhook.construct_event(payload, signature or "", self.webhook_secret)
        except (ValueError, stripe.SignatureVerificationError) as e:
            logger.warning(f"Rejected webhook: {e}")
            raise ValidationError("Invalid webhook signature")

        try:
            event = json.loads(payload)
        except ValueError:
            raise ValidationError("Invalid webhook payload")

        return PaymentEvent(
            type=event.get("type", ""),
            data=(event.get("data") or {}).get("object") or {},
        )
