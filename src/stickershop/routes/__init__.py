from stickershop.routes.checkout import checkout_bp
from stickershop.routes.orders import orders_bp
from stickershop.routes.pricing import pricing_bp
from stickershop.routes.uploads import uploads_bp

__all__ = ["checkout_bp", "orders_bp", "pricing_bp", "uploads_bp"]
