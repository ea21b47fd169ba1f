import logging
from datetime import datetime, timezone
from typing import Optional

from flask import Flask, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from stickershop.core.config import Config, config as default_config
from stickershop.core.dependencies import EXTENSION_KEY, DependencyContainer
from stickershop.core.exceptions import BaseAPIException
from stickershop.db import create_tables, get_engine, init_engine
from stickershop.repositories.order_repository import OrderRepository
from stickershop.routes import checkout_bp, orders_bp, pricing_bp, uploads_bp
from stickershop.services.checkout_service import CheckoutService
from stickershop.services.object_storage import ObjectStorage, S3ObjectStorage
from stickershop.services.order_service import OrderService
from stickershop.services.payment_gateway import PaymentGateway, StripePaymentGateway
from stickershop.services.upload_service import UploadService

logger = logging.getLogger(__name__)

# Room for multipart boundaries and form fields on top of the file itself
MULTIPART_OVERHEAD_BYTES = 1024 * 1024


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    )


def build_container(
    cfg: Config,
    payment_gateway: Optional[PaymentGateway] = None,
    object_storage: Optional[ObjectStorage] = None,
) -> DependencyContainer:
    container = DependencyContainer()
    container.register_singleton(Config, cfg)

    gateway = payment_gateway or StripePaymentGateway(
        cfg.payment.stripe_secret_key,
        cfg.payment.webhook_secret,
    )
    storage = object_storage or S3ObjectStorage(
        cfg.storage.bucket,
        cfg.storage.region,
        cfg.storage.upload_timeout_seconds,
    )
    container.register_singleton(PaymentGateway, gateway)
    container.register_singleton(ObjectStorage, storage)

    container.register_factory(OrderRepository, OrderRepository)
    container.register_factory(
        CheckoutService,
        lambda: CheckoutService(
            container.get(OrderRepository),
            container.get(PaymentGateway),
            cfg.payment,
            cfg.pricing,
        ),
    )
    container.register_factory(
        OrderService,
        lambda: OrderService(container.get(OrderRepository), container.get(PaymentGateway)),
    )
    container.register_factory(
        UploadService,
        lambda: UploadService(container.get(ObjectStorage), cfg.storage),
    )
    return container


def create_app(
    cfg: Optional[Config] = None,
    payment_gateway: Optional[PaymentGateway] = None,
    object_storage: Optional[ObjectStorage] = None,
) -> Flask:
    """
    Application factory.

    Tests pass their own Config and fake payment/storage adapters; the
    defaults talk to Stripe and S3.
    """
    cfg = cfg or default_config
    cfg.validate()
    _configure_logging(cfg.app.log_level)

    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = cfg.storage.max_upload_bytes + MULTIPART_OVERHEAD_BYTES

    init_engine(cfg.database.url, echo=cfg.database.echo)
    if cfg.database.create_tables:
        create_tables()

    app.extensions[EXTENSION_KEY] = build_container(cfg, payment_gateway, object_storage)

    # ------------------------------------------------------------------ #
    # Blueprints                                                           #
    # ------------------------------------------------------------------ #
    app.register_blueprint(uploads_bp, url_prefix="/api")
    app.register_blueprint(checkout_bp, url_prefix="/api")
    app.register_blueprint(orders_bp, url_prefix="/api")
    app.register_blueprint(pricing_bp, url_prefix="/api")

    # ------------------------------------------------------------------ #
    # Error handlers: consistent JSON error envelope                       #
    # ------------------------------------------------------------------ #
    @app.errorhandler(BaseAPIException)
    def api_error(e: BaseAPIException):
        if e.status_code >= 500:
            logger.error(f"{e.error_code}: {e.internal_message}")
        else:
            logger.warning(f"{e.error_code}: {e.message}")
        return jsonify(e.to_dict()), e.status_code

    def _http_error(e: HTTPException, code: str):
        return jsonify({"success": False, "error": str(e.description), "code": code}), e.code

    @app.errorhandler(400)
    def bad_request(e):
        return _http_error(e, "BAD_REQUEST")

    @app.errorhandler(404)
    def not_found(e):
        return _http_error(e, "NOT_FOUND")

    @app.errorhandler(405)
    def method_not_allowed(e):
        return _http_error(e, "METHOD_NOT_ALLOWED")

    @app.errorhandler(413)
    def too_large(e):
        return jsonify({
            "success": False,
            "error": f"File exceeds upload limit of {cfg.storage.max_upload_bytes} bytes",
            "code": "PAYLOAD_TOO_LARGE",
        }), 413

    @app.errorhandler(SQLAlchemyError)
    def db_error(e):
        logger.error(f"Database error: {e}")
        return jsonify({"success": False, "error": "A database error occurred.", "code": "DATABASE_ERROR"}), 500

    @app.errorhandler(500)
    def internal_error(e):
        return jsonify({
            "success": False,
            "error": "An internal server error occurred.",
            "code": "INTERNAL_ERROR",
        }), 500

    # ------------------------------------------------------------------ #
    # Health check                                                         #
    # ------------------------------------------------------------------ #
    @app.get("/health")
    def health():
        """Liveness and readiness check. Returns 503 if DB is unreachable."""
        try:
            with get_engine().connect() as conn:
                conn.execute(text("SELECT 1"))
            return jsonify({
                "status": "ok",
                "database": "reachable",
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }), 200
        except SQLAlchemyError as exc:
            logger.error(f"Health check failed: {exc}")
            return jsonify({"status": "error", "database": "unreachable"}), 503

    return app


def main() -> None:
    app = create_app()
    app.run(debug=default_config.app.debug, host=default_config.app.host, port=default_config.app.port)


if __name__ == "__main__":
    main()
