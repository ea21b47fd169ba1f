import json
import time

import pytest

from stickershop.app import create_app
from stickershop.core.config import Config
from stickershop.core.exceptions import ExternalServiceError, ValidationError
from stickershop.db import create_tables, init_engine
from stickershop.repositories.order_repository import OrderRepository
from stickershop.services.object_storage import ObjectStorage
from stickershop.services.payment_gateway import CheckoutSession, PaymentEvent, PaymentGateway

VALID_SIGNATURE = "t=1,v1=valid"


class FakePaymentGateway(PaymentGateway):
    """Records session requests and hands out sequential session ids"""

    def __init__(self):
        self.requests = []
        self.fail = False

    def create_checkout_session(self, request):
        if self.fail:
            raise ExternalServiceError(
                "stripe",
                "Failed to create checkout session",
                internal_message="card_declined",
            )
        self.requests.append(request)
        number = len(self.requests)
        return CheckoutSession(id=f"cs_test_{number}", url=f"https://checkout.test/pay/cs_test_{number}")

    def parse_event(self, payload, signature):
        if signature != VALID_SIGNATURE:
            raise ValidationError("Invalid webhook signature")
        event = json.loads(payload)
        return PaymentEvent(type=event["type"], data=event["data"]["object"])


class FakeObjectStorage(ObjectStorage):
    def __init__(self, bucket="test-bucket"):
        self.bucket = bucket
        self.objects = {}
        self.delay = 0.0
        self.fail = False

    def put_object(self, key, body, content_type):
        if self.delay:
            time.sleep(self.delay)
        if self.fail:
            raise ExternalServiceError("s3", "Failed to upload file", internal_message="AccessDenied")
        self.objects[key] = (body, content_type)
        return f"s3://{self.bucket}/{key}"


@pytest.fixture
def test_config():
    cfg = Config()
    cfg.environment = "testing"
    cfg.app.environment = "testing"
    cfg.app.log_level = "WARNING"
    cfg.database.url = "sqlite://"
    cfg.database.echo = False
    cfg.database.create_tables = True
    cfg.payment.success_url = "https://shop.test/thank-you"
    cfg.payment.cancel_url = "https://shop.test/order"
    cfg.storage.bucket = "test-bucket"
    cfg.storage.max_upload_bytes = 1024
    cfg.storage.upload_timeout_seconds = 0.5
    return cfg


@pytest.fixture
def engine():
    """Fresh in-memory database with the order table"""
    eng = init_engine("sqlite://")
    create_tables()
    yield eng
    eng.dispose()


@pytest.fixture
def order_repository(engine):
    return OrderRepository()


@pytest.fixture
def payment_gateway():
    return FakePaymentGateway()


@pytest.fixture
def object_storage():
    return FakeObjectStorage()


@pytest.fixture
def app(test_config, payment_gateway, object_storage):
    application = create_app(test_config, payment_gateway=payment_gateway, object_storage=object_storage)
    application.config["TESTING"] = True
    return application


@pytest.fixture
def client(app):
    return app.test_client()
