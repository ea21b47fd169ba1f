import io

import pytest

from stickershop.core.config import StorageConfig
from stickershop.core.exceptions import (
    ExternalServiceError,
    PayloadTooLargeError,
    UploadTimeoutError,
    ValidationError,
)
from stickershop.services.upload_service import UploadService, infer_mimetype
from conftest import FakeObjectStorage


@pytest.fixture
def storage():
    return FakeObjectStorage()


@pytest.fixture
def service(storage):
    svc = UploadService(
        storage,
        StorageConfig(bucket="test-bucket", max_upload_bytes=1024, upload_timeout_seconds=0.2),
        clock=lambda: 1718000000000,
    )
    yield svc
    svc.shutdown()


def test_upload_stores_object(service, storage):
    result = service.upload("team logo.png", io.BytesIO(b"\x89PNG data"), "image/png")

    assert result.key.startswith("dtf-orders/1718000000000-")
    assert result.key.endswith("-team_logo.png")
    assert result.url == f"s3://test-bucket/{result.key}"
    assert result.size == 9
    assert storage.objects[result.key] == (b"\x89PNG data", "image/png")


def test_mimetype_inferred_from_extension(service):
    result = service.upload("artwork.SVG", io.BytesIO(b"<svg/>"), None)
    assert result.mimetype == "image/svg+xml"


def test_unknown_extension_is_octet_stream():
    assert infer_mimetype("artwork.xyz") == "application/octet-stream"
    assert infer_mimetype("noextension") == "application/octet-stream"


@pytest.mark.parametrize("filename, body", [("", b"data"), ("unknown", b"data"), ("empty.png", b"")])
def test_rejects_unnamed_or_empty(service, filename, body):
    with pytest.raises(ValidationError, match="Invalid file - no filename or empty file"):
        service.upload(filename, io.BytesIO(body), "image/png")


def test_rejects_disallowed_type(service, storage):
    with pytest.raises(ValidationError, match="Invalid file type: text/html"):
        service.upload("page.html", io.BytesIO(b"<html>"), "text/html")
    assert storage.objects == {}


def test_rejects_oversized_file(service, storage):
    with pytest.raises(PayloadTooLargeError) as exc:
        service.upload("big.png", io.BytesIO(b"x" * 2048), "image/png")
    assert exc.value.status_code == 413
    assert storage.objects == {}


def test_file_at_limit_is_accepted(service):
    assert service.upload("exact.png", io.BytesIO(b"x" * 1024), "image/png").size == 1024


def test_slow_storage_times_out(service, storage):
    storage.delay = 1.0
    with pytest.raises(UploadTimeoutError) as exc:
        service.upload("slow.png", io.BytesIO(b"data"), "image/png")
    assert exc.value.status_code == 408


def test_storage_failure_is_external_error(service, storage):
    storage.fail = True
    with pytest.raises(ExternalServiceError):
        service.upload("logo.png", io.BytesIO(b"data"), "image/png")
