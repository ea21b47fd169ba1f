import logging
import secrets
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from typing import Any, BinaryIO, Callable, Dict, Optional

from werkzeug.utils import secure_filename

from stickershop.core.config import StorageConfig
from stickershop.core.exceptions import PayloadTooLargeError, UploadTimeoutError, ValidationError
from stickershop.services.object_storage import ObjectStorage
from stickershop.utils.formatting_utils import FormattingUtils

logger = logging.getLogger(__name__)

EXTENSION_MIME_TYPES = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "svg": "image/svg+xml",
    "pdf": "application/pdf",
    "gif": "image/gif",
    "bmp": "image/bmp",
    "tif": "image/tiff",
    "tiff": "image/tiff",
}

ALLOWED_MIME_TYPES = frozenset({
    "image/png",
    "image/jpeg",
    "image/jpg",
    "image/svg+xml",
    "application/pdf",
    "image/gif",
    "image/bmp",
    "image/tiff",
    "application/octet-stream",  # type could not be determined
})

DEFAULT_MIME_TYPE = "application/octet-stream"


def infer_mimetype(filename: str) -> str:
    ext = filename.lower().rsplit(".", 1)[-1] if "." in filename else ""
    return EXTENSION_MIME_TYPES.get(ext, DEFAULT_MIME_TYPE)


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class UploadResult:
    url: str
    key: str
    filename: str
    mimetype: str
    size: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "key": self.key,
            "filename": self.filename,
            "mimetype": self.mimetype,
            "size": self.size,
        }


class UploadService:
    """
    Validates one artwork file and stores it in object storage.

    The read is bounded to max_upload_bytes + 1 so an oversized file is
    detected without buffering all of it. The storage call runs on a worker
    thread and is abandoned after upload_timeout_seconds.
    """

    def __init__(
        self,
        storage: ObjectStorage,
        storage_config: StorageConfig,
        clock: Callable[[], int] = _now_ms,
        max_workers: int = 4,
    ):
        self.storage = storage
        self.config = storage_config
        self.clock = clock
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="upload")

    def build_key(self, filename: str) -> str:
        safe_name = secure_filename(filename) or "artwork"
        token = secrets.token_hex(5)
        return f"{self.config.key_prefix}/{self.clock()}-{token}-{safe_name}"

    def upload(self, filename: Optional[str], stream: BinaryIO, mimetype: Optional[str] = None) -> UploadResult:
        limit = self.config.max_upload_bytes
        body = stream.read(limit + 1)
        filename = (filename or "").strip()

        if not mimetype and filename:
            mimetype = infer_mimetype(filename)
            logger.debug(f"Inferred MIME type {mimetype} for {filename}")

        if not filename or filename == "unknown" or not body:
            logger.warning(f"Rejected upload: filename={filename!r}, size={len(body)}")
            raise ValidationError("Invalid file - no filename or empty file")

        mimetype = (mimetype or DEFAULT_MIME_TYPE).lower()
        if mimetype not in ALLOWED_MIME_TYPES:
            logger.warning(f"Rejected upload {filename}: MIME type {mimetype}")
            raise ValidationError(f"Invalid file type: {mimetype}")

        if len(body) > limit:
            logger.warning(f"Rejected upload {filename}: larger than {limit} bytes")
            raise PayloadTooLargeError(
                f"File exceeds {FormattingUtils.format_file_size(limit)} limit",
                limit_bytes=limit,
            )

        key = self.build_key(filename)
        logger.info(f"Uploading {filename} ({len(body)} bytes) as {key}")

        future = self._executor.submit(self.storage.put_object, key, body, mimetype)
        try:
            url = future.result(timeout=self.config.upload_timeout_seconds)
        except FutureTimeoutError:
            future.cancel()
            logger.error(f"Upload of {key} did not finish within {self.config.upload_timeout_seconds}s")
            raise UploadTimeoutError(timeout_seconds=self.config.upload_timeout_seconds)

        return UploadResult(url=url, key=key, filename=filename, mimetype=mimetype, size=len(body))

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False)
