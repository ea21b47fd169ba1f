import logging

from flask import Blueprint, request

from stickershop.core.dependencies import get_service
from stickershop.core.exceptions import ValidationError
from stickershop.routes.utils import success_response
from stickershop.services.upload_service import UploadService

logger = logging.getLogger(__name__)

uploads_bp = Blueprint("uploads", __name__)


@uploads_bp.route("/upload-file", methods=["POST"])
def upload_file():
    """Store the multipart ``file`` part; any further parts are ignored."""
    files = request.files.getlist("file")
    if not files:
        raise ValidationError("No file provided. Make sure the form field is named 'file'.")
    if len(files) > 1:
        logger.info(f"Ignoring {len(files) - 1} extra file part(s)")

    upload = files[0]
    result = get_service(UploadService).upload(
        upload.filename,
        upload.stream,
        upload.mimetype or None,
    )
    return success_response(result.to_dict())
