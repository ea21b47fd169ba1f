from datetime import datetime, timezone
from typing import Any, Dict, Optional

from flask import jsonify, request
from marshmallow import Schema
from marshmallow import ValidationError as SchemaValidationError

from stickershop.core.exceptions import ValidationError


def success_response(fields: Optional[Dict[str, Any]] = None, status: int = 200):
    """Consistent success envelope; payload fields sit next to ``success``."""
    response = {"success": True}
    response.update(fields or {})
    response["timestamp"] = datetime.now(timezone.utc).isoformat()
    return jsonify(response), status


def load_or_400(schema: Schema, data: Any) -> Dict[str, Any]:
    """Run a marshmallow schema and turn its errors into a ValidationError."""
    try:
        return schema.load(data if data is not None else {})
    except SchemaValidationError as err:
        messages = err.normalized_messages()
        field_errors = [
            {"field": name, "message": "; ".join(msgs) if isinstance(msgs, list) else str(msgs)}
            for name, msgs in messages.items()
        ]
        raise ValidationError("Invalid request", field_errors=field_errors)


def json_body() -> Any:
    """Request JSON or raise a ValidationError when the body is not JSON."""
    data = request.get_json(silent=True)
    if data is None:
        raise ValidationError("Request body must be JSON")
    return data
