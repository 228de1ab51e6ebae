from typing import Any, Optional, Dict
from datetime import datetime
from bson import ObjectId
from fastapi.responses import JSONResponse


def serialize_document(value: Any) -> Any:
    """Recursively convert Mongo values (ObjectId, datetime) into JSON-safe values"""
    if isinstance(value, datetime):
        return value.isoformat()
    elif isinstance(value, ObjectId):
        return str(value)
    elif isinstance(value, dict):
        serialized = {}
        for key, item in value.items():
            if key == "_id":
                serialized["id"] = str(item)
            else:
                serialized[key] = serialize_document(item)
        return serialized
    elif isinstance(value, list):
        return [serialize_document(item) for item in value]
    return value


def success_response(
    message: str = "Success",
    data: Any = None,
    status_code: int = 200
) -> JSONResponse:
    """
    Success envelope: {"success": true, "message", "data"}.

    Mongo documents in `data` are serialized, with `_id` exposed as `id`.
    """
    response = {
        "success": True,
        "message": message
    }

    if data is not None:
        response["data"] = serialize_document(data)

    return JSONResponse(content=response, status_code=status_code)


def error_response(
    message: str = "Error",
    status_code: int = 400,
    error: Optional[str] = None
) -> JSONResponse:
    """Failure envelope: {"success": false, "message", "error"}"""
    content = {
        "success": False,
        "message": message
    }

    if error:
        content["error"] = error

    return JSONResponse(content=content, status_code=status_code)


def validation_error_response(
    message: str = "Validation error",
    errors: Optional[Dict[str, Any]] = None
) -> JSONResponse:
    # 422 with per-field messages
    response = {
        "success": False,
        "message": message,
        "error": "validation_error"
    }

    if errors:
        response["errors"] = errors

    return JSONResponse(content=response, status_code=422)
