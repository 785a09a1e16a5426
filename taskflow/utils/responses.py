from typing import Any

from fastapi.encoders import jsonable_encoder


def success_response(data: Any = None, message: str = "Success", pagination: dict | None = None) -> dict:
    body = {"status": "success", "message": message, "data": jsonable_encoder(data)}
    if pagination is not None:
        body["pagination"] = pagination
    return body


def error_body(message: str, errors: list[str] | None = None, stack: str | None = None) -> dict:
    body = {"status": "error", "message": message}
    if errors is not None:
        body["errors"] = errors
    if stack is not None:
        body["stack"] = stack
    return body
