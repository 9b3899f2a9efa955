from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class Envelope(BaseModel):
    """Body of every API response: `data` on success, `message` on errors."""
    status: int
    data: Any | None = None
    message: str | None = None


# OpenAPI documentation of the error bodies shared by every route
ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": Envelope, "description": "Validation error or entity not found"},
    500: {"model": Envelope, "description": "Persistence failure"},
}


def message_response(status: int, payload: Any) -> dict[str, Any]:
    """
    Wrap a status code and a payload.

    A string payload is an error (or informative) message, anything else is data.
    """
    if isinstance(payload, str):
        return {"status": status, "message": payload}
    return {"status": status, "data": payload}
