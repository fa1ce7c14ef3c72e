"""
Validate raw request payloads against a schema, reporting InvalidInput.

Used where a handler must run ownership checks before body validation,
so FastAPI's own body parsing cannot be relied on for ordering.
"""

from typing import Any, List, Type, TypeVar

from pydantic import BaseModel, ValidationError

from app.core.errors import InvalidInput

ModelT = TypeVar("ModelT", bound=BaseModel)


def format_errors(errors: List[dict]) -> List[dict]:
    """Keep only the JSON-safe parts of pydantic error dicts."""
    return [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": _clean(err.get("msg", "")),
            "type": err.get("type"),
        }
        for err in errors
    ]


def first_message(errors: List[dict]) -> str:
    if not errors:
        return "Invalid input"
    err = errors[0]
    return f"{err['field']}: {err['message']}" if err["field"] else err["message"]


def _clean(message: str) -> str:
    # pydantic prefixes messages raised from validators
    prefix = "Value error, "
    return message[len(prefix):] if message.startswith(prefix) else message


def validate_payload(model: Type[ModelT], payload: Any) -> ModelT:
    if not isinstance(payload, dict):
        raise InvalidInput("Request body must be a JSON object")
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        errors = format_errors(e.errors())
        raise InvalidInput(first_message(errors), errors=errors)
