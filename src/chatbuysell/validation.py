"""
Boundary checks for requests and responses.
"""

from typing import Any, Optional, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from chatbuysell.errors import ProtocolError, ValidationError

M = TypeVar("M", bound=BaseModel)


def require_fields(operation: str, **fields: Any) -> None:
    """Raise ValidationError naming every missing (None or blank) field."""
    missing = [
        name for name, value in fields.items()
        if value is None or (isinstance(value, str) and not value.strip())
    ]
    if missing:
        raise ValidationError(f"{operation}: missing required fields: {', '.join(missing)}", missing)


def require_text(name: str, value: Optional[str]) -> str:
    """Return the stripped text, or raise if nothing is left."""
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{name} must not be empty", [name])
    return text


def parse_response(model: type[M], data: Any, key: Optional[str] = None) -> M:
    """Validate a success response (or one key of it) into a model."""
    if key is not None:
        if not isinstance(data, dict) or data.get(key) is None:
            raise ProtocolError(f"Response is missing '{key}'", {"response": data})
        data = data[key]
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise ProtocolError(f"Malformed {model.__name__} in response: {e}", {"response": data}) from e
