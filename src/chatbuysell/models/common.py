"""Shared field types."""

from typing import Annotated, Any, TypeVar

from pydantic import BeforeValidator

T = TypeVar("T")


def _empty_if_none(value: Any) -> Any:
    return [] if value is None else value


# The backend serializes empty collections as null.
NullableList = Annotated[list[T], BeforeValidator(_empty_if_none)]
