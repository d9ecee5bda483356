"""Pydantic schemas for request validation and responses."""

from typing import Annotated, Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StringConstraints, TypeAdapter, ValidationError

from .exceptions import InvalidArgument

Identifier = Annotated[str, StringConstraints(min_length=1, pattern=r"^\S+$")]

_identifier_adapter = TypeAdapter(Identifier)


class AutoFields(BaseModel):
    """Automatic fields injected on create/update."""

    id: bool = Field(True, description="Generate an id on create when the payload has none.")
    timestamp: bool = Field(True, description="Stamp createdAt/updatedAt on create and update.")

    @classmethod
    def from_any(cls, value: Union["AutoFields", Mapping[str, bool], bool, None]) -> "AutoFields":
        """Accept an AutoFields, a mapping, or a bool shorthand toggling both."""
        if isinstance(value, cls):
            return value
        if value is None:
            return cls()
        if isinstance(value, bool):
            return cls(id=value, timestamp=value)
        return cls(**dict(value))


class FindManyArgs(BaseModel):
    """Validated paging arguments of find_many."""

    model_config = ConfigDict(populate_by_name=True)

    take: Optional[Annotated[StrictInt, Field(ge=1)]] = None
    next_cursor: Optional[str] = Field(None, alias="nextCursor")


class FindManyResponse(BaseModel):
    """One page of results."""

    model_config = ConfigDict(populate_by_name=True)

    items: List[Dict[str, Any]] = Field(default_factory=list)
    next_cursor: Optional[str] = Field(None, alias="nextCursor")


def validate_id(value: Any, operation: str) -> str:
    """Validate an identifier: a non-empty string without whitespace.

    Raises:
        InvalidArgument: If the value is not a valid identifier
    """
    try:
        return _identifier_adapter.validate_python(value, strict=True)
    except ValidationError as e:
        raise InvalidArgument(
            "ID should not contain space characters, nor can it be an empty string",
            field="id",
            value=value,
            operation=operation,
        ) from e


def validate_find_many_args(take: Any, next_cursor: Any) -> FindManyArgs:
    """Validate take/next_cursor of find_many.

    Raises:
        InvalidArgument: If take is not a positive integer or the cursor is not a string
    """
    try:
        return FindManyArgs(take=take, next_cursor=next_cursor)
    except ValidationError as e:
        loc = e.errors()[0]["loc"]
        if loc and loc[0] in ("next_cursor", "nextCursor"):
            raise InvalidArgument(
                "Cursor must be a string", field="next_cursor", value=next_cursor, operation="find_many"
            ) from e
        raise InvalidArgument(
            f"Please make sure take is a positive integer. You provided {take!r}",
            field="take",
            value=take,
            operation="find_many",
        ) from e


def validate_payload(data: Any, operation: str) -> Dict[str, Any]:
    """Ensure a create/update payload is a non-empty mapping and return a copy.

    Raises:
        InvalidArgument: If the payload is not a mapping or is empty
    """
    if not isinstance(data, Mapping):
        raise InvalidArgument(
            f"Please provide an object as payload. You provided {data!r}",
            field="data",
            operation=operation,
        )
    if not data:
        raise InvalidArgument("Please provide a non-empty object as payload", field="data", operation=operation)
    return dict(data)
