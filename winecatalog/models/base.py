"""
Wine Catalog - Model Base Classes

Shared pydantic configuration for read models and write payloads.

- JSON uses camelCase (``netVolume``, ``createdBy``); input accepts either
  camelCase or snake_case keys.
- Write payloads normalize blank strings to None before validation.
- Partial (update) schemas are derived from the insert schemas, never
  written by hand.
"""

from __future__ import annotations

from typing import Any, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError as PydanticValidationError, create_model, model_validator
from pydantic.alias_generators import to_camel

from ..core.errors import ValidationError, details_from_pydantic

ModelT = TypeVar("ModelT", bound=BaseModel)


class CatalogModel(BaseModel):
    """Base for every catalog model."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        str_strip_whitespace=True,
        coerce_numbers_to_str=True,
    )


class PayloadModel(CatalogModel):
    """Base for write payloads: blank strings are absent values."""

    @model_validator(mode="before")
    @classmethod
    def _blank_strings_to_none(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {
                key: None if isinstance(value, str) and not value.strip() else value
                for key, value in data.items()
            }
        return data


def require_name(value: Any) -> Any:
    """Shared ``name`` rule for every entity."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValueError("Name is required")
    return value


def partial_model(model: type[ModelT], name: str) -> type[ModelT]:
    """
    Derive a partial-update schema from an insert schema.

    Every field becomes optional with no default applied, so
    ``model_dump(exclude_unset=True)`` yields exactly the supplied fields.
    Validators of the insert schema still run on supplied values.
    """
    fields: dict[str, Any] = {
        field_name: (Optional[info.annotation], None)
        for field_name, info in model.model_fields.items()
    }
    return create_model(name, __base__=model, __module__=model.__module__, **fields)


def check_payload(schema: type[ModelT], data: Any, label: str = "payload") -> tuple[ModelT | None, ValidationError | None]:
    """Non-raising variant of validate_payload: ``(model, None)`` or ``(None, error)``."""
    if not isinstance(data, dict):
        return None, ValidationError(f"Invalid {label} data: expected a JSON object")

    try:
        return schema.model_validate(data), None
    except PydanticValidationError as exc:
        return None, ValidationError(
            f"Invalid {label} data",
            details=details_from_pydantic(exc.errors()),
        )


def validate_payload(schema: type[ModelT], data: Any, label: str = "payload") -> ModelT:
    """
    Validate ``data`` against ``schema``.

    Raises:
        ValidationError: with one (field, message) detail per problem
    """
    model, error = check_payload(schema, data, label)
    if error is not None:
        raise error
    return model  # type: ignore[return-value]
