"""Shared configuration for entity and write models."""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, ValidationError, model_validator

from recipe_portal.core.exceptions import InvalidFieldError, NoValidFieldsError


def _invalid_field_error(error: ValidationError) -> InvalidFieldError:
    fields = [".".join(str(part) for part in err["loc"]) for err in error.errors()]
    return InvalidFieldError(f"Invalid value for: {', '.join(fields)}", fields)


class Entity(BaseModel):
    """Base for entities hydrated from storage rows.

    Lax validation normalizes storage representations once (``0``/``1``
    booleans, numeric strings, ``Decimal`` aggregates) so call sites only
    ever see plain Python types.
    """

    model_config = ConfigDict(extra="ignore", use_enum_values=False)

    @classmethod
    def from_row(cls, row: Any) -> Any:
        """Build the entity from an asyncpg ``Record`` or any mapping."""
        return cls.model_validate(dict(row))


class WriteModel(BaseModel):
    """Base for create payloads and filters: unknown keys are dropped."""

    model_config = ConfigDict(
        extra="ignore",
        use_enum_values=True,
        str_strip_whitespace=True,
    )

    @classmethod
    def parse(cls, data: Any) -> Any:
        """Validate ``data`` into this model, raising ``InvalidFieldError``."""
        if isinstance(data, cls):
            return data
        if isinstance(data, BaseModel):
            data = data.model_dump(exclude_unset=True)
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise _invalid_field_error(e) from e


class FilterModel(WriteModel):
    """Base for listing filters.

    A blank string means the filter was not supplied, so it is removed
    before validation and the field keeps its default.
    """

    @model_validator(mode="before")
    @classmethod
    def drop_blank_values(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        return {
            k: v for k, v in data.items() if not (isinstance(v, str) and not v.strip())
        }


class PartialUpdate(WriteModel):
    """Base for allow-listed partial updates.

    The declared fields are the complete set of updatable columns. Fields
    not listed in ``nullable_fields`` may be omitted but not set to None.
    """

    nullable_fields: ClassVar[frozenset[str]] = frozenset()

    @classmethod
    def allowed_fields(cls) -> frozenset[str]:
        return frozenset(cls.model_fields)

    @classmethod
    def coerce(cls, changes: PartialUpdate | dict[str, Any]) -> dict[str, Any]:
        """Reduce ``changes`` to validated ``{column: value}`` pairs.

        Raises:
            NoValidFieldsError: If no permitted field is present.
            InvalidFieldError: If a permitted field has an invalid value.
        """
        if isinstance(changes, cls):
            model = changes
        else:
            if isinstance(changes, BaseModel):
                changes = changes.model_dump(exclude_unset=True)
            permitted = {k: v for k, v in changes.items() if k in cls.model_fields}
            if not permitted:
                raise NoValidFieldsError
            model = cls.parse(permitted)

        data = model.model_dump(exclude_unset=True)
        if not data:
            raise NoValidFieldsError

        nulls = sorted(
            k for k, v in data.items() if v is None and k not in cls.nullable_fields
        )
        if nulls:
            msg = f"Field(s) cannot be null: {', '.join(nulls)}"
            raise InvalidFieldError(msg, nulls)
        return data


def drop_fields(
    changes: PartialUpdate | dict[str, Any],
    fields: frozenset[str],
) -> dict[str, Any]:
    """Copy of ``changes`` without ``fields``, as a plain dict."""
    if isinstance(changes, BaseModel):
        changes = changes.model_dump(exclude_unset=True)
    return {k: v for k, v in changes.items() if k not in fields}
