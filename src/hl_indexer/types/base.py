"""Reusable base models for records and wire payloads."""

from typing import Any, Self

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from .timestamps import normalize_timestamp


class CamelModel(BaseModel):
    """
    A base model that converts field names to camel case when serializing.

    For example, the field name `block_number` in a Python model will be
    represented as `blockNumber` when it is serialized to JSON.

    Both upstream APIs and the persisted document speak camelCase.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_default=True,
        extra="ignore",
    )


class RecordModel(CamelModel):
    """
    An immutable stored record.

    Every record has a surrogate `id` assigned by the store on first insert
    and a `timestamp` in epoch seconds. Unknown fields are ignored so older
    and newer persisted documents both load.
    """

    model_config = CamelModel.model_config | {"frozen": True}

    id: int = 0
    """Surrogate id. Zero until the store assigns one."""

    timestamp: int
    """Epoch seconds."""

    @field_validator("timestamp", mode="before")
    @classmethod
    def _normalize_timestamp(cls, value: Any) -> int:
        return normalize_timestamp(value)

    def with_id(self, record_id: int) -> Self:
        """Return a copy carrying the given surrogate id."""
        return self.model_copy(update={"id": record_id})

    def merged_over(self, existing: Self) -> Self:
        """
        Merge this incoming record onto an existing one.

        A field from this record wins when it was explicitly provided and
        differs from the field's declared default. Everything else keeps the
        existing value, including the surrogate id.
        """
        updates: dict[str, Any] = {}
        for name, info in type(self).model_fields.items():
            if name == "id" or name not in self.model_fields_set:
                continue
            value = getattr(self, name)
            if not info.is_required() and value == info.get_default(call_default_factory=True):
                continue
            updates[name] = value
        return existing.model_copy(update=updates)
