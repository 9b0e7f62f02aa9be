"""Transport envelope model."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import Field, ValidationError, field_validator

from pylds.models._base import LdsBaseModel


class LoadResult(LdsBaseModel):
    """The ``{items, total}`` envelope returned by a transport.

    ``error`` is set when the transport failed; the items are then empty
    and the data source clears its sort and pagination state.
    """

    items: list[Any] = Field(default_factory=list)
    total: int = 0
    error: bool | str | None = None

    @field_validator("items", mode="before")
    @classmethod
    def _none_is_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("total", mode="before")
    @classmethod
    def _coerce_total(cls, value: Any) -> Any:
        if value is None or value == "":
            return 0
        return value

    @property
    def failed(self) -> bool:
        return bool(self.error)

    @classmethod
    def empty(cls, error: bool | str | None = True) -> LoadResult:
        return cls(items=[], total=0, error=error)

    @classmethod
    def from_payload(cls, payload: Any) -> LoadResult:
        """Validate a transport payload, falling back to the error envelope."""
        if isinstance(payload, LoadResult):
            return payload
        if not isinstance(payload, Mapping):
            return cls.empty(error=f"unexpected payload type {type(payload).__name__}")
        try:
            result = cls.model_validate(dict(payload))
        except ValidationError as exc:
            return cls.empty(error=f"invalid payload: {exc.error_count()} error(s)")
        if result.total < 0:
            result.total = 0
        return result
