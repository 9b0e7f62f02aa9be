"""Field registry: the named columns of one data source."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator, Mapping
from typing import Any

from pylds.models.field import DataField, FieldVisibility

_logger = logging.getLogger(__name__)


def _as_field(value: DataField | Mapping[str, Any]) -> DataField:
    if isinstance(value, DataField):
        return value
    return DataField.model_validate(dict(value))


class FieldRegistry:
    """Name-keyed field lookup.

    Insertion order is preserved for iteration. Duplicate names in
    :meth:`set_fields` are resolved in favour of the later definition.
    """

    def __init__(self, notify: Callable[[str], None] | None = None) -> None:
        self._notify = notify
        self._fields: dict[str, DataField] = {}

    def __iter__(self) -> Iterator[DataField]:
        return iter(self._fields.values())

    def __len__(self) -> int:
        return len(self._fields)

    def __contains__(self, name: object) -> bool:
        return name in self._fields

    def set_fields(self, fields: Iterable[DataField | Mapping[str, Any]]) -> None:
        for old in self._fields.values():
            old.bind(None)
        registry: dict[str, DataField] = {}
        for value in fields:
            field = _as_field(value)
            if field.name in registry:
                _logger.debug("Duplicate field %s, keeping the later definition", field.name)
                del registry[field.name]
            registry[field.name] = field
        for field in registry.values():
            field.bind(self._notify)
        self._fields = registry

    def get(self, name: str) -> DataField | None:
        return self._fields.get(name)

    def field(self, name: str, condition: bool | None = None) -> DataField | None:
        """Resolve a field; a given *condition* replaces its visibility condition."""
        field = self._fields.get(name)
        if field is not None and condition is not None:
            field.set_condition(condition)
        return field

    def data_types(self) -> dict[str, str]:
        return {field.name: field.data_type for field in self._fields.values() if field.data_type}

    def snapshot(self) -> list[FieldVisibility]:
        return [FieldVisibility(name=field.name, visible=field.visible) for field in self._fields.values()]

    def apply_visibility(self, records: Iterable[FieldVisibility]) -> None:
        """Restore persisted visibility flags without emitting change events."""
        for record in records:
            field = self._fields.get(record.name)
            if field is not None:
                field.visible = record.visible

    def clear(self) -> None:
        for field in self._fields.values():
            field.bind(None)
        self._fields = {}
