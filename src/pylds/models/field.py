"""Column descriptor model."""

from __future__ import annotations

from collections.abc import Callable

from pydantic import Field, PrivateAttr, field_validator

from pylds.models._base import LdsBaseModel, SortDirection, parse_sort_direction


class DataField(LdsBaseModel):
    """A named column: visibility, sortability and sort-key aliases.

    ``name`` cannot change once the field exists. Visibility changes made
    through :meth:`toggle_visible`, :meth:`set_visible` and
    :meth:`set_condition` notify the owning registry, which re-emits them
    as ``field_changed(name)``.
    """

    name: str = Field(..., frozen=True, min_length=1)
    title: str = ""
    data_type: str | None = None
    visible: bool = True
    sortable: bool = True
    sort1_name: str | None = None
    """Sort key sent on the wire instead of ``name`` when sorting by this field."""
    sort1_dir: SortDirection | None = None
    """Direction used when this field becomes the sort column."""
    sort2_name: str | None = None
    sort2_dir: SortDirection | None = None
    visible_condition: bool | None = None

    _notify: Callable[[str], None] | None = PrivateAttr(default=None)

    @field_validator("sort1_dir", "sort2_dir", mode="before")
    @classmethod
    def _parse_direction(cls, value: object) -> SortDirection | None:
        return parse_sort_direction(value)

    @property
    def is_visible(self) -> bool:
        """Effective visibility: the user flag combined with the condition."""
        condition = True if self.visible_condition is None else self.visible_condition
        return self.visible and condition

    def bind(self, notify: Callable[[str], None] | None) -> None:
        self._notify = notify

    def _changed(self) -> None:
        if self._notify is not None:
            self._notify(self.name)

    def toggle_visible(self) -> None:
        self.visible = not self.visible
        self._changed()

    def set_visible(self, visible: bool) -> None:
        if self.visible == visible:
            return
        self.visible = visible
        self._changed()

    def set_condition(self, condition: bool | None) -> None:
        self.visible_condition = condition
        self._changed()


class FieldVisibility(LdsBaseModel):
    """Persisted ``{name, visible}`` pair of a field."""

    name: str
    visible: bool = True
