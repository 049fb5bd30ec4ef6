from __future__ import annotations

import unicodedata
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, List, Mapping, Optional

import pandas as pd

from webforms.catalog import ResourceDescriptor
from webforms.fields import (
    IDENTIFIER,
    Record,
    SortKey,
    WebformField,
    flag_labels,
    parse_sort_key,
    present_value,
    value_of,
)

TABLE_FIELDS = [
    WebformField.CUSTOMER_NAME,
    WebformField.NUMBER_OF_CARDS,
    WebformField.NUMBER_OF_FIELDS_TOTAL,
]


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"

    def flipped(self) -> "SortDirection":
        return SortDirection.DESC if self is SortDirection.ASC else SortDirection.ASC


@dataclass(frozen=True)
class ViewRow:
    descriptor: ResourceDescriptor
    record: Optional[Record] = None

    @property
    def identifier(self) -> str:
        return self.descriptor.identifier

    @property
    def loaded(self) -> bool:
        return self.record is not None


@dataclass(frozen=True)
class SortState:
    key: SortKey = IDENTIFIER
    direction: SortDirection = SortDirection.ASC

    def toggle(self, key: SortKey | str) -> "SortState":
        """Same key flips the direction; a new key starts ascending."""
        key = parse_sort_key(key)
        if key == self.key:
            return SortState(key=key, direction=self.direction.flipped())
        return SortState(key=key, direction=SortDirection.ASC)

    @property
    def key_name(self) -> str:
        return self.key.value if isinstance(self.key, WebformField) else str(self.key)


def build_view_rows(catalog: Iterable[ResourceDescriptor], snapshot: Mapping[str, Record]) -> List[ViewRow]:
    return [ViewRow(descriptor=d, record=snapshot.get(d.identifier)) for d in catalog]


def human_collation_key(value: str) -> tuple:
    # Accents rank with their base letter; raw value breaks ties.
    base = "".join(c for c in unicodedata.normalize("NFKD", value) if not unicodedata.combining(c))
    return (base.casefold(), value)


def sort_key_func(key: SortKey) -> Callable[[ViewRow], Any]:
    if key == IDENTIFIER:
        return lambda row: row.descriptor.identifier
    field = parse_sort_key(key)
    if field.is_human_name:
        return lambda row: human_collation_key(value_of(row.record, field))
    return lambda row: value_of(row.record, field)


def sort_rows(rows: Iterable[ViewRow], state: SortState) -> List[ViewRow]:
    """Stable sort; ties keep their input order in either direction."""
    # sorted(reverse=True) preserves the original order of equal elements.
    return sorted(rows, key=sort_key_func(state.key), reverse=state.direction is SortDirection.DESC)


def sort_indicator(state: SortState, key: SortKey | str) -> str:
    if parse_sort_key(key) != state.key:
        return "↕"
    return "↑" if state.direction is SortDirection.ASC else "↓"


def rows_to_frame(rows: Iterable[ViewRow], fields: Optional[List[WebformField]] = None) -> pd.DataFrame:
    """Tabular view; absent values stay NA so the UI can show placeholders."""
    fields = fields or TABLE_FIELDS
    records = []
    for row in rows:
        item = {"identifier": row.identifier, "location": row.descriptor.location, "loaded": row.loaded}
        for field in fields:
            item[field.value] = present_value(row.record, field)
        item["data_types"] = ", ".join(flag_labels(row.record)) if row.loaded else None
        records.append(item)
    columns = ["identifier", "location", "loaded"] + [f.value for f in fields] + ["data_types"]
    return pd.DataFrame(records, columns=columns, dtype=object)
