from __future__ import annotations

import math
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

Record = Mapping[str, Any]


class FieldKind(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    FLAG = "flag"


BOTTOM_VALUES: Dict[FieldKind, Any] = {
    FieldKind.TEXT: "",
    FieldKind.NUMBER: 0,
    FieldKind.FLAG: False,
}


class WebformField(str, Enum):
    """Recognized webform record fields, keyed by their JSON name."""

    CUSTOMER_NAME = "CustomerName"
    REPO_SLUG = "RepoSlug"
    REPO_NUMBER_OF_COMMITS = "RepoNumberOfCommits"
    NUMBER_OF_CARDS = "NumberOfCards"
    NUMBER_OF_FIELDS_TOTAL = "NumberOfFieldsTotal"
    INCLUDES_USER_DATA = "includesUserData"
    INCLUDES_CUSTOM_DATA = "includesCustomData"
    INCLUDES_ISSUE_DATA = "includesIssueData"
    TEXT_FIELDS = "totalNumberOfTextFields"
    NUMBER_FIELDS = "totalNumberOfNumberFields"
    DATE_FIELDS = "totalNumberOfDateFields"
    CHECKBOX_FIELDS = "totalNumberOfCheckboxFields"
    RADIO_FIELDS = "totalNumberOfRadioFields"
    DROPDOWN_FIELDS = "totalNumberOfDropdownFields"
    FILE_FIELDS = "totalNumberOfFileFields"
    TEXTAREA_FIELDS = "totalNumberOfTextareaFields"

    @property
    def kind(self) -> FieldKind:
        return FIELD_KINDS[self]

    @property
    def bottom(self) -> Any:
        return BOTTOM_VALUES[self.kind]

    @property
    def is_human_name(self) -> bool:
        return self in HUMAN_NAME_FIELDS


FIELD_KINDS: Dict[WebformField, FieldKind] = {
    WebformField.CUSTOMER_NAME: FieldKind.TEXT,
    WebformField.REPO_SLUG: FieldKind.TEXT,
    WebformField.INCLUDES_USER_DATA: FieldKind.FLAG,
    WebformField.INCLUDES_CUSTOM_DATA: FieldKind.FLAG,
    WebformField.INCLUDES_ISSUE_DATA: FieldKind.FLAG,
}
for _field in WebformField:
    FIELD_KINDS.setdefault(_field, FieldKind.NUMBER)

HUMAN_NAME_FIELDS = frozenset({WebformField.CUSTOMER_NAME})

FLAG_LABELS: Dict[WebformField, str] = {
    WebformField.INCLUDES_USER_DATA: "User",
    WebformField.INCLUDES_CUSTOM_DATA: "Custom",
    WebformField.INCLUDES_ISSUE_DATA: "Issue",
}

IDENTIFIER = "identifier"
SortKey = Union[WebformField, str]


def _as_number(value: Any) -> Optional[float | int]:
    # bool is an int subclass; a JSON flag is never a count.
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return None if math.isnan(value) or math.isinf(value) else value
    if isinstance(value, str):
        try:
            out = float(value.strip())
        except ValueError:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return int(out) if out.is_integer() else out
    return None


def present_value(record: Optional[Record], field: WebformField) -> Any:
    """Return the typed value of ``field`` in ``record``, or None when absent or mistyped."""
    if record is None:
        return None
    value = record.get(field.value)
    kind = field.kind
    if kind is FieldKind.NUMBER:
        return _as_number(value)
    if kind is FieldKind.FLAG:
        return value if isinstance(value, bool) else None
    return value if isinstance(value, str) else None


def value_of(record: Optional[Record], field: WebformField) -> Any:
    """Typed accessor with bottom-value substitution (``""``, ``0`` or ``False``)."""
    value = present_value(record, field)
    return field.bottom if value is None else value


def flag_labels(record: Optional[Record]) -> List[str]:
    return [label for field, label in FLAG_LABELS.items() if value_of(record, field)]


def parse_sort_key(raw: object) -> SortKey:
    """Map a request string onto the closed set of sort keys."""
    if isinstance(raw, WebformField):
        return raw
    key = str(raw or "").strip()
    if key == IDENTIFIER:
        return IDENTIFIER
    try:
        return WebformField(key)
    except ValueError:
        raise ValueError(f"Unknown sort key: {key!r}") from None
