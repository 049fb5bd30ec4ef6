from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, List

import altair as alt
import pandas as pd

from webforms.fields import FieldKind, WebformField, present_value, value_of
from webforms.sorting import ViewRow

alt.data_transformers.disable_max_rows()


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


@dataclass(frozen=True)
class ChartFields:
    label: WebformField = WebformField.REPO_SLUG
    metric_a: WebformField = WebformField.REPO_NUMBER_OF_COMMITS
    metric_b: WebformField = WebformField.NUMBER_OF_FIELDS_TOTAL
    metric_a_title: str = "Repository Commits"
    metric_b_title: str = "Total Fields"
    identifier_suffix: str = ".json"

    def __post_init__(self) -> None:
        for metric in (self.metric_a, self.metric_b):
            if metric.kind is not FieldKind.NUMBER:
                raise ValueError(f"Chart metric must be numeric: {metric.value}")


@dataclass(frozen=True)
class ChartPoint:
    identifier: str
    label: str
    metric_a: float
    metric_b: float
    width_a: float = 0.0
    width_b: float = 0.0


@dataclass(frozen=True)
class ChartData:
    points: List[ChartPoint] = field(default_factory=list)
    max_a: float = 1
    max_b: float = 1
    fields: ChartFields = field(default_factory=ChartFields)

    @property
    def is_empty(self) -> bool:
        return not self.points

    def to_dict(self) -> Dict[str, Any]:
        return {
            "points": [asdict(p) for p in self.points],
            "max_a": self.max_a,
            "max_b": self.max_b,
            "metric_a": self.fields.metric_a.value,
            "metric_b": self.fields.metric_b.value,
            "empty": self.is_empty,
        }


def bar_width(value: float, maximum: float) -> float:
    if maximum <= 0:
        return 0.0
    return max(0.0, min(100.0, value / maximum * 100))


def point_label(row: ViewRow, fields: ChartFields) -> str:
    label = present_value(row.record, fields.label)
    if label:
        return str(label)
    return row.identifier.removesuffix(fields.identifier_suffix) if fields.identifier_suffix else row.identifier


def _metric(row: ViewRow, metric: WebformField) -> float:
    return max(0, value_of(row.record, metric))


def normalize_chart(rows: Iterable[ViewRow], fields: ChartFields = ChartFields()) -> ChartData:
    """Chart points for rows with any non-zero metric, scaled against per-metric maxima (floor 1)."""
    raw = []
    for row in rows:
        a = _metric(row, fields.metric_a)
        b = _metric(row, fields.metric_b)
        if a == 0 and b == 0:
            continue
        raw.append((row.identifier, point_label(row, fields), a, b))

    max_a = max([a for _, _, a, _ in raw] + [1])
    max_b = max([b for _, _, _, b in raw] + [1])
    points = [
        ChartPoint(
            identifier=identifier,
            label=label,
            metric_a=a,
            metric_b=b,
            width_a=bar_width(a, max_a),
            width_b=bar_width(b, max_b),
        )
        for identifier, label, a, b in raw
    ]
    return ChartData(points=points, max_a=max_a, max_b=max_b, fields=fields)


def chart_frame(data: ChartData) -> pd.DataFrame:
    """Long format: one row per (point, metric)."""
    columns = ["identifier", "label", "metric", "value", "width"]
    records = []
    for p in data.points:
        records.append([p.identifier, p.label, data.fields.metric_a_title, p.metric_a, p.width_a])
        records.append([p.identifier, p.label, data.fields.metric_b_title, p.metric_b, p.width_b])
    return pd.DataFrame(records, columns=columns)


def build_comparison_chart(data: ChartData) -> alt.Chart:
    df = chart_frame(data)
    order = [p.label for p in data.points]
    return (
        alt.Chart(df)
        .mark_bar()
        .encode(
            y=alt.Y("label:N", title=None, sort=order),
            yOffset=alt.YOffset("metric:N"),
            x=alt.X("width:Q", title="% of max", scale=alt.Scale(domain=[0, 100])),
            color=alt.Color("metric:N", title="Metric"),
            tooltip=[
                alt.Tooltip("label:N", title="Webform"),
                alt.Tooltip("metric:N", title="Metric"),
                alt.Tooltip("value:Q", title="Value", format=","),
            ],
        )
        .properties(title=f"{data.fields.metric_a_title} vs {data.fields.metric_b_title}")
    )
