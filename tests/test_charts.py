from __future__ import annotations

import pytest

from webforms.catalog import build_catalog
from webforms.charts import (
    ChartFields,
    bar_width,
    build_comparison_chart,
    chart_frame,
    normalize_chart,
    to_vega_spec,
)
from webforms.data import LoadedSnapshot
from webforms.fields import WebformField
from webforms.sorting import build_view_rows


def _rows(records):
    catalog = build_catalog((name, name) for name in records)
    return build_view_rows(catalog, LoadedSnapshot({k: v for k, v in records.items() if v is not None}))


def test_example_excludes_zero_and_missing_rows():
    rows = _rows(
        {
            "A.json": {"CustomerName": "Acme", "RepoNumberOfCommits": 10, "NumberOfFieldsTotal": 5},
            "B.json": {"CustomerName": "Bolt", "RepoNumberOfCommits": 0, "NumberOfFieldsTotal": 0},
            "C.json": None,
        }
    )
    fields = ChartFields(label=WebformField.CUSTOMER_NAME)
    data = normalize_chart(rows, fields)

    assert [p.identifier for p in data.points] == ["A.json"]
    point = data.points[0]
    assert point.label == "Acme"
    assert (point.metric_a, point.metric_b) == (10, 5)
    assert (point.width_a, point.width_b) == (100.0, 100.0)
    assert (data.max_a, data.max_b) == (10, 5)


def test_label_prefers_record_field_then_stripped_identifier():
    rows = _rows(
        {
            "alpha.json": {"RepoSlug": "alpha-repo", "RepoNumberOfCommits": 1},
            "beta.json": {"RepoSlug": "", "NumberOfFieldsTotal": 4},
            "gamma.json": {"NumberOfFieldsTotal": 2},
        }
    )
    data = normalize_chart(rows)
    assert [p.label for p in data.points] == ["alpha-repo", "beta", "gamma"]


def test_point_kept_when_either_metric_non_zero_and_widths_scale():
    rows = _rows(
        {
            "a": {"RepoNumberOfCommits": 40, "NumberOfFieldsTotal": 0},
            "b": {"RepoNumberOfCommits": 0, "NumberOfFieldsTotal": 8},
            "c": {"RepoNumberOfCommits": 10, "NumberOfFieldsTotal": 2},
            "d": {"RepoNumberOfCommits": -5, "NumberOfFieldsTotal": "junk"},
        }
    )
    data = normalize_chart(rows)
    assert [p.identifier for p in data.points] == ["a", "b", "c"]
    assert (data.max_a, data.max_b) == (40, 8)
    widths = {p.identifier: (p.width_a, p.width_b) for p in data.points}
    assert widths == {"a": (100.0, 0.0), "b": (0.0, 100.0), "c": (25.0, 25.0)}
    for p in data.points:
        assert 0 <= p.width_a <= 100 and 0 <= p.width_b <= 100


def test_scale_floor_is_one():
    rows = _rows({"a": {"RepoNumberOfCommits": 0.25, "NumberOfFieldsTotal": 0}})
    data = normalize_chart(rows)
    assert data.max_a == 1
    assert data.max_b == 1
    assert data.points[0].width_a == pytest.approx(25.0)


def test_empty_snapshot_reports_no_data():
    data = normalize_chart(_rows({"a": None, "b": None}))
    assert data.is_empty
    assert (data.max_a, data.max_b) == (1, 1)
    assert data.to_dict()["empty"] is True
    assert chart_frame(data).empty


def test_normalize_is_pure():
    rows = _rows({"a": {"RepoNumberOfCommits": 3, "NumberOfFieldsTotal": 9}})
    assert normalize_chart(rows) == normalize_chart(rows)


def test_non_numeric_metric_is_rejected():
    with pytest.raises(ValueError):
        ChartFields(metric_a=WebformField.CUSTOMER_NAME)


def test_bar_width_clamps():
    assert bar_width(5, 0) == 0.0
    assert bar_width(12, 10) == 100.0


def test_vega_spec_has_both_metrics():
    rows = _rows({"a": {"RepoNumberOfCommits": 3, "NumberOfFieldsTotal": 9}})
    data = normalize_chart(rows)
    df = chart_frame(data)
    assert sorted(df["metric"].unique()) == ["Repository Commits", "Total Fields"]
    spec = to_vega_spec(build_comparison_chart(data))
    mark = spec["mark"]
    assert (mark["type"] if isinstance(mark, dict) else mark) == "bar"
    assert spec["encoding"]["x"]["field"] == "width"
