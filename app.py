import logging
from typing import List

import pandas as pd
import streamlit as st

from webforms.charts import build_comparison_chart
from webforms.config import load_config
from webforms.dashboard import WebformDashboard
from webforms.fields import IDENTIFIER, WebformField
from webforms.sorting import rows_to_frame, sort_indicator

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

SORT_COLUMNS = [
    (IDENTIFIER, "Name"),
    (WebformField.CUSTOMER_NAME, "Customer"),
    (WebformField.NUMBER_OF_CARDS, "Cards"),
    (WebformField.NUMBER_OF_FIELDS_TOTAL, "Total Fields"),
]


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


def get_dashboard() -> WebformDashboard:
    dashboard = st.session_state.get("dashboard")
    if dashboard is None:
        dashboard = WebformDashboard.from_config(load_config())
        dashboard.reload_sync()
        st.session_state["dashboard"] = dashboard
    return dashboard


def display_table(df: pd.DataFrame) -> pd.DataFrame:
    display = df.drop(columns=["location", "loaded"]).copy()
    display = display.rename(
        columns={
            "identifier": "Name",
            WebformField.CUSTOMER_NAME.value: "Customer",
            WebformField.NUMBER_OF_CARDS.value: "Cards",
            WebformField.NUMBER_OF_FIELDS_TOTAL.value: "Total Fields",
            "data_types": "Data Types",
        }
    )
    return display.astype(object).where(display.notna(), "—")


def render_overview_page(dashboard: WebformDashboard):
    summary = dashboard.summary()
    cols = st.columns(3)
    cols[0].metric("Total Webforms", summary["total"])
    cols[1].metric("Loaded", summary["loaded"])
    cols[2].metric("Failed", len(summary["failed"]))
    if summary["failed"]:
        st.warning("Could not load: " + ", ".join(summary["failed"]))


def render_webforms_page(dashboard: WebformDashboard):
    st.caption(f"{len(dashboard.catalog)} JSON files available")
    sort_cols = st.columns(len(SORT_COLUMNS))
    for col, (key, label) in zip(sort_cols, SORT_COLUMNS):
        if col.button(f"{label} {sort_indicator(dashboard.sort_state, key)}", key=f"sort_{label}"):
            dashboard.request_sort(key)
            st.rerun()

    rows = dashboard.sorted_rows()
    if not rows:
        st.info("No webform data found.")
        return
    df = rows_to_frame(rows)
    st.dataframe(display_table(df), use_container_width=True, hide_index=True)
    st.download_button(
        "Export CSV",
        data=df.to_csv(index=False).encode("utf-8"),
        file_name="webforms.csv",
        mime="text/csv",
    )


def render_reports_page(dashboard: WebformDashboard):
    data = dashboard.chart()
    if data.is_empty:
        st.info("No chart data available")
        return
    st.subheader(f"{data.fields.metric_a_title} vs {data.fields.metric_b_title}")
    st.altair_chart(build_comparison_chart(data), use_container_width=True)
    st.caption(f"Scale maxima: {data.max_a:g} {data.fields.metric_a_title.lower()}, {data.max_b:g} {data.fields.metric_b_title.lower()}.")


# ---------- UI setup ----------
st.set_page_config(page_title="Webforms Dashboard", layout="wide")
inject_base_styles()
st.title("Webforms Dashboard")

dashboard = get_dashboard()
if not dashboard.catalog:
    st.error("No files found. Place webform JSON files in the data directory.")
    st.stop()

pages: List[str] = ["Overview", "Webforms", "Reports"]
with st.sidebar:
    st.markdown("### Navigate")
    current_page = st.radio("Navigate", pages, index=0)
    if st.button("Reload data"):
        dashboard.reload_sync()
        st.rerun()

if current_page == "Overview":
    render_overview_page(dashboard)
elif current_page == "Webforms":
    render_webforms_page(dashboard)
else:
    render_reports_page(dashboard)
