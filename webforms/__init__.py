"""Core (UI-agnostic) webforms dashboard logic.

This package contains:
- resource catalog discovery (data dir -> ResourceDescriptor list)
- concurrent snapshot loading (httpx fan-out / fan-in)
- sortable view rows (pandas frame for tabular display)
- chart normalization (Altair -> Vega-Lite spec dict)
"""
