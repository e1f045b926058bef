"""Core (UI-agnostic) vendor KPI logic.

This package contains:
- vendor records and feed loading (JSON -> frozen dataclasses / pandas)
- filter specs, threshold table and filter evaluation
- aggregation, performance classification and display labels
- page compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
