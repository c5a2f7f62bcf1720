"""Core (UI-agnostic) coffee & health dashboard logic.

This package contains:
- data loading (CSV -> pandas) and record normalization
- filter normalization and application
- statistics: correlation, quantiles/box plots, regression outliers, correlation network
- page compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
