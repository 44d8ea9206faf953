"""Core (UI-agnostic) dashboard logic.

This package contains:
- synthetic series generators (COVID waves, market index, single stocks)
- the in-memory dataset catalog
- page compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
- prompts and the Gemini assistant client
"""
