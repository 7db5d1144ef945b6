"""Core logic for the API Field Explorer.

The Gradio UI lives in `app.py`. This package contains:
- path flattening/resolution over arbitrary JSON responses
- row extraction and value formatting for card/table/chart views
- the upstream gateway (allowlist, rate limiting, caching, credentials)
"""
