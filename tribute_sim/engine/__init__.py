"""Event-simulation engine.

Pure functions over tributes and the event catalog; no Redis or FastAPI concerns, so the
API, the CLI runner, and tests all drive it the same way.
"""
