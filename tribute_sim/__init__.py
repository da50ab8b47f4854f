"""Elimination-contest simulator: narrative event engine plus a small FastAPI service."""

__version__ = "0.1.0"
