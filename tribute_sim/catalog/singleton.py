"""Process-wide event catalog, loaded once at startup and shared by request handlers."""

from __future__ import annotations

from pathlib import Path

from tribute_sim.catalog.registry import EventCatalog, load_event_catalog

_CATALOG: EventCatalog | None = None


def init_catalog(*, project_root: Path) -> EventCatalog:
    global _CATALOG
    if _CATALOG is not None:
        return _CATALOG
    _CATALOG = load_event_catalog(root=project_root)
    return _CATALOG


def reset_catalog_for_tests() -> None:
    global _CATALOG
    _CATALOG = None


def get_catalog() -> EventCatalog:
    if _CATALOG is None:
        raise RuntimeError("Event catalog not loaded; run init_catalog() (the API lifespan does) first")
    return _CATALOG
