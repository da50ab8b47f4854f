from __future__ import annotations

import os
from pathlib import Path

from tribute_sim.catalog.registry import EventCatalog
from tribute_sim.catalog.singleton import init_catalog

# tribute_sim/catalog/startup.py -> checkout root, which holds assets/
_CHECKOUT_ROOT = Path(__file__).resolve().parents[2]


def catalog_root() -> Path:
    """Directory containing `assets/`; `TRIBUTE_SIM_ASSETS_ROOT` overrides the checkout root."""

    override = os.environ.get("TRIBUTE_SIM_ASSETS_ROOT", "").strip()
    return Path(override).expanduser() if override else _CHECKOUT_ROOT


def init_catalog_for_app() -> EventCatalog:
    return init_catalog(project_root=catalog_root())
