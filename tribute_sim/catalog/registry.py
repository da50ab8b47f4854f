from __future__ import annotations

import csv
import logging
import os
import re
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

logger = logging.getLogger(__name__)

# Killer slot meaning "environmental death, nobody is credited".
ENVIRONMENTAL_SLOT = -1

PLAYER_PLACEHOLDER_RE = re.compile(r"\{Player(\d+)\}")
WEAPON_PLACEHOLDER = "{Weapon}"
ITEM_PLACEHOLDER = "{Item}"

# Verbs in template text that narrow which weapons fit a {Weapon} slot.
THROW_VERBS = ("throw",)
MELEE_VERBS = ("stab", "slash", "pierce", "swing", "hack", "chop")


class CatalogLoadError(RuntimeError):
    pass


class EventCategory(StrEnum):
    bloodbath = "bloodbath"
    day = "day"
    night = "night"
    feast = "feast"
    arena_event = "arena-event"


@dataclass(frozen=True, slots=True)
class EventTemplate:
    id: str
    category: EventCategory
    text: str
    tributes_involved: int
    # Indices (into the assigned tributes) of those who die.
    deaths: tuple[int, ...] = ()
    # Index credited with the kill, ENVIRONMENTAL_SLOT, or None for no credit.
    killer: int | None = None
    requires_weapon: bool = False
    requires_item: bool = False

    @property
    def is_fatal(self) -> bool:
        return len(self.deaths) > 0


def validate_template(t: EventTemplate) -> None:
    """Reject templates whose slot indices do not fit their participant count."""

    if t.tributes_involved < 1:
        raise CatalogLoadError(f"Template {t.id}: tributes_involved must be >= 1")

    for idx in t.deaths:
        if idx < 0 or idx >= t.tributes_involved:
            raise CatalogLoadError(f"Template {t.id}: death index {idx} out of range for {t.tributes_involved} tributes")
    if len(set(t.deaths)) != len(t.deaths):
        raise CatalogLoadError(f"Template {t.id}: duplicate death index")

    if t.killer is not None and t.killer != ENVIRONMENTAL_SLOT:
        if t.killer < 0 or t.killer >= t.tributes_involved:
            raise CatalogLoadError(f"Template {t.id}: killer index {t.killer} out of range for {t.tributes_involved} tributes")

    for m in PLAYER_PLACEHOLDER_RE.finditer(t.text):
        n = int(m.group(1))
        if n < 1 or n > t.tributes_involved:
            raise CatalogLoadError(f"Template {t.id}: placeholder {m.group(0)} exceeds {t.tributes_involved} tributes")

    # Not fatal for loading; the renderer leaves these untouched.
    if WEAPON_PLACEHOLDER in t.text and not t.requires_weapon:
        logger.warning("Template %s uses %s but does not require a weapon", t.id, WEAPON_PLACEHOLDER)
    if ITEM_PLACEHOLDER in t.text and not t.requires_item:
        logger.warning("Template %s uses %s but does not require an item", t.id, ITEM_PLACEHOLDER)


@dataclass(frozen=True, slots=True)
class GearCatalog:
    """Weapons and items substituted into event text."""

    melee: tuple[str, ...]
    ranged: tuple[str, ...]
    items: tuple[str, ...]

    @property
    def weapons(self) -> tuple[str, ...]:
        return self.melee + self.ranged

    @property
    def throwable(self) -> tuple[str, ...]:
        # Bows and crossbows can't be thrown.
        return tuple(w for w in self.weapons if "bow" not in w.casefold())

    def weapons_for(self, text: str) -> tuple[str, ...]:
        """Weapons that suit the verbs of an unrendered template text."""

        lower = text.casefold()
        if any(v in lower for v in THROW_VERBS):
            return self.throwable
        if any(v in lower for v in MELEE_VERBS):
            return self.melee
        return self.weapons


@dataclass(frozen=True, slots=True)
class EventCatalog:
    by_category: dict[EventCategory, tuple[EventTemplate, ...]]
    by_id: dict[str, EventTemplate]
    gear: GearCatalog

    @staticmethod
    def from_templates(templates: list[EventTemplate], *, gear: GearCatalog) -> "EventCatalog":
        by_id: dict[str, EventTemplate] = {}
        by_category_build: dict[EventCategory, list[EventTemplate]] = {c: [] for c in EventCategory}

        for t in templates:
            if t.id in by_id:
                raise CatalogLoadError(f"Duplicate template id: {t.id}")
            validate_template(t)
            by_id[t.id] = t
            by_category_build[t.category].append(t)

        if not gear.weapons:
            raise CatalogLoadError("Gear catalog has no weapons")
        if not gear.items:
            raise CatalogLoadError("Gear catalog has no items")
        for t in by_id.values():
            if t.requires_weapon and not gear.weapons_for(t.text):
                raise CatalogLoadError(f"Template {t.id}: no weapon in the gear catalog fits its text")

        catalog = EventCatalog(
            by_category={k: tuple(v) for k, v in by_category_build.items()},
            by_id=by_id,
            gear=gear,
        )
        catalog.check_shape()
        return catalog

    def templates_for(self, category: EventCategory) -> tuple[EventTemplate, ...]:
        return self.by_category.get(category, ())

    def get(self, template_id: str) -> EventTemplate | None:
        return self.by_id.get(template_id)

    def solo_templates(self, category: EventCategory) -> tuple[EventTemplate, ...]:
        return tuple(t for t in self.templates_for(category) if t.tributes_involved == 1)

    def check_shape(self) -> list[str]:
        """Log (and return) categories missing a solo fatal or solo non-fatal template."""

        problems: list[str] = []
        for category in EventCategory:
            templates = self.templates_for(category)
            if not templates:
                problems.append(f"{category.value}: no templates")
                continue
            solo = [t for t in templates if t.tributes_involved == 1]
            if not solo:
                continue
            if not any(t.is_fatal for t in solo):
                problems.append(f"{category.value}: no solo fatal template")
            if not any(not t.is_fatal for t in solo):
                problems.append(f"{category.value}: no solo non-fatal template")

        for p in problems:
            logger.warning("Event catalog shape: %s", p)
        return problems


def _read_csv_rows(path: Path) -> list[list[str]]:
    try:
        with path.open(encoding="utf-8-sig", newline="") as f:
            rows = [[c.strip() for c in row] for row in csv.reader(f)]
    except FileNotFoundError as e:
        raise CatalogLoadError(f"Catalog file not found: {path}") from e

    return [row for row in rows if any(cell for cell in row)]


def _parse_bool(value: str) -> bool:
    return value.strip().casefold() in {"1", "true", "yes", "y"}


def _parse_int(value: str, *, template_id: str, column: str) -> int:
    try:
        return int(value)
    except ValueError as e:
        raise CatalogLoadError(f"Template {template_id}: {column} must be an integer, got {value!r}") from e


TEMPLATE_HEADER = ["id", "category", "text", "tributes_involved", "deaths", "killer", "requires_weapon", "requires_item"]


def load_templates_csv(path: Path) -> list[EventTemplate]:
    rows = _read_csv_rows(path)
    if not rows:
        raise CatalogLoadError(f"Empty template CSV: {path}")

    header = [c.casefold() for c in rows[0]]
    if header[: len(TEMPLATE_HEADER)] != TEMPLATE_HEADER:
        raise CatalogLoadError(f"Unexpected header in {path}: {rows[0]}")

    out: list[EventTemplate] = []
    for row in rows[1:]:
        row = row + [""] * (len(TEMPLATE_HEADER) - len(row))
        tid, category, text, involved, deaths, killer, weapon, item = row[: len(TEMPLATE_HEADER)]
        if not tid or not text:
            raise CatalogLoadError(f"Template row missing id or text in {path}: {row}")

        try:
            cat = EventCategory(category)
        except ValueError as e:
            raise CatalogLoadError(f"Template {tid}: unknown category {category!r}") from e

        out.append(
            EventTemplate(
                id=tid,
                category=cat,
                text=text,
                tributes_involved=_parse_int(involved, template_id=tid, column="tributes_involved"),
                deaths=tuple(_parse_int(d, template_id=tid, column="deaths") for d in deaths.split(";") if d.strip()),
                killer=_parse_int(killer, template_id=tid, column="killer") if killer else None,
                requires_weapon=_parse_bool(weapon),
                requires_item=_parse_bool(item),
            )
        )

    return out


def load_gear_csv(path: Path) -> GearCatalog:
    rows = _read_csv_rows(path)
    if not rows:
        raise CatalogLoadError(f"Empty gear CSV: {path}")

    header = [c.casefold() for c in rows[0]]
    if header[:3] != ["id", "kind", "name"]:
        raise CatalogLoadError(f"Unexpected header in {path}: {rows[0]}")

    by_kind: dict[str, list[str]] = {"melee": [], "ranged": [], "item": []}
    seen: set[str] = set()
    for row in rows[1:]:
        if len(row) < 3 or not row[2]:
            continue
        gid, kind, name = row[0], row[1].casefold(), row[2]
        if kind not in by_kind:
            raise CatalogLoadError(f"Gear {gid or name}: unknown kind {row[1]!r}")
        if gid in seen:
            raise CatalogLoadError(f"Duplicate gear id: {gid}")
        seen.add(gid)
        by_kind[kind].append(name)

    return GearCatalog(
        melee=tuple(by_kind["melee"]),
        ranged=tuple(by_kind["ranged"]),
        items=tuple(by_kind["item"]),
    )


def _fallback_event_catalog() -> EventCatalog:
    """Tiny built-in catalog used when the CSV assets are missing.

    Keeps the same shape as the shipped data: 1/2/3-tribute templates, and a solo
    fatal plus a solo non-fatal template in every category.
    """

    C = EventCategory
    rows = [
        EventTemplate("fb_bb_1", C.bloodbath, "{Player1} grabs a {Weapon} and runs.", 1, requires_weapon=True),
        EventTemplate("fb_bb_2", C.bloodbath, "{Player1} steps off the podium too soon.", 1, (0,), ENVIRONMENTAL_SLOT),
        EventTemplate("fb_bb_3", C.bloodbath, "{Player1} kills {Player2}.", 2, (1,), 0),
        EventTemplate("fb_bb_4", C.bloodbath, "{Player1}, {Player2}, and {Player3} share supplies.", 3),
        EventTemplate("fb_day_1", C.day, "{Player1} explores the arena.", 1),
        EventTemplate("fb_day_2", C.day, "{Player1} falls into a pit and dies.", 1, (0,), ENVIRONMENTAL_SLOT),
        EventTemplate("fb_day_3", C.day, "{Player1} and {Player2} hunt together.", 2),
        EventTemplate("fb_night_1", C.night, "{Player1} goes to sleep.", 1),
        EventTemplate("fb_night_2", C.night, "{Player1} steps on a landmine.", 1, (0,), ENVIRONMENTAL_SLOT),
        EventTemplate("fb_night_3", C.night, "{Player1} strangles {Player2}.", 2, (1,), 0),
        EventTemplate("fb_feast_1", C.feast, "{Player1} takes a {Item} and flees.", 1, requires_item=True),
        EventTemplate("fb_feast_2", C.feast, "{Player1} eats poisoned food.", 1, (0,), ENVIRONMENTAL_SLOT),
        EventTemplate("fb_arena_1", C.arena_event, "A fire spreads. {Player1} survives.", 1),
        EventTemplate("fb_arena_2", C.arena_event, "A fire spreads. {Player1} dies.", 1, (0,), ENVIRONMENTAL_SLOT),
    ]
    gear = GearCatalog(melee=("knife", "spear"), ranged=("bow and arrow",), items=("rope", "medkit"))
    return EventCatalog.from_templates(rows, gear=gear)


def load_event_catalog(*, root: Path) -> EventCatalog:
    assets_dir = root / "assets"

    # Missing files fall back to the built-in catalog unless TRIBUTE_SIM_STRICT_ASSETS=1.
    # Malformed files always raise.
    strict = os.getenv("TRIBUTE_SIM_STRICT_ASSETS", "").strip().lower() in {"1", "true", "yes"}

    templates_path = assets_dir / "event_templates.csv"
    gear_path = assets_dir / "gear.csv"
    if not templates_path.exists() or not gear_path.exists():
        if strict:
            raise CatalogLoadError(f"Catalog files not found under {assets_dir}")
        logger.warning("Event catalog not found under %s; using built-in fallback", assets_dir)
        return _fallback_event_catalog()

    catalog = EventCatalog.from_templates(load_templates_csv(templates_path), gear=load_gear_csv(gear_path))
    logger.info("Loaded %d event templates from %s", len(catalog.by_id), assets_dir)
    return catalog
