from __future__ import annotations

import logging
from pathlib import Path

import pytest

from tribute_sim.catalog.registry import (
    ENVIRONMENTAL_SLOT,
    CatalogLoadError,
    EventCategory,
    EventCatalog,
    EventTemplate,
    GearCatalog,
    load_event_catalog,
    validate_template,
)

HEADER = "id,category,text,tributes_involved,deaths,killer,requires_weapon,requires_item\n"
GEAR = "id,kind,name\nknife,melee,knife\nbow,ranged,bow and arrow\nrope,item,rope\n"


def _write_assets(root: Path, template_rows: str, gear: str = GEAR) -> Path:
    assets = root / "assets"
    assets.mkdir()
    (assets / "event_templates.csv").write_text(HEADER + template_rows, encoding="utf-8")
    (assets / "gear.csv").write_text(gear, encoding="utf-8")
    return root


def test_repo_catalog_loads_with_expected_shape(catalog) -> None:
    for category in EventCategory:
        templates = catalog.templates_for(category)
        assert templates, category
        for t in templates:
            assert all(0 <= i < t.tributes_involved for i in t.deaths)
            if t.killer is not None and t.killer != ENVIRONMENTAL_SLOT:
                assert 0 <= t.killer < t.tributes_involved

        solo = catalog.solo_templates(category)
        assert any(t.is_fatal for t in solo)
        assert any(not t.is_fatal for t in solo)

    sizes = {t.tributes_involved for t in catalog.by_id.values()}
    assert sizes == {1, 2, 3}
    assert catalog.check_shape() == []


def test_repo_catalog_lookup_and_gear(catalog) -> None:
    bb = catalog.get("bb_003")
    assert bb is not None
    assert bb.deaths == (1,)
    assert bb.killer == 0
    assert bb.requires_weapon is True

    pit = catalog.get("day_013")
    assert pit is not None
    assert pit.killer == ENVIRONMENTAL_SLOT

    assert "crossbow" in catalog.gear.weapons
    assert all("bow" not in w for w in catalog.gear.throwable)
    assert "knife" in catalog.gear.throwable
    assert "medkit" in catalog.gear.items


@pytest.mark.parametrize(
    ("row", "message"),
    [
        ("x1,day,{Player1} falls.,1,1,,false,false\n", "death index 1 out of range"),
        ("x2,day,{Player1} hits {Player2}.,2,1,2,false,false\n", "killer index 2 out of range"),
        ("x3,day,{Player1} meets {Player3}.,2,,,false,false\n", "placeholder {Player3}"),
        ("x4,dusk,{Player1} rests.,1,,,false,false\n", "unknown category"),
        ("x5,day,{Player1} rests.,0,,,false,false\n", "tributes_involved must be >= 1"),
        ("x6,day,{Player1} rests.,one,,,false,false\n", "must be an integer"),
    ],
)
def test_authoring_defects_are_rejected_at_load(tmp_path: Path, row: str, message: str) -> None:
    root = _write_assets(tmp_path, row)
    with pytest.raises(CatalogLoadError) as e:
        load_event_catalog(root=root)
    assert message in str(e.value)


def test_duplicate_template_ids_rejected(tmp_path: Path) -> None:
    rows = "d1,day,{Player1} rests.,1,,,false,false\nd1,night,{Player1} sleeps.,1,,,false,false\n"
    root = _write_assets(tmp_path, rows)
    with pytest.raises(CatalogLoadError, match="Duplicate template id"):
        load_event_catalog(root=root)


def test_unflagged_weapon_placeholder_only_warns(caplog: pytest.LogCaptureFixture) -> None:
    t = EventTemplate("w1", EventCategory.day, "{Player1} polishes a {Weapon}.", 1)
    with caplog.at_level(logging.WARNING):
        validate_template(t)
    assert "does not require a weapon" in caplog.text


def test_missing_files_raise_when_strict(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TRIBUTE_SIM_STRICT_ASSETS", "1")
    with pytest.raises(CatalogLoadError):
        load_event_catalog(root=tmp_path)


def test_missing_files_fall_back_when_not_strict(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("TRIBUTE_SIM_STRICT_ASSETS", raising=False)
    fallback = load_event_catalog(root=tmp_path)

    assert fallback.check_shape() == []
    assert fallback.templates_for(EventCategory.arena_event)


def test_assets_root_override(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    from tribute_sim.catalog.startup import catalog_root

    monkeypatch.delenv("TRIBUTE_SIM_ASSETS_ROOT", raising=False)
    assert (catalog_root() / "assets" / "event_templates.csv").exists()

    monkeypatch.setenv("TRIBUTE_SIM_ASSETS_ROOT", str(tmp_path))
    assert catalog_root() == tmp_path


@pytest.mark.parametrize(
    ("text", "gear"),
    [
        ("{Player1} stabs {Player2} with a {Weapon}.", GearCatalog(melee=(), ranged=("slingshot",), items=("rope",))),
        ("{Player1} throws a {Weapon} at {Player2}.", GearCatalog(melee=(), ranged=("crossbow",), items=("rope",))),
    ],
)
def test_weapon_verbs_without_fitting_gear_are_rejected(text: str, gear: GearCatalog) -> None:
    t = EventTemplate("w2", EventCategory.day, text, 2, (1,), 0, requires_weapon=True)
    with pytest.raises(CatalogLoadError, match="w2: no weapon"):
        EventCatalog.from_templates([t], gear=gear)


def test_weapon_fit_only_checked_for_weapon_templates() -> None:
    t = EventTemplate("w3", EventCategory.day, "{Player1} practices a stab in the air.", 1)
    catalog = EventCatalog.from_templates([t], gear=GearCatalog(melee=(), ranged=("bow",), items=("rope",)))
    assert catalog.get("w3") is t


def test_bom_and_crlf_files_load(tmp_path: Path) -> None:
    assets = tmp_path / "assets"
    assets.mkdir()
    rows = HEADER + 'c1,day,"{Player1} rests, then eats.",1,,,false,false\n'
    (assets / "event_templates.csv").write_bytes(("\ufeff" + rows).replace("\n", "\r\n").encode("utf-8"))
    (assets / "gear.csv").write_bytes(GEAR.replace("\n", "\r\n").encode("utf-8"))

    loaded = load_event_catalog(root=tmp_path)

    template = loaded.get("c1")
    assert template is not None
    assert template.text == "{Player1} rests, then eats."
    assert loaded.gear.items == ("rope",)
