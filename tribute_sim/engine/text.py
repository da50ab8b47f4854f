from __future__ import annotations

import logging
import random
from collections.abc import Sequence

from tribute_sim.api.models import Gender, Tribute
from tribute_sim.catalog.registry import ITEM_PLACEHOLDER, PLAYER_PLACEHOLDER_RE, WEAPON_PLACEHOLDER, GearCatalog

logger = logging.getLogger(__name__)


def pick_weapon(*, text: str, gear: GearCatalog, rng: random.Random) -> str:
    """Pick a weapon that suits the verbs in the (unrendered) template text."""

    # Gear that fits none of the verbs still yields some weapon.
    return rng.choice(gear.weapons_for(text) or gear.weapons)


def render_event_text(
    text: str,
    tributes: Sequence[Tribute],
    *,
    requires_weapon: bool = False,
    requires_item: bool = False,
    rng: random.Random,
    gear: GearCatalog,
) -> str:
    """Substitute `{PlayerN}`, `{Weapon}` and `{Item}` placeholders.

    `{PlayerN}` is 1-indexed into `tributes`; placeholders beyond the assignment are left as-is.
    A weapon/item placeholder is only resolved when the template requires it, and every
    occurrence gets the same pick.
    """

    def _player(m) -> str:  # type: ignore[no-untyped-def]
        idx = int(m.group(1)) - 1
        if 0 <= idx < len(tributes):
            return tributes[idx].name
        return m.group(0)

    out = PLAYER_PLACEHOLDER_RE.sub(_player, text)

    if WEAPON_PLACEHOLDER in out:
        if requires_weapon:
            out = out.replace(WEAPON_PLACEHOLDER, pick_weapon(text=text, gear=gear, rng=rng))
        else:
            logger.debug("Unresolved %s in event text: %r", WEAPON_PLACEHOLDER, text)

    if ITEM_PLACEHOLDER in out:
        if requires_item:
            out = out.replace(ITEM_PLACEHOLDER, rng.choice(gear.items))
        else:
            logger.debug("Unresolved %s in event text: %r", ITEM_PLACEHOLDER, text)

    return out


_PRONOUNS: dict[Gender, dict[str, str]] = {
    Gender.male: {"subject": "he", "object": "him", "possessive": "his"},
    Gender.female: {"subject": "she", "object": "her", "possessive": "her"},
    Gender.other: {"subject": "they", "object": "them", "possessive": "their"},
}


def pronoun(gender: Gender | str, kind: str) -> str:
    g = Gender(gender) if not isinstance(gender, Gender) else gender
    forms = _PRONOUNS[g]
    if kind not in forms:
        raise ValueError(f"Unknown pronoun kind: {kind}")
    return forms[kind]


def format_tribute_name(tribute: Tribute, *, include_district: bool = False) -> str:
    if include_district:
        return f"{tribute.name} (District {tribute.district_id})"
    return tribute.name


def format_tribute_list(tributes: Sequence[Tribute]) -> str:
    """Join names as `A`, `A and B`, or `A, B, and C`."""

    names = [t.name for t in tributes]
    if not names:
        return ""
    if len(names) == 1:
        return names[0]
    if len(names) == 2:
        return f"{names[0]} and {names[1]}"
    return f"{', '.join(names[:-1])}, and {names[-1]}"
