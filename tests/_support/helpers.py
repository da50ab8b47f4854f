from __future__ import annotations

import random

from tribute_sim.api.models import Gender, Tribute, TributeInput
from tribute_sim.catalog.registry import EventCatalog, EventCategory, EventTemplate, GearCatalog
from tribute_sim.engine.policy import FatalityPolicy


def make_tributes(n: int) -> list[Tribute]:
    genders = [Gender.female, Gender.male, Gender.other]
    return [
        Tribute(id=f"t{i + 1}", name=f"Tribute {i + 1}", gender=genders[i % 3], district_id=i // 2 + 1)
        for i in range(n)
    ]


class FixedRandom(random.Random):
    """random() replays a fixed sequence (cycled); choice/shuffle stay seeded."""

    def __init__(self, values: list[float], seed: int = 0) -> None:
        self._values = list(values)
        self._i = 0
        super().__init__(seed)

    def random(self) -> float:
        v = self._values[self._i % len(self._values)]
        self._i += 1
        return v

    # Defining getrandbits keeps choice()/shuffle() off the overridden random().
    def getrandbits(self, k: int) -> int:
        return super().getrandbits(k)


TEST_GEAR = GearCatalog(melee=("knife", "axe"), ranged=("bow and arrow", "crossbow"), items=("rope", "map"))


def make_catalog(templates: list[EventTemplate]) -> EventCatalog:
    return EventCatalog.from_templates(templates, gear=TEST_GEAR)


def duel_only_catalog() -> EventCatalog:
    """Every category holds only 2-tribute templates, so an odd tribute out has nothing to do."""

    return make_catalog(
        [
            EventTemplate(f"duel_{c.name}", c, "{Player1} and {Player2} circle each other.", 2)
            for c in EventCategory
        ]
    )


def mutual_kill_catalog() -> EventCatalog:
    """Bloodbath where both tributes of every event die."""

    rows = [
        EventTemplate("mk_bb", EventCategory.bloodbath, "{Player1} and {Player2} kill each other.", 2, (0, 1), 0),
    ]
    rows += [
        EventTemplate(f"mk_calm_{c.name}", c, "{Player1} rests.", 1)
        for c in EventCategory
        if c != EventCategory.bloodbath
    ]
    return make_catalog(rows)


def make_inputs(n: int) -> list[TributeInput]:
    return [TributeInput(name=t.name, gender=t.gender) for t in make_tributes(n)]


def no_deaths_policy() -> FatalityPolicy:
    return FatalityPolicy(rates={})
