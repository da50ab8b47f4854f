"""Summarize `assets/event_templates.csv` per category.

Prints template counts, fatal share, and the participant-count mix, so catalog edits
can be checked for the expected shape (solo fatal + solo non-fatal in each category).

Usage:
    python scripts/catalog_stats.py [path/to/event_templates.csv]
"""

from __future__ import annotations

import sys
from pathlib import Path

import pandas as pd


def summarize(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    df["deaths"] = df["deaths"].fillna("").astype(str)
    df["fatal"] = df["deaths"].str.strip() != ""
    df["solo"] = df["tributes_involved"] == 1

    grouped = df.groupby("category")
    out = pd.DataFrame(
        {
            "templates": grouped.size(),
            "fatal_share": grouped["fatal"].mean().round(2),
            "solo_fatal": grouped.apply(lambda g: int((g["solo"] & g["fatal"]).sum()), include_groups=False),
            "solo_non_fatal": grouped.apply(lambda g: int((g["solo"] & ~g["fatal"]).sum()), include_groups=False),
        }
    )
    mix = df.pivot_table(index="category", columns="tributes_involved", values="id", aggfunc="count", fill_value=0)
    mix.columns = [f"n{c}" for c in mix.columns]
    return out.join(mix)


def main() -> None:
    root = Path(__file__).resolve().parents[1]
    src = Path(sys.argv[1]) if len(sys.argv) > 1 else root / "assets" / "event_templates.csv"

    df = pd.read_csv(src, dtype={"deaths": str, "killer": str})
    expected = ["id", "category", "text", "tributes_involved", "deaths", "killer", "requires_weapon", "requires_item"]
    if list(df.columns) != expected:
        raise ValueError(f"Unexpected columns in {src}: {list(df.columns)}")

    stats = summarize(df)
    print(stats.to_string())

    gaps = stats[(stats["solo_fatal"] == 0) | (stats["solo_non_fatal"] == 0)]
    if not gaps.empty:
        print(f"\nCategories missing a solo fatal or solo non-fatal template: {', '.join(gaps.index)}")
        sys.exit(1)


if __name__ == "__main__":
    main()
