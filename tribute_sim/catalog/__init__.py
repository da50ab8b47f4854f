"""Event template pool: weapon/item gear plus per-phase narrative templates."""
