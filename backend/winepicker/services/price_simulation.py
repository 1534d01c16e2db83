"""
Deterministic price history for demo and seed data.

Every wine in the catalog carries one base price; the generator spreads it
over the vintage table and the historical snapshot dates, applying a
hash-based jitter so the same inputs always produce the same rows.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Iterator

from sqlalchemy.orm import Session

from winepicker.core.pricing import round_half_up
from winepicker.db.models.price_snapshot import PriceSnapshot

# Great vintages trade at a premium, weaker ones at a discount
VINTAGE_MULTIPLIERS = {
    2005: 1.60,
    2009: 1.45,
    2010: 1.50,
    2012: 1.25,
    2014: 1.10,
    2015: 1.30,
    2016: 1.20,
    2017: 1.05,
    2018: 1.15,
    2019: 1.20,
    2020: 1.10,
    2021: 0.95,
    2022: 1.00,
    2023: 0.90,
}

# Market-wide movement; the last entry is "today"
SNAPSHOT_DATES = [
    ("2023-06-15", 0.85),
    ("2024-01-10", 0.90),
    ("2024-06-20", 0.95),
    ("2025-01-15", 0.97),
    ("2025-07-01", 1.00),
    ("2026-01-10", 1.02),
    ("2026-02-25", 1.00),
]

RELEASE_DELAY_YEARS = 2
SIMULATED_SOURCE = "wine-searcher"
SIMULATED_CURRENCY = "USD"


@dataclass
class BasePrice:
    wine_id: int
    avg_price: float
    min_price: float | None = None
    max_price: float | None = None


def price_seed(wine_id: int, vintage: int, snapshot_index: int) -> int:
    return wine_id * 1000 + vintage * 10 + snapshot_index


def jitter(seed: int) -> float:
    """Pseudo-random value in [-0.03, 0.03], fixed for a given seed."""
    x = math.sin(seed * 127.1) * 43758.5453
    return ((x - math.floor(x)) - 0.5) * 0.06


def _scaled(base: float | None, multiplier: float) -> float | None:
    if base is None:
        return None
    return float(round_half_up(base * multiplier))


def _snapshot_time(date_str: str) -> datetime:
    day = datetime.strptime(date_str, "%Y-%m-%d")
    return day.replace(hour=12, tzinfo=timezone.utc)


def simulate_price_snapshots(base_prices: Iterable[BasePrice]) -> Iterator[PriceSnapshot]:
    for base in base_prices:
        if not base.avg_price:
            continue

        for vintage, vintage_mult in VINTAGE_MULTIPLIERS.items():
            for index, (date_str, market_mult) in enumerate(SNAPSHOT_DATES):
                # Burgundy is released about two years after the harvest
                if int(date_str[:4]) < vintage + RELEASE_DELAY_YEARS:
                    continue

                noise = 1 + jitter(price_seed(base.wine_id, vintage, index))
                multiplier = vintage_mult * market_mult * noise

                yield PriceSnapshot(
                    wine_id=base.wine_id,
                    vintage=vintage,
                    avg_price=_scaled(base.avg_price, multiplier),
                    min_price=_scaled(base.min_price, multiplier),
                    max_price=_scaled(base.max_price, multiplier),
                    currency=SIMULATED_CURRENCY,
                    source=SIMULATED_SOURCE,
                    fetched_at=_snapshot_time(date_str),
                )


def insert_simulated_history(db: Session, base_prices: Iterable[BasePrice]) -> int:
    """
    Appends the simulated history. Not idempotent: callers wipe the
    price_snapshots table first or every run adds another full copy.
    """
    count = 0
    for snapshot in simulate_price_snapshots(base_prices):
        db.add(snapshot)
        count += 1
    db.flush()
    return count
