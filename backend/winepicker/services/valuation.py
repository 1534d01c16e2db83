from __future__ import annotations

from collections import defaultdict
from dataclasses import asdict, dataclass
from datetime import date, datetime, timezone
from typing import Iterable, Mapping

from winepicker.core.pricing import round_half_up
from winepicker.db.models.cellar_item import CellarItem
from winepicker.db.models.price_snapshot import PriceSnapshot

PriceKey = tuple[int, int]


@dataclass
class ValuePoint:
    date: str
    value: int

    def to_dict(self) -> dict:
        return asdict(self)


def held_quantities(items: Iterable[CellarItem]) -> dict[PriceKey, int]:
    quantities: dict[PriceKey, int] = defaultdict(int)
    for item in items:
        quantities[(item.wine_id, item.vintage)] += item.quantity or 0
    return dict(quantities)


def snapshot_day(fetched_at: datetime | str) -> date:
    """UTC calendar day of a fetch timestamp; naive values are taken as UTC."""
    if isinstance(fetched_at, str):
        fetched_at = datetime.fromisoformat(fetched_at.replace("Z", "+00:00"))
    if fetched_at.tzinfo is not None:
        fetched_at = fetched_at.astimezone(timezone.utc)
    return fetched_at.date()


def _sort_key(snapshot: PriceSnapshot):
    fetched_at = snapshot.fetched_at
    if isinstance(fetched_at, str):
        fetched_at = datetime.fromisoformat(fetched_at.replace("Z", "+00:00"))
    if fetched_at.tzinfo is None:
        fetched_at = fetched_at.replace(tzinfo=timezone.utc)
    return (fetched_at, snapshot.id or 0)


def compute_value_over_time(
    snapshots: Iterable[PriceSnapshot], holdings: Mapping[PriceKey, int]
) -> list[ValuePoint]:
    """
    Replay price history day by day and value the current holdings with the
    last known average price of each (wine, vintage). Days on which the
    holdings are worth nothing yet are left out.
    """
    by_day: dict[date, dict[PriceKey, float]] = {}
    for snap in sorted(snapshots, key=_sort_key):
        day_prices = by_day.setdefault(snapshot_day(snap.fetched_at), {})
        if snap.avg_price:
            day_prices[(snap.wine_id, snap.vintage)] = snap.avg_price

    last_known: dict[PriceKey, float] = {}
    points: list[ValuePoint] = []

    for day in sorted(by_day):
        last_known.update(by_day[day])

        total = 0.0
        for key in holdings:
            price = last_known.get(key)
            if price:
                total += price * (holdings.get(key) or 1)

        if total > 0:
            points.append(ValuePoint(date=day.isoformat(), value=round_half_up(total)))

    return points
