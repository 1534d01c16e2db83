from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Iterable, Mapping, Sequence

import structlog

from winepicker.db.models.cellar_item import CellarItem
from winepicker.db.models.price_snapshot import PriceSnapshot

logger = structlog.get_logger(__name__)

ALERT_THRESHOLD_PERCENT = 5.0


@dataclass
class PriceAlert:
    wine_id: int
    wine_name: str
    producer: str
    vintage: int
    previous_price: float
    current_price: float
    change_percent: float

    def to_dict(self) -> dict:
        return asdict(self)


def compute_alerts(
    items: Iterable[CellarItem],
    recent_snapshots: Mapping[tuple[int, int], Sequence[PriceSnapshot]],
    threshold: float = ALERT_THRESHOLD_PERCENT,
) -> list[PriceAlert]:
    """
    Flag held wines whose last two price observations moved by at least
    `threshold` percent. `recent_snapshots` maps (wine_id, vintage) to
    snapshots newest first; only the first two are looked at.
    """
    alerts: list[PriceAlert] = []
    seen: set[tuple[int, int]] = set()

    for item in items:
        if item.status != "in_cellar":
            continue

        key = (item.wine_id, item.vintage)
        if key in seen:
            continue
        seen.add(key)

        snapshots = recent_snapshots.get(key) or []
        if len(snapshots) < 2:
            continue

        current = snapshots[0].avg_price
        previous = snapshots[1].avg_price
        if not current or not previous:
            continue

        change_percent = (current - previous) / previous * 100
        if abs(change_percent) < threshold:
            continue

        alerts.append(
            PriceAlert(
                wine_id=item.wine_id,
                wine_name=item.wine.wine_name,
                producer=item.wine.producer,
                vintage=item.vintage,
                previous_price=previous,
                current_price=current,
                change_percent=change_percent,
            )
        )

    alerts.sort(key=lambda a: abs(a.change_percent), reverse=True)

    if alerts:
        logger.info(
            "alerts.computed",
            count=len(alerts),
            largest_move=round(alerts[0].change_percent, 2),
        )

    return alerts
