from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Iterable

import structlog
from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from winepicker.core.config import settings
from winepicker.db.models.price_snapshot import PriceSnapshot
from winepicker.db.models.wine import Wine
from winepicker.sources.base import PriceSource, WinePrice

logger = structlog.get_logger(__name__)

PriceKey = tuple[int, int]

NEWEST_FIRST = (PriceSnapshot.fetched_at.desc(), PriceSnapshot.id.desc())


def ensure_utc(dt: datetime | None) -> datetime | None:
    if dt is None:
        return None
    if dt.tzinfo is None or dt.tzinfo.utcoffset(dt) is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def list_price_snapshots(
    db: Session, wine_id: int, vintage: int | None = None
) -> list[PriceSnapshot]:
    query = select(PriceSnapshot).where(PriceSnapshot.wine_id == wine_id)
    if vintage is not None:
        query = query.where(PriceSnapshot.vintage == vintage)
    return list(db.execute(query.order_by(*NEWEST_FIRST)).scalars().all())


def latest_snapshot(
    db: Session, wine_id: int, vintage: int | None = None
) -> PriceSnapshot | None:
    query = select(PriceSnapshot).where(PriceSnapshot.wine_id == wine_id)
    if vintage is not None:
        query = query.where(PriceSnapshot.vintage == vintage)
    return db.execute(query.order_by(*NEWEST_FIRST).limit(1)).scalars().first()


def _ranked(partition_by, wine_ids: Iterable[int] | None):
    rank = func.row_number().over(partition_by=partition_by, order_by=NEWEST_FIRST)
    ranked = select(PriceSnapshot.id.label("sid"), rank.label("rn"))
    if wine_ids is not None:
        ranked = ranked.where(PriceSnapshot.wine_id.in_(list(wine_ids)))
    return ranked.subquery()


def latest_snapshot_map(
    db: Session, wine_ids: Iterable[int] | None = None, per_key: int = 1
) -> dict[PriceKey, list[PriceSnapshot]]:
    """
    Newest `per_key` snapshots of every (wine_id, vintage), newest first,
    in a single query. Equal timestamps fall back to the higher row id.
    """
    ranked = _ranked((PriceSnapshot.wine_id, PriceSnapshot.vintage), wine_ids)
    query = (
        select(PriceSnapshot)
        .join(ranked, ranked.c.sid == PriceSnapshot.id)
        .where(ranked.c.rn <= per_key)
        .order_by(PriceSnapshot.wine_id, PriceSnapshot.vintage, ranked.c.rn)
    )

    out: dict[PriceKey, list[PriceSnapshot]] = {}
    for snap in db.execute(query).scalars().all():
        out.setdefault((snap.wine_id, snap.vintage), []).append(snap)
    return out


def latest_price_map(
    db: Session, wine_ids: Iterable[int] | None = None
) -> dict[PriceKey, float | None]:
    return {
        key: snaps[0].avg_price
        for key, snaps in latest_snapshot_map(db, wine_ids).items()
    }


def latest_by_wine(
    db: Session, wine_ids: Iterable[int] | None = None
) -> dict[int, PriceSnapshot]:
    """Most recent snapshot per wine regardless of vintage."""
    ranked = _ranked(PriceSnapshot.wine_id, wine_ids)
    query = (
        select(PriceSnapshot)
        .join(ranked, ranked.c.sid == PriceSnapshot.id)
        .where(ranked.c.rn == 1)
    )
    return {snap.wine_id: snap for snap in db.execute(query).scalars().all()}


def list_all_snapshots(db: Session) -> list[PriceSnapshot]:
    query = select(PriceSnapshot).order_by(
        PriceSnapshot.fetched_at.asc(), PriceSnapshot.id.asc()
    )
    return list(db.execute(query).scalars().all())


def insert_price_snapshot(
    db: Session,
    wine_id: int,
    vintage: int,
    price: WinePrice,
    fetched_at: datetime | None = None,
) -> PriceSnapshot:
    snapshot = PriceSnapshot(
        wine_id=wine_id,
        vintage=vintage,
        avg_price=price.avg_price,
        min_price=price.min_price,
        max_price=price.max_price,
        currency=price.currency,
        source=price.source,
        fetched_at=fetched_at or datetime.now(timezone.utc),
    )
    db.add(snapshot)
    db.flush()
    return snapshot


def delete_all_price_snapshots(db: Session) -> int:
    result = db.execute(delete(PriceSnapshot))
    return result.rowcount or 0


def default_vintage(now: datetime | None = None) -> int:
    now = now or datetime.now(timezone.utc)
    return now.year - 3


def is_fresh(snapshot: PriceSnapshot, now: datetime | None = None) -> bool:
    now = now or datetime.now(timezone.utc)
    age = now - ensure_utc(snapshot.fetched_at)
    return age < timedelta(hours=settings.PRICE_CACHE_HOURS)


async def lookup_price(
    db: Session,
    wine: Wine,
    source: PriceSource,
    vintage: int | None = None,
    refresh: bool = False,
) -> PriceSnapshot:
    """
    Latest price for a wine, served from the snapshot table while it is
    younger than the cache window, otherwise fetched and appended.
    """
    if not refresh:
        cached = latest_snapshot(db, wine.id, vintage)
        if cached is not None and is_fresh(cached):
            logger.info("prices.cache_hit", wine_id=wine.id, vintage=vintage)
            return cached

    try:
        price = await source.fetch(wine.producer, wine.wine_name, vintage)
    except Exception:
        # a broken source means no data, not a failed request
        logger.exception("prices.source_failed", wine_id=wine.id, vintage=vintage)
        price = WinePrice.empty(source.name)

    snapshot = insert_price_snapshot(
        db,
        wine_id=wine.id,
        vintage=vintage or default_vintage(),
        price=price,
    )
    logger.info(
        "prices.fetched",
        wine_id=wine.id,
        vintage=snapshot.vintage,
        avg_price=price.avg_price,
        source=price.source,
    )
    return snapshot
