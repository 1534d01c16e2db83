import structlog
from sqlalchemy.orm import Session

from winepicker.db.models.wine import Wine
from winepicker.services.cellar import list_cellar_items
from winepicker.services.prices import insert_price_snapshot
from winepicker.sources.base import PriceSource

logger = structlog.get_logger(__name__)


async def refresh_one(db: Session, source: PriceSource, wine: Wine, vintage: int):
    price = await source.fetch(wine.producer, wine.wine_name, vintage)
    snapshot = insert_price_snapshot(db, wine_id=wine.id, vintage=vintage, price=price)
    db.commit()
    return snapshot


async def run_refresh_cycle(db: Session, source: PriceSource) -> int:
    """Append a fresh snapshot for every (wine, vintage) still in the cellar."""
    held = {}
    for item in list_cellar_items(db, status="in_cellar"):
        held.setdefault((item.wine_id, item.vintage), item.wine)

    refreshed = 0
    for (wine_id, vintage), wine in held.items():
        try:
            await refresh_one(db, source, wine, vintage)
            refreshed += 1
        except Exception:
            # keep cycle alive
            db.rollback()
            logger.exception("monitor.refresh_failed", wine_id=wine_id, vintage=vintage)

    logger.info("monitor.cycle_completed", held=len(held), refreshed=refreshed)
    return refreshed
