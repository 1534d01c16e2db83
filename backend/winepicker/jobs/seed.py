"""
Reset the database to the bundled Burgundy catalog with simulated prices.

    python -m winepicker.jobs.seed [--data path/to/catalog.json]

Destructive: cellar items, price snapshots and wines are deleted first.
Do not run against a database that is serving traffic.
"""

import argparse
import json
from pathlib import Path

import structlog
from sqlalchemy.orm import Session

from winepicker.core.config import settings
from winepicker.core.logger import setup_logging
from winepicker.db.base import Base
from winepicker.db.models.wine import Wine
from winepicker.db.session import SessionLocal, engine
from winepicker.services.catalog import delete_all_wines
from winepicker.services.cellar import delete_all_cellar_items
from winepicker.services.price_simulation import BasePrice, insert_simulated_history
from winepicker.services.prices import delete_all_price_snapshots

logger = structlog.get_logger(__name__)


def load_catalog(path: str | Path) -> list[dict]:
    with open(path, encoding="utf-8") as fh:
        return json.load(fh)


def seed_database(db: Session, catalog: list[dict]) -> tuple[int, int]:
    """Wipe and reload; returns (wine count, snapshot count)."""
    delete_all_cellar_items(db)
    delete_all_price_snapshots(db)
    delete_all_wines(db)

    base_prices: list[BasePrice] = []
    wine_count = 0

    for entry in catalog:
        for spec in entry["wines"]:
            wine = Wine(
                producer=entry["producer"],
                wine_name=spec["wine_name"],
                appellation=spec["appellation"],
                classification=spec["classification"],
                region=spec["region"],
                commune=spec["commune"],
                vineyard=spec.get("vineyard"),
                color=spec["color"],
            )
            db.add(wine)
            db.flush()
            wine_count += 1

            if spec.get("avg_price"):
                base_prices.append(
                    BasePrice(
                        wine_id=wine.id,
                        avg_price=spec["avg_price"],
                        min_price=spec.get("min_price"),
                        max_price=spec.get("max_price"),
                    )
                )

    snapshot_count = insert_simulated_history(db, base_prices)
    db.commit()

    logger.info(
        "seed.completed",
        producers=len(catalog),
        wines=wine_count,
        snapshots=snapshot_count,
    )
    return wine_count, snapshot_count


def main(argv=None):
    parser = argparse.ArgumentParser(description="Seed the WinePicker database")
    parser.add_argument("--data", default=settings.SEED_DATA_PATH)
    args = parser.parse_args(argv)

    setup_logging()
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        seed_database(db, load_catalog(args.data))
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
