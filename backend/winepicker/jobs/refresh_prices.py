import asyncio

from winepicker.core.logger import setup_logging
from winepicker.db.session import SessionLocal
from winepicker.services.monitor import run_refresh_cycle
from winepicker.sources.wine_searcher import WineSearcherSource


def main():
    setup_logging()
    db = SessionLocal()
    try:
        asyncio.run(run_refresh_cycle(db, WineSearcherSource()))
    finally:
        db.close()


if __name__ == "__main__":
    main()
