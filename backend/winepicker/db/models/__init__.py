from winepicker.db.base import Base
from winepicker.db.session import engine, SessionLocal, get_db
from winepicker.db.models.wine import Wine
from winepicker.db.models.price_snapshot import PriceSnapshot
from winepicker.db.models.cellar_item import CellarItem

__all__ = [
    "Base",
    "Wine",
    "PriceSnapshot",
    "CellarItem",
    "engine",
    "SessionLocal",
    "get_db",
]
