import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tests.fakes import FakeLabelReader, FakePriceSource
from winepicker.api.deps import get_label_reader, get_price_source
from winepicker.db.models import Base, CellarItem, PriceSnapshot, Wine
from winepicker.db.session import get_db
from winepicker.main import app


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def price_source():
    return FakePriceSource()


@pytest.fixture
def label_reader():
    return FakeLabelReader()


@pytest.fixture
def client(session_factory, price_source, label_reader):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_price_source] = lambda: price_source
    app.dependency_overrides[get_label_reader] = lambda: label_reader
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_wine(db):
    def _make(**overrides):
        fields = {
            "producer": "Domaine Roumier",
            "wine_name": "Chambolle-Musigny",
            "appellation": "Chambolle-Musigny",
            "classification": "Village",
            "region": "Côte de Nuits",
            "commune": "Chambolle-Musigny",
            "vineyard": None,
            "color": "red",
        }
        fields.update(overrides)
        wine = Wine(**fields)
        db.add(wine)
        db.commit()
        return wine

    return _make


@pytest.fixture
def make_snapshot(db):
    def _make(wine, vintage, avg_price, fetched_at=None, **overrides):
        snapshot = PriceSnapshot(
            wine_id=wine.id,
            vintage=vintage,
            avg_price=avg_price,
            min_price=overrides.pop("min_price", None),
            max_price=overrides.pop("max_price", None),
            currency="USD",
            source=overrides.pop("source", "wine-searcher"),
            fetched_at=fetched_at or datetime.now(timezone.utc),
        )
        db.add(snapshot)
        db.commit()
        return snapshot

    return _make


@pytest.fixture
def make_item(db):
    def _make(wine, vintage, **overrides):
        fields = {
            "purchase_price": None,
            "purchase_date": "2024-05-01",
            "quantity": 1,
            "status": "in_cellar",
        }
        fields.update(overrides)
        item = CellarItem(wine_id=wine.id, vintage=vintage, **fields)
        db.add(item)
        db.commit()
        return item

    return _make


