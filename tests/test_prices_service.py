import asyncio
from datetime import datetime, timedelta, timezone

from sqlalchemy import func, select

from tests.fakes import FakePriceSource, utc
from winepicker.db.models import PriceSnapshot
from winepicker.services.prices import (
    default_vintage,
    is_fresh,
    latest_by_wine,
    latest_price_map,
    latest_snapshot_map,
    list_price_snapshots,
    lookup_price,
)
from winepicker.sources.base import WinePrice


def _count(db):
    return db.execute(select(func.count(PriceSnapshot.id))).scalar_one()


class TestLatestSnapshots:
    def test_newest_per_wine_and_vintage(self, db, make_wine, make_snapshot):
        wine = make_wine()
        make_snapshot(wine, 2015, 100.0, utc(2025, 1, 1))
        make_snapshot(wine, 2015, 120.0, utc(2025, 6, 1))
        make_snapshot(wine, 2016, 90.0, utc(2025, 3, 1))

        prices = latest_price_map(db, [wine.id])

        assert prices == {(wine.id, 2015): 120.0, (wine.id, 2016): 90.0}

    def test_equal_timestamps_prefer_the_later_row(self, db, make_wine, make_snapshot):
        wine = make_wine()
        ts = utc(2025, 1, 1, 12)
        make_snapshot(wine, 2015, 100.0, ts)
        later = make_snapshot(wine, 2015, 101.0, ts)

        latest = latest_snapshot_map(db, [wine.id])

        assert latest[(wine.id, 2015)][0].id == later.id

    def test_per_key_returns_newest_first(self, db, make_wine, make_snapshot):
        wine = make_wine()
        make_snapshot(wine, 2015, 100.0, utc(2025, 1, 1))
        make_snapshot(wine, 2015, 110.0, utc(2025, 2, 1))
        make_snapshot(wine, 2015, 130.0, utc(2025, 3, 1))

        recent = latest_snapshot_map(db, [wine.id], per_key=2)

        assert [s.avg_price for s in recent[(wine.id, 2015)]] == [130.0, 110.0]

    def test_restricted_to_requested_wines(self, db, make_wine, make_snapshot):
        first = make_wine()
        second = make_wine(wine_name="Bonnes-Mares")
        make_snapshot(first, 2015, 100.0)
        make_snapshot(second, 2015, 500.0)

        assert set(latest_price_map(db, [second.id])) == {(second.id, 2015)}
        assert len(latest_price_map(db)) == 2

    def test_latest_by_wine_ignores_vintage(self, db, make_wine, make_snapshot):
        wine = make_wine()
        make_snapshot(wine, 2015, 100.0, utc(2025, 1, 1))
        newest = make_snapshot(wine, 2010, 300.0, utc(2025, 2, 1))

        assert latest_by_wine(db, [wine.id])[wine.id].id == newest.id

    def test_history_is_newest_first(self, db, make_wine, make_snapshot):
        wine = make_wine()
        make_snapshot(wine, 2015, 100.0, utc(2025, 1, 1))
        make_snapshot(wine, 2015, 110.0, utc(2025, 2, 1))
        make_snapshot(wine, 2016, 90.0, utc(2025, 3, 1))

        assert [s.avg_price for s in list_price_snapshots(db, wine.id)] == [90.0, 110.0, 100.0]
        assert [s.avg_price for s in list_price_snapshots(db, wine.id, 2015)] == [110.0, 100.0]


class TestCacheWindow:
    def test_fresh_inside_the_window(self):
        now = utc(2026, 2, 25, 12)
        snap = PriceSnapshot(fetched_at=now - timedelta(hours=23))
        assert is_fresh(snap, now=now)

    def test_stale_after_the_window(self):
        now = utc(2026, 2, 25, 12)
        snap = PriceSnapshot(fetched_at=now - timedelta(hours=25))
        assert not is_fresh(snap, now=now)

    def test_naive_timestamps_are_utc(self):
        now = utc(2026, 2, 25, 12)
        snap = PriceSnapshot(fetched_at=datetime(2026, 2, 25, 11))
        assert is_fresh(snap, now=now)

    def test_default_vintage_is_three_years_back(self):
        assert default_vintage(utc(2026, 2, 25)) == 2023


class TestLookupPrice:
    def test_serves_a_fresh_snapshot_from_the_table(self, db, make_wine, make_snapshot):
        wine = make_wine()
        cached = make_snapshot(wine, 2019, 180.0)
        source = FakePriceSource()

        result = asyncio.run(lookup_price(db, wine, source, vintage=2019))

        assert result.id == cached.id
        assert source.calls == []
        assert _count(db) == 1

    def test_fetches_when_stale(self, db, make_wine, make_snapshot):
        wine = make_wine()
        make_snapshot(wine, 2019, 180.0, datetime.now(timezone.utc) - timedelta(days=2))
        source = FakePriceSource(WinePrice(avg_price=210.0, min_price=190.0, max_price=240.0))

        result = asyncio.run(lookup_price(db, wine, source, vintage=2019))
        db.commit()

        assert source.calls == [(wine.producer, wine.wine_name, 2019)]
        assert result.avg_price == 210.0
        assert result.vintage == 2019
        assert _count(db) == 2

    def test_refresh_skips_the_cache(self, db, make_wine, make_snapshot):
        wine = make_wine()
        make_snapshot(wine, 2019, 180.0)
        source = FakePriceSource()

        asyncio.run(lookup_price(db, wine, source, vintage=2019, refresh=True))

        assert len(source.calls) == 1
        assert _count(db) == 2

    def test_unknown_vintage_is_stored_under_the_default(self, db, make_wine):
        wine = make_wine()
        source = FakePriceSource()

        result = asyncio.run(lookup_price(db, wine, source))

        assert source.calls == [(wine.producer, wine.wine_name, None)]
        assert result.vintage == default_vintage()

    def test_failed_scrape_is_recorded_without_prices(self, db, make_wine):
        wine = make_wine()
        source = FakePriceSource(WinePrice.empty())

        result = asyncio.run(lookup_price(db, wine, source, vintage=2019))

        assert result.avg_price is None
        assert result.source == "wine-searcher"

    def test_source_exception_is_recorded_without_prices(self, db, make_wine):
        wine = make_wine()
        source = FakePriceSource()

        async def broken(*args, **kwargs):
            raise ValueError("unexpected markup")

        source.fetch = broken

        result = asyncio.run(lookup_price(db, wine, source, vintage=2019))
        db.commit()

        assert result.avg_price is None
        assert result.max_price is None
        assert result.source == "fake"
        assert _count(db) == 1
