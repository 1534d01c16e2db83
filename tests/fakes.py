from datetime import datetime, timezone

from winepicker.services.label_reader import LabelReadResult
from winepicker.sources.base import PriceSource, WinePrice


class FakePriceSource(PriceSource):
    name = "fake"

    def __init__(self, price: WinePrice | None = None):
        self.price = price or WinePrice(avg_price=250.0, min_price=200.0, max_price=300.0)
        self.calls = []

    async def fetch(self, producer, wine_name, vintage=None):
        self.calls.append((producer, wine_name, vintage))
        return self.price


class FakeLabelReader:
    def __init__(self, result: LabelReadResult | None = None):
        self.result = result or LabelReadResult()
        self.calls = []

    def read(self, image, media_type="image/jpeg"):
        self.calls.append((len(image), media_type))
        return self.result


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)
