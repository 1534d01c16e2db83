from functools import lru_cache

from winepicker.services.label_reader import LabelReader
from winepicker.sources.base import PriceSource
from winepicker.sources.wine_searcher import WineSearcherSource


@lru_cache(maxsize=1)
def get_price_source() -> PriceSource:
    return WineSearcherSource()


@lru_cache(maxsize=1)
def get_label_reader() -> LabelReader:
    return LabelReader()
