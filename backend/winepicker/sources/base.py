from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class WinePrice:
    avg_price: float | None
    min_price: float | None
    max_price: float | None
    currency: str = "USD"
    source: str = "wine-searcher"

    @classmethod
    def empty(cls, source: str = "wine-searcher") -> "WinePrice":
        return cls(avg_price=None, min_price=None, max_price=None, source=source)


class PriceSource(ABC):
    name: str

    @abstractmethod
    async def fetch(
        self, producer: str, wine_name: str, vintage: int | None = None
    ) -> WinePrice: ...
