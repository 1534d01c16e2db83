from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence

from winepicker.db.models.cellar_item import CellarItem

PriceKey = tuple[int, int]

TOP_BREAKDOWN_ENTRIES = 10


@dataclass
class EnrichedItem:
    item: CellarItem
    current_price: float | None
    current_value: float
    gain_loss: float | None
    gain_loss_percent: float | None


@dataclass
class PortfolioSummary:
    total_bottles: int
    total_purchase_value: float
    total_current_value: float
    total_gain_loss: float
    total_gain_loss_percent: float
    wine_count: int


def price_key(item) -> PriceKey:
    return (item.wine_id, item.vintage)


def enrich_item(item: CellarItem, current_price: float | None) -> EnrichedItem:
    # a zero average is as good as no quote
    current_price = current_price or None
    purchase_price = item.purchase_price

    if current_price is not None:
        current_value = current_price
    elif purchase_price is not None:
        current_value = purchase_price
    else:
        current_value = 0.0

    gain_loss = None
    if current_price and purchase_price:
        gain_loss = current_price - purchase_price

    gain_loss_percent = None
    if gain_loss is not None and purchase_price:
        gain_loss_percent = gain_loss / purchase_price * 100

    return EnrichedItem(
        item=item,
        current_price=current_price,
        current_value=current_value,
        gain_loss=gain_loss,
        gain_loss_percent=gain_loss_percent,
    )


def enrich_items(
    items: Iterable[CellarItem], latest_prices: Mapping[PriceKey, float | None]
) -> list[EnrichedItem]:
    return [enrich_item(item, latest_prices.get(price_key(item))) for item in items]


def compute_portfolio_summary(
    items: Iterable[CellarItem], latest_prices: Mapping[PriceKey, float | None]
) -> PortfolioSummary:
    return summarize(enrich_items(items, latest_prices))


def summarize(enriched: Sequence[EnrichedItem]) -> PortfolioSummary:
    total_bottles = 0
    total_purchase = 0.0
    total_current = 0.0

    for entry in enriched:
        quantity = entry.item.quantity or 0
        total_bottles += quantity
        total_purchase += (entry.item.purchase_price or 0) * quantity
        total_current += entry.current_value * quantity

    total_gain_loss = total_current - total_purchase
    total_gain_loss_percent = (
        total_gain_loss / total_purchase * 100 if total_purchase > 0 else 0.0
    )

    return PortfolioSummary(
        total_bottles=total_bottles,
        total_purchase_value=total_purchase,
        total_current_value=total_current,
        total_gain_loss=total_gain_loss,
        total_gain_loss_percent=total_gain_loss_percent,
        wine_count=len(enriched),
    )


def _breakdown(
    items: Sequence[CellarItem], attr: str, limit: int | None = None
) -> list[dict]:
    totals: Counter[str] = Counter()
    for item in items:
        totals[getattr(item.wine, attr)] += item.quantity or 0

    # sorted() is stable, so equal counts keep first-seen order
    ranked = sorted(totals.items(), key=lambda kv: kv[1], reverse=True)
    if limit is not None:
        ranked = ranked[:limit]
    return [{"name": name, "value": value} for name, value in ranked]


def compute_breakdowns(items: Iterable[CellarItem]) -> dict[str, list[dict]]:
    items = list(items)
    return {
        "classification": _breakdown(items, "classification"),
        "producer": _breakdown(items, "producer", TOP_BREAKDOWN_ENTRIES),
        "appellation": _breakdown(items, "appellation", TOP_BREAKDOWN_ENTRIES),
    }
