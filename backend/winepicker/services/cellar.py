from __future__ import annotations

import csv
import io
from datetime import date
from typing import Mapping, Sequence

from sqlalchemy import delete, select
from sqlalchemy.orm import Session, joinedload

from winepicker.db.models.cellar_item import CellarItem
from winepicker.services.portfolio import PriceKey

EXPORT_COLUMNS = [
    "Producer",
    "Wine",
    "Appellation",
    "Classification",
    "Region",
    "Color",
    "Vintage",
    "Quantity",
    "Purchase Price",
    "Purchase Date",
    "Current Price",
    "Status",
    "Rating",
    "Tasting Notes",
    "Notes",
]

EDITABLE_FIELDS = (
    "vintage",
    "purchase_price",
    "purchase_date",
    "quantity",
    "notes",
    "status",
    "rating",
    "tasting_notes",
)
REQUIRED_FIELDS = ("vintage", "quantity", "status")


def list_cellar_items(db: Session, status: str | None = None) -> list[CellarItem]:
    query = select(CellarItem).options(joinedload(CellarItem.wine))
    if status:
        query = query.where(CellarItem.status == status)
    return list(db.execute(query.order_by(CellarItem.id)).scalars().all())


def get_cellar_item(db: Session, item_id: int) -> CellarItem | None:
    query = (
        select(CellarItem)
        .options(joinedload(CellarItem.wine))
        .where(CellarItem.id == item_id)
    )
    return db.execute(query).scalars().first()


def add_cellar_item(
    db: Session,
    wine_id: int,
    vintage: int,
    purchase_price: float | None = None,
    purchase_date: str | None = None,
    quantity: int | None = None,
    notes: str | None = None,
) -> CellarItem:
    item = CellarItem(
        wine_id=wine_id,
        vintage=vintage,
        purchase_price=purchase_price or None,
        purchase_date=purchase_date or date.today().isoformat(),
        quantity=quantity or 1,
        notes=notes or None,
        status="in_cellar",
    )
    db.add(item)
    db.flush()
    return item


def update_cellar_item(db: Session, item: CellarItem, changes: dict) -> CellarItem:
    for field, value in changes.items():
        if field not in EDITABLE_FIELDS:
            continue
        if value is None and field in REQUIRED_FIELDS:
            continue
        setattr(item, field, value)
    db.flush()
    return item


def delete_all_cellar_items(db: Session) -> int:
    result = db.execute(delete(CellarItem))
    return result.rowcount or 0


def _cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def export_csv(
    items: Sequence[CellarItem], latest_prices: Mapping[PriceKey, float | None]
) -> str:
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(EXPORT_COLUMNS)

    for item in items:
        wine = item.wine
        writer.writerow(
            [
                wine.producer,
                wine.wine_name,
                wine.appellation,
                wine.classification,
                wine.region,
                wine.color,
                item.vintage,
                item.quantity,
                _cell(item.purchase_price),
                _cell(item.purchase_date),
                _cell(latest_prices.get((item.wine_id, item.vintage))),
                item.status,
                _cell(item.rating),
                _cell(item.tasting_notes),
                _cell(item.notes),
            ]
        )

    return output.getvalue()
