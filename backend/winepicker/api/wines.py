from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from winepicker.api.schemas import (
    Classification,
    CompareWineOut,
    PriceSnapshotOut,
    VintagePriceOut,
    WineDetailOut,
    WineOut,
    WineWithPriceOut,
)
from winepicker.db.models.price_snapshot import PriceSnapshot
from winepicker.db.models.wine import Wine
from winepicker.db.session import get_db
from winepicker.services.catalog import get_wines, list_wines, similar_wines
from winepicker.services.drink_window import get_drink_window
from winepicker.services.prices import latest_by_wine, latest_snapshot_map

router = APIRouter(prefix="/api", tags=["wines"])


def with_latest_price(
    wines: list[Wine], latest: dict[int, PriceSnapshot]
) -> list[WineWithPriceOut]:
    out = []
    for wine in wines:
        snap = latest.get(wine.id)
        out.append(
            WineWithPriceOut(
                **WineOut.model_validate(wine).model_dump(),
                latest_price=PriceSnapshotOut.model_validate(snap) if snap else None,
            )
        )
    return out


def _get_wine_or_404(db: Session, wine_id: int) -> Wine:
    wine = db.get(Wine, wine_id)
    if not wine:
        raise HTTPException(status_code=404, detail="Wine not found")
    return wine


@router.get("/wines", response_model=list[WineWithPriceOut])
def search_wines(
    q: str | None = None,
    classification: Classification | None = None,
    color: str | None = Query(default=None, pattern="^(red|white)$"),
    producer: str | None = None,
    db: Session = Depends(get_db),
):
    wines = list_wines(
        db, q=q, classification=classification, color=color, producer=producer
    )
    latest = latest_by_wine(db, [w.id for w in wines])
    return with_latest_price(wines, latest)


@router.get("/wines/compare", response_model=list[CompareWineOut])
def compare_wines(ids: str = "", db: Session = Depends(get_db)):
    wine_ids = []
    for raw in ids.split(","):
        raw = raw.strip()
        if raw.isdigit() and int(raw) > 0:
            wine_ids.append(int(raw))
    if not wine_ids:
        return []

    wines = get_wines(db, wine_ids)
    latest = latest_by_wine(db, wine_ids)
    per_vintage = latest_snapshot_map(db, wine_ids)

    out = []
    for base in with_latest_price(wines, latest):
        prices_by_vintage = {
            vintage: PriceSnapshotOut.model_validate(snaps[0])
            for (wine_id, vintage), snaps in per_vintage.items()
            if wine_id == base.id
        }
        out.append(
            CompareWineOut(**base.model_dump(), prices_by_vintage=prices_by_vintage)
        )
    return out


@router.get("/wines/{wine_id}", response_model=WineDetailOut)
def get_wine_detail(wine_id: int, db: Session = Depends(get_db)):
    wine = _get_wine_or_404(db, wine_id)
    latest = latest_by_wine(db, [wine.id])
    per_vintage = latest_snapshot_map(db, [wine.id])

    vintages = []
    for (_, vintage), snaps in sorted(per_vintage.items(), key=lambda kv: kv[0][1]):
        window = get_drink_window(wine.classification, vintage, wine.color)
        vintages.append(
            VintagePriceOut(
                vintage=vintage,
                latest_price=PriceSnapshotOut.model_validate(snaps[0]),
                drink_window=window.to_dict() if window else None,
            )
        )

    base = with_latest_price([wine], latest)[0]
    return WineDetailOut(**base.model_dump(), vintages=vintages)


@router.get("/wines/{wine_id}/similar", response_model=list[WineWithPriceOut])
def get_similar_wines(wine_id: int, db: Session = Depends(get_db)):
    wine = _get_wine_or_404(db, wine_id)
    similar = similar_wines(db, wine)
    latest = latest_by_wine(db, [w.id for w in similar])
    return with_latest_price(similar, latest)


@router.get("/producers/{name}", response_model=list[WineWithPriceOut])
def get_producer_wines(name: str, db: Session = Depends(get_db)):
    wines = list_wines(db, producer=name)
    if not wines:
        # loose match when the name is not an exact producer
        wines = list_wines(db, q=name)
    latest = latest_by_wine(db, [w.id for w in wines])
    return with_latest_price(wines, latest)
