from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from winepicker.api.deps import get_price_source
from winepicker.api.schemas import PriceSnapshotOut
from winepicker.db.models.wine import Wine
from winepicker.db.session import get_db
from winepicker.services.prices import list_price_snapshots, lookup_price
from winepicker.sources.base import PriceSource

router = APIRouter(prefix="/api/prices", tags=["prices"])


@router.get("", response_model=PriceSnapshotOut)
async def get_price(
    wine_id: int,
    vintage: int | None = None,
    refresh: bool = False,
    db: Session = Depends(get_db),
    source: PriceSource = Depends(get_price_source),
):
    wine = db.get(Wine, wine_id)
    if not wine:
        raise HTTPException(status_code=404, detail="Wine not found")

    try:
        snapshot = await lookup_price(db, wine, source, vintage=vintage, refresh=refresh)
        db.commit()
        db.refresh(snapshot)
        return snapshot
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Failed to load price: {str(e)}")


@router.get("/history", response_model=list[PriceSnapshotOut])
def get_price_history(
    wine_id: int,
    vintage: int | None = None,
    db: Session = Depends(get_db),
):
    if not db.get(Wine, wine_id):
        raise HTTPException(status_code=404, detail="Wine not found")
    return list_price_snapshots(db, wine_id, vintage)
