from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.responses import PlainTextResponse
from sqlalchemy.orm import Session

from winepicker.api.schemas import (
    CellarItemCreate,
    CellarItemOut,
    CellarItemUpdate,
    CellarListOut,
    CellarStatsOut,
    CellarStatus,
    EnrichedCellarItemOut,
    PortfolioSummaryOut,
    PriceAlertOut,
    WineOut,
)
from winepicker.db.models.wine import Wine
from winepicker.db.session import get_db
from winepicker.services.alerts import compute_alerts
from winepicker.services.cellar import (
    add_cellar_item,
    export_csv,
    get_cellar_item,
    list_cellar_items,
    update_cellar_item,
)
from winepicker.services.drink_window import get_drink_window
from winepicker.services.portfolio import compute_breakdowns, enrich_items, summarize
from winepicker.services.prices import (
    latest_price_map,
    latest_snapshot_map,
    list_all_snapshots,
)
from winepicker.services.valuation import compute_value_over_time, held_quantities

router = APIRouter(prefix="/api/cellar", tags=["cellar"])


def _wine_ids(items) -> list[int]:
    return sorted({item.wine_id for item in items})


@router.get("", response_model=CellarListOut)
def list_cellar(status: CellarStatus | None = None, db: Session = Depends(get_db)):
    items = list_cellar_items(db, status=status)
    latest = latest_price_map(db, _wine_ids(items))
    enriched = enrich_items(items, latest)

    out = []
    for entry in enriched:
        item = entry.item
        window = get_drink_window(item.wine.classification, item.vintage, item.wine.color)
        out.append(
            EnrichedCellarItemOut(
                **CellarItemOut.model_validate(item).model_dump(),
                wine=WineOut.model_validate(item.wine),
                current_price=entry.current_price,
                gain_loss=entry.gain_loss,
                gain_loss_percent=entry.gain_loss_percent,
                drink_window=window.to_dict() if window else None,
            )
        )

    return CellarListOut(
        items=out, summary=PortfolioSummaryOut.model_validate(summarize(enriched))
    )


@router.post("", response_model=CellarItemOut, status_code=201)
def add_to_cellar(payload: CellarItemCreate, db: Session = Depends(get_db)):
    if not db.get(Wine, payload.wine_id):
        raise HTTPException(status_code=404, detail="Wine not found")

    try:
        item = add_cellar_item(db, **payload.model_dump())
        db.commit()
        db.refresh(item)
        return item
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=500, detail=f"Failed to add cellar item: {str(e)}"
        )


@router.get("/stats", response_model=CellarStatsOut)
def cellar_stats(db: Session = Depends(get_db)):
    items = list_cellar_items(db)
    breakdowns = compute_breakdowns(items)

    holdings = held_quantities(i for i in items if i.status == "in_cellar")
    value_over_time = compute_value_over_time(list_all_snapshots(db), holdings)

    return CellarStatsOut(
        classification_breakdown=breakdowns["classification"],
        producer_breakdown=breakdowns["producer"],
        appellation_breakdown=breakdowns["appellation"],
        value_over_time=[p.to_dict() for p in value_over_time],
    )


@router.get("/alerts", response_model=list[PriceAlertOut])
def cellar_alerts(db: Session = Depends(get_db)):
    items = list_cellar_items(db, status="in_cellar")
    recent = latest_snapshot_map(db, _wine_ids(items), per_key=2)
    return [alert.to_dict() for alert in compute_alerts(items, recent)]


@router.get("/export")
def export_cellar(db: Session = Depends(get_db)):
    items = list_cellar_items(db)
    if not items:
        return PlainTextResponse("No data to export", status_code=404)

    latest = latest_price_map(db, _wine_ids(items))
    filename = f"winepicker-cellar-{date.today().isoformat()}.csv"
    return Response(
        content=export_csv(items, latest),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.put("/{item_id}", response_model=CellarItemOut)
def update_item(
    item_id: int, payload: CellarItemUpdate, db: Session = Depends(get_db)
):
    item = get_cellar_item(db, item_id)
    if not item:
        raise HTTPException(status_code=404, detail="Item not found")

    try:
        update_cellar_item(db, item, payload.model_dump(exclude_unset=True))
        db.commit()
        db.refresh(item)
        return item
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=500, detail=f"Failed to update cellar item: {str(e)}"
        )


@router.delete("/{item_id}")
def delete_item(item_id: int, db: Session = Depends(get_db)):
    item = get_cellar_item(db, item_id)
    if not item:
        raise HTTPException(status_code=404, detail="Item not found")

    try:
        db.delete(item)
        db.commit()
        return {"status": "success", "id": item_id}
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=500, detail=f"Failed to delete cellar item: {str(e)}"
        )
