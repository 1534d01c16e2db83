from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from winepicker.api.deps import get_label_reader
from winepicker.api.schemas import LabelReadOut, ScanOut
from winepicker.api.wines import with_latest_price
from winepicker.db.session import get_db
from winepicker.services.catalog import match_label
from winepicker.services.label_reader import SUPPORTED_MEDIA_TYPES, LabelReader
from winepicker.services.prices import latest_by_wine

router = APIRouter(prefix="/api/scan", tags=["scan"])


@router.post("", response_model=ScanOut)
async def scan_label(
    image: UploadFile = File(...),
    db: Session = Depends(get_db),
    reader: LabelReader = Depends(get_label_reader),
):
    if image.content_type not in SUPPORTED_MEDIA_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported image type: {image.content_type}",
        )

    data = await image.read()
    if not data:
        raise HTTPException(status_code=400, detail="No image file provided")

    # the vision client is blocking
    result = await run_in_threadpool(reader.read, data, image.content_type)

    matches = match_label(
        db,
        producer=result.producer,
        wine_name=result.wine_name,
        appellation=result.appellation,
    )
    latest = latest_by_wine(db, [w.id for w in matches])

    return ScanOut(
        label=LabelReadOut.model_validate(result),
        matches=with_latest_price(matches, latest),
    )
