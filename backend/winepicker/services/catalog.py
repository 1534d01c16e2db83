from __future__ import annotations

from sqlalchemy import delete, or_, select
from sqlalchemy.orm import Session

from winepicker.db.models.wine import Wine

SIMILAR_WINES_LIMIT = 6
LABEL_MATCH_LIMIT = 10


def list_wines(
    db: Session,
    q: str | None = None,
    classification: str | None = None,
    color: str | None = None,
    producer: str | None = None,
) -> list[Wine]:
    query = select(Wine)

    if q:
        term = f"%{q.strip()}%"
        query = query.where(
            or_(
                Wine.producer.ilike(term),
                Wine.wine_name.ilike(term),
                Wine.appellation.ilike(term),
                Wine.commune.ilike(term),
                Wine.vineyard.ilike(term),
            )
        )
    if classification:
        query = query.where(Wine.classification == classification)
    if color:
        query = query.where(Wine.color == color)
    if producer:
        query = query.where(Wine.producer == producer)

    return list(db.execute(query.order_by(Wine.id)).scalars().all())


def get_wines(db: Session, wine_ids: list[int]) -> list[Wine]:
    if not wine_ids:
        return []
    query = select(Wine).where(Wine.id.in_(wine_ids)).order_by(Wine.id)
    return list(db.execute(query).scalars().all())


def similar_wines(db: Session, wine: Wine, limit: int = SIMILAR_WINES_LIMIT) -> list[Wine]:
    query = (
        select(Wine)
        .where(
            Wine.id != wine.id,
            or_(Wine.appellation == wine.appellation, Wine.commune == wine.commune),
        )
        .order_by(Wine.id)
        .limit(limit)
    )
    return list(db.execute(query).scalars().all())


def match_label(
    db: Session,
    producer: str | None,
    wine_name: str | None,
    appellation: str | None = None,
    limit: int = LABEL_MATCH_LIMIT,
) -> list[Wine]:
    """
    Catalog wines matching what was read off a label, best match first.
    A wine scores one point per field (producer, wine name, appellation)
    that contains the label value.
    """
    fields = [
        (Wine.producer, producer),
        (Wine.wine_name, wine_name),
        (Wine.appellation, appellation),
    ]
    fields = [(column, value.strip()) for column, value in fields if value and value.strip()]
    if not fields:
        return []

    query = select(Wine).where(
        or_(*[column.ilike(f"%{value}%") for column, value in fields])
    )
    candidates = db.execute(query.order_by(Wine.id)).scalars().all()

    def score(wine: Wine) -> int:
        return sum(
            1
            for column, value in fields
            if value.lower() in (getattr(wine, column.key) or "").lower()
        )

    ranked = sorted(candidates, key=score, reverse=True)
    return ranked[:limit]


def delete_all_wines(db: Session) -> int:
    result = db.execute(delete(Wine))
    return result.rowcount or 0
