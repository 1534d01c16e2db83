from datetime import datetime, timezone

from sqlalchemy import DateTime, Float, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from winepicker.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PriceSnapshot(Base):
    __tablename__ = "price_snapshots"

    id: Mapped[int] = mapped_column(primary_key=True)

    wine_id: Mapped[int] = mapped_column(
        ForeignKey("wines.id", ondelete="CASCADE"), nullable=False, index=True
    )
    vintage: Mapped[int] = mapped_column(Integer, nullable=False)

    avg_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    min_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    max_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    currency: Mapped[str] = mapped_column(String(8), nullable=False, default="USD")

    source: Mapped[str] = mapped_column(
        String(32), nullable=False, default="wine-searcher"
    )
    fetched_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )

    wine = relationship("Wine", back_populates="snapshots")


Index(
    "ix_price_snapshots_key_fetched",
    PriceSnapshot.wine_id,
    PriceSnapshot.vintage,
    PriceSnapshot.fetched_at.desc(),
)
