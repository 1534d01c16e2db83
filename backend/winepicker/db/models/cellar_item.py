from sqlalchemy import CheckConstraint, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from winepicker.db.base import Base

CELLAR_STATUSES = ("in_cellar", "consumed", "sold")


class CellarItem(Base):
    __tablename__ = "cellar_items"
    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_cellar_items_quantity"),
        CheckConstraint(
            "rating IS NULL OR (rating >= 1 AND rating <= 100)",
            name="ck_cellar_items_rating",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    wine_id: Mapped[int] = mapped_column(
        ForeignKey("wines.id", ondelete="CASCADE"), nullable=False, index=True
    )
    vintage: Mapped[int] = mapped_column(Integer, nullable=False)

    purchase_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    purchase_date: Mapped[str | None] = mapped_column(
        String(10), nullable=True
    )  # YYYY-MM-DD
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default="in_cellar", index=True
    )  # in_cellar|consumed|sold
    rating: Mapped[int | None] = mapped_column(Integer, nullable=True)  # 1-100
    tasting_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    wine = relationship("Wine", back_populates="cellar_items")
