from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from winepicker.db.base import Base

CLASSIFICATIONS = ("Grand Cru", "Premier Cru", "Village", "Regional")
COLORS = ("red", "white")


class Wine(Base):
    __tablename__ = "wines"

    id: Mapped[int] = mapped_column(primary_key=True)

    producer: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    wine_name: Mapped[str] = mapped_column(Text, nullable=False)
    appellation: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    classification: Mapped[str] = mapped_column(
        String(32), nullable=False
    )  # Grand Cru|Premier Cru|Village|Regional
    region: Mapped[str] = mapped_column(
        String(128), nullable=False
    )  # Côte de Nuits, Côte de Beaune, Chablis...
    commune: Mapped[str] = mapped_column(String(128), index=True, nullable=False)
    vineyard: Mapped[str | None] = mapped_column(String(255), nullable=True)
    color: Mapped[str] = mapped_column(String(8), nullable=False)  # red|white

    snapshots = relationship(
        "PriceSnapshot", back_populates="wine", cascade="all, delete-orphan"
    )
    cellar_items = relationship(
        "CellarItem", back_populates="wine", cascade="all, delete-orphan"
    )
