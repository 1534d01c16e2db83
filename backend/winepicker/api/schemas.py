from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

Classification = Literal["Grand Cru", "Premier Cru", "Village", "Regional"]
CellarStatus = Literal["in_cellar", "consumed", "sold"]


class WineOut(BaseModel):
    id: int
    producer: str
    wine_name: str
    appellation: str
    classification: str
    region: str
    commune: str
    vineyard: Optional[str] = None
    color: str

    class Config:
        from_attributes = True


class PriceSnapshotOut(BaseModel):
    id: int
    wine_id: int
    vintage: int
    avg_price: Optional[float] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    currency: str
    source: str
    fetched_at: datetime

    class Config:
        from_attributes = True


class DrinkWindowOut(BaseModel):
    status: Literal["too_young", "approaching", "ready", "peak", "past_peak"]
    label: str
    ready_start: int
    ready_end: int
    peak_start: int
    peak_end: int
    current_age: int

    class Config:
        from_attributes = True


class WineWithPriceOut(WineOut):
    latest_price: Optional[PriceSnapshotOut] = None


class VintagePriceOut(BaseModel):
    vintage: int
    latest_price: PriceSnapshotOut
    drink_window: Optional[DrinkWindowOut] = None


class WineDetailOut(WineWithPriceOut):
    vintages: list[VintagePriceOut] = []


class CompareWineOut(WineWithPriceOut):
    prices_by_vintage: dict[int, PriceSnapshotOut] = {}


# -------------------------
# Cellar
# -------------------------


class CellarItemCreate(BaseModel):
    wine_id: int
    vintage: int = Field(..., ge=1)
    purchase_price: float | None = Field(default=None, ge=0)
    purchase_date: str | None = None
    quantity: int | None = Field(default=None, ge=0)
    notes: str | None = None


class CellarItemUpdate(BaseModel):
    vintage: int | None = Field(default=None, ge=1)
    purchase_price: float | None = Field(default=None, ge=0)
    purchase_date: str | None = None
    quantity: int | None = Field(default=None, ge=0)
    notes: str | None = None
    status: CellarStatus | None = None
    rating: int | None = Field(default=None, ge=1, le=100)
    tasting_notes: str | None = None


class CellarItemOut(BaseModel):
    id: int
    wine_id: int
    vintage: int
    purchase_price: Optional[float] = None
    purchase_date: Optional[str] = None
    quantity: int
    notes: Optional[str] = None
    status: str
    rating: Optional[int] = None
    tasting_notes: Optional[str] = None

    class Config:
        from_attributes = True


class EnrichedCellarItemOut(CellarItemOut):
    wine: WineOut
    current_price: Optional[float] = None
    gain_loss: Optional[float] = None
    gain_loss_percent: Optional[float] = None
    drink_window: Optional[DrinkWindowOut] = None


class PortfolioSummaryOut(BaseModel):
    total_bottles: int
    total_purchase_value: float
    total_current_value: float
    total_gain_loss: float
    total_gain_loss_percent: float
    wine_count: int

    class Config:
        from_attributes = True


class CellarListOut(BaseModel):
    items: list[EnrichedCellarItemOut]
    summary: PortfolioSummaryOut


class BreakdownEntry(BaseModel):
    name: str
    value: int


class ValuePointOut(BaseModel):
    date: str
    value: int


class CellarStatsOut(BaseModel):
    classification_breakdown: list[BreakdownEntry]
    producer_breakdown: list[BreakdownEntry]
    appellation_breakdown: list[BreakdownEntry]
    value_over_time: list[ValuePointOut]


class PriceAlertOut(BaseModel):
    wine_id: int
    wine_name: str
    producer: str
    vintage: int
    previous_price: float
    current_price: float
    change_percent: float

    class Config:
        from_attributes = True


# -------------------------
# Scan
# -------------------------


class LabelReadOut(BaseModel):
    producer: Optional[str] = None
    wine_name: Optional[str] = None
    vintage: Optional[int] = None
    appellation: Optional[str] = None
    classification: Optional[str] = None
    confidence: float = 0.0
    raw_text: str = ""

    class Config:
        from_attributes = True


class ScanOut(BaseModel):
    label: LabelReadOut
    matches: list[WineWithPriceOut]
