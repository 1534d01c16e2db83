from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone

from winepicker.core.pricing import round_half_up

MIN_VINTAGE = 1900
APPROACHING_YEARS = 2

# (ready_start, ready_end, peak_start, peak_end) in years after vintage, red wines
WINDOW_OFFSETS = {
    "Grand Cru": (10, 15, 15, 30),
    "Premier Cru": (7, 12, 12, 20),
    "Village": (4, 7, 7, 12),
    "Regional": (2, 4, 4, 8),
}

STATUS_LABELS = {
    "too_young": "Too Young",
    "approaching": "Approaching",
    "ready": "Ready",
    "peak": "Peak",
    "past_peak": "Past Peak",
}


@dataclass
class DrinkWindow:
    status: str
    label: str
    ready_start: int
    ready_end: int
    peak_start: int
    peak_end: int
    current_age: int

    def to_dict(self) -> dict:
        return asdict(self)


def window_offsets(classification: str | None, color: str | None) -> tuple[int, ...]:
    offsets = WINDOW_OFFSETS.get(classification, WINDOW_OFFSETS["Regional"])
    if color == "white":
        # whites drink roughly twice as fast
        offsets = tuple(round_half_up(o * 0.5) for o in offsets)
    return offsets


def _status_for_age(age: int, ready_start: int, peak_start: int, peak_end: int) -> str:
    if age < ready_start:
        status = "too_young"
    elif age < peak_start:
        status = "ready"
    elif age <= peak_end:
        status = "peak"
    else:
        status = "past_peak"

    if ready_start - APPROACHING_YEARS <= age < ready_start:
        status = "approaching"

    return status


def get_drink_window(
    classification: str | None,
    vintage: int | None,
    color: str | None,
    current_year: int | None = None,
) -> DrinkWindow | None:
    """
    Estimate the drinking window of a Burgundy bottle.

    Offsets depend on classification (unknown values fall back to Regional)
    and are halved for whites. Returns None for missing or pre-1900 vintages.
    """
    if not vintage or vintage < MIN_VINTAGE:
        return None

    if current_year is None:
        current_year = datetime.now(timezone.utc).year

    ready_start, ready_end, peak_start, peak_end = window_offsets(classification, color)
    age = current_year - vintage
    status = _status_for_age(age, ready_start, peak_start, peak_end)

    return DrinkWindow(
        status=status,
        label=STATUS_LABELS[status],
        ready_start=vintage + ready_start,
        ready_end=vintage + ready_end,
        peak_start=vintage + peak_start,
        peak_end=vintage + peak_end,
        current_age=age,
    )
