import math
import re

DOLLAR_PATTERN = re.compile(r"\$[\d,]+")

MIN_PLAUSIBLE_PRICE = 5
MAX_PLAUSIBLE_PRICE = 100000


def round_half_up(value: float) -> int:
    # halves always go up, including negatives (-2.5 -> -2)
    return int(math.floor(value + 0.5))


def extract_dollar_prices(text: str | None) -> list[float]:
    """
    Pull every "$1,234" style amount out of a text fragment.
    Amounts outside the plausible bottle price range are dropped.
    """
    if not text:
        return []

    prices = []
    for match in DOLLAR_PATTERN.findall(text):
        digits = match.replace("$", "").replace(",", "")
        if not digits:
            continue
        price = float(digits)
        if MIN_PLAUSIBLE_PRICE < price < MAX_PLAUSIBLE_PRICE:
            prices.append(price)
    return prices


def summarize_prices(
    prices: list[float],
) -> tuple[float | None, float | None, float | None]:
    """Returns (avg, min, max); avg is rounded to whole dollars."""
    if not prices:
        return None, None, None

    ordered = sorted(prices)
    avg = round_half_up(sum(ordered) / len(ordered))
    return float(avg), ordered[0], ordered[-1]
