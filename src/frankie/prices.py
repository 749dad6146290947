"""Market price helpers behind ``frankie prices``.

Day-ahead prices are published shortly before 13:00 Amsterdam time. Without
an explicit date, today's prices are shown, plus tomorrow's once that hour
has passed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, tzinfo
from typing import Any, Final, Mapping, Sequence
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from frankie.api.errors import APIError, FrankieError
from frankie.auth.clock import Clock, default_clock, parse_iso_datetime

_LOG = logging.getLogger("frankie.prices")

MARKET_TIMEZONE: Final[str] = "Europe/Amsterdam"
TOMORROW_PRICES_HOUR: Final[int] = 13

RESOLUTIONS: Final[Mapping[int, str]] = {15: "PT15M", 60: "PT60M"}
DEFAULT_RESOLUTION: Final[int] = 60

PRICE_HEADERS: Final[tuple[str, ...]] = ("Date", "Time", "Market", "Total", "All-In")

_TOTAL_COMPONENTS: Final[tuple[str, ...]] = (
    "marketPrice",
    "marketPriceTax",
    "sourcingMarkupPrice",
    "energyTaxPrice",
)


def market_timezone() -> tzinfo | None:
    """Return the Amsterdam zone, or ``None`` (local time) if tzdata is missing."""
    try:
        return ZoneInfo(MARKET_TIMEZONE)
    except ZoneInfoNotFoundError:
        _LOG.debug("Time zone %s not available, falling back to local time", MARKET_TIMEZONE)
        return None


def price_dates(
    date: str | None = None,
    *,
    clock: Clock = default_clock,
    tz: tzinfo | None = None,
) -> list[str]:
    """Return the ``YYYY-MM-DD`` dates to fetch prices for."""
    if date:
        try:
            datetime.strptime(date, "%Y-%m-%d")
        except ValueError as exc:
            raise FrankieError(f"invalid date {date!r}: expected YYYY-MM-DD") from exc
        return [date]

    now = datetime.fromtimestamp(clock(), tz=tz or market_timezone())
    dates = [now.date()]
    if now.hour >= TOMORROW_PRICES_HOUR:
        dates.append(now.date() + timedelta(days=1))
    return [d.isoformat() for d in dates]


def resolve_site_reference(sites: Sequence[Mapping[str, Any]], partial: str) -> str:
    """Match *partial* against the references of *sites*.

    Accepts the full reference, a postal code, or postal code plus house
    number (case-insensitive prefix). An account with a single site always
    resolves to it.
    """
    if not sites:
        raise FrankieError("no sites found")

    wanted = partial.strip().upper()
    matches: list[str] = []
    for site in sites:
        reference = str(site.get("reference") or "")
        if reference.upper() == wanted:
            return reference
        if reference.upper().startswith(wanted):
            matches.append(reference)

    if len(matches) == 1:
        return matches[0]
    if matches:
        raise FrankieError(f"ambiguous site reference '{wanted}' matches {len(matches)} sites")
    if len(sites) == 1:
        return str(sites[0].get("reference") or "")
    raise FrankieError(f"no site found matching '{wanted}'")


def total_price(entry: Mapping[str, Any]) -> float:
    """Market price plus tax, sourcing markup and energy tax."""
    return sum(float(entry.get(name) or 0) for name in _TOTAL_COMPONENTS)


def merge_prices(results: Sequence[Mapping[str, Any]]) -> dict[str, Any]:
    """Concatenate the electricity and gas entries of several days."""
    merged: dict[str, list[Any]] = {"electricityPrices": [], "gasPrices": []}
    for prices in results:
        merged["electricityPrices"].extend(prices.get("electricityPrices") or [])
        merged["gasPrices"].extend(prices.get("gasPrices") or [])
    return merged


def price_rows(entries: Sequence[Mapping[str, Any]]) -> list[list[str]]:
    """Table rows in local time; a missing all-in price falls back to the total."""
    rows = []
    for entry in entries:
        try:
            start = parse_iso_datetime(str(entry.get("from"))).astimezone()
        except ValueError as exc:
            raise APIError(f"failed to parse response: invalid price time {entry.get('from')!r}") from exc
        total = total_price(entry)
        all_in = float(entry.get("allInPrice") or 0) or total
        rows.append(
            [
                start.strftime("%Y-%m-%d"),
                start.strftime("%H:%M"),
                f"€{float(entry.get('marketPrice') or 0):.4f}",
                f"€{total:.4f}",
                f"€{all_in:.4f}",
            ]
        )
    return rows
