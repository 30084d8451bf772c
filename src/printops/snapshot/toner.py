"""Toner level catch-up for imported printers.

A printer's ``currentTonerLevel`` is only as fresh as its ``updatedAt``.
When an artifact is imported some time after export, the level can be
advanced by the consumption its ``dailyUsage`` predicts for the elapsed
time.  Colour printers track per-cartridge levels and are left alone.
"""

from datetime import datetime, timezone
from typing import Any

# Changes smaller than this are not reported as adjustments.
_LEVEL_EPSILON = 0.1


def _parse_timestamp(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def refresh_toner_level(printer: dict[str, Any], now: datetime | None = None) -> dict[str, Any]:
    """Return ``printer`` with its toner level advanced to ``now``.

    Only applies when at least one full hour has elapsed since
    ``updatedAt``; the level drops by ``dailyUsage / tonerCapacity * 100``
    percent per day, floored at 0 and rounded to 2 decimals.  Records
    missing the numeric fields, colour printers and fresh records are
    returned unchanged (same object).
    """
    if printer.get("type") == "color":
        return printer

    level = printer.get("currentTonerLevel")
    capacity = printer.get("tonerCapacity")
    daily_usage = printer.get("dailyUsage")
    if not all(isinstance(v, (int, float)) for v in (level, capacity, daily_usage)):
        return printer
    if capacity <= 0:
        return printer

    last_update = _parse_timestamp(printer.get("updatedAt"))
    if last_update is None:
        return printer

    now = now or datetime.now(timezone.utc)
    hours_elapsed = int((now - last_update).total_seconds() // 3600)
    if hours_elapsed < 1:
        return printer

    hourly_consumption = daily_usage / capacity * 100 / 24
    adjusted = max(0.0, level - hours_elapsed * hourly_consumption)
    return {
        **printer,
        "currentTonerLevel": round(adjusted, 2),
        "updatedAt": now.isoformat(),
    }


def refresh_printers(
    printers: list[dict[str, Any]], now: datetime | None = None
) -> tuple[list[dict[str, Any]], int]:
    """Apply ``refresh_toner_level`` to every printer.

    Returns:
        Tuple of (printers, number whose level moved by more than 0.1).
    """
    now = now or datetime.now(timezone.utc)
    refreshed: list[dict[str, Any]] = []
    adjusted = 0
    for printer in printers:
        if not isinstance(printer, dict):
            refreshed.append(printer)
            continue
        updated = refresh_toner_level(printer, now)
        if updated is not printer and abs(
            updated["currentTonerLevel"] - printer["currentTonerLevel"]
        ) > _LEVEL_EPSILON:
            adjusted += 1
        refreshed.append(updated)
    return refreshed, adjusted
