"""Tests for the toner level catch-up applied on import."""

from datetime import datetime, timedelta, timezone

from printops.snapshot.toner import refresh_printers, refresh_toner_level

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


def _printer(hours_ago: float, **overrides) -> dict:
    printer = {
        "id": "p1",
        "type": "mono",
        "currentTonerLevel": 80.0,
        "tonerCapacity": 20000,
        "dailyUsage": 480,
        "updatedAt": (NOW - timedelta(hours=hours_ago)).isoformat(),
    }
    printer.update(overrides)
    return printer


class TestRefreshTonerLevel:
    def test_consumption_applied(self):
        # 480 / 20000 * 100 = 2.4% per day = 0.1% per hour
        updated = refresh_toner_level(_printer(24), NOW)
        assert updated["currentTonerLevel"] == 77.6
        assert updated["updatedAt"] == NOW.isoformat()

    def test_partial_hours_truncated(self):
        updated = refresh_toner_level(_printer(10.9), NOW)
        assert updated["currentTonerLevel"] == 79.0

    def test_fresh_record_unchanged(self):
        printer = _printer(0.5)
        assert refresh_toner_level(printer, NOW) is printer

    def test_floored_at_zero(self):
        updated = refresh_toner_level(_printer(24 * 365), NOW)
        assert updated["currentTonerLevel"] == 0

    def test_color_printer_unchanged(self):
        printer = _printer(48, type="color")
        assert refresh_toner_level(printer, NOW) is printer

    def test_missing_fields_unchanged(self):
        printer = _printer(48)
        del printer["dailyUsage"]
        assert refresh_toner_level(printer, NOW) is printer

    def test_zero_capacity_unchanged(self):
        printer = _printer(48, tonerCapacity=0)
        assert refresh_toner_level(printer, NOW) is printer

    def test_bad_timestamp_unchanged(self):
        printer = _printer(48, updatedAt="yesterday")
        assert refresh_toner_level(printer, NOW) is printer

    def test_zulu_timestamp(self):
        printer = _printer(0, updatedAt="2026-01-14T12:00:00Z")
        assert refresh_toner_level(printer, NOW)["currentTonerLevel"] == 77.6

    def test_input_not_mutated(self):
        printer = _printer(24)
        refresh_toner_level(printer, NOW)
        assert printer["currentTonerLevel"] == 80.0


class TestRefreshPrinters:
    def test_counts_adjusted(self):
        printers = [_printer(24), _printer(0.2), _printer(48, type="color"), "junk"]
        refreshed, adjusted = refresh_printers(printers, NOW)
        assert adjusted == 1
        assert len(refreshed) == 4
        assert refreshed[3] == "junk"

    def test_tiny_change_not_counted(self):
        # 0.1% per hour, one hour elapsed: not more than the 0.1 threshold
        refreshed, adjusted = refresh_printers([_printer(1)], NOW)
        assert adjusted == 0
        assert refreshed[0]["currentTonerLevel"] == 79.9
