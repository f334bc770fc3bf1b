"""
Unit Tests for Phone and Message Formatting
===========================================
"""

import pytest
from datetime import date, time


class TestPhoneNormalization:
    """Tests for canonical phone form."""

    @pytest.mark.parametrize("raw", [
        "054-123-4567",
        "0541234567",
        "+972 54 123 4567",
        "972541234567",
        "(054) 123 4567",
    ])
    def test_variants_normalize_to_same_value(self, raw):
        """Local and international renderings should collapse to one form."""
        from linedup_core.messaging import normalize_phone

        assert normalize_phone(raw) == "972541234567"

    def test_normalization_is_idempotent(self):
        """Normalizing twice should change nothing."""
        from linedup_core.messaging import normalize_phone

        once = normalize_phone("054-123-4567")
        assert normalize_phone(once) == once

    @pytest.mark.parametrize("raw", [None, "", "abc", "---"])
    def test_unaddressable_input(self, raw):
        """Inputs without digits should not normalize."""
        from linedup_core.messaging import normalize_phone

        assert normalize_phone(raw) is None

    def test_other_country_code(self):
        """Country code should be configurable."""
        from linedup_core.messaging import normalize_phone

        assert normalize_phone("07700 900123", country_code="44") == "447700900123"

    def test_whatsapp_address(self):
        """Should prefix the channel and plus sign."""
        from linedup_core.messaging import format_whatsapp_address

        assert format_whatsapp_address("054-123-4567") == "whatsapp:+972541234567"
        assert format_whatsapp_address("") is None


class TestFormatting:
    """Tests for template variable renderings."""

    def test_day_month(self):
        from linedup_core.messaging.formatting import format_day_month

        assert format_day_month(date(2026, 3, 5)) == "5 במרץ"
        assert format_day_month("2026-10-20") == "20 באוקטובר"

    def test_short_date(self):
        from linedup_core.messaging.formatting import format_short_date

        assert format_short_date(date(2026, 1, 7)) == "7.1.2026"
        assert format_short_date("2026-12-25") == "25.12.2026"

    def test_short_date_passthrough(self):
        """Unparseable dates should be returned as given."""
        from linedup_core.messaging.formatting import format_short_date

        assert format_short_date("next week") == "next week"

    def test_time(self):
        from linedup_core.messaging.formatting import format_time

        assert format_time("09:30:00") == "09:30"
        assert format_time(time(14, 5)) == "14:05"


class TestLogging:
    """Tests for logging helpers."""

    def test_mask_phone(self):
        """Should keep only the last four digits."""
        from linedup_core.log_config import mask_phone

        masked = mask_phone("972541234567")

        assert masked.endswith("4567")
        assert "97254123" not in masked

    def test_configure_logging(self):
        """Should configure structlog without raising."""
        import structlog
        from linedup_core.log_config import configure_logging

        configure_logging("linedup-test", level="DEBUG", json_output=True)

        structlog.get_logger("test").info("configured", phone="***4567")
