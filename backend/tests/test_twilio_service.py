"""Tests for the Twilio wrapper used by notification delivery."""

from types import SimpleNamespace

import pytest

from league_admin.services.twilio_service import (
    TwilioService,
    format_e164,
    get_user_phone_number,
    validate_e164,
)


# ---------------------------------------------------------------------------
# Phone number formatting tests
# ---------------------------------------------------------------------------


class TestFormatE164:
    """Test phone number formatting to E.164."""

    def test_ten_digit_us(self):
        assert format_e164("5551234567") == "+15551234567"

    def test_eleven_digit_us(self):
        assert format_e164("15551234567") == "+15551234567"

    def test_already_e164(self):
        assert format_e164("+15551234567") == "+15551234567"

    def test_parens(self):
        assert format_e164("(555) 123-4567") == "+15551234567"

    def test_international(self):
        assert format_e164("+44 20 7946 0958") == "+442079460958"

    def test_invalid_short(self):
        with pytest.raises(ValueError):
            format_e164("12345")

    def test_invalid_empty(self):
        with pytest.raises(ValueError):
            format_e164("")


class TestValidateE164:
    def test_valid_us(self):
        assert validate_e164("+15551234567") is True

    def test_missing_plus(self):
        assert validate_e164("15551234567") is False

    def test_not_a_number(self):
        assert validate_e164("+1555abc4567") is False


# ---------------------------------------------------------------------------
# User phone lookup
# ---------------------------------------------------------------------------


class TestGetUserPhoneNumber:
    def _user(self, phone):
        return SimpleNamespace(id=1, phone=phone)

    def test_formats_phone(self):
        assert get_user_phone_number(self._user("555.123.4567")) == "+15551234567"

    def test_missing_phone(self):
        assert get_user_phone_number(self._user(None)) is None

    def test_blank_phone(self):
        assert get_user_phone_number(self._user("   ")) is None

    def test_placeholder(self):
        assert get_user_phone_number(self._user("N/A")) is None

    def test_unparseable_phone_skipped(self):
        assert get_user_phone_number(self._user("call me")) is None


# ---------------------------------------------------------------------------
# Dry-run mode
# ---------------------------------------------------------------------------


class TestDryRun:
    @pytest.fixture(autouse=True)
    def no_credentials(self, monkeypatch):
        for key in ("TWILIO_ACCOUNT_SID", "TWILIO_AUTH_TOKEN", "TWILIO_FROM_NUMBER"):
            monkeypatch.delenv(key, raising=False)

    def test_unconfigured_service_is_dry_run(self):
        service = TwilioService()
        assert service.is_configured is False
        result = service.send_sms("+15551234567", "Dispute Resolved: Original score upheld")
        assert result["status"] == "dry_run"
        assert result["error"] is None

    def test_invalid_number_fails_without_sending(self):
        result = TwilioService().send_sms("5551234567", "hello")
        assert result["status"] == "failed"
        assert "Invalid phone number" in result["error"]
