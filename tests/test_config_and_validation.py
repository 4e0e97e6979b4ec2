"""Ayarlar, giriş validasyonu ve görüntüleme yardımcıları unit testleri."""

from decimal import Decimal
from pathlib import Path

import pytest

from marketmate.config import Settings, load_settings
from marketmate.errors import ConfigurationError, ValidationError
from marketmate.formatting import currency_symbol, format_currency, format_percent, top
from marketmate.services.validation import EntryValidator, parse_amount


class TestSettings:
    def test_defaults(self, monkeypatch):
        for name in (
            "AWS_DEFAULT_REGION", "MARKETMATE_TABLE_PREFIX", "MARKETMATE_CACHE_DIR",
            "MARKETMATE_TIMEZONE", "MARKETMATE_DEBOUNCE_SECONDS", "MARKETMATE_ATOMIC_SALE_EDITS",
            "MARKETMATE_VERIFY_SSL", "MARKETMATE_USER_ID",
        ):
            monkeypatch.delenv(name, raising=False)
        settings = load_settings()
        assert settings.region == "us-west-2"
        assert settings.table_name("sales") == "MarketMateSales"
        assert settings.debounce_seconds == 0.3
        assert settings.atomic_sale_edits is True
        assert settings.user_id is None

    def test_environment_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("MARKETMATE_TABLE_PREFIX", "Dev")
        monkeypatch.setenv("MARKETMATE_CACHE_DIR", str(tmp_path))
        monkeypatch.setenv("MARKETMATE_ATOMIC_SALE_EDITS", "false")
        monkeypatch.setenv("MARKETMATE_DEBOUNCE_SECONDS", "0")
        monkeypatch.setenv("MARKETMATE_USER_ID", "user-9")
        settings = load_settings()
        assert settings.table_names["activity"] == "DevRecentActivity"
        assert settings.cache_dir == Path(tmp_path)
        assert settings.atomic_sale_edits is False
        assert settings.debounce_seconds == 0
        assert settings.user_id == "user-9"

    def test_invalid_boolean(self, monkeypatch):
        monkeypatch.setenv("MARKETMATE_VERIFY_SSL", "belki")
        with pytest.raises(ConfigurationError):
            load_settings()

    def test_invalid_number(self, monkeypatch):
        monkeypatch.setenv("MARKETMATE_DEBOUNCE_SECONDS", "yarım")
        with pytest.raises(ConfigurationError):
            load_settings()

    def test_unknown_table(self):
        with pytest.raises(ConfigurationError):
            Settings().table_name("warehouses")


class TestParseAmount:
    @pytest.mark.parametrize("text,expected", [
        ("12", Decimal("12")),
        ("12.50", Decimal("12.50")),
        ("12,5", Decimal("12.5")),
        (" 7 ", Decimal("7")),
        (".5", Decimal("0.5")),
    ])
    def test_valid(self, text, expected):
        assert parse_amount(text) == expected

    @pytest.mark.parametrize("text", [None, "", "  ", "abc", "1.2.3", "12a", "-5", ".", "1e3"])
    def test_invalid(self, text):
        assert parse_amount(text) is None


class TestEntryValidator:
    """Store çağrısından önce yapılan kontroller."""

    def test_amount_text_non_numeric_raises(self):
        with pytest.raises(ValidationError) as exc_info:
            EntryValidator().validate_amount_text("on iki")
        assert exc_info.value.errors

    def test_amount_text_returns_value(self):
        assert EntryValidator().validate_amount_text("45,90") == Decimal("45.90")

    def test_product_rules(self):
        result = EntryValidator().validate_product("  ", Decimal("-1"), stock=-2)
        assert not result.is_valid
        assert len(result.errors) == 3

    def test_valid_product(self):
        assert EntryValidator().validate_product("Bal", Decimal("0")).is_valid

    def test_sale_needs_items_and_method(self):
        result = EntryValidator().validate_sale(0, Decimal("0"), "")
        assert len(result.errors) == 2

    def test_currency(self):
        validator = EntryValidator()
        assert validator.validate_currency("eur").is_valid
        assert not validator.validate_currency("EURO").is_valid
        assert not validator.validate_currency("XYZ").is_valid
        assert not validator.validate_currency(None).is_valid


class TestFormatting:
    def test_currency_two_decimals(self):
        assert format_currency(Decimal("12.5"), "USD") == "$ 12.50"
        assert format_currency(Decimal("0.005"), "EUR") == "€ 0.01"

    def test_unknown_currency_shows_code(self):
        assert currency_symbol("TRY") == "TRY"
        assert currency_symbol(None) == "$"

    def test_percent_zero_decimals(self):
        assert format_percent(Decimal("130") / Decimal("180")) == "72%"
        assert format_percent(Decimal("0")) == "0%"

    def test_top_n(self):
        assert top([1, 2, 3, 4, 5, 6]) == [1, 2, 3, 4]
        assert top([1, 2], 4) == [1, 2]
        assert top([1, 2], 0) == []
