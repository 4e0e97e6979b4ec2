"""Rapor Motoru unit testleri."""

from datetime import date, datetime, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from marketmate.models.market import CostRecord, Report, SaleRecord, TimeRange
from marketmate.services.report_engine import (
    compute_report,
    daily_series,
    location_breakdown,
    payment_breakdown,
    period_start,
)

UTC = timezone.utc
ISTANBUL = ZoneInfo("Europe/Istanbul")
NOW = datetime(2024, 6, 15, 12, 0, tzinfo=UTC)


def _sale(total, method="Cash", when=NOW, location=None, sale_id="s") -> SaleRecord:
    return SaleRecord(
        sale_id=sale_id,
        user_id="user-1",
        total_amount=Decimal(str(total)),
        payment_method=method,
        market_location=location,
        created_at=when,
    )


def _cost(amount, when=NOW) -> CostRecord:
    return CostRecord(
        cost_id="c", user_id="user-1", description="Stand kirası",
        amount=Decimal(str(amount)), created_at=when,
    )


class TestTotals:
    """Toplamlar, kâr ve korunan bölmeler."""

    def test_total_sales_is_sum_of_amounts(self):
        sales = [_sale(10), _sale("20.50"), _sale("0.25")]
        report = compute_report(sales, [], NOW, NOW)
        assert report.total_sales == Decimal("30.75")
        assert report.sales_count == 3

    def test_empty_sales_all_zero(self):
        report = compute_report([], [], NOW, NOW)
        assert report.total_sales == 0
        assert report.average_ticket == 0
        assert report.profit_margin == 0
        assert report.daily_series == ()
        assert report.best_day is None
        assert report.payment_breakdown == ()
        assert report.location_breakdown == ()

    def test_net_profit_can_be_negative(self):
        report = compute_report([_sale(30)], [_cost(50), _cost(5)], NOW, NOW)
        assert report.total_costs == Decimal("55")
        assert report.net_profit == Decimal("-25")

    def test_profit_margin_zero_without_sales(self):
        """Satış yokken maliyet olsa bile marj 0."""
        report = compute_report([], [_cost(40)], NOW, NOW)
        assert report.profit_margin == 0
        assert report.cost_ratio == 0
        assert report.net_profit == Decimal("-40")

    def test_no_costs_net_profit_equals_sales(self):
        report = compute_report([_sale(75)], [], NOW, NOW)
        assert report.total_costs == 0
        assert report.net_profit == Decimal("75")

    def test_margin_and_cost_ratio(self):
        report = compute_report([_sale(200)], [_cost(50)], NOW, NOW)
        assert report.profit_margin == Decimal("0.75")
        assert report.cost_ratio == Decimal("0.25")

    def test_average_daily_sales_uses_inclusive_day_span(self):
        start = datetime(2024, 6, 10, 12, 0, tzinfo=UTC)
        report = compute_report([_sale(60)], [], start, NOW)
        # 10..15 Haziran: 6 gün
        assert report.average_daily_sales == Decimal("10")

    def test_same_day_span_counts_one_day(self):
        report = compute_report([_sale(42)], [], NOW, NOW)
        assert report.average_daily_sales == Decimal("42")

    def test_future_period_start_no_division_errors(self):
        """Dönem başı gelecekteyse kayıt yoktur; tüm değerler sıfır."""
        future = datetime(2025, 1, 1, tzinfo=UTC)
        report = compute_report([], [], future, NOW)
        assert report == Report()
        assert report.average_daily_sales == 0
        assert report.is_empty

    def test_idempotent(self):
        sales = [_sale(100, "Cash"), _sale(50, "Card", location="Kadıköy")]
        costs = [_cost(20)]
        first = compute_report(sales, costs, NOW, NOW, ISTANBUL)
        second = compute_report(sales, costs, NOW, NOW, ISTANBUL)
        assert first == second


class TestDailySeries:
    """Yerel takvim gününe göre gruplama."""

    def test_same_day_different_times_collapse(self):
        sales = [
            _sale(10, when=datetime(2024, 6, 15, 8, 0, tzinfo=UTC)),
            _sale(15, when=datetime(2024, 6, 15, 19, 45, tzinfo=UTC)),
        ]
        series = daily_series(sales, UTC)
        assert len(series) == 1
        assert series[0].day == date(2024, 6, 15)
        assert series[0].amount == Decimal("25")

    def test_midnight_crossing_splits_days(self):
        """Bir milisaniye arayla gece yarısını geçen iki satış farklı günlere düşer."""
        before = datetime(2024, 6, 14, 20, 59, 59, 999000, tzinfo=UTC)  # 23:59:59.999 İstanbul
        after = datetime(2024, 6, 14, 21, 0, 0, tzinfo=UTC)  # 00:00:00.000 İstanbul
        series = daily_series([_sale(5, when=before), _sale(7, when=after)], ISTANBUL)
        assert [d.day for d in series] == [date(2024, 6, 14), date(2024, 6, 15)]

    def test_grouping_follows_given_timezone(self):
        when = datetime(2024, 6, 14, 22, 30, tzinfo=UTC)
        assert daily_series([_sale(1, when=when)], UTC)[0].day == date(2024, 6, 14)
        assert daily_series([_sale(1, when=when)], ISTANBUL)[0].day == date(2024, 6, 15)

    def test_sorted_ascending(self):
        sales = [
            _sale(1, when=datetime(2024, 6, 12, tzinfo=UTC)),
            _sale(1, when=datetime(2024, 6, 10, tzinfo=UTC)),
            _sale(1, when=datetime(2024, 6, 11, tzinfo=UTC)),
        ]
        days = [d.day for d in daily_series(sales, UTC)]
        assert days == sorted(days)

    def test_best_day_tie_returns_earliest(self):
        sales = [
            _sale(40, when=datetime(2024, 6, 14, tzinfo=UTC)),
            _sale(40, when=datetime(2024, 6, 12, tzinfo=UTC)),
            _sale(10, when=datetime(2024, 6, 13, tzinfo=UTC)),
        ]
        report = compute_report(sales, [], datetime(2024, 6, 10, tzinfo=UTC), NOW)
        assert report.best_day.day == date(2024, 6, 12)
        assert report.best_day.amount == Decimal("40")


class TestBreakdowns:
    """Ödeme yöntemi ve konum dağılımları."""

    def test_payment_methods_exact_match(self):
        sales = [_sale(10, "Cash"), _sale(5, "cash"), _sale(20, "Card")]
        entries = payment_breakdown(sales, Decimal("35"))
        assert [e.label for e in entries] == ["Card", "Cash", "cash"]

    def test_percentages_relative_to_total_sales(self):
        sales = [_sale(75, "Cash"), _sale(25, "Card")]
        entries = payment_breakdown(sales, Decimal("100"))
        assert entries[0].percentage == Decimal("0.75")
        assert entries[1].percentage == Decimal("0.25")

    def test_zero_total_gives_zero_percentages(self):
        entries = payment_breakdown([_sale(0, "Cash")], Decimal("0"))
        assert entries[0].percentage == 0

    def test_location_trimmed_and_empty_excluded(self):
        sales = [
            _sale(30, location=" Kadıköy "),
            _sale(20, location="Kadıköy"),
            _sale(40, location="   "),
            _sale(10, location=None),
            _sale(25, location="Beşiktaş"),
        ]
        entries = location_breakdown(sales, Decimal("125"))
        assert [(e.label, e.value) for e in entries] == [
            ("Kadıköy", Decimal("50")),
            ("Beşiktaş", Decimal("25")),
        ]
        # Konumsuz satışlar toplamın dışında kaldığı için oranlar %100'ün altında
        assert sum(e.percentage for e in entries) < 1
        assert entries[0].percentage == Decimal("50") / Decimal("125")

    def test_ties_keep_first_seen_order(self):
        sales = [_sale(10, "Transfer"), _sale(10, "Card"), _sale(10, "Cash")]
        entries = payment_breakdown(sales, Decimal("30"))
        assert [e.label for e in entries] == ["Transfer", "Card", "Cash"]

    def test_breakdown_not_truncated(self):
        sales = [_sale(i + 1, f"M{i}") for i in range(7)]
        report = compute_report(sales, [], NOW, NOW)
        assert len(report.payment_breakdown) == 7


class TestEndToEnd:
    """Örnek senaryo: iki gün, iki ödeme yöntemi, bir maliyet."""

    def test_example_report(self):
        d1 = datetime(2024, 6, 14, 10, 0, tzinfo=UTC)
        d2 = datetime(2024, 6, 15, 10, 0, tzinfo=UTC)
        sales = [_sale(100, "Cash", d1), _sale(50, "Card", d1), _sale(30, "Cash", d2)]
        costs = [_cost(20, d1)]

        report = compute_report(sales, costs, datetime(2024, 6, 14, tzinfo=UTC), NOW)

        assert report.total_sales == Decimal("180")
        assert report.total_costs == Decimal("20")
        assert report.net_profit == Decimal("160")
        assert report.sales_count == 3
        assert report.average_ticket == Decimal("60")
        assert [(e.label, e.value) for e in report.payment_breakdown] == [
            ("Cash", Decimal("130")),
            ("Card", Decimal("50")),
        ]
        assert round(report.payment_breakdown[0].percentage * 100) == 72
        assert round(report.payment_breakdown[1].percentage * 100) == 28
        assert [(d.day, d.amount) for d in report.daily_series] == [
            (date(2024, 6, 14), Decimal("150")),
            (date(2024, 6, 15), Decimal("30")),
        ]
        assert report.best_day.day == date(2024, 6, 14)


class TestPeriodStart:
    """Zaman aralığı başlangıcı takvime göre hesaplanır."""

    def test_day_is_local_midnight(self):
        now = datetime(2024, 6, 14, 22, 30, tzinfo=UTC)  # İstanbul'da 15 Haziran 01:30
        start = period_start(TimeRange.DAY, now, ISTANBUL)
        assert start == datetime(2024, 6, 15, tzinfo=ISTANBUL)

    def test_week_is_seven_days_back(self):
        start = period_start(TimeRange.WEEK, NOW, UTC)
        assert start == datetime(2024, 6, 8, 12, 0, tzinfo=UTC)

    def test_month_clamps_to_month_end(self):
        now = datetime(2024, 3, 31, 9, 0, tzinfo=UTC)
        start = period_start(TimeRange.MONTH, now, UTC)
        assert start == datetime(2024, 2, 29, 9, 0, tzinfo=UTC)

    def test_year_back(self):
        start = period_start(TimeRange.YEAR, NOW, UTC)
        assert start == datetime(2023, 6, 15, 12, 0, tzinfo=UTC)

    def test_unknown_range_raises(self):
        with pytest.raises(ValueError):
            period_start("decade", NOW, UTC)
