"""Raporlar servisi unit testleri."""

from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import MagicMock

from marketmate.config import Settings
from marketmate.errors import StoreError
from marketmate.models.market import CategoryBreakdown, CostRecord, Report, SaleRecord, TimeRange
from marketmate.services.reports import ReportsService
from marketmate.store.offline_cache import OfflineCache
from marketmate.store.session import AuthSession

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


def _create_service(tmp_path, user_id="user-1", debounce=60.0):
    """Test için mock'lanmış servis oluşturur."""
    store = MagicMock()
    store.fetch_sales.return_value = [
        SaleRecord(sale_id="s1", user_id="user-1", total_amount=Decimal("100"),
                   payment_method="Cash", created_at=NOW),
    ]
    store.fetch_costs.return_value = [
        CostRecord(cost_id="c1", user_id="user-1", description="Kira",
                   amount=Decimal("20"), created_at=NOW),
    ]
    service = ReportsService(
        store=store,
        session=AuthSession(user_id),
        settings=Settings(cache_dir=tmp_path, debounce_seconds=debounce),
        cache=OfflineCache(tmp_path),
    )
    return service, store


class TestRefresh:
    def test_default_range_is_month(self, tmp_path):
        service, _ = _create_service(tmp_path)
        assert service.selected_time_range == TimeRange.MONTH
        assert service.report == Report()

    def test_refresh_fetches_from_period_start(self, tmp_path):
        service, store = _create_service(tmp_path)

        report = service.refresh(NOW)

        expected_start = datetime(2024, 5, 15, 12, 0, tzinfo=timezone.utc)
        store.fetch_sales.assert_called_once_with("user-1", since=expected_start)
        store.fetch_costs.assert_called_once_with("user-1", since=expected_start)
        assert report.total_sales == Decimal("100")
        assert report.net_profit == Decimal("80")
        assert service.period_start == expected_start
        assert service.error_message is None

    def test_failed_refresh_keeps_previous_report(self, tmp_path):
        """Veri alınamazsa son başarılı rapor silinmez."""
        service, store = _create_service(tmp_path)
        good = service.refresh(NOW)
        store.fetch_costs.side_effect = StoreError("fetch_costs", "timeout")

        result = service.refresh(NOW)

        assert result is good
        assert service.report is good
        assert "timeout" in service.error_message
        assert service.is_loading is False

    def test_no_session_fails_without_store_call(self, tmp_path):
        service, store = _create_service(tmp_path, user_id=None)
        service.refresh(NOW)
        store.fetch_sales.assert_not_called()
        assert service.error_message
        assert service.report == Report()


class TestTimeRangeSelection:
    """Art arda aralık değişiklikleri tek yenilemeye iner."""

    def test_only_last_selection_fetches(self, tmp_path):
        service, store = _create_service(tmp_path)

        service.select_time_range(TimeRange.DAY, NOW)
        service.select_time_range(TimeRange.WEEK, NOW)
        service.select_time_range(TimeRange.YEAR, NOW)
        assert store.fetch_sales.call_count == 0

        service.flush_pending()

        store.fetch_sales.assert_called_once_with(
            "user-1", since=datetime(2023, 6, 15, 12, 0, tzinfo=timezone.utc)
        )
        assert service.selected_time_range == TimeRange.YEAR

    def test_superseded_result_is_ignored(self, tmp_path):
        service, store = _create_service(tmp_path)
        generation = service.select_time_range(TimeRange.DAY, NOW)
        service.cancel_pending()

        # Devam eden eski bir istek sonradan tamamlanır
        service._refresh(NOW, generation=generation)

        assert service.report == Report()

    def test_zero_debounce_refreshes_immediately(self, tmp_path):
        service, store = _create_service(tmp_path, debounce=0)
        service.select_time_range(TimeRange.WEEK, NOW)
        assert store.fetch_sales.call_count == 1
        assert service.report.sales_count == 1


class TestTopEntries:
    def test_top_locations_truncates(self, tmp_path):
        service, _ = _create_service(tmp_path)
        entries = tuple(
            CategoryBreakdown(label=f"L{i}", value=Decimal(10 - i), percentage=Decimal("0.1"))
            for i in range(6)
        )
        service.report = Report(location_breakdown=entries, payment_breakdown=entries[:2])
        assert [e.label for e in service.top_locations()] == ["L0", "L1", "L2", "L3"]
        assert len(service.top_payment_methods()) == 2
