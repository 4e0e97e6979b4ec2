"""Raporlar ekranı - zaman aralığı seçimi, eşzamanlı veri çekme ve rapor durumu."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Any, Optional

from marketmate.errors import MarketMateError
from marketmate.formatting import TOP_N, top
from marketmate.models.market import CategoryBreakdown, Report, TimeRange
from marketmate.services.base_service import BaseService
from marketmate.services.debounce import Debouncer
from marketmate.services.report_engine import compute_report, period_start
from marketmate.time_utils import utcnow

logger = logging.getLogger(__name__)


class ReportsService(BaseService):
    """Seçili dönem için raporu üretir ve son başarılı raporu saklar.

    Veri çekme başarısız olursa önceki rapor korunur (eski veri, boş ekrandan
    iyidir); sadece `error_message` güncellenir.
    """

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.selected_time_range = TimeRange.MONTH
        self.report = Report()
        self.period_start: Optional[datetime] = None
        self.last_refreshed: Optional[datetime] = None
        self._debouncer = Debouncer(self.settings.debounce_seconds, self._debounced_refresh)

    def refresh(self, now: Optional[datetime] = None) -> Report:
        """Seçili aralık için satış ve maliyetleri çeker, raporu yeniden hesaplar."""
        return self._refresh(now, generation=None)

    def select_time_range(self, time_range: TimeRange, now: Optional[datetime] = None) -> int:
        """Aralığı değiştirir; yenileme sessiz pencere sonunda bir kez çalışır.

        Art arda seçimlerde yalnızca sonuncusu depoya gider.
        """
        self.selected_time_range = TimeRange(time_range)
        return self._debouncer.call(now)

    def flush_pending(self) -> bool:
        """Bekleyen aralık değişikliğini hemen uygular."""
        return self._debouncer.flush()

    def cancel_pending(self) -> None:
        self._debouncer.cancel()

    def _debounced_refresh(self, generation: int, now: Optional[datetime]) -> None:
        self._refresh(now, generation=generation)

    def _refresh(self, now: Optional[datetime], generation: Optional[int]) -> Report:
        now = now or utcnow()
        time_range = self.selected_time_range
        start = period_start(time_range, now, self.tz)

        self.is_loading = True
        try:
            user_id = self.session.require_user_id()
            # Satış ve maliyet okumaları birbirinden bağımsız
            with ThreadPoolExecutor(max_workers=2) as executor:
                sales_future = executor.submit(self.store.fetch_sales, user_id, since=start)
                costs_future = executor.submit(self.store.fetch_costs, user_id, since=start)
                sales = sales_future.result()
                costs = costs_future.result()
        except MarketMateError as e:
            self._fail("Rapor verisi alınamadı", e)
            return self.report
        finally:
            self.is_loading = False

        if generation is not None and not self._debouncer.is_current(generation):
            logger.debug("Eski rapor isteğinin sonucu yok sayıldı (nesil %d)", generation)
            return self.report

        self.report = compute_report(sales, costs, start, now, self.tz)
        self.period_start = start
        self.last_refreshed = now
        self.error_message = None
        logger.info(
            "Rapor güncellendi [%s]: %d satış, toplam %s",
            time_range.value, self.report.sales_count, self.report.total_sales,
        )
        return self.report

    # --- Görüntüleme ---

    def top_payment_methods(self, n: int = TOP_N) -> list[CategoryBreakdown]:
        return top(self.report.payment_breakdown, n)

    def top_locations(self, n: int = TOP_N) -> list[CategoryBreakdown]:
        return top(self.report.location_breakdown, n)
