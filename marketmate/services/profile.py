"""Profil - kullanıcı profili, para birimi tercihi ve veri dışa aktarma."""

from __future__ import annotations

import csv
import io
import logging
from datetime import datetime, tzinfo
from pathlib import Path
from typing import Any, Optional, Sequence, Union

from marketmate.errors import MarketMateError, StoreError
from marketmate.formatting import DEFAULT_CURRENCY, currency_symbol
from marketmate.models.market import CostRecord, SaleRecord, UserProfile
from marketmate.services.base_service import BaseService
from marketmate.services.costs import COSTS_CACHE
from marketmate.services.inventory import PRODUCTS_CACHE
from marketmate.services.sales import SALES_CACHE
from marketmate.services.validation import EntryValidator
from marketmate.time_utils import ensure_aware, utcnow

logger = logging.getLogger(__name__)

CSV_HEADER = ["Type", "Date", "Amount", "Description", "Payment Method"]


def build_csv(sales: Sequence[SaleRecord], costs: Sequence[CostRecord], tz: tzinfo) -> str:
    """Satış ve maliyetleri tek CSV metnine yazar: önce satışlar, sonra maliyetler."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for sale in sales:
        when = ensure_aware(sale.created_at).astimezone(tz)
        writer.writerow([
            "Sale", f"{when:%Y-%m-%d %H:%M}", str(sale.total_amount),
            f"Sale ID: {sale.sale_id}", sale.payment_method,
        ])
    for cost in costs:
        when = ensure_aware(cost.created_at).astimezone(tz)
        writer.writerow(["Cost", f"{when:%Y-%m-%d %H:%M}", str(cost.amount), cost.description, "-"])
    return buffer.getvalue()


class ProfileService(BaseService):
    def __init__(self, *args: Any, validator: Optional[EntryValidator] = None, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.validator = validator or EntryValidator()
        self.profile: Optional[UserProfile] = None
        self.selected_currency = DEFAULT_CURRENCY

    @property
    def currency_symbol(self) -> str:
        return currency_symbol(self.selected_currency)

    def fetch_profile(self) -> Optional[UserProfile]:
        try:
            user_id = self.session.require_user_id()
            profile = self.store.fetch_profile(user_id)
        except MarketMateError as e:
            self._fail("Profil alınamadı", e)
            return self.profile

        self.profile = profile
        if profile is not None and profile.currency:
            self.selected_currency = profile.currency.upper()
        return self.profile

    def update_currency(self, currency: str) -> bool:
        self.error_message = None
        try:
            self.validator.validate_currency(currency).raise_if_invalid()
            user_id = self.session.require_user_id()
            code = currency.upper()
            self.store.update_profile_currency(user_id, code)
        except MarketMateError as e:
            self._fail("Para birimi güncellenemedi", e)
            return False

        self.selected_currency = code
        if self.profile is not None:
            self.profile.currency = code
        logger.info("Para birimi güncellendi: %s", code)
        return True

    def export_csv(
        self, directory: Optional[Union[str, Path]] = None, now: Optional[datetime] = None
    ) -> Optional[Path]:
        """Tüm satış ve maliyetleri CSV dosyasına yazar ve dosya yolunu döndürür."""
        self.error_message = None
        now = ensure_aware(now or utcnow())
        self.is_loading = True
        try:
            user_id = self.session.require_user_id()
            sales = self.store.fetch_sales(user_id)
            costs = self.store.fetch_costs(user_id)
        except MarketMateError as e:
            self._fail("Veriler dışa aktarılamadı", e)
            return None
        finally:
            self.is_loading = False

        target_dir = Path(directory) if directory is not None else self.settings.cache_dir
        path = target_dir / f"MarketMate_Data_{now.astimezone(self.tz):%Y-%m-%d}.csv"
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            path.write_text(build_csv(sales, costs, self.tz), encoding="utf-8")
        except OSError as e:
            self._fail("Veriler dışa aktarılamadı", StoreError("export_csv", str(e)))
            return None

        logger.info("Veriler dışa aktarıldı: %s (%d satış, %d maliyet)", path, len(sales), len(costs))
        return path

    def delete_account(self) -> bool:
        """Kullanıcının tüm verilerini ve profilini siler, oturumu kapatır."""
        self.error_message = None
        self.is_loading = True
        try:
            user_id = self.session.require_user_id()
            self.store.delete_account_data(user_id)
        except MarketMateError as e:
            self._fail("Hesap silinemedi", e)
            return False
        finally:
            self.is_loading = False

        for filename in (SALES_CACHE, COSTS_CACHE, PRODUCTS_CACHE):
            self.cache.clear(filename)
        self.session.sign_out()
        self.profile = None
        self.selected_currency = DEFAULT_CURRENCY
        logger.info("Hesap silindi: %s", user_id)
        return True
