"""Pazar oturumu - bir konumda açılıp kapanan satış günü."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from marketmate.errors import MarketMateError
from marketmate.models.market import ActivityType, Market
from marketmate.services.base_service import BaseService
from marketmate.services.validation import EntryValidator
from marketmate.time_utils import ensure_aware, utcnow

logger = logging.getLogger(__name__)


def market_name(location: str, when: datetime) -> str:
    """Oturum adı: "Kadıköy Pazarı - Jun 15, 2024 09:30" """
    return f"{location} - {when:%b} {when.day}, {when.year} {when:%H:%M}"


class MarketSessionService(BaseService):
    """Aktif pazar oturumunu tutar. Aynı anda en fazla bir oturum açıktır."""

    def __init__(self, *args: Any, validator: Optional[EntryValidator] = None, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.validator = validator or EntryValidator()
        self.active_market: Optional[Market] = None

    @property
    def is_market_open(self) -> bool:
        return self.active_market is not None

    def start_market(
        self,
        location: str,
        latitude: Optional[Decimal] = None,
        longitude: Optional[Decimal] = None,
        now: Optional[datetime] = None,
    ) -> Optional[Market]:
        self.error_message = None
        now = ensure_aware(now or utcnow())
        try:
            self.validator.validate_required(location, "Konum").raise_if_invalid()
            user_id = self.session.require_user_id()
            market = Market(
                market_id=str(uuid.uuid4()),
                user_id=user_id,
                name=market_name(location.strip(), now.astimezone(self.tz)),
                date=now,
                is_open=True,
                location=location.strip(),
                latitude=latitude,
                longitude=longitude,
                created_at=now,
            )
            self.store.put_market(market)
        except MarketMateError as e:
            self._fail("Pazar açılamadı", e)
            return None

        self.active_market = market
        logger.info("Pazar açıldı: %s", market.name)
        self.record_activity(ActivityType.MARKET_OPENED, title=market.name, subtitle=market.location)
        return market

    def end_market(self) -> bool:
        """Aktif oturumu kapatır. Açık oturum yoksa False döner."""
        market = self.active_market
        if market is None:
            return False
        self.error_message = None
        try:
            user_id = self.session.require_user_id()
            self.store.update_market_open(market.market_id, False, user_id=user_id)
        except MarketMateError as e:
            self._fail("Pazar kapatılamadı", e)
            return False

        market.is_open = False
        self.active_market = None
        logger.info("Pazar kapatıldı: %s", market.name)
        self.record_activity(ActivityType.MARKET_CLOSED, title=market.name, subtitle=market.location)
        return True

    def load_active_market(self) -> Optional[Market]:
        """Uygulama yeniden açıldığında açık kalan oturumu geri yükler."""
        try:
            user_id = self.session.require_user_id()
            self.active_market = self.store.fetch_open_market(user_id)
        except MarketMateError as e:
            self._fail("Aktif pazar alınamadı", e)
        return self.active_market
