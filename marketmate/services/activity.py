"""Son aktiviteler akışı - filtreleme, arama ve güne göre gruplama."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Optional

from marketmate.errors import MarketMateError
from marketmate.models.market import Activity, ActivityType
from marketmate.services.base_service import BaseService
from marketmate.time_utils import ensure_aware, local_day, utcnow

logger = logging.getLogger(__name__)

ACTIVITY_LIMIT = 100
TODAY_LABEL = "Today"
YESTERDAY_LABEL = "Yesterday"


class ActivityFilter(str, Enum):
    ALL = "All"
    SALES = "Sales"
    COSTS = "Expenses"
    PRODUCTS = "Products"
    MARKET = "Market"


class DateFilter(str, Enum):
    ALL_TIME = "All Time"
    TODAY = "Today"
    LAST_7_DAYS = "Last 7 Days"
    LAST_30_DAYS = "Last 30 Days"


_KIND_TYPES = {
    ActivityFilter.SALES: {ActivityType.SALE},
    ActivityFilter.COSTS: {ActivityType.COST},
    ActivityFilter.PRODUCTS: {
        ActivityType.PRODUCT_CREATED,
        ActivityType.PRODUCT_UPDATED,
        ActivityType.PRODUCT_DELETED,
    },
    ActivityFilter.MARKET: {ActivityType.MARKET_OPENED, ActivityType.MARKET_CLOSED},
}


def long_date_label(when: datetime) -> str:
    """"June 15, 2024" biçiminde uzun tarih."""
    return f"{when:%B} {when.day}, {when.year}"


class ActivityService(BaseService):
    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.activities: list[Activity] = []
        self.selected_filter = ActivityFilter.ALL
        self.selected_date_filter = DateFilter.ALL_TIME
        self.search_text = ""

    def fetch_activities(self, limit: int = ACTIVITY_LIMIT) -> list[Activity]:
        """En yeni `limit` aktiviteyi çeker (en yeniden eskiye)."""
        self.error_message = None
        self.is_loading = True
        try:
            user_id = self.session.require_user_id()
            self.activities = self.store.fetch_activities(user_id, limit=limit)
        except MarketMateError as e:
            self._fail("Aktiviteler alınamadı", e)
        finally:
            self.is_loading = False
        logger.debug("%d aktivite yüklendi", len(self.activities))
        return self.activities

    def filtered(self, now: Optional[datetime] = None) -> list[Activity]:
        """Tür, tarih ve arama filtrelerini sırayla uygular."""
        now = ensure_aware(now or utcnow())
        result = list(self.activities)

        kinds = _KIND_TYPES.get(ActivityFilter(self.selected_filter))
        if kinds is not None:
            result = [a for a in result if a.activity_type in kinds]

        date_filter = DateFilter(self.selected_date_filter)
        if date_filter == DateFilter.TODAY:
            today = local_day(now, self.tz)
            result = [a for a in result if local_day(a.created_at, self.tz) == today]
        elif date_filter == DateFilter.LAST_7_DAYS:
            result = [a for a in result if a.created_at >= now - timedelta(days=7)]
        elif date_filter == DateFilter.LAST_30_DAYS:
            result = [a for a in result if a.created_at >= now - timedelta(days=30)]

        query = self.search_text.strip().casefold()
        if query:
            result = [
                a for a in result
                if query in a.title.casefold() or query in (a.subtitle or "").casefold()
            ]
        return result

    def grouped(self, now: Optional[datetime] = None) -> list[tuple[str, list[Activity]]]:
        """Filtrelenmiş aktiviteleri gün etiketine göre gruplar; en yeni grup önce.

        Bugün ve dün için "Today"/"Yesterday", diğer günler için uzun tarih.
        """
        now = ensure_aware(now or utcnow())
        today = local_day(now, self.tz)
        yesterday = today - timedelta(days=1)

        groups: dict[str, list[Activity]] = {}
        latest: dict[str, datetime] = {}
        for activity in self.filtered(now):
            local = ensure_aware(activity.created_at).astimezone(self.tz)
            day = local.date()
            if day == today:
                label = TODAY_LABEL
            elif day == yesterday:
                label = YESTERDAY_LABEL
            else:
                label = long_date_label(local)
            groups.setdefault(label, []).append(activity)
            if label not in latest or activity.created_at > latest[label]:
                latest[label] = activity.created_at

        ordered = sorted(groups, key=lambda label: latest[label], reverse=True)
        return [(label, groups[label]) for label in ordered]
