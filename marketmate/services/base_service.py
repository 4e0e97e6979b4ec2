"""Tüm servisler için temel sınıf - depo, oturum ve ayar bağımlılıkları."""

from __future__ import annotations

import logging
import uuid
from decimal import Decimal
from typing import Optional

from marketmate.config import Settings, load_settings
from marketmate.errors import MarketMateError, StoreError
from marketmate.models.market import Activity, ActivityType
from marketmate.store.dynamodb_store import MarketStore
from marketmate.store.offline_cache import OfflineCache
from marketmate.store.session import AuthSession
from marketmate.time_utils import get_zone

logger = logging.getLogger(__name__)


class BaseService:
    """Ekran durumunu tutan servislerin ortak temeli.

    Depo, oturum ve cache dışarıdan verilebilir (testlerde MagicMock).
    Hatalar `error_message` alanına kısa bir mesaj olarak yazılır.
    """

    def __init__(
        self,
        store: Optional[MarketStore] = None,
        session: Optional[AuthSession] = None,
        settings: Optional[Settings] = None,
        cache: Optional[OfflineCache] = None,
    ):
        self.settings = settings or load_settings()
        self.store = store or MarketStore(settings=self.settings)
        self.session = session or AuthSession(self.settings.user_id)
        self.cache = cache or OfflineCache(self.settings.cache_dir)
        self.tz = get_zone(self.settings.timezone)

        self.error_message: Optional[str] = None
        self.is_loading = False

        logger.debug("Servis başlatıldı: %s", type(self).__name__)

    def _fail(self, message: str, error: MarketMateError) -> None:
        """Hatayı loglar ve kullanıcıya gösterilecek mesajı ayarlar."""
        logger.error("%s: %s", message, error)
        self.error_message = f"{message}: {error}"

    def clear_error(self) -> None:
        self.error_message = None

    def record_activity(
        self,
        activity_type: ActivityType,
        title: str,
        subtitle: Optional[str] = None,
        amount: Optional[Decimal] = None,
        quantity: Optional[int] = None,
    ) -> Optional[Activity]:
        """Aktivite akışına kayıt ekler. Hata ana işlemi bozmaz, sadece loglanır."""
        user_id = self.session.user_id
        if not user_id:
            logger.warning("Oturum yok, aktivite kaydedilmedi: %s", title)
            return None

        activity = Activity(
            activity_id=str(uuid.uuid4()),
            user_id=user_id,
            activity_type=activity_type,
            title=title,
            subtitle=subtitle,
            amount=amount,
            quantity=quantity,
        )
        try:
            self.store.put_activity(activity)
        except StoreError as e:
            logger.warning("Aktivite kaydetme hatası: %s", e)
            return None
        return activity
