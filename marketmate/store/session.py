"""Kimliği doğrulanmış kullanıcı erişimi."""

from __future__ import annotations

import logging
from typing import Optional

from marketmate.errors import NoSessionError

logger = logging.getLogger(__name__)


class AuthSession:
    """Geçerli kullanıcı kimliğini tutar.

    Kimlik doğrulama protokolü bu paketin dışında kalır; oturum açma akışı
    tamamlandığında sign_in ile kullanıcı kimliği verilir.
    """

    def __init__(self, user_id: Optional[str] = None) -> None:
        self._user_id = user_id

    @property
    def user_id(self) -> Optional[str]:
        return self._user_id

    @property
    def is_authenticated(self) -> bool:
        return bool(self._user_id)

    def sign_in(self, user_id: str) -> None:
        if not user_id:
            raise NoSessionError("Boş kullanıcı kimliği ile oturum açılamaz")
        self._user_id = user_id
        logger.info("Oturum açıldı: %s", user_id)

    def sign_out(self) -> None:
        logger.info("Oturum kapatıldı: %s", self._user_id)
        self._user_id = None

    def require_user_id(self) -> str:
        """Kullanıcı kimliğini döndürür; oturum yoksa çağrı yapılmadan hata verir."""
        if not self._user_id:
            raise NoSessionError()
        return self._user_id
