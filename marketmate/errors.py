"""Hata sınıfları - servis katmanının hata taksonomisi."""

from __future__ import annotations

from typing import Any, Optional


class MarketMateError(Exception):
    """Tüm uygulama hatalarının temel sınıfı."""
    pass


class ConfigurationError(MarketMateError):
    """Ortam değişkenlerinden okunan ayar geçersiz."""
    pass


class ValidationError(MarketMateError):
    """Giriş validasyon hatası. Store çağrısından önce yükseltilir."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Geçersiz giriş")


class NoSessionError(MarketMateError):
    """Kullanıcı oturumu yok."""

    def __init__(self, message: str = "Kullanıcı oturum açmamış"):
        super().__init__(message)


class StoreError(MarketMateError):
    """Uzak tablo deposu çağrısı başarısız."""

    def __init__(self, operation: str, message: str):
        self.operation = operation
        super().__init__(f"{operation}: {message}")


class RecordNotFoundError(StoreError):
    """Güncellenmek istenen kayıt bulunamadı."""
    pass


class SaleEditError(MarketMateError):
    """Satış düzenleme tamamen ya da kısmen başarısız oldu.

    `result` hangi stok değişikliklerinin uygulandığını ve hangilerinin
    başarısız olduğunu taşır.
    """

    def __init__(self, message: str, result: Optional[Any] = None):
        self.result = result
        super().__init__(message)
