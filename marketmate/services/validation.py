"""Giriş Validasyonu - store çağrısından önce kullanıcı girişini doğrular.

Hatalı giriş hiçbir kısmi durum oluşturmaz: servisler önce doğrular,
sonra depoya yazar.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Optional

from marketmate.errors import ValidationError
from marketmate.formatting import SUPPORTED_CURRENCIES

logger = logging.getLogger(__name__)

_AMOUNT_CHARS = re.compile(r"^\d*[.,]?\d*$")


@dataclass
class ValidationResult:
    is_valid: bool
    errors: list[str] = field(default_factory=list)

    def raise_if_invalid(self) -> None:
        if not self.is_valid:
            logger.info("Validasyon hatası: %s", "; ".join(self.errors))
            raise ValidationError(self.errors)


def parse_amount(text: Optional[str]) -> Optional[Decimal]:
    """Tutar metnini Decimal'e çevirir; virgül ondalık ayırıcı kabul edilir.

    Sayısal olmayan ya da boş metin için None döner.
    """
    if text is None:
        return None
    s = text.strip().replace(" ", "")
    if not s or not _AMOUNT_CHARS.match(s) or s in (".", ","):
        return None
    try:
        return Decimal(s.replace(",", "."))
    except InvalidOperation:
        return None


class EntryValidator:
    """Ürün, maliyet, satış ve profil girişleri için kurallar."""

    @staticmethod
    def _required(value: Optional[str], label: str, errors: list[str]) -> None:
        if value is None or not value.strip():
            errors.append(f"{label} boş olamaz")

    def validate_required(self, value: Optional[str], label: str) -> ValidationResult:
        errors: list[str] = []
        self._required(value, label, errors)
        return ValidationResult(is_valid=not errors, errors=errors)

    def validate_amount_text(self, text: Optional[str], label: str = "Tutar") -> Decimal:
        """Tutar metnini doğrular ve değeri döndürür. Negatif değer kabul edilmez."""
        amount = parse_amount(text)
        errors: list[str] = []
        if amount is None:
            errors.append(f"{label} sayısal olmalı: {text!r}")
        elif amount < 0:
            errors.append(f"{label} negatif olamaz: {amount}")
        ValidationResult(is_valid=not errors, errors=errors).raise_if_invalid()
        return amount

    def validate_product(
        self, name: Optional[str], price: Optional[Decimal], cost: Optional[Decimal] = None,
        stock: Optional[int] = None,
    ) -> ValidationResult:
        errors: list[str] = []
        self._required(name, "Ürün adı", errors)
        if price is None:
            errors.append("Fiyat gerekli")
        elif price < 0:
            errors.append(f"Fiyat negatif olamaz: {price}")
        if cost is not None and cost < 0:
            errors.append(f"Maliyet negatif olamaz: {cost}")
        if stock is not None and stock < 0:
            errors.append(f"Stok negatif olamaz: {stock}")
        return ValidationResult(is_valid=not errors, errors=errors)

    def validate_cost(self, description: Optional[str], amount: Optional[Decimal]) -> ValidationResult:
        errors: list[str] = []
        self._required(description, "Açıklama", errors)
        if amount is None:
            errors.append("Tutar gerekli")
        elif amount < 0:
            errors.append(f"Tutar negatif olamaz: {amount}")
        return ValidationResult(is_valid=not errors, errors=errors)

    def validate_sale(
        self, item_count: int, total: Decimal, payment_method: Optional[str]
    ) -> ValidationResult:
        """Satış girişi: en az bir satır, negatif olmayan toplam, ödeme yöntemi."""
        errors: list[str] = []
        if item_count <= 0:
            errors.append("Satışta en az bir satır olmalı")
        if total < 0:
            errors.append(f"Satış toplamı negatif olamaz: {total}")
        self._required(payment_method, "Ödeme yöntemi", errors)
        return ValidationResult(is_valid=not errors, errors=errors)

    def validate_quantity(self, quantity: int) -> ValidationResult:
        errors = [] if quantity > 0 else [f"Miktar pozitif olmalı: {quantity}"]
        return ValidationResult(is_valid=not errors, errors=errors)

    def validate_currency(self, code: Optional[str]) -> ValidationResult:
        errors: list[str] = []
        if not code or len(code) != 3 or not code.isalpha():
            errors.append(f"Para birimi 3 harfli kod olmalı: {code!r}")
        elif code.upper() not in SUPPORTED_CURRENCIES:
            errors.append(f"Desteklenmeyen para birimi: {code}")
        return ValidationResult(is_valid=not errors, errors=errors)
