"""Görüntüleme yardımcıları - para birimi, yüzde ve top-N kesme."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Sequence, TypeVar

T = TypeVar("T")

DEFAULT_CURRENCY = "USD"
SUPPORTED_CURRENCIES = ("USD", "EUR", "GBP", "JPY", "AUD", "CAD")
CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "AUD": "A$",
    "CAD": "C$",
}
TOP_N = 4

_CENTS = Decimal("0.01")


def currency_symbol(code: Optional[str]) -> str:
    """Para birimi kodunun sembolü; bilinmeyen kod olduğu gibi gösterilir."""
    if not code:
        return CURRENCY_SYMBOLS[DEFAULT_CURRENCY]
    code = code.upper()
    return CURRENCY_SYMBOLS.get(code, code)


def format_currency(amount: Decimal, code: Optional[str] = DEFAULT_CURRENCY) -> str:
    """"$ 12.50" biçiminde iki ondalıklı tutar."""
    value = Decimal(amount).quantize(_CENTS, rounding=ROUND_HALF_UP)
    return f"{currency_symbol(code)} {value:.2f}"


def format_percent(ratio: Decimal) -> str:
    """0..1 oranını ondalıksız yüzdeye çevirir: 0.7222 -> "72%"."""
    value = (Decimal(ratio) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return f"{value:.0f}%"


def top(entries: Sequence[T], n: int = TOP_N) -> list[T]:
    """Sıralı dağılımın ilk n elemanı (ekranda gösterilen kısım)."""
    if n <= 0:
        return []
    return list(entries[:n])
