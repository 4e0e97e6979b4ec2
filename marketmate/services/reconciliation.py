"""Satış Düzenleme Mutabakatı - düzenlenen satışın stok etkisini hesaplar ve uygular.

Eşleştirme anahtarı product_id'dir. Ürün kimliği olmayan (serbest tutar)
satırlar hiçbir zaman stok değişikliği üretmez. Aynı ürün bir satışta birden
fazla satırda geçebileceği için miktarlar önce ürün bazında toplanır, sonra
fark alınır.

Stok yönü satış miktarının tersidir: daha az satılırsa fark stoğa döner,
daha çok satılırsa stoktan düşer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from marketmate.errors import SaleEditError, StoreError
from marketmate.models.market import SaleLineItem, SaleRecord, StockDelta
from marketmate.store.dynamodb_store import MAX_TRANSACTION_ITEMS

logger = logging.getLogger(__name__)


@dataclass
class FailedDelta:
    delta: StockDelta
    error: str


@dataclass
class SaleEditResult:
    sale_id: str
    deltas: list[StockDelta] = field(default_factory=list)
    applied: list[StockDelta] = field(default_factory=list)
    failed: list[FailedDelta] = field(default_factory=list)
    items_replaced: bool = False
    atomic: bool = False
    items: list[SaleLineItem] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return self.items_replaced and not self.failed


def _quantities_by_product(items: Sequence[SaleLineItem]) -> dict[str, int]:
    """Ürün kimliği olan satırların miktarlarını ürün bazında toplar (ilk görülme sırası korunur)."""
    totals: dict[str, int] = {}
    for item in items:
        if item.product_id is None:
            continue
        totals[item.product_id] = totals.get(item.product_id, 0) + item.quantity
    return totals


def reconcile_stock(
    original: Sequence[SaleLineItem], updated: Sequence[SaleLineItem]
) -> list[StockDelta]:
    """Orijinal ve yeni satır setinden ürün başına net stok değişikliğini hesaplar.

    - Her iki tarafta olan ürün: orijinal - yeni (0 ise değişiklik yok)
    - Kaldırılan ürün: orijinal miktarın tamamı stoğa döner
    - Yeni eklenen ürün: yeni miktar stoktan düşer

    Sıra: önce orijinal satırlardaki ürünler, sonra yeni eklenenler.
    """
    before = _quantities_by_product(original)
    after = _quantities_by_product(updated)

    deltas: list[StockDelta] = []
    for product_id, original_qty in before.items():
        change = original_qty - after.get(product_id, 0)
        if change != 0:
            deltas.append(StockDelta(product_id=product_id, change=change))
    for product_id, updated_qty in after.items():
        if product_id not in before:
            deltas.append(StockDelta(product_id=product_id, change=-updated_qty))
    return deltas


def transaction_size(
    original: Sequence[SaleLineItem], updated: Sequence[SaleLineItem], deltas: Sequence[StockDelta]
) -> int:
    """Tek transaction'da yazılacak işlem sayısı: stok + silinen + eklenen satırlar + satış."""
    return len(deltas) + len(original) + len(updated) + 1


def apply_sale_edit(
    store: Any,
    sale: SaleRecord,
    original: Sequence[SaleLineItem],
    updated: Sequence[SaleLineItem],
    atomic: bool = True,
    user_id: Optional[str] = None,
) -> SaleEditResult:
    """Düzenlenen satışı depoya uygular.

    atomic=True ve işlem sayısı DynamoDB limitine sığıyorsa stok değişiklikleri,
    satır değişimi ve satış güncellemesi tek transaction ile yazılır.
    Aksi halde sıralı yol çalışır: her stok değişikliği ayrı çağrıdır, tek bir
    hata diğerlerini durdurmaz; ardından satırlar silinip yeniden eklenir ve
    satış güncellenir. Herhangi bir hata SaleEditError ile bildirilir ve
    kısmi sonuç hatanın içinde taşınır.

    Tüm yazmalar `user_id` (verilmezse `sale.user_id`) sahipliği koşuluyla yapılır.
    """
    owner = user_id or sale.user_id
    deltas = reconcile_stock(original, updated)
    result = SaleEditResult(sale_id=sale.sale_id, deltas=list(deltas))

    if atomic and transaction_size(original, updated, deltas) <= MAX_TRANSACTION_ITEMS:
        try:
            result.items = store.transact_sale_edit(sale, deltas, list(updated), user_id=owner)
        except StoreError as e:
            logger.error("Satış transaction'ı başarısız, hiçbir değişiklik uygulanmadı: %s", e)
            raise SaleEditError(f"Satış güncellenemedi: {e}", result) from e
        result.atomic = True
        result.applied = list(deltas)
        result.items_replaced = True
        return result

    # Sıralı yol - transaction yok, geri alma yok
    for delta in deltas:
        try:
            store.adjust_stock(delta.product_id, delta.change, user_id=owner)
            result.applied.append(delta)
        except StoreError as e:
            logger.warning("Stok değişikliği başarısız: %s %+d: %s", delta.product_id, delta.change, e)
            result.failed.append(FailedDelta(delta=delta, error=str(e)))

    try:
        store.delete_line_items(sale.sale_id, user_id=owner)
        result.items = store.insert_line_items(sale.sale_id, list(updated), user_id=owner)
        store.update_sale(sale, user_id=owner)
        result.items_replaced = True
    except StoreError as e:
        logger.error(
            "Satış satırları değiştirilemedi (%d stok değişikliği uygulanmıştı): %s",
            len(result.applied), e,
        )
        raise SaleEditError(f"Satış güncellenemedi: {e}", result) from e

    if result.failed:
        failed_ids = ", ".join(f.delta.product_id for f in result.failed)
        raise SaleEditError(f"Bazı ürünlerin stoğu güncellenemedi: {failed_ids}", result)

    logger.info("Satış güncellendi: %s (%d stok değişikliği)", sale.sale_id, len(result.applied))
    return result

