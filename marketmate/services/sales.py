"""Satış ekranı - sepet, ödeme, satış oluşturma ve satış düzenleme."""

from __future__ import annotations

import logging
import uuid
from decimal import Decimal
from typing import Any, Optional, Sequence

from marketmate.errors import MarketMateError, SaleEditError, StoreError
from marketmate.models.market import (
    ZERO,
    ActivityType,
    CartItem,
    Market,
    Product,
    SaleLineItem,
    SaleRecord,
)
from marketmate.services.base_service import BaseService
from marketmate.services.reconciliation import SaleEditResult, apply_sale_edit, reconcile_stock
from marketmate.services.validation import EntryValidator, parse_amount

logger = logging.getLogger(__name__)

PAYMENT_METHODS = ("Cash", "Card", "Transfer")
DEFAULT_SOURCE = "App"
DISCOUNT_LABEL = "Discount"
SALES_CACHE = "sales.json"


def line_items_total(items: Sequence[SaleLineItem]) -> Decimal:
    """Satırların birim fiyat x miktar toplamı (indirim satırı negatiftir)."""
    return sum((item.line_total for item in items), ZERO)


class SalesService(BaseService):
    """Sepet durumu ve satış listesi."""

    def __init__(self, *args: Any, validator: Optional[EntryValidator] = None, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.validator = validator or EntryValidator()
        self.sales: list[SaleRecord] = []
        self.cart: list[CartItem] = []
        self.last_edit_result: Optional[SaleEditResult] = None

    # --- Sepet ---

    @property
    def cart_total(self) -> Decimal:
        return sum((item.line_total for item in self.cart), ZERO)

    @property
    def cart_quantity(self) -> int:
        return sum(item.quantity for item in self.cart)

    def _find_product_line(self, product_id: str) -> Optional[CartItem]:
        for item in self.cart:
            if item.product is not None and item.product.product_id == product_id:
                return item
        return None

    def add_to_cart(self, product: Product) -> CartItem:
        """Ürün sepette varsa miktarını 1 artırır, yoksa yeni satır ekler."""
        line = self._find_product_line(product.product_id)
        if line is not None:
            line.quantity += 1
            return line
        line = CartItem(name=product.name, price=product.price, quantity=1, product=product)
        self.cart.append(line)
        return line

    def remove_from_cart(self, product: Product) -> None:
        """Miktarı 1 azaltır; 1 iken satırı sepetten çıkarır."""
        line = self._find_product_line(product.product_id)
        if line is None:
            return
        if line.quantity > 1:
            line.quantity -= 1
        else:
            self.cart.remove(line)

    def add_custom_item(self, amount_text: str, name: str = "Custom Amount", quantity: int = 1) -> CartItem:
        """Ürüne bağlı olmayan serbest tutar satırı ekler."""
        amount = self.validator.validate_amount_text(amount_text)
        self.validator.validate_quantity(quantity).raise_if_invalid()
        line = CartItem(name=name.strip() or "Custom Amount", price=amount, quantity=quantity)
        self.cart.append(line)
        return line

    def remove_cart_line(self, line: CartItem) -> None:
        if line in self.cart:
            self.cart.remove(line)

    def clear_cart(self) -> None:
        self.cart.clear()

    # --- Ödeme hesapları ---

    def discount_amount(self, value_text: Optional[str], is_percentage: bool = False) -> Decimal:
        """İndirim tutarı. Yüzde ise sepet toplamının yüzdesidir; geçersiz metin 0 sayılır."""
        value = parse_amount(value_text)
        if value is None or value <= 0:
            return ZERO
        if is_percentage:
            return self.cart_total * value / Decimal("100")
        return value

    def final_total(self, discount: Decimal = ZERO) -> Decimal:
        return max(ZERO, self.cart_total - discount)

    @staticmethod
    def change_due(cash_text: Optional[str], final_total: Decimal) -> Decimal:
        """Nakit ödemede para üstü; geçersiz ya da yetersiz nakitte 0."""
        cash = parse_amount(cash_text)
        if cash is None:
            return ZERO
        return max(ZERO, cash - final_total)

    def cart_line_items(self, discount: Decimal = ZERO) -> list[SaleLineItem]:
        """Sepeti satış satırlarına çevirir; indirim negatif fiyatlı ayrı satırdır."""
        items = [
            SaleLineItem(
                item_id="",
                sale_id="",
                product_id=line.product.product_id if line.product else None,
                product_name=line.name,
                quantity=line.quantity,
                price_at_sale=line.price,
                cost_at_sale=line.product.cost if line.product else None,
            )
            for line in self.cart
        ]
        if discount > 0:
            items.append(SaleLineItem(
                item_id="",
                sale_id="",
                product_name=DISCOUNT_LABEL,
                quantity=1,
                price_at_sale=-discount,
            ))
        return items

    def checkout(
        self,
        payment_method: str = "Cash",
        discount_text: Optional[str] = None,
        is_percentage: bool = False,
        source: Optional[str] = DEFAULT_SOURCE,
        notes: Optional[str] = None,
        market: Optional[Market] = None,
    ) -> Optional[SaleRecord]:
        """Sepetteki ürünlerle satış oluşturur; başarılıysa sepet temizlenir."""
        discount = self.discount_amount(discount_text, is_percentage)
        sale = self.create_sale(
            items=self.cart_line_items(discount),
            total=self.final_total(discount),
            payment_method=payment_method,
            source=source,
            notes=notes.strip() if notes and notes.strip() else None,
            market_id=market.market_id if market else None,
            market_location=market.location if market else None,
        )
        if sale is not None:
            self.clear_cart()
        return sale

    # --- Satışlar ---

    def _validate_entry(
        self, items: Sequence[SaleLineItem], total: Decimal, payment_method: Optional[str]
    ) -> None:
        """Satış ve satır miktarlarını birlikte doğrular, hata varsa ValidationError."""
        result = self.validator.validate_sale(len(items), total, payment_method)
        for item in items:
            result.errors.extend(self.validator.validate_quantity(item.quantity).errors)
        result.is_valid = not result.errors
        result.raise_if_invalid()

    def create_sale(
        self,
        items: list[SaleLineItem],
        total: Decimal,
        payment_method: str,
        source: Optional[str] = None,
        notes: Optional[str] = None,
        market_id: Optional[str] = None,
        market_location: Optional[str] = None,
    ) -> Optional[SaleRecord]:
        """Satışı ve satırlarını yazar, ürün stoklarını düşer, aktivite kaydeder."""
        self.error_message = None
        try:
            self._validate_entry(items, total, payment_method)
            user_id = self.session.require_user_id()
        except MarketMateError as e:
            self._fail("Satış oluşturulamadı", e)
            return None

        sale = SaleRecord(
            sale_id=str(uuid.uuid4()),
            user_id=user_id,
            total_amount=total,
            payment_method=payment_method,
            market_id=market_id,
            market_location=market_location,
            source=source,
            notes=notes,
        )
        self.is_loading = True
        try:
            self.store.put_sale(sale)
            sale.items = self.store.insert_line_items(sale.sale_id, items, user_id=user_id)
        except StoreError as e:
            self._fail("Satış oluşturulamadı", e)
            return None
        finally:
            self.is_loading = False
        logger.info("Satış oluşturuldu: %s (%s, %s)", sale.sale_id, total, payment_method)

        # Yeni satış: tüm ürün satırları stoktan düşer
        for delta in reconcile_stock([], items):
            try:
                self.store.adjust_stock(delta.product_id, delta.change, user_id=user_id)
            except StoreError as e:
                logger.warning("Stok düşülemedi: %s %+d: %s", delta.product_id, delta.change, e)

        item_count = sum(item.quantity for item in items if item.product_id is not None)
        self.record_activity(
            ActivityType.SALE,
            title=f"Sale - {payment_method}",
            subtitle=market_location,
            amount=total,
            quantity=item_count or None,
        )
        self.fetch_sales()
        return sale

    def fetch_sales(self) -> list[SaleRecord]:
        """Önce cache'i gösterir, sonra depodan günceller. Hata durumunda liste korunur."""
        self.error_message = None
        cached = self.cache.load(SaleRecord, SALES_CACHE)
        if cached is not None:
            self.sales = cached

        self.is_loading = True
        try:
            user_id = self.session.require_user_id()
            sales = self.store.fetch_sales(user_id, include_items=True)
        except MarketMateError as e:
            self._fail("Satışlar alınamadı", e)
            return self.sales
        finally:
            self.is_loading = False

        self.sales = sales
        self.cache.save(sales, SALES_CACHE)
        return self.sales

    def update_sale(self, sale: SaleRecord) -> bool:
        """Satırlara dokunmadan satış alanlarını günceller."""
        self.error_message = None
        try:
            user_id = self.session.require_user_id()
            self.validator.validate_sale(1, sale.total_amount, sale.payment_method).raise_if_invalid()
            self.store.update_sale(sale, user_id=user_id)
        except MarketMateError as e:
            self._fail("Satış güncellenemedi", e)
            return False
        logger.info("Satış güncellendi: %s", sale.sale_id)
        self.fetch_sales()
        return True

    def update_sale_with_items(
        self, sale: SaleRecord, updated_items: list[SaleLineItem]
    ) -> Optional[SaleEditResult]:
        """Düzenlenen satırları uygular: stok mutabakatı, satır değişimi, satış güncellemesi.

        Oturum ve giriş depoya dokunmadan önce doğrulanır. Orijinal satırlar
        `sale.items` içinden alınır; yoksa depodan okunur. Kısmi hata durumunda
        sonuç `last_edit_result` içinde kalır.
        """
        self.error_message = None
        try:
            user_id = self.session.require_user_id()
            self._validate_entry(updated_items, sale.total_amount, sale.payment_method)
        except MarketMateError as e:
            self._fail("Satış güncellenemedi", e)
            return None

        self.is_loading = True
        try:
            original = sale.items if sale.items is not None else self.store.fetch_sale_items(sale.sale_id)
            result = apply_sale_edit(
                self.store, sale, original, updated_items,
                atomic=self.settings.atomic_sale_edits, user_id=user_id,
            )
        except SaleEditError as e:
            self.last_edit_result = e.result
            self._fail("Satış güncellenemedi", e)
            # Kısmi değişiklikler uygulanmış olabilir, liste depodan yenilenir
            self.fetch_sales()
            self.error_message = f"Satış güncellenemedi: {e}"
            return e.result
        except StoreError as e:
            self._fail("Satış satırları okunamadı", e)
            return None
        finally:
            self.is_loading = False

        self.last_edit_result = result
        self.fetch_sales()
        return result
