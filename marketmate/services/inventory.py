"""Envanter ekranı - ürün listesi, ürün CRUD ve stok düzeltmeleri."""

from __future__ import annotations

import dataclasses
import logging
import uuid
from decimal import Decimal
from typing import Any, Optional

from marketmate.errors import MarketMateError, StoreError, ValidationError
from marketmate.models.market import ActivityType, Product
from marketmate.services.base_service import BaseService
from marketmate.services.validation import EntryValidator

logger = logging.getLogger(__name__)

PRODUCTS_CACHE = "products.json"


class InventoryService(BaseService):
    """Ürünleri yönetir. Liste cache'ten anında gösterilir, depodan güncellenir."""

    def __init__(self, *args: Any, validator: Optional[EntryValidator] = None, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.validator = validator or EntryValidator()
        self.products: list[Product] = []

    def get_product(self, product_id: str) -> Optional[Product]:
        for product in self.products:
            if product.product_id == product_id:
                return product
        return None

    def fetch_products(self) -> list[Product]:
        self.error_message = None
        cached = self.cache.load(Product, PRODUCTS_CACHE)
        if cached is not None:
            self.products = cached

        self.is_loading = True
        try:
            user_id = self.session.require_user_id()
            products = self.store.fetch_products(user_id)
        except MarketMateError as e:
            self._fail("Ürünler alınamadı", e)
            return self.products
        finally:
            self.is_loading = False

        self.products = products
        self.cache.save(products, PRODUCTS_CACHE)
        return self.products

    def add_product(
        self,
        name: str,
        price: Decimal,
        cost: Optional[Decimal] = None,
        stock: Optional[int] = None,
        category_id: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Optional[Product]:
        self.error_message = None
        try:
            self.validator.validate_product(name, price, cost, stock).raise_if_invalid()
            user_id = self.session.require_user_id()
            product = Product(
                product_id=str(uuid.uuid4()),
                user_id=user_id,
                name=name.strip(),
                price=price,
                description=description,
                cost=cost,
                stock_quantity=stock,
                category_id=category_id,
            )
            self.store.put_product(product)
        except MarketMateError as e:
            self._fail("Ürün eklenemedi", e)
            return None

        logger.info("Ürün eklendi: %s (%s)", product.name, product.product_id)
        self.record_activity(
            ActivityType.PRODUCT_CREATED, title=product.name, amount=product.price, quantity=stock
        )
        self.fetch_products()
        return product

    def update_product(self, product: Product) -> bool:
        self.error_message = None
        try:
            self.validator.validate_product(
                product.name, product.price, product.cost, product.stock_quantity
            ).raise_if_invalid()
            self.store.put_product(product)
        except MarketMateError as e:
            self._fail("Ürün güncellenemedi", e)
            return False

        logger.info("Ürün güncellendi: %s", product.product_id)
        self.record_activity(
            ActivityType.PRODUCT_UPDATED, title=product.name, amount=product.price,
            quantity=product.stock_quantity,
        )
        self.fetch_products()
        return True

    def delete_product(self, product_id: str) -> bool:
        self.error_message = None
        product = self.get_product(product_id)
        try:
            user_id = self.session.require_user_id()
            self.store.delete_product(product_id, user_id=user_id)
        except MarketMateError as e:
            self._fail("Ürün silinemedi", e)
            return False

        logger.info("Ürün silindi: %s", product_id)
        self.record_activity(
            ActivityType.PRODUCT_DELETED, title=product.name if product else product_id
        )
        self.fetch_products()
        return True

    def adjust_stock(self, product_id: str, change: int) -> Optional[int]:
        """Stoğu önce yerelde değiştirir, sonra depoya yazar.

        Depo yeni miktarı döndürünce yerel değer onunla eşitlenir; hata olursa
        yerel değer eski haline döner. Ürün yerelde yoksa sadece depo çağrılır.
        """
        try:
            user_id = self.session.require_user_id()
        except MarketMateError as e:
            self._fail("Stok güncellenemedi", e)
            return None

        index = next(
            (i for i, p in enumerate(self.products) if p.product_id == product_id), None
        )
        previous = self.products[index] if index is not None else None
        if previous is not None:
            self.products[index] = dataclasses.replace(
                previous, stock_quantity=(previous.stock_quantity or 0) + change
            )

        try:
            new_quantity = self.store.adjust_stock(product_id, change, user_id=user_id)
        except StoreError as e:
            if previous is not None:
                self.products[index] = previous
            self._fail("Stok güncellenemedi", e)
            return None

        if previous is not None:
            self.products[index] = dataclasses.replace(previous, stock_quantity=new_quantity)
        logger.info("Stok güncellendi: %s %+d -> %d", product_id, change, new_quantity)
        return new_quantity

    def low_stock(self, threshold: int = 5) -> list[Product]:
        """Stok takibi yapılan ve eşik altına düşen ürünler."""
        if threshold < 0:
            raise ValidationError([f"Eşik negatif olamaz: {threshold}"])
        return [
            p for p in self.products
            if p.stock_quantity is not None and p.stock_quantity <= threshold
        ]
