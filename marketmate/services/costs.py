"""Maliyetler ekranı - gider kayıtları ve gider kategorileri."""

from __future__ import annotations

import logging
import uuid
from typing import Any, Optional

from marketmate.errors import MarketMateError
from marketmate.models.market import ActivityType, CostCategory, CostRecord
from marketmate.services.base_service import BaseService
from marketmate.services.validation import EntryValidator

logger = logging.getLogger(__name__)

COSTS_CACHE = "costs.json"


class CostsService(BaseService):
    def __init__(self, *args: Any, validator: Optional[EntryValidator] = None, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.validator = validator or EntryValidator()
        self.costs: list[CostRecord] = []
        self.categories: list[CostCategory] = []

    def fetch_costs(self) -> list[CostRecord]:
        """Cache'teki listeyi gösterir, sonra depodan günceller."""
        self.error_message = None
        cached = self.cache.load(CostRecord, COSTS_CACHE)
        if cached is not None:
            self.costs = cached

        self.is_loading = True
        try:
            user_id = self.session.require_user_id()
            costs = self.store.fetch_costs(user_id)
        except MarketMateError as e:
            self._fail("Maliyetler alınamadı", e)
            return self.costs
        finally:
            self.is_loading = False

        self.costs = costs
        self.cache.save(costs, COSTS_CACHE)
        return self.costs

    def fetch_categories(self) -> list[CostCategory]:
        try:
            user_id = self.session.require_user_id()
            self.categories = self.store.fetch_cost_categories(user_id)
        except MarketMateError as e:
            # Kategoriler opsiyonel, ekran kategorisiz de çalışır
            logger.warning("Kategoriler alınamadı: %s", e)
        return self.categories

    def add_category(
        self, name: str, color: Optional[str] = None, icon: Optional[str] = None
    ) -> Optional[CostCategory]:
        self.error_message = None
        try:
            self.validator.validate_required(name, "Kategori adı").raise_if_invalid()
            user_id = self.session.require_user_id()
            category = CostCategory(
                category_id=str(uuid.uuid4()),
                user_id=user_id,
                name=name.strip(),
                color=color,
                icon=icon,
            )
            self.store.put_cost_category(category)
        except MarketMateError as e:
            self._fail("Kategori eklenemedi", e)
            return None
        self.categories.append(category)
        return category

    def add_cost(
        self,
        description: str,
        amount_text: str,
        category: Optional[str] = None,
        is_recurrent: bool = False,
        market_id: Optional[str] = None,
    ) -> Optional[CostRecord]:
        """Tutar metnini doğrular ve gider kaydı ekler."""
        self.error_message = None
        try:
            amount = self.validator.validate_amount_text(amount_text)
            self.validator.validate_cost(description, amount).raise_if_invalid()
            user_id = self.session.require_user_id()
            cost = CostRecord(
                cost_id=str(uuid.uuid4()),
                user_id=user_id,
                description=description.strip(),
                amount=amount,
                market_id=market_id,
                category=category,
                is_recurrent=is_recurrent,
            )
            self.store.put_cost(cost)
        except MarketMateError as e:
            self._fail("Maliyet eklenemedi", e)
            return None

        logger.info("Maliyet eklendi: %s (%s)", cost.description, cost.amount)
        self.record_activity(
            ActivityType.COST, title=cost.description, subtitle=category, amount=cost.amount
        )
        self.fetch_costs()
        return cost

    def update_cost(self, cost: CostRecord) -> bool:
        self.error_message = None
        try:
            self.validator.validate_cost(cost.description, cost.amount).raise_if_invalid()
            self.store.put_cost(cost)
        except MarketMateError as e:
            self._fail("Maliyet güncellenemedi", e)
            return False
        logger.info("Maliyet güncellendi: %s", cost.cost_id)
        self.fetch_costs()
        return True

    def delete_cost(self, cost_id: str) -> bool:
        self.error_message = None
        try:
            user_id = self.session.require_user_id()
            self.store.delete_cost(cost_id, user_id=user_id)
        except MarketMateError as e:
            self._fail("Maliyet silinemedi", e)
            return False
        logger.info("Maliyet silindi: %s", cost_id)
        self.fetch_costs()
        return True
