"""Pazar satıcısı veri modelleri - satış, maliyet, ürün ve rapor tanımları."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from marketmate.time_utils import utcnow

ZERO = Decimal("0")


class TimeRange(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class ActivityType(str, Enum):
    SALE = "sale"
    COST = "cost"
    PRODUCT_CREATED = "product_created"
    PRODUCT_UPDATED = "product_updated"
    PRODUCT_DELETED = "product_deleted"
    MARKET_OPENED = "market_opened"
    MARKET_CLOSED = "market_closed"


@dataclass
class SaleLineItem:
    item_id: str
    sale_id: str
    product_name: str
    quantity: int
    price_at_sale: Decimal
    product_id: Optional[str] = None  # None: serbest tutar, stoğa bağlı değil
    cost_at_sale: Optional[Decimal] = None

    @property
    def line_total(self) -> Decimal:
        return self.price_at_sale * self.quantity


@dataclass
class SaleRecord:
    sale_id: str
    user_id: str
    total_amount: Decimal
    payment_method: str
    market_id: Optional[str] = None
    market_location: Optional[str] = None
    source: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    items: Optional[list[SaleLineItem]] = None


@dataclass
class CostRecord:
    cost_id: str
    user_id: str
    description: str
    amount: Decimal
    market_id: Optional[str] = None
    category: Optional[str] = None
    is_recurrent: Optional[bool] = None
    created_at: datetime = field(default_factory=utcnow)


@dataclass
class CostCategory:
    category_id: str
    user_id: str
    name: str
    color: Optional[str] = None
    icon: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)


@dataclass
class Product:
    product_id: str
    user_id: str
    name: str
    price: Decimal
    description: Optional[str] = None
    cost: Optional[Decimal] = None
    stock_quantity: Optional[int] = None
    category_id: Optional[str] = None
    image_url: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)


@dataclass
class Market:
    market_id: str
    user_id: str
    name: str
    date: datetime
    is_open: bool
    location: Optional[str] = None
    latitude: Optional[Decimal] = None
    longitude: Optional[Decimal] = None
    created_at: datetime = field(default_factory=utcnow)


@dataclass
class Activity:
    activity_id: str
    user_id: str
    activity_type: ActivityType
    title: str
    subtitle: Optional[str] = None
    amount: Optional[Decimal] = None
    quantity: Optional[int] = None
    created_at: datetime = field(default_factory=utcnow)

    @property
    def is_product_activity(self) -> bool:
        return self.activity_type in (
            ActivityType.PRODUCT_CREATED,
            ActivityType.PRODUCT_UPDATED,
            ActivityType.PRODUCT_DELETED,
        )


@dataclass
class UserProfile:
    user_id: str
    username: Optional[str] = None
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    website: Optional[str] = None
    currency: Optional[str] = None
    updated_at: Optional[datetime] = None


@dataclass
class CartItem:
    name: str
    price: Decimal
    quantity: int = 1
    product: Optional[Product] = None  # None: serbest tutar satırı

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


# --- Rapor çıktıları (kalıcı değil, her istekte üretilir) ---


@dataclass(frozen=True)
class DailyAggregate:
    day: date
    amount: Decimal


@dataclass(frozen=True)
class CategoryBreakdown:
    label: str
    value: Decimal
    percentage: Decimal  # 0..1 arası oran


@dataclass(frozen=True)
class Report:
    sales_count: int = 0
    total_sales: Decimal = ZERO
    total_costs: Decimal = ZERO
    net_profit: Decimal = ZERO
    average_ticket: Decimal = ZERO
    profit_margin: Decimal = ZERO
    cost_ratio: Decimal = ZERO
    average_daily_sales: Decimal = ZERO
    daily_series: tuple[DailyAggregate, ...] = ()
    best_day: Optional[DailyAggregate] = None
    payment_breakdown: tuple[CategoryBreakdown, ...] = ()
    location_breakdown: tuple[CategoryBreakdown, ...] = ()

    @property
    def is_empty(self) -> bool:
        return self.sales_count == 0 and self.total_costs == ZERO


@dataclass(frozen=True)
class StockDelta:
    product_id: str
    change: int  # pozitif: stoğa iade, negatif: stoktan düşüm


# --- Geri bildirim ---


@dataclass
class BugReport:
    bug_id: str
    user_id: str
    description: str
    status: str = "open"
    created_at: datetime = field(default_factory=utcnow)


@dataclass
class FeatureRequest:
    feature_id: str
    user_id: str
    title: str
    description: str
    votes: int = 0
    delivered: bool = False
    created_at: datetime = field(default_factory=utcnow)
    has_voted: Optional[bool] = None  # ekran durumu, tabloya yazılmaz
