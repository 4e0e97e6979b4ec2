"""Servis katmanı - ekran durumu, rapor motoru ve satış mutabakatı."""

from marketmate.services.activity import ActivityFilter, ActivityService, DateFilter
from marketmate.services.costs import CostsService
from marketmate.services.feedback import FeedbackService
from marketmate.services.inventory import InventoryService
from marketmate.services.market_session import MarketSessionService
from marketmate.services.profile import ProfileService
from marketmate.services.reconciliation import SaleEditResult, apply_sale_edit, reconcile_stock
from marketmate.services.report_engine import compute_report, period_start
from marketmate.services.reports import ReportsService
from marketmate.services.sales import SalesService

__all__ = [
    "ActivityFilter",
    "ActivityService",
    "CostsService",
    "DateFilter",
    "FeedbackService",
    "InventoryService",
    "MarketSessionService",
    "ProfileService",
    "ReportsService",
    "SaleEditResult",
    "SalesService",
    "apply_sale_edit",
    "compute_report",
    "period_start",
    "reconcile_stock",
]
