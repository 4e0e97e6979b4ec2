from marketmate.models.market import (
    Activity,
    ActivityType,
    BugReport,
    CartItem,
    CategoryBreakdown,
    CostCategory,
    CostRecord,
    DailyAggregate,
    FeatureRequest,
    Market,
    Product,
    Report,
    SaleLineItem,
    SaleRecord,
    StockDelta,
    TimeRange,
    UserProfile,
)

__all__ = [
    "Activity",
    "ActivityType",
    "BugReport",
    "CartItem",
    "CategoryBreakdown",
    "CostCategory",
    "CostRecord",
    "DailyAggregate",
    "FeatureRequest",
    "Market",
    "Product",
    "Report",
    "SaleLineItem",
    "SaleRecord",
    "StockDelta",
    "TimeRange",
    "UserProfile",
]
