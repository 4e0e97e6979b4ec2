"""MarketMate - pazar satıcıları için satış, stok ve raporlama çekirdeği."""

__version__ = "0.1.0"
