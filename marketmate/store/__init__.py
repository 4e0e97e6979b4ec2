from marketmate.store.dynamodb_store import MarketStore
from marketmate.store.offline_cache import OfflineCache
from marketmate.store.session import AuthSession

__all__ = ["AuthSession", "MarketStore", "OfflineCache"]
