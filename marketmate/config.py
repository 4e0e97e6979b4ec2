"""Merkezi ayarlar. .env dosyası yüklenir, değerler ortam değişkenlerinden okunur."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from marketmate.errors import ConfigurationError

# Proje kökündeki .env dosyası; mevcut ortam değişkenleri ezilmez
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)

DEFAULT_REGION = "us-west-2"
LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"

TABLE_SUFFIXES = {
    "sales": "Sales",
    "sale_items": "SaleItems",
    "costs": "Costs",
    "cost_categories": "CostCategories",
    "products": "Products",
    "markets": "Markets",
    "profiles": "Profiles",
    "activity": "RecentActivity",
    "bugs": "Bugs",
    "feature_requests": "FeatureRequests",
    "feature_votes": "FeatureVotes",
}


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    value = raw.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise ConfigurationError(f"{name} boolean olmalı: {raw!r}")


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} sayı olmalı: {raw!r}") from None
    if value < 0:
        raise ConfigurationError(f"{name} negatif olamaz: {raw!r}")
    return value


@dataclass
class Settings:
    region: str = DEFAULT_REGION
    table_prefix: str = "MarketMate"
    cache_dir: Path = field(default_factory=lambda: Path.home() / ".marketmate" / "cache")
    timezone: str = "UTC"
    debounce_seconds: float = 0.3
    atomic_sale_edits: bool = True
    verify_ssl: bool = True
    user_id: Optional[str] = None

    def table_name(self, key: str) -> str:
        """Mantıksal tablo anahtarından (örn. "sales") fiziksel tablo adını üretir."""
        try:
            return f"{self.table_prefix}{TABLE_SUFFIXES[key]}"
        except KeyError:
            raise ConfigurationError(f"Bilinmeyen tablo: {key}") from None

    @property
    def table_names(self) -> dict[str, str]:
        return {key: self.table_name(key) for key in TABLE_SUFFIXES}


def load_settings() -> Settings:
    """Ortam değişkenlerinden Settings oluşturur."""
    cache_dir = os.environ.get("MARKETMATE_CACHE_DIR")
    settings = Settings(
        region=os.environ.get("AWS_DEFAULT_REGION", DEFAULT_REGION),
        table_prefix=os.environ.get("MARKETMATE_TABLE_PREFIX", "MarketMate"),
        timezone=os.environ.get("MARKETMATE_TIMEZONE", "UTC"),
        debounce_seconds=_env_float("MARKETMATE_DEBOUNCE_SECONDS", 0.3),
        atomic_sale_edits=_env_bool("MARKETMATE_ATOMIC_SALE_EDITS", True),
        verify_ssl=_env_bool("MARKETMATE_VERIFY_SSL", True),
        user_id=os.environ.get("MARKETMATE_USER_ID") or None,
    )
    if cache_dir:
        settings.cache_dir = Path(cache_dir).expanduser()

    if not settings.verify_ssl:
        # SSL workaround (kurumsal proxy/self-signed cert)
        import urllib3
        urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    return settings


def configure_logging(level: int = logging.INFO) -> None:
    """Script ve giriş noktaları için log formatını ayarlar."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
    for noisy in ("botocore", "boto3", "urllib3"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
