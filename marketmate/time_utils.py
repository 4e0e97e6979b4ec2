"""Zaman yardımcıları - UTC zaman damgaları ve takvim günü hesapları.

Saklanan zaman damgaları sabit genişlikli "YYYY-MM-DDTHH:MM:SS.mmmZ" metnidir;
gün gruplaması her zaman dışarıdan verilen zone ile yapılır.
"""

from __future__ import annotations

from datetime import date, datetime, time, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo


def utcnow() -> datetime:
    """UTC, timezone-aware 'şimdi'."""
    return datetime.now(timezone.utc)


def get_zone(name: Optional[str]) -> tzinfo:
    """IANA zone adından tzinfo döndürür. Boş değer UTC demektir."""
    if not name or name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def ensure_aware(dt: datetime) -> datetime:
    """Naive datetime UTC kabul edilir."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def to_iso(dt: datetime) -> str:
    """Sabit genişlikli UTC ISO-8601 metni üretir: 2024-06-15T09:30:00.000Z

    Sabit genişlik sayesinde metin sıralaması zaman sıralamasıyla aynıdır,
    bu yüzden depodaki `created_at >= :start` sorguları doğru çalışır.
    """
    dt_utc = ensure_aware(dt).astimezone(timezone.utc)
    return dt_utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt_utc.microsecond // 1000:03d}Z"


def parse_iso(value: Optional[str]) -> Optional[datetime]:
    """ISO-8601 metnini timezone-aware datetime'a çevirir.

    - None / "" -> None
    - sondaki "Z" kabul edilir
    - naive değer UTC kabul edilir
    """
    if value is None:
        return None
    s = str(value).strip()
    if not s:
        return None
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    return ensure_aware(datetime.fromisoformat(s))


def local_day(dt: datetime, tz: tzinfo) -> date:
    """Verilen takvimde yalnızca yıl/ay/gün bileşenleri."""
    return ensure_aware(dt).astimezone(tz).date()


def start_of_day(dt: datetime, tz: tzinfo) -> datetime:
    """Yerel takvim gününün başlangıcı (timezone-aware)."""
    day = local_day(dt, tz)
    return datetime.combine(day, time.min, tzinfo=tz)
