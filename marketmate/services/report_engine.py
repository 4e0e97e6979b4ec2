"""Rapor Motoru - satış ve maliyet kayıtlarından iş metrikleri türetir.

Saf fonksiyonlar: I/O yapmaz, saat okumaz, gizli durum tutmaz. Takvim
(timezone) ve `now` her zaman parametre olarak verilir. Kayıtların dönem
filtresi (created_at >= period_start) depo sorgusunda uygulanır, burada
tekrar filtrelenmez.
"""

from __future__ import annotations

from datetime import date, datetime, timezone, tzinfo
from decimal import Decimal
from typing import Iterable, Sequence, Union

from dateutil.relativedelta import relativedelta

from marketmate.models.market import (
    ZERO,
    CategoryBreakdown,
    CostRecord,
    DailyAggregate,
    Report,
    SaleRecord,
    TimeRange,
)
from marketmate.time_utils import ensure_aware, local_day, start_of_day

Number = Union[Decimal, int, float]


def _money(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def period_start(time_range: TimeRange, now: datetime, tz: tzinfo = timezone.utc) -> datetime:
    """Seçilen aralığın başlangıç zamanını hesaplar.

    DAY: yerel günün başlangıcı. WEEK/MONTH/YEAR: now'dan 7 gün / 1 ay / 1 yıl
    geriye, takvime göre (31 Mart - 1 ay = 28/29 Şubat).
    """
    local_now = ensure_aware(now).astimezone(tz)
    if time_range == TimeRange.DAY:
        return start_of_day(local_now, tz)
    if time_range == TimeRange.WEEK:
        return local_now - relativedelta(days=7)
    if time_range == TimeRange.MONTH:
        return local_now - relativedelta(months=1)
    if time_range == TimeRange.YEAR:
        return local_now - relativedelta(years=1)
    raise ValueError(f"Bilinmeyen zaman aralığı: {time_range}")


def _breakdown(pairs: Iterable[tuple[str, Decimal]], total: Decimal) -> tuple[CategoryBreakdown, ...]:
    """Etikete göre gruplar, toplar ve değere göre azalan sıralar.

    Eşit değerlerde ilk görülen etiket önde kalır (sıralama stabil).
    """
    grouped: dict[str, Decimal] = {}
    for label, amount in pairs:
        grouped[label] = grouped.get(label, ZERO) + amount

    entries = [
        CategoryBreakdown(
            label=label,
            value=value,
            percentage=value / total if total > 0 else ZERO,
        )
        for label, value in grouped.items()
    ]
    entries.sort(key=lambda e: e.value, reverse=True)
    return tuple(entries)


def daily_series(sales: Sequence[SaleRecord], tz: tzinfo = timezone.utc) -> tuple[DailyAggregate, ...]:
    """Satışları yerel takvim gününe göre toplar, tarihe göre artan sıralar."""
    per_day: dict[date, Decimal] = {}
    for sale in sales:
        day = local_day(sale.created_at, tz)
        per_day[day] = per_day.get(day, ZERO) + _money(sale.total_amount)
    return tuple(DailyAggregate(day=d, amount=a) for d, a in sorted(per_day.items()))


def payment_breakdown(sales: Sequence[SaleRecord], total_sales: Decimal) -> tuple[CategoryBreakdown, ...]:
    """Ödeme yöntemine göre dağılım (etiketler birebir karşılaştırılır)."""
    return _breakdown(((s.payment_method, _money(s.total_amount)) for s in sales), total_sales)


def location_breakdown(sales: Sequence[SaleRecord], total_sales: Decimal) -> tuple[CategoryBreakdown, ...]:
    """Pazar konumuna göre dağılım. Konumu boş olan satışlar dahil edilmez.

    Yüzdeler dönemin toplam satışına göre hesaplanır; konumsuz satışlar
    olduğunda toplam %100'ün altında kalır.
    """
    pairs = []
    for sale in sales:
        location = (sale.market_location or "").strip()
        if location:
            pairs.append((location, _money(sale.total_amount)))
    return _breakdown(pairs, total_sales)


def compute_report(
    sales: Sequence[SaleRecord],
    costs: Sequence[CostRecord],
    period_start: datetime,
    now: datetime,
    tz: tzinfo = timezone.utc,
) -> Report:
    """Dönem kayıtlarından raporu hesaplar. Bölmeler sıfıra karşı korunur."""
    sales_count = len(sales)
    total_sales = sum((_money(s.total_amount) for s in sales), ZERO)
    total_costs = sum((_money(c.amount) for c in costs), ZERO)
    net_profit = total_sales - total_costs

    series = daily_series(sales, tz)
    # Her iki uç dahil: aynı gün -> 1, N gün önce -> N+1
    day_span = (local_day(now, tz) - local_day(period_start, tz)).days

    return Report(
        sales_count=sales_count,
        total_sales=total_sales,
        total_costs=total_costs,
        net_profit=net_profit,
        average_ticket=total_sales / sales_count if sales_count > 0 else ZERO,
        profit_margin=net_profit / total_sales if total_sales > 0 else ZERO,
        cost_ratio=total_costs / total_sales if total_sales > 0 else ZERO,
        average_daily_sales=total_sales / max(1, day_span + 1),
        daily_series=series,
        # max() eşitlikte ilk elemanı döndürür: en erken tarih
        best_day=max(series, key=lambda d: d.amount) if series else None,
        payment_breakdown=payment_breakdown(sales, total_sales),
        location_breakdown=location_breakdown(sales, total_sales),
    )
