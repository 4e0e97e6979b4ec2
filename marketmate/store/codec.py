"""Dataclass <-> DynamoDB item dönüşümü.

DynamoDB float kabul etmez, sayıları Decimal olarak döndürür. Aynı dönüşüm
offline cache'in JSON blob'ları için de kullanılır.
"""

from __future__ import annotations

import dataclasses
import typing
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, TypeVar

from marketmate.time_utils import parse_iso, to_iso

T = TypeVar("T")

_hint_cache: dict[type, dict[str, Any]] = {}


def _encode(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, bool):
        return value
    if isinstance(value, datetime):
        return to_iso(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, float):
        return Decimal(str(value))
    if dataclasses.is_dataclass(value):
        return to_item(value, include_nested=True)
    return value


def to_item(record: Any, include_nested: bool = False) -> dict:
    """Dataclass'ı DynamoDB item'ına çevirir.

    None alanlar yazılmaz. Liste alanları (örn. satış satırları) ayrı tabloda
    tutulduğu için sadece include_nested=True ile eklenir.
    """
    item: dict[str, Any] = {}
    for f in dataclasses.fields(record):
        value = getattr(record, f.name)
        if value is None:
            continue
        if isinstance(value, list):
            if include_nested:
                item[f.name] = [_encode(v) for v in value]
            continue
        item[f.name] = _encode(value)
    return item


def _hints(cls: type) -> dict[str, Any]:
    if cls not in _hint_cache:
        _hint_cache[cls] = typing.get_type_hints(cls)
    return _hint_cache[cls]


def _unwrap_optional(hint: Any) -> Any:
    if typing.get_origin(hint) is typing.Union:
        args = [a for a in typing.get_args(hint) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return hint


def _decode(hint: Any, value: Any) -> Any:
    hint = _unwrap_optional(hint)
    origin = typing.get_origin(hint)
    if origin is list:
        (inner,) = typing.get_args(hint)
        return [_decode(inner, v) for v in value]
    if hint is Decimal:
        return value if isinstance(value, Decimal) else Decimal(str(value))
    if hint is bool:
        return value if isinstance(value, bool) else str(value).lower() == "true"
    if hint is int:
        return int(value)
    if hint is datetime:
        return parse_iso(value)
    if hint is date:
        return date.fromisoformat(str(value))
    if isinstance(hint, type) and issubclass(hint, Enum):
        return hint(value)
    if isinstance(hint, type) and dataclasses.is_dataclass(hint):
        return from_item(hint, value)
    if hint is str:
        return str(value)
    return value


def from_item(cls: type[T], item: dict) -> T:
    """DynamoDB item'ını (ya da JSON nesnesini) dataclass'a çevirir."""
    hints = _hints(cls)
    kwargs: dict[str, Any] = {}
    for f in dataclasses.fields(cls):
        if f.name not in item or item[f.name] is None:
            continue
        kwargs[f.name] = _decode(hints[f.name], item[f.name])
    return cls(**kwargs)


def from_items(cls: type[T], items: list[dict]) -> list[T]:
    return [from_item(cls, item) for item in items]


def optional_from_item(cls: type[T], item: Optional[dict]) -> Optional[T]:
    if not item:
        return None
    return from_item(cls, item)
