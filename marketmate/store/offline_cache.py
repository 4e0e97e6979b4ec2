"""Son başarılı listelerin yerel JSON kopyaları.

Okuma/çözümleme hataları yutulur ve cache-miss olarak kabul edilir.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional, TypeVar, Union

from marketmate.store.codec import from_items, to_item

logger = logging.getLogger(__name__)

T = TypeVar("T")


class OfflineCache:
    """Anahtar isimli (örn. "sales.json") blob'ları bir dizinde saklar."""

    def __init__(self, directory: Union[str, Path]) -> None:
        self.directory = Path(directory)

    def _path(self, filename: str) -> Path:
        return self.directory / filename

    def save(self, records: list[Any], filename: str) -> bool:
        """Kayıt listesini JSON olarak yazar. Hata durumunda False döner."""
        payload = [to_item(r, include_nested=True) for r in records]
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path(filename + ".tmp")
            tmp_path.write_text(json.dumps(payload, default=str, ensure_ascii=False), encoding="utf-8")
            tmp_path.replace(self._path(filename))
            logger.debug("Cache yazıldı: %s (%d kayıt)", filename, len(payload))
            return True
        except (OSError, TypeError, ValueError) as e:
            logger.warning("Cache yazma hatası (%s): %s", filename, e)
            return False

    def load(self, cls: type[T], filename: str) -> Optional[list[T]]:
        """Cache'teki listeyi döndürür; dosya yoksa ya da bozuksa None."""
        path = self._path(filename)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            if not isinstance(data, list):
                raise ValueError("liste bekleniyordu")
            records = from_items(cls, data)
        except FileNotFoundError:
            logger.debug("Cache yok: %s", filename)
            return None
        except (OSError, ValueError, TypeError, KeyError, ArithmeticError) as e:
            logger.warning("Cache okuma hatası (%s): %s", filename, e)
            return None
        logger.debug("Cache okundu: %s (%d kayıt)", filename, len(records))
        return records

    def clear(self, filename: str) -> None:
        try:
            self._path(filename).unlink()
        except FileNotFoundError:
            pass
