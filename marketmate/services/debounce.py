"""Sessiz pencere ile çağrı birleştirme.

Kısa sürede art arda gelen istekler tek çağrıya indirgenir: yalnızca son
istek, pencere sessiz geçtikten sonra çalışır. Her çağrıya bir nesil
numarası verilir; yeni bir istek gelince önceki nesiller geçersiz sayılır,
böylece devam eden eski bir işin sonucu yok sayılabilir.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class Debouncer:
    """threading.Timer tabanlı debounce.

    `fn` bekleyen isteğin nesil numarasını ilk argüman olarak alır ve
    `is_current(generation)` ile sonucunu yazmadan önce hâlâ geçerli olup
    olmadığını kontrol edebilir.
    """

    def __init__(self, wait_seconds: float, fn: Callable[..., Any]):
        self.wait_seconds = wait_seconds
        self._fn = fn
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._pending: Optional[tuple[tuple, dict]] = None
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def has_pending(self) -> bool:
        with self._lock:
            return self._pending is not None

    def is_current(self, generation: int) -> bool:
        with self._lock:
            return generation == self._generation

    def call(self, *args: Any, **kwargs: Any) -> int:
        """İsteği planlar; bekleyen önceki istek iptal edilir. Yeni nesil numarasını döndürür."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                logger.debug("Bekleyen istek iptal edildi (nesil %d)", self._generation)
            self._generation += 1
            generation = self._generation
            self._pending = (args, kwargs)
            if self.wait_seconds <= 0:
                self._timer = None
            else:
                self._timer = threading.Timer(self.wait_seconds, self._fire, args=(generation,))
                self._timer.daemon = True
                self._timer.start()

        if self.wait_seconds <= 0:
            self._fire(generation)
        return generation

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self._pending is None:
                return
            args, kwargs = self._pending
            self._pending = None
            self._timer = None
        self._fn(generation, *args, **kwargs)

    def flush(self) -> bool:
        """Bekleyen isteği beklemeden çalıştırır. Bekleyen istek yoksa False."""
        with self._lock:
            if self._pending is None:
                return False
            if self._timer is not None:
                self._timer.cancel()
            generation = self._generation
        self._fire(generation)
        return True

    def cancel(self) -> None:
        """Bekleyen isteği atar ve devam eden işlerin sonucunu geçersiz kılar."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = None
            self._pending = None
            self._generation += 1
