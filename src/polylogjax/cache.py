from __future__ import annotations

import sys
import threading
from typing import Any, Hashable

from . import checks

EXACT = sys.maxsize

_UNBOUND = object()


def triangle_offset(n: int, k: int) -> int:
    return n * (n + 1) // 2 + k


class PrecisionCache:
    """Memo store keyed by a non-negative integer.

    Every slot remembers the decimal precision its value was computed at;
    ``check`` returns that precision (0 when empty), so a caller hits only
    when the stored precision covers what it needs.  Exact values are stored
    with precision ``EXACT``.
    """

    def __init__(self, name: str = "cache", disabled: bool = False):
        self.name = name
        self.disabled = bool(disabled)
        self._lock = threading.Lock()
        self._values: list[Any] = []
        self._prec: list[int] = []
        self._key: Hashable = _UNBOUND

    @property
    def capacity(self) -> int:
        return len(self._prec)

    def _grow_to(self, newsize: int) -> None:
        oldsize = len(self._prec)
        if newsize <= oldsize:
            return
        values = [None] * newsize
        prec = [0] * newsize
        values[:oldsize] = self._values
        prec[:oldsize] = self._prec
        self._values = values
        self._prec = prec

    def _ensure(self, n: int) -> None:
        if n >= len(self._prec):
            self._grow_to(int(1.5 * n) + 2)

    def check(self, n: int) -> int:
        checks.check_index(n, f"{self.name}.check")
        if self.disabled:
            return 0
        with self._lock:
            self._ensure(n)
            return self._prec[n]

    def fetch(self, n: int) -> Any:
        with self._lock:
            if n >= len(self._prec) or self._prec[n] == 0:
                raise LookupError(f"{self.name}: slot {n} is empty")
            return self._values[n]

    def store(self, n: int, value: Any, prec: int) -> None:
        checks.check_index(n, f"{self.name}.store")
        if self.disabled:
            return
        with self._lock:
            self._ensure(n)
            self._values[n] = value
            self._prec[n] = int(prec)

    def lookup(self, n: int, prec: int) -> Any | None:
        if self.disabled:
            return None
        with self._lock:
            if n < len(self._prec) and self._prec[n] >= prec and self._prec[n] > 0:
                return self._values[n]
        return None

    def clear(self) -> None:
        with self._lock:
            self._prec = [0] * len(self._prec)

    def bind(self, key: Hashable) -> bool:
        with self._lock:
            if self._key is not _UNBOUND and self._key == key:
                return False
            self._key = key
            self._prec = [0] * len(self._prec)
            return True

    def __len__(self) -> int:
        return self.capacity

    def __repr__(self) -> str:
        filled = sum(1 for p in self._prec if p)
        return f"{type(self).__name__}({self.name!r}, capacity={self.capacity}, filled={filled})"


class TriangleCache(PrecisionCache):
    """Two-index variant for 0 <= k <= n, laid out row by row."""

    def __init__(self, name: str = "triangle", disabled: bool = False):
        super().__init__(name, disabled)
        self._rows = 0

    @property
    def rows(self) -> int:
        return self._rows

    def _ensure_row(self, n: int) -> None:
        if n < self._rows:
            return
        n = max(n, 1)
        self._grow_to(triangle_offset(n + 1, 0))
        self._rows = n + 1

    def check(self, n: int, k: int) -> int:
        checks.check_triangle(n, k, f"{self.name}.check")
        if self.disabled:
            return 0
        with self._lock:
            self._ensure_row(n)
            return self._prec[triangle_offset(n, k)]

    def fetch(self, n: int, k: int) -> Any:
        checks.check_triangle(n, k, f"{self.name}.fetch")
        return super().fetch(triangle_offset(n, k))

    def store(self, n: int, k: int, value: Any, prec: int) -> None:
        checks.check_triangle(n, k, f"{self.name}.store")
        if self.disabled:
            return
        with self._lock:
            self._ensure_row(n)
            idx = triangle_offset(n, k)
            self._values[idx] = value
            self._prec[idx] = int(prec)

    def lookup(self, n: int, k: int, prec: int) -> Any | None:
        checks.check_triangle(n, k, f"{self.name}.lookup")
        return super().lookup(triangle_offset(n, k), prec)


__all__ = ["EXACT", "triangle_offset", "PrecisionCache", "TriangleCache"]
