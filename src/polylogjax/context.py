from __future__ import annotations

import threading
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Callable, Hashable

import mpmath

from .cache import PrecisionCache
from .config import DEFAULT_CONFIG, EngineConfig
from .store import ZetaStore


class CacheFamily:
    """PrecisionCaches keyed by a held-constant parameter (s, n, ...).

    At most ``size`` caches are live; the least recently used one is
    dropped for a new key. A caller still holding it keeps reading its
    own values, since a dropped cache is never handed out again.
    """

    def __init__(self, name: str, size: int = 8):
        self.name = name
        self.size = max(1, int(size))
        self._lock = threading.Lock()
        self._caches: OrderedDict[Hashable, PrecisionCache] = OrderedDict()

    def get(self, key: Hashable) -> PrecisionCache:
        with self._lock:
            cache = self._caches.get(key)
            if cache is not None:
                self._caches.move_to_end(key)
                return cache
            while len(self._caches) >= self.size:
                self._caches.popitem(last=False)
            cache = PrecisionCache(self.name)
            cache.bind(key)
            self._caches[key] = cache
            return cache

    def clear(self) -> None:
        with self._lock:
            for cache in self._caches.values():
                cache.clear()

    def __len__(self) -> int:
        return len(self._caches)


@dataclass
class EvalContext:
    config: EngineConfig = field(default_factory=lambda: DEFAULT_CONFIG)
    store: ZetaStore | None = None
    powers: CacheFamily = field(default_factory=lambda: CacheFamily("powers", 8))
    borwein_d: CacheFamily = field(default_factory=lambda: CacheFamily("borwein_d", 4))
    scales: CacheFamily = field(default_factory=lambda: CacheFamily("scales", 16))
    zeta_int: PrecisionCache = field(default_factory=lambda: PrecisionCache("zeta_int"))
    zeta_brute: PrecisionCache = field(default_factory=lambda: PrecisionCache("zeta_brute"))

    def scale(self, kind: str, s: mpmath.mpc, prec: int, build: Callable[[], Any]) -> Any:
        cache = self.scales.get((kind, s.real, s.imag))
        hit = cache.lookup(0, prec)
        if hit is None:
            hit = build()
            cache.store(0, hit, prec)
        return hit

    def powers_for(self, s: mpmath.mpc) -> PrecisionCache:
        return self.powers.get((s.real, s.imag))

    def clear(self) -> None:
        self.powers.clear()
        self.borwein_d.clear()
        self.scales.clear()
        self.zeta_int.clear()
        self.zeta_brute.clear()


_DEFAULT: EvalContext | None = None
_DEFAULT_LOCK = threading.Lock()


def default_context() -> EvalContext:
    global _DEFAULT
    with _DEFAULT_LOCK:
        if _DEFAULT is None:
            _DEFAULT = EvalContext()
        return _DEFAULT


def resolve_context(ctx: EvalContext | None) -> EvalContext:
    return default_context() if ctx is None else ctx


__all__ = ["CacheFamily", "EvalContext", "default_context", "resolve_context"]
