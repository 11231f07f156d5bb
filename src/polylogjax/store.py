from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Protocol

import mpmath

logger = logging.getLogger(__name__)


class ZetaStore(Protocol):
    def get(self, index: int, prec: int) -> mpmath.mpf | None: ...

    def put(self, index: int, value: mpmath.mpf, prec: int) -> None: ...


class MemoryZetaStore:
    def __init__(self):
        self._lock = threading.Lock()
        self._data: dict[int, tuple[mpmath.mpf, int]] = {}

    def get(self, index: int, prec: int) -> mpmath.mpf | None:
        with self._lock:
            hit = self._data.get(int(index))
        if hit is None or hit[1] < prec:
            return None
        return hit[0]

    def put(self, index: int, value: mpmath.mpf, prec: int) -> None:
        with self._lock:
            old = self._data.get(int(index))
            if old is None or old[1] < prec:
                self._data[int(index)] = (mpmath.mpmathify(value), int(prec))

    def __len__(self) -> int:
        return len(self._data)


class JsonZetaStore:
    """Integer zeta values in a JSON file, ``{"<s>": {"prec": p, "value": "..."}}``.

    A missing or unreadable file behaves as an empty store; write failures
    are logged and dropped.
    """

    def __init__(self, path: str | os.PathLike):
        self.path = Path(path)
        self._lock = threading.Lock()
        self._data: dict[str, dict] | None = None

    def _load(self) -> dict[str, dict]:
        if self._data is not None:
            return self._data
        data: dict[str, dict] = {}
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                raw = json.load(fh)
            if isinstance(raw, dict):
                data = {k: v for k, v in raw.items() if isinstance(v, dict)}
        except FileNotFoundError:
            pass
        except (OSError, ValueError) as exc:
            logger.warning("ignoring unreadable zeta store %s: %s", self.path, exc)
        self._data = data
        return data

    def _flush(self, data: dict[str, dict]) -> None:
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tmp.open("w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=1, sort_keys=True)
            os.replace(tmp, self.path)
        except OSError as exc:
            logger.warning("could not write zeta store %s: %s", self.path, exc)

    def get(self, index: int, prec: int) -> mpmath.mpf | None:
        with self._lock:
            entry = self._load().get(str(int(index)))
        if entry is None:
            return None
        try:
            stored = int(entry["prec"])
            text = str(entry["value"])
        except (KeyError, TypeError, ValueError):
            return None
        if stored < prec:
            return None
        try:
            return mpmath.mpf(text)
        except ValueError:
            return None

    def put(self, index: int, value: mpmath.mpf, prec: int) -> None:
        key = str(int(index))
        with self._lock:
            data = self._load()
            old = data.get(key)
            try:
                if old is not None and int(old.get("prec", 0)) >= prec:
                    return
            except (TypeError, ValueError):
                pass
            # a few spare digits so re-reading at prec rounds correctly
            data[key] = {"prec": int(prec), "value": mpmath.nstr(mpmath.mpmathify(value), int(prec) + 10)}
            self._flush(data)


__all__ = ["ZetaStore", "MemoryZetaStore", "JsonZetaStore"]
