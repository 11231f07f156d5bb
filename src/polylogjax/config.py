from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace

_ENV_PREFIX = "POLYLOGJAX_"


@dataclass(frozen=True)
class EngineConfig:
    zone_bound: float = 1.5
    invert_log_bound: float = 6.28
    away_modsq_bound: float = 25.0
    away_depth_cap: int = 9
    toward_depth_cap: int = 5
    brute_max_terms: float = 1.0e9
    headroom: float = 2.0
    guard_bits: int = 50
    min_periodic_terms: int = 4

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "EngineConfig":
        env = os.environ if environ is None else environ
        overrides = {}
        for f in fields(cls):
            raw = env.get(_ENV_PREFIX + f.name.upper())
            if raw is None or raw == "":
                continue
            kind = int if f.type in (int, "int") else float
            try:
                overrides[f.name] = kind(raw)
            except ValueError as exc:
                raise ValueError(f"{_ENV_PREFIX}{f.name.upper()}: cannot parse {raw!r}") from exc
        return cls(**overrides)

    def with_overrides(self, **kwargs) -> "EngineConfig":
        return replace(self, **kwargs)


DEFAULT_CONFIG = EngineConfig.from_env()


__all__ = ["EngineConfig", "DEFAULT_CONFIG"]
