from __future__ import annotations

from typing import NamedTuple

import mpmath


class DomainError(ValueError):
    pass


class ConvergenceFailure(ArithmeticError):
    pass


class EvalResult(NamedTuple):
    value: mpmath.mpc
    ok: bool
    error: str | None = None

    @classmethod
    def success(cls, value) -> "EvalResult":
        return cls(mpmath.mpc(value), True, None)

    @classmethod
    def failure(cls, reason: str) -> "EvalResult":
        return cls(mpmath.mpc(0), False, reason)


__all__ = ["DomainError", "ConvergenceFailure", "EvalResult"]
