import threading

import mpmath
import pytest

from polylogjax import checks, precision
from polylogjax.config import EngineConfig
from polylogjax.errors import ConvergenceFailure, DomainError, EvalResult

from tests._test_checks import _check


def test_bits_and_digits():
    _check(precision.dps_to_bits(30) == 100)
    _check(precision.bits_to_dps(100) == 31)
    _check(precision.working_bits(30, 2.0, 50) == 250)
    _check(precision.max_terms(30) == 250 - 99)


def test_workdps_restores_default():
    old = precision.get_dps()
    with precision.workdps(60):
        _check(precision.get_dps() == 60)
        _check(mpmath.mp.prec == precision.working_bits(60))
    _check(precision.get_dps() == old)


def test_extraprec_never_lowers():
    with mpmath.workprec(1000):
        with precision.extraprec(10):
            _check(mpmath.mp.prec == 1000)
    with mpmath.workprec(53):
        with precision.extraprec(30, 2.0, 50):
            _check(mpmath.mp.prec == 250)


def test_resolve_dps_uses_default():
    _check(precision.resolve_dps(None) == precision.get_dps())
    _check(precision.resolve_dps(17) == 17)


def test_config_from_env():
    cfg = EngineConfig.from_env({"POLYLOGJAX_ZONE_BOUND": "1.2", "POLYLOGJAX_AWAY_DEPTH_CAP": "4"})
    _check(cfg.zone_bound == 1.2)
    _check(cfg.away_depth_cap == 4 and isinstance(cfg.away_depth_cap, int))
    _check(cfg.toward_depth_cap == 5)
    with pytest.raises(ValueError):
        EngineConfig.from_env({"POLYLOGJAX_TOWARD_DEPTH_CAP": "many"})


def test_config_overrides_are_copies():
    base = EngineConfig()
    tuned = base.with_overrides(headroom=3.0)
    _check(base.headroom == 2.0 and tuned.headroom == 3.0)


def test_eval_result_shapes():
    bad = EvalResult.failure("no")
    _check(bad.value == 0 and not bad.ok and bad.error == "no")
    good = EvalResult.success(2)
    _check(good.ok and good.error is None and good.value == 2)


def test_error_hierarchy():
    _check(issubclass(DomainError, ValueError))
    _check(issubclass(ConvergenceFailure, ArithmeticError))


def test_checks_reject_bad_digits():
    with pytest.raises(ValueError):
        checks.check_dps(0, "t")
    with pytest.raises(ValueError):
        checks.check_dps(2.5, "t")
    with pytest.raises(ValueError):
        checks.check_index(-1, "t")


def test_extraprec_excludes_other_threads():
    seen = []

    def try_enter():
        got = precision._MP_LOCK.acquire(blocking=False)
        if got:
            precision._MP_LOCK.release()
        seen.append(got)

    with precision.extraprec(30):
        worker = threading.Thread(target=try_enter)
        worker.start()
        worker.join()
    _check(seen == [False])
    worker = threading.Thread(target=try_enter)
    worker.start()
    worker.join()
    _check(seen == [False, True])
