import mpmath
import pytest

from polylogjax import zeta
from polylogjax.context import EvalContext
from polylogjax.store import JsonZetaStore, MemoryZetaStore

from tests._test_checks import _check, _close


def test_missing_file_is_empty(tmp_path):
    store = JsonZetaStore(tmp_path / "absent.json")
    _check(store.get(3, 10) is None)


def test_corrupt_file_is_ignored(tmp_path):
    path = tmp_path / "zeta.json"
    path.write_text("{not json", encoding="utf-8")
    store = JsonZetaStore(path)
    _check(store.get(3, 10) is None)
    with mpmath.workdps(30):
        store.put(3, mpmath.zeta(3), 25)
    _check(JsonZetaStore(path).get(3, 25) is not None)


def test_json_roundtrip_respects_precision(tmp_path):
    path = tmp_path / "zeta.json"
    with mpmath.workdps(40):
        JsonZetaStore(path).put(5, mpmath.zeta(5), 30)
        again = JsonZetaStore(path)
        _check(again.get(5, 31) is None)
        _close(again.get(5, 30), mpmath.zeta(5), 30)
        _check(again.get(5, 10) is not None)


def test_lower_precision_put_does_not_overwrite(tmp_path):
    store = MemoryZetaStore()
    store.put(3, mpmath.mpf(1), 30)
    store.put(3, mpmath.mpf(2), 10)
    _check(store.get(3, 30) == 1)


def test_zeta_int_writes_through(tmp_path):
    store = JsonZetaStore(tmp_path / "zeta.json")
    ctx = EvalContext(store=store)
    val = zeta.zeta_int(3, 30, ctx)
    _check(store.get(3, 30) is not None)
    _check(ctx.zeta_int.check(3) == 30)
    with mpmath.workdps(40):
        _close(val, mpmath.zeta(3), 28)


def test_zeta_int_reads_store_first(monkeypatch):
    store = MemoryZetaStore()
    zeta.zeta_int(7, 30, EvalContext(store=store))

    def boom(*args, **kwargs):
        raise AssertionError("recomputed")

    monkeypatch.setattr(zeta, "zeta_borwein", boom)
    fresh = EvalContext(store=store)
    val = zeta.zeta_int(7, 30, fresh)
    with mpmath.workdps(40):
        _close(val, mpmath.zeta(7), 28)
    with pytest.raises(AssertionError):
        zeta.zeta_int(7, 35, fresh)


def test_default_context_is_shared():
    from polylogjax.context import default_context, resolve_context

    ctx = default_context()
    _check(default_context() is ctx)
    _check(resolve_context(None) is ctx)
    own = EvalContext()
    _check(resolve_context(own) is own)
