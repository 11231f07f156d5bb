from __future__ import annotations

import jax
from jax import lax
import jax.numpy as jnp
import jax.scipy.special as jsp

jax.config.update("jax_enable_x64", True)

_LN10 = 2.302585093
_LOG4 = 1.386294361
_BORWEIN_SCALE = 0.567296329
_LOG_SQRT_2PI = jnp.float64(0.91893853320467274178)
_LANCZOS = jnp.asarray(
    [
        0.99999999999980993,
        676.5203681218851,
        -1259.1392167224028,
        771.32342877765313,
        -176.61502916214059,
        12.507343278686905,
        -0.13857109526572012,
        9.9843695780195716e-6,
        1.5056327351493116e-7,
    ],
    dtype=jnp.float64,
)

# estimates beyond this are reported as "too many terms"
TERMS_CEILING = 2**31 - 1


def _complex_loggamma_lanczos(z: jax.Array) -> jax.Array:
    z = jnp.asarray(z, dtype=jnp.complex128)
    z1 = z - jnp.complex128(1.0 + 0.0j)
    x = jnp.complex128(_LANCZOS[0] + 0.0j)

    def body(i, acc):
        return acc + _LANCZOS[i] / (z1 + jnp.float64(i))

    x = lax.fori_loop(1, 9, body, x)
    t = z1 + jnp.float64(7.5)
    return _LOG_SQRT_2PI + (z1 + 0.5) * jnp.log(t) - t + jnp.log(x)


def complex_loggamma(z: jax.Array) -> jax.Array:
    z = jnp.asarray(z, dtype=jnp.complex128)
    reflected = jnp.log(jnp.pi) - jnp.log(jnp.sin(jnp.pi * z)) - _complex_loggamma_lanczos(1.0 - z)
    return jnp.where(jnp.real(z) < 0.5, reflected, _complex_loggamma_lanczos(z))


def zone_metric(zre: jax.Array, zim: jax.Array) -> jax.Array:
    zre = jnp.asarray(zre, dtype=jnp.float64)
    zim = jnp.asarray(zim, dtype=jnp.float64)
    den = 1.0 / ((zre - 1.0) * (zre - 1.0) + zim * zim)
    sre = zre * zre - zim * zim
    sim = 2.0 * zre * zim
    fre = sre * (zre - 1.0) + zim * sim
    fim = sim * (zre - 1.0) - zim * sre
    return (fre * fre + fim * fim) * den * den


def modsq(zre: jax.Array, zim: jax.Array) -> jax.Array:
    zre = jnp.asarray(zre, dtype=jnp.float64)
    zim = jnp.asarray(zim, dtype=jnp.float64)
    return zre * zre + zim * zim


def _gamma_pole(sre: jax.Array) -> jax.Array:
    return (sre <= 0.0) & (sre == jnp.round(sre))


def polylog_terms_raw(sre: jax.Array, sim: jax.Array, zre: jax.Array, zim: jax.Array, dps: float) -> jax.Array:
    sre = jnp.asarray(sre, dtype=jnp.float64)
    sim = jnp.asarray(sim, dtype=jnp.float64)
    zre = jnp.asarray(zre, dtype=jnp.float64)
    zim = jnp.asarray(zim, dtype=jnp.float64)
    dps = jnp.asarray(dps, dtype=jnp.float64)
    fterms = _LN10 * dps

    asim = jnp.abs(sim)
    pole = _gamma_pole(sre)
    # an imaginary part below the requested accuracy is the pole itself
    on_axis = pole & (asim < jnp.power(10.0, -dps))
    safe_sre = jnp.where(pole, 0.5, sre)
    gamterms = jnp.where(sre > 0.0, 0.5 * jnp.pi * asim, jnp.pi * asim) - jsp.gammaln(safe_sre)
    # 1/Gamma never buys a shorter sum for Re s > 0
    gamterms = jnp.where(sre > 0.0, jnp.maximum(gamterms, 0.0), gamterms)
    off_axis = -jnp.real(complex_loggamma(sre + 1j * sim))
    gamterms = jnp.where(pole, off_axis, gamterms)
    fterms = fterms + gamterms

    mod = modsq(zre, zim)
    inside = -0.5 * jnp.log((zre - 1.0) * (zre - 1.0) + zim * zim)
    outside = 0.5 * jnp.log(mod) - jnp.log(jnp.abs(zim))
    cterms = jnp.where(mod < 1.0, inside, outside)
    fterms = fterms + jnp.where(zre > 0.0, cterms, 0.0)

    den = zone_metric(zre, zim)
    rate = -0.5 * jnp.log(den) + _LOG4
    first = fterms / rate + 1.0
    # for Re s < 0 the tail terms grow like k^-Re s out to k = 2 nterms
    growth = jnp.maximum(-sre, 0.0) * jnp.log(2.0 * jnp.maximum(first, 1.0) + 2.0)
    nterms = (fterms + growth) / rate + 1.0
    nterms = jnp.where(rate > 0.0, nterms, -1.0)
    return jnp.where(on_axis, jnp.floor(-sre + 3.0), nterms)


_polylog_terms_raw_jit = jax.jit(polylog_terms_raw)
_zone_metric_jit = jax.jit(zone_metric)


def _to_terms(x) -> int:
    x = float(x)
    if x != x or x >= TERMS_CEILING:
        return TERMS_CEILING
    return int(x)


def polylog_terms_est(s: complex, z: complex, dps: int) -> int:
    s = complex(s)
    z = complex(z)
    return _to_terms(_polylog_terms_raw_jit(s.real, s.imag, z.real, z.imag, float(dps)))


def polylog_zone(z: complex) -> float:
    z = complex(z)
    return float(_zone_metric_jit(z.real, z.imag))


def polylog_modsq(z: complex) -> float:
    z = complex(z)
    return float(modsq(z.real, z.imag))


def borwein_terms_est(s: complex, dps: int) -> int:
    nterms = 0.69 + _LN10 * dps
    # off-axis convergence is slower, roughly like |Gamma(s)|
    nterms += 0.5 * float(jnp.pi) * abs(complex(s).imag)
    nterms *= _BORWEIN_SCALE
    return int(nterms + 1.0)


def polylog_zone_batch(z: jax.Array) -> jax.Array:
    z = jnp.asarray(z, dtype=jnp.complex128)
    return zone_metric(jnp.real(z), jnp.imag(z))


def polylog_terms_batch(s: complex, z: jax.Array, dps: float) -> jax.Array:
    z = jnp.asarray(z, dtype=jnp.complex128)
    s = jnp.asarray(s, dtype=jnp.complex128)
    return polylog_terms_raw(jnp.real(s), jnp.imag(s), jnp.real(z), jnp.imag(z), dps)


polylog_zone_batch_jit = jax.jit(polylog_zone_batch)
polylog_terms_batch_jit = jax.jit(polylog_terms_batch)


__all__ = [
    "TERMS_CEILING",
    "complex_loggamma",
    "zone_metric",
    "modsq",
    "polylog_terms_raw",
    "polylog_terms_est",
    "polylog_zone",
    "polylog_modsq",
    "borwein_terms_est",
    "polylog_zone_batch",
    "polylog_terms_batch",
    "polylog_zone_batch_jit",
    "polylog_terms_batch_jit",
]
