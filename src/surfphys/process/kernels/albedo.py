"""Snow albedo parameterizations.

Pure physics kernels for the interchangeable snow albedo schemes:
- slater: cubic decline with surface temperature (Slater et al., 1998)
- denby: exponential decline with melt rate
- isba: dry/wet ageing with fresh-snow refresh (ISBA-style)
- alex: hyperbolic-tangent function of 2 m air temperature
- rembo: legacy snow-depth and melt switch (REMBO)

Scheme codes match ``surfphys.process.state.AlbedoScheme``.
"""

from __future__ import annotations

import numpy as np
from numba import njit, prange
from numpy.typing import NDArray

from surfphys.constants import RHOW, T0

__all__ = [
    "SCHEME_NONE",
    "SCHEME_SLATER",
    "SCHEME_DENBY",
    "SCHEME_ISBA",
    "SCHEME_ALEX",
    "SCHEME_REMBO",
    "albedo_slater_point",
    "albedo_denby_point",
    "albedo_isba_point",
    "albedo_alex_point",
    "albedo_rembo_point",
    "albedo_slater",
    "albedo_denby",
    "albedo_isba",
    "albedo_alex",
    "albedo_rembo",
    "blend_albedo",
]

SCHEME_NONE = 0
SCHEME_SLATER = 1
SCHEME_DENBY = 2
SCHEME_ISBA = 3
SCHEME_ALEX = 4
SCHEME_REMBO = 5

REMBO_HSNOW_CRIT = 0.1  # m
REMBO_MELT_CRIT = 1.0e-3
REMBO_DEFAULT_MELT = 2.0e-3


@njit(cache=True, fastmath=True)
def _clamp(x: float, lo: float, hi: float) -> float:
    if x < lo:
        return lo
    if x > hi:
        return hi
    return x


@njit(cache=True, fastmath=True)
def albedo_slater_point(
    tsurf: float, tmin: float, tmax: float, alb_smax: float, alb_smin: float
) -> float:
    f = 1.0 / (T0 - tmin)
    tm = 0.0
    if tsurf >= tmin and tsurf < tmax:
        tm = f * (tsurf - tmin)
    if tsurf > T0:
        tm = 1.0
    tm = _clamp(tm, 0.0, 1.0)
    return alb_smax - (alb_smax - alb_smin) * tm * tm * tm


@njit(cache=True, fastmath=True)
def albedo_denby_point(
    melt: float, alb_smax: float, alb_smin: float, mcrit: float
) -> float:
    return alb_smin + (alb_smax - alb_smin) * np.exp(-melt / mcrit)


@njit(cache=True, fastmath=True)
def albedo_isba_point(
    alb: float,
    sf: float,
    melt: float,
    dt: float,
    tau: float,
    tau_a: float,
    tau_f: float,
    w_crit: float,
    mcrit: float,
    alb_smin: float,
    alb_smax: float,
) -> float:
    """Point form of :func:`albedo_isba`.

    tau_a and tau_f are per-day rates with ``tau`` = 86400 s, independent of
    the outer step ``dt``.
    """
    alb_dry = alb - tau_a * dt / tau
    alb_wet = (alb - alb_smin) * np.exp(-tau_f * dt / tau) + alb_smin
    alb_new = sf * dt / (w_crit / RHOW) * (alb_smax - alb_smin)

    w_alb = 0.0
    if melt > 0.0:
        w_alb = 1.0 - melt / mcrit
    w_alb = _clamp(w_alb, 0.0, 1.0)

    out = (1.0 - w_alb) * alb_dry + w_alb * alb_wet + alb_new
    return _clamp(out, alb_smin, alb_smax)


@njit(cache=True, fastmath=True)
def albedo_alex_point(
    t2m: float, alb_smax: float, alb_smin: float, afac: float, tmid: float
) -> float:
    return alb_smin + (alb_smax - alb_smin) * (0.5 * np.tanh(afac * (t2m - tmid)) + 0.5)


@njit(cache=True, fastmath=True)
def albedo_rembo_point(
    hsnow: float,
    albr: float,
    alb_smin: float,
    alb_smax: float,
    melt: float = REMBO_DEFAULT_MELT,
) -> float:
    """Legacy REMBO albedo.

    Without a melt rate the default assumes melting conditions, which
    avoids an albedo jump at the onset of the melt season.
    """
    depth = hsnow / REMBO_HSNOW_CRIT
    as_snow = alb_smax
    if melt > REMBO_MELT_CRIT:
        as_snow = alb_smin
    return min(albr + depth * (as_snow - albr), as_snow)


@njit(cache=True, fastmath=True, parallel=True)
def albedo_slater(
    tsurf: NDArray[np.float64],
    tmin: float,
    tmax: float,
    alb_smax: float,
    alb_smin: float,
) -> NDArray[np.float64]:
    """
    Temperature-dependent snow albedo (Slater et al., 1998).

    alb = alb_smax - (alb_smax - alb_smin) * tm^3

    Physical constraints:
        - alb_smin <= alb <= alb_smax
        - tm = (tsurf - tmin) / (T0 - tmin) for tmin <= tsurf < tmax
        - tm = 1 for tsurf > T0, 0 otherwise

    Parameters
    ----------
    tsurf : (n_points,)
        Surface temperature (K)
    tmin : float
        Temperature (K) where the decline starts, below T0
    tmax : float
        Upper bound (K) of the ramp window
    alb_smax, alb_smin : float
        Fresh and old snow albedo

    Returns
    -------
    alb : (n_points,)
        Snow albedo

    Notes
    -----
    The visible and near-infrared components of the Slater et al. (1998) formulation
    are summed, leaving two parameters (alb_smax, alb_smin).
    """
    n = tsurf.shape[0]
    alb = np.empty(n, dtype=np.float64)
    for i in prange(n):
        alb[i] = albedo_slater_point(tsurf[i], tmin, tmax, alb_smax, alb_smin)
    return alb


@njit(cache=True, fastmath=True, parallel=True)
def albedo_denby(
    melt: NDArray[np.float64],
    alb_smax: float,
    alb_smin: float,
    mcrit: float,
) -> NDArray[np.float64]:
    """
    Melt-dependent snow albedo.

    alb = alb_smin + (alb_smax - alb_smin) * exp(-melt / mcrit)

    Parameters
    ----------
    melt : (n_points,)
        Melt rate (m/s w.e.), >= 0
    alb_smax, alb_smin : float
        Fresh and old snow albedo
    mcrit : float
        Critical melt rate (m/s), > 0

    Returns
    -------
    alb : (n_points,)
        Snow albedo
    """
    n = melt.shape[0]
    alb = np.empty(n, dtype=np.float64)
    for i in prange(n):
        alb[i] = albedo_denby_point(melt[i], alb_smax, alb_smin, mcrit)
    return alb


@njit(cache=True, fastmath=True, parallel=True)
def albedo_isba(
    alb: NDArray[np.float64],
    sf: NDArray[np.float64],
    melt: NDArray[np.float64],
    dt: float,
    tau: float,
    tau_a: float,
    tau_f: float,
    w_crit: float,
    mcrit: float,
    alb_smin: float,
    alb_smax: float,
) -> NDArray[np.float64]:
    """
    Prognostic snow albedo with dry and wet ageing.

    Physical constraints:
        - alb_smin <= alb <= alb_smax (clamped)
        - dry snow ages linearly: alb - tau_a * dt / tau
        - wet snow ages exponentially towards alb_smin at rate tau_f
        - fresh snowfall raises albedo by sf*dt/(w_crit/rho_w)*(alb_smax - alb_smin)

    Parameters
    ----------
    alb : (n_points,)
        Snow albedo at the start of the step
    sf : (n_points,)
        Snowfall (m/s w.e.)
    melt : (n_points,)
        Melt rate (m/s w.e.)
    dt : float
        Time step (s)
    tau : float
        Time scale (s) of the decline rates, one day
    tau_a, tau_f : float
        Dry and wet decline rates (1/day), independent of the step length
    w_crit : float
        Critical liquid water content (kg m-2)
    mcrit : float
        Critical melt rate (m/s)
    alb_smin, alb_smax : float
        Snow albedo bounds

    Returns
    -------
    alb : (n_points,)
        Updated snow albedo

    Notes
    -----
    The wet weight is w = clamp(1 - melt/mcrit, 0, 1) where melt > 0,
    else 0; the result is (1 - w) * dry + w * wet + fresh.
    """
    n = alb.shape[0]
    out = np.empty(n, dtype=np.float64)
    for i in prange(n):
        out[i] = albedo_isba_point(
            alb[i], sf[i], melt[i], dt, tau, tau_a, tau_f,
            w_crit, mcrit, alb_smin, alb_smax,
        )
    return out


@njit(cache=True, fastmath=True, parallel=True)
def albedo_alex(
    t2m: NDArray[np.float64],
    alb_smax: float,
    alb_smin: float,
    afac: float,
    tmid: float,
) -> NDArray[np.float64]:
    """
    Air-temperature-dependent snow albedo.

    alb = alb_smin + (alb_smax - alb_smin) * (0.5 * tanh(afac * (t2m - tmid)) + 0.5)
    """
    n = t2m.shape[0]
    alb = np.empty(n, dtype=np.float64)
    for i in prange(n):
        alb[i] = albedo_alex_point(t2m[i], alb_smax, alb_smin, afac, tmid)
    return alb


@njit(cache=True, fastmath=True, parallel=True)
def albedo_rembo(
    hsnow: NDArray[np.float64],
    albr: NDArray[np.float64],
    alb_smin: float,
    alb_smax: float,
    melt: NDArray[np.float64],
) -> NDArray[np.float64]:
    """
    Legacy snow-depth albedo with a melt switch.

    alb = min(albr + depth * (as_snow - albr), as_snow)

    where depth = hsnow / 0.1 m and as_snow = alb_smin if melt > 1e-3
    else alb_smax.

    Parameters
    ----------
    hsnow : (n_points,)
        Snow height (m w.e.)
    albr : (n_points,)
        Snow-free background albedo
    alb_smin, alb_smax : float
        Wet and dry snow albedo
    melt : (n_points,)
        Melt rate; pass ``REMBO_DEFAULT_MELT`` where unknown

    Returns
    -------
    alb : (n_points,)
        Surface albedo
    """
    n = hsnow.shape[0]
    alb = np.empty(n, dtype=np.float64)
    for i in prange(n):
        alb[i] = albedo_rembo_point(hsnow[i], albr[i], alb_smin, alb_smax, melt[i])
    return alb


@njit(cache=True, fastmath=True, parallel=True)
def blend_albedo(
    alb_snow: NDArray[np.float64],
    f_alb: NDArray[np.float64],
    background: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Grid-averaged albedo from snow cover fraction and background."""
    n = alb_snow.shape[0]
    alb = np.empty(n, dtype=np.float64)
    for i in prange(n):
        alb[i] = background[i] + f_alb[i] * (alb_snow[i] - background[i])
    return alb
