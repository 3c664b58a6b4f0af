"""Saturation vapour pressure and humidity.

Pure physics kernels for saturation vapour pressure over water and ice
(Magnus-type formulas) and the corresponding saturation specific humidity.
"""

from __future__ import annotations

import numpy as np
from numba import njit, prange
from numpy.typing import NDArray

from surfphys.constants import EPS, T0

__all__ = [
    "ew_sat",
    "ei_sat",
    "saturation_specific_humidity",
    "ew_sat_array",
    "ei_sat_array",
]


@njit(cache=True, fastmath=True)
def ew_sat(t: float) -> float:
    """Saturation vapour pressure over water (Pa) at temperature ``t`` (K)."""
    return 611.2 * np.exp(17.62 * (t - T0) / (243.12 + t - T0))


@njit(cache=True, fastmath=True)
def ei_sat(t: float) -> float:
    """Saturation vapour pressure over ice (Pa) at temperature ``t`` (K)."""
    return 611.2 * np.exp(22.46 * (t - T0) / (272.62 + t - T0))


@njit(cache=True, fastmath=True)
def saturation_specific_humidity(esat: float, sp: float) -> float:
    """
    Specific humidity (kg/kg) of saturated air.

    q_sat = esat * eps / (esat * (eps - 1) + sp)

    Parameters
    ----------
    esat : float
        Saturation vapour pressure (Pa)
    sp : float
        Surface pressure (Pa)
    """
    return esat * EPS / (esat * (EPS - 1.0) + sp)


@njit(cache=True, fastmath=True, parallel=True)
def ew_sat_array(t: NDArray[np.float64]) -> NDArray[np.float64]:
    """Elementwise :func:`ew_sat`."""
    n = t.shape[0]
    out = np.empty(n, dtype=np.float64)
    for i in prange(n):
        out[i] = ew_sat(t[i])
    return out


@njit(cache=True, fastmath=True, parallel=True)
def ei_sat_array(t: NDArray[np.float64]) -> NDArray[np.float64]:
    """Elementwise :func:`ei_sat`."""
    n = t.shape[0]
    out = np.empty(n, dtype=np.float64)
    for i in prange(n):
        out[i] = ei_sat(t[i])
    return out
