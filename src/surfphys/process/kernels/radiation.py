"""Radiative fluxes.

Pure physics kernels for longwave emission of the surface.
"""

from __future__ import annotations

import numpy as np
from numba import njit, prange
from numpy.typing import NDArray

from surfphys.constants import SIGMA

__all__ = ["longwave_upward_point", "longwave_upward"]


@njit(cache=True, fastmath=True)
def longwave_upward_point(ts: float) -> float:
    """Stefan-Boltzmann emission (W m-2) of a black body at ``ts`` (K)."""
    return SIGMA * ts * ts * ts * ts


@njit(cache=True, fastmath=True, parallel=True)
def longwave_upward(ts: NDArray[np.float64]) -> NDArray[np.float64]:
    """
    Upwelling longwave radiation.

    lwu = sigma * Ts^4

    Parameters
    ----------
    ts : (n_points,)
        Surface temperature (K)

    Returns
    -------
    lwu : (n_points,)
        Upwelling longwave radiation (W m-2)
    """
    n = ts.shape[0]
    lwu = np.empty(n, dtype=np.float64)
    for i in prange(n):
        lwu[i] = longwave_upward_point(ts[i])
    return lwu
