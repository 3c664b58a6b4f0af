"""Diurnal temperature cycle decomposition.

Pure physics kernels splitting a sinusoidal diurnal cycle around a daily
mean into its above-freezing (melt-effective) and below-freezing
(refreeze-effective) contributions.
"""

from __future__ import annotations

import numpy as np
from numba import njit, prange
from numpy.typing import NDArray

from surfphys.constants import PI

__all__ = ["diurnal_cycle_point", "diurnal_cycle"]


@njit(cache=True, fastmath=True)
def diurnal_cycle_point(amp: float, tmean: float) -> tuple[float, float]:
    """
    Above/below-freezing components of ``tmean + amp * sin(theta)``.

    Physical constraints:
        - above >= 0, below <= 0
        - whole day below freezing (tmean + amp <= 0): below = tmean
        - whole day above freezing (tmean >= amp): above = tmean

    Parameters
    ----------
    amp : float
        Diurnal half-range (K), >= 0
    tmean : float
        Daily mean deviation from the freezing point (K)

    Returns
    -------
    above : float
        Mean positive deviation over the above-freezing part of the day
    below : float
        Mean negative deviation over the below-freezing part of the day

    Notes
    -----
    For a partial-day crossing, with theta1 = arccos(tmean/amp) and
    s = sqrt(1 - (tmean/amp)^2):

        above = (-tmean*theta1 + amp*s + pi*tmean) / (pi - theta1)
        below = (tmean*theta1 - amp*s) / theta1

    ``below`` tends to 0 as theta1 -> 0 (tmean -> amp); when theta1
    rounds to exactly zero that limit is returned instead of 0/0.
    """
    if tmean + amp <= 0.0:
        return 0.0, tmean
    if abs(tmean) < amp:
        ratio = tmean / amp
        theta1 = np.arccos(ratio)
        s = np.sqrt(1.0 - ratio * ratio)
        above = (-tmean * theta1 + amp * s + PI * tmean) / (PI - theta1)
        if theta1 > 0.0:
            below = (tmean * theta1 - amp * s) / theta1
        else:
            below = 0.0
        return above, below
    return tmean, 0.0


@njit(cache=True, fastmath=True, parallel=True)
def diurnal_cycle(
    amp: float,
    tmean: NDArray[np.float64],
) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """
    Elementwise :func:`diurnal_cycle_point` with a fixed amplitude.

    Parameters
    ----------
    amp : float
        Diurnal half-range (K)
    tmean : (n_points,)
        Daily mean deviation from freezing (K), typically tsurf - T0

    Returns
    -------
    above : (n_points,)
        Above-freezing component (K)
    below : (n_points,)
        Below-freezing component (K)
    """
    n = tmean.shape[0]
    above = np.empty(n, dtype=np.float64)
    below = np.empty(n, dtype=np.float64)

    for i in prange(n):
        a, b = diurnal_cycle_point(amp, tmean[i])
        above[i] = a
        below[i] = b

    return above, below
