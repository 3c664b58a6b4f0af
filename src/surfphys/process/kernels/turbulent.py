"""Turbulent heat fluxes.

Pure physics kernels for bulk-aerodynamic sensible and latent heat fluxes
between the surface and the 2 m air layer. Positive fluxes leave the
surface.
"""

from __future__ import annotations

import numpy as np
from numba import njit, prange
from numpy.typing import NDArray

from surfphys.constants import CAP, CLS, CLV, LAND, T0
from surfphys.process.kernels.saturation import (
    ei_sat,
    ew_sat,
    saturation_specific_humidity,
)

__all__ = [
    "sensible_heat_flux_point",
    "latent_heat_flux_point",
    "sensible_heat_flux",
    "latent_heat_flux",
]


@njit(cache=True, fastmath=True)
def sensible_heat_flux_point(
    ts: float, ta: float, wind: float, rhoa: float, csh: float, enh: float
) -> float:
    coeff = csh
    if wind * (ts - ta) > 0.0:
        coeff = enh * csh
    return coeff * CAP * rhoa * wind * (ts - ta)


@njit(cache=True, fastmath=True)
def latent_heat_flux_point(
    ts: float,
    wind: float,
    qq: float,
    sp: float,
    rhoa: float,
    mask: int,
    clh: float,
    enh: float,
) -> tuple[float, float, float]:
    """Return (lhf, subl, evap) for one point."""
    coeff = clh
    if mask == LAND:
        coeff = enh * clh
    if ts < T0:
        shum_sat = saturation_specific_humidity(ei_sat(ts), sp)
        subl = coeff * wind * rhoa * (shum_sat - qq)
        return subl * CLS, subl, 0.0
    shum_sat = saturation_specific_humidity(ew_sat(ts), sp)
    evap = coeff * wind * rhoa * (shum_sat - qq)
    return evap * CLV, 0.0, evap


@njit(cache=True, fastmath=True, parallel=True)
def sensible_heat_flux(
    ts: NDArray[np.float64],
    ta: NDArray[np.float64],
    wind: NDArray[np.float64],
    rhoa: NDArray[np.float64],
    csh: float,
    enh: float,
) -> NDArray[np.float64]:
    """
    Bulk sensible heat flux.

    shf = coeff * cap * rho_air * wind * (Ts - Ta)

    Physical constraints:
        - shf has the sign of (Ts - Ta) for positive wind
        - coeff = enh * csh when wind * (Ts - Ta) > 0, else csh

    Parameters
    ----------
    ts : (n_points,)
        Surface temperature (K)
    ta : (n_points,)
        2 m air temperature (K)
    wind : (n_points,)
        Wind speed (m/s)
    rhoa : (n_points,)
        Air density (kg m-3)
    csh : float
        Sensible heat exchange coefficient
    enh : float
        Enhancement factor for the unstable (positive flux) regime

    Returns
    -------
    shf : (n_points,)
        Sensible heat flux (W m-2), positive upward
    """
    n = ts.shape[0]
    shf = np.empty(n, dtype=np.float64)

    for i in prange(n):
        shf[i] = sensible_heat_flux_point(ts[i], ta[i], wind[i], rhoa[i], csh, enh)

    return shf


@njit(cache=True, fastmath=True, parallel=True)
def latent_heat_flux(
    ts: NDArray[np.float64],
    wind: NDArray[np.float64],
    qq: NDArray[np.float64],
    sp: NDArray[np.float64],
    rhoa: NDArray[np.float64],
    mask: NDArray[np.int64],
    clh: float,
    enh: float,
) -> tuple[NDArray[np.float64], NDArray[np.float64], NDArray[np.float64]]:
    """
    Bulk latent heat flux with sublimation/evaporation partitioning.

    Below freezing the surface is assumed saturated with respect to ice
    and the moisture flux is sublimation/deposition; at or above freezing
    it is saturated with respect to water and the flux is evaporation/
    condensation.

    Parameters
    ----------
    ts : (n_points,)
        Surface temperature (K)
    wind : (n_points,)
        Wind speed (m/s)
    qq : (n_points,)
        Air specific humidity (kg/kg)
    sp : (n_points,)
        Surface pressure (Pa)
    rhoa : (n_points,)
        Air density (kg m-3)
    mask : (n_points,)
        Surface type (0 ocean, 1 land, 2 ice)
    clh : float
        Latent heat exchange coefficient
    enh : float
        Enhancement factor applied over land

    Returns
    -------
    lhf : (n_points,)
        Latent heat flux (W m-2), positive upward
    subl : (n_points,)
        Sublimation mass flux (kg m-2 s-1), zero at or above freezing
    evap : (n_points,)
        Evaporation mass flux (kg m-2 s-1), zero below freezing
    """
    n = ts.shape[0]
    lhf = np.empty(n, dtype=np.float64)
    subl = np.empty(n, dtype=np.float64)
    evap = np.empty(n, dtype=np.float64)

    for i in prange(n):
        flux, s, e = latent_heat_flux_point(
            ts[i], wind[i], qq[i], sp[i], rhoa[i], mask[i], clh, enh
        )
        lhf[i] = flux
        subl[i] = s
        evap[i] = e

    return lhf, subl, evap
