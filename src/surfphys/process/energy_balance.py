"""Sub-daily surface energy balance step.

One relaxation iteration of surface temperature towards the balance of
radiative, turbulent and melt/refreeze energy fluxes. Mass and albedo
fields are read but never written here.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from surfphys.constants import CLM, ICE, RHOW
from surfphys.process.kernels.radiation import longwave_upward
from surfphys.process.kernels.turbulent import latent_heat_flux, sensible_heat_flux

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from surfphys.process.state import BoundaryOptions, SurfaceParams, SurfaceState

__all__ = ["energy_balance", "melt_refreeze_energy", "surface_energy_balance_residual"]


def melt_refreeze_energy(state: SurfaceState) -> NDArray[np.float64]:
    """Energy (W m-2) consumed by melt net of refreezing.

    Ice melt only counts on ice points.
    """
    latent = RHOW * CLM
    return np.where(
        state.mask == ICE,
        (state.melted_snow + state.melted_ice - state.refr) * latent,
        (state.melted_snow - state.refr) * latent,
    )


def surface_energy_balance_residual(state: SurfaceState) -> NDArray[np.float64]:
    """Net surface energy flux (W m-2) with the fluxes currently in ``state``.

    qsb = (1 - alb) * swd + lwd - lwu - shf - lhf - qmr
    """
    return (
        (1.0 - state.alb) * state.swd
        + state.lwd
        - state.lwu
        - state.shf
        - state.lhf
        - melt_refreeze_energy(state)
    )


def energy_balance(
    state: SurfaceState,
    params: SurfaceParams,
    bnd: BoundaryOptions,
) -> None:
    """Execute one sub-daily energy balance iteration.

    Parameters
    ----------
    state : SurfaceState
        Current state (modified in-place)
    params : SurfaceParams
        Run parameters; the sub-step length is ``params.tsticsub``
    bnd : BoundaryOptions
        Forced fields; their values are left untouched
    """
    if not bnd.shf:
        state.shf[:] = sensible_heat_flux(
            state.tsurf, state.t2m, state.wind, state.rhoa,
            params.csh, params.shf_enh,
        )

    # Sublimation/deposition below freezing, evaporation/condensation above
    if not bnd.lhf:
        lhf, subl, evap = latent_heat_flux(
            state.tsurf, state.wind, state.qq, state.sp, state.rhoa,
            state.mask, params.clh, params.lhf_enh,
        )
        state.lhf[:] = lhf
        state.evap[:] = evap
        if not bnd.subl:
            state.subl[:] = subl

    state.lwu[:] = longwave_upward(state.tsurf)

    qsb = surface_energy_balance_residual(state)

    if not bnd.tsurf:
        state.tsurf += qsb * params.tsticsub / params.ceff
    state.t2m += (state.shf + state.lhf) * params.tsticsub / params.ceff
