"""Surface mass balance step.

Evaluated once per outer time step after the sub-daily energy relaxation:
melt, refreezing, runoff, accumulation, snow and ice mass change, the
snow-to-ice overflow and the albedo update.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from surfphys.constants import (
    CLM,
    HSMAX,
    ICE,
    LAND,
    OCEAN,
    OCEAN_ALBEDO,
    RHOW,
    SECONDS_PER_DAY,
    T0,
)
from surfphys.process.kernels.albedo import (
    albedo_alex,
    albedo_denby,
    albedo_isba,
    albedo_rembo,
    albedo_slater,
    blend_albedo,
)
from surfphys.process.kernels.diurnal import diurnal_cycle
from surfphys.process.state import AlbedoScheme

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from surfphys.process.state import BoundaryOptions, SurfaceParams, SurfaceState

__all__ = ["mass_balance", "background_albedo", "update_albedo"]


def background_albedo(mask: NDArray[np.int64], params: SurfaceParams) -> NDArray[np.float64]:
    """Snow-free albedo per point: bare ice, bare land or open ocean."""
    return np.where(
        mask == ICE, params.albr,
        np.where(mask == LAND, params.albl, OCEAN_ALBEDO),
    )


def update_albedo(state: SurfaceState, params: SurfaceParams) -> None:
    """Update snow and grid-averaged albedo with the active scheme.

    With ``AlbedoScheme.NONE`` both fields are left as they are.
    """
    scheme = params.alb_scheme
    if scheme == AlbedoScheme.NONE:
        return

    background = background_albedo(state.mask, params)
    ocean = state.mask == OCEAN

    if scheme == AlbedoScheme.ALEX:
        alb_snow = albedo_alex(
            state.t2m, params.alb_smax, params.alb_smin, params.afac, params.tmid
        )
        state.alb_snow[:] = alb_snow
        state.alb[:] = alb_snow
        return

    if scheme == AlbedoScheme.REMBO:
        alb_snow = albedo_rembo(
            state.hsnow, background, params.alb_smin, params.alb_smax, state.melt
        )
        state.alb_snow[:] = alb_snow
        state.alb[:] = np.where(ocean, OCEAN_ALBEDO, alb_snow)
        return

    if scheme == AlbedoScheme.SLATER:
        alb_snow = albedo_slater(
            state.tsurf, params.tmin, params.tmax, params.alb_smax, params.alb_smin
        )
    elif scheme == AlbedoScheme.DENBY:
        alb_snow = albedo_denby(state.melt, params.alb_smax, params.alb_smin, params.mcrit)
    else:
        alb_snow = albedo_isba(
            state.alb_snow, state.sf, state.melt, params.tstic, SECONDS_PER_DAY,
            params.tau_a, params.tau_f, params.w_crit, params.mcrit,
            params.alb_smin, params.alb_smax,
        )
    state.alb_snow[:] = alb_snow

    # Snow cover fraction saturates with snow height
    f_alb = state.hsnow / (state.hsnow + params.hcrit)
    state.alb[:] = np.where(ocean, OCEAN_ALBEDO, blend_albedo(alb_snow, f_alb, background))


def mass_balance(
    state: SurfaceState,
    params: SurfaceParams,
    bnd: BoundaryOptions,
) -> None:
    """Execute the mass balance for one outer time step.

    Rates are in m/s water equivalent and are integrated over the outer
    step ``params.tstic``.

    Parameters
    ----------
    state : SurfaceState
        State after the energy relaxation (modified in-place)
    params : SurfaceParams
        Run parameters
    bnd : BoundaryOptions
        Forced fields; their values are left untouched
    """
    dt = params.tstic
    latent = RHOW * CLM
    ocean = state.mask == OCEAN
    ice = state.mask == ICE

    # 1. Above/below freezing parts of the diurnal cycle, land and ice only
    above, below = diurnal_cycle(params.amp, state.tsurf - T0)
    qmelt = np.where(ocean, 0.0, np.maximum(0.0, above * params.ceff / dt))
    qcold = np.where(ocean, 0.0, np.maximum(0.0, np.abs(below) * params.ceff / dt))

    # 2. Melt: potential melt split into snow and ice melt
    if not bnd.melt:
        potential = qmelt / latent
        state.melted_snow[:] = np.minimum(potential, state.hsnow / dt)
        state.melted_ice[:] = potential - state.melted_snow
        state.melt[:] = np.where(
            ice, state.melted_snow + state.melted_ice, state.melted_snow
        )

    # 3. Refreezing, limited by the cold content and insulated by snow depth
    f_rz = state.hsnow / (state.hsnow + params.rcrit)
    if not bnd.refr:
        potential = qcold / latent
        refrozen_rain = np.minimum(potential, state.rf)
        refrozen_snow = np.maximum(potential - refrozen_rain, 0.0)
        refrozen_snow = np.minimum(refrozen_snow, state.melted_snow)
        refrozen_rain = f_rz * refrozen_rain
        refrozen_snow = f_rz * refrozen_snow
        state.refr[:] = refrozen_rain + refrozen_snow
    else:
        refrozen_rain = np.minimum(state.refr, state.rf)

    # 4. Potential runoff
    state.runoff[:] = state.melt + state.rf - refrozen_rain

    # 5. Accumulation (diagnostic)
    if not bnd.acc:
        state.acc[:] = state.sf - state.subl / RHOW + state.refr

    # 6. Snow budget
    state.smb_snow[:] = state.sf - state.subl / RHOW - state.melted_snow
    if not bnd.hsnow:
        state.hsnow[:] = np.where(
            ocean, 0.0, np.maximum(0.0, state.hsnow + state.smb_snow * dt)
        )
        snow_to_ice = np.maximum(0.0, state.hsnow - HSMAX)
        state.hsnow -= snow_to_ice
    else:
        snow_to_ice = np.zeros(state.n_points, dtype=np.float64)

    # 7. Ice budget, used to force an ice sheet model
    state.smb_ice[:] = snow_to_ice / dt - state.melted_ice + state.refr
    state.hice += state.smb_ice * dt

    if not bnd.smb:
        state.smb[:] = np.where(
            ice,
            state.smb_snow + state.smb_ice - snow_to_ice / dt,
            state.smb_snow + np.maximum(0.0, state.smb_ice - snow_to_ice / dt),
        )

    # 8. Albedo
    if not bnd.alb:
        update_albedo(state, params)

    # 9. Report sublimation as m/s water equivalent
    if not (bnd.lhf or bnd.subl):
        state.subl /= RHOW
