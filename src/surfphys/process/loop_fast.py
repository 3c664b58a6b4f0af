"""Numba-accelerated time loop for the surface energy and mass balance.

Provides a JIT-compiled version of run_surface_loop that keeps the entire
simulation inside numba. Each grid point is advanced independently through
its sub-daily energy iterations and mass balance, so points are
distributed over threads with ``prange``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Mapping

import numpy as np
from numba import njit, prange

from surfphys.constants import CLM, HSMAX, ICE, LAND, OCEAN, OCEAN_ALBEDO, RHOW, SECONDS_PER_DAY, T0
from surfphys.logging import get_logger
from surfphys.process.kernels.albedo import (
    SCHEME_ALEX,
    SCHEME_DENBY,
    SCHEME_NONE,
    SCHEME_REMBO,
    SCHEME_SLATER,
    albedo_alex_point,
    albedo_denby_point,
    albedo_isba_point,
    albedo_rembo_point,
    albedo_slater_point,
)
from surfphys.process.kernels.diurnal import diurnal_cycle_point
from surfphys.process.kernels.radiation import longwave_upward_point
from surfphys.process.kernels.turbulent import latent_heat_flux_point, sensible_heat_flux_point
from surfphys.process.loop import (
    OUTPUT_FIELDS,
    StepOutput,
    _check_forcing,
    _prepare_state,
    check_finite,
)
from surfphys.process.state import FORCING_FIELDS

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from surfphys.process.state import BoundaryOptions, SurfaceParams, SurfaceState

__all__ = ["run_surface_loop_fast"]

logger = get_logger("engine")

# Row order of the packed state array
STATE_ROWS = (
    "t2m", "tsurf", "hsnow", "hice", "alb", "alb_snow",
    "melt", "melted_snow", "melted_ice", "refr",
    "smb", "smb_snow", "smb_ice", "acc",
    "lhf", "shf", "lwu", "subl", "evap", "runoff",
)
(
    T2M, TSURF, HSNOW, HICE, ALB, ALB_SNOW,
    MELT, MELTED_SNOW, MELTED_ICE, REFR,
    SMB, SMB_SNOW, SMB_ICE, ACC,
    LHF, SHF, LWU, SUBL, EVAP, RUNOFF,
) = range(len(STATE_ROWS))

# Row order of the packed forcing array
SF, RF, SP, LWD, SWD, WIND, RHOA, QQ = range(len(FORCING_FIELDS))

_OUTPUT_ROWS = np.array([STATE_ROWS.index(name) for name in OUTPUT_FIELDS], dtype=np.int64)


@njit(cache=True, fastmath=True)
def _advance_point(
    i, st, frc, mask_i,
    n_ksub, tstic, tsticsub, ceff, albr, albl, alb_smax, alb_smin,
    hcrit, rcrit, amp, csh, clh, shf_enh, lhf_enh, tmin, tmax,
    tau_a, tau_f, w_crit, mcrit, afac, tmid, scheme,
    bnd_tsurf, bnd_hsnow, bnd_alb, bnd_melt, bnd_refr,
    bnd_smb, bnd_acc, bnd_lhf, bnd_shf, bnd_subl,
):
    """Advance point ``i`` of the packed state by one outer step."""
    latent = RHOW * CLM
    sf = frc[SF, i]
    rf = frc[RF, i]
    wind = frc[WIND, i]
    rhoa = frc[RHOA, i]

    # ================================================================
    # 1. SUB-DAILY ENERGY RELAXATION
    # ================================================================
    for _ in range(n_ksub):
        ts = st[TSURF, i]
        if not bnd_shf:
            st[SHF, i] = sensible_heat_flux_point(ts, st[T2M, i], wind, rhoa, csh, shf_enh)
        if not bnd_lhf:
            lhf, subl, evap = latent_heat_flux_point(
                ts, wind, frc[QQ, i], frc[SP, i], rhoa, mask_i, clh, lhf_enh
            )
            st[LHF, i] = lhf
            st[EVAP, i] = evap
            if not bnd_subl:
                st[SUBL, i] = subl
        st[LWU, i] = longwave_upward_point(ts)

        if mask_i == ICE:
            qmr = (st[MELTED_SNOW, i] + st[MELTED_ICE, i] - st[REFR, i]) * latent
        else:
            qmr = (st[MELTED_SNOW, i] - st[REFR, i]) * latent

        qsb = (
            (1.0 - st[ALB, i]) * frc[SWD, i] + frc[LWD, i]
            - st[LWU, i] - st[SHF, i] - st[LHF, i] - qmr
        )
        if not bnd_tsurf:
            st[TSURF, i] = ts + qsb * tsticsub / ceff
        st[T2M, i] = st[T2M, i] + (st[SHF, i] + st[LHF, i]) * tsticsub / ceff

    # ================================================================
    # 2. MASS BALANCE
    # ================================================================
    dt = tstic
    qmelt = 0.0
    qcold = 0.0
    if mask_i != OCEAN:
        above, below = diurnal_cycle_point(amp, st[TSURF, i] - T0)
        qmelt = max(0.0, above * ceff / dt)
        qcold = max(0.0, abs(below) * ceff / dt)

    hsnow = st[HSNOW, i]
    if not bnd_melt:
        potential = qmelt / latent
        melted_snow = min(potential, hsnow / dt)
        st[MELTED_SNOW, i] = melted_snow
        st[MELTED_ICE, i] = potential - melted_snow
        if mask_i == ICE:
            st[MELT, i] = melted_snow + st[MELTED_ICE, i]
        else:
            st[MELT, i] = melted_snow

    f_rz = hsnow / (hsnow + rcrit)
    if not bnd_refr:
        potential = qcold / latent
        refrozen_rain = min(potential, rf)
        refrozen_snow = max(potential - refrozen_rain, 0.0)
        refrozen_snow = min(refrozen_snow, st[MELTED_SNOW, i])
        refrozen_rain = f_rz * refrozen_rain
        refrozen_snow = f_rz * refrozen_snow
        st[REFR, i] = refrozen_rain + refrozen_snow
    else:
        refrozen_rain = min(st[REFR, i], rf)

    st[RUNOFF, i] = st[MELT, i] + rf - refrozen_rain

    if not bnd_acc:
        st[ACC, i] = sf - st[SUBL, i] / RHOW + st[REFR, i]

    smb_snow = sf - st[SUBL, i] / RHOW - st[MELTED_SNOW, i]
    st[SMB_SNOW, i] = smb_snow
    snow_to_ice = 0.0
    if not bnd_hsnow:
        if mask_i == OCEAN:
            hsnow = 0.0
        else:
            hsnow = max(0.0, hsnow + smb_snow * dt)
        snow_to_ice = max(0.0, hsnow - HSMAX)
        hsnow = hsnow - snow_to_ice
        st[HSNOW, i] = hsnow

    smb_ice = snow_to_ice / dt - st[MELTED_ICE, i] + st[REFR, i]
    st[SMB_ICE, i] = smb_ice
    st[HICE, i] = st[HICE, i] + smb_ice * dt

    if not bnd_smb:
        if mask_i == ICE:
            st[SMB, i] = smb_snow + smb_ice - snow_to_ice / dt
        else:
            st[SMB, i] = smb_snow + max(0.0, smb_ice - snow_to_ice / dt)

    # ================================================================
    # 3. ALBEDO
    # ================================================================
    if not bnd_alb and scheme != SCHEME_NONE:
        if mask_i == ICE:
            background = albr
        elif mask_i == LAND:
            background = albl
        else:
            background = OCEAN_ALBEDO

        if scheme == SCHEME_ALEX:
            alb = albedo_alex_point(st[T2M, i], alb_smax, alb_smin, afac, tmid)
            st[ALB_SNOW, i] = alb
            st[ALB, i] = alb
        elif scheme == SCHEME_REMBO:
            alb = albedo_rembo_point(hsnow, background, alb_smin, alb_smax, st[MELT, i])
            st[ALB_SNOW, i] = alb
            st[ALB, i] = OCEAN_ALBEDO if mask_i == OCEAN else alb
        else:
            if scheme == SCHEME_SLATER:
                alb_snow = albedo_slater_point(st[TSURF, i], tmin, tmax, alb_smax, alb_smin)
            elif scheme == SCHEME_DENBY:
                alb_snow = albedo_denby_point(st[MELT, i], alb_smax, alb_smin, mcrit)
            else:
                alb_snow = albedo_isba_point(
                    st[ALB_SNOW, i], sf, st[MELT, i], tstic, SECONDS_PER_DAY,
                    tau_a, tau_f, w_crit, mcrit, alb_smin, alb_smax,
                )
            st[ALB_SNOW, i] = alb_snow
            f_alb = hsnow / (hsnow + hcrit)
            if mask_i == OCEAN:
                st[ALB, i] = OCEAN_ALBEDO
            else:
                st[ALB, i] = background + f_alb * (alb_snow - background)

    if not (bnd_lhf or bnd_subl):
        st[SUBL, i] = st[SUBL, i] / RHOW


@njit(cache=True, parallel=True)
def _run_loop_jit(
    n_steps, st, all_forcing, mask, out_rows,
    n_ksub, tstic, tsticsub, ceff, albr, albl, alb_smax, alb_smin,
    hcrit, rcrit, amp, csh, clh, shf_enh, lhf_enh, tmin, tmax,
    tau_a, tau_f, w_crit, mcrit, afac, tmid, scheme,
    bnd_tsurf, bnd_hsnow, bnd_alb, bnd_melt, bnd_refr,
    bnd_smb, bnd_acc, bnd_lhf, bnd_shf, bnd_subl,
):
    """JIT-compiled loop; ``st`` is updated in place.

    all_forcing has shape (n_steps, n_forcing, n_points); the returned
    output has shape (n_out, n_steps, n_points).
    """
    n_points = st.shape[1]
    n_out = out_rows.shape[0]
    out = np.zeros((n_out, n_steps, n_points), dtype=np.float64)

    for step_idx in range(n_steps):
        frc = all_forcing[step_idx]
        for i in prange(n_points):
            _advance_point(
                i, st, frc, mask[i],
                n_ksub, tstic, tsticsub, ceff, albr, albl, alb_smax, alb_smin,
                hcrit, rcrit, amp, csh, clh, shf_enh, lhf_enh, tmin, tmax,
                tau_a, tau_f, w_crit, mcrit, afac, tmid, scheme,
                bnd_tsurf, bnd_hsnow, bnd_alb, bnd_melt, bnd_refr,
                bnd_smb, bnd_acc, bnd_lhf, bnd_shf, bnd_subl,
            )
            for k in range(n_out):
                out[k, step_idx, i] = st[out_rows[k], i]

    return out


def run_surface_loop_fast(
    params: SurfaceParams,
    bnd: BoundaryOptions,
    forcing: Mapping[str, NDArray[np.float64]],
    initial_state: SurfaceState | None = None,
) -> tuple[StepOutput, SurfaceState]:
    """Run the engine over a forcing time series using the fused JIT loop.

    Same contract as :func:`surfphys.process.loop.run_surface_loop`.

    Parameters
    ----------
    params : SurfaceParams
        Run parameters (validated here)
    bnd : BoundaryOptions
        Boundary switches applied at every step
    forcing : mapping
        Forcing field name -> array of shape (n_steps, n_points)
    initial_state : SurfaceState, optional
        Starting state, copied

    Returns
    -------
    output : StepOutput
        State after each step
    final_state : SurfaceState
        State after the last step
    """
    params.validate()
    state = _prepare_state(params, initial_state)

    forcing = {name: np.asarray(values, dtype=np.float64) for name, values in forcing.items()}
    n_steps = _check_forcing(forcing, state.n_points)
    n_points = state.n_points

    if n_steps == 0:
        logger.info("run_finished", engine="fast", n_points=n_points, n_steps=0)
        return StepOutput(n_steps=0, n_points=n_points), state

    # Missing forcing fields hold their initial values for the whole run
    all_forcing = np.empty((n_steps, len(FORCING_FIELDS), n_points), dtype=np.float64)
    for row, name in enumerate(FORCING_FIELDS):
        if name in forcing:
            all_forcing[:, row, :] = forcing[name]
        else:
            all_forcing[:, row, :] = getattr(state, name)[np.newaxis, :]

    st = np.ascontiguousarray(
        np.stack([getattr(state, name) for name in STATE_ROWS]), dtype=np.float64
    )

    log = logger.bind(n_points=n_points, n_steps=n_steps, n_ksub=params.n_ksub)
    log.info("run_started", engine="fast", alb_scheme=params.alb_scheme.label,
             forced=list(bnd.forced()))

    out = _run_loop_jit(
        n_steps, st, all_forcing, state.mask, _OUTPUT_ROWS,
        params.n_ksub, params.tstic, params.tsticsub, params.ceff,
        params.albr, params.albl, params.alb_smax, params.alb_smin,
        params.hcrit, params.rcrit, params.amp, params.csh, params.clh,
        params.shf_enh, params.lhf_enh, params.tmin, params.tmax,
        params.tau_a, params.tau_f, params.w_crit, params.mcrit,
        params.afac, params.tmid, int(params.alb_scheme),
        bnd.tsurf, bnd.hsnow, bnd.alb, bnd.melt, bnd.refr,
        bnd.smb, bnd.acc, bnd.lhf, bnd.shf, bnd.subl,
    )

    # Unpack final state
    for row, name in enumerate(STATE_ROWS):
        getattr(state, name)[:] = st[row]
    state.set_forcing(**{name: all_forcing[-1, row] for row, name in enumerate(FORCING_FIELDS)})

    output = StepOutput(
        n_steps=n_steps,
        n_points=n_points,
        data={name: out[k] for k, name in enumerate(OUTPUT_FIELDS)},
    )

    bad = check_finite(state)
    if bad:
        log.warning("non_finite_state", fields=bad)
    log.info("run_finished", engine="fast")
    return output, state
