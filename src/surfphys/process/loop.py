"""Time step orchestration for the surface energy and mass balance.

Provides the engine entry point that runs the sub-daily energy relaxation
followed by one mass balance pass, and a simple driver loop over
in-memory forcing time series.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, Mapping

import numpy as np
from tqdm import tqdm

from surfphys.errors import ConfigurationError
from surfphys.logging import get_logger
from surfphys.process.energy_balance import energy_balance
from surfphys.process.mass_balance import mass_balance
from surfphys.process.state import (
    FORCING_FIELDS,
    BoundaryOptions,
    SurfaceParams,
    SurfaceState,
)

if TYPE_CHECKING:
    from numpy.typing import NDArray

__all__ = [
    "OUTPUT_FIELDS",
    "StepOutput",
    "SurfacePhysics",
    "check_finite",
    "run_surface_loop",
    "surface_energy_and_mass_balance",
]

logger = get_logger("engine")

# Per-step fields recorded by the driver loops
OUTPUT_FIELDS = (
    "t2m", "tsurf", "hsnow", "hice", "alb", "alb_snow",
    "melt", "refr", "runoff", "acc",
    "smb", "smb_snow", "smb_ice",
    "shf", "lhf", "lwu", "subl", "evap",
)


def surface_energy_and_mass_balance(
    state: SurfaceState,
    params: SurfaceParams,
    bnd: BoundaryOptions,
) -> None:
    """Advance ``state`` by one outer time step.

    Runs ``params.n_ksub`` energy balance iterations (no snow height
    update) followed by a single mass balance pass. All fields are
    updated in place except those forced by ``bnd``.

    Parameters
    ----------
    state : SurfaceState
        Current state (modified in-place)
    params : SurfaceParams
        Validated run parameters
    bnd : BoundaryOptions
        Active boundary switches
    """
    for _ in range(params.n_ksub):
        energy_balance(state, params, bnd)
    mass_balance(state, params, bnd)


def check_finite(
    state: SurfaceState,
    fields: Iterable[str] | None = None,
) -> list[str]:
    """Names of state fields holding NaN or infinite values.

    The engine never raises on numeric degeneracy; callers use this to
    observe a failed step.
    """
    names = fields if fields is not None else SurfaceState.field_names()
    return [name for name in names if not np.all(np.isfinite(getattr(state, name)))]


@dataclass
class StepOutput:
    """Container for per-step output arrays.

    All arrays have shape (n_steps, n_points) and hold the state after
    each step for the fields in ``OUTPUT_FIELDS``.
    """

    n_steps: int
    n_points: int
    data: dict[str, NDArray[np.float64]] = field(default=None)

    def __post_init__(self):
        """Initialize output arrays."""
        if self.data is None:
            shape = (self.n_steps, self.n_points)
            self.data = {name: np.zeros(shape, dtype=np.float64) for name in OUTPUT_FIELDS}

    def __getattr__(self, name: str) -> NDArray[np.float64]:
        data = self.__dict__.get("data")
        if data is not None and name in data:
            return data[name]
        raise AttributeError(name)

    def record(self, step_idx: int, state: SurfaceState) -> None:
        for name, arr in self.data.items():
            arr[step_idx, :] = getattr(state, name)


@dataclass
class SurfacePhysics:
    """Parameters, boundary switches and states of one run.

    ``now`` is the state advanced by the engine; ``mon`` and ``ann`` are
    accumulators for monthly and annual averages.
    """

    par: SurfaceParams
    bnd: BoundaryOptions
    bnd0: BoundaryOptions
    now: SurfaceState
    mon: SurfaceState
    ann: SurfaceState

    @classmethod
    def create(
        cls,
        params: SurfaceParams,
        bnd: BoundaryOptions | None = None,
        bnd0: BoundaryOptions | None = None,
        mask: NDArray[np.int64] | None = None,
    ) -> SurfacePhysics:
        """Allocate states of ``params.nx`` points for a validated run."""
        params.validate()
        n = params.nx
        now = SurfaceState(n_points=n, mask=mask)
        now.validate()
        return cls(
            par=params,
            bnd=bnd or BoundaryOptions(),
            bnd0=bnd0 or BoundaryOptions(),
            now=now,
            mon=SurfaceState(n_points=n, mask=now.mask.copy()),
            ann=SurfaceState(n_points=n, mask=now.mask.copy()),
        )

    def step(self, equilibrate: bool = False) -> None:
        """Advance ``now`` by one step with ``bnd`` (or ``bnd0``)."""
        bnd = self.bnd0 if equilibrate else self.bnd
        surface_energy_and_mass_balance(self.now, self.par, bnd)


def _prepare_state(
    params: SurfaceParams,
    initial_state: SurfaceState | None,
) -> SurfaceState:
    state = (
        initial_state.copy() if initial_state is not None
        else SurfaceState(n_points=params.nx)
    )
    state.validate()
    if state.n_points != params.nx:
        raise ConfigurationError(
            f"state has {state.n_points} points, params.nx is {params.nx}"
        )
    return state


def _check_forcing(
    forcing: Mapping[str, NDArray[np.float64]],
    n_points: int,
) -> int:
    unknown = sorted(set(forcing) - set(FORCING_FIELDS))
    if unknown:
        raise ConfigurationError(f"unknown forcing fields: {', '.join(unknown)}")
    if not forcing:
        raise ConfigurationError("no forcing provided")

    n_steps = None
    for name, values in forcing.items():
        if values.ndim != 2 or values.shape[1] != n_points:
            raise ConfigurationError(
                f"forcing {name!r} must have shape (n_steps, {n_points}), got {values.shape}"
            )
        if n_steps is None:
            n_steps = values.shape[0]
        elif values.shape[0] != n_steps:
            raise ConfigurationError(f"forcing {name!r} has {values.shape[0]} steps, expected {n_steps}")
    return n_steps


def run_surface_loop(
    params: SurfaceParams,
    bnd: BoundaryOptions,
    forcing: Mapping[str, NDArray[np.float64]],
    initial_state: SurfaceState | None = None,
    progress: bool = False,
) -> tuple[StepOutput, SurfaceState]:
    """Run the engine over a forcing time series.

    Parameters
    ----------
    params : SurfaceParams
        Run parameters (validated here)
    bnd : BoundaryOptions
        Boundary switches applied at every step
    forcing : mapping
        Forcing field name -> array of shape (n_steps, n_points). Fields
        not given keep their initial-state values.
    initial_state : SurfaceState, optional
        Starting state, copied. Defaults to a fresh state of
        ``params.nx`` ice points.
    progress : bool
        Show a tqdm progress bar over steps

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

    log = logger.bind(n_points=state.n_points, n_steps=n_steps, n_ksub=params.n_ksub)
    log.info("run_started", alb_scheme=params.alb_scheme.label, forced=list(bnd.forced()))

    output = StepOutput(n_steps=n_steps, n_points=state.n_points)
    reported = False
    for step_idx in tqdm(range(n_steps), desc="Surface balance", disable=not progress):
        state.set_forcing(**{name: values[step_idx] for name, values in forcing.items()})
        surface_energy_and_mass_balance(state, params, bnd)
        output.record(step_idx, state)

        if not reported:
            bad = check_finite(state)
            if bad:
                log.warning("non_finite_state", step=step_idx, fields=bad)
                reported = True

    log.info("run_finished")
    return output, state
