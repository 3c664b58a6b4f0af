"""Running averages of surface state, used for monthly and annual means.

An average is built in three phases on an accumulator state:
``"init"`` zeroes it, ``"step"`` adds the current values and ``"end"``
divides by the number of accumulated steps.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

import numpy as np

from surfphys.process.state import AVERAGED_FIELDS

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from surfphys.process.state import SurfaceState

__all__ = ["field_average", "surface_physics_average"]

_STEPS = ("init", "step", "end")


def field_average(
    ave: NDArray[np.float64],
    now: NDArray[np.float64],
    step: str,
    nt: int | None = None,
) -> None:
    """Update one accumulator array in place.

    Parameters
    ----------
    ave : (n_points,)
        Accumulator (modified in-place)
    now : (n_points,)
        Current values, added on ``"step"``
    step : {"init", "step", "end"}
        Averaging phase
    nt : int, optional
        Number of accumulated steps, required for ``"end"``

    Raises
    ------
    ValueError
        If ``step`` is unknown, or ``nt`` is missing or not positive on
        ``"end"``
    """
    if step == "init":
        ave[:] = 0.0
    elif step == "step":
        ave += now
    elif step == "end":
        if nt is None or nt <= 0:
            raise ValueError(f"averaging step 'end' needs a positive nt, got {nt!r}")
        ave /= float(nt)
    else:
        raise ValueError(f"unknown averaging step {step!r}, expected one of {_STEPS}")


def surface_physics_average(
    ave: SurfaceState,
    now: SurfaceState,
    step: str,
    nt: int | None = None,
    fields: Iterable[str] = AVERAGED_FIELDS,
) -> None:
    """Apply :func:`field_average` to every averaged field of ``ave``.

    Example:
        surface_physics_average(sp.mon, sp.now, "init")
        for day in range(30):
            sp.step()
            surface_physics_average(sp.mon, sp.now, "step")
        surface_physics_average(sp.mon, sp.now, "end", nt=30)
    """
    if step not in _STEPS:
        raise ValueError(f"unknown averaging step {step!r}, expected one of {_STEPS}")
    for name in fields:
        field_average(getattr(ave, name), getattr(now, name), step, nt)
