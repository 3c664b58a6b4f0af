"""
surfphys Process Package

Surface energy and mass balance of snow and ice with:
- Pure physics kernels (numba JIT)
- Typed state containers
- Sub-daily energy relaxation and daily mass balance steps
- Monthly/annual averaging
- Structured logging
"""

from surfphys.process import kernels
from surfphys.process.averaging import field_average, surface_physics_average
from surfphys.process.energy_balance import energy_balance
from surfphys.process.loop import (
    OUTPUT_FIELDS,
    StepOutput,
    SurfacePhysics,
    check_finite,
    run_surface_loop,
    surface_energy_and_mass_balance,
)
from surfphys.process.loop_fast import run_surface_loop_fast
from surfphys.process.mass_balance import mass_balance
from surfphys.process.state import (
    AlbedoScheme,
    BoundaryOptions,
    SurfaceParams,
    SurfaceState,
)

__all__ = [
    "kernels",
    "AlbedoScheme",
    "BoundaryOptions",
    "SurfaceParams",
    "SurfaceState",
    "energy_balance",
    "mass_balance",
    "surface_energy_and_mass_balance",
    "check_finite",
    "SurfacePhysics",
    "StepOutput",
    "OUTPUT_FIELDS",
    "run_surface_loop",
    "run_surface_loop_fast",
    "field_average",
    "surface_physics_average",
]
