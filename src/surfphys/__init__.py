"""
surfphys: Surface energy and mass balance of snow and ice.

Computes surface temperature, snow height, albedo, melt, refreezing,
runoff and the surface mass balance of ice sheets, land and ocean grid
points from atmospheric forcing, suitable for driving an ice sheet model.

Subpackages:
    process: Physics kernels, state containers and time stepping.

Modules:
    config: TOML run configuration and parameter validation.
    cli: Command line interface (``surfphys``).

Example:
    >>> import numpy as np
    >>> from surfphys.config import load_surface_config
    >>> from surfphys.process import run_surface_loop
    >>>
    >>> config = load_surface_config("surface.toml")
    >>> forcing = {"swd": np.full((365, 1), 200.0), "lwd": np.full((365, 1), 250.0)}
    >>> output, final = run_surface_loop(config.params, config.bnd, forcing)
"""

__version__ = "0.1.0"
