"""
Physics kernels for surface energy and mass balance modeling.

Design Rules:
1. Functions take numpy arrays or scalars as input
2. Functions return numpy arrays or scalars as output
3. No file I/O, no `self`, no state mutation, no logging
4. All physical constraints documented in docstrings
5. Numba JIT compiled with cache=True for performance
6. Each point reads and writes only its own array slot
"""

from surfphys.process.kernels import (
    albedo,
    diurnal,
    radiation,
    saturation,
    turbulent,
)

__all__ = [
    "albedo",
    "diurnal",
    "radiation",
    "saturation",
    "turbulent",
]
