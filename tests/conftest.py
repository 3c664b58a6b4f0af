"""
Shared pytest fixtures and helpers for surface energy and mass balance tests.

This module provides:
- Default run parameters
- Synthetic seasonal forcing for multi-point runs
- Tolerance settings for floating-point comparisons
"""

from typing import Callable, Dict

import numpy as np
import pytest

from surfphys.constants import ICE, LAND, OCEAN, SECONDS_PER_DAY
from surfphys.process.state import AlbedoScheme, SurfaceParams, SurfaceState

# =============================================================================
# Tolerance Settings
# =============================================================================

DEFAULT_RTOL = 1e-7
DEFAULT_ATOL = 1e-9


@pytest.fixture
def tolerance() -> Dict[str, float]:
    """Default tolerance settings for floating-point comparisons."""
    return {"rtol": DEFAULT_RTOL, "atol": DEFAULT_ATOL}


# =============================================================================
# Forcing helpers
# =============================================================================


def seasonal_forcing(n_steps: int, n_points: int, seed: int = 42) -> Dict[str, np.ndarray]:
    """
    Synthetic daily forcing with an annual cycle.

    Args:
        n_steps: Number of daily steps
        n_points: Number of grid points
        seed: Random seed for the small per-point perturbations

    Returns:
        Dict of forcing field -> array of shape (n_steps, n_points)
    """
    rng = np.random.default_rng(seed)
    day = np.arange(n_steps)[:, np.newaxis]
    season = np.sin(2.0 * np.pi * (day - 80.0) / 365.0)
    jitter = rng.uniform(-1.0, 1.0, size=(n_steps, n_points))
    ones = np.ones((n_steps, n_points))

    snow_mm_day = np.clip(2.0 - 2.0 * season + jitter, 0.0, None)
    rain_mm_day = np.clip(2.0 * season + jitter, 0.0, None)

    return {
        "sf": snow_mm_day / 1000.0 / SECONDS_PER_DAY,
        "rf": rain_mm_day / 1000.0 / SECONDS_PER_DAY,
        "sp": 80000.0 * ones,
        "lwd": 240.0 + 40.0 * season + 5.0 * jitter,
        "swd": np.clip(150.0 + 150.0 * season + 10.0 * jitter, 0.0, None),
        "wind": 5.0 + jitter,
        "rhoa": 1.2 * ones,
        "qq": (2.5 + 1.5 * season) * 1e-3 * ones,
    }


@pytest.fixture
def params() -> SurfaceParams:
    """Default parameters for a 4-point run."""
    return SurfaceParams(nx=4, alb_scheme=AlbedoScheme.SLATER)


@pytest.fixture
def mixed_state() -> SurfaceState:
    """Ocean, land and two ice points with a thin snow cover."""
    state = SurfaceState(
        n_points=4,
        mask=np.array([OCEAN, LAND, ICE, ICE]),
        hsnow=np.array([0.0, 0.05, 0.2, 1.0]),
        hice=np.array([0.0, 0.0, 100.0, 1000.0]),
    )
    return state.validate()


@pytest.fixture
def forcing_year() -> Dict[str, np.ndarray]:
    """One year of forcing for four points."""
    return seasonal_forcing(365, 4)


@pytest.fixture
def make_forcing() -> Callable[..., Dict[str, np.ndarray]]:
    """Factory for seasonal forcing of any size."""
    return seasonal_forcing
