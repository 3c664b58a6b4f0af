"""Run configuration for the surface energy and mass balance.

Parameters are read from the ``[surface_physics]`` table of a TOML file:

    [surface_physics]
    boundary = ["t2m", "sf", "rf"]
    tstic = 86400.0
    n_ksub = 3
    alb_scheme = "slater"
    ceff = 2.0e6
    ...

Keys not given fall back to the ``SurfaceParams`` defaults. ``boundary``
lists the externally forced fields of normal steps, ``boundary0`` those of
equilibration steps.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from typing import Any, Mapping

import toml

from surfphys.errors import ConfigurationError
from surfphys.logging import get_logger
from surfphys.process.state import AlbedoScheme, BoundaryOptions, SurfaceParams

__all__ = [
    "SurfaceConfig",
    "load_surface_config",
    "params_from_dict",
    "boundary_from_dict",
    "log_params",
    "log_boundary",
]

logger = get_logger("config")

TABLE = "surface_physics"

_INT_KEYS = {"nx", "n_ksub"}
_STR_KEYS = {"name", "alb_scheme"}
_BOUNDARY_KEYS = {"boundary", "boundary0"}
_PARAM_KEYS = {f.name for f in fields(SurfaceParams)}


@dataclass(frozen=True)
class SurfaceConfig:
    """Validated parameters and boundary switches of one run."""

    params: SurfaceParams
    bnd: BoundaryOptions
    bnd0: BoundaryOptions


def _coerce(key: str, value: Any) -> Any:
    if key in _STR_KEYS:
        if not isinstance(value, str):
            raise ConfigurationError(f"{key} must be a string, got {value!r}")
        return value
    # bool is an int subclass; reject it for numeric keys
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(f"{key} must be a number, got {value!r}")
    if key in _INT_KEYS:
        if isinstance(value, float) and not value.is_integer():
            raise ConfigurationError(f"{key} must be an integer, got {value!r}")
        return int(value)
    return float(value)


def _boundary_names(key: str, value: Any) -> list[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
        raise ConfigurationError(f"{key} must be a list of field names, got {value!r}")
    return list(value)


def params_from_dict(mapping: Mapping[str, Any]) -> SurfaceParams:
    """Build validated parameters from a flat mapping.

    Boundary keys are ignored here; unknown keys are logged and skipped.

    Raises
    ------
    ConfigurationError
        On values of the wrong type or an invalid parameter set
    """
    kwargs = {}
    for key, value in mapping.items():
        if key in _BOUNDARY_KEYS:
            continue
        if key not in _PARAM_KEYS:
            logger.warning("unknown_config_key", key=key)
            continue
        kwargs[key] = _coerce(key, value)

    if "alb_scheme" in kwargs:
        kwargs["alb_scheme"] = AlbedoScheme.from_name(kwargs["alb_scheme"])
    return SurfaceParams(**kwargs).validate()


def boundary_from_dict(mapping: Mapping[str, Any]) -> tuple[BoundaryOptions, BoundaryOptions]:
    """Boundary switches (bnd, bnd0) from the ``boundary`` keys of a mapping."""
    bnd = BoundaryOptions.from_names(_boundary_names("boundary", mapping.get("boundary", [])))
    bnd0 = BoundaryOptions.from_names(_boundary_names("boundary0", mapping.get("boundary0", [])))
    return bnd, bnd0


def load_surface_config(path: str | os.PathLike) -> SurfaceConfig:
    """Load and validate a run configuration from a TOML file.

    Parameters
    ----------
    path : str or PathLike
        TOML file holding a ``[surface_physics]`` table

    Returns
    -------
    SurfaceConfig

    Raises
    ------
    ConfigurationError
        If the file is missing or unparsable, the table is absent, or a
        value is of the wrong type or out of range
    """
    path = os.fspath(path)
    if not os.path.exists(path):
        raise ConfigurationError(f"config file not found: {path}")

    try:
        with open(path, "r") as f:
            raw = toml.load(f)
    except toml.TomlDecodeError as e:
        raise ConfigurationError(f"invalid TOML in {path}: {e}") from e

    table = raw.get(TABLE)
    if not isinstance(table, dict):
        raise ConfigurationError(f"missing [{TABLE}] table in {path}")

    params = params_from_dict(table)
    bnd, bnd0 = boundary_from_dict(table)
    logger.info("config_loaded", path=path, name=params.name, forced=list(bnd.forced()))
    return SurfaceConfig(params=params, bnd=bnd, bnd0=bnd0)


def log_params(params: SurfaceParams) -> None:
    """Emit all parameters, including the derived sub-step, as one event."""
    logger.info("surface_params", **params.as_dict())


def log_boundary(bnd: BoundaryOptions, label: str = "bnd") -> None:
    """Emit the state of every boundary switch as one event."""
    logger.info(
        "boundary_options",
        label=label,
        **{f.name: getattr(bnd, f.name) for f in fields(bnd)},
    )
