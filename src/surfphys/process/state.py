"""Typed state containers for surface energy and mass balance modeling.

Provides dataclass-based containers for:
- SurfaceState: Mutable per-point prognostic, diagnostic and forcing arrays
- SurfaceParams: Run parameters, immutable for the duration of a run
- BoundaryOptions: Switches marking externally forced fields
- AlbedoScheme: Albedo parameterization selector

State arrays have shape (n_points,) for vectorized computation with
numba kernels.
"""

from __future__ import annotations

import enum
from dataclasses import asdict, dataclass, field, fields
from typing import TYPE_CHECKING, Iterable

import numpy as np

from surfphys.constants import ICE, OCEAN, T0
from surfphys.errors import ConfigurationError
from surfphys.logging import get_logger

if TYPE_CHECKING:
    from numpy.typing import NDArray

__all__ = [
    "AlbedoScheme",
    "SurfaceParams",
    "BoundaryOptions",
    "SurfaceState",
    "BOUNDARY_FIELDS",
    "PROGNOSTIC_FIELDS",
    "FORCING_FIELDS",
    "AVERAGED_FIELDS",
]

logger = get_logger("state")

BOUNDARY_FIELDS = (
    "t2m", "tsurf", "hsnow", "alb", "melt", "refr",
    "smb", "acc", "lhf", "shf", "subl",
)

PROGNOSTIC_FIELDS = (
    "t2m", "tsurf", "hsnow", "hice", "alb", "alb_snow",
    "melt", "melted_snow", "melted_ice", "refr",
    "smb", "smb_snow", "smb_ice", "acc",
    "lhf", "shf", "lwu", "subl", "evap", "runoff",
)

FORCING_FIELDS = ("sf", "rf", "sp", "lwd", "swd", "wind", "rhoa", "qq")

# Fields carried into monthly/annual averages
AVERAGED_FIELDS = (
    "t2m", "tsurf", "hsnow", "alb", "melt", "refr", "smb", "acc",
    "lhf", "shf", "lwu",
    "sf", "rf", "sp", "lwd", "swd", "wind", "rhoa", "qq",
)

_STATE_DEFAULTS = {
    "t2m": T0,
    "tsurf": T0,
    "alb": 0.8,
    "alb_snow": 0.8,
    "sp": 101325.0,
    "rhoa": 1.3,
}


class AlbedoScheme(enum.IntEnum):
    """Snow albedo parameterization, resolved once per run."""

    NONE = 0
    SLATER = 1
    DENBY = 2
    ISBA = 3
    ALEX = 4
    REMBO = 5

    @classmethod
    def from_name(cls, name: str | AlbedoScheme | None) -> AlbedoScheme:
        """Resolve a scheme name.

        Unknown or empty names resolve to ``NONE``, which leaves the
        albedo fields untouched during a step.
        """
        if isinstance(name, AlbedoScheme):
            return name
        key = (name or "").strip().upper()
        if key in cls.__members__:
            return cls[key]
        logger.warning("unknown_albedo_scheme", name=name, resolved="none")
        return cls.NONE

    @property
    def label(self) -> str:
        return self.name.lower()


@dataclass(frozen=True)
class SurfaceParams:
    """Physical and numerical parameters for one run.

    Attributes
    ----------
    nx : int
        Number of grid points
    n_ksub : int
        Number of sub-daily energy balance sub-steps per outer step
    ceff : float
        Surface specific heat capacity of snow/ice (J K-1 m-2)
    albr, albl : float
        Background albedo of bare ice and bare land
    alb_smax, alb_smin : float
        Fresh (maximum) and old/wet (minimum) snow albedo
    hcrit : float
        Snow height (m w.e.) at which a cell is 50% snow covered
    rcrit : float
        Snow height (m w.e.) at which the refreezing fraction is 50%
    amp : float
        Diurnal cycle amplitude (K)
    csh, clh : float
        Sensible and latent heat exchange coefficients
    shf_enh : float
        Sensible heat enhancement for positive wind*(tsurf - t2m)
    lhf_enh : float
        Latent heat enhancement over land
    tmin, tmax : float
        Temperature window (K) of the "slater" albedo decline
    tstic : float
        Outer time step (s)
    tau_a, tau_f : float
        Dry and wet albedo decline of the "isba" scheme (1/day)
    w_crit : float
        Critical liquid water content of the "isba" scheme (kg m-2)
    mcrit : float
        Critical melt rate of the "isba" and "denby" schemes (m/s)
    afac, tmid : float
        Slope and midpoint (K) of the "alex" scheme
    alb_scheme : AlbedoScheme
        Active albedo parameterization
    """

    nx: int = 1
    n_ksub: int = 3
    ceff: float = 2.0e6
    albr: float = 0.4
    albl: float = 0.15
    alb_smax: float = 0.81
    alb_smin: float = 0.5
    hcrit: float = 0.028
    rcrit: float = 0.5
    amp: float = 3.0
    csh: float = 2.0e-3
    clh: float = 5.0e-4
    shf_enh: float = 1.0
    lhf_enh: float = 1.0
    tmin: float = 263.15
    tmax: float = 273.15
    tstic: float = 86400.0
    tau_a: float = 0.008
    tau_f: float = 0.24
    w_crit: float = 15.0
    mcrit: float = 6.0e-8
    afac: float = -0.18
    tmid: float = 275.35
    alb_scheme: AlbedoScheme = AlbedoScheme.SLATER
    name: str = "surface_physics"

    def __post_init__(self):
        if not isinstance(self.alb_scheme, AlbedoScheme):
            object.__setattr__(
                self, "alb_scheme", AlbedoScheme.from_name(self.alb_scheme)
            )

    @property
    def tsticsub(self) -> float:
        """Sub-daily time step (s); ``tsticsub * n_ksub == tstic``."""
        return self.tstic / float(self.n_ksub)

    def validate(self) -> SurfaceParams:
        """Reject inconsistent parameter sets.

        Returns
        -------
        SurfaceParams
            self, for chaining

        Raises
        ------
        ConfigurationError
            If any parameter is outside its admissible range
        """
        problems = []
        if self.nx < 1:
            problems.append(f"nx must be >= 1, got {self.nx}")
        if self.n_ksub < 1:
            problems.append(f"n_ksub must be >= 1, got {self.n_ksub}")
        if self.tstic <= 0.0:
            problems.append(f"tstic must be > 0, got {self.tstic}")
        if self.ceff <= 0.0:
            problems.append(f"ceff must be > 0, got {self.ceff}")
        if self.hcrit <= 0.0:
            problems.append(f"hcrit must be > 0, got {self.hcrit}")
        if self.rcrit <= 0.0:
            problems.append(f"rcrit must be > 0, got {self.rcrit}")
        if self.amp < 0.0:
            problems.append(f"amp must be >= 0, got {self.amp}")
        if self.alb_smin > self.alb_smax:
            problems.append(
                f"alb_smin ({self.alb_smin}) exceeds alb_smax ({self.alb_smax})"
            )
        if self.alb_scheme in (AlbedoScheme.DENBY, AlbedoScheme.ISBA) and self.mcrit <= 0.0:
            problems.append(f"mcrit must be > 0 for {self.alb_scheme.label}, got {self.mcrit}")
        if self.alb_scheme == AlbedoScheme.ISBA and self.w_crit <= 0.0:
            problems.append(f"w_crit must be > 0 for isba, got {self.w_crit}")
        if self.alb_scheme == AlbedoScheme.SLATER and self.tmin >= T0:
            problems.append(f"tmin must be below {T0} K for slater, got {self.tmin}")
        if problems:
            raise ConfigurationError("; ".join(problems))
        return self

    def as_dict(self) -> dict:
        """Flat parameter mapping including the derived sub-step."""
        out = asdict(self)
        out["alb_scheme"] = self.alb_scheme.label
        out["tsticsub"] = self.tsticsub
        return out


@dataclass(frozen=True)
class BoundaryOptions:
    """Switches for fields supplied externally ("forced") during a step.

    A set switch means the engine leaves the field untouched.
    """

    t2m: bool = False
    tsurf: bool = False
    hsnow: bool = False
    alb: bool = False
    melt: bool = False
    refr: bool = False
    smb: bool = False
    acc: bool = False
    lhf: bool = False
    shf: bool = False
    subl: bool = False

    @classmethod
    def from_names(cls, names: Iterable[str] | None) -> BoundaryOptions:
        """Build switches from a list of field names.

        Unrecognised and blank names are ignored.
        """
        flags = {}
        for name in names or ():
            key = str(name).strip()
            if key in BOUNDARY_FIELDS:
                flags[key] = True
        return cls(**flags)

    def forced(self) -> tuple[str, ...]:
        """Names of the forced fields, in declaration order."""
        return tuple(f.name for f in fields(self) if getattr(self, f.name))


@dataclass
class SurfaceState:
    """Per-point state arrays for the surface energy and mass balance.

    All arrays have shape (n_points,). Prognostic fields persist between
    steps and are updated in place by the engine; forcing fields are
    overwritten by the caller before each step.

    Attributes
    ----------
    n_points : int
        Number of grid points
    t2m, tsurf : NDArray[np.float64]
        2 m air and surface temperature (K)
    hsnow, hice : NDArray[np.float64]
        Snow height and ice thickness (m w.e.)
    alb, alb_snow : NDArray[np.float64]
        Grid-averaged and snow albedo
    melt, melted_snow, melted_ice : NDArray[np.float64]
        Melt, melted snow and melted ice (m/s w.e.)
    refr : NDArray[np.float64]
        Refreezing (m/s w.e.)
    smb, smb_snow, smb_ice : NDArray[np.float64]
        Total, snow and ice surface mass balance (m/s w.e.)
    acc : NDArray[np.float64]
        Accumulation, diagnostic (m/s w.e.)
    lhf, shf, lwu : NDArray[np.float64]
        Latent, sensible heat flux and upwelling longwave (W m-2)
    subl, evap : NDArray[np.float64]
        Sublimation and evaporation. Mass flux (kg m-2 s-1) inside a step;
        ``subl`` is reported in m/s w.e. after the mass balance.
    runoff : NDArray[np.float64]
        Potential runoff (m/s w.e.)
    sf, rf : NDArray[np.float64]
        Snowfall and rainfall (m/s w.e.)
    sp : NDArray[np.float64]
        Surface pressure (Pa)
    lwd, swd : NDArray[np.float64]
        Downwelling longwave and shortwave radiation (W m-2)
    wind : NDArray[np.float64]
        Surface wind speed (m/s)
    rhoa : NDArray[np.float64]
        Air density (kg m-3)
    qq : NDArray[np.float64]
        Air specific humidity (kg/kg)
    mask : NDArray[np.int64]
        Surface type: 0 ocean, 1 land, 2 ice
    """

    n_points: int
    t2m: NDArray[np.float64] = field(default=None)
    tsurf: NDArray[np.float64] = field(default=None)
    hsnow: NDArray[np.float64] = field(default=None)
    hice: NDArray[np.float64] = field(default=None)
    alb: NDArray[np.float64] = field(default=None)
    alb_snow: NDArray[np.float64] = field(default=None)
    melt: NDArray[np.float64] = field(default=None)
    melted_snow: NDArray[np.float64] = field(default=None)
    melted_ice: NDArray[np.float64] = field(default=None)
    refr: NDArray[np.float64] = field(default=None)
    smb: NDArray[np.float64] = field(default=None)
    smb_snow: NDArray[np.float64] = field(default=None)
    smb_ice: NDArray[np.float64] = field(default=None)
    acc: NDArray[np.float64] = field(default=None)
    lhf: NDArray[np.float64] = field(default=None)
    shf: NDArray[np.float64] = field(default=None)
    lwu: NDArray[np.float64] = field(default=None)
    subl: NDArray[np.float64] = field(default=None)
    evap: NDArray[np.float64] = field(default=None)
    runoff: NDArray[np.float64] = field(default=None)
    # Forcing
    sf: NDArray[np.float64] = field(default=None)
    rf: NDArray[np.float64] = field(default=None)
    sp: NDArray[np.float64] = field(default=None)
    lwd: NDArray[np.float64] = field(default=None)
    swd: NDArray[np.float64] = field(default=None)
    wind: NDArray[np.float64] = field(default=None)
    rhoa: NDArray[np.float64] = field(default=None)
    qq: NDArray[np.float64] = field(default=None)
    mask: NDArray[np.int64] = field(default=None)

    def __post_init__(self):
        """Allocate missing arrays; coerce provided ones to float64."""
        n = self.n_points
        for name in PROGNOSTIC_FIELDS + FORCING_FIELDS:
            value = getattr(self, name)
            if value is None:
                value = np.full(n, _STATE_DEFAULTS.get(name, 0.0), dtype=np.float64)
            else:
                value = np.asarray(value, dtype=np.float64)
            setattr(self, name, value)
        if self.mask is None:
            self.mask = np.full(n, ICE, dtype=np.int64)
        else:
            self.mask = np.asarray(self.mask, dtype=np.int64)

    @staticmethod
    def field_names() -> tuple[str, ...]:
        return PROGNOSTIC_FIELDS + FORCING_FIELDS + ("mask",)

    def validate(self) -> SurfaceState:
        """Check array lengths and mask codes.

        Raises
        ------
        ConfigurationError
            If any array does not have shape (n_points,) or the mask
            holds a code other than 0, 1 or 2
        """
        bad = [
            name for name in self.field_names()
            if getattr(self, name).shape != (self.n_points,)
        ]
        if bad:
            raise ConfigurationError(
                f"arrays not of length {self.n_points}: {', '.join(bad)}"
            )
        if np.any((self.mask < OCEAN) | (self.mask > ICE)):
            raise ConfigurationError("mask values must be 0 (ocean), 1 (land) or 2 (ice)")
        return self

    def set_forcing(self, **arrays: NDArray[np.float64]) -> None:
        """Copy forcing arrays into the existing buffers.

        Parameters
        ----------
        **arrays
            Forcing field name -> values, scalar or shape (n_points,)
        """
        for name, values in arrays.items():
            if name not in FORCING_FIELDS:
                raise ConfigurationError(f"{name!r} is not a forcing field")
            buf = getattr(self, name)
            values = np.asarray(values, dtype=np.float64)
            if values.ndim and values.shape != buf.shape:
                raise ConfigurationError(
                    f"forcing {name!r} has shape {values.shape}, expected {buf.shape}"
                )
            buf[:] = values

    def copy(self) -> SurfaceState:
        """Create a deep copy of the state."""
        return SurfaceState(
            n_points=self.n_points,
            **{name: getattr(self, name).copy() for name in self.field_names()},
        )
