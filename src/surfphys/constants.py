"""Physical constants shared by the surface energy and mass balance.

All values are process-wide and read-only. Units are SI unless stated.
"""

from __future__ import annotations

__all__ = [
    "PI",
    "T0",
    "SIGMA",
    "EPS",
    "CLS",
    "CLM",
    "CLV",
    "CAP",
    "RHOW",
    "HSMAX",
    "OCEAN_ALBEDO",
    "SECONDS_PER_DAY",
    "OCEAN",
    "LAND",
    "ICE",
]

PI = 3.141592653589793
T0 = 273.15  # melting point (K)
SIGMA = 5.67e-8  # Stefan-Boltzmann constant (W m-2 K-4)
EPS = 0.62197  # molar weight ratio water vapour / dry air
CLS = 2.83e6  # latent heat of sublimation (J/kg)
CLM = 3.30e5  # latent heat of melting (J/kg)
CLV = 2.5e6  # latent heat of condensation (J/kg)
CAP = 1000.0  # specific heat capacity of air (J kg-1 K-1)
RHOW = 1000.0  # density of water (kg/m3)
HSMAX = 5.0  # maximum snow height (m w.e.)

OCEAN_ALBEDO = 0.06
SECONDS_PER_DAY = 86400.0

# Surface type mask codes
OCEAN = 0
LAND = 1
ICE = 2
