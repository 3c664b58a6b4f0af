"""Exceptions raised by surfphys."""


class ConfigurationError(ValueError):
    """Inconsistent parameters, boundary switches, state shapes or config files."""
