"""Tests for surfphys.config module."""

import pytest

from surfphys.config import (
    SurfaceConfig,
    boundary_from_dict,
    load_surface_config,
    log_boundary,
    log_params,
    params_from_dict,
)
from surfphys.errors import ConfigurationError
from surfphys.process.state import AlbedoScheme, BoundaryOptions, SurfaceParams


class TestLoadSurfaceConfig:
    """Tests for load_surface_config."""

    @pytest.fixture
    def minimal_toml(self, tmp_path):
        """Create a valid TOML config file."""
        toml_content = """
[surface_physics]
name = "greenland"
boundary = ["t2m", "tsurf"]
boundary0 = ["t2m"]
nx = 10
n_ksub = 8
tstic = 86400
ceff = 2.0e6
alb_scheme = "isba"
tau_a = 0.008
tau_f = 0.24
w_crit = 15.0
mcrit = 6.0e-8
"""
        toml_file = tmp_path / "surface.toml"
        toml_file.write_text(toml_content)
        return toml_file

    def test_loads_params(self, minimal_toml):
        """Values from the table override defaults."""
        config = load_surface_config(minimal_toml)

        assert isinstance(config, SurfaceConfig)
        assert config.params.name == "greenland"
        assert config.params.nx == 10
        assert config.params.n_ksub == 8
        assert config.params.alb_scheme == AlbedoScheme.ISBA
        assert config.params.tsticsub == 10800.0

    def test_integer_coerced_to_float(self, minimal_toml):
        """TOML integers are accepted for float parameters."""
        config = load_surface_config(str(minimal_toml))
        assert isinstance(config.params.tstic, float)

    def test_defaults_for_missing_keys(self, minimal_toml):
        config = load_surface_config(minimal_toml)
        assert config.params.albr == SurfaceParams().albr
        assert config.params.amp == SurfaceParams().amp

    def test_boundary_switches(self, minimal_toml):
        config = load_surface_config(minimal_toml)
        assert config.bnd.forced() == ("t2m", "tsurf")
        assert config.bnd0.forced() == ("t2m",)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_surface_config(tmp_path / "missing.toml")

    def test_missing_table(self, tmp_path):
        toml_file = tmp_path / "other.toml"
        toml_file.write_text('[other]\nkey = "value"\n')
        with pytest.raises(ConfigurationError, match="surface_physics"):
            load_surface_config(toml_file)

    def test_invalid_toml(self, tmp_path):
        toml_file = tmp_path / "broken.toml"
        toml_file.write_text("[surface_physics]\nceff = \n")
        with pytest.raises(ConfigurationError, match="invalid TOML"):
            load_surface_config(toml_file)

    def test_invalid_value(self, tmp_path):
        toml_file = tmp_path / "bad.toml"
        toml_file.write_text("[surface_physics]\nn_ksub = 0\n")
        with pytest.raises(ConfigurationError, match="n_ksub"):
            load_surface_config(toml_file)

    def test_error_is_value_error(self, tmp_path):
        with pytest.raises(ValueError):
            load_surface_config(tmp_path / "missing.toml")


class TestParamsFromDict:
    """Tests for params_from_dict."""

    def test_empty_gives_defaults(self):
        assert params_from_dict({}) == SurfaceParams()

    def test_unknown_key_ignored(self):
        params = params_from_dict({"ceff": 1.5e6, "not_a_param": 3})
        assert params.ceff == 1.5e6

    def test_boundary_keys_skipped(self):
        params = params_from_dict({"boundary": ["tsurf"], "amp": 4.0})
        assert params.amp == 4.0

    @pytest.mark.parametrize(
        "key, value",
        [
            ("ceff", "big"),
            ("ceff", True),
            ("n_ksub", 2.5),
            ("alb_scheme", 3),
        ],
    )
    def test_bad_types(self, key, value):
        with pytest.raises(ConfigurationError, match=key):
            params_from_dict({key: value})

    def test_unknown_scheme_resolves_to_none(self):
        params = params_from_dict({"alb_scheme": "bogus"})
        assert params.alb_scheme == AlbedoScheme.NONE


class TestBoundaryFromDict:
    """Tests for boundary_from_dict."""

    def test_missing_keys(self):
        bnd, bnd0 = boundary_from_dict({})
        assert bnd == BoundaryOptions()
        assert bnd0 == BoundaryOptions()

    def test_single_string(self):
        bnd, _ = boundary_from_dict({"boundary": "hsnow"})
        assert bnd.forced() == ("hsnow",)

    def test_bad_type(self):
        with pytest.raises(ConfigurationError, match="boundary"):
            boundary_from_dict({"boundary": [1, 2]})


def test_log_functions_run():
    """Logging helpers accept every parameter and switch."""
    log_params(SurfaceParams())
    log_boundary(BoundaryOptions(tsurf=True), label="bnd0")
