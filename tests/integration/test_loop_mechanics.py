"""Tests for process package time step orchestration.

Tests verify:
1. StepOutput initialization
2. surface_energy_and_mass_balance executes correctly
3. run_surface_loop integrates properly
4. SurfacePhysics stepping, equilibration and averaging
5. Physical constraints maintained over a year
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_array_almost_equal, assert_array_equal

from surfphys.constants import HSMAX, ICE, LAND, OCEAN, OCEAN_ALBEDO, T0
from surfphys.errors import ConfigurationError
from surfphys.process.averaging import surface_physics_average
from surfphys.process.loop import (
    OUTPUT_FIELDS,
    StepOutput,
    SurfacePhysics,
    check_finite,
    run_surface_loop,
    surface_energy_and_mass_balance,
)
from surfphys.process.state import AlbedoScheme, BoundaryOptions, SurfaceParams, SurfaceState

pytestmark = pytest.mark.integration


class TestStepOutput:
    """Tests for StepOutput container."""

    def test_initialization(self):
        """StepOutput initializes with correct shapes."""
        output = StepOutput(n_steps=10, n_points=5)

        for name in OUTPUT_FIELDS:
            assert getattr(output, name).shape == (10, 5)

    def test_initialized_to_zeros(self):
        output = StepOutput(n_steps=5, n_points=3)
        assert_array_almost_equal(output.tsurf, np.zeros((5, 3)))

    def test_unknown_attribute(self):
        with pytest.raises(AttributeError):
            StepOutput(n_steps=1, n_points=1).not_a_field

    def test_record(self):
        output = StepOutput(n_steps=2, n_points=3)
        state = SurfaceState(n_points=3, hsnow=np.array([1.0, 2.0, 3.0]))
        output.record(1, state)
        assert_array_equal(output.hsnow[1], [1.0, 2.0, 3.0])
        assert_array_equal(output.hsnow[0], 0.0)


class TestSurfaceEnergyAndMassBalance:
    """Tests for the single-step engine entry point."""

    def test_step_executes(self, params, mixed_state):
        mixed_state.set_forcing(swd=200.0, lwd=250.0, wind=5.0, qq=2e-3, sf=1e-8)
        surface_energy_and_mass_balance(mixed_state, params, BoundaryOptions())

        assert check_finite(mixed_state) == []
        assert mixed_state.alb[0] == OCEAN_ALBEDO
        assert mixed_state.hsnow[0] == 0.0

    def test_cold_dark_ice_does_not_melt(self):
        """Ice at 270 K without radiation or precipitation neither melts nor thins."""
        params = SurfaceParams(nx=1)
        state = SurfaceState(
            n_points=1,
            tsurf=np.array([270.0]),
            t2m=np.array([268.0]),
            hice=np.array([100.0]),
        )
        state.set_forcing(wind=5.0, rhoa=1.3, swd=0.0, lwd=0.0, sf=0.0, rf=0.0)

        surface_energy_and_mass_balance(state, params, BoundaryOptions())

        assert_array_equal(state.melt, 0.0)
        assert state.tsurf[0] < 270.0
        assert state.hice[0] >= 100.0

    def test_all_forced_only_diagnostics_change(self, params, mixed_state):
        """Forcing every field leaves each of them untouched."""
        bnd = BoundaryOptions.from_names(
            ["t2m", "tsurf", "hsnow", "alb", "melt", "refr", "smb", "acc", "lhf", "shf", "subl"]
        )
        mixed_state.set_forcing(swd=200.0, lwd=250.0, wind=5.0)
        before = mixed_state.copy()

        surface_energy_and_mass_balance(mixed_state, params, bnd)

        for name in ("tsurf", "hsnow", "alb", "melt", "refr", "smb", "acc", "lhf", "shf", "subl"):
            assert_array_equal(getattr(mixed_state, name), getattr(before, name), err_msg=name)


class TestRunSurfaceLoop:
    """Tests for run_surface_loop driver."""

    def test_output_shapes(self, params, mixed_state, make_forcing):
        output, final = run_surface_loop(params, BoundaryOptions(), make_forcing(20, 4), mixed_state)

        assert output.n_steps == 20
        assert output.hsnow.shape == (20, 4)
        assert_array_equal(output.hsnow[-1], final.hsnow)

    def test_initial_state_not_mutated(self, params, mixed_state, make_forcing):
        hsnow0 = mixed_state.hsnow.copy()
        run_surface_loop(params, BoundaryOptions(), make_forcing(5, 4), mixed_state)
        assert_array_equal(mixed_state.hsnow, hsnow0)

    def test_default_initial_state(self, make_forcing):
        params = SurfaceParams(nx=2)
        output, final = run_surface_loop(params, BoundaryOptions(), make_forcing(3, 2))
        assert_array_equal(final.mask, ICE)
        assert output.tsurf.shape == (3, 2)

    def test_unknown_forcing_field(self, params, mixed_state):
        with pytest.raises(ConfigurationError, match="unknown forcing"):
            run_surface_loop(params, BoundaryOptions(), {"snow": np.zeros((3, 4))}, mixed_state)

    def test_bad_forcing_shape(self, params, mixed_state):
        with pytest.raises(ConfigurationError, match="shape"):
            run_surface_loop(params, BoundaryOptions(), {"swd": np.zeros((3, 5))}, mixed_state)

    def test_mismatched_steps(self, params, mixed_state):
        forcing = {"swd": np.zeros((3, 4)), "lwd": np.zeros((4, 4))}
        with pytest.raises(ConfigurationError, match="steps"):
            run_surface_loop(params, BoundaryOptions(), forcing, mixed_state)

    def test_invalid_params(self, mixed_state, make_forcing):
        with pytest.raises(ConfigurationError):
            run_surface_loop(SurfaceParams(nx=4, n_ksub=0), BoundaryOptions(), make_forcing(2, 4), mixed_state)

    def test_grid_size_mismatch(self):
        """A state whose length differs from params.nx is rejected."""
        with pytest.raises(ConfigurationError, match="nx"):
            run_surface_loop(
                SurfaceParams(nx=4), BoundaryOptions(), {"sf": np.zeros((3, 2))},
                SurfaceState(n_points=2),
            )

    def test_zero_steps(self, params, mixed_state):
        output, final = run_surface_loop(
            params, BoundaryOptions(), {"sf": np.zeros((0, 4))}, mixed_state
        )
        assert output.hsnow.shape == (0, 4)
        assert_array_equal(final.hsnow, mixed_state.hsnow)

    def test_non_finite_observable(self, params, mixed_state):
        """The engine does not raise on NaN forcing; check_finite reports it."""
        forcing = {"swd": np.full((2, 4), np.nan)}
        _, final = run_surface_loop(params, BoundaryOptions(), forcing, mixed_state)
        assert "tsurf" in check_finite(final)


class TestYearRun:
    """Physical constraints over a year of seasonal forcing."""

    @pytest.mark.parametrize("scheme", ["slater", "denby", "isba", "alex"])
    def test_constraints(self, mixed_state, forcing_year, scheme):
        params = SurfaceParams(nx=4, n_ksub=3, alb_scheme=scheme)
        output, final = run_surface_loop(params, BoundaryOptions(), forcing_year, mixed_state)

        assert check_finite(final) == []
        assert np.all(output.hsnow >= 0.0)
        assert np.all(output.hsnow <= HSMAX + 1e-12)
        assert np.all(output.melt >= 0.0)
        assert np.all(output.refr >= 0.0)
        assert np.all(output.runoff >= -1e-20)
        # Ocean: no snow, fixed albedo
        assert_array_equal(output.hsnow[:, 0], 0.0)
        if scheme != "alex":
            assert_array_equal(output.alb[:, 0], OCEAN_ALBEDO)

    def test_summer_melt_on_ice(self, mixed_state, forcing_year):
        """Ice points melt in summer and not in deep winter."""
        params = SurfaceParams(nx=4, alb_scheme=AlbedoScheme.SLATER)
        output, _ = run_surface_loop(params, BoundaryOptions(), forcing_year, mixed_state)
        assert output.melt[150:230, 2].max() > 0.0


class TestSurfacePhysics:
    """Tests for the SurfacePhysics run object."""

    def test_create(self):
        params = SurfaceParams(nx=3)
        sp = SurfacePhysics.create(params, mask=np.array([OCEAN, LAND, ICE]))

        assert sp.now.n_points == 3
        assert_array_equal(sp.mon.mask, sp.now.mask)
        assert sp.mon.mask is not sp.now.mask
        assert sp.bnd == BoundaryOptions()

    def test_create_rejects_bad_mask(self):
        with pytest.raises(ConfigurationError):
            SurfacePhysics.create(SurfaceParams(nx=2), mask=np.array([0, 5]))

    def test_equilibrate_uses_bnd0(self):
        params = SurfaceParams(nx=1)
        sp = SurfacePhysics.create(params, bnd=BoundaryOptions(), bnd0=BoundaryOptions(tsurf=True))
        sp.now.set_forcing(swd=300.0, lwd=300.0, wind=5.0)

        tsurf0 = sp.now.tsurf.copy()
        sp.step(equilibrate=True)
        assert_array_equal(sp.now.tsurf, tsurf0)

        sp.step()
        assert not np.array_equal(sp.now.tsurf, tsurf0)

    def test_monthly_average(self, make_forcing):
        params = SurfaceParams(nx=2)
        sp = SurfacePhysics.create(params)
        forcing = make_forcing(30, 2)

        surface_physics_average(sp.mon, sp.now, "init")
        tsurf_sum = np.zeros(2)
        for day in range(30):
            sp.now.set_forcing(**{name: values[day] for name, values in forcing.items()})
            sp.step()
            tsurf_sum += sp.now.tsurf
            surface_physics_average(sp.mon, sp.now, "step")
        surface_physics_average(sp.mon, sp.now, "end", nt=30)

        assert_allclose(sp.mon.tsurf, tsurf_sum / 30.0, rtol=1e-12)
        assert np.all(sp.mon.tsurf > T0 - 60.0)
