"""Unit tests for process package physics kernels.

Tests verify:
1. Kernels compile correctly with numba
2. Physical constraints are enforced
3. Array kernels agree with their point versions
4. Edge cases are handled properly
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_array_almost_equal

from surfphys.constants import CLS, CLV, EPS, ICE, LAND, PI, SIGMA, T0
from surfphys.process.kernels.diurnal import diurnal_cycle, diurnal_cycle_point
from surfphys.process.kernels.radiation import longwave_upward, longwave_upward_point
from surfphys.process.kernels.saturation import (
    ei_sat,
    ei_sat_array,
    ew_sat,
    ew_sat_array,
    saturation_specific_humidity,
)
from surfphys.process.kernels.turbulent import (
    latent_heat_flux,
    latent_heat_flux_point,
    sensible_heat_flux,
    sensible_heat_flux_point,
)


class TestDiurnalCycle:
    """Tests for the diurnal cycle decomposition."""

    def test_whole_day_below_freezing(self):
        """tmean + amp < 0 gives no positive part."""
        above, below = diurnal_cycle_point(3.0, -5.0)
        assert above == 0.0
        assert below == -5.0

    def test_lower_boundary(self):
        """tmean == -amp still counts as a whole day below freezing."""
        above, below = diurnal_cycle_point(3.0, -3.0)
        assert above == 0.0
        assert below == -3.0

    def test_whole_day_above_freezing(self):
        """tmean >= amp gives no negative part."""
        above, below = diurnal_cycle_point(3.0, 5.0)
        assert above == 5.0
        assert below == 0.0

        above, below = diurnal_cycle_point(3.0, 3.0)
        assert above == 3.0
        assert below == 0.0

    def test_zero_amplitude(self):
        """No diurnal cycle: the mean falls entirely on one side."""
        assert diurnal_cycle_point(0.0, 0.0) == (0.0, 0.0)
        assert diurnal_cycle_point(0.0, 2.0) == (2.0, 0.0)
        assert diurnal_cycle_point(0.0, -2.0) == (0.0, -2.0)

    def test_mean_at_freezing(self):
        """tmean = 0 splits the sinusoid symmetrically."""
        above, below = diurnal_cycle_point(3.0, 0.0)
        assert_allclose(above, 6.0 / PI, rtol=1e-12)
        assert_allclose(below, -6.0 / PI, rtol=1e-12)

    def test_signs(self):
        """above >= 0 and below <= 0 for any mean."""
        tmean = np.linspace(-10.0, 10.0, 201)
        above, below = diurnal_cycle(3.0, tmean)
        assert np.all(above >= 0.0)
        assert np.all(below <= 0.0)
        assert np.all(np.isfinite(above))
        assert np.all(np.isfinite(below))

    def test_array_matches_point(self):
        """Array kernel agrees with the point kernel."""
        tmean = np.array([-8.0, -2.5, -0.1, 0.0, 1.7, 2.99, 6.0])
        above, below = diurnal_cycle(3.0, tmean)
        for i, t in enumerate(tmean):
            a, b = diurnal_cycle_point(3.0, t)
            assert_allclose(above[i], a, rtol=1e-12)
            assert_allclose(below[i], b, rtol=1e-12)


class TestSaturation:
    """Tests for saturation vapor pressure and specific humidity."""

    def test_triple_point_value(self):
        """Both curves give 611.2 Pa at the melting point."""
        assert_allclose(ew_sat(T0), 611.2, rtol=1e-12)
        assert_allclose(ei_sat(T0), 611.2, rtol=1e-12)

    def test_ice_below_water_when_frozen(self):
        """Saturation over ice is lower than over water below freezing."""
        t = np.array([240.0, 253.15, 263.15, 270.0])
        assert np.all(ei_sat_array(t) < ew_sat_array(t))

    def test_increases_with_temperature(self):
        """Saturation pressure rises monotonically with temperature."""
        t = np.linspace(230.0, 300.0, 50)
        assert np.all(np.diff(ew_sat_array(t)) > 0)
        assert np.all(np.diff(ei_sat_array(t)) > 0)

    def test_specific_humidity(self):
        """q_sat = esat * eps / (esat * (eps - 1) + sp)."""
        esat = 611.2
        sp = 101325.0
        expected = esat * EPS / (esat * (EPS - 1.0) + sp)
        assert_allclose(saturation_specific_humidity(esat, sp), expected, rtol=1e-12)
        assert 0.0 < expected < 0.01


class TestRadiation:
    """Tests for upwelling longwave radiation."""

    def test_stefan_boltzmann(self):
        """lwu = sigma * Ts^4."""
        ts = np.array([240.0, T0, 280.0])
        assert_allclose(longwave_upward(ts), SIGMA * ts**4, rtol=1e-12)
        assert_allclose(longwave_upward_point(T0), SIGMA * T0**4, rtol=1e-12)


class TestSensibleHeatFlux:
    """Tests for sensible heat flux kernel."""

    def test_unstable_uses_enhancement(self):
        """Surface warmer than air with wind applies the enhancement."""
        shf = sensible_heat_flux_point(270.0, 265.0, 5.0, 1.3, 2e-3, 1.5)
        assert_allclose(shf, 1.5 * 2e-3 * 1000.0 * 1.3 * 5.0 * 5.0, rtol=1e-12)

    def test_stable_no_enhancement(self):
        """Surface colder than air gives a negative flux without enhancement."""
        shf = sensible_heat_flux_point(260.0, 265.0, 5.0, 1.3, 2e-3, 1.5)
        assert_allclose(shf, 2e-3 * 1000.0 * 1.3 * 5.0 * -5.0, rtol=1e-12)

    def test_no_wind_no_flux(self):
        """Zero wind gives zero flux."""
        assert sensible_heat_flux_point(270.0, 260.0, 0.0, 1.3, 2e-3, 1.5) == 0.0

    def test_array_matches_point(self):
        """Array kernel agrees with the point kernel."""
        ts = np.array([260.0, 270.0, 275.0])
        ta = np.array([265.0, 265.0, 275.0])
        wind = np.array([3.0, 5.0, 8.0])
        rhoa = np.full(3, 1.2)
        shf = sensible_heat_flux(ts, ta, wind, rhoa, 2e-3, 1.2)
        for i in range(3):
            expected = sensible_heat_flux_point(ts[i], ta[i], wind[i], rhoa[i], 2e-3, 1.2)
            assert_allclose(shf[i], expected, rtol=1e-12)


class TestLatentHeatFlux:
    """Tests for latent heat flux kernel."""

    def test_sublimation_below_freezing(self):
        """Below freezing all moisture flux is sublimation."""
        lhf, subl, evap = latent_heat_flux_point(260.0, 5.0, 1e-4, 80000.0, 1.2, ICE, 5e-4, 1.0)
        assert evap == 0.0
        assert subl > 0.0
        assert_allclose(lhf, subl * CLS, rtol=1e-12)

    def test_evaporation_above_freezing(self):
        """At or above freezing all moisture flux is evaporation."""
        lhf, subl, evap = latent_heat_flux_point(T0, 5.0, 1e-4, 80000.0, 1.2, ICE, 5e-4, 1.0)
        assert subl == 0.0
        assert evap > 0.0
        assert_allclose(lhf, evap * CLV, rtol=1e-12)

    def test_deposition_sign(self):
        """Air moister than saturation gives a negative flux."""
        lhf, subl, _ = latent_heat_flux_point(250.0, 5.0, 5e-3, 80000.0, 1.2, ICE, 5e-4, 1.0)
        assert subl < 0.0
        assert lhf < 0.0

    def test_land_enhancement(self):
        """Land points scale the exchange coefficient by lhf_enh."""
        ice = latent_heat_flux_point(265.0, 5.0, 1e-4, 80000.0, 1.2, ICE, 5e-4, 2.0)
        land = latent_heat_flux_point(265.0, 5.0, 1e-4, 80000.0, 1.2, LAND, 5e-4, 2.0)
        assert_allclose(land[0], 2.0 * ice[0], rtol=1e-12)

    def test_array_matches_point(self):
        """Array kernel agrees with the point kernel."""
        ts = np.array([255.0, 272.0, 274.0])
        wind = np.array([4.0, 5.0, 6.0])
        qq = np.full(3, 1e-3)
        sp = np.full(3, 85000.0)
        rhoa = np.full(3, 1.25)
        mask = np.array([ICE, LAND, ICE], dtype=np.int64)
        lhf, subl, evap = latent_heat_flux(ts, wind, qq, sp, rhoa, mask, 5e-4, 1.5)
        for i in range(3):
            expected = latent_heat_flux_point(
                ts[i], wind[i], qq[i], sp[i], rhoa[i], mask[i], 5e-4, 1.5
            )
            assert_array_almost_equal([lhf[i], subl[i], evap[i]], expected, decimal=12)


@pytest.mark.parametrize("ts", [230.0, 250.0, 272.0, 280.0])
def test_longwave_positive(ts):
    """Upwelling longwave is always positive."""
    assert longwave_upward_point(ts) > 0.0
