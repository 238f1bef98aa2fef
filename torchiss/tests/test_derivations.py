"""
Tests for the closed-form scattering constants

Checks the derivation functions against hand-evaluated formulas and the
directional B coefficients against an independent reduction of their
integrals.
"""

import math

import pytest
from scipy import integrate, special

from torchiss.scattering.anisotropy import AnisotropyState, PeriodicBoxCar
from torchiss.scattering.derivations import (
    FWHM_FAC, calc_A, calc_zeta0, calc_M, calc_Amaj, calc_Amin, calc_Qbar, calc_C,
    calc_phi0, calc_B_prefac, calc_Bmaj, calc_Bmin
)
from torchiss.scattering.utils import calc_theta_rad


class TestAsymmetry:
    """Test calc_A and calc_zeta0."""

    def test_calc_A(self):
        """A is the ratio of the FWHMs."""
        assert calc_A(2.0, 1.0) == 2.0

    def test_zeta0_values(self):
        """zeta0 = (A^2 - 1) / (A^2 + 1)."""
        assert calc_zeta0(2.0) == pytest.approx(0.6, rel=1e-15)
        assert calc_zeta0(1.0) == 0.0

    def test_zeta0_matches_fwhm_ratio(self):
        """zeta0 equals (tmaj^2 - tmin^2) / (tmaj^2 + tmin^2)."""
        tmaj, tmin = 1.380, 0.703
        expected = (tmaj**2 - tmin**2) / (tmaj**2 + tmin**2)
        assert calc_zeta0(calc_A(tmaj, tmin)) == pytest.approx(expected, rel=1e-14)

    def test_zeta0_in_open_interval(self):
        """Any A > 1 maps into (0, 1)."""
        for A in [1.001, 1.5, 3.0, 100.0]:
            assert 0.0 < calc_zeta0(A) < 1.0


class TestMagnification:
    """Test calc_M."""

    def test_ratio(self):
        """M = D / R."""
        assert calc_M(2.0, 4.0) == 0.5

    def test_one_plus_m(self):
        """1 + M equals (D + R) / R."""
        D, R = 2.82, 5.53
        assert 1 + calc_M(D, R) == pytest.approx((D + R) / R, rel=1e-15)


class TestStructureFunctionAmplitudes:
    """Test calc_Amaj and calc_Amin."""

    def test_amaj_formula(self):
        """Amaj = (pi rin (1+M) theta / (sqrt(2 ln 2) lambda0))^2."""
        rin, lam, M, theta = 800e5, 1.0, 0.5, calc_theta_rad(1.38)
        expected = (math.pi * rin * (1 + M) * theta / (math.sqrt(2 * math.log(2)) * lam))**2
        assert calc_Amaj(rin, lam, M, theta) == pytest.approx(expected, rel=1e-13)

    def test_ratio_is_asymmetry_squared(self):
        """Amaj / Amin = (theta_maj / theta_min)^2."""
        tmaj, tmin = calc_theta_rad(1.380), calc_theta_rad(0.703)
        ratio = calc_Amaj(800e5, 1.0, 0.5, tmaj) / calc_Amin(800e5, 1.0, 0.5, tmin)
        assert ratio == pytest.approx((1.380 / 0.703)**2, rel=1e-13)

    def test_wavelength_scaling(self):
        """A ~ lambda0^-2."""
        theta = calc_theta_rad(1.0)
        a1 = calc_Amaj(800e5, 1.0, 0.5, theta)
        a2 = calc_Amaj(800e5, 2.0, 0.5, theta)
        assert a1 / a2 == pytest.approx(4.0, rel=1e-13)


class TestPowerSpectrumNormalisation:
    """Test calc_Qbar and calc_C."""

    def test_qbar_alpha_one(self):
        """For alpha = 1, Gamma(1/2) = sqrt(pi)."""
        rin, lam, M = 1e7, 1.0, 1.0
        tmaj, tmin = calc_theta_rad(1.0), calc_theta_rad(0.5)
        expected = (2.0 / math.sqrt(math.pi)
                    * (rin**2 * 2.0 / (FWHM_FAC * (lam / (2 * math.pi))**2))**2
                    * (tmaj**2 + tmin**2))
        assert calc_Qbar(1.0, rin, lam, M, tmaj, tmin) == pytest.approx(expected, rel=1e-13)

    def test_c_formula(self):
        """C = (lambda0 / 2 pi)^2 Qbar Gamma(1 - alpha/2) / (8 pi^2 rin^2)."""
        alpha, rin, lam, Qbar = 1.38, 800e5, 1.0, 4e19
        expected = (lam / (2 * math.pi))**2 * Qbar * special.gamma(1 - alpha / 2) / (8 * math.pi**2 * rin**2)
        assert calc_C(alpha, rin, lam, Qbar) == pytest.approx(expected, rel=1e-14)

    def test_c_linear_in_qbar(self):
        """C scales linearly with Qbar."""
        assert calc_C(1.38, 800e5, 1.0, 2e19) == pytest.approx(2 * calc_C(1.38, 800e5, 1.0, 1e19), rel=1e-14)


class TestPhi0:
    """Test position-angle conversion."""

    def test_north(self):
        """PA = 90 deg (east) maps to 0 rad."""
        assert calc_phi0(90.0) == 0.0

    def test_default(self):
        """PA = 81.9 deg maps to 8.1 deg."""
        assert calc_phi0(81.9) == pytest.approx(math.radians(8.1), rel=1e-12)

    def test_direction(self):
        """Increasing PA decreases phi0."""
        assert calc_phi0(100.0) < calc_phi0(80.0)


class TestBCoefficients:
    """Test calc_B_prefac, calc_Bmaj and calc_Bmin."""

    @pytest.fixture
    def state(self):
        family = PeriodicBoxCar()
        return AnisotropyState.solve(family, 0.5879203321591805, 0.1413716694115406)

    def test_prefactor_alpha_one(self):
        """For alpha = 1, Gamma(1) = 1."""
        assert calc_B_prefac(1.0, 3.0) == pytest.approx(3.0 * 2.0 * math.sqrt(math.pi), rel=1e-14)

    def test_bmaj_reduced_integral(self, state):
        """Bmaj equals 4 P0 times the integral of cos^alpha over half the boxcar width."""
        alpha, prefac = 1.38, 2.5
        width = math.pi / (2 * (1 + state.kzeta))
        reduced = integrate.quad(lambda x: math.cos(x)**alpha, 0, width, epsabs=0, epsrel=1e-13)[0]
        expected = prefac * 4 * state.pphi0 * reduced
        assert calc_Bmaj(alpha, state, prefac) == pytest.approx(expected, rel=1e-9)

    def test_bmin_reduced_integral(self, state):
        """Bmin equals 4 P0 times the integral of sin^alpha over half the boxcar width."""
        alpha, prefac = 1.38, 2.5
        width = math.pi / (2 * (1 + state.kzeta))
        reduced = integrate.quad(lambda x: math.sin(x)**alpha, 0, width, epsabs=0, epsrel=1e-13)[0]
        expected = prefac * 4 * state.pphi0 * reduced
        assert calc_Bmin(alpha, state, prefac) == pytest.approx(expected, rel=1e-9)

    def test_major_exceeds_minor(self, state):
        """The major-axis coefficient dominates."""
        assert calc_Bmaj(1.38, state, 1.0) > calc_Bmin(1.38, state, 1.0)

    def test_independent_of_phi0(self):
        """Rotating the screen does not change B."""
        family = PeriodicBoxCar()
        s1 = AnisotropyState.solve(family, 0.5, 0.1)
        s2 = AnisotropyState.solve(family, 0.5, 2.3)
        assert calc_Bmaj(1.5, s1, 1.0) == pytest.approx(calc_Bmaj(1.5, s2, 1.0), rel=1e-9)
        assert calc_Bmin(1.5, s1, 1.0) == pytest.approx(calc_Bmin(1.5, s2, 1.0), rel=1e-9)
