"""
Unit tests for friction factor calculations.
"""

import pytest
import numpy as np

from wellcontrol.friction import (
    colebrook_white,
    friction_factor_laminar,
    friction_factor_turbulent,
    generalized_reynolds_number,
    pressure_drop_darcy_weisbach,
)


class TestFrictionFactor:
    """Test friction factor calculations."""

    def test_laminar_friction(self):
        """Test laminar friction factor f = 64/Re."""
        Re = 1000
        f = friction_factor_laminar(Re)
        expected = 64.0 / Re

        assert np.isclose(f, expected), f"Expected {expected}, got {f}"

    def test_turbulent_friction_smooth(self):
        """Test turbulent friction for smooth pipe."""
        f = friction_factor_turbulent(1e5, 0.0, 0.2)

        # For smooth pipes at Re=1e5, f ≈ 0.018
        assert 0.015 < f < 0.025, f"Friction factor {f} out of expected range"

    def test_turbulent_friction_rough(self):
        """Test turbulent friction for rough pipe."""
        f = friction_factor_turbulent(1e5, 0.045e-3, 0.2)
        f_smooth = friction_factor_turbulent(1e5, 0.0, 0.2)

        assert f > f_smooth, "Rough pipe should have higher friction"

    def test_turbulent_satisfies_colebrook(self):
        """Converged f satisfies the implicit Colebrook-White equation."""
        Re, eps, D = 5e4, 4.6e-5, 0.095
        f = friction_factor_turbulent(Re, eps, D)

        residual = 1.0 / np.sqrt(f) + 2.0 * np.log10(eps / (3.7 * D) + 2.51 / (Re * np.sqrt(f)))
        assert abs(residual) < 1e-3

    def test_colebrook_regimes(self):
        """Test regime selection: laminar, transition, turbulent."""
        eps, D = 0.045e-3, 0.2

        assert np.isclose(colebrook_white(1000, eps, D), 0.064)

        f_lo = colebrook_white(2100, eps, D)
        f_mid = colebrook_white(3000, eps, D)
        f_hi = colebrook_white(4000, eps, D)
        assert np.isclose(f_lo, 64.0 / 2100)
        assert min(f_lo, f_hi) <= f_mid <= max(f_lo, f_hi)

        assert colebrook_white(1e6, eps, D) < colebrook_white(1e5, eps, D)

    def test_invalid_inputs(self):
        with pytest.raises(ValueError):
            friction_factor_laminar(0.0)
        with pytest.raises(ValueError):
            friction_factor_turbulent(1e5, 0.0, 0.0)
        with pytest.raises(ValueError):
            friction_factor_turbulent(1e5, -1e-5, 0.1)


class TestReynolds:
    """Test Reynolds numbers."""

    def test_generalized_equals_newtonian_in_pipe(self):
        """With τ_w = μ 8v/D the Metzner-Reed number is ρvD/μ."""
        rho, v, D, mu = 1260.0, 1.2, 0.095, 0.02
        tau_w = mu * 8.0 * v / D

        assert np.isclose(generalized_reynolds_number(rho, v, tau_w, 8.0), rho * v * D / mu)

    def test_generalized_equals_newtonian_in_slot(self):
        rho, v, Dh, mu = 1260.0, 0.8, 0.117, 0.02
        tau_w = mu * 12.0 * v / Dh

        assert np.isclose(generalized_reynolds_number(rho, v, tau_w, 12.0), rho * v * Dh / mu)

    def test_generalized_zero_stress(self):
        assert generalized_reynolds_number(1000.0, 1.0, 0.0) == 0.0


class TestDarcyWeisbach:

    def test_pressure_drop(self):
        dp = pressure_drop_darcy_weisbach(0.02, 100.0, 0.1, 1000.0, 2.0)

        assert np.isclose(dp, 0.02 * 1000.0 * 2000.0)
