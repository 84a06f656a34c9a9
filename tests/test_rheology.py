"""
Unit tests for rheology models, Fann fits and fluids.
"""

import pytest
import numpy as np

from wellcontrol.config import Config
from wellcontrol.geometry import Conduit, ConduitKind
from wellcontrol.rheology import (
    Bingham,
    Fluid,
    HerschelBulkley,
    Newtonian,
    PowerLaw,
    RheologyModel,
    bingham_from_fann,
    default_fluid,
    herschel_bulkley_from_fann,
    power_law_from_fann,
    rheology_from_dict,
)

D_PIPE = 0.095
PIPE = Conduit(ConduitKind.PIPE, np.pi * D_PIPE ** 2 / 4, D_PIPE)
ANNULUS = Conduit(ConduitKind.ANNULUS, np.pi * (0.244 ** 2 - 0.127 ** 2) / 4, 0.244 - 0.127)
Q = 0.5 / 60.0  # m³/s


class TestFrictionGradient:
    """Test the shared friction-gradient algorithm."""

    def test_laminar_pipe_matches_hagen_poiseuille(self):
        """dp/dL = 32 μ v / D² for laminar Newtonian pipe flow."""
        mu = 1.0
        v = Q / PIPE.area
        grad = Newtonian(mu).friction_gradient(Q, PIPE, 1260.0)

        assert np.isclose(grad, 32.0 * mu * v / D_PIPE ** 2)

    def test_laminar_annulus_slot(self):
        """dp/dL = 48 μ v / Dh² for laminar Newtonian slot flow."""
        mu = 1.0
        v = Q / ANNULUS.area
        grad = Newtonian(mu).friction_gradient(Q, ANNULUS, 1260.0)

        assert np.isclose(grad, 48.0 * mu * v / ANNULUS.hydraulic_diameter ** 2)

    def test_turbulent_exceeds_laminar(self):
        water = Newtonian(0.001)
        v = Q / PIPE.area
        laminar = 32.0 * 0.001 * v / D_PIPE ** 2

        assert water.friction_gradient(Q, PIPE, 1000.0) > laminar

    @pytest.mark.parametrize("conduit", [PIPE, ANNULUS])
    @pytest.mark.parametrize("mu", [0.001, 0.02, 1.0])
    def test_power_law_n1_equals_newtonian(self, conduit, mu):
        newt = Newtonian(mu).friction_gradient(Q, conduit, 1260.0)
        pl = PowerLaw(k=mu, n=1.0).friction_gradient(Q, conduit, 1260.0)

        assert pl == pytest.approx(newt, rel=1e-12)

    def test_bingham_and_power_law_differ(self):
        bingham = Bingham(plastic_viscosity=0.018, yield_point=5.7)
        power = PowerLaw(k=0.2, n=0.68)

        for conduit in (PIPE, ANNULUS):
            g_b = bingham.friction_gradient(Q, conduit, 1260.0)
            g_p = power.friction_gradient(Q, conduit, 1260.0)
            assert g_b > 0 and g_p > 0
            assert not np.isclose(g_b, g_p)

    def test_herschel_bulkley_reduces_to_power_law(self):
        hb = HerschelBulkley(tau0=0.0, k=0.2, n=0.7)
        pl = PowerLaw(k=0.2, n=0.7)

        assert hb.friction_gradient(Q, ANNULUS, 1200.0) == pytest.approx(pl.friction_gradient(Q, ANNULUS, 1200.0))

    def test_yield_stress_adds_friction(self):
        hb = HerschelBulkley(tau0=5.0, k=0.2, n=0.7)
        pl = PowerLaw(k=0.2, n=0.7)

        assert hb.friction_gradient(Q, ANNULUS, 1200.0) > pl.friction_gradient(Q, ANNULUS, 1200.0)

    def test_zero_and_tiny_rate(self):
        fluid = Newtonian(0.02)
        config = Config()

        assert fluid.friction_gradient(0.0, PIPE, 1260.0) == 0.0
        assert fluid.friction_gradient(config.MIN_FLOW_RATE_SI / 2, PIPE, 1260.0) == 0.0

    def test_non_finite_rate(self):
        fluid = HerschelBulkley(tau0=4.0, k=0.3, n=0.7)

        assert fluid.friction_gradient(float("nan"), PIPE, 1260.0) == 0.0
        assert fluid.friction_gradient(float("inf"), ANNULUS, 1260.0) == 0.0

    def test_degenerate_conduit(self):
        closed = Conduit(ConduitKind.ANNULUS, 0.0, 0.0)

        assert Newtonian(0.02).friction_gradient(Q, closed, 1260.0) == 0.0

    def test_gradient_increases_with_rate(self):
        fluid = PowerLaw(k=0.3, n=0.6)
        rates = np.linspace(0.1, 3.0, 15) / 60.0
        grads = [fluid.friction_gradient(q, ANNULUS, 1300.0) for q in rates]

        assert np.all(np.diff(grads) > 0)

    def test_invalid_parameters(self):
        with pytest.raises(ValueError):
            Newtonian(0.0)
        with pytest.raises(ValueError):
            Bingham(0.01, -1.0)
        with pytest.raises(ValueError):
            PowerLaw(0.1, 0.0)
        with pytest.raises(ValueError):
            HerschelBulkley(-1.0, 0.1, 0.5)


class TestFannFits:
    """Test Fann 35 viscometer fits."""

    def test_power_law_fit(self):
        pl = power_law_from_fann(48.0, 30.0)
        n = np.log(48.0 / 30.0) / np.log(1022.0 / 511.0)

        assert np.isclose(pl.n, n)
        assert np.isclose(pl.k, 48.0 * 0.478802 / 1022.0 ** n)
        # the fit reproduces both readings
        assert np.isclose(pl.shear_stress(511.0), 30.0 * 0.478802)

    def test_bingham_fit(self):
        b = bingham_from_fann(48.0, 30.0)

        assert np.isclose(b.plastic_viscosity, 0.018)
        assert np.isclose(b.yield_point, 12.0 * 0.478802)

    def test_herschel_bulkley_fit(self):
        hb = herschel_bulkley_from_fann(48.0, 30.0, 5.0)

        assert np.isclose(hb.tau0, 5.0 * 0.478802)
        assert np.isclose(hb.shear_stress(1022.0), 48.0 * 0.478802)
        assert np.isclose(hb.shear_stress(511.0), 30.0 * 0.478802)

    @pytest.mark.parametrize("d600, d300", [(30.0, 48.0), (0.0, 0.0), (20.0, -1.0)])
    def test_invalid_readings(self, d600, d300):
        with pytest.raises(ValueError):
            power_law_from_fann(d600, d300)
        with pytest.raises(ValueError):
            bingham_from_fann(d600, d300)

    def test_rheology_from_dict(self):
        assert rheology_from_dict({"model": "newtonian", "viscosity": 0.01}) == Newtonian(0.01)
        assert rheology_from_dict({"model": "power_law", "k": 0.2, "n": 0.7}) == PowerLaw(0.2, 0.7)
        fitted = rheology_from_dict({"model": "bingham", "dial600": 48, "dial300": 30})
        assert isinstance(fitted, Bingham)


class TestFluid:
    """Test fluid records."""

    def test_model_and_key(self):
        fluid = Fluid("Mud", 1260.0, PowerLaw(0.2, 0.7))

        assert fluid.model is RheologyModel.POWER_LAW
        assert fluid.key == "Mud"
        assert Fluid("Mud", 1260.0, id="m1").key == "m1"

    def test_geometry_specific_override(self):
        base = Newtonian(0.02)
        override = PowerLaw(0.5, 0.6)
        fluid = Fluid("Mud", 1260.0, base, annulus_power_law=override)

        assert fluid.friction_gradient(Q, ANNULUS) == pytest.approx(override.friction_gradient(Q, ANNULUS, 1260.0))
        assert fluid.friction_gradient(Q, PIPE) == pytest.approx(base.friction_gradient(Q, PIPE, 1260.0))

    def test_effective_density(self):
        fluid = Fluid("Mud", 1200.0, thermal_expansion=5e-4, compressibility=4e-10, gas_cut_fraction=0.1)

        assert np.isclose(fluid.effective_density(), 1200.0 * 0.9 + 1.2 * 0.1)
        hot = fluid.effective_density(base_temperature=20.0, temperature=80.0)
        assert np.isclose(hot, 1200.0 * (1 - 5e-4 * 60) * 0.9 + 0.12)
        pressured = fluid.effective_density(pressure=20e6)
        assert pressured > fluid.effective_density()

    def test_from_fann(self):
        fluid = Fluid.from_fann("Mud", 1260.0, 48.0, 30.0, model=RheologyModel.BINGHAM, id="mud")

        assert isinstance(fluid.rheology, Bingham)
        assert fluid.id == "mud"

    def test_from_dict(self):
        fluid = Fluid.from_dict({
            "id": "a", "name": "Active", "density": 1260, "color": "#123456",
            "rheology": {"model": "power_law", "dial600": 48, "dial300": 30},
            "annulus_power_law": {"k": 0.4, "n": 0.6},
        })

        assert fluid.key == "a"
        assert isinstance(fluid.rheology, PowerLaw)
        assert fluid.annulus_power_law == PowerLaw(0.4, 0.6)

    def test_invalid_fluid(self):
        with pytest.raises(ValueError):
            Fluid("Bad", 0.0)
        with pytest.raises(ValueError):
            Fluid("Bad", 1000.0, gas_cut_fraction=1.0)

    def test_default_fluid(self):
        fluid = default_fluid()

        assert fluid.density == 1000.0
        assert fluid.rheology == Newtonian(0.001)
