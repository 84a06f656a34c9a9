"""
Drilling-fluid rheology and frictional pressure gradient.

Four constitutive models are supported, each a small frozen dataclass:

    Newtonian         τ = μ γ
    Bingham           τ = τ_y + μ_p γ
    PowerLaw          τ = K γ^n
    HerschelBulkley   τ = τ_0 + K γ^n

All of them share one friction-gradient algorithm. The wall shear rate is the
Newtonian value corrected for the flow behaviour index (Mooney-Rabinowitsch):

    pipe:     γ_w = (3n+1)/(4n) * 8v/D
    annulus:  γ_w = (2n+1)/(3n) * 12v/Dh      (slot approximation)

The laminar gradient follows from the wall shear stress, dp/dL = 4 τ_w / Dh.
A Metzner-Reed Reynolds number selects the regime; past the laminar limit a
Colebrook-White Darcy factor on the section roughness gives the turbulent
gradient and the larger of the two is used.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, Optional, Union

import numpy as np

from .config import Config, DEFAULT_CONFIG
from .friction import colebrook_white, generalized_reynolds_number, pressure_drop_darcy_weisbach
from .geometry import Conduit, ConduitKind


class RheologyModel(str, Enum):
    NEWTONIAN = "newtonian"
    BINGHAM = "bingham"
    POWER_LAW = "power_law"
    HERSCHEL_BULKLEY = "herschel_bulkley"


class _RheologyBase:
    """Friction gradient shared by every constitutive model."""

    model: ClassVar[RheologyModel]

    @property
    def flow_index(self) -> float:
        return 1.0

    def shear_stress(self, gamma: float) -> float:
        raise NotImplementedError

    def wall_shear_rate(self, velocity: float, conduit: Conduit) -> float:
        """Mooney-Rabinowitsch corrected wall shear rate [1/s]."""
        n = self.flow_index
        if conduit.kind is ConduitKind.PIPE:
            return (3.0 * n + 1.0) / (4.0 * n) * 8.0 * velocity / conduit.hydraulic_diameter
        return (2.0 * n + 1.0) / (3.0 * n) * 12.0 * velocity / conduit.hydraulic_diameter

    def friction_gradient(
        self,
        flow_rate: float,
        conduit: Conduit,
        density: float,
        config: Optional[Config] = None,
    ) -> float:
        """
        Frictional pressure gradient for flow through one conduit.

        Parameters
        ----------
        flow_rate : float
            Volumetric flow rate [m³/s]
        conduit : Conduit
            Local flow geometry
        density : float
            Fluid density [kg/m³]
        config : Config, optional
            Configuration object

        Returns
        -------
        float
            Friction gradient [Pa/m]; 0 below the minimum flow rate or for
            a conduit with no flow area
        """
        if config is None:
            config = DEFAULT_CONFIG

        q = abs(flow_rate)
        if not np.isfinite(q) or q < config.MIN_FLOW_RATE_SI or q == 0.0 or conduit.is_degenerate:
            return 0.0

        d = conduit.hydraulic_diameter
        v = q / conduit.area
        gamma_w = self.wall_shear_rate(v, conduit)
        tau_w = self.shear_stress(gamma_w)
        laminar = 4.0 * tau_w / d

        c = 8.0 if conduit.kind is ConduitKind.PIPE else 12.0
        Re = generalized_reynolds_number(density, v, tau_w, c)
        if Re <= config.LAMINAR_RE:
            return laminar

        f = colebrook_white(Re, conduit.roughness, d, (config.LAMINAR_RE, config.TRANSITION_RE))
        turbulent = pressure_drop_darcy_weisbach(f, 1.0, d, density, v)
        return max(laminar, turbulent)


@dataclass(frozen=True)
class Newtonian(_RheologyBase):
    """Newtonian fluid with dynamic viscosity ``viscosity`` [Pa·s]."""
    viscosity: float
    model: ClassVar[RheologyModel] = RheologyModel.NEWTONIAN

    def __post_init__(self):
        if self.viscosity <= 0:
            raise ValueError(f"viscosity must be positive (got {self.viscosity}).")

    def shear_stress(self, gamma: float) -> float:
        return self.viscosity * gamma


@dataclass(frozen=True)
class Bingham(_RheologyBase):
    """Bingham plastic: plastic viscosity [Pa·s] and yield point [Pa]."""
    plastic_viscosity: float
    yield_point: float
    model: ClassVar[RheologyModel] = RheologyModel.BINGHAM

    def __post_init__(self):
        if self.plastic_viscosity <= 0:
            raise ValueError(f"plastic_viscosity must be positive (got {self.plastic_viscosity}).")
        if self.yield_point < 0:
            raise ValueError(f"yield_point must be non-negative (got {self.yield_point}).")

    def shear_stress(self, gamma: float) -> float:
        return self.yield_point + self.plastic_viscosity * gamma


@dataclass(frozen=True)
class PowerLaw(_RheologyBase):
    """Ostwald-de Waele fluid: consistency k [Pa·sⁿ] and flow index n [-]."""
    k: float
    n: float
    model: ClassVar[RheologyModel] = RheologyModel.POWER_LAW

    def __post_init__(self):
        if self.k <= 0:
            raise ValueError(f"k must be positive (got {self.k}).")
        if self.n <= 0:
            raise ValueError(f"n must be positive (got {self.n}).")

    @property
    def flow_index(self) -> float:
        return self.n

    def shear_stress(self, gamma: float) -> float:
        return self.k * gamma ** self.n


@dataclass(frozen=True)
class HerschelBulkley(_RheologyBase):
    """Yield power-law fluid: yield stress tau0 [Pa], k [Pa·sⁿ], n [-]."""
    tau0: float
    k: float
    n: float
    model: ClassVar[RheologyModel] = RheologyModel.HERSCHEL_BULKLEY

    def __post_init__(self):
        if self.tau0 < 0:
            raise ValueError(f"tau0 must be non-negative (got {self.tau0}).")
        if self.k <= 0:
            raise ValueError(f"k must be positive (got {self.k}).")
        if self.n <= 0:
            raise ValueError(f"n must be positive (got {self.n}).")

    @property
    def flow_index(self) -> float:
        return self.n

    def shear_stress(self, gamma: float) -> float:
        return self.tau0 + self.k * gamma ** self.n


Rheology = Union[Newtonian, Bingham, PowerLaw, HerschelBulkley]


# =============================================================================
# Fann 35 viscometer fits
# =============================================================================

def _check_dials(dial600: float, dial300: float) -> None:
    if dial300 <= 0 or dial600 <= 0:
        raise ValueError(f"Fann dial readings must be positive (got θ600={dial600}, θ300={dial300}).")
    if dial600 < dial300:
        raise ValueError(f"θ600 ({dial600}) must be >= θ300 ({dial300}).")


def power_law_from_fann(dial600: float, dial300: float, config: Optional[Config] = None) -> PowerLaw:
    """
    Power-law fit from the 600/300 rpm dial readings.

        n = ln(θ600/θ300) / ln(1022/511)
        K = τ600 / 1022ⁿ
    """
    if config is None:
        config = DEFAULT_CONFIG
    _check_dials(dial600, dial300)

    n = np.log(dial600 / dial300) / np.log(config.FANN_600_SHEAR_RATE / config.FANN_300_SHEAR_RATE)
    if n <= 0:
        raise ValueError("θ600 and θ300 must differ for a power-law fit.")
    tau600 = dial600 * config.FANN_DIAL_TO_PA
    k = tau600 / config.FANN_600_SHEAR_RATE ** n
    return PowerLaw(k=float(k), n=float(n))


def bingham_from_fann(dial600: float, dial300: float, config: Optional[Config] = None) -> Bingham:
    """
    Bingham fit from the 600/300 rpm dial readings.

    PV [cP] = θ600 - θ300, YP [lbf/100ft²] = θ300 - PV. YP is floored at 0.
    """
    if config is None:
        config = DEFAULT_CONFIG
    _check_dials(dial600, dial300)

    pv_cp = dial600 - dial300
    if pv_cp <= 0:
        raise ValueError("θ600 must exceed θ300 for a Bingham fit.")
    yp = max(0.0, (dial300 - pv_cp) * config.FANN_DIAL_TO_PA)
    return Bingham(plastic_viscosity=pv_cp * 1e-3, yield_point=yp)


def herschel_bulkley_from_fann(
    dial600: float,
    dial300: float,
    dial3: float,
    config: Optional[Config] = None,
) -> HerschelBulkley:
    """
    Herschel-Bulkley fit taking the 3 rpm reading as the yield stress.

        τ0 = θ3
        n  = ln((θ600-θ3)/(θ300-θ3)) / ln(1022/511)
        K  = (τ600 - τ0) / 1022ⁿ
    """
    if config is None:
        config = DEFAULT_CONFIG
    _check_dials(dial600, dial300)
    if dial3 < 0 or dial3 >= dial300:
        raise ValueError(f"θ3 ({dial3}) must be in [0, θ300).")

    n = np.log((dial600 - dial3) / (dial300 - dial3)) / np.log(
        config.FANN_600_SHEAR_RATE / config.FANN_300_SHEAR_RATE
    )
    if n <= 0:
        raise ValueError("θ600 and θ300 must differ for a Herschel-Bulkley fit.")
    tau0 = dial3 * config.FANN_DIAL_TO_PA
    k = (dial600 * config.FANN_DIAL_TO_PA - tau0) / config.FANN_600_SHEAR_RATE ** n
    return HerschelBulkley(tau0=tau0, k=float(k), n=float(n))


def rheology_from_dict(data: Dict[str, Any], config: Optional[Config] = None) -> Rheology:
    """
    Build a rheology from a persisted record.

    Accepts either explicit parameters (``{"model": "power_law", "k": .., "n": ..}``)
    or Fann readings (``{"model": "bingham", "dial600": .., "dial300": ..}``).
    """
    model = RheologyModel(data.get("model", RheologyModel.NEWTONIAN.value))

    if "dial600" in data and "dial300" in data:
        d600, d300 = float(data["dial600"]), float(data["dial300"])
        if model is RheologyModel.POWER_LAW:
            return power_law_from_fann(d600, d300, config)
        if model is RheologyModel.BINGHAM:
            return bingham_from_fann(d600, d300, config)
        if model is RheologyModel.HERSCHEL_BULKLEY:
            return herschel_bulkley_from_fann(d600, d300, float(data.get("dial3", 0.0)), config)

    if model is RheologyModel.NEWTONIAN:
        return Newtonian(float(data.get("viscosity", DEFAULT_CONFIG.DEFAULT_VISCOSITY)))
    if model is RheologyModel.BINGHAM:
        return Bingham(float(data["plastic_viscosity"]), float(data["yield_point"]))
    if model is RheologyModel.POWER_LAW:
        return PowerLaw(float(data["k"]), float(data["n"]))
    return HerschelBulkley(float(data["tau0"]), float(data["k"]), float(data["n"]))


# =============================================================================
# Fluid
# =============================================================================

@dataclass(frozen=True)
class Fluid:
    """
    A drilling, spacer or completion fluid.

    Attributes
    ----------
    name : str
        Display name
    density : float
        Density at surface conditions [kg/m³]
    rheology : Rheology
        Constitutive model used for friction
    color : str
        Display colour
    id : str, optional
        Stable identity; defaults to the name
    pipe_power_law, annulus_power_law : PowerLaw, optional
        Geometry-specific lab fits that replace ``rheology`` inside the
        string or the annulus
    thermal_expansion : float
        Volumetric expansion coefficient [1/°C]
    compressibility : float
        Isothermal compressibility [1/Pa]
    gas_cut_fraction : float
        Entrained gas volume fraction [-]
    """
    name: str
    density: float
    rheology: Rheology = field(default_factory=lambda: Newtonian(DEFAULT_CONFIG.DEFAULT_VISCOSITY))
    color: str = "#808080"
    id: Optional[str] = None
    pipe_power_law: Optional[PowerLaw] = None
    annulus_power_law: Optional[PowerLaw] = None
    thermal_expansion: float = 0.0
    compressibility: float = 0.0
    gas_cut_fraction: float = 0.0

    def __post_init__(self):
        if self.density <= 0:
            raise ValueError(f"Fluid '{self.name}': density must be positive (got {self.density}).")
        if not 0.0 <= self.gas_cut_fraction < 1.0:
            raise ValueError(f"Fluid '{self.name}': gas_cut_fraction must be in [0, 1).")
        if self.compressibility < 0:
            raise ValueError(f"Fluid '{self.name}': compressibility must be non-negative.")

    @property
    def key(self) -> str:
        """Identity used to merge adjacent segments and aggregate returns."""
        return self.id if self.id is not None else self.name

    @property
    def model(self) -> RheologyModel:
        return self.rheology.model

    def rheology_for(self, conduit: Conduit) -> Rheology:
        if conduit.kind is ConduitKind.PIPE and self.pipe_power_law is not None:
            return self.pipe_power_law
        if conduit.kind is ConduitKind.ANNULUS and self.annulus_power_law is not None:
            return self.annulus_power_law
        return self.rheology

    def friction_gradient(
        self,
        flow_rate: float,
        conduit: Conduit,
        config: Optional[Config] = None,
    ) -> float:
        """Friction gradient [Pa/m] of this fluid flowing through ``conduit``."""
        return self.rheology_for(conduit).friction_gradient(flow_rate, conduit, self.density, config)

    def effective_density(
        self,
        base_temperature: float = 20.0,
        temperature: Optional[float] = None,
        base_pressure: float = 0.0,
        pressure: Optional[float] = None,
        config: Optional[Config] = None,
    ) -> float:
        """
        Density corrected for temperature, pressure and gas cut.

            ρ_liq = ρ (1 - α ΔT) (1 + c Δp)
            ρ_eff = ρ_liq (1 - φ) + ρ_air φ

        The hydraulics evaluator calls this at surface conditions, so only
        the gas cut changes the column density there; the temperature and
        pressure terms are for callers with a downhole state.

        Parameters
        ----------
        base_temperature : float
            Temperature at which ``density`` was measured [°C]
        temperature : float, optional
            Downhole temperature [°C] (default: base temperature)
        base_pressure : float
            Pressure at which ``density`` was measured [Pa]
        pressure : float, optional
            Downhole pressure [Pa] (default: base pressure)
        config : Config, optional
            Configuration object

        Returns
        -------
        float
            Effective density [kg/m³]
        """
        if config is None:
            config = DEFAULT_CONFIG

        dT = 0.0 if temperature is None else temperature - base_temperature
        dp = 0.0 if pressure is None else pressure - base_pressure
        rho_liq = self.density * (1.0 - self.thermal_expansion * dT) * (1.0 + self.compressibility * dp)
        rho_liq = max(rho_liq, 0.0)
        phi = self.gas_cut_fraction
        return rho_liq * (1.0 - phi) + config.AIR_DENSITY * phi

    @classmethod
    def from_fann(
        cls,
        name: str,
        density: float,
        dial600: float,
        dial300: float,
        model: RheologyModel = RheologyModel.POWER_LAW,
        config: Optional[Config] = None,
        **kwargs,
    ) -> "Fluid":
        """Fluid whose rheology is fitted from 600/300 rpm Fann readings."""
        if RheologyModel(model) is RheologyModel.BINGHAM:
            rheology = bingham_from_fann(dial600, dial300, config)
        elif RheologyModel(model) is RheologyModel.POWER_LAW:
            rheology = power_law_from_fann(dial600, dial300, config)
        else:
            raise ValueError(f"Fann 600/300 fit not available for model '{model}'.")
        return cls(name=name, density=density, rheology=rheology, **kwargs)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], config: Optional[Config] = None) -> "Fluid":
        """Build a fluid from a persisted record."""
        rheology_data = data.get("rheology")
        if rheology_data is None:
            rheology = Newtonian(float(data.get("viscosity", DEFAULT_CONFIG.DEFAULT_VISCOSITY)))
        else:
            rheology = rheology_from_dict(rheology_data, config)

        pipe_pl = data.get("pipe_power_law")
        ann_pl = data.get("annulus_power_law")
        return cls(
            name=str(data.get("name", data.get("id", "Fluid"))),
            density=float(data["density"]),
            rheology=rheology,
            color=str(data.get("color", "#808080")),
            id=data.get("id"),
            pipe_power_law=PowerLaw(float(pipe_pl["k"]), float(pipe_pl["n"])) if pipe_pl else None,
            annulus_power_law=PowerLaw(float(ann_pl["k"]), float(ann_pl["n"])) if ann_pl else None,
            thermal_expansion=float(data.get("thermal_expansion", 0.0)),
            compressibility=float(data.get("compressibility", 0.0)),
            gas_cut_fraction=float(data.get("gas_cut_fraction", 0.0)),
        )


DEFAULT_FLUID_ID = "__default__"


def default_fluid(config: Optional[Config] = None) -> Fluid:
    """The neutral default fluid substituted for unresolved references."""
    if config is None:
        config = DEFAULT_CONFIG
    return Fluid(
        name="Default",
        density=config.DEFAULT_DENSITY,
        rheology=Newtonian(config.DEFAULT_VISCOSITY),
        color="#b0c4de",
        id=DEFAULT_FLUID_ID,
    )
