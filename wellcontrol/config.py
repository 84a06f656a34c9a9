"""
Centralized configuration for the wellbore fluid-stack and hydraulics engine.

All constants in one place. Units are SI (meters, kg, seconds, Pascals)
unless otherwise noted; pump rates are in m³/min as entered on the rig floor.

Configuration Groups:
    - Physical: gravity, air density
    - Fallback fluid: neutral default density/viscosity for unresolved references
    - Flow: pump rate defaults, laminar/turbulent limits
    - Fann 35 viscometer: dial-to-stress conversion and shear rates
    - Numerical: tolerances used by the fluid stack
    - Diagnostics: warning emission
"""

from dataclasses import dataclass


@dataclass
class Config:
    """
    Centralized configuration with all constants for the pump-schedule engine.

    Attributes
    ----------
    Physical:
        GRAVITY : float
            Gravitational acceleration [m/s²] (default: 9.81)
        AIR_DENSITY : float
            Density of air at surface conditions [kg/m³] (default: 1.2)

    Fallback fluid:
        DEFAULT_DENSITY : float
            Density of the neutral default fluid [kg/m³] (default: 1000.0)
        DEFAULT_VISCOSITY : float
            Viscosity of the neutral default fluid [Pa·s] (default: 0.001)

    Flow:
        DEFAULT_ROUGHNESS : float
            Wall roughness used when a section does not define one [m] (default: 4.6e-5)
        DEFAULT_PUMP_RATE : float
            Pump rate [m³/min] (default: 0.5)
        MIN_FLOW_RATE : float
            Rate below which friction is taken as zero [m³/min] (default: 0.001)
        LAMINAR_RE : float
            Generalized Reynolds number laminar limit (default: 2100)
        TRANSITION_RE : float
            Generalized Reynolds number fully turbulent limit (default: 4000)

    Fann 35 viscometer:
        FANN_DIAL_TO_PA : float
            Dial reading to shear stress [Pa per dial unit] (default: 0.478802)
        FANN_600_SHEAR_RATE : float
            Shear rate at 600 rpm [1/s] (default: 1022)
        FANN_300_SHEAR_RATE : float
            Shear rate at 300 rpm [1/s] (default: 511)

    Numerical:
        SEGMENT_TOL : float
            Segments thinner than this are dropped [m] (default: 1e-6)
        VOLUME_TOL : float
            Parcel volumes below this are ignored [m³] (default: 1e-9)
        EXPELLED_TOL : float
            Expelled volumes below this are not reported [m³] (default: 1e-6)
        PROGRESS_SNAP : float
            Progress tolerance for stage stepping (default: 1e-4)

    Diagnostics:
        EMIT_WARNINGS : bool
            Emit a DegenerateStateWarning for every recorded diagnostic (default: True)
    """

    # =========================================================================
    # Physical
    # =========================================================================
    GRAVITY: float = 9.81                   # m/s²
    AIR_DENSITY: float = 1.2                # kg/m³

    # =========================================================================
    # Fallback fluid
    # =========================================================================
    DEFAULT_DENSITY: float = 1000.0         # kg/m³
    DEFAULT_VISCOSITY: float = 0.001        # Pa·s

    # =========================================================================
    # Flow
    # =========================================================================
    DEFAULT_ROUGHNESS: float = 4.6e-5       # m (casing/drill pipe)
    DEFAULT_PUMP_RATE: float = 0.5          # m³/min
    MIN_FLOW_RATE: float = 0.001            # m³/min
    LAMINAR_RE: float = 2100.0              # [-]
    TRANSITION_RE: float = 4000.0           # [-]

    # =========================================================================
    # Fann 35 viscometer
    # =========================================================================
    FANN_DIAL_TO_PA: float = 0.478802       # Pa per dial unit (lbf/100ft²)
    FANN_600_SHEAR_RATE: float = 1022.0     # 1/s
    FANN_300_SHEAR_RATE: float = 511.0      # 1/s

    # =========================================================================
    # Numerical
    # =========================================================================
    SEGMENT_TOL: float = 1e-6               # m
    VOLUME_TOL: float = 1e-9                # m³
    EXPELLED_TOL: float = 1e-6              # m³
    PROGRESS_SNAP: float = 1e-4             # [-]

    # =========================================================================
    # Diagnostics
    # =========================================================================
    EMIT_WARNINGS: bool = True

    # =========================================================================
    # Derived Properties
    # =========================================================================
    @property
    def MIN_FLOW_RATE_SI(self) -> float:
        """Minimum flow rate [m³/s]."""
        return self.MIN_FLOW_RATE / 60.0

    @property
    def DEFAULT_PUMP_RATE_SI(self) -> float:
        """Default pump rate [m³/s]."""
        return self.DEFAULT_PUMP_RATE / 60.0

    def __post_init__(self):
        """Validate configuration after initialization."""
        if self.GRAVITY <= 0:
            raise ValueError(f"GRAVITY ({self.GRAVITY}) must be positive.")

        for name in ("AIR_DENSITY", "DEFAULT_DENSITY", "DEFAULT_VISCOSITY"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} ({getattr(self, name)}) must be positive.")

        for name in ("SEGMENT_TOL", "VOLUME_TOL", "EXPELLED_TOL", "PROGRESS_SNAP"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} ({getattr(self, name)}) must be positive.")

        if self.MIN_FLOW_RATE < 0:
            raise ValueError(f"MIN_FLOW_RATE ({self.MIN_FLOW_RATE}) must be non-negative.")

        if self.TRANSITION_RE <= self.LAMINAR_RE:
            raise ValueError(
                f"TRANSITION_RE ({self.TRANSITION_RE}) must be > LAMINAR_RE ({self.LAMINAR_RE})."
            )


# Default configuration instance
DEFAULT_CONFIG = Config()
