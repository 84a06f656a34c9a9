"""
Wellbore fluid-stack advancement and circulating hydraulics.

This package provides modules for:
- config: Centralized configuration with all constants
- diagnostics: Side channel for degenerate numerical states
- geometry: String/annulus sections, area profiles, MD→TVD survey mapping
- friction: Friction factors and Reynolds numbers
- rheology: Newtonian, Bingham, power-law and Herschel-Bulkley fluids, Fann fits
- project: Read-only well snapshot (geometry, fluids, layers, program)
- stack: Fluid segments, volume parcels and U-tube parcel operations
- schedule: Pump stages from final layers or from a pump program
- simulation: Stage advancement engine (fluid columns, returns)
- hydraulics: BHP, ECD, SBP and TCP at a control depth
- reporting: pandas tables and progress sweeps
- plots: Well snapshot and sweep plots
"""

from .config import Config, DEFAULT_CONFIG
from .diagnostics import Diagnostic, Diagnostics, DegenerateStateWarning
from .geometry import (
    AnnulusSection,
    Side,
    StringSection,
    TvdSampler,
    WellGeometry,
)
from .rheology import (
    Bingham,
    Fluid,
    HerschelBulkley,
    Newtonian,
    PowerLaw,
    RheologyModel,
    bingham_from_fann,
    default_fluid,
    power_law_from_fann,
)
from .stack import FluidSegment, StackState, VolumeParcel
from .schedule import (
    ControlDepthMode,
    FinalFluidLayer,
    Placement,
    ProgramStage,
    ScheduleCursor,
    SourceMode,
    Stage,
    build_stages,
)
from .project import WellSnapshot
from .hydraulics import (
    HydraulicsInputs,
    HydraulicsResult,
    PressureWindow,
    check_pressure_window,
    evaluate_hydraulics,
    max_pump_rate_for_ecd,
)
from .simulation import ExpelledFluid, PumpSchedule
from . import plots, reporting

__version__ = "1.0.0"
__all__ = [
    "Config",
    "DEFAULT_CONFIG",
    "Diagnostic",
    "Diagnostics",
    "DegenerateStateWarning",
    "AnnulusSection",
    "Side",
    "StringSection",
    "TvdSampler",
    "WellGeometry",
    "Bingham",
    "Fluid",
    "HerschelBulkley",
    "Newtonian",
    "PowerLaw",
    "RheologyModel",
    "bingham_from_fann",
    "default_fluid",
    "power_law_from_fann",
    "FluidSegment",
    "StackState",
    "VolumeParcel",
    "ControlDepthMode",
    "FinalFluidLayer",
    "Placement",
    "ProgramStage",
    "ScheduleCursor",
    "SourceMode",
    "Stage",
    "build_stages",
    "WellSnapshot",
    "HydraulicsInputs",
    "HydraulicsResult",
    "PressureWindow",
    "check_pressure_window",
    "evaluate_hydraulics",
    "max_pump_rate_for_ecd",
    "ExpelledFluid",
    "PumpSchedule",
    "plots",
    "reporting",
]
