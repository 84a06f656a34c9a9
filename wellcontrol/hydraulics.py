"""
Circulating hydraulics of a fluid stack.

For a control depth z_c (the bit, or a chosen depth above it) the pressures
of the two columns are

    P_ann(z_c) = Σ ρ_i g ΔTVD_i + Σ (dp/dL)_i ΔMD_i + SBP
    P_str(z_c) = Σ ρ_j g ΔTVD_j + Σ (dp/dL)_j ΔMD_j

where i runs over the annulus segments above z_c and j over the string
segments above z_c. Friction is integrated piece by piece between geometry
breakpoints so every piece sees a single conduit and a single fluid.

    BHP = P_ann(z_c)
    ECD = BHP / (g TVD(z_c))
    TCP = P_str(z_c) + annulus friction

Surface back pressure (SBP) is applied only with managed pressure drilling.
"""

import logging
from dataclasses import asdict, dataclass, replace
from typing import Callable, Dict, Optional, Sequence, Tuple

import numpy as np
from scipy.optimize import brentq

from .config import Config, DEFAULT_CONFIG
from .diagnostics import (
    CONTROL_DEPTH_OUT_OF_RANGE,
    INVALID_INPUT,
    UNCOVERED_INTERVAL,
    ZERO_FLOW_AREA,
    ZERO_TVD,
    Diagnostic,
    Diagnostics,
)
from .geometry import Side, WellGeometry
from .schedule import ControlDepthMode
from .stack import FluidSegment, StackState

logger = logging.getLogger(__name__)

TvdFunction = Callable[[float], float]


@dataclass(frozen=True)
class HydraulicsInputs:
    """
    Operating parameters of a hydraulics evaluation.

    Attributes
    ----------
    pump_rate : float
        Pump rate [m³/min]
    control_depth_mode : ControlDepthMode
        Report pressures at the bit or at ``control_md``
    control_md : float, optional
        Custom control depth [m]; the bit when not set
    mpd_enabled : bool
        Managed pressure drilling (surface back pressure) on
    target_emd : float, optional
        Target equivalent mud density at the control depth [kg/m³]
    back_pressure : float
        Fixed SBP used with MPD when no target is set [Pa]
    use_stage_rate : bool
        Use a stage's own pump rate when the program defines one

    Notes
    -----
    Values come straight from the operator and are not validated here.
    ``evaluate_hydraulics`` clamps negative or non-finite numbers to 0 and
    records an ``invalid-input`` diagnostic.
    """
    pump_rate: float = DEFAULT_CONFIG.DEFAULT_PUMP_RATE
    control_depth_mode: ControlDepthMode = ControlDepthMode.BIT
    control_md: Optional[float] = None
    mpd_enabled: bool = False
    target_emd: Optional[float] = None
    back_pressure: float = 0.0
    use_stage_rate: bool = True

    @property
    def pump_rate_si(self) -> float:
        """Pump rate [m³/s]."""
        return self.pump_rate / 60.0

    def with_rate(self, pump_rate: float) -> "HydraulicsInputs":
        return replace(self, pump_rate=pump_rate)


@dataclass(frozen=True)
class HydraulicsResult:
    """
    Pressures at the control depth. All pressures in Pa.

    Attributes
    ----------
    bhp : float
        Annulus pressure at the control depth
    ecd : float
        Equivalent circulating density [kg/m³]
    sbp : float
        Surface back pressure applied
    tcp : float
        Total circulating (standpipe-side) pressure
    annulus_friction, string_friction : float
        Frictional losses above the control depth
    annulus_at_control, string_at_control : float
        Column pressures at the control depth
    annulus_hydrostatic, string_hydrostatic : float
        Hydrostatic parts of the column pressures
    control_md, control_tvd : float
        Control depth [m]
    diagnostics : tuple of Diagnostic
        Degenerate states met during the evaluation
    """
    bhp: float
    ecd: float
    sbp: float
    tcp: float
    annulus_friction: float
    string_friction: float
    annulus_at_control: float
    string_at_control: float
    annulus_hydrostatic: float
    string_hydrostatic: float
    control_md: float
    control_tvd: float
    diagnostics: Tuple[Diagnostic, ...] = ()

    @property
    def total_friction(self) -> float:
        return self.annulus_friction + self.string_friction

    @property
    def u_tube_imbalance(self) -> float:
        """String minus annulus hydrostatic [Pa]; positive when the string is heavier."""
        return self.string_hydrostatic - self.annulus_hydrostatic

    @property
    def bhp_kpa(self) -> float:
        return self.bhp / 1e3

    @property
    def sbp_kpa(self) -> float:
        return self.sbp / 1e3

    @property
    def tcp_kpa(self) -> float:
        return self.tcp / 1e3

    def to_dict(self) -> Dict[str, object]:
        out = asdict(self)
        out["diagnostics"] = [str(d) for d in self.diagnostics]
        out["total_friction"] = self.total_friction
        out["u_tube_imbalance"] = self.u_tube_imbalance
        return out


# =============================================================================
# Column integration
# =============================================================================

def _segment_density(seg: FluidSegment, config: Config) -> float:
    return seg.fluid.effective_density(config=config) if seg.fluid is not None else config.AIR_DENSITY


def hydrostatic_pressure(
    tvd: TvdFunction,
    segments: Sequence[FluidSegment],
    bottom_md: Optional[float] = None,
    config: Optional[Config] = None,
) -> float:
    """
    Hydrostatic pressure of a segment stack.

        P = Σ ρ_i g (TVD(bottom_i) - TVD(top_i))

    Parameters
    ----------
    tvd : callable
        MD→TVD mapping (e.g. a TvdSampler)
    segments : sequence of FluidSegment
        Fluid column; air segments use the air density
    bottom_md : float, optional
        Integrate only down to this depth [m]
    config : Config, optional
        Configuration object

    Returns
    -------
    float
        Pressure [Pa]
    """
    if config is None:
        config = DEFAULT_CONFIG

    p = 0.0
    for seg in segments:
        part = seg if bottom_md is None else seg.clipped(0.0, bottom_md)
        if part is None:
            continue
        dz = float(tvd(part.bottom_md)) - float(tvd(part.top_md))
        p += _segment_density(part, config) * config.GRAVITY * dz
    return p


def _column_pressure(
    segments: Sequence[FluidSegment],
    side: Side,
    control_md: float,
    geometry: WellGeometry,
    tvd: TvdFunction,
    flow_rate: float,
    diags: Diagnostics,
    config: Config,
) -> Tuple[float, float]:
    """Hydrostatic and frictional pressure of one column down to ``control_md``."""
    hydro = 0.0
    friction = 0.0
    covered = 0.0
    degenerate = False

    for seg in segments:
        part = seg.clipped(0.0, control_md)
        if part is None:
            continue
        covered += part.length
        dz = float(tvd(part.bottom_md)) - float(tvd(part.top_md))
        hydro += _segment_density(part, config) * config.GRAVITY * dz

        if flow_rate <= 0.0 or part.fluid is None:
            continue
        points = geometry.breakpoints(side, part.top_md, part.bottom_md)
        for a, b in zip(points[:-1], points[1:]):
            if b <= a:
                continue
            conduit = geometry.conduit(side, 0.5 * (a + b))
            if conduit.is_degenerate:
                degenerate = True
                continue
            friction += part.fluid.friction_gradient(flow_rate, conduit, config) * (b - a)

    if degenerate:
        diags.record(ZERO_FLOW_AREA, f"{side.value} has no flow area over part of [0, {control_md:.2f}] m; friction there taken as 0")
    if control_md - covered > config.SEGMENT_TOL:
        diags.record(
            UNCOVERED_INTERVAL,
            f"{side.value} fluid column covers {covered:.2f} m of the {control_md:.2f} m to the control depth",
        )
    return hydro, friction


def _non_negative(value: float, label: str, diags: Diagnostics) -> float:
    if np.isfinite(value) and value >= 0:
        return value
    diags.record(INVALID_INPUT, f"{label} {value} treated as 0")
    return 0.0


def _checked_inputs(inputs: HydraulicsInputs, diags: Diagnostics) -> HydraulicsInputs:
    """Inputs with negative or non-finite rate, back pressure and target clamped to 0."""
    target = inputs.target_emd
    if target is not None:
        target = _non_negative(target, "target EMD [kg/m³]", diags)
    return replace(
        inputs,
        pump_rate=_non_negative(inputs.pump_rate, "pump rate [m³/min]", diags),
        back_pressure=_non_negative(inputs.back_pressure, "back pressure [Pa]", diags),
        target_emd=target,
    )


def _control_depth(geometry: WellGeometry, inputs: HydraulicsInputs, diags: Diagnostics) -> float:
    bit = geometry.bit_md
    if ControlDepthMode(inputs.control_depth_mode) is ControlDepthMode.BIT or inputs.control_md is None:
        return bit

    md = inputs.control_md
    if not (0.0 <= md <= bit):
        clamped = 0.0 if not md == md else min(max(md, 0.0), bit)
        diags.record(CONTROL_DEPTH_OUT_OF_RANGE, f"control depth {md} m clamped to {clamped:.2f} m")
        return clamped
    return md


def evaluate_hydraulics(
    stack: StackState,
    geometry: WellGeometry,
    tvd: TvdFunction,
    inputs: Optional[HydraulicsInputs] = None,
    config: Optional[Config] = None,
) -> HydraulicsResult:
    """
    Evaluate circulating pressures of a fluid stack.

    Parameters
    ----------
    stack : StackState
        String and annulus fluid columns
    geometry : WellGeometry
        Well geometry
    tvd : callable
        MD→TVD mapping (e.g. a TvdSampler)
    inputs : HydraulicsInputs, optional
        Pump rate, control depth and MPD settings
    config : Config, optional
        Configuration object

    Returns
    -------
    HydraulicsResult
        Pressures at the control depth; degenerate states give zeros and
        a recorded diagnostic rather than an exception
    """
    if config is None:
        config = DEFAULT_CONFIG
    if inputs is None:
        inputs = HydraulicsInputs()

    diags = Diagnostics(config)
    diags.extend(stack.diagnostics)
    inputs = _checked_inputs(inputs, diags)

    control_md = _control_depth(geometry, inputs, diags)
    control_tvd = float(tvd(control_md))
    q = inputs.pump_rate_si

    s_hydro, s_fric = 0.0, 0.0
    if geometry.string_sections:
        s_hydro, s_fric = _column_pressure(stack.string, Side.STRING, control_md, geometry, tvd, q, diags, config)
    a_hydro, a_fric = _column_pressure(stack.annulus, Side.ANNULUS, control_md, geometry, tvd, q, diags, config)

    if not inputs.mpd_enabled:
        sbp = 0.0
    elif inputs.target_emd is not None:
        sbp = max(0.0, inputs.target_emd * config.GRAVITY * control_tvd - (a_hydro + a_fric))
    else:
        sbp = inputs.back_pressure

    annulus_at_control = a_hydro + a_fric + sbp
    string_at_control = s_hydro + s_fric
    bhp = annulus_at_control

    if control_tvd > 0:
        ecd = bhp / (config.GRAVITY * control_tvd)
    else:
        diags.record(ZERO_TVD, f"control depth {control_md:.2f} m has TVD {control_tvd:.2f} m; ECD reported as 0")
        ecd = 0.0

    logger.debug(
        "Hydraulics at %.1f m MD: BHP=%.0f Pa, ECD=%.1f kg/m³, SBP=%.0f Pa",
        control_md, bhp, ecd, sbp,
    )
    return HydraulicsResult(
        bhp=bhp,
        ecd=ecd,
        sbp=sbp,
        tcp=string_at_control + a_fric,
        annulus_friction=a_fric,
        string_friction=s_fric,
        annulus_at_control=annulus_at_control,
        string_at_control=string_at_control,
        annulus_hydrostatic=a_hydro,
        string_hydrostatic=s_hydro,
        control_md=control_md,
        control_tvd=control_tvd,
        diagnostics=diags.freeze(),
    )


# =============================================================================
# Supplementary calculators
# =============================================================================

def required_uniform_density(
    target_bhp: float,
    tvd: float,
    friction_gradient: float = 0.0,
    sbp: float = 0.0,
    config: Optional[Config] = None,
) -> float:
    """
    Single-fluid density that gives ``target_bhp`` at ``tvd``.

        ρ = max(BHP - SBP - (dp/dL) TVD, 0) / (g TVD)

    Returns 0 for a non-positive TVD.
    """
    if config is None:
        config = DEFAULT_CONFIG
    if tvd <= 0:
        return 0.0
    hydro_needed = max(target_bhp - sbp - friction_gradient * tvd, 0.0)
    return hydro_needed / (config.GRAVITY * tvd)


def required_sbp(target_bhp: float, current_bhp: float) -> float:
    """Back pressure [Pa] to raise ``current_bhp`` (no SBP) to ``target_bhp``."""
    return max(target_bhp - current_bhp, 0.0)


class PressureWindow:
    """
    Pore and fracture pressure versus TVD, piecewise linear.

    Parameters
    ----------
    tvd : array_like
        TVD of the tabulated points [m]
    pore : array_like
        Pore pressure [Pa]
    frac : array_like
        Fracture pressure [Pa]
    pore_safety : float
        Overbalance margin added to pore pressure [Pa]
    frac_safety : float
        Margin kept below fracture pressure [Pa]
    """

    def __init__(self, tvd, pore, frac, pore_safety: float = 0.0, frac_safety: float = 0.0):
        tvd = np.atleast_1d(np.asarray(tvd, dtype=float))
        pore = np.atleast_1d(np.asarray(pore, dtype=float))
        frac = np.atleast_1d(np.asarray(frac, dtype=float))
        if not (len(tvd) == len(pore) == len(frac)) or len(tvd) == 0:
            raise ValueError("tvd, pore and frac must be non-empty and the same length")
        if pore_safety < 0 or frac_safety < 0:
            raise ValueError("safety margins must be non-negative")

        order = np.argsort(tvd, kind="stable")
        self.tvd = tvd[order]
        self.pore_ray = pore[order]
        self.frac_ray = frac[order]
        self.pore_safety = pore_safety
        self.frac_safety = frac_safety

    def pore(self, tvd: float) -> float:
        return float(np.interp(tvd, self.tvd, self.pore_ray))

    def frac(self, tvd: float) -> float:
        return float(np.interp(tvd, self.tvd, self.frac_ray))

    def window(self, tvd: float, apply_safety: bool = True) -> Optional[Tuple[float, float]]:
        """(min, max) allowed pressure at ``tvd``, or None when the window is closed."""
        lo = self.pore(tvd) + (self.pore_safety if apply_safety else 0.0)
        hi = self.frac(tvd) - (self.frac_safety if apply_safety else 0.0)
        return (lo, hi) if lo <= hi else None

    def min_density(self, tvd: float, apply_safety: bool = True, config: Optional[Config] = None) -> Optional[float]:
        if config is None:
            config = DEFAULT_CONFIG
        if tvd <= 0:
            return None
        p = self.pore(tvd) + (self.pore_safety if apply_safety else 0.0)
        return p / (config.GRAVITY * tvd)

    def max_density(self, tvd: float, apply_safety: bool = True, config: Optional[Config] = None) -> Optional[float]:
        if config is None:
            config = DEFAULT_CONFIG
        if tvd <= 0:
            return None
        p = self.frac(tvd) - (self.frac_safety if apply_safety else 0.0)
        return p / (config.GRAVITY * tvd)


@dataclass(frozen=True)
class WindowCheck:
    """Outcome of comparing a pressure against the pore/frac window."""
    within: bool
    pore: float
    frac: float
    pressure: float

    @property
    def overbalance(self) -> float:
        return self.pressure - self.pore

    @property
    def frac_margin(self) -> float:
        return self.frac - self.pressure


def check_pressure_window(
    bhp: float,
    tvd: float,
    window: PressureWindow,
    apply_safety: bool = True,
) -> WindowCheck:
    """Check a bottom-hole pressure against the pressure window at ``tvd``."""
    bounds = window.window(tvd, apply_safety)
    if bounds is None:
        return WindowCheck(False, window.pore(tvd), window.frac(tvd), bhp)
    lo, hi = bounds
    return WindowCheck(lo <= bhp <= hi, lo, hi, bhp)


def max_pump_rate_for_ecd(
    stack: StackState,
    geometry: WellGeometry,
    tvd: TvdFunction,
    inputs: HydraulicsInputs,
    ecd_limit: float,
    config: Optional[Config] = None,
    rate_bounds: Tuple[float, float] = (0.0, 5.0),
) -> float:
    """
    Largest pump rate [m³/min] keeping ECD at or below ``ecd_limit``.

    ECD rises monotonically with rate, so the limit rate is bracketed on
    ``rate_bounds`` and found with Brent's method.

    Returns
    -------
    float
        The upper bound when the limit is never reached, 0 when it is
        exceeded even with the pumps off
    """
    if config is None:
        config = DEFAULT_CONFIG
    quiet = replace(config, EMIT_WARNINGS=False)
    lo, hi = rate_bounds

    def excess(rate: float) -> float:
        return evaluate_hydraulics(stack, geometry, tvd, inputs.with_rate(rate), quiet).ecd - ecd_limit

    if excess(lo) > 0:
        return 0.0
    if excess(hi) <= 0:
        return hi
    return float(brentq(excess, lo, hi, xtol=1e-6))


def print_hydraulics_summary(result: HydraulicsResult):
    """
    Print formatted summary of a hydraulics evaluation.

    Parameters
    ----------
    result : HydraulicsResult
        Evaluation to summarize
    """
    print("\n" + "=" * 60)
    print("HYDRAULICS SUMMARY")
    print("=" * 60)

    print("\n--- Control Depth ---")
    print(f"  MD  = {result.control_md:.1f} m")
    print(f"  TVD = {result.control_tvd:.1f} m")

    print("\n--- Annulus ---")
    print(f"  Hydrostatic: {result.annulus_hydrostatic / 1e3:10.1f} kPa")
    print(f"  Friction:    {result.annulus_friction / 1e3:10.1f} kPa")
    print(f"  SBP:         {result.sbp_kpa:10.1f} kPa")
    print(f"  BHP:         {result.bhp_kpa:10.1f} kPa")
    print(f"  ECD:         {result.ecd:10.1f} kg/m³")

    print("\n--- String ---")
    print(f"  Hydrostatic: {result.string_hydrostatic / 1e3:10.1f} kPa")
    print(f"  Friction:    {result.string_friction / 1e3:10.1f} kPa")
    print(f"  TCP:         {result.tcp_kpa:10.1f} kPa")
    print(f"  U-tube:      {result.u_tube_imbalance / 1e3:10.1f} kPa")

    if result.diagnostics:
        print("\n--- Diagnostics ---")
        for d in result.diagnostics:
            print(f"  {d}")

    print("=" * 60)
