"""
Pump stage schedule.

A schedule is an ordered list of stages, each a volume of one fluid pumped
down the string. Stages come from one of two sources:

- FINAL_LAYERS: a target end state (fluid layers in the annulus and string)
  converted into the stage sequence that produces it
- PROGRAM: an explicit, ordered pump program

Every stage travels the same U-tube path (down the string, up the annulus),
so in final-layers mode the order alone decides where a fluid ends up: the
first volume pumped is the one that reaches the shallowest annulus position.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, List, Optional, Tuple

from .config import Config, DEFAULT_CONFIG
from .diagnostics import Diagnostic, Diagnostics, EMPTY_LAYER, EMPTY_SCHEDULE, NEGATIVE_VOLUME
from .geometry import Side
from .rheology import Fluid, Newtonian

if TYPE_CHECKING:
    from .project import WellSnapshot

logger = logging.getLogger(__name__)


class Placement(str, Enum):
    """Compartment(s) a final fluid layer occupies."""
    ANNULUS = "annulus"
    STRING = "string"
    BOTH = "both"


class SourceMode(str, Enum):
    FINAL_LAYERS = "final_layers"
    PROGRAM = "program"


class ControlDepthMode(str, Enum):
    """Depth at which pressures are reported."""
    BIT = "bit"
    CUSTOM = "custom"


@dataclass(frozen=True)
class FinalFluidLayer:
    """
    One layer of the target end state.

    Attributes
    ----------
    name : str
        Layer label
    placement : Placement
        Annulus, string or both
    top_md, bottom_md : float
        Layer interval [m]; swapped when given reversed
    density : float
        Density used when no fluid is referenced [kg/m³]
    color : str
        Display colour; a referenced fluid's own colour takes precedence
    fluid_id : str, optional
        Referenced fluid
    """
    name: str
    placement: Placement
    top_md: float
    bottom_md: float
    density: float = DEFAULT_CONFIG.DEFAULT_DENSITY
    color: str = "#808080"
    fluid_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data) -> "FinalFluidLayer":
        return cls(
            name=str(data.get("name", "Layer")),
            placement=Placement(data.get("placement", Placement.ANNULUS.value)),
            top_md=float(data.get("top_md", 0.0)),
            bottom_md=float(data.get("bottom_md", 0.0)),
            density=float(data.get("density", DEFAULT_CONFIG.DEFAULT_DENSITY)),
            color=str(data.get("color", "#808080")),
            fluid_id=data.get("fluid_id"),
        )


@dataclass(frozen=True)
class ProgramStage:
    """
    One entry of an explicit pump program.

    Attributes
    ----------
    name : str
        Stage label
    volume : float
        Volume to pump [m³]; negative values are treated as 0
    fluid_id : str, optional
        Referenced fluid
    color : str, optional
        Display colour (default: the fluid's)
    pump_rate : float, optional
        Stage pump rate [m³/min]
    order_index : int
        Position in the program
    """
    name: str
    volume: float
    fluid_id: Optional[str] = None
    color: Optional[str] = None
    pump_rate: Optional[float] = None
    order_index: int = 0

    @classmethod
    def from_dict(cls, data) -> "ProgramStage":
        rate = data.get("pump_rate")
        return cls(
            name=str(data.get("name", "Stage")),
            volume=float(data.get("volume", 0.0)),
            fluid_id=data.get("fluid_id"),
            color=data.get("color"),
            pump_rate=None if rate is None else float(rate),
            order_index=int(data.get("order_index", 0)),
        )


@dataclass(frozen=True)
class Stage:
    """
    One pumped stage of the schedule.

    Attributes
    ----------
    name : str
        Stage label
    fluid : Fluid
        Fluid pumped
    total_volume : float
        Volume pumped over the whole stage [m³], >= 0
    side : Side
        Compartment the stage ends up in
    color : str
        Display colour
    pump_rate : float, optional
        Stage-specific pump rate [m³/min]
    """
    name: str
    fluid: Fluid
    total_volume: float
    side: Side
    color: str
    pump_rate: Optional[float] = None


@dataclass(frozen=True)
class StageList:
    """Built stages plus the diagnostics raised while building them."""
    stages: Tuple[Stage, ...] = ()
    diagnostics: Tuple[Diagnostic, ...] = ()

    def __len__(self) -> int:
        return len(self.stages)

    def __iter__(self):
        return iter(self.stages)

    def __getitem__(self, index):
        return self.stages[index]

    @property
    def total_volume(self) -> float:
        return sum(s.total_volume for s in self.stages)


@dataclass(frozen=True)
class ScheduleCursor:
    """
    Position in a schedule: a stage and the fraction of it pumped.

    Stepping mirrors the schedule scrubber: ``next`` first completes the
    current stage, then moves to the start of the next one; ``prev`` first
    rewinds to the start of the stage, then to the end of the previous one.
    """
    stage_index: int = 0
    progress: float = 0.0

    def display_index(self, n_stages: int) -> int:
        return min(max(self.stage_index, 0), max(n_stages - 1, 0))

    def clamped(self, n_stages: int) -> "ScheduleCursor":
        progress = self.progress if self.progress == self.progress else 0.0
        return ScheduleCursor(self.display_index(n_stages), min(max(progress, 0.0), 1.0))

    def next_stage_or_wrap(self, n_stages: int, snap: float = DEFAULT_CONFIG.PROGRESS_SNAP) -> "ScheduleCursor":
        if self.progress >= 1.0 - snap:
            return ScheduleCursor(min(self.stage_index + 1, max(n_stages - 1, 0)), 0.0)
        return ScheduleCursor(self.stage_index, 1.0)

    def prev_stage_or_wrap(self, n_stages: int, snap: float = DEFAULT_CONFIG.PROGRESS_SNAP) -> "ScheduleCursor":
        if self.progress <= snap:
            return ScheduleCursor(max(self.stage_index - 1, 0), 1.0)
        return ScheduleCursor(self.stage_index, 0.0)


# =============================================================================
# Builders
# =============================================================================

@dataclass
class _Interval:
    top: float
    bottom: float
    fluid: Fluid
    color: str
    name: str


def _layer_fluid(layer: FinalFluidLayer, snapshot: "WellSnapshot", diags: Diagnostics, config: Config) -> Fluid:
    if layer.fluid_id is not None:
        return snapshot.resolve_fluid(layer.fluid_id, diags)
    return Fluid(
        name=layer.name,
        density=layer.density if layer.density > 0 else config.DEFAULT_DENSITY,
        rheology=Newtonian(config.DEFAULT_VISCOSITY),
        color=layer.color,
        id=f"layer:{layer.name}",
    )


def _clip_and_trim(intervals: List[_Interval], bottom_limit: float, diags: Diagnostics, where: str) -> List[_Interval]:
    """Clip to [0, bottom_limit], sort shallow to deep and trim overlaps."""
    kept: List[_Interval] = []
    for iv in sorted(intervals, key=lambda x: (x.top, x.bottom)):
        top = max(iv.top, 0.0, kept[-1].bottom if kept else 0.0)
        bottom = min(iv.bottom, bottom_limit)
        if bottom <= top:
            diags.record(EMPTY_LAYER, f"{where} layer '{iv.name}' has no extent inside the {where} and is skipped")
            continue
        kept.append(_Interval(top, bottom, iv.fluid, iv.color, iv.name))
    return kept


def _filler(name: str, fluid: Fluid, volume: float, side: Side) -> Stage:
    return Stage(name=name, fluid=fluid, total_volume=volume, side=side, color=fluid.color)


def build_stages_from_final_layers(
    snapshot: "WellSnapshot",
    config: Optional[Config] = None,
    diags: Optional[Diagnostics] = None,
) -> StageList:
    """
    Stage sequence that leaves the well in the target layered state.

    Annulus layers are pumped first, shallow to deep, with active-fluid
    fillers over the gaps down to the connection point. String layers follow,
    deep to shallow, with fillers so that exactly one string volume is pumped
    behind the annulus stages.
    """
    if config is None:
        config = DEFAULT_CONFIG
    if diags is None:
        diags = Diagnostics(config)

    geom = snapshot.geometry
    active = snapshot.active_fluid(diags)
    connection = geom.connection_md
    bit = geom.string_bottom_md

    annulus_raw: List[_Interval] = []
    string_raw: List[_Interval] = []
    for layer in snapshot.final_layers:
        top, bottom = sorted((layer.top_md, layer.bottom_md))
        fluid = _layer_fluid(layer, snapshot, diags, config)
        color = fluid.color if snapshot.fluid_by_id(layer.fluid_id) is not None else layer.color
        if layer.placement in (Placement.ANNULUS, Placement.BOTH):
            annulus_raw.append(_Interval(top, bottom, fluid, color, layer.name))
        if layer.placement in (Placement.STRING, Placement.BOTH):
            string_raw.append(_Interval(top, bottom, fluid, color, layer.name))

    annulus_layers = _clip_and_trim(annulus_raw, connection, diags, "annulus")
    string_layers = _clip_and_trim(string_raw, bit, diags, "string")

    stages: List[Stage] = []
    filler_name = f"{active.name} (filler)"

    if annulus_layers:
        cursor = 0.0
        for iv in annulus_layers:
            if iv.top > cursor:
                stages.append(_filler(filler_name, active, geom.volume_in_annulus(cursor, iv.top), Side.ANNULUS))
            stages.append(Stage(iv.name, iv.fluid, geom.volume_in_annulus(iv.top, iv.bottom), Side.ANNULUS, iv.color))
            cursor = iv.bottom
        if cursor < connection:
            stages.append(_filler(filler_name, active, geom.volume_in_annulus(cursor, connection), Side.ANNULUS))

    if string_layers or annulus_layers:
        cursor = bit
        for iv in reversed(string_layers):
            if iv.bottom < cursor:
                stages.append(_filler(filler_name, active, geom.volume_in_string(iv.bottom, cursor), Side.STRING))
            stages.append(Stage(iv.name, iv.fluid, geom.volume_in_string(iv.top, iv.bottom), Side.STRING, iv.color))
            cursor = iv.top
        if cursor > 0.0:
            stages.append(_filler(filler_name, active, geom.volume_in_string(0.0, cursor), Side.STRING))

    stages = [s for s in stages if s.total_volume > config.VOLUME_TOL]
    if not stages:
        diags.record(EMPTY_SCHEDULE, "no final layers produce a stage; schedule is empty")

    logger.debug("Built %d stages from %d final layers", len(stages), len(snapshot.final_layers))
    return StageList(tuple(stages), diags.freeze())


def build_stages_from_program(
    snapshot: "WellSnapshot",
    config: Optional[Config] = None,
    diags: Optional[Diagnostics] = None,
) -> StageList:
    """
    Stages of an explicit pump program, in ``order_index`` order.

    A stage is tagged STRING when less than a string volume is pumped after
    it (part of it is still in the string at the end), else ANNULUS.
    """
    if config is None:
        config = DEFAULT_CONFIG
    if diags is None:
        diags = Diagnostics(config)

    program = sorted(snapshot.program, key=lambda p: p.order_index)
    volumes = []
    for ps in program:
        vol = ps.volume
        if not vol >= 0:
            diags.record(NEGATIVE_VOLUME, f"stage '{ps.name}' volume {vol} clamped to 0")
            vol = 0.0
        volumes.append(vol)

    string_capacity = snapshot.geometry.string_capacity
    stages: List[Stage] = []
    pumped_after = sum(volumes)
    for ps, vol in zip(program, volumes):
        pumped_after -= vol
        fluid = snapshot.resolve_fluid(ps.fluid_id, diags)
        side = Side.STRING if pumped_after < string_capacity else Side.ANNULUS
        stages.append(Stage(
            name=ps.name,
            fluid=fluid,
            total_volume=vol,
            side=side,
            color=ps.color or fluid.color,
            pump_rate=ps.pump_rate,
        ))

    if not stages:
        diags.record(EMPTY_SCHEDULE, "pump program is empty")

    logger.debug("Built %d stages from the pump program", len(stages))
    return StageList(tuple(stages), diags.freeze())


def build_stages(
    snapshot: "WellSnapshot",
    mode: SourceMode = SourceMode.FINAL_LAYERS,
    config: Optional[Config] = None,
) -> StageList:
    """
    Build the stage list of a well snapshot.

    Parameters
    ----------
    snapshot : WellSnapshot
        Geometry, fluids, final layers and program
    mode : SourceMode
        Where the stages come from
    config : Config, optional
        Configuration object

    Returns
    -------
    StageList
        Stages and the diagnostics raised while building them; never raises
        for degenerate inputs
    """
    if SourceMode(mode) is SourceMode.PROGRAM:
        return build_stages_from_program(snapshot, config)
    return build_stages_from_final_layers(snapshot, config)
