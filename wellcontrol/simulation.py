"""
Stage advancement engine.

Given a schedule and a position in it (a stage and the volume pumped of that
stage), rebuild the fluid columns from the initial state:

    1. String full of active fluid (or empty, air-filled); annulus full of
       active fluid.
    2. Every earlier stage applied with its whole volume.
    3. The current stage applied with the pumped volume.

Applying a volume is one U-tube step. The parcel enters the string at
surface; what no longer fits leaves the bit into the bottom of the annulus;
what no longer fits in the annulus is taken as returns at surface.

Every query starts over from the initial state, so results depend only on
(stage index, pumped volume) and the same query always returns the same
columns.
"""

import logging
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np

from .config import Config, DEFAULT_CONFIG
from .diagnostics import INVALID_PROGRESS, NEGATIVE_VOLUME, VOLUME_OVERFLOW, Diagnostic, Diagnostics
from .hydraulics import HydraulicsInputs, HydraulicsResult, evaluate_hydraulics, hydrostatic_pressure
from .project import WellSnapshot
from .rheology import Fluid
from .schedule import SourceMode, Stage, StageList, build_stages
from .stack import (
    FluidSegment,
    StackState,
    VolumeParcel,
    annulus_segments_from_parcels,
    push_to_bottom_and_overflow_top,
    push_to_top_and_overflow,
    string_segments_from_parcels,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExpelledFluid:
    """Returns of one fluid taken at surface."""
    name: str
    volume: float
    color: str
    fluid: Optional[Fluid] = None


class PumpSchedule:
    """
    A stage schedule bound to a well snapshot.

    Parameters
    ----------
    snapshot : WellSnapshot
        Geometry, fluids and survey
    stages : StageList or sequence of Stage
        Stages in pumping order
    config : Config, optional
        Configuration object
    """

    def __init__(
        self,
        snapshot: WellSnapshot,
        stages: Union[StageList, Sequence[Stage]] = (),
        config: Optional[Config] = None,
    ):
        self.snapshot = snapshot
        self.config = config if config is not None else DEFAULT_CONFIG
        if isinstance(stages, StageList):
            self.stages: Tuple[Stage, ...] = stages.stages
            self.build_diagnostics = stages.diagnostics
        else:
            self.stages = tuple(stages)
            self.build_diagnostics = ()

    def __len__(self) -> int:
        return len(self.stages)

    def __repr__(self):
        return f"PumpSchedule({len(self.stages)} stages, {self.total_volume:.3f} m³)"

    @classmethod
    def build(
        cls,
        snapshot: WellSnapshot,
        mode: SourceMode = SourceMode.FINAL_LAYERS,
        config: Optional[Config] = None,
    ) -> "PumpSchedule":
        """Build the stages of ``snapshot`` and bind them to it."""
        return cls(snapshot, build_stages(snapshot, mode, config), config)

    @property
    def geometry(self):
        return self.snapshot.geometry

    @property
    def total_volume(self) -> float:
        return sum(s.total_volume for s in self.stages)

    def display_index(self, stage_index: int) -> int:
        return min(max(stage_index, 0), max(len(self.stages) - 1, 0))

    def current_stage(self, stage_index: int) -> Optional[Stage]:
        if not self.stages:
            return None
        return self.stages[self.display_index(stage_index)]

    def pumped_volume(
        self,
        stage_index: int,
        progress: float,
        diagnostics: Optional[Diagnostics] = None,
    ) -> float:
        """
        Volume pumped of a stage at ``progress`` (fraction 0..1) [m³].

        Progress outside [0, 1] is clamped; a non-finite progress counts as 0
        and is recorded on ``diagnostics``.
        """
        stage = self.current_stage(stage_index)
        if stage is None:
            return 0.0
        if not np.isfinite(progress):
            diags = diagnostics if diagnostics is not None else Diagnostics(self.config)
            diags.record(INVALID_PROGRESS, f"progress {progress} treated as 0")
            return 0.0
        if stage.total_volume <= 0:
            return 0.0
        return min(max(progress, 0.0), 1.0) * stage.total_volume

    # -------------------------------------------------------------------------
    # Fluid columns
    # -------------------------------------------------------------------------
    def _initial_parcels(self, active: Fluid) -> Tuple[List[VolumeParcel], List[VolumeParcel]]:
        tol = self.config.VOLUME_TOL
        string_cap = self.geometry.string_capacity
        annulus_cap = self.geometry.annulus_capacity

        string: List[VolumeParcel] = []
        if not self.snapshot.string_initially_empty and string_cap > tol:
            string.append(VolumeParcel(string_cap, active, active.color))
        annulus: List[VolumeParcel] = []
        if annulus_cap > tol:
            annulus.append(VolumeParcel(annulus_cap, active, active.color))
        return string, annulus

    def _pump(
        self,
        string: List[VolumeParcel],
        annulus: List[VolumeParcel],
        expelled: List[VolumeParcel],
        parcel: VolumeParcel,
    ) -> Tuple[List[VolumeParcel], List[VolumeParcel]]:
        tol = self.config.VOLUME_TOL
        string, out_of_bit = push_to_top_and_overflow(
            string, parcel, self.geometry.string_capacity, tol
        )
        for p in out_of_bit:
            annulus, returns = push_to_bottom_and_overflow_top(
                annulus, p, self.geometry.annulus_capacity, tol
            )
            expelled.extend(returns)
        return string, annulus

    def stacks_for(
        self,
        stage_index: int,
        pumped_volume: float,
        diagnostics: Sequence[Diagnostic] = (),
    ) -> StackState:
        """
        Fluid columns after all earlier stages and ``pumped_volume`` of this one.

        Parameters
        ----------
        stage_index : int
            Current stage (clamped to the schedule)
        pumped_volume : float
            Volume pumped of the current stage [m³]
        diagnostics : sequence of Diagnostic, optional
            Already recorded diagnostics to carry on the result

        Returns
        -------
        StackState
            String and annulus columns, returns ledger and diagnostics
        """
        diags = Diagnostics(self.config)
        diags.extend(self.build_diagnostics)
        diags.extend(diagnostics)
        active = self.snapshot.active_fluid(diags)

        string, annulus = self._initial_parcels(active)
        expelled: List[VolumeParcel] = []

        if self.stages:
            idx = self.display_index(stage_index)
            for stage in self.stages[:idx]:
                string, annulus = self._pump(
                    string, annulus, expelled,
                    VolumeParcel(stage.total_volume, stage.fluid, stage.color),
                )

            current = self.stages[idx]
            volume = pumped_volume
            if not volume >= 0:
                diags.record(NEGATIVE_VOLUME, f"pumped volume {pumped_volume} treated as 0")
                volume = 0.0
            elif volume > current.total_volume + self.config.VOLUME_TOL:
                diags.record(
                    VOLUME_OVERFLOW,
                    f"pumped volume {pumped_volume:.4f} m³ exceeds stage '{current.name}' "
                    f"volume {current.total_volume:.4f} m³; clamped",
                )
                volume = current.total_volume
            string, annulus = self._pump(
                string, annulus, expelled,
                VolumeParcel(volume, current.fluid, current.color),
            )

        tol = self.config.SEGMENT_TOL
        return StackState(
            string=tuple(string_segments_from_parcels(string, self.geometry, tol)),
            annulus=tuple(annulus_segments_from_parcels(annulus, self.geometry, active, tol)),
            expelled=tuple(expelled),
            string_parcels=tuple(string),
            annulus_parcels=tuple(annulus),
            diagnostics=diags.freeze(),
        )

    def state_at(self, stage_index: int, progress: float) -> StackState:
        diags = Diagnostics(self.config)
        volume = self.pumped_volume(stage_index, progress, diags)
        return self.stacks_for(stage_index, volume, diags.freeze())

    def segments_at(self, progress: float, stage_index: int) -> Tuple[List[FluidSegment], List[FluidSegment]]:
        """(string segments, annulus segments) at a schedule position."""
        state = self.state_at(stage_index, progress)
        return list(state.string), list(state.annulus)

    def expelled_fluids(self, stage_index: int, pumped_volume: float) -> List[ExpelledFluid]:
        """
        Returns taken at surface so far, one entry per fluid.

        Sorted by volume, largest first; volumes below ``EXPELLED_TOL`` are
        not reported.
        """
        state = self.stacks_for(stage_index, pumped_volume)
        totals = {}
        for p in state.expelled:
            if p.key in totals:
                entry = totals[p.key]
                totals[p.key] = ExpelledFluid(entry.name, entry.volume + p.volume, entry.color, entry.fluid)
            else:
                totals[p.key] = ExpelledFluid(p.name, p.volume, p.color, p.fluid)

        out = [e for e in totals.values() if e.volume >= self.config.EXPELLED_TOL]
        return sorted(out, key=lambda e: e.volume, reverse=True)

    # -------------------------------------------------------------------------
    # Hydraulics
    # -------------------------------------------------------------------------
    def inputs_for_stage(self, stage_index: int, inputs: HydraulicsInputs) -> HydraulicsInputs:
        """
        Inputs completed from the schedule.

        The stage's own pump rate replaces ``inputs.pump_rate`` when the stage
        has one and ``use_stage_rate`` is on. A custom control depth left unset
        falls back to the snapshot's pressure depth.
        """
        if inputs.control_md is None and self.snapshot.pressure_depth_md is not None:
            inputs = replace(inputs, control_md=self.snapshot.pressure_depth_md)
        stage = self.current_stage(stage_index)
        if stage is not None and inputs.use_stage_rate and stage.pump_rate is not None:
            return inputs.with_rate(max(stage.pump_rate, 0.0))
        return inputs

    def hydraulics_for_current(
        self,
        stage_index: int,
        progress: float,
        inputs: Optional[HydraulicsInputs] = None,
    ) -> HydraulicsResult:
        """Pressures at the control depth at a schedule position."""
        return self.hydraulics_for_state(stage_index, self.state_at(stage_index, progress), inputs)

    def hydraulics_for_state(
        self,
        stage_index: int,
        state: StackState,
        inputs: Optional[HydraulicsInputs] = None,
    ) -> HydraulicsResult:
        """Pressures of an already built ``state`` of stage ``stage_index``."""
        if inputs is None:
            inputs = HydraulicsInputs(pump_rate=self.config.DEFAULT_PUMP_RATE)
        return evaluate_hydraulics(
            state,
            self.geometry,
            self.snapshot.tvd_sampler,
            self.inputs_for_stage(stage_index, inputs),
            self.config,
        )

    # -------------------------------------------------------------------------
    # Debugging
    # -------------------------------------------------------------------------
    def debug_trace(self, stage_index: int, samples: int = 5) -> List[str]:
        """
        Text trace of the stages and of the columns over one stage.

        Each line is also logged at DEBUG.
        """
        geom = self.geometry
        lines = [
            f"bit={geom.bit_md:.2f} m  string={geom.string_capacity:.4f} m³  "
            f"annulus={geom.annulus_capacity:.4f} m³",
        ]
        for i, st in enumerate(self.stages):
            lines.append(
                f"[{i}] {st.name}: {st.fluid.name} {st.total_volume:.4f} m³ "
                f"-> {st.side.value} (ρ={st.fluid.density:.0f})"
            )

        idx = self.display_index(stage_index)
        for progress in np.linspace(0.0, 1.0, max(samples, 2)):
            state = self.state_at(idx, float(progress))
            p_ann = hydrostatic_pressure(self.snapshot.tvd_sampler, state.annulus, geom.connection_md, self.config)
            string_desc = ", ".join(f"{s.name} {s.top_md:.1f}-{s.bottom_md:.1f}" for s in state.string)
            annulus_desc = ", ".join(f"{s.name} {s.top_md:.1f}-{s.bottom_md:.1f}" for s in state.annulus)
            lines.append(
                f"stage {idx} p={progress:.2f} pumped={self.pumped_volume(idx, float(progress)):.4f} m³ "
                f"returns={state.expelled_volume:.4f} m³ annulus_hydro={p_ann / 1e3:.1f} kPa"
            )
            lines.append(f"  string:  {string_desc}")
            lines.append(f"  annulus: {annulus_desc}")

        for line in lines:
            logger.debug("%s", line)
        return lines
