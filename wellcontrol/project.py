"""
Read-only snapshot of one well project.

Everything the engine needs (geometry, fluids, survey, final layers and pump
program) is gathered into a frozen ``WellSnapshot`` before a run, so the
simulation and hydraulics functions stay pure.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from .config import Config, DEFAULT_CONFIG
from .diagnostics import Diagnostics, MISSING_FLUID
from .geometry import AnnulusSection, StringSection, TvdSampler, WellGeometry
from .rheology import Fluid, default_fluid
from .schedule import FinalFluidLayer, ProgramStage


@dataclass(frozen=True)
class WellSnapshot:
    """
    Inputs of one pump-schedule evaluation.

    Attributes
    ----------
    geometry : WellGeometry
        String and annulus sections
    fluids : tuple of Fluid
        Fluids referenced by id (``Fluid.key``)
    active_fluid_id : str, optional
        Fluid initially filling the well
    tvd_sampler : TvdSampler
        MD→TVD mapping (vertical when empty)
    final_layers : tuple of FinalFluidLayer
        Target end state for final-layers mode
    program : tuple of ProgramStage
        Explicit pump program
    string_initially_empty : bool
        String starts air-filled instead of full of active fluid
    pressure_depth_md : float, optional
        Custom control depth [m] used when the hydraulics inputs leave
        ``control_md`` unset
    """
    geometry: WellGeometry
    fluids: Tuple[Fluid, ...] = ()
    active_fluid_id: Optional[str] = None
    tvd_sampler: TvdSampler = field(default_factory=TvdSampler)
    final_layers: Tuple[FinalFluidLayer, ...] = ()
    program: Tuple[ProgramStage, ...] = ()
    string_initially_empty: bool = False
    pressure_depth_md: Optional[float] = None

    def fluid_by_id(self, fluid_id: Optional[str]) -> Optional[Fluid]:
        if fluid_id is None:
            return None
        for fluid in self.fluids:
            if fluid.key == fluid_id:
                return fluid
        return None

    def active_fluid(self, diagnostics: Optional[Diagnostics] = None) -> Fluid:
        """The active fluid, or the neutral default when it cannot be found."""
        fluid = self.fluid_by_id(self.active_fluid_id)
        if fluid is not None:
            return fluid
        diags = diagnostics if diagnostics is not None else Diagnostics()
        diags.record(
            MISSING_FLUID,
            f"active fluid '{self.active_fluid_id}' not found; using the neutral default fluid",
        )
        return default_fluid(diags.config)

    def resolve_fluid(self, fluid_id: Optional[str], diagnostics: Optional[Diagnostics] = None) -> Fluid:
        """
        Look a fluid up, falling back to the active fluid, then to the default.

        Every substitution is recorded on ``diagnostics``.
        """
        fluid = self.fluid_by_id(fluid_id)
        if fluid is not None:
            return fluid
        diags = diagnostics if diagnostics is not None else Diagnostics()
        diags.record(MISSING_FLUID, f"fluid '{fluid_id}' not found; using the active fluid")
        return self.active_fluid(diags)

    def tvd(self, md):
        return self.tvd_sampler.tvd(md)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], config: Optional[Config] = None) -> "WellSnapshot":
        """
        Assemble a snapshot from plain records (as loaded from JSON).

        Expected keys: ``string_sections``, ``annulus_sections``, ``fluids``,
        ``active_fluid_id``, ``survey`` (list of {md, tvd}), ``final_layers``,
        ``program``, ``string_initially_empty``, ``pressure_depth_md``. All are
        optional except the sections needed to describe the well.
        """
        if config is None:
            config = DEFAULT_CONFIG

        def _section(cls_, d):
            return cls_(
                name=str(d.get("name", "")),
                top_md=float(d["top_md"]),
                length=float(d["length"]),
                inner_diameter=float(d["inner_diameter"]),
                outer_diameter=float(d.get("outer_diameter", 0.0)),
                roughness=float(d.get("roughness", config.DEFAULT_ROUGHNESS)),
            )

        geometry = WellGeometry(
            [_section(StringSection, d) for d in data.get("string_sections", [])],
            [_section(AnnulusSection, d) for d in data.get("annulus_sections", [])],
        )
        depth = data.get("pressure_depth_md")
        return cls(
            geometry=geometry,
            fluids=tuple(Fluid.from_dict(d, config) for d in data.get("fluids", [])),
            active_fluid_id=data.get("active_fluid_id"),
            tvd_sampler=TvdSampler.from_stations(data.get("survey", [])),
            final_layers=tuple(FinalFluidLayer.from_dict(d) for d in data.get("final_layers", [])),
            program=tuple(ProgramStage.from_dict(d) for d in data.get("program", [])),
            string_initially_empty=bool(data.get("string_initially_empty", False)),
            pressure_depth_md=None if depth is None else float(depth),
        )
