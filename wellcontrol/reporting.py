"""
Tabular views of schedules, fluid columns, returns and pressure sweeps.
"""

from typing import Iterable, Optional, Sequence

import numpy as np
import pandas as pd

from .geometry import Side, WellGeometry
from .hydraulics import HydraulicsInputs
from .simulation import ExpelledFluid, PumpSchedule
from .stack import StackState


def stage_table(schedule: PumpSchedule) -> pd.DataFrame:
    """One row per stage with cumulative pumped volume."""
    rows = []
    cumulative = 0.0
    for i, st in enumerate(schedule.stages):
        cumulative += st.total_volume
        rows.append({
            'stage': i,
            'name': st.name,
            'fluid': st.fluid.name,
            'density': st.fluid.density,
            'rheology': st.fluid.model.value,
            'side': st.side.value,
            'volume': st.total_volume,
            'cumulative_volume': cumulative,
            'pump_rate': st.pump_rate,
            'color': st.color,
        })
    return pd.DataFrame(rows, columns=[
        'stage', 'name', 'fluid', 'density', 'rheology', 'side',
        'volume', 'cumulative_volume', 'pump_rate', 'color',
    ])


def segments_table(stack: StackState, geometry: Optional[WellGeometry] = None) -> pd.DataFrame:
    """
    One row per fluid segment of both columns.

    Parameters
    ----------
    stack : StackState
        Fluid columns
    geometry : WellGeometry, optional
        When given, the volume of each segment is included

    Returns
    -------
    pd.DataFrame
        Columns: side, top_md, bottom_md, length, fluid, density, color
        (and volume)
    """
    rows = []
    for side in (Side.STRING, Side.ANNULUS):
        for seg in stack.segments(side):
            row = {
                'side': side.value,
                'top_md': seg.top_md,
                'bottom_md': seg.bottom_md,
                'length': seg.length,
                'fluid': seg.name,
                'density': seg.fluid.density if seg.fluid is not None else np.nan,
                'color': seg.color,
            }
            if geometry is not None:
                row['volume'] = geometry.profile(side).volume_between(seg.top_md, seg.bottom_md)
            rows.append(row)
    return pd.DataFrame(rows)


def expelled_table(expelled: Iterable[ExpelledFluid]) -> pd.DataFrame:
    """Returns by fluid, as given (largest first from ``expelled_fluids``)."""
    rows = [{'fluid': e.name, 'volume': e.volume, 'color': e.color} for e in expelled]
    return pd.DataFrame(rows, columns=['fluid', 'volume', 'color'])


def progress_sweep(
    schedule: PumpSchedule,
    stage_index: Optional[int] = None,
    inputs: Optional[HydraulicsInputs] = None,
    n_points: int = 11,
) -> pd.DataFrame:
    """
    Hydraulics over the progress of one stage, or of every stage.

    Each (stage, progress) point is evaluated independently of the others.

    Parameters
    ----------
    schedule : PumpSchedule
        Bound schedule
    stage_index : int, optional
        Stage to sweep (default: all stages in order)
    inputs : HydraulicsInputs, optional
        Hydraulics settings
    n_points : int
        Progress samples per stage, 0 to 1 inclusive

    Returns
    -------
    pd.DataFrame
        One row per point with pumped volume, cumulative volume, returns
        and the pressures at the control depth
    """
    if inputs is None:
        inputs = HydraulicsInputs(pump_rate=schedule.config.DEFAULT_PUMP_RATE)

    indices: Sequence[int]
    if stage_index is None:
        indices = range(len(schedule.stages))
    else:
        indices = [schedule.display_index(stage_index)]

    progresses = np.linspace(0.0, 1.0, max(n_points, 2))
    volumes_before = np.concatenate([[0.0], np.cumsum([s.total_volume for s in schedule.stages])])

    rows = []
    for idx in indices:
        stage = schedule.stages[idx]
        for p in progresses:
            pumped = schedule.pumped_volume(idx, float(p))
            state = schedule.stacks_for(idx, pumped)
            result = schedule.hydraulics_for_state(idx, state, inputs)
            rows.append({
                'stage': idx,
                'name': stage.name,
                'progress': float(p),
                'pumped_volume': pumped,
                'cumulative_volume': volumes_before[idx] + pumped,
                'returns_volume': state.expelled_volume,
                'bhp': result.bhp,
                'ecd': result.ecd,
                'sbp': result.sbp,
                'tcp': result.tcp,
                'annulus_friction': result.annulus_friction,
                'string_friction': result.string_friction,
                'u_tube_imbalance': result.u_tube_imbalance,
                'n_diagnostics': len(result.diagnostics),
            })
    return pd.DataFrame(rows)
