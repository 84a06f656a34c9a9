#!/usr/bin/env python
"""
Quick demonstration of the pump-schedule engine.

Pumps a heavy slug down an 800 m vertical well and reports the fluid
columns, returns and circulating pressures along the way.
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import matplotlib
matplotlib.use('Agg')

from wellcontrol import (
    AnnulusSection,
    Fluid,
    HydraulicsInputs,
    Newtonian,
    ProgramStage,
    PumpSchedule,
    SourceMode,
    StringSection,
    WellGeometry,
    WellSnapshot,
    max_pump_rate_for_ecd,
)
from wellcontrol.hydraulics import print_hydraulics_summary
from wellcontrol.plots import plot_progress_sweep, plot_well_snapshot
from wellcontrol.reporting import expelled_table, progress_sweep, stage_table


def main():
    print("=" * 70)
    print("PUMP SCHEDULE ENGINE - QUICK DEMO")
    print("=" * 70)

    # 1. Well and fluids
    print("\n1. Setting up the well...")
    geometry = WellGeometry(
        [StringSection("DP", 0.0, 800.0, inner_diameter=0.095, outer_diameter=0.127)],
        [AnnulusSection("Casing", 0.0, 800.0, inner_diameter=0.244, outer_diameter=0.127)],
    )
    active = Fluid.from_fann("Active", 1260.0, dial600=48.0, dial300=30.0, id="active", color="#8b7355")
    heavy = Fluid("Heavy", 1855.0, Newtonian(0.03), id="heavy", color="#b22222")
    print(f"   {geometry}")
    print(f"   Active: {active.density:.0f} kg/m³, {active.rheology}")
    print(f"   Heavy:  {heavy.density:.0f} kg/m³, {heavy.rheology}")

    snapshot = WellSnapshot(
        geometry=geometry,
        fluids=(active, heavy),
        active_fluid_id="active",
        program=(
            ProgramStage("Heavy slug", 5.0, "heavy", order_index=0),
            ProgramStage("Displace", 3.0, "active", pump_rate=0.8, order_index=1),
        ),
    )

    # 2. Schedule
    print("\n2. Building the pump program...")
    schedule = PumpSchedule.build(snapshot, SourceMode.PROGRAM)
    print(stage_table(schedule).to_string(index=False))

    # 3. Columns and returns after the slug
    print("\n3. After pumping the slug...")
    state = schedule.state_at(0, 1.0)
    for side, segs in (("String", state.string), ("Annulus", state.annulus)):
        for seg in segs:
            print(f"   {side:<8}{seg.name:<10}{seg.top_md:8.1f} - {seg.bottom_md:8.1f} m")
    print(expelled_table(schedule.expelled_fluids(0, schedule.pumped_volume(0, 1.0))).to_string(index=False))

    # 4. Hydraulics
    print("\n4. Hydraulics...")
    inputs = HydraulicsInputs(pump_rate=0.5)
    result = schedule.hydraulics_for_current(0, 1.0, inputs)
    print_hydraulics_summary(result)

    q_max = max_pump_rate_for_ecd(state, geometry, snapshot.tvd_sampler, inputs, ecd_limit=1300.0)
    print(f"\n   Max pump rate for ECD <= 1300 kg/m³: {q_max:.3f} m³/min")

    # 5. Sweep and plots
    print("\n5. Sweeping the schedule...")
    sweep = progress_sweep(schedule, inputs=inputs, n_points=6)
    print(sweep[['stage', 'progress', 'cumulative_volume', 'bhp', 'ecd']].to_string(index=False))

    fig1 = plot_well_snapshot(state, geometry, title="After heavy slug")
    fig2 = plot_progress_sweep(sweep)
    fig1.savefig('well_snapshot.png', dpi=120)
    fig2.savefig('progress_sweep.png', dpi=120)
    print("\n   Saved well_snapshot.png and progress_sweep.png")

    print("\n" + "=" * 70)
    print("DEMO COMPLETE")
    print("=" * 70)


if __name__ == "__main__":
    main()
