"""
Shared fixtures: the 800 m vertical well used throughout the tests.
"""

import os
import sys

import matplotlib
matplotlib.use("Agg")

import numpy as np
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from wellcontrol import (
    AnnulusSection,
    Fluid,
    Newtonian,
    ProgramStage,
    StringSection,
    WellGeometry,
    WellSnapshot,
)

STRING_ID = 0.095
STRING_OD = 0.127
HOLE_ID = 0.244
TD = 800.0

STRING_AREA = np.pi * STRING_ID ** 2 / 4.0
ANNULUS_AREA = np.pi * (HOLE_ID ** 2 - STRING_OD ** 2) / 4.0


@pytest.fixture
def geometry():
    return WellGeometry(
        [StringSection("DP", 0.0, TD, inner_diameter=STRING_ID, outer_diameter=STRING_OD)],
        [AnnulusSection("Casing", 0.0, TD, inner_diameter=HOLE_ID, outer_diameter=STRING_OD)],
    )


@pytest.fixture
def active():
    return Fluid("Active", 1260.0, Newtonian(0.02), color="#8b7355", id="active")


@pytest.fixture
def heavy():
    return Fluid("Heavy", 1855.0, Newtonian(0.03), color="#b22222", id="heavy")


@pytest.fixture
def spacer():
    return Fluid("Spacer", 1100.0, Newtonian(0.01), color="#4682b4", id="spacer")


@pytest.fixture
def slug_snapshot(geometry, active, heavy):
    """Well full of Active with a single 5 m³ Heavy stage."""
    return WellSnapshot(
        geometry=geometry,
        fluids=(active, heavy),
        active_fluid_id="active",
        program=(ProgramStage("Heavy", 5.0, "heavy"),),
    )
