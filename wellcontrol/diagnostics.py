"""
Diagnostic side channel for degenerate numerical states.

The engine never raises for out-of-range numeric inputs during a simulation
run: a missing fluid, a control depth outside the geometry or a stage volume
that overflows every compartment all resolve to zero or default values so the
live view keeps rendering. Each such substitution is recorded here instead of
being swallowed, emitted as a ``DegenerateStateWarning`` and logged at DEBUG.
"""

import logging
import warnings
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .config import Config, DEFAULT_CONFIG

logger = logging.getLogger(__name__)


class DegenerateStateWarning(RuntimeWarning):
    """Emitted when the engine substitutes a default for a degenerate input."""


# Diagnostic codes
MISSING_FLUID = "missing-fluid"
EMPTY_SCHEDULE = "empty-schedule"
INVALID_PROGRESS = "invalid-progress"
VOLUME_OVERFLOW = "volume-overflow"
NEGATIVE_VOLUME = "negative-volume"
CONTROL_DEPTH_OUT_OF_RANGE = "control-depth-out-of-range"
ZERO_FLOW_AREA = "zero-flow-area"
ZERO_TVD = "zero-tvd"
EMPTY_LAYER = "empty-layer"
UNCOVERED_INTERVAL = "uncovered-interval"
INVALID_INPUT = "invalid-input"


@dataclass(frozen=True)
class Diagnostic:
    """
    A single recorded degenerate state.

    Attributes
    ----------
    code : str
        Machine-readable code (one of the module-level constants)
    message : str
        Human-readable description
    """
    code: str
    message: str

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class Diagnostics:
    """
    Collector of diagnostics raised while producing one result.

    Parameters
    ----------
    config : Config, optional
        Configuration (controls warning emission)
    """

    def __init__(self, config: Optional[Config] = None):
        self.config = config if config is not None else DEFAULT_CONFIG
        self._records: List[Diagnostic] = []

    def record(self, code: str, message: str) -> Diagnostic:
        """Record a diagnostic, warn and log it."""
        diag = Diagnostic(code, message)
        self._records.append(diag)
        logger.debug("%s", diag)
        if self.config.EMIT_WARNINGS:
            warnings.warn(str(diag), DegenerateStateWarning, stacklevel=3)
        return diag

    def extend(self, diagnostics) -> None:
        """Adopt diagnostics already recorded (and warned) elsewhere."""
        self._records.extend(diagnostics)

    def has(self, code: str) -> bool:
        return any(d.code == code for d in self._records)

    def freeze(self) -> Tuple[Diagnostic, ...]:
        return tuple(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self):
        return iter(self._records)
