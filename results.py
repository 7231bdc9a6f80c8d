# results.py

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

import numpy as np


class TrialStatus(Enum):
    LOCALIZED = "localized"
    EXHAUSTED = "exhausted"            # candidate set emptied or iteration cap hit
    CAPTURED = "captured"
    NON_CONVERGENT = "non_convergent"  # tracking cycle cap hit without capture


@dataclass
class LocalizationResult:
    """
    Outcome of one localization run.

    `position` is the resolved cell (None when exhausted). `candidate_history`
    holds the candidate-set size after the initial scan and after every
    move/scan iteration.
    """
    status: TrialStatus
    position: Optional[int]
    steps: int
    candidate_history: List[int] = field(default_factory=list)

    @property
    def localized(self):
        return self.status is TrialStatus.LOCALIZED


@dataclass
class TrackingResult:
    status: TrialStatus
    steps: int
    cycles: int
    position: int

    @property
    def captured(self):
        return self.status is TrialStatus.CAPTURED


@dataclass
class TrialResult:
    """One full trial: localization followed (when it succeeded) by tracking."""
    localization: LocalizationResult
    tracking: Optional[TrackingResult] = None
    attempts: int = 1

    @property
    def steps(self):
        steps = self.localization.steps
        if self.tracking is not None:
            steps += self.tracking.steps
        return steps

    @property
    def completed(self):
        return self.tracking is not None and self.tracking.captured


@dataclass(frozen=True)
class Snapshot:
    """
    Read-only view of a component for rendering. Arrays are copies with the
    writeable flag cleared; `values` is whatever per-cell integer the
    component tracks (neighbour counts or signatures).
    """
    open_map: np.ndarray
    agent_index: Optional[int] = None
    values: Optional[np.ndarray] = None
    belief: Optional[np.ndarray] = None
    target_index: Optional[int] = None
    candidates: Optional[List[int]] = None

    @staticmethod
    def frozen(array):
        if array is None:
            return None
        out = np.array(array, copy=True)
        out.flags.writeable = False
        return out
