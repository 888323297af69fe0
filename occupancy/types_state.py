"""
occupancy/types_state.py - EngineState Dataclass

Mutable per-run state of the recurrence.
Dataclass for state, no hidden globals.
"""

from dataclasses import dataclass, field
from typing import List, Tuple

import numpy as np


@dataclass
class EngineState:
    """State of one distribution computation.

    dist holds the unnormalized mass for "exactly v+1 distinct values" at
    index v. Between layers only [start-1, lastvar] may be non-zero; every
    other cell is exactly zero.
    """
    dist: np.ndarray
    opts: int  # alphabet size N
    scale: float
    scale8: float = 1.0
    start: int = 1  # 1-based variety of the lowest populated cell
    lastvar: int = 1  # index of the highest cell worked branch-free
    step: int = 0  # layers completed
    band_trace: List[Tuple[int, int, int]] = field(default_factory=list)
