"""
occupancy/types_result.py - DistributionResult and DistributionSummary

Immutable containers handed back to callers.
Frozen dataclasses.
"""

import math
from dataclasses import dataclass
from typing import List, Tuple

import numpy as np

from .types_config import EngineConfig


@dataclass(frozen=True, eq=False)
class DistributionResult:
    """Immutable distribution result.

    dist is kept in engine scale: its sum approximates norm rather than the
    N**(N-1) outcome sequences it stands for.
    """
    n: int
    dist: np.ndarray
    first: int
    scale: float
    norm: float
    scaled_layers: int  # layers whose scale multiplication reached dist
    total: float
    relative_error: float
    band_trace: List[Tuple[int, int, int]]
    config: EngineConfig
    fingerprint: str

    def valid_band(self) -> np.ndarray:
        """Cells from the first populated variety to N."""
        return self.dist[self.first - 1:]

    def unscale_factor(self) -> float:
        """Factor turning engine-scale mass into outcome-sequence counts.

        Overflows to inf once N**(N-1) leaves double range (N > ~143).
        """
        exponent = -self.scaled_layers * math.log(self.scale)
        with np.errstate(over="ignore"):
            return float(np.exp(np.float64(exponent)))

    def counts(self) -> np.ndarray:
        """Mass in outcome-sequence units (sums to N**(N-1))."""
        factor = self.unscale_factor()
        with np.errstate(over="ignore", invalid="ignore"):
            scaled = self.dist * factor
        return np.where(self.dist == 0.0, 0.0, scaled)

    def probabilities(self) -> np.ndarray:
        """Per-cell probability, dist / norm."""
        return self.dist / self.norm


@dataclass(frozen=True)
class DistributionSummary:
    """Summary statistics of one distribution."""
    n: int
    first: int
    total: float
    norm: float
    expectation: float
    normalized_percentage: float
    outcomes: float
