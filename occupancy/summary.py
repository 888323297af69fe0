"""
occupancy/summary.py - Summary Statistics

Reductions over a finished DistributionResult: total mass, expected number
of distinct values, normalized percentage, per-cell probabilities.
Pure functions, no state.
"""

import math
from typing import Sequence

import numpy as np

from .types_result import DistributionResult, DistributionSummary


def summarize(result: DistributionResult) -> DistributionSummary:
    """
    Derive summary statistics from a distribution.

    total       = sum(dist[v]) over the valid band
    expectation = sum((v+1) * dist[v]) / total
    percentage  = 100 * expectation / N

    Args:
        result: DistributionResult from compute_distribution

    Returns:
        DistributionSummary
    """
    band = result.valid_band()
    varieties = np.arange(result.first, result.n + 1, dtype=np.float64)
    total = float(np.sum(band))
    expectation = float(np.dot(varieties, band)) / total
    with np.errstate(over="ignore"):
        outcomes = float(total * result.unscale_factor())
    return DistributionSummary(
        n=result.n,
        first=result.first,
        total=total,
        norm=result.norm,
        expectation=expectation,
        normalized_percentage=100.0 * expectation / result.n,
        outcomes=outcomes,
    )


def expected_distinct(n: int) -> float:
    """
    Analytic expected number of distinct values, N * (1 - (1 - 1/N)**N).

    Each value is missed by all N draws with probability (1 - 1/N)**N.
    """
    if n <= 1:
        return float(n)
    return n * -math.expm1(n * math.log1p(-1.0 / n))


def per_cell_probabilities(result: DistributionResult) -> np.ndarray:
    """Probabilities of the valid band, dist[v] / norm for v >= first-1."""
    return result.valid_band() / result.norm


def max_relative_deviation(result: DistributionResult, reference: Sequence[float]) -> float:
    """
    Largest per-cell relative deviation from reference outcome counts.

    Cells where the reference is zero must be zero in the result; any mass
    there counts as a deviation of 1.0.

    Args:
        result: DistributionResult in engine scale
        reference: Outcome-sequence counts per variety, length N

    Returns:
        float: max |counts - reference| / reference over populated cells
    """
    counts = result.counts()
    ref = np.asarray(reference, dtype=np.float64)
    if ref.shape != counts.shape:
        raise ValueError(f"Reference has shape {ref.shape}, expected {counts.shape}")
    populated = ref != 0.0
    deviation = 0.0
    if np.any(populated):
        deviation = float(np.max(np.abs(counts[populated] - ref[populated]) / ref[populated]))
    if np.any(counts[~populated] != 0.0):
        deviation = max(deviation, 1.0)
    return deviation
