"""
chains.py - Reference Recursion Oracle

Walks the full decision tree of draws without memoization. After the first
draw every further draw has two outcomes: repeat one of the `variety` values
already seen, or hit one of the `N - variety` unseen ones. Each leaf adds
its path weight to the distribution.

Exponential in N (2**(N-1) leaves); only for validating the engine at
small N.
"""

import math
from typing import List

from occupancy.constants import MAX_REFERENCE_N
from occupancy.validation import ConfigError, validate_alphabet_size


# =============================================================================
# CORE FUNCTION 1: freq_one_step
# =============================================================================

def freq_one_step(dist: List[float], infact: float, variety: int, step: int,
                  opts: int) -> None:
    """
    Accumulate the subtree below one node into dist.

    Args:
        dist: Output counts, index v-1 for variety v (mutated)
        infact: Number of paths leading to this node
        variety: Distinct values seen so far
        step: Draws made so far (recursion depth)
        opts: Alphabet size N
    """
    same = variety
    othr = opts - variety
    if step < opts - 1:
        freq_one_step(dist, infact * same, variety, step + 1, opts)
        freq_one_step(dist, infact * othr, variety + 1, step + 1, opts)
    else:
        dist[variety - 1] += infact * same
        dist[variety] += infact * othr


# =============================================================================
# CORE FUNCTION 2: reference_distribution
# =============================================================================

def reference_distribution(n: int) -> List[float]:
    """
    Outcome-sequence counts per variety by exhaustive tree walk.

    Args:
        n: Alphabet size (1 <= n <= MAX_REFERENCE_N)

    Returns:
        list of N floats; entry v-1 counts sequences with exactly v distinct
        values (first draw fixed), summing to N**(N-1)

    Raises:
        ConfigError: n invalid or too large to walk
    """
    n = validate_alphabet_size(n)
    if n > MAX_REFERENCE_N:
        raise ConfigError(f"Reference recursion limited to N <= {MAX_REFERENCE_N}, got {n}")
    if n == 1:
        return [1.0]
    dist = [0.0] * n
    freq_one_step(dist, 1.0, 1, 1, n)
    return dist


def reference_percentage(n: int) -> float:
    """Expected distinct values as a percentage of N, from the tree walk."""
    dist = reference_distribution(n)
    total = math.fsum(dist)
    expectation = math.fsum((ix + 1) * d for ix, d in enumerate(dist))
    return 100.0 * expectation / total / n
