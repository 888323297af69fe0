"""
occupancy/kernel.py - Layer Recurrence Kernel

Each layer is one more draw. A cell for variety v (index v-1) receives
mass from two places in the previous layer:

    draw a value already seen:   old[v-1] * v
    draw a value not yet seen:   old[v-2] * (N - (v-1))

The vector is updated in place in increasing index order. The previous
layer's value of the cell about to be overwritten is read one step ahead
into the carry (nextinfact), so writing new[v] never loses old[v] which the
next cell still needs. That keeps the triangular N x N table in O(N) space.

Cells below start-1 and above lastvar are structurally zero and are not
worked. The band [start, lastvar] known from the previous layer runs without
zero tests; the frontier past it tests every carried value and stops at the
first zero. A bottom cell whose write underflows to zero under the zero
policy is cleared and start moves past it, so start always names a cell
that holds mass.

Until a cell underflows, band parity and loop shape give bit-identical
vectors. After that they can move values by less than the smallest normal
double.

Pure functions over an explicit EngineState.
"""

import logging
from typing import Callable, Optional

import numpy as np

from .constants import RESCALE_BATCH, SUBNORMAL_CUTOFF, ZeroPolicy
from .scale import compute_scale8
from .types_config import EngineConfig
from .types_state import EngineState

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, int], None]


# =============================================================================
# ZERO POLICY
# =============================================================================

def _is_zero_exact(value) -> bool:
    return value == 0.0


def _is_zero_subnormal(value) -> bool:
    return abs(value) < SUBNORMAL_CUTOFF


def zero_test(policy: str) -> Callable[[float], bool]:
    """
    Return the zero predicate for a zero policy.

    "subnormal" treats underflowed cells as zero so the cutoff does not
    depend on how the platform handles denormals. "exact" only prunes 0.0
    and works a few more negligible cells.
    """
    if ZeroPolicy(policy) is ZeroPolicy.EXACT:
        return _is_zero_exact
    return _is_zero_subnormal


# =============================================================================
# STATE
# =============================================================================

def initialize_state(n: int, scale: float) -> EngineState:
    """
    Allocate the zeroed vector and seed the first draw.

    After the first draw exactly one value has been seen: dist[0] = 1.

    Args:
        n: Alphabet size
        scale: Per-layer scale factor

    Returns:
        EngineState at layer 0

    Raises:
        MemoryError: The vector cannot be allocated
    """
    dist = np.zeros(n, dtype=np.float64)
    dist[0] = 1.0
    return EngineState(
        dist=dist,
        opts=n,
        scale=scale,
        scale8=compute_scale8(scale),
        start=1,
        lastvar=1,
    )


def layer_factor(state: EngineState, config: EngineConfig, step: int) -> float:
    """Scale multiplier applied to every cell written in this layer."""
    if config.batch_rescale:
        return state.scale8 if step % RESCALE_BATCH == 0 else 1.0
    return state.scale


# =============================================================================
# ONE LAYER
# =============================================================================

def run_layer(state: EngineState, config: EngineConfig,
              is_zero: Callable[[float], bool]) -> None:
    """
    Advance the distribution by one draw, in place.

    Args:
        state: EngineState (mutated in place)
        config: EngineConfig selecting loop shape, cadence and parity
        is_zero: Zero predicate from zero_test()
    """
    dist = state.dist
    opts = state.opts
    step = state.step + 1
    factor = layer_factor(state, config, step)

    # Bottom edge: skip cells that have decayed to zero
    var = state.start
    nextinfact = dist[var - 1]
    dist[var - 1] = 0.0
    while var <= step and is_zero(nextinfact):
        nextinfact = dist[var]
        dist[var] = 0.0
        var += 1
    # Lowest populated variety only gains mass by repeating a seen value
    dist[var - 1] = nextinfact * var * factor
    start = var

    if config.split_loop:
        # Known non-zero band, no zero tests
        end = state.lastvar + 1
        for var in range(start, end):
            infact = nextinfact
            nextinfact = dist[var]
            dist[var] = (infact * (opts - var) + nextinfact * (var + 1)) * factor
        var = max(start, end)

    # Frontier: cells may have degraded to zero, stop at the first one
    for var in range(var, step + 1):
        infact = nextinfact
        nextinfact = dist[var]
        if is_zero(infact):
            dist[var] = 0.0
            break
        dist[var] = (infact * (opts - var) + nextinfact * (var + 1)) * factor
    else:
        var = step + 1

    lastvar = var - 1
    # Bottom cells can underflow on write; first must name a cell with mass
    while start <= lastvar and is_zero(dist[start - 1]):
        dist[start - 1] = 0.0
        start += 1

    if config.force_even_band:
        if start > 1:
            start -= start % 2
        if var < step:
            lastvar += var % 2

    state.start = start
    state.lastvar = lastvar
    state.step = step
    if config.record_band:
        state.band_trace.append((step, start, lastvar))


# =============================================================================
# ALL LAYERS
# =============================================================================

def run_recurrence(state: EngineState, config: EngineConfig,
                   progress: Optional[ProgressCallback] = None) -> int:
    """
    Run the remaining layers until N draws have been made.

    Args:
        state: EngineState from initialize_state (mutated in place)
        config: EngineConfig
        progress: Optional callback(step, start, lastvar), called every
            config.progress_interval layers. Side effect only.

    Returns:
        int: first, the 1-based variety where non-zero mass begins
    """
    is_zero = zero_test(config.zero_policy)
    interval = config.progress_interval
    while state.step < state.opts - 1:
        run_layer(state, config, is_zero)
        if state.step % interval == 0:
            logger.debug("Layer %d (%d .. %d)", state.step, state.start, state.lastvar)
            if progress is not None:
                progress(state.step, state.start, state.lastvar)
    return state.start
