"""
occupancy/constants.py - Engine Constants

All constants for the occupancy distribution engine. Centralized for tuning.
Pure data, no behavior.
"""

import sys
from enum import Enum

# =============================================================================
# SELF-CHECK TOLERANCE
# =============================================================================

SELF_CHECK_TOLERANCE = 0.001  # 0.1% relative error between summed mass and norm

# =============================================================================
# INPUT BOUNDS
# =============================================================================

MIN_ALPHABET_SIZE = 1
MAX_ALPHABET_SIZE = 2**32 - 1  # 32-bit layer/variety counters

# =============================================================================
# RESCALING
# =============================================================================

RESCALE_BATCH = 8  # Batched variant multiplies by scale**8 every 8th layer

# =============================================================================
# PROGRESS REPORTING
# =============================================================================

PROGRESS_INTERVAL = 1024  # Layers between progress reports

# =============================================================================
# ZERO DETECTION
# =============================================================================

# Smallest positive normal double; anything below is subnormal or zero
SUBNORMAL_CUTOFF = sys.float_info.min


class ZeroPolicy(Enum):
    """How the kernel decides a carried cell value is zero."""
    SUBNORMAL = "subnormal"  # 0.0 and subnormals are zero
    EXACT = "exact"  # only 0.0 is zero


ZERO_POLICIES = [p.value for p in ZeroPolicy]

# =============================================================================
# ORACLE LIMITS
# =============================================================================

MAX_REFERENCE_N = 20  # Tree walk visits 2**(N-1) leaves
MAX_ENUMERATION_N = 8  # Enumerator walks N**(N-1) tuples
MAX_CLOSED_FORM_N = 1000  # Stirling triangle is O(N**2) big-integer operations

# =============================================================================
# RECEIPT TYPES
# =============================================================================

RECEIPT_TYPES = [
    "distribution_run",
    "self_check",
    "anomaly",
    "crosscheck",
    "coverage_run",
    "enumeration_run",
]
