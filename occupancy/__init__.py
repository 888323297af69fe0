"""
occupancy - Distinct-Value Distribution Engine

Public API for the coupon-collector (occupancy) distribution: how many
distinct values appear among N uniform draws from an alphabet of N.
Flat, focused files. One file = one responsibility.
"""

# =============================================================================
# TYPES (Dataclasses)
# =============================================================================
from .types_config import (
    EngineConfig,
    VARIANT_DEFAULT,
    VARIANT_BRANCH_CHECKED,
    VARIANT_BATCHED,
    VARIANT_EVEN_BAND,
    VARIANT_EXACT_ZERO,
    VARIANT_ALL_FLAGS,
    VARIANTS,
    MANDATORY_VARIANTS,
)
from .types_state import EngineState
from .types_result import DistributionResult, DistributionSummary

# =============================================================================
# CONSTANTS
# =============================================================================
from .constants import (
    ZeroPolicy,
    SELF_CHECK_TOLERANCE,
    MAX_ALPHABET_SIZE,
    RESCALE_BATCH,
    PROGRESS_INTERVAL,
    RECEIPT_TYPES,
)

# =============================================================================
# CORE ENGINE
# =============================================================================
from .engine import (
    compute_distribution,
    run_variants,
    resolve_variant,
    fingerprint,
)
from .kernel import (
    initialize_state,
    run_layer,
    run_recurrence,
    zero_test,
)
from .scale import (
    compute_scale,
    compute_scale8,
    compute_norm,
    count_scaled_layers,
)

# =============================================================================
# VALIDATION
# =============================================================================
from .validation import (
    ConfigError,
    validate_alphabet_size,
    validate_config,
    check_total,
    check_band,
)

# =============================================================================
# SUMMARY
# =============================================================================
from .summary import (
    summarize,
    expected_distinct,
    per_cell_probabilities,
    max_relative_deviation,
)

# =============================================================================
# EXPORT
# =============================================================================
from .export import (
    result_to_dict,
    export_to_json,
    generate_report,
)

# =============================================================================
# PUBLIC API
# =============================================================================
__all__ = [
    # Types
    "EngineConfig",
    "EngineState",
    "DistributionResult",
    "DistributionSummary",
    # Variant presets
    "VARIANT_DEFAULT",
    "VARIANT_BRANCH_CHECKED",
    "VARIANT_BATCHED",
    "VARIANT_EVEN_BAND",
    "VARIANT_EXACT_ZERO",
    "VARIANT_ALL_FLAGS",
    "VARIANTS",
    "MANDATORY_VARIANTS",
    # Constants
    "ZeroPolicy",
    "SELF_CHECK_TOLERANCE",
    "MAX_ALPHABET_SIZE",
    "RESCALE_BATCH",
    "PROGRESS_INTERVAL",
    "RECEIPT_TYPES",
    # Core engine
    "compute_distribution",
    "run_variants",
    "resolve_variant",
    "fingerprint",
    "initialize_state",
    "run_layer",
    "run_recurrence",
    "zero_test",
    "compute_scale",
    "compute_scale8",
    "compute_norm",
    "count_scaled_layers",
    # Validation
    "ConfigError",
    "validate_alphabet_size",
    "validate_config",
    "check_total",
    "check_band",
    # Summary
    "summarize",
    "expected_distinct",
    "per_cell_probabilities",
    "max_relative_deviation",
    # Export
    "result_to_dict",
    "export_to_json",
    "generate_report",
]
