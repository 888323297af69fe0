"""
occupancy/types_config.py - EngineConfig Dataclass and Variant Presets

Immutable configuration for distribution runs.
Frozen dataclass, no behavior.
"""

from dataclasses import dataclass

from .constants import PROGRESS_INTERVAL, SELF_CHECK_TOLERANCE


@dataclass(frozen=True)
class EngineConfig:
    """Engine configuration (immutable)."""
    # Branch-free pass over the known band, then a zero-checked frontier
    split_loop: bool = True
    # Multiply by scale**8 every 8th layer instead of scale every layer
    batch_rescale: bool = False
    # Widen band edges by one so the worked range has even bounds
    force_even_band: bool = False
    zero_policy: str = "subnormal"
    progress_interval: int = PROGRESS_INTERVAL
    tolerance: float = SELF_CHECK_TOLERANCE
    record_band: bool = True
    variant_name: str = "DEFAULT"


# =============================================================================
# VARIANT PRESETS
# =============================================================================

VARIANT_DEFAULT = EngineConfig(variant_name="DEFAULT")

VARIANT_BRANCH_CHECKED = EngineConfig(
    split_loop=False,
    variant_name="BRANCH_CHECKED"
)

VARIANT_BATCHED = EngineConfig(
    batch_rescale=True,
    variant_name="BATCHED"
)

VARIANT_EVEN_BAND = EngineConfig(
    force_even_band=True,
    variant_name="EVEN_BAND"
)

VARIANT_EXACT_ZERO = EngineConfig(
    zero_policy="exact",
    variant_name="EXACT_ZERO"
)

VARIANT_ALL_FLAGS = EngineConfig(
    split_loop=True,
    batch_rescale=True,
    force_even_band=True,
    zero_policy="subnormal",
    variant_name="ALL_FLAGS"
)

VARIANTS = {
    config.variant_name: config
    for config in (
        VARIANT_DEFAULT,
        VARIANT_BRANCH_CHECKED,
        VARIANT_BATCHED,
        VARIANT_EVEN_BAND,
        VARIANT_EXACT_ZERO,
        VARIANT_ALL_FLAGS,
    )
}

# =============================================================================
# MANDATORY VARIANTS LIST (every one is checked against the oracles)
# =============================================================================

MANDATORY_VARIANTS = [
    "DEFAULT",
    "BRANCH_CHECKED",
    "BATCHED",
    "EVEN_BAND",
    "EXACT_ZERO",
    "ALL_FLAGS",
]
