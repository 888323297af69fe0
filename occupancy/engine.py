"""
occupancy/engine.py - Distribution Engine Entry Points

compute_distribution runs one complete computation for alphabet size N:
validate, allocate, run N-1 layers, self-check, emit a receipt.
run_variants runs the same N under several engine configs.

Pure functions with receipts.
"""

import logging
from typing import Dict, Iterable, List, Optional

import numpy as np

from receipts import StopRule, dual_hash, emit_receipt

from .kernel import ProgressCallback, initialize_state, run_recurrence
from .scale import compute_norm, compute_scale, count_scaled_layers
from .types_config import EngineConfig, VARIANTS, VARIANT_DEFAULT, MANDATORY_VARIANTS
from .types_result import DistributionResult
from .validation import (
    ConfigError, check_band, check_total, validate_alphabet_size,
    validate_config, validate_magnitude
)

logger = logging.getLogger(__name__)


def fingerprint(dist: np.ndarray) -> str:
    """dual_hash of the raw vector bytes; equal only for bit-identical output."""
    return dual_hash(np.ascontiguousarray(dist, dtype=np.float64).tobytes())


def emit_distribution_receipt(result: DistributionResult) -> dict:
    """Emit distribution_run receipt."""
    config = result.config
    return emit_receipt("distribution_run", {
        "n": result.n,
        "variant": config.variant_name,
        "split_loop": config.split_loop,
        "batch_rescale": config.batch_rescale,
        "force_even_band": config.force_even_band,
        "zero_policy": config.zero_policy,
        "first": result.first,
        "scale": result.scale,
        "total": result.total,
        "norm": result.norm,
        "relative_error": result.relative_error,
        "fingerprint": result.fingerprint,
    })


def compute_distribution(
    n: int,
    config: Optional[EngineConfig] = None,
    progress: Optional[ProgressCallback] = None,
    ledger: Optional[List[dict]] = None,
) -> DistributionResult:
    """
    Compute the distribution of distinct values among N uniform draws from N.

    Args:
        n: Alphabet size and number of draws (>= 1)
        config: EngineConfig (defaults to VARIANT_DEFAULT)
        progress: Optional callback(step, start, lastvar) for progress display
        ledger: Optional list that receives the self_check and
            distribution_run receipts, or the self_check and anomaly
            receipts of a failed check

    Returns:
        DistributionResult with the final vector in engine scale

    Raises:
        ConfigError: Invalid n or config; nothing is allocated
        StopRule: Summed mass diverged from the closed-form norm, or mass
            leaked below the band
        MemoryError: The vector cannot be allocated
    """
    config = validate_config(config if config is not None else VARIANT_DEFAULT)
    n = validate_alphabet_size(n)

    scale = compute_scale(n)
    norm = compute_norm(n, scale, config.batch_rescale)
    validate_magnitude(n, scale, norm, config.batch_rescale)

    state = initialize_state(n, scale)
    first = run_recurrence(state, config, progress)
    dist = state.dist

    total = float(np.sum(dist[first - 1:]))
    try:
        check_band(dist, first)
        rel_error, check_receipt = check_total(
            n, total, norm, config.tolerance, config.variant_name
        )
    except StopRule as e:
        if ledger is not None:
            ledger.extend(e.receipts)
        raise

    result = DistributionResult(
        n=n,
        dist=dist,
        first=first,
        scale=scale,
        norm=norm,
        scaled_layers=count_scaled_layers(n, config.batch_rescale),
        total=total,
        relative_error=rel_error,
        band_trace=state.band_trace,
        config=config,
        fingerprint=fingerprint(dist),
    )
    run_receipt = emit_distribution_receipt(result)
    if ledger is not None:
        ledger.append(check_receipt)
        ledger.append(run_receipt)

    logger.info(
        "N=%d variant=%s first=%d total=%.6g norm=%.6g rel_error=%.3e",
        n, config.variant_name, first, total, norm, rel_error
    )
    return result


def resolve_variant(name: str) -> EngineConfig:
    """
    Look up a preset by name (case-insensitive).

    Raises:
        ConfigError: Unknown variant name
    """
    key = name.upper()
    if key not in VARIANTS:
        raise ConfigError(f"Unknown variant '{name}'. Must be one of: {sorted(VARIANTS)}")
    return VARIANTS[key]


def run_variants(n: int, variants: Iterable[str] = MANDATORY_VARIANTS,
                 ledger: Optional[List[dict]] = None) -> Dict[str, DistributionResult]:
    """
    Run the same N under several engine variants.

    Args:
        n: Alphabet size
        variants: Preset names
        ledger: Optional receipt ledger shared by all runs

    Returns:
        dict mapping variant name to its DistributionResult
    """
    return {
        name: compute_distribution(n, resolve_variant(name), ledger=ledger)
        for name in variants
    }
