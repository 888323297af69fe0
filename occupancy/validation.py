"""
occupancy/validation.py - Input, Config and Integrity Validation

Input and config checks raise ConfigError before any allocation.
Integrity checks on a finished vector emit anomaly receipts and raise StopRule.
Pure functions with receipts.
"""

import math
import numbers
from typing import Optional, Tuple

import numpy as np

from receipts import emit_receipt, StopRule

from .constants import (
    MIN_ALPHABET_SIZE, MAX_ALPHABET_SIZE, RESCALE_BATCH, ZERO_POLICIES
)
from .types_config import EngineConfig


class ConfigError(ValueError):
    """Raised when the alphabet size or engine config cannot be run."""
    pass


# =============================================================================
# INPUT VALIDATION
# =============================================================================

def validate_alphabet_size(n) -> int:
    """
    Check that n is a usable alphabet size.

    Args:
        n: Candidate alphabet size

    Returns:
        int: n as a plain int

    Raises:
        ConfigError: n is not an integer, is below 1, or exceeds
            MAX_ALPHABET_SIZE
    """
    if isinstance(n, bool) or not isinstance(n, numbers.Integral):
        raise ConfigError(f"Alphabet size must be an integer, got {type(n).__name__}")
    n = int(n)
    if n < MIN_ALPHABET_SIZE:
        raise ConfigError(f"Alphabet size must be >= {MIN_ALPHABET_SIZE}, got {n}")
    if n > MAX_ALPHABET_SIZE:
        raise ConfigError(f"Alphabet size {n} exceeds maximum {MAX_ALPHABET_SIZE}")
    return n


def validate_magnitude(n: int, scale: float, norm: float, batch_rescale: bool) -> None:
    """
    Check that the rescaled mass stays inside double range for every layer.

    With batched rescaling up to RESCALE_BATCH-1 unscaled layers pile up on
    top of the running total before the next scale**8.

    Raises:
        ConfigError: scale or peak mass is not a finite positive double
    """
    if not (scale > 0.0 and math.isfinite(scale)):
        raise ConfigError(f"Scale factor {scale!r} for N={n} is not representable")
    headroom = RESCALE_BATCH - 1 if batch_rescale else 0
    try:
        peak = norm * float(n) ** headroom
    except OverflowError as e:
        raise ConfigError(f"N={n} overflows double range even after rescaling") from e
    if not (norm > 0.0 and math.isfinite(peak)):
        raise ConfigError(f"N={n} overflows double range even after rescaling")


def validate_config(config: EngineConfig) -> EngineConfig:
    """
    Check EngineConfig field values.

    Raises:
        ConfigError: On the first invalid field
    """
    if not isinstance(config, EngineConfig):
        raise ConfigError(f"Expected EngineConfig, got {type(config).__name__}")
    for flag in ("split_loop", "batch_rescale", "force_even_band", "record_band"):
        if not isinstance(getattr(config, flag), bool):
            raise ConfigError(f"{flag} must be a bool")
    if config.zero_policy not in ZERO_POLICIES:
        raise ConfigError(
            f"Invalid zero_policy '{config.zero_policy}'. Must be one of: {ZERO_POLICIES}"
        )
    interval = config.progress_interval
    if isinstance(interval, bool) or not isinstance(interval, int) or interval < 1:
        raise ConfigError(f"progress_interval must be a positive int, got {interval!r}")
    if not (0.0 < config.tolerance < 1.0):
        raise ConfigError(f"tolerance must be in (0, 1), got {config.tolerance!r}")
    return config


# =============================================================================
# SELF-CHECK
# =============================================================================

def relative_error(total: float, norm: float) -> float:
    """|total - norm| / total; inf when total is zero."""
    if total == 0.0:
        return math.inf
    return abs(total - norm) / abs(total)


def emit_self_check_receipt(n: int, total: float, norm: float, rel_error: float,
                            tolerance: float, passed: bool, variant: str) -> dict:
    """Emit self_check receipt."""
    return emit_receipt("self_check", {
        "n": n,
        "variant": variant,
        "total": total,
        "norm": norm,
        "relative_error": rel_error,
        "tolerance": tolerance,
        "passed": passed,
    })


def stoprule_divergence(n: int, total: float, norm: float, rel_error: float,
                        tolerance: float, check_receipt: Optional[dict] = None) -> None:
    """
    Stoprule for a summed mass that left the tolerance band.

    Raises:
        StopRule: Always raises after emitting the anomaly receipt. The
            exception carries check_receipt (when given) and the anomaly.
    """
    anomaly = emit_receipt("anomaly", {
        "metric": "distribution_total",
        "n": n,
        "baseline": norm,
        "delta": total - norm,
        "relative_error": rel_error,
        "tolerance": tolerance,
        "classification": "divergence",
        "action": "halt"
    })
    raise StopRule(
        f"Distribution mass diverged for N={n}: total {total!r} vs norm {norm!r} "
        f"(relative error {rel_error:.3e} >= {tolerance})",
        receipts=[r for r in (check_receipt, anomaly) if r is not None],
    )


def check_total(n: int, total: float, norm: float, tolerance: float,
                variant: str = "DEFAULT") -> Tuple[float, dict]:
    """
    Compare summed mass against the closed-form norm.

    Args:
        n: Alphabet size
        total: Summed mass of the final vector
        norm: Closed-form expected mass
        tolerance: Maximum relative error
        variant: Engine variant name for the receipt

    Returns:
        Tuple of (relative_error, self_check receipt)

    Raises:
        StopRule: relative error is not below tolerance. The failed
            self_check receipt travels on StopRule.receipts.
    """
    rel_error = relative_error(total, norm)
    passed = rel_error < tolerance
    receipt = emit_self_check_receipt(n, total, norm, rel_error, tolerance, passed, variant)
    if not passed:
        stoprule_divergence(n, total, norm, rel_error, tolerance, receipt)
    return rel_error, receipt


def check_band(dist: np.ndarray, first: int) -> None:
    """
    Every cell below the first populated variety must be exactly zero.

    Raises:
        StopRule: A cell below first-1 holds mass
    """
    below = dist[:max(first - 1, 0)]
    if np.any(below != 0.0):
        index = int(np.flatnonzero(below)[0])
        anomaly = emit_receipt("anomaly", {
            "metric": "band_lower_edge",
            "n": int(dist.shape[0]),
            "first": first,
            "index": index,
            "classification": "band_leak",
            "action": "halt"
        })
        raise StopRule(
            f"Mass below band: dist[{index}] != 0 with first={first}",
            receipts=[anomaly],
        )
