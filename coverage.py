"""
coverage.py - Monte Carlo Coverage Sampler

Draw N integer random numbers < N and measure how much of the space
0..N-1 they cover. Repeating the experiment converges on the expected
coverage the engine computes exactly; a Student-t interval says how close
the run should be.

Pure functions with receipts.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
from scipy import stats

from receipts import emit_receipt

from occupancy.validation import ConfigError, validate_alphabet_size


# =============================================================================
# CONSTANTS
# =============================================================================

DEFAULT_REPETITIONS = 1
DEFAULT_CONFIDENCE = 0.95
DEFAULT_BIT_GENERATOR = "PCG64"

BIT_GENERATORS = {
    "PCG64": np.random.PCG64,
    "MT19937": np.random.MT19937,
    "PHILOX": np.random.Philox,
    "SFC64": np.random.SFC64,
}


@dataclass(frozen=True, eq=False)
class CoverageResult:
    """Empirical coverage over repeated experiments."""
    n: int
    repetitions: int
    coverages: np.ndarray  # fraction of 0..N-1 hit, one per repetition
    mean_percentage: float
    std_error: float  # standard error of mean_percentage
    ci_low: float
    ci_high: float
    confidence: float
    bit_generator: str
    seed: Optional[int]

    def contains(self, percentage: float) -> bool:
        """True if percentage lies inside the confidence interval."""
        return self.ci_low <= percentage <= self.ci_high


# =============================================================================
# CORE FUNCTION 1: make_generator
# =============================================================================

def make_generator(bit_generator: str = DEFAULT_BIT_GENERATOR,
                   seed: Optional[int] = None) -> np.random.Generator:
    """
    Build a numpy Generator on the named bit generator.

    Raises:
        ConfigError: Unknown bit generator name
    """
    key = bit_generator.upper()
    if key not in BIT_GENERATORS:
        raise ConfigError(
            f"Unknown bit generator '{bit_generator}'. Must be one of: {sorted(BIT_GENERATORS)}"
        )
    return np.random.Generator(BIT_GENERATORS[key](seed))


# =============================================================================
# CORE FUNCTION 2: draw_coverage
# =============================================================================

def draw_coverage(n: int, rng: np.random.Generator) -> int:
    """
    One experiment: draw N values below N and count the distinct ones.

    Args:
        n: Alphabet size
        rng: numpy Generator

    Returns:
        int: Number of distinct values drawn
    """
    seen = np.zeros(n, dtype=bool)
    seen[rng.integers(0, n, size=n)] = True
    return int(np.count_nonzero(seen))


# =============================================================================
# CORE FUNCTION 3: confidence_interval
# =============================================================================

def confidence_interval(samples: np.ndarray,
                        confidence: float = DEFAULT_CONFIDENCE) -> Tuple[float, float, float]:
    """
    Student-t interval for the mean of samples.

    Args:
        samples: 1-D sample array
        confidence: Two-sided confidence level

    Returns:
        Tuple of (std_error, low, high); nan bounds for a single sample
    """
    mean = float(np.mean(samples))
    if samples.size < 2:
        return float("nan"), float("nan"), float("nan")
    sem = float(stats.sem(samples))
    if sem == 0.0:
        return 0.0, mean, mean
    low, high = stats.t.interval(confidence, samples.size - 1, loc=mean, scale=sem)
    return sem, float(low), float(high)


# =============================================================================
# CORE FUNCTION 4: sample_coverage
# =============================================================================

def sample_coverage(
    n: int,
    repetitions: int = DEFAULT_REPETITIONS,
    seed: Optional[int] = None,
    bit_generator: str = DEFAULT_BIT_GENERATOR,
    confidence: float = DEFAULT_CONFIDENCE,
) -> CoverageResult:
    """
    Repeat the coverage experiment and average.

    Args:
        n: Alphabet size and number of draws per experiment
        repetitions: Number of experiments
        seed: Optional seed for reproducibility
        bit_generator: numpy bit generator name (PCG64, MT19937, PHILOX, SFC64)
        confidence: Confidence level of the reported interval

    Returns:
        CoverageResult with percentages in 0..100

    Raises:
        ConfigError: Invalid n, repetitions or bit generator
    """
    n = validate_alphabet_size(n)
    if isinstance(repetitions, bool) or not isinstance(repetitions, int) or repetitions < 1:
        raise ConfigError(f"repetitions must be a positive int, got {repetitions!r}")
    if not (0.0 < confidence < 1.0):
        raise ConfigError(f"confidence must be in (0, 1), got {confidence!r}")

    rng = make_generator(bit_generator, seed)
    hits = np.array([draw_coverage(n, rng) for _ in range(repetitions)], dtype=np.float64)
    percentages = 100.0 * hits / n
    std_error, low, high = confidence_interval(percentages, confidence)

    result = CoverageResult(
        n=n,
        repetitions=repetitions,
        coverages=hits / n,
        mean_percentage=float(np.mean(percentages)),
        std_error=std_error,
        ci_low=low,
        ci_high=high,
        confidence=confidence,
        bit_generator=bit_generator.upper(),
        seed=seed,
    )
    emit_receipt("coverage_run", {
        "n": n,
        "repetitions": repetitions,
        "bit_generator": result.bit_generator,
        "seed": seed,
        "mean_percentage": result.mean_percentage,
        "ci": [low, high],
    })
    return result
