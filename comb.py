"""
comb.py - Brute-Force Enumeration Oracle

Reads every draw sequence as an N-digit number in base N whose first digit
is fixed to 0, walks all N**(N-1) of them, and counts the distinct digits of
each with a seen-bitset. Independent of the recurrence: nothing is shared
with the engine except the question.

Pure functions with receipts.
"""

import itertools
from dataclasses import dataclass
from typing import Iterator, List, Sequence, Tuple

from receipts import emit_receipt

from occupancy.constants import MAX_ENUMERATION_N
from occupancy.validation import ConfigError, validate_alphabet_size


@dataclass(frozen=True)
class EnumerationResult:
    """Exact counts from walking every draw sequence."""
    n: int
    sequences: int  # N**(N-1)
    histogram: List[int]  # histogram[v-1] = sequences with v distinct digits
    distinct_sum: int  # sum of distinct-digit counts over all sequences
    percentage: float  # 100 * distinct_sum / (N * sequences)

    @property
    def expectation(self) -> float:
        return self.distinct_sum / self.sequences


# =============================================================================
# CORE FUNCTION 1: count_distinct
# =============================================================================

def count_distinct(digits: Sequence[int]) -> int:
    """
    Distinct digits of one sequence, the fixed leading 0 included.

    Args:
        digits: The N-1 free digits

    Returns:
        int: Number of distinct values among 0 and digits
    """
    seen = 1  # fixed first digit is 0
    for digit in digits:
        seen |= 1 << digit
    return bin(seen).count("1")


def iter_sequences(n: int) -> Iterator[Tuple[int, ...]]:
    """All N**(N-1) tuples of free digits in base N."""
    return itertools.product(range(n), repeat=n - 1)


# =============================================================================
# CORE FUNCTION 2: enumerate_distinct
# =============================================================================

def enumerate_distinct(n: int) -> EnumerationResult:
    """
    Count distinct values over every possible draw sequence.

    Args:
        n: Alphabet size (1 <= n <= MAX_ENUMERATION_N)

    Returns:
        EnumerationResult with the exact histogram

    Raises:
        ConfigError: n invalid or too large to enumerate
    """
    n = validate_alphabet_size(n)
    if n > MAX_ENUMERATION_N:
        raise ConfigError(f"Enumeration limited to N <= {MAX_ENUMERATION_N}, got {n}")

    histogram = [0] * n
    for digits in iter_sequences(n):
        histogram[count_distinct(digits) - 1] += 1

    sequences = n ** (n - 1)
    distinct_sum = sum((ix + 1) * c for ix, c in enumerate(histogram))
    result = EnumerationResult(
        n=n,
        sequences=sequences,
        histogram=histogram,
        distinct_sum=distinct_sum,
        percentage=100.0 * distinct_sum / (n * sequences),
    )
    emit_receipt("enumeration_run", {
        "n": n,
        "sequences": sequences,
        "distinct_sum": distinct_sum,
        "percentage": result.percentage,
    })
    return result
