"""
closed_form.py - Exact Closed-Form Oracle

Counts draw sequences exactly with Stirling numbers of the second kind.
Partition the N draw positions into v non-empty blocks (S(N, v) ways); the
block holding the fixed first draw takes value 0 and the other v-1 blocks
take distinct values from the remaining N-1 in order ((N-1)!/(N-v)! ways):

    count(v) = S(N, v) * (N-1)! / (N-v)!

Exact integers; used to check the engine beyond the reach of the tree walk
and the enumerator.
"""

from typing import List

from sympy import Integer, Rational, ff

from occupancy.constants import MAX_CLOSED_FORM_N
from occupancy.validation import ConfigError, validate_alphabet_size


def _checked(n) -> int:
    n = validate_alphabet_size(n)
    if n > MAX_CLOSED_FORM_N:
        raise ConfigError(f"Closed form limited to N <= {MAX_CLOSED_FORM_N}, got {n}")
    return n


def stirling2_row(n: int) -> List[int]:
    """
    S(n, k) for k = 0..n by the triangle S(m, k) = k*S(m-1, k) + S(m-1, k-1).

    Iterative, one row in place, O(n**2) integer operations.
    """
    row = [1] + [0] * n
    for m in range(1, n + 1):
        for k in range(m, 0, -1):
            row[k] = k * row[k] + row[k - 1]
        row[0] = 0
    return row


def exact_counts(n: int) -> List[int]:
    """
    Exact sequence counts per variety.

    Args:
        n: Alphabet size

    Returns:
        list of N ints, entry v-1 = sequences with exactly v distinct values;
        sums to N**(N-1)

    Raises:
        ConfigError: n invalid or above MAX_CLOSED_FORM_N
    """
    n = _checked(n)
    row = stirling2_row(n)
    return [int(row[v] * ff(n - 1, v - 1)) for v in range(1, n + 1)]


def exact_probabilities(n: int) -> List[float]:
    """Per-variety probabilities rounded to double (tails may underflow)."""
    counts = exact_counts(n)
    total = Integer(n) ** (n - 1)
    return [float(Rational(c, total)) for c in counts]


def exact_expectation(n: int) -> Rational:
    """
    Expected number of distinct values as an exact rational.

    Equals N * (1 - ((N-1)/N)**N).
    """
    counts = exact_counts(n)
    total = Integer(n) ** (n - 1)
    return Rational(sum(v * c for v, c in enumerate(counts, start=1)), total)


def exact_percentage(n: int) -> float:
    """100 * E[distinct] / N as a float."""
    return float(100 * exact_expectation(n) / n)
