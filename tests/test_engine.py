"""
tests/test_engine.py - Distribution Engine Tests

Validates:
- Every variant reproduces the tree-walk counts for small N
- Summed mass matches the closed-form norm
- Degenerate and small scenarios (N = 1, 2, 3, 6)
- Invalid input raises ConfigError before any work
- Divergence and band leaks halt with StopRule
- Variants agree with each other at large N
"""

import math
import sys

import numpy as np
import pytest

import chains
import closed_form
from occupancy import (
    MANDATORY_VARIANTS,
    VARIANT_BATCHED,
    VARIANT_BRANCH_CHECKED,
    VARIANT_DEFAULT,
    VARIANT_EVEN_BAND,
    VARIANT_EXACT_ZERO,
    VARIANTS,
    ConfigError,
    EngineConfig,
    compute_distribution,
    expected_distinct,
    max_relative_deviation,
    resolve_variant,
    run_variants,
    summarize,
)
from occupancy.validation import check_band, check_total
from receipts import StopRule


# =============================================================================
# ORACLE AGREEMENT
# =============================================================================

class TestOracleAgreement:
    """Engine counts against the exhaustive tree walk."""

    @pytest.mark.parametrize("name", MANDATORY_VARIANTS)
    @pytest.mark.parametrize("n", range(1, 13))
    def test_matches_reference(self, name, n):
        result = compute_distribution(n, VARIANTS[name])
        reference = chains.reference_distribution(n)
        assert max_relative_deviation(result, reference) < 1e-9

    @pytest.mark.parametrize("n", [15, 20])
    def test_matches_reference_deep(self, n):
        result = compute_distribution(n)
        assert max_relative_deviation(result, chains.reference_distribution(n)) < 1e-9

    @pytest.mark.parametrize("n", [30, 80, 143])
    def test_matches_closed_form(self, n):
        result = compute_distribution(n)
        exact = [float(c) for c in closed_form.exact_counts(n)]
        assert max_relative_deviation(result, exact) < 1e-9


# =============================================================================
# SELF-CHECK
# =============================================================================

class TestSelfCheck:
    """Summed mass against the closed-form norm."""

    @pytest.mark.parametrize("name", MANDATORY_VARIANTS)
    @pytest.mark.parametrize("n", range(2, 11))
    def test_total_matches_norm(self, name, n):
        result = compute_distribution(n, VARIANTS[name])
        assert result.relative_error < 1e-12
        assert math.isclose(result.total, float(np.sum(result.dist)), rel_tol=1e-15)

    def test_per_layer_norm_is_n_squared(self):
        result = compute_distribution(100)
        assert math.isclose(result.norm, 100.0 ** 2, rel_tol=1e-9)
        assert math.isclose(result.total, 100.0 ** 2, rel_tol=1e-9)

    def test_ledger_receives_receipts(self):
        ledger = []
        compute_distribution(10, ledger=ledger)
        assert [r["receipt_type"] for r in ledger] == ["self_check", "distribution_run"]
        assert ledger[0]["passed"] is True
        assert ledger[1]["n"] == 10

    def test_divergence_raises_stoprule(self, monkeypatch):
        """A total far from the norm halts the run."""
        monkeypatch.setattr("occupancy.engine.compute_norm", lambda n, scale, batch: 1e6)
        with pytest.raises(StopRule, match="diverged"):
            compute_distribution(10)

    def test_divergence_receipts_reach_ledger(self, monkeypatch):
        """The failed self_check and its anomaly are recorded before the halt."""
        monkeypatch.setattr("occupancy.engine.compute_norm", lambda n, scale, batch: 1e6)
        ledger = []
        with pytest.raises(StopRule) as excinfo:
            compute_distribution(10, ledger=ledger)
        assert [r["receipt_type"] for r in ledger] == ["self_check", "anomaly"]
        assert ledger[0]["passed"] is False
        assert ledger[1]["metric"] == "distribution_total"
        assert excinfo.value.receipts == ledger

    def test_check_total_tolerance(self):
        """Inside tolerance passes, outside halts."""
        rel, receipt = check_total(5, 100.0, 100.05, 0.001)
        assert rel == pytest.approx(0.0005)
        assert receipt["passed"] is True
        with pytest.raises(StopRule):
            check_total(5, 100.0, 100.2, 0.001)

    def test_check_total_zero_mass(self):
        with pytest.raises(StopRule):
            check_total(5, 0.0, 25.0, 0.001)

    def test_band_leak_raises_stoprule(self):
        dist = np.array([1e-5, 0.0, 3.0, 2.0])
        with pytest.raises(StopRule, match="below band") as excinfo:
            check_band(dist, 3)
        (anomaly,) = excinfo.value.receipts
        assert anomaly["receipt_type"] == "anomaly"
        assert anomaly["classification"] == "band_leak"
        assert anomaly["index"] == 0

    def test_clean_band_passes(self):
        check_band(np.array([0.0, 0.0, 3.0, 2.0]), 3)
        check_band(np.array([1.0]), 1)


# =============================================================================
# SCENARIOS
# =============================================================================

class TestScenarios:
    """Small N worked by hand."""

    def test_n1_degenerate(self):
        result = compute_distribution(1)
        assert result.dist.tolist() == [1.0]
        assert result.first == 1
        assert result.scale == 1.0
        assert result.norm == 1.0
        summary = summarize(result)
        assert summary.expectation == 1.0
        assert summary.normalized_percentage == 100.0

    def test_n2(self):
        """Scale 2: engine mass [2, 2], outcomes [1, 1]."""
        result = compute_distribution(2)
        assert result.dist.tolist() == [2.0, 2.0]
        assert result.norm == 4.0
        assert result.counts().tolist() == pytest.approx([1.0, 1.0])
        summary = summarize(result)
        assert summary.expectation == 1.5
        assert summary.normalized_percentage == 75.0
        assert summary.outcomes == pytest.approx(2.0)

    def test_n3_unscaled(self):
        result = compute_distribution(3)
        assert result.dist.tolist() == [1.0, 6.0, 2.0]
        assert result.total == 9.0

    def test_n6_percentage(self):
        """E[distinct] = 31031 / 7776 for six draws from six."""
        summary = summarize(compute_distribution(6))
        assert math.isclose(summary.expectation, 31031 / 7776, rel_tol=1e-12)
        assert 66.0 < summary.normalized_percentage < 67.0
        assert math.isclose(summary.outcomes, 6.0 ** 5, rel_tol=1e-12)

    def test_large_n_lower_tail_pruned(self):
        result = compute_distribution(1000)
        assert result.first > 1
        assert np.all(result.dist[:result.first - 1] == 0.0)
        pct = summarize(result).normalized_percentage
        assert math.isclose(pct, 100.0 * expected_distinct(1000) / 1000, rel_tol=1e-9)

    def test_percentage_approaches_limit(self):
        """Coverage tends to 1 - 1/e from above."""
        pct = summarize(compute_distribution(2000)).normalized_percentage
        assert 100.0 * (1 - math.exp(-1)) < pct < 100.0 * (1 - math.exp(-1)) + 0.02


# =============================================================================
# DETERMINISM AND VARIANTS
# =============================================================================

class TestVariants:
    """Variant presets and determinism."""

    def test_repeat_runs_bit_identical(self):
        first = compute_distribution(300)
        second = compute_distribution(300)
        assert first.fingerprint == second.fingerprint
        assert np.array_equal(first.dist, second.dist)

    @pytest.mark.parametrize("config", [
        VARIANT_BRANCH_CHECKED, VARIANT_EVEN_BAND, VARIANT_EXACT_ZERO
    ])
    def test_loop_shape_is_bit_identical_small_n(self, config):
        """Loop shape and parity never change the arithmetic while no cell underflows."""
        for n in range(1, 13):
            assert compute_distribution(n, config).fingerprint == compute_distribution(n).fingerprint

    @pytest.mark.parametrize("config", [VARIANT_BRANCH_CHECKED, VARIANT_EVEN_BAND])
    def test_loop_shape_differs_only_below_normal_range(self, config):
        """Once cells underflow, loop shape and parity move values by less than the smallest normal double."""
        baseline = compute_distribution(1500).dist
        dist = compute_distribution(1500, config).dist
        assert np.max(np.abs(dist - baseline)) < sys.float_info.min

    def test_variants_agree_large_n(self):
        results = run_variants(1000)
        assert set(results) == set(MANDATORY_VARIANTS)
        baseline = results["DEFAULT"].probabilities()
        significant = baseline >= 1e-12
        for name, result in results.items():
            probs = result.probabilities()
            deviation = np.max(np.abs(probs[significant] - baseline[significant]) / baseline[significant])
            assert deviation < 1e-9, name

    def test_batched_scaled_layers(self):
        result = compute_distribution(12, VARIANT_BATCHED)
        assert result.scaled_layers == 8
        assert result.counts().sum() == pytest.approx(12.0 ** 11, rel=1e-12)

    def test_resolve_variant_case_insensitive(self):
        assert resolve_variant("batched") is VARIANT_BATCHED
        assert resolve_variant("DEFAULT") is VARIANT_DEFAULT

    def test_resolve_unknown_variant(self):
        with pytest.raises(ConfigError, match="Unknown variant"):
            resolve_variant("turbo")

    def test_run_variants_shares_ledger(self):
        ledger = []
        run_variants(5, ["DEFAULT", "BATCHED"], ledger=ledger)
        assert len(ledger) == 4
        assert {r["variant"] for r in ledger} == {"DEFAULT", "BATCHED"}


# =============================================================================
# INPUT VALIDATION
# =============================================================================

class TestInputValidation:
    """Bad input is rejected before allocation."""

    @pytest.mark.parametrize("n", [0, -1, -100])
    def test_below_minimum(self, n):
        with pytest.raises(ConfigError, match=">= 1"):
            compute_distribution(n)

    @pytest.mark.parametrize("n", [2.5, "10", None, True])
    def test_not_an_integer(self, n):
        with pytest.raises(ConfigError, match="integer"):
            compute_distribution(n)

    def test_above_maximum(self):
        with pytest.raises(ConfigError, match="exceeds maximum"):
            compute_distribution(2 ** 32)

    def test_numpy_integer_accepted(self):
        result = compute_distribution(np.int64(6))
        assert result.n == 6
        assert type(result.n) is int

    def test_invalid_config(self):
        with pytest.raises(ConfigError, match="zero_policy"):
            compute_distribution(5, EngineConfig(zero_policy="fuzzy"))
        with pytest.raises(ConfigError, match="tolerance"):
            compute_distribution(5, EngineConfig(tolerance=0.0))
        with pytest.raises(ConfigError, match="progress_interval"):
            compute_distribution(5, EngineConfig(progress_interval=0))
        with pytest.raises(ConfigError, match="EngineConfig"):
            compute_distribution(5, {"split_loop": True})
