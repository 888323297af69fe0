"""
occupancy/export.py - Export Functions

JSON and plain-text renderings of a distribution for the CLI.
Pure functions.
"""

import json
from typing import Any, Dict

from .summary import per_cell_probabilities, summarize
from .types_result import DistributionResult


def result_to_dict(result: DistributionResult, verbose: bool = False) -> Dict[str, Any]:
    """
    Flatten a DistributionResult and its summary into plain types.

    Args:
        result: DistributionResult to export
        verbose: Include per-cell probabilities of the valid band

    Returns:
        dict ready for json.dumps
    """
    summary = summarize(result)
    data = {
        "n": result.n,
        "variant": result.config.variant_name,
        "config": {
            "split_loop": result.config.split_loop,
            "batch_rescale": result.config.batch_rescale,
            "force_even_band": result.config.force_even_band,
            "zero_policy": result.config.zero_policy,
        },
        "first": result.first,
        "scale": result.scale,
        "total": summary.total,
        "norm": summary.norm,
        "relative_error": result.relative_error,
        "expectation": summary.expectation,
        "normalized_percentage": summary.normalized_percentage,
        "fingerprint": result.fingerprint,
    }
    if verbose:
        data["probabilities"] = [float(p) for p in per_cell_probabilities(result)]
    return data


def export_to_json(result: DistributionResult, verbose: bool = False) -> str:
    """Format a DistributionResult as indented JSON."""
    return json.dumps(result_to_dict(result, verbose), indent=2)


def generate_report(result: DistributionResult) -> str:
    """
    Generate human-readable summary.

    Args:
        result: DistributionResult to summarize

    Returns:
        str: Report text
    """
    summary = summarize(result)
    lines = [
        "=== DISTRIBUTION REPORT ===",
        f"N: {result.n}",
        f"Variant: {result.config.variant_name}",
        f"First populated variety: {result.first}",
        f"Scale: 1/{1.0 / result.scale:.6f}",
        f"Total: {summary.total:.6f}",
        f"Norm: {summary.norm:.6f}",
        f"Relative error: {result.relative_error:.3e}",
        f"Expectation: {summary.expectation:.6f}",
        f"Coverage: {summary.normalized_percentage:.6f}%",
        "",
        "Self-check: " + ("PASS" if result.relative_error < result.config.tolerance else "FAIL")
    ]

    return "\n".join(lines)
