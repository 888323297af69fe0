"""
Occupancy Proof CLI Harness

CLI tool for computing the distinct-value distribution and proving it
against independent oracles. Subcommands:
  - dist: Run the distribution engine for N (self-check included)
  - chains: Exhaustive tree-walk recursion (small N)
  - comb: Brute-force enumeration of all N**(N-1) sequences (small N)
  - coverage: Monte Carlo coverage experiment
  - exact: Closed-form counts from Stirling numbers
  - crosscheck: Every engine variant against every applicable oracle

Exit codes:
  - 0: success
  - 1: validation failure (self-check diverged, oracle mismatch)
  - 2: fatal error (bad input, bad config)
"""

from __future__ import annotations

import json
import logging
import math
import sys
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from tqdm import tqdm

import chains
import closed_form
import comb
import config_schema
import coverage
from occupancy import (
    MANDATORY_VARIANTS,
    DistributionResult,
    compute_distribution,
    expected_distinct,
    max_relative_deviation,
    resolve_variant,
    result_to_dict,
    run_variants,
    summarize,
)
from occupancy.constants import MAX_CLOSED_FORM_N, MAX_ENUMERATION_N, MAX_REFERENCE_N
from occupancy.validation import ConfigError
from receipts import StopRule, emit_receipt, write_receipt_jsonl

console = Console()

# --- Crosscheck thresholds ---
CROSSCHECK_RTOL = 1e-9  # per-cell relative deviation vs exact oracles
CROSSCHECK_PROB_FLOOR = 1e-12  # cells below this probability are not compared
MAX_COUNTS_N = 143  # N**(N-1) still fits in a double


def print_success(message: str) -> None:
    """Print a success message with green checkmark."""
    console.print(f"[green]✓[/green] {message}")


def print_error(message: str) -> None:
    """Print an error message with red X."""
    console.print(f"[red]✗[/red] {message}")


def _fail(output: str, message: str, code: int) -> None:
    if output == "json":
        click.echo(json.dumps({"error": message}))
    else:
        print_error(message)
    sys.exit(code)


def _verbose_cells(result: DistributionResult) -> Iterator[Tuple[int, float]]:
    """(variety, probability) over the band, cut at the first empty tail cell."""
    probabilities = result.probabilities()
    for ix in range(result.first - 1, result.n):
        if result.first > 1 and ix > result.first + 10 and result.dist[ix] == 0.0:
            break
        yield ix + 1, float(probabilities[ix])


# =============================================================================
# Crosscheck
# =============================================================================

def crosscheck(n: int, rtol: float = CROSSCHECK_RTOL,
               variants: Optional[List[str]] = None) -> Dict[str, Any]:
    """
    Run every engine variant for N and compare against the oracles.

    - chains (N <= MAX_REFERENCE_N): per-cell outcome counts
    - comb (N <= MAX_ENUMERATION_N): normalized percentage
    - closed form (N <= MAX_CLOSED_FORM_N): per-cell counts while N**(N-1)
      fits a double, per-cell probabilities above CROSSCHECK_PROB_FLOOR
      beyond that, and the normalized percentage
    - analytic (every N): normalized percentage vs N * (1 - (1 - 1/N)**N)

    Returns:
        dict with per-check rows and an overall "passed" flag
    """
    results = run_variants(n, variants or MANDATORY_VARIANTS)
    checks: List[Dict[str, Any]] = []

    def record(variant: str, oracle: str, deviation: float) -> None:
        checks.append({
            "variant": variant,
            "oracle": oracle,
            "deviation": deviation,
            "passed": deviation < rtol,
        })

    analytic_pct = 100.0 * expected_distinct(n) / n
    reference = chains.reference_distribution(n) if n <= MAX_REFERENCE_N else None
    enumeration = comb.enumerate_distinct(n) if n <= MAX_ENUMERATION_N else None
    exact = closed_form.exact_counts(n) if n <= MAX_CLOSED_FORM_N else None
    if exact is not None:
        exact_pct = closed_form.exact_percentage(n)
        exact_probs = closed_form.exact_probabilities(n)

    for name, result in results.items():
        pct = summarize(result).normalized_percentage
        record(name, "analytic", abs(pct - analytic_pct) / analytic_pct)
        if reference is not None:
            record(name, "chains", max_relative_deviation(result, reference))
        if enumeration is not None:
            record(name, "comb", abs(pct - enumeration.percentage) / enumeration.percentage)
        if exact is not None:
            if n <= MAX_COUNTS_N:
                record(name, "exact_counts", max_relative_deviation(result, [float(c) for c in exact]))
            else:
                probs = result.probabilities()
                deviation = max(
                    abs(float(probs[ix]) - p) / p
                    for ix, p in enumerate(exact_probs)
                    if p >= CROSSCHECK_PROB_FLOOR
                )
                record(name, "exact_probabilities", deviation)
            record(name, "exact_percentage", abs(pct - exact_pct) / exact_pct)

    passed = all(c["passed"] for c in checks)
    emit_receipt("crosscheck", {
        "n": n,
        "rtol": rtol,
        "checks": len(checks),
        "failed": sum(1 for c in checks if not c["passed"]),
        "passed": passed,
    })
    return {"n": n, "rtol": rtol, "checks": checks, "passed": passed}


# =============================================================================
# Click CLI Group
# =============================================================================

@click.group()
@click.option("--debug", is_flag=True, help="Log engine progress at DEBUG level")
def cli(debug: bool) -> None:
    """Distinct-value distribution engine and its proofs."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )


# --- dist ---

@cli.command("dist")
@click.argument("n", type=int)
@click.option("--verbose", "-v", is_flag=True, help="Show per-cell probabilities")
@click.option("--variant", default="DEFAULT", help="Engine variant preset")
@click.option("--config", "config_path", type=click.Path(), help="JSON/YAML EngineConfig file")
@click.option("--receipts", "receipts_path", type=click.Path(), help="Append receipts as JSONL")
@click.option("--progress", is_flag=True, help="Show a layer progress bar")
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich")
def dist_cmd(n: int, verbose: bool, variant: str, config_path: Optional[str],
             receipts_path: Optional[str], progress: bool, output: str) -> None:
    """Compute the distribution of distinct values among N draws from N."""
    ledger: List[dict] = []
    try:
        config = config_schema.load(config_path) if config_path else resolve_variant(variant)
        if progress:
            with tqdm(total=max(n - 1, 0), unit="layer", disable=output == "json") as bar:
                def advance(step: int, start: int, lastvar: int) -> None:
                    bar.update(step - bar.n)
                    bar.set_postfix(start=start, lastvar=lastvar)
                result = compute_distribution(n, config, progress=advance, ledger=ledger)
                bar.update(bar.total - bar.n)
        else:
            result = compute_distribution(n, config, ledger=ledger)
    except (ConfigError, FileNotFoundError) as e:
        _fail(output, str(e), 2)
    except StopRule as e:
        _fail(output, str(e), 1)
    finally:
        if receipts_path and ledger:
            with Path(receipts_path).open("a") as fh:
                for receipt in ledger:
                    write_receipt_jsonl(receipt, fh)

    summary = summarize(result)
    if output == "json":
        click.echo(json.dumps(result_to_dict(result, verbose), indent=2))
        return

    content = (
        f"first:        {result.first}\n"
        f"expectation:  {summary.expectation:.6f}\n"
        f"coverage:     {summary.normalized_percentage:.6f}%\n"
        f"total:        {summary.total:.6f}\n"
        f"norm:         {summary.norm:.6f}\n"
        f"rel_error:    {result.relative_error:.3e}"
    )
    console.print(Panel(
        content,
        title=f"[bold]Distribution: N={n} ({result.config.variant_name})[/bold]",
        border_style="green",
    ))
    if verbose:
        table = Table(title=f"P(distinct = v), first = {result.first}")
        table.add_column("v", justify="right")
        table.add_column("probability", justify="right")
        for v, p in _verbose_cells(result):
            table.add_row(str(v), f"{p:e}")
        console.print(table)
        console.print(
            f"[dim]Opts counted {summary.total:f}, calculated {summary.norm:f}, "
            f"scale = 1/{1.0 / result.scale:f}[/dim]"
        )
    print_success(f"Self-check passed ({result.relative_error:.3e} < {result.config.tolerance})")


# --- chains ---

@cli.command("chains")
@click.argument("n", type=int)
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich")
def chains_cmd(n: int, output: str) -> None:
    """Walk the full decision tree (N <= 20)."""
    try:
        counts = chains.reference_distribution(n)
    except ConfigError as e:
        _fail(output, str(e), 2)
    total = math.fsum(counts)
    pct = chains.reference_percentage(n)
    if output == "json":
        click.echo(json.dumps({"n": n, "counts": counts, "total": total, "percentage": pct}))
        return
    console.print(" ".join(f"{c:.0f}" for c in counts))
    console.print(f"{pct:f}%")
    if abs(total - float(n) ** (n - 1)) / total >= 0.001:
        _fail(output, f"Tree walk counted {total:.0f}, expected {n}**{n - 1}", 1)


# --- comb ---

@cli.command("comb")
@click.argument("n", type=int)
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich")
def comb_cmd(n: int, output: str) -> None:
    """Enumerate all N**(N-1) draw sequences (N <= 8)."""
    if n > 6 and output == "rich":
        console.print("[yellow]This may take a long time ...[/yellow]")
    try:
        result = comb.enumerate_distinct(n)
    except ConfigError as e:
        _fail(output, str(e), 2)
    if output == "json":
        click.echo(json.dumps({
            "n": n,
            "sequences": result.sequences,
            "histogram": result.histogram,
            "distinct_sum": result.distinct_sum,
            "percentage": result.percentage,
        }))
        return
    console.print(f"{result.distinct_sum} distinct digits over {result.sequences} sequences")
    console.print(f"{result.percentage:f}%")


# --- coverage ---

@cli.command("coverage")
@click.argument("n", type=int)
@click.option("--repetitions", "-r", default=1, type=int, help="Number of experiments")
@click.option("--seed", type=int, default=None, help="Random seed")
@click.option("--bit-generator", "-f", default=coverage.DEFAULT_BIT_GENERATOR,
              type=click.Choice(sorted(coverage.BIT_GENERATORS), case_sensitive=False))
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich")
def coverage_cmd(n: int, repetitions: int, seed: Optional[int], bit_generator: str,
                 output: str) -> None:
    """Measure empirical coverage of N random draws below N."""
    try:
        result = coverage.sample_coverage(n, repetitions, seed, bit_generator)
    except ConfigError as e:
        _fail(output, str(e), 2)
    if output == "json":
        click.echo(json.dumps({
            "n": n,
            "repetitions": result.repetitions,
            "bit_generator": result.bit_generator,
            "mean_percentage": result.mean_percentage,
            "std_error": result.std_error,
            "ci": [result.ci_low, result.ci_high],
        }))
        return
    if repetitions == 1:
        unique = int(round(result.coverages[0] * n))
        console.print(f"Calculated {n} random numbers with {unique} unique results")
    console.print(f"Average: {result.mean_percentage:f}%")
    if repetitions > 1:
        console.print(
            f"[dim]{result.confidence:.0%} CI: {result.ci_low:f}% .. {result.ci_high:f}%[/dim]"
        )


# --- exact ---

@cli.command("exact")
@click.argument("n", type=int)
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich")
def exact_cmd(n: int, output: str) -> None:
    """Closed-form counts from Stirling numbers of the second kind."""
    try:
        counts = closed_form.exact_counts(n)
        pct = closed_form.exact_percentage(n)
    except ConfigError as e:
        _fail(output, str(e), 2)
    if output == "json":
        click.echo(json.dumps({"n": n, "counts": [str(c) for c in counts], "percentage": pct}))
        return
    console.print(" ".join(str(c) for c in counts))
    console.print(f"{pct:f}%")


# --- crosscheck ---

@cli.command("crosscheck")
@click.argument("n", type=int)
@click.option("--rtol", default=CROSSCHECK_RTOL, type=float, help="Relative tolerance")
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich")
def crosscheck_cmd(n: int, rtol: float, output: str) -> None:
    """Check every engine variant against every applicable oracle."""
    try:
        report = crosscheck(n, rtol)
    except ConfigError as e:
        _fail(output, str(e), 2)
    except StopRule as e:
        _fail(output, str(e), 1)

    if output == "json":
        click.echo(json.dumps(report, indent=2))
    else:
        table = Table(title=f"Crosscheck N={n} (rtol {rtol:g})")
        table.add_column("variant")
        table.add_column("oracle")
        table.add_column("deviation", justify="right")
        table.add_column("status")
        for check in report["checks"]:
            status = "[green]PASS[/green]" if check["passed"] else "[red]FAIL[/red]"
            table.add_row(check["variant"], check["oracle"], f"{check['deviation']:.3e}", status)
        console.print(table)
        if report["passed"]:
            print_success(f"{len(report['checks'])} checks passed")
        else:
            print_error("Engine disagrees with an oracle")
    if not report["passed"]:
        sys.exit(1)


# --- CLI entry point ---

def main() -> int:
    """Entry point for the Click CLI."""
    try:
        cli(standalone_mode=False)
        return 0
    except click.ClickException as e:
        e.show()
        return 2
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else 0


if __name__ == "__main__":
    sys.exit(main())
