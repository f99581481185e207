"""Command-line interface for pancore."""

from __future__ import annotations

import functools
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional

import click
import jsonschema

from .config import MISSING_POLICIES, CalibrationConfig, read_config_mapping
from .config_validator import ConfigValidator
from .determinism_utils import assert_digests_stable, read_manifest, run_digest, write_manifest
from .exceptions import PancoreError
from .io import load_completeness, load_counts, write_curves, write_labels
from .labels import label_genes, label_summary
from .logging_config import log_system_info, setup_logging
from .pipeline import calibrate_thresholds
from .reporting import build_summary, render_report, write_summary
from .validation import validate_summary_file

DEFAULT_OUTPUT = "pancore_output.tsv"


@dataclass(slots=True)
class CLIContext:
    """Shared CLI configuration."""

    config_path: Optional[Path]


def _handle_errors(func: Callable) -> Callable:
    """Turn pancore errors into click errors carrying their details."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except PancoreError as exc:
            message = str(exc)
            if exc.details:
                message = f"{message}\n{json.dumps(exc.details, indent=2, default=str)}"
            raise click.ClickException(message) from exc

    return wrapper


def _build_config(config_path: Optional[Path], **overrides: Any) -> CalibrationConfig:
    """Load the YAML config (if any), then apply command-line overrides."""
    if config_path is not None:
        config = ConfigValidator().validate_and_build(read_config_mapping(config_path))
    else:
        config = CalibrationConfig()
    return config.with_overrides(**overrides).validate()


def calibration_options(func: Callable) -> Callable:
    """Options shared by every command that runs a calibration."""
    options = [
        click.option("--completeness-column", default=1, show_default=True, type=int,
                     help="1-based column holding completeness percentages."),
        click.option("--breaks", default=None, type=str,
                     help="Two comma-separated latent-frequency breakpoints [default: 0.05,0.95]."),
        click.option("--error", "error_bound", default=None, type=float,
                     help="Tolerated misclassification probability [default: 0.05]."),
        click.option("--n-samples", default=None, type=int,
                     help="Monte Carlo draws per scenario [default: 10000]."),
        click.option("--beta-param1", "beta_alpha", default=None, type=float,
                     help="First Beta prior shape parameter [default: 0.1]."),
        click.option("--beta-param2", "beta_beta", default=None, type=float,
                     help="Second Beta prior shape parameter [default: 0.1]."),
        click.option("--seed", default=None, type=int, help="Root seed for reproducible runs."),
        click.option("--n-jobs", default=None, type=int, help="Parallel scenario workers (-1 for all cores)."),
        click.option("--chunk-size", default=None, type=int, help="Draws simulated per vectorised block."),
        click.option("--on-missing", default=None, type=click.Choice(MISSING_POLICIES),
                     help="What to do when an error curve never crosses the bound."),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help="YAML file with calibration parameters; command-line options override it.")
@click.option("--log-level", default="INFO", show_default=True,
              type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False))
@click.option("--log-file", type=click.Path(dir_okay=False, path_type=Path), help="Also log to this file.")
@click.pass_context
def main(ctx: click.Context, config_path: Optional[Path], log_level: str, log_file: Optional[Path]) -> None:
    """Completeness-aware core/rare gene calling for pangenomes."""
    logger = setup_logging(level=log_level, log_file=log_file)
    log_system_info(logger)
    ctx.obj = CLIContext(config_path=config_path)


@main.command("calibrate")
@click.argument("completeness", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("matrix", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--output-file", default=DEFAULT_OUTPUT, show_default=True,
              type=click.Path(dir_okay=False, path_type=Path), help="Per-gene label table.")
@calibration_options
@click.option("--strict-separation", "strict", is_flag=True,
              help="Fail when the rare threshold is not below the core threshold.")
@click.option("--curves-out", type=click.Path(dir_okay=False, path_type=Path),
              help="Write the four error curves as TSV.")
@click.option("--summary-out", type=click.Path(dir_okay=False, path_type=Path),
              help="Write a JSON run summary.")
@click.option("--report-dir", type=click.Path(file_okay=False, path_type=Path),
              help="Write report.md and report.html here.")
@click.pass_obj
@_handle_errors
def calibrate_cmd(
    ctx: CLIContext,
    completeness: Path,
    matrix: Path,
    output_file: Path,
    completeness_column: int,
    strict: bool,
    curves_out: Optional[Path],
    summary_out: Optional[Path],
    report_dir: Optional[Path],
    **overrides: Any,
) -> None:
    """Calibrate thresholds from COMPLETENESS and label the genes in MATRIX."""
    if strict:
        overrides["strict_separation"] = True
    config = _build_config(ctx.config_path, **overrides)
    completeness_values = load_completeness(completeness, completeness_column)
    counts = load_counts(matrix)

    run = calibrate_thresholds(completeness_values, config)
    labelled = label_genes(counts, run.result.core_threshold, run.result.rare_threshold)
    write_labels(labelled, output_file)

    if curves_out:
        write_curves(run.result, curves_out)
    if summary_out or report_dir:
        summary = build_summary(run, labelled, inputs={"completeness": completeness, "matrix": matrix})
        if summary_out:
            write_summary(summary, summary_out)
        if report_dir:
            render_report(summary, run.result.curves, report_dir)

    for line in run.result.frequency_summary():
        click.echo(line)
    counts_by_label = label_summary(labelled)
    click.echo("Labels: " + ", ".join(f"{label}={n}" for label, n in counts_by_label.items()))


@main.command("thresholds")
@click.argument("completeness", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@calibration_options
@click.pass_obj
@_handle_errors
def thresholds_cmd(ctx: CLIContext, completeness: Path, completeness_column: int, **overrides: Any) -> None:
    """Calibrate thresholds for COMPLETENESS and print them as JSON."""
    config = _build_config(ctx.config_path, **overrides)
    run = calibrate_thresholds(load_completeness(completeness, completeness_column), config)
    payload = {"seed": run.seed, **run.result.to_dict()}
    click.echo(json.dumps(payload, indent=2))


@main.command("label")
@click.argument("matrix", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--core", "core_threshold", required=True, type=click.IntRange(min=0),
              help="Counts at or above this are core.")
@click.option("--rare", "rare_threshold", required=True, type=click.IntRange(min=0),
              help="Counts at or below this are rare.")
@click.option("--output-file", default=DEFAULT_OUTPUT, show_default=True,
              type=click.Path(dir_okay=False, path_type=Path))
@_handle_errors
def label_cmd(matrix: Path, core_threshold: int, rare_threshold: int, output_file: Path) -> None:
    """Label the genes in MATRIX with previously calibrated thresholds."""
    if rare_threshold >= core_threshold:
        click.echo(
            f"Warning: rare threshold {rare_threshold} is not below core threshold {core_threshold}",
            err=True,
        )
    counts = load_counts(matrix)
    labelled = label_genes(counts, core_threshold, rare_threshold)
    write_labels(labelled, output_file)
    counts_by_label = label_summary(labelled)
    click.echo("Labels: " + ", ".join(f"{label}={n}" for label, n in counts_by_label.items()))


@main.command("determinism")
@click.argument("completeness", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@calibration_options
@click.option("--manifest", type=click.Path(dir_okay=False, path_type=Path),
              help="Digest manifest; compared against when it exists, written otherwise.")
@click.pass_obj
@_handle_errors
def determinism_cmd(
    ctx: CLIContext,
    completeness: Path,
    completeness_column: int,
    manifest: Optional[Path],
    **overrides: Any,
) -> None:
    """Run the calibration twice with one seed and assert identical results."""
    config = _build_config(ctx.config_path, **overrides)
    values = load_completeness(completeness, completeness_column)

    first = calibrate_thresholds(values, config)
    # Pin the seed so an unseeded config replays the first run.
    second = calibrate_thresholds(values, config.with_overrides(seed=first.seed))

    first_digest = run_digest(first)
    second_digest = run_digest(second)
    try:
        assert_digests_stable(first_digest, second_digest)
        if manifest and manifest.exists():
            assert_digests_stable(read_manifest(manifest), first_digest)
    except AssertionError as exc:
        raise click.ClickException(str(exc)) from exc

    if manifest and not manifest.exists():
        write_manifest(first_digest, manifest)

    click.echo(
        json.dumps(
            {
                "stage": "determinism",
                "seed": first.seed,
                "core_threshold": first.result.core_threshold,
                "rare_threshold": first.result.rare_threshold,
                "status": "hashes-identical",
            },
            indent=2,
        )
    )


@main.command("validate-summary")
@click.argument("summary", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def validate_summary_cmd(summary: Path) -> None:
    """Check a SUMMARY JSON written by `calibrate --summary-out`."""
    try:
        payload = validate_summary_file(summary)
    except (jsonschema.ValidationError, json.JSONDecodeError) as exc:
        raise click.ClickException(f"Invalid run summary {summary}: {exc}") from exc
    thresholds = payload["thresholds"]
    click.echo(
        json.dumps(
            {
                "summary": str(summary),
                "status": "valid",
                "core_threshold": thresholds["core_threshold"],
                "rare_threshold": thresholds["rare_threshold"],
            },
            indent=2,
        )
    )


def cli() -> None:  # pragma: no cover - convenience shim
    """Entry point for console_scripts."""
    main(standalone_mode=True)


if __name__ == "__main__":  # pragma: no cover
    cli()
