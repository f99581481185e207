"""Run summaries and Markdown/HTML calibration reports."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping, Optional

import jinja2
import markdown
import matplotlib
import pandas as pd

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402

from .determinism_utils import env_fingerprint, hash_file
from .labels import label_summary
from .pipeline import CalibrationRun
from .validation import validate_summary

SCHEMA_VERSION = "1.0.0"
CURVES_PNG = "error_curves.png"
CURVE_LABELS = {
    "core_as_notcore": "P(core < t)",
    "notcore_as_core": "P(not core >= t)",
    "rare_as_notrare": "P(rare > t)",
    "notrare_as_rare": "P(not rare <= t)",
}


def build_summary(
    run: CalibrationRun,
    labelled: Optional[pd.DataFrame] = None,
    include_environment: bool = True,
    inputs: Optional[Mapping[str, Path]] = None,
) -> dict[str, Any]:
    """Collect thresholds, configuration and provenance of a run.

    ``inputs`` maps a role such as ``"completeness"`` to the table that was
    read; each is recorded with its SHA256 so a summary can be tied back to
    the exact files.
    """
    summary: dict[str, Any] = {
        "schema_version": SCHEMA_VERSION,
        "seed": int(run.seed),
        "config_hash": run.config.config_hash(),
        "config": run.config.to_dict(),
        "thresholds": run.result.to_dict(),
    }
    if labelled is not None:
        summary["labels"] = label_summary(labelled)
    if inputs:
        summary["inputs"] = {
            name: {"path": str(path), "sha256": hash_file(path)} for name, path in inputs.items()
        }
    if include_environment:
        summary["environment"] = env_fingerprint()
    return summary


def write_summary(summary: dict[str, Any], path: str | Path) -> Path:
    """Validate and persist a run summary as JSON."""
    validate_summary(summary)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(summary, indent=2, sort_keys=True), encoding="utf-8")
    return path


def render_report(
    summary: dict[str, Any],
    curves: pd.DataFrame,
    output_dir: Path,
    template_path: Path | None = None,
) -> tuple[Path, Path]:
    """Render report.md and report.html into ``output_dir``."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    environment = jinja2.Environment(autoescape=False, trim_blocks=True, lstrip_blocks=True)
    if template_path is None:
        template = DEFAULT_TEMPLATE
    else:
        template = Path(template_path).read_text(encoding="utf-8")

    plot_path = render_plots(curves, summary["thresholds"], output_dir)

    md_content = environment.from_string(template).render(
        summary=summary,
        thresholds=summary["thresholds"],
        curves_png=plot_path.name,
        curves=curves.reset_index().to_dict(orient="records"),
        json_summary=json.dumps(summary, indent=2, sort_keys=True),
    )

    md_path = output_dir / "report.md"
    md_path.write_text(md_content, encoding="utf-8")

    html = markdown.markdown(md_content, extensions=["tables", "fenced_code"])
    html_path = output_dir / "report.html"
    html_path.write_text(html, encoding="utf-8")
    return md_path, html_path



def render_plots(curves: pd.DataFrame, thresholds: dict[str, Any], output_dir: Path) -> Path:
    """Plot the four error curves with the error bound and both thresholds."""
    thresholds_axis = curves.index.to_numpy()

    fig, ax = plt.subplots(figsize=(6, 4), dpi=150)
    for column, label in CURVE_LABELS.items():
        ax.step(thresholds_axis, curves[column].to_numpy(), where="mid", label=label)
    ax.axhline(thresholds["error_bound"], linestyle="--", color="grey", label="Error bound")
    ax.axvline(thresholds["core_threshold"], linestyle=":", color="black")
    ax.axvline(thresholds["rare_threshold"], linestyle=":", color="black")
    ax.set_xlabel("Observed count threshold")
    ax.set_ylabel("Misclassification probability")
    ax.set_title("Error Curves")
    ax.legend(fontsize="small")
    fig.tight_layout()

    plot_path = Path(output_dir) / CURVES_PNG
    fig.savefig(plot_path)
    plt.close(fig)
    return plot_path


DEFAULT_TEMPLATE = """
# Core/Rare Threshold Calibration

## Thresholds

- Core: count >= {{ thresholds.core_threshold }} ({{ thresholds.core_percent | round(2) }}% of {{ thresholds.n_genomes }} genomes)
- Rare: count <= {{ thresholds.rare_threshold }} ({{ thresholds.rare_percent | round(2) }}% of {{ thresholds.n_genomes }} genomes)
- Error bound: {{ thresholds.error_bound }}
- Monte Carlo draws per scenario: {{ thresholds.n_samples }}
- Seed: {{ summary.seed }}
{% if not thresholds.separated %}
**Calibration anomaly:** the rare threshold is not below the core threshold.
{% endif %}
{% if thresholds.clamped %}
**Clamped:** {{ thresholds.clamped | join(", ") }} (curve never exceeded the error bound)
{% endif %}
{% if summary.labels %}
## Labels

| Label | Genes |
| --- | --- |
{% for label, n in summary.labels.items() %}
| {{ label }} | {{ n }} |
{% endfor %}
{% endif %}

## Error Curves

![Error curves]({{ curves_png }})

| Threshold | P(core < t) | P(not core >= t) | P(rare > t) | P(not rare <= t) |
| --- | --- | --- | --- | --- |
{% for row in curves %}
| {{ row.threshold }} | {{ row.core_as_notcore | round(4) }} | {{ row.notcore_as_core | round(4) }} | {{ row.rare_as_notrare | round(4) }} | {{ row.notrare_as_rare | round(4) }} |
{% endfor %}

## Raw Summary JSON

```json
{{ json_summary }}
```
"""
