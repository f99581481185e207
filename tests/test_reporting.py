"""
Tests for run summaries, schema validation and rendered reports.
"""

import json

import jsonschema
import pytest

from pancore.determinism_utils import hash_file
from pancore.io import load_counts
from pancore.labels import label_genes
from pancore.pipeline import calibrate_thresholds
from pancore.reporting import SCHEMA_VERSION, build_summary, render_report, write_summary
from pancore.validation import validate_summary, validate_summary_file


@pytest.fixture
def run(small_config, mixed_completeness):
    return calibrate_thresholds(mixed_completeness, small_config)


@pytest.fixture
def summary(run, counts_file):
    labelled = label_genes(load_counts(counts_file), run.result.core_threshold, run.result.rare_threshold)
    return build_summary(run, labelled)


class TestSummary:
    """Test summary contents and schema contract."""

    def test_contents(self, summary, run):
        assert summary["schema_version"] == SCHEMA_VERSION
        assert summary["seed"] == run.seed
        assert summary["config_hash"] == run.config.config_hash()
        assert summary["thresholds"]["core_threshold"] == run.result.core_threshold
        assert sum(summary["labels"].values()) == 4
        assert "numpy_version" in summary["environment"]
        validate_summary(summary)

    def test_without_labels_or_environment(self, run):
        summary = build_summary(run, include_environment=False)

        assert "labels" not in summary
        assert "environment" not in summary
        validate_summary(summary)

    def test_inputs_recorded_with_hashes(self, run, completeness_file, counts_file):
        summary = build_summary(
            run,
            include_environment=False,
            inputs={"completeness": completeness_file, "matrix": counts_file},
        )

        assert summary["inputs"]["matrix"] == {"path": str(counts_file), "sha256": hash_file(counts_file)}
        validate_summary(summary)

        summary["inputs"]["matrix"]["sha256"] = "not-a-hash"
        with pytest.raises(jsonschema.ValidationError):
            validate_summary(summary)

    def test_write_and_reload(self, summary, temp_dir):
        path = write_summary(summary, temp_dir / "summary.json")

        assert validate_summary_file(path) == json.loads(json.dumps(summary))

    def test_missing_field_rejected(self, summary, temp_dir):
        del summary["config_hash"]

        with pytest.raises(jsonschema.ValidationError):
            write_summary(summary, temp_dir / "summary.json")
        assert not (temp_dir / "summary.json").exists()

    def test_threshold_above_n_rejected(self, summary):
        summary["thresholds"]["core_threshold"] = summary["thresholds"]["n_genomes"] + 1

        with pytest.raises(jsonschema.ValidationError):
            validate_summary(summary)


class TestReport:
    """Test Markdown/HTML rendering."""

    def test_default_template(self, summary, run, temp_dir):
        md_path, html_path = render_report(summary, run.result.curves, temp_dir / "report")

        markdown_text = md_path.read_text(encoding="utf-8")
        assert f"- Core: count >= {run.result.core_threshold}" in markdown_text
        assert "| core |" in markdown_text
        assert "Calibration anomaly" not in markdown_text
        # One table row per candidate threshold.
        rows = [line for line in markdown_text.splitlines() if line.startswith("| ") and line[2].isdigit()]
        assert len(rows) == run.result.n_genomes + 1

        assert (temp_dir / "report" / "error_curves.png").stat().st_size > 0
        assert "![Error curves](error_curves.png)" in markdown_text

        html = html_path.read_text(encoding="utf-8")
        assert "<table>" in html
        assert "<h1>Core/Rare Threshold Calibration</h1>" in html

    def test_custom_template(self, summary, run, temp_dir):
        template = temp_dir / "custom.md.j2"
        template.write_text("Seed {{ summary.seed }} core {{ thresholds.core_threshold }}\n", encoding="utf-8")

        md_path, _ = render_report(summary, run.result.curves, temp_dir, template_path=template)

        assert md_path.read_text(encoding="utf-8").strip() == (
            f"Seed {run.seed} core {run.result.core_threshold}"
        )

    def test_anomaly_notice(self, summary, run, temp_dir):
        summary["thresholds"]["separated"] = False
        summary["thresholds"]["clamped"] = ["core"]

        md_path, _ = render_report(summary, run.result.curves, temp_dir)

        text = md_path.read_text(encoding="utf-8")
        assert "Calibration anomaly" in text
        assert "**Clamped:** core" in text
