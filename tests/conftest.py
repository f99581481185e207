"""
Test configuration and fixtures for pancore tests.
"""

import logging

import pytest
import numpy as np
from pathlib import Path
import tempfile
import shutil

from pancore.config import CalibrationConfig
from pancore.enums import Scenario


@pytest.fixture
def seed():
    """Fixed random seed for reproducible tests."""
    return 42


@pytest.fixture
def rng(seed):
    """Seeded generator owned by the test."""
    return np.random.default_rng(seed)


@pytest.fixture
def temp_dir():
    """Temporary directory for test outputs."""
    temp_dir = tempfile.mkdtemp()
    yield Path(temp_dir)
    shutil.rmtree(temp_dir)


@pytest.fixture
def mixed_completeness():
    """Completeness for 60 genomes between 85% and 100%."""
    return np.linspace(0.85, 1.0, 60)


@pytest.fixture
def small_config(seed):
    """Fast configuration for pipeline tests."""
    return CalibrationConfig(
        breaks=(0.05, 0.95),
        error_bound=0.05,
        n_samples=2000,
        seed=seed,
        chunk_size=500,
    )


@pytest.fixture
def hand_observed_sets():
    """Observed counts for N=4 with hand-computed curves.

    core_as_notcore  = [0, 0, 0, .25, .5]
    notcore_as_core  = [1, .75, .5, .25, .25]
    rare_as_notrare  = [.5, .25, .25, 0, 0]
    notrare_as_rare  = [0, .25, .75, .75, 1]
    """
    return {
        Scenario.CORE: np.array([4, 4, 3, 2]),
        Scenario.NOT_CORE: np.array([0, 1, 2, 4]),
        Scenario.RARE: np.array([0, 0, 1, 3]),
        Scenario.NOT_RARE: np.array([1, 2, 2, 4]),
    }


@pytest.fixture
def completeness_file(temp_dir):
    """Completeness table: genome name then percentage."""
    path = temp_dir / "completeness.tsv"
    rows = ["genome\tcompleteness"]
    for i, value in enumerate(np.linspace(90.0, 100.0, 30)):
        rows.append(f"g{i}\t{value:.2f}")
    path.write_text("\n".join(rows) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def counts_file(temp_dir):
    """Count matrix with two count columns per gene."""
    path = temp_dir / "counts.tsv"
    path.write_text(
        "gene\tset_a\tset_b\n"
        "geneA\t20\t10\n"
        "geneB\t0\t1\n"
        "geneC\t5\t7\n"
        "geneD\t0\t0\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def write_config(temp_dir):
    """Factory writing a YAML config file from keyword values."""
    import yaml

    def _write(name="config.yaml", **values):
        path = temp_dir / name
        with open(path, "w") as fh:
            yaml.safe_dump(values, fh)
        return path

    return _write


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo CLI logging setup so caplog sees package records."""
    yield
    logger = logging.getLogger("pancore")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
