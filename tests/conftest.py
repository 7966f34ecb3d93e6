# tests/conftest.py
from __future__ import annotations

import os
import random
from pathlib import Path

import matplotlib
import numpy as np
import pytest

# Charts render off-screen; set before any test imports pyplot
matplotlib.use("Agg", force=True)


@pytest.fixture(autouse=True, scope="session")
def _seed_everything() -> None:
    """
    Keep randomised helpers deterministic across runs. Synthetic snapshots take
    their own seed from SampleConfig; this covers anything drawing from the
    global generators.
    """
    seed = int(os.environ.get("PYTEST_SEED", "1234"))
    os.environ["PYTHONHASHSEED"] = str(seed)
    random.seed(seed)
    np.random.seed(seed)


@pytest.fixture(autouse=True)
def _outputs_in_tmp(tmp_path, monkeypatch) -> None:
    """Charts that do get saved land in a per-test directory."""
    monkeypatch.setattr("shift_analytics.reporting.plots.OUTPUT_DIR", tmp_path / "outputs")


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Repository root (where pyproject.toml lives)."""
    return Path(__file__).resolve().parents[1]
