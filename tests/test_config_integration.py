"""Tests for YAML configuration loading."""

import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).parent.parent / "src"))

from surface_registration.selection import SelectionFlags
from surface_registration.utils.config import load_config, AppConfig


def test_default_config_file():
    """Test the shipped default.yaml values."""
    cfg = load_config(None)  # Load default.yaml

    assert cfg.selection.method == "random"
    assert cfg.selection.percentage == 1.0
    assert cfg.selection.to_flags() == SelectionFlags(no_edges=True)
    assert cfg.icp.algorithm == "point"
    assert cfg.icp.nearest_neighbor == "kd_tree"
    assert cfg.icp.steps == 20
    assert cfg.poisson.k == 30
    assert cfg.perturbation.max_translation == 0.3
    assert cfg.surface.nx == 30 and cfg.surface.ny == 30


def test_model_defaults():
    cfg = AppConfig()

    assert cfg.selection.to_flags() == SelectionFlags()
    assert cfg.icp.pca_first is False
    assert cfg.icp.seed is None
    assert cfg.logging.level == "INFO"


def test_yaml_overrides(tmp_path):
    path = tmp_path / "trial.yaml"
    path.write_text(
        "selection:\n"
        "  method: poisson\n"
        "  percentage: 0.25\n"
        "  bitmask: 10\n"
        "icp:\n"
        "  algorithm: plane\n"
        "  nearest_neighbor: brute_force\n"
        "  seed: 7\n",
        encoding="utf-8",
    )
    cfg = load_config(path)

    assert cfg.selection.method == "poisson"
    assert cfg.selection.percentage == 0.25
    # Bitmask overrides the named booleans: RANDOM | EVERY_THIRD
    assert cfg.selection.to_flags() == SelectionFlags(random=True, every_third=True)
    assert cfg.icp.algorithm == "plane"
    assert cfg.icp.nearest_neighbor == "brute_force"
    assert cfg.icp.seed == 7
    # Untouched sections keep their defaults
    assert cfg.poisson.k == 30


def test_invalid_values_raise(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("selection:\n  percentage: 1.5\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(path)

    path.write_text("icp:\n  algorithm: affine\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(path)


def test_missing_file(tmp_path):
    missing = tmp_path / "nope.yaml"
    assert isinstance(load_config(missing), AppConfig)
    with pytest.raises(FileNotFoundError):
        load_config(missing, allow_missing=False)


def test_empty_file_gives_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    assert load_config(path) == AppConfig()
