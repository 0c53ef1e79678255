"""
Configuration management for surface-registration.

Provides a typed pydantic model and YAML loader with sensible defaults.
The registration core only consumes resolved values (flags, percentage,
ranges); this module is what the example scripts use to resolve them.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Literal, Any, Dict

from pydantic import BaseModel, Field, ValidationError
import yaml

from ..selection.flags import SelectionFlags


# -----------------------
# Typed config structures
# -----------------------


class SelectionConfig(BaseModel):
    method: Literal["random", "poisson"] = Field(
        default="random",
        description="'random' uses flag filters + percentage; 'poisson' uses Poisson-disk sampling",
    )
    percentage: float = Field(default=1.0, ge=0.0, le=1.0, description="Fraction of candidates to keep")
    no_edges: bool = Field(default=False, description="Drop boundary vertices (source and matched destination)")
    random: bool = Field(default=False, description="Keep each candidate with probability 0.5")
    every_second: bool = Field(default=False)
    every_third: bool = Field(default=False)
    every_fourth: bool = Field(default=False)
    every_fifth: bool = Field(default=False)
    bitmask: Optional[int] = Field(
        default=None,
        description="Legacy integer flag mask; overrides the named booleans when set",
    )

    def to_flags(self) -> SelectionFlags:
        if self.bitmask is not None:
            return SelectionFlags.from_bitmask(self.bitmask)
        return SelectionFlags(
            no_edges=self.no_edges,
            random=self.random,
            every_second=self.every_second,
            every_third=self.every_third,
            every_fourth=self.every_fourth,
            every_fifth=self.every_fifth,
        )


class PoissonConfig(BaseModel):
    k: int = Field(default=30, ge=1, description="Candidate attempts before an active point is retired")


class ICPConfig(BaseModel):
    algorithm: Literal["point", "plane", "pca"] = Field(default="point")
    nearest_neighbor: Literal["brute_force", "kd_tree"] = Field(default="kd_tree")
    steps: int = Field(default=20, ge=0, description="ICP steps the example script runs per trial")
    pca_first: bool = Field(default=False, description="Run two PCA pre-alignment steps before ICP")
    seed: Optional[int] = Field(default=None, description="Seed for the engine's selection RNG")


class PerturbationConfig(BaseModel):
    max_rotation_deg: float = Field(default=10.0, ge=0.0)
    min_rotation_deg: float = Field(default=0.0, ge=0.0)
    max_translation: float = Field(default=0.5, ge=0.0)
    noise_level: int = Field(default=0, ge=0, description="Number of noise passes applied to the source")
    noise_amplitude: float = Field(default=0.05, ge=0.0)
    holes: int = Field(default=0, ge=0, description="Number of vertices removed from the source")
    seed: Optional[int] = Field(default=None)


class SurfaceConfig(BaseModel):
    nx: int = Field(default=30, ge=2)
    ny: int = Field(default=30, ge=2)
    spacing: float = Field(default=0.1, gt=0.0)


class LoggingConfig(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO")
    file: Optional[str] = Field(default=None)


class AppConfig(BaseModel):
    selection: SelectionConfig = Field(default_factory=SelectionConfig)
    poisson: PoissonConfig = Field(default_factory=PoissonConfig)
    icp: ICPConfig = Field(default_factory=ICPConfig)
    perturbation: PerturbationConfig = Field(default_factory=PerturbationConfig)
    surface: SurfaceConfig = Field(default_factory=SurfaceConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# -----------------------
# Loader
# -----------------------


def _project_root() -> Path:
    """
    Resolve the repository root directory.

    File is at: repo_root/src/surface_registration/utils/config.py
    parents sequence:
      0 -> .../src/surface_registration/utils
      1 -> .../src/surface_registration
      2 -> .../src
      3 -> repo_root
    """
    return Path(__file__).resolve().parents[3]


def load_config(path: Optional[str | Path] = None, *, allow_missing: bool = True) -> AppConfig:
    """
    Load configuration from YAML into a typed AppConfig.

    Search order when path is None:
    1) repo_root/config/default.yaml
    2) if missing and allow_missing=True: return default AppConfig()

    Args:
        path: Explicit YAML file path.
        allow_missing: If True, returns defaults when file missing; otherwise raises.

    Returns:
        AppConfig instance
    """
    cfg_path: Path
    if path is None:
        cfg_path = _project_root() / "config" / "default.yaml"
    else:
        cfg_path = Path(path)

    if not cfg_path.exists():
        if allow_missing:
            return AppConfig()
        raise FileNotFoundError(f"Config file not found: {cfg_path}")

    with cfg_path.open("r", encoding="utf-8") as f:
        raw: Dict[str, Any] = yaml.safe_load(f) or {}

    try:
        return AppConfig.model_validate(raw)
    except ValidationError as e:
        raise ValueError(f"Invalid configuration in {cfg_path}: {e}")
