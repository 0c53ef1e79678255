"""
Example script for a single alignment trial

Builds a synthetic height-map surface, perturbs a copy of it (noise, holes,
random rotation/translation) and aligns the copy back with ICP, logging the
matching error after every step.
"""

import sys
import argparse
import logging
import time
from pathlib import Path

import numpy as np

# Add the src to the path to import modules
sys.path.append(str(Path(__file__).parent.parent / "src"))

from surface_registration.mesh import Model
from surface_registration.neighbors import create_nearest_neighbor
from surface_registration.icp import PCAICP, create_icp
from surface_registration.selection import PoissonDiskPointSelector, RandomPointSelector
from surface_registration.utils.config import load_config, AppConfig
from surface_registration.utils.logging import setup_logger, set_package_level


def make_surface(cfg: AppConfig, seed=None) -> Model:
    """Smooth bumpy patch centered on the origin."""
    s = cfg.surface

    def height(X, Y):
        return 0.15 * np.sin(4.0 * X) * np.cos(3.0 * Y) + 0.1 * np.sin(2.0 * X + 1.0 * Y)

    model = Model.grid(s.nx, s.ny, spacing=s.spacing, height_fn=height, seed=seed)
    model.transform(np.eye(3), -model.get_average())
    return model


def main():
    parser = argparse.ArgumentParser(description="Single ICP alignment trial on a synthetic surface")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to YAML configuration file (defaults to config/default.yaml)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for perturbation and selection RNGs (overrides config).",
    )
    parser.add_argument(
        "--steps",
        type=int,
        default=None,
        help="Number of ICP steps to run (overrides icp.steps).",
    )
    args = parser.parse_args()

    cfg: AppConfig = load_config(args.config)
    if args.seed is not None:
        cfg.perturbation.seed = args.seed
        cfg.icp.seed = args.seed
    if args.steps is not None:
        cfg.icp.steps = args.steps

    log_level = getattr(logging, cfg.logging.level.upper(), logging.INFO)
    logger = setup_logger(__name__, level=log_level, log_file=cfg.logging.file)
    set_package_level(log_level)

    logger.info("Surface Registration Trial")
    logger.info("==========================")

    dest = make_surface(cfg)
    src = dest.copy(seed=cfg.perturbation.seed)

    # Perturb source
    p = cfg.perturbation
    for _ in range(p.noise_level):
        src.add_noise(p.noise_amplitude)
    for _ in range(p.holes):
        removed = src.add_hole()
        logger.info("Removed source vertex %d", removed)
    if p.max_rotation_deg > 0:
        src.rotate_random(np.deg2rad(p.max_rotation_deg), np.deg2rad(p.min_rotation_deg))
    if p.max_translation > 0:
        src.translate_random(p.max_translation)

    # Identity pairs are the ground truth as long as no vertex was removed
    pairs = np.arange(src.n_vertices) if src.n_vertices == dest.n_vertices else None

    nn = create_nearest_neighbor(cfg.icp.nearest_neighbor)
    if cfg.selection.method == "poisson":
        selector = PoissonDiskPointSelector(seed=cfg.icp.seed, k=cfg.poisson.k)
    else:
        selector = RandomPointSelector(seed=cfg.icp.seed)
    icp = create_icp(cfg.icp.algorithm, nn, point_selector=selector, seed=cfg.icp.seed)
    icp.selection_flags = cfg.selection.to_flags()
    icp.selection_percentage = cfg.selection.percentage

    logger.info(
        "Source: %d vertices, destination: %d vertices, algorithm=%s, nn=%s, selection=%s (%s, %.0f%%)",
        src.n_vertices,
        dest.n_vertices,
        cfg.icp.algorithm,
        cfg.icp.nearest_neighbor,
        cfg.selection.method,
        icp.selection_flags.describe(),
        icp.selection_percentage * 100.0,
    )

    def report(label: str) -> None:
        error = nn.compute_error(src, dest)
        if pairs is None:
            logger.info("%s: NN error %.10f", label, error)
            return
        real_error, matches = nn.compute_error(src, dest, pairs, return_matches=True)
        logger.info(
            "%s: NN error %.10f, real error %.10f, matching pairs %d / %d",
            label,
            error,
            real_error,
            matches,
            len(pairs),
        )

    report("Before alignment")

    if cfg.icp.pca_first:
        pca = PCAICP(nn)
        pca.calc_next_step(src, dest)  # First axis
        pca.calc_next_step(src, dest)  # Second axis
        report("After PCA")

    start = time.time()
    for step in range(cfg.icp.steps):
        used = icp.calc_next_step(src, dest)
        report(f"Step {step + 1} ({used} points)")
    logger.info("Ran %d steps in %.3f s", cfg.icp.steps, time.time() - start)


if __name__ == "__main__":
    main()
