"""
Cluster statistics for exported snapshots.

Implements the radius of gyration and the sandbox (mass-radius) estimate of
the fractal dimension, M(<R) ~ R^Df.
"""
from __future__ import annotations

from typing import Any, Dict

import numpy as np
from scipy.stats import linregress

from . import utils

SANDBOX_R_MIN = 2.0
MIN_FIT_POINTS = 10


def radius_of_gyration(positions: np.ndarray) -> float:
    """Root-mean-square distance of the particles from their center of mass."""
    pos = np.asarray(positions, dtype=np.float64)
    if pos.ndim != 2 or pos.shape[1] != 2 or len(pos) == 0:
        raise ValueError(f"Expected positions of shape (N, 2), got {pos.shape}")
    centered = pos - pos.mean(axis=0)
    return float(np.sqrt(np.mean(np.sum(centered**2, axis=1))))


def sandbox_dimension(positions: np.ndarray) -> tuple[float, float]:
    """
    Fractal dimension by the sandbox method.

    Counts the mass inside log-spaced radii around the grid center (the
    positions are already centered) and fits log M against log R.

    Returns:
        Tuple of (Df, r_squared)
    """
    pos = np.asarray(positions, dtype=np.float64)
    distances = np.hypot(pos[:, 0], pos[:, 1])
    max_distance = float(distances.max()) if len(distances) else 0.0

    if max_distance <= SANDBOX_R_MIN:
        raise ValueError(
            f"Maximum particle distance ({max_distance:.2f}) is too small. "
            f"Need more than {SANDBOX_R_MIN} for sandbox analysis."
        )

    n_radii = min(100, max(50, len(pos) // 10))
    radii = np.logspace(np.log10(SANDBOX_R_MIN), np.log10(max_distance), n_radii)
    masses = np.searchsorted(np.sort(distances), radii, side="right")

    valid = masses > 0
    radii = radii[valid]
    masses = masses[valid]
    if len(radii) < MIN_FIT_POINTS:
        raise ValueError("Too few valid points for sandbox analysis after filtering.")

    fit = linregress(np.log(radii), np.log(masses))
    return float(fit.slope), float(fit.rvalue**2)


def cluster_stats(result: utils.ClusterResult) -> Dict[str, Any]:
    """Summary numbers for a snapshot; Df is None when the cluster is too small."""
    positions = result.positions
    if positions is None or len(positions) == 0:
        raise ValueError("result.positions is empty. Cannot perform analysis.")

    stats: Dict[str, Any] = {
        "particles": int(len(positions)),
        "r_gyration": radius_of_gyration(positions),
        "r_max": float(np.hypot(positions[:, 0], positions[:, 1]).max()),
        "df_sandbox": None,
        "df_r_squared": None,
    }
    try:
        stats["df_sandbox"], stats["df_r_squared"] = sandbox_dimension(positions)
    except ValueError:
        pass
    return stats


__all__ = ["radius_of_gyration", "sandbox_dimension", "cluster_stats"]
