"""
Principal axes of a vertex cloud.

Builds the 3x3 covariance matrix about the centroid and diagonalizes it
with a bounded cyclic Jacobi sweep. The axes seed the orientation search:
parts usually print best with one of their directions of greatest or
least spread pointing up.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

logger = logging.getLogger(__name__)


@dataclass
class PrincipalAxisConfig:
    """Configuration for the Jacobi eigen-decomposition."""
    max_sweeps: int = 10
    tolerance: float = 1e-10
    zero_variance_tolerance: float = 1e-12


def covariance_matrix(points: np.ndarray) -> np.ndarray:
    """Population covariance of an (N, 3) point array about its centroid."""
    points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    if len(points) == 0:
        return np.zeros((3, 3))
    centred = points - points.mean(axis=0)
    return (centred.T @ centred) / len(points)


def jacobi_eigen(
    matrix: np.ndarray,
    max_sweeps: int = 10,
    tolerance: float = 1e-10,
) -> Tuple[np.ndarray, np.ndarray, int]:
    """Cyclic Jacobi eigen-decomposition of a symmetric matrix.

    Each sweep zeroes every off-diagonal pair (p, q) in turn with a plane
    rotation. Stops early once the largest off-diagonal magnitude drops
    below *tolerance* (scaled by the diagonal magnitude for matrices
    larger than unit scale).

    Args:
        matrix: (n, n) symmetric matrix.
        max_sweeps: Upper bound on full sweeps.
        tolerance: Convergence threshold on the largest off-diagonal entry.

    Returns:
        (eigenvalues (n,), eigenvectors (n, n) as columns, sweeps run)
    """
    a = np.array(matrix, dtype=np.float64, copy=True)
    n = a.shape[0]
    v = np.eye(n)
    upper = np.triu_indices(n, k=1)
    threshold = tolerance * max(1.0, float(np.max(np.abs(np.diag(a)))))

    sweeps = 0
    for sweeps in range(max_sweeps + 1):
        off = float(np.max(np.abs(a[upper]))) if n > 1 else 0.0
        if off < threshold or sweeps == max_sweeps:
            break

        for p in range(n - 1):
            for q in range(p + 1, n):
                apq = a[p, q]
                if abs(apq) < threshold:
                    continue
                theta = (a[q, q] - a[p, p]) / (2.0 * apq)
                t = 1.0 if theta == 0.0 else (
                    np.sign(theta) / (abs(theta) + np.sqrt(theta * theta + 1.0))
                )
                c = 1.0 / np.sqrt(t * t + 1.0)
                s = t * c

                rot = np.eye(n)
                rot[p, p] = c
                rot[q, q] = c
                rot[p, q] = s
                rot[q, p] = -s

                a = rot.T @ a @ rot
                v = v @ rot

    if n > 1 and float(np.max(np.abs(a[upper]))) >= threshold:
        logger.debug(
            "Jacobi stopped after %d sweeps without converging (off-diagonal %.3e)",
            sweeps, float(np.max(np.abs(a[upper]))),
        )
    return np.diag(a).copy(), v, sweeps


def compute_principal_axes(
    points: np.ndarray,
    config: Optional[PrincipalAxisConfig] = None,
) -> List[np.ndarray]:
    """Orthonormal principal axes sorted by descending spread.

    Each axis has its largest-magnitude component made positive so the
    result does not depend on the rotation path the solver took.

    Returns:
        Three (3,) unit vectors, or an empty list when the cloud is empty
        or all points coincide.
    """
    if config is None:
        config = PrincipalAxisConfig()

    points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    if len(points) == 0:
        return []

    cov = covariance_matrix(points)
    if float(np.max(np.abs(cov))) <= config.zero_variance_tolerance:
        logger.debug("Zero-variance vertex cloud; no principal axes")
        return []

    eigenvalues, eigenvectors, sweeps = jacobi_eigen(
        cov, config.max_sweeps, config.tolerance,
    )
    order = np.argsort(-eigenvalues, kind="stable")

    axes = []
    for col in order:
        axis = eigenvectors[:, col]
        axis = axis / np.linalg.norm(axis)
        if axis[int(np.argmax(np.abs(axis)))] < 0:
            axis = -axis
        axes.append(axis)

    logger.debug(
        "Principal axes after %d sweeps: eigenvalues=%s",
        sweeps, np.round(eigenvalues[order], 6).tolist(),
    )
    return axes
