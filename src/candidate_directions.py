"""
Candidate "print-up" directions for the orientation search.

Signed principal axes come first, followed by a Fibonacci-sphere sample
and its antipodes. Candidate order matters: the optimizer keeps the
earliest candidate on score ties.
"""
import logging
import math
from typing import List, Sequence, Tuple

import numpy as np

from geometry_primitives import WORLD_UP, normalize

logger = logging.getLogger(__name__)

DEFAULT_DIRECTION_SAMPLES = 96
MIN_DIRECTION_SAMPLES = 24
MAX_DIRECTION_SAMPLES = 200

_KEY_DECIMALS = 4
_GOLDEN_ANGLE = math.pi * (3.0 - math.sqrt(5.0))


def clamp_direction_samples(n_samples: int) -> int:
    return int(np.clip(int(n_samples), MIN_DIRECTION_SAMPLES, MAX_DIRECTION_SAMPLES))


def fibonacci_sphere_directions(n_samples: int) -> np.ndarray:
    """Quasi-uniform unit vectors on the sphere, from +Y down to -Y.

    Returns:
        (n_samples, 3) array.
    """
    n = max(0, int(n_samples))
    i = np.arange(n, dtype=np.float64)
    y = 1.0 - (i / max(1, n - 1)) * 2.0
    r = np.sqrt(np.maximum(0.0, 1.0 - y * y))
    theta = i * _GOLDEN_ANGLE
    return np.column_stack([np.cos(theta) * r, y, np.sin(theta) * r])


def direction_key(direction: Sequence[float]) -> Tuple[float, float, float]:
    """Dedup key: each component rounded to 4 decimals (-0.0 folded to 0.0)."""
    return tuple(round(float(c), _KEY_DECIMALS) + 0.0 for c in direction)


def generate_candidate_directions(
    axes: Sequence[np.ndarray],
    n_samples: int,
) -> np.ndarray:
    """Deduplicated unit candidates in generation order.

    Args:
        axes: Principal axes (possibly empty).
        n_samples: Fibonacci points to add, each with its negation.
            Not clamped here; the optimizer clamps user input.

    Returns:
        (K, 3) array with K >= 1. Falls back to +Y alone when there is
        nothing else to offer.
    """
    ordered: List[np.ndarray] = []
    for axis in axes:
        ordered.append(np.asarray(axis, dtype=np.float64))
        ordered.append(-np.asarray(axis, dtype=np.float64))
    for point in fibonacci_sphere_directions(n_samples):
        ordered.append(point)
        ordered.append(-point)

    seen = set()
    directions = []
    for candidate in ordered:
        unit = normalize(candidate)
        if unit is None:
            continue
        key = direction_key(unit)
        if key in seen:
            continue
        seen.add(key)
        directions.append(unit)

    if not directions:
        directions.append(WORLD_UP.copy())

    logger.debug(
        "Generated %d candidate directions (%d axes, %d sphere samples)",
        len(directions), len(axes), max(0, int(n_samples)),
    )
    return np.array(directions)
