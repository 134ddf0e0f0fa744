"""
Orientation quality scoring.

Combines estimated support volume, print height and bed contact area
into one scalar cost (lower is better). The weights and the height
treatment per mode are tuning knobs, not physical constants.
"""
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np

from geometry_primitives import Extents, rotate_vectors


class OrientMode(str, Enum):
    """How strongly print height is penalized."""
    UPRIGHT = "upright"   # height counts in full
    FLAT = "flat"         # height is a softer, secondary concern


@dataclass
class ScoringWeights:
    """Configuration for the orientation cost."""
    support: float = 0.6
    height: float = 0.2
    contact: float = 0.2
    contact_epsilon: float = 1e-3
    flat_height_factor: float = 0.5


@dataclass
class OrientationMetrics:
    """Scored summary of one candidate orientation."""
    support_volume: float = 0.0
    height: float = 0.0
    contact_area: float = 0.0
    score: float = math.inf
    support_area: float = 0.0
    support_weight: float = 0.0
    footprint_area: float = 0.0
    overhang_count: int = 0

    def to_dict(self) -> dict:
        return {
            "supportVolume": self.support_volume,
            "height": self.height,
            "contactArea": self.contact_area,
            "score": self.score if math.isfinite(self.score) else None,
            "supportArea": self.support_area,
            "supportWeight": self.support_weight,
            "footprintArea": self.footprint_area,
            "overhangCount": self.overhang_count,
        }


def measure_extents(
    points: np.ndarray,
    matrix: np.ndarray,
    out: Optional[np.ndarray] = None,
) -> Extents:
    """Height (Y span) and XZ spans of *points* after rotation by *matrix*.

    Args:
        points: (N, 3) vertices, usually a strided sample of the mesh.
        matrix: (3, 3) rotation.
        out: Optional (N, 3) scratch buffer for the rotated points.
    """
    if len(points) == 0:
        return Extents()
    rotated = rotate_vectors(points, matrix, out=out)
    spans = np.maximum(rotated.max(axis=0) - rotated.min(axis=0), 0.0)
    return Extents(height=float(spans[1]), width=float(spans[0]), depth=float(spans[2]))


def height_penalty(
    height: float,
    mode: OrientMode,
    weights: Optional[ScoringWeights] = None,
) -> float:
    if weights is None:
        weights = ScoringWeights()
    if OrientMode(mode) is OrientMode.FLAT:
        return height * weights.flat_height_factor
    return height


def score_orientation(
    support_volume: float,
    height: float,
    contact_area: float,
    mode: OrientMode = OrientMode.UPRIGHT,
    weights: Optional[ScoringWeights] = None,
) -> float:
    """Weighted cost of one orientation.

    score = w_support * support_volume
          + w_height * height_penalty(height, mode)
          + w_contact / max(contact_area, contact_epsilon)

    Raises:
        ValueError: *mode* is not "upright" or "flat".
    """
    if weights is None:
        weights = ScoringWeights()

    contact_penalty = 1.0 / max(contact_area, weights.contact_epsilon)
    return (
        weights.support * support_volume
        + weights.height * height_penalty(height, mode, weights)
        + weights.contact * contact_penalty
    )
