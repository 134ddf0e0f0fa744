"""
Persistable orientation snapshot.

The upload flow stores the chosen rotation together with the translation
that sets the part on the bed and the support estimate; the slicing side
reads it back and re-orients the mesh before slicing. This module owns
that payload's validation and its application to a trimesh mesh.
"""
import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple

import numpy as np
import trimesh

from geometry_primitives import PrintMesh, quaternion_to_matrix, rotate_vectors
from orientation import OrientationResult

logger = logging.getLogger(__name__)


class OrientationDataError(ValueError):
    """Orientation payload failed validation."""
    pass


def _finite_tuple(values: Any, expected_length: int, label: str) -> Tuple[float, ...]:
    if not isinstance(values, (list, tuple)) or len(values) != expected_length:
        raise OrientationDataError(
            f"Orientation {label} must contain {expected_length} values"
        )
    result = []
    for index, value in enumerate(values):
        if (
            isinstance(value, bool)
            or not isinstance(value, (int, float))
            or not math.isfinite(value)
        ):
            raise OrientationDataError(
                f"Orientation {label}[{index}] must be a finite number"
            )
        result.append(float(value))
    return tuple(result)


def _optional_finite(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value) if math.isfinite(value) else None


@dataclass
class OrientationSnapshot:
    """Rotation + bed placement + support estimate for one uploaded part."""
    quaternion: Tuple[float, float, float, float]
    position: Tuple[float, float, float]
    auto_oriented: bool = False
    support_volume: Optional[float] = None
    support_weight: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OrientationSnapshot":
        """Validate a stored payload (camelCase keys).

        Raises:
            OrientationDataError: quaternion/position missing, wrong length,
                non-finite, or a zero quaternion.
        """
        quaternion = _finite_tuple(data.get("quaternion"), 4, "quaternion")
        position = _finite_tuple(data.get("position"), 3, "position")

        norm = math.sqrt(sum(c * c for c in quaternion))
        if norm == 0.0:
            raise OrientationDataError("Orientation quaternion must be non-zero")

        return cls(
            quaternion=tuple(c / norm for c in quaternion),
            position=position,
            auto_oriented=bool(data.get("autoOriented", False)),
            support_volume=_optional_finite(data.get("supportVolume")),
            support_weight=_optional_finite(data.get("supportWeight")),
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "quaternion": list(self.quaternion),
            "position": list(self.position),
            "autoOriented": self.auto_oriented,
        }
        if self.support_volume is not None:
            payload["supportVolume"] = self.support_volume
        if self.support_weight is not None:
            payload["supportWeight"] = self.support_weight
        return payload

    def transform(self) -> np.ndarray:
        """(4, 4) homogeneous transform: rotate, then translate."""
        matrix = np.eye(4)
        matrix[:3, :3] = quaternion_to_matrix(self.quaternion)
        matrix[:3, 3] = self.position
        return matrix


def bed_position(mesh: PrintMesh, quaternion: Sequence[float]) -> Tuple[float, float, float]:
    """Translation that puts the rotated mesh on the bed, centred in XZ."""
    if mesh.is_empty:
        return (0.0, 0.0, 0.0)
    rotated = rotate_vectors(mesh.positions, quaternion_to_matrix(quaternion))
    lo = rotated.min(axis=0)
    hi = rotated.max(axis=0)
    return (
        float(-(lo[0] + hi[0]) / 2.0),
        float(-lo[1]),
        float(-(lo[2] + hi[2]) / 2.0),
    )


def snapshot_from_result(mesh: PrintMesh, result: OrientationResult) -> OrientationSnapshot:
    """Snapshot for an OrientationResult computed on *mesh*."""
    metrics = result.metrics
    return OrientationSnapshot(
        quaternion=tuple(float(c) for c in result.rotation),
        position=bed_position(mesh, result.rotation),
        auto_oriented=True,
        support_volume=_optional_finite(metrics.support_volume),
        support_weight=_optional_finite(metrics.support_weight),
    )


def apply_orientation(mesh: trimesh.Trimesh, snapshot: OrientationSnapshot) -> trimesh.Trimesh:
    """Rotated and translated copy of *mesh*; the input is left untouched."""
    oriented = mesh.copy()
    oriented.apply_transform(snapshot.transform())
    logger.debug(
        "Applied orientation q=%s p=%s to %d-face mesh",
        np.round(snapshot.quaternion, 6).tolist(),
        np.round(snapshot.position, 3).tolist(),
        len(oriented.faces),
    )
    return oriented
