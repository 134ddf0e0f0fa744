"""Tests for orientation_snapshot module."""
import math

import numpy as np
import pytest

from geometry_primitives import IDENTITY_QUATERNION, print_mesh_from_trimesh
from orientation import compute_orientation
from orientation_snapshot import (
    OrientationDataError,
    OrientationSnapshot,
    apply_orientation,
    bed_position,
    snapshot_from_result,
)


class TestSnapshotFromResult:
    """Test bed placement of an optimizer result."""

    def test_oriented_mesh_sits_on_bed(self, slab_trimesh):
        mesh = print_mesh_from_trimesh(slab_trimesh)
        result = compute_orientation(mesh)
        snapshot = snapshot_from_result(mesh, result)
        assert snapshot.auto_oriented is True
        assert snapshot.support_volume == pytest.approx(0.0)

        oriented = apply_orientation(slab_trimesh, snapshot)
        lo, hi = oriented.bounds
        assert lo[1] == pytest.approx(0.0, abs=1e-9)
        assert hi[1] == pytest.approx(10.0)
        assert (lo[0] + hi[0]) / 2.0 == pytest.approx(0.0, abs=1e-9)
        assert (lo[2] + hi[2]) / 2.0 == pytest.approx(0.0, abs=1e-9)

    def test_apply_leaves_input_untouched(self, slab_trimesh):
        before = slab_trimesh.vertices.copy()
        snapshot = OrientationSnapshot(
            quaternion=(0.0, 0.0, math.sqrt(0.5), math.sqrt(0.5)),
            position=(1.0, 2.0, 3.0),
        )
        apply_orientation(slab_trimesh, snapshot)
        assert np.array_equal(slab_trimesh.vertices, before)

    def test_bed_position_identity(self, bed_cube_mesh):
        assert bed_position(bed_cube_mesh, IDENTITY_QUATERNION) == pytest.approx((0.0, 0.0, 0.0))

    def test_bed_position_empty(self, empty_mesh):
        assert bed_position(empty_mesh, IDENTITY_QUATERNION) == (0.0, 0.0, 0.0)


class TestFromDict:
    """Test payload validation."""

    def test_valid_payload(self):
        snapshot = OrientationSnapshot.from_dict({
            "quaternion": [0, 0, 0, 2],
            "position": [1, 2, 3],
            "autoOriented": True,
            "supportVolume": 12.5,
            "supportWeight": 0.0155,
        })
        assert snapshot.quaternion == pytest.approx((0.0, 0.0, 0.0, 1.0))
        assert snapshot.position == (1.0, 2.0, 3.0)
        assert snapshot.auto_oriented is True
        assert snapshot.support_volume == 12.5

    def test_round_trip(self):
        original = OrientationSnapshot(
            quaternion=(0.0, 0.0, 0.0, 1.0), position=(0.0, 5.0, 0.0),
            auto_oriented=True, support_volume=3.0, support_weight=0.00372,
        )
        assert OrientationSnapshot.from_dict(original.to_dict()) == original

    @pytest.mark.parametrize("payload", [
        {"quaternion": [0, 0, 1], "position": [0, 0, 0]},
        {"quaternion": [0, 0, 0, float("nan")], "position": [0, 0, 0]},
        {"quaternion": [0, 0, 0, 1], "position": [0, float("inf"), 0]},
        {"quaternion": [0, 0, 0, True], "position": [0, 0, 0]},
        {"quaternion": [0, 0, 0, "1"], "position": [0, 0, 0]},
        {"position": [0, 0, 0]},
        {"quaternion": [0, 0, 0, 0], "position": [0, 0, 0]},
    ])
    def test_invalid_payload(self, payload):
        with pytest.raises(OrientationDataError):
            OrientationSnapshot.from_dict(payload)

    def test_error_names_field(self):
        with pytest.raises(OrientationDataError, match=r"position\[1\]"):
            OrientationSnapshot.from_dict({"quaternion": [0, 0, 0, 1], "position": [0, None, 0]})

    def test_non_finite_support_dropped(self):
        snapshot = OrientationSnapshot.from_dict({
            "quaternion": [0, 0, 0, 1],
            "position": [0, 0, 0],
            "supportVolume": float("nan"),
            "supportWeight": "heavy",
        })
        assert snapshot.support_volume is None
        assert snapshot.support_weight is None
        assert "supportVolume" not in snapshot.to_dict()
