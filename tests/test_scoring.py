"""Tests for scoring module."""
import math

import numpy as np
import pytest

from scoring import (
    OrientationMetrics,
    OrientMode,
    ScoringWeights,
    measure_extents,
    score_orientation,
)


class TestScoreOrientation:
    """Test the weighted orientation cost."""

    def test_upright_formula(self):
        score = score_orientation(10.0, 20.0, 50.0, OrientMode.UPRIGHT)
        assert score == pytest.approx(0.6 * 10.0 + 0.2 * 20.0 + 0.2 / 50.0)

    def test_flat_halves_height(self):
        score = score_orientation(10.0, 20.0, 50.0, "flat")
        assert score == pytest.approx(0.6 * 10.0 + 0.2 * 10.0 + 0.2 / 50.0)

    def test_support_volume_monotonic(self):
        scores = [score_orientation(v, 12.0, 30.0) for v in (0.0, 0.5, 5.0, 500.0)]
        assert all(a < b for a, b in zip(scores, scores[1:]))

    def test_zero_contact_guarded(self):
        score = score_orientation(0.0, 0.0, 0.0)
        assert math.isfinite(score)
        assert score == pytest.approx(0.2 / 1e-3)

    def test_more_contact_is_better(self):
        assert score_orientation(0.0, 10.0, 100.0) < score_orientation(0.0, 10.0, 1.0)

    def test_custom_weights(self):
        weights = ScoringWeights(support=1.0, height=0.0, contact=0.0)
        assert score_orientation(3.0, 99.0, 0.0, weights=weights) == pytest.approx(3.0)

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            score_orientation(0.0, 1.0, 1.0, "sideways")


class TestMeasureExtents:

    def test_identity(self, slab_mesh):
        extents = measure_extents(slab_mesh.positions, np.eye(3))
        assert extents.width == pytest.approx(40.0)
        assert extents.height == pytest.approx(20.0)
        assert extents.depth == pytest.approx(10.0)
        assert extents.footprint_area == pytest.approx(400.0)

    def test_rotated_about_z(self, slab_mesh):
        # +90 degrees about Z swaps the X and Y spans
        rot = np.array([[0.0, -1.0, 0.0], [1.0, 0.0, 0.0], [0.0, 0.0, 1.0]])
        extents = measure_extents(slab_mesh.positions, rot)
        assert extents.height == pytest.approx(40.0)
        assert extents.width == pytest.approx(20.0)

    def test_scratch_buffer(self, slab_mesh):
        out = np.empty((slab_mesh.vertex_count, 3))
        extents = measure_extents(slab_mesh.positions, np.eye(3), out=out)
        assert extents.height == pytest.approx(20.0)
        assert np.allclose(out, slab_mesh.positions)

    def test_empty(self):
        extents = measure_extents(np.zeros((0, 3)), np.eye(3))
        assert extents.height == 0.0
        assert extents.footprint_area == 0.0


class TestOrientationMetrics:

    def test_infinite_score_serializes_as_none(self):
        assert OrientationMetrics().to_dict()["score"] is None
