"""
Automatic print-orientation optimizer.

Searches candidate "up" directions for the rotation that minimizes
support volume and print height while maximizing bed contact:

1. Subsample vertices for cheap extent measurement
2. Principal axes of the sample (Jacobi)
3. Candidates: signed principal axes, then a Fibonacci sphere sample
4. Per candidate: extents, overhang detection on the full mesh, score
5. Keep the best; on ties keep the earliest candidate

The search is anytime: the wall-clock budget is checked before each
candidate. When it runs out, a height-only pass over the signed principal
axes supplies the answer if nothing was scored, or replaces the partial
best when it sits lower and the search never reached every axis.
"""
import logging
import time
from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple, Union

import numpy as np

from candidate_directions import (
    DEFAULT_DIRECTION_SAMPLES,
    clamp_direction_samples,
    generate_candidate_directions,
)
from geometry_primitives import (
    IDENTITY_QUATERNION,
    WORLD_UP,
    PrintMesh,
    quaternion_from_unit_vectors,
    quaternion_to_matrix,
)
from overhang_detector import (
    DEFAULT_THRESHOLD_DEG,
    OverhangConfig,
    OverhangWorkspace,
    detect_overhangs,
)
from principal_axes import PrincipalAxisConfig, compute_principal_axes
from scoring import (
    OrientationMetrics,
    OrientMode,
    ScoringWeights,
    height_penalty,
    measure_extents,
    score_orientation,
)
from vertex_sampling import DEFAULT_VERTEX_SAMPLES, sample_vertices

logger = logging.getLogger(__name__)

SCORE_EPSILON = 1e-6
HEIGHT_EPSILON = 1e-6


@dataclass
class OrientationOptions:
    """Configuration for the orientation search."""
    direction_samples: int = DEFAULT_DIRECTION_SAMPLES   # clamped to [24, 200]
    vertex_samples: int = DEFAULT_VERTEX_SAMPLES         # clamped to [1000, 20000]
    max_duration_ms: Optional[float] = None              # None = unbounded
    overhang_threshold_deg: float = DEFAULT_THRESHOLD_DEG
    jacobi_max_sweeps: int = 10
    weights: ScoringWeights = field(default_factory=ScoringWeights)
    overhang: OverhangConfig = field(default_factory=OverhangConfig)


@dataclass
class OrientationResult:
    """Outcome of one compute_orientation call."""
    rotation: Tuple[float, float, float, float]
    metrics: OrientationMetrics
    timed_out: bool
    up_direction: np.ndarray            # mesh direction that ends up pointing +Y
    candidates_evaluated: int = 0
    used_fallback: bool = False

    def to_dict(self) -> dict:
        return {
            "quaternion": [float(c) for c in self.rotation],
            "upDirection": [float(c) for c in self.up_direction],
            "metrics": self.metrics.to_dict(),
            "timedOut": self.timed_out,
            "candidatesEvaluated": self.candidates_evaluated,
            "usedFallback": self.used_fallback,
        }


def _budget_exhausted(start: float, max_duration_ms: Optional[float]) -> bool:
    if max_duration_ms is None:
        return False
    return (time.perf_counter() - start) * 1000.0 >= max_duration_ms


def _as_tuple(quaternion: np.ndarray) -> Tuple[float, float, float, float]:
    return tuple(float(c) for c in quaternion)


def compute_orientation(
    mesh: PrintMesh,
    mode: Union[OrientMode, str] = OrientMode.UPRIGHT,
    options: Optional[OrientationOptions] = None,
) -> OrientationResult:
    """Find the rotation that best prepares *mesh* for printing.

    Args:
        mesh: Mesh to orient. Never modified.
        mode: "upright" penalizes height fully, "flat" at half weight.
        options: Search parameters and time budget.

    Returns:
        OrientationResult. An empty mesh, or one whose triangles all have
        zero area, gives the identity rotation with an infinite score.
        Malformed geometry never raises.

    Raises:
        ValueError: *mode* is not "upright" or "flat".
    """
    if options is None:
        options = OrientationOptions()
    mode = OrientMode(mode)
    start = time.perf_counter()

    if mesh.is_empty or not mesh.has_area():
        logger.info("No triangle with area; returning identity orientation")
        return OrientationResult(
            rotation=IDENTITY_QUATERNION,
            metrics=OrientationMetrics(),
            timed_out=_budget_exhausted(start, options.max_duration_ms),
            up_direction=WORLD_UP.copy(),
        )

    # ── Sampling ──
    samples = sample_vertices(mesh.positions, options.vertex_samples)
    axes = compute_principal_axes(
        samples, PrincipalAxisConfig(max_sweeps=options.jacobi_max_sweeps),
    )
    directions = generate_candidate_directions(
        axes, clamp_direction_samples(options.direction_samples),
    )
    logger.debug(
        "Sampled %d of %d vertices; %d principal axes; %d candidates",
        len(samples), mesh.vertex_count, len(axes), len(directions),
    )

    # Scratch buffers shared by every candidate
    workspace = OverhangWorkspace(mesh)
    extents_buffer = np.empty((len(samples), 3))

    # ── Evaluating ──
    best: Optional[OrientationResult] = None
    evaluated = 0
    timed_out = False

    for index, direction in enumerate(directions):
        if _budget_exhausted(start, options.max_duration_ms):
            timed_out = True
            break

        candidate = _evaluate_candidate(
            mesh, samples, direction, mode, options, workspace, extents_buffer,
        )
        evaluated += 1

        if best is None or candidate.metrics.score < best.metrics.score - SCORE_EPSILON:
            best = candidate
            logger.debug(
                "Candidate %d up=%s is new best: score=%.4f",
                index, np.round(direction, 4).tolist(), candidate.metrics.score,
            )

    # ── Finalizing ──
    if timed_out:
        fallback = _fallback_orientation(samples, axes, mode, options.weights, extents_buffer)
        # The signed principal axes lead the candidate list
        axes_covered = evaluated >= len(generate_candidate_directions(axes, 0))
        if best is None:
            logger.warning(
                "No candidate scored within %s ms; using height-only principal-axis fallback",
                options.max_duration_ms,
            )
            best = fallback
        elif not axes_covered and fallback.metrics.height < best.metrics.height - HEIGHT_EPSILON:
            logger.warning(
                "Timed out after %d candidates; principal-axis fallback is lower "
                "(%.2f < %.2f), using it",
                evaluated, fallback.metrics.height, best.metrics.height,
            )
            best = fallback

    best.timed_out = timed_out
    best.candidates_evaluated = evaluated

    logger.info(
        "Orientation: %d/%d candidates in %.1f ms, score=%.4f height=%.2f "
        "support=%.2f contact=%.2f timed_out=%s",
        evaluated, len(directions), (time.perf_counter() - start) * 1000.0,
        best.metrics.score, best.metrics.height, best.metrics.support_volume,
        best.metrics.contact_area, timed_out,
    )
    return best


def _evaluate_candidate(
    mesh: PrintMesh,
    samples: np.ndarray,
    direction: np.ndarray,
    mode: OrientMode,
    options: OrientationOptions,
    workspace: OverhangWorkspace,
    extents_buffer: np.ndarray,
) -> OrientationResult:
    """Full evaluation: extents, overhangs and score for one direction."""
    quaternion = quaternion_from_unit_vectors(direction, WORLD_UP)
    extents = measure_extents(samples, quaternion_to_matrix(quaternion), out=extents_buffer)
    overhangs = detect_overhangs(
        mesh, quaternion, options.overhang_threshold_deg,
        config=options.overhang, workspace=workspace,
    )
    score = score_orientation(
        overhangs.support_volume, extents.height, overhangs.contact_area,
        mode, options.weights,
    )
    metrics = OrientationMetrics(
        support_volume=overhangs.support_volume,
        height=extents.height,
        contact_area=overhangs.contact_area,
        score=score,
        support_area=overhangs.support_area,
        support_weight=overhangs.support_weight,
        footprint_area=extents.footprint_area,
        overhang_count=overhangs.overhang_count,
    )
    return OrientationResult(
        rotation=_as_tuple(quaternion),
        metrics=metrics,
        timed_out=False,
        up_direction=np.array(direction, dtype=np.float64),
    )


def _fallback_orientation(
    samples: np.ndarray,
    axes: Sequence[np.ndarray],
    mode: OrientMode,
    weights: ScoringWeights,
    extents_buffer: np.ndarray,
) -> OrientationResult:
    """Lowest-height signed principal axis; skips overhang detection.

    The score holds only the height term, since support and contact were
    never measured.
    """
    best: Optional[OrientationResult] = None
    for direction in generate_candidate_directions(axes, 0):
        quaternion = quaternion_from_unit_vectors(direction, WORLD_UP)
        extents = measure_extents(samples, quaternion_to_matrix(quaternion), out=extents_buffer)
        if best is not None and extents.height >= best.metrics.height - HEIGHT_EPSILON:
            continue
        best = OrientationResult(
            rotation=_as_tuple(quaternion),
            metrics=OrientationMetrics(
                height=extents.height,
                score=weights.height * height_penalty(extents.height, mode, weights),
                footprint_area=extents.footprint_area,
            ),
            timed_out=True,
            up_direction=np.array(direction, dtype=np.float64),
            used_fallback=True,
        )
    return best
