"""
Per-triangle overhang classification for a candidate print rotation.

Every triangle of the rotated mesh is sorted into one of three bins:
downward-facing and resting on the bed (contact), downward-facing and
above the bed (overhang, needs support), or neither. Overhangs add an
approximate support volume of area x height x density factor; this is a
shape heuristic, not a swept-volume computation.

All arithmetic is vectorized over triangles into an OverhangWorkspace so
repeated evaluations of the same mesh reuse their scratch buffers.
"""
import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np

from geometry_primitives import PrintMesh, quaternion_to_matrix, rotate_vectors
from materials import PLA_DENSITY_G_PER_MM3

logger = logging.getLogger(__name__)

DOWN_VECTOR = np.array([0.0, -1.0, 0.0])
DEFAULT_THRESHOLD_DEG = 45.0


@dataclass
class OverhangConfig:
    """Configuration for support estimation."""
    density_factor: float = 0.3         # fraction of the column under an overhang filled by support
    contact_epsilon: float = 0.1        # faces this close to the bed count as contact
    material_density_g_per_mm3: float = PLA_DENSITY_G_PER_MM3


@dataclass
class OverhangResult:
    """Support estimate for one rotation."""
    overhang_face_indices: List[int] = field(default_factory=list)
    support_area: float = 0.0
    support_volume: float = 0.0
    support_weight: float = 0.0
    contact_area: float = 0.0

    @property
    def overhang_count(self) -> int:
        return len(self.overhang_face_indices)

    def to_dict(self) -> dict:
        return {
            "faces": list(self.overhang_face_indices),
            "supportArea": self.support_area,
            "supportVolume": self.support_volume,
            "supportWeight": self.support_weight,
            "contactArea": self.contact_area,
        }


class OverhangWorkspace:
    """Scratch buffers sized for one mesh.

    Allocate once per mesh and pass to every detect_overhangs call for
    that mesh. Not shared between threads.
    """

    def __init__(self, mesh: PrintMesh):
        n_vertices = mesh.vertex_count
        self.triangles = mesh.triangle_indices()
        n_tri = len(self.triangles)

        self.rotated = np.empty((n_vertices, 3))
        self.corner_a = np.empty((n_tri, 3))
        self.corner_b = np.empty((n_tri, 3))
        self.corner_c = np.empty((n_tri, 3))
        self.edge_cb = np.empty((n_tri, 3))
        self.edge_ab = np.empty((n_tri, 3))
        self.normals = np.empty((n_tri, 3))
        self.lengths = np.empty(n_tri)
        self.areas = np.empty(n_tri)
        self.dots = np.empty(n_tri)
        self.heights = np.empty(n_tri)
        self.scratch = np.empty(n_tri)

    def fits(self, mesh: PrintMesh) -> bool:
        return (
            self.rotated.shape[0] == mesh.vertex_count
            and len(self.triangles) == mesh.triangle_count
        )


def _cross_into(u: np.ndarray, v: np.ndarray, out: np.ndarray, tmp: np.ndarray) -> None:
    """Row-wise u x v written into *out*."""
    for i, j, k in ((0, 1, 2), (1, 2, 0), (2, 0, 1)):
        np.multiply(u[:, j], v[:, k], out=out[:, i])
        np.multiply(u[:, k], v[:, j], out=tmp)
        np.subtract(out[:, i], tmp, out=out[:, i])


def detect_overhangs(
    mesh: PrintMesh,
    rotation: Sequence[float],
    threshold_deg: float = DEFAULT_THRESHOLD_DEG,
    config: Optional[OverhangConfig] = None,
    workspace: Optional[OverhangWorkspace] = None,
) -> OverhangResult:
    """Classify every triangle of *mesh* under *rotation*.

    A triangle needs support when its unit normal n satisfies
    dot(n, down) >= cos(threshold_deg). Downward faces whose mean vertex
    height above the lowest rotated vertex is within
    config.contact_epsilon are bed contact instead.

    Args:
        mesh: Full (unsampled) mesh. Never modified.
        rotation: (x, y, z, w) quaternion applied before classification.
        threshold_deg: Overhang angle measured from straight down.
        config: Support estimation parameters.
        workspace: Reusable scratch buffers for this mesh.

    Returns:
        OverhangResult; all zeros for an empty or fully degenerate mesh.
    """
    if config is None:
        config = OverhangConfig()

    if mesh.vertex_count == 0 or mesh.triangle_count == 0:
        return OverhangResult()

    if workspace is None or not workspace.fits(mesh):
        workspace = OverhangWorkspace(mesh)
    ws = workspace

    rotated = rotate_vectors(mesh.positions, quaternion_to_matrix(rotation), out=ws.rotated)
    min_y = float(np.min(rotated[:, 1]))
    if not math.isfinite(min_y):
        min_y = 0.0

    tri = ws.triangles
    np.take(rotated, tri[:, 0], axis=0, out=ws.corner_a)
    np.take(rotated, tri[:, 1], axis=0, out=ws.corner_b)
    np.take(rotated, tri[:, 2], axis=0, out=ws.corner_c)

    # Normal of (a, b, c) is (c - b) x (a - b); its length is twice the area
    np.subtract(ws.corner_c, ws.corner_b, out=ws.edge_cb)
    np.subtract(ws.corner_a, ws.corner_b, out=ws.edge_ab)
    _cross_into(ws.edge_cb, ws.edge_ab, ws.normals, ws.scratch)
    np.einsum("ij,ij->i", ws.normals, ws.normals, out=ws.lengths)
    np.sqrt(ws.lengths, out=ws.lengths)
    np.multiply(ws.lengths, 0.5, out=ws.areas)

    nondegenerate = ws.areas > 0.0

    # dot(unit normal, (0, -1, 0)) == -n_y / |n|
    ws.dots.fill(0.0)
    np.divide(ws.normals[:, 1], ws.lengths, out=ws.dots, where=nondegenerate)
    np.negative(ws.dots, out=ws.dots)

    np.add(ws.corner_a[:, 1], ws.corner_b[:, 1], out=ws.heights)
    np.add(ws.heights, ws.corner_c[:, 1], out=ws.heights)
    np.divide(ws.heights, 3.0, out=ws.heights)
    np.subtract(ws.heights, min_y, out=ws.heights)

    cos_threshold = math.cos(math.radians(threshold_deg))
    downward = nondegenerate & (ws.dots >= cos_threshold)
    contact = downward & (ws.heights <= config.contact_epsilon)
    overhang = downward & ~contact

    overhang_areas = ws.areas[overhang]
    support_area = float(overhang_areas.sum())
    support_volume = float(
        np.sum(overhang_areas * np.maximum(ws.heights[overhang], 0.0)) * config.density_factor
    )
    contact_area = float(ws.areas[contact].sum())

    return OverhangResult(
        overhang_face_indices=np.flatnonzero(overhang).tolist(),
        support_area=support_area,
        support_volume=support_volume,
        support_weight=support_volume * config.material_density_g_per_mm3,
        contact_area=contact_area,
    )
