"""
Core geometry types for print-orientation analysis.

Provides PrintMesh (a read-only vertex/triangle buffer pair), Extents
(rotated bounding measurements), and the small set of vector and
quaternion helpers the optimizer needs: normalize, shortest-arc rotation
between unit vectors, and quaternion -> matrix conversion.

Conventions: world up is +Y (the print bed is the XZ plane), quaternions
are (x, y, z, w) with the scalar last.
"""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Tuple

import numpy as np
import trimesh
from scipy.spatial.transform import Rotation

logger = logging.getLogger(__name__)

WORLD_UP = np.array([0.0, 1.0, 0.0])
IDENTITY_QUATERNION: Tuple[float, float, float, float] = (0.0, 0.0, 0.0, 1.0)

_NORMALIZE_EPS = 1e-12


class MeshLoadError(ValueError):
    """A mesh file could not be read into a PrintMesh."""
    pass


@dataclass
class PrintMesh:
    """Triangle mesh destined for printing.

    Positions are stored as an (N, 3) float64 array; indices as an (M, 3)
    integer array, or None when triangles are implied by consecutive
    vertex triples. Both arrays are made read-only on construction.

    Malformed buffers never raise: trailing values that do not form a
    whole vertex or triangle are dropped, as are triangles that reference
    vertices outside the buffer. Vertices with NaN or infinite coordinates
    are removed along with every triangle that uses them.
    """
    positions: np.ndarray
    indices: Optional[np.ndarray] = None

    def __post_init__(self):
        flat = np.array(self.positions, dtype=np.float64).reshape(-1)
        usable = flat.size - flat.size % 3
        if usable != flat.size:
            logger.warning(
                "Dropping %d trailing position values (not a whole vertex)",
                flat.size - usable,
            )
        positions = flat[:usable].reshape(-1, 3)
        finite = np.all(np.isfinite(positions), axis=1)

        if self.indices is None:
            if not np.all(finite):
                # Implied triangles: drop whole triples so the rest stay aligned
                whole = (len(positions) // 3) * 3
                triple_ok = np.all(finite[:whole].reshape(-1, 3), axis=1)
                keep = np.concatenate([np.repeat(triple_ok, 3), finite[whole:]])
                logger.warning(
                    "Dropping %d vertices with non-finite coordinates "
                    "(%d implied triangles)",
                    int(np.count_nonzero(~keep)),
                    int(np.count_nonzero(~triple_ok)),
                )
                positions = positions[keep]
            self.positions = self._freeze(positions)
            return

        flat_idx = np.array(self.indices, dtype=np.int64).reshape(-1)
        usable = flat_idx.size - flat_idx.size % 3
        if usable != flat_idx.size:
            logger.warning(
                "Dropping %d trailing index values (not a whole triangle)",
                flat_idx.size - usable,
            )
        triangles = flat_idx[:usable].reshape(-1, 3)

        in_range = np.all((triangles >= 0) & (triangles < len(positions)), axis=1)
        if not np.all(in_range):
            logger.warning(
                "Dropping %d triangles with out-of-range vertex indices",
                int(np.count_nonzero(~in_range)),
            )
            triangles = triangles[in_range]

        if not np.all(finite):
            uses_finite = np.all(finite[triangles], axis=1)
            logger.warning(
                "Dropping %d vertices with non-finite coordinates (%d triangles)",
                int(np.count_nonzero(~finite)),
                int(np.count_nonzero(~uses_finite)),
            )
            remap = np.cumsum(finite) - 1
            triangles = remap[triangles[uses_finite]]
            positions = positions[finite]

        self.positions = self._freeze(positions)
        self.indices = self._freeze(triangles)

    @staticmethod
    def _freeze(array: np.ndarray) -> np.ndarray:
        array = np.ascontiguousarray(array)
        array.setflags(write=False)
        return array

    @classmethod
    def from_buffers(
        cls,
        positions: Sequence[float],
        indices: Optional[Sequence[int]] = None,
    ) -> "PrintMesh":
        """Build a mesh from flat position/index buffers (or (N, 3) arrays)."""
        return cls(positions=positions, indices=indices)

    @property
    def vertex_count(self) -> int:
        return int(self.positions.shape[0])

    @property
    def triangle_count(self) -> int:
        if self.indices is not None:
            return int(self.indices.shape[0])
        return self.vertex_count // 3

    @property
    def is_empty(self) -> bool:
        return self.vertex_count == 0

    def triangle_indices(self) -> np.ndarray:
        """(M, 3) vertex indices of every triangle."""
        if self.indices is not None:
            return self.indices
        return np.arange(self.triangle_count * 3, dtype=np.int64).reshape(-1, 3)

    def has_area(self) -> bool:
        """True if at least one triangle has non-zero area."""
        tri = self.triangle_indices()
        if len(tri) == 0:
            return False
        a, b, c = (self.positions[tri[:, i]] for i in range(3))
        return bool(np.any(np.linalg.norm(np.cross(c - b, a - b), axis=1) > 0.0))


@dataclass
class Extents:
    """Axis-aligned size of a rotated mesh. Height is the Y span."""
    height: float = 0.0
    width: float = 0.0   # X span
    depth: float = 0.0   # Z span

    @property
    def footprint_area(self) -> float:
        """Area of the XZ bounding rectangle."""
        return self.width * self.depth


# ─── Vector / quaternion helpers ─────────────────────────────────────────────

def normalize(vector: np.ndarray) -> Optional[np.ndarray]:
    """Unit-length copy of *vector*, or None if it is (near) zero."""
    v = np.asarray(vector, dtype=np.float64)
    norm = float(np.linalg.norm(v))
    if not np.isfinite(norm) or norm < _NORMALIZE_EPS:
        return None
    return v / norm


def quaternion_from_unit_vectors(
    v_from: np.ndarray,
    v_to: np.ndarray = WORLD_UP,
) -> np.ndarray:
    """Shortest-arc rotation taking unit vector *v_from* onto *v_to*.

    For opposite vectors any perpendicular axis works; the one chosen
    depends only on *v_from*, so the result is deterministic.

    Returns:
        (4,) unit quaternion (x, y, z, w).
    """
    f = np.asarray(v_from, dtype=np.float64)
    t = np.asarray(v_to, dtype=np.float64)
    r = float(np.dot(f, t)) + 1.0

    if r < np.finfo(np.float64).eps:
        # 180 degrees: rotate about an axis orthogonal to v_from
        if abs(f[0]) > abs(f[2]):
            q = np.array([-f[1], f[0], 0.0, 0.0])
        else:
            q = np.array([0.0, -f[2], f[1], 0.0])
    else:
        axis = np.cross(f, t)
        q = np.array([axis[0], axis[1], axis[2], r])

    return q / np.linalg.norm(q)


def quaternion_to_matrix(quaternion: Sequence[float]) -> np.ndarray:
    """(3, 3) rotation matrix for an (x, y, z, w) quaternion.

    A zero or non-finite quaternion is treated as the identity.
    """
    q = np.asarray(quaternion, dtype=np.float64)
    norm = float(np.linalg.norm(q))
    if not np.isfinite(norm) or norm < _NORMALIZE_EPS:
        logger.warning("Degenerate quaternion %s; using identity", q.tolist())
        return np.eye(3)
    return Rotation.from_quat(q / norm).as_matrix()


def rotate_vectors(
    vectors: np.ndarray,
    matrix: np.ndarray,
    out: Optional[np.ndarray] = None,
) -> np.ndarray:
    """Apply a rotation matrix to an (N, 3) array, optionally in *out*."""
    return np.matmul(vectors, matrix.T, out=out)


# ─── trimesh adapters ────────────────────────────────────────────────────────

def print_mesh_from_trimesh(mesh: trimesh.Trimesh) -> PrintMesh:
    """Wrap a trimesh.Trimesh as an indexed PrintMesh."""
    return PrintMesh(positions=mesh.vertices, indices=mesh.faces)


def load_print_mesh(filepath: str) -> Tuple[PrintMesh, trimesh.Trimesh]:
    """Load a mesh file (STL/OBJ/PLY/GLB/3MF via trimesh).

    Scenes are flattened with their transforms applied.

    Returns:
        (PrintMesh, the underlying trimesh.Trimesh)

    Raises:
        MeshLoadError: file missing, unreadable, or holding no triangles.
    """
    path = Path(filepath)
    if not path.is_file():
        raise MeshLoadError(f"Mesh file not found: {filepath}")

    try:
        loaded = trimesh.load(str(path))
        if isinstance(loaded, trimesh.Scene):
            loaded = loaded.to_mesh()
    except Exception as exc:
        raise MeshLoadError(f"Could not read {filepath}: {exc}") from exc

    if not isinstance(loaded, trimesh.Trimesh) or len(loaded.faces) == 0:
        raise MeshLoadError(f"No triangle mesh found in {filepath}")

    logger.info(
        "Loaded %s: %d vertices, %d faces",
        path.name, len(loaded.vertices), len(loaded.faces),
    )
    return print_mesh_from_trimesh(loaded), loaded
