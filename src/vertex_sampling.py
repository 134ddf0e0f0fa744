"""
Strided vertex subsampling for bounded-cost extent measurement.
"""
import numpy as np

DEFAULT_VERTEX_SAMPLES = 8000
MIN_VERTEX_SAMPLES = 1000
MAX_VERTEX_SAMPLES = 20000


def clamp_vertex_samples(max_samples: int) -> int:
    return int(np.clip(int(max_samples), MIN_VERTEX_SAMPLES, MAX_VERTEX_SAMPLES))


def sample_stride(vertex_count: int, max_samples: int) -> int:
    """Step between kept vertices: max(1, floor(n / max_samples))."""
    return max(1, int(vertex_count) // max(1, int(max_samples)))


def sample_vertices(
    positions: np.ndarray,
    max_samples: int = DEFAULT_VERTEX_SAMPLES,
) -> np.ndarray:
    """Every stride-th row of an (N, 3) position array.

    The cap is clamped to [1000, 20000]. The result is a strided view,
    so no copy of the mesh is made. An empty input gives an empty
    (0, 3) array, which callers treat as "no geometry".
    """
    positions = np.asarray(positions, dtype=np.float64).reshape(-1, 3)
    stride = sample_stride(len(positions), clamp_vertex_samples(max_samples))
    return positions[::stride]
