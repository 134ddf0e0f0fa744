"""
Shared test fixtures for orientation tests.
"""
import sys
from pathlib import Path

import numpy as np
import pytest
import trimesh

# Add src/ to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from geometry_primitives import PrintMesh, print_mesh_from_trimesh


@pytest.fixture
def cube_trimesh():
    """A 10x10x10 axis-aligned cube (8 vertices, 12 triangles)."""
    return trimesh.creation.box(extents=[10, 10, 10])


@pytest.fixture
def cube_mesh(cube_trimesh):
    return print_mesh_from_trimesh(cube_trimesh)


@pytest.fixture
def bed_cube_mesh():
    """A 20mm cube resting on the build plate (bottom at y=0)."""
    box = trimesh.creation.box(extents=[20, 20, 20])
    box.apply_translation([0, 10, 0])
    return print_mesh_from_trimesh(box)


@pytest.fixture
def slab_trimesh():
    """A 40x20x10 box: distinct extents along X, Y and Z."""
    return trimesh.creation.box(extents=[40, 20, 10])


@pytest.fixture
def slab_mesh(slab_trimesh):
    return print_mesh_from_trimesh(slab_trimesh)


@pytest.fixture
def sphere_mesh():
    """Icosphere of radius 10 (320 faces)."""
    return print_mesh_from_trimesh(trimesh.creation.icosphere(subdivisions=2, radius=10))


@pytest.fixture
def empty_mesh():
    return PrintMesh.from_buffers([])


@pytest.fixture
def box_mesh_file(tmp_path, slab_trimesh):
    path = tmp_path / "slab.stl"
    slab_trimesh.export(str(path))
    return str(path)


def axis_angle_quaternion(axis, angle_deg):
    """(x, y, z, w) quaternion for a rotation about *axis*."""
    axis = np.asarray(axis, dtype=float)
    axis = axis / np.linalg.norm(axis)
    half = np.radians(angle_deg) / 2.0
    xyz = axis * np.sin(half)
    return (float(xyz[0]), float(xyz[1]), float(xyz[2]), float(np.cos(half)))
