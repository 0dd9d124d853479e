# testing/test_geometry.py

import numpy as np
import pytest
from pydantic import ValidationError

from print_quote.core import geometry, stl
from print_quote.core.common_types import MeshAnalysis
from print_quote.core.exceptions import FileFormatError

from conftest import make_binary_stl, mesh_triangles

def test_cube_measurements(cube_stl):
    analysis = geometry.analyze_mesh(cube_stl)
    assert not analysis.has_errors
    assert analysis.errors == []
    assert analysis.volume_cm3 == pytest.approx(1.0)
    assert analysis.surface_area_cm2 == pytest.approx(6.0)
    assert (analysis.bounding_box.x, analysis.bounding_box.y, analysis.bounding_box.z) == (10.0, 10.0, 10.0)
    assert analysis.triangle_count == 12
    assert analysis.is_watertight

def test_ascii_and_binary_agree(cube_stl, cube_ascii_stl):
    assert geometry.analyze_mesh(cube_ascii_stl) == geometry.analyze_mesh(cube_stl)

def test_inverted_cube_is_not_watertight(inverted_cube_stl):
    analysis = geometry.analyze_mesh(inverted_cube_stl)
    assert not analysis.has_errors
    assert analysis.volume_cm3 == pytest.approx(1.0)
    assert not analysis.is_watertight

def test_volume_is_translation_invariant(cube_mesh):
    moved = cube_mesh.copy()
    moved.apply_translation([120.0, -35.0, 60.0])
    analysis = geometry.analyze_mesh(make_binary_stl(mesh_triangles(moved)))
    assert analysis.volume_cm3 == pytest.approx(1.0)
    assert analysis.bounding_box.x == pytest.approx(10.0)

def test_sphere_matches_trimesh(sphere_mesh):
    analysis = geometry.analyze_mesh(make_binary_stl(mesh_triangles(sphere_mesh)))
    assert analysis.triangle_count == len(sphere_mesh.faces)
    assert analysis.volume_cm3 == pytest.approx(sphere_mesh.volume / 1000.0, abs=0.01)
    assert analysis.surface_area_cm2 == pytest.approx(sphere_mesh.area / 100.0, abs=0.01)
    assert analysis.is_watertight

def test_empty_mesh_is_an_error():
    analysis = geometry.analyze_mesh(make_binary_stl([]))
    assert analysis.has_errors
    assert analysis.errors == ["Mesh contains no triangles"]

def test_short_buffer_returns_failed_analysis():
    analysis = geometry.analyze_mesh(b"\x01" * 40)
    assert analysis.has_errors
    assert "file too small" in analysis.errors[0]
    assert analysis.volume_cm3 == 0
    assert analysis.triangle_count == 0
    assert not analysis.is_watertight

def test_non_finite_vertex_fails_analysis():
    bad = ((0.0, 0.0, 0.0), (float("inf"), 0.0, 0.0), (0.0, 1.0, 0.0))
    analysis = geometry.analyze_mesh(make_binary_stl([bad]))
    assert analysis.has_errors
    assert analysis.volume_cm3 == 0

def test_merge_matches_single_pass(sphere_mesh):
    vertices = np.asarray(mesh_triangles(sphere_mesh), dtype=np.float64)
    whole = geometry.MeshAccumulator()
    whole.add_chunk(vertices)

    parts = []
    for chunk in (vertices[:100], vertices[100:250], vertices[250:]):
        acc = geometry.MeshAccumulator()
        acc.add_chunk(chunk)
        parts.append(acc)

    left = parts[0].merge(parts[1]).merge(parts[2])
    right = parts[0].merge(parts[1].merge(parts[2]))
    assert left.to_analysis() == whole.to_analysis()
    assert right.to_analysis() == whole.to_analysis()

def test_analyze_upload_rejects_unknown_extension(cube_stl):
    with pytest.raises(FileFormatError, match="not allowed"):
        geometry.analyze_upload(cube_stl, "part.exe")

def test_analyze_upload_extension_is_case_insensitive(cube_stl):
    assert geometry.analyze_upload(cube_stl, "PART.STL").triangle_count == 12

@pytest.mark.parametrize("filename", ["part.obj", "part.3mf", "part.step", "part.stp"])
def test_analyze_upload_placeholder_formats(filename):
    analysis = geometry.analyze_upload(b"not parsed", filename)
    assert analysis == geometry.placeholder_analysis()
    assert analysis.volume_cm3 == 100.0
    assert analysis.surface_area_cm2 == 200.0

def test_failed_analysis_requires_errors():
    with pytest.raises(ValidationError):
        MeshAnalysis(has_errors=True)

def test_failed_analysis_requires_zeroed_measurements():
    with pytest.raises(ValidationError):
        MeshAnalysis(has_errors=True, errors=["boom"], volume_cm3=3.0)

def test_single_triangles_match_chunked_fold(cube_mesh):
    triangles = mesh_triangles(cube_mesh)
    one_by_one = geometry.MeshAccumulator()
    for triangle in triangles:
        one_by_one.add(triangle)
    chunked = geometry.MeshAccumulator()
    chunked.add_chunk(np.asarray(triangles, dtype=np.float64))
    assert one_by_one.triangle_count == chunked.triangle_count == 12
    assert one_by_one.to_analysis() == chunked.to_analysis()

def test_empty_chunk_is_ignored():
    acc = geometry.MeshAccumulator()
    acc.add_chunk(np.empty((0, 3, 3)))
    assert acc.triangle_count == 0
    assert acc.to_analysis().has_errors

def test_chunk_size_does_not_change_analysis(sphere_mesh):
    data = make_binary_stl(mesh_triangles(sphere_mesh))
    small = geometry.analyze_chunks(stl.iter_binary_chunks(data, chunk_size=7))
    assert small == geometry.analyze_mesh(data)

@pytest.mark.parametrize("fixture_name", ["cube_stl", "cube_ascii_stl"])
def test_analysis_is_idempotent(request, fixture_name):
    data = request.getfixturevalue(fixture_name)
    first = geometry.analyze_mesh(data)
    second = geometry.analyze_mesh(data)
    assert first == second
    assert first.model_dump_json() == second.model_dump_json()
