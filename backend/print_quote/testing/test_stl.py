# testing/test_stl.py

import struct

import pytest

from print_quote.core import stl
from print_quote.core.exceptions import MalformedInputError, VertexParseError

from conftest import make_ascii_stl, make_binary_stl

TRIANGLE = ((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0))

def test_detect_format_binary_header(cube_stl):
    assert isinstance(stl.detect_format(cube_stl), stl.BinaryStl)

def test_detect_format_ascii(cube_ascii_stl):
    source = stl.detect_format(cube_ascii_stl)
    assert isinstance(source, stl.AsciiStl)
    assert source.text.startswith("solid cube")

def test_detect_format_solid_prefix_is_case_insensitive():
    text = make_ascii_stl([TRIANGLE]).replace("solid", "SOLID", 1)
    assert isinstance(stl.detect_format(text.encode("ascii")), stl.AsciiStl)

def test_binary_with_solid_header_is_decoded_as_binary():
    """Exporters that write 'solid' into the binary header still decode as binary."""
    data = make_binary_stl([TRIANGLE, TRIANGLE], header=b"solid exported by some CAD tool")
    assert isinstance(stl.detect_format(data), stl.BinaryStl)
    assert len(list(stl.iter_triangles(data))) == 2

def test_binary_too_small():
    with pytest.raises(MalformedInputError, match="file too small"):
        stl.iter_binary_triangles(b"\0" * 83)

def test_binary_declared_count_exceeds_buffer():
    data = make_binary_stl([TRIANGLE])
    data = data[:80] + struct.pack("<I", 5) + data[84:]
    with pytest.raises(MalformedInputError, match="unexpected file size"):
        stl.iter_binary_triangles(data)

def test_binary_trailing_bytes_are_ignored():
    data = make_binary_stl([TRIANGLE]) + b"\0" * 17
    triangles = list(stl.iter_binary_triangles(data))
    assert triangles == [TRIANGLE]

def test_binary_decodes_vertices_in_order():
    second = ((1.0, 2.0, 3.0), (4.0, 5.0, 6.0), (7.0, 8.0, 9.0))
    triangles = list(stl.iter_binary_triangles(make_binary_stl([TRIANGLE, second])))
    assert triangles == [TRIANGLE, second]

def test_binary_chunking_does_not_change_output(cube_stl):
    assert list(stl.iter_binary_triangles(cube_stl, chunk_size=1)) == list(stl.iter_binary_triangles(cube_stl))

def test_binary_non_finite_vertex():
    bad = ((0.0, 0.0, 0.0), (float("nan"), 0.0, 0.0), (0.0, 1.0, 0.0))
    triangles = stl.iter_binary_triangles(make_binary_stl([TRIANGLE, bad]))
    with pytest.raises(VertexParseError) as exc_info:
        list(triangles)
    assert exc_info.value.location == 1

def test_ascii_decodes_triangles(cube_ascii_stl):
    triangles = list(stl.iter_ascii_triangles(cube_ascii_stl.decode("ascii")))
    assert len(triangles) == 12

def test_ascii_keywords_are_case_insensitive():
    text = make_ascii_stl([TRIANGLE]).upper()
    assert list(stl.iter_ascii_triangles(text)) == [TRIANGLE]

def test_ascii_facet_without_three_vertices_is_dropped():
    text = "\n".join([
        "solid partial",
        "facet normal 0 0 0",
        "outer loop",
        "vertex 0 0 0",
        "vertex 1 0 0",
        "endloop",
        "endfacet",
        "facet normal 0 0 0",
        "outer loop",
        "vertex 0 0 0",
        "vertex 1 0 0",
        "vertex 0 1 0",
        "endloop",
        "endfacet",
        "endsolid partial",
    ])
    assert list(stl.iter_ascii_triangles(text)) == [TRIANGLE]

def test_ascii_short_vertex_line_is_ignored():
    text = "solid t\nfacet\nvertex 0 0\nvertex 0 0 0\nvertex 1 0 0\nvertex 0 1 0\nendfacet\nendsolid t\n"
    assert list(stl.iter_ascii_triangles(text)) == [TRIANGLE]

@pytest.mark.parametrize("token", ["abc", "nan", "inf"])
def test_ascii_invalid_vertex(token):
    text = f"solid t\nfacet\nvertex 0 0 0\nvertex {token} 0 0\nvertex 0 1 0\nendfacet\nendsolid t\n"
    with pytest.raises(VertexParseError) as exc_info:
        list(stl.iter_ascii_triangles(text))
    assert exc_info.value.location == 4

def test_binary_chunks_have_triangle_shape(cube_stl):
    chunks = list(stl.iter_binary_chunks(cube_stl, chunk_size=5))
    assert [chunk.shape for chunk in chunks] == [(5, 3, 3), (5, 3, 3), (2, 3, 3)]
    assert chunks[0].dtype == "float64"

def test_triangle_chunks_agree_across_formats(cube_stl, cube_ascii_stl):
    binary = list(stl.iter_triangle_chunks(cube_stl))
    ascii_ = list(stl.iter_triangle_chunks(cube_ascii_stl))
    assert len(binary) == len(ascii_) == 1
    assert (binary[0] == ascii_[0]).all()

def test_batch_triangles_keeps_remainder():
    chunks = list(stl.batch_triangles([TRIANGLE] * 5, chunk_size=2))
    assert [len(chunk) for chunk in chunks] == [2, 2, 1]
    assert chunks[-1][0].tolist() == [list(v) for v in TRIANGLE]
