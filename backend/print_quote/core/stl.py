# core/stl.py

import io
import math
import logging
from typing import Iterable, Iterator, List, NamedTuple, Sequence, Union

import numpy as np

from .common_types import Triangle, Vertex
from .exceptions import MalformedInputError, VertexParseError

logger = logging.getLogger(__name__)

# Binary STL layout:
#   80 bytes header (ignored)
#   4 bytes uint32 LE triangle count
#   per triangle, 50 bytes: normal (3 x f32), 3 vertices (9 x f32), attribute byte count (u16)
BINARY_HEADER_SIZE = 80
BINARY_PREAMBLE_SIZE = BINARY_HEADER_SIZE + 4
BINARY_RECORD_DTYPE = np.dtype([
    ("normal", "<f4", (3,)),
    ("vertices", "<f4", (3, 3)),
    ("attribute_byte_count", "<u2"),
])
BINARY_RECORD_SIZE = BINARY_RECORD_DTYPE.itemsize  # 50

# Records are unpacked this many at a time so large meshes are never fully expanded
DEFAULT_CHUNK_SIZE = 4096

ASCII_SNIFF_BYTES = 1024

class BinaryStl(NamedTuple):
    """Buffer classified as binary STL."""
    data: bytes

class AsciiStl(NamedTuple):
    """Buffer classified as ASCII STL, already decoded to text."""
    text: str

StlSource = Union[BinaryStl, AsciiStl]

def detect_format(data: bytes) -> StlSource:
    """
    Classifies a raw STL buffer as binary or ASCII.

    A buffer whose first five bytes read "solid" (case-insensitive) is treated as
    ASCII, anything else as binary. Some exporters write "solid" into the binary
    header too, so a "solid" buffer whose length matches the binary layout exactly
    and has no "facet" keyword near the start is classified as binary.

    Args:
        data: The raw file contents.

    Returns:
        BinaryStl or AsciiStl wrapping the payload.
    """
    head = bytes(data[:5]).decode("ascii", errors="replace").lower()
    if not head.startswith("solid"):
        return BinaryStl(data)

    if _matches_binary_layout(data):
        logger.info("Buffer starts with 'solid' but matches the binary STL layout; decoding as binary.")
        return BinaryStl(data)

    return AsciiStl(bytes(data).decode("ascii", errors="replace"))

def _matches_binary_layout(data: bytes) -> bool:
    if len(data) < BINARY_PREAMBLE_SIZE:
        return False
    triangle_count = _read_triangle_count(data)
    if len(data) != BINARY_PREAMBLE_SIZE + triangle_count * BINARY_RECORD_SIZE:
        return False
    return b"facet" not in bytes(data[:ASCII_SNIFF_BYTES]).lower()

def _read_triangle_count(data: bytes) -> int:
    return int(np.frombuffer(data, dtype="<u4", count=1, offset=BINARY_HEADER_SIZE)[0])

def iter_binary_chunks(data: bytes, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[np.ndarray]:
    """
    Decodes a binary STL buffer into float64 vertex arrays of shape (n, 3, 3).

    The size checks run immediately; the chunks themselves are produced lazily.

    Raises:
        MalformedInputError: If the buffer is shorter than the 84-byte preamble or
            shorter than the declared number of triangle records.
    """
    if len(data) < BINARY_PREAMBLE_SIZE:
        raise MalformedInputError("Invalid binary STL: file too small")

    triangle_count = _read_triangle_count(data)
    expected_size = BINARY_PREAMBLE_SIZE + triangle_count * BINARY_RECORD_SIZE
    if len(data) < expected_size:
        raise MalformedInputError(
            f"Invalid binary STL: unexpected file size "
            f"({len(data)} bytes, header declares {triangle_count} triangles = {expected_size} bytes)"
        )

    logger.debug(f"Binary STL declares {triangle_count} triangles ({len(data)} bytes).")
    return _iter_binary_records(data, triangle_count, chunk_size)

def iter_binary_triangles(data: bytes, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[Triangle]:
    """Decodes a binary STL buffer into vertex tuples. Raises like iter_binary_chunks."""
    return _unpack_chunks(iter_binary_chunks(data, chunk_size))

def _unpack_chunks(chunks: Iterator[np.ndarray]) -> Iterator[Triangle]:
    for vertices in chunks:
        for v0, v1, v2 in vertices.tolist():
            yield (tuple(v0), tuple(v1), tuple(v2))

def _iter_binary_records(data: bytes, triangle_count: int, chunk_size: int) -> Iterator[np.ndarray]:
    for start in range(0, triangle_count, chunk_size):
        count = min(chunk_size, triangle_count - start)
        records = np.frombuffer(
            data,
            dtype=BINARY_RECORD_DTYPE,
            count=count,
            offset=BINARY_PREAMBLE_SIZE + start * BINARY_RECORD_SIZE,
        )
        vertices = records["vertices"].astype(np.float64)

        finite = np.isfinite(vertices).all(axis=(1, 2))
        if not finite.all():
            index = start + int(np.flatnonzero(~finite)[0])
            raise VertexParseError(f"Non-finite vertex coordinate in triangle record {index}", location=index)

        yield vertices

def iter_ascii_triangles(text: str) -> Iterator[Triangle]:
    """
    Decodes ASCII STL text into triangles.

    Only "vertex" and "endfacet" lines matter. A facet closes into a triangle when
    exactly three vertices were read since the previous "endfacet"; other facets
    are dropped. Vertex lines with fewer than three coordinates are ignored.

    Raises:
        VertexParseError: If a vertex coordinate is not a finite number.
    """
    pending: List[Vertex] = []
    dropped = 0

    for line_number, line in enumerate(io.StringIO(text), start=1):
        trimmed = line.strip().lower()
        if trimmed.startswith("vertex"):
            parts = trimmed.split()
            if len(parts) >= 4:
                pending.append(_parse_vertex(parts[1:4], line_number))
        elif trimmed.startswith("endfacet"):
            if len(pending) == 3:
                yield (pending[0], pending[1], pending[2])
            else:
                dropped += 1
            pending = []

    if dropped:
        logger.warning(f"Dropped {dropped} ASCII STL facet(s) without exactly 3 vertices.")

def _parse_vertex(tokens: Sequence[str], line_number: int) -> Vertex:
    try:
        x, y, z = (float(token) for token in tokens)
    except ValueError:
        raise VertexParseError(
            f"Invalid vertex on line {line_number}: {' '.join(tokens)!r}", location=line_number
        ) from None
    if not (math.isfinite(x) and math.isfinite(y) and math.isfinite(z)):
        raise VertexParseError(
            f"Non-finite vertex on line {line_number}: {' '.join(tokens)!r}", location=line_number
        )
    return (x, y, z)

def iter_triangles(data: bytes) -> Iterator[Triangle]:
    """Classifies the buffer once and returns the matching triangle stream."""
    source = detect_format(data)
    if isinstance(source, BinaryStl):
        logger.debug("Decoding STL as binary.")
        return iter_binary_triangles(source.data)
    logger.debug("Decoding STL as ASCII.")
    return iter_ascii_triangles(source.text)

def batch_triangles(triangles: Iterable[Triangle], chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[np.ndarray]:
    """Groups a triangle stream into float64 arrays of shape (n, 3, 3)."""
    batch: List[Triangle] = []
    for triangle in triangles:
        batch.append(triangle)
        if len(batch) == chunk_size:
            yield np.array(batch, dtype=np.float64)
            batch = []
    if batch:
        yield np.array(batch, dtype=np.float64)

def iter_triangle_chunks(data: bytes, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[np.ndarray]:
    """
    Like iter_triangles, but yields vertex arrays of shape (n, 3, 3).

    Binary records are handed over as decoded; ASCII triangles are batched.
    """
    source = detect_format(data)
    if isinstance(source, BinaryStl):
        logger.debug("Decoding STL as binary chunks.")
        return iter_binary_chunks(source.data, chunk_size)
    logger.debug("Decoding STL as ASCII, batched into chunks.")
    return batch_triangles(iter_ascii_triangles(source.text), chunk_size)
