# core/geometry.py

import math
import os
import logging
from typing import Iterable

import numpy as np

from .common_types import BoundingBoxSize, MeshAnalysis, Triangle
from .exceptions import FileFormatError, MalformedInputError
from .stl import batch_triangles, iter_triangle_chunks
from .utils import round_half_up

logger = logging.getLogger(__name__)

# Extensions accepted for upload; only STL is measured
STL_EXTENSIONS = (".stl",)
PLACEHOLDER_EXTENSIONS = (".obj", ".3mf", ".step", ".stp")
ALLOWED_EXTENSIONS = STL_EXTENSIONS + PLACEHOLDER_EXTENSIONS

# Unit conversions assuming the mesh is in mm
MM2_PER_CM2 = 100.0
MM3_PER_CM3 = 1000.0

class MeshAccumulator:
    """
    Running totals over a triangle stream: bounds, area and signed volume.

    Vertex arrays of shape (n, 3, 3) are folded in with add_chunk(); add() takes a
    single triangle. Two accumulators built over disjoint parts of the same mesh
    can be combined with merge().
    """

    __slots__ = ("min_x", "min_y", "min_z", "max_x", "max_y", "max_z",
                 "area_mm2", "signed_volume_mm3", "triangle_count")

    def __init__(self):
        self.min_x = self.min_y = self.min_z = math.inf
        self.max_x = self.max_y = self.max_z = -math.inf
        self.area_mm2 = 0.0
        self.signed_volume_mm3 = 0.0
        self.triangle_count = 0

    def add(self, triangle: Triangle) -> None:
        self.add_chunk(np.asarray([triangle], dtype=np.float64))

    def add_chunk(self, vertices: np.ndarray) -> None:
        if len(vertices) == 0:
            return
        v0, v1, v2 = vertices[:, 0], vertices[:, 1], vertices[:, 2]

        lo = vertices.min(axis=(0, 1))
        hi = vertices.max(axis=(0, 1))
        self.min_x, self.min_y, self.min_z = (
            min(self.min_x, float(lo[0])), min(self.min_y, float(lo[1])), min(self.min_z, float(lo[2])))
        self.max_x, self.max_y, self.max_z = (
            max(self.max_x, float(hi[0])), max(self.max_y, float(hi[1])), max(self.max_z, float(hi[2])))

        # Area: half the magnitude of (v1 - v0) x (v2 - v0)
        self.area_mm2 += 0.5 * float(np.linalg.norm(np.cross(v1 - v0, v2 - v0), axis=1).sum())

        # Signed volume of the tetrahedra (origin, v0, v1, v2): v0 . (v1 x v2) / 6
        self.signed_volume_mm3 += float(np.einsum("ij,ij->", v0, np.cross(v1, v2))) / 6.0

        self.triangle_count += len(vertices)

    def merge(self, other: "MeshAccumulator") -> "MeshAccumulator":
        merged = MeshAccumulator()
        merged.min_x, merged.min_y, merged.min_z = (
            min(self.min_x, other.min_x), min(self.min_y, other.min_y), min(self.min_z, other.min_z))
        merged.max_x, merged.max_y, merged.max_z = (
            max(self.max_x, other.max_x), max(self.max_y, other.max_y), max(self.max_z, other.max_z))
        merged.area_mm2 = self.area_mm2 + other.area_mm2
        merged.signed_volume_mm3 = self.signed_volume_mm3 + other.signed_volume_mm3
        merged.triangle_count = self.triangle_count + other.triangle_count
        return merged

    def to_analysis(self) -> MeshAnalysis:
        if self.triangle_count == 0:
            return failed_analysis("Mesh contains no triangles")

        return MeshAnalysis(
            volume_cm3=round_half_up(abs(self.signed_volume_mm3) / MM3_PER_CM3),
            surface_area_cm2=round_half_up(self.area_mm2 / MM2_PER_CM2),
            bounding_box=BoundingBoxSize(
                x=round_half_up(self.max_x - self.min_x),
                y=round_half_up(self.max_y - self.min_y),
                z=round_half_up(self.max_z - self.min_z),
            ),
            triangle_count=self.triangle_count,
            # Positive only for closed, outward-wound meshes; holes are not detected
            is_watertight=self.signed_volume_mm3 > 0,
            has_errors=False,
        )

def failed_analysis(*errors: str) -> MeshAnalysis:
    """Zeroed analysis carrying the reasons the mesh could not be measured."""
    return MeshAnalysis(has_errors=True, errors=list(errors) or ["Unknown error"])

def placeholder_analysis() -> MeshAnalysis:
    """Fixed stand-in for formats that are accepted but not measured."""
    return MeshAnalysis(
        volume_cm3=100.0,
        surface_area_cm2=200.0,
        bounding_box=BoundingBoxSize(x=10.0, y=10.0, z=10.0),
        triangle_count=0,
        is_watertight=True,
        has_errors=False,
    )

def analyze_chunks(chunks: Iterable[np.ndarray]) -> MeshAnalysis:
    """
    Measures a stream of vertex arrays in a single pass.

    Args:
        chunks: Arrays of shape (n, 3, 3) in mm, consumed once.

    Returns:
        MeshAnalysis with volume in cm³, area in cm² and bounding box in mm.

    Raises:
        MalformedInputError: Propagated from a lazily decoded stream.
    """
    accumulator = MeshAccumulator()
    for vertices in chunks:
        accumulator.add_chunk(vertices)
    logger.debug(
        f"Folded {accumulator.triangle_count} triangles: signed volume {accumulator.signed_volume_mm3:.3f} mm³, "
        f"area {accumulator.area_mm2:.3f} mm²"
    )
    return accumulator.to_analysis()

def analyze_triangles(triangles: Iterable[Triangle]) -> MeshAnalysis:
    """Measures a triangle stream; triangles are batched before folding."""
    return analyze_chunks(batch_triangles(triangles))

def analyze_mesh(data: bytes) -> MeshAnalysis:
    """
    Decodes and measures an STL buffer.

    Never raises for bad input: decoding failures and any error during the pass
    are returned as an analysis with has_errors set, so the upload can still be
    recorded as failed.
    """
    try:
        analysis = analyze_chunks(iter_triangle_chunks(data))
    except MalformedInputError as e:
        logger.error(f"STL analysis failed: {e}")
        return failed_analysis(str(e))
    except Exception as e:
        logger.error(f"Unexpected error during STL analysis: {e}", exc_info=True)
        return failed_analysis(f"Unexpected error during analysis: {e}")

    if analysis.has_errors:
        logger.warning(f"STL analysis produced no measurements: {analysis.errors}")
    else:
        logger.info(
            f"STL analysis complete: {analysis.triangle_count} triangles, volume {analysis.volume_cm3} cm³, "
            f"area {analysis.surface_area_cm2} cm², watertight={analysis.is_watertight}"
        )
    return analysis

def file_extension(filename: str) -> str:
    return os.path.splitext(filename)[1].lower()

def analyze_upload(data: bytes, filename: str) -> MeshAnalysis:
    """
    Analyzes an uploaded model file according to its extension.

    STL files are measured; other accepted formats get the placeholder analysis.

    Raises:
        FileFormatError: If the extension is not one of ALLOWED_EXTENSIONS.
    """
    ext = file_extension(filename)
    if ext not in ALLOWED_EXTENSIONS:
        raise FileFormatError(
            f"File type '{ext or filename}' not allowed. Allowed types: {', '.join(ALLOWED_EXTENSIONS)}"
        )

    if ext in STL_EXTENSIONS:
        logger.info(f"Analyzing STL upload '{filename}' ({len(data)} bytes)")
        return analyze_mesh(data)

    logger.info(f"No geometry analysis for '{ext}' files; using placeholder measurements for '{filename}'.")
    return placeholder_analysis()
