# testing/conftest.py

import struct
import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable, List

import pytest
import trimesh

from print_quote.core.common_types import (
    MaterialCategory, MaterialPricing, MaterialProfile, MaterialProperties, Triangle
)
from print_quote.processes.print_3d.processor import Print3DProcessor
from print_quote.services.quote_service import QuoteService

logger = logging.getLogger(__name__)

# --- Mesh Builders ---

def make_binary_stl(triangles: Iterable[Triangle], header: bytes = b"binary test mesh") -> bytes:
    """Packs triangles into a binary STL buffer (zero normals, zero attribute bytes)."""
    triangles = list(triangles)
    parts: List[bytes] = [header.ljust(80, b"\0")[:80], struct.pack("<I", len(triangles))]
    for triangle in triangles:
        coords = [c for vertex in triangle for c in vertex]
        parts.append(struct.pack("<12fH", 0.0, 0.0, 0.0, *coords, 0))
    return b"".join(parts)

def mesh_triangles(mesh: trimesh.Trimesh) -> List[Triangle]:
    return [tuple(tuple(float(c) for c in vertex) for vertex in face) for face in mesh.triangles]

def make_ascii_stl(triangles: Iterable[Triangle], name: str = "test") -> str:
    lines = [f"solid {name}"]
    for v0, v1, v2 in triangles:
        lines.append("  facet normal 0 0 0")
        lines.append("    outer loop")
        for x, y, z in (v0, v1, v2):
            lines.append(f"      vertex {x:.6f} {y:.6f} {z:.6f}")
        lines.append("    endloop")
        lines.append("  endfacet")
    lines.append(f"endsolid {name}")
    return "\n".join(lines) + "\n"

# --- Fixtures ---

@pytest.fixture(scope="session")
def cube_mesh() -> trimesh.Trimesh:
    """10 mm cube centred on the origin, outward winding."""
    return trimesh.creation.box(extents=(10.0, 10.0, 10.0))

@pytest.fixture(scope="session")
def cube_stl(cube_mesh) -> bytes:
    return make_binary_stl(mesh_triangles(cube_mesh))

@pytest.fixture(scope="session")
def cube_ascii_stl(cube_mesh) -> bytes:
    return make_ascii_stl(mesh_triangles(cube_mesh), name="cube").encode("ascii")

@pytest.fixture(scope="session")
def inverted_cube_stl(cube_mesh) -> bytes:
    inverted = cube_mesh.copy()
    inverted.invert()
    return make_binary_stl(mesh_triangles(inverted))

@pytest.fixture(scope="session")
def sphere_mesh() -> trimesh.Trimesh:
    return trimesh.creation.icosphere(subdivisions=3, radius=20.0)

@pytest.fixture
def pla_material() -> MaterialProfile:
    return MaterialProfile(
        id="pla",
        name="PLA",
        category=MaterialCategory.PLASTIC,
        properties=MaterialProperties(density_g_cm3=1.24, color_options=["White", "Black", "Red"]),
        pricing=MaterialPricing(base_price_per_cm3=0.5, setup_fee=10, min_price=25),
        lead_time_days=3,
    )

@pytest.fixture
def make_material():
    """Factory for catalog entries with custom pricing."""
    def _factory(base_price: float = 0.5, setup_fee: float = 10, min_price: float = 25,
                 lead_time_days=3, currency: str = "AED", **kwargs) -> MaterialProfile:
        return MaterialProfile(
            id=kwargs.pop("id", "test-material"),
            name=kwargs.pop("name", "Test Material"),
            category=kwargs.pop("category", MaterialCategory.PLASTIC),
            properties=MaterialProperties(density_g_cm3=1.0, color_options=["White", "Black"]),
            pricing=MaterialPricing(base_price_per_cm3=base_price, setup_fee=setup_fee,
                                    min_price=min_price, currency=currency),
            lead_time_days=lead_time_days,
            **kwargs,
        )
    return _factory

@pytest.fixture(scope="session")
def print3d_processor() -> Print3DProcessor:
    """Processor over the packaged material catalog with default rates."""
    return Print3DProcessor()

class FakeClock:
    """Settable UTC clock for expiry tests."""

    def __init__(self):
        self.now = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)

@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()

@pytest.fixture
def quote_service(print3d_processor, clock) -> QuoteService:
    return QuoteService(print3d_processor, clock=clock)
