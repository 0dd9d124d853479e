# core/common_types.py
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

# --- Geometry Primitives ---

Vertex = Tuple[float, float, float]
Triangle = Tuple[Vertex, Vertex, Vertex]

# --- Status & Category Enums ---

class MaterialCategory(str, Enum):
    """Broad material families offered in the catalog."""
    PLASTIC = "plastic"
    RESIN = "resin"
    METAL = "metal"
    COMPOSITE = "composite"

class FileStatus(str, Enum):
    """Lifecycle of an uploaded model file."""
    UPLOADING = "uploading"
    PROCESSING = "processing"
    READY = "ready"
    ERROR = "error"

class QuoteStatus(str, Enum):
    """Lifecycle of a stored quote."""
    DRAFT = "draft"
    ACTIVE = "active"
    EXPIRED = "expired"
    ORDERED = "ordered"

# --- Geometry Related Models ---

class BoundingBoxSize(BaseModel):
    """Axis-aligned extents of a mesh, in the file's units (mm)."""
    model_config = ConfigDict(frozen=True)

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

class MeshAnalysis(BaseModel):
    """Measurements extracted from a mesh, or a zeroed record describing why extraction failed."""
    model_config = ConfigDict(frozen=True)

    volume_cm3: float = Field(0.0, ge=0, description="Enclosed volume in cubic cm, rounded to 2 decimals.")
    surface_area_cm2: float = Field(0.0, ge=0, description="Total triangle area in square cm, rounded to 2 decimals.")
    bounding_box: BoundingBoxSize = Field(default_factory=BoundingBoxSize, description="Extents in mm, rounded to 2 decimals.")
    triangle_count: int = Field(0, ge=0)
    is_watertight: bool = Field(False, description="Heuristic: true when the signed volume sum is positive.")
    has_errors: bool = False
    errors: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_error_invariant(self) -> "MeshAnalysis":
        if self.has_errors:
            if not self.errors:
                raise ValueError("errors must be non-empty when has_errors is set")
            numbers = (self.volume_cm3, self.surface_area_cm2, self.triangle_count,
                       self.bounding_box.x, self.bounding_box.y, self.bounding_box.z)
            if any(numbers) or self.is_watertight:
                raise ValueError("a failed analysis must carry zeroed measurements")
        elif self.errors:
            raise ValueError("errors must be empty when has_errors is not set")
        return self

# --- Material Catalog Models ---

class MaterialPricing(BaseModel):
    """Pricing profile of a material."""
    model_config = ConfigDict(frozen=True)

    base_price_per_cm3: float = Field(..., ge=0, description="Price per cubic cm of effective volume.")
    setup_fee: float = Field(..., ge=0, description="Flat fee per quote, not scaled by quantity.")
    min_price: float = Field(..., ge=0, description="Floor applied to the discounted total.")
    currency: str = Field("AED", description="ISO currency code for all amounts.")

class MaterialProperties(BaseModel):
    """Physical properties and offered colors."""
    model_config = ConfigDict(frozen=True)

    density_g_cm3: float = Field(..., ge=0)
    tensile_strength_mpa: float = Field(0.0, ge=0)
    flexural_strength_mpa: float = Field(0.0, ge=0)
    heat_resistance_c: float = 0.0
    color_options: List[str] = Field(default_factory=list)

class MaterialProfile(BaseModel):
    """A catalog entry."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Unique slug for the material (e.g., 'pla', 'nylon-pa12').")
    name: str
    description: str = ""
    category: MaterialCategory
    properties: MaterialProperties
    pricing: MaterialPricing
    lead_time_days: Optional[int] = Field(None, ge=0, description="Days to source the material; absent means zero.")
    is_active: bool = True
    sort_order: int = 0
    applications: List[str] = Field(default_factory=list)

# --- Quoting Models ---

class PrintConfiguration(BaseModel):
    """Customer choices for a print job."""
    model_config = ConfigDict(frozen=True)

    quantity: int = Field(1, ge=1, le=1000)
    color: str = "White"
    infill_percentage: float = Field(20, ge=10, le=100)
    layer_height: float = Field(0.2, ge=0.05, le=0.5, description="Layer height in mm.")
    support_structures: bool = False
    post_processing: List[str] = Field(default_factory=list, description="Finishing steps; each entry is costed, duplicates included.")

class PricingRates(BaseModel):
    """Deployment-tunable constants used by pricing, time and delivery estimation."""
    model_config = ConfigDict(frozen=True)

    base_print_speed_cm3_per_hour: float = Field(30.0, gt=0)
    labor_rate_per_hour: float = Field(15.0, ge=0)
    shipping_days: int = Field(2, ge=0)
    productive_hours_per_day: float = Field(8.0, gt=0)
    support_time_factor: float = Field(1.3, ge=1.0)
    post_processing_fees: Dict[str, float] = Field(default_factory=lambda: {
        "sanding": 20.0,
        "painting": 35.0,
        "polishing": 25.0,
        "assembly": 50.0,
        "heat-treatment": 40.0,
    })
    # (minimum quantity, discount rate); the highest threshold reached applies
    discount_tiers: List[Tuple[int, float]] = Field(default_factory=lambda: [(10, 0.10), (5, 0.05)])
    unknown_post_processing: Literal["warn", "reject"] = "warn"

class PricingBreakdown(BaseModel):
    """Itemized price of a quote. All amounts are rounded to 2 decimals."""
    model_config = ConfigDict(frozen=True)

    material_cost: float
    labor_cost: float
    setup_fee: float
    post_processing_fee: float
    subtotal: float
    discount: float
    total: float
    currency: str = "AED"
    warnings: List[str] = Field(default_factory=list, description="Non-fatal pricing notes (e.g., skipped post-processing options).")

class Quote(BaseModel):
    """Priced result for one configuration of one model."""
    model_config = ConfigDict(frozen=True)

    material_id: str
    volume_cm3: float
    configuration: PrintConfiguration
    pricing: PricingBreakdown
    estimated_print_time_hours: float
    estimated_delivery_days: int

# --- Stored Records (service layer) ---

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)

class UploadedFile(BaseModel):
    """An uploaded model and the outcome of its analysis."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    original_name: str
    filename: str
    mime_type: str = "application/octet-stream"
    size: int
    status: FileStatus = FileStatus.UPLOADING
    analysis: Optional[MeshAnalysis] = None
    error_message: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)

class QuoteRecord(BaseModel):
    """A stored quote with its reference and validity window."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    reference: str
    file_id: str
    material_id: str
    quote: Quote
    status: QuoteStatus = QuoteStatus.ACTIVE
    expires_at: datetime
    created_at: datetime = Field(default_factory=_utcnow)
