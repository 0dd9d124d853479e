# processes/print_3d/processor.py

import logging
import os
from typing import Optional, Tuple

from ...core.common_types import (
    MaterialProfile, MeshAnalysis, PricingBreakdown, PricingRates, PrintConfiguration, Quote
)
from ...core.exceptions import QuoteValidationError
from ...core import geometry
from ..base_processor import BaseProcessor
from . import pricing, estimates

logger = logging.getLogger(__name__)

class Print3DProcessor(BaseProcessor):
    """Quotes 3D prints from model volume, material pricing and print configuration."""

    def __init__(self, rates: Optional[PricingRates] = None, materials_file: Optional[str] = None):
        super().__init__(rates=rates if rates is not None else pricing.DEFAULT_PRICING_RATES,
                         materials_file=materials_file)

    @property
    def default_material_file_path(self) -> str:
        return os.path.join(os.path.dirname(__file__), "materials.json")

    def validate_configuration(self, material: MaterialProfile, configuration: PrintConfiguration) -> None:
        pricing.validate_configuration(material, configuration)

    def calculate_pricing(self, volume_cm3: float, material: MaterialProfile, configuration: PrintConfiguration) -> PricingBreakdown:
        return pricing.price_quote(volume_cm3, material, configuration, self.rates)

    def estimate_process_time(self, volume_cm3: float, configuration: PrintConfiguration) -> float:
        return estimates.estimate_print_time(volume_cm3, configuration, self.rates)

    def estimate_delivery(self, process_time_hours: float, material: MaterialProfile, configuration: PrintConfiguration) -> int:
        return estimates.estimate_delivery_days(process_time_hours, material.lead_time_days, configuration, self.rates)

    def quote_file(self,
                   data: bytes,
                   filename: str,
                   material_id: str,
                   configuration: PrintConfiguration) -> Tuple[MeshAnalysis, Quote]:
        """
        Analyzes a model file and quotes it in one step.

        Raises:
            FileFormatError: If the file type is not accepted.
            MaterialNotFoundError: If the material is not in the catalog.
            QuoteValidationError: If the analysis failed or the configuration is invalid.
        """
        analysis = geometry.analyze_upload(data, filename)
        if analysis.has_errors:
            logger.warning(f"Refusing to quote '{filename}': analysis failed with {analysis.errors}")
            raise QuoteValidationError("File analysis has errors: " + ", ".join(analysis.errors))

        material = self.get_material_info(material_id)
        return analysis, self.generate_quote(analysis.volume_cm3, material, configuration)
