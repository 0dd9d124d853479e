# processes/base_processor.py

import os
import time
import logging
import json
import abc
from typing import List, Dict, Optional

from pydantic import ValidationError

from ..core.common_types import (
    MaterialProfile,
    PricingBreakdown,
    PricingRates,
    PrintConfiguration,
    Quote,
)
from ..core.exceptions import ConfigurationError, MaterialNotFoundError

logger = logging.getLogger(__name__)

class BaseProcessor(abc.ABC):
    """
    Abstract Base Class for quoting a manufacturing process.
    Owns the material catalog and the quote pipeline; subclasses supply
    the process-specific pricing, time and delivery estimates.
    """

    def __init__(self, rates: PricingRates, materials_file: Optional[str] = None):
        """
        Initializes the BaseProcessor.

        Args:
            rates: Rates and fee tables used by the estimates.
            materials_file: Optional override for the catalog JSON file. Defaults to
                            the subclass's default_material_file_path.
        """
        self.rates = rates
        self.materials_file = materials_file or self.default_material_file_path
        self.materials: Dict[str, MaterialProfile] = {}
        self._load_material_data() # Load materials on initialization

    @property
    @abc.abstractmethod
    def default_material_file_path(self) -> str:
        """Abstract property that must return the path to the process-specific material JSON file."""
        pass

    def _load_material_data(self):
        """Loads the catalog from the JSON file, skipping entries that fail validation."""
        if not self.materials_file or not os.path.exists(self.materials_file):
            logger.error(f"Material file not found: {self.materials_file}")
            raise ConfigurationError(f"Material definition file missing: {self.materials_file}")

        try:
            with open(self.materials_file, 'r', encoding='utf-8') as f:
                materials_data = json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"Error decoding JSON from material file {self.materials_file}: {e}", exc_info=True)
            raise ConfigurationError(f"Invalid JSON in material file: {self.materials_file}") from e
        except OSError as e:
            logger.error(f"Could not read material file {self.materials_file}: {e}", exc_info=True)
            raise ConfigurationError(f"Could not read material file: {self.materials_file}") from e

        if not isinstance(materials_data, list):
            raise ConfigurationError(f"Material file must contain a JSON list: {self.materials_file}")

        self.materials = {}
        for mat_data in materials_data:
            try:
                material = MaterialProfile(**mat_data)
            except (ValidationError, TypeError) as e:
                logger.warning(f"Skipping invalid material definition in "
                               f"{os.path.basename(self.materials_file)} "
                               f"for ID '{mat_data.get('id', 'N/A') if isinstance(mat_data, dict) else 'N/A'}': {e}")
                continue
            if material.id in self.materials:
                logger.warning(f"Duplicate material ID '{material.id}' in {os.path.basename(self.materials_file)}; keeping the first.")
                continue
            self.materials[material.id] = material

        if not self.materials:
            logger.warning(f"No valid materials loaded from {self.materials_file}.")
        else:
            logger.info(f"Successfully loaded {len(self.materials)} materials from {os.path.basename(self.materials_file)}.")

    def get_material_info(self, material_id: str) -> MaterialProfile:
        """
        Retrieves the catalog entry for a given material ID.

        Raises:
            MaterialNotFoundError: If the material_id is not in the catalog.
        """
        material = self.materials.get(material_id)
        if not material:
            logger.error(f"Material ID '{material_id}' not found.")
            available_ids = list(self.materials.keys())
            raise MaterialNotFoundError(
                f"Material '{material_id}' is not available. "
                f"Available materials: {available_ids}"
            )
        return material

    def list_available_materials(self, active_only: bool = True) -> List[MaterialProfile]:
        """Returns catalog entries ordered by sort_order, then name."""
        materials = [m for m in self.materials.values() if m.is_active or not active_only]
        return sorted(materials, key=lambda m: (m.sort_order, m.name))

    @abc.abstractmethod
    def validate_configuration(self, material: MaterialProfile, configuration: PrintConfiguration) -> None:
        """Raises QuoteValidationError if the configuration cannot be quoted for the material."""
        pass

    @abc.abstractmethod
    def calculate_pricing(self, volume_cm3: float, material: MaterialProfile, configuration: PrintConfiguration) -> PricingBreakdown:
        pass

    @abc.abstractmethod
    def estimate_process_time(self, volume_cm3: float, configuration: PrintConfiguration) -> float:
        """Hours needed to produce all units."""
        pass

    @abc.abstractmethod
    def estimate_delivery(self, process_time_hours: float, material: MaterialProfile, configuration: PrintConfiguration) -> int:
        """Days until the order reaches the customer."""
        pass

    def generate_quote(self, volume_cm3: float, material: MaterialProfile, configuration: PrintConfiguration) -> Quote:
        """
        Runs validation, pricing, time and delivery estimation for one configuration.

        Args:
            volume_cm3: Model volume in cubic cm.
            material: Catalog entry to price against.
            configuration: Customer print choices.

        Returns:
            An immutable Quote.

        Raises:
            QuoteValidationError: If the configuration is not valid for the material.
        """
        start_time = time.time()
        logger.info(f"Generating quote: volume {volume_cm3} cm³, material '{material.id}', quantity {configuration.quantity}")

        self.validate_configuration(material, configuration)

        pricing = self.calculate_pricing(volume_cm3, material, configuration)
        hours = self.estimate_process_time(volume_cm3, configuration)
        days = self.estimate_delivery(hours, material, configuration)

        quote = Quote(
            material_id=material.id,
            volume_cm3=volume_cm3,
            configuration=configuration,
            pricing=pricing,
            estimated_print_time_hours=hours,
            estimated_delivery_days=days,
        )
        logger.info(f"Quote complete in {time.time() - start_time:.3f}s. Total: {pricing.total:.2f} {pricing.currency}, "
                    f"print time {hours}h, delivery {days} days")
        return quote
