# processes/print_3d/pricing.py

import logging
from typing import List, Optional, Tuple

from ...core.common_types import (
    MaterialProfile, PricingBreakdown, PricingRates, PrintConfiguration
)
from ...core.exceptions import QuoteValidationError, UnknownPostProcessingError
from ...core.utils import round_half_up

logger = logging.getLogger(__name__)

DEFAULT_PRICING_RATES = PricingRates()

# Share of the volume printed solid (walls, top/bottom layers); the rest scales with infill
SOLID_SHELL_FRACTION = 0.2
INFILL_FRACTION = 0.8

def effective_volume(volume_cm3: float, infill_percentage: float) -> float:
    """Volume actually printed: the shell fraction is solid, the rest scales with infill."""
    return volume_cm3 * (infill_percentage / 100) * INFILL_FRACTION + volume_cm3 * SOLID_SHELL_FRACTION

def validate_configuration(material: MaterialProfile, configuration: PrintConfiguration) -> None:
    """
    Checks that a configuration can be priced for a material.

    Raises:
        QuoteValidationError: If the color is not offered or a field is out of bounds
            (configurations built with model_construct skip pydantic's own checks).
    """
    if configuration.color not in material.properties.color_options:
        raise QuoteValidationError(
            f'Color "{configuration.color}" is not available for this material. '
            f"Available: {', '.join(material.properties.color_options)}"
        )

    bounds = (
        ("quantity", configuration.quantity, 1, 1000),
        ("infill_percentage", configuration.infill_percentage, 10, 100),
        ("layer_height", configuration.layer_height, 0.05, 0.5),
    )
    for name, value, low, high in bounds:
        if not low <= value <= high:
            raise QuoteValidationError(f"{name} must be between {low} and {high}, got {value}")

def resolve_post_processing(tags: List[str], rates: PricingRates) -> List[Tuple[str, Optional[float]]]:
    """Looks up each tag's fee; unknown tags map to None."""
    return [(tag, rates.post_processing_fees.get(tag)) for tag in tags]

def discount_rate(quantity: int, rates: PricingRates) -> float:
    """Rate of the highest discount tier reached by the quantity, or 0."""
    _, rate = max(((threshold, rate) for threshold, rate in rates.discount_tiers if quantity >= threshold),
                  default=(0, 0.0))
    return rate

def price_quote(volume_cm3: float,
                material: MaterialProfile,
                configuration: PrintConfiguration,
                rates: PricingRates = DEFAULT_PRICING_RATES) -> PricingBreakdown:
    """
    Computes the price breakdown for printing a model.

    The caller is expected to have run validate_configuration() first.

    Args:
        volume_cm3: Model volume in cubic cm.
        material: Catalog entry providing the pricing profile.
        configuration: Quantity, infill and finishing options.
        rates: Print speed, labor rate, post-processing fees and discount tiers.

    Returns:
        A PricingBreakdown whose total never falls below the material's minimum price.

    Raises:
        UnknownPostProcessingError: If a post-processing tag is not in the fee table
            and the rates' policy is 'reject'.
    """
    pricing = material.pricing
    quantity = configuration.quantity
    warnings: List[str] = []

    volume = effective_volume(volume_cm3, configuration.infill_percentage)

    material_cost = round_half_up(volume * pricing.base_price_per_cm3 * quantity)

    print_hours_per_unit = volume / rates.base_print_speed_cm3_per_hour
    labor_cost = round_half_up(print_hours_per_unit * rates.labor_rate_per_hour * quantity)

    setup_fee = pricing.setup_fee

    fees = resolve_post_processing(configuration.post_processing, rates)
    unknown = [tag for tag, fee in fees if fee is None]
    if unknown:
        if rates.unknown_post_processing == "reject":
            raise UnknownPostProcessingError(unknown)
        logger.warning(f"Ignoring unknown post-processing option(s) {unknown} for material '{material.id}'.")
        warnings.append(f"Unknown post-processing option(s) not charged: {', '.join(unknown)}")
    post_processing_fee = round_half_up(sum(fee for _, fee in fees if fee is not None) * quantity)

    subtotal = material_cost + labor_cost + setup_fee + post_processing_fee

    discount = round_half_up(subtotal * discount_rate(quantity, rates))

    # Floor applies after the discount
    total = max(round_half_up(subtotal - discount), pricing.min_price)

    logger.debug(
        f"Pricing '{material.id}' x{quantity}: effective volume {volume:.3f} cm³, material {material_cost}, "
        f"labor {labor_cost}, setup {setup_fee}, post-processing {post_processing_fee}, "
        f"subtotal {subtotal:.2f}, discount {discount}, total {total}"
    )

    return PricingBreakdown(
        material_cost=material_cost,
        labor_cost=labor_cost,
        setup_fee=setup_fee,
        post_processing_fee=post_processing_fee,
        subtotal=round_half_up(subtotal),
        discount=discount,
        total=total,
        currency=pricing.currency or "AED",
        warnings=warnings,
    )
