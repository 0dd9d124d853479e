# processes/print_3d/estimates.py

import math
import logging
from typing import Optional

from ...core.common_types import PricingRates, PrintConfiguration
from ...core.utils import round_half_up
from .pricing import DEFAULT_PRICING_RATES

logger = logging.getLogger(__name__)

# Settings at which the layer and infill factors equal 1.0
BASELINE_LAYER_HEIGHT_MM = 0.2
BASELINE_INFILL_PERCENTAGE = 20

def estimate_print_time(volume_cm3: float,
                        configuration: PrintConfiguration,
                        rates: PricingRates = DEFAULT_PRICING_RATES) -> float:
    """
    Estimates total print duration for all units, in hours rounded to 1 decimal.

    Thinner layers and denser infill scale the time up proportionally; support
    structures add a flat penalty.
    """
    base_hours = volume_cm3 / rates.base_print_speed_cm3_per_hour
    layer_factor = BASELINE_LAYER_HEIGHT_MM / configuration.layer_height
    infill_factor = configuration.infill_percentage / BASELINE_INFILL_PERCENTAGE
    support_factor = rates.support_time_factor if configuration.support_structures else 1.0

    total_hours = base_hours * layer_factor * infill_factor * support_factor * configuration.quantity
    logger.debug(
        f"Print time: base {base_hours:.3f}h x layer {layer_factor:.2f} x infill {infill_factor:.2f} "
        f"x support {support_factor} x qty {configuration.quantity} = {total_hours:.3f}h"
    )
    return round_half_up(total_hours, 1)

def estimate_delivery_days(print_time_hours: float,
                           lead_time_days: Optional[int],
                           configuration: PrintConfiguration,
                           rates: PricingRates = DEFAULT_PRICING_RATES) -> int:
    """
    Estimates days until delivery: material lead time, printing in whole working
    days, one day of finishing when post-processing is requested, then shipping.
    """
    print_days = math.ceil(print_time_hours / rates.productive_hours_per_day)
    post_process_days = 1 if configuration.post_processing else 0
    return (lead_time_days or 0) + print_days + post_process_days + rates.shipping_days
