# core/utils.py

import math
import logging

logger = logging.getLogger(__name__)

def round_half_up(value: float, ndigits: int = 2) -> float:
    """
    Rounds to a fixed number of decimals with halves rounded towards +infinity.

    Unlike the built-in round(), ties never go to the even neighbour
    (0.125 -> 0.13, 2.5 -> 3.0). All prices, measurements and estimates
    are rounded through this helper.

    Args:
        value: The number to round. NaN and infinities are returned unchanged.
        ndigits: Number of decimal places to keep.

    Returns:
        The rounded value as a float.
    """
    if not math.isfinite(value):
        return value
    factor = 10 ** ndigits
    return math.floor(value * factor + 0.5) / factor

def format_hours(hours: float) -> str:
    """
    Formats a duration in hours into a human-readable string (e.g., "2d 3h 30m").

    Returns "N/A" for invalid input and "0m" for a zero duration.
    """
    if hours is None or not isinstance(hours, (int, float)) or not math.isfinite(hours) or hours < 0:
        return "N/A"

    total_minutes = int(round(hours * 60))
    days, remainder = divmod(total_minutes, 24 * 60)
    whole_hours, minutes = divmod(remainder, 60)

    parts = []
    if days > 0:
        parts.append(f"{days}d")
    if whole_hours > 0:
        parts.append(f"{whole_hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")

    if not parts:
        return "0m"

    return " ".join(parts)
