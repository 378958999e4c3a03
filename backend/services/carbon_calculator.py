"""Trip carbon footprint estimates."""
from dataclasses import dataclass
import logging

logger = logging.getLogger(__name__)

# kg CO2e per km
EMISSION_FACTORS = {
    "car": 0.17,
    "bus": 0.10,
    "motorcycle": 0.11,
    "tricycle": 0.11,
    "jeepney": 0.08,
    "bike": 0.0,
    "walking": 0.0,
}


@dataclass
class CarbonEstimate:
    """Emissions for one trip leg."""
    transportation: str
    distance_km: float
    factor: float
    total_kg: float
    zero_emission: bool


def calculate(transportation: str, distance_km: float) -> CarbonEstimate:
    """
    Estimate trip emissions as distance times the mode's emission factor.

    Unknown transport modes count as zero emissions, matching the calculator
    form's behaviour for an unselected mode.

    Raises:
        ValueError: If distance_km is negative
    """
    if distance_km < 0:
        raise ValueError("Distance cannot be negative")

    mode = (transportation or "").strip().lower()
    if mode not in EMISSION_FACTORS:
        logger.warning(f"Unknown transportation mode {transportation!r}; using zero emissions")
    factor = EMISSION_FACTORS.get(mode, 0.0)
    total = round(distance_km * factor, 2)

    return CarbonEstimate(
        transportation=mode,
        distance_km=distance_km,
        factor=factor,
        total_kg=total,
        zero_emission=total == 0,
    )
