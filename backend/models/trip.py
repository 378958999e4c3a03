"""Trip planning data models."""
from dataclasses import dataclass, field
from typing import List


@dataclass
class TripPreferences:
    """What the traveller asked the planner for."""
    starting_point: str
    duration: str
    group_size: int
    travel_style: str
    interests: List[str] = field(default_factory=list)
