"""Location lookup data models."""
from dataclasses import dataclass
from typing import Any, Dict, Union


@dataclass
class GeocodedLocation:
    """First geocoding match for a place query."""
    formatted_address: str
    latitude: float
    longitude: float


@dataclass
class LocationFound:
    """Tool result for a place the mapping service resolved."""
    name: str
    address: str
    latitude: float
    longitude: float

    def to_payload(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "address": self.address,
            "lat": self.latitude,
            "lng": self.longitude,
        }


@dataclass
class LocationNotFound:
    """Tool result for a place the mapping service could not resolve."""
    name: str
    error: str = "Location not found by the mapping service."

    def to_payload(self) -> Dict[str, Any]:
        return {"name": self.name, "error": self.error}


ToolResult = Union[LocationFound, LocationNotFound]
