"""Place lookup through the Google Geocoding API, constrained to one region."""
import time
import logging
from typing import Optional
import httpx

from config import (
    GOOGLE_MAPS_API_KEY,
    GEOCODING_API_URL,
    REGION_QUALIFIER,
    REGION_BIAS,
    HTTP_TIMEOUT,
    ConfigurationError,
)
from models.location import GeocodedLocation

logger = logging.getLogger(__name__)

MAPS_SEARCH_URL = "https://www.google.com/maps/search/?api=1&query={lat},{lng}"


def maps_link(latitude: float, longitude: float) -> str:
    """Google Maps search URL for a coordinate pair."""
    return MAPS_SEARCH_URL.format(lat=latitude, lng=longitude)


class Geocoder:
    """
    Resolve free-text place names to an address and coordinates.

    Every query gets the region qualifier appended and is sent with a region
    bias. Lookups never raise for upstream trouble: a failed or empty lookup
    is logged and reported as None so a chat turn can still complete.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: str = GEOCODING_API_URL,
        region_qualifier: str = REGION_QUALIFIER,
        region_bias: str = REGION_BIAS,
        timeout: float = HTTP_TIMEOUT
    ):
        """
        Initialize the geocoder.

        Args:
            api_key: Google Maps API key (defaults to GOOGLE_MAPS_API_KEY)
            api_url: Geocoding endpoint
            region_qualifier: Suffix appended to every query, e.g. "Pampanga, Philippines"
            region_bias: ccTLD region bias passed as the `region` parameter
            timeout: Request timeout in seconds

        Raises:
            ConfigurationError: If no API key is available
        """
        self.api_key = api_key or GOOGLE_MAPS_API_KEY
        if not self.api_key:
            raise ConfigurationError("GOOGLE_MAPS_API_KEY must be provided or set in environment")

        self.api_url = api_url
        self.region_qualifier = region_qualifier
        self.region_bias = region_bias
        self.timeout = timeout
        logger.info(f"Initialized Geocoder for region: {region_qualifier}")

    def build_query(self, place_name: str) -> str:
        """Place name with the region qualifier appended."""
        return f"{place_name.strip()}, {self.region_qualifier}"

    def geocode(self, place_name: str) -> Optional[GeocodedLocation]:
        """
        Look up the first match for a place inside the configured region.

        Args:
            place_name: Free-text place name

        Returns:
            GeocodedLocation, or None when nothing matched or the lookup failed

        Raises:
            ValueError: If place_name is empty
        """
        if not place_name or not place_name.strip():
            raise ValueError("Place name cannot be empty")

        query = self.build_query(place_name)
        params = {
            "address": query,
            "key": self.api_key,
            "region": self.region_bias,
        }

        start_time = time.time()
        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.get(self.api_url, params=params)
        except httpx.TimeoutException:
            logger.error(f"Geocoding timed out after {self.timeout}s for query: {query}")
            return None
        except httpx.RequestError as e:
            logger.error(f"Geocoding network error for query {query}: {e}")
            return None

        elapsed_ms = int((time.time() - start_time) * 1000)

        if response.status_code != 200:
            logger.error(
                f"Geocoding API failed with status {response.status_code} for query: {query}"
            )
            return None

        try:
            data = response.json()
        except ValueError:
            logger.error(f"Geocoding API returned a non-JSON body for query: {query}")
            return None
        if not isinstance(data, dict):
            logger.error(f"Geocoding API returned a {type(data).__name__} body for query: {query}")
            return None

        status = data.get("status", "OK")
        results = data.get("results") or []
        if status not in ("OK", "ZERO_RESULTS"):
            logger.error(
                f"Geocoding API returned status {status} for query {query}: "
                f"{data.get('error_message', '')}"
            )
            return None

        if not isinstance(results, list):
            logger.error(f"Geocoding API returned malformed results for query: {query}")
            return None
        if not results:
            logger.info(f"No geocoding results for query: {query} ({elapsed_ms}ms)")
            return None

        first = results[0]
        try:
            coordinates = first["geometry"]["location"]
            location = GeocodedLocation(
                formatted_address=first["formatted_address"],
                latitude=float(coordinates["lat"]),
                longitude=float(coordinates["lng"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Unexpected geocoding result shape for query {query}: {e}")
            return None

        logger.info(
            f"Geocoded {query!r} to {location.formatted_address} "
            f"({location.latitude}, {location.longitude}) in {elapsed_ms}ms"
        )
        return location
