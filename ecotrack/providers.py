"""
Location and live air-quality sources.

- Geolocator: configured coordinates, or an IP-based lookup over HTTP
- OpenAQClient: nearest monitoring station's latest measurements

Each call is a single HTTP request with a timeout; nothing is retried.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

import requests

from ecotrack.aqi import AQIResult, compute_aqi


logger = logging.getLogger(__name__)

OPENAQ_LATEST_URL = "https://api.openaq.org/v2/latest"
IP_LOOKUP_URL = "http://ip-api.com/json"
DEFAULT_RADIUS_M = 10000


class ProviderError(Exception):
    """Base class for failures of an external data source."""


class PermissionDenied(ProviderError):
    pass


class LocationUnavailable(ProviderError):
    pass


class NetworkError(ProviderError):
    pass


class NoDataFound(ProviderError):
    pass


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class StationReading:
    name: Optional[str]
    city: Optional[str]
    country: Optional[str]
    coordinates: Optional[Location]
    measurements: Dict[str, float] = field(default_factory=dict)


class Geolocator:
    """
    Resolves the user's position.

    Explicit coordinates always win. Without them an IP lookup is tried when
    allowed; otherwise locate() raises PermissionDenied.
    """

    def __init__(
        self,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        *,
        allow_lookup: bool = True,
        lookup_url: str = IP_LOOKUP_URL,
        timeout: float = 10.0,
    ) -> None:
        self.latitude = latitude
        self.longitude = longitude
        self.allow_lookup = allow_lookup
        self.lookup_url = lookup_url
        self.timeout = timeout

    def locate(self) -> Location:
        if self.latitude is not None and self.longitude is not None:
            return Location(float(self.latitude), float(self.longitude))
        if not self.allow_lookup:
            raise PermissionDenied("Location lookup is disabled and no coordinates were given.")

        try:
            resp = requests.get(self.lookup_url, timeout=self.timeout)
            resp.raise_for_status()
            j = resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("Location lookup failed: %s", e)
            raise LocationUnavailable(f"Location lookup failed: {e}") from e

        try:
            return Location(float(j["lat"]), float(j["lon"]))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Location lookup returned no coordinates: %r", j)
            raise LocationUnavailable("Location lookup returned no coordinates.") from e


def _station_coordinates(raw) -> Optional[Location]:
    if not isinstance(raw, dict):
        return None
    try:
        return Location(float(raw["latitude"]), float(raw["longitude"]))
    except (KeyError, TypeError, ValueError):
        return None


def _measurements(raw) -> Dict[str, float]:
    out: Dict[str, float] = {}
    for m in raw or []:
        if not isinstance(m, dict) or "parameter" not in m:
            continue
        try:
            # Later measurements of the same parameter replace earlier ones.
            out[str(m["parameter"])] = float(m["value"])
        except (KeyError, TypeError, ValueError):
            continue
    return out


class OpenAQClient:
    def __init__(
        self,
        base_url: str = OPENAQ_LATEST_URL,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
    ) -> None:
        self.base_url = base_url
        self.api_key = api_key
        self.timeout = timeout

    def fetch_nearest(
        self,
        location: Location,
        radius_m: int = DEFAULT_RADIUS_M,
        limit: int = 1,
    ) -> StationReading:
        """
        Latest measurements of the nearest station within radius_m.

        Raises NetworkError on transport/HTTP/JSON failure and NoDataFound when
        no station is in range.
        """
        params = {
            "coordinates": f"{location.latitude:.4f},{location.longitude:.4f}",
            "radius": int(radius_m),
            "limit": int(limit),
        }
        headers = {"X-API-Key": self.api_key} if self.api_key else {}
        try:
            resp = requests.get(self.base_url, params=params, headers=headers, timeout=self.timeout)
            resp.raise_for_status()
            j = resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("OpenAQ request failed: %s", e)
            raise NetworkError(f"Failed to fetch air quality: {e}") from e

        results = j.get("results") if isinstance(j, dict) else None
        if not isinstance(results, list) or not results:
            raise NoDataFound("No nearby monitoring data.")

        loc = results[0]
        if not isinstance(loc, dict):
            raise NoDataFound("Unexpected station record.")
        station = StationReading(
            name=loc.get("location") or loc.get("name"),
            city=loc.get("city"),
            country=loc.get("country"),
            coordinates=_station_coordinates(loc.get("coordinates")),
            measurements=_measurements(loc.get("measurements")),
        )
        logger.info("Fetched %d measurements from %s", len(station.measurements), station.name or "unknown station")
        return station


def current_air_quality(
    client: OpenAQClient,
    location: Location,
    radius_m: int = DEFAULT_RADIUS_M,
) -> Tuple[StationReading, Optional[AQIResult]]:
    """Nearest station and its AQI; the AQI is None when the station reports no PM."""
    station = client.fetch_nearest(location, radius_m=radius_m)
    return station, compute_aqi(station.measurements)
