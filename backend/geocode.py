"""
Address lookup helpers backed by OpenStreetMap Nominatim.

Used by the report form to turn a picked map position into a readable
address and to search addresses by text. Lookups are best effort: any
failure is logged and reported as "no result" so the form still works
with bare coordinates.
"""

from typing import List, Optional

import requests
import structlog

from models import Location
from settings import settings

logger = structlog.get_logger(component="geocode")

NOMINATIM_BASE = "https://nominatim.openstreetmap.org"
HEADERS = {"User-Agent": "Citizen-Reports-Portal"}
SEARCH_LIMIT = 5


def reverse_geocode(lat: float, lng: float) -> Optional[str]:
    try:
        resp = requests.get(
            f"{NOMINATIM_BASE}/reverse",
            params={"format": "json", "lat": lat, "lon": lng, "addressdetails": 1},
            headers=HEADERS,
            timeout=settings.http_timeout,
        )
        if not resp.ok:
            return None
        return resp.json().get("display_name")
    except (requests.RequestException, ValueError) as exc:
        logger.error("Reverse geocoding failed", lat=lat, lng=lng, error=str(exc))
        return None


def search_address(query: str) -> List[Location]:
    try:
        resp = requests.get(
            f"{NOMINATIM_BASE}/search",
            params={"format": "json", "q": query, "limit": SEARCH_LIMIT},
            headers=HEADERS,
            timeout=settings.http_timeout,
        )
        if not resp.ok:
            return []
        return [
            Location(lat=float(item["lat"]), lng=float(item["lon"]), address=item.get("display_name"))
            for item in resp.json()
        ]
    except (requests.RequestException, ValueError, KeyError) as exc:
        logger.error("Address search failed", query=query, error=str(exc))
        return []
