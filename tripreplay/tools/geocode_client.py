# Role: External tool adapter for geocoding. Calls the Google Geocoding API and returns a compact
# [lat, lng] result. Failures come back as ok=False with coordinates=None; nothing here raises.

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

import tripreplay.config as config
from tripreplay.utils.geo import coerce_lat_lng


@dataclass(frozen=True)
class GeocodeResult:
    ok: bool
    coordinates: Optional[List[float]] = None
    formatted_address: Optional[str] = None
    error: Optional[str] = None


class GeocodeClient:
    GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"

    def __init__(self, api_key: Optional[str] = None, timeout: float = 15) -> None:
        self.api_key = api_key or config.GOOGLE_MAPS_API_KEY
        self.timeout = timeout
        self._cache: Dict[str, GeocodeResult] = {}

    def geocode(self, address: str) -> GeocodeResult:
        # 1) Validate input + key
        # 2) Query Google Geocoding (single best result)
        # 3) Normalize location to [lat, lng]
        if not address or not address.strip():
            return GeocodeResult(ok=False, error="Missing address")
        if not self.api_key:
            return GeocodeResult(ok=False, error="Missing GOOGLE_MAPS_API_KEY")

        query = address.strip()
        cached = self._cache.get(query)
        if cached is not None:
            return cached

        try:
            r = requests.get(self.GEOCODE_URL, params={"address": query, "key": self.api_key}, timeout=self.timeout)
            r.raise_for_status()
            payload: Dict[str, Any] = r.json()
        except requests.RequestException as e:
            if config.DEBUG:
                print("GEOCODE request failed:", repr(e))
            return GeocodeResult(ok=False, error=f"Geocoding request failed: {e}")
        except ValueError as e:
            return GeocodeResult(ok=False, error=f"Geocoding returned invalid JSON: {e}")

        status = payload.get("status")
        results = payload.get("results") or []
        if status != "OK" or not results:
            return GeocodeResult(ok=False, error=f"Could not geocode '{query}' (status={status})")

        best = results[0]
        coords = coerce_lat_lng(best)
        if coords is None:
            return GeocodeResult(ok=False, error=f"No usable location for '{query}'")

        # Key line: only successful lookups are cached; failures retry on the next call.
        result = GeocodeResult(ok=True, coordinates=coords, formatted_address=best.get("formatted_address"))
        self._cache[query] = result
        return result
