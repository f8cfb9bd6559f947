# Role: External tool adapter for the providers API. Used as the default loader when a user toggles a
# provider's service zone that is not on the map yet.

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

import tripreplay.config as config


@dataclass(frozen=True)
class ProviderToolResult:
    ok: bool
    data: Dict[str, Any]
    error: Optional[str] = None


class ProviderClient:
    def __init__(self, base_url: Optional[str] = None, timeout: float = 15) -> None:
        self.base_url = (base_url or config.PROVIDERS_API_URL).rstrip("/")
        self.timeout = timeout

    def get_provider(self, provider_id: str) -> ProviderToolResult:
        try:
            r = requests.get(f"{self.base_url}/{provider_id}", timeout=self.timeout)
            r.raise_for_status()
            payload = r.json()
        except requests.RequestException as e:
            return ProviderToolResult(ok=False, data={}, error=f"Providers API request failed: {e}")
        except ValueError as e:
            return ProviderToolResult(ok=False, data={}, error=f"Providers API returned invalid JSON: {e}")

        # The API wraps single records as {"data": {...}}.
        if isinstance(payload, dict) and isinstance(payload.get("data"), dict):
            payload = payload["data"]
        if not isinstance(payload, dict):
            return ProviderToolResult(ok=False, data={}, error="Unexpected provider payload")
        return ProviderToolResult(ok=True, data=payload)

    async def load_service_zone(self, provider_id: str) -> Any:
        # Role: zone loader for ServiceZoneStore.toggle_provider_zone; the blocking request runs off-loop.
        result = await asyncio.to_thread(self.get_provider, provider_id)
        if not result.ok:
            if config.DEBUG:
                print("PROVIDER_CLIENT:", result.error)
            return None
        return result.data.get("service_zone")
