# Role: Service-zone store. Owns GeoJSON polygon zones with precomputed bounds, per-type styling and a
# per-store color cursor for provider zones. Shares the focus controller with the PingStore so zones and
# pings frame the same map.

from __future__ import annotations

import inspect
import uuid
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence, Set, Tuple, Union

import tripreplay.config as config
from tripreplay.core.errors import InvalidGeometry
from tripreplay.core.focus import focus_for_bounds, focus_for_geometries
from tripreplay.core.observable import Observable
from tripreplay.core.ping_store import PingStore
from tripreplay.models.overlay import PROVIDER_COLORS, ZONE_CONFIGS, ServiceZone, ZoneType
from tripreplay.models.provider import Provider
from tripreplay.utils.geo import combine_bounds, is_valid_zone_geojson, parse_geojson, validate_zone_geojson
from tripreplay.utils.provider_fields import build_provider_description

ZoneLoader = Callable[[str], Union[Any, Awaitable[Any]]]


class ServiceZoneStore(Observable):
    def __init__(self, ping_store: Optional[PingStore] = None) -> None:
        super().__init__()
        self.ping_store = ping_store or PingStore()
        self.focus = self.ping_store.focus
        self._zones: List[ServiceZone] = []
        self._color_index = 0
        # Provider ids with a zone fetch in flight; distinct from visibility.
        self._loading: Set[str] = set()

    # ----------------------------
    # Construction
    # ----------------------------
    def _build_zone_config(self, zone_type: ZoneType, overrides: Mapping[str, Any], color_index: int) -> Tuple[Dict[str, Any], int]:
        # Key line: provider zones without an explicit color take the next palette entry.
        custom = dict(overrides or {})
        if zone_type == ZoneType.PROVIDER and not custom.get("color"):
            custom["color"] = PROVIDER_COLORS[color_index % len(PROVIDER_COLORS)]
            color_index += 1
        return {**ZONE_CONFIGS[zone_type], **custom}, color_index

    def _build_zone(self, zone_data: Mapping[str, Any], color_index: int) -> Tuple[ServiceZone, int]:
        geo_json = zone_data.get("geo_json", zone_data.get("geoJson"))
        bounds = validate_zone_geojson(geo_json)
        zone_type = ZoneType(zone_data.get("type") or ZoneType.CUSTOM)
        zone_config, color_index = self._build_zone_config(zone_type, zone_data.get("config") or {}, color_index)

        metadata = dict(zone_data.get("metadata") or {})
        if metadata.get("provider_id") is not None:
            metadata["provider_id"] = str(metadata["provider_id"])

        zone = ServiceZone(
            id=str(uuid.uuid4()),
            type=zone_type,
            geo_json=geo_json,
            label=zone_data.get("label") or f"{zone_type.value} zone",
            description=zone_data.get("description") or "",
            metadata=metadata,
            config=zone_config,
            bounds=bounds,
        )
        return zone, color_index

    def add_zone(self, zone_data: Mapping[str, Any], focus: bool = False) -> str:
        try:
            zone, color_index = self._build_zone(zone_data, self._color_index)
        except InvalidGeometry as e:
            if config.DEBUG:
                print("ZONE_STORE rejected zone:", repr(e))
            raise

        self._zones = [*self._zones, zone]
        self._color_index = color_index
        self._changed()

        if focus:
            self.focus_on_zone(zone.id)
        return zone.id

    def add_zones(self, zones_data: Sequence[Mapping[str, Any]], focus: bool = False) -> List[str]:
        # 1) Build every zone against a local color cursor (any InvalidGeometry aborts before commit)
        # 2) Commit zones + cursor in one step
        color_index = self._color_index
        new_zones: List[ServiceZone] = []
        for data in zones_data:
            zone, color_index = self._build_zone(data, color_index)
            new_zones.append(zone)

        if not new_zones:
            return []

        self._zones = [*self._zones, *new_zones]
        self._color_index = color_index
        self._changed()

        if focus:
            self.focus_on_all_zones()
        return [z.id for z in new_zones]

    def _provider_zones_data(self, providers: Sequence[Union[Provider, Mapping[str, Any]]]) -> List[Dict[str, Any]]:
        zones_data: List[Dict[str, Any]] = []
        for raw in providers:
            provider = raw if isinstance(raw, Provider) else Provider.model_validate(raw)
            geo_json = parse_geojson(provider.service_zone)
            if not is_valid_zone_geojson(geo_json):
                if config.DEBUG and provider.service_zone is not None:
                    print("ZONE_STORE skipped provider zone:", provider.key)
                continue
            try:
                validate_zone_geojson(geo_json)
            except InvalidGeometry as e:
                # Key line: a polygon with unreadable positions is skipped like any other unusable zone.
                if config.DEBUG:
                    print("ZONE_STORE skipped provider zone:", provider.key, repr(e))
                continue

            zones_data.append(
                {
                    "type": ZoneType.PROVIDER,
                    "geo_json": geo_json,
                    "label": provider.name or f"Provider {len(zones_data) + 1}",
                    "description": build_provider_description(provider),
                    "metadata": {
                        "provider_id": provider.key,
                        "provider_type": provider.type,
                        "provider": provider.model_dump(mode="json"),
                    },
                    # Alternate solid/dashed outlines so overlapping neighbours stay readable.
                    "config": {"dashArray": "3" if len(zones_data) % 2 else None},
                }
            )
        return zones_data

    def add_provider_zones(self, providers: Sequence[Union[Provider, Mapping[str, Any]]], focus: bool = False) -> List[str]:
        """
        Build one provider zone per provider that carries a usable service_zone.
        Providers with a missing, unparseable, non-polygon or malformed zone are skipped, not fatal.
        """
        return self.add_zones(self._provider_zones_data(providers), focus=focus)

    def replace_provider_zones(self, providers: Sequence[Union[Provider, Mapping[str, Any]]]) -> List[str]:
        """
        Swap in fresh zones for re-sent providers in a single commit.
        Only a provider whose new zone is usable loses its earlier zone; the rest of the map is untouched.
        """
        # 1) Build the new zones first against a local color cursor
        # 2) Drop earlier zones of exactly those providers, append the new ones, notify once
        color_index = self._color_index
        new_zones: List[ServiceZone] = []
        for data in self._provider_zones_data(providers):
            zone, color_index = self._build_zone(data, color_index)
            new_zones.append(zone)
        if not new_zones:
            return []

        replaced = {z.provider_id for z in new_zones if z.provider_id is not None}
        self._zones = [*(z for z in self._zones if z.provider_id not in replaced), *new_zones]
        self._color_index = color_index
        self._changed()
        return [z.id for z in new_zones]

    # ----------------------------
    # Removal / update
    # ----------------------------
    def _replace(self, zones: List[ServiceZone]) -> None:
        self._zones = zones
        self._changed()

    def remove_zone(self, zone_id: str) -> bool:
        remaining = [z for z in self._zones if z.id != zone_id]
        removed = len(remaining) != len(self._zones)
        if removed:
            self._replace(remaining)
        return removed

    def remove_zones_by_type(self, zone_type: ZoneType) -> int:
        zone_type = ZoneType(zone_type)
        remaining = [z for z in self._zones if z.type != zone_type]
        removed = len(self._zones) - len(remaining)
        if removed:
            self._replace(remaining)
        return removed

    def remove_zones_by_provider(self, provider_id: Any) -> int:
        key = str(provider_id)
        remaining = [z for z in self._zones if z.provider_id != key]
        removed = len(self._zones) - len(remaining)
        if removed:
            self._replace(remaining)
        return removed

    def clear_all(self) -> None:
        # Key line: a fresh batch of providers after clear_all gets the same colors again.
        self._color_index = 0
        self._replace([])

    def update_zone(self, zone_id: str, updates: Mapping[str, Any]) -> bool:
        # Role: replace fields on one zone; bounds follow geo_json, unknown fields are rejected.
        changes: Dict[str, Any] = {k: v for k, v in updates.items() if k not in {"id", "created_at", "bounds"}}
        if "geoJson" in changes:
            changes["geo_json"] = changes.pop("geoJson")
        unknown = set(changes) - set(ServiceZone.model_fields)
        if unknown:
            raise ValueError(f"Unknown zone fields: {sorted(unknown)}")
        if "geo_json" in changes:
            changes["bounds"] = validate_zone_geojson(changes["geo_json"])

        updated = False
        result: List[ServiceZone] = []
        for zone in self._zones:
            if zone.id == zone_id:
                # Key line: the merged record goes through validation; a bad value raises before the store changes.
                zone = ServiceZone.model_validate({**zone.model_dump(), **changes})
                updated = True
            result.append(zone)

        if updated:
            self._replace(result)
        return updated

    def _set_visibility(self, predicate: Callable[[ServiceZone], bool], visible: Optional[bool]) -> Tuple[int, bool]:
        affected = 0
        last = False
        result: List[ServiceZone] = []
        for zone in self._zones:
            if predicate(zone):
                affected += 1
                last = (not zone.visible) if visible is None else visible
                zone = zone.model_copy(update={"visible": last})
            result.append(zone)
        if affected:
            self._replace(result)
        return affected, last

    def toggle_visibility(self, zone_id: str) -> bool:
        _, new_visibility = self._set_visibility(lambda z: z.id == zone_id, None)
        return new_visibility

    def toggle_visibility_by_type(self, zone_type: ZoneType, visible: Optional[bool] = None) -> int:
        zone_type = ZoneType(zone_type)
        affected, _ = self._set_visibility(lambda z: z.type == zone_type, visible)
        return affected

    # ----------------------------
    # Queries
    # ----------------------------
    @property
    def zones(self) -> List[ServiceZone]:
        return list(self._zones)

    @property
    def color_index(self) -> int:
        return self._color_index

    def get_zone(self, zone_id: str) -> Optional[ServiceZone]:
        return next((z for z in self._zones if z.id == zone_id), None)

    def get_zones_by_type(self, zone_type: ZoneType) -> List[ServiceZone]:
        zone_type = ZoneType(zone_type)
        return [z for z in self._zones if z.type == zone_type]

    def get_zones_by_provider(self, provider_id: Any) -> List[ServiceZone]:
        key = str(provider_id)
        return [z for z in self._zones if z.provider_id == key]

    def visible_zones(self) -> List[ServiceZone]:
        return [z for z in self._zones if z.visible]

    def zones_by_type(self) -> Dict[ZoneType, List[ServiceZone]]:
        return {t: [z for z in self._zones if z.type == t] for t in ZoneType}

    def provider_zones(self, visible_only: bool = False) -> List[ServiceZone]:
        return [z for z in self._zones if z.type == ZoneType.PROVIDER and (z.visible or not visible_only)]

    def visible_provider_ids(self) -> Set[str]:
        return {z.provider_id for z in self.provider_zones(visible_only=True) if z.provider_id}

    def get_provider_color(self, provider_id: Any) -> Optional[str]:
        zones = self.get_zones_by_provider(provider_id)
        return zones[0].config.get("color") if zones else None

    @property
    def count(self) -> int:
        return len(self._zones)

    @property
    def visible_count(self) -> int:
        return len(self.visible_zones())

    # ----------------------------
    # Focus
    # ----------------------------
    def focus_on_zone(self, zone_id: str, padding: int = 20) -> None:
        zone = self.get_zone(zone_id)
        if zone is None or not zone.bounds:
            return
        self.focus.request(focus_for_bounds(zone.bounds, padding, focus_id=zone_id))

    def focus_on_all_zones(self, zone_type: Optional[ZoneType] = None, padding: int = 20) -> None:
        selected = [
            z for z in self._zones if z.visible and z.bounds and (zone_type is None or z.type == ZoneType(zone_type))
        ]
        if not selected:
            return
        if len(selected) == 1:
            self.focus_on_zone(selected[0].id, padding)
            return
        combined = combine_bounds([z.bounds for z in selected])
        self.focus.request(focus_for_bounds(combined, padding))

    def focus_on_zones_and_pings(self, padding: int = 20) -> None:
        boxes = [z.bounds for z in self._zones if z.visible and z.bounds]
        points = [p.coordinates for p in self.ping_store.visible_pings()]
        if not boxes and not points:
            return
        self.focus.request(focus_for_geometries(boxes, points, padding))

    def focus_on_provider(self, provider_id: Any, padding: int = 20) -> None:
        # Role: hide every other zone, keep this provider's zone (if it was visible) and frame it.
        key = str(provider_id)
        target: Optional[str] = None
        result: List[ServiceZone] = []
        for zone in self._zones:
            is_target = zone.provider_id == key
            if is_target and target is None:
                target = zone.id
            result.append(zone.model_copy(update={"visible": is_target and zone.visible}))
        self._replace(result)
        if target is not None:
            self.focus_on_zone(target, padding)

    # ----------------------------
    # Per-provider toggling with async loading
    # ----------------------------
    def is_loading(self, provider_id: Any) -> bool:
        return str(provider_id) in self._loading

    @property
    def loading_provider_ids(self) -> Set[str]:
        return set(self._loading)

    async def toggle_provider_zone(self, provider_id: Any, loader: ZoneLoader, focus: bool = True) -> Optional[bool]:
        """
        Show/hide one provider's zone, fetching it through `loader` the first time.

        Returns the provider's new visibility, or None when the request was ignored because a fetch for the
        same provider is already in flight. While the loader is suspended the store stays fully usable.
        """
        key = str(provider_id)
        if key in self._loading:
            return None

        existing = self.get_zones_by_provider(key)
        if existing:
            visible = not any(z.visible for z in existing)
            self._set_visibility(lambda z: z.provider_id == key, visible)
            if visible and focus:
                self.focus_on_zone(existing[0].id)
            return visible

        self._loading.add(key)
        self._changed()
        try:
            result = loader(key)
            if inspect.isawaitable(result):
                result = await result

            if isinstance(result, Provider):
                provider = result
            elif isinstance(result, Mapping) and "service_zone" in result:
                provider = Provider.model_validate(result)
            else:
                provider = Provider(id=key, service_zone=result)
            if provider.id is None:
                provider = provider.model_copy(update={"id": key})

            ids = self.add_provider_zones([provider], focus=focus)
            return bool(ids)
        finally:
            self._loading.discard(key)
            self._changed()
