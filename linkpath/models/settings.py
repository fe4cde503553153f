"""Engine configuration models."""

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

ProviderName = Literal["osrm", "mapbox", "ors"]
TravelProfile = Literal["drive", "bicycle", "walk"]


class RoutingSettings(BaseModel):
    """Routing provider selection and request limits."""

    providers: List[ProviderName] = Field(
        default_factory=lambda: ["osrm"],
        description="Providers to try, in priority order",
    )
    profile: TravelProfile = Field(default="drive", description="Travel profile for routes")
    request_timeout_s: float = Field(
        default=8.0, ge=1.0, le=60.0, description="Timeout for one provider attempt in seconds"
    )
    max_concurrency: int = Field(
        default=8, ge=1, le=64, description="Maximum simultaneous in-flight route requests"
    )
    cache_enabled: bool = Field(default=True, description="Memoize successful routes")
    cache_max_routes: int = Field(
        default=2048, ge=1, description="Routes kept in the cache before the least recently used is dropped"
    )

    osrm_base_url: str = Field(
        default="https://router.project-osrm.org/route/v1",
        description="OSRM route service base URL",
    )
    mapbox_base_url: str = Field(
        default="https://api.mapbox.com/directions/v5/mapbox",
        description="Mapbox Directions base URL",
    )
    mapbox_token: Optional[str] = Field(default=None, description="Mapbox access token")
    ors_base_url: str = Field(
        default="https://api.openrouteservice.org/v2/directions",
        description="OpenRouteService directions base URL",
    )
    ors_api_key: Optional[str] = Field(default=None, description="OpenRouteService API key")
    user_agent: str = Field(default="linkpath", description="User-Agent header for providers")

    @property
    def link_timeout_s(self) -> float:
        """Per-link budget covering a full attempt on every provider in the chain.

        The extra second lets the last provider's own timeout fire first.
        """
        return self.request_timeout_s * len(self.providers) + 1.0

    @field_validator("providers")
    @classmethod
    def validate_providers(cls, v: List[str]) -> List[str]:
        """Provider list must be non-empty and free of duplicates."""
        if not v:
            raise ValueError("At least one routing provider is required")
        if len(set(v)) != len(v):
            raise ValueError(f"Duplicate providers in {v}")
        return v


class EditorSettings(BaseModel):
    """Manual path editing rules."""

    endpoint_tolerance_m: float = Field(
        default=50.0,
        ge=0,
        description="Allowed drift of a path's first/last point from its node, in meters",
    )


class EngineSettings(BaseModel):
    """Complete engine configuration.

    Settings can be overridden at load time via JSON merge patch.
    """

    routing: RoutingSettings = Field(default_factory=RoutingSettings)
    editor: EditorSettings = Field(default_factory=EditorSettings)
    store_path: Optional[str] = Field(
        default=None, description="JSON file for persisting path records (None = memory only)"
    )

    @classmethod
    def from_yaml(cls, yaml_content: str) -> "EngineSettings":
        """Load settings from YAML string."""
        import yaml
        data = yaml.safe_load(yaml_content) or {}
        return cls(**data)

    def merge_override(self, override: Dict) -> "EngineSettings":
        """Merge override dict into these settings (JSON merge patch semantics)."""
        import json
        base = json.loads(self.model_dump_json())
        _deep_merge(base, override)
        return EngineSettings(**base)


def _deep_merge(base: Dict, override: Dict) -> None:
    """Deep merge override into base dict (modifies base in place)."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
