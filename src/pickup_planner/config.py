"""Application configuration and settings management."""

from pathlib import Path
from typing import Any, Literal, Optional

import json
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class TierThreshold(BaseModel):
    """Minimum volume and density a grid cell needs to reach a potential tier."""

    min_weight_kg: float = Field(..., ge=0.0)
    min_density: float = Field(..., ge=0.0, description="Pickups per km² over the analysis radius.")


class ImpactFactor(BaseModel):
    """Per-kilogram environmental benefit of recycling one waste type."""

    carbon: float = Field(..., ge=0.0, description="kg CO2 avoided per kg.")
    water: float = Field(..., ge=0.0, description="Litres of water saved per kg.")
    landfill: float = Field(..., ge=0.0, description="m³ of landfill avoided per kg.")
    trees: Optional[float] = Field(default=None, ge=0.0, description="Trees-equivalent per kg.")


DEFAULT_TIER_THRESHOLDS: dict[str, TierThreshold] = {
    "HIGH": TierThreshold(min_weight_kg=1000.0, min_density=5.0),
    "MEDIUM": TierThreshold(min_weight_kg=500.0, min_density=3.0),
    "LOW": TierThreshold(min_weight_kg=100.0, min_density=1.0),
}

DEFAULT_IMPACT_FACTORS: dict[str, ImpactFactor] = {
    "organic": ImpactFactor(carbon=0.5, water=1000.0, landfill=0.2),
    "plastic": ImpactFactor(carbon=2.5, water=2000.0, landfill=0.1, trees=0.1),
    "paper": ImpactFactor(carbon=1.5, water=1500.0, landfill=0.15, trees=0.2),
    "metal": ImpactFactor(carbon=5.0, water=3000.0, landfill=0.05),
}


def validate_tier_thresholds(thresholds: dict[str, TierThreshold]) -> dict[str, TierThreshold]:
    """Normalise tier keys and reject tables the classifier cannot use."""

    normalized = {str(key).strip().upper(): value for key, value in thresholds.items()}
    missing = [tier for tier in ("HIGH", "MEDIUM") if tier not in normalized]
    if missing:
        raise ValueError(f"Tier thresholds missing required tiers: {', '.join(missing)}")
    unknown = set(normalized) - {"HIGH", "MEDIUM", "LOW"}
    if unknown:
        raise ValueError(f"Unknown potential tiers in thresholds: {', '.join(sorted(unknown))}")
    high, medium = normalized["HIGH"], normalized["MEDIUM"]
    if high.min_weight_kg < medium.min_weight_kg or high.min_density < medium.min_density:
        raise ValueError("HIGH tier thresholds must be at least as strict as MEDIUM thresholds.")
    return normalized


def validate_impact_factors(factors: dict[str, ImpactFactor]) -> dict[str, ImpactFactor]:
    if not factors:
        raise ValueError("At least one impact factor row is required.")
    normalized: dict[str, ImpactFactor] = {}
    for key, value in factors.items():
        name = str(key).strip().lower()
        if not name:
            raise ValueError("Impact factor rows must be keyed by a waste type name.")
        normalized[name] = value
    return normalized


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="PLANNER_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Collection Planner API"
    api_prefix: str = "/api"
    pickups_file: Path = Field(
        default=Path("data/pickups.json"),
        description="JSON export of pickup requests used when callers do not send pickups inline.",
    )
    osrm_base_url: Optional[str] = Field(
        default="https://router.project-osrm.org",
        description="Base URL for the OSRM routing service (e.g., http://localhost:5000).",
    )
    osrm_profile: Literal["driving", "driving-hgv"] = Field(
        default="driving",
        description="OSRM profile to use when computing leg paths.",
    )
    osrm_timeout_seconds: float = Field(default=10.0, gt=0.0, description="Timeout applied to every leg request.")
    routing_max_concurrency: int = Field(default=4, ge=1, description="Leg requests issued in parallel.")
    cell_size_degrees: float = Field(default=0.01, gt=0.0, description="Grid cell edge, roughly 1 km at 0.01.")
    analysis_radius_km: float = Field(default=2.0, gt=0.0)
    load_reference_kg: float = Field(
        default=100.0,
        gt=0.0,
        description="Load at which the sequencing penalty saturates at 2x.",
    )
    kg_per_bag: float = Field(default=5.0, gt=0.0, description="Estimated weight of one bag when no exact weight exists.")
    transport_emission_factor: float = Field(default=0.2, ge=0.0, description="kg CO2e per km at full capacity.")
    vehicle_capacity_kg: float = Field(default=1000.0, gt=0.0)
    tier_thresholds: dict[str, TierThreshold] = Field(default_factory=lambda: dict(DEFAULT_TIER_THRESHOLDS))
    impact_factors: dict[str, ImpactFactor] = Field(default_factory=lambda: dict(DEFAULT_IMPACT_FACTORS))
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    @field_validator("pickups_file", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Path:
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser().resolve()

    @field_validator("osrm_base_url", mode="after")
    @classmethod
    def _strip_trailing_slash(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip().rstrip("/") or None

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()

    @field_validator("tier_thresholds", mode="after")
    @classmethod
    def _check_tier_thresholds(cls, value: dict[str, TierThreshold]) -> dict[str, TierThreshold]:
        return validate_tier_thresholds(value)

    @field_validator("impact_factors", mode="after")
    @classmethod
    def _check_impact_factors(cls, value: dict[str, ImpactFactor]) -> dict[str, ImpactFactor]:
        return validate_impact_factors(value)

    @model_validator(mode="after")
    def _check_cell_size(self) -> "Settings":
        # Cells wider than the globe would collapse every pickup into one bucket.
        if self.cell_size_degrees >= 180.0:
            raise ValueError("cell_size_degrees must be smaller than 180.")
        return self


settings = Settings()
