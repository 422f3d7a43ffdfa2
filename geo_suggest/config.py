"""
Central configuration loaded from environment variables with sensible defaults.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache


@dataclass(frozen=True)
class CatalogConfig:
    # Local TSV path or http(s) URL
    source: str = os.getenv("CATALOG_SOURCE", "data/cities_canada-usa.tsv")
    request_timeout: float = float(os.getenv("CATALOG_TIMEOUT", "30"))


@dataclass(frozen=True)
class ScoringConfig:
    proximity_weight: float = float(os.getenv("PROXIMITY_WEIGHT", "0.4"))
    population_weight: float = float(os.getenv("POPULATION_WEIGHT", "0.15"))
    max_suggestions: int = int(os.getenv("MAX_SUGGESTIONS", "10"))
    max_distance_km: float = float(os.getenv("MAX_DISTANCE_KM", "1000"))


@dataclass(frozen=True)
class FuzzyConfig:
    gram_size_lower: int = int(os.getenv("FUZZY_GRAM_MIN", "2"))
    gram_size_upper: int = int(os.getenv("FUZZY_GRAM_MAX", "3"))
    # Minimum Levenshtein similarity for a match to be returned
    min_score: float = float(os.getenv("FUZZY_MIN_SCORE", "0.33"))
    # How many cosine candidates get re-scored with Levenshtein
    candidate_pool: int = int(os.getenv("FUZZY_CANDIDATE_POOL", "50"))


@dataclass(frozen=True)
class RateLimitConfig:
    enabled: bool = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
    requests: int = int(os.getenv("RATE_LIMIT_REQUESTS", "10"))
    window_seconds: int = int(os.getenv("RATE_LIMIT_WINDOW_SEC", "60"))


@dataclass(frozen=True)
class ReloadConfig:
    enabled: bool = os.getenv("RELOAD_ENABLED", "false").lower() == "true"
    interval_minutes: int = int(os.getenv("RELOAD_INTERVAL_MIN", "60"))


@dataclass(frozen=True)
class APIConfig:
    host: str = os.getenv("API_HOST", "0.0.0.0")
    port: int = int(os.getenv("API_PORT", "3000"))


@dataclass(frozen=True)
class Settings:
    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    fuzzy: FuzzyConfig = field(default_factory=FuzzyConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    reload: ReloadConfig = field(default_factory=ReloadConfig)
    api: APIConfig = field(default_factory=APIConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    env: str = os.getenv("APP_ENV", "development")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Singleton settings instance."""
    return Settings()
