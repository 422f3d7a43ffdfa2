"""
Data objects shared across the service.

`Place` is the immutable catalog record the indexes point into; the pydantic
models below it are the API-facing shapes.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


# ── Name fields ────────────────────────────────────────────────────────

NAME_WEIGHT = 1.0
ASCII_WEIGHT = 0.9
ALT_NAME_WEIGHT = 0.7


class NameField(str, Enum):
    PRIMARY = "name"
    ASCII = "ascii"
    ALTERNATE = "alternate"

    @property
    def weight(self) -> float:
        return _FIELD_WEIGHTS[self]


_FIELD_WEIGHTS = {
    NameField.PRIMARY: NAME_WEIGHT,
    NameField.ASCII: ASCII_WEIGHT,
    NameField.ALTERNATE: ALT_NAME_WEIGHT,
}


# ── Catalog record ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class Place:
    id: int
    name: str
    latitude: float
    longitude: float
    ascii_name: str = ""
    alternate_names: str = ""          # comma separated
    feature_class: str = ""
    feature_code: str = ""
    country: str = ""                  # ISO-3166 alpha-2
    alt_country_codes: str = ""
    admin1: str = ""
    admin2: str = ""
    admin3: str = ""
    admin4: str = ""
    population: int = 0
    elevation: Optional[float] = None
    dem: Optional[float] = None
    timezone: str = ""
    modified_at: Optional[date] = None

    def alternate_name_list(self) -> list[str]:
        if not self.alternate_names:
            return []
        return [n.strip() for n in self.alternate_names.split(",") if n.strip()]

    def name_fields(self) -> list[tuple[NameField, str]]:
        """Every indexable name with the field it came from, primary first."""
        fields = [(NameField.PRIMARY, self.name)]
        if self.ascii_name:
            fields.append((NameField.ASCII, self.ascii_name))
        for alt in self.alternate_name_list():
            fields.append((NameField.ALTERNATE, alt))
        return fields

    @property
    def display_name(self) -> str:
        """Name, country code and timezone joined by commas, empty segments skipped."""
        parts = [self.name]
        if self.country:
            parts.append(self.country)
        if self.timezone:
            parts.append(self.timezone)
        return ", ".join(parts)


# ── API models ─────────────────────────────────────────────────────────

class Suggestion(BaseModel):
    name: str = Field(..., description="Display name, e.g. 'Toronto, CA, America/Toronto'")
    latitude: float
    longitude: float
    score: float = Field(..., ge=0.0, le=1.0)

    @classmethod
    def from_place(cls, place: Place, score: float) -> "Suggestion":
        return cls(
            name=place.display_name,
            latitude=place.latitude,
            longitude=place.longitude,
            score=score,
        )


class SuggestionsResponse(BaseModel):
    suggestions: list[Suggestion] = Field(default_factory=list)


class CatalogStats(BaseModel):
    source: Optional[str] = None
    places: int = 0
    indexed_names: int = 0
    max_population: int = 0
    loaded_at: Optional[datetime] = None


class HealthResponse(BaseModel):
    status: str = "ok"
    catalog: CatalogStats = Field(default_factory=CatalogStats)


class ReloadResponse(BaseModel):
    status: str = "reloaded"
    catalog: CatalogStats
