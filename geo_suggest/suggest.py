"""
Suggestion ranking.

`SuggestionEngine` answers one request against one immutable `IndexSnapshot`.
Which signals it blends depends only on which inputs are present:

  query + coordinates  prefix hits (or fuzzy hits when there are none),
                       blended with proximity
  query only           prefix hits blended with population, topped up with
                       fuzzy hits while under the result cap
  coordinates only     every place within range, ranked by proximity
  neither              nothing to rank

`SuggestionService` owns the engine that is currently published. Loading a
catalog builds a complete new snapshot first and then swaps a single reference,
so a request either sees the old index or the new one, never a partial build.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np

from geo_suggest.catalog import load_catalog
from geo_suggest.config import CatalogConfig, FuzzyConfig, ScoringConfig, get_settings
from geo_suggest.exceptions import CatalogLoadError, CatalogNotReady
from geo_suggest.models import CatalogStats, Place, Suggestion
from geo_suggest.ranking.indexes import IndexSnapshot
from geo_suggest.ranking.scorer import (
    combine_scores,
    haversine_km_many,
    population_score,
    proximity_from_distance,
    proximity_score,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoredPlace:
    place: Place
    score: float


class SuggestionEngine:
    def __init__(self, index: IndexSnapshot, config: Optional[ScoringConfig] = None):
        self.index = index
        self.config = config or ScoringConfig()

    def get_suggestions(
        self,
        query: Optional[str] = None,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
    ) -> list[Suggestion]:
        if self.index.is_empty:
            raise CatalogNotReady("Place catalog is empty")
        if (latitude is None) != (longitude is None):
            raise ValueError("latitude and longitude must be given together")

        text = query.strip() if query else ""
        has_coords = latitude is not None

        if text and has_coords:
            scored = self._match_near(text, latitude, longitude)
        elif text:
            scored = self._match_by_population(text)
        elif has_coords:
            scored = self._nearby(latitude, longitude)
        else:
            return []

        return [Suggestion.from_place(s.place, s.score) for s in self._rank(scored)]

    # ── Branches ──────────────────────────────────────────────────────

    def _match_near(self, text: str, lat: float, lon: float) -> list[ScoredPlace]:
        weight = self.config.proximity_weight

        def proximity(place: Place) -> float:
            return proximity_score(place.latitude, place.longitude, lat, lon, self.config.max_distance_km)

        hits = self.index.prefix_index.search(text)
        if hits:
            return [
                ScoredPlace(h.place, combine_scores(h.weight, proximity(h.place), weight))
                for h in hits
            ]

        logger.debug("No prefix hits for %r, falling back to fuzzy matching", text)
        return [
            ScoredPlace(m.place, combine_scores(m.similarity, proximity(m.place), weight))
            for m in self.index.matcher.find_matches(text)
        ]

    def _match_by_population(self, text: str) -> list[ScoredPlace]:
        weight = self.config.population_weight
        max_pop = self.index.max_population

        scored = [
            ScoredPlace(h.place, combine_scores(h.weight, population_score(h.place.population, max_pop), weight))
            for h in self.index.prefix_index.search(text)
        ]

        included = {s.place.id for s in scored}
        if len(included) >= self.config.max_suggestions:
            return scored

        for m in self.index.matcher.find_matches(text):
            if m.place.id in included:
                continue
            scored.append(ScoredPlace(
                m.place,
                combine_scores(m.similarity, population_score(m.place.population, max_pop), weight),
            ))
        return scored

    def _nearby(self, lat: float, lon: float) -> list[ScoredPlace]:
        distances = haversine_km_many(self.index.lats, self.index.lons, lat, lon)
        scores = proximity_from_distance(distances, self.config.max_distance_km)
        in_range = np.nonzero(distances <= self.config.max_distance_km)[0]
        return [ScoredPlace(self.index.places[i], float(scores[i])) for i in in_range]

    # ── Post-processing ───────────────────────────────────────────────

    def _rank(self, scored: list[ScoredPlace]) -> list[ScoredPlace]:
        """Keep each place once (best score), order by score, cap."""
        best: dict[int, ScoredPlace] = {}
        for s in scored:
            current = best.get(s.place.id)
            if current is None or s.score > current.score:
                best[s.place.id] = s

        ranked = sorted(best.values(), key=lambda s: (-s.score, s.place.name, s.place.id))
        return ranked[: self.config.max_suggestions]


class SuggestionService:
    def __init__(
        self,
        source: Optional[str] = None,
        scoring: Optional[ScoringConfig] = None,
        fuzzy: Optional[FuzzyConfig] = None,
        catalog_config: Optional[CatalogConfig] = None,
    ):
        settings = get_settings()
        self.catalog_config = catalog_config or settings.catalog
        self.source = source or self.catalog_config.source
        self.scoring = scoring or settings.scoring
        self.fuzzy = fuzzy or settings.fuzzy
        self._engine: Optional[SuggestionEngine] = None
        self._build_lock = threading.Lock()

    @property
    def engine(self) -> Optional[SuggestionEngine]:
        return self._engine

    @property
    def is_ready(self) -> bool:
        engine = self._engine
        return engine is not None and not engine.index.is_empty

    def load(self, places: Iterable[Place], source: Optional[str] = None) -> IndexSnapshot:
        """Build indexes for `places` and publish them."""
        with self._build_lock:
            index = IndexSnapshot.build(places, self.fuzzy, source=source)
            self._engine = SuggestionEngine(index, self.scoring)

        if index.is_empty:
            logger.warning("Published an empty catalog; suggestion requests will fail as not ready")
        return index

    def reload(self) -> IndexSnapshot:
        """
        Re-read the configured source and publish a fresh index.
        On CatalogLoadError the current index stays live, including when the
        source is readable but yields no valid rows.
        """
        places = load_catalog(self.source, self.catalog_config)
        if not places:
            raise CatalogLoadError(self.source, "no valid rows")
        return self.load(places, source=self.source)

    def get_suggestions(
        self,
        query: Optional[str] = None,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
    ) -> list[Suggestion]:
        engine = self._engine
        if engine is None:
            raise CatalogNotReady()
        return engine.get_suggestions(query, latitude, longitude)

    def stats(self) -> CatalogStats:
        engine = self._engine
        if engine is None:
            return CatalogStats(source=self.source)
        index = engine.index
        return CatalogStats(
            source=index.source,
            places=len(index.places),
            indexed_names=len(index.prefix_index),
            max_population=index.max_population,
            loaded_at=index.built_at,
        )
