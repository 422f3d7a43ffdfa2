from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Optional

import numpy as np

from geo_suggest.config import FuzzyConfig
from geo_suggest.models import Place
from geo_suggest.ranking.fuzzy import NGramFuzzyMatcher, PlaceMatcher
from geo_suggest.ranking.trie import PrefixIndex

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IndexSnapshot:
    """
    Everything a request needs, built once from a full catalog and never
    mutated afterwards. A reload builds a new snapshot instead.
    """
    places: tuple[Place, ...]
    prefix_index: PrefixIndex
    matcher: PlaceMatcher
    max_population: int
    lats: np.ndarray
    lons: np.ndarray
    source: Optional[str] = None
    built_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_empty(self) -> bool:
        return not self.places

    @classmethod
    def build(
        cls,
        places: Iterable[Place],
        fuzzy_config: Optional[FuzzyConfig] = None,
        source: Optional[str] = None,
    ) -> "IndexSnapshot":
        start = time.monotonic()
        catalog = tuple(places)

        prefix_index = PrefixIndex()
        matcher = NGramFuzzyMatcher(fuzzy_config)
        max_population = 0
        for place in catalog:
            prefix_index.insert(place)
            matcher.add_place(place)
            max_population = max(max_population, place.population)

        lats = np.fromiter((p.latitude for p in catalog), dtype=np.float64, count=len(catalog))
        lons = np.fromiter((p.longitude for p in catalog), dtype=np.float64, count=len(catalog))

        logger.info(
            "Built indexes: %d places, %d prefix names, %d fuzzy names, max population %d (%.2fs)",
            len(catalog), len(prefix_index), len(matcher), max_population,
            time.monotonic() - start,
        )
        return cls(
            places=catalog,
            prefix_index=prefix_index,
            matcher=matcher,
            max_population=max_population,
            lats=lats,
            lons=lons,
            source=source,
        )
