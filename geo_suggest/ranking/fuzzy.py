"""
Approximate name matching.

`NGramFuzzyMatcher` indexes every name field of a place as padded character
n-grams ("-toronto-" -> "-t", "to", "or", ...). A query is compared against
all names sharing at least one gram by cosine similarity, trying the largest
gram size first and falling back to smaller ones only when nothing matched.
The best candidates are then re-scored with normalized Levenshtein similarity,
which is what callers see as `similarity`.

Several places may share a normalized name ("springfield"); the reverse map
keeps all of them.
"""

from __future__ import annotations

import math
import re
from collections import Counter
from dataclasses import dataclass
from typing import Optional, Protocol

from rapidfuzz.distance import Levenshtein

from geo_suggest.config import FuzzyConfig
from geo_suggest.models import Place

_STRIP = re.compile(r"[^\w, ]|_")


@dataclass(frozen=True)
class FuzzyMatch:
    name: str
    similarity: float
    place: Place


class PlaceMatcher(Protocol):
    def add_place(self, place: Place) -> None: ...

    def find_matches(self, query: str) -> list[FuzzyMatch]: ...


def normalize(value: str) -> str:
    return _STRIP.sub("", value.lower()).strip()


def _grams(value: str, size: int) -> list[str]:
    padded = f"-{value}-"
    if len(padded) < size:
        padded += "-" * (size - len(padded))
    return [padded[i:i + size] for i in range(len(padded) - size + 1)]


class NGramFuzzyMatcher:
    def __init__(self, config: Optional[FuzzyConfig] = None):
        self.config = config or FuzzyConfig()
        self._sizes = range(self.config.gram_size_lower, self.config.gram_size_upper + 1)
        # gram size -> [(vector norm, normalized name)]
        self._items: dict[int, list[tuple[float, str]]] = {size: [] for size in self._sizes}
        # gram -> [(item index, gram count)]; gram length identifies its size
        self._match_dict: dict[str, list[tuple[int, int]]] = {}
        self._places: dict[str, list[Place]] = {}
        self._labels: dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._places)

    def add_place(self, place: Place) -> None:
        for _, name in place.name_fields():
            self._add(name, place)

    def _add(self, name: str, place: Place) -> None:
        key = normalize(name)
        if not key:
            return

        places = self._places.get(key)
        if places is not None:
            if all(p.id != place.id for p in places):
                places.append(place)
            return

        self._places[key] = [place]
        self._labels[key] = name
        for size in self._sizes:
            items = self._items[size]
            counts = Counter(_grams(key, size))
            index = len(items)
            for gram, count in counts.items():
                self._match_dict.setdefault(gram, []).append((index, count))
            norm = math.sqrt(sum(c * c for c in counts.values()))
            items.append((norm, key))

    def _cosine_candidates(self, key: str, size: int) -> list[tuple[float, str]]:
        counts = Counter(_grams(key, size))
        query_norm = math.sqrt(sum(c * c for c in counts.values()))

        dots: dict[int, int] = {}
        for gram, count in counts.items():
            for index, other in self._match_dict.get(gram, ()):
                dots[index] = dots.get(index, 0) + count * other

        items = self._items[size]
        scored = []
        for index, dot in dots.items():
            norm, name = items[index]
            scored.append((dot / (query_norm * norm), name))
        scored.sort(key=lambda s: s[0], reverse=True)
        return scored

    def find_matches(self, query: str) -> list[FuzzyMatch]:
        key = normalize(query)
        if not key or not self._places:
            return []

        candidates: list[tuple[float, str]] = []
        for size in reversed(self._sizes):
            candidates = self._cosine_candidates(key, size)
            if candidates:
                break

        matches: list[FuzzyMatch] = []
        for _, name in candidates[: self.config.candidate_pool]:
            similarity = Levenshtein.normalized_similarity(key, name)
            if similarity < self.config.min_score:
                continue
            for place in self._places.get(name, ()):
                matches.append(FuzzyMatch(name=self._labels[name], similarity=similarity, place=place))
        return matches
