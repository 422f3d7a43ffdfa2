"""
Character trie over place names.

Every name field of a place (primary, ASCII, each alternate) is inserted
lower-cased; the node where a name ends carries the place and the weight of
the field that produced it. Searching a prefix returns every terminal in the
subtree below it, so "tor" finds "toronto" and "torrance" alike.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from geo_suggest.models import NameField, Place


@dataclass
class TrieNode:
    children: dict[str, "TrieNode"] = field(default_factory=dict)
    terminal: bool = False
    place: Optional[Place] = None
    weight: float = 0.0


@dataclass(frozen=True)
class PrefixHit:
    place: Place
    weight: float


class PrefixIndex:
    def __init__(self) -> None:
        self._root = TrieNode()
        self._size = 0

    def __len__(self) -> int:
        """Number of terminal nodes (distinct lower-cased names)."""
        return self._size

    def insert(self, place: Place) -> None:
        # Alternates first, primary last: on a shared node the strongest field is written last
        for name_field, name in reversed(place.name_fields()):
            self._insert_name(name, place, name_field)

    def _insert_name(self, name: str, place: Place, name_field: NameField) -> None:
        node = self._root
        for ch in name.lower():
            child = node.children.get(ch)
            if child is None:
                child = TrieNode()
                node.children[ch] = child
            node = child

        # The root never carries terminal data
        if node is self._root:
            return
        if not node.terminal:
            self._size += 1
        # One (place, weight) pair per node: later insertions overwrite
        node.terminal = True
        node.place = place
        node.weight = name_field.weight

    def search(self, prefix: str) -> list[PrefixHit]:
        node = self._root
        for ch in prefix.lower():
            node = node.children.get(ch)
            if node is None:
                return []

        hits: list[PrefixHit] = []
        stack = [node]
        while stack:
            current = stack.pop()
            if current.terminal and current.place is not None:
                hits.append(PrefixHit(place=current.place, weight=current.weight))
            stack.extend(current.children.values())
        return hits
