"""
Hypermedia link handling for paged reference resources.

Every page carries a Meta block:

  {"@Version": "1.0.0",
   "Link": [{"@Rel": "self", "@Href": "https://..."}, ...],
   "TotalCount": 238}

which is read into a closed set of relations (LinkSet) rather than loose
strings, so an invalid relation can't be represented.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, Iterator, Mapping, Optional

from .decode import as_list

log = logging.getLogger("lufthansa_refdata.hal")


class Relation(str, Enum):
    SELF = "self"
    FIRST = "first"
    LAST = "last"
    NEXT = "next"
    PREVIOUS = "previous"
    RELATED = "related"

    @property
    def opposite(self) -> "Relation":
        return _OPPOSITES[self]


_OPPOSITES = {
    Relation.SELF: Relation.SELF,
    Relation.FIRST: Relation.LAST,
    Relation.LAST: Relation.FIRST,
    Relation.NEXT: Relation.PREVIOUS,
    Relation.PREVIOUS: Relation.NEXT,
    Relation.RELATED: Relation.RELATED,
}


def parse_relation(value: Any) -> Optional[Relation]:
    try:
        return Relation(str(value).strip().lower())
    except ValueError:
        return None


class LinkSet(Mapping[Relation, str]):
    """Immutable relation -> URL mapping. A missing relation means no such direction."""

    __slots__ = ("_links",)

    def __init__(self, links: Optional[Mapping[Relation, str]] = None):
        self._links: Dict[Relation, str] = {
            Relation(rel): href for rel, href in (links or {}).items() if href
        }

    def __getitem__(self, rel: Relation) -> str:
        return self._links[rel]

    def __iter__(self) -> Iterator[Relation]:
        return iter(self._links)

    def __len__(self) -> int:
        return len(self._links)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, LinkSet):
            return self._links == other._links
        return NotImplemented

    def __hash__(self) -> int:
        return hash(frozenset(self._links.items()))

    def __repr__(self) -> str:
        inner = ", ".join(f"{rel.value}={href}" for rel, href in self._links.items())
        return f"LinkSet({inner})"

    def href(self, rel: Relation) -> Optional[str]:
        return self._links.get(rel)

    def boundary(self, direction: Relation) -> "LinkSet":
        """
        Link set for a cursor that ran off the end in `direction`.
        first/last survive; the opposite direction points back at the page
        that was current (or keeps its target if no page was current).
        """
        back = self._links.get(Relation.SELF) or self._links.get(direction.opposite)
        links: Dict[Relation, str] = {}
        for rel in (Relation.FIRST, Relation.LAST):
            if rel in self._links:
                links[rel] = self._links[rel]
        if back:
            links[direction.opposite] = back
        return LinkSet(links)


def parse_links(raw: Any) -> LinkSet:
    links: Dict[Relation, str] = {}
    for entry in as_list(raw):
        if not isinstance(entry, dict):
            continue
        rel = parse_relation(entry.get("@Rel"))
        href = entry.get("@Href")
        if rel is None:
            log.debug("hal.unknown_relation", extra={"rel": entry.get("@Rel")})
            continue
        if href:
            links[rel] = str(href)
    return LinkSet(links)


def parse_meta(raw: Any) -> tuple[str, LinkSet, int]:
    """Returns (version, links, total_count) from a Meta block."""
    if not isinstance(raw, dict):
        return "", LinkSet(), 0
    version = str(raw.get("@Version") or "")
    total = raw.get("TotalCount")
    try:
        total_count = int(total) if total is not None else 0
    except (TypeError, ValueError):
        total_count = 0
    return version, parse_links(raw.get("Link")), total_count


__all__ = [
    "Relation",
    "LinkSet",
    "parse_relation",
    "parse_links",
    "parse_meta",
]
