"""
Reference resources: URL builders and page shapes.

Each ResourceSpec couples how to build the seed URL for a resource with how
to read its pages. The cursor is generic over this pair and knows nothing of
the records themselves.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import Any, Dict, Generic, List, Optional, Type
from urllib.parse import quote, urlencode

from pydantic import ValidationError

from .decode import as_list, dig
from .errors import LufthansaDecodeError
from .hal import parse_meta
from .models import (
    R,
    Aircraft,
    Airline,
    Airport,
    City,
    Country,
    NearestAirport,
    Page,
)

REFERENCES_PATH = "/mds-references"
DEFAULT_LANGUAGE = "EN"

_LANGUAGE_TAG = re.compile(r"([A-Za-z]{2,3})(?:[-_][A-Za-z0-9]{1,8})*")


def base_language(tag: str) -> str:
    """
    Primary language subtag of a tag: "en-US" -> "en", "DE" -> "DE".
    The API only knows base languages; an unreadable tag falls back to English.
    """
    m = _LANGUAGE_TAG.fullmatch(tag.strip())
    return m.group(1) if m else DEFAULT_LANGUAGE


@dataclass(frozen=True)
class RefParams:
    """
    Parameters shared by the reference endpoints.

    - code: single-record lookup; becomes a path segment, not a query parameter.
    - lang: language code for names. None returns every available language.
    - limit: records per page. 0 leaves the server default (20, capped at 100).
    - offset: records to skip. 0 starts at the beginning.
    """

    code: str = ""
    lang: Optional[str] = None
    limit: int = 0
    offset: int = 0

    def to_url(self) -> str:
        query: List[str] = []
        if self.lang:
            query.append(f"lang={base_language(self.lang)}")
        if self.limit:
            query.append(f"limit={self.limit}")
        if self.offset:
            query.append(f"offset={self.offset}")

        out = quote(self.code, safe="") if self.code else ""
        if query:
            out += "?" + "&".join(query)
        return out


def append_query(url: str, params: Dict[str, Any]) -> str:
    if not params:
        return url
    sep = "&" if "?" in url else "?"
    return f"{url}{sep}{urlencode(params)}"


@dataclass(frozen=True)
class ResourceSpec(Generic[R]):
    name: str
    path: str
    root: str
    container: str
    item: str
    model: Type[R]
    uses_lang: bool = True

    def seed_url(
        self,
        references_url: str,
        params: Optional[RefParams] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> str:
        params = params or RefParams()
        if not self.uses_lang and params.lang:
            params = replace(params, lang=None)
        url = f"{references_url.rstrip('/')}/{self.path}{params.to_url()}"
        return append_query(url, extra or {})

    def _resource(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        resource = payload.get(self.root)
        if resource is None and len(payload) == 1:
            resource = next(iter(payload.values()))
        if not isinstance(resource, dict):
            raise LufthansaDecodeError(
                f"Expected {self.root} object in {self.name} response."
            )
        return resource

    def parse_page(self, payload: Dict[str, Any]) -> Page[R]:
        resource = self._resource(payload)
        raw_items = as_list(dig(resource, self.container, self.item))
        try:
            items = [self.model.model_validate(raw) for raw in raw_items]
        except ValidationError as exc:
            raise LufthansaDecodeError(
                f"{self.name} response did not match {self.model.__name__}: {exc}"
            ) from exc

        version, links, total_count = parse_meta(resource.get("Meta"))
        return Page(
            items=items,
            links=links,
            total_count=total_count,
            schema_version=version,
        )

    def parse_one(self, payload: Dict[str, Any]) -> R:
        page = self.parse_page(payload)
        if not page.items:
            raise LufthansaDecodeError(f"{self.name} response holds no records.")
        return page.items[0]


COUNTRIES: ResourceSpec[Country] = ResourceSpec(
    name="countries",
    path="countries/",
    root="CountryResource",
    container="Countries",
    item="Country",
    model=Country,
)

CITIES: ResourceSpec[City] = ResourceSpec(
    name="cities",
    path="cities/",
    root="CityResource",
    container="Cities",
    item="City",
    model=City,
)

AIRPORTS: ResourceSpec[Airport] = ResourceSpec(
    name="airports",
    path="airports/",
    root="AirportResource",
    container="Airports",
    item="Airport",
    model=Airport,
)

NEAREST_AIRPORTS: ResourceSpec[NearestAirport] = ResourceSpec(
    name="nearest_airports",
    path="airports/nearest/",
    root="NearestAirportResource",
    container="Airports",
    item="Airport",
    model=NearestAirport,
)

AIRLINES: ResourceSpec[Airline] = ResourceSpec(
    name="airlines",
    path="airlines/",
    root="AirlineResource",
    container="Airlines",
    item="Airline",
    model=Airline,
    uses_lang=False,
)

AIRCRAFT: ResourceSpec[Aircraft] = ResourceSpec(
    name="aircraft",
    path="aircraft/",
    root="AircraftResource",
    container="AircraftSummaries",
    item="AircraftSummary",
    model=Aircraft,
    uses_lang=False,
)


def nearest_airports_url(
    references_url: str,
    latitude: float,
    longitude: float,
    lang: Optional[str] = None,
) -> str:
    url = (
        f"{references_url.rstrip('/')}/{NEAREST_AIRPORTS.path}"
        f"{latitude:.3f},{longitude:.3f}"
    )
    if lang:
        url += f"?lang={base_language(lang)}"
    return url


__all__ = [
    "REFERENCES_PATH",
    "DEFAULT_LANGUAGE",
    "base_language",
    "RefParams",
    "ResourceSpec",
    "append_query",
    "nearest_airports_url",
    "COUNTRIES",
    "CITIES",
    "AIRPORTS",
    "NEAREST_AIRPORTS",
    "AIRLINES",
    "AIRCRAFT",
]
