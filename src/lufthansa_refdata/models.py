from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .decode import as_list, dig
from .hal import LinkSet, Relation

META_VERSION = "1.0.0"


def _names_from_wire(value: Any) -> Dict[str, str]:
    """
    Names arrive as {"Name": [{"@LanguageCode": "EN", "$": "Denmark"}, ...]}
    (or a single object instead of a list). Already-built dicts pass through.
    """
    if value is None:
        return {}
    if isinstance(value, dict) and "Name" not in value:
        return {str(k): str(v) for k, v in value.items()}
    names: Dict[str, str] = {}
    for entry in as_list(dig(value, "Name")):
        if isinstance(entry, dict):
            lang = entry.get("@LanguageCode")
            text = entry.get("$")
            if lang and text is not None:
                names[str(lang)] = str(text)
    return names


def _format_names(names: Dict[str, str]) -> str:
    return ", ".join(f"{lang}: {name}" for lang, name in sorted(names.items()))


class ReferenceRecord(BaseModel):
    """Base for reference data records; aliases match the wire field names."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class NamedRecord(ReferenceRecord):
    names: Dict[str, str] = Field(default_factory=dict, alias="Names")

    @field_validator("names", mode="before")
    @classmethod
    def _read_names(cls, value: Any) -> Dict[str, str]:
        return _names_from_wire(value)

    def name(self, lang: str = "EN") -> Optional[str]:
        return self.names.get(lang) or self.names.get(lang.lower())


class Country(NamedRecord):
    country_code: str = Field(alias="CountryCode")

    def __str__(self) -> str:
        return f"Country {self.country_code} ({_format_names(self.names)})"


class City(NamedRecord):
    city_code: str = Field(alias="CityCode")
    country_code: Optional[str] = Field(default=None, alias="CountryCode")
    airports: List[str] = Field(default_factory=list, alias="Airports")

    @field_validator("airports", mode="before")
    @classmethod
    def _read_airports(cls, value: Any) -> List[str]:
        if isinstance(value, dict):
            value = value.get("AirportCode")
        return [str(code) for code in as_list(value)]

    def __str__(self) -> str:
        return (
            f"City {self.city_code}, {self.country_code} "
            f"({_format_names(self.names)})"
        )


class Position(ReferenceRecord):
    latitude: float = Field(alias="Latitude")
    longitude: float = Field(alias="Longitude")

    @classmethod
    def from_wire(cls, value: Any) -> Any:
        if isinstance(value, dict) and "Coordinate" in value:
            return value["Coordinate"]
        return value


class Airport(NamedRecord):
    airport_code: str = Field(alias="AirportCode")
    position: Optional[Position] = Field(default=None, alias="Position")
    city_code: Optional[str] = Field(default=None, alias="CityCode")
    country_code: Optional[str] = Field(default=None, alias="CountryCode")
    location_type: Optional[str] = Field(default=None, alias="LocationType")
    utc_offset: Optional[str] = Field(default=None, alias="UtcOffset")
    time_zone_id: Optional[str] = Field(default=None, alias="TimeZoneId")

    @field_validator("position", mode="before")
    @classmethod
    def _read_position(cls, value: Any) -> Any:
        return Position.from_wire(value)

    def __str__(self) -> str:
        where = ""
        if self.position is not None:
            where = f" @ {self.position.latitude:.3f},{self.position.longitude:.3f}"
        return (
            f"Airport {self.airport_code} ({self.location_type or 'Unknown'}), "
            f"{self.city_code}/{self.country_code}{where} "
            f"({_format_names(self.names)})"
        )


class Distance(ReferenceRecord):
    value: int = Field(alias="Value")
    unit_of_measure: str = Field(default="", alias="UOM")


class NearestAirport(Airport):
    distance: Optional[Distance] = Field(default=None, alias="Distance")

    def __str__(self) -> str:
        base = super().__str__()
        if self.distance is None:
            return base
        return f"{base} [{self.distance.value} {self.distance.unit_of_measure}]"


class Airline(NamedRecord):
    airline_id: str = Field(alias="AirlineID")
    airline_id_icao: Optional[str] = Field(default=None, alias="AirlineID_ICAO")

    def __str__(self) -> str:
        return (
            f"Airline {self.airline_id}/{self.airline_id_icao or '-'} "
            f"({_format_names(self.names)})"
        )


class Aircraft(NamedRecord):
    aircraft_code: str = Field(alias="AircraftCode")
    airline_equip_code: Optional[str] = Field(default=None, alias="AirlineEquipCode")

    def __str__(self) -> str:
        return (
            f"Aircraft {self.aircraft_code} "
            f"[{self.airline_equip_code or '-'}] ({_format_names(self.names)})"
        )


R = TypeVar("R", bound=ReferenceRecord)


@dataclass(frozen=True)
class Page(Generic[R]):
    """
    One decoded page of a list resource. Replaced wholesale on navigation,
    never merged with the page before it.
    """

    items: List[R] = field(default_factory=list)
    links: LinkSet = field(default_factory=LinkSet)
    total_count: int = 0
    schema_version: str = META_VERSION

    @classmethod
    def seed(cls, url: str) -> "Page[R]":
        return cls(links=LinkSet({Relation.NEXT: url}))

    @property
    def version_ok(self) -> bool:
        return self.schema_version == META_VERSION

    def with_links(self, links: LinkSet) -> "Page[R]":
        return replace(self, links=links)

    def deep_copy(self) -> "Page[R]":
        return Page(
            items=[item.model_copy(deep=True) for item in self.items],
            links=LinkSet(dict(self.links)),
            total_count=self.total_count,
            schema_version=self.schema_version,
        )

    def __str__(self) -> str:
        lines = [f"Page {len(self.items)}/{self.total_count} items"]
        lines.extend(f"  {item}" for item in self.items)
        return "\n".join(lines)


__all__ = [
    "META_VERSION",
    "ReferenceRecord",
    "NamedRecord",
    "Country",
    "City",
    "Position",
    "Airport",
    "Distance",
    "NearestAirport",
    "Airline",
    "Aircraft",
    "Page",
]
