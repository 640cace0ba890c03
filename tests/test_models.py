from lufthansa_refdata.decode import decode_body
from lufthansa_refdata.models import (
    Aircraft,
    Airline,
    Airport,
    City,
    Country,
    NearestAirport,
    Page,
)
from lufthansa_refdata.reference import AIRPORTS, NEAREST_AIRPORTS

AIRPORT_XML = b"""<?xml version="1.0" encoding="UTF-8"?>
<AirportResource xmlns="http://www.lufthansa.com/schema/refdata">
  <Airports>
    <Airport>
      <AirportCode>CPH</AirportCode>
      <Position>
        <Coordinate>
          <Latitude>55.618</Latitude>
          <Longitude>12.656</Longitude>
        </Coordinate>
      </Position>
      <CityCode>CPH</CityCode>
      <CountryCode>DK</CountryCode>
      <LocationType>Airport</LocationType>
      <Names>
        <Name LanguageCode="EN">Copenhagen Kastrup</Name>
      </Names>
      <UtcOffset>+02:00</UtcOffset>
      <TimeZoneId>Europe/Copenhagen</TimeZoneId>
    </Airport>
  </Airports>
  <Meta Version="1.0.0">
    <Link Href="https://api.lufthansa.com/v1/mds-references/airports/CPH" Rel="self"/>
    <TotalCount>1</TotalCount>
  </Meta>
</AirportResource>
"""


def test_country_names_single_and_list():
    one = Country.model_validate(
        {
            "CountryCode": "DK",
            "Names": {"Name": {"@LanguageCode": "EN", "$": "Denmark"}},
        }
    )
    many = Country.model_validate(
        {
            "CountryCode": "DK",
            "Names": {
                "Name": [
                    {"@LanguageCode": "EN", "$": "Denmark"},
                    {"@LanguageCode": "DE", "$": "Dänemark"},
                ]
            },
        }
    )
    assert one.names == {"EN": "Denmark"}
    assert many.name("DE") == "Dänemark"
    assert many.name("FR") is None
    assert str(many) == "Country DK (DE: Dänemark, EN: Denmark)"


def test_city_airport_codes():
    city = City.model_validate(
        {
            "CityCode": "BER",
            "CountryCode": "DE",
            "Names": None,
            "Airports": {"AirportCode": ["BER", "SXF"]},
        }
    )
    single = City.model_validate({"CityCode": "CPH", "Airports": {"AirportCode": "CPH"}})
    assert city.airports == ["BER", "SXF"]
    assert city.names == {}
    assert single.airports == ["CPH"]
    assert str(single).startswith("City CPH, None")


def test_airport_from_namespaced_xml():
    page = AIRPORTS.parse_page(decode_body(AIRPORT_XML, "application/xml"))

    airport = page.items[0]
    assert isinstance(airport, Airport)
    assert airport.airport_code == "CPH"
    assert airport.position.latitude == 55.618
    assert airport.position.longitude == 12.656
    assert airport.location_type == "Airport"
    assert airport.utc_offset == "+02:00"
    assert airport.time_zone_id == "Europe/Copenhagen"
    assert airport.name() == "Copenhagen Kastrup"
    assert page.total_count == 1
    assert page.version_ok
    assert "@ 55.618,12.656" in str(airport)


def test_nearest_airport_distance():
    page = NEAREST_AIRPORTS.parse_page(
        {
            "NearestAirportResource": {
                "Airports": {
                    "Airport": [
                        {
                            "AirportCode": "FRA",
                            "Distance": {"Value": 12, "UOM": "KM"},
                        },
                        {"AirportCode": "HHN"},
                    ]
                },
                "Meta": {"@Version": "1.0.0"},
            }
        }
    )
    first, second = page.items
    assert isinstance(first, NearestAirport)
    assert first.distance.value == 12
    assert str(first).endswith("[12 KM]")
    assert second.distance is None


def test_airline_and_aircraft():
    airline = Airline.model_validate(
        {
            "AirlineID": "LH",
            "AirlineID_ICAO": "DLH",
            "Names": {"Name": {"@LanguageCode": "EN", "$": "Lufthansa"}},
        }
    )
    aircraft = Aircraft.model_validate(
        {
            "AircraftCode": "388",
            "Names": {"Name": {"@LanguageCode": "EN", "$": "Airbus A380-800"}},
            "AirlineEquipCode": "A388",
        }
    )
    assert str(airline) == "Airline LH/DLH (EN: Lufthansa)"
    assert aircraft.airline_equip_code == "A388"
    assert str(aircraft) == "Aircraft 388 [A388] (EN: Airbus A380-800)"


def test_page_deep_copy_and_str():
    page = Page(
        items=[Country(country_code="DK", names={"EN": "Denmark"})],
        total_count=3,
    )
    dup = page.deep_copy()
    dup.items[0].names["EN"] = "changed"

    assert page.items[0].names["EN"] == "Denmark"
    assert dup.links == page.links
    assert str(page) == "Page 1/3 items\n  Country DK (EN: Denmark)"
