import copy

import httpx
import pytest
import respx
from fakes import BASE_URL, REFS, TOKEN_URL, FakeAPI, make_client
from httpx import Response
from lufthansa_refdata import (
    LufthansaAPIError,
    LufthansaClient,
    LufthansaGatewayError,
    LufthansaTokenError,
    LufthansaTransportError,
    RefParams,
)
from lufthansa_refdata.client import ACCEPT

TOKEN = {"access_token": "abc", "token_type": "bearer", "expires_in": 3600}

COUNTRY_XML = """<CountryResource>
  <Countries>
    <Country>
      <CountryCode>DK</CountryCode>
      <Names><Name LanguageCode="EN">Denmark</Name></Names>
    </Country>
  </Countries>
  <Meta Version="1.0.0">
    <Link Href="{refs}/countries/DK?lang=EN" Rel="self"/>
    <TotalCount>1</TotalCount>
  </Meta>
</CountryResource>"""


@pytest.mark.parametrize(
    "kwargs",
    [
        {"client_id": ""},
        {"client_secret": ""},
        {"requests_per_second": 0},
        {"requests_per_hour": -1},
        {"base_url": ""},
    ],
)
def test_constructor_validates(kwargs):
    with pytest.raises(ValueError):
        make_client(**kwargs)


def test_urls_derived_from_base():
    client = make_client(base_url=BASE_URL + "/")
    assert client.references_url == REFS
    assert client.token_url == TOKEN_URL
    assert [lim.name for lim in client.transport.limiters] == ["per_second", "per_hour"]


def test_client_cannot_be_copied():
    client = make_client()
    with pytest.raises(TypeError):
        copy.copy(client)
    with pytest.raises(TypeError):
        copy.deepcopy(client)


@pytest.mark.asyncio
async def test_create_fetches_token_eagerly():
    fake = FakeAPI()
    async with httpx.AsyncClient(transport=httpx.MockTransport(fake)) as http:
        client = await LufthansaClient.create(
            client_id="id",
            client_secret="secret",
            requests_per_second=5,
            requests_per_hour=1000,
            base_url=BASE_URL,
            http=http,
        )
        async with client:
            assert fake.token_calls == 1
            assert client.tokens.token.access_token == "tok-1"

    assert http.is_closed


@pytest.mark.asyncio
@respx.mock
async def test_create_fails_when_token_exchange_fails():
    respx.post(TOKEN_URL).mock(return_value=Response(401, json={"Error": "nope"}))

    with pytest.raises(LufthansaTokenError):
        await LufthansaClient.create(
            client_id="id",
            client_secret="bad",
            requests_per_second=5,
            requests_per_hour=1000,
            base_url=BASE_URL,
        )


@pytest.mark.asyncio
@respx.mock
async def test_fetch_sends_bearer_and_accept_headers():
    respx.post(TOKEN_URL).mock(return_value=Response(200, json=TOKEN))
    route = respx.get(f"{REFS}/countries/DK").mock(
        return_value=Response(200, text=COUNTRY_XML.format(refs=REFS))
    )

    async with make_client() as client:
        country = await client.fetch_country("DK")

    request = route.calls[0].request
    assert request.headers["Authorization"] == "Bearer abc"
    assert request.headers["Accept"] == ACCEPT
    assert country.country_code == "DK"
    assert country.name("EN") == "Denmark"


@pytest.mark.asyncio
@respx.mock
async def test_gateway_error_raised_from_fetch():
    respx.post(TOKEN_URL).mock(return_value=Response(200, json=TOKEN))
    respx.get(f"{REFS}/airlines/LH").mock(
        return_value=Response(403, json={"Error": "Account Inactive"})
    )

    async with make_client() as client:
        with pytest.raises(LufthansaGatewayError) as exc:
            await client.fetch_airline("LH")

    assert exc.value.what == "Account Inactive"
    assert exc.value.status_code == 403
    assert exc.value.url == f"{REFS}/airlines/LH"


@pytest.mark.asyncio
async def test_api_error_raised_for_unknown_record():
    fake = FakeAPI()
    async with make_client(fake) as client:
        with pytest.raises(LufthansaAPIError) as exc:
            await client.fetch_airport("ZZZ", lang="EN")

    assert exc.value.code == "NOT_FOUND"
    assert exc.value.retry_indicator is False
    assert fake.calls == [f"{REFS}/airports/ZZZ?lang=EN"]


@pytest.mark.asyncio
@respx.mock
async def test_network_error_raised_from_fetch():
    respx.post(TOKEN_URL).mock(return_value=Response(200, json=TOKEN))
    respx.get(f"{REFS}/cities/BER").mock(side_effect=httpx.ConnectError("down"))

    async with make_client() as client:
        with pytest.raises(LufthansaTransportError):
            await client.fetch_city("BER")


@pytest.mark.asyncio
async def test_cursor_factories_build_seed_urls():
    async with make_client(FakeAPI()) as client:
        assert client.cities(RefParams(lang="EN")).seed_url == f"{REFS}/cities/?lang=EN"
        assert (
            client.airports(RefParams(limit=5), lh_operated=True).seed_url
            == f"{REFS}/airports/?limit=5&LHoperated=1"
        )
        assert (
            client.nearest_airports(50.033, 8.570, lang="DE").seed_url
            == f"{REFS}/airports/nearest/50.033,8.570?lang=DE"
        )
        assert client.airlines(RefParams(lang="EN")).seed_url == f"{REFS}/airlines/"
        assert client.aircraft(RefParams(code="388")).seed_url == f"{REFS}/aircraft/388"


@pytest.mark.asyncio
@respx.mock
async def test_fetch_aircraft_json():
    respx.post(TOKEN_URL).mock(return_value=Response(200, json=TOKEN))
    respx.get(f"{REFS}/aircraft/388").mock(
        return_value=Response(
            200,
            json={
                "AircraftResource": {
                    "AircraftSummaries": {
                        "AircraftSummary": {
                            "AircraftCode": "388",
                            "Names": {
                                "Name": {"@LanguageCode": "EN", "$": "Airbus A380-800"}
                            },
                            "AirlineEquipCode": "A388",
                        }
                    },
                    "Meta": {"@Version": "1.0.0", "TotalCount": 1},
                }
            },
        )
    )

    async with make_client() as client:
        aircraft = await client.fetch_aircraft("388")

    assert aircraft.airline_equip_code == "A388"
