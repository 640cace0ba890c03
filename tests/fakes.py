"""In-memory Lufthansa API and client builders shared by the test modules."""

from typing import Dict, List, Optional

import anyio
import httpx
from lufthansa_refdata.client import LufthansaClient

BASE_URL = "https://api.test/v1"
TOKEN_URL = f"{BASE_URL}/oauth/token"
REFS = f"{BASE_URL}/mds-references"

PAGE_1 = f"{REFS}/countries/?limit=2"
PAGE_2 = f"{REFS}/countries/?limit=2&offset=2"
PAGE_3 = f"{REFS}/countries/?limit=2&offset=4"


def countries_payload(
    codes: List[str],
    links: Dict[str, str],
    *,
    version: str = "1.0.0",
    total: int = 6,
) -> dict:
    return {
        "CountryResource": {
            "Countries": {
                "Country": [
                    {
                        "CountryCode": code,
                        "Names": {
                            "Name": [
                                {"@LanguageCode": "EN", "$": f"Country {code}"},
                            ]
                        },
                    }
                    for code in codes
                ]
            },
            "Meta": {
                "@Version": version,
                "Link": [{"@Rel": rel, "@Href": href} for rel, href in links.items()],
                "TotalCount": total,
            },
        }
    }


def three_pages() -> Dict[str, dict]:
    """PAGE_1 -> PAGE_2 -> PAGE_3, two countries each."""
    ends = {"first": PAGE_1, "last": PAGE_3}
    return {
        PAGE_1: countries_payload(
            ["AA", "AB"], {"self": PAGE_1, "next": PAGE_2, **ends}
        ),
        PAGE_2: countries_payload(
            ["BA", "BB"],
            {"self": PAGE_2, "previous": PAGE_1, "next": PAGE_3, **ends},
        ),
        PAGE_3: countries_payload(
            ["CA", "CB"], {"self": PAGE_3, "previous": PAGE_2, **ends}
        ),
    }


class FakeAPI:
    """
    In-memory stand-in for the API, used through httpx.MockTransport.
    Handlers may suspend (delay) so concurrency can be observed.
    """

    def __init__(self) -> None:
        self.pages: Dict[str, dict] = {}
        self.responses: Dict[str, httpx.Response] = {}
        self.calls: List[str] = []
        self.token_calls = 0
        self.delay = 0.0
        self.token_delay = 0.0
        self.expires_in = 3600

    def calls_to(self, url: str) -> int:
        return self.calls.count(url)

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        if str(request.url) == TOKEN_URL:
            self.token_calls += 1
            if self.token_delay:
                await anyio.sleep(self.token_delay)
            return httpx.Response(
                200,
                json={
                    "access_token": f"tok-{self.token_calls}",
                    "token_type": "bearer",
                    "expires_in": self.expires_in,
                },
            )

        url = str(request.url)
        self.calls.append(url)
        if self.delay:
            await anyio.sleep(self.delay)
        if url in self.responses:
            return self.responses[url]
        if url in self.pages:
            return httpx.Response(200, json=self.pages[url])
        return httpx.Response(
            404,
            text=(
                '<ProcessingErrors><ProcessingError RetryIndicator="false">'
                "<Type>BusinessError</Type><Code>NOT_FOUND</Code>"
                f"<Description>No resource at {url}</Description>"
                "<InfoURL>https://developer.lufthansa.com/docs</InfoURL>"
                "</ProcessingError></ProcessingErrors>"
            ),
        )


def make_client(
    fake: Optional[FakeAPI] = None, **kwargs
) -> LufthansaClient:
    http = None
    if fake is not None:
        http = httpx.AsyncClient(transport=httpx.MockTransport(fake))
    params = {
        "client_id": "mock-id",
        "client_secret": "mock-secret",
        "requests_per_second": 1000,
        "requests_per_hour": 100000,
        "base_url": BASE_URL,
        "http": http,
    }
    params.update(kwargs)
    return LufthansaClient(**params)

