from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import Any, Callable, Dict, Optional

import httpx

from .auth import BearerToken, TokenManager, utcnow
from .cursor import Cursor
from .decode import classify_error, decode_body
from .errors import LufthansaTransportError
from .models import Aircraft, Airline, Airport, City, Country, NearestAirport, Page, R
from .reference import (
    AIRCRAFT,
    AIRLINES,
    AIRPORTS,
    CITIES,
    COUNTRIES,
    NEAREST_AIRPORTS,
    REFERENCES_PATH,
    RefParams,
    ResourceSpec,
    nearest_airports_url,
)
from .transport import RateLimitedTransport, TokenBucketLimiter

API_BASE_URL = "https://api.lufthansa.com/v1"
OAUTH_PATH = "/oauth/token"
ACCEPT = "application/json, application/xml, */*"


class LufthansaClient:
    """
    Shared client for the Lufthansa reference data API.
    - Owns the rate limiters and the cached OAuth2 token
    - fetch() returns raw bytes or raises a typed error
    - Resource methods hand out cursors that navigate through this client

    Create one client and share it. A second client for the same credentials
    has its own limiters and token, which defeats both; copying one raises.
    """

    def __init__(
        self,
        *,
        client_id: str,
        client_secret: str,
        requests_per_second: int,
        requests_per_hour: int,
        base_url: str = API_BASE_URL,
        timeout_seconds: float = 15.0,
        logger: Optional[logging.Logger] = None,
        http: Optional[httpx.AsyncClient] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        base_url = (base_url or "").rstrip("/")
        if not base_url:
            raise ValueError("base_url must be provided.")
        if not client_id or not client_secret:
            raise ValueError("client_id and client_secret must be provided.")
        if requests_per_second <= 0 or requests_per_hour <= 0:
            raise ValueError("Rate limits must be positive.")

        self.base_url = base_url
        self.references_url = base_url + REFERENCES_PATH
        self.token_url = base_url + OAUTH_PATH
        self.timeout_seconds = timeout_seconds
        self.log = logger or logging.getLogger("lufthansa_refdata.client")

        self._owns_http = http is None
        self.http = http or httpx.AsyncClient(
            headers={"Accept": ACCEPT},
            timeout=timeout_seconds,
        )
        self.transport = RateLimitedTransport(
            self.http,
            [
                TokenBucketLimiter(
                    limit=requests_per_second, period=1.0, name="per_second"
                ),
                TokenBucketLimiter(
                    limit=requests_per_hour, period=3600.0, name="per_hour"
                ),
            ],
        )
        self.tokens = TokenManager(
            self.transport,
            client_id=client_id,
            client_secret=client_secret,
            token_url=self.token_url,
            clock=clock,
        )

    @classmethod
    async def create(cls, **kwargs: Any) -> "LufthansaClient":
        """Build a client and fetch its first token; fails if that fails."""
        client = cls(**kwargs)
        try:
            await client.connect()
        except BaseException:
            await client.aclose()
            raise
        return client

    async def connect(self) -> BearerToken:
        return await self.tokens.ensure_valid()

    async def aclose(self) -> None:
        if self._owns_http:
            await self.http.aclose()

    async def __aenter__(self) -> "LufthansaClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    def __copy__(self):
        raise TypeError(f"{type(self).__name__} must be shared, not copied.")

    def __deepcopy__(self, memo: Dict[int, Any]):
        raise TypeError(f"{type(self).__name__} must be shared, not copied.")

    async def fetch(self, url: str, *, resource: Optional[str] = None) -> bytes:
        """
        GET an absolute API URL.
        - Refreshes the token first if it expired
        - Waits on every rate limiter before sending
        - Raises LufthansaGatewayError / LufthansaAPIError / LufthansaUnknownError
          on non-200 responses, LufthansaTransportError on network failure
        """
        token = await self.tokens.ensure_valid()
        request = self.http.build_request(
            "GET",
            url,
            headers={"Accept": ACCEPT, "Authorization": token.authorization},
        )

        start = time.perf_counter()
        try:
            resp = await self.transport.send(request)
        except LufthansaTransportError as exc:
            self.log.warning(
                "lh.request",
                extra={
                    "resource": resource,
                    "method": "GET",
                    "url": url,
                    "status": "exception",
                    "error_type": type(exc.__cause__ or exc).__name__,
                    "duration_ms": int((time.perf_counter() - start) * 1000),
                },
            )
            raise

        self.log.debug(
            "lh.request",
            extra={
                "resource": resource,
                "method": "GET",
                "url": str(resp.request.url),
                "status": resp.status_code,
                "duration_ms": int((time.perf_counter() - start) * 1000),
            },
        )

        error = classify_error(
            resp.status_code, resp.content, method="GET", url=str(resp.request.url)
        )
        if error is not None:
            raise error
        return resp.content

    async def fetch_page(self, spec: ResourceSpec[R], url: str) -> Page[R]:
        body = await self.fetch(url, resource=spec.name)
        return spec.parse_page(decode_body(body))

    async def _fetch_one(self, spec: ResourceSpec[R], url: str) -> R:
        body = await self.fetch(url, resource=spec.name)
        return spec.parse_one(decode_body(body))

    # --- Paged resources (nothing is fetched until the cursor's first next()) ---

    def countries(self, params: Optional[RefParams] = None) -> Cursor[Country]:
        return Cursor(self, COUNTRIES, COUNTRIES.seed_url(self.references_url, params))

    def cities(self, params: Optional[RefParams] = None) -> Cursor[City]:
        return Cursor(self, CITIES, CITIES.seed_url(self.references_url, params))

    def airports(
        self, params: Optional[RefParams] = None, *, lh_operated: bool = False
    ) -> Cursor[Airport]:
        extra = {"LHoperated": 1} if lh_operated else None
        return Cursor(
            self, AIRPORTS, AIRPORTS.seed_url(self.references_url, params, extra)
        )

    def nearest_airports(
        self, latitude: float, longitude: float, *, lang: Optional[str] = None
    ) -> Cursor[NearestAirport]:
        url = nearest_airports_url(self.references_url, latitude, longitude, lang)
        return Cursor(self, NEAREST_AIRPORTS, url)

    def airlines(self, params: Optional[RefParams] = None) -> Cursor[Airline]:
        """Names are returned in every language; params.lang is ignored."""
        return Cursor(self, AIRLINES, AIRLINES.seed_url(self.references_url, params))

    def aircraft(self, params: Optional[RefParams] = None) -> Cursor[Aircraft]:
        """Names are returned in every language; params.lang is ignored."""
        return Cursor(self, AIRCRAFT, AIRCRAFT.seed_url(self.references_url, params))

    # --- Single records ---

    async def fetch_country(self, code: str, lang: Optional[str] = None) -> Country:
        url = COUNTRIES.seed_url(self.references_url, RefParams(code=code, lang=lang))
        return await self._fetch_one(COUNTRIES, url)

    async def fetch_city(self, code: str, lang: Optional[str] = None) -> City:
        url = CITIES.seed_url(self.references_url, RefParams(code=code, lang=lang))
        return await self._fetch_one(CITIES, url)

    async def fetch_airport(self, code: str, lang: Optional[str] = None) -> Airport:
        url = AIRPORTS.seed_url(self.references_url, RefParams(code=code, lang=lang))
        return await self._fetch_one(AIRPORTS, url)

    async def fetch_airline(self, code: str) -> Airline:
        url = AIRLINES.seed_url(self.references_url, RefParams(code=code))
        return await self._fetch_one(AIRLINES, url)

    async def fetch_aircraft(self, code: str) -> Aircraft:
        url = AIRCRAFT.seed_url(self.references_url, RefParams(code=code))
        return await self._fetch_one(AIRCRAFT, url)


__all__ = ["LufthansaClient", "API_BASE_URL", "OAUTH_PATH", "ACCEPT"]
