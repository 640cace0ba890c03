from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional
from urllib.parse import quote_plus

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .decode import decode_body
from .errors import (
    LufthansaCancelledError,
    LufthansaDecodeError,
    LufthansaTokenError,
    LufthansaTransportError,
)
from .locks import ReadWriteLock
from .observability import log_event
from .transport import RateLimitedTransport

log = logging.getLogger("lufthansa_refdata.auth")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BearerToken(BaseModel):
    """
    OAuth2 access token. Valid for `now < issued_at + expires_in`.
    Immutable; a refresh replaces the whole token.
    """

    access_token: str = Field(repr=False)
    token_type: str
    expires_in: timedelta
    issued_at: datetime

    model_config = ConfigDict(frozen=True, extra="ignore")

    @field_validator("expires_in", mode="before")
    @classmethod
    def _seconds(cls, value: Any) -> Any:
        # the token endpoint sends whole seconds
        if isinstance(value, (int, float, str)):
            return timedelta(seconds=float(value))
        return value

    @property
    def expires_at(self) -> datetime:
        return self.issued_at + self.expires_in

    def is_valid(self, now: datetime) -> bool:
        return now < self.expires_at

    @property
    def authorization(self) -> str:
        return f"{self.token_type.title()} {self.access_token}"


class TokenManager:
    """
    Caches a client-credentials token and refreshes it when expired.

    Validity is checked under a shared lock. An expired token escalates to the
    exclusive lock and is checked again before exchanging, so callers that
    raced past the first check share one exchange. Nothing is cached when an
    exchange fails; the next call tries again.
    """

    def __init__(
        self,
        transport: RateLimitedTransport,
        *,
        client_id: str,
        client_secret: str,
        token_url: str,
        clock: Callable[[], datetime] = utcnow,
    ):
        if not client_id:
            raise ValueError("client_id must be provided.")
        if not client_secret:
            raise ValueError("client_secret must be provided.")
        self.transport = transport
        self.client_id = client_id
        self.client_secret = client_secret
        self.token_url = token_url
        self._clock = clock
        self._token: Optional[BearerToken] = None
        self._lock = ReadWriteLock()

    @property
    def token(self) -> Optional[BearerToken]:
        return self._token

    def _valid_token(self) -> Optional[BearerToken]:
        token = self._token
        if token is not None and token.is_valid(self._clock()):
            return token
        return None

    async def ensure_valid(self) -> BearerToken:
        async with self._lock.read():
            token = self._valid_token()
        if token is not None:
            return token

        async with self._lock.write():
            token = self._valid_token()
            if token is not None:
                return token
            self._token = None
            token = await self._exchange()
            self._token = token
            return token

    def _form_body(self) -> str:
        return (
            f"client_id={quote_plus(self.client_id)}"
            f"&client_secret={quote_plus(self.client_secret)}"
            "&grant_type=client_credentials"
        )

    async def _exchange(self) -> BearerToken:
        issued_at = self._clock()
        request = self.transport.http.build_request(
            "POST",
            self.token_url,
            content=self._form_body(),
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        try:
            resp = await self.transport.send(request)
        except LufthansaCancelledError:
            raise
        except LufthansaTransportError as exc:
            raise LufthansaTokenError(f"Token request failed: {exc}") from exc

        if resp.status_code != 200:
            snippet = (resp.text or "")[:500]
            raise LufthansaTokenError(
                f"Token request rejected with {resp.status_code}: {snippet!r}"
            )

        try:
            payload = decode_body(resp.content, resp.headers.get("Content-Type"))
            token = BearerToken.model_validate({**payload, "issued_at": issued_at})
        except (LufthansaDecodeError, ValidationError) as exc:
            raise LufthansaTokenError(f"Unreadable token response: {exc}") from exc

        log_event(
            "token_refresh",
            logger=log,
            token_type=token.token_type,
            expires_in_s=int(token.expires_in.total_seconds()),
        )
        return token


__all__ = ["BearerToken", "TokenManager", "utcnow"]
