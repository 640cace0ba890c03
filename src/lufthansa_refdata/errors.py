from __future__ import annotations

from typing import Optional


class LufthansaClientError(Exception):
    """Base error for client failures."""


class LufthansaTransportError(LufthansaClientError):
    """Network or timeout failure; nothing was received from the API."""


class LufthansaCancelledError(LufthansaTransportError):
    """The operation was cancelled or ran past its deadline."""


class LufthansaTokenError(LufthansaClientError):
    """The client-credentials exchange failed. No token is cached."""


class LufthansaDecodeError(LufthansaClientError):
    """The response body is in an unsupported format or malformed for its shape."""


class LufthansaSchemaVersionError(LufthansaClientError):
    def __init__(self, *, expected: str, actual: Optional[str]):
        super().__init__(
            f"new meta version detected: expected {expected!r}, got {actual!r}"
        )
        self.expected = expected
        self.actual = actual


class LufthansaHTTPError(LufthansaClientError):
    def __init__(
        self,
        *,
        status_code: int,
        method: str,
        url: str,
        message: str,
    ):
        super().__init__(f"{status_code} {method} {url}: {message}")
        self.status_code = status_code
        self.method = method
        self.url = url


class LufthansaGatewayError(LufthansaHTTPError):
    """Credentials rejected by the API gateway (401/403)."""

    def __init__(self, *, what: str, **kwargs):
        super().__init__(message=f"GatewayError: {what}", **kwargs)
        self.what = what


class LufthansaAPIError(LufthansaHTTPError):
    """
    Request processing error (400/404/405).
    retry_indicator is advisory; this library never retries on it.
    """

    def __init__(
        self,
        *,
        retry_indicator: bool,
        type: str,
        code: str,
        description: str,
        info_url: str,
        **kwargs,
    ):
        super().__init__(
            message=(
                f"APIError: Code {code}, Type {type}, "
                f"Retry {retry_indicator}: {description}"
            ),
            **kwargs,
        )
        self.retry_indicator = retry_indicator
        self.type = type
        self.code = code
        self.description = description
        self.info_url = info_url


class LufthansaUnknownError(LufthansaHTTPError):
    """Undocumented failure; the raw body is kept verbatim in response_body."""

    def __init__(self, *, response_body: bytes, **kwargs):
        self.response_body = bytes(response_body)
        super().__init__(message=self.response_text[:500] or "request failed", **kwargs)

    @property
    def response_text(self) -> str:
        return self.response_body.decode("utf-8", errors="replace")


__all__ = [
    "LufthansaClientError",
    "LufthansaTransportError",
    "LufthansaCancelledError",
    "LufthansaTokenError",
    "LufthansaDecodeError",
    "LufthansaSchemaVersionError",
    "LufthansaHTTPError",
    "LufthansaGatewayError",
    "LufthansaAPIError",
    "LufthansaUnknownError",
]
