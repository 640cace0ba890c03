"""lufthansa_refdata package exports."""

from .auth import BearerToken, TokenManager
from .client import API_BASE_URL, LufthansaClient
from .config import ClientConfig, create_client_from_env, load_env_config
from .cursor import Cursor
from .decode import classify_error, decode_body, sniff_format, xml_to_dict
from .errors import (
    LufthansaAPIError,
    LufthansaCancelledError,
    LufthansaClientError,
    LufthansaDecodeError,
    LufthansaGatewayError,
    LufthansaHTTPError,
    LufthansaSchemaVersionError,
    LufthansaTokenError,
    LufthansaTransportError,
    LufthansaUnknownError,
)
from .hal import LinkSet, Relation
from .logging import setup_logging
from .models import (
    META_VERSION,
    Aircraft,
    Airline,
    Airport,
    City,
    Country,
    NearestAirport,
    Page,
)
from .reference import RefParams
from .transport import RateLimitedTransport, TokenBucketLimiter

__all__ = [
    # Client
    "LufthansaClient",
    "API_BASE_URL",
    "Cursor",
    "RefParams",
    # Auth / transport
    "BearerToken",
    "TokenManager",
    "RateLimitedTransport",
    "TokenBucketLimiter",
    # Exceptions
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
    # Links and pages
    "Relation",
    "LinkSet",
    "Page",
    "META_VERSION",
    # Records
    "Country",
    "City",
    "Airport",
    "NearestAirport",
    "Airline",
    "Aircraft",
    # Decoding
    "sniff_format",
    "xml_to_dict",
    "decode_body",
    "classify_error",
    # Config / logging
    "ClientConfig",
    "load_env_config",
    "create_client_from_env",
    "setup_logging",
]
