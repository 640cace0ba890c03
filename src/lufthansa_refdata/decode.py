"""
Response body decoding.

The API answers in XML or JSON depending on the endpoint and the weather, and
the Content-Type header does not always tell the truth, so formats are sniffed
from the body itself. XML is normalised to the JSON wire convention:

  - attributes become "@Name" keys
  - element text next to attributes or children becomes "$"
  - repeated child elements become lists

so a single set of shape readers serves both formats.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional
from xml.etree import ElementTree

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import (
    LufthansaAPIError,
    LufthansaDecodeError,
    LufthansaGatewayError,
    LufthansaHTTPError,
    LufthansaUnknownError,
)

FORMAT_XML = "xml"
FORMAT_JSON = "json"

_BOM = b"\xef\xbb\xbf"


def sniff_format(data: bytes) -> str:
    head = data.lstrip()
    if head.startswith(_BOM):
        head = head[len(_BOM) :].lstrip()
    if head.startswith(b"<"):
        return FORMAT_XML
    if head.startswith((b"{", b"[")):
        return FORMAT_JSON
    raise LufthansaDecodeError("unsupported format")


def _local_name(tag: str) -> str:
    # "{namespace}Tag" -> "Tag"
    return tag.rsplit("}", 1)[-1]


def xml_to_dict(element: ElementTree.Element) -> Any:
    node: Dict[str, Any] = {
        f"@{_local_name(k)}": v for k, v in element.attrib.items()
    }
    for child in element:
        tag = _local_name(child.tag)
        value = xml_to_dict(child)
        if tag in node:
            existing = node[tag]
            if not isinstance(existing, list):
                node[tag] = existing = [existing]
            existing.append(value)
        else:
            node[tag] = value

    text = (element.text or "").strip()
    if not node:
        return text or None
    if text:
        node["$"] = text
    return node


def decode_body(data: bytes, content_type: Optional[str] = None) -> Dict[str, Any]:
    """
    Decode a response body into the JSON wire convention.
    content_type is only reported in errors; the body decides the format.
    """
    fmt = sniff_format(data)
    try:
        if fmt == FORMAT_XML:
            root = ElementTree.fromstring(data)
            return {_local_name(root.tag): xml_to_dict(root)}
        parsed = json.loads(data)
    except (ElementTree.ParseError, ValueError) as exc:
        snippet = data[:200].decode("utf-8", errors="replace")
        raise LufthansaDecodeError(
            f"Malformed {fmt} body (declared {content_type or 'unknown'}): "
            f"{snippet!r}"
        ) from exc

    if not isinstance(parsed, dict):
        raise LufthansaDecodeError(
            f"Expected top-level JSON object, got {type(parsed).__name__}"
        )
    return parsed


def as_list(value: Any) -> List[Any]:
    """The wire format sends one-element lists as a bare object."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def dig(payload: Any, *path: str) -> Any:
    """Walk nested dicts; returns None as soon as a key is missing."""
    for key in path:
        if not isinstance(payload, dict):
            return None
        payload = payload.get(key)
    return payload


class GatewayErrorBody(BaseModel):
    error: str = Field(alias="Error")

    model_config = ConfigDict(extra="ignore")


class ProcessingErrorBody(BaseModel):
    retry_indicator: bool = Field(default=False, alias="@RetryIndicator")
    type: Optional[str] = Field(default=None, alias="Type")
    code: Optional[str] = Field(default=None, alias="Code")
    description: Optional[str] = Field(default=None, alias="Description")
    info_url: Optional[str] = Field(default=None, alias="InfoURL")

    model_config = ConfigDict(extra="ignore")


GATEWAY_STATUSES = frozenset({401, 403})
API_ERROR_STATUSES = frozenset({400, 404, 405})


def classify_error(
    status_code: int,
    body: bytes,
    *,
    method: str = "GET",
    url: str = "",
) -> Optional[LufthansaHTTPError]:
    """
    Map a response onto the error taxonomy. Fixed table:
      200          -> None
      401, 403     -> LufthansaGatewayError
      400, 404, 405 -> LufthansaAPIError
      anything else -> LufthansaUnknownError (raw body kept)

    Raises LufthansaDecodeError if a gateway/API error body can't be read.
    """
    if status_code == 200:
        return None

    where = {"status_code": status_code, "method": method, "url": url}

    if status_code in GATEWAY_STATUSES:
        if sniff_format(body) != FORMAT_JSON:
            raise LufthansaDecodeError("unsupported format for gateway error")
        try:
            parsed = GatewayErrorBody.model_validate(decode_body(body))
        except ValidationError as exc:
            raise LufthansaDecodeError(f"Unreadable gateway error: {exc}") from exc
        return LufthansaGatewayError(what=parsed.error, **where)

    if status_code in API_ERROR_STATUSES:
        raw = dig(decode_body(body), "ProcessingErrors", "ProcessingError")
        entries = as_list(raw)
        try:
            parsed = ProcessingErrorBody.model_validate(entries[0] if entries else {})
        except ValidationError as exc:
            raise LufthansaDecodeError(f"Unreadable API error: {exc}") from exc
        return LufthansaAPIError(
            retry_indicator=parsed.retry_indicator,
            type=parsed.type or "",
            code=parsed.code or "",
            description=parsed.description or "",
            info_url=parsed.info_url or "",
            **where,
        )

    return LufthansaUnknownError(response_body=body, **where)


__all__ = [
    "FORMAT_XML",
    "FORMAT_JSON",
    "sniff_format",
    "xml_to_dict",
    "decode_body",
    "as_list",
    "dig",
    "classify_error",
]
