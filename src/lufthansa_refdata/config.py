from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

from dotenv import load_dotenv

from .client import API_BASE_URL, LufthansaClient

DEFAULT_REQUESTS_PER_SECOND = 5
DEFAULT_REQUESTS_PER_HOUR = 1000
DEFAULT_TIMEOUT_SECONDS = 15.0


@dataclass(frozen=True)
class ClientConfig:
    client_id: str
    client_secret: str
    requests_per_second: int = DEFAULT_REQUESTS_PER_SECOND
    requests_per_hour: int = DEFAULT_REQUESTS_PER_HOUR
    base_url: str = API_BASE_URL
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    def __repr__(self) -> str:
        return (
            f"ClientConfig(client_id={self.client_id!r}, client_secret='***', "
            f"requests_per_second={self.requests_per_second}, "
            f"requests_per_hour={self.requests_per_hour}, "
            f"base_url={self.base_url!r}, timeout_seconds={self.timeout_seconds})"
        )


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


def load_env_config(*, use_dotenv: bool = True) -> ClientConfig:
    """Load client settings from environment (optional .env)."""
    if use_dotenv:
        load_dotenv()
    client_id = os.getenv("LUFTHANSA_CLIENT_ID", "").strip()
    client_secret = os.getenv("LUFTHANSA_CLIENT_SECRET", "").strip()
    if not client_id or not client_secret:
        raise ValueError(
            "Missing LUFTHANSA_CLIENT_ID or LUFTHANSA_CLIENT_SECRET in environment."
        )
    return ClientConfig(
        client_id=client_id,
        client_secret=client_secret,
        requests_per_second=_int_env(
            "LUFTHANSA_REQUESTS_PER_SECOND", DEFAULT_REQUESTS_PER_SECOND
        ),
        requests_per_hour=_int_env(
            "LUFTHANSA_REQUESTS_PER_HOUR", DEFAULT_REQUESTS_PER_HOUR
        ),
        base_url=os.getenv("LUFTHANSA_BASE_URL", "").strip() or API_BASE_URL,
        timeout_seconds=_float_env(
            "LUFTHANSA_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS
        ),
    )


async def create_client_from_env(
    *, use_dotenv: bool = True, **kwargs: Any
) -> LufthansaClient:
    """Create and connect a LufthansaClient from environment variables."""
    cfg = load_env_config(use_dotenv=use_dotenv)
    return await LufthansaClient.create(
        client_id=cfg.client_id,
        client_secret=cfg.client_secret,
        requests_per_second=cfg.requests_per_second,
        requests_per_hour=cfg.requests_per_hour,
        base_url=cfg.base_url,
        timeout_seconds=cfg.timeout_seconds,
        **kwargs,
    )


__all__ = ["ClientConfig", "load_env_config", "create_client_from_env"]
