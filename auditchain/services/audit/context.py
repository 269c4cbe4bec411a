"""Client details for audit entries, taken from HTTP request headers."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass

HeaderValue = str | Sequence[str] | None


@dataclass(frozen=True)
class ClientInfo:
    ip_address: str | None
    user_agent: str | None


def _first(value: HeaderValue) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return value[0] if value else None


def _lookup(headers: Mapping[str, HeaderValue], name: str) -> str | None:
    """Case-insensitive header lookup that tolerates multi-valued headers."""
    for key, value in headers.items():
        if key.lower() == name:
            return _first(value)
    return None


def client_info_from_headers(headers: Mapping[str, HeaderValue]) -> ClientInfo:
    """
    Resolve the caller's IP address and user agent.

    The left-most ``X-Forwarded-For`` address wins, then ``X-Real-IP``.
    Neither value is hashed into the chain; both are stored for context only.
    """
    ip_address: str | None = None
    forwarded = _lookup(headers, "x-forwarded-for")
    if forwarded:
        ip_address = forwarded.split(",")[0].strip() or None
    if ip_address is None:
        real_ip = _lookup(headers, "x-real-ip")
        ip_address = real_ip.strip() if real_ip else None

    return ClientInfo(ip_address=ip_address, user_agent=_lookup(headers, "user-agent"))
