"""
Request-scoped context: who is calling and from where
"""
import ipaddress
from dataclasses import dataclass
from typing import Optional

from fastapi import Request

# Checked in order; the first public address wins
IP_HEADERS = ("x-forwarded-for", "x-real-ip", "client-ip")
FALLBACK_IP = "0.0.0.0"


@dataclass
class RequestContext:
    """Authenticated user and provenance of one inbound request"""
    user_id: Optional[int] = None
    ip_address: str = FALLBACK_IP
    user_agent: Optional[str] = None


def _is_public_ip(value: str) -> bool:
    try:
        ip = ipaddress.ip_address(value)
    except ValueError:
        return False
    return not (ip.is_private or ip.is_reserved or ip.is_loopback or ip.is_link_local)


def resolve_client_ip(headers, peer: Optional[str]) -> str:
    """
    Resolve the client IP address behind proxies

    Args:
        headers: Mapping of lowercase header names to values
        peer: Socket peer address, if known

    Returns:
        First public address found in the proxy headers, else the peer
        address, else 0.0.0.0
    """
    for key in IP_HEADERS:
        raw = headers.get(key)
        if not raw:
            continue
        candidate = raw.split(",")[0].strip()
        if _is_public_ip(candidate):
            return candidate
    return peer or FALLBACK_IP


def get_request_context(request: Request) -> RequestContext:
    """FastAPI dependency building the RequestContext for the current request"""
    user_id = request.headers.get("x-user-id")
    peer = request.client.host if request.client else None
    return RequestContext(
        user_id=int(user_id) if user_id and user_id.isdigit() else None,
        ip_address=resolve_client_ip(request.headers, peer),
        user_agent=request.headers.get("user-agent"),
    )
