"""
Client identity resolution.

Derives the abuse-prevention key for an anonymous client from the
forwarding header chain and the raw socket peer address.
"""
import ipaddress
from typing import Optional

from coupon_allocator import config
from coupon_allocator.exceptions import IdentityResolutionError
from coupon_allocator.utils.logging import get_context_logger

logger = get_context_logger("identity_service")

MAX_IDENTITY_LENGTH = 255


def normalize_address(value: str) -> str:
    """
    Render an address in canonical form.

    IP literals are canonicalised (IPv4-mapped IPv6 collapses to IPv4);
    anything else is returned trimmed and unchanged.
    """
    value = value.strip()
    try:
        address = ipaddress.ip_address(value)
    except ValueError:
        return value

    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped:
        return str(address.ipv4_mapped)
    return str(address)


def first_forwarded_address(forwarded_for: Optional[str]) -> Optional[str]:
    """Return the originating client entry of an X-Forwarded-For chain."""
    if not forwarded_for:
        return None
    first = forwarded_for.split(",")[0].strip()
    return first or None


def resolve_client_identity(
    forwarded_for: Optional[str],
    peer_address: Optional[str],
    trust_forwarded_for: Optional[bool] = None,
    trace_id: Optional[str] = None
) -> str:
    """
    Resolve the canonical identity string for a requesting client.

    Resolution order:
        1. First entry of the forwarding header, when trusted and non-empty
        2. The connection's peer address

    Args:
        forwarded_for: Raw X-Forwarded-For header value (optional)
        peer_address: Socket peer host (optional)
        trust_forwarded_for: Override for config.TRUST_FORWARDED_FOR
        trace_id: Trace ID for logging (optional)

    Returns:
        Non-empty identity string

    Raises:
        IdentityResolutionError: If neither source yields a value
    """
    if trust_forwarded_for is None:
        trust_forwarded_for = config.TRUST_FORWARDED_FOR

    candidate = first_forwarded_address(forwarded_for) if trust_forwarded_for else None
    source = "forwarded_for"

    if candidate is None:
        candidate = peer_address.strip() if peer_address else None
        source = "peer_address"

    if not candidate:
        get_context_logger("identity_service", trace_id=trace_id).error(
            "No forwarding header or peer address available for identity resolution"
        )
        raise IdentityResolutionError(
            details={"has_forwarded_for": bool(forwarded_for), "has_peer_address": bool(peer_address)}
        )

    identity = normalize_address(candidate)[:MAX_IDENTITY_LENGTH]
    get_context_logger("identity_service", trace_id=trace_id, identity=identity).debug(
        f"Resolved client identity from {source}"
    )
    return identity
