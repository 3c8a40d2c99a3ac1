"""Request utility functions for building the per-request context."""

import ipaddress
import logging

from fastapi import Request

logger = logging.getLogger(__name__)

LOOPBACK_HOSTS = ("127.0.0.1", "::1", "localhost")


def _is_valid_ip(ip_str: str) -> bool:
    """Check if a string is a valid IP address."""
    try:
        ipaddress.ip_address(ip_str)
        return True
    except ValueError:
        return False


def get_client_ip(request: Request) -> str:
    """Get the remote address recorded in audit entries.

    X-Real-IP is honoured only when the direct peer is a loopback address
    (a reverse proxy on the same host). X-Forwarded-For is never trusted.
    Returns an empty string when the peer is unknown.
    """
    if request.client and request.client.host in LOOPBACK_HOSTS:
        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            ip = real_ip.strip()
            if _is_valid_ip(ip):
                return ip
            logger.warning(f"Invalid X-Real-IP: {real_ip}")

    if request.client:
        return request.client.host

    return ""
