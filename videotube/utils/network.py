from fastapi import Request

from videotube.config import settings


def get_client_ip(request: Request) -> str:
    """
    Best-effort address of the requester.

    The socket peer is used unless it is one of ``settings.trusted_proxies``;
    only then are ``X-Forwarded-For`` (first hop) and ``X-Real-IP`` honored.
    Clients talking to the app directly cannot choose their address.
    """
    peer = request.client.host if request.client else "unknown"
    if peer not in settings.trusted_proxies:
        return peer

    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        first_hop = forwarded_for.split(",")[0].strip()
        if first_hop:
            return first_hop[:45]

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()[:45]

    return peer
