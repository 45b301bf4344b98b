from slowapi import Limiter
from starlette.requests import Request

from voicelink.core.config import settings


def get_real_client_ip(request: Request) -> str | None:
    """
    Client IP for rate limiting and guest usage accounting.

    Only the X-Forwarded-For entries appended by our own proxies are trusted:
    with ``TRUSTED_PROXY_HOPS = n`` the client is the n-th entry from the right.
    Anything further left was sent by the client and is ignored.
    """
    hops = settings.TRUSTED_PROXY_HOPS
    if hops > 0:
        forwarded_for = request.headers.get("X-Forwarded-For", "")
        entries = [entry.strip() for entry in forwarded_for.split(",") if entry.strip()]
        if entries:
            # Fewer entries than proxies: the leftmost one is the closest we know.
            return entries[-min(hops, len(entries))]
    if request.client and request.client.host:
        return request.client.host
    return None


def get_rate_limit_key(request: Request) -> str:
    return get_real_client_ip(request) or "unknown"


# Identifies clients by their (proxy-aware) IP address
limiter = Limiter(key_func=get_rate_limit_key)
