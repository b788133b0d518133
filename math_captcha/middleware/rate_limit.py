from slowapi import Limiter
from starlette.requests import Request

from math_captcha.config import Settings


def get_real_client_ip(request: Request) -> str:
    """Key rate limits on the address that asked for the CAPTCHA.

    Behind a reverse proxy the first X-Forwarded-For entry is the client;
    direct connections fall back to request.client.host.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def build_limiter(settings: Settings) -> Limiter:
    """
    Create the limiter for one app.

    Each app gets its own limiter so the limits registered on its routes
    come from the settings the app was built with.
    """
    return Limiter(key_func=get_real_client_ip, enabled=settings.rate_limit_enabled)
