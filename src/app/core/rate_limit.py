# src/app/core/rate_limit.py
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core import config

limiter = Limiter(key_func=get_remote_address)


def configured_rate_limit() -> str:
    """Limit für teure Endpunkte, z.B. '100/60 seconds'. Wird pro Request gelesen."""
    settings = config.get_settings()
    return f"{settings.rate_limit_requests}/{settings.rate_limit_window_seconds} seconds"
