# src/app/core/security.py
from fastapi import Depends, HTTPException, Security, status
from fastapi.security import APIKeyHeader

from app.core.config import Settings, get_settings

_API_KEY_HEADER = APIKeyHeader(name="X-API-Key", auto_error=True)


async def get_user_id(
    api_key: str = Security(_API_KEY_HEADER),
    settings: Settings = Depends(get_settings),
) -> str:
    """
    FastAPI Dependency: Validiert den API-Key und gibt die User-ID zurück.
    Wirft HTTP 401 bei ungültigem Key.
    """
    user_id = settings.api_keys.get(api_key)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API key.",
            headers={"WWW-Authenticate": "ApiKey"},
        )
    return user_id


async def get_admin_user_id(
    user_id: str = Security(get_user_id),
    settings: Settings = Depends(get_settings),
) -> str:
    """Wie get_user_id, verlangt aber Admin-Rechte (HTTP 403 sonst)."""
    if user_id not in settings.admin_user_ids:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required.",
        )
    return user_id
