from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Security, status

from app.api.dependencies import get_recommendation_cache
from app.core.config import Settings, get_settings
from app.core.security import get_admin_user_id, get_user_id
from app.domain.models import CacheStats
from app.services.recommendation_cache import RecommendationCache

router = APIRouter(prefix="/cache", tags=["Cache"])

UserDep = Annotated[str, Security(get_user_id)]
AdminDep = Annotated[str, Security(get_admin_user_id)]
CacheDep = Annotated[RecommendationCache, Depends(get_recommendation_cache)]


@router.get("/stats", response_model=CacheStats)
async def get_cache_stats(admin_id: AdminDep, cache: CacheDep) -> CacheStats:
    """Anzahl und User-IDs der gecachten Empfehlungen. Nur für Admins."""
    return cache.stats()


@router.post("/clear", status_code=status.HTTP_204_NO_CONTENT)
async def clear_cache(admin_id: AdminDep, cache: CacheDep) -> None:
    cache.clear()


@router.post("/invalidate/{target_user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def invalidate_user_cache(
    target_user_id: str,
    user_id: UserDep,
    cache: CacheDep,
    settings: Settings = Depends(get_settings),
) -> None:
    """Verwirft den Eintrag eines Users. Fremde Einträge nur mit Admin-Rechten."""
    if target_user_id != user_id and user_id not in settings.admin_user_ids:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Cannot invalidate another user's cache entry.",
        )
    cache.invalidate(target_user_id)
