from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from creatorlens.api.routes.analyze import get_cache_store
from creatorlens.services.cache_store import CacheStore
from creatorlens.services.normalize import has_platform_data, normalize_record

router = APIRouter(prefix="/api/creators", tags=["creators"])


@router.get("/{handle}")
async def get_creator(handle: str, store: CacheStore = Depends(get_cache_store)):
    """Last saved analysis for a handle, with its insight history."""
    record = await store.get(handle.strip().lower())
    if not has_platform_data(record):
        return JSONResponse(status_code=404, content={"error": f"No saved analysis for {handle!r}"})

    result = normalize_record(record)
    return {
        "success": True,
        "data": result.model_dump(mode="json", by_alias=True),
        "name": record.get("name"),
        "avatar_url": record.get("avatar_url"),
        "insight_history": record.get("insight_history") or [],
        "last_updated": record["last_updated"].isoformat() if record.get("last_updated") else None,
    }
