from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from creatorlens.db.database import get_db
from creatorlens.errors import InvalidRequestError, NoDataError
from creatorlens.schemas.analysis import AnalyzeRequest
from creatorlens.services.analysis import CreatorAnalysisService
from creatorlens.services.cache_store import CacheStore
from creatorlens.services.instagram import InstagramService
from creatorlens.services.persona import PersonaService
from creatorlens.services.youtube import YoutubeService

router = APIRouter(prefix="/api", tags=["analyze"])

youtube = YoutubeService()
instagram = InstagramService()
persona = PersonaService()


def get_cache_store(db: AsyncSession = Depends(get_db)) -> CacheStore:
    return CacheStore(db)


def get_analysis_service(store: CacheStore = Depends(get_cache_store)) -> CreatorAnalysisService:
    return CreatorAnalysisService(store, youtube, instagram, persona)


@router.post("/analyze")
async def analyze(
    body: AnalyzeRequest,
    service: CreatorAnalysisService = Depends(get_analysis_service),
):
    try:
        result = await service.analyze(body)
    except InvalidRequestError as e:
        return JSONResponse(status_code=400, content={"error": str(e)})
    except NoDataError as e:
        return JSONResponse(status_code=404, content={"error": str(e)})

    return {"success": True, "data": result.model_dump(mode="json", by_alias=True)}
