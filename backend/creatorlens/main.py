import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from creatorlens.api.routes import analyze, creators
from creatorlens.config import get_settings
from creatorlens.db.database import init_db
from creatorlens.errors import CacheStoreError

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    yield


app = FastAPI(title=settings.app_name, version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(analyze.router)
app.include_router(creators.router)


@app.exception_handler(RequestValidationError)
async def invalid_body_handler(request: Request, exc: RequestValidationError):
    logger.info("Rejected request to %s: %s", request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


@app.exception_handler(CacheStoreError)
async def cache_store_handler(request: Request, exc: CacheStoreError):
    logger.error("Cache store error on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=503, content={"error": "Creator store unavailable"})


@app.get("/api/health")
async def health():
    return {"status": "ok"}
