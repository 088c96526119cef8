from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.errors import AppError
from app.core.logging import logger
from app.api.routes.tracks import router as tracks_router
from app.api.routes.versions import router as versions_router
from app.api.routes.comments import router as comments_router
from app.db.session import db_manager

@asynccontextmanager
async def lifespan(app: FastAPI):
    # dev only, other environments manage their own schema
    if settings.APP_ENV == "dev":
        db_manager.create_all()
        logger.info("DB tables ensured.")
    yield


app = FastAPI(title="Track versions & waveform API", lifespan=lifespan)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"[api] {request.method} {request.url.path} {exc.error}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.error, "message": exc.message})


app.include_router(tracks_router, prefix="/tracks", tags=["tracks"])
app.include_router(versions_router, prefix="/tracks", tags=["versions"])
app.include_router(comments_router, prefix="/tracks", tags=["comments"])


@app.get("/health")
def health():
    return {"status": "ok"}
