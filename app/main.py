import logging
import sys
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from app.core.config import settings
from app.core.errors import MatchEngineError
from app.core.redis import close_redis
from app.api.matches import router as matches_router
from app.api.profiles import router as profiles_router
from app.api.likes import router as likes_router
from app.api.realtime import router as realtime_router

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting up match engine...")
    yield
    await close_redis()
    logger.info("Shutting down match engine...")


app = FastAPI(
    title="Match Engine API",
    docs_url="/docs" if not settings.APP_DOMAIN else None,
    redoc_url=None,
    lifespan=lifespan,
)


@app.exception_handler(MatchEngineError)
async def match_engine_error_handler(request: Request, exc: MatchEngineError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse(status_code=400, content={"error": message})


# Include routers
app.include_router(matches_router)
app.include_router(profiles_router)
app.include_router(likes_router)
app.include_router(realtime_router)


@app.get("/health")
async def health_check():
    return {"status": "ok"}
