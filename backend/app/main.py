from contextlib import asynccontextmanager
import logging

import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.core.config import settings
from app.core.limiter import limiter
from app.core.logging import setup_logging
from app.services.storage import UploadStaticFiles, upload_dir

setup_logging()

logger = logging.getLogger(__name__)

# Initialize Sentry error monitoring
if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
        environment=settings.APP_ENV,
        send_default_pii=False,
    )
    logger.info("Sentry initialized")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: uploads directory and tables
    upload_dir()
    if settings.DB_AUTO_CREATE:
        from app.db.session import init_db
        await init_db()
        logger.info("Database tables ensured")
    yield
    # Shutdown
    from app.db.session import engine
    await engine.dispose()


app = FastAPI(
    title="Product Catalog API",
    version="0.1.0",
    docs_url="/api/docs" if settings.APP_ENV != "production" else None,
    redoc_url="/api/redoc" if settings.APP_ENV != "production" else None,
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled exception: %s %s: %s", request.method, request.url.path, exc, exc_info=True)
    return JSONResponse(status_code=500, content={"detail": "Internal server error."})


# ─── Routers ───
from app.api.router import api_router  # noqa: E402

app.include_router(api_router, prefix="/api")

app.mount(
    settings.UPLOAD_URL_PREFIX,
    UploadStaticFiles(directory=settings.UPLOAD_DIR, check_dir=False),
    name="uploads",
)


@app.get("/health")
async def health():
    return {"status": "ok", "env": settings.APP_ENV}
