"""
Chart Advisor Engine — FastAPI Server (Port 8002)
====================================================
Heuristic analytics advisor: schema classification, goal interpretation,
weighted chart scoring, query cost prediction, optimization suggestions and
benchmark statistics, backed by a TTL cache and retrying upstream client.

Run:
  uvicorn main:app --host 0.0.0.0 --port 8002 --reload
  # or
  python main.py
"""

import logging
from contextlib import asynccontextmanager

# Load .env file BEFORE anything reads os.getenv()
from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI, Request  # noqa: E402
from fastapi.exceptions import RequestValidationError  # noqa: E402
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402
from fastapi.responses import JSONResponse  # noqa: E402

from app.config import settings  # noqa: E402
from app.core.advisor.cache import TTLCache  # noqa: E402
from app.core.advisor.client import AnalyticsClient  # noqa: E402
from app.core.advisor.errors import ValidationError  # noqa: E402
from app.core.advisor.orchestrator import AdvisorOrchestrator  # noqa: E402
from app.core.advisor.retry import RetryConfig, RetryExecutor  # noqa: E402

# ── Logging ──
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s | %(name)-30s | %(levelname)-7s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("chart_advisor")


# ── Lifespan: build the orchestrator, run the cache sweeper ──
@asynccontextmanager
async def lifespan(app: FastAPI):
    cache = TTLCache(
        default_ttl_ms=settings.CACHE_TTL_MS,
        sweep_interval_ms=settings.CACHE_SWEEP_INTERVAL_MS,
    )
    client = AnalyticsClient.from_settings(settings) if settings.ANALYTICS_API_KEY else None
    if client is None:
        logger.warning("ANALYTICS_API_KEY not set — explore/chart-backed endpoints disabled")

    app.state.advisor = AdvisorOrchestrator(
        client=client,
        cache=cache,
        retry=RetryExecutor(RetryConfig.from_settings(settings)),
    )
    cache.start()
    logger.info(
        f"Advisor ready: retries={settings.MAX_RETRIES}, "
        f"retry_delay={settings.RETRY_DELAY}ms, cache_ttl={settings.CACHE_TTL_MS}ms"
    )

    yield

    await cache.stop()
    if client is not None:
        await client.close()
    logger.info("Shutting down Chart Advisor Engine")


# ── Create FastAPI app ──
app = FastAPI(
    title="Chart Advisor Engine",
    description=(
        "Deterministic analytics advisor: data characteristics analysis, "
        "business-question goal interpretation, 6-factor chart scoring, "
        "query performance prediction, optimization suggestions, "
        "t-based benchmark statistics."
    ),
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    error = ValidationError.from_pydantic(exc.errors())
    logger.warning(f"{request.url.path}: {error.message}")
    return JSONResponse(status_code=422, content={"detail": error.to_dict()})


# ── Mount all API routes ──
from app.api.router import api_router  # noqa: E402
app.include_router(api_router, prefix="/api/v1")


# ── Root ──
@app.get("/", tags=["Root"])
async def root():
    return {
        "service": "Chart Advisor Engine",
        "version": "1.0.0",
        "docs": "/docs",
        "endpoints": {
            "advisor": "/api/v1/advisor/ (14 endpoints)",
        },
        "health": "/api/v1/advisor/health",
    }


# ── Direct run ──
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=False,
        log_level=settings.LOG_LEVEL.lower(),
    )
