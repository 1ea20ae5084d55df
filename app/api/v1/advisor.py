"""
Chart Advisor — API Endpoints
===============================
FastAPI router exposing the advisor pipeline and its pure engine operations.

Endpoints:
  POST /recommendations       — Ranked chart recommendations (inline schema or explore id)
  POST /optimize              — Optimization suggestions + optimized configurations
  POST /benchmark             — Variation statistics (supplied samples or live chart runs)
  POST /statistics            — Statistical summary of one sample
  POST /interpret-goal        — Business question → analytical goal
  POST /analyze-schema        — Data characteristics of an explore schema
  POST /predict-performance   — Complexity + execution time estimate
  POST /performance-analysis  — Grade an observed execution (or a live chart run)
  POST /similarity            — Configuration similarity
  POST /patterns              — Pattern extraction over chart records
  POST /relationships         — Related charts within the source chart's project
  GET  /cache/stats           — Cache entries, age and TTL
  POST /cache/clear           — Drop all cached upstream results
  GET  /health                — Component health check

Integration (in main.py):
  app.include_router(api_router, prefix="/api/v1")   # → /api/v1/advisor/*
"""

import logging
import time
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.core.advisor.complexity import calculate_complexity_score, complexity_breakdown
from app.core.advisor.data_characteristics import DataCharacteristicsAnalyzer
from app.core.advisor.errors import (
    AdvisorError, NotFoundInSearchError, RetryExhaustedError, UpstreamAPIError,
    UpstreamHTTPError, ValidationError,
)
from app.core.advisor.goal_interpreter import GoalInterpreter
from app.core.advisor.models import ChartConfiguration
from app.core.advisor.optimization_advisor import calculate_configuration_similarity
from app.core.advisor.orchestrator import AdvisorOrchestrator
from app.core.advisor.performance_predictor import analyze_chart_performance, predict_performance
from app.core.advisor.statistical_analyzer import SIGNIFICANCE_LEVELS, summarize

logger = logging.getLogger(__name__)
router = APIRouter()

_start_time = time.time()


# ═══════════════════════════════════════════════════════════════
# DEPENDENCIES & ERROR MAPPING
# ═══════════════════════════════════════════════════════════════

def get_orchestrator(request: Request) -> AdvisorOrchestrator:
    """The orchestrator built by the application lifespan."""
    orchestrator = getattr(request.app.state, "advisor", None)
    if orchestrator is None:
        orchestrator = AdvisorOrchestrator()
        request.app.state.advisor = orchestrator
    return orchestrator


def to_http_error(e: AdvisorError) -> HTTPException:
    if isinstance(e, ValidationError):
        status = 422
    elif isinstance(e, UpstreamHTTPError):
        status = e.status_code if e.is_client_error else 502
    elif isinstance(e, NotFoundInSearchError):
        status = 404
    elif isinstance(e, (RetryExhaustedError, UpstreamAPIError)):
        status = 502
    else:
        status = 503
    return HTTPException(status_code=status, detail=e.to_dict())


# ═══════════════════════════════════════════════════════════════
# REQUEST SCHEMAS
# ═══════════════════════════════════════════════════════════════

class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RecommendationRequest(_CamelModel):
    explore_id: Optional[str] = None
    explore_schema: Optional[Dict[str, Any]] = Field(default=None, description="Inline explore description; skips the upstream lookup")
    business_context: Optional[str] = Field(default=None, max_length=2000)
    user_role: Optional[str] = Field(default=None, description="analyst|data_scientist|business_user|executive")
    time_range: Optional[Any] = None
    key_metrics: Optional[List[str]] = None
    max_recommendations: int = Field(default=10, ge=1, le=15)
    include_implementation_guidance: bool = True


class OptimizeRequest(_CamelModel):
    chart_uuid: Optional[str] = None
    configuration: Optional[Dict[str, Any]] = None
    execution_time_ms: float = Field(default=0, ge=0)
    row_count: int = Field(default=0, ge=0)
    optimization_type: str = Field(default="performance", pattern="^(performance|accuracy|comprehensive|user_experience)$")
    aggressiveness: str = Field(default="moderate", pattern="^(conservative|moderate|aggressive)$")


class VariationSample(_CamelModel):
    variation_type: str = "custom"
    label: Optional[str] = None
    is_original: bool = False
    configuration: Optional[Dict[str, Any]] = None
    execution_times: List[float] = Field(..., min_length=1)
    row_counts: List[int] = []


class BenchmarkRequest(_CamelModel):
    chart_uuid: Optional[str] = None
    variations: List[str] = Field(default_factory=lambda: ["filter_combinations"])
    samples: Optional[List[VariationSample]] = None
    test_duration: int = Field(default=3, ge=1, le=5)
    significance_level: str = "medium"


class StatisticsRequest(_CamelModel):
    values: List[float]
    significance_level: str = "medium"


class GoalRequest(_CamelModel):
    business_question: Optional[str] = Field(default=None, max_length=2000)
    user_role: Optional[str] = None
    time_range: Optional[Any] = None
    key_metrics: Optional[List[str]] = None


class SchemaRequest(_CamelModel):
    explore_schema: Dict[str, Any]


class PredictRequest(_CamelModel):
    configuration: Dict[str, Any]
    baseline_ms: Optional[float] = None


class PerformanceAnalysisRequest(_CamelModel):
    chart_uuid: Optional[str] = None
    configuration: Optional[Dict[str, Any]] = None
    execution_time_ms: float = Field(default=0, ge=0)
    row_count: int = Field(default=0, ge=0)


class SimilarityRequest(_CamelModel):
    configuration1: Dict[str, Any]
    configuration2: Dict[str, Any]


class PatternRequest(_CamelModel):
    chart_uuids: Optional[List[str]] = None
    charts: Optional[List[Dict[str, Any]]] = None
    pattern_type: Optional[str] = None
    min_confidence: float = Field(default=0.7, ge=0, le=1)
    include_examples: bool = True


class RelationshipRequest(_CamelModel):
    chart_uuid: str
    relationship_type: str = Field(default="all", pattern="^(all|shared_explore|shared_metrics|shared_dimensions)$")
    min_strength: float = Field(default=0.3, ge=0, le=1)
    max_results: int = Field(default=25, ge=1, le=100)


class HealthResponse(BaseModel):
    status: str
    components: Dict[str, str]
    version: str
    uptime_seconds: Optional[float] = None


# ═══════════════════════════════════════════════════════════════
# ORCHESTRATED ENDPOINTS
# ═══════════════════════════════════════════════════════════════

@router.post("/recommendations")
async def recommendations(request: RecommendationRequest,
                          orchestrator: AdvisorOrchestrator = Depends(get_orchestrator)):
    """
    Ranked chart recommendations.

    Pipeline: explore lookup (cached, retried) → Data Characteristics →
    Goal Interpretation → candidate scoring → ranking → documentation
    """
    try:
        return await orchestrator.recommend(
            explore_id=request.explore_id,
            explore_schema=request.explore_schema,
            business_context=request.business_context,
            user_role=request.user_role,
            time_range=request.time_range,
            key_metrics=request.key_metrics,
            max_recommendations=request.max_recommendations,
            include_guidance=request.include_implementation_guidance,
        )
    except AdvisorError as e:
        logger.warning(f"Recommendations failed: {e}")
        raise to_http_error(e)


@router.post("/optimize")
async def optimize(request: OptimizeRequest,
                   orchestrator: AdvisorOrchestrator = Depends(get_orchestrator)):
    """Optimization suggestions for a saved chart (measured live) or a supplied configuration."""
    try:
        if request.chart_uuid:
            return await orchestrator.optimize_chart(
                request.chart_uuid, request.optimization_type, request.aggressiveness,
            )
        if request.configuration is None:
            raise ValidationError("configuration", "Provide either chartUuid or configuration")
        return orchestrator.optimize_configuration(
            ChartConfiguration.from_dict(request.configuration),
            request.execution_time_ms,
            request.row_count,
            request.optimization_type,
            request.aggressiveness,
        )
    except AdvisorError as e:
        logger.warning(f"Optimization failed: {e}")
        raise to_http_error(e)


@router.post("/benchmark")
async def benchmark(request: BenchmarkRequest,
                    orchestrator: AdvisorOrchestrator = Depends(get_orchestrator)):
    """Compare variations by execution time: supplied samples, or live runs of a saved chart."""
    try:
        if request.samples:
            return orchestrator.benchmark_samples(
                [s.model_dump(by_alias=True) for s in request.samples],
                request.significance_level,
            )
        if not request.chart_uuid:
            raise ValidationError("chartUuid", "Provide either chartUuid or samples")
        return await orchestrator.benchmark_chart(
            request.chart_uuid, request.variations, request.test_duration, request.significance_level,
        )
    except AdvisorError as e:
        logger.warning(f"Benchmark failed: {e}")
        raise to_http_error(e)


@router.post("/performance-analysis")
async def performance_analysis(request: PerformanceAnalysisRequest,
                               orchestrator: AdvisorOrchestrator = Depends(get_orchestrator)):
    try:
        if request.chart_uuid:
            return await orchestrator.analyze_chart(request.chart_uuid)
        if request.configuration is None:
            raise ValidationError("configuration", "Provide either chartUuid or configuration")
        config = ChartConfiguration.from_dict(request.configuration)
        return {"performance": analyze_chart_performance(config, request.execution_time_ms, request.row_count)}
    except AdvisorError as e:
        logger.warning(f"Performance analysis failed: {e}")
        raise to_http_error(e)


@router.post("/patterns")
async def patterns(request: PatternRequest,
                   orchestrator: AdvisorOrchestrator = Depends(get_orchestrator)):
    """Reusable patterns across charts; unreachable charts are skipped."""
    try:
        if request.charts is None and not request.chart_uuids:
            raise ValidationError("chartUuids", "Provide chartUuids or charts")
        return await orchestrator.extract_patterns(
            chart_uuids=request.chart_uuids,
            charts=request.charts,
            pattern_type=request.pattern_type,
            min_confidence=request.min_confidence,
            include_examples=request.include_examples,
        )
    except AdvisorError as e:
        logger.warning(f"Pattern extraction failed: {e}")
        raise to_http_error(e)


@router.post("/relationships")
async def relationships(request: RelationshipRequest,
                        orchestrator: AdvisorOrchestrator = Depends(get_orchestrator)):
    try:
        return await orchestrator.discover_relationships(
            request.chart_uuid, request.relationship_type, request.min_strength, request.max_results,
        )
    except AdvisorError as e:
        logger.warning(f"Relationship discovery failed: {e}")
        raise to_http_error(e)


# ═══════════════════════════════════════════════════════════════
# PURE ENGINE ENDPOINTS
# ═══════════════════════════════════════════════════════════════

@router.post("/statistics")
async def statistics(request: StatisticsRequest):
    try:
        summary = summarize(request.values, request.significance_level)
    except AdvisorError as e:
        raise to_http_error(e)
    return {"summary": summary.to_dict(), "significanceLevels": SIGNIFICANCE_LEVELS}


@router.post("/interpret-goal")
async def interpret_goal(request: GoalRequest):
    result = GoalInterpreter().interpret(
        request.business_question,
        {"timeRange": request.time_range, "keyMetrics": request.key_metrics},
        request.user_role,
    )
    return result.to_dict()


@router.post("/analyze-schema")
async def analyze_schema(request: SchemaRequest):
    return DataCharacteristicsAnalyzer().analyze(request.explore_schema).to_dict()


@router.post("/predict-performance")
async def predict(request: PredictRequest):
    config = ChartConfiguration.from_dict(request.configuration)
    return {
        "complexityScore": calculate_complexity_score(config),
        "complexityBreakdown": complexity_breakdown(config),
        "prediction": predict_performance(config, request.baseline_ms).to_dict(),
    }


@router.post("/similarity")
async def similarity(request: SimilarityRequest):
    score = calculate_configuration_similarity(
        ChartConfiguration.from_dict(request.configuration1),
        ChartConfiguration.from_dict(request.configuration2),
    )
    return {"similarity": round(score, 4)}


# ═══════════════════════════════════════════════════════════════
# CACHE & HEALTH
# ═══════════════════════════════════════════════════════════════

@router.get("/cache/stats")
async def cache_stats(orchestrator: AdvisorOrchestrator = Depends(get_orchestrator)):
    return orchestrator.cache.stats()


@router.post("/cache/clear")
async def cache_clear(orchestrator: AdvisorOrchestrator = Depends(get_orchestrator)):
    cleared = len(orchestrator.cache)
    orchestrator.cache.clear()
    logger.info(f"Cache cleared ({cleared} entries)")
    return {"cleared": cleared}


@router.get("/health", response_model=HealthResponse)
async def advisor_health(orchestrator: AdvisorOrchestrator = Depends(get_orchestrator)):
    """Advisor health check — reports status of all components."""
    components = {
        "data_characteristics": "active",
        "goal_interpreter": "active",
        "recommendation_scorer": "active",
        "performance_predictor": "active",
        "optimization_advisor": "active",
        "statistical_analyzer": "active",
        "cache": "active (sweeper running)" if orchestrator.cache.running else "active (no sweeper)",
        "analytics_client": "configured" if orchestrator.client else "disabled (inline data only)",
    }
    return HealthResponse(
        status="healthy",
        components=components,
        version="1.0.0",
        uptime_seconds=round(time.time() - _start_time, 1),
    )
