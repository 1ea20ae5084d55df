"""
Advisor Orchestrator — End-to-End Advisory Operations
=======================================================
Composes the pure engine with the analytics client. Upstream calls go
through the TTL cache and the retry executor; scoring never does.

Capabilities:
  1. Recommendations        — explore lookup → characteristics + goal → ranked charts
  2. Query Optimization     — suggestions, optimized configs, performance comparison
  3. Benchmarking           — variation runs → statistics → comparison
  4. Performance Analysis   — one timed execution graded
  5. Patterns/Relationships — best-effort scans over saved charts

Every response carries a `metadata` block (timestamp, version tag,
processingTime in ms).
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional

from . import chart_patterns
from .cache import MISSING, TTLCache
from .client import AnalyticsClient
from .data_characteristics import DataCharacteristicsAnalyzer
from .errors import AdvisorError, NotFoundInSearchError, ValidationError, validate_uuid
from .goal_interpreter import GoalInterpreter
from .models import ChartConfiguration
from .optimization_advisor import (
    build_optimized_configurations, build_performance_comparison,
    generate_optimization_suggestions, summarize_optimizations,
)
from .performance_predictor import analyze_chart_performance
from .recommendation_engine import RecommendationEngine
from .retry import RetryExecutor
from .statistical_analyzer import (
    DEFAULT_SIGNIFICANCE, compare_variations, generate_variations, summarize_variation,
)

logger = logging.getLogger(__name__)

RECOMMENDATION_VERSION = "3.0"
ANALYSIS_VERSION = "2.0"
PATTERN_VERSION = "1.0"

MAX_BENCHMARK_RUNS = 5
BENCHMARK_RUN_PAUSE_S = 0.5
EXPLORE_CACHE_TTL_MS = 300_000


def _metadata(started: float, clock: Callable[[], float], version_key: str, version: str,
              stamp_key: str = "analyzedAt") -> Dict[str, Any]:
    return {
        stamp_key: datetime.now(timezone.utc).isoformat(),
        version_key: version,
        "processingTime": round((clock() - started) * 1000),
    }


def _row_count(results: Optional[Dict[str, Any]]) -> int:
    return len(((results or {}).get("rows")) or [])


def _chart_config(chart: Dict[str, Any]) -> ChartConfiguration:
    config = ChartConfiguration.from_dict(chart.get("metricQuery") or {})
    config.chart_type = (chart.get("chartConfig") or {}).get("type") or config.chart_type
    config.explore_id = config.explore_id or chart.get("tableName")
    return config


class AdvisorOrchestrator:

    def __init__(
        self,
        client: Optional[AnalyticsClient] = None,
        cache: Optional[TTLCache] = None,
        retry: Optional[RetryExecutor] = None,
        clock: Callable[[], float] = time.perf_counter,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.client = client
        self.cache = cache or TTLCache()
        self.retry = retry or RetryExecutor()
        self.analyzer = DataCharacteristicsAnalyzer()
        self.interpreter = GoalInterpreter()
        self.engine = RecommendationEngine()
        self._clock = clock
        self._sleep = sleep

    # ═══════════════════════════════════════════════════════════
    # UPSTREAM ACCESS (cache → retry → client)
    # ═══════════════════════════════════════════════════════════

    def _require_client(self) -> AnalyticsClient:
        if self.client is None:
            raise AdvisorError("Analytics API is not configured (set ANALYTICS_API_URL / ANALYTICS_API_KEY)")
        return self.client

    async def _cached(self, key: str, fetch: Callable[[], Awaitable[Any]],
                      ttl_ms: Optional[int] = None) -> Any:
        hit = self.cache.get(key, MISSING)
        if hit is not MISSING:
            logger.debug(f"Cache hit: {key}")
            return hit
        value = await self.retry.run(fetch)
        self.cache.set(key, value, ttl_ms)
        return value

    async def get_chart(self, chart_uuid: str, field_path: str = "chartUuid") -> Dict[str, Any]:
        validate_uuid(chart_uuid, field_path)
        client = self._require_client()
        return await self._cached(f"chart:{chart_uuid}", lambda: client.get_saved_chart(chart_uuid))

    async def find_explore(self, explore_id: str) -> Dict[str, Any]:
        """Search every accessible project for the explore; first hit wins."""
        client = self._require_client()
        projects = await self._cached("projects", client.list_projects)

        for project in projects:
            project_uuid = project.get("projectUuid")
            key = f"explore:{project_uuid}:{explore_id}"

            async def fetch(project_uuid=project_uuid):
                return await client.get_explore(project_uuid, explore_id)

            try:
                return await self._cached(key, fetch, EXPLORE_CACHE_TTL_MS)
            except AdvisorError as e:
                logger.warning(f"Explore {explore_id} not available in project {project_uuid}: {e}")
        raise NotFoundInSearchError(f"Explore {explore_id}", "project")

    async def _timed_run(self, chart_uuid: str, invalidate_cache: bool) -> tuple:
        client = self._require_client()
        started = self._clock()
        results = await self.retry.run(lambda: client.run_saved_chart(chart_uuid, invalidate_cache))
        return round((self._clock() - started) * 1000), results

    # ═══════════════════════════════════════════════════════════
    # 1. RECOMMENDATIONS
    # ═══════════════════════════════════════════════════════════

    async def recommend(
        self,
        explore_id: Optional[str] = None,
        explore_schema: Optional[Dict[str, Any]] = None,
        business_context: Optional[str] = None,
        user_role: Optional[str] = None,
        time_range: Optional[Any] = None,
        key_metrics: Optional[List[str]] = None,
        max_recommendations: Optional[int] = None,
        include_guidance: bool = True,
    ) -> Dict[str, Any]:
        started = self._clock()
        if explore_schema is None:
            if not explore_id:
                raise ValidationError("exploreId", "Either exploreId or exploreSchema is required")
            explore_schema = await self.find_explore(explore_id)

        data = self.analyzer.analyze(explore_schema)
        goal = self.interpreter.interpret(
            business_context,
            {"timeRange": time_range, "keyMetrics": key_metrics},
            user_role,
        )
        result = self.engine.recommend(
            data, goal.goal, explore_id=explore_id,
            max_recommendations=max_recommendations, include_guidance=include_guidance,
        )
        logger.info(
            f"Recommendations for {explore_id or 'inline schema'}: "
            f"{result['summary']['totalRecommendations']} (goal={goal.goal.value})"
        )
        return {
            "exploreId": explore_id,
            "analyticalGoal": goal.to_dict(),
            "dataCharacteristics": data.to_dict(),
            **result,
            "metadata": _metadata(started, self._clock, "aiVersion", RECOMMENDATION_VERSION, "generatedAt"),
        }

    # ═══════════════════════════════════════════════════════════
    # 2. QUERY OPTIMIZATION
    # ═══════════════════════════════════════════════════════════

    def optimize_configuration(
        self,
        config: ChartConfiguration,
        execution_time_ms: float,
        row_count: int = 0,
        optimization_type: str = "performance",
        aggressiveness: str = "moderate",
        started: Optional[float] = None,
    ) -> Dict[str, Any]:
        started = self._clock() if started is None else started
        suggestions = generate_optimization_suggestions(
            config, execution_time_ms, row_count, optimization_type, aggressiveness,
        )
        optimized = build_optimized_configurations(config, suggestions, execution_time_ms)
        comparison = build_performance_comparison(config, execution_time_ms, row_count, optimized)
        return {
            "optimizationType": optimization_type,
            "aggressiveness": aggressiveness,
            "suggestions": [s.to_dict() for s in suggestions],
            "currentPerformance": comparison["current"],
            "optimizedConfigurations": optimized,
            "performanceComparison": comparison,
            "recommendations": summarize_optimizations(optimized),
            "metadata": _metadata(started, self._clock, "analysisVersion", ANALYSIS_VERSION),
        }

    async def optimize_chart(
        self,
        chart_uuid: str,
        optimization_type: str = "performance",
        aggressiveness: str = "moderate",
    ) -> Dict[str, Any]:
        started = self._clock()
        chart = await self.get_chart(chart_uuid)
        execution_ms, results = await self._timed_run(chart_uuid, invalidate_cache=False)
        result = self.optimize_configuration(
            _chart_config(chart), execution_ms, _row_count(results),
            optimization_type, aggressiveness, started=started,
        )
        return {"chartUuid": chart_uuid, "chartName": chart.get("name"), **result}

    # ═══════════════════════════════════════════════════════════
    # 3. BENCHMARKING
    # ═══════════════════════════════════════════════════════════

    def benchmark_samples(
        self,
        samples: List[Dict[str, Any]],
        significance: str = DEFAULT_SIGNIFICANCE,
    ) -> Dict[str, Any]:
        """
        Statistics over caller-measured samples. Each sample:
        {variationType, label?, isOriginal?, configuration?, executionTimes, rowCounts?}.
        """
        started = self._clock()
        variations = []
        for index, sample in enumerate(samples, start=1):
            variations.append(summarize_variation(
                variation_id=f"var_{index}",
                variation_type=sample.get("variationType", "custom"),
                label=sample.get("label") or ("Original" if sample.get("isOriginal") else "custom"),
                config=ChartConfiguration.from_dict(sample.get("configuration")),
                execution_times=sample.get("executionTimes") or [],
                row_counts=sample.get("rowCounts") or [],
                significance=significance,
                is_original=bool(sample.get("isOriginal")),
            ))
        result = compare_variations(variations)
        result["metadata"] = _metadata(started, self._clock, "analysisVersion", ANALYSIS_VERSION)
        return result

    async def benchmark_chart(
        self,
        chart_uuid: str,
        variation_types: List[str],
        test_runs: int = 3,
        significance: str = DEFAULT_SIGNIFICANCE,
    ) -> Dict[str, Any]:
        started = self._clock()
        chart = await self.get_chart(chart_uuid)
        base = _chart_config(chart)
        runs = max(1, min(test_runs, MAX_BENCHMARK_RUNS))

        variations = []
        for variation_type in variation_types:
            for variant in generate_variations(base, variation_type):
                times, rows = await self._measure(chart_uuid, runs)
                if not times:
                    logger.warning(f"No successful runs for {variation_type}/{variant['label']}, skipped")
                    continue
                variations.append(summarize_variation(
                    variation_id=f"var_{len(variations) + 1}",
                    variation_type=variation_type,
                    label=variant["label"],
                    config=variant["configuration"],
                    execution_times=times,
                    row_counts=rows,
                    significance=significance,
                    is_original=variant["isOriginal"],
                ))

        result = compare_variations(variations)
        return {
            "chartUuid": chart_uuid,
            "chartName": chart.get("name"),
            "testConfiguration": {
                "variations": list(variation_types),
                "testDuration": runs,
                "significanceLevel": significance,
            },
            **result,
            "metadata": _metadata(started, self._clock, "analysisVersion", ANALYSIS_VERSION),
        }

    async def _measure(self, chart_uuid: str, runs: int) -> tuple:
        times: List[float] = []
        rows: List[int] = []
        for run in range(runs):
            try:
                elapsed, results = await self._timed_run(chart_uuid, invalidate_cache=True)
                times.append(elapsed)
                rows.append(_row_count(results))
            except AdvisorError as e:
                logger.warning(f"Benchmark run {run + 1} for {chart_uuid} failed: {e}")
            if run < runs - 1:
                await self._sleep(BENCHMARK_RUN_PAUSE_S)
        return times, rows

    # ═══════════════════════════════════════════════════════════
    # 4. PERFORMANCE ANALYSIS
    # ═══════════════════════════════════════════════════════════

    async def analyze_chart(self, chart_uuid: str) -> Dict[str, Any]:
        started = self._clock()
        chart = await self.get_chart(chart_uuid)
        execution_ms, results = await self._timed_run(chart_uuid, invalidate_cache=False)
        config = _chart_config(chart)
        return {
            "chartUuid": chart_uuid,
            "chartName": chart.get("name"),
            "chartType": config.chart_type,
            "exploreId": chart.get("tableName"),
            "performance": analyze_chart_performance(config, execution_ms, _row_count(results)),
            "metadata": _metadata(started, self._clock, "analysisVersion", ANALYSIS_VERSION),
        }

    # ═══════════════════════════════════════════════════════════
    # 5. PATTERNS & RELATIONSHIPS
    # ═══════════════════════════════════════════════════════════

    async def _fetch_charts(self, chart_uuids: List[str]) -> List[Dict[str, Any]]:
        charts = []
        for chart_uuid in chart_uuids:
            try:
                chart = await self.get_chart(chart_uuid)
            except AdvisorError as e:
                logger.warning(f"Failed to fetch chart {chart_uuid}: {e}")
                continue
            charts.append({"uuid": chart_uuid, **chart})
        return charts

    async def extract_patterns(
        self,
        chart_uuids: Optional[List[str]] = None,
        charts: Optional[List[Dict[str, Any]]] = None,
        pattern_type: Optional[str] = None,
        min_confidence: float = chart_patterns.DEFAULT_MIN_PATTERN_CONFIDENCE,
        include_examples: bool = True,
    ) -> Dict[str, Any]:
        started = self._clock()
        if charts is None:
            charts = await self._fetch_charts(chart_uuids or [])
        total = len(chart_uuids) if chart_uuids else len(charts)
        result = chart_patterns.extract_patterns(
            charts, pattern_type=pattern_type, min_confidence=min_confidence,
            include_examples=include_examples, total_requested=total,
        )
        result["metadata"] = _metadata(started, self._clock, "analysisVersion", PATTERN_VERSION)
        return result

    async def discover_relationships(
        self,
        chart_uuid: str,
        relationship_type: str = "all",
        min_strength: float = chart_patterns.DEFAULT_MIN_STRENGTH,
        max_results: int = chart_patterns.DEFAULT_MAX_RELATIONSHIPS,
    ) -> Dict[str, Any]:
        started = self._clock()
        source = {"uuid": chart_uuid, **(await self.get_chart(chart_uuid))}
        client = self._require_client()
        project_uuid = source.get("projectUuid")
        listing = await self._cached(
            f"project-charts:{project_uuid}", lambda: client.list_project_charts(project_uuid),
        )
        others = [c.get("uuid") for c in listing if c.get("uuid") and c.get("uuid") != chart_uuid]
        candidates = await self._fetch_charts(others)

        result = chart_patterns.discover_relationships(
            source, candidates, relationship_type=relationship_type,
            min_strength=min_strength, max_results=max_results,
        )
        result["metadata"] = _metadata(started, self._clock, "analysisVersion", PATTERN_VERSION)
        return result
