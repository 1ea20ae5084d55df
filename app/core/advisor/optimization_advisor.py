"""
Optimization Advisor — Concrete Configuration Changes
=======================================================
Proposes optimization suggestions for a chart configuration given its observed
performance, applies the top suggestions to copies of the configuration and
predicts the outcome.

Capabilities:
  1. Suggestion Rules         — five independent rules, fixed evaluation order
  2. Optimized Configurations — top-N suggestions applied + predicted gain
  3. Configuration Similarity — chart type, shared fields, complexity distance

Rules (each appends at most one suggestion, ids opt_1.. in emission order):

  #  trigger                                              priority
  1  time > 5000ms and no dimension filters               critical
  2  time > 5000ms and rows > 10000                       high
  3  dimensions > 5 and aggressiveness != conservative    medium
  4  metrics > 8 and optimizationType == performance      medium
  5  optimizationType in {user_experience, comprehensive} low
"""

import copy
import logging
from typing import Any, Dict, List, Optional

from .complexity import calculate_complexity_score
from .models import (
    ChangeSpec, ChartConfiguration, Impact, Implementation, OptimizationSuggestion,
    Priority, SuggestionType,
)
from .performance_predictor import predict_performance

logger = logging.getLogger(__name__)

OPTIMIZATION_TYPES = ("performance", "accuracy", "comprehensive", "user_experience")
AGGRESSIVENESS_LEVELS = ("conservative", "moderate", "aggressive")

SLOW_EXECUTION_MS = 5000
LARGE_RESULT_ROWS = 10000
MAX_DIMENSIONS = 5
MAX_METRICS = 8
MAX_SUGGESTIONS = 10
DEFAULT_OPTIMIZED_COUNT = 3

SUGGESTED_ROW_LIMIT = 1000
KEPT_DIMENSIONS = 3
KEPT_METRICS = 5

DATE_RANGE_FILTER = {
    "id": "date_filter",
    "target": {"fieldId": "date_field"},
    "operator": "inThePast",
    "values": [90, "days"],
}

SIMILARITY_WEIGHTS = {"chartType": 0.3, "fields": 0.4, "complexity": 0.3}


# ═══════════════════════════════════════════════════════════════
# 1. SUGGESTION RULES
# ═══════════════════════════════════════════════════════════════

def generate_optimization_suggestions(
    config: ChartConfiguration,
    execution_time_ms: float,
    row_count: int = 0,
    optimization_type: str = "performance",
    aggressiveness: str = "moderate",
) -> List[OptimizationSuggestion]:
    suggestions: List[OptimizationSuggestion] = []

    def emit(**kwargs) -> None:
        suggestions.append(OptimizationSuggestion(id=f"opt_{len(suggestions) + 1}", **kwargs))

    if execution_time_ms > SLOW_EXECUTION_MS and config.dimension_filter_count == 0:
        emit(
            type=SuggestionType.FILTER,
            priority=Priority.CRITICAL,
            title="Add Date Range Filter",
            description="Query is scanning entire dataset. Add date range filter to limit data scope.",
            implementation=Implementation(
                changes=[ChangeSpec(
                    field="filters.dimensions",
                    current_value=None,
                    suggested_value="Add date filter (e.g., last 90 days)",
                    reason="Reduces data volume and improves performance",
                )],
                complexity="simple",
                estimated_effort="5 minutes",
            ),
            impact=Impact(
                performance_gain="60-80% faster execution",
                accuracy_impact="minimal",
                user_experience_improvement="Significantly faster loading",
                resource_savings="Reduced database load",
            ),
            confidence=0.9,
        )

    if execution_time_ms > SLOW_EXECUTION_MS and row_count > LARGE_RESULT_ROWS:
        emit(
            type=SuggestionType.LIMIT,
            priority=Priority.HIGH,
            title="Add Row Limit",
            description="Large result set impacts performance. Consider adding row limit or pagination.",
            implementation=Implementation(
                changes=[ChangeSpec(
                    field="limit",
                    current_value=config.limit,
                    suggested_value=SUGGESTED_ROW_LIMIT,
                    reason="Reduces data transfer and rendering time",
                )],
                complexity="simple",
                estimated_effort="2 minutes",
            ),
            impact=Impact(
                performance_gain="40-60% faster rendering",
                accuracy_impact="moderate",
                user_experience_improvement="Faster page load, better responsiveness",
            ),
            tradeoffs=["May not show complete dataset", "Requires pagination for full data"],
            confidence=0.85,
        )

    if config.dimension_count > MAX_DIMENSIONS and aggressiveness != "conservative":
        emit(
            type=SuggestionType.DIMENSION,
            priority=Priority.MEDIUM,
            title="Reduce Dimension Count",
            description="High number of dimensions increases query complexity. Consider using drill-down approach.",
            implementation=Implementation(
                changes=[ChangeSpec(
                    field="dimensions",
                    current_value=f"{config.dimension_count} dimensions",
                    suggested_value="Focus on 3-4 key dimensions",
                    reason="Reduces query complexity and improves performance",
                )],
                complexity="moderate",
                estimated_effort="15 minutes",
            ),
            impact=Impact(
                performance_gain="20-30% faster execution",
                accuracy_impact="none",
                user_experience_improvement="Cleaner, more focused analysis",
            ),
            tradeoffs=["Less detailed breakdown", "May require multiple charts for full analysis"],
            confidence=0.7,
        )

    if config.metric_count > MAX_METRICS and optimization_type == "performance":
        emit(
            type=SuggestionType.METRIC,
            priority=Priority.MEDIUM,
            title="Optimize Metric Selection",
            description="Large number of metrics increases processing time. Focus on key metrics.",
            implementation=Implementation(
                changes=[ChangeSpec(
                    field="metrics",
                    current_value=f"{config.metric_count} metrics",
                    suggested_value="Select 4-6 most important metrics",
                    reason="Reduces computation overhead",
                )],
                complexity="moderate",
                estimated_effort="10 minutes",
            ),
            impact=Impact(
                performance_gain="15-25% faster execution",
                accuracy_impact="minimal",
                user_experience_improvement="Faster loading, cleaner visualization",
            ),
            confidence=0.75,
        )

    if optimization_type in ("user_experience", "comprehensive"):
        emit(
            type=SuggestionType.CACHE,
            priority=Priority.LOW,
            title="Enable Result Caching",
            description="Cache results for frequently accessed charts to improve user experience.",
            implementation=Implementation(
                changes=[ChangeSpec(
                    field="caching",
                    current_value="disabled",
                    suggested_value="enabled with 1-hour TTL",
                    reason="Reduces repeated query execution",
                )],
                complexity="simple",
                estimated_effort="5 minutes",
            ),
            impact=Impact(
                performance_gain="Near-instant loading for cached results",
                accuracy_impact="minimal",
                user_experience_improvement="Much faster subsequent loads",
            ),
            tradeoffs=["Slightly stale data possible", "Requires cache management"],
            confidence=0.8,
        )

    logger.debug(f"Generated {len(suggestions)} optimization suggestions")
    return suggestions[:MAX_SUGGESTIONS]


# ═══════════════════════════════════════════════════════════════
# 2. OPTIMIZED CONFIGURATIONS
# ═══════════════════════════════════════════════════════════════

def apply_suggestion(config: ChartConfiguration, suggestion: OptimizationSuggestion) -> ChartConfiguration:
    """Return a modified deep copy; the input configuration is never touched."""
    optimized = copy.deepcopy(config)
    if suggestion.type == SuggestionType.FILTER:
        optimized.filters.dimensions.and_.append(dict(DATE_RANGE_FILTER))
    elif suggestion.type == SuggestionType.LIMIT:
        changes = suggestion.implementation.changes
        suggested = changes[0].suggested_value if changes else None
        optimized.limit = suggested if isinstance(suggested, int) else SUGGESTED_ROW_LIMIT
    elif suggestion.type == SuggestionType.DIMENSION:
        optimized.dimensions = optimized.dimensions[:KEPT_DIMENSIONS]
    elif suggestion.type == SuggestionType.METRIC:
        optimized.metrics = optimized.metrics[:KEPT_METRICS]
    return optimized


def _improvement_pct(current_ms: float, predicted_ms: float) -> int:
    if current_ms <= 0:
        return 0
    return round((current_ms - predicted_ms) / current_ms * 100)


def build_optimized_configurations(
    config: ChartConfiguration,
    suggestions: List[OptimizationSuggestion],
    current_time_ms: float,
    top_n: int = DEFAULT_OPTIMIZED_COUNT,
) -> List[Dict[str, Any]]:
    results = []
    for suggestion in suggestions[:top_n]:
        optimized = apply_suggestion(config, suggestion)
        prediction = predict_performance(optimized, baseline_ms=current_time_ms)
        complexity = calculate_complexity_score(optimized)
        results.append({
            "optimizationId": suggestion.id,
            "optimizationType": suggestion.type.value,
            "description": suggestion.description,
            "configuration": optimized.to_dict(),
            "predictions": {
                "estimatedExecutionTime": prediction.estimated_time_ms,
                "confidence": round(prediction.confidence, 4),
                "complexityScore": complexity,
                "performanceImprovement": _improvement_pct(current_time_ms, prediction.estimated_time_ms),
                "factors": prediction.factors,
            },
            "implementation": suggestion.implementation.to_dict(),
            "impact": suggestion.impact.to_dict(),
        })
    return results


def build_performance_comparison(
    config: ChartConfiguration,
    execution_time_ms: float,
    row_count: int,
    optimized: List[Dict[str, Any]],
) -> Dict[str, Any]:
    complexity = calculate_complexity_score(config)
    return {
        "current": {
            "executionTime": execution_time_ms,
            "rowCount": row_count,
            "complexityScore": complexity,
            "performanceScore": max(0, 100 - complexity),
        },
        "optimized": [
            {
                "optimizationId": o["optimizationId"],
                "estimatedExecutionTime": o["predictions"]["estimatedExecutionTime"],
                "estimatedComplexityScore": o["predictions"]["complexityScore"],
                "estimatedPerformanceScore": max(0, 100 - o["predictions"]["complexityScore"]),
                "improvementPercentage": o["predictions"]["performanceImprovement"],
            }
            for o in optimized
        ],
    }


def summarize_optimizations(optimized: List[Dict[str, Any]]) -> Dict[str, Any]:
    if not optimized:
        return {
            "primaryOptimization": None,
            "estimatedImprovementRange": "No optimizations available",
            "implementationComplexity": "unknown",
        }
    gains = [o["predictions"]["performanceImprovement"] for o in optimized]
    return {
        "primaryOptimization": optimized[0]["optimizationId"],
        "estimatedImprovementRange": f"{min(gains)}%-{max(gains)}%",
        "implementationComplexity": optimized[0]["implementation"]["complexity"],
    }


# ═══════════════════════════════════════════════════════════════
# 3. CONFIGURATION SIMILARITY
# ═══════════════════════════════════════════════════════════════

def calculate_configuration_similarity(
    config1: ChartConfiguration,
    config2: ChartConfiguration,
    weights: Optional[Dict[str, float]] = None,
) -> float:
    """Weighted similarity in [0, 1]."""
    weights = weights or SIMILARITY_WEIGHTS
    fields1 = set(config1.fields)
    fields2 = set(config2.fields)
    common = fields1 & fields2

    type_match = 1.0 if config1.chart_type == config2.chart_type else 0.0
    field_overlap = len(common) / max(len(fields1), len(fields2), 1)
    complexity_gap = abs(calculate_complexity_score(config1) - calculate_complexity_score(config2))

    return (
        weights["chartType"] * type_match
        + weights["fields"] * field_overlap
        + weights["complexity"] * (1 - complexity_gap / 100)
    )
