"""
Performance Predictor — Execution Time Estimation
===================================================
Predicts query execution time from configuration shape using multiplicative
factors applied to a baseline, and grades an observed execution.

Capabilities:
  1. Time Prediction        — baseline × composed multipliers, with confidence
  2. Performance Analysis   — 0-100 score, speed threshold, bottlenecks, fixes

Multipliers compose in a fixed order (dimensions, metrics, filters, table
calculations, custom metrics) and every triggered factor is reported so the
estimate stays explainable. Constants are calibration values with no fitted
derivation; change them only with new measurements.
"""

import logging
import math
from typing import Any, Dict, List, Optional

from .complexity import calculate_complexity_score
from .models import ChartConfiguration, PerformancePrediction

logger = logging.getLogger(__name__)

DEFAULT_BASELINE_MS = 2000
BASE_CONFIDENCE = 0.8
MIN_CONFIDENCE = 0.3
MAX_CONFIDENCE = 1.0


# ═══════════════════════════════════════════════════════════════
# 1. TIME PREDICTION
# ═══════════════════════════════════════════════════════════════

def predict_performance(
    config: ChartConfiguration,
    baseline_ms: Optional[float] = None,
) -> PerformancePrediction:
    """
    Estimate execution time for a configuration.
    Filters count dimension and/or lists only; filtering is assumed to
    shrink the scanned data, so 1-5 filters lower the estimate.
    """
    factors: List[str] = []
    multiplier = 1.0
    confidence = BASE_CONFIDENCE

    dims = config.dimension_count
    metrics = config.metric_count
    filters = config.dimension_filter_count

    if dims > 5:
        multiplier *= 1.3
        factors.append("High dimension count increases complexity")
    elif dims > 2:
        multiplier *= 1.1
        factors.append("Moderate dimension count")

    if metrics > 10:
        multiplier *= 1.4
        factors.append("High metric count increases processing time")
    elif metrics > 5:
        multiplier *= 1.2
        factors.append("Moderate metric count")

    if filters == 0:
        multiplier *= 1.8
        confidence -= 0.1
        factors.append("No filters - querying entire dataset")
    elif filters > 5:
        multiplier *= 1.1
        factors.append("Complex filtering logic")
    else:
        multiplier *= 0.8
        factors.append("Good filtering reduces data scope")

    if config.table_calculations:
        multiplier *= 1.5
        confidence -= 0.1
        factors.append("Table calculations add processing overhead")

    if config.custom_metrics:
        multiplier *= 1.3
        confidence -= 0.05
        factors.append("Custom metrics require additional computation")

    base = baseline_ms if baseline_ms and baseline_ms > 0 else DEFAULT_BASELINE_MS
    return PerformancePrediction(
        estimated_time_ms=int(math.floor(base * multiplier + 0.5)),
        confidence=max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, confidence)),
        factors=factors,
    )


# ═══════════════════════════════════════════════════════════════
# 2. OBSERVED PERFORMANCE ANALYSIS
# ═══════════════════════════════════════════════════════════════

def classify_speed(execution_time_ms: float) -> str:
    if execution_time_ms < 1000:
        return "fast"
    if execution_time_ms < 5000:
        return "moderate"
    if execution_time_ms < 15000:
        return "slow"
    return "very_slow"


def _score_observed(config: ChartConfiguration, execution_time_ms: float, row_count: int) -> int:
    score = 100
    if execution_time_ms > 15000:
        score -= 40
    elif execution_time_ms > 5000:
        score -= 25
    elif execution_time_ms > 1000:
        score -= 10

    if row_count > 10000:
        score -= 20
    elif row_count > 1000:
        score -= 10

    if config.dimension_count > 5:
        score -= 10
    if config.metric_count > 10:
        score -= 10
    if config.filter_count == 0:
        score -= 15
    return max(0, score)


def analyze_chart_performance(
    config: ChartConfiguration,
    execution_time_ms: float,
    row_count: int = 0,
) -> Dict[str, Any]:
    """Grade one observed execution: score, threshold, bottlenecks, issues."""
    score = _score_observed(config, execution_time_ms, row_count)
    bottlenecks: List[str] = []
    recommendations: List[Dict[str, str]] = []

    if execution_time_ms > 5000:
        bottlenecks.append("Query execution time exceeds 5 seconds")
        recommendations.append({
            "type": "limit",
            "priority": "high",
            "description": "Add row limit to reduce query execution time",
            "estimatedImprovement": "30-50% faster execution",
        })

    if config.filter_count == 0:
        bottlenecks.append("No filters applied - querying entire dataset")
        recommendations.append({
            "type": "filter",
            "priority": "high",
            "description": "Add date range or categorical filters to limit data scope",
            "estimatedImprovement": "50-80% faster execution",
        })

    if config.dimension_count > 5:
        bottlenecks.append("High number of dimensions may impact performance")
        recommendations.append({
            "type": "dimension",
            "priority": "medium",
            "description": "Consider reducing dimensions or using drill-down approach",
            "estimatedImprovement": "20-30% faster execution",
        })

    if row_count > 5000:
        bottlenecks.append("Large result set may impact rendering performance")
        recommendations.append({
            "type": "limit",
            "priority": "medium",
            "description": "Consider adding pagination or limiting results",
            "estimatedImprovement": "40-60% better user experience",
        })

    if score < 50:
        severity = "critical"
    elif score < 75:
        severity = "warning"
    else:
        severity = "info"

    issues = []
    for bottleneck, rec in zip(bottlenecks, recommendations):
        issues.append({
            "type": "performance",
            "severity": severity,
            "message": bottleneck,
            "suggestion": rec["description"],
        })

    return {
        "queryExecutionTime": execution_time_ms,
        "rowCount": row_count,
        "columnCount": config.dimension_count + config.metric_count + len(config.table_calculations),
        "performanceScore": score,
        "threshold": classify_speed(execution_time_ms),
        "complexityScore": calculate_complexity_score(config),
        "bottlenecks": bottlenecks,
        "recommendations": recommendations,
        "configuration": {
            "dimensionCount": config.dimension_count,
            "metricCount": config.metric_count,
            "filterCount": config.filter_count,
            "sortCount": len(config.sorts),
            "hasTableCalculations": bool(config.table_calculations),
            "hasCustomMetrics": bool(config.custom_metrics),
        },
        "quality": {"score": score, "issues": issues},
    }
