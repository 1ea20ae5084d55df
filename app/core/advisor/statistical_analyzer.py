"""
Statistical Analyzer — Sample Summaries & Variant Benchmarks
==============================================================
Descriptive statistics with a t-based confidence interval, plus the
benchmark bookkeeping that compares chart variations by execution time.

Capabilities:
  1. Summary              — mean, median, sample stddev (n-1), t interval
  2. Variation Generation — query variants per benchmark variation type
  3. Variation Comparison — rank by mean time, improvement vs baseline

The t-values come from a fixed table, bucketed by degrees of freedom
(1, 2, 3, 5, 10, 20, 30, ∞) rounding down to the nearest bucket, and by the
two-sided tail probability alpha/2 ∈ {0.05, 0.025, 0.005}. Anything the
table doesn't cover falls back to t = 2.0.
"""

import copy
import logging
import math
from typing import Any, Dict, List, Optional, Sequence

from .complexity import calculate_complexity_score
from .errors import ValidationError
from .models import ChartConfiguration, ConfidenceInterval, StatisticalSummary

logger = logging.getLogger(__name__)

SIGNIFICANCE_LEVELS: Dict[str, float] = {
    "low": 0.90,
    "medium": 0.95,
    "high": 0.99,
    "very_high": 0.999,
}
DEFAULT_SIGNIFICANCE = "medium"

INFINITE_DF = math.inf
DF_BUCKETS = (1, 2, 3, 5, 10, 20, 30)

# tail probability -> df bucket -> t
T_TABLE: Dict[float, Dict[float, float]] = {
    0.05: {1: 12.706, 2: 4.303, 3: 3.182, 5: 2.571, 10: 2.228, 20: 2.086, 30: 2.042, INFINITE_DF: 1.960},
    0.025: {1: 25.452, 2: 6.205, 3: 4.177, 5: 3.163, 10: 2.634, 20: 2.423, 30: 2.390, INFINITE_DF: 2.326},
    0.005: {1: 127.32, 2: 14.089, 3: 7.453, 5: 5.208, 10: 4.144, 20: 3.552, 30: 3.385, INFINITE_DF: 3.291},
}
FALLBACK_T = 2.0

RELIABLE_SAMPLE_SIZE = 3

VARIATION_TYPES = (
    "filter_combinations",
    "field_selections",
    "aggregation_levels",
    "time_ranges",
    "limit_variations",
)


# ═══════════════════════════════════════════════════════════════
# 1. SUMMARY
# ═══════════════════════════════════════════════════════════════

def _df_bucket(df: int) -> Optional[float]:
    if df > DF_BUCKETS[-1]:
        return INFINITE_DF
    candidates = [b for b in DF_BUCKETS if b <= df]
    return candidates[-1] if candidates else None


def t_value(alpha: float, df: int) -> float:
    """Critical t for tail probability alpha/2 and df degrees of freedom."""
    tail = round(alpha / 2, 6)
    column = next((row for key, row in T_TABLE.items() if math.isclose(key, tail)), None)
    bucket = _df_bucket(df)
    if column is None or bucket is None:
        return FALLBACK_T
    return column.get(bucket, FALLBACK_T)


def median(values: Sequence[float]) -> float:
    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2 == 0:
        return (ordered[mid - 1] + ordered[mid]) / 2
    return ordered[mid]


def summarize(values: Sequence[float], significance: str = DEFAULT_SIGNIFICANCE) -> StatisticalSummary:
    if not values:
        raise ValidationError("values", "At least one measurement is required")

    n = len(values)
    level = SIGNIFICANCE_LEVELS.get(significance, SIGNIFICANCE_LEVELS[DEFAULT_SIGNIFICANCE])
    mean = sum(values) / n
    if n > 1:
        stddev = math.sqrt(sum((v - mean) ** 2 for v in values) / (n - 1))
    else:
        stddev = 0.0

    margin = t_value(1 - level, n - 1) * (stddev / math.sqrt(n))
    return StatisticalSummary(
        mean=mean,
        median=median(values),
        standard_deviation=stddev,
        confidence_interval=ConfidenceInterval(lower=mean - margin, upper=mean + margin, level=level),
        sample_size=n,
    )


# ═══════════════════════════════════════════════════════════════
# 2. VARIATION GENERATION
# ═══════════════════════════════════════════════════════════════

def _variant(config: ChartConfiguration, label: str, **changes) -> Dict[str, Any]:
    variant = copy.deepcopy(config)
    for name, value in changes.items():
        setattr(variant, name, value)
    return {"label": label, "isOriginal": label == "Original", "configuration": variant}


def generate_variations(config: ChartConfiguration, variation_type: str) -> List[Dict[str, Any]]:
    """Labelled configuration variants for one variation type; the original always comes first."""
    dims = config.dimensions
    metrics = config.metrics
    variants = [_variant(config, "Original")]

    if variation_type == "filter_combinations":
        variants += [
            _variant(config, "With limit", limit=1000),
            _variant(config, "Fewer dimensions", dimensions=dims[:3]),
        ]
    elif variation_type == "field_selections":
        variants += [
            _variant(config, "Half dimensions", dimensions=dims[:max(1, len(dims) // 2)]),
            _variant(config, "Half metrics", metrics=metrics[:max(1, len(metrics) // 2)]),
        ]
    elif variation_type == "aggregation_levels":
        variants += [
            _variant(config, "Full aggregation", dimensions=[]),
            _variant(config, "Single dimension", dimensions=dims[:1]),
        ]
    elif variation_type == "time_ranges":
        variants += [
            _variant(config, "Smaller limit", limit=500),
            _variant(config, "Larger limit", limit=2000),
        ]
    elif variation_type == "limit_variations":
        variants += [
            _variant(config, "Small limit", limit=100),
            _variant(config, "Medium limit", limit=1000),
            _variant(config, "Large limit", limit=5000),
        ]
    else:
        logger.warning(f"Unknown variation type '{variation_type}', benchmarking the original only")
    return variants


# ═══════════════════════════════════════════════════════════════
# 3. VARIATION COMPARISON
# ═══════════════════════════════════════════════════════════════

def summarize_variation(
    variation_id: str,
    variation_type: str,
    label: str,
    config: ChartConfiguration,
    execution_times: Sequence[float],
    row_counts: Sequence[int] = (),
    significance: str = DEFAULT_SIGNIFICANCE,
    is_original: bool = False,
) -> Dict[str, Any]:
    stats = summarize(execution_times, significance)
    avg_rows = sum(row_counts) / len(row_counts) if row_counts else 0
    return {
        "variationId": variation_id,
        "variationType": variation_type,
        "description": f"{variation_type.replace('_', ' ')} variation ({label})",
        "isOriginal": is_original,
        "configuration": config.to_dict(),
        "performance": {
            "executionTimes": list(execution_times),
            "averageExecutionTime": stats.mean,
            "medianExecutionTime": stats.median,
            "standardDeviation": stats.standard_deviation,
            "confidenceInterval": stats.confidence_interval.to_dict(),
            "averageRowCount": round(avg_rows),
            "complexityScore": calculate_complexity_score(config),
        },
        "statistics": {
            "sampleSize": stats.sample_size,
            "reliability": "good" if stats.sample_size >= RELIABLE_SAMPLE_SIZE else "limited",
            "variability": stats.standard_deviation / stats.mean if stats.mean else 0.0,
        },
    }


def compare_variations(variations: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Sort variations by mean execution time (fastest first) and attach a
    comparison block against the baseline: the first variation flagged as
    original, else the slowest one.
    """
    variations.sort(key=lambda v: v["performance"]["averageExecutionTime"])

    if len(variations) > 1:
        baseline = next((v for v in variations if v.get("isOriginal")), variations[-1])
        base_mean = baseline["performance"]["averageExecutionTime"]
        base_sd = baseline["performance"]["standardDeviation"]
        for v in variations:
            perf = v["performance"]
            delta = base_mean - perf["averageExecutionTime"]
            v["comparison"] = {
                "improvementPercentage": round(delta / base_mean * 100) if base_mean else 0,
                "isStatisticallySignificant": abs(delta) > perf["standardDeviation"] + base_sd,
                "confidenceLevel": perf["confidenceInterval"]["level"],
            }

    best = variations[0] if variations else None
    worst = variations[-1] if len(variations) > 1 else None
    count = len(variations)

    insights = [f"Tested {count} variations"]
    if worst:
        insights.append(
            f"Performance range: {round(best['performance']['averageExecutionTime'])}ms - "
            f"{round(worst['performance']['averageExecutionTime'])}ms"
        )
    elif best:
        insights.append("Single variation tested")
    if count:
        avg_level = sum(v["performance"]["confidenceInterval"]["level"] for v in variations) / count
        insights.append(f"Average confidence level: {round(avg_level * 100)}%")

    return {
        "variations": variations,
        "recommendations": {
            "bestPerforming": {
                "variationId": best["variationId"],
                "description": best["description"],
                "improvementPercentage": best.get("comparison", {}).get("improvementPercentage", 0),
                "averageExecutionTime": best["performance"]["averageExecutionTime"],
            } if best else None,
            "worstPerforming": {
                "variationId": worst["variationId"],
                "description": worst["description"],
                "performancePenalty": worst.get("comparison", {}).get("improvementPercentage", 0),
                "averageExecutionTime": worst["performance"]["averageExecutionTime"],
            } if worst else None,
            "statisticalInsights": insights,
        },
        "summary": {
            "totalVariationsTested": count,
            "bestPerformanceImprovement": (
                best.get("comparison", {}).get("improvementPercentage", 0) if best else 0
            ),
            "averageExecutionTime": (
                round(sum(v["performance"]["averageExecutionTime"] for v in variations) / count) if count else 0
            ),
            "statisticalReliability": (
                sum(1 for v in variations if v["statistics"]["reliability"] == "good") / count if count else 0
            ),
        },
    }
