"""
Chart Pattern Analyzer — Reusable Patterns & Chart Relationships
==================================================================
Pure analysis over saved-chart records (the platform's `/saved/{uuid}`
payload: uuid, name, tableName, metricQuery, chartConfig).

Capabilities:
  1. Pattern Extraction      — group by explore, find fields shared by at
                               least half the group, type the pattern
  2. Relationship Discovery  — strength from shared explore (0.3), shared
                               metrics (ratio × 0.4), shared dimensions
                               (ratio × 0.3); change-risk grading

Both scans are best-effort: a malformed record is logged and skipped so
the rest of the batch still produces results.
"""

import logging
import math
from collections import Counter
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

MIN_CHARTS_PER_PATTERN = 2
COMMON_FIELD_RATIO = 0.5
DEFAULT_MIN_PATTERN_CONFIDENCE = 0.7
MAX_PATTERN_EXAMPLES = 3

SHARED_EXPLORE_WEIGHT = 0.3
SHARED_METRICS_WEIGHT = 0.4
SHARED_DIMENSIONS_WEIGHT = 0.3
DEFAULT_MIN_STRENGTH = 0.3
DEFAULT_MAX_RELATIONSHIPS = 25
RELATIONSHIP_TYPES = ("shared_explore", "shared_metrics", "shared_dimensions")


class ChartRecord:
    """Normalized view of one saved chart."""

    def __init__(self, raw: Dict[str, Any]):
        if not isinstance(raw, dict):
            raise ValueError(f"chart record must be an object, got {type(raw).__name__}")
        query = raw.get("metricQuery") or {}
        self.uuid = raw.get("uuid")
        self.name = raw.get("name")
        self.explore_id = raw.get("tableName") or query.get("exploreName")
        self.metrics: List[str] = list(query.get("metrics") or [])
        self.dimensions: List[str] = list(query.get("dimensions") or [])
        self.chart_type = (raw.get("chartConfig") or {}).get("type") or "table"


def _load_records(charts: List[Dict[str, Any]]) -> List[ChartRecord]:
    records = []
    for index, raw in enumerate(charts):
        try:
            records.append(ChartRecord(raw))
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Skipping chart #{index}: {e}")
    return records


# ═══════════════════════════════════════════════════════════════
# 1. PATTERN EXTRACTION
# ═══════════════════════════════════════════════════════════════

def classify_pattern(common_dimensions: List[str], common_metrics: List[str]) -> str:
    if any("date" in d or "time" in d for d in common_dimensions):
        return "time_series"
    if len(common_metrics) == 1 and common_dimensions:
        return "metric_breakdown"
    if len(common_metrics) > 1:
        return "comparison"
    return "custom"


def _common(groups: List[List[str]], threshold: int) -> List[str]:
    counts = Counter(f for fields in groups for f in dict.fromkeys(fields))
    return [f for f, count in counts.items() if count >= threshold]


def extract_patterns(
    charts: List[Dict[str, Any]],
    pattern_type: Optional[str] = None,
    min_confidence: float = DEFAULT_MIN_PATTERN_CONFIDENCE,
    include_examples: bool = True,
    total_requested: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Find explore-level patterns. Confidence is the share of requested charts
    that belong to the explore group; groups below min_confidence are dropped.
    """
    records = _load_records(charts)
    total = total_requested or len(charts) or 1

    groups: Dict[str, List[ChartRecord]] = {}
    for record in records:
        groups.setdefault(record.explore_id, []).append(record)

    patterns = []
    for explore_id, members in groups.items():
        if len(members) < MIN_CHARTS_PER_PATTERN:
            continue
        threshold = math.ceil(len(members) * COMMON_FIELD_RATIO)
        common_metrics = _common([m.metrics for m in members], threshold)
        common_dimensions = _common([m.dimensions for m in members], threshold)
        if not common_metrics and not common_dimensions:
            continue

        kind = classify_pattern(common_dimensions, common_metrics)
        if pattern_type and kind != pattern_type:
            continue

        confidence = len(members) / total
        if confidence < min_confidence:
            continue

        chart_type = Counter(m.chart_type for m in members).most_common(1)[0][0]
        patterns.append({
            "patternId": f"pattern_{len(patterns) + 1}",
            "patternType": kind,
            "name": f"{explore_id} {kind.replace('_', ' ')} pattern",
            "description": (
                f"Common pattern using {len(common_metrics)} metrics and "
                f"{len(common_dimensions)} dimensions from {explore_id}"
            ),
            "frequency": len(members),
            "confidence": confidence,
            "template": {
                "exploreId": explore_id,
                "dimensions": common_dimensions,
                "metrics": common_metrics,
                "filters": [],
                "sorts": [],
                "chartConfig": {"type": chart_type, "options": {}},
            },
            "examples": [
                {"chartUuid": m.uuid, "chartName": m.name, "similarity": confidence}
                for m in members[:MAX_PATTERN_EXAMPLES]
            ] if include_examples else [],
            "sourceChartCount": len(members),
        })

    return {
        "patterns": patterns,
        "summary": {
            "totalChartsAnalyzed": len(records),
            "patternsFound": len(patterns),
            "exploresAnalyzed": len(groups),
            "averageConfidence": (
                sum(p["confidence"] for p in patterns) / len(patterns) if patterns else 0
            ),
        },
    }


# ═══════════════════════════════════════════════════════════════
# 2. RELATIONSHIP DISCOVERY
# ═══════════════════════════════════════════════════════════════

def change_risk(strength: float) -> str:
    if strength > 0.7:
        return "high"
    if strength > 0.4:
        return "medium"
    return "low"


def relate(source: ChartRecord, other: ChartRecord) -> Dict[str, Any]:
    strength = 0.0
    kinds: List[str] = []
    common: Dict[str, Any] = {"sharedMetrics": [], "sharedDimensions": []}

    if source.explore_id and source.explore_id == other.explore_id:
        strength += SHARED_EXPLORE_WEIGHT
        kinds.append("shared_explore")
        common["exploreId"] = source.explore_id

    shared_metrics = [m for m in source.metrics if m in other.metrics]
    if shared_metrics:
        strength += len(shared_metrics) / max(len(source.metrics), len(other.metrics)) * SHARED_METRICS_WEIGHT
        kinds.append("shared_metrics")
        common["sharedMetrics"] = shared_metrics

    shared_dims = [d for d in source.dimensions if d in other.dimensions]
    if shared_dims:
        strength += len(shared_dims) / max(len(source.dimensions), len(other.dimensions)) * SHARED_DIMENSIONS_WEIGHT
        kinds.append("shared_dimensions")
        common["sharedDimensions"] = shared_dims

    return {"strength": strength, "kinds": kinds, "commonElements": common}


def discover_relationships(
    source: Dict[str, Any],
    candidates: List[Dict[str, Any]],
    relationship_type: str = "all",
    min_strength: float = DEFAULT_MIN_STRENGTH,
    max_results: int = DEFAULT_MAX_RELATIONSHIPS,
) -> Dict[str, Any]:
    source_record = ChartRecord(source)
    relationships = []

    for other in _load_records(candidates):
        if other.uuid and other.uuid == source_record.uuid:
            continue
        result = relate(source_record, other)
        if relationship_type != "all" and relationship_type not in result["kinds"]:
            continue
        if result["strength"] < min_strength:
            continue
        strength = result["strength"]
        relationships.append({
            "relatedChartUuid": other.uuid,
            "relatedChartName": other.name,
            "relationshipType": result["kinds"][0] if result["kinds"] else "shared_explore",
            "strength": round(strength, 2),
            "commonElements": result["commonElements"],
            "impactAnalysis": {
                "changeRisk": change_risk(strength),
                "dependentCharts": len(result["kinds"]),
            },
        })

    relationships.sort(key=lambda r: r["strength"], reverse=True)
    relationships = relationships[:max_results]
    return {
        "sourceChartUuid": source_record.uuid,
        "relationships": relationships,
        "summary": {
            "totalRelatedCharts": len(relationships),
            "strongRelationships": sum(1 for r in relationships if r["strength"] > 0.6),
            "weakRelationships": sum(1 for r in relationships if r["strength"] <= 0.4),
            "criticalDependencies": sum(
                1 for r in relationships if r["impactAnalysis"]["changeRisk"] == "high"
            ),
        },
    }
