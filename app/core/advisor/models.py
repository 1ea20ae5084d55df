"""
Advisor Data Model — Tagged Records for Every Engine Entity
=============================================================
Explicit dataclasses for schemas, chart configurations, scores, predictions,
suggestions and statistics. Absent input fields become constructor defaults
here, so engine code never null-coalesces at the use site.

Every output record has `to_dict()` emitting the camelCase field names of the
public JSON contract. Input records have `from_dict()` that tolerates missing
keys and accepts both the advisor shape (`chartType`, `tableCalculations`)
and the analytics platform's saved-chart `metricQuery` shape.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════
# ENUMS
# ═══════════════════════════════════════════════════════════════

class FieldKind(str, Enum):
    TEMPORAL = "temporal"
    CATEGORICAL = "categorical"
    NUMERIC = "numeric"


class AnalyticalGoal(str, Enum):
    TREND_ANALYSIS = "trend_analysis"
    COMPARISON = "comparison"
    DISTRIBUTION = "distribution"
    PERFORMANCE_TRACKING = "performance_tracking"
    CUSTOM = "custom"

    @classmethod
    def parse(cls, value: Any) -> "AnalyticalGoal":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.CUSTOM


class ConfidenceBand(str, Enum):
    VERY_LOW = "very_low"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very_high"


class SuggestionType(str, Enum):
    FILTER = "filter"
    LIMIT = "limit"
    DIMENSION = "dimension"
    METRIC = "metric"
    CACHE = "cache"


class Priority(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# ═══════════════════════════════════════════════════════════════
# SCHEMA & CHARACTERISTICS
# ═══════════════════════════════════════════════════════════════

@dataclass
class FieldSchema:
    """One named field of an explore table."""
    table: str
    name: str
    declared_type: str = "string"

    @property
    def field_id(self) -> str:
        return f"{self.table}_{self.name}"


@dataclass
class Relationship:
    field1: str
    field2: str
    strength: float
    kind: str            # temporal_trend | categorical_breakdown

    def to_dict(self) -> Dict[str, Any]:
        return {
            "field1": self.field1,
            "field2": self.field2,
            "strength": self.strength,
            "type": self.kind,
        }


@dataclass
class DataCharacteristics:
    """Field classification of a schema. The three field lists never overlap."""
    data_types: Dict[str, str] = field(default_factory=dict)
    cardinality: Dict[str, int] = field(default_factory=dict)
    temporal_fields: List[str] = field(default_factory=list)
    categorical_fields: List[str] = field(default_factory=list)
    numeric_fields: List[str] = field(default_factory=list)
    relationships: List[Relationship] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

    def kind_of(self, field_id: str) -> Optional[FieldKind]:
        if field_id in self.temporal_fields:
            return FieldKind.TEMPORAL
        if field_id in self.categorical_fields:
            return FieldKind.CATEGORICAL
        if field_id in self.numeric_fields:
            return FieldKind.NUMERIC
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dataTypes": dict(self.data_types),
            "cardinality": dict(self.cardinality),
            "temporalFields": list(self.temporal_fields),
            "categoricalFields": list(self.categorical_fields),
            "numericFields": list(self.numeric_fields),
            "relationships": [r.to_dict() for r in self.relationships],
            "recommendations": list(self.recommendations),
        }


# ═══════════════════════════════════════════════════════════════
# CHART CONFIGURATION
# ═══════════════════════════════════════════════════════════════

@dataclass
class FilterGroup:
    and_: List[Any] = field(default_factory=list)
    or_: List[Any] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.and_) + len(self.or_)

    @classmethod
    def from_dict(cls, raw: Any) -> "FilterGroup":
        if not isinstance(raw, dict):
            return cls()
        return cls(and_=list(raw.get("and") or []), or_=list(raw.get("or") or []))

    def to_dict(self) -> Dict[str, Any]:
        return {"and": list(self.and_), "or": list(self.or_)}


@dataclass
class ChartFilters:
    dimensions: FilterGroup = field(default_factory=FilterGroup)
    metrics: FilterGroup = field(default_factory=FilterGroup)

    @classmethod
    def from_raw(cls, raw: Any) -> "ChartFilters":
        # Older saved charts carry a flat list; treat it as dimension AND filters
        if isinstance(raw, list):
            return cls(dimensions=FilterGroup(and_=list(raw)))
        if not isinstance(raw, dict):
            return cls()
        return cls(
            dimensions=FilterGroup.from_dict(raw.get("dimensions")),
            metrics=FilterGroup.from_dict(raw.get("metrics")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"dimensions": self.dimensions.to_dict(), "metrics": self.metrics.to_dict()}


@dataclass
class SortSpec:
    field_id: str
    descending: bool = False

    @classmethod
    def from_dict(cls, raw: Any) -> "SortSpec":
        if isinstance(raw, str):
            return cls(field_id=raw)
        return cls(field_id=str(raw.get("fieldId", "")), descending=bool(raw.get("descending", False)))

    def to_dict(self) -> Dict[str, Any]:
        return {"fieldId": self.field_id, "descending": self.descending}


@dataclass
class ChartConfiguration:
    """A chart/query configuration: fields, filters, sorts and extras."""
    chart_type: str = "table"
    dimensions: List[str] = field(default_factory=list)
    metrics: List[str] = field(default_factory=list)
    filters: ChartFilters = field(default_factory=ChartFilters)
    sorts: List[SortSpec] = field(default_factory=list)
    limit: Optional[int] = None
    table_calculations: List[Any] = field(default_factory=list)
    custom_metrics: List[Any] = field(default_factory=list)
    explore_id: Optional[str] = None

    @property
    def dimension_count(self) -> int:
        return len(self.dimensions)

    @property
    def metric_count(self) -> int:
        return len(self.metrics)

    @property
    def dimension_filter_count(self) -> int:
        return len(self.filters.dimensions)

    @property
    def filter_count(self) -> int:
        return len(self.filters.dimensions) + len(self.filters.metrics)

    @property
    def fields(self) -> List[str]:
        return list(self.dimensions) + list(self.metrics)

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]) -> "ChartConfiguration":
        """Build from an advisor config dict or a saved chart's metricQuery."""
        raw = raw or {}
        limit = raw.get("limit")
        return cls(
            chart_type=str(raw.get("chartType") or raw.get("chart_type") or "table"),
            dimensions=list(raw.get("dimensions") or []),
            metrics=list(raw.get("metrics") or []),
            filters=ChartFilters.from_raw(raw.get("filters")),
            sorts=[SortSpec.from_dict(s) for s in raw.get("sorts") or []],
            limit=int(limit) if limit is not None else None,
            table_calculations=list(raw.get("tableCalculations") or raw.get("table_calculations") or []),
            custom_metrics=list(raw.get("customMetrics") or raw.get("custom_metrics") or []),
            explore_id=raw.get("exploreId") or raw.get("exploreName"),
        )

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "chartType": self.chart_type,
            "dimensions": list(self.dimensions),
            "metrics": list(self.metrics),
            "filters": self.filters.to_dict(),
            "sorts": [s.to_dict() for s in self.sorts],
            "limit": self.limit,
            "tableCalculations": list(self.table_calculations),
            "customMetrics": list(self.custom_metrics),
        }
        if self.explore_id:
            result["exploreId"] = self.explore_id
        return result


# ═══════════════════════════════════════════════════════════════
# SCORING & PREDICTION RESULTS
# ═══════════════════════════════════════════════════════════════

@dataclass
class GoalInterpretation:
    goal: AnalyticalGoal = AnalyticalGoal.CUSTOM
    confidence: float = 0.5
    reasoning: str = "No specific business question provided"
    suggested_approaches: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "goal": self.goal.value,
            "confidence": round(self.confidence, 4),
            "reasoning": self.reasoning,
            "suggestedApproaches": list(self.suggested_approaches),
        }


@dataclass
class RecommendationScore:
    score: float
    confidence_band: ConfidenceBand
    factors: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": round(self.score, 4),
            "confidence": self.confidence_band.value,
            "factors": {k: round(v, 4) for k, v in self.factors.items()},
        }


@dataclass
class PerformancePrediction:
    estimated_time_ms: int
    confidence: float
    factors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "estimatedTime": self.estimated_time_ms,
            "confidence": round(self.confidence, 4),
            "factors": list(self.factors),
        }


@dataclass
class ChangeSpec:
    field: str
    current_value: Any
    suggested_value: Any
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "field": self.field,
            "currentValue": self.current_value,
            "suggestedValue": self.suggested_value,
            "reason": self.reason,
        }


@dataclass
class Implementation:
    changes: List[ChangeSpec] = field(default_factory=list)
    complexity: str = "simple"          # simple | moderate | complex
    estimated_effort: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "changes": [c.to_dict() for c in self.changes],
            "complexity": self.complexity,
            "estimatedEffort": self.estimated_effort,
        }


@dataclass
class Impact:
    performance_gain: str
    accuracy_impact: str
    user_experience_improvement: str
    resource_savings: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "performanceGain": self.performance_gain,
            "accuracyImpact": self.accuracy_impact,
            "userExperienceImprovement": self.user_experience_improvement,
        }
        if self.resource_savings:
            result["resourceSavings"] = self.resource_savings
        return result


@dataclass
class OptimizationSuggestion:
    id: str
    type: SuggestionType
    priority: Priority
    title: str
    description: str
    implementation: Implementation
    impact: Impact
    confidence: float
    tradeoffs: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "id": self.id,
            "type": self.type.value,
            "priority": self.priority.value,
            "title": self.title,
            "description": self.description,
            "implementation": self.implementation.to_dict(),
            "impact": self.impact.to_dict(),
            "confidence": self.confidence,
        }
        if self.tradeoffs:
            result["tradeoffs"] = list(self.tradeoffs)
        return result


@dataclass
class ConfidenceInterval:
    lower: float
    upper: float
    level: float

    def to_dict(self) -> Dict[str, Any]:
        return {"lower": self.lower, "upper": self.upper, "level": self.level}


@dataclass
class StatisticalSummary:
    mean: float
    median: float
    standard_deviation: float
    confidence_interval: ConfidenceInterval
    sample_size: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mean": self.mean,
            "median": self.median,
            "standardDeviation": self.standard_deviation,
            "confidenceInterval": self.confidence_interval.to_dict(),
            "sampleSize": self.sample_size,
        }
