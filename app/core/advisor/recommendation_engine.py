"""
Recommendation Engine — Ranked Chart Recommendations
======================================================
Turns data characteristics + an analytical goal into ranked, documented chart
recommendations. Each recommendation includes WHY (reasoning), WHAT (chart
configuration) and HOW (implementation guidance).

Pipeline:
  1. Candidate Generation  — one configuration per chart type the data supports
  2. Scoring               — RecommendationScorer per candidate
  3. Filtering & Ranking   — drop score < 0.3, sort descending, cap the count
  4. Documentation         — recommendation documents + summary
"""

import logging
import math
from typing import Any, Dict, List, Optional

from .models import AnalyticalGoal, ChartConfiguration, DataCharacteristics, RecommendationScore
from .recommendation_scorer import RecommendationScorer

logger = logging.getLogger(__name__)

CANDIDATE_CHART_TYPES = ("line", "bar", "table", "pie", "scatter", "area")
MIN_RECOMMENDATION_SCORE = 0.3
DEFAULT_MAX_RECOMMENDATIONS = 10
MAX_RECOMMENDATIONS_CAP = 15
MINUTES_PER_RECOMMENDATION = 5


# ═══════════════════════════════════════════════════════════════
# 1. CANDIDATE GENERATION
# ═══════════════════════════════════════════════════════════════

def build_candidate(chart_type: str, data: DataCharacteristics,
                    explore_id: Optional[str] = None) -> Optional[ChartConfiguration]:
    """Field selection for one chart type, or None when the data can't support it."""
    temporal = data.temporal_fields
    categorical = data.categorical_fields
    numeric = data.numeric_fields
    config = ChartConfiguration(chart_type=chart_type, explore_id=explore_id)

    if chart_type == "line" and temporal:
        config.dimensions = [temporal[0]]
        config.metrics = numeric[:2]
    elif chart_type == "bar" and categorical:
        config.dimensions = categorical[:2]
        config.metrics = numeric[:1]
    elif chart_type == "table":
        config.dimensions = categorical[:3]
        config.metrics = numeric[:3]
    elif chart_type == "pie" and categorical and numeric:
        config.dimensions = [categorical[0]]
        config.metrics = [numeric[0]]
    elif chart_type == "scatter" and len(numeric) >= 2:
        config.metrics = numeric[:2]
        if categorical:
            config.dimensions = [categorical[0]]
    else:
        return None
    return config


class RecommendationEngine:

    def __init__(self, scorer: Optional[RecommendationScorer] = None):
        self.scorer = scorer or RecommendationScorer()

    # ──────────────────────────────────────────────────────────
    # 2-3. SCORE, FILTER, RANK
    # ──────────────────────────────────────────────────────────

    def rank_candidates(
        self,
        candidates: List[ChartConfiguration],
        data: DataCharacteristics,
        goal: AnalyticalGoal,
    ) -> List[tuple]:
        """Score every candidate; keep those >= 0.3, best first."""
        scored = []
        for config in candidates:
            result = self.scorer.score(config, data, goal)
            if result.score < MIN_RECOMMENDATION_SCORE:
                logger.debug(f"Discarded {config.chart_type} candidate (score={result.score:.3f})")
                continue
            scored.append((config, result))
        scored.sort(key=lambda pair: pair[1].score, reverse=True)
        return scored

    def recommend(
        self,
        data: DataCharacteristics,
        goal: AnalyticalGoal,
        explore_id: Optional[str] = None,
        max_recommendations: Optional[int] = None,
        include_guidance: bool = False,
    ) -> Dict[str, Any]:
        limit = min(max_recommendations or DEFAULT_MAX_RECOMMENDATIONS, MAX_RECOMMENDATIONS_CAP)
        candidates = [
            c for c in (build_candidate(t, data, explore_id) for t in CANDIDATE_CHART_TYPES)
            if c is not None
        ]
        ranked = self.rank_candidates(candidates, data, goal)[:limit]

        recommendations = [
            self._document(i, config, result, data, goal, include_guidance)
            for i, (config, result) in enumerate(ranked, start=1)
        ]
        return {
            "recommendations": recommendations,
            "summary": self._summarize(recommendations),
        }

    # ──────────────────────────────────────────────────────────
    # 4. DOCUMENTATION
    # ──────────────────────────────────────────────────────────

    def _document(
        self,
        index: int,
        config: ChartConfiguration,
        result: RecommendationScore,
        data: DataCharacteristics,
        goal: AnalyticalGoal,
        include_guidance: bool,
    ) -> Dict[str, Any]:
        chart_type = config.chart_type
        goal_name = AnalyticalGoal(goal).value
        doc = {
            "recommendationId": f"rec_{index}",
            "title": f"{chart_type.capitalize()} Chart Analysis",
            "description": f"{chart_type} visualization optimized for {goal_name} analysis",
            "analyticalGoal": goal_name,
            "confidence": result.confidence_band.value,
            "confidenceScore": round(result.score, 4),
            "factors": {k: round(v, 4) for k, v in result.factors.items()},
            "reasoning": {
                "type": "pattern_based",
                "explanation": (
                    f"This {chart_type} chart is recommended based on your {goal_name} goal "
                    f"and the available data characteristics"
                ),
                "supportingEvidence": [
                    f"Chart type {chart_type} aligns well with {goal_name} analysis",
                    f"Available data includes {len(data.numeric_fields)} metrics and "
                    f"{len(data.categorical_fields)} dimensions",
                    "Data characteristics support this visualization approach",
                ],
                "dataCharacteristics": list(data.recommendations),
            },
            "chartConfiguration": config.to_dict(),
            "expectedOutcomes": {
                "insights": [
                    f"Understand {goal_name} patterns in your data",
                    "Identify key trends and relationships",
                    "Make data-driven decisions based on the analysis",
                ],
                "businessValue": f"Enables better {goal_name} understanding and decision-making",
                "useCases": [
                    "Regular reporting and monitoring",
                    "Ad-hoc analysis and exploration",
                    "Presentation to stakeholders",
                ],
            },
            "alternatives": [
                {
                    "title": "Alternative Chart Type",
                    "description": "Consider other visualization types based on your specific needs",
                    "tradeoffs": ["Different visual emphasis", "Varying complexity levels"],
                },
            ],
        }
        if include_guidance:
            doc["implementationGuidance"] = self._guidance(config)
        return doc

    @staticmethod
    def _guidance(config: ChartConfiguration) -> Dict[str, Any]:
        field_count = config.dimension_count + config.metric_count
        if field_count <= 4:
            complexity = "simple"
        elif field_count <= 7:
            complexity = "moderate"
        else:
            complexity = "complex"
        source = config.explore_id or "selected"
        return {
            "steps": [
                {"stepNumber": 1, "title": "Select Explore",
                 "description": f"Choose the {source} explore as your data source",
                 "estimatedTime": "1 minute"},
                {"stepNumber": 2, "title": "Configure Fields",
                 "description": "Add the recommended dimensions and metrics to your chart",
                 "estimatedTime": "2-3 minutes"},
                {"stepNumber": 3, "title": "Set Chart Type",
                 "description": f"Select {config.chart_type} as your visualization type",
                 "estimatedTime": "30 seconds"},
                {"stepNumber": 4, "title": "Apply Filters",
                 "description": "Add relevant filters to focus your analysis",
                 "estimatedTime": "1-2 minutes"},
            ],
            "complexity": complexity,
            "prerequisites": ["Access to the explore", "Understanding of the business context"],
            "tips": [
                "Start with fewer fields and add more as needed",
                "Use filters to focus on relevant data",
                "Consider your audience when choosing chart types",
            ],
        }

    @staticmethod
    def _summarize(recommendations: List[Dict[str, Any]]) -> Dict[str, Any]:
        type_counts: Dict[str, int] = {}
        for rec in recommendations:
            chart_type = rec["chartConfiguration"]["chartType"]
            type_counts[chart_type] = type_counts.get(chart_type, 0) + 1
        total = len(recommendations)
        return {
            "totalRecommendations": total,
            "averageConfidence": (
                round(sum(r["confidenceScore"] for r in recommendations) / total, 4) if total else 0
            ),
            "recommendationTypes": type_counts,
            "estimatedImplementationTime": f"{math.ceil(total * MINUTES_PER_RECOMMENDATION)} minutes",
        }
