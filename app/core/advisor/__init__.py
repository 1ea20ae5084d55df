"""
Chart Advisor — Core Module
============================
Heuristic analytics advisor: classifies explore fields, infers the analytical
goal behind a business question, scores candidate charts, predicts query cost
and proposes concrete optimizations. All "AI" behavior is deterministic rule
evaluation.

Components:
  ┌──────────────────────────────────────────────────────────┐
  │ AdvisorOrchestrator       — Single entry, upstream-aware │
  │ DataCharacteristicsAnal.  — Schema field classification  │
  │ GoalInterpreter           — Question → analytical goal   │
  │ RecommendationScorer      — 6-factor weighted chart fit  │
  │ RecommendationEngine      — Candidates, ranking, docs    │
  │ calculate_complexity_score— Bounded 0-100 query cost     │
  │ predict_performance       — Execution time estimate      │
  │ optimization_advisor      — Suggestions + similarity     │
  │ statistical_analyzer      — Summaries + benchmarks       │
  │ chart_patterns            — Patterns + relationships     │
  │ TTLCache                  — Upstream result cache        │
  │ RetryExecutor             — Exponential backoff          │
  │ AnalyticsClient           — httpx REST client            │
  └──────────────────────────────────────────────────────────┘

Usage:
  # Full pipeline:
  from app.core.advisor import AdvisorOrchestrator
  orchestrator = AdvisorOrchestrator(client=AnalyticsClient.from_settings())
  result = await orchestrator.recommend(explore_id="orders", business_context="...")

  # Individual components:
  from app.core.advisor import DataCharacteristicsAnalyzer, RecommendationScorer
"""

# Data model & errors
from .models import (
    AnalyticalGoal,
    ChartConfiguration,
    ConfidenceBand,
    DataCharacteristics,
    GoalInterpretation,
    OptimizationSuggestion,
    PerformancePrediction,
    RecommendationScore,
    StatisticalSummary,
)
from .errors import (
    AdvisorError,
    NotFoundInSearchError,
    RetryExhaustedError,
    UpstreamAPIError,
    UpstreamHTTPError,
    ValidationError,
)

# Pure engine
from .complexity import calculate_complexity_score
from .performance_predictor import predict_performance, analyze_chart_performance
from .data_characteristics import DataCharacteristicsAnalyzer
from .goal_interpreter import GoalInterpreter
from .recommendation_scorer import RecommendationScorer
from .recommendation_engine import RecommendationEngine
from .optimization_advisor import (
    generate_optimization_suggestions,
    calculate_configuration_similarity,
)
from .statistical_analyzer import summarize

# Resilience & upstream
from .cache import TTLCache
from .retry import RetryConfig, RetryExecutor, with_retry
from .client import AnalyticsClient
from .orchestrator import AdvisorOrchestrator

__all__ = [
    "AdvisorOrchestrator",
    "AnalyticsClient",
    "TTLCache",
    "RetryConfig", "RetryExecutor", "with_retry",
    "DataCharacteristicsAnalyzer",
    "GoalInterpreter",
    "RecommendationScorer",
    "RecommendationEngine",
    "calculate_complexity_score",
    "predict_performance", "analyze_chart_performance",
    "generate_optimization_suggestions", "calculate_configuration_similarity",
    "summarize",
    # ── Data model ──
    "AnalyticalGoal", "ChartConfiguration", "ConfidenceBand", "DataCharacteristics",
    "GoalInterpretation", "OptimizationSuggestion", "PerformancePrediction",
    "RecommendationScore", "StatisticalSummary",
    # ── Errors ──
    "AdvisorError", "ValidationError", "UpstreamHTTPError", "UpstreamAPIError",
    "RetryExhaustedError", "NotFoundInSearchError",
]
