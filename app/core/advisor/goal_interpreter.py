"""
Goal Interpreter — Business Question → Analytical Goal
========================================================
Maps a free-text business question onto one of the analytical goals with a
confidence, a short reasoning and suggested charting approaches.

Keyword groups are an ordered rule table; the first group with any keyword
present in the lowercased question wins and no later group is consulted:

  1. trend words        → trend_analysis        (0.90)
  2. comparison words   → comparison            (0.85)
  3. performance words  → performance_tracking  (0.80)
  (none)                → custom                (0.50)

Then context boosts (time range, key metrics) and a per-role adjustment are
applied, clamped to [0.1, 0.95].

Usage:
  interpreter = GoalInterpreter()
  result = interpreter.interpret("How has revenue changed over time?")
  # → GoalInterpretation(goal=trend_analysis, confidence=0.9, ...)
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from .models import AnalyticalGoal, GoalInterpretation

logger = logging.getLogger(__name__)

MIN_CONFIDENCE = 0.1
MAX_CONFIDENCE = 0.95
CONTEXT_BOOST = 0.1


@dataclass(frozen=True)
class GoalRule:
    goal: AnalyticalGoal
    keywords: Tuple[str, ...]
    confidence: float
    reasoning: str
    approaches: Tuple[str, ...]

    def matches(self, question: str) -> bool:
        return any(k in question for k in self.keywords)


GOAL_RULES: List[GoalRule] = [
    GoalRule(
        goal=AnalyticalGoal.TREND_ANALYSIS,
        keywords=("trend", "over time", "growth", "decline", "change", "evolution"),
        confidence=0.9,
        reasoning="Question indicates interest in temporal patterns and changes",
        approaches=(
            "Use line charts with time dimensions",
            "Include moving averages for smoother trends",
            "Consider year-over-year comparisons",
        ),
    ),
    GoalRule(
        goal=AnalyticalGoal.COMPARISON,
        keywords=("compare", "versus", "vs", "difference", "better", "worse"),
        confidence=0.85,
        reasoning="Question focuses on comparing different segments or categories",
        approaches=(
            "Use bar charts for categorical comparisons",
            "Consider side-by-side visualizations",
            "Include percentage differences",
        ),
    ),
    GoalRule(
        goal=AnalyticalGoal.PERFORMANCE_TRACKING,
        keywords=("performance", "kpi", "metric", "target", "goal", "benchmark"),
        confidence=0.8,
        reasoning="Question relates to monitoring and measuring performance",
        approaches=(
            "Create KPI dashboards with key metrics",
            "Include target lines or benchmarks",
            "Use color coding for performance indicators",
        ),
    ),
]

ROLE_ADJUSTMENTS: Dict[str, float] = {
    "analyst": 0.05,
    "data_scientist": 0.10,
    "business_user": -0.05,
    "executive": 0.0,
}

DEFAULT_APPROACHES = ["Explore data with basic visualizations"]


class GoalInterpreter:

    def __init__(self, rules: Optional[List[GoalRule]] = None,
                 role_adjustments: Optional[Dict[str, float]] = None):
        self.rules = rules if rules is not None else GOAL_RULES
        self.role_adjustments = role_adjustments if role_adjustments is not None else ROLE_ADJUSTMENTS

    def interpret(
        self,
        business_question: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        user_role: Optional[str] = None,
    ) -> GoalInterpretation:
        result = GoalInterpretation(suggested_approaches=list(DEFAULT_APPROACHES))
        if not business_question:
            return result

        question = business_question.lower()
        for rule in self.rules:
            if rule.matches(question):
                result.goal = rule.goal
                result.confidence = rule.confidence
                result.reasoning = rule.reasoning
                result.suggested_approaches = list(rule.approaches)
                break
        else:
            result.reasoning = "No recognizable analytical intent in the business question"

        context = context or {}
        if context.get("timeRange") and result.goal == AnalyticalGoal.TREND_ANALYSIS:
            result.confidence = min(MAX_CONFIDENCE, result.confidence + CONTEXT_BOOST)
        if context.get("keyMetrics") and result.goal == AnalyticalGoal.PERFORMANCE_TRACKING:
            result.confidence = min(MAX_CONFIDENCE, result.confidence + CONTEXT_BOOST)

        return self._apply_role(result, user_role)

    def _apply_role(self, result: GoalInterpretation, user_role: Optional[str]) -> GoalInterpretation:
        if user_role:
            adjustment = self.role_adjustments.get(user_role, 0.0)
            result.confidence = max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, result.confidence + adjustment))
        return result
