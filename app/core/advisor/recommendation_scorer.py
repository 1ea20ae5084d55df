"""
Recommendation Scorer — Weighted Multi-Factor Chart Fit
=========================================================
Combines six factors, each in [0, 1], into one weighted score:

  factor         weight   source
  dataFit        0.25     field count vs. the 3-5 field sweet spot
  goalAlignment  0.25     chart type / data shape vs. analytical goal
  complexity     0.15     1 - complexity/100
  performance    0.15     predicted-performance confidence
  usability      0.15     dimension/metric count bands
  bestPractice   0.05     filters, sorts, sane limit

Weights sum to 1.0, so the score stays in [0, 1]. Weights and factor
constants are calibration values, not a validated model.
"""

import logging
from typing import Callable, Dict, List, Optional, Tuple

from .complexity import calculate_complexity_score
from .models import (
    AnalyticalGoal, ChartConfiguration, ConfidenceBand, DataCharacteristics,
    RecommendationScore,
)
from .performance_predictor import predict_performance

logger = logging.getLogger(__name__)

FACTOR_WEIGHTS: Dict[str, float] = {
    "dataFit": 0.25,
    "goalAlignment": 0.25,
    "complexity": 0.15,
    "performance": 0.15,
    "usability": 0.15,
    "bestPractice": 0.05,
}

# (lower bound inclusive, band), highest first
CONFIDENCE_BANDS: List[Tuple[float, ConfidenceBand]] = [
    (0.8, ConfidenceBand.VERY_HIGH),
    (0.65, ConfidenceBand.HIGH),
    (0.5, ConfidenceBand.MEDIUM),
    (0.35, ConfidenceBand.LOW),
]

OPTIMAL_FIELD_COUNT = 5
UNKNOWN_GOAL_ALIGNMENT = 0.5
GoalAlignmentFn = Callable[[ChartConfiguration, DataCharacteristics], float]


def _trend_alignment(config: ChartConfiguration, data: DataCharacteristics) -> float:
    if config.chart_type == "line":
        return 0.9
    return 0.8 if data.temporal_fields else 0.4


def _comparison_alignment(config: ChartConfiguration, data: DataCharacteristics) -> float:
    if config.chart_type == "bar":
        return 0.9
    return 0.8 if config.dimension_count > 1 else 0.5


def _distribution_alignment(config: ChartConfiguration, data: DataCharacteristics) -> float:
    if config.chart_type == "histogram":
        return 0.9
    if config.chart_type == "scatter":
        return 0.8
    return 0.4


GOAL_ALIGNMENT: Dict[AnalyticalGoal, GoalAlignmentFn] = {
    AnalyticalGoal.TREND_ANALYSIS: _trend_alignment,
    AnalyticalGoal.COMPARISON: _comparison_alignment,
    AnalyticalGoal.DISTRIBUTION: _distribution_alignment,
    AnalyticalGoal.PERFORMANCE_TRACKING: lambda config, data: 0.8 if config.metric_count > 0 else 0.3,
    AnalyticalGoal.CUSTOM: lambda config, data: 0.6,
}


def confidence_band(score: float) -> ConfidenceBand:
    for lower, band in CONFIDENCE_BANDS:
        if score >= lower:
            return band
    return ConfidenceBand.VERY_LOW


class RecommendationScorer:

    def __init__(self, weights: Optional[Dict[str, float]] = None):
        self.weights = weights or FACTOR_WEIGHTS

    def score(
        self,
        config: ChartConfiguration,
        data: DataCharacteristics,
        goal: AnalyticalGoal,
    ) -> RecommendationScore:
        factors = self.compute_factors(config, data, goal)
        total = sum(value * self.weights[name] for name, value in factors.items())
        total = max(0.0, min(1.0, total))
        return RecommendationScore(score=total, confidence_band=confidence_band(total), factors=factors)

    def compute_factors(
        self,
        config: ChartConfiguration,
        data: DataCharacteristics,
        goal: AnalyticalGoal,
    ) -> Dict[str, float]:
        dims = config.dimension_count
        metrics = config.metric_count

        try:
            alignment_fn = GOAL_ALIGNMENT.get(AnalyticalGoal(goal))
        except ValueError:
            alignment_fn = None
        alignment = alignment_fn(config, data) if alignment_fn else UNKNOWN_GOAL_ALIGNMENT

        return {
            "dataFit": min(1.0, (dims + metrics) / OPTIMAL_FIELD_COUNT),
            "goalAlignment": alignment,
            "complexity": max(0.0, 1.0 - calculate_complexity_score(config) / 100.0),
            "performance": predict_performance(config).confidence,
            "usability": self._usability(dims, metrics),
            "bestPractice": self._best_practice(config),
        }

    @staticmethod
    def _usability(dims: int, metrics: int) -> float:
        if dims <= 3 and metrics <= 5:
            return 0.9
        if dims <= 5 and metrics <= 8:
            return 0.7
        return 0.4

    @staticmethod
    def _best_practice(config: ChartConfiguration) -> float:
        score = 0.5
        if config.filter_count > 0:
            score += 0.2
        if config.sorts:
            score += 0.1
        if config.limit is not None and 0 < config.limit <= 1000:
            score += 0.2
        return min(1.0, score)
