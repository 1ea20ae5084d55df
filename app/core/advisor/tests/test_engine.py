"""
Chart Advisor Engine — Pure Component Test Suite
==================================================
Tests the deterministic engine: complexity, performance prediction, data
characteristics, goal interpretation, scoring, recommendations, optimization,
statistics and chart patterns.

Run: pytest app/core/advisor/tests/ -v
"""

import math

import pytest

from app.core.advisor.models import (
    AnalyticalGoal, ChartConfiguration, ChartFilters, ConfidenceBand, FilterGroup,
    RecommendationScore, SortSpec,
)


# ═══════════════════════════════════════════════════════════════
# TEST FIXTURES
# ═══════════════════════════════════════════════════════════════

DATE_FILTER = {"id": "f1", "target": {"fieldId": "orders_created_date"}, "operator": "inThePast", "values": [30, "days"]}


def make_config(
    dims=2, metrics=2, dim_filters=0, metric_filters=0, table_calcs=0,
    custom_metrics=0, sorts=0, limit=None, chart_type="table",
):
    """Build a ChartConfiguration with the requested counts."""
    return ChartConfiguration(
        chart_type=chart_type,
        dimensions=[f"orders_dim_{i}" for i in range(dims)],
        metrics=[f"orders_metric_{i}" for i in range(metrics)],
        filters=ChartFilters(
            dimensions=FilterGroup(and_=[dict(DATE_FILTER, id=f"d{i}") for i in range(dim_filters)]),
            metrics=FilterGroup(and_=[{"id": f"m{i}"} for i in range(metric_filters)]),
        ),
        sorts=[SortSpec(field_id=f"orders_dim_{i}") for i in range(sorts)],
        limit=limit,
        table_calculations=[{"name": f"tc_{i}"} for i in range(table_calcs)],
        custom_metrics=[{"name": f"cm_{i}"} for i in range(custom_metrics)],
    )


def make_schema():
    """Explore description with one field of every interesting kind."""
    return {
        "tables": {
            "orders": {
                "dimensions": {
                    "created_date": {"type": "date"},
                    "status": {"type": "string"},
                    "customer_id": {"type": "string"},
                    "region": {"type": "string"},
                    "amount_bucket": {"type": "number"},
                },
                "metrics": {
                    "order_count": {"type": "count"},
                    "total_revenue": {"type": "sum"},
                    "conversion_rate": {"type": "number"},
                },
            },
        },
    }


def make_chart(uuid, explore, metrics, dimensions, chart_type="table", name=None):
    """Saved-chart record as returned by the analytics platform."""
    return {
        "uuid": uuid,
        "name": name or f"chart {uuid}",
        "tableName": explore,
        "metricQuery": {"exploreName": explore, "metrics": metrics, "dimensions": dimensions},
        "chartConfig": {"type": chart_type},
    }


# ═══════════════════════════════════════════════════════════════
# 1. DATA MODEL
# ═══════════════════════════════════════════════════════════════

class TestModels:
    """Tests for models.py"""

    def test_from_dict_tolerates_missing_keys(self):
        config = ChartConfiguration.from_dict({})
        assert config.chart_type == "table"
        assert config.dimension_count == 0
        assert config.filter_count == 0
        assert config.limit is None

    def test_from_dict_saved_chart_shape(self):
        config = ChartConfiguration.from_dict({
            "exploreName": "orders",
            "dimensions": ["orders_status"],
            "metrics": ["orders_count"],
            "filters": {"dimensions": {"id": "g", "and": [DATE_FILTER]}, "metrics": {"or": [{}, {}]}},
            "sorts": [{"fieldId": "orders_count", "descending": True}],
            "limit": "500",
            "tableCalculations": [{"name": "pct"}],
        })
        assert config.explore_id == "orders"
        assert config.dimension_filter_count == 1
        assert config.filter_count == 3
        assert config.sorts[0].descending is True
        assert config.limit == 500
        assert len(config.table_calculations) == 1

    def test_legacy_flat_filter_list(self):
        filters = ChartFilters.from_raw([DATE_FILTER, DATE_FILTER])
        assert len(filters.dimensions) == 2
        assert len(filters.metrics) == 0

    def test_to_dict_is_camel_case(self):
        d = make_config(table_calcs=1).to_dict()
        assert d["chartType"] == "table"
        assert "tableCalculations" in d
        assert d["filters"]["dimensions"] == {"and": [], "or": []}

    def test_goal_parse_unknown_falls_back_to_custom(self):
        assert AnalyticalGoal.parse("Trend_Analysis") == AnalyticalGoal.TREND_ANALYSIS
        assert AnalyticalGoal.parse("nonsense") == AnalyticalGoal.CUSTOM


# ═══════════════════════════════════════════════════════════════
# 2. COMPLEXITY ESTIMATOR
# ═══════════════════════════════════════════════════════════════

class TestComplexity:
    """Tests for complexity.py"""

    def test_known_score(self):
        from app.core.advisor.complexity import calculate_complexity_score
        assert calculate_complexity_score(make_config(dims=2, metrics=2)) == pytest.approx(11.0)

    def test_empty_config_is_zero(self):
        from app.core.advisor.complexity import calculate_complexity_score
        assert calculate_complexity_score(ChartConfiguration()) == 0

    def test_caps_sum_to_hundred(self):
        from app.core.advisor.complexity import calculate_complexity_score
        huge = make_config(dims=50, metrics=50, dim_filters=20, metric_filters=20,
                           table_calcs=10, custom_metrics=10)
        assert calculate_complexity_score(huge) == 100

    @pytest.mark.parametrize("field", ["dims", "metrics", "dim_filters", "metric_filters",
                                       "table_calcs", "custom_metrics"])
    def test_monotonic_in_each_count(self, field):
        from app.core.advisor.complexity import calculate_complexity_score
        previous = -1.0
        for n in range(0, 15):
            score = calculate_complexity_score(make_config(**{field: n}))
            assert 0 <= score <= 100
            assert score >= previous
            previous = score

    def test_breakdown_respects_caps(self):
        from app.core.advisor.complexity import complexity_breakdown
        parts = complexity_breakdown(make_config(dims=20, table_calcs=1))
        assert parts["dimensions"] == 30
        assert parts["table_calculations"] == 7.5


# ═══════════════════════════════════════════════════════════════
# 3. PERFORMANCE PREDICTOR
# ═══════════════════════════════════════════════════════════════

class TestPerformancePredictor:
    """Tests for performance_predictor.py"""

    def test_no_filters_penalized(self):
        from app.core.advisor.performance_predictor import predict_performance
        p = predict_performance(make_config())
        assert p.estimated_time_ms == 3600
        assert p.confidence == pytest.approx(0.7)
        assert "No filters - querying entire dataset" in p.factors

    def test_filters_reduce_estimate(self):
        from app.core.advisor.performance_predictor import predict_performance
        for dims in range(0, 8):
            for metrics in range(0, 12):
                unfiltered = predict_performance(make_config(dims=dims, metrics=metrics))
                for filters in range(1, 6):
                    filtered = predict_performance(make_config(dims=dims, metrics=metrics, dim_filters=filters))
                    assert unfiltered.estimated_time_ms >= filtered.estimated_time_ms

    def test_metric_filters_do_not_count(self):
        from app.core.advisor.performance_predictor import predict_performance
        p = predict_performance(make_config(metric_filters=3))
        assert p.estimated_time_ms == 3600

    def test_extras_compose(self):
        from app.core.advisor.performance_predictor import predict_performance
        p = predict_performance(make_config(dims=0, metrics=0, table_calcs=1, custom_metrics=1))
        assert p.estimated_time_ms == 7020
        assert p.confidence == pytest.approx(0.55)
        assert p.factors[-1] == "Custom metrics require additional computation"

    def test_factor_order(self):
        from app.core.advisor.performance_predictor import predict_performance
        p = predict_performance(make_config(dims=6, metrics=11, dim_filters=6))
        assert p.factors == [
            "High dimension count increases complexity",
            "High metric count increases processing time",
            "Complex filtering logic",
        ]

    def test_invalid_baseline_falls_back(self):
        from app.core.advisor.performance_predictor import predict_performance
        assert predict_performance(make_config(dim_filters=1), baseline_ms=0).estimated_time_ms == 1600
        assert predict_performance(make_config(dim_filters=1), baseline_ms=500).estimated_time_ms == 400

    def test_chart_analysis_scores_and_issues(self):
        from app.core.advisor.performance_predictor import analyze_chart_performance
        result = analyze_chart_performance(make_config(dims=6), execution_time_ms=8000, row_count=20000)
        # 100 - 25 (time) - 20 (rows) - 10 (dims) - 15 (no filters)
        assert result["performanceScore"] == 30
        assert result["threshold"] == "slow"
        assert len(result["bottlenecks"]) == 4
        assert all(i["severity"] == "critical" for i in result["quality"]["issues"])

    def test_fast_chart_is_clean(self):
        from app.core.advisor.performance_predictor import analyze_chart_performance
        result = analyze_chart_performance(make_config(dim_filters=1), execution_time_ms=400, row_count=10)
        assert result["performanceScore"] == 100
        assert result["threshold"] == "fast"
        assert result["bottlenecks"] == []


# ═══════════════════════════════════════════════════════════════
# 4. DATA CHARACTERISTICS ANALYZER
# ═══════════════════════════════════════════════════════════════

class TestDataCharacteristics:
    """Tests for data_characteristics.py"""

    def test_field_classification(self):
        from app.core.advisor.data_characteristics import DataCharacteristicsAnalyzer
        data = DataCharacteristicsAnalyzer().analyze(make_schema())
        assert data.temporal_fields == ["orders_created_date"]
        assert data.categorical_fields == ["orders_status", "orders_customer_id", "orders_region"]
        assert data.numeric_fields == ["orders_order_count", "orders_total_revenue", "orders_conversion_rate"]

    def test_number_dimension_recorded_but_unclassified(self):
        from app.core.advisor.data_characteristics import DataCharacteristicsAnalyzer
        data = DataCharacteristicsAnalyzer().analyze(make_schema())
        assert data.data_types["orders_amount_bucket"] == "number"
        assert data.kind_of("orders_amount_bucket") is None

    def test_cardinality_rules(self):
        from app.core.advisor.data_characteristics import DataCharacteristicsAnalyzer
        data = DataCharacteristicsAnalyzer().analyze(make_schema())
        assert data.cardinality["orders_customer_id"] == 10000
        assert data.cardinality["orders_status"] == 5
        assert data.cardinality["orders_region"] == 50

    def test_lists_are_disjoint(self):
        from app.core.advisor.data_characteristics import DataCharacteristicsAnalyzer
        data = DataCharacteristicsAnalyzer().analyze(make_schema())
        groups = [set(data.temporal_fields), set(data.categorical_fields), set(data.numeric_fields)]
        assert not (groups[0] & groups[1] or groups[0] & groups[2] or groups[1] & groups[2])
        assert set().union(*groups) <= set(data.data_types)

    def test_relationships_and_recommendations(self):
        from app.core.advisor.data_characteristics import DataCharacteristicsAnalyzer
        data = DataCharacteristicsAnalyzer().analyze(make_schema())
        kinds = {r.kind: r for r in data.relationships}
        assert kinds["temporal_trend"].strength == 0.9
        assert kinds["temporal_trend"].field2 == "orders_order_count"
        assert kinds["categorical_breakdown"].field1 == "orders_status"
        assert "Consider time-series analysis with orders_created_date" in data.recommendations
        assert "orders_order_count is suitable for trend analysis and comparisons" in data.recommendations
        assert "orders_conversion_rate is ideal for performance tracking and benchmarking" in data.recommendations

    def test_missing_type_defaults_to_string(self):
        from app.core.advisor.data_characteristics import DataCharacteristicsAnalyzer
        data = DataCharacteristicsAnalyzer().analyze({"users": {"dimensions": {"country": {}}}})
        assert data.categorical_fields == ["users_country"]
        assert data.relationships == []

    def test_empty_schema(self):
        from app.core.advisor.data_characteristics import DataCharacteristicsAnalyzer
        data = DataCharacteristicsAnalyzer().analyze(None)
        assert data.to_dict()["numericFields"] == []


# ═══════════════════════════════════════════════════════════════
# 5. GOAL INTERPRETER
# ═══════════════════════════════════════════════════════════════

class TestGoalInterpreter:
    """Tests for goal_interpreter.py"""

    def test_trend_question(self):
        from app.core.advisor.goal_interpreter import GoalInterpreter
        result = GoalInterpreter().interpret("How has revenue changed over time?")
        assert result.goal == AnalyticalGoal.TREND_ANALYSIS
        assert result.confidence >= 0.9
        assert len(result.suggested_approaches) == 3

    def test_comparison_question(self):
        from app.core.advisor.goal_interpreter import GoalInterpreter
        result = GoalInterpreter().interpret("Compare region A vs region B")
        assert result.goal == AnalyticalGoal.COMPARISON
        assert result.confidence == pytest.approx(0.85)

    def test_first_matching_group_wins(self):
        from app.core.advisor.goal_interpreter import GoalInterpreter
        result = GoalInterpreter().interpret("Compare the growth of each KPI")
        assert result.goal == AnalyticalGoal.TREND_ANALYSIS

    def test_key_metrics_boost_and_role(self):
        from app.core.advisor.goal_interpreter import GoalInterpreter
        result = GoalInterpreter().interpret(
            "Are we hitting our KPI targets?", {"keyMetrics": ["revenue"]}, "business_user",
        )
        assert result.goal == AnalyticalGoal.PERFORMANCE_TRACKING
        assert result.confidence == pytest.approx(0.85)

    def test_boost_capped(self):
        from app.core.advisor.goal_interpreter import GoalInterpreter
        result = GoalInterpreter().interpret("Revenue trend", {"timeRange": "last_90_days"}, "data_scientist")
        assert result.confidence == pytest.approx(0.95)

    def test_no_question(self):
        from app.core.advisor.goal_interpreter import GoalInterpreter
        result = GoalInterpreter().interpret(None)
        assert result.goal == AnalyticalGoal.CUSTOM
        assert result.confidence == 0.5
        assert result.reasoning == "No specific business question provided"
        assert result.suggested_approaches == ["Explore data with basic visualizations"]

    def test_no_question_ignores_role(self):
        from app.core.advisor.goal_interpreter import GoalInterpreter
        result = GoalInterpreter().interpret(None, None, "data_scientist")
        assert result.goal == AnalyticalGoal.CUSTOM
        assert result.confidence == 0.5
        assert GoalInterpreter().interpret("", None, "executive").confidence == 0.5

    def test_unmatched_question(self):
        from app.core.advisor.goal_interpreter import GoalInterpreter
        result = GoalInterpreter().interpret("Show me the orders table", user_role="analyst")
        assert result.goal == AnalyticalGoal.CUSTOM
        assert result.confidence == pytest.approx(0.55)

    def test_unknown_role_ignored(self):
        from app.core.advisor.goal_interpreter import GoalInterpreter
        result = GoalInterpreter().interpret("Compare regions", user_role="intern")
        assert result.confidence == pytest.approx(0.85)


# ═══════════════════════════════════════════════════════════════
# 6. RECOMMENDATION SCORER
# ═══════════════════════════════════════════════════════════════

class TestRecommendationScorer:
    """Tests for recommendation_scorer.py"""

    def _data(self):
        from app.core.advisor.data_characteristics import DataCharacteristicsAnalyzer
        return DataCharacteristicsAnalyzer().analyze(make_schema())

    def test_weights_sum_to_one(self):
        from app.core.advisor.recommendation_scorer import FACTOR_WEIGHTS
        assert sum(FACTOR_WEIGHTS.values()) == pytest.approx(1.0)

    def test_score_is_weighted_sum(self):
        from app.core.advisor.recommendation_scorer import FACTOR_WEIGHTS, RecommendationScorer
        scorer = RecommendationScorer()
        data = self._data()
        for goal in AnalyticalGoal:
            for chart_type in ("line", "bar", "table", "scatter", "histogram"):
                for dims, metrics in ((0, 0), (1, 1), (3, 5), (6, 12)):
                    config = make_config(dims=dims, metrics=metrics, chart_type=chart_type,
                                         dim_filters=1, sorts=1, limit=500)
                    result = scorer.score(config, data, goal)
                    assert all(0.0 <= v <= 1.0 for v in result.factors.values())
                    expected = sum(result.factors[k] * w for k, w in FACTOR_WEIGHTS.items())
                    assert result.score == pytest.approx(expected)

    def test_known_line_score(self):
        from app.core.advisor.recommendation_scorer import RecommendationScorer
        config = make_config(dims=1, metrics=2, chart_type="line")
        result = RecommendationScorer().score(config, self._data(), AnalyticalGoal.TREND_ANALYSIS)
        assert result.factors["dataFit"] == pytest.approx(0.6)
        assert result.factors["goalAlignment"] == 0.9
        assert result.factors["complexity"] == pytest.approx(0.92)
        assert result.factors["performance"] == pytest.approx(0.7)
        assert result.score == pytest.approx(0.778)
        assert result.confidence_band == ConfidenceBand.HIGH

    def test_band_boundaries_exact(self):
        from app.core.advisor.recommendation_scorer import confidence_band
        assert confidence_band(0.8) == ConfidenceBand.VERY_HIGH
        assert confidence_band(0.7999) == ConfidenceBand.HIGH
        assert confidence_band(0.65) == ConfidenceBand.HIGH
        assert confidence_band(0.6499) == ConfidenceBand.MEDIUM
        assert confidence_band(0.5) == ConfidenceBand.MEDIUM
        assert confidence_band(0.35) == ConfidenceBand.LOW
        assert confidence_band(0.3499) == ConfidenceBand.VERY_LOW

    def test_unknown_goal_alignment(self):
        from app.core.advisor.recommendation_scorer import RecommendationScorer
        factors = RecommendationScorer().compute_factors(make_config(), self._data(), "storytelling")
        assert factors["goalAlignment"] == 0.5

    def test_best_practice(self):
        from app.core.advisor.recommendation_scorer import RecommendationScorer
        scorer = RecommendationScorer()
        data = self._data()
        assert scorer.compute_factors(make_config(), data, AnalyticalGoal.CUSTOM)["bestPractice"] == 0.5
        full = make_config(metric_filters=1, sorts=1, limit=1000)
        assert scorer.compute_factors(full, data, AnalyticalGoal.CUSTOM)["bestPractice"] == pytest.approx(1.0)
        too_many = make_config(limit=5000)
        assert scorer.compute_factors(too_many, data, AnalyticalGoal.CUSTOM)["bestPractice"] == 0.5


# ═══════════════════════════════════════════════════════════════
# 7. RECOMMENDATION ENGINE
# ═══════════════════════════════════════════════════════════════

class TestRecommendationEngine:
    """Tests for recommendation_engine.py"""

    def _data(self):
        from app.core.advisor.data_characteristics import DataCharacteristicsAnalyzer
        return DataCharacteristicsAnalyzer().analyze(make_schema())

    def test_candidates_follow_data(self):
        from app.core.advisor.recommendation_engine import build_candidate
        data = self._data()
        line = build_candidate("line", data)
        assert line.dimensions == ["orders_created_date"]
        assert line.metrics == ["orders_order_count", "orders_total_revenue"]
        assert build_candidate("area", data) is None
        assert build_candidate("bar", self._empty()) is None
        assert build_candidate("scatter", self._empty()) is None
        assert build_candidate("table", self._empty()) is not None

    def _empty(self):
        from app.core.advisor.models import DataCharacteristics
        return DataCharacteristics()

    def test_ranked_descending_with_documents(self):
        from app.core.advisor.recommendation_engine import RecommendationEngine
        result = RecommendationEngine().recommend(
            self._data(), AnalyticalGoal.TREND_ANALYSIS, explore_id="orders", include_guidance=True,
        )
        recs = result["recommendations"]
        scores = [r["confidenceScore"] for r in recs]
        assert scores == sorted(scores, reverse=True)
        assert all(s >= 0.3 for s in scores)
        assert [r["recommendationId"] for r in recs] == [f"rec_{i}" for i in range(1, len(recs) + 1)]
        first = recs[0]
        for key in ("title", "description", "confidence", "reasoning", "chartConfiguration",
                    "implementationGuidance", "expectedOutcomes", "alternatives", "factors"):
            assert key in first
        assert len(first["implementationGuidance"]["steps"]) == 4
        assert result["summary"]["totalRecommendations"] == len(recs)
        assert result["summary"]["estimatedImplementationTime"] == f"{len(recs) * 5} minutes"

    def test_max_recommendations(self):
        from app.core.advisor.recommendation_engine import RecommendationEngine
        result = RecommendationEngine().recommend(self._data(), AnalyticalGoal.COMPARISON, max_recommendations=2)
        assert len(result["recommendations"]) == 2
        assert "implementationGuidance" not in result["recommendations"][0]

    def test_low_scores_discarded(self):
        from app.core.advisor.recommendation_engine import RecommendationEngine
        from app.core.advisor.recommendation_scorer import RecommendationScorer

        class SplitScorer(RecommendationScorer):
            def score(self, config, data, goal):
                value = 0.29 if config.chart_type == "pie" else 0.6
                return RecommendationScore(score=value, confidence_band=ConfidenceBand.MEDIUM)

        result = RecommendationEngine(scorer=SplitScorer()).recommend(self._data(), AnalyticalGoal.CUSTOM)
        types = [r["chartConfiguration"]["chartType"] for r in result["recommendations"]]
        assert "pie" not in types
        assert len(types) == 4


# ═══════════════════════════════════════════════════════════════
# 8. OPTIMIZATION ADVISOR
# ═══════════════════════════════════════════════════════════════

class TestOptimizationAdvisor:
    """Tests for optimization_advisor.py"""

    def test_slow_unfiltered_query(self):
        from app.core.advisor.optimization_advisor import generate_optimization_suggestions
        suggestions = generate_optimization_suggestions(make_config(), 8000, 50000)
        assert len(suggestions) >= 2
        assert suggestions[0].priority.value == "critical"
        assert suggestions[0].id == "opt_1"
        assert suggestions[1].type.value == "limit"
        assert suggestions[1].impact.accuracy_impact == "moderate"
        assert suggestions[1].tradeoffs
        assert suggestions[0].description == (
            "Query is scanning entire dataset. Add date range filter to limit data scope."
        )
        assert suggestions[1].description == (
            "Large result set impacts performance. Consider adding row limit or pagination."
        )
        assert suggestions[1].implementation.changes[0].reason == "Reduces data transfer and rendering time"

    def test_rule_gates(self):
        from app.core.advisor.optimization_advisor import generate_optimization_suggestions
        wide = make_config(dims=6, metrics=9, dim_filters=1)
        types = [s.type.value for s in generate_optimization_suggestions(wide, 1000, 0, "comprehensive", "moderate")]
        assert types == ["dimension", "cache"]
        types = [s.type.value for s in generate_optimization_suggestions(wide, 1000, 0, "performance", "conservative")]
        assert types == ["metric"]

    def test_fast_query_has_no_suggestions(self):
        from app.core.advisor.optimization_advisor import generate_optimization_suggestions
        assert generate_optimization_suggestions(make_config(), 800, 100) == []

    def test_suggestion_document_shape(self):
        from app.core.advisor.optimization_advisor import generate_optimization_suggestions
        doc = generate_optimization_suggestions(make_config(), 8000, 0)[0].to_dict()
        assert doc["implementation"]["changes"][0]["field"] == "filters.dimensions"
        assert doc["impact"]["resourceSavings"] == "Reduced database load"
        assert "tradeoffs" not in doc

    def test_optimized_configurations(self):
        from app.core.advisor.optimization_advisor import (
            build_optimized_configurations, generate_optimization_suggestions, summarize_optimizations,
        )
        config = make_config()
        suggestions = generate_optimization_suggestions(config, 8000, 50000)
        optimized = build_optimized_configurations(config, suggestions, 8000)
        assert optimized[0]["predictions"]["estimatedExecutionTime"] == 6400
        assert optimized[0]["predictions"]["performanceImprovement"] == 20
        assert optimized[0]["configuration"]["filters"]["dimensions"]["and"][0]["operator"] == "inThePast"
        assert optimized[1]["configuration"]["limit"] == 1000
        assert config.filter_count == 0
        summary = summarize_optimizations(optimized)
        assert summary["primaryOptimization"] == "opt_1"
        assert summary["estimatedImprovementRange"] == "-80%-20%"

    def test_zero_current_time(self):
        from app.core.advisor.optimization_advisor import (
            build_optimized_configurations, generate_optimization_suggestions,
        )
        suggestions = generate_optimization_suggestions(make_config(), 0, 0, "user_experience")
        optimized = build_optimized_configurations(make_config(), suggestions, 0)
        assert optimized[0]["predictions"]["performanceImprovement"] == 0

    def test_similarity(self):
        from app.core.advisor.optimization_advisor import calculate_configuration_similarity
        a = make_config(dims=2, metrics=1, chart_type="bar")
        assert calculate_configuration_similarity(a, make_config(dims=2, metrics=1, chart_type="bar")) == pytest.approx(1.0)
        other = ChartConfiguration(chart_type="line", dimensions=["x_1", "x_2"], metrics=["y_1"])
        assert calculate_configuration_similarity(a, other) == pytest.approx(0.3)


# ═══════════════════════════════════════════════════════════════
# 9. STATISTICAL ANALYZER
# ═══════════════════════════════════════════════════════════════

class TestStatisticalAnalyzer:
    """Tests for statistical_analyzer.py"""

    def test_mean_and_median(self):
        from app.core.advisor.statistical_analyzer import summarize
        odd = summarize([10, 20, 30, 40, 50])
        assert odd.mean == 30
        assert odd.median == 30
        assert summarize([10, 20, 30, 40]).median == 25

    def test_sample_standard_deviation(self):
        from app.core.advisor.statistical_analyzer import summarize
        result = summarize([2, 4, 4, 4, 5, 5, 7, 9])
        assert result.mean == 5
        assert result.standard_deviation == pytest.approx(2.138, abs=1e-3)

    def test_confidence_interval(self):
        from app.core.advisor.statistical_analyzer import summarize
        result = summarize([10, 20, 30, 40, 50], "medium")
        margin = 4.177 * math.sqrt(250) / math.sqrt(5)   # 95%, df 4 -> bucket 3
        assert result.confidence_interval.lower == pytest.approx(30 - margin)
        assert result.confidence_interval.upper == pytest.approx(30 + margin)
        assert result.confidence_interval.level == 0.95

    def test_t_table_lookup(self):
        from app.core.advisor.statistical_analyzer import t_value
        assert t_value(0.05, 4) == 4.177       # df 4 rounds down to 3
        assert t_value(0.05, 5) == 3.163
        assert t_value(0.10, 5) == 2.571
        assert t_value(0.05, 30) == 2.390
        assert t_value(0.10, 31) == 1.960      # > 30 → ∞
        assert t_value(0.01, 1) == 127.32
        assert t_value(0.01, 12) == 4.144
        assert t_value(0.001, 10) == 2.0       # no 0.0005 column
        assert t_value(0.05, 0) == 2.0

    def test_unknown_level_uses_medium(self):
        from app.core.advisor.statistical_analyzer import summarize
        assert summarize([1, 2, 3], "extreme").confidence_interval.level == 0.95

    def test_single_measurement(self):
        from app.core.advisor.statistical_analyzer import summarize
        result = summarize([120])
        assert result.standard_deviation == 0
        assert result.confidence_interval.lower == result.confidence_interval.upper == 120

    def test_empty_sample_rejected(self):
        from app.core.advisor.errors import ValidationError
        from app.core.advisor.statistical_analyzer import summarize
        with pytest.raises(ValidationError) as exc:
            summarize([])
        assert exc.value.field_path == "values"

    def test_generate_variations(self):
        from app.core.advisor.statistical_analyzer import generate_variations
        config = make_config(dims=6, metrics=4)
        variants = generate_variations(config, "field_selections")
        assert [v["label"] for v in variants] == ["Original", "Half dimensions", "Half metrics"]
        assert variants[1]["configuration"].dimension_count == 3
        assert variants[2]["configuration"].metric_count == 2
        assert len(generate_variations(config, "limit_variations")) == 4
        assert len(generate_variations(config, "unknown")) == 1
        assert config.dimension_count == 6

    def test_compare_variations(self):
        from app.core.advisor.statistical_analyzer import compare_variations, summarize_variation
        config = make_config()
        original = summarize_variation("var_1", "limit_variations", "Original", config,
                                       [1000, 1000, 1000], is_original=True)
        faster = summarize_variation("var_2", "limit_variations", "Small limit", config, [500, 500])
        result = compare_variations([original, faster])
        assert result["variations"][0]["variationId"] == "var_2"
        assert result["variations"][0]["comparison"]["improvementPercentage"] == 50
        assert result["variations"][0]["comparison"]["isStatisticallySignificant"] is True
        assert result["variations"][0]["statistics"]["reliability"] == "limited"
        assert result["recommendations"]["bestPerforming"]["variationId"] == "var_2"
        assert result["summary"]["statisticalReliability"] == 0.5


# ═══════════════════════════════════════════════════════════════
# 10. CHART PATTERNS
# ═══════════════════════════════════════════════════════════════

class TestChartPatterns:
    """Tests for chart_patterns.py"""

    def _charts(self):
        return [
            make_chart("c1", "orders", ["orders_count"], ["orders_created_date"], "line"),
            make_chart("c2", "orders", ["orders_count"], ["orders_created_date"], "line"),
            make_chart("c3", "orders", ["orders_count"], ["orders_status"], "bar"),
            make_chart("c4", "users", ["users_count"], ["users_country"]),
        ]

    def test_time_series_pattern(self):
        from app.core.advisor.chart_patterns import extract_patterns
        result = extract_patterns(self._charts())
        assert result["summary"]["patternsFound"] == 1
        pattern = result["patterns"][0]
        assert pattern["patternType"] == "time_series"
        assert pattern["confidence"] == pytest.approx(0.75)
        assert pattern["template"]["metrics"] == ["orders_count"]
        assert pattern["template"]["dimensions"] == ["orders_created_date"]
        assert pattern["template"]["chartConfig"]["type"] == "line"
        assert result["summary"]["exploresAnalyzed"] == 2

    def test_confidence_threshold_and_type_filter(self):
        from app.core.advisor.chart_patterns import extract_patterns
        assert extract_patterns(self._charts(), min_confidence=0.8)["patterns"] == []
        assert extract_patterns(self._charts(), pattern_type="comparison")["patterns"] == []

    def test_classify_pattern(self):
        from app.core.advisor.chart_patterns import classify_pattern
        assert classify_pattern(["orders_status"], ["orders_count"]) == "metric_breakdown"
        assert classify_pattern([], ["a", "b"]) == "comparison"
        assert classify_pattern(["orders_status"], []) == "custom"

    def test_malformed_records_skipped(self):
        from app.core.advisor.chart_patterns import extract_patterns
        result = extract_patterns(["oops", {"metricQuery": "broken"}] + self._charts(), min_confidence=0.5)
        assert result["summary"]["totalChartsAnalyzed"] == 4
        assert result["summary"]["patternsFound"] == 1

    def test_relationships(self):
        from app.core.advisor.chart_patterns import discover_relationships
        source = make_chart("s", "orders", ["m1", "m2"], ["d1"])
        candidates = [
            source,
            make_chart("a", "orders", ["m1", "m2"], ["d1"]),
            make_chart("b", "users", ["m1"], []),
            make_chart("c", "orders", ["m9"], ["d9"]),
        ]
        result = discover_relationships(source, candidates)
        related = {r["relatedChartUuid"]: r for r in result["relationships"]}
        assert set(related) == {"a", "c"}
        assert related["a"]["strength"] == 1.0
        assert related["a"]["impactAnalysis"]["changeRisk"] == "high"
        assert related["c"]["impactAnalysis"]["changeRisk"] == "low"
        assert result["relationships"][0]["relatedChartUuid"] == "a"
        assert result["summary"]["criticalDependencies"] == 1

    def test_relationship_type_filter(self):
        from app.core.advisor.chart_patterns import discover_relationships
        source = make_chart("s", "orders", ["m1"], ["d1"])
        candidates = [make_chart("a", "orders", ["m9"], ["d1"])]
        result = discover_relationships(source, candidates, relationship_type="shared_metrics")
        assert result["relationships"] == []


# ═══════════════════════════════════════════════════════════════
# RUN
# ═══════════════════════════════════════════════════════════════

if __name__ == "__main__":
    pytest.main([__file__, "-v", "--tb=short"])
