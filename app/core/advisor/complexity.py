"""
Complexity Estimator — Bounded 0-100 Query Structure Score
============================================================
The one formula every caller uses for a complexity number (scorer,
optimization advisor, performance analysis, benchmarks).

  dimensions          ×3    (max 30)
  metrics             ×2.5  (max 25)
  filters (all)       ×4    (max 20)
  table calculations  ×7.5  (max 15)
  custom metrics      ×5    (max 10)

Calibration constants are hand-tuned, not fit to data.
"""

from typing import Dict, Tuple

from .models import ChartConfiguration

# component -> (points per item, cap)
COMPLEXITY_WEIGHTS: Dict[str, Tuple[float, float]] = {
    "dimensions": (3.0, 30.0),
    "metrics": (2.5, 25.0),
    "filters": (4.0, 20.0),
    "table_calculations": (7.5, 15.0),
    "custom_metrics": (5.0, 10.0),
}

MAX_COMPLEXITY = 100.0


def complexity_breakdown(config: ChartConfiguration) -> Dict[str, float]:
    """Per-component points before the overall clamp."""
    counts = {
        "dimensions": config.dimension_count,
        "metrics": config.metric_count,
        "filters": config.filter_count,
        "table_calculations": len(config.table_calculations),
        "custom_metrics": len(config.custom_metrics),
    }
    return {
        name: min(counts[name] * per_item, cap)
        for name, (per_item, cap) in COMPLEXITY_WEIGHTS.items()
    }


def calculate_complexity_score(config: ChartConfiguration) -> float:
    score = sum(complexity_breakdown(config).values())
    return max(0.0, min(score, MAX_COMPLEXITY))
