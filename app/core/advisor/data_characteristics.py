"""
Data Characteristics Analyzer — Schema Field Classification
=============================================================
Classifies explore fields as temporal, categorical or numeric, estimates
categorical cardinality from naming conventions, and proposes relationship
hints between field kinds.

Classification is driven by ordered (predicate, result) rule tables,
evaluated top to bottom with first match winning:

  DIMENSION_RULES    — temporal before categorical; unmatched types stay unclassified
  CARDINALITY_RULES  — identifier-like → 10000, status/type-like → 5, else 50
  METRIC_HINT_RULES  — name substring → recommendation text

Input is the explore description, either `{"tables": {...}}` or the bare
table mapping. No sampling of actual rows; deterministic for a given schema.
"""

import logging
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from .models import DataCharacteristics, FieldKind, FieldSchema, Relationship

logger = logging.getLogger(__name__)

FieldRule = Tuple[Callable[[FieldSchema], bool], Any]

TEMPORAL_TYPES = ("timestamp", "date")
TEMPORAL_NAME_MARKERS = ("date", "time")
CATEGORICAL_TYPES = ("string", "boolean")

HIGH_CARDINALITY = 10000
LOW_CARDINALITY = 5
MEDIUM_CARDINALITY = 50

TEMPORAL_TREND_STRENGTH = 0.9
CATEGORICAL_BREAKDOWN_STRENGTH = 0.8


def _name_has(*markers: str) -> Callable[[FieldSchema], bool]:
    return lambda f: any(m in f.name.lower() for m in markers)


def _is_temporal(f: FieldSchema) -> bool:
    return f.declared_type in TEMPORAL_TYPES or _name_has(*TEMPORAL_NAME_MARKERS)(f)


DIMENSION_RULES: List[FieldRule] = [
    (_is_temporal, FieldKind.TEMPORAL),
    (lambda f: f.declared_type in CATEGORICAL_TYPES, FieldKind.CATEGORICAL),
]

CARDINALITY_RULES: List[FieldRule] = [
    (_name_has("id", "uuid"), HIGH_CARDINALITY),
    (_name_has("status", "type"), LOW_CARDINALITY),
    (lambda f: True, MEDIUM_CARDINALITY),
]

METRIC_HINT_RULES: List[FieldRule] = [
    (_name_has("count"), "is suitable for trend analysis and comparisons"),
    (_name_has("revenue", "amount"), "works well with time-series and breakdown analysis"),
    (_name_has("rate", "percent"), "is ideal for performance tracking and benchmarking"),
]


def first_match(rules: List[FieldRule], f: FieldSchema) -> Optional[Any]:
    for predicate, result in rules:
        if predicate(f):
            return result
    return None


def iter_schema_fields(explore_schema: Optional[Dict[str, Any]]) -> Iterator[Tuple[str, FieldSchema]]:
    """Yield ("dimension"|"metric", FieldSchema) in schema order."""
    if not explore_schema:
        return
    tables = explore_schema.get("tables", explore_schema)
    if not isinstance(tables, dict):
        return
    for table_name, table in tables.items():
        if not isinstance(table, dict):
            continue
        for name, spec in (table.get("dimensions") or {}).items():
            declared = (spec or {}).get("type") or "string"
            yield "dimension", FieldSchema(table=table_name, name=name, declared_type=str(declared).lower())
        for name, spec in (table.get("metrics") or {}).items():
            declared = (spec or {}).get("type") or "number"
            yield "metric", FieldSchema(table=table_name, name=name, declared_type=str(declared).lower())


class DataCharacteristicsAnalyzer:
    """Pure schema analysis — no upstream access."""

    def analyze(self, explore_schema: Optional[Dict[str, Any]]) -> DataCharacteristics:
        result = DataCharacteristics()

        for role, f in iter_schema_fields(explore_schema):
            if role == "dimension":
                self._classify_dimension(f, result)
            else:
                self._classify_metric(f, result)

        self._add_relationships(result)
        logger.debug(
            f"Schema analyzed: {len(result.temporal_fields)} temporal, "
            f"{len(result.categorical_fields)} categorical, {len(result.numeric_fields)} numeric"
        )
        return result

    def _classify_dimension(self, f: FieldSchema, result: DataCharacteristics) -> None:
        fid = f.field_id
        result.data_types[fid] = f.declared_type
        kind = first_match(DIMENSION_RULES, f)
        if kind == FieldKind.TEMPORAL:
            result.temporal_fields.append(fid)
            result.recommendations.append(f"Consider time-series analysis with {fid}")
        elif kind == FieldKind.CATEGORICAL:
            result.categorical_fields.append(fid)
            result.cardinality[fid] = first_match(CARDINALITY_RULES, f)

    def _classify_metric(self, f: FieldSchema, result: DataCharacteristics) -> None:
        fid = f.field_id
        if result.kind_of(fid) is not None:
            # A field belongs to exactly one kind; the dimension wins
            logger.warning(f"Metric {fid} shadows an already classified dimension, skipped")
            return
        result.data_types[fid] = "number"
        result.numeric_fields.append(fid)
        hint = first_match(METRIC_HINT_RULES, f)
        if hint:
            result.recommendations.append(f"{fid} {hint}")

    def _add_relationships(self, result: DataCharacteristics) -> None:
        if not result.numeric_fields:
            return
        if result.temporal_fields:
            result.relationships.append(Relationship(
                field1=result.temporal_fields[0],
                field2=result.numeric_fields[0],
                strength=TEMPORAL_TREND_STRENGTH,
                kind="temporal_trend",
            ))
            result.recommendations.append("Strong potential for time-series analysis")
        if result.categorical_fields:
            result.relationships.append(Relationship(
                field1=result.categorical_fields[0],
                field2=result.numeric_fields[0],
                strength=CATEGORICAL_BREAKDOWN_STRENGTH,
                kind="categorical_breakdown",
            ))
            result.recommendations.append("Excellent for metric breakdown by categories")
