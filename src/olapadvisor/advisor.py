"""Schema advisor: evaluate every rule for a column or a whole table. 🧭

The advisor is a pure function from profiles to recommendations. It keeps no
state between calls, so tables can be advised in parallel by the caller.
"""

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

import polars as pl
from pydantic import BaseModel, ConfigDict

from olapadvisor.config import Settings, settings
from olapadvisor.exceptions import AdvisorError
from olapadvisor.logging_config import get_logger
from olapadvisor.models import (
    ColumnHints,
    ColumnProfile,
    TableProfile,
    TimePrecision,
    ValueKind,
)
from olapadvisor.rules.encoding import EncodingDecision, EncodingKind, encode_profile
from olapadvisor.rules.nullability import NullabilityDecision, resolve_nullability
from olapadvisor.rules.ordering import KeyOrderingPlan, plan_key_ordering
from olapadvisor.rules.types import (
    classify_decimal,
    classify_float,
    classify_integer,
    classify_temporal,
)
from olapadvisor.schemas import BOOL, NESTED, StorageType, TypeFamily

logger = get_logger(__name__)

NO_HINTS = ColumnHints()


class Recommendation(BaseModel):
    """Advice for one column."""

    model_config = ConfigDict(frozen=True)

    column: str
    storage_type: StorageType
    nullability: NullabilityDecision
    encoding: EncodingDecision | None = None
    rationale: str

    @property
    def benchmark_required(self) -> bool:
        return self.encoding is not None and self.encoding.benchmark_required

    @property
    def column_type(self) -> str:
        """Full column type, with the NULL wrapper when nullable."""
        return self.storage_type.column_type(self.nullability.nullable)


class ColumnIssue(BaseModel):
    """An error collected for one column instead of aborting the table."""

    model_config = ConfigDict(frozen=True)

    column: str
    error_type: str
    message: str


class TableAdvice(BaseModel):
    """Recommendations, key plan and collected errors for one table."""

    model_config = ConfigDict(frozen=True)

    table: str | None = None
    recommendations: tuple[Recommendation, ...] = ()
    key_plan: KeyOrderingPlan
    errors: tuple[ColumnIssue, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def ambiguous_columns(self) -> list[str]:
        """Columns whose nullability needs a human decision."""
        return [r.column for r in self.recommendations if r.nullability.needs_review]

    @property
    def benchmark_columns(self) -> list[str]:
        """Columns whose dictionary encoding must be validated empirically."""
        return [r.column for r in self.recommendations if r.benchmark_required]

    def recommendation(self, column: str) -> Recommendation:
        for rec in self.recommendations:
            if rec.column == column:
                return rec
        raise KeyError(column)

    def polars_schema(self) -> dict[str, pl.DataType]:
        """Recommended polars dtypes, ready for ``df.cast(schema)``."""
        return {rec.column: rec.storage_type.to_polars() for rec in self.recommendations}

    def to_dict(self) -> dict[str, Any]:
        """Plain structured output for reporting or schema generation tools."""
        return {
            "table": self.table,
            "columns": [
                {
                    "column": rec.column,
                    "type": rec.storage_type.name,
                    "column_type": rec.column_type,
                    "nullability": rec.nullability.kind.value,
                    "default_value": rec.nullability.default_value,
                    "encoding": rec.encoding.kind.value if rec.encoding else None,
                    "benchmark_required": rec.benchmark_required,
                    "rationale": rec.rationale,
                }
                for rec in self.recommendations
            ],
            "order_by": [
                {"column": p.column, "rule": p.rule, "rationale": p.rationale}
                for p in self.key_plan.positions
            ],
            "excluded_from_key": [
                {"column": e.column, "reason": e.reason} for e in self.key_plan.excluded
            ],
            "errors": [issue.model_dump() for issue in self.errors],
        }


def classify_storage(
    profile: ColumnProfile,
    hints: ColumnHints = NO_HINTS,
    thresholds: Settings | None = None,
) -> tuple[StorageType, EncodingDecision | None, str]:
    """Pick the storage type for one column.

    Returns:
        Tuple of (storage type, encoding decision for string columns, rationale).
    """
    kind = profile.value_kind
    name = profile.name

    if kind in (ValueKind.INTEGER, ValueKind.UNSIGNED_INTEGER):
        chosen = classify_integer(
            profile.observed_min,
            profile.observed_max,
            signed=kind is ValueKind.INTEGER,
            column=name,
        )
        return chosen, None, (
            f"range [{profile.observed_min}, {profile.observed_max}] fits {chosen.name}"
        )

    if kind is ValueKind.FLOAT:
        chosen = classify_float(hints.precision_sensitive)
        reason = "precision sensitive" if hints.precision_sensitive else "single precision suffices"
        return chosen, None, f"{reason}: {chosen.name}"

    if kind is ValueKind.DECIMAL:
        chosen = classify_decimal(
            hints.decimal_precision, hints.decimal_scale, thresholds=thresholds, column=name
        )
        return chosen, None, f"exact arithmetic with caller-supplied digits: {chosen.name}"

    if kind in (ValueKind.DATE, ValueKind.DATETIME):
        tier = hints.time_precision or (
            TimePrecision.DATE if kind is ValueKind.DATE else TimePrecision.SECOND
        )
        chosen = classify_temporal(tier)
        return chosen, None, f"{tier.value} precision: {chosen.name}"

    if kind is ValueKind.BOOLEAN:
        return BOOL, None, "boolean flag"

    if kind is ValueKind.NESTED:
        return NESTED, None, "repeated structure kept as nested columns"

    if kind is ValueKind.JSON:
        chosen = StorageType(family=TypeFamily.JSON, subpaths=hints.json_subpaths)
        if hints.json_subpaths:
            return chosen, None, f"JSON with {len(hints.json_subpaths)} typed subpaths"
        return chosen, None, "JSON without typed subpaths; declare hot paths to type them"

    encoding = encode_profile(profile, thresholds)
    chosen = encoding.storage_type(hints.enum_values)
    rationale = encoding.rationale
    if encoding.kind is EncodingKind.PLAIN and profile.is_fixed_length:
        rationale += "; all values share one length, a fixed-width string is an option"
    return chosen, encoding, rationale


def advise_column(
    profile: ColumnProfile,
    hints: ColumnHints | None = None,
    thresholds: Settings | None = None,
    table: str | None = None,
    in_sort_key: bool = False,
) -> Recommendation:
    """Produce a recommendation for one column. 🎯

    Args:
        profile: Column statistics snapshot.
        hints: Caller judgement for this column.
        thresholds: Threshold overrides (default: module settings).
        table: Table name, used to attribute errors.
        in_sort_key: Column is part of the proposed clustering key, so it
            must be NOT NULL.

    Returns:
        Recommendation with storage type, nullability and rationale.

    Raises:
        AdvisorError: Any rule failure, attributed to the column and table.
    """
    hints = hints or NO_HINTS
    thresholds = thresholds or settings
    try:
        storage_type, encoding, type_reason = classify_storage(profile, hints, thresholds)
        default_value = hints.default_value
        is_enum = storage_type.family is TypeFamily.ENUM
        if default_value is None and is_enum and storage_type.values:
            # Enum columns default to their first member
            default_value = storage_type.values[0]
        nullability = resolve_nullability(
            profile,
            requested_nullable=hints.requested_nullable,
            default_value=default_value,
            thresholds=thresholds,
            in_sort_key=in_sort_key,
        )
    except AdvisorError as e:
        e.attribute(column=profile.name, table=table)
        raise

    return Recommendation(
        column=profile.name,
        storage_type=storage_type,
        nullability=nullability,
        encoding=encoding,
        rationale=f"{type_reason}; {nullability.rationale}",
    )


def advise_table(
    table: TableProfile | Sequence[ColumnProfile],
    hints: Mapping[str, ColumnHints] | None = None,
    append_only: bool | None = None,
    secondary_filter_columns: Iterable[str] = (),
    fail_fast: bool = False,
    thresholds: Settings | None = None,
) -> TableAdvice:
    """Advise every column of a table and propose its clustering key. 🧭

    Args:
        table: TableProfile, or bare column profiles in declaration order.
        hints: Caller judgement keyed by column name.
        append_only: Overrides ``TableProfile.append_only`` when given.
        secondary_filter_columns: Excluded columns to append to the key.
        fail_fast: Raise the first column error instead of collecting it.
        thresholds: Threshold overrides (default: module settings).

    Returns:
        TableAdvice. With ``fail_fast=False`` columns that fail are reported
        in ``errors`` and have no recommendation.

    Raises:
        EmptySchema: If the table has no columns.
        DuplicateColumnError: If a column name repeats.
    """
    if isinstance(table, TableProfile):
        table_name = table.name
        profiles = list(table.columns)
        append_only = table.append_only if append_only is None else append_only
    else:
        table_name = None
        profiles = list(table)
    hints = hints or {}
    thresholds = thresholds or settings
    label = table_name or "table"

    key_plan = plan_key_ordering(
        profiles,
        append_only=bool(append_only),
        secondary_filter_columns=secondary_filter_columns,
        time_precision={
            name: hint.time_precision
            for name, hint in hints.items()
            if hint.time_precision is not None
        },
        thresholds=thresholds,
        table=table_name,
    )

    logger.info(f"🧭 Advising {len(profiles)} columns for {label}")
    sort_key = set(key_plan.columns)

    recommendations: list[Recommendation] = []
    errors: list[ColumnIssue] = []
    for profile in profiles:
        try:
            recommendations.append(
                advise_column(
                    profile,
                    hints.get(profile.name),
                    thresholds,
                    table=table_name,
                    in_sort_key=profile.name in sort_key,
                )
            )
        except AdvisorError as e:
            if fail_fast:
                raise
            logger.warning(f"⚠️  {label}.{profile.name}: {type(e).__name__}: {e.message}")
            errors.append(
                ColumnIssue(column=profile.name, error_type=type(e).__name__, message=e.message)
            )

    advice = TableAdvice(
        table=table_name,
        recommendations=tuple(recommendations),
        key_plan=key_plan,
        errors=tuple(errors),
    )

    if advice.ambiguous_columns:
        logger.warning(
            f"⚠️  {label}: nullability needs review for {', '.join(advice.ambiguous_columns)}"
        )
    logger.info(
        f"✅ {label}: {len(recommendations)} recommendations, "
        f"key ({', '.join(key_plan.columns)}), {len(errors)} errors"
    )
    return advice
