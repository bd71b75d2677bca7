"""Key ordering planner: propose the clustering (ORDER BY) key for a table. 🗂️

Ordering rules:

1. JSON and nested columns, columns with more than 1,000,000 distinct values
   and high-entropy identifiers never lead the key. They are listed as excluded,
   or appended at the very end when the caller asks for them explicitly.
2. Remaining columns rank by filter usage first, then ascending distinct
   count, then GROUP BY usage.
3. Date/time columns go last, except on append-only tables where the single
   most granular time column leads.
4. Equal ranks keep declaration order, so output is reproducible.
"""

from collections.abc import Iterable, Mapping, Sequence

from pydantic import BaseModel, ConfigDict

from olapadvisor.config import Settings, settings
from olapadvisor.exceptions import AdvisorError, DuplicateColumnError, EmptySchema
from olapadvisor.logging_config import get_logger
from olapadvisor.models import TIME_KINDS, ColumnProfile, TimePrecision, ValueKind

logger = get_logger(__name__)

# Values of these kinds have no total order to sort a key on
UNSORTABLE_KINDS = frozenset({ValueKind.JSON, ValueKind.NESTED})


class KeyPosition(BaseModel):
    """One column in the proposed key, with the rule that placed it."""

    model_config = ConfigDict(frozen=True)

    column: str
    rule: int
    rationale: str


class ExcludedColumn(BaseModel):
    model_config = ConfigDict(frozen=True)

    column: str
    reason: str


class KeyOrderingPlan(BaseModel):
    """Proposed clustering key plus the columns kept out of it."""

    model_config = ConfigDict(frozen=True)

    positions: tuple[KeyPosition, ...] = ()
    excluded: tuple[ExcludedColumn, ...] = ()

    @property
    def columns(self) -> list[str]:
        return [position.column for position in self.positions]

    @property
    def excluded_columns(self) -> list[str]:
        return [entry.column for entry in self.excluded]


def ensure_unique_names(profiles: Sequence[ColumnProfile], table: str | None = None) -> None:
    """Reject tables that declare the same column twice."""
    seen: set[str] = set()
    for profile in profiles:
        if profile.name in seen:
            raise DuplicateColumnError(
                "column declared more than once", column=profile.name, table=table
            )
        seen.add(profile.name)


def exclusion_reason(profile: ColumnProfile, thresholds: Settings | None = None) -> str | None:
    """Why a column may never lead the key, or None if it is eligible."""
    t = thresholds or settings
    if profile.value_kind is ValueKind.JSON:
        return "JSON documents cannot be compared for clustering"
    if profile.value_kind is ValueKind.NESTED:
        return "nested columns cannot be sorted on"
    if profile.is_high_entropy_id:
        return "high-entropy identifier gives no locality"
    if profile.distinct_count > t.key_max_distinct:
        return (
            f"{profile.distinct_count:,} distinct values exceeds "
            f"{t.key_max_distinct:,}"
        )
    return None


def _priority(profile: ColumnProfile) -> tuple[bool, int, bool]:
    return (not profile.used_in_filter, profile.distinct_count, not profile.used_in_group_by)


def _describe(profile: ColumnProfile) -> str:
    parts = [
        "used in filters" if profile.used_in_filter else "not used in filters",
        f"{profile.distinct_count:,} distinct values",
    ]
    if profile.used_in_group_by:
        parts.append("used in GROUP BY")
    if profile.used_in_order_by_candidate:
        parts.append("already sorted on in queries")
    return ", ".join(parts)


def _granularity(profile: ColumnProfile, time_precision: Mapping[str, TimePrecision]) -> int:
    tier = time_precision.get(profile.name)
    if tier is None:
        tier = TimePrecision.SECOND if profile.value_kind is ValueKind.DATETIME else TimePrecision.DATE
    return tier.rank


def _ranked_positions(profiles: list[ColumnProfile], rule: int, label: str) -> list[KeyPosition]:
    """Sort by priority (stable) and explain each placement."""
    ranked = sorted(profiles, key=_priority)
    positions = []
    for idx, profile in enumerate(ranked):
        rationale = f"{label}: {_describe(profile)}"
        if idx > 0 and _priority(ranked[idx - 1]) == _priority(profile):
            rationale += f"; tied with {ranked[idx - 1].name}, kept declaration order"
            positions.append(KeyPosition(column=profile.name, rule=4, rationale=rationale))
        else:
            positions.append(KeyPosition(column=profile.name, rule=rule, rationale=rationale))
    return positions


def plan_key_ordering(
    profiles: Sequence[ColumnProfile],
    append_only: bool = False,
    secondary_filter_columns: Iterable[str] = (),
    time_precision: Mapping[str, TimePrecision] | None = None,
    thresholds: Settings | None = None,
    table: str | None = None,
) -> KeyOrderingPlan:
    """Propose a clustering key ordering for one table. 🗂️

    Args:
        profiles: Column profiles in declaration order.
        append_only: Table only ever receives new rows in time order.
        secondary_filter_columns: Excluded columns the caller still wants
            appended at the end of the key for secondary filtering.
        time_precision: Known precision tier per time column, used to find
            the most granular one.
        thresholds: Threshold overrides (default: module settings).
        table: Table name, used to attribute errors.

    Returns:
        KeyOrderingPlan. Every input column appears exactly once, either in
        ``positions`` or in ``excluded``.

    Raises:
        EmptySchema: If no columns were supplied.
        DuplicateColumnError: If a column name repeats.
        AdvisorError: If a requested column is unknown or cannot be sorted on.

    Example:
        >>> plan = plan_key_ordering([country, ts, uuid])
        >>> plan.columns, plan.excluded_columns
        (['country', 'ts'], ['uuid'])
    """
    if not profiles:
        raise EmptySchema("no columns supplied to the key planner", table=table)
    ensure_unique_names(profiles, table=table)

    time_precision = time_precision or {}
    requested = list(dict.fromkeys(secondary_filter_columns))
    known = {profile.name for profile in profiles}
    unknown = [name for name in requested if name not in known]
    if unknown:
        raise AdvisorError(
            f"unknown columns requested for secondary filtering: {', '.join(unknown)}",
            table=table,
        )
    unsortable = [
        p.name for p in profiles if p.name in requested and p.value_kind in UNSORTABLE_KINDS
    ]
    if unsortable:
        raise AdvisorError(
            f"columns that cannot be sorted on requested for the key: {', '.join(unsortable)}",
            table=table,
        )

    eligible: list[ColumnProfile] = []
    excluded: dict[str, str] = {}
    for profile in profiles:
        reason = exclusion_reason(profile, thresholds)
        if reason is None:
            eligible.append(profile)
        else:
            excluded[profile.name] = reason

    time_columns = [p for p in eligible if p.value_kind in TIME_KINDS]
    other_columns = [p for p in eligible if p.value_kind not in TIME_KINDS]

    positions: list[KeyPosition] = []
    if append_only and time_columns:
        lead = max(
            enumerate(time_columns),
            key=lambda item: (_granularity(item[1], time_precision), -item[0]),
        )[1]
        positions.append(
            KeyPosition(
                column=lead.name,
                rule=3,
                rationale="append-only table: most granular time column leads the key",
            )
        )
        time_columns = [p for p in time_columns if p.name != lead.name]

    positions.extend(_ranked_positions(other_columns, rule=2, label="ranked"))
    positions.extend(
        _ranked_positions(time_columns, rule=3, label="time column placed after other columns")
    )

    for name in requested:
        if name in excluded:
            positions.append(
                KeyPosition(
                    column=name,
                    rule=1,
                    rationale=(
                        f"excluded from leading positions ({excluded.pop(name)}); "
                        "appended on request for secondary filtering"
                    ),
                )
            )

    plan = KeyOrderingPlan(
        positions=tuple(positions),
        excluded=tuple(
            ExcludedColumn(column=name, reason=reason) for name, reason in excluded.items()
        ),
    )
    logger.debug(f"{table or 'table'}: key {plan.columns}, excluded {plan.excluded_columns}")
    return plan
