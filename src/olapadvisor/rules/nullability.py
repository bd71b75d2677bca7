"""Nullability resolver. 🚫

Nullable columns pay for a null bitmap on every read, so NULL is only
recommended for very sparse columns. Mid-range sparsity is reported as
``ambiguous``: a column that is 40% empty usually wants restructuring, and
picking either side silently would hide that.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict

from olapadvisor.config import Settings, settings
from olapadvisor.exceptions import InsufficientSample, KeyCannotBeNullable
from olapadvisor.logging_config import get_logger
from olapadvisor.models import ColumnProfile, SemanticRole, ValueKind

logger = get_logger(__name__)


class NullabilityKind(str, Enum):
    NOT_NULL_WITH_DEFAULT = "not_null_with_default"
    NULLABLE = "nullable"
    AMBIGUOUS = "ambiguous"


# Explicit non-recommendation: the caller must decide, never auto-resolve
AmbiguousNullability = NullabilityKind.AMBIGUOUS


class NullabilityDecision(BaseModel):
    """Outcome of the nullability rules for one column."""

    model_config = ConfigDict(frozen=True)

    kind: NullabilityKind
    rule: int
    default_value: Any = None
    null_ratio: float | None = None
    rationale: str

    @property
    def nullable(self) -> bool:
        return self.kind is NullabilityKind.NULLABLE

    @property
    def needs_review(self) -> bool:
        return self.kind is NullabilityKind.AMBIGUOUS


def type_default(value_kind: ValueKind) -> Any:
    """Sentinel stored in place of NULL for a NOT NULL column.

    Example:
        >>> type_default(ValueKind.UNSIGNED_INTEGER)
        0
        >>> type_default(ValueKind.STRING)
        ''
    """
    if value_kind in (ValueKind.INTEGER, ValueKind.UNSIGNED_INTEGER):
        return 0
    if value_kind is ValueKind.FLOAT:
        return 0.0
    if value_kind is ValueKind.DECIMAL:
        return Decimal("0")
    if value_kind is ValueKind.BOOLEAN:
        return False
    if value_kind is ValueKind.DATE:
        return date(1970, 1, 1)
    if value_kind is ValueKind.DATETIME:
        return datetime(1970, 1, 1)
    if value_kind is ValueKind.NESTED:
        return []
    if value_kind is ValueKind.JSON:
        return {}
    return ""


def resolve_nullability(
    profile: ColumnProfile,
    requested_nullable: bool | None = None,
    default_value: Any = None,
    thresholds: Settings | None = None,
    in_sort_key: bool = False,
) -> NullabilityDecision:
    """Decide between NOT NULL with a default, nullable, or ambiguous.

    Args:
        profile: Column statistics snapshot.
        requested_nullable: Caller's request; only enforced for key and
            sort key columns.
        default_value: Sentinel to use instead of the type default.
        thresholds: Threshold overrides (default: module settings).
        in_sort_key: Column is part of the proposed clustering key.

    Returns:
        NullabilityDecision naming the rule that matched.

    Raises:
        KeyCannotBeNullable: If a key or sort key column was requested as nullable.
        InsufficientSample: If ``row_count`` is zero for any other column.
    """
    t = thresholds or settings
    default = type_default(profile.value_kind) if default_value is None else default_value

    is_key = profile.semantic_role is SemanticRole.KEY
    if is_key or in_sort_key:
        label = "key column" if is_key else "clustering key column"
        if requested_nullable:
            raise KeyCannotBeNullable(f"{label}s must be NOT NULL", column=profile.name)
        return NullabilityDecision(
            kind=NullabilityKind.NOT_NULL_WITH_DEFAULT,
            rule=1,
            default_value=default,
            null_ratio=profile.null_count / profile.row_count if profile.row_count else None,
            rationale=f"{label} is always NOT NULL",
        )

    if profile.row_count == 0:
        raise InsufficientSample(
            "cannot compute null ratio from zero rows", column=profile.name
        )

    null_ratio = profile.null_count / profile.row_count

    if null_ratio < t.not_null_max_null_ratio:
        decision = NullabilityDecision(
            kind=NullabilityKind.NOT_NULL_WITH_DEFAULT,
            rule=3,
            default_value=default,
            null_ratio=null_ratio,
            rationale=f"{null_ratio:.1%} nulls; store {default!r} instead of NULL",
        )
    elif null_ratio < t.nullable_min_null_ratio:
        decision = NullabilityDecision(
            kind=NullabilityKind.AMBIGUOUS,
            rule=4,
            null_ratio=null_ratio,
            rationale=(
                f"{null_ratio:.1%} nulls is neither dense nor sparse; consider "
                "splitting the column into its own table instead of choosing a type"
            ),
        )
    else:
        decision = NullabilityDecision(
            kind=NullabilityKind.NULLABLE,
            rule=5,
            null_ratio=null_ratio,
            rationale=f"{null_ratio:.1%} nulls justifies the null bitmap",
        )

    logger.debug(f"{profile.name}: nullability rule {decision.rule} -> {decision.kind.value}")
    return decision
