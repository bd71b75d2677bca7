"""Input models for the schema advisor.

- ColumnProfile: immutable statistics + usage snapshot for one column
- ColumnUsage: query-log usage signals for one column
- ColumnHints: caller judgement the heuristics leave implicit
- TableProfile: all column profiles for one candidate table
"""

from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from olapadvisor.exceptions import ProfileValidationError


class SemanticRole(str, Enum):
    """What a column means to the table."""

    KEY = "key"
    METRIC = "metric"
    DIMENSION = "dimension"
    METADATA = "metadata"


class ValueKind(str, Enum):
    """Logical kind of the values observed in a column."""

    INTEGER = "integer"
    UNSIGNED_INTEGER = "unsigned_integer"
    FLOAT = "float"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"
    STRING = "string"
    NESTED = "nested"
    JSON = "json"


class TimePrecision(str, Enum):
    """Precision tier required for a date/time column, coarsest first."""

    DATE = "date"
    SECOND = "second"
    MILLISECOND = "millisecond"
    MICROSECOND = "microsecond"
    NANOSECOND = "nanosecond"

    @property
    def rank(self) -> int:
        """Granularity rank (higher is finer)."""
        return list(TimePrecision).index(self)


NUMERIC_KINDS = frozenset(
    {ValueKind.INTEGER, ValueKind.UNSIGNED_INTEGER, ValueKind.FLOAT, ValueKind.DECIMAL}
)
TIME_KINDS = frozenset({ValueKind.DATE, ValueKind.DATETIME})


class ColumnUsage(BaseModel):
    """Query-log usage for one column over the caller's lookback window."""

    model_config = ConfigDict(frozen=True)

    used_in_filter: bool = False
    used_in_group_by: bool = False
    used_in_order_by_candidate: bool = False


class ColumnProfile(BaseModel):
    """Snapshot of one sampling pass over a candidate column.

    Invariants are checked at construction; the model is frozen afterwards.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1)
    value_kind: ValueKind
    semantic_role: SemanticRole = SemanticRole.DIMENSION

    # Statistics snapshot
    row_count: int = Field(ge=0)
    distinct_count: int = Field(default=0, ge=0)  # Unique non-null values
    null_count: int = Field(default=0, ge=0)
    observed_min: int | float | None = None
    observed_max: int | float | None = None
    is_fixed_length: bool = False
    is_stable_enum: bool = False  # Value set known not to churn
    is_high_entropy_id: bool = False  # UUID-shaped or similar identifiers

    # Usage summary
    used_in_filter: bool = False
    used_in_group_by: bool = False
    used_in_order_by_candidate: bool = False

    @model_validator(mode="after")
    def _check_invariants(self) -> "ColumnProfile":
        if self.distinct_count > self.row_count:
            raise ValueError(
                f"distinct_count ({self.distinct_count}) exceeds row_count ({self.row_count})"
            )
        if self.null_count > self.row_count:
            raise ValueError(
                f"null_count ({self.null_count}) exceeds row_count ({self.row_count})"
            )
        if (
            self.observed_min is not None
            and self.observed_max is not None
            and self.observed_min > self.observed_max
        ):
            raise ValueError(
                f"observed_min ({self.observed_min}) exceeds observed_max ({self.observed_max})"
            )
        return self

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ColumnProfile":
        """Build a profile from a flat record, e.g. one row of a profiling query.

        Raises:
            ProfileValidationError: If the record violates a profile invariant.
        """
        try:
            return cls.model_validate(dict(data))
        except ValidationError as e:
            column = data.get("name") if isinstance(data.get("name"), str) else None
            raise ProfileValidationError(str(e), column=column) from e

    def with_usage(self, usage: ColumnUsage) -> "ColumnProfile":
        """Return a copy carrying the given usage signals."""
        return self.model_copy(update=usage.model_dump())


class ColumnHints(BaseModel):
    """Per-column judgement supplied by the caller.

    Nothing here is inferred: a float only becomes double precision when
    ``precision_sensitive`` says so, a decimal needs explicit precision and
    scale, and a time column keeps its default tier unless told otherwise.
    """

    model_config = ConfigDict(frozen=True)

    precision_sensitive: bool = False
    decimal_precision: int | None = None
    decimal_scale: int | None = None
    time_precision: TimePrecision | None = None
    requested_nullable: bool | None = None
    default_value: Any = None
    enum_values: tuple[str, ...] = ()
    json_subpaths: tuple[tuple[str, str], ...] = ()  # Accepts a {path: type name} mapping

    @field_validator("json_subpaths", mode="before")
    @classmethod
    def _subpath_items(cls, value: Any) -> Any:
        return tuple(value.items()) if isinstance(value, Mapping) else value


class TableProfile(BaseModel):
    """All column profiles for one candidate table, in declaration order."""

    model_config = ConfigDict(frozen=True)

    name: str
    columns: tuple[ColumnProfile, ...] = ()
    append_only: bool = False

    @property
    def column_names(self) -> list[str]:
        return [column.name for column in self.columns]
