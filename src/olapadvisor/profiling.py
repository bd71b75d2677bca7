"""DataFrameProfiler: build column profiles from a polars sample. 🔬

Profiling sits upstream of the advisor. It turns a sampled DataFrame (or a
lazy scan over Parquet) into the statistics snapshot the rules consume, and
merges in usage signals and roles the caller gathered from query logs.
"""

from collections.abc import Iterable, Mapping

import polars as pl
import structlog

from olapadvisor.exceptions import ProfileValidationError
from olapadvisor.models import (
    NUMERIC_KINDS,
    ColumnProfile,
    ColumnUsage,
    SemanticRole,
    TableProfile,
    ValueKind,
)

logger = structlog.get_logger()

UUID_PATTERN = r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"


def value_kind_for(dtype: pl.DataType) -> ValueKind:
    """Map a polars dtype to the advisor's value kind.

    Raises:
        ProfileValidationError: For dtypes with no storage recommendation
            (durations, times of day, objects).
    """
    if dtype.is_unsigned_integer():
        return ValueKind.UNSIGNED_INTEGER
    if dtype.is_integer():
        return ValueKind.INTEGER
    if dtype.is_float():
        return ValueKind.FLOAT
    if dtype.is_decimal():
        return ValueKind.DECIMAL
    if dtype == pl.Boolean:
        return ValueKind.BOOLEAN
    if dtype == pl.Date:
        return ValueKind.DATE
    if isinstance(dtype, pl.Datetime):
        return ValueKind.DATETIME
    if dtype in (pl.String, pl.Categorical, pl.Binary) or isinstance(dtype, pl.Enum):
        return ValueKind.STRING
    if dtype.is_nested():
        return ValueKind.NESTED
    if dtype == pl.Null:
        return ValueKind.STRING
    raise ProfileValidationError(f"unsupported dtype {dtype}")


class DataFrameProfiler:
    """Profile a polars DataFrame into advisor inputs."""

    def __init__(
        self,
        usage: Mapping[str, ColumnUsage] | None = None,
        roles: Mapping[str, SemanticRole] | None = None,
        stable_enums: Iterable[str] = (),
        json_columns: Iterable[str] = (),
    ):
        """Initialize the profiler with caller-supplied signals.

        Args:
            usage: Query-log usage keyed by column name.
            roles: Semantic role keyed by column name (default: dimension).
            stable_enums: Columns whose value set is known not to churn.
            json_columns: String columns that hold JSON documents.
        """
        self.usage = dict(usage or {})
        self.roles = dict(roles or {})
        self.stable_enums = set(stable_enums)
        self.json_columns = set(json_columns)

    def profile_column(self, series: pl.Series) -> ColumnProfile:
        """Compute the statistics snapshot for one column.

        Args:
            series: Sampled column values.

        Returns:
            ColumnProfile with usage and role merged in.
        """
        name = series.name
        value_kind = value_kind_for(series.dtype)
        if name in self.json_columns:
            value_kind = ValueKind.JSON

        values = series.drop_nulls()
        observed_min = observed_max = None
        if value_kind in NUMERIC_KINDS and len(values) > 0:
            observed_min = _plain_number(values.min())
            observed_max = _plain_number(values.max())

        is_fixed_length = False
        is_high_entropy_id = False
        if value_kind is ValueKind.STRING and series.dtype != pl.Binary and len(values) > 0:
            text = values.cast(pl.String)
            is_fixed_length = text.str.len_chars().n_unique() == 1
            is_high_entropy_id = bool(text.str.contains(UUID_PATTERN).all())

        usage = self.usage.get(name, ColumnUsage())
        profile = ColumnProfile.from_mapping(
            {
                "name": name,
                "value_kind": value_kind,
                "semantic_role": self.roles.get(name, SemanticRole.DIMENSION),
                "row_count": len(series),
                "distinct_count": values.n_unique() if len(values) > 0 else 0,
                "null_count": series.null_count(),
                "observed_min": observed_min,
                "observed_max": observed_max,
                "is_fixed_length": is_fixed_length,
                "is_stable_enum": name in self.stable_enums,
                "is_high_entropy_id": is_high_entropy_id,
                **usage.model_dump(),
            }
        )
        logger.debug(
            "Profiled column",
            column=name,
            value_kind=value_kind.value,
            distinct=profile.distinct_count,
            nulls=profile.null_count,
        )
        return profile

    def profile(
        self,
        df: pl.DataFrame | pl.LazyFrame,
        table_name: str,
        append_only: bool = False,
    ) -> TableProfile:
        """Profile every column of a sample, in schema order. 🔬

        Args:
            df: Sample to profile; lazy frames are collected first.
            table_name: Name of the candidate table.
            append_only: Table only ever receives new rows in time order.

        Returns:
            TableProfile ready for ``advise_table``.
        """
        if isinstance(df, pl.LazyFrame):
            df = df.collect()

        logger.info("Profiling table", table=table_name, rows=len(df), columns=len(df.columns))
        columns = tuple(self.profile_column(df.get_column(name)) for name in df.columns)
        return TableProfile(name=table_name, columns=columns, append_only=append_only)


def _plain_number(value) -> int | float | None:
    """Polars decimals come back as ``decimal.Decimal``; profiles hold int/float."""
    if value is None or isinstance(value, (int, float)):
        return value
    return float(value)
