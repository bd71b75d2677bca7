"""Configuration settings for the OLAP schema advisor."""

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Advisor thresholds using Pydantic BaseSettings.

    Defaults follow the published heuristics tables. Override any of them
    with an ``OLAPADVISOR_`` prefixed environment variable or a ``.env`` file.
    """

    # Cardinality encoder
    enum_max_distinct: int = 10  # Stable value sets up to this size become enums
    enum8_max_distinct: int = 127  # Largest enum that still fits an 8-bit tag
    dictionary_max_distinct: int = 10_000
    dictionary_max_ratio: float = 0.2  # distinct_count / row_count
    benchmark_max_distinct: int = 100_000  # Upper edge of the "benchmark first" zone

    # Nullability resolver
    not_null_max_null_ratio: float = 0.05
    nullable_min_null_ratio: float = 0.95

    # Key ordering planner
    key_max_distinct: int = 1_000_000

    # Type classifier
    max_decimal_precision: int = 76

    @field_validator(
        "dictionary_max_ratio", "not_null_max_null_ratio", "nullable_min_null_ratio"
    )
    @classmethod
    def _ensure_ratio_bounds(_cls, value: float) -> float:
        """Ratios must stay within [0, 1]."""
        if not 0.0 <= value <= 1.0:
            raise ValueError("ratio thresholds must be between 0 and 1")
        return value

    @field_validator(
        "enum_max_distinct",
        "enum8_max_distinct",
        "dictionary_max_distinct",
        "benchmark_max_distinct",
        "key_max_distinct",
        "max_decimal_precision",
    )
    @classmethod
    def _ensure_positive_counts(_cls, value: int) -> int:
        """Count thresholds must be at least 1."""
        if value < 1:
            raise ValueError("count thresholds must be at least 1")
        return value

    @model_validator(mode="after")
    def _ensure_consistent_ordering(self) -> "Settings":
        """Reject threshold combinations that would make the rules overlap."""
        if self.not_null_max_null_ratio >= self.nullable_min_null_ratio:
            raise ValueError(
                "not_null_max_null_ratio must be below nullable_min_null_ratio"
            )
        if self.dictionary_max_distinct > self.benchmark_max_distinct:
            raise ValueError(
                "dictionary_max_distinct must not exceed benchmark_max_distinct"
            )
        if self.enum_max_distinct > self.dictionary_max_distinct:
            raise ValueError("enum_max_distinct must not exceed dictionary_max_distinct")
        return self

    model_config = SettingsConfigDict(
        env_prefix="OLAPADVISOR_", env_file=".env", extra="ignore"
    )


settings = Settings()
