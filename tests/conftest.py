"""Shared pytest fixtures for the olapadvisor test suite."""

from datetime import datetime
from typing import Any, Callable

import polars as pl
import pytest

from olapadvisor.config import Settings
from olapadvisor.models import ColumnProfile


@pytest.fixture
def make_profile() -> Callable[..., ColumnProfile]:
    """Factory fixture returning a column profile with sensible defaults."""

    def _make(name: str = "col", **overrides: Any) -> ColumnProfile:
        fields: dict[str, Any] = {
            "name": name,
            "value_kind": "string",
            "semantic_role": "dimension",
            "row_count": 100_000,
            "distinct_count": 50,
            "null_count": 0,
        }
        fields.update(overrides)
        return ColumnProfile(**fields)

    return _make


@pytest.fixture
def thresholds() -> Settings:
    """Default thresholds, isolated from any environment overrides."""
    return Settings(_env_file=None)


@pytest.fixture
def events_df() -> pl.DataFrame:
    """Small event sample covering every profiled dtype family."""
    return pl.DataFrame(
        {
            "event_id": [
                "0b6f6a4e-3f1e-4f2a-9d3e-2f6c1a7b8c90",
                "1c7a7b5f-4a2f-4b3b-8e4f-3a7d2b8c9d01",
                "2d8b8c6a-5b3a-4c4c-9f5a-4b8e3c9dae12",
                "3e9c9d7b-6c4b-4d5d-8a6b-5c9f4daebf23",
            ],
            "country": ["US", "DE", "US", None],
            "clicks": [0, 12, 255, 7],
            "price": [1.5, 2.25, None, 4.0],
            "is_bot": [False, False, True, False],
            "tags": [["a"], ["b", "c"], [], ["a"]],
            "ts": [datetime(2024, 1, 1, 0, 0, sec) for sec in range(4)],
        }
    ).with_columns(pl.col("clicks").cast(pl.UInt32))
