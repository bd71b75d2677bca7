"""Tests for the schema advisor façade. 🧭"""

import polars as pl
import pytest

from olapadvisor.advisor import advise_column, advise_table
from olapadvisor.exceptions import (
    EmptySchema,
    InvalidDecimalSpec,
    KeyCannotBeNullable,
    RangeUnderflow,
)
from olapadvisor.models import ColumnHints, TableProfile, TimePrecision
from olapadvisor.rules.encoding import EncodingKind
from olapadvisor.rules.nullability import NullabilityKind

ROWS = 5_000_000


@pytest.fixture
def events_table(make_profile) -> TableProfile:
    """Candidate events table with one column per interesting rule outcome."""
    return TableProfile(
        name="events",
        columns=(
            make_profile(
                "event_id",
                semantic_role="key",
                row_count=ROWS,
                distinct_count=ROWS,
                is_fixed_length=True,
                is_high_entropy_id=True,
            ),
            make_profile("country", row_count=ROWS, distinct_count=200, used_in_filter=True),
            make_profile(
                "clicks",
                value_kind="unsigned_integer",
                semantic_role="metric",
                row_count=ROWS,
                distinct_count=256,
                observed_min=0,
                observed_max=255,
            ),
            make_profile(
                "price",
                value_kind="float",
                semantic_role="metric",
                row_count=ROWS,
                distinct_count=2_500_000,
                null_count=2_000_000,
            ),
            make_profile(
                "referrer", row_count=ROWS, distinct_count=20_000, null_count=4_900_000
            ),
            make_profile("ts", value_kind="datetime", row_count=ROWS, distinct_count=86_400),
        ),
    )


class TestAdviseColumn:
    """Single-column recommendations. 🎯"""

    def test_byte_range_is_uint8(self, make_profile):
        profile = make_profile(
            "clicks", value_kind="unsigned_integer", observed_min=0, observed_max=255
        )

        rec = advise_column(profile)

        assert rec.storage_type.name == "UInt8"
        assert rec.nullability.kind is NullabilityKind.NOT_NULL_WITH_DEFAULT
        assert rec.nullability.default_value == 0
        assert rec.encoding is None

    def test_string_dimension_gets_dictionary(self, make_profile):
        rec = advise_column(make_profile("country", distinct_count=50, row_count=100_000))

        assert rec.storage_type.name == "LowCardinality(String)"
        assert rec.encoding.kind is EncodingKind.DICTIONARY
        assert "dictionary" in rec.rationale

    def test_stable_enum_uses_hint_values(self, make_profile):
        profile = make_profile("status", distinct_count=2, is_stable_enum=True)

        rec = advise_column(profile, ColumnHints(enum_values=("open", "closed")))

        assert rec.storage_type.name == "Enum8('open' = 1, 'closed' = 2)"

    def test_float_precision_hint(self, make_profile):
        profile = make_profile("ratio", value_kind="float")

        assert advise_column(profile).storage_type.name == "Float32"
        assert (
            advise_column(profile, ColumnHints(precision_sensitive=True)).storage_type.name
            == "Float64"
        )

    def test_decimal_uses_hint_digits(self, make_profile):
        profile = make_profile("amount", value_kind="decimal")

        rec = advise_column(profile, ColumnHints(decimal_precision=18, decimal_scale=4))

        assert rec.storage_type.name == "Decimal(18, 4)"
        assert rec.storage_type.to_polars() == pl.Decimal(18, 4)

    def test_decimal_without_hints_fails_with_attribution(self, make_profile):
        profile = make_profile("amount", value_kind="decimal")

        with pytest.raises(InvalidDecimalSpec) as exc_info:
            advise_column(profile, table="orders")

        assert exc_info.value.column == "amount"
        assert exc_info.value.table == "orders"
        assert str(exc_info.value).startswith("orders.amount:")

    def test_time_precision_hint(self, make_profile):
        profile = make_profile("ts", value_kind="datetime")

        rec = advise_column(profile, ColumnHints(time_precision=TimePrecision.MILLISECOND))

        assert rec.storage_type.name == "DateTime64(3)"

    def test_date_defaults_to_date(self, make_profile):
        assert advise_column(make_profile("day", value_kind="date")).storage_type.name == "Date"

    def test_json_subpaths(self, make_profile):
        profile = make_profile("payload", value_kind="json")

        rec = advise_column(profile, ColumnHints(json_subpaths={"user.id": "UInt64"}))

        assert rec.storage_type.name == "JSON(user.id UInt64)"
        assert rec.nullability.default_value == {}

    def test_nested_defaults_to_empty_collection(self, make_profile):
        rec = advise_column(make_profile("tags", value_kind="nested"))

        assert rec.storage_type.name == "Nested"
        assert rec.nullability.default_value == []

    def test_boolean(self, make_profile):
        rec = advise_column(make_profile("is_bot", value_kind="boolean", distinct_count=2))

        assert rec.storage_type.name == "Bool"
        assert rec.nullability.default_value is False

    def test_fixed_length_plain_string_mentions_fixed_width(self, make_profile):
        profile = make_profile("sku", distinct_count=90_000, row_count=100_000, is_fixed_length=True)

        rec = advise_column(profile)

        assert rec.storage_type.name == "String"
        assert "fixed-width" in rec.rationale

    def test_sparse_dictionary_column_type(self, make_profile):
        profile = make_profile("referrer", distinct_count=40, null_count=99_000)

        rec = advise_column(profile)

        assert rec.nullability.nullable is True
        assert rec.column_type == "LowCardinality(Nullable(String))"


class TestAdviseTable:
    """Whole-table evaluation. 🧭"""

    def test_recommendations_in_declaration_order(self, events_table):
        advice = advise_table(events_table)

        assert [r.column for r in advice.recommendations] == events_table.column_names
        assert advice.table == "events"
        assert advice.ok is True

    def test_key_plan(self, events_table):
        advice = advise_table(events_table)

        assert advice.key_plan.columns == ["country", "clicks", "referrer", "ts"]
        assert advice.key_plan.excluded_columns == ["event_id", "price"]

    def test_append_only_override(self, events_table):
        advice = advise_table(events_table, append_only=True)

        assert advice.key_plan.columns[0] == "ts"

    def test_append_only_from_table_profile(self, events_table):
        table = events_table.model_copy(update={"append_only": True})

        assert advise_table(table).key_plan.columns[0] == "ts"

    def test_review_lists(self, events_table):
        advice = advise_table(events_table)

        assert advice.ambiguous_columns == ["price"]
        assert advice.benchmark_columns == ["referrer"]
        # 98% nulls, but referrer is in the sort key
        assert advice.recommendation("referrer").column_type == "LowCardinality(String)"

    def test_idempotent(self, events_table):
        assert advise_table(events_table) == advise_table(events_table)

    def test_collects_column_errors(self, make_profile):
        profiles = [
            make_profile("country"),
            make_profile(
                "delta", value_kind="unsigned_integer", observed_min=-5, observed_max=10
            ),
            make_profile("id", semantic_role="key", distinct_count=1_000),
        ]

        advice = advise_table(profiles, hints={"id": ColumnHints(requested_nullable=True)})

        assert [r.column for r in advice.recommendations] == ["country"]
        assert [(e.column, e.error_type) for e in advice.errors] == [
            ("delta", "RangeUnderflow"),
            ("id", "KeyCannotBeNullable"),
        ]
        assert advice.ok is False
        # Failing columns still appear in the key plan or its exclusions
        assert sorted(advice.key_plan.columns + advice.key_plan.excluded_columns) == [
            "country",
            "delta",
            "id",
        ]

    def test_fail_fast_raises_first_error(self, make_profile):
        table = TableProfile(
            name="metrics",
            columns=(
                make_profile(
                    "delta", value_kind="unsigned_integer", observed_min=-5, observed_max=10
                ),
            ),
        )

        with pytest.raises(RangeUnderflow) as exc_info:
            advise_table(table, fail_fast=True)

        assert exc_info.value.table == "metrics"
        assert exc_info.value.column == "delta"

    def test_empty_table_fails(self):
        with pytest.raises(EmptySchema):
            advise_table(TableProfile(name="empty"))

    def test_polars_schema(self, events_table):
        schema = advise_table(events_table).polars_schema()

        assert schema["clicks"] == pl.UInt8
        assert schema["country"] == pl.Categorical
        assert schema["price"] == pl.Float32
        assert schema["event_id"] == pl.String

    def test_to_dict(self, events_table):
        data = advise_table(events_table).to_dict()

        assert data["table"] == "events"
        assert data["columns"][2]["type"] == "UInt8"
        assert data["columns"][3]["nullability"] == "ambiguous"
        assert data["columns"][4]["benchmark_required"] is True
        assert data["order_by"][0]["column"] == "country"
        assert data["excluded_from_key"][0] == {
            "column": "event_id",
            "reason": "high-entropy identifier gives no locality",
        }
        assert data["errors"] == []


class TestSortKeyNullability:
    """Columns in the proposed ORDER BY key are never nullable. 🔑"""

    def test_filter_column_requested_nullable_is_collected(self, make_profile):
        profiles = [make_profile("country", distinct_count=200, used_in_filter=True)]

        advice = advise_table(profiles, hints={"country": ColumnHints(requested_nullable=True)})

        assert advice.key_plan.columns == ["country"]
        assert [(e.column, e.error_type) for e in advice.errors] == [
            ("country", "KeyCannotBeNullable")
        ]

    def test_fail_fast_raises_for_sort_key_column(self, make_profile):
        table = TableProfile(
            name="visits",
            columns=(make_profile("country", distinct_count=200, used_in_filter=True),),
        )

        with pytest.raises(KeyCannotBeNullable) as exc_info:
            advise_table(
                table, hints={"country": ColumnHints(requested_nullable=True)}, fail_fast=True
            )

        assert exc_info.value.column == "country"
        assert exc_info.value.table == "visits"

    def test_sparse_sort_key_column_is_not_null(self, make_profile):
        profiles = [
            make_profile("referrer", distinct_count=40, null_count=99_000, used_in_filter=True)
        ]

        rec = advise_table(profiles).recommendation("referrer")

        assert rec.nullability.kind is NullabilityKind.NOT_NULL_WITH_DEFAULT
        assert rec.nullability.rule == 1
        assert rec.column_type == "LowCardinality(String)"

    def test_sparse_column_outside_key_stays_nullable(self, make_profile):
        profiles = [
            make_profile("country", distinct_count=200),
            make_profile(
                "trace_id", distinct_count=900, null_count=99_000, is_high_entropy_id=True
            ),
        ]

        advice = advise_table(profiles)

        assert advice.key_plan.excluded_columns == ["trace_id"]
        assert advice.recommendation("trace_id").nullability.nullable is True

    def test_requested_secondary_column_is_not_null(self, make_profile):
        profiles = [
            make_profile("country", distinct_count=200),
            make_profile(
                "trace_id", distinct_count=900, null_count=99_000, is_high_entropy_id=True
            ),
        ]

        advice = advise_table(profiles, secondary_filter_columns=["trace_id"])

        assert advice.key_plan.columns == ["country", "trace_id"]
        assert advice.recommendation("trace_id").nullability.nullable is False


class TestEnumDefaults:
    """Enum columns default to a declared member."""

    def test_first_member_is_default(self, make_profile):
        profile = make_profile("status", distinct_count=2, is_stable_enum=True)

        rec = advise_column(profile, ColumnHints(enum_values=("open", "closed")))

        assert rec.nullability.default_value == "open"

    def test_caller_default_wins(self, make_profile):
        profile = make_profile("status", distinct_count=2, is_stable_enum=True)

        rec = advise_column(
            profile, ColumnHints(enum_values=("open", "closed"), default_value="closed")
        )

        assert rec.nullability.default_value == "closed"
