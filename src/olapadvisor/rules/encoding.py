"""Cardinality encoder: fixed enum, dictionary encoding, or plain storage. 📚

Rules are evaluated in order and the first match wins:

1. At most 10 distinct values *and* a stable value set -> fixed enum
   (8-bit tag up to 127 members, 16-bit beyond).
2. Fewer than 10,000 distinct values and distinct/rows <= 0.2 -> dictionary.
3. 10,000 to 100,000 distinct values (ratio still <= 0.2) -> dictionary,
   flagged ``benchmark_required``.
4. Anything else -> plain storage.

Count alone never selects an enum: a small but churning value set falls
through to the dictionary rule.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict

from olapadvisor.config import Settings, settings
from olapadvisor.exceptions import InsufficientSample
from olapadvisor.logging_config import get_logger
from olapadvisor.models import ColumnProfile
from olapadvisor.schemas import DICTIONARY_STRING, STRING, StorageType, enum_type

logger = get_logger(__name__)


class EncodingKind(str, Enum):
    ENUM = "enum"
    DICTIONARY = "dictionary"
    PLAIN = "plain"


class EncodingDecision(BaseModel):
    """Outcome of the cardinality rules for one column."""

    model_config = ConfigDict(frozen=True)

    kind: EncodingKind
    rule: int
    enum_bits: int | None = None
    benchmark_required: bool = False
    distinct_ratio: float
    rationale: str

    def storage_type(self, enum_values: tuple[str, ...] = ()) -> StorageType:
        """String storage type implied by this decision."""
        if self.kind is EncodingKind.ENUM:
            return enum_type(self.enum_bits or 8, enum_values)
        if self.kind is EncodingKind.DICTIONARY:
            return DICTIONARY_STRING
        return STRING


def choose_encoding(
    distinct_count: int,
    row_count: int,
    is_stable_enum: bool = False,
    thresholds: Settings | None = None,
    column: str | None = None,
) -> EncodingDecision:
    """Apply the cardinality rules to raw counts.

    Args:
        distinct_count: Unique non-null values observed.
        row_count: Rows sampled.
        is_stable_enum: Caller asserts the value set does not churn.
        thresholds: Threshold overrides (default: module settings).
        column: Column name, used to attribute errors.

    Returns:
        EncodingDecision naming the rule that matched.

    Raises:
        InsufficientSample: If ``row_count`` is zero.

    Example:
        >>> choose_encoding(50, 100_000).kind
        <EncodingKind.DICTIONARY: 'dictionary'>
    """
    t = thresholds or settings
    if row_count == 0:
        raise InsufficientSample("cannot compute distinct ratio from zero rows", column=column)

    ratio = distinct_count / row_count

    if distinct_count <= t.enum_max_distinct and is_stable_enum:
        bits = 8 if distinct_count <= t.enum8_max_distinct else 16
        decision = EncodingDecision(
            kind=EncodingKind.ENUM,
            rule=1,
            enum_bits=bits,
            distinct_ratio=ratio,
            rationale=f"{distinct_count} stable values fit an {bits}-bit enum",
        )
    elif distinct_count < t.dictionary_max_distinct and ratio <= t.dictionary_max_ratio:
        churn = ""
        if distinct_count <= t.enum_max_distinct:
            churn = "value set is not stable, so no fixed enum; "
        decision = EncodingDecision(
            kind=EncodingKind.DICTIONARY,
            rule=2,
            distinct_ratio=ratio,
            rationale=(
                f"{churn}{distinct_count:,} distinct values "
                f"({ratio:.1%} of rows) suit dictionary encoding"
            ),
        )
    elif (
        t.dictionary_max_distinct <= distinct_count < t.benchmark_max_distinct
        and ratio <= t.dictionary_max_ratio
    ):
        decision = EncodingDecision(
            kind=EncodingKind.DICTIONARY,
            rule=3,
            benchmark_required=True,
            distinct_ratio=ratio,
            rationale=(
                f"{distinct_count:,} distinct values is in the "
                f"{t.dictionary_max_distinct:,}-{t.benchmark_max_distinct:,} zone; "
                "benchmark dictionary against plain storage before committing"
            ),
        )
    else:
        decision = EncodingDecision(
            kind=EncodingKind.PLAIN,
            rule=4,
            distinct_ratio=ratio,
            rationale=(
                f"{distinct_count:,} distinct values ({ratio:.1%} of rows) "
                "are too many for a dictionary"
            ),
        )

    logger.debug(f"{column}: encoding rule {decision.rule} -> {decision.kind.value}")
    return decision


def encode_profile(profile: ColumnProfile, thresholds: Settings | None = None) -> EncodingDecision:
    """Apply the cardinality rules to a column profile."""
    return choose_encoding(
        profile.distinct_count,
        profile.row_count,
        is_stable_enum=profile.is_stable_enum,
        thresholds=thresholds,
        column=profile.name,
    )
