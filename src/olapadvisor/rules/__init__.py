"""Pure advisory rules, one module per decision. ⚖️

- **types**: narrowest safe numeric and temporal types
- **encoding**: fixed enum vs dictionary vs plain storage
- **nullability**: NOT NULL with default vs nullable vs ambiguous
- **ordering**: clustering key proposal
"""

from olapadvisor.rules.encoding import (
    EncodingDecision,
    EncodingKind,
    choose_encoding,
    encode_profile,
)
from olapadvisor.rules.nullability import (
    AmbiguousNullability,
    NullabilityDecision,
    NullabilityKind,
    resolve_nullability,
    type_default,
)
from olapadvisor.rules.ordering import (
    ExcludedColumn,
    KeyOrderingPlan,
    KeyPosition,
    exclusion_reason,
    plan_key_ordering,
)
from olapadvisor.rules.types import (
    classify_decimal,
    classify_float,
    classify_integer,
    classify_temporal,
    integer_bounds,
)

__all__ = [
    # Types 🔢
    "classify_integer",
    "classify_float",
    "classify_decimal",
    "classify_temporal",
    "integer_bounds",
    # Encoding 📚
    "EncodingKind",
    "EncodingDecision",
    "choose_encoding",
    "encode_profile",
    # Nullability 🚫
    "NullabilityKind",
    "NullabilityDecision",
    "AmbiguousNullability",
    "resolve_nullability",
    "type_default",
    # Ordering 🗂️
    "KeyPosition",
    "ExcludedColumn",
    "KeyOrderingPlan",
    "exclusion_reason",
    "plan_key_ordering",
]
