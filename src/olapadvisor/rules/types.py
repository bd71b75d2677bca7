"""Type classifier: narrowest safe numeric and temporal storage types. 🔢

Integer widths are derived from the observed range. Every other decision
(float precision, decimal digits, time precision tier) is a caller-supplied
judgement and is never inferred from data.
"""

from olapadvisor.config import Settings, settings
from olapadvisor.exceptions import (
    InsufficientSample,
    InvalidDecimalSpec,
    RangeOverflow,
    RangeUnderflow,
)
from olapadvisor.logging_config import get_logger
from olapadvisor.models import TimePrecision
from olapadvisor.schemas import (
    DATE,
    DATETIME,
    StorageType,
    TypeFamily,
    decimal_type,
    float_type,
    integer_type,
)

logger = get_logger(__name__)

INTEGER_WIDTHS = (8, 16, 32, 64)

TIME_PRECISION_DIGITS = {
    TimePrecision.MILLISECOND: 3,
    TimePrecision.MICROSECOND: 6,
    TimePrecision.NANOSECOND: 9,
}


def integer_bounds(bits: int, signed: bool) -> tuple[int, int]:
    """Inclusive value range of an integer width.

    Example:
        >>> integer_bounds(8, signed=False)
        (0, 255)
        >>> integer_bounds(8, signed=True)
        (-128, 127)
    """
    if signed:
        return -(2 ** (bits - 1)), 2 ** (bits - 1) - 1
    return 0, 2**bits - 1


def classify_integer(
    observed_min: int | float | None,
    observed_max: int | float | None,
    signed: bool = True,
    column: str | None = None,
) -> StorageType:
    """Pick the smallest integer width that holds the observed range. 📏

    Args:
        observed_min: Smallest observed value.
        observed_max: Largest observed value.
        signed: False for an unsigned request.
        column: Column name, used to attribute errors.

    Returns:
        StorageType of family INT or UINT.

    Raises:
        InsufficientSample: If no range was observed.
        RangeUnderflow: If an unsigned request saw a negative value.
        RangeOverflow: If no width up to 64 bits fits.

    Example:
        >>> classify_integer(0, 255, signed=False).name
        'UInt8'
        >>> classify_integer(-1, 200).name
        'Int16'
    """
    if observed_min is None or observed_max is None:
        raise InsufficientSample("no observed range for integer column", column=column)

    if not signed and observed_min < 0:
        raise RangeUnderflow(
            f"observed_min {observed_min} is negative for an unsigned request",
            column=column,
        )

    for bits in INTEGER_WIDTHS:
        low, high = integer_bounds(bits, signed)
        if low <= observed_min and observed_max <= high:
            chosen = integer_type(bits, signed)
            logger.debug(f"{column}: [{observed_min}, {observed_max}] -> {chosen.name}")
            return chosen

    kind = "signed" if signed else "unsigned"
    raise RangeOverflow(
        f"range [{observed_min}, {observed_max}] exceeds every {kind} width up to 64 bits; "
        "use an arbitrary-precision type",
        column=column,
    )


def classify_float(precision_sensitive: bool = False) -> StorageType:
    """Float32 unless the caller flags the column as precision sensitive."""
    return float_type(64 if precision_sensitive else 32)


def classify_decimal(
    precision: int | None,
    scale: int | None,
    thresholds: Settings | None = None,
    column: str | None = None,
) -> StorageType:
    """Validate caller-supplied decimal digits.

    Raises:
        InvalidDecimalSpec: Unless ``1 <= precision <= max`` and
            ``0 <= scale <= precision``.
    """
    thresholds = thresholds or settings
    if precision is None or scale is None:
        raise InvalidDecimalSpec(
            "decimal precision and scale must be supplied", column=column
        )
    if scale < 0 or precision < scale:
        raise InvalidDecimalSpec(
            f"Decimal({precision}, {scale}) needs precision >= scale >= 0", column=column
        )
    if precision < 1 or precision > thresholds.max_decimal_precision:
        raise InvalidDecimalSpec(
            f"Decimal({precision}, {scale}) precision must be between 1 and "
            f"{thresholds.max_decimal_precision}",
            column=column,
        )
    return decimal_type(precision, scale)


def classify_temporal(precision: TimePrecision) -> StorageType:
    """Map a precision tier to a date/time type.

    Example:
        >>> classify_temporal(TimePrecision.MILLISECOND).name
        'DateTime64(3)'
    """
    if precision is TimePrecision.DATE:
        return DATE
    if precision is TimePrecision.SECOND:
        return DATETIME
    return StorageType(family=TypeFamily.DATETIME64, scale=TIME_PRECISION_DIGITS[precision])
