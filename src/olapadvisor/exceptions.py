"""Advisor error taxonomy. 🚨

Every error is a local, caller-recoverable condition raised by a pure rule
function. Each one remembers the column and table it belongs to so a host
tool can report all of them together without losing attribution.
"""


class AdvisorError(ValueError):
    """Base class for all advisor errors."""

    def __init__(self, message: str, column: str | None = None, table: str | None = None):
        self.message = message
        self.column = column
        self.table = table
        super().__init__(self._format())

    def _format(self) -> str:
        location = ".".join(part for part in (self.table, self.column) if part)
        return f"{location}: {self.message}" if location else self.message

    def attribute(self, column: str | None = None, table: str | None = None) -> "AdvisorError":
        """Fill in missing column/table attribution and return self for re-raising."""
        self.column = self.column or column
        self.table = self.table or table
        self.args = (self._format(),)
        return self


class RangeOverflow(AdvisorError):
    """Observed range does not fit in any integer width up to 64 bits."""


class RangeUnderflow(AdvisorError):
    """Negative value observed for an unsigned integer request."""


class InvalidDecimalSpec(AdvisorError):
    """Decimal precision/scale combination is invalid."""


class InsufficientSample(AdvisorError):
    """Zero rows sampled (or no observed range), so ratios are undefined."""


class KeyCannotBeNullable(AdvisorError):
    """A key column was requested as nullable."""


class EmptySchema(AdvisorError):
    """No columns supplied for a table."""


class DuplicateColumnError(AdvisorError):
    """A column name appears more than once in one table."""


class ProfileValidationError(AdvisorError):
    """A column profile could not be built from the supplied statistics."""


class UnresolvedNullabilityError(AdvisorError):
    """DDL requested while some columns still need a human nullability decision."""
