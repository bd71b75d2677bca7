"""Storage type taxonomy and its polars dtype mapping. 🐻‍❄️

Recommendations pick from a closed set of columnar storage types. Each one
renders to a ClickHouse-style type name for DDL and maps to the polars dtype
used when writing Parquet, so advice can be applied with ``df.cast``.
"""

from enum import Enum
from typing import Any

import polars as pl
from pydantic import BaseModel, ConfigDict

# Largest precision polars keeps as a fixed-precision Decimal
POLARS_MAX_DECIMAL_PRECISION = 38

# DateTime64 sub-second digits -> polars time unit
POLARS_TIME_UNITS: dict[int, Any] = {3: "ms", 6: "us", 9: "ns"}


class TypeFamily(str, Enum):
    """Storage type families."""

    INT = "int"
    UINT = "uint"
    FLOAT = "float"
    DECIMAL = "decimal"
    DATE = "date"
    DATETIME = "datetime"
    DATETIME64 = "datetime64"
    BOOL = "bool"
    ENUM = "enum"
    DICTIONARY_STRING = "dictionary_string"
    STRING = "string"
    NESTED = "nested"
    JSON = "json"


class StorageType(BaseModel):
    """One concrete storage type from the taxonomy."""

    model_config = ConfigDict(frozen=True)

    family: TypeFamily
    bits: int | None = None  # Integer, float and enum widths
    precision: int | None = None  # Decimal total digits
    scale: int | None = None  # Decimal fractional digits / DateTime64 sub-second digits
    values: tuple[str, ...] = ()  # Enum members, when known
    subpaths: tuple[tuple[str, str], ...] = ()  # Typed JSON paths, (path, type name)

    @property
    def name(self) -> str:
        """ClickHouse-style type name, e.g. ``UInt8`` or ``Decimal(18, 4)``."""
        family = self.family
        if family is TypeFamily.INT:
            return f"Int{self.bits}"
        if family is TypeFamily.UINT:
            return f"UInt{self.bits}"
        if family is TypeFamily.FLOAT:
            return f"Float{self.bits}"
        if family is TypeFamily.DECIMAL:
            return f"Decimal({self.precision}, {self.scale})"
        if family is TypeFamily.DATE:
            return "Date"
        if family is TypeFamily.DATETIME:
            return "DateTime"
        if family is TypeFamily.DATETIME64:
            return f"DateTime64({self.scale})"
        if family is TypeFamily.BOOL:
            return "Bool"
        if family is TypeFamily.ENUM:
            if not self.values:
                return f"Enum{self.bits}"
            members = ", ".join(
                f"'{value}' = {idx}" for idx, value in enumerate(self.values, start=1)
            )
            return f"Enum{self.bits}({members})"
        if family is TypeFamily.DICTIONARY_STRING:
            return "LowCardinality(String)"
        if family is TypeFamily.STRING:
            return "String"
        if family is TypeFamily.NESTED:
            return "Nested"
        if self.subpaths:
            paths = ", ".join(f"{path} {type_name}" for path, type_name in self.subpaths)
            return f"JSON({paths})"
        return "JSON"

    @property
    def supports_null_wrapper(self) -> bool:
        """Nested and JSON columns express absence as empty values, not NULL."""
        return self.family not in (TypeFamily.NESTED, TypeFamily.JSON)

    def column_type(self, nullable: bool) -> str:
        """Type name with the NULL wrapper applied where the family allows it."""
        if not nullable or not self.supports_null_wrapper:
            return self.name
        if self.family is TypeFamily.DICTIONARY_STRING:
            return "LowCardinality(Nullable(String))"
        return f"Nullable({self.name})"

    def to_polars(self) -> pl.DataType:
        """Polars dtype to cast a column to before writing it.

        Nested and JSON columns map to ``pl.String`` (serialized documents),
        since their inner shape is not part of the recommendation.
        """
        family = self.family
        if family is TypeFamily.INT:
            return {8: pl.Int8, 16: pl.Int16, 32: pl.Int32, 64: pl.Int64}[self.bits]()
        if family is TypeFamily.UINT:
            return {8: pl.UInt8, 16: pl.UInt16, 32: pl.UInt32, 64: pl.UInt64}[self.bits]()
        if family is TypeFamily.FLOAT:
            return pl.Float32() if self.bits == 32 else pl.Float64()
        if family is TypeFamily.DECIMAL:
            precision = self.precision
            if precision is not None and precision > POLARS_MAX_DECIMAL_PRECISION:
                precision = None
            return pl.Decimal(precision=precision, scale=self.scale or 0)
        if family is TypeFamily.DATE:
            return pl.Date()
        if family is TypeFamily.DATETIME:
            return pl.Datetime("ms")
        if family is TypeFamily.DATETIME64:
            return pl.Datetime(POLARS_TIME_UNITS[self.scale])
        if family is TypeFamily.BOOL:
            return pl.Boolean()
        if family is TypeFamily.ENUM:
            return pl.Enum(list(self.values)) if self.values else pl.Categorical()
        if family is TypeFamily.DICTIONARY_STRING:
            return pl.Categorical()
        return pl.String()


def integer_type(bits: int, signed: bool) -> StorageType:
    return StorageType(family=TypeFamily.INT if signed else TypeFamily.UINT, bits=bits)


def float_type(bits: int) -> StorageType:
    return StorageType(family=TypeFamily.FLOAT, bits=bits)


def decimal_type(precision: int, scale: int) -> StorageType:
    return StorageType(family=TypeFamily.DECIMAL, precision=precision, scale=scale)


def enum_type(bits: int, values: tuple[str, ...] = ()) -> StorageType:
    return StorageType(family=TypeFamily.ENUM, bits=bits, values=values)


DATE = StorageType(family=TypeFamily.DATE)
DATETIME = StorageType(family=TypeFamily.DATETIME)
BOOL = StorageType(family=TypeFamily.BOOL)
DICTIONARY_STRING = StorageType(family=TypeFamily.DICTIONARY_STRING)
STRING = StorageType(family=TypeFamily.STRING)
NESTED = StorageType(family=TypeFamily.NESTED)
