"""Human-readable outputs for table advice: rich tables and CREATE TABLE DDL. 📋"""

from decimal import Decimal

from rich.console import Console
from rich.table import Table

from olapadvisor.advisor import TableAdvice
from olapadvisor.exceptions import AdvisorError, UnresolvedNullabilityError
from olapadvisor.schemas import StorageType, TypeFamily

NULLABILITY_STYLES = {
    "not_null_with_default": "green",
    "nullable": "yellow",
    "ambiguous": "bold red",
}


def build_report_table(advice: TableAdvice) -> Table:
    """Build a rich table with one row per recommended column."""
    title = f"Schema advice: {advice.table}" if advice.table else "Schema advice"
    table = Table(title=title)
    table.add_column("Column", style="cyan", no_wrap=True)
    table.add_column("Type", style="magenta")
    table.add_column("Nullability")
    table.add_column("Default")
    table.add_column("Key", justify="right")
    table.add_column("Rationale")

    key_positions = {column: idx for idx, column in enumerate(advice.key_plan.columns, start=1)}
    for rec in advice.recommendations:
        kind = rec.nullability.kind.value
        flag = " ⚠️ benchmark" if rec.benchmark_required else ""
        table.add_row(
            rec.column,
            rec.column_type + flag,
            f"[{NULLABILITY_STYLES[kind]}]{kind}[/]",
            "" if rec.nullability.default_value is None else repr(rec.nullability.default_value),
            str(key_positions.get(rec.column, "")),
            rec.rationale,
        )
    return table


def render_report(advice: TableAdvice, console: Console | None = None) -> None:
    """Print recommendations, key plan and collected errors. 🖨️"""
    console = console or Console()
    console.print(build_report_table(advice))

    console.print(f"\n[bold]ORDER BY[/] ({', '.join(advice.key_plan.columns)})")
    for position in advice.key_plan.positions:
        console.print(f"  {position.column}: rule {position.rule}, {position.rationale}")
    for entry in advice.key_plan.excluded:
        console.print(f"  [dim]excluded {entry.column}: {entry.reason}[/]")

    for issue in advice.errors:
        console.print(f"[red]❌ {issue.column}: {issue.error_type}: {issue.message}[/]")


def render_create_table(
    advice: TableAdvice,
    table_name: str | None = None,
    engine: str = "MergeTree",
) -> str:
    """Render ClickHouse-style DDL for the recommended schema.

    Args:
        advice: Table advice with every column resolved.
        table_name: Name for the DDL (default: ``advice.table``).
        engine: Table engine clause.

    Returns:
        CREATE TABLE statement.

    Raises:
        UnresolvedNullabilityError: If any column is ambiguous or failed.

    Example:
        >>> print(render_create_table(advice))
        CREATE TABLE events
        (
            country LowCardinality(String) DEFAULT '',
            ts DateTime DEFAULT '1970-01-01 00:00:00'
        )
        ENGINE = MergeTree
        ORDER BY (country, ts)
    """
    name = table_name or advice.table
    if not name:
        raise AdvisorError("a table name is required to render DDL")
    if advice.errors:
        failed = ", ".join(issue.column for issue in advice.errors)
        raise UnresolvedNullabilityError(f"columns without a recommendation: {failed}", table=name)
    if advice.ambiguous_columns:
        raise UnresolvedNullabilityError(
            f"nullability needs a decision for: {', '.join(advice.ambiguous_columns)}",
            table=name,
        )

    lines = []
    for rec in advice.recommendations:
        line = f"    {rec.column} {rec.column_type}"
        default = rec.nullability.default_value
        if _accepts_default(rec.storage_type, default):
            line += f" DEFAULT {_sql_literal(default)}"
        lines.append(line)

    order_by = f"({', '.join(advice.key_plan.columns)})" if advice.key_plan.columns else "tuple()"
    return (
        f"CREATE TABLE {name}\n(\n"
        + ",\n".join(lines)
        + f"\n)\nENGINE = {engine}\nORDER BY {order_by}"
    )


def _accepts_default(storage_type: StorageType, default) -> bool:
    """Nested and JSON take no DEFAULT; enums only accept one of their members."""
    if default is None or not storage_type.supports_null_wrapper:
        return False
    if storage_type.family is TypeFamily.ENUM:
        return default in storage_type.values
    return True


def _sql_literal(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    return "'" + str(value).replace("'", "\\'") + "'"
