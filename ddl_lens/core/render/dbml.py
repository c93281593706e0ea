from __future__ import annotations

import re
from typing import Dict, List

from ddl_lens.core.ir import (
    BoolDefault,
    Column,
    ColumnType,
    DatabaseSchema,
    DefaultValue,
    ForeignKey,
    IndexKind,
    NullDefault,
    NumberDefault,
    Table,
)
from ddl_lens.core.render.relations import Cardinality, relationship_cardinality

# Each junction-table key is many-to-one on its own; Mermaid shows the
# many-to-many, DBML the per-key reference.
REF_OPERATORS: Dict[Cardinality, str] = {
    Cardinality.ONE_TO_ONE: "-",
    Cardinality.ONE_TO_MANY: ">",
    Cardinality.MANY_TO_MANY: ">",
}

BARE_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def _quote(text: str) -> str:
    return "'" + text.replace("\\", "\\\\").replace("'", "\\'") + "'"


def _name(name: str) -> str:
    """Double-quote names DBML would not accept bare (spaces, dashes, ...)."""
    if BARE_NAME_RE.fullmatch(name):
        return name
    return '"' + name.replace('"', '\\"') + '"'


def format_type(col_type: ColumnType) -> str:
    out = col_type.name
    if col_type.length is not None:
        out += f"({col_type.length}"
        if col_type.scale is not None:
            out += f",{col_type.scale}"
        out += ")"
    elif col_type.precision is not None and col_type.scale is not None:
        out += f"({col_type.precision},{col_type.scale})"
    return out


def format_default(value: DefaultValue) -> str:
    if isinstance(value, NullDefault):
        return "null"
    if isinstance(value, BoolDefault):
        return "true" if value.value else "false"
    if isinstance(value, NumberDefault):
        n = value.value
        return str(int(n)) if n.is_integer() else repr(n)
    # function calls and expressions go in backticks
    if "(" in value.value:
        return f"`{value.value}`"
    return _quote(value.value)


def column_settings(table: Table, column: Column) -> str:
    settings: List[str] = []
    # composite keys are emitted in the Indexes block instead
    if table.primary_key == [column.name]:
        settings.append("pk")
    if not column.nullable:
        settings.append("not null")
    if column.auto_increment:
        settings.append("increment")
    if [column.name] in table.unique_keys:
        settings.append("unique")
    if column.default is not None:
        settings.append(f"default: {format_default(column.default)}")
    if column.comment:
        settings.append(f"note: {_quote(column.comment)}")
    return f" [{', '.join(settings)}]" if settings else ""


def _column_ref(columns: List[str]) -> str:
    if len(columns) == 1:
        return _name(columns[0])
    return f"({', '.join(_name(c) for c in columns)})"


def _index_lines(table: Table) -> List[str]:
    lines: List[str] = []
    if table.primary_key and len(table.primary_key) > 1:
        lines.append(f"    {_column_ref(table.primary_key)} [pk]")
    for index in table.indexes:
        settings = [f"name: {_quote(index.name)}"]
        if index.kind is not IndexKind.INDEX:
            settings.append(f"note: {_quote(index.kind.value)}")
        lines.append(f"    {_column_ref(index.columns)} [{', '.join(settings)}]")
    for key in table.unique_keys:
        if len(key) > 1:
            lines.append(f"    {_column_ref(key)} [unique]")
    return lines


def _ref_line(table: Table, fk: ForeignKey) -> str:
    op = REF_OPERATORS[relationship_cardinality(table, fk)]
    line = (
        f"Ref: {_name(table.name)}.{_column_ref(fk.columns)} {op} "
        f"{_name(fk.referenced_table)}.{_column_ref(fk.referenced_columns)}"
    )
    actions: List[str] = []
    if fk.on_delete is not None:
        actions.append(f"delete: {fk.on_delete.value.lower()}")
    if fk.on_update is not None:
        actions.append(f"update: {fk.on_update.value.lower()}")
    if actions:
        line += f" [{', '.join(actions)}]"
    return line


def to_dbml(schema: DatabaseSchema) -> str:
    lines: List[str] = []

    if schema.name:
        lines.append(f"Project {_name(schema.name)} {{")
        lines.append(f"  database_type: {_quote(schema.dialect.value)}")
        lines.append("}\n")

    for table in schema.tables:
        lines.append(f"Table {_name(table.name)} {{")
        for column in table.columns:
            lines.append(f"  {_name(column.name)} {format_type(column.type)}{column_settings(table, column)}")
        index_lines = _index_lines(table)
        if index_lines:
            lines.append("")
            lines.append("  Indexes {")
            lines.extend(index_lines)
            lines.append("  }")
        if table.comment:
            lines.append("")
            lines.append(f"  Note: {_quote(table.comment)}")
        lines.append("}\n")

    for table in schema.tables:
        for fk in table.foreign_keys:
            lines.append(_ref_line(table, fk))

    lines.append("")
    return "\n".join(lines)
