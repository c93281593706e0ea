from __future__ import annotations

import re
from typing import Dict, List

from ddl_lens.core.ir import Column, DatabaseSchema, Table
from ddl_lens.core.render.relations import Cardinality, relationship_cardinality, relationship_label

CARDINALITY_TOKENS: Dict[Cardinality, str] = {
    Cardinality.ONE_TO_ONE: "||--||",
    Cardinality.ONE_TO_MANY: "||--o{",
    Cardinality.MANY_TO_MANY: "}o--o{",
}

# Mermaid attribute types must be single words
TYPE_MAP = {
    "varchar": "string",
    "nvarchar": "string",
    "varchar2": "string",
    "text": "string",
    "char": "string",
    "nchar": "string",
    "integer": "int",
    "numeric": "decimal",
    "number": "decimal",
}


def sanitize(name: str) -> str:
    return re.sub(r"[^A-Za-z0-9_]", "_", name)


def mermaid_type(column: Column) -> str:
    name = column.type.name.lower()
    return sanitize(TYPE_MAP.get(name, name))


def _attribute_line(table: Table, column: Column) -> str:
    keys: List[str] = []
    if table.primary_key and column.name in table.primary_key:
        keys.append("PK")
    if column.name in table.fk_columns():
        keys.append("FK")
    if column.name in table.unique_columns():
        keys.append("UK")

    notes: List[str] = []
    if not column.nullable:
        notes.append("NOT NULL")
    if column.auto_increment:
        notes.append("AUTO_INCREMENT")

    line = f"    {mermaid_type(column)} {sanitize(column.name)}"
    if keys:
        line += " " + ", ".join(keys)
    if notes:
        line += f' "{" ".join(notes)}"'
    return line


def to_mermaid(schema: DatabaseSchema) -> str:
    """Render the schema as a Mermaid ``erDiagram``.

    Entities and relationships follow schema order; nothing is sorted or
    deduplicated.
    """
    lines: List[str] = ["erDiagram"]

    for table in schema.tables:
        lines.append(f"  {sanitize(table.name)} {{")
        for column in table.columns:
            lines.append(_attribute_line(table, column))
        lines.append("  }")

    for table in schema.tables:
        for fk in table.foreign_keys:
            token = CARDINALITY_TOKENS[relationship_cardinality(table, fk)]
            lines.append(
                f'  {sanitize(fk.referenced_table)} {token} {sanitize(table.name)} : "{relationship_label(fk)}"'
            )

    lines.append("")
    return "\n".join(lines)
