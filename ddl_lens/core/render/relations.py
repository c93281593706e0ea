from __future__ import annotations

from enum import Enum

from ddl_lens.core.ir import ForeignKey, Table


class Cardinality(str, Enum):
    ONE_TO_ONE = "one_to_one"
    ONE_TO_MANY = "one_to_many"
    MANY_TO_MANY = "many_to_many"


def is_junction_table(table: Table) -> bool:
    """Two or more foreign keys and a primary key made only of foreign key columns."""
    pk = set(table.primary_key or [])
    return len(table.foreign_keys) >= 2 and bool(pk) and pk <= table.fk_columns()


def relationship_cardinality(table: Table, fk: ForeignKey) -> Cardinality:
    if is_junction_table(table):
        return Cardinality.MANY_TO_MANY
    cols = set(fk.columns)
    if table.primary_key and cols == set(table.primary_key):
        return Cardinality.ONE_TO_ONE
    if any(cols == set(key) for key in table.unique_keys):
        return Cardinality.ONE_TO_ONE
    return Cardinality.ONE_TO_MANY


def relationship_label(fk: ForeignKey) -> str:
    if fk.name:
        return fk.name
    return f"{'_'.join(fk.columns)}_{'_'.join(fk.referenced_columns)}"
