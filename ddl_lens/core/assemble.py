from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple, Union

from ddl_lens.core.clauses import (
    ClauseKind,
    classify_clause,
    parse_column,
    parse_foreign_key,
    parse_index,
    parse_primary_key,
    parse_unique_key,
)
from ddl_lens.core.detect import detect_dialect
from ddl_lens.core.errors import (
    ColumnParseError,
    DdlParseError,
    EmptySqlError,
    StrictModeParseError,
    UnknownDialectError,
    UnterminatedTableError,
)
from ddl_lens.core.ir import (
    Column,
    DatabaseSchema,
    Dialect,
    DialectDetection,
    ForeignKey,
    Index,
    ParseOptions,
    Table,
)
from ddl_lens.core.scan import (
    TableStatement,
    clean_sql,
    has_create_table,
    locate_statements,
    split_clauses,
)

logger = logging.getLogger(__name__)

# Receives (level, message) for non-fatal events such as a skipped table.
LogSink = Callable[[int, str], None]

TABLE_COMMENT_RE = re.compile(r"\bCOMMENT\s*=?\s*'((?:[^']|'')*)'", re.IGNORECASE)


@dataclass(frozen=True)
class TableResult:
    name: str
    table: Optional[Table] = None
    error: Optional[DdlParseError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def infer_primary_key(columns: List[Column]) -> Optional[List[str]]:
    """Promote the single auto-increment or non-null ``*id*`` column, if exactly one exists."""
    candidates = [
        col for col in columns if col.auto_increment or ("id" in col.name.lower() and not col.nullable)
    ]
    if len(candidates) == 1:
        return [candidates[0].name]
    return None


def _check_column_refs(table_name: str, known: set, what: str, columns: List[str]) -> None:
    for col in columns:
        if col not in known:
            raise ColumnParseError(f"Unknown column '{col}' referenced by {what} in table '{table_name}'")


def _table_comment(options: str) -> Optional[str]:
    m = TABLE_COMMENT_RE.search(options)
    return m.group(1).replace("''", "'") if m else None


def build_table(statement: TableStatement, options: ParseOptions) -> Table:
    """Parse one table body into a ``Table``; raises ``DdlParseError`` on a bad clause."""
    if statement.body is None:
        raise UnterminatedTableError(f"Unterminated table definition for '{statement.name}'")

    name = statement.name
    columns: List[Column] = []
    primary_key: List[str] = []
    inline_pk: List[str] = []
    unique_keys: List[List[str]] = []
    indexes: List[Index] = []
    foreign_keys: List[ForeignKey] = []

    for raw in split_clauses(statement.body):
        clause = classify_clause(raw, include_indexes=options.include_indexes)
        if clause.kind is ClauseKind.COLUMN:
            parsed = parse_column(clause.text, name)
            if any(c.name == parsed.column.name for c in columns):
                raise ColumnParseError(f"Duplicate column '{parsed.column.name}' in table '{name}'", clause=raw)
            columns.append(parsed.column)
            if parsed.primary_key:
                inline_pk.append(parsed.column.name)
            if parsed.unique:
                unique_keys.append([parsed.column.name])
            if parsed.foreign_key is not None:
                foreign_keys.append(parsed.foreign_key)
        elif clause.kind is ClauseKind.PRIMARY_KEY:
            primary_key = parse_primary_key(clause.text)
        elif clause.kind is ClauseKind.UNIQUE_KEY:
            unique_keys.append(parse_unique_key(clause.text))
        elif clause.kind is ClauseKind.FOREIGN_KEY:
            foreign_keys.append(parse_foreign_key(clause.text, name=clause.constraint_name))
        elif clause.kind is ClauseKind.INDEX:
            indexes.append(parse_index(clause.text, clause.index_kind))
        else:
            logger.debug("skipping clause in %s: %s", name, raw)

    if not primary_key:
        primary_key = inline_pk or infer_primary_key(columns) or []

    if not options.include_actions:
        foreign_keys = [fk.model_copy(update={"on_update": None, "on_delete": None}) for fk in foreign_keys]

    known = {c.name for c in columns}
    _check_column_refs(name, known, "primary key", primary_key)
    for key in unique_keys:
        _check_column_refs(name, known, "unique key", key)
    for idx in indexes:
        _check_column_refs(name, known, f"index '{idx.name}'", idx.columns)
    for fk in foreign_keys:
        _check_column_refs(name, known, f"foreign key '{fk.name}'", fk.columns)

    return Table(
        name=name,
        columns=columns,
        primary_key=primary_key or None,
        unique_keys=unique_keys,
        indexes=indexes,
        foreign_keys=foreign_keys,
        schema_name=statement.schema_name,
        comment=_table_comment(statement.options),
    )


def parse_statement(statement: TableStatement, options: ParseOptions) -> TableResult:
    try:
        return TableResult(name=statement.name, table=build_table(statement, options))
    except DdlParseError as e:
        return TableResult(name=statement.name, error=e)


def _default_sink(level: int, message: str) -> None:
    logger.log(level, message)


def assemble_tables(
    statements: List[TableStatement],
    options: ParseOptions,
    log: Optional[LogSink] = None,
) -> List[Table]:
    sink = log or _default_sink
    tables: List[Table] = []
    for statement in statements:
        result = parse_statement(statement, options)
        if result.ok:
            tables.append(result.table)
            continue
        message = f"Failed to parse table '{result.name}': {result.error}"
        if options.strict:
            raise StrictModeParseError(message, table=result.name) from result.error
        sink(logging.WARNING, message)
    return tables


def resolve_dialect(dialect: Union[Dialect, str]) -> Dialect:
    try:
        return Dialect(dialect)
    except ValueError:
        supported = ", ".join(d.value for d in Dialect)
        raise UnknownDialectError(f"Unsupported dialect '{dialect}'. Supported: {supported}") from None


def _coerce_options(options: Union[ParseOptions, Dict, None]) -> ParseOptions:
    if options is None:
        return ParseOptions()
    if isinstance(options, ParseOptions):
        return options
    return ParseOptions.model_validate(options)


def parse_with_detection(
    sql: str,
    dialect: Union[Dialect, str, None] = None,
    options: Union[ParseOptions, Dict, None] = None,
    log: Optional[LogSink] = None,
    name: Optional[str] = None,
) -> Tuple[DatabaseSchema, Optional[DialectDetection]]:
    """Like ``parse_ddl`` but also returns the detection when the dialect was inferred."""
    if not sql or not sql.strip():
        raise EmptySqlError()

    opts = _coerce_options(options)
    cleaned = clean_sql(sql)

    detection = None
    if dialect is not None:
        actual = resolve_dialect(dialect)
    elif opts.infer_dialect:
        detection = detect_dialect(cleaned)
        if not detection.is_known:
            raise UnknownDialectError()
        actual = Dialect(detection.dialect)
    else:
        raise UnknownDialectError()

    statements = locate_statements(cleaned)
    tables = assemble_tables(statements, opts, log)

    if opts.strict and not tables and has_create_table(cleaned):
        raise StrictModeParseError("Invalid SQL: Unable to parse any valid table definitions in strict mode")

    logger.debug("parsed %d of %d tables as %s", len(tables), len(statements), actual.value)
    return DatabaseSchema(dialect=actual, tables=tables, name=name), detection


def parse_ddl(
    sql: str,
    dialect: Union[Dialect, str, None] = None,
    options: Union[ParseOptions, Dict, None] = None,
    log: Optional[LogSink] = None,
    name: Optional[str] = None,
) -> DatabaseSchema:
    """Parse CREATE TABLE statements into a ``DatabaseSchema``.

    Tables that fail to parse are logged and dropped unless ``strict`` is
    set, in which case the first failure aborts the whole call.
    """
    schema, _ = parse_with_detection(sql, dialect=dialect, options=options, log=log, name=name)
    return schema
