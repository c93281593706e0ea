from __future__ import annotations

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from ddl_lens.core.errors import ColumnParseError, ForeignKeySyntaxError, IndexSyntaxError
from ddl_lens.core.ir import (
    BoolDefault,
    Column,
    ColumnType,
    DefaultValue,
    FkAction,
    ForeignKey,
    Index,
    IndexKind,
    NullDefault,
    NumberDefault,
    TextDefault,
)
from ddl_lens.core.scan import (
    IDENT_PATTERN,
    QUALIFIED_NAME_PATTERN,
    read_balanced,
    read_identifier,
    split_clauses,
    split_qualified_name,
    strip_identifier,
)

SERIAL_TYPES = {
    "SERIAL": "INTEGER",
    "BIGSERIAL": "BIGINT",
    "SMALLSERIAL": "SMALLINT",
}

AUTO_INCREMENT_MARKERS = (
    "AUTO_INCREMENT",
    "AUTOINCREMENT",
    "IDENTITY",
    "GENERATED BY DEFAULT AS IDENTITY",
    "GENERATED ALWAYS AS IDENTITY",
)

# Words that can follow a column name but are never a type keyword
CONSTRAINT_WORDS = {"NOT", "NULL", "PRIMARY", "UNIQUE", "DEFAULT", "REFERENCES", "CHECK", "CONSTRAINT"}

_ACTION = r"(CASCADE|SET\s+NULL|SET\s+DEFAULT|RESTRICT|NO\s+ACTION)"
ON_DELETE_RE = re.compile(rf"\bON\s+DELETE\s+{_ACTION}", re.IGNORECASE)
ON_UPDATE_RE = re.compile(rf"\bON\s+UPDATE\s+{_ACTION}", re.IGNORECASE)

TYPE_RE = re.compile(r"\s*([A-Za-z_][\w]*)")
INT_RE = re.compile(r"\s*([+-]?\d+)")
NUMBER_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
DEFAULT_RE = re.compile(r"\bDEFAULT\s+", re.IGNORECASE)
COMMENT_RE = re.compile(r"\bCOMMENT\s+'((?:[^']|'')*)'", re.IGNORECASE)
INLINE_REFERENCES_RE = re.compile(
    rf"\bREFERENCES\s+({QUALIFIED_NAME_PATTERN})\s*\(([^)]+)\)",
    re.IGNORECASE,
)
FOREIGN_KEY_RE = re.compile(
    rf"FOREIGN\s+KEY\s*(?:{IDENT_PATTERN}\s*)?\(([^)]+)\)\s*"
    rf"REFERENCES\s+({QUALIFIED_NAME_PATTERN})\s*\(([^)]+)\)",
    re.IGNORECASE,
)
INDEX_RE = re.compile(rf"^(?:INDEX|KEY)\s+({IDENT_PATTERN})\s*(?:USING\s+\w+\s*)?\(", re.IGNORECASE)
SPECIAL_INDEX_RE = re.compile(
    rf"^(FULLTEXT|SPATIAL)(?:\s+(?:INDEX|KEY))?(?:\s+({IDENT_PATTERN}))?\s*\(",
    re.IGNORECASE,
)
CONSTRAINT_RE = re.compile(rf"^CONSTRAINT\s+({IDENT_PATTERN})\s+(.*)$", re.IGNORECASE | re.DOTALL)
# Type parameters such as (10) or (10,2); never an index column list
TYPE_PARAMS_RE = re.compile(r"\s*\d+(?:\s*,\s*\d+)?\s*")


class ClauseKind(str, Enum):
    COLUMN = "column"
    PRIMARY_KEY = "primary_key"
    UNIQUE_KEY = "unique_key"
    FOREIGN_KEY = "foreign_key"
    INDEX = "index"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class Clause:
    kind: ClauseKind
    text: str
    constraint_name: Optional[str] = None
    index_kind: IndexKind = IndexKind.INDEX


@dataclass(frozen=True)
class ParsedColumn:
    column: Column
    foreign_key: Optional[ForeignKey] = None
    primary_key: bool = False
    unique: bool = False


def _is_index_clause(text: str) -> bool:
    """Tell `KEY idx (a)` from a column named `key` or `index`."""
    m = INDEX_RE.match(text)
    if m is None:
        # `KEY (a)` is a malformed index, `key TEXT` a column
        return re.match(r"(?:INDEX|KEY)\s*\(", text, re.IGNORECASE) is not None
    found = read_balanced(text, m.end() - 1)
    return not (found and TYPE_PARAMS_RE.fullmatch(found[0]))


def classify_clause(clause: str, include_indexes: bool = True) -> Clause:
    """Classify a table-body clause by its leading keyword."""
    text = clause.strip()
    m = CONSTRAINT_RE.match(text)
    if m:
        inner = classify_clause(m.group(2), include_indexes)
        return Clause(
            kind=inner.kind,
            text=inner.text,
            constraint_name=strip_identifier(m.group(1)),
            index_kind=inner.index_kind,
        )

    upper = text.upper()
    if re.match(r"PRIMARY\s+KEY\b", upper):
        return Clause(ClauseKind.PRIMARY_KEY, text)
    if re.match(r"UNIQUE\b", upper):
        return Clause(ClauseKind.UNIQUE_KEY, text)
    if re.match(r"FOREIGN\s+KEY\b", upper):
        return Clause(ClauseKind.FOREIGN_KEY, text)
    if re.match(r"(INDEX|KEY)\b", upper):
        if not _is_index_clause(text):
            return Clause(ClauseKind.COLUMN, text)
        return Clause(ClauseKind.INDEX if include_indexes else ClauseKind.SKIPPED, text)
    special = re.match(r"(FULLTEXT|SPATIAL)\b", upper)
    if special:
        kind = ClauseKind.INDEX if include_indexes else ClauseKind.SKIPPED
        return Clause(kind, text, index_kind=IndexKind(special.group(1)))
    if re.match(r"CHECK\b", upper):
        return Clause(ClauseKind.SKIPPED, text)
    return Clause(ClauseKind.COLUMN, text)


def _to_int(value: str) -> Optional[int]:
    m = INT_RE.match(value)
    return int(m.group(1)) if m else None


def _column_list(inner: str) -> List[str]:
    names: List[str] = []
    for item in split_clauses(inner):
        ident = read_identifier(item)
        if ident is not None:
            names.append(ident[0])
    return names


def _parse_action(pattern: re.Pattern, text: str) -> Optional[FkAction]:
    m = pattern.search(text)
    if not m:
        return None
    return FkAction(re.sub(r"\s+", " ", m.group(1)).upper())


def _unquote_literal(text: str, start: int) -> Tuple[str, int]:
    quote = text[start]
    out: List[str] = []
    i = start + 1
    while i < len(text):
        ch = text[i]
        if ch == quote:
            if i + 1 < len(text) and text[i + 1] == quote:
                out.append(quote)
                i += 2
                continue
            return "".join(out), i + 1
        out.append(ch)
        i += 1
    return "".join(out), len(text)


def _classify_default(token: str) -> DefaultValue:
    upper = token.upper()
    if upper == "NULL":
        return NullDefault()
    if upper in ("TRUE", "FALSE"):
        return BoolDefault(value=upper == "TRUE")
    # literals that overflow a float (1e999) stay text so JSON can carry them
    if NUMBER_RE.fullmatch(token) and math.isfinite(float(token)):
        return NumberDefault(value=float(token))
    return TextDefault(value=token)


def _read_default(text: str) -> Optional[DefaultValue]:
    text = text.lstrip()
    if not text:
        return None
    if text[0] in ("'", '"'):
        value, _ = _unquote_literal(text, 0)
        return TextDefault(value=value)
    if text[0] == "(":
        found = read_balanced(text, 0)
        if found is None:
            return TextDefault(value=text)
        inner, _ = found
        # MSSQL wraps defaults in parens: DEFAULT ((0)), DEFAULT (getdate())
        return _read_default(inner)
    m = re.match(r"[^\s,()]+", text)
    if not m:
        return None
    token = m.group(0)
    if text[m.end() : m.end() + 1] == "(":
        found = read_balanced(text, m.end())
        if found is not None:
            return TextDefault(value=f"{token}({found[0]})")
    return _classify_default(token)


def parse_default(text: str) -> Optional[DefaultValue]:
    m = DEFAULT_RE.search(text)
    if not m:
        return None
    return _read_default(text[m.end() :])


def _parse_type(clause: str, rest: str) -> Tuple[ColumnType, bool]:
    m = TYPE_RE.match(rest)
    if not m or m.group(1).upper() in CONSTRAINT_WORDS:
        raise ColumnParseError(f"Unable to parse column type for: {clause}", clause=clause)

    keyword = m.group(1).upper()
    length = scale = None
    after = rest[m.end() :]
    stripped = after.lstrip()
    if stripped.startswith("("):
        found = read_balanced(stripped, 0)
        if found is not None:
            params = split_clauses(found[0])
            if params:
                length = _to_int(params[0])
            if len(params) >= 2:
                scale = _to_int(params[1])

    upper = rest.upper()
    if keyword in SERIAL_TYPES:
        col_type = ColumnType(name=SERIAL_TYPES[keyword])
        return col_type, True
    col_type = ColumnType(
        name=keyword,
        length=length,
        scale=scale,
        unsigned=re.search(r"\bUNSIGNED\b", upper) is not None,
        zerofill=re.search(r"\bZEROFILL\b", upper) is not None,
    )
    return col_type, False


def parse_column(clause: str, table_name: str) -> ParsedColumn:
    """Parse a column definition clause.

    Serial pseudo-types are rewritten to their integer type. An inline
    ``REFERENCES t(c)`` becomes a single-column foreign key named
    ``fk_<table>_<column>``.
    """
    ident = read_identifier(clause)
    if ident is None:
        raise ColumnParseError(f"Unable to parse column name for: {clause}", clause=clause)
    name, rest = ident

    col_type, serial = _parse_type(clause, rest)
    upper = rest.upper()
    auto_increment = serial or any(marker in upper for marker in AUTO_INCREMENT_MARKERS)

    comment_match = COMMENT_RE.search(rest)
    column = Column(
        name=name,
        type=col_type,
        nullable="NOT NULL" not in upper,
        default=parse_default(rest),
        auto_increment=auto_increment,
        comment=comment_match.group(1).replace("''", "'") if comment_match else None,
    )

    fk = None
    ref = INLINE_REFERENCES_RE.search(rest)
    if ref:
        _, ref_table = split_qualified_name(ref.group(1))
        tail = rest[ref.end() :]
        fk = ForeignKey(
            name=f"fk_{table_name}_{name}",
            columns=[name],
            referenced_table=ref_table,
            referenced_columns=[strip_identifier(c) for c in ref.group(2).split(",")],
            on_delete=_parse_action(ON_DELETE_RE, tail),
            on_update=_parse_action(ON_UPDATE_RE, tail),
        )

    return ParsedColumn(
        column=column,
        foreign_key=fk,
        primary_key=re.search(r"\bPRIMARY\s+KEY\b", upper) is not None,
        unique=re.search(r"\bUNIQUE\b", upper) is not None,
    )


def _key_columns(clause: str, what: str) -> List[str]:
    start = clause.find("(")
    found = read_balanced(clause, start) if start != -1 else None
    columns = _column_list(found[0]) if found else []
    if not columns:
        raise IndexSyntaxError(f"Invalid {what} syntax: {clause}", clause=clause)
    return columns


def parse_primary_key(clause: str) -> List[str]:
    return _key_columns(clause, "primary key")


def parse_unique_key(clause: str) -> List[str]:
    return _key_columns(clause, "unique key")


def parse_foreign_key(clause: str, name: Optional[str] = None) -> ForeignKey:
    m = FOREIGN_KEY_RE.search(clause)
    if not m:
        raise ForeignKeySyntaxError(f"Invalid foreign key syntax: {clause}", clause=clause)

    columns = [strip_identifier(c) for c in m.group(1).split(",")]
    _, referenced_table = split_qualified_name(m.group(2))
    referenced_columns = [strip_identifier(c) for c in m.group(3).split(",")]
    tail = clause[m.end() :]
    return ForeignKey(
        name=name or f"fk_{'_'.join(columns)}_{referenced_table}",
        columns=columns,
        referenced_table=referenced_table,
        referenced_columns=referenced_columns,
        on_update=_parse_action(ON_UPDATE_RE, tail),
        on_delete=_parse_action(ON_DELETE_RE, tail),
    )


def parse_index(clause: str, kind: IndexKind = IndexKind.INDEX) -> Index:
    """Parse ``(INDEX|KEY) <name> (<cols>)``; FULLTEXT/SPATIAL may omit the name."""
    if kind is IndexKind.INDEX:
        m = INDEX_RE.match(clause)
        name = strip_identifier(m.group(1)) if m else None
    else:
        m = SPECIAL_INDEX_RE.match(clause)
        name = strip_identifier(m.group(2)) if m and m.group(2) else None
    if not m:
        raise IndexSyntaxError(f"Invalid index syntax: {clause}", clause=clause)

    found = read_balanced(clause, m.end() - 1)
    columns = _column_list(found[0]) if found else []
    if not columns:
        raise IndexSyntaxError(f"Invalid index syntax: {clause}", clause=clause)
    if name is None:
        name = f"{kind.value.lower()}_{'_'.join(columns)}"
    return Index(name=name, kind=kind, columns=columns, unique=False)
