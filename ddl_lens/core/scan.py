from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

QUOTES = ("'", '"', "`")
IDENT_QUOTES = {"`": "`", '"': '"', "[": "]"}

IDENT_PATTERN = r'(?:`[^`]+`|"[^"]+"|\[[^\]]+\]|[\w$#]+)'
QUALIFIED_NAME_PATTERN = rf"{IDENT_PATTERN}(?:\s*\.\s*{IDENT_PATTERN})*"

CREATE_TABLE_RE = re.compile(
    r"\bCREATE\s+(?:(?:GLOBAL\s+|LOCAL\s+)?(?:TEMPORARY|TEMP)\s+)?TABLE\s+"
    r"(?:IF\s+NOT\s+EXISTS\s+)?"
    rf"({QUALIFIED_NAME_PATTERN})\s*\(",
    re.IGNORECASE,
)
CREATE_TABLE_TOKEN_RE = re.compile(r"\bCREATE\s+(?:(?:GLOBAL\s+|LOCAL\s+)?(?:TEMPORARY|TEMP)\s+)?TABLE\b", re.IGNORECASE)


class ScanState(str, Enum):
    NORMAL = "normal"
    IN_PAREN = "in_paren"
    IN_QUOTE = "in_quote"


class ParenScanner:
    """Character-at-a-time tracker for paren depth and quoted spans.

    Inside a quoted span every character, parens and commas included, is
    ignored until the matching closing quote. A doubled quote (``'it''s'``)
    closes and immediately reopens the span, which leaves the state correct.
    """

    def __init__(self, depth: int = 0):
        self.depth = depth
        self.quote: Optional[str] = None

    @property
    def state(self) -> ScanState:
        if self.quote is not None:
            return ScanState.IN_QUOTE
        if self.depth > 0:
            return ScanState.IN_PAREN
        return ScanState.NORMAL

    def feed(self, ch: str) -> ScanState:
        """Consume ``ch`` and return the state it was read in."""
        before = self.state
        if before is ScanState.IN_QUOTE:
            if ch == self.quote:
                self.quote = None
        elif ch in QUOTES:
            self.quote = ch
        elif ch == "(":
            self.depth += 1
        elif ch == ")":
            self.depth -= 1
        return before


@dataclass(frozen=True)
class TableStatement:
    name: str
    body: Optional[str]
    schema_name: Optional[str] = None
    options: str = ""
    offset: int = 0

    @property
    def terminated(self) -> bool:
        return self.body is not None


def strip_comments(sql: str) -> str:
    """Drop ``--`` line comments and ``/* */`` block comments outside quotes."""
    out: List[str] = []
    quote: Optional[str] = None
    i = 0
    n = len(sql)
    while i < n:
        ch = sql[i]
        nxt = sql[i + 1] if i + 1 < n else ""
        if quote is not None:
            out.append(ch)
            if ch == quote:
                quote = None
            i += 1
            continue
        if ch == "-" and nxt == "-":
            end = sql.find("\n", i)
            if end == -1:
                break
            out.append("\n")
            i = end + 1
            continue
        if ch == "/" and nxt == "*":
            end = sql.find("*/", i + 2)
            if end == -1:
                break
            out.append(" ")
            i = end + 2
            continue
        if ch in QUOTES:
            quote = ch
        out.append(ch)
        i += 1
    return "".join(out)


def clean_sql(sql: str) -> str:
    return re.sub(r"\s+", " ", strip_comments(sql)).strip()


def has_create_table(sql: str) -> bool:
    return CREATE_TABLE_TOKEN_RE.search(sql) is not None


def strip_identifier(text: str) -> str:
    return re.sub(r"[`\"'\[\]]", "", text).strip()


def split_qualified_name(raw: str) -> Tuple[Optional[str], str]:
    parts = [strip_identifier(p) for p in re.findall(IDENT_PATTERN, raw)]
    if len(parts) == 1:
        return None, parts[0]
    return ".".join(parts[:-1]), parts[-1]


def read_identifier(text: str) -> Optional[Tuple[str, str]]:
    """Read one (possibly quoted) identifier from the start of ``text``.

    Returns ``(identifier, remainder)`` or None when ``text`` does not start
    with an identifier.
    """
    text = text.lstrip()
    if not text:
        return None
    closer = IDENT_QUOTES.get(text[0])
    if closer is not None:
        end = text.find(closer, 1)
        if end <= 1:
            return None
        return text[1:end].strip(), text[end + 1 :]
    m = re.match(r"[\w$#]+", text)
    if not m:
        return None
    return m.group(0), text[m.end() :]


def read_balanced(text: str, open_index: int) -> Optional[Tuple[str, int]]:
    """Return the text inside the paren at ``open_index`` and the index of its match."""
    if open_index >= len(text) or text[open_index] != "(":
        return None
    scanner = ParenScanner(depth=1)
    for i in range(open_index + 1, len(text)):
        ch = text[i]
        before = scanner.feed(ch)
        if ch == ")" and before is not ScanState.IN_QUOTE and scanner.depth == 0:
            return text[open_index + 1 : i], i
    return None


def _read_table_options(sql: str, start: int) -> Tuple[str, int]:
    """Read table options up to the next top-level ``;`` or the next CREATE TABLE.

    Batch scripts (``GO``, ``/``) often omit the semicolon, so the next header
    also ends the span.
    """
    nxt = CREATE_TABLE_TOKEN_RE.search(sql, start)
    end = nxt.start() if nxt else len(sql)
    scanner = ParenScanner()
    for i in range(start, end):
        before = scanner.feed(sql[i])
        if sql[i] == ";" and before is ScanState.NORMAL:
            return sql[start:i].strip(), i + 1
    return sql[start:end].strip(), end


def locate_statements(sql: str) -> List[TableStatement]:
    """Find every CREATE TABLE header in cleaned SQL and cut out its body.

    Bodies are found by walking forward from the opening paren until the
    depth returns to zero. A header whose body never closes yields a
    statement with ``body=None``.
    """
    statements: List[TableStatement] = []
    pos = 0
    while True:
        m = CREATE_TABLE_RE.search(sql, pos)
        if m is None:
            break
        schema_name, name = split_qualified_name(m.group(1))
        found = read_balanced(sql, m.end() - 1)
        if found is None:
            statements.append(TableStatement(name=name, body=None, schema_name=schema_name, offset=m.start()))
            pos = m.end()
            continue
        body, close = found
        options, pos = _read_table_options(sql, close + 1)
        statements.append(
            TableStatement(name=name, body=body, schema_name=schema_name, options=options, offset=m.start())
        )
    return statements


def split_clauses(body: str) -> List[str]:
    """Split a table body at top-level commas only."""
    clauses: List[str] = []
    current: List[str] = []
    scanner = ParenScanner()
    for ch in body:
        before = scanner.feed(ch)
        if ch == "," and before is ScanState.NORMAL:
            clauses.append("".join(current))
            current = []
            continue
        current.append(ch)
    clauses.append("".join(current))
    return [c.strip() for c in clauses if c.strip()]
