from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Tuple, Union

from ddl_lens.core.ir import UNKNOWN_DIALECT, Dialect, DialectDetection

logger = logging.getLogger(__name__)

KEYWORD_WEIGHT = 1.0
FUNCTION_WEIGHT = 0.8
QUOTE_WEIGHT = 0.3
STRONG_WEIGHT = 2.0

MIN_CONFIDENCE = 0.3
MAX_REASONS = 10

GENERIC_KEYWORDS = ("CREATE TABLE", "PRIMARY KEY", "FOREIGN KEY", "NOT NULL")

# Keywords that need more context than a substring test. A bare ``KEY`` is a
# MySQL index clause, but not when it closes PRIMARY/FOREIGN/UNIQUE KEY.
KEYWORD_PATTERNS = MappingProxyType(
    {
        "KEY ": re.compile(r"(?<!PRIMARY )(?<!FOREIGN )(?<!UNIQUE )\bKEY "),
    }
)


@dataclass(frozen=True)
class DialectSignature:
    label: str
    keywords: Tuple[str, ...]
    functions: Tuple[str, ...]
    quotes: Tuple[str, ...]
    strong: Tuple[str, ...]


SIGNATURES: Mapping[Dialect, DialectSignature] = MappingProxyType(
    {
        Dialect.MYSQL: DialectSignature(
            label="MySQL",
            keywords=(
                "ENGINE=", "AUTO_INCREMENT", "CHARSET=", "COLLATE=", "UNSIGNED", "ZEROFILL",
                "TINYINT", "MEDIUMINT", "LONGTEXT", "MEDIUMTEXT", "TINYTEXT", "ENUM(", "SET(",
                "BINARY(", "VARBINARY(", "YEAR(", "IF NOT EXISTS", "COMMENT=", "KEY ",
                "FULLTEXT", "SPATIAL",
            ),
            functions=("NOW()", "CURDATE()", "CURTIME()", "UUID()"),
            quotes=("`",),
            strong=("ENGINE=", "AUTO_INCREMENT"),
        ),
        Dialect.POSTGRES: DialectSignature(
            label="PostgreSQL",
            keywords=(
                "SERIAL", "BIGSERIAL", "SMALLSERIAL", "BYTEA", "JSONB", "UUID", "INET", "CIDR",
                "MACADDR", "TSQUERY", "TSVECTOR", "INTERVAL", "ARRAY", "CONSTRAINT", "INHERITS",
                "TABLESPACE", "OWNER TO", "TEMPLATE", "ENCODING", "LC_COLLATE", "LC_CTYPE",
            ),
            functions=("CURRENT_TIMESTAMP", "CURRENT_DATE", "CURRENT_TIME", "GEN_RANDOM_UUID()"),
            quotes=('"',),
            strong=("SERIAL", "JSONB", "::"),
        ),
        Dialect.MSSQL: DialectSignature(
            label="SQL Server",
            keywords=(
                "IDENTITY(", "NVARCHAR", "NCHAR", "NTEXT", "UNIQUEIDENTIFIER", "DATETIME2",
                "DATETIMEOFFSET", "HIERARCHYID", "GEOGRAPHY", "GEOMETRY", "XML", "MONEY",
                "SMALLMONEY", "ROWVERSION", "TIMESTAMP", "IMAGE", "CLUSTERED", "NONCLUSTERED",
                "FILEGROUP", "COLLATE",
            ),
            functions=("GETDATE()", "GETUTCDATE()", "NEWID()", "SYSDATETIME()"),
            quotes=("[", "]"),
            strong=("IDENTITY(", "NVARCHAR", "[DBO]"),
        ),
        Dialect.SQLITE: DialectSignature(
            label="SQLite",
            keywords=("AUTOINCREMENT", "WITHOUT ROWID", "STRICT", "IF NOT EXISTS", "TEMP", "TEMPORARY"),
            functions=("DATETIME()", "DATE()", "TIME()", "RANDOM()"),
            quotes=("[", "]", '"'),
            strong=("AUTOINCREMENT", "WITHOUT ROWID"),
        ),
        Dialect.ORACLE: DialectSignature(
            label="Oracle",
            keywords=(
                "NUMBER(", "VARCHAR2", "NVARCHAR2", "CLOB", "NCLOB", "BLOB", "BFILE", "ROWID",
                "UROWID", "XMLTYPE", "TIMESTAMP WITH TIME ZONE", "TIMESTAMP WITH LOCAL TIME ZONE",
                "INTERVAL YEAR TO MONTH", "INTERVAL DAY TO SECOND", "BINARY_FLOAT", "BINARY_DOUBLE",
                "TABLESPACE", "ORGANIZATION INDEX", "COMPRESS", "NOCOMPRESS",
            ),
            functions=("SYSDATE", "SYSTIMESTAMP", "SYS_GUID()", "CURRENT_TIMESTAMP"),
            quotes=('"',),
            strong=("NUMBER(", "VARCHAR2", "SYSDATE"),
        ),
    }
)


def normalize_for_detection(sql: str) -> str:
    return re.sub(r"\s+", " ", sql.upper()).strip()


def _has_keyword(keyword: str, normalized: str) -> bool:
    pattern = KEYWORD_PATTERNS.get(keyword)
    if pattern is not None:
        return pattern.search(normalized) is not None
    return keyword in normalized


def detect_dialect(sql: str) -> DialectDetection:
    """Score ``sql`` against every dialect signature and pick the best match.

    Matching is substring search over the upper-cased text (a few keywords use
    ``KEYWORD_PATTERNS``), so keywords inside string literals count too. An
    unrounded confidence at or below 0.3 reports ``unknown`` whatever the raw
    winner was.
    """
    normalized = normalize_for_detection(sql)
    scores: Dict[Dialect, float] = {d: 0.0 for d in Dialect}
    reasons: List[str] = []

    for dialect, sig in SIGNATURES.items():
        tag = dialect.value.upper()
        for keyword in sig.keywords:
            if _has_keyword(keyword, normalized):
                scores[dialect] += KEYWORD_WEIGHT
                reasons.append(f"Found {tag} keyword: {keyword}")
        for func in sig.functions:
            if func in normalized:
                scores[dialect] += FUNCTION_WEIGHT
                reasons.append(f"Found {tag} function: {func}")
        for quote in sig.quotes:
            if quote in normalized:
                scores[dialect] += QUOTE_WEIGHT

    _apply_strong_indicators(normalized, scores, reasons)

    # max() keeps the first maximum, so ties resolve in enum order
    winner = max(Dialect, key=lambda d: scores[d])
    max_score = scores[winner]
    total = sum(scores.values())
    confidence = min(max_score / max(total * 0.7, 1.0), 1.0) if total > 0 else 0.0
    detected: Union[Dialect, str] = winner if confidence > MIN_CONFIDENCE else UNKNOWN_DIALECT
    confidence = round(confidence, 2)
    logger.debug("dialect scores %s -> %s (%.2f)", {d.value: s for d, s in scores.items()}, detected, confidence)
    return DialectDetection(dialect=detected, confidence=confidence, reasons=reasons[:MAX_REASONS])


def _apply_strong_indicators(normalized: str, scores: Dict[Dialect, float], reasons: List[str]) -> None:
    for dialect, sig in SIGNATURES.items():
        if any(marker in normalized for marker in sig.strong):
            scores[dialect] += STRONG_WEIGHT
            reasons.append(f"Strong {sig.label} indicators found")

    generic = sum(1 for kw in GENERIC_KEYWORDS if kw in normalized)
    if generic == len(GENERIC_KEYWORDS) and all(score < 1 for score in scores.values()):
        reasons.append("Only generic SQL keywords found")


def force_dialect(dialect: Union[Dialect, str]) -> DialectDetection:
    d = Dialect(dialect)
    return DialectDetection(
        dialect=d,
        confidence=1.0,
        reasons=[f"Dialect manually specified as {d.value.upper()}"],
    )
