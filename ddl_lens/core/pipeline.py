from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Union

from ddl_lens.core.assemble import LogSink, parse_with_detection
from ddl_lens.core.ir import DatabaseSchema, Dialect, IRModel, ParseOptions
from ddl_lens.core.registry import FormatterRegistry


class ConversionMetadata(IRModel):
    parse_time_ms: float
    dialect_used: Dialect
    dialect_confidence: Optional[float] = None
    tables_found: int


@dataclass(frozen=True)
class ConversionResult:
    schema: DatabaseSchema
    metadata: ConversionMetadata
    outputs: Dict[str, str] = field(default_factory=dict)


def convert(
    sql: str,
    dialect: Union[Dialect, str, None] = None,
    options: Union[ParseOptions, Dict, None] = None,
    formats: Optional[Sequence[str]] = None,
    log: Optional[LogSink] = None,
    name: Optional[str] = None,
) -> ConversionResult:
    """Parse ``sql`` and render it in every requested format (all registered ones by default)."""
    started = time.perf_counter()
    schema, detection = parse_with_detection(sql, dialect=dialect, options=options, log=log, name=name)

    names: List[str] = list(formats) if formats else list(FormatterRegistry.names())
    outputs: Dict[str, str] = {}
    for fmt in names:
        formatter = FormatterRegistry.get(fmt)
        if formatter is None:
            raise ValueError(f"Unknown format '{fmt}'. Available: {', '.join(FormatterRegistry.names())}")
        outputs[fmt] = formatter(schema)

    metadata = ConversionMetadata(
        parse_time_ms=round((time.perf_counter() - started) * 1000, 3),
        dialect_used=schema.dialect,
        dialect_confidence=detection.confidence if detection else None,
        tables_found=len(schema.tables),
    )
    return ConversionResult(schema=schema, metadata=metadata, outputs=outputs)
