from .core.assemble import parse_ddl
from .core.detect import detect_dialect, force_dialect
from .core.ir import DatabaseSchema, Dialect, DialectDetection, ParseOptions
from .core.pipeline import convert
from .core.registry import FormatterRegistry
from .core.render.dbml import to_dbml
from .core.render.mermaid import to_mermaid
from .core.render.serialized import from_json, to_json

__all__ = [
    "__version__",
    "DatabaseSchema",
    "Dialect",
    "DialectDetection",
    "FormatterRegistry",
    "ParseOptions",
    "convert",
    "detect_dialect",
    "force_dialect",
    "from_json",
    "parse_ddl",
    "to_dbml",
    "to_json",
    "to_mermaid",
]

__version__ = "0.1.0"
