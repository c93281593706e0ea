from __future__ import annotations

from typing import Callable, Dict, Optional, Tuple

from ddl_lens.core.ir import DatabaseSchema

# Formatter: (schema) -> rendered text
FormatterFunc = Callable[[DatabaseSchema], str]


class FormatterRegistry:
    _formatters: Dict[str, FormatterFunc] = {}
    _extensions: Dict[str, str] = {}

    @classmethod
    def register(cls, name: str, formatter: FormatterFunc, extension: str = "txt") -> None:
        cls._formatters[name] = formatter
        cls._extensions[name] = extension

    @classmethod
    def get(cls, name: str) -> Optional[FormatterFunc]:
        return cls._formatters.get(name)

    @classmethod
    def extension(cls, name: str) -> str:
        return cls._extensions.get(name, "txt")

    @classmethod
    def names(cls) -> Tuple[str, ...]:
        return tuple(cls._formatters.keys())


# Bootstrap built-ins so the three outputs work out-of-the-box
def _bootstrap_defaults() -> None:
    from ddl_lens.core.render.dbml import to_dbml
    from ddl_lens.core.render.mermaid import to_mermaid
    from ddl_lens.core.render.serialized import to_json

    FormatterRegistry.register("mermaid", to_mermaid, extension="mmd")
    FormatterRegistry.register("dbml", to_dbml, extension="dbml")
    FormatterRegistry.register("json", to_json, extension="json")


_bootstrap_defaults()
