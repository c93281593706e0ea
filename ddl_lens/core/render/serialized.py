from __future__ import annotations

from ddl_lens.core.ir import DatabaseSchema


def to_json(schema: DatabaseSchema) -> str:
    """Serialize with camelCase keys in declared field order; unset fields are omitted."""
    return schema.model_dump_json(indent=2, by_alias=True, exclude_none=True)


def from_json(text: str) -> DatabaseSchema:
    return DatabaseSchema.model_validate_json(text)
