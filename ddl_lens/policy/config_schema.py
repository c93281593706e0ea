from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ddl_lens.core.ir import ParseOptions


class CLIConfig(BaseModel):
    model_config = ConfigDict(extra="allow")

    input: str
    dialect: Optional[str] = None
    name: Optional[str] = None

    options: ParseOptions = Field(default_factory=ParseOptions)
    formats: List[str] = Field(default_factory=lambda: ["mermaid", "dbml", "json"])

    out_dir: str = Field(default="./artifacts")
    summary_only: bool = Field(default=False)
    summary_json: Optional[str] = None
