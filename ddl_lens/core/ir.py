from __future__ import annotations

from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Dialect(str, Enum):
    MYSQL = "mysql"
    POSTGRES = "postgres"
    MSSQL = "mssql"
    SQLITE = "sqlite"
    ORACLE = "oracle"


UNKNOWN_DIALECT = "unknown"


class FkAction(str, Enum):
    CASCADE = "CASCADE"
    SET_NULL = "SET NULL"
    SET_DEFAULT = "SET DEFAULT"
    RESTRICT = "RESTRICT"
    NO_ACTION = "NO ACTION"


class IndexKind(str, Enum):
    PRIMARY = "PRIMARY"
    UNIQUE = "UNIQUE"
    INDEX = "INDEX"
    FULLTEXT = "FULLTEXT"
    SPATIAL = "SPATIAL"


class IRModel(BaseModel):
    """Immutable base for every schema entity; JSON uses camelCase keys."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class DialectDetection(IRModel):
    dialect: Union[Dialect, Literal["unknown"]]
    confidence: float = Field(ge=0.0, le=1.0)
    reasons: List[str] = Field(default_factory=list)

    @property
    def is_known(self) -> bool:
        return self.dialect != UNKNOWN_DIALECT


class ColumnType(IRModel):
    name: str
    length: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None
    unsigned: bool = False
    zerofill: bool = False


# Column defaults are a tagged variant so renderers can dispatch on ``kind``.
class NullDefault(IRModel):
    kind: Literal["null"] = "null"


class BoolDefault(IRModel):
    kind: Literal["bool"] = "bool"
    value: bool


class NumberDefault(IRModel):
    kind: Literal["number"] = "number"
    value: float


class TextDefault(IRModel):
    kind: Literal["text"] = "text"
    value: str


DefaultValue = Annotated[
    Union[NullDefault, BoolDefault, NumberDefault, TextDefault],
    Field(discriminator="kind"),
]


class Column(IRModel):
    name: str
    type: ColumnType
    nullable: bool = True
    default: Optional[DefaultValue] = None
    auto_increment: bool = False
    comment: Optional[str] = None


class Index(IRModel):
    name: str
    kind: IndexKind = IndexKind.INDEX
    columns: List[str]
    unique: bool = False


class ForeignKey(IRModel):
    name: str
    columns: List[str]
    referenced_table: str
    referenced_columns: List[str]
    on_update: Optional[FkAction] = None
    on_delete: Optional[FkAction] = None


class Table(IRModel):
    name: str
    columns: List[Column] = Field(default_factory=list)
    primary_key: Optional[List[str]] = None
    unique_keys: List[List[str]] = Field(default_factory=list)
    indexes: List[Index] = Field(default_factory=list)
    foreign_keys: List[ForeignKey] = Field(default_factory=list)
    schema_name: Optional[str] = None
    comment: Optional[str] = None

    def column(self, name: str) -> Optional[Column]:
        for col in self.columns:
            if col.name == name:
                return col
        return None

    def fk_columns(self) -> set[str]:
        return {c for fk in self.foreign_keys for c in fk.columns}

    def unique_columns(self) -> set[str]:
        return {c for key in self.unique_keys for c in key}


class DatabaseSchema(IRModel):
    dialect: Dialect
    tables: List[Table] = Field(default_factory=list)
    version: str = "1.0"
    name: Optional[str] = None

    def table(self, name: str) -> Optional[Table]:
        for t in self.tables:
            if t.name == name:
                return t
        return None


class ParseOptions(IRModel):
    infer_dialect: bool = True
    include_indexes: bool = True
    include_actions: bool = True
    strict: bool = False
