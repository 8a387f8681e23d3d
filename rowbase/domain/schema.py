"""
Table schema descriptors consumed by the record engine.

A ``TableSchema`` is the static metadata one record type maps to: table name,
ordered columns, primary-key columns and whether the single primary key is
generated by the database. Schemas are usually written by hand next to the
record class or emitted by a code generator; the engine only reads them.
"""
from __future__ import annotations

from typing import List, Optional, Tuple

from pydantic import BaseModel, Field, model_validator


class ColumnSpec(BaseModel):
    """
    One column of a table.
    """

    name: str = Field(..., min_length=1, description="Column name as stored in the database.")
    type: str = Field("str", description="Logical type: int, float, str, bool, datetime, ...")

    model_config = {"frozen": True}

    @property
    def is_integer(self) -> bool:
        return self.type in ("int", "integer", "bigint", "smallint")


class TableSchema(BaseModel):
    """
    Static description of the table a record type is persisted to.
    """

    table_name: str = Field(..., min_length=1, description="Unquoted table name.")
    columns: Tuple[ColumnSpec, ...] = Field(..., min_length=1, description="Columns in table order.")
    primary_keys: Tuple[str, ...] = Field((), description="Primary-key column names, possibly empty.")
    auto_increment: bool = Field(False, description="Whether the single primary key is generated.")
    connection_name: Optional[str] = Field(
        None, description="Registry name of the connection; None uses the default connection."
    )

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_keys(self) -> "TableSchema":
        names = self.column_names
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate column names in schema for '{self.table_name}'")
        missing = [pk for pk in self.primary_keys if pk not in names]
        if missing:
            raise ValueError(f"Primary keys {missing} are not columns of '{self.table_name}'")
        return self

    @classmethod
    def build(
        cls,
        table_name: str,
        columns: List[str] | List[Tuple[str, str]],
        primary_keys: List[str] | Tuple[str, ...] = (),
        auto_increment: bool = False,
        connection_name: Optional[str] = None,
    ) -> "TableSchema":
        """
        Shorthand constructor taking ``"name"`` or ``("name", "type")`` entries.

        Example
        -------
            TableSchema.build("book", [("id", "int"), "title"], primary_keys=["id"],
                              auto_increment=True)
        """
        specs = tuple(
            ColumnSpec(name=col) if isinstance(col, str) else ColumnSpec(name=col[0], type=col[1])
            for col in columns
        )
        return cls(
            table_name=table_name,
            columns=specs,
            primary_keys=tuple(primary_keys),
            auto_increment=auto_increment,
            connection_name=connection_name,
        )

    @property
    def column_names(self) -> List[str]:
        return [col.name for col in self.columns]

    @property
    def integer_columns(self) -> List[str]:
        return [col.name for col in self.columns if col.is_integer]

    @property
    def primary_key(self) -> Optional[str]:
        """The primary key name when exactly one is declared, else None."""
        return self.primary_keys[0] if len(self.primary_keys) == 1 else None

    def has_column(self, name: str) -> bool:
        return name in self.column_names

    def is_auto_increment(self) -> bool:
        return self.auto_increment


__all__ = ["ColumnSpec", "TableSchema"]
