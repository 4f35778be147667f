# File: shipwright/ddl.py
"""
Shipwright - SQL DDL Emitter
=============================
Projects a list of ``Field`` values into a SQLite ``CREATE TABLE`` statement.

- One column per ``Column``, in input order, from ``to_column_definition``.
- Each ``ForeignKey`` adds an ``integer NOT NULL`` column and a table-level
  ``FOREIGN KEY`` constraint (cascading on delete and update). Constraints
  follow all columns.
- No ``id`` column is injected; callers list it like any other field.
- Output is deterministic and carries no trailing semicolon.

``read_column_types`` reads the same layout back from migration files so
the generator can check what a foreign key points at.
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from shipwright.fieldtypes import ColumnDefinition, quote_identifier
from shipwright.models import FOREIGN_KEY_SQL_TYPE, Column, ForeignKey
from shipwright.models import Field as SpecField

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("shipwright.ddl")

INDENT: str = "    "

_CREATE_LINE: re.Pattern[str] = re.compile(r'^CREATE TABLE IF NOT EXISTS "((?:[^"]|"")+)" \($')
_COLUMN_LINE: re.Pattern[str] = re.compile(r'^\s+"((?:[^"]|"")+)" ([^\s,]+)')


class ReferentialAction(str, Enum):
    """Foreign-key ON DELETE / ON UPDATE behaviour."""

    CASCADE = "CASCADE"
    SET_NULL = "SET NULL"
    RESTRICT = "RESTRICT"


class ForeignKeyConstraint(BaseModel):
    """Table-level ``FOREIGN KEY`` clause."""

    model_config = ConfigDict(frozen=True, use_enum_values=True, extra="forbid")

    column: str = Field(..., min_length=1)
    references_table: str = Field(..., min_length=1)
    references_column: str = Field(..., min_length=1)
    on_delete: ReferentialAction = ReferentialAction.CASCADE
    on_update: ReferentialAction = ReferentialAction.CASCADE

    def to_sql(self) -> str:
        on_delete: str = ReferentialAction(self.on_delete).value
        on_update: str = ReferentialAction(self.on_update).value
        return (
            f"FOREIGN KEY ({quote_identifier(self.column)}) "
            f"REFERENCES {quote_identifier(self.references_table)} "
            f"({quote_identifier(self.references_column)}) "
            f"ON DELETE {on_delete} ON UPDATE {on_update}"
        )


def foreign_key_column(fk: ForeignKey) -> ColumnDefinition:
    return ColumnDefinition(
        name=fk.local_key, sql_type=FOREIGN_KEY_SQL_TYPE, not_null=True
    )


def foreign_key_constraint(fk: ForeignKey) -> ForeignKeyConstraint:
    return ForeignKeyConstraint(
        column=fk.local_key,
        references_table=fk.references_table,
        references_column=fk.references_column,
    )


def emit_create_table(table_name: str, fields: Sequence[SpecField]) -> str:
    """
    Build ``CREATE TABLE IF NOT EXISTS "<table>" (...)`` for *fields*.

    Example::

        CREATE TABLE IF NOT EXISTS "posts" (
            "id" uuid_text NOT NULL UNIQUE,
            "owner_id" integer NOT NULL,
            FOREIGN KEY ("owner_id") REFERENCES "users" ("id") ON DELETE CASCADE ON UPDATE CASCADE
        )
    """
    columns: List[ColumnDefinition] = []
    constraints: List[ForeignKeyConstraint] = []

    for field in fields:
        if isinstance(field, Column):
            columns.append(field.field_type.to_column_definition(field.name))
        elif isinstance(field, ForeignKey):
            columns.append(foreign_key_column(field))
            constraints.append(foreign_key_constraint(field))

    body: List[str] = [c.to_sql() for c in columns]
    body.extend(c.to_sql() for c in constraints)

    header: str = f"CREATE TABLE IF NOT EXISTS {quote_identifier(table_name)} ("
    if not body:
        return header + ")"

    inner: str = ",\n".join(INDENT + line for line in body)
    logger.debug(
        "Emitted DDL for '%s': %d column(s), %d constraint(s).",
        table_name,
        len(columns),
        len(constraints),
    )
    return f"{header}\n{inner}\n)"


def emit_drop_table(table_name: str) -> str:
    """Inverse of ``emit_create_table``, used in migration down-scripts."""
    return f"DROP TABLE IF EXISTS {quote_identifier(table_name)}"


def read_column_types(sql: str) -> Dict[str, Dict[str, str]]:
    """
    Map table name → column name → SQL type for every ``CREATE TABLE``
    statement in *sql* laid out the way ``emit_create_table`` writes it.

    Constraint lines and any other statements are ignored.
    """
    tables: Dict[str, Dict[str, str]] = {}
    current: Optional[Dict[str, str]] = None

    for line in sql.splitlines():
        header: Optional[re.Match[str]] = _CREATE_LINE.match(line)
        if header is not None:
            current = tables.setdefault(header.group(1).replace('""', '"'), {})
            continue
        if current is None:
            continue
        if line.startswith(")"):
            current = None
            continue
        col: Optional[re.Match[str]] = _COLUMN_LINE.match(line)
        if col is not None:
            current[col.group(1).replace('""', '"')] = col.group(2)

    return tables


def table_column_types(fields: Sequence[SpecField]) -> Dict[str, str]:
    """Column name → SQL type for the table *fields* would create."""
    types: Dict[str, str] = {}
    for field in fields:
        if isinstance(field, Column):
            types[field.name] = field.field_type.to_column_definition(field.name).sql_type
        elif isinstance(field, ForeignKey):
            types[field.local_key] = FOREIGN_KEY_SQL_TYPE
    return types


__all__: List[str] = [
    "INDENT",
    "ReferentialAction",
    "ForeignKeyConstraint",
    "foreign_key_column",
    "foreign_key_constraint",
    "emit_create_table",
    "emit_drop_table",
    "read_column_types",
    "table_column_types",
]

logger.debug("shipwright.ddl loaded — %d public symbols.", len(__all__))
