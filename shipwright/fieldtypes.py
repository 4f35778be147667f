# File: shipwright/fieldtypes.py
"""
Shipwright - Column Type System
================================
The closed set of column types a compact field spec can describe, and the
projections every emitter reads from them.

Each variant is a frozen Pydantic V2 model tagged by a ``kind`` literal so
the set can be used as a discriminated union::

    Uuid | String | Integer | Float | Double | Decimal | Boolean | Date | DateTime | Json

Every variant answers the same six questions, and the answers must agree
with each other:

=======================  ==================================================
``to_column_definition``  SQL column AST (type, NOT NULL, UNIQUE, DEFAULT)
``native_type_name``      Python annotation used in generated models
``validation_rule``       changeset validation (strings only)
``faker_expression``      Faker call used by generated tests (length-bounded)
``form_input_type``       HTML ``<input type=...>`` used by view blueprints
``to_compact``            canonical compact type spec (``string500!^``)
=======================  ==================================================

``Date``, ``DateTime`` and ``Json`` are always ``NOT NULL`` in SQL and never
``Optional`` in Python, whatever modifiers were written.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Annotated, ClassVar, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("shipwright.fieldtypes")

# Largest length a ``string<N>`` spec may carry (unsigned 32-bit).
MAX_LENGTH: int = 2**32 - 1

_FROZEN_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    use_enum_values=True,
    frozen=True,
    extra="forbid",
)


class IntegerSize(str, Enum):
    """Storage width requested by the integer keywords."""

    SMALL = "small"
    REGULAR = "regular"
    BIG = "big"
    UNSIGNED = "unsigned"


_INTEGER_KEYWORDS: dict[str, str] = {
    IntegerSize.SMALL.value: "smallint",
    IntegerSize.REGULAR.value: "int",
    IntegerSize.BIG.value: "bigint",
    IntegerSize.UNSIGNED.value: "unsigned",
}


def quote_identifier(name: str) -> str:
    """Double-quote an SQL identifier, escaping embedded quotes."""
    return '"' + name.replace('"', '""') + '"'


# ---------------------------------------------------------------------------
# Projection results
# ---------------------------------------------------------------------------


class ColumnDefinition(BaseModel):
    """Dialect-level description of one column inside ``CREATE TABLE``."""

    model_config = _FROZEN_CONFIG

    name: str = Field(..., min_length=1, description="Column name.")
    sql_type: str = Field(..., min_length=1, description="SQLite type name.")
    not_null: bool = Field(default=False)
    unique: bool = Field(default=False)
    default: Optional[str] = Field(
        default=None, description="Raw SQL default expression."
    )

    def to_sql(self) -> str:
        parts: List[str] = [quote_identifier(self.name), self.sql_type]
        if self.not_null:
            parts.append("NOT NULL")
        if self.unique:
            parts.append("UNIQUE")
        if self.default is not None:
            parts.append(f"DEFAULT {self.default}")
        return " ".join(parts)


class ValidationRule(BaseModel):
    """Length constraint attached to string changeset fields."""

    model_config = _FROZEN_CONFIG

    min_length: int = Field(default=1, ge=0)
    max_length: Optional[int] = Field(default=None, ge=0)

    @property
    def expression(self) -> str:
        """Human-readable form, e.g. ``length(min=1, max=500)``."""
        if self.max_length is None:
            return f"length(min={self.min_length})"
        return f"length(min={self.min_length}, max={self.max_length})"

    @property
    def pydantic_kwargs(self) -> str:
        """Keyword arguments for ``pydantic.Field`` in generated changesets."""
        kwargs: str = f"min_length={self.min_length}"
        if self.max_length is not None:
            kwargs += f", max_length={self.max_length}"
        return kwargs

    def __str__(self) -> str:
        return self.expression


# ---------------------------------------------------------------------------
# Variants
# ---------------------------------------------------------------------------


class _BaseFieldType(BaseModel):
    """
    Shared projection logic.

    Subclasses declare their SQL and Python base names as class variables
    and override the few projections that differ.
    """

    model_config = _FROZEN_CONFIG

    keyword: ClassVar[str] = ""
    sql_type: ClassVar[str] = ""
    native_base: ClassVar[str] = "Any"
    input_type: ClassVar[str] = "text"
    faker: ClassVar[Optional[str]] = None
    always_not_null: ClassVar[bool] = False

    @property
    def is_nullable(self) -> bool:
        if self.always_not_null:
            return False
        return bool(getattr(self, "nullable", False))

    @property
    def is_unique(self) -> bool:
        return bool(getattr(self, "unique", False))

    def sql_type_name(self) -> str:
        return self.sql_type

    def column_default(self) -> Optional[str]:
        return None

    def to_column_definition(self, name: str) -> ColumnDefinition:
        return ColumnDefinition(
            name=name,
            sql_type=self.sql_type_name(),
            not_null=not self.is_nullable,
            unique=self.is_unique,
            default=self.column_default(),
        )

    def native_type_name(self) -> str:
        if self.is_nullable:
            return f"Optional[{self.native_base}]"
        return self.native_base

    def validation_rule(self) -> Optional[ValidationRule]:
        return None

    def faker_expression(self) -> Optional[str]:
        return self.faker

    def form_input_type(self) -> str:
        return self.input_type

    def _modifiers(self) -> str:
        flags: str = ""
        if not self.always_not_null and not getattr(self, "nullable", True):
            flags += "!"
        if self.is_unique:
            flags += "^"
        return flags

    def to_compact(self) -> str:
        return self.keyword + self._modifiers()


class UuidType(_BaseFieldType):
    kind: Literal["uuid"] = "uuid"
    nullable: bool = True
    unique: bool = False

    keyword: ClassVar[str] = "uuid"
    sql_type: ClassVar[str] = "uuid_text"
    native_base: ClassVar[str] = "UUID"
    faker: ClassVar[Optional[str]] = "fake.uuid4()"


class StringType(_BaseFieldType):
    """``string``, ``string<N>`` or ``text``."""

    kind: Literal["string"] = "string"
    nullable: bool = True
    unique: bool = False
    text: bool = False
    length: Optional[int] = Field(default=None, ge=0, le=MAX_LENGTH)

    native_base: ClassVar[str] = "str"
    faker: ClassVar[Optional[str]] = "fake.name()"

    def sql_type_name(self) -> str:
        if self.text:
            return "text"
        if self.length is not None:
            return f"varchar({self.length})"
        return "varchar"

    def validation_rule(self) -> Optional[ValidationRule]:
        return ValidationRule(min_length=1, max_length=self.length)

    def faker_expression(self) -> Optional[str]:
        # Never longer than the changeset's max_length.
        if self.length is not None:
            return f"fake.name()[:{self.length}]"
        return self.faker

    def form_input_type(self) -> str:
        return "textarea" if self.text else "text"

    def to_compact(self) -> str:
        if self.text:
            return "text" + self._modifiers()
        length: str = str(self.length) if self.length is not None else ""
        return "string" + length + self._modifiers()


class IntegerType(_BaseFieldType):
    """All integer widths share one SQL type and one Python type."""

    kind: Literal["integer"] = "integer"
    nullable: bool = True
    unique: bool = False
    size: IntegerSize = IntegerSize.REGULAR

    sql_type: ClassVar[str] = "integer"
    native_base: ClassVar[str] = "int"
    input_type: ClassVar[str] = "number"
    faker: ClassVar[Optional[str]] = "fake.random_int(min=1, max=100)"

    def to_compact(self) -> str:
        return _INTEGER_KEYWORDS[IntegerSize(self.size).value] + self._modifiers()


class FloatType(_BaseFieldType):
    kind: Literal["float"] = "float"
    nullable: bool = True
    unique: bool = False

    keyword: ClassVar[str] = "float"
    sql_type: ClassVar[str] = "float"
    native_base: ClassVar[str] = "float"
    input_type: ClassVar[str] = "number"
    faker: ClassVar[Optional[str]] = "fake.pyfloat(min_value=1.0, max_value=100.0)"


class DoubleType(_BaseFieldType):
    kind: Literal["double"] = "double"
    nullable: bool = True
    unique: bool = False

    keyword: ClassVar[str] = "double"
    sql_type: ClassVar[str] = "double"
    native_base: ClassVar[str] = "float"
    input_type: ClassVar[str] = "number"
    faker: ClassVar[Optional[str]] = (
        "fake.pyfloat(min_value=1.0, max_value=100.0, right_digits=2)"
    )


class DecimalType(_BaseFieldType):
    kind: Literal["decimal"] = "decimal"
    nullable: bool = True
    unique: bool = False

    keyword: ClassVar[str] = "decimal"
    sql_type: ClassVar[str] = "decimal"
    native_base: ClassVar[str] = "Decimal"
    input_type: ClassVar[str] = "number"


class BooleanType(_BaseFieldType):
    kind: Literal["boolean"] = "boolean"
    nullable: bool = True

    keyword: ClassVar[str] = "bool"
    sql_type: ClassVar[str] = "boolean"
    native_base: ClassVar[str] = "bool"
    input_type: ClassVar[str] = "checkbox"
    faker: ClassVar[Optional[str]] = "fake.pybool()"


class DateType(_BaseFieldType):
    kind: Literal["date"] = "date"

    keyword: ClassVar[str] = "date"
    sql_type: ClassVar[str] = "date_text"
    native_base: ClassVar[str] = "date"
    input_type: ClassVar[str] = "date"
    faker: ClassVar[Optional[str]] = "fake.date_object()"
    always_not_null: ClassVar[bool] = True


class DateTimeType(_BaseFieldType):
    kind: Literal["datetime"] = "datetime"

    keyword: ClassVar[str] = "datetime"
    sql_type: ClassVar[str] = "datetime_text"
    native_base: ClassVar[str] = "datetime"
    input_type: ClassVar[str] = "datetime-local"
    faker: ClassVar[Optional[str]] = "fake.date_time()"
    always_not_null: ClassVar[bool] = True

    def column_default(self) -> Optional[str]:
        return "CURRENT_TIMESTAMP"


class JsonType(_BaseFieldType):
    kind: Literal["json"] = "json"
    binary: bool = False
    unique: bool = False

    native_base: ClassVar[str] = "Any"
    input_type: ClassVar[str] = "textarea"
    always_not_null: ClassVar[bool] = True

    def sql_type_name(self) -> str:
        return "jsonb_text" if self.binary else "json_text"

    def to_compact(self) -> str:
        return ("jsonb" if self.binary else "json") + self._modifiers()


FieldType = Annotated[
    Union[
        UuidType,
        StringType,
        IntegerType,
        FloatType,
        DoubleType,
        DecimalType,
        BooleanType,
        DateType,
        DateTimeType,
        JsonType,
    ],
    Field(discriminator="kind"),
]

# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "MAX_LENGTH",
    "IntegerSize",
    "quote_identifier",
    "ColumnDefinition",
    "ValidationRule",
    "UuidType",
    "StringType",
    "IntegerType",
    "FloatType",
    "DoubleType",
    "DecimalType",
    "BooleanType",
    "DateType",
    "DateTimeType",
    "JsonType",
    "FieldType",
]

logger.debug("shipwright.fieldtypes loaded — %d public symbols.", len(__all__))
