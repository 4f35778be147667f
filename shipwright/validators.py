# File: shipwright/validators.py
"""
Shipwright - Field & Resource Validators
=========================================
The parser guarantees each descriptor is well-formed on its own. This module
adds **cross-field semantic validation** before anything is rendered:
identifier rules, duplicate columns, primary-key sanity, foreign-key targets
and the record/changeset synchronisation every blueprint relies on.

Validators never raise. They accumulate ``ValidationIssue`` items in a
``ValidationResult`` which the generator inspects.

Usage:
    from shipwright.validators import validate_full
    result = validate_full("post", fields, require_key=True)
    for issue in result.errors:
        print(issue)
"""

from __future__ import annotations

import logging
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Sequence, Set

from shipwright.ddl import table_column_types
from shipwright.fieldtypes import IntegerType, StringType, UuidType
from shipwright.models import FOREIGN_KEY_SQL_TYPE, ChangesetField, Column, ForeignKey
from shipwright.models import Field as SpecField
from shipwright.models import ResourceNames, StructField
from shipwright.structs import PRIMARY_KEY_NAME, emit_fields
from shipwright.utils import PYTHON_KEYWORDS, to_pascal_case, to_snake_case

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("shipwright.validators")

# Column types whose ids shipwright.entity.SqlEntity can allocate.
ALLOCATABLE_KEY_TYPES = (IntegerType, UuidType, StringType)

# ---------------------------------------------------------------------------
# Validation result container
# ---------------------------------------------------------------------------


class ValidationIssue:
    """Lightweight issue descriptor (no Pydantic overhead)."""

    __slots__ = ("level", "code", "message", "context")

    def __init__(
        self,
        level: str,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.level: str = level  # "error" | "warning"
        self.code: str = code
        self.message: str = message
        self.context: Dict[str, Any] = context or {}

    @property
    def is_error(self) -> bool:
        return self.level == "error"

    def __str__(self) -> str:
        return f"[{self.level.upper()}] {self.code}: {self.message}"


class ValidationResult:
    """Accumulates ``ValidationIssue`` instances produced by the validators."""

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: List[ValidationIssue] = []

    def add_error(
        self, code: str, message: str, context: Optional[Dict[str, Any]] = None
    ) -> None:
        self._items.append(ValidationIssue("error", code, message, context))

    def add_warning(
        self, code: str, message: str, context: Optional[Dict[str, Any]] = None
    ) -> None:
        self._items.append(ValidationIssue("warning", code, message, context))

    def merge(self, other: "ValidationResult") -> None:
        self._items.extend(other._items)

    @property
    def errors(self) -> List[ValidationIssue]:
        return [e for e in self._items if e.is_error]

    @property
    def warnings(self) -> List[ValidationIssue]:
        return [e for e in self._items if not e.is_error]

    @property
    def codes(self) -> Set[str]:
        return {e.code for e in self._items}

    @property
    def has_errors(self) -> bool:
        return any(e.is_error for e in self._items)

    @property
    def has_warnings(self) -> bool:
        return any(not e.is_error for e in self._items)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def warning_count(self) -> int:
        return len(self.warnings)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    def summary(self) -> str:
        return (
            f"Validation: {self.error_count} error(s), "
            f"{self.warning_count} warning(s)."
        )


# ---------------------------------------------------------------------------
# Reserved words
# ---------------------------------------------------------------------------

# SQLite keywords that are legal only when quoted
SQL_RESERVED_WORDS: FrozenSet[str] = frozenset(
    {
        "select", "insert", "update", "delete", "drop", "create", "alter",
        "table", "column", "index", "from", "where", "join", "on", "and",
        "or", "not", "null", "in", "between", "like", "is", "as", "order",
        "by", "group", "having", "limit", "offset", "union", "all",
        "distinct", "case", "when", "then", "else", "end", "exists",
        "primary", "foreign", "key", "references", "constraint", "check",
        "default", "unique", "cascade", "set", "values", "into", "begin",
        "commit", "rollback", "transaction", "trigger", "view", "with",
    }
)


# ---------------------------------------------------------------------------
# Individual validators
# ---------------------------------------------------------------------------


def validate_resource_name(name: str) -> ValidationResult:
    """The resource name must inflect to valid module and class identifiers."""
    result: ValidationResult = ValidationResult()
    snake: str = to_snake_case(name)
    class_name: str = to_pascal_case(snake)
    if (
        not snake
        or not snake.isidentifier()
        or not snake.isascii()
        or snake in PYTHON_KEYWORDS
        or not class_name.isidentifier()
    ):
        result.add_error(
            "INVALID_RESOURCE_NAME",
            f"Resource name '{name}' does not produce a valid Python identifier.",
            {"name": name, "snake_case": snake},
        )
    return result


def validate_field_names(fields: Sequence[SpecField]) -> ValidationResult:
    """Every projected column name must be a usable Python and SQL identifier."""
    result: ValidationResult = ValidationResult()
    seen: Set[str] = set()

    for field in fields:
        name: str = field.column_name

        if not name.isidentifier() or not name.isascii() or name.startswith("_"):
            result.add_error(
                "INVALID_FIELD_NAME",
                f"Field name '{name}' is not a valid identifier "
                f"(ASCII letters, digits and underscores, not starting with "
                f"a digit or underscore).",
                {"field": name},
            )
        elif name in PYTHON_KEYWORDS:
            result.add_error(
                "PYTHON_KEYWORD_FIELD",
                f"Field name '{name}' is a Python keyword.",
                {"field": name},
            )

        if name.lower() in SQL_RESERVED_WORDS:
            result.add_warning(
                "SQL_RESERVED_FIELD",
                f"Field name '{name}' is an SQL reserved word; it will be quoted.",
                {"field": name},
            )

        if name in seen:
            result.add_error(
                "DUPLICATE_FIELD_NAME",
                f"Column '{name}' is defined more than once.",
                {"field": name},
            )
        seen.add(name)

    return result


def validate_primary_key(
    fields: Sequence[SpecField], require_key: bool = False
) -> ValidationResult:
    """
    Check the ``id`` column.

    With *require_key* (commands that emit an entity module) a missing ``id``
    or one whose type ``SqlEntity`` cannot allocate is an error; otherwise
    a missing ``id`` only warns.
    """
    result: ValidationResult = ValidationResult()

    if not fields:
        result.add_warning("NO_FIELDS", "No fields were given.")

    id_columns: List[Column] = [
        f for f in fields if isinstance(f, Column) and f.name == PRIMARY_KEY_NAME
    ]
    if not id_columns:
        message: str = (
            f"No '{PRIMARY_KEY_NAME}' column given; none will be added automatically."
        )
        if require_key:
            result.add_error("MISSING_ID_FIELD", message)
        elif fields:
            result.add_warning("MISSING_ID_FIELD", message)
        return result

    for column in id_columns:
        spec: str = f"{column.name}:{column.field_type.to_compact()}"
        if require_key and not isinstance(column.field_type, ALLOCATABLE_KEY_TYPES):
            result.add_error(
                "UNSUPPORTED_ID_TYPE",
                f"The '{PRIMARY_KEY_NAME}' column must be an integer, uuid or "
                f"string to be allocated on insert.",
                {"spec": spec},
            )
        if column.field_type.is_nullable:
            result.add_warning(
                "NULLABLE_ID_FIELD",
                f"The '{PRIMARY_KEY_NAME}' column is nullable; add '!' to its type.",
                {"spec": spec},
            )
    return result


def validate_foreign_key_targets(
    table: str,
    fields: Sequence[SpecField],
    known_tables: Mapping[str, Mapping[str, str]],
) -> ValidationResult:
    """
    Foreign keys are stored as integers, so the column they reference must
    be one too.

    Targets are looked up in *known_tables* (table → column → SQL type, as
    read from existing migrations) or in *fields* for self references.
    Tables that are not known yet are skipped.
    """
    result: ValidationResult = ValidationResult()
    own_columns: Dict[str, str] = table_column_types(fields)

    for fk in fields:
        if not isinstance(fk, ForeignKey):
            continue
        if fk.references_table == table:
            columns: Optional[Mapping[str, str]] = own_columns
        else:
            columns = known_tables.get(fk.references_table)
        if columns is None:
            logger.debug("FK target table '%s' not known; skipped.", fk.references_table)
            continue

        target: str = f"{fk.references_table}.{fk.references_column}"
        sql_type: Optional[str] = columns.get(fk.references_column)
        if sql_type is None:
            result.add_error(
                "FK_TARGET_COLUMN_MISSING",
                f"Foreign key '{fk.local_key}' references missing column {target}.",
                {"field": fk.local_key, "target": target},
            )
        elif sql_type != FOREIGN_KEY_SQL_TYPE:
            result.add_error(
                "FK_TARGET_NOT_INTEGER",
                f"Foreign key '{fk.local_key}' is stored as {FOREIGN_KEY_SQL_TYPE} "
                f"but {target} is {sql_type}.",
                {"field": fk.local_key, "target": target, "target_type": sql_type},
            )
    return result


def validate_projection_sync(
    record: Sequence[StructField], changeset: Sequence[ChangesetField]
) -> ValidationResult:
    """Every changeset attribute must exist on the record; ``id`` must not be writable."""
    result: ValidationResult = ValidationResult()
    record_names: Set[str] = {f.name for f in record}

    for field in changeset:
        if field.name not in record_names:
            result.add_error(
                "CHANGESET_NOT_IN_RECORD",
                f"Changeset field '{field.name}' has no matching record field.",
                {"field": field.name},
            )
        if field.name == PRIMARY_KEY_NAME:
            result.add_error(
                "ID_IN_CHANGESET",
                f"'{PRIMARY_KEY_NAME}' must not be part of the changeset.",
            )
    return result


# ---------------------------------------------------------------------------
# Master validator
# ---------------------------------------------------------------------------


def validate_full(
    resource_name: Optional[str],
    fields: Sequence[SpecField],
    *,
    require_key: bool = False,
    known_tables: Optional[Mapping[str, Mapping[str, str]]] = None,
) -> ValidationResult:
    """
    **Master validation entry point.**

    Called by the generator for every command that takes fields.
    ``require_key`` is set by commands that emit an entity module;
    ``known_tables`` holds the tables already described by migrations.
    """
    logger.info(
        "Starting validation — resource=%s, %d field(s)",
        resource_name,
        len(fields),
    )

    result: ValidationResult = ValidationResult()
    if resource_name is not None:
        result.merge(validate_resource_name(resource_name))
    result.merge(validate_field_names(fields))
    result.merge(validate_primary_key(fields, require_key=require_key))

    record, changeset = emit_fields(fields)
    result.merge(validate_projection_sync(record, changeset))

    if resource_name is not None and result.is_valid:
        table: str = ResourceNames.from_name(resource_name).plural
        result.merge(validate_foreign_key_targets(table, fields, known_tables or {}))

    if result.has_errors:
        logger.error(
            "Validation FAILED with %d error(s). %s",
            result.error_count,
            result.summary(),
        )
    else:
        logger.info("Validation PASSED. %s", result.summary())

    return result


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ALLOCATABLE_KEY_TYPES",
    "ValidationIssue",
    "ValidationResult",
    "SQL_RESERVED_WORDS",
    "validate_resource_name",
    "validate_field_names",
    "validate_primary_key",
    "validate_foreign_key_targets",
    "validate_projection_sync",
    "validate_full",
]

logger.debug("shipwright.validators loaded — %d public symbols.", len(__all__))
