# File: shipwright/fieldspec.py
"""
Shipwright - Compact Field-Spec Parser
=======================================
Turns command-line column descriptors into typed ``Field`` values::

    title:string256!^          -> Column("title", StringType(length=256, nullable=False, unique=True))
    body:text                  -> Column("body", StringType(text=True))
    owner:references           -> ForeignKey("owner_id", "owners", "id")
    owner:references=users(id) -> ForeignKey("owner_id", "users", "id")

Grammar (split on the first ``:``)::

    <name>:<base><modifiers>
    <name>:references
    <name>:references=<table>(<column>)

``<base>`` is the leading run of ASCII letters. In ``<modifiers>`` digits
build the length, ``!`` means NOT NULL and ``^`` means UNIQUE; any other
character is ignored.

Parsing is fail-fast: the first bad descriptor raises a ``ParseError`` and
nothing is returned for the others.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from shipwright.errors import (
    InvalidForeignKeyFormatError,
    InvalidTypeError,
    MissingColumnNameError,
    MissingTypeSpecError,
)
from shipwright.fieldtypes import (
    MAX_LENGTH,
    BooleanType,
    DateTimeType,
    DateType,
    DecimalType,
    DoubleType,
    FloatType,
    IntegerSize,
    IntegerType,
    JsonType,
    StringType,
    UuidType,
    _BaseFieldType,
)
from shipwright.models import Column, Field, ForeignKey
from shipwright.utils import to_plural

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("shipwright.fieldspec")

REFERENCES_KEYWORD: str = "references"
DEFAULT_REFERENCED_COLUMN: str = "id"
FOREIGN_KEY_SUFFIX: str = "_id"

_BASE_RE: re.Pattern[str] = re.compile(r"[A-Za-z]*")
_REFERENCE_TARGET_RE: re.Pattern[str] = re.compile(r"^([^()]+)\(([^()]+)\)$")

_Modifiers = Tuple[bool, bool, Optional[int]]

# keyword -> factory(nullable, unique, length)
_TYPE_FACTORIES: Dict[str, Callable[[bool, bool, Optional[int]], _BaseFieldType]] = {
    "string": lambda n, u, l: StringType(nullable=n, unique=u, text=False, length=l),
    "text": lambda n, u, l: StringType(nullable=n, unique=u, text=True, length=None),
    "uuid": lambda n, u, l: UuidType(nullable=n, unique=u),
    "int": lambda n, u, l: IntegerType(nullable=n, unique=u, size=IntegerSize.REGULAR),
    "bigint": lambda n, u, l: IntegerType(nullable=n, unique=u, size=IntegerSize.BIG),
    "smallint": lambda n, u, l: IntegerType(nullable=n, unique=u, size=IntegerSize.SMALL),
    "unsigned": lambda n, u, l: IntegerType(nullable=n, unique=u, size=IntegerSize.UNSIGNED),
    "float": lambda n, u, l: FloatType(nullable=n, unique=u),
    "double": lambda n, u, l: DoubleType(nullable=n, unique=u),
    "decimal": lambda n, u, l: DecimalType(nullable=n, unique=u),
    "bool": lambda n, u, l: BooleanType(nullable=n),
    "date": lambda n, u, l: DateType(),
    "datetime": lambda n, u, l: DateTimeType(),
    "json": lambda n, u, l: JsonType(binary=False, unique=u),
    "jsonb": lambda n, u, l: JsonType(binary=True, unique=u),
}

TYPE_KEYWORDS: Tuple[str, ...] = tuple(_TYPE_FACTORIES)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _scan_modifiers(modifiers: str) -> _Modifiers:
    """Return ``(nullable, unique, length)`` for the text after the base keyword."""
    nullable: bool = True
    unique: bool = False
    digits: str = ""
    for ch in modifiers:
        if "0" <= ch <= "9":
            digits += ch
        elif ch == "!":
            nullable = False
        elif ch == "^":
            unique = True
    length: Optional[int] = None
    if digits:
        value: int = int(digits)
        if value <= MAX_LENGTH:
            length = value
        else:
            logger.debug("Length %s does not fit in 32 bits; ignoring it.", digits)
    return nullable, unique, length


def _parse_reference(name: str, type_spec: str, raw: str) -> ForeignKey:
    local_key: str = f"{name}{FOREIGN_KEY_SUFFIX}"
    if type_spec == REFERENCES_KEYWORD:
        return ForeignKey(
            local_key=local_key,
            references_table=to_plural(name),
            references_column=DEFAULT_REFERENCED_COLUMN,
        )

    prefix: str = REFERENCES_KEYWORD + "="
    if not type_spec.startswith(prefix):
        raise InvalidForeignKeyFormatError(
            f"Expected '{REFERENCES_KEYWORD}' or '{prefix}<table>(<column>)' "
            f"in field spec '{raw}'.",
            spec=raw,
        )

    match: Optional[re.Match[str]] = _REFERENCE_TARGET_RE.match(type_spec[len(prefix):])
    if match is None:
        raise InvalidForeignKeyFormatError(
            f"Foreign key target must look like '<table>(<column>)' in field spec '{raw}'.",
            spec=raw,
        )
    table, column = match.group(1), match.group(2)
    return ForeignKey(
        local_key=local_key,
        references_table=table,
        references_column=column,
    )


def parse_field_spec(raw: str) -> Field:
    """
    Parse a single compact descriptor.

    Raises:
        MissingTypeSpecError: no ``:`` separator.
        MissingColumnNameError: nothing before the ``:``.
        InvalidForeignKeyFormatError: malformed ``references`` target.
        InvalidTypeError: unknown base keyword.
    """
    name, sep, type_spec = raw.partition(":")
    if not sep:
        raise MissingTypeSpecError(
            f"Field spec '{raw}' has no ':' separating name and type.", spec=raw
        )
    if not name.strip():
        raise MissingColumnNameError(f"Field spec '{raw}' has no column name.", spec=raw)

    if type_spec.startswith(REFERENCES_KEYWORD):
        return _parse_reference(name, type_spec, raw)

    base: str = _BASE_RE.match(type_spec).group(0)  # type: ignore[union-attr]
    factory = _TYPE_FACTORIES.get(base)
    if factory is None:
        raise InvalidTypeError(
            f"Unknown type '{base or type_spec}' in field spec '{raw}'. "
            f"Expected one of: {', '.join(TYPE_KEYWORDS)}.",
            spec=raw,
        )

    nullable, unique, length = _scan_modifiers(type_spec[len(base):])
    return Column(name=name, field_type=factory(nullable, unique, length))


def parse_field_specs(raw_specs: Iterable[str]) -> List[Field]:
    """Parse every descriptor, stopping at the first error."""
    fields: List[Field] = [parse_field_spec(raw) for raw in raw_specs]
    logger.debug("Parsed %d field spec(s).", len(fields))
    return fields


# ---------------------------------------------------------------------------
# Canonical re-serialisation
# ---------------------------------------------------------------------------


def to_compact_spec(field: Field) -> str:
    """
    Serialise a ``Field`` back to canonical compact form.

    ``parse_field_spec(to_compact_spec(f)) == f`` holds for every parsed
    field. Foreign keys whose local key does not end in ``_id`` cannot be
    reproduced exactly because the parser always appends the suffix.
    """
    if isinstance(field, ForeignKey):
        base: str = field.local_key
        if base.endswith(FOREIGN_KEY_SUFFIX) and len(base) > len(FOREIGN_KEY_SUFFIX):
            base = base[: -len(FOREIGN_KEY_SUFFIX)]
        return (
            f"{base}:{REFERENCES_KEYWORD}="
            f"{field.references_table}({field.references_column})"
        )
    return f"{field.name}:{field.field_type.to_compact()}"


__all__: List[str] = [
    "TYPE_KEYWORDS",
    "parse_field_spec",
    "parse_field_specs",
    "to_compact_spec",
]

logger.debug("shipwright.fieldspec loaded — %d public symbols.", len(__all__))
