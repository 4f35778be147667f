# File: shipwright/errors.py
"""
Shipwright - Exception Taxonomy
================================

Every error raised by the generator derives from ``ShipwrightError`` so the
CLI can map failures to exit codes with a single ``except`` clause.

Parse errors additionally subclass ``ValueError``: a bad compact field spec
is, at heart, a bad value handed in by the caller.
"""

from __future__ import annotations

from typing import List, Optional


class ShipwrightError(Exception):
    """Base class for all Shipwright errors."""


# ---------------------------------------------------------------------------
# Field-spec parsing
# ---------------------------------------------------------------------------


class ParseError(ShipwrightError, ValueError):
    """A compact field spec could not be parsed."""

    code: str = "PARSE_ERROR"

    def __init__(self, message: str, spec: Optional[str] = None) -> None:
        super().__init__(message)
        self.message: str = message
        self.spec: Optional[str] = spec

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.code}: {self.message}>"


class MissingColumnNameError(ParseError):
    code = "MISSING_COLUMN_NAME"


class MissingTypeSpecError(ParseError):
    code = "MISSING_TYPE_SPEC"


class InvalidForeignKeyFormatError(ParseError):
    code = "INVALID_FOREIGN_KEY_FORMAT"


class InvalidTypeError(ParseError):
    code = "INVALID_TYPE"


# ---------------------------------------------------------------------------
# Blueprints
# ---------------------------------------------------------------------------


class BlueprintError(ShipwrightError):
    """Base class for blueprint lookup and rendering failures."""


class BlueprintNotFoundError(BlueprintError):
    def __init__(self, name: str, searched: Optional[List[str]] = None) -> None:
        self.name: str = name
        self.searched: List[str] = list(searched or [])
        where: str = f" (searched: {', '.join(self.searched)})" if self.searched else ""
        super().__init__(f"Blueprint '{name}' not found{where}.")


class BlueprintRenderError(BlueprintError):
    def __init__(self, name: str, reason: str) -> None:
        self.name: str = name
        super().__init__(f"Failed to render blueprint '{name}': {reason}")


# ---------------------------------------------------------------------------
# Configuration, export and runtime
# ---------------------------------------------------------------------------


class ConfigError(ShipwrightError, ValueError):
    """The generator configuration file is missing, unreadable or invalid."""


class ExportError(ShipwrightError):
    """Writing generated files into the project failed."""


class NoRecordFoundError(ShipwrightError, LookupError):
    """An entity lookup by id matched no row."""

    def __init__(self, table: str, record_id: object) -> None:
        self.table: str = table
        self.record_id: object = record_id
        super().__init__(f"No record found in '{table}' with id {record_id!r}.")


__all__: List[str] = [
    "ShipwrightError",
    "ParseError",
    "MissingColumnNameError",
    "MissingTypeSpecError",
    "InvalidForeignKeyFormatError",
    "InvalidTypeError",
    "BlueprintError",
    "BlueprintNotFoundError",
    "BlueprintRenderError",
    "ConfigError",
    "ExportError",
    "NoRecordFoundError",
]
