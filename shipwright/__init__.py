# File: shipwright/__init__.py
"""
Shipwright — Scaffolding Generator
===================================

Turns compact field specs such as ``title:string120!^`` into migrations,
entity modules, controllers, views and tests for a FastAPI + SQLAlchemy
application, plus the small runtime library those files import.

Architecture overview::

    ┌──────────────┐     ┌──────────────────┐     ┌───────────────────┐
    │  CLI / Entry │────▶│ ScaffoldGenerator │────▶│ BlueprintRenderer │
    │   (cli.py)   │     │  (generator.py)   │     │  (blueprints.py)  │
    └──────────────┘     └────────┬─────────┘     └───────────────────┘
                                  │
           ┌──────────────┬───────┼────────┬──────────────┐
           ▼              ▼       ▼        ▼              ▼
     ┌───────────┐ ┌──────────┐ ┌─────┐ ┌─────────┐ ┌───────────┐
     │ fieldspec │ │validators│ │ ddl │ │ structs │ │ exporters │
     └───────────┘ └──────────┘ └─────┘ └─────────┘ └───────────┘

Usage::

    # As a library
    from shipwright import ScaffoldGenerator, load_config
    gen = ScaffoldGenerator(load_config(project_root=Path(".")))
    gen.generate_scaffold("post", ["id:uuid!^", "title:string120!"])

    # From the command line
    python -m shipwright scaffold post id:uuid!^ title:string120!
"""

from __future__ import annotations

__version__: str = "0.1.0"

from shipwright.blueprints import BlueprintRegistry, BlueprintRenderer, Renderer
from shipwright.config import GeneratorConfig, load_config
from shipwright.ddl import emit_create_table
from shipwright.entity import Entity, SqlEntity
from shipwright.errors import ParseError, ShipwrightError
from shipwright.fieldspec import parse_field_spec, parse_field_specs, to_compact_spec
from shipwright.fieldtypes import FieldType, IntegerSize
from shipwright.generator import GenerationReport, ScaffoldGenerator
from shipwright.models import (
    ChangesetField,
    Column,
    Field,
    ForeignKey,
    FormField,
    ResourceNames,
    StructField,
)
from shipwright.structs import emit_fields, emit_form_fields
from shipwright.validators import ValidationResult, validate_full

__all__: list[str] = [
    "__version__",
    # Orchestration
    "ScaffoldGenerator",
    "GenerationReport",
    "GeneratorConfig",
    "load_config",
    # Field specs
    "parse_field_spec",
    "parse_field_specs",
    "to_compact_spec",
    "Field",
    "Column",
    "ForeignKey",
    "FieldType",
    "IntegerSize",
    # Emitters
    "emit_create_table",
    "emit_fields",
    "emit_form_fields",
    "StructField",
    "ChangesetField",
    "FormField",
    "ResourceNames",
    # Validation
    "validate_full",
    "ValidationResult",
    # Blueprints
    "BlueprintRegistry",
    "BlueprintRenderer",
    "Renderer",
    # Runtime
    "Entity",
    "SqlEntity",
    # Errors
    "ShipwrightError",
    "ParseError",
]
