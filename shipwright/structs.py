# File: shipwright/structs.py
"""
Shipwright - Struct-Field Emitter
==================================
Projects parsed fields into the attribute lists of generated models.

``emit_fields`` returns two lists that every downstream artifact is built
from:

- **record** fields: every column, ``id`` included.
- **changeset** fields: the writable subset. A column named ``id`` is left
  out; foreign keys are always kept.

``emit_form_fields`` derives the HTML form from the changeset list, so form
input names cannot differ from changeset attribute names.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Sequence, Set, Tuple

from shipwright.models import (
    FOREIGN_KEY_FAKER,
    FOREIGN_KEY_INPUT_TYPE,
    FOREIGN_KEY_NATIVE_TYPE,
    ChangesetField,
    Column,
    ForeignKey,
    FormField,
    StructField,
)
from shipwright.models import Field as SpecField
from shipwright.utils import build_import_block, collect_type_imports, merge_import_dicts

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("shipwright.structs")

PRIMARY_KEY_NAME: str = "id"


def emit_fields(
    fields: Sequence[SpecField],
) -> Tuple[List[StructField], List[ChangesetField]]:
    """Return ``(record_fields, changeset_fields)`` in input order."""
    record: List[StructField] = []
    changeset: List[ChangesetField] = []

    for field in fields:
        if isinstance(field, Column):
            type_name: str = field.field_type.native_type_name()
            record.append(StructField(name=field.name, type_name=type_name))
            if field.name != PRIMARY_KEY_NAME:
                changeset.append(
                    ChangesetField(
                        name=field.name,
                        type_name=type_name,
                        validation=field.field_type.validation_rule(),
                        faker=field.field_type.faker_expression(),
                    )
                )
        elif isinstance(field, ForeignKey):
            record.append(
                StructField(name=field.local_key, type_name=FOREIGN_KEY_NATIVE_TYPE)
            )
            changeset.append(
                ChangesetField(
                    name=field.local_key,
                    type_name=FOREIGN_KEY_NATIVE_TYPE,
                    faker=FOREIGN_KEY_FAKER,
                )
            )

    logger.debug(
        "Emitted %d record field(s) and %d changeset field(s).",
        len(record),
        len(changeset),
    )
    return record, changeset


def emit_form_fields(fields: Sequence[SpecField]) -> List[FormField]:
    """HTML form inputs, one per changeset field."""
    input_types: Dict[str, str] = {}
    for field in fields:
        if isinstance(field, Column):
            input_types[field.name] = field.field_type.form_input_type()
        else:
            input_types[field.local_key] = FOREIGN_KEY_INPUT_TYPE

    _, changeset = emit_fields(fields)
    form: List[FormField] = []
    for cf in changeset:
        input_type: str = input_types.get(cf.name, "text")
        # An unchecked checkbox posts nothing, so it can never be required.
        required: bool = not cf.is_optional and input_type != "checkbox"
        form.append(FormField(name=cf.name, input_type=input_type, required=required))
    return form


def type_imports_for(
    record: Iterable[StructField], changeset: Iterable[ChangesetField]
) -> Dict[str, Set[str]]:
    """Imports needed by the annotations of both projections."""
    return merge_import_dicts(
        collect_type_imports(f.type_name for f in record),
        collect_type_imports(f.type_name for f in changeset),
    )


def render_type_imports(
    record: Iterable[StructField], changeset: Iterable[ChangesetField]
) -> str:
    return build_import_block(type_imports_for(record, changeset))


__all__: List[str] = [
    "PRIMARY_KEY_NAME",
    "emit_fields",
    "emit_form_fields",
    "type_imports_for",
    "render_type_imports",
]

logger.debug("shipwright.structs loaded — %d public symbols.", len(__all__))
