# File: shipwright/models.py
"""
Shipwright - Core Data Models
==============================
Pydantic V2 models shared by every stage of the pipeline:
Field-spec Parsing → Validation → Emission → Rendering → Export.

``Field`` is the parsed intermediate representation (a plain ``Column`` or a
``ForeignKey``). ``StructField``, ``ChangesetField`` and ``FormField`` are
emitter outputs handed to blueprints. ``ResourceNames`` is the single place
resource names are inflected for one generator invocation.

All models here are frozen: a ``Field`` is built once and then only read.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict
from pydantic import Field as PydanticField
from pydantic import computed_field

from shipwright.fieldtypes import FieldType, ValidationRule
from shipwright.utils import to_pascal_case, to_plural, to_singular, to_snake_case

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("shipwright.models")

_FROZEN_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    use_enum_values=True,
    frozen=True,
    extra="forbid",
)

# Foreign keys are stored as plain integers in every generated artifact.
FOREIGN_KEY_SQL_TYPE: str = "integer"
FOREIGN_KEY_NATIVE_TYPE: str = "int"
FOREIGN_KEY_FAKER: str = "fake.random_int(min=1, max=100)"
FOREIGN_KEY_INPUT_TYPE: str = "number"


# ---------------------------------------------------------------------------
# Parsed fields
# ---------------------------------------------------------------------------


class Column(BaseModel):
    """A plain table column: ``name`` plus its ``FieldType``."""

    model_config = _FROZEN_CONFIG

    variant: Literal["column"] = "column"
    name: str = PydanticField(..., min_length=1, description="Column name.")
    field_type: FieldType = PydanticField(..., description="Column type and modifiers.")

    @property
    def column_name(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"<Column {self.name}:{self.field_type.to_compact()}>"


class ForeignKey(BaseModel):
    """
    A relationship column.

    Always ``integer NOT NULL`` and always cascades on update and delete.
    """

    model_config = _FROZEN_CONFIG

    variant: Literal["foreign_key"] = "foreign_key"
    local_key: str = PydanticField(..., min_length=1, description="Local column name.")
    references_table: str = PydanticField(..., min_length=1)
    references_column: str = PydanticField(..., min_length=1)

    @property
    def column_name(self) -> str:
        return self.local_key

    def __repr__(self) -> str:
        return (
            f"<ForeignKey {self.local_key} -> "
            f"{self.references_table}.{self.references_column}>"
        )


Field = Union[Column, ForeignKey]


# ---------------------------------------------------------------------------
# Emitter outputs
# ---------------------------------------------------------------------------


class StructField(BaseModel):
    """One attribute of the generated record model."""

    model_config = _FROZEN_CONFIG

    name: str
    type_name: str


class ChangesetField(BaseModel):
    """One writable attribute of the generated changeset model."""

    model_config = _FROZEN_CONFIG

    name: str
    type_name: str
    validation: Optional[ValidationRule] = None
    faker: Optional[str] = None

    @computed_field  # type: ignore[misc]
    @property
    def is_optional(self) -> bool:
        return self.type_name.startswith("Optional[")

    @computed_field  # type: ignore[misc]
    @property
    def field_kwargs(self) -> str:
        """Arguments for ``pydantic.Field(...)`` in the generated changeset."""
        parts: List[str] = []
        if self.is_optional:
            parts.append("default=None")
        if self.validation is not None:
            parts.append(self.validation.pydantic_kwargs)
        return ", ".join(parts)


class FormField(BaseModel):
    """One ``<input>`` in the generated HTML forms."""

    model_config = _FROZEN_CONFIG

    name: str
    input_type: str = "text"
    required: bool = False

    @computed_field  # type: ignore[misc]
    @property
    def label(self) -> str:
        return self.name.replace("_", " ").capitalize()


class ResourceNames(BaseModel):
    """
    Every spelling of a resource name a blueprint may need.

    ``ResourceNames.from_name("BlogPost")`` →
    ``snake="blog_post", singular="blog_post", plural="blog_posts",
    class_name="BlogPost"``.
    """

    model_config = _FROZEN_CONFIG

    raw: str
    snake: str
    singular: str
    plural: str
    class_name: str

    @classmethod
    def from_name(cls, name: str) -> "ResourceNames":
        snake: str = to_snake_case(name)
        singular: str = to_singular(snake)
        return cls(
            raw=name,
            snake=snake,
            singular=singular,
            plural=to_plural(singular),
            class_name=to_pascal_case(singular),
        )

    def as_context(self) -> Dict[str, Any]:
        """Variables exposed to every blueprint."""
        return {
            "name": self.snake,
            "singular": self.singular,
            "plural": self.plural,
            "class_name": self.class_name,
        }


__all__: List[str] = [
    "FOREIGN_KEY_SQL_TYPE",
    "FOREIGN_KEY_NATIVE_TYPE",
    "FOREIGN_KEY_FAKER",
    "FOREIGN_KEY_INPUT_TYPE",
    "Column",
    "ForeignKey",
    "Field",
    "StructField",
    "ChangesetField",
    "FormField",
    "ResourceNames",
]

logger.debug("shipwright.models loaded — %d public symbols.", len(__all__))
