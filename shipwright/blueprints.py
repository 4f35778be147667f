# File: shipwright/blueprints.py
"""
Shipwright - Blueprint Registry & Renderer
===========================================
Blueprints are the Jinja2 templates that materialise generated files. They
ship inside the package under ``shipwright/bundled/`` and are addressed by
their path without the ``.j2`` suffix::

    entity/file.py
    migration/file.sql
    controller/file.py
    controller/test.py
    view/file.py
    view/templates/index.html
    view/templates/show.html
    view/templates/update.html
    middleware/file.py

A ``BlueprintRegistry`` is built once at start-up and handed to whoever
renders. Project-local override directories are searched before the bundled
blueprints, so a project can replace any single file.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, List, Mapping, Optional, Protocol, Sequence, Union

from jinja2 import (
    Environment,
    FileSystemLoader,
    StrictUndefined,
    Template,
    TemplateError,
    TemplateNotFound,
    select_autoescape,
)

from shipwright.errors import BlueprintNotFoundError, BlueprintRenderError
from shipwright.utils import (
    to_pascal_case,
    to_plural,
    to_singular,
    to_snake_case,
    to_title_human,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("shipwright.blueprints")

BUNDLED_BLUEPRINT_DIR: Path = Path(__file__).parent / "bundled"
BLUEPRINT_SUFFIX: str = ".j2"


class Renderer(Protocol):
    """Anything that turns a named template plus variables into text."""

    def render(self, template: str, data: Mapping[str, Any]) -> str:
        ...


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class BlueprintRegistry:
    """
    Read-only lookup table of blueprints backed by a Jinja2 ``Environment``.

    Args:
        override_dirs: Directories searched, in order, before the bundled
            blueprints.
    """

    def __init__(
        self, override_dirs: Optional[Sequence[Union[str, Path]]] = None
    ) -> None:
        self.search_path: List[Path] = [Path(d) for d in (override_dirs or [])]
        self.search_path.append(BUNDLED_BLUEPRINT_DIR)
        self.env: Environment = Environment(
            loader=FileSystemLoader([str(p) for p in self.search_path]),
            autoescape=select_autoescape([]),
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )
        self.env.filters["snake_case"] = to_snake_case
        self.env.filters["pascal_case"] = to_pascal_case
        self.env.filters["title_human"] = to_title_human
        self.env.filters["plural"] = to_plural
        self.env.filters["singular"] = to_singular
        logger.debug(
            "Blueprint registry search path: %s",
            ", ".join(str(p) for p in self.search_path),
        )

    def names(self) -> List[str]:
        """All blueprint names visible through the search path, sorted."""
        found: List[str] = [
            name[: -len(BLUEPRINT_SUFFIX)]
            for name in self.env.list_templates()
            if name.endswith(BLUEPRINT_SUFFIX)
        ]
        return sorted(set(found))

    def has(self, name: str) -> bool:
        try:
            self.get(name)
        except BlueprintNotFoundError:
            return False
        return True

    def get(self, name: str) -> Template:
        try:
            return self.env.get_template(name + BLUEPRINT_SUFFIX)
        except TemplateNotFound:
            raise BlueprintNotFoundError(
                name, [str(p) for p in self.search_path]
            ) from None
        except TemplateError as exc:
            raise BlueprintRenderError(name, str(exc)) from exc

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.has(name)

    def __repr__(self) -> str:
        return f"<BlueprintRegistry dirs={len(self.search_path)}>"


# ---------------------------------------------------------------------------
# Renderer
# ---------------------------------------------------------------------------


class BlueprintRenderer:
    """Renders blueprints from a registry; satisfies ``Renderer``."""

    def __init__(self, registry: BlueprintRegistry) -> None:
        self.registry: BlueprintRegistry = registry

    def render(self, template: str, data: Mapping[str, Any]) -> str:
        blueprint: Template = self.registry.get(template)
        try:
            output: str = blueprint.render(**dict(data))
        except TemplateError as exc:
            raise BlueprintRenderError(template, str(exc)) from exc
        logger.debug("Rendered blueprint '%s' (%d chars).", template, len(output))
        return output


__all__: List[str] = [
    "BUNDLED_BLUEPRINT_DIR",
    "Renderer",
    "BlueprintRegistry",
    "BlueprintRenderer",
]

logger.debug("shipwright.blueprints loaded — %d public symbols.", len(__all__))
