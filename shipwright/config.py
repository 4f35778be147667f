# File: shipwright/config.py
"""
Shipwright - Generator Configuration
=====================================
Where generated files go and how strictly the generator behaves.

Settings come from three layers, later layers winning:

1. Defaults on ``GeneratorConfig``.
2. ``shipwright.yaml`` in the project root (or the file passed with
   ``--config``).
3. Command-line flags.

Example ``shipwright.yaml``::

    entities_dir: db/entities
    migrations_dir: db/migrations
    controllers_dir: web/controllers
    web_package: web
    blueprint_dirs:
      - blueprints
    strict_validation: true
"""

from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath
from typing import Any, Dict, List, Mapping, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from shipwright.errors import ConfigError

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("shipwright.config")

DEFAULT_CONFIG_FILENAME: str = "shipwright.yaml"

_SHARED_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    validate_assignment=True,
    use_enum_values=True,
    frozen=False,
    extra="forbid",
)


def _module_path(directory: str) -> str:
    """``web/controllers`` → ``web.controllers``."""
    return ".".join(PurePosixPath(directory).parts)


class GeneratorConfig(BaseModel):
    """Complete generator configuration for one project."""

    model_config = _SHARED_CONFIG

    project_root: Path = Field(default=Path("."), description="Project root directory.")

    # -- Layout (relative to project_root, also used as import paths) -------
    entities_dir: str = Field(default="db/entities")
    migrations_dir: str = Field(default="db/migrations")
    controllers_dir: str = Field(default="web/controllers")
    views_dir: str = Field(default="web/views")
    templates_dir: str = Field(default="web/templates")
    middlewares_dir: str = Field(default="web/middlewares")
    tests_dir: str = Field(default="tests")

    web_package: str = Field(
        default="web", description="Package providing 'app' and 'state'."
    )

    blueprint_dirs: List[Path] = Field(
        default_factory=list,
        description="Override directories searched before the bundled blueprints.",
    )

    # -- Behaviour ------------------------------------------------------------
    strict_validation: bool = Field(
        default=True, description="Abort on validation errors."
    )
    fail_on_warnings: bool = Field(
        default=False, description="Treat validation warnings as errors."
    )
    overwrite: bool = Field(default=False, description="Replace existing files.")
    atomic_writes: bool = Field(default=True)

    @field_validator(
        "entities_dir",
        "migrations_dir",
        "controllers_dir",
        "views_dir",
        "templates_dir",
        "middlewares_dir",
        "tests_dir",
    )
    @classmethod
    def _relative_directory(cls, v: str) -> str:
        path = PurePosixPath(v.replace("\\", "/"))
        if path.is_absolute() or ".." in path.parts or not path.parts:
            raise ValueError(
                f"Layout directory '{v}' must be a relative path inside the project."
            )
        return str(path)

    @field_validator("web_package")
    @classmethod
    def _dotted_package(cls, v: str) -> str:
        if not v or not all(part.isidentifier() for part in v.split(".")):
            raise ValueError(f"'{v}' is not a valid dotted package name.")
        return v

    # -- Derived import paths ------------------------------------------------

    @property
    def entities_module(self) -> str:
        return _module_path(self.entities_dir)

    @property
    def controllers_module(self) -> str:
        return _module_path(self.controllers_dir)

    @property
    def views_module(self) -> str:
        return _module_path(self.views_dir)

    @property
    def state_module(self) -> str:
        return f"{self.web_package}.state"

    @property
    def app_module(self) -> str:
        return f"{self.web_package}.app"

    def resolved_blueprint_dirs(self) -> List[Path]:
        return [
            p if p.is_absolute() else (self.project_root / p).resolve()
            for p in self.blueprint_dirs
        ]


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        data: Any = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"Expected a YAML mapping at top level of {path}, "
            f"got {type(data).__name__}."
        )
    return data


def load_config(
    path: Optional[Path] = None,
    *,
    project_root: Optional[Path] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> GeneratorConfig:
    """
    Build a ``GeneratorConfig`` from file and overrides.

    Args:
        path: Explicit config file. Must exist when given.
        project_root: Project directory. When *path* is not given,
            ``shipwright.yaml`` is looked up here (optional).
        overrides: Values that win over the file, ``None`` values ignored.

    Raises:
        ConfigError: unreadable file, bad YAML or invalid values.
    """
    root: Path = Path(project_root) if project_root is not None else Path(".")
    data: Dict[str, Any] = {}

    if path is not None:
        path = Path(path)
        if not path.is_file():
            raise ConfigError(f"Config file not found: {path}")
        data = _read_yaml(path)
        if project_root is None:
            root = path.parent
        logger.info("Loaded config from %s (%d key(s)).", path, len(data))
    else:
        candidate: Path = root / DEFAULT_CONFIG_FILENAME
        if candidate.is_file():
            data = _read_yaml(candidate)
            logger.info("Loaded config from %s (%d key(s)).", candidate, len(data))
        else:
            logger.debug("No %s in %s; using defaults.", DEFAULT_CONFIG_FILENAME, root)

    if project_root is not None or "project_root" not in data:
        data["project_root"] = root

    for key, value in (overrides or {}).items():
        if value is not None:
            data[key] = value

    try:
        return GeneratorConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


__all__: List[str] = [
    "DEFAULT_CONFIG_FILENAME",
    "GeneratorConfig",
    "load_config",
]

logger.debug("shipwright.config loaded — %d public symbols.", len(__all__))
