"""
tests/conftest.py
Shared fixtures for the shipwright test suite.

No external mocking libraries are used; real file I/O is performed
inside temporary directories managed by pytest's tmp_path fixtures.
"""

from __future__ import annotations

import pathlib
from typing import Any, Callable, Dict, List

import pytest
import yaml

from shipwright.blueprints import BlueprintRegistry
from shipwright.config import GeneratorConfig
from shipwright.fieldspec import parse_field_specs
from shipwright.generator import ScaffoldGenerator
from shipwright.models import Field

FIXED_TIMESTAMP: int = 1_700_000_000


# ---------------------------------------------------------------------------
# Field spec fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def post_specs() -> List[str]:
    """A resource touching every column type plus a foreign key."""
    return [
        "id:uuid!^",
        "title:string120!",
        "body:text",
        "views:int",
        "rating:double",
        "price:decimal",
        "published:bool",
        "published_on:date",
        "created_at:datetime",
        "meta:json",
        "author:references",
    ]


@pytest.fixture()
def post_fields(post_specs: List[str]) -> List[Field]:
    return parse_field_specs(post_specs)


@pytest.fixture()
def simple_specs() -> List[str]:
    return ["id:uuid!^", "name:string!", "age:int"]


# ---------------------------------------------------------------------------
# Project / generator fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def registry() -> BlueprintRegistry:
    """Bundled blueprints only; built once like the CLI does."""
    return BlueprintRegistry()


@pytest.fixture()
def project_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    path = tmp_path / "app"
    path.mkdir()
    return path


@pytest.fixture()
def config(project_dir: pathlib.Path) -> GeneratorConfig:
    return GeneratorConfig(project_root=project_dir)


@pytest.fixture()
def fixed_clock() -> Callable[[], float]:
    return lambda: float(FIXED_TIMESTAMP)


@pytest.fixture()
def generator(
    config: GeneratorConfig,
    registry: BlueprintRegistry,
    fixed_clock: Callable[[], float],
) -> ScaffoldGenerator:
    return ScaffoldGenerator(config, registry, clock=fixed_clock)


@pytest.fixture()
def config_dict() -> Dict[str, Any]:
    return {
        "entities_dir": "models/entities",
        "controllers_dir": "routes",
        "web_package": "webapp",
        "strict_validation": False,
    }


@pytest.fixture()
def config_yaml_path(config_dict: Dict[str, Any], project_dir: pathlib.Path) -> pathlib.Path:
    """Write the config dict to shipwright.yaml in the project and return its path."""
    path = project_dir / "shipwright.yaml"
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(config_dict, fh, default_flow_style=False)
    return path
