"""
tests/test_config.py
Tests for shipwright.config: defaults, YAML loading, overrides and the
ConfigError paths the CLI maps to exit code 4.
"""

from __future__ import annotations

import pathlib
from typing import Any, Dict

import pytest
from pydantic import ValidationError

from shipwright.config import GeneratorConfig, load_config
from shipwright.errors import ConfigError


class TestGeneratorConfig:
    def test_defaults(self) -> None:
        config = GeneratorConfig()
        assert config.entities_dir == "db/entities"
        assert config.entities_module == "db.entities"
        assert config.views_module == "web.views"
        assert config.state_module == "web.state"
        assert config.app_module == "web.app"
        assert config.strict_validation is True
        assert config.overwrite is False

    @pytest.mark.parametrize("value", ["/abs/path", "../outside", "a/../../b", ""])
    def test_layout_dirs_must_be_relative(self, value: str) -> None:
        with pytest.raises(ValidationError):
            GeneratorConfig(entities_dir=value)

    def test_backslashes_normalised(self) -> None:
        assert GeneratorConfig(views_dir="web\\views").views_dir == "web/views"

    @pytest.mark.parametrize("value", ["", "my-web", "web..app", "1web"])
    def test_packages_must_be_dotted_identifiers(self, value: str) -> None:
        with pytest.raises(ValidationError):
            GeneratorConfig(web_package=value)

    def test_unknown_keys_rejected(self) -> None:
        with pytest.raises(ValidationError):
            GeneratorConfig(colour="blue")  # type: ignore[call-arg]

    def test_web_package_is_the_only_package_setting(self) -> None:
        with pytest.raises(ValidationError):
            GeneratorConfig(db_package="db")  # type: ignore[call-arg]

    def test_blueprint_dirs_resolved_against_root(self, tmp_path: pathlib.Path) -> None:
        config = GeneratorConfig(
            project_root=tmp_path, blueprint_dirs=[pathlib.Path("bp"), tmp_path / "abs"]
        )
        assert config.resolved_blueprint_dirs() == [
            (tmp_path / "bp").resolve(), tmp_path / "abs"
        ]


class TestLoadConfig:
    def test_no_file_gives_defaults(self, project_dir: pathlib.Path) -> None:
        config = load_config(project_root=project_dir)
        assert config.project_root == project_dir
        assert config.entities_dir == "db/entities"

    def test_reads_project_yaml(
        self, config_yaml_path: pathlib.Path, project_dir: pathlib.Path
    ) -> None:
        config = load_config(project_root=project_dir)
        assert config.entities_dir == "models/entities"
        assert config.controllers_module == "routes"
        assert config.app_module == "webapp.app"
        assert config.strict_validation is False

    def test_explicit_path_sets_root(self, config_yaml_path: pathlib.Path) -> None:
        config = load_config(config_yaml_path)
        assert config.project_root == config_yaml_path.parent

    def test_overrides_win_and_none_is_ignored(
        self, config_yaml_path: pathlib.Path, project_dir: pathlib.Path
    ) -> None:
        overrides: Dict[str, Any] = {"strict_validation": True, "overwrite": None}
        config = load_config(project_root=project_dir, overrides=overrides)
        assert config.strict_validation is True
        assert config.overwrite is False

    def test_missing_explicit_file(self, tmp_path: pathlib.Path) -> None:
        with pytest.raises(ConfigError):
            load_config(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, project_dir: pathlib.Path) -> None:
        (project_dir / "shipwright.yaml").write_text("entities_dir: [unclosed\n")
        with pytest.raises(ConfigError):
            load_config(project_root=project_dir)

    def test_non_mapping_yaml(self, project_dir: pathlib.Path) -> None:
        (project_dir / "shipwright.yaml").write_text("- a\n- b\n")
        with pytest.raises(ConfigError):
            load_config(project_root=project_dir)

    def test_empty_yaml(self, project_dir: pathlib.Path) -> None:
        (project_dir / "shipwright.yaml").write_text("")
        assert load_config(project_root=project_dir).tests_dir == "tests"

    def test_invalid_values(self, project_dir: pathlib.Path) -> None:
        (project_dir / "shipwright.yaml").write_text("entities_dir: /etc\n")
        with pytest.raises(ConfigError):
            load_config(project_root=project_dir)

    def test_config_error_is_value_error(self, tmp_path: pathlib.Path) -> None:
        with pytest.raises(ValueError):
            load_config(tmp_path / "nope.yaml")
