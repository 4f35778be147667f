"""
tests/test_generator.py
Integration tests for the generation pipeline (shipwright.generator).

Tests exercise the full flow: field specs → parse → validate → render →
write, using real file I/O in temporary project directories.
"""

from __future__ import annotations

import importlib
import importlib.util
import pathlib
import sys
from datetime import date, datetime
from types import ModuleType
from typing import Callable, Iterator, List, Set

import pytest
from sqlalchemy import create_engine, event

from shipwright.blueprints import BlueprintRegistry
from shipwright.config import GeneratorConfig
from shipwright.generator import GenerationReport, ScaffoldGenerator

SCAFFOLD_FILES: Set[str] = {
    "db/migrations/1700000000__create_posts_table.sql",
    "db/entities/posts.py",
    "web/controllers/post.py",
    "tests/test_post.py",
    "web/views/posts.py",
    "web/templates/posts/index.html",
    "web/templates/posts/show.html",
    "web/templates/posts/update.html",
}


def files_under(root: pathlib.Path) -> Set[str]:
    return {p.relative_to(root).as_posix() for p in root.rglob("*") if p.is_file()}


def import_from_path(
    monkeypatch: pytest.MonkeyPatch, name: str, path: pathlib.Path
) -> ModuleType:
    spec = importlib.util.spec_from_file_location(name, path)
    assert spec is not None and spec.loader is not None
    module: ModuleType = importlib.util.module_from_spec(spec)
    monkeypatch.setitem(sys.modules, name, module)
    spec.loader.exec_module(module)
    return module


# ===========================================================================
# Scaffold
# ===========================================================================


class TestScaffold:
    def test_writes_every_artifact(
        self, generator: ScaffoldGenerator, post_specs: List[str], project_dir: pathlib.Path
    ) -> None:
        report: GenerationReport = generator.generate_scaffold("post", post_specs)
        assert report.success, report.summary()
        assert set(report.written_files) == SCAFFOLD_FILES
        assert files_under(project_dir) == SCAFFOLD_FILES | {
            "db/entities/__init__.py",
            "web/controllers/__init__.py",
            "web/views/__init__.py",
        }

    def test_registrations(
        self, generator: ScaffoldGenerator, post_specs: List[str], project_dir: pathlib.Path
    ) -> None:
        report: GenerationReport = generator.generate_scaffold("post", post_specs)
        assert report.appended_files == [
            "db/entities/__init__.py: from . import posts",
            "web/controllers/__init__.py: from .post import router as post_router",
            "web/views/__init__.py: from . import posts",
        ]
        assert (project_dir / "web/controllers/__init__.py").read_text() == (
            "from .post import router as post_router\n"
        )

    def test_names_are_inflected_once(
        self, generator: ScaffoldGenerator, project_dir: pathlib.Path
    ) -> None:
        report: GenerationReport = generator.generate_scaffold(
            "Categories", ["id:uuid!^", "label:string!"]
        )
        assert report.success, report.summary()
        assert "db/entities/categories.py" in report.written_files
        assert "web/controllers/categories.py" in report.written_files
        entity: str = (project_dir / "db/entities/categories.py").read_text()
        assert "class CategoryEntity(SqlEntity[Category, CategoryChangeset]):" in entity

    def test_report_counts(
        self, generator: ScaffoldGenerator, post_specs: List[str]
    ) -> None:
        report: GenerationReport = generator.generate_scaffold("post", post_specs)
        assert report.total_bytes > 0
        assert report.total_lines > 0
        assert [s.step_name for s in report.step_metrics] == [
            "Parse Fields", "Validate", "Render", "Write",
        ]
        assert "✅ SUCCESS" in report.summary()


# ===========================================================================
# Single commands
# ===========================================================================


class TestSingleCommands:
    def test_migration(
        self, generator: ScaffoldGenerator, project_dir: pathlib.Path
    ) -> None:
        report: GenerationReport = generator.generate_migration(
            "posts", ["id:uuid!^", "title:string!"]
        )
        assert report.written_files == ["db/migrations/1700000000__create_posts_table.sql"]
        assert report.appended_files == []
        sql: str = (project_dir / report.written_files[0]).read_text()
        assert sql.startswith('-- Create the "posts" table.\n')
        assert 'CREATE TABLE IF NOT EXISTS "posts" (' in sql
        assert sql.endswith(");\n")

    def test_migration_name_follows_clock(
        self, config: GeneratorConfig, registry: BlueprintRegistry
    ) -> None:
        generator = ScaffoldGenerator(config, registry, clock=lambda: 42.9)
        report: GenerationReport = generator.generate_migration("tags", ["id:int!"])
        assert report.written_files == ["db/migrations/42__create_tags_table.sql"]

    def test_controller_writes_test_too(self, generator: ScaffoldGenerator) -> None:
        report: GenerationReport = generator.generate_controller("post", ["id:uuid!", "t:string"])
        assert report.written_files == ["web/controllers/post.py", "tests/test_post.py"]

    def test_controller_test_alone(self, generator: ScaffoldGenerator) -> None:
        report: GenerationReport = generator.generate_controller_test("post", ["id:uuid!"])
        assert report.written_files == ["tests/test_post.py"]
        assert report.appended_files == []

    def test_view_without_fields(self, generator: ScaffoldGenerator) -> None:
        report: GenerationReport = generator.generate_view("post")
        assert report.success
        assert len(report.written_files) == 4
        assert any("NO_FIELDS" in w for w in report.validation_warnings)

    def test_middleware(
        self, generator: ScaffoldGenerator, project_dir: pathlib.Path
    ) -> None:
        report: GenerationReport = generator.generate_middleware("request_timer")
        assert report.success
        assert report.written_files == ["web/middlewares/request_timer.py"]
        assert (project_dir / "web/middlewares/__init__.py").read_text() == (
            "from .request_timer import RequestTimerMiddleware\n"
        )

    def test_middleware_name_is_validated(
        self, generator: ScaffoldGenerator, project_dir: pathlib.Path
    ) -> None:
        report: GenerationReport = generator.generate_middleware("class")
        assert not report.success
        assert files_under(project_dir) == set()

    def test_registration_not_duplicated(
        self, config: GeneratorConfig, registry: BlueprintRegistry,
        fixed_clock: Callable[[], float], project_dir: pathlib.Path,
    ) -> None:
        config.overwrite = True
        generator = ScaffoldGenerator(config, registry, clock=fixed_clock)
        generator.generate_entity("post", ["id:uuid!"])
        second: GenerationReport = generator.generate_entity("post", ["id:uuid!"])
        assert second.success
        assert second.appended_files == []
        assert (project_dir / "db/entities/__init__.py").read_text() == "from . import posts\n"

    def test_registration_appends_to_existing_init(
        self, generator: ScaffoldGenerator, project_dir: pathlib.Path
    ) -> None:
        init: pathlib.Path = project_dir / "db/entities/__init__.py"
        init.parent.mkdir(parents=True)
        init.write_text("from . import users")
        generator.generate_entity("post", ["id:uuid!"])
        assert init.read_text() == "from . import users\nfrom . import posts\n"


# ===========================================================================
# Failures leave the project untouched
# ===========================================================================


class TestFailures:
    def test_parse_error(
        self, generator: ScaffoldGenerator, project_dir: pathlib.Path
    ) -> None:
        report: GenerationReport = generator.generate_scaffold(
            "post", ["id:uuid!", "title:frobnicate"]
        )
        assert not report.success
        assert report.parse_errors and report.parse_errors[0].startswith("[INVALID_TYPE]")
        assert files_under(project_dir) == set()

    def test_validation_error_strict(
        self, generator: ScaffoldGenerator, project_dir: pathlib.Path
    ) -> None:
        report: GenerationReport = generator.generate_entity("post", ["id:uuid!", "class:string"])
        assert not report.success
        assert any("PYTHON_KEYWORD_FIELD" in e for e in report.validation_errors)
        assert files_under(project_dir) == set()

    def test_validation_error_not_strict(
        self, config: GeneratorConfig, registry: BlueprintRegistry,
        fixed_clock: Callable[[], float],
    ) -> None:
        config.strict_validation = False
        generator = ScaffoldGenerator(config, registry, clock=fixed_clock)
        report: GenerationReport = generator.generate_migration("posts", ["id:uuid!", "a:int", "a:int"])
        assert report.success
        assert report.validation_errors == []
        assert any("DUPLICATE_FIELD_NAME" in w for w in report.validation_warnings)

    def test_fail_on_warnings(
        self, config: GeneratorConfig, registry: BlueprintRegistry,
        fixed_clock: Callable[[], float], project_dir: pathlib.Path,
    ) -> None:
        config.fail_on_warnings = True
        generator = ScaffoldGenerator(config, registry, clock=fixed_clock)
        report: GenerationReport = generator.generate_migration("posts", ["title:string!"])
        assert not report.success
        assert any(
            "MISSING_ID_FIELD" in e and "warnings are fatal" in e
            for e in report.validation_errors
        )
        assert files_under(project_dir) == set()

    def test_migration_without_id_only_warns(
        self, generator: ScaffoldGenerator, project_dir: pathlib.Path
    ) -> None:
        report: GenerationReport = generator.generate_migration("posts", ["title:string!"])
        assert report.success
        assert any("MISSING_ID_FIELD" in w for w in report.validation_warnings)

    @pytest.mark.parametrize("command", ["generate_entity", "generate_scaffold"])
    def test_entity_without_id_is_rejected(
        self, generator: ScaffoldGenerator, project_dir: pathlib.Path, command: str
    ) -> None:
        report: GenerationReport = getattr(generator, command)("post", ["title:string!"])
        assert not report.success
        assert any("[ERROR] MISSING_ID_FIELD" in e for e in report.validation_errors)
        assert files_under(project_dir) == set()

    @pytest.mark.parametrize("command", ["generate_entity", "generate_scaffold"])
    @pytest.mark.parametrize("id_spec", ["id:date", "id:float!"])
    def test_entity_with_unallocatable_id_is_rejected(
        self, generator: ScaffoldGenerator, project_dir: pathlib.Path,
        command: str, id_spec: str,
    ) -> None:
        report: GenerationReport = getattr(generator, command)(
            "post", [id_spec, "title:string!"]
        )
        assert not report.success
        assert any("UNSUPPORTED_ID_TYPE" in e for e in report.validation_errors)
        assert files_under(project_dir) == set()

    def test_foreign_key_to_uuid_table_is_rejected(
        self, generator: ScaffoldGenerator, project_dir: pathlib.Path
    ) -> None:
        assert generator.generate_migration("users", ["id:uuid!^", "name:string!"]).success
        before: Set[str] = files_under(project_dir)
        report: GenerationReport = generator.generate_migration(
            "posts", ["id:int!^", "author:references=users(id)"]
        )
        assert not report.success
        assert any("FK_TARGET_NOT_INTEGER" in e for e in report.validation_errors)
        assert files_under(project_dir) == before

    def test_failed_write_rolls_back(
        self, generator: ScaffoldGenerator, post_specs: List[str],
        project_dir: pathlib.Path,
    ) -> None:
        init: pathlib.Path = project_dir / "db/entities/__init__.py"
        init.parent.mkdir(parents=True)
        init.write_text("from . import users\n")
        # A directory where the views registration file should be.
        (project_dir / "web/views/__init__.py").mkdir(parents=True)

        report: GenerationReport = generator.generate_scaffold("post", post_specs)
        assert not report.success
        assert report.export_errors
        assert report.written_files == []
        assert report.appended_files == []
        assert init.read_text() == "from . import users\n"
        assert files_under(project_dir) == {"db/entities/__init__.py"}

    def test_existing_file_blocks_everything(
        self, generator: ScaffoldGenerator, post_specs: List[str], project_dir: pathlib.Path
    ) -> None:
        existing: pathlib.Path = project_dir / "web/views/posts.py"
        existing.parent.mkdir(parents=True)
        existing.write_text("# mine\n")

        report: GenerationReport = generator.generate_scaffold("post", post_specs)
        assert not report.success
        assert report.export_errors == [
            "web/views/posts.py already exists (use --force to overwrite)"
        ]
        assert report.written_files == []
        assert existing.read_text() == "# mine\n"
        assert files_under(project_dir) == {"web/views/posts.py"}

    def test_overwrite_replaces(
        self, config: GeneratorConfig, registry: BlueprintRegistry,
        fixed_clock: Callable[[], float], project_dir: pathlib.Path,
    ) -> None:
        existing: pathlib.Path = project_dir / "db/entities/posts.py"
        existing.parent.mkdir(parents=True)
        existing.write_text("# mine\n")
        config.overwrite = True
        report: GenerationReport = ScaffoldGenerator(
            config, registry, clock=fixed_clock
        ).generate_entity("post", ["id:uuid!"])
        assert report.success
        assert "class PostEntity" in existing.read_text()

    def test_render_error(
        self, project_dir: pathlib.Path, tmp_path: pathlib.Path,
        fixed_clock: Callable[[], float],
    ) -> None:
        overrides: pathlib.Path = tmp_path / "blueprints"
        (overrides / "entity").mkdir(parents=True)
        (overrides / "entity" / "file.py.j2").write_text("{{ not_a_variable }}")
        config = GeneratorConfig(project_root=project_dir, blueprint_dirs=[overrides])
        report: GenerationReport = ScaffoldGenerator(
            config, clock=fixed_clock
        ).generate_scaffold("post", ["id:uuid!"])
        assert not report.success
        assert report.generation_errors
        assert "entity/file.py" in report.generation_errors[0]
        assert files_under(project_dir) == set()
        assert "❌ FAILED" in report.summary()

    def test_dry_run(
        self, config: GeneratorConfig, registry: BlueprintRegistry,
        fixed_clock: Callable[[], float], post_specs: List[str], project_dir: pathlib.Path,
    ) -> None:
        generator = ScaffoldGenerator(config, registry, dry_run=True, clock=fixed_clock)
        report: GenerationReport = generator.generate_scaffold("post", post_specs)
        assert report.success
        assert report.dry_run
        assert set(report.planned_files) == SCAFFOLD_FILES
        assert files_under(project_dir) == set()


# ===========================================================================
# Generated code runs
# ===========================================================================


class TestGeneratedEntityRuns:
    def test_entity_crud_against_generated_migration(
        self, generator: ScaffoldGenerator, post_specs: List[str],
        project_dir: pathlib.Path, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        assert generator.generate_migration("posts", post_specs).success
        assert generator.generate_entity("post", post_specs).success

        engine = create_engine("sqlite://")
        migration: str = (
            project_dir / "db/migrations/1700000000__create_posts_table.sql"
        ).read_text()
        with engine.begin() as conn:
            conn.exec_driver_sql(migration)

        module: ModuleType = import_from_path(
            monkeypatch, "generated_posts_entity", project_dir / "db/entities/posts.py"
        )
        posts = module.PostEntity(engine)
        created = posts.create(
            {
                "title": "Hello",
                "price": "9.99",
                "published": True,
                "published_on": "2024-05-01",
                "created_at": "2024-05-01T10:30:00",
                "meta": {"tags": ["a"]},
                "author_id": 7,
            }
        )
        assert isinstance(created, module.Post)
        assert created.title == "Hello"
        assert created.body is None
        assert float(created.price) == pytest.approx(9.99)
        assert created.published is True
        assert created.published_on == date(2024, 5, 1)
        assert created.created_at == datetime(2024, 5, 1, 10, 30)
        assert created.meta == {"tags": ["a"]}
        assert created.author_id == 7

        updated = posts.update(
            created.id,
            {"title": "Bye", "published_on": "2024-06-01", "created_at": "2024-05-01T10:30:00",
             "meta": [], "author_id": 8},
        )
        assert updated.title == "Bye"
        assert updated.meta == []
        assert [p.id for p in posts.load_all()] == [created.id]

        posts.delete(created.id)
        assert posts.load_all() == []

    def test_changeset_rejects_empty_title(
        self, generator: ScaffoldGenerator, project_dir: pathlib.Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        from pydantic import ValidationError

        assert generator.generate_entity("note", ["id:uuid!^", "title:string5!"]).success
        module: ModuleType = import_from_path(
            monkeypatch, "generated_notes_entity", project_dir / "db/entities/notes.py"
        )
        assert module.NoteChangeset(title="abc").title == "abc"
        with pytest.raises(ValidationError):
            module.NoteChangeset(title="")
        with pytest.raises(ValidationError):
            module.NoteChangeset(title="toolong")
        assert set(module.Note.model_fields) == {"id", "title"}
        assert set(module.NoteChangeset.model_fields) == {"title"}

    def test_integer_ids_link_parent_and_child(
        self, generator: ScaffoldGenerator, project_dir: pathlib.Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        from sqlalchemy.exc import IntegrityError

        user_specs: List[str] = ["id:int!^", "name:string!"]
        post_specs: List[str] = ["id:int!^", "title:string!", "author:references=users(id)"]
        assert generator.generate_migration("users", user_specs).success
        assert generator.generate_migration("posts", post_specs).success
        assert generator.generate_entity("user", user_specs).success
        assert generator.generate_entity("post", post_specs).success

        engine = create_engine("sqlite://")

        @event.listens_for(engine, "connect")
        def enable_foreign_keys(dbapi_connection, _record) -> None:
            dbapi_connection.execute("PRAGMA foreign_keys=ON")

        with engine.begin() as conn:
            for table in ("users", "posts"):
                conn.exec_driver_sql(
                    (project_dir / f"db/migrations/1700000000__create_{table}_table.sql").read_text()
                )

        users_module: ModuleType = import_from_path(
            monkeypatch, "generated_users_entity", project_dir / "db/entities/users.py"
        )
        posts_module: ModuleType = import_from_path(
            monkeypatch, "generated_posts_entity", project_dir / "db/entities/posts.py"
        )
        users = users_module.UserEntity(engine)
        posts = posts_module.PostEntity(engine)

        first, second = users.create_batch([{"name": "Ada"}, {"name": "Grace"}])
        assert (first.id, second.id) == (1, 2)

        post = posts.create({"title": "Hello", "author_id": second.id})
        assert post.id == 1
        assert post.author_id == 2
        assert posts.load("1") == post

        with pytest.raises(IntegrityError):
            posts.create({"title": "Orphan", "author_id": 99})

    def test_json_form_text_is_stored_decoded(
        self, generator: ScaffoldGenerator, project_dir: pathlib.Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        specs: List[str] = ["id:int!^", "meta:json"]
        assert generator.generate_migration("docs", specs).success
        assert generator.generate_entity("doc", specs).success

        engine = create_engine("sqlite://")
        with engine.begin() as conn:
            conn.exec_driver_sql(
                (project_dir / "db/migrations/1700000000__create_docs_table.sql").read_text()
            )
        module: ModuleType = import_from_path(
            monkeypatch, "generated_docs_entity", project_dir / "db/entities/docs.py"
        )
        docs = module.DocEntity(engine)

        created = docs.create(module.DocChangeset.model_validate({"meta": '{"a": 1}'}))
        assert created.meta == {"a": 1}
        assert docs.update(created.id, {"meta": "[1, 2]"}).meta == [1, 2]

        with engine.connect() as conn:
            stored: str = conn.exec_driver_sql("SELECT meta FROM docs").scalar_one()
        assert stored == "[1, 2]"


# ===========================================================================
# Generated controller and its tests run inside a project
# ===========================================================================

STATE_MODULE: str = '''\
from pathlib import Path
from typing import Any, Mapping

from jinja2 import Environment, FileSystemLoader, select_autoescape
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

ROOT = Path(__file__).resolve().parent

engine = create_engine(
    f"sqlite:///{ROOT.parent / 'app.db'}",
    connect_args={"check_same_thread": False},
)


class JinjaRenderer:
    def __init__(self, directory: Path) -> None:
        self.env = Environment(
            loader=FileSystemLoader(str(directory)),
            autoescape=select_autoescape(["html"]),
        )

    def render(self, template: str, data: Mapping[str, Any]) -> str:
        return self.env.get_template(template).render(**data)


renderer = JinjaRenderer(ROOT / "templates")


def get_engine() -> Engine:
    return engine


def get_renderer() -> JinjaRenderer:
    return renderer
'''

APP_MODULE: str = '''\
from fastapi import FastAPI

from web.controllers import post_router

app = FastAPI()
app.include_router(post_router)
'''

PROJECT_SPECS: List[str] = [
    "code:string4!",
    "title:string120!",
    "body:text",
    "active:bool!",
    "rating:double",
    "published_on:date",
    "meta:json",
    "author:references",
]


def forget_project_modules() -> None:
    for name in list(sys.modules):
        if name.split(".")[0] in ("web", "db"):
            del sys.modules[name]


@pytest.fixture()
def scaffolded_project(
    generator: ScaffoldGenerator, project_dir: pathlib.Path,
    monkeypatch: pytest.MonkeyPatch, request: pytest.FixtureRequest,
) -> Iterator[pathlib.Path]:
    report: GenerationReport = generator.generate_scaffold(
        "post", [request.param] + PROJECT_SPECS
    )
    assert report.success, report.summary()

    (project_dir / "db/__init__.py").write_text("")
    (project_dir / "web/__init__.py").write_text("")
    (project_dir / "web/state.py").write_text(STATE_MODULE)
    (project_dir / "web/app.py").write_text(APP_MODULE)
    (project_dir / "web/templates/base.html").write_text(
        "<html><body>{% block content %}{% endblock %}</body></html>\n"
    )

    forget_project_modules()
    monkeypatch.syspath_prepend(str(project_dir))
    state: ModuleType = importlib.import_module("web.state")
    with state.engine.begin() as conn:
        conn.exec_driver_sql(
            (project_dir / "db/migrations/1700000000__create_posts_table.sql").read_text()
        )
    yield project_dir
    state.engine.dispose()
    forget_project_modules()


@pytest.mark.parametrize(
    "scaffolded_project", ["id:int!^", "id:uuid!^"], indirect=True
)
class TestGeneratedProjectRuns:
    def test_generated_controller_tests_pass(
        self, scaffolded_project: pathlib.Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        module: ModuleType = import_from_path(
            monkeypatch, "generated_post_controller_tests",
            scaffolded_project / "tests/test_post.py",
        )
        tests = [
            value for name, value in vars(module).items()
            if name.startswith("test_") and callable(value)
        ]
        assert len(tests) == 6
        for test in tests:
            test()

    def test_unchecked_checkbox_clears_flag(
        self, scaffolded_project: pathlib.Path
    ) -> None:
        from fastapi.testclient import TestClient

        app = importlib.import_module("web.app").app
        posts_module: ModuleType = importlib.import_module("db.entities.posts")
        state: ModuleType = importlib.import_module("web.state")
        client = TestClient(app)
        form = {
            "code": "AB",
            "title": "Hello",
            "active": "true",
            "published_on": "2024-05-01",
            "meta": '{"tags": ["a"]}',
            "author_id": "1",
        }

        created = client.post("/posts", data=form, follow_redirects=False)
        assert created.status_code == 303
        location: str = created.headers["location"]
        record_id: str = location.rsplit("/", 1)[1]
        posts = posts_module.PostEntity(state.engine)
        assert posts.load(record_id).active is True
        assert posts.load(record_id).meta == {"tags": ["a"]}

        unchecked = {key: value for key, value in form.items() if key != "active"}
        updated = client.post(location, data=unchecked, follow_redirects=False)
        assert updated.status_code == 303
        assert posts.load(record_id).active is False

        page = client.get("/posts")
        assert page.status_code == 200
        assert 'name="active" value="true">' in page.text
