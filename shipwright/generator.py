# File: shipwright/generator.py
"""
Shipwright - Scaffold Generation Pipeline (Orchestrator)
=========================================================

Connects every phase for one generator command:

    Field specs → Parse → Validate → Emit → Render → Pre-flight → Write

The ``ScaffoldGenerator`` class backs the CLI and can be used directly.

Workflow for every command::

    1. Parse the compact field specs (fail-fast, fieldspec.py).
    2. Run semantic validation (validators.py).
    3. Emit DDL / record / changeset / form projections (ddl.py, structs.py).
    4. Render every blueprint into memory (blueprints.py).
    5. Check that no target file already exists (unless overwrite).
    6. Write files and append package registrations (exporters.py).
    7. Return a ``GenerationReport``.

Error handling strategy:
    - Errors are recorded on the report, not raised.
    - Any failure before step 6 means nothing is written.
    - A failure during step 6 rolls back the files already written.
    - Migrations are named from an injectable clock so tests are stable.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from shipwright.blueprints import BlueprintRegistry, BlueprintRenderer
from shipwright.config import GeneratorConfig
from shipwright.ddl import emit_create_table, emit_drop_table, read_column_types
from shipwright.errors import BlueprintError, ExportError, ParseError
from shipwright.exporters import ProjectWriter
from shipwright.fieldspec import parse_field_specs
from shipwright.fieldtypes import BooleanType, JsonType
from shipwright.models import Column, ResourceNames
from shipwright.models import Field as SpecField
from shipwright.structs import emit_fields, emit_form_fields, render_type_imports
from shipwright.utils import Timer, count_lines, read_file, to_pascal_case
from shipwright.validators import (
    ValidationResult,
    validate_full,
    validate_resource_name,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("shipwright.generator")

VIEW_TEMPLATES: Tuple[str, ...] = ("index", "show", "update")


# ---------------------------------------------------------------------------
# Generation report
# ---------------------------------------------------------------------------


@dataclass(frozen=False, slots=True)
class GenerationStepMetric:
    """Timing and outcome for a single pipeline step."""

    step_name: str = ""
    success: bool = True
    elapsed_seconds: float = 0.0
    detail: str = ""


@dataclass(frozen=False, slots=True)
class GenerationReport:
    """Everything one generator command did, or why it did nothing."""

    command: str = ""
    resource: str = ""
    success: bool = False
    dry_run: bool = False

    total_bytes: int = 0
    total_lines: int = 0
    total_elapsed_seconds: float = 0.0

    step_metrics: List[GenerationStepMetric] = field(default_factory=list)
    parse_errors: List[str] = field(default_factory=list)
    validation_errors: List[str] = field(default_factory=list)
    validation_warnings: List[str] = field(default_factory=list)
    generation_errors: List[str] = field(default_factory=list)
    export_errors: List[str] = field(default_factory=list)

    planned_files: List[str] = field(default_factory=list)
    written_files: List[str] = field(default_factory=list)
    appended_files: List[str] = field(default_factory=list)

    def summary(self) -> str:
        """Return a human-readable summary string."""
        lines: List[str] = []
        status: str = "✅ SUCCESS" if self.success else "❌ FAILED"
        if self.dry_run:
            status += " (dry run)"
        lines.append(f"{'='*60}")
        lines.append(f"  Shipwright — {self.command} {self.resource}")
        lines.append(f"{'='*60}")
        lines.append(f"  Status:           {status}")
        lines.append(f"  Files written:    {len(self.written_files)}")
        lines.append(f"  Registrations:    {len(self.appended_files)}")
        lines.append(f"  Total lines:      {self.total_lines:,}")
        lines.append(f"  Total bytes:      {self.total_bytes:,}")
        lines.append(f"  Total time:       {self.total_elapsed_seconds:.3f}s")
        lines.append(f"{'─'*60}")

        if self.step_metrics:
            lines.append("  Pipeline Steps:")
            for step in self.step_metrics:
                icon: str = "✓" if step.success else "✗"
                lines.append(
                    f"    {icon} {step.step_name:<20s} "
                    f"{step.elapsed_seconds:>7.3f}s  "
                    f"{step.detail}"
                )

        sections: List[Tuple[str, List[str], str]] = [
            ("Files", self.written_files, "+"),
            ("Registrations", self.appended_files, "~"),
            ("Parse Errors", self.parse_errors, "✗"),
            ("Validation Errors", self.validation_errors, "✗"),
            ("Validation Warnings", self.validation_warnings, "⚠"),
            ("Generation Errors", self.generation_errors, "✗"),
            ("Export Errors", self.export_errors, "✗"),
        ]
        for title, items, icon in sections:
            if not items:
                continue
            lines.append(f"{'─'*60}")
            lines.append(f"  {title} ({len(items)}):")
            for item in items:
                lines.append(f"    {icon} {item}")

        lines.append(f"{'='*60}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# In-memory output plan
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class _OutputPlan:
    files: Dict[str, str] = field(default_factory=dict)
    registrations: List[Tuple[str, str]] = field(default_factory=list)

    def add_file(self, rel_path: str, content: str) -> None:
        self.files[rel_path] = content

    def register(self, init_path: str, line: str) -> None:
        if (init_path, line) not in self.registrations:
            self.registrations.append((init_path, line))


_Builder = Callable[[ResourceNames, List[SpecField], _OutputPlan], None]


# ---------------------------------------------------------------------------
# ScaffoldGenerator: orchestrator
# ---------------------------------------------------------------------------


class ScaffoldGenerator:
    """
    Runs generator commands against one project.

    Usage::

        generator = ScaffoldGenerator(load_config(project_root=Path(".")))
        report = generator.generate_scaffold("post", ["id:uuid!^", "title:string120!"])
        print(report.summary())

    The generator is reusable; every ``generate_*`` call is independent.
    """

    def __init__(
        self,
        config: GeneratorConfig,
        registry: Optional[BlueprintRegistry] = None,
        *,
        dry_run: bool = False,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config: GeneratorConfig = config
        self._registry: BlueprintRegistry = registry or BlueprintRegistry(
            config.resolved_blueprint_dirs()
        )
        self._renderer: BlueprintRenderer = BlueprintRenderer(self._registry)
        self._dry_run: bool = dry_run
        self._clock: Callable[[], float] = clock

        logger.debug(
            "ScaffoldGenerator initialised: root=%s, strict=%s, dry_run=%s.",
            config.project_root,
            config.strict_validation,
            dry_run,
        )

    @property
    def config(self) -> GeneratorConfig:
        return self._config

    @property
    def registry(self) -> BlueprintRegistry:
        return self._registry

    # -----------------------------------------------------------------
    # Public commands
    # -----------------------------------------------------------------

    def generate_entity(self, name: str, specs: Sequence[str]) -> GenerationReport:
        return self._run(
            "entity", name, specs, [self._build_entity], require_key=True
        )

    def generate_migration(self, table: str, specs: Sequence[str]) -> GenerationReport:
        return self._run("migration", table, specs, [self._build_migration])

    def generate_controller(self, name: str, specs: Sequence[str]) -> GenerationReport:
        return self._run(
            "controller", name, specs, [self._build_controller, self._build_controller_test]
        )

    def generate_controller_test(
        self, name: str, specs: Sequence[str]
    ) -> GenerationReport:
        return self._run("controller-test", name, specs, [self._build_controller_test])

    def generate_view(self, name: str, specs: Sequence[str] = ()) -> GenerationReport:
        return self._run("view", name, specs, [self._build_view])

    def generate_middleware(self, name: str) -> GenerationReport:
        return self._run("middleware", name, None, [self._build_middleware])

    def generate_scaffold(self, name: str, specs: Sequence[str]) -> GenerationReport:
        return self._run(
            "scaffold",
            name,
            specs,
            [
                self._build_migration,
                self._build_entity,
                self._build_controller,
                self._build_controller_test,
                self._build_view,
            ],
            require_key=True,
        )

    # -----------------------------------------------------------------
    # Internal: master pipeline
    # -----------------------------------------------------------------

    def _run(
        self,
        command: str,
        name: str,
        specs: Optional[Sequence[str]],
        builders: Sequence[_Builder],
        *,
        require_key: bool = False,
    ) -> GenerationReport:
        report: GenerationReport = GenerationReport(
            command=command, resource=name, dry_run=self._dry_run
        )
        pipeline_start: float = time.perf_counter()

        fields: Optional[List[SpecField]] = self._step_parse(specs or [], report)
        if fields is None:
            return self._finalise_report(report, pipeline_start)

        if not self._step_validate(
            name,
            fields,
            report,
            check_fields=specs is not None,
            require_key=require_key,
        ):
            return self._finalise_report(report, pipeline_start)

        plan: Optional[_OutputPlan] = self._step_render(name, fields, builders, report)
        if plan is None:
            return self._finalise_report(report, pipeline_start)

        self._step_export(plan, report)
        return self._finalise_report(report, pipeline_start)

    # -----------------------------------------------------------------
    # Pipeline step: Parse
    # -----------------------------------------------------------------

    def _step_parse(
        self, specs: Sequence[str], report: GenerationReport
    ) -> Optional[List[SpecField]]:
        with Timer("parse") as t:
            try:
                fields: List[SpecField] = parse_field_specs(specs)
            except ParseError as exc:
                report.parse_errors.append(f"[{exc.code}] {exc.message}")
                report.step_metrics.append(GenerationStepMetric(
                    step_name="Parse Fields",
                    success=False,
                    elapsed_seconds=t.elapsed,
                    detail=exc.code,
                ))
                logger.error("Parse failed: %s", exc.message)
                return None

        report.step_metrics.append(GenerationStepMetric(
            step_name="Parse Fields",
            success=True,
            elapsed_seconds=t.elapsed,
            detail=f"{len(fields)} field(s)",
        ))
        return fields

    # -----------------------------------------------------------------
    # Pipeline step: Validation
    # -----------------------------------------------------------------

    def _step_validate(
        self,
        name: str,
        fields: List[SpecField],
        report: GenerationReport,
        *,
        check_fields: bool = True,
        require_key: bool = False,
    ) -> bool:
        """Return True when generation may continue."""
        with Timer("validation") as t:
            if check_fields:
                result: ValidationResult = validate_full(
                    name,
                    fields,
                    require_key=require_key,
                    known_tables=self._known_tables(),
                )
            else:
                result = validate_resource_name(name)

        blocking: bool = result.has_errors and self._config.strict_validation
        if blocking:
            report.validation_errors.extend(str(e) for e in result.errors)
        else:
            report.validation_warnings.extend(str(e) for e in result.errors)
        report.validation_warnings.extend(str(w) for w in result.warnings)

        if result.has_errors:
            detail: str = f"{result.error_count} error(s)"
        elif result.has_warnings:
            detail = f"{result.warning_count} warning(s)"
        else:
            detail = "all checks passed"

        report.step_metrics.append(GenerationStepMetric(
            step_name="Validate",
            success=result.is_valid,
            elapsed_seconds=t.elapsed,
            detail=detail,
        ))

        for warn in result.warnings:
            logger.warning("  ⚠ %s", warn)

        if result.has_errors:
            for err in result.errors:
                logger.error("  ✗ %s", err)
            if blocking:
                return False
            logger.warning("Continuing despite validation errors (strict mode off).")

        if result.has_warnings and self._config.fail_on_warnings:
            report.validation_errors.extend(
                f"{w} (warnings are fatal)" for w in result.warnings
            )
            return False

        return True

    def _known_tables(self) -> Dict[str, Dict[str, str]]:
        """Column types of every table created by an existing migration."""
        tables: Dict[str, Dict[str, str]] = {}
        migrations: Path = self._config.project_root / self._config.migrations_dir
        if not migrations.is_dir():
            return tables
        for path in sorted(migrations.glob("*.sql")):
            try:
                tables.update(read_column_types(read_file(path)))
            except OSError as exc:
                logger.warning("Skipping unreadable migration %s: %s", path, exc)
        return tables

    # -----------------------------------------------------------------
    # Pipeline step: Render
    # -----------------------------------------------------------------

    def _step_render(
        self,
        name: str,
        fields: List[SpecField],
        builders: Sequence[_Builder],
        report: GenerationReport,
    ) -> Optional[_OutputPlan]:
        names: ResourceNames = ResourceNames.from_name(name)
        plan: _OutputPlan = _OutputPlan()

        with Timer("render") as t:
            try:
                for build in builders:
                    build(names, fields, plan)
            except BlueprintError as exc:
                report.generation_errors.append(str(exc))
                logger.error("Rendering failed: %s", exc)

        ok: bool = not report.generation_errors
        report.planned_files.extend(plan.files)
        report.step_metrics.append(GenerationStepMetric(
            step_name="Render",
            success=ok,
            elapsed_seconds=t.elapsed,
            detail=f"{len(plan.files)} file(s)",
        ))
        return plan if ok else None

    # -----------------------------------------------------------------
    # Pipeline step: Export
    # -----------------------------------------------------------------

    def _step_export(self, plan: _OutputPlan, report: GenerationReport) -> None:
        writer: ProjectWriter = ProjectWriter(
            self._config.project_root,
            dry_run=self._dry_run,
            atomic_writes=self._config.atomic_writes,
            overwrite=self._config.overwrite,
        )

        with Timer("export") as t:
            try:
                conflicts: List[str] = writer.check_targets(plan.files)
                if conflicts:
                    for path in conflicts:
                        report.export_errors.append(
                            f"{path} already exists (use --force to overwrite)"
                        )
                else:
                    for rel_path, content in plan.files.items():
                        writer.write(rel_path, content)
                        report.written_files.append(rel_path)
                        report.total_bytes += len(content.encode("utf-8"))
                        report.total_lines += count_lines(content)
                    for init_path, line in plan.registrations:
                        if writer.append_line(init_path, line):
                            report.appended_files.append(f"{init_path}: {line}")
            except ExportError as exc:
                report.export_errors.append(str(exc))
                logger.error("Export failed: %s", exc)
                writer.rollback()
                report.written_files.clear()
                report.appended_files.clear()
                report.total_bytes = 0
                report.total_lines = 0

        report.step_metrics.append(GenerationStepMetric(
            step_name="Write",
            success=not report.export_errors,
            elapsed_seconds=t.elapsed,
            detail=(
                f"{len(report.written_files)} file(s), "
                f"{len(report.appended_files)} registration(s)"
            ),
        ))

    # -----------------------------------------------------------------
    # Blueprint context and builders
    # -----------------------------------------------------------------

    def _context(self, names: ResourceNames, fields: List[SpecField]) -> Dict[str, Any]:
        record, changeset = emit_fields(fields)
        return {
            **names.as_context(),
            "record_fields": record,
            "changeset_fields": changeset,
            "form_fields": emit_form_fields(fields),
            "json_fields": [
                f.name
                for f in fields
                if isinstance(f, Column) and isinstance(f.field_type, JsonType)
            ],
            "boolean_fields": [
                f.name
                for f in fields
                if isinstance(f, Column) and isinstance(f.field_type, BooleanType)
            ],
            "type_imports": render_type_imports(record, changeset),
            "entities_module": self._config.entities_module,
            "views_module": self._config.views_module,
            "state_module": self._config.state_module,
            "app_module": self._config.app_module,
        }

    def _build_entity(
        self, names: ResourceNames, fields: List[SpecField], plan: _OutputPlan
    ) -> None:
        entities_dir: str = self._config.entities_dir
        plan.add_file(
            f"{entities_dir}/{names.plural}.py",
            self._renderer.render("entity/file.py", self._context(names, fields)),
        )
        plan.register(f"{entities_dir}/__init__.py", f"from . import {names.plural}")

    def _build_migration(
        self, names: ResourceNames, fields: List[SpecField], plan: _OutputPlan
    ) -> None:
        timestamp: int = int(self._clock())
        context: Dict[str, Any] = {
            **names.as_context(),
            "ddl": emit_create_table(names.plural, fields),
            "drop_table": emit_drop_table(names.plural),
        }
        plan.add_file(
            f"{self._config.migrations_dir}/{timestamp}__create_{names.plural}_table.sql",
            self._renderer.render("migration/file.sql", context),
        )

    def _build_controller(
        self, names: ResourceNames, fields: List[SpecField], plan: _OutputPlan
    ) -> None:
        controllers_dir: str = self._config.controllers_dir
        plan.add_file(
            f"{controllers_dir}/{names.snake}.py",
            self._renderer.render("controller/file.py", self._context(names, fields)),
        )
        plan.register(
            f"{controllers_dir}/__init__.py",
            f"from .{names.snake} import router as {names.snake}_router",
        )

    def _build_controller_test(
        self, names: ResourceNames, fields: List[SpecField], plan: _OutputPlan
    ) -> None:
        plan.add_file(
            f"{self._config.tests_dir}/test_{names.snake}.py",
            self._renderer.render("controller/test.py", self._context(names, fields)),
        )

    def _build_view(
        self, names: ResourceNames, fields: List[SpecField], plan: _OutputPlan
    ) -> None:
        context: Dict[str, Any] = self._context(names, fields)
        views_dir: str = self._config.views_dir
        plan.add_file(
            f"{views_dir}/{names.plural}.py",
            self._renderer.render("view/file.py", context),
        )
        plan.register(f"{views_dir}/__init__.py", f"from . import {names.plural}")
        for template in VIEW_TEMPLATES:
            plan.add_file(
                f"{self._config.templates_dir}/{names.plural}/{template}.html",
                self._renderer.render(f"view/templates/{template}.html", context),
            )

    def _build_middleware(
        self, names: ResourceNames, fields: List[SpecField], plan: _OutputPlan
    ) -> None:
        middleware_class: str = to_pascal_case(names.snake)
        context: Dict[str, Any] = {
            **names.as_context(),
            "middleware_class": middleware_class,
        }
        middlewares_dir: str = self._config.middlewares_dir
        plan.add_file(
            f"{middlewares_dir}/{names.snake}.py",
            self._renderer.render("middleware/file.py", context),
        )
        plan.register(
            f"{middlewares_dir}/__init__.py",
            f"from .{names.snake} import {middleware_class}Middleware",
        )

    # -----------------------------------------------------------------
    # Internal: finalise report
    # -----------------------------------------------------------------

    def _finalise_report(
        self, report: GenerationReport, pipeline_start: float
    ) -> GenerationReport:
        report.total_elapsed_seconds = time.perf_counter() - pipeline_start
        report.success = not (
            report.parse_errors
            or report.validation_errors
            or report.generation_errors
            or report.export_errors
        )
        if report.success:
            logger.info(
                "%s '%s' complete: %d file(s) in %.3fs.",
                report.command,
                report.resource,
                len(report.written_files),
                report.total_elapsed_seconds,
            )
        else:
            logger.error(
                "%s '%s' failed after writing %d file(s).",
                report.command,
                report.resource,
                len(report.written_files),
            )
        return report


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "VIEW_TEMPLATES",
    "GenerationStepMetric",
    "GenerationReport",
    "ScaffoldGenerator",
]

logger.debug("shipwright.generator loaded.")
