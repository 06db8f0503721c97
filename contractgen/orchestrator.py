"""Pipeline orchestration for analyze / recommend / apply / single-module flows."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Callable, Dict, List

from .config import ConfigError, ContractGenConfig, load_config
from .drafts import render_draft
from .ecosystems import detect_ecosystem, get_profile
from .errors import ConflictError, ValidationError
from .logging import get_logger
from .models import (
    MIRROR_FILENAME,
    PRIMARY_FILENAME,
    DirectoryMetrics,
    ModuleRecord,
    ProjectProfile,
    Recommendation,
)
from .module_scanner import ModuleScanner, build_candidate
from .project import build_project_profile
from .scoring import generate_reasoning, rank_modules, recommend
from .stores.files import atomic_write_text
from .stores.registry import append_registry


@dataclass
class AnalysisResult:
    """Project identity plus ranked modules and recommendations."""

    project: ProjectProfile
    modules: List[ModuleRecord] = field(default_factory=list)
    recommendations: List[Recommendation] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "project": self.project.to_dict(),
            "modules": [module.to_dict() for module in self.modules],
            "recommendations": [rec.to_dict() for rec in self.recommendations],
        }


@dataclass
class DraftPlan:
    """A rendered contract pair and where it would be written."""

    module: ModuleRecord
    primary_text: str
    mirror_text: str
    primary_path: Path
    mirror_path: Path
    primary_exists: bool
    mirror_exists: bool

    @property
    def reasoning(self) -> str:
        return getattr(self.module, "reasoning", "") or generate_reasoning(self.module)


class Orchestrator:
    """Coordinates discovery, scoring, drafting and registry updates."""

    def __init__(
        self,
        scanner_factory: Callable[[ContractGenConfig], ModuleScanner] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._scanner_factory = scanner_factory or (
            lambda config: ModuleScanner(config.exclude_dirs)
        )
        self._clock = clock or (lambda: datetime.now(UTC))
        self.logger = get_logger("orchestrator")

    def analyze(self, path: str | Path) -> AnalysisResult:
        """Detect the project type, discover modules, then score and rank them."""
        root = self._resolve_root(path)
        config = self._load_config(root)
        ecosystem = detect_ecosystem(root)
        self.logger.info("Analyzing %s (%s project)", root, ecosystem)

        project = build_project_profile(root, ecosystem)
        modules = self._scanner_factory(config).discover(root, ecosystem)
        ranked = rank_modules(modules, config.scoring)
        recommendations = recommend(ranked, config.scoring)
        self.logger.debug(
            "Discovered %d modules, %d recommended", len(ranked), len(recommendations)
        )
        return AnalysisResult(project=project, modules=ranked, recommendations=recommendations)

    def recommend(
        self, path: str | Path, *, force: bool = False, analysis: AnalysisResult | None = None
    ) -> List[DraftPlan]:
        """Render drafts for recommended modules that do not have a CONTRACT.md yet."""
        analysis = analysis or self.analyze(path)
        root = Path(analysis.project.root)
        now = self._clock()
        plans: List[DraftPlan] = []
        for rec in analysis.recommendations:
            plan = self._plan(root, rec, analysis.project, now)
            if plan.primary_exists and not force:
                self.logger.info("Skipping %s - %s already exists", rec.relative_path, PRIMARY_FILENAME)
                continue
            plans.append(plan)
        return plans

    def apply(self, path: str | Path, *, force: bool = False) -> List[DraftPlan]:
        """Write every recommended draft pair and record them in the registry."""
        analysis = self.analyze(path)
        root = Path(analysis.project.root)
        config = self._load_config(root)
        plans = self.recommend(path, force=force, analysis=analysis)
        for plan in plans:
            self._write_plan(plan)
        if plans:
            append_registry(
                root,
                [plan.module for plan in plans],
                registry_path=config.registry_path,
                now=self._clock(),
            )
        return plans

    def create_for_module(
        self, root: str | Path, module_path: str | Path, *, force: bool = False
    ) -> DraftPlan:
        """Draft and write a contract pair for one module directory."""
        root_path = self._resolve_root(root)
        target = Path(module_path).expanduser()
        if not target.is_absolute():
            target = root_path / target
        target = target.resolve()
        if target != root_path and root_path not in target.parents:
            raise ValidationError(f"Module path is outside the project root: {module_path}")
        if not target.exists():
            raise FileNotFoundError(f"Path does not exist: {module_path}")
        if not target.is_dir():
            raise NotADirectoryError(f"Module path is not a directory: {module_path}")

        relative = target.relative_to(root_path).as_posix()
        relative = relative if relative != "." else ""
        config = self._load_config(root_path)
        analysis = self.analyze(root_path)
        module = next((m for m in analysis.modules if m.relative_path == relative), None)
        if module is None:
            ignore = self._scanner_factory(config).ignore_dirs(
                get_profile(analysis.project.ecosystem)
            )
            module = build_candidate(target, relative, analysis.project.ecosystem, ignore)
        if module is None:
            module = ModuleRecord(
                name=target.name, relative_path=relative, metrics=DirectoryMetrics()
            )

        plan = self._plan(root_path, module, analysis.project, self._clock())
        if plan.primary_exists and not force:
            raise ConflictError(f"{PRIMARY_FILENAME} already exists at {relative or '.'}")
        self._write_plan(plan)
        append_registry(root_path, [module], registry_path=config.registry_path, now=self._clock())
        return plan

    # ------------------------------------------------------------------
    # Internal helpers

    @staticmethod
    def _resolve_root(path: str | Path) -> Path:
        root = Path(path).expanduser().resolve()
        if not root.exists():
            raise FileNotFoundError(f"Path does not exist: {path}")
        if not root.is_dir():
            raise NotADirectoryError(f"Path is not a directory: {path}")
        return root

    def _load_config(self, root: Path) -> ContractGenConfig:
        try:
            return load_config(root)
        except ConfigError as exc:
            self.logger.warning("Ignoring invalid configuration: %s", exc)
            return ContractGenConfig(root=root)

    @staticmethod
    def _plan(
        root: Path, module: ModuleRecord, project: ProjectProfile, now: datetime
    ) -> DraftPlan:
        directory = root / module.relative_path
        primary_text, mirror_text = render_draft(module, project, now)
        primary_path = directory / PRIMARY_FILENAME
        mirror_path = directory / MIRROR_FILENAME
        return DraftPlan(
            module=module,
            primary_text=primary_text,
            mirror_text=mirror_text,
            primary_path=primary_path,
            mirror_path=mirror_path,
            primary_exists=primary_path.exists(),
            mirror_exists=mirror_path.exists(),
        )

    def _write_plan(self, plan: DraftPlan) -> None:
        """Write the pair; a failed mirror write restores the previous primary state."""
        plan.primary_path.parent.mkdir(parents=True, exist_ok=True)
        previous = plan.primary_path.read_bytes() if plan.primary_path.is_file() else None
        atomic_write_text(plan.primary_path, plan.primary_text)
        try:
            atomic_write_text(plan.mirror_path, plan.mirror_text)
        except OSError:
            self.logger.error(
                "Writing %s failed, rolling back %s", plan.mirror_path, plan.primary_path
            )
            if previous is None:
                plan.primary_path.unlink(missing_ok=True)
            else:
                plan.primary_path.write_bytes(previous)
            raise
        self.logger.info("Created contract pair in %s", plan.module.relative_path or ".")


__all__ = ["AnalysisResult", "DraftPlan", "Orchestrator"]
