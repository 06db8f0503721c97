"""Deterministic CONTRACT.md / CONTRACT.yaml draft rendering."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from functools import lru_cache
from pathlib import Path
from typing import List, Optional, Tuple

from jinja2 import Environment, FileSystemLoader

from .drift import compute_hash, format_timestamp
from .models import (
    CLASSIFICATION_CORE,
    CLASSIFICATION_INTEGRATION,
    ModuleRecord,
    ProjectProfile,
)

DRAFT_MARKER = "<!-- DRAFT: Review and modify, then remove this line -->"
TEST_PLACEHOLDER = "TODO"
MAX_FEATURE_LINES = 5

_TEMPLATES_DIR = Path(__file__).parent / "templates"


def _yaml_quote(value: object) -> str:
    return json.dumps("" if value is None else str(value), ensure_ascii=False)


@lru_cache(maxsize=1)
def _environment() -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(_TEMPLATES_DIR)),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
    env.filters["quote"] = _yaml_quote
    return env


def title_case(name: str) -> str:
    """Title-case hyphen-separated words: ``user-auth`` -> ``User Auth``."""
    return " ".join(word[:1].upper() + word[1:] for word in name.split("-"))


def _purpose(module: ModuleRecord, project_name: str) -> str:
    if module.classification == CLASSIFICATION_CORE:
        return f"Handles [describe responsibility] for {project_name}."
    if module.classification == CLASSIFICATION_INTEGRATION:
        return f"Connects to [external system] to provide [capability] for {project_name}."
    return f"Enables [describe user-facing value] in {project_name}."


def _features(module: ModuleRecord) -> List[str]:
    test_pattern = f"{module.name}.test.*" if module.has_tests else TEST_PLACEHOLDER
    lines = [
        f"- [ ] {export}: [describe behavior] → Test: {test_pattern}"
        for export in module.exports[:MAX_FEATURE_LINES]
    ]
    if not lines:
        lines.append(f"- [ ] [Core capability]: [describe behavior] → Test: {test_pattern}")
    return lines


def _constraints(module: ModuleRecord) -> List[str]:
    if module.classification == CLASSIFICATION_CORE:
        return [
            "- MUST: Maintain backward compatibility for public API exports",
            "- MUST NOT: Introduce breaking changes without version bump",
        ]
    if module.classification == CLASSIFICATION_INTEGRATION:
        return [
            "- MUST: Handle API errors and timeouts gracefully",
            "- MUST NOT: Expose credentials in logs or error messages",
        ]
    return [
        "- MUST: [define testable requirement]",
        "- MUST NOT: [define anti-pattern to prevent]",
    ]


def _success_criteria(module: ModuleRecord) -> List[str]:
    criteria: List[str] = []
    if module.exports:
        main_export = module.exports[0]
        criteria.append(
            f"- [ ] Given valid input, when {main_export}() is called, then [expected outcome]"
        )
        criteria.append(
            f"- [ ] Given invalid input, when {main_export}() is called, then [expected error handling]"
        )
    if module.classification == CLASSIFICATION_INTEGRATION:
        criteria.append("- [ ] Given API timeout, when requesting, then retries with backoff")
        criteria.append("- [ ] Given service unavailable, then degrades gracefully")
    if not criteria:
        criteria.append("- [ ] Given [context], when [action], then [expected outcome]")
    criteria.append("<!-- Define: what would a failing test look like for each criterion? -->")
    return criteria


def render_primary(module: ModuleRecord, project: ProjectProfile) -> str:
    """Render the CONTRACT.md draft for ``module``."""
    template = _environment().get_template("contract.md.j2")
    return template.render(
        draft_marker=DRAFT_MARKER,
        title=title_case(module.name),
        purpose=_purpose(module, project.name or "the project"),
        features=_features(module),
        constraints=_constraints(module),
        criteria=_success_criteria(module),
    )


def render_mirror(module: ModuleRecord, source_hash: str, now: datetime) -> str:
    """Render the CONTRACT.yaml mirror recording ``source_hash``."""
    template = _environment().get_template("contract.yaml.j2")
    return template.render(
        source_hash=source_hash,
        last_sync=format_timestamp(now),
        date=now.astimezone(UTC).date().isoformat(),
        tier=module.tier,
        name=module.name,
        classification=module.classification,
        path=module.relative_path,
        exports=module.exports,
        test_pattern="*.test.*",
    )


def render_draft(
    module: ModuleRecord, project: ProjectProfile, now: Optional[datetime] = None
) -> Tuple[str, str]:
    """Return ``(primary_text, mirror_text)``; identical inputs and ``now`` give identical bytes."""
    moment = now or datetime.now(UTC)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    primary = render_primary(module, project)
    mirror = render_mirror(module, compute_hash(primary), moment)
    return primary, mirror


def render_blank_primary() -> str:
    return _environment().get_template("contract_blank.md.j2").render()


def render_blank_mirror(source_hash: str, now: Optional[datetime] = None) -> str:
    return (
        _environment()
        .get_template("contract_blank.yaml.j2")
        .render(source_hash=source_hash, last_sync=format_timestamp(now))
    )


__all__ = [
    "DRAFT_MARKER",
    "render_blank_mirror",
    "render_blank_primary",
    "render_draft",
    "render_mirror",
    "render_primary",
    "title_case",
]
