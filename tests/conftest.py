"""Shared pytest fixtures for the dotclaude test suite.

Provides reusable fixtures for:
- A nested template context
- Temporary template trees and project directories
- A populated ScaffoldConfig
- A factory for scripted wizard steps
"""

from __future__ import annotations

import json
import textwrap
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from dotclaude.config import (
    ModuleSelection,
    ProjectInfo,
    ScaffoldConfig,
    TemplateConfig,
)
from dotclaude.wizard.types import NavigationDirection, StepExecutionResult, WizardStep


# ---------------------------------------------------------------------------
# Template context
# ---------------------------------------------------------------------------

@pytest.fixture
def template_context() -> dict[str, Any]:
    """A context shaped like the one ``build_template_context`` produces."""
    return {
        "project": {"name": "Acme Shop", "entityType": "product"},
        "modules": {
            "agents": ["code-reviewer", "test-engineer"],
            "skills": ["tdd-methodology"],
            "commands": [],
            "docs": [],
        },
        "techStack": {"framework": "nextjs", "orm": "prisma"},
        "standards": {"testing": {"coverageTarget": 80, "tddRequired": True}},
        "flags": {"enabled": True, "disabled": False},
        "count": 7,
        "items": ["a", "b", "c"],
    }


# ---------------------------------------------------------------------------
# Directories
# ---------------------------------------------------------------------------

@pytest.fixture
def tmp_project_dir(tmp_path: Path) -> Path:
    """Empty target project directory."""
    project_dir = tmp_path / "acme-shop"
    project_dir.mkdir()
    yield project_dir


@pytest.fixture
def node_project_dir(tmp_project_dir: Path) -> Path:
    """Target project with a package.json, a yarn lockfile and a GitHub remote."""
    package_json = {
        "name": "acme-shop",
        "scripts": {"typecheck": "tsc --noEmit", "lint": "biome check .", "test": "vitest run"},
        "dependencies": {"next": "15.0.0", "zod": "3.23.0"},
        "devDependencies": {"vitest": "2.0.0"},
    }
    (tmp_project_dir / "package.json").write_text(json.dumps(package_json), encoding="utf-8")
    (tmp_project_dir / "yarn.lock").write_text("", encoding="utf-8")
    git_dir = tmp_project_dir / ".git"
    git_dir.mkdir()
    (git_dir / "config").write_text(
        '[remote "origin"]\n\turl = git@github.com:acme/acme-shop.git\n', encoding="utf-8"
    )
    yield tmp_project_dir


@pytest.fixture
def templates_dir(tmp_path: Path) -> Path:
    """A small template tree with directives, flat tokens and project placeholders."""
    root = tmp_path / "templates"
    (root / "agents").mkdir(parents=True)
    (root / "skills" / "tdd-methodology").mkdir(parents=True)
    (root / "commands").mkdir()

    (root / "CLAUDE.md").write_text(
        textwrap.dedent("""\
            # [Project Name]

            Test with `{{TEST_COMMAND}}`. Indent: {{INDENT_STYLE}}.
            {{#if modules.agents}}
            ## Agents
            {{#each modules.agents}}
            - {{item}}
            {{/each}}
            {{/if}}
            """),
        encoding="utf-8",
    )
    (root / "agents" / "code-reviewer.md").write_text(
        "---\nname: code-reviewer\ndescription: Reviews [Project Name]\n---\n\n# Reviewer\n",
        encoding="utf-8",
    )
    (root / "agents" / "test-engineer.md").write_text(
        "---\nname: test-engineer\ndescription: Tests\n---\n\nCoverage {{COVERAGE_TARGET}}%\n",
        encoding="utf-8",
    )
    (root / "skills" / "tdd-methodology" / "SKILL.md").write_text(
        "# TDD\n\nRun {{TEST_WATCH_COMMAND}}.\n", encoding="utf-8"
    )
    (root / "commands" / "quality-check.md").write_text(
        "Run {{LINT_COMMAND}} then {{TEST_COMMAND}}.\n", encoding="utf-8"
    )
    yield root


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@pytest.fixture
def scaffold_config(tmp_project_dir: Path, templates_dir: Path) -> ScaffoldConfig:
    """A configuration pointing at the temporary template tree."""
    return ScaffoldConfig(
        project_path=tmp_project_dir,
        templates_dir=templates_dir,
        project=ProjectInfo(name="Acme Shop", org="acme", repo="acme-shop", entity_type="product"),
        modules=ModuleSelection(agents=["code-reviewer"], skills=["tdd-methodology"]),
        templates=TemplateConfig(values={"TEST_COMMAND": "pnpm test", "LINT_COMMAND": "pnpm lint"}),
    )


# ---------------------------------------------------------------------------
# Wizard steps
# ---------------------------------------------------------------------------

@pytest.fixture
def scripted_step() -> Callable[..., WizardStep]:
    """Factory for a step whose ``execute`` replays scripted answers.

    Each answer is a ``(value, direction)`` pair.  Every call records the
    defaults it received in ``step.calls``.
    """

    def factory(
        step_id: str,
        answers: list[tuple[Any, NavigationDirection]],
        default: Any = None,
        **kwargs: Any,
    ) -> WizardStep:
        script = list(answers)
        calls: list[Any] = []

        async def execute(ctx, defaults):
            calls.append(defaults)
            value, direction = script.pop(0)
            return StepExecutionResult(value=value, navigation=direction)

        step = WizardStep(
            id=step_id,
            name=step_id.upper(),
            compute_defaults=lambda ctx: default,
            execute=execute,
            **kwargs,
        )
        step.calls = calls  # type: ignore[attr-defined]
        return step

    return factory
