"""dotclaude configuration.

Typed configuration for a scaffolding run.  Everything the wizard collects
ends up in a ``ScaffoldConfig``; it is validated at construction time and
saved to / loaded from a flat JSON file inside the generated ``.claude/``
directory.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, computed_field


def _yes_no(flag: bool) -> str:
    return "yes" if flag else "no"


class ProjectInfo(BaseModel):
    """Basic facts about the target project."""

    name: str = Field(default="", description="Project display name")
    description: str = Field(default="")
    org: str = Field(default="", description="GitHub organization or username")
    repo: str = Field(default="")
    domain: str = Field(default="")
    entity_type: str = Field(default="item", description="Primary entity (singular)")
    entity_type_plural: str = Field(default="", description="Primary entity (plural)")
    location: str = Field(default="")

    def placeholder_values(self) -> dict[str, str]:
        """Field values keyed by name, with the plural filled in when empty."""
        from dotclaude.templates.placeholders import pluralize

        values = self.model_dump()
        if not values["entity_type_plural"] and values["entity_type"]:
            values["entity_type_plural"] = pluralize(values["entity_type"])
        return {key: str(value) for key, value in values.items()}


class Preferences(BaseModel):
    """User preferences for generated content."""

    language: Literal["en", "es"] = "en"
    response_language: Literal["en", "es"] = "en"
    include_co_author: bool = True
    package_manager: Literal["pnpm", "npm", "yarn", "bun"] = "pnpm"


class ModuleSelection(BaseModel):
    """Selected module ids per category."""

    agents: list[str] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    commands: list[str] = Field(default_factory=list)
    docs: list[str] = Field(default_factory=list)

    def all_ids(self) -> list[str]:
        return [*self.agents, *self.skills, *self.commands, *self.docs]


class CodeStyleConfig(BaseModel):
    """Formatter / linter choices."""

    formatter: Literal["biome", "prettier", "none"] = "biome"
    linter: Literal["biome", "eslint", "none"] = "biome"
    editor_config: bool = True
    commitlint: bool = True


# ---------------------------------------------------------------------------
# Standards
# ---------------------------------------------------------------------------


class CodeStandards(BaseModel):
    indent_style: Literal["space", "tab"] = "space"
    indent_size: int = Field(default=2, ge=1, le=8)
    max_line_length: int = Field(default=100, ge=40)
    max_file_lines: int = Field(default=500, ge=50)
    quote_style: Literal["single", "double"] = "single"
    semicolons: bool = True
    trailing_commas: Literal["all", "es5", "none"] = "es5"
    allow_any: bool = False
    named_exports_only: bool = True
    roro_pattern: bool = True
    jsdoc_required: bool = True


class TestingStandards(BaseModel):
    coverage_target: int = Field(default=80, ge=0, le=100)
    tdd_required: bool = True
    test_pattern: Literal["aaa", "gwt"] = "aaa"
    test_location: Literal["separate", "colocated"] = "separate"
    unit_test_max_ms: int = Field(default=100, ge=1)
    integration_test_max_ms: int = Field(default=1000, ge=1)


class DocumentationStandards(BaseModel):
    jsdoc_level: Literal["minimal", "standard", "comprehensive"] = "standard"
    require_examples: bool = False
    changelog_format: Literal["conventional", "keepachangelog"] = "conventional"
    inline_comment_policy: Literal["why-not-what", "minimal", "extensive"] = "why-not-what"


class DesignStandards(BaseModel):
    css_framework: str = "tailwind"
    component_library: str = "shadcn"
    accessibility_level: Literal["A", "AA", "AAA"] = "AA"
    dark_mode_support: bool = True


class SecurityStandards(BaseModel):
    auth_pattern: str = "jwt"
    input_validation: str = "zod"
    csrf_protection: bool = True
    rate_limiting: bool = True


class PerformanceStandards(BaseModel):
    lcp_target: int = 2500
    fid_target: int = 100
    cls_target: float = 0.1
    bundle_size_target_kb: int = 250
    api_response_target_ms: int = 300


class StandardsConfig(BaseModel):
    """Project standards applied to ``docs/standards`` templates."""

    code: CodeStandards = Field(default_factory=CodeStandards)
    testing: TestingStandards = Field(default_factory=TestingStandards)
    documentation: DocumentationStandards = Field(default_factory=DocumentationStandards)
    design: DesignStandards = Field(default_factory=DesignStandards)
    security: SecurityStandards = Field(default_factory=SecurityStandards)
    performance: PerformanceStandards = Field(default_factory=PerformanceStandards)

    def to_placeholders(self) -> dict[str, str]:
        """Flatten into ``{"{{TOKEN}}": value}`` pairs for direct replacement."""
        code, testing, docs = self.code, self.testing, self.documentation
        design, security, perf = self.design, self.security, self.performance
        return {
            "{{INDENT_STYLE}}": code.indent_style,
            "{{INDENT_SIZE}}": str(code.indent_size),
            "{{MAX_LINE_LENGTH}}": str(code.max_line_length),
            "{{MAX_FILE_LINES}}": str(code.max_file_lines),
            "{{QUOTE_STYLE}}": code.quote_style,
            "{{USE_SEMICOLONS}}": _yes_no(code.semicolons),
            "{{TRAILING_COMMAS}}": code.trailing_commas,
            "{{ALLOW_ANY}}": _yes_no(code.allow_any),
            "{{NAMED_EXPORTS_ONLY}}": _yes_no(code.named_exports_only),
            "{{RORO_PATTERN}}": _yes_no(code.roro_pattern),
            "{{JSDOC_REQUIRED}}": _yes_no(code.jsdoc_required),
            "{{COVERAGE_TARGET}}": str(testing.coverage_target),
            "{{TDD_REQUIRED}}": _yes_no(testing.tdd_required),
            "{{TEST_PATTERN}}": testing.test_pattern.upper(),
            "{{TEST_LOCATION}}": testing.test_location,
            "{{UNIT_TEST_MAX_MS}}": str(testing.unit_test_max_ms),
            "{{INTEGRATION_TEST_MAX_MS}}": str(testing.integration_test_max_ms),
            "{{JSDOC_LEVEL}}": docs.jsdoc_level,
            "{{REQUIRE_EXAMPLES}}": _yes_no(docs.require_examples),
            "{{CHANGELOG_FORMAT}}": docs.changelog_format,
            "{{INLINE_COMMENT_POLICY}}": docs.inline_comment_policy,
            "{{CSS_FRAMEWORK}}": design.css_framework,
            "{{COMPONENT_LIBRARY}}": design.component_library,
            "{{WCAG_LEVEL}}": design.accessibility_level,
            "{{ACCESSIBILITY_LEVEL}}": design.accessibility_level,
            "{{DARK_MODE_SUPPORT}}": _yes_no(design.dark_mode_support),
            "{{AUTH_PATTERN}}": security.auth_pattern,
            "{{VALIDATION_LIBRARY}}": security.input_validation,
            "{{INPUT_VALIDATION}}": security.input_validation,
            "{{CSRF_PROTECTION}}": _yes_no(security.csrf_protection),
            "{{RATE_LIMITING}}": _yes_no(security.rate_limiting),
            "{{LCP_TARGET}}": str(perf.lcp_target),
            "{{FID_TARGET}}": str(perf.fid_target),
            "{{CLS_TARGET}}": str(perf.cls_target),
            "{{BUNDLE_SIZE_TARGET}}": str(perf.bundle_size_target_kb),
            "{{API_RESPONSE_TARGET}}": str(perf.api_response_target_ms),
        }


class TemplateConfig(BaseModel):
    """Values for configurable ``{{UPPER_SNAKE}}`` placeholders, keyed by name."""

    values: dict[str, str] = Field(default_factory=dict)

    def to_placeholders(self) -> dict[str, str]:
        """``{"{{KEY}}": value}`` pairs, skipping empty values."""
        return {f"{{{{{key}}}}}": value for key, value in self.values.items() if value != ""}

    def is_configured(self, key: str) -> bool:
        return bool(self.values.get(key))


# ---------------------------------------------------------------------------
# Root configuration
# ---------------------------------------------------------------------------


class ScaffoldConfig(BaseModel):
    """Everything needed to materialise a ``.claude/`` tree.

    Instances are built by the init wizard (or loaded from a previous run)
    and handed to ``ScaffoldGenerator``.
    """

    version: str = Field(default="1")
    project_path: Path = Field(default=Path("."))
    claude_dir: str = Field(default=".claude")
    templates_dir: Path | None = Field(
        default=None, description="Alternative template source; bundled templates when unset"
    )
    project: ProjectInfo = Field(default_factory=ProjectInfo)
    preferences: Preferences = Field(default_factory=Preferences)
    modules: ModuleSelection = Field(default_factory=ModuleSelection)
    code_style: CodeStyleConfig = Field(default_factory=CodeStyleConfig)
    standards: StandardsConfig = Field(default_factory=StandardsConfig)
    templates: TemplateConfig = Field(default_factory=TemplateConfig)
    bundles: list[str] = Field(default_factory=list)
    mcp_servers: list[str] = Field(default_factory=list)
    custom: dict[str, Any] = Field(default_factory=dict)

    # ------------------------------------------------------------------
    # Derived paths (read-only properties)
    # ------------------------------------------------------------------

    @property
    def claude_path(self) -> Path:
        """Root of the generated ``.claude/`` directory."""
        return self.project_path / self.claude_dir

    @property
    def settings_path(self) -> Path:
        return self.claude_path / "settings.json"

    @property
    def config_path(self) -> Path:
        """Where the configuration itself is persisted."""
        return self.claude_path / "dotclaude.json"

    @computed_field  # type: ignore[misc]
    @property
    def module_count(self) -> int:
        return len(self.modules.all_ids())

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path | None = None) -> Path:
        """Persist the configuration to a JSON file.

        Args:
            path: Destination file. Defaults to ``<claude_path>/dotclaude.json``.

        Returns:
            The resolved path where the file was written.
        """
        target = path or self.config_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "ScaffoldConfig":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "ScaffoldConfig":
        """Build a ``ScaffoldConfig`` from environment variables.

        Recognised variables (all optional):
            DOTCLAUDE_PROJECT_PATH, DOTCLAUDE_CLAUDE_DIR, DOTCLAUDE_TEMPLATES_DIR,
            DOTCLAUDE_PROJECT_NAME, DOTCLAUDE_PACKAGE_MANAGER, DOTCLAUDE_LANGUAGE.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("DOTCLAUDE_PROJECT_PATH"):
            kwargs["project_path"] = Path(os.environ["DOTCLAUDE_PROJECT_PATH"])
        if os.environ.get("DOTCLAUDE_CLAUDE_DIR"):
            kwargs["claude_dir"] = os.environ["DOTCLAUDE_CLAUDE_DIR"]
        if os.environ.get("DOTCLAUDE_TEMPLATES_DIR"):
            kwargs["templates_dir"] = Path(os.environ["DOTCLAUDE_TEMPLATES_DIR"])

        if os.environ.get("DOTCLAUDE_PROJECT_NAME"):
            kwargs["project"] = ProjectInfo(name=os.environ["DOTCLAUDE_PROJECT_NAME"])

        preference_kwargs: dict[str, Any] = {}
        if os.environ.get("DOTCLAUDE_PACKAGE_MANAGER"):
            preference_kwargs["package_manager"] = os.environ["DOTCLAUDE_PACKAGE_MANAGER"]
        if os.environ.get("DOTCLAUDE_LANGUAGE"):
            preference_kwargs["language"] = os.environ["DOTCLAUDE_LANGUAGE"]
        if preference_kwargs:
            kwargs["preferences"] = Preferences(**preference_kwargs)

        return cls(**kwargs)
