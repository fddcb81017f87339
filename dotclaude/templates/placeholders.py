"""Placeholder definitions for flat token replacement.

Two families of placeholders live here:

* ``TEMPLATE_PLACEHOLDERS``: configurable ``{{UPPER_SNAKE}}`` tokens (commands,
  paths, targets, tracking, tech stack, performance, brand, environment).
  Each can compute a default from a ``ConfigContext`` describing the target
  project.
* ``PROJECT_PLACEHOLDERS``: bracket-style tokens such as ``[Project Name]``
  or ``your-org`` that map to a ``ProjectInfo`` field and a string
  transform.

All definitions are frozen and built at import time.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Union


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class PlaceholderCategory(str, Enum):
    """Groups used to organise configurable placeholders."""
    COMMANDS = "commands"
    PATHS = "paths"
    TARGETS = "targets"
    TRACKING = "tracking"
    TECH_STACK = "techStack"
    PERFORMANCE = "performance"
    BRAND = "brand"
    ENVIRONMENT = "environment"
    PROJECT = "project"


class PlaceholderTransform(str, Enum):
    """String transforms applied to project placeholder values."""
    NONE = "none"
    LOWERCASE = "lowercase"
    UPPERCASE = "uppercase"
    CAPITALIZE = "capitalize"
    PLURALIZE = "pluralize"


# ---------------------------------------------------------------------------
# Default-computation context
# ---------------------------------------------------------------------------

@dataclass
class ConfigContext:
    """What is known about the target project when computing defaults."""

    package_manager: str = "pnpm"
    scripts: dict[str, str] = field(default_factory=dict)
    dependencies: dict[str, str] = field(default_factory=dict)
    project_path: str = "."
    has_github_remote: bool = False
    values: dict[str, str] = field(default_factory=dict)

    @classmethod
    def detect(cls, project_path: str | Path) -> "ConfigContext":
        """Inspect ``package.json``, lockfiles and git config under *project_path*."""
        root = Path(project_path)
        scripts: dict[str, str] = {}
        dependencies: dict[str, str] = {}

        package_json = root / "package.json"
        if package_json.is_file():
            try:
                data = json.loads(package_json.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError):
                data = {}
            scripts = dict(data.get("scripts") or {})
            dependencies = {
                **(data.get("dependencies") or {}),
                **(data.get("devDependencies") or {}),
            }

        package_manager = "pnpm"
        for lockfile, manager in (
            ("pnpm-lock.yaml", "pnpm"),
            ("yarn.lock", "yarn"),
            ("bun.lockb", "bun"),
            ("package-lock.json", "npm"),
        ):
            if (root / lockfile).exists():
                package_manager = manager
                break

        git_config = root / ".git" / "config"
        has_github_remote = False
        if git_config.is_file():
            try:
                has_github_remote = "github.com" in git_config.read_text(encoding="utf-8")
            except OSError:
                has_github_remote = False

        return cls(
            package_manager=package_manager,
            scripts=scripts,
            dependencies=dependencies,
            project_path=str(root),
            has_github_remote=has_github_remote,
        )


DefaultValue = Union[str, Callable[[ConfigContext], str], None]


@dataclass(frozen=True)
class PlaceholderDefinition:
    """A single replaceable token and how to derive its value."""

    key: str
    pattern: Union[str, re.Pattern[str]]
    category: PlaceholderCategory
    config_key: str = ""
    transform: PlaceholderTransform = PlaceholderTransform.NONE
    required: bool = False
    label: str = ""
    description: str = ""
    example: str = ""
    default: DefaultValue = None
    choices: tuple[str, ...] = ()
    validate: Optional[Callable[[str], Union[bool, str]]] = None

    @property
    def token(self) -> str:
        """The literal text to search for (regex source for regex patterns)."""
        if isinstance(self.pattern, re.Pattern):
            return self.pattern.pattern
        return self.pattern


# ---------------------------------------------------------------------------
# Default helpers
# ---------------------------------------------------------------------------


def package_manager_prefix(ctx: ConfigContext) -> str:
    """Command prefix for running package scripts."""
    return {"yarn": "yarn", "bun": "bun run", "npm": "npm run"}.get(ctx.package_manager, "pnpm")


def _script(ctx: ConfigContext, *names: str) -> Optional[str]:
    for name in names:
        if ctx.scripts.get(name):
            return f"{package_manager_prefix(ctx)} {name}"
    return None


def _command(*scripts: str, fallback: str) -> Callable[[ConfigContext], str]:
    def compute(ctx: ConfigContext) -> str:
        return _script(ctx, *scripts) or f"{package_manager_prefix(ctx)} {fallback}"

    return compute


def _first_dependency(options: tuple[tuple[str, str], ...]) -> Callable[[ConfigContext], str]:
    def compute(ctx: ConfigContext) -> str:
        for dependency, label in options:
            if ctx.dependencies.get(dependency):
                return label
        return "None"

    return compute


def _validate_percentage(value: str) -> Union[bool, str]:
    try:
        number = int(value)
    except ValueError:
        return "Coverage must be between 0 and 100"
    if number < 0 or number > 100:
        return "Coverage must be between 0 and 100"
    return True


def _validate_positive(value: str) -> Union[bool, str]:
    try:
        number = int(value)
    except ValueError:
        return "Must be a positive number"
    return True if number >= 0 else "Must be a positive number"


def _validate_hex_color(value: str) -> Union[bool, str]:
    if not value or re.fullmatch(r"#[0-9A-Fa-f]{6}", value):
        return True
    return "Must be a valid hex color (e.g., #3B82F6)"


def _issue_tracker_token(ctx: ConfigContext) -> str:
    tracker = ctx.values.get("ISSUE_TRACKER", "")
    if tracker == "linear":
        return "LINEAR_API_KEY"
    if tracker == "jira":
        return "JIRA_API_TOKEN"
    return "GITHUB_TOKEN"


def _template(
    key: str,
    category: PlaceholderCategory,
    label: str,
    description: str,
    default: DefaultValue,
    required: bool = False,
    example: str = "",
    choices: tuple[str, ...] = (),
    validate: Optional[Callable[[str], Union[bool, str]]] = None,
) -> PlaceholderDefinition:
    return PlaceholderDefinition(
        key=key,
        pattern=f"{{{{{key}}}}}",
        category=category,
        required=required,
        label=label,
        description=description,
        example=example or (default if isinstance(default, str) else ""),
        default=default,
        choices=choices,
        validate=validate,
    )


_C = PlaceholderCategory

TEMPLATE_PLACEHOLDERS: tuple[PlaceholderDefinition, ...] = (
    # Commands
    _template("TYPECHECK_COMMAND", _C.COMMANDS, "TypeScript Check Command",
              "Command to run type checking",
              _command("typecheck", "type-check", "tsc", fallback="typecheck"),
              required=True, example="pnpm typecheck"),
    _template("LINT_COMMAND", _C.COMMANDS, "Lint Command", "Command to run linting",
              _command("lint", fallback="lint"), required=True, example="pnpm lint"),
    _template("LINT_FIX_COMMAND", _C.COMMANDS, "Lint Fix Command",
              "Command to run linting with auto-fix",
              _command("lint:fix", fallback="lint --fix"), example="pnpm lint --fix"),
    _template("TEST_COMMAND", _C.COMMANDS, "Test Command", "Command to run tests",
              _command("test", fallback="test"), required=True, example="pnpm test"),
    _template("TEST_WATCH_COMMAND", _C.COMMANDS, "Test Watch Command",
              "Command to run tests in watch mode",
              _command("test:watch", fallback="test --watch"), example="pnpm test --watch"),
    _template("COVERAGE_COMMAND", _C.COMMANDS, "Coverage Command",
              "Command to run tests with coverage",
              _command("test:coverage", "coverage", fallback="test --coverage"),
              required=True, example="pnpm test:coverage"),
    _template("BUILD_COMMAND", _C.COMMANDS, "Build Command", "Command to build the project",
              _command("build", fallback="build"), example="pnpm build"),
    _template("FORMAT_COMMAND", _C.COMMANDS, "Format Command", "Command to format code",
              _command("format", fallback="format"), example="pnpm format"),
    _template("SECURITY_SCAN_COMMAND", _C.COMMANDS, "Security Scan Command",
              "Command to run security vulnerability scanning",
              _command("audit", fallback="audit"), example="pnpm audit"),
    _template("LIGHTHOUSE_COMMAND", _C.COMMANDS, "Lighthouse Command",
              "Command to run a Lighthouse performance audit",
              "npx lighthouse http://localhost:3000 --output=json"),
    _template("BUNDLE_ANALYZE_COMMAND", _C.COMMANDS, "Bundle Analyze Command",
              "Command to analyze bundle size",
              _command("analyze", fallback="build --analyze"), example="pnpm build --analyze"),
    # Paths
    _template("PLANNING_PATH", _C.PATHS, "Planning Directory",
              "Path for planning session documents", ".claude/sessions/planning", required=True),
    _template("REFACTOR_PATH", _C.PATHS, "Refactor Directory",
              "Path for refactoring session documents", ".claude/sessions/refactor"),
    _template("ARCHIVE_PATH", _C.PATHS, "Archive Directory",
              "Path for archived planning sessions", ".claude/sessions/archive"),
    _template("SCHEMAS_PATH", _C.PATHS, "Schemas Directory", "Path for JSON schemas",
              ".claude/schemas"),
    _template("PROJECT_ROOT", _C.PATHS, "Project Root", "Root directory of the project",
              lambda ctx: ctx.project_path or ".", required=True, example="."),
    # Targets
    _template("COVERAGE_TARGET", _C.TARGETS, "Coverage Target (%)",
              "Minimum test coverage percentage", "90", required=True,
              validate=_validate_percentage),
    _template("BUNDLE_SIZE_TARGET", _C.TARGETS, "Bundle Size Target (KB)",
              "Maximum bundle size in kilobytes", "500", validate=_validate_positive),
    _template("WCAG_LEVEL", _C.TARGETS, "WCAG Compliance Level",
              "Target WCAG accessibility compliance level", "AA", choices=("A", "AA", "AAA")),
    # Performance
    _template("LCP_TARGET", _C.PERFORMANCE, "LCP Target (ms)",
              "Largest Contentful Paint target in milliseconds", "2500"),
    _template("FID_TARGET", _C.PERFORMANCE, "FID Target (ms)",
              "First Input Delay target in milliseconds", "100"),
    _template("CLS_TARGET", _C.PERFORMANCE, "CLS Target", "Cumulative Layout Shift target", "0.1"),
    _template("API_RESPONSE_TARGET", _C.PERFORMANCE, "API Response Target (ms)",
              "Maximum API response time in milliseconds", "200"),
    _template("DB_QUERY_TARGET", _C.PERFORMANCE, "DB Query Target (ms)",
              "Maximum database query time in milliseconds", "50"),
    # Tracking
    _template("ISSUE_TRACKER", _C.TRACKING, "Issue Tracker", "Issue tracking system to use",
              lambda ctx: "github" if ctx.has_github_remote else "none", required=True,
              example="github", choices=("github", "linear", "jira", "none")),
    _template("TRACKING_FILE", _C.TRACKING, "Tracking File", "Path to the task tracking file",
              ".claude/tracking/tasks.json"),
    _template("REGISTRY_FILE", _C.TRACKING, "Registry File", "Path to the code registry file",
              ".claude/tracking/registry.json"),
    _template("TASK_CODE_PATTERN", _C.TRACKING, "Task Code Pattern",
              "Prefix for task codes (e.g., PROJ-)", "TASK-"),
    _template("CLOSED_DAYS", _C.TRACKING, "Closed Days Threshold",
              "Days after which closed issues can be cleaned up", "30"),
    _template("STALE_DAYS", _C.TRACKING, "Stale Days Threshold",
              "Days of inactivity before an issue is considered stale", "14"),
    # Tech stack
    _template("FRONTEND_FRAMEWORK", _C.TECH_STACK, "Frontend Framework",
              "Primary frontend framework",
              _first_dependency((("next", "Next.js"), ("astro", "Astro"), ("@remix-run/react", "Remix"),
                                 ("vue", "Vue"), ("svelte", "Svelte"), ("react", "React")))),
    _template("DATABASE_ORM", _C.TECH_STACK, "Database ORM", "Database ORM or query builder",
              _first_dependency((("drizzle-orm", "Drizzle"), ("prisma", "Prisma"),
                                 ("@prisma/client", "Prisma"), ("typeorm", "TypeORM"),
                                 ("kysely", "Kysely"), ("mongoose", "Mongoose")))),
    _template("VALIDATION_LIBRARY", _C.TECH_STACK, "Validation Library",
              "Schema validation library",
              _first_dependency((("zod", "Zod"), ("yup", "Yup"), ("joi", "Joi"),
                                 ("valibot", "Valibot"), ("arktype", "ArkType")))),
    _template("AUTH_PATTERN", _C.TECH_STACK, "Auth Pattern", "Authentication approach",
              _first_dependency((("better-auth", "Better Auth"), ("@clerk/nextjs", "Clerk"),
                                 ("next-auth", "Auth.js"), ("@auth/core", "Auth.js"),
                                 ("lucia", "Lucia"), ("firebase", "Firebase"),
                                 ("@supabase/supabase-js", "Supabase")))),
    _template("STATE_MANAGEMENT", _C.TECH_STACK, "State Management", "Client state library",
              _first_dependency((("@tanstack/react-query", "TanStack Query"), ("zustand", "Zustand"),
                                 ("jotai", "Jotai"), ("@reduxjs/toolkit", "Redux"),
                                 ("mobx", "MobX"), ("recoil", "Recoil"), ("pinia", "Pinia")))),
    _template("TEST_FRAMEWORK", _C.TECH_STACK, "Test Framework", "Test runner",
              _first_dependency((("vitest", "Vitest"), ("jest", "Jest"), ("mocha", "Mocha"),
                                 ("ava", "Ava")))),
    _template("BUNDLER", _C.TECH_STACK, "Bundler", "Build tool / bundler",
              _first_dependency((("vite", "Vite"), ("webpack", "Webpack"), ("rollup", "Rollup"),
                                 ("esbuild", "esbuild"), ("parcel", "Parcel"), ("tsup", "tsup")))),
    _template("API_FRAMEWORK", _C.TECH_STACK, "API Framework", "Backend API framework",
              _first_dependency((("hono", "Hono"), ("express", "Express"), ("fastify", "Fastify"),
                                 ("koa", "Koa"), ("@nestjs/core", "NestJS"),
                                 ("@trpc/server", "tRPC"), ("next", "Next.js API")))),
    # Environment
    _template("GITHUB_TOKEN_ENV", _C.ENVIRONMENT, "GitHub Token Env Var",
              "Environment variable holding the GitHub token", "GITHUB_TOKEN"),
    _template("GITHUB_OWNER_ENV", _C.ENVIRONMENT, "GitHub Owner Env Var",
              "Environment variable holding the repository owner", "GITHUB_OWNER"),
    _template("GITHUB_REPO_ENV", _C.ENVIRONMENT, "GitHub Repo Env Var",
              "Environment variable holding the repository name", "GITHUB_REPO"),
    _template("ISSUE_TRACKER_TOKEN_ENV", _C.ENVIRONMENT, "Issue Tracker Token Env Var",
              "Environment variable holding the issue tracker token", _issue_tracker_token),
    # Brand
    _template("BRAND_NAME", _C.BRAND, "Brand Name", "Brand or product name", ""),
    _template("PRIMARY_COLOR", _C.BRAND, "Primary Color", "Primary brand color (hex)",
              "#3B82F6", validate=_validate_hex_color),
    _template("SECONDARY_COLOR", _C.BRAND, "Secondary Color", "Secondary brand color (hex)",
              "#10B981", validate=_validate_hex_color),
    _template("FONT_FAMILY", _C.BRAND, "Font Family", "Primary font family", "Inter"),
    _template("TONE_OF_VOICE", _C.BRAND, "Tone of Voice", "Tone used in user-facing copy",
              "professional", choices=("professional", "friendly", "playful", "technical")),
)


def _project(
    pattern: str,
    config_key: str,
    transform: PlaceholderTransform,
    required: bool,
    description: str,
    example: str,
) -> PlaceholderDefinition:
    return PlaceholderDefinition(
        key=pattern,
        pattern=re.compile(re.escape(pattern)),
        category=PlaceholderCategory.PROJECT,
        config_key=config_key,
        transform=transform,
        required=required,
        description=description,
        example=example,
    )


_T = PlaceholderTransform

PROJECT_PLACEHOLDERS: tuple[PlaceholderDefinition, ...] = (
    _project("[Project Name]", "name", _T.NONE, True, "Project display name", "My App"),
    _project("[project-name]", "name", _T.LOWERCASE, True, "Project name in kebab case", "my-app"),
    _project("[PROJECT_NAME]", "name", _T.UPPERCASE, True, "Project name in upper snake case", "MY_APP"),
    _project("[Project Description]", "description", _T.NONE, True, "Project description",
             "A platform for managing tasks"),
    _project("your-org", "org", _T.LOWERCASE, True, "GitHub organization", "acme"),
    _project("your-repo", "repo", _T.LOWERCASE, True, "Repository name", "my-app"),
    _project("example.com", "domain", _T.LOWERCASE, False, "Production domain", "myapp.com"),
    _project("[Entity]", "entity_type", _T.CAPITALIZE, True, "Primary entity, capitalized", "Product"),
    _project("[entity]", "entity_type", _T.LOWERCASE, True, "Primary entity, lowercase", "product"),
    _project("[Entities]", "entity_type_plural", _T.CAPITALIZE, True, "Entity plural, capitalized",
             "Products"),
    _project("[entities]", "entity_type_plural", _T.LOWERCASE, True, "Entity plural, lowercase",
             "products"),
    _project("[City Name]", "location", _T.CAPITALIZE, False, "Location or region", "Berlin"),
    _project("[Your Region/Product]", "location", _T.NONE, False, "Region or product line", "EMEA"),
    _project("[Your product/service tagline here]", "description", _T.NONE, False,
             "Tagline for the product", "Tasks, simplified"),
)


# ---------------------------------------------------------------------------
# Transforms
# ---------------------------------------------------------------------------


def pluralize(word: str) -> str:
    """Naive English plural: ``category`` -> ``categories``, ``box`` -> ``boxes``."""
    if word.endswith("y") and len(word) > 1 and word[-2].lower() not in "aeiou":
        return word[:-1] + "ies"
    if word.endswith(("s", "x", "ch", "sh")):
        return word + "es"
    return word + "s"


def apply_transform(value: str, transform: PlaceholderTransform | str) -> str:
    """Apply a project placeholder transform to *value*.

    ``lowercase`` also turns spaces into hyphens and ``uppercase`` turns them
    into underscores, so ``"My App"`` becomes ``my-app`` and ``MY_APP``.
    """
    name = PlaceholderTransform(transform)
    if name is PlaceholderTransform.LOWERCASE:
        return re.sub(r"\s+", "-", value.lower())
    if name is PlaceholderTransform.UPPERCASE:
        return re.sub(r"\s+", "_", value.upper())
    if name is PlaceholderTransform.CAPITALIZE:
        return value[:1].upper() + value[1:]
    if name is PlaceholderTransform.PLURALIZE:
        return pluralize(value)
    return value


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

_BY_KEY: dict[str, PlaceholderDefinition] = {p.key: p for p in TEMPLATE_PLACEHOLDERS}


def get_placeholder_by_key(key: str) -> Optional[PlaceholderDefinition]:
    """Look up a configurable placeholder by ``KEY`` or ``{{KEY}}``."""
    return _BY_KEY.get(key.strip().strip("{}"))


def get_placeholder_by_pattern(pattern: str) -> Optional[PlaceholderDefinition]:
    """Look up any placeholder definition by its literal token."""
    for definition in (*TEMPLATE_PLACEHOLDERS, *PROJECT_PLACEHOLDERS):
        if definition.key == pattern or definition.token == pattern:
            return definition
        if isinstance(definition.pattern, str) and definition.pattern == pattern:
            return definition
    return None


def get_placeholders_by_category(
    category: PlaceholderCategory | str,
) -> list[PlaceholderDefinition]:
    wanted = PlaceholderCategory(category)
    return [p for p in TEMPLATE_PLACEHOLDERS if p.category is wanted]


def get_required_placeholders() -> list[PlaceholderDefinition]:
    return [p for p in TEMPLATE_PLACEHOLDERS if p.required]


def is_configurable_placeholder(key: str) -> bool:
    return get_placeholder_by_key(key) is not None


def compute_default_value(definition: PlaceholderDefinition, ctx: ConfigContext) -> str:
    """Resolve a definition's default against *ctx*; no default yields ``""``."""
    if definition.default is None:
        return ""
    if callable(definition.default):
        return definition.default(ctx)
    return definition.default


def compute_defaults(ctx: ConfigContext, keys: Mapping[str, Any] | None = None) -> dict[str, str]:
    """Compute defaults for every placeholder (or only those named in *keys*).

    Computed values are fed back into ``ctx.values`` so later defaults can
    depend on earlier ones (``ISSUE_TRACKER_TOKEN_ENV`` on ``ISSUE_TRACKER``).
    """
    defaults: dict[str, str] = {}
    for definition in TEMPLATE_PLACEHOLDERS:
        if keys is not None and definition.key not in keys:
            continue
        value = ctx.values.get(definition.key) or compute_default_value(definition, ctx)
        ctx.values.setdefault(definition.key, value)
        defaults[definition.key] = value
    return defaults
