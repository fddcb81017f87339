"""Template context construction.

Turns a ``ScaffoldConfig`` into the plain nested mapping that directive
templates are rendered against::

    {
        "project": {"name": ..., "entityType": ...},
        "modules": {"agents": [...], "skills": [...], "commands": [...], "docs": [...]},
        "codeStyle": {...},
        "techStack": {...},       # inferred from selected module ids
        "standards": {...},
        "bundles": [...],
        "mcpServers": [...],
        "custom": {...},
    }

Every helper returns a new mapping; contexts are never modified in place.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

from dotclaude.utils import upper_snake_to_camel

if TYPE_CHECKING:
    from dotclaude.config import ScaffoldConfig

MODULE_CATEGORIES: tuple[str, ...] = ("agents", "skills", "commands", "docs")

_TECH_RULES: tuple[tuple[str, tuple[tuple[str, str], ...]], ...] = (
    ("framework", (("nextjs", "nextjs"), ("astro", "astro"),
                   ("tanstack-start", "tanstack-start"), ("react", "react"))),
    ("orm", (("prisma", "prisma"), ("drizzle", "drizzle"), ("mongoose", "mongoose"))),
    ("api", (("hono", "hono"), ("express", "express"), ("fastify", "fastify"),
             ("nestjs", "nestjs"))),
    ("testing", (("testing", "vitest"), ("tdd", "vitest"))),
    ("deployment", (("vercel", "vercel"),)),
)


def _camel_keys(data: Mapping[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for key, value in data.items():
        camel = upper_snake_to_camel(key.upper())
        result[camel] = _camel_keys(value) if isinstance(value, Mapping) else value
    return result


def infer_tech_stack(module_ids: Iterable[str]) -> dict[str, str]:
    """Guess the tech stack from substrings of the selected module ids."""
    ids = list(module_ids)
    tech_stack: dict[str, str] = {}
    for field_name, rules in _TECH_RULES:
        for needle, value in rules:
            if any(needle in module_id for module_id in ids):
                tech_stack[field_name] = value
                break
    return tech_stack


def build_template_context(config: "ScaffoldConfig") -> dict[str, Any]:
    """Build the template context for *config*."""
    modules = {category: list(getattr(config.modules, category)) for category in MODULE_CATEGORIES}
    return {
        "project": _camel_keys(config.project.placeholder_values()),
        "modules": modules,
        "codeStyle": _camel_keys(config.code_style.model_dump()),
        "techStack": infer_tech_stack(config.modules.all_ids()),
        "standards": _camel_keys(config.standards.model_dump()),
        "preferences": _camel_keys(config.preferences.model_dump()),
        "bundles": list(config.bundles),
        "mcpServers": list(config.mcp_servers),
        "custom": dict(config.custom),
    }


def extend_context(context: Mapping[str, Any], additions: Mapping[str, Any]) -> dict[str, Any]:
    """Merge *additions* into a copy of *context*.

    Nested mappings are merged one level deep and lists are concatenated;
    any other value replaces the original.
    """
    merged = dict(context)
    for key, value in additions.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = {**current, **value}
        elif isinstance(current, list) and isinstance(value, list):
            merged[key] = [*current, *value]
        else:
            merged[key] = value
    return merged


def add_custom_variable(context: Mapping[str, Any], key: str, value: Any) -> dict[str, Any]:
    return extend_context(context, {"custom": {key: value}})


def get_all_modules(context: Mapping[str, Any]) -> list[str]:
    modules = context.get("modules") or {}
    return [module_id for category in MODULE_CATEGORIES for module_id in modules.get(category, [])]


def has_module(context: Mapping[str, Any], module_id: str) -> bool:
    return module_id in get_all_modules(context)


def has_any_module(context: Mapping[str, Any], module_ids: Iterable[str]) -> bool:
    return any(has_module(context, module_id) for module_id in module_ids)


def has_all_modules(context: Mapping[str, Any], module_ids: Iterable[str]) -> bool:
    return all(has_module(context, module_id) for module_id in module_ids)
