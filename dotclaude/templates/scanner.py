"""Scanner for flat ``{{UPPER_SNAKE}}`` placeholders.

Walks a template tree, finds every ``{{PLACEHOLDER}}`` token and classifies
the configurable ones by category.  Tokens that match the syntax but are not
in the placeholder registry are listed separately as ``unrecognized``.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path

from dotclaude.config import TemplateConfig
from dotclaude.templates.models import PlaceholderScanResult
from dotclaude.templates.placeholders import (
    PlaceholderCategory,
    get_placeholder_by_key,
)
from dotclaude.utils import SKIP_DIRECTORIES, iter_files

PLACEHOLDER_RE = re.compile(r"\{\{([A-Z][A-Z0-9_]*)\}\}")
SCANNABLE_EXTENSIONS: tuple[str, ...] = (".md", ".json", ".yaml", ".yml", ".txt")

ConfiguredValues = TemplateConfig | Mapping[str, str]


def extract_placeholders(content: str) -> list[str]:
    """Unique ``{{TOKEN}}`` strings in *content*, in first-seen order."""
    seen: dict[str, None] = {}
    for match in PLACEHOLDER_RE.finditer(content):
        seen.setdefault(f"{{{{{match.group(1)}}}}}", None)
    return list(seen)


def iter_template_files(
    root: str | Path,
    extensions: Iterable[str] = SCANNABLE_EXTENSIONS,
) -> Iterator[Path]:
    """Yield scannable files under *root*, skipping build and dot-directories."""
    return iter_files(root, extensions=extensions, exclude=SKIP_DIRECTORIES)


def scan_for_placeholders(directory: str | Path) -> PlaceholderScanResult:
    """Scan *directory* for configurable placeholders.

    Unreadable files are listed in ``files_with_errors`` and skipped.
    """
    root = Path(directory)
    result = PlaceholderScanResult(
        by_category={category.value: [] for category in PlaceholderCategory
                     if category is not PlaceholderCategory.PROJECT},
    )
    found: set[str] = set()
    unrecognized: set[str] = set()

    for file_path in iter_template_files(root):
        name = file_path.relative_to(root).as_posix()
        try:
            content = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            result.files_with_errors.append(name)
            continue

        for token in extract_placeholders(content):
            if get_placeholder_by_key(token) is None:
                unrecognized.add(token)
                continue
            found.add(token)
            result.files_by_placeholder.setdefault(token, []).append(name)
            result.counts[token] = result.counts.get(token, 0) + content.count(token)

    result.placeholders = sorted(found)
    result.unrecognized = sorted(unrecognized)
    for token in result.placeholders:
        definition = get_placeholder_by_key(token)
        if definition is not None:
            result.by_category[definition.category.value].append(token)
    return result


def _configured_keys(config: ConfiguredValues) -> set[str]:
    if isinstance(config, TemplateConfig):
        return {key for key, value in config.values.items() if value}
    return {token.strip("{}") for token, value in config.items() if value not in (None, "")}


def get_unconfigured_placeholders(directory: str | Path, config: ConfiguredValues) -> list[str]:
    """Placeholders used under *directory* that *config* has no value for."""
    configured = _configured_keys(config)
    scan = scan_for_placeholders(directory)
    return [token for token in scan.placeholders if token.strip("{}") not in configured]


def get_missing_required_placeholders(
    directory: str | Path,
    config: ConfiguredValues,
) -> list[str]:
    """Required placeholders used under *directory* that are not configured."""
    missing: list[str] = []
    for token in get_unconfigured_placeholders(directory, config):
        definition = get_placeholder_by_key(token)
        if definition is not None and definition.required:
            missing.append(token)
    return missing


def key_to_config_key(key: str, category: PlaceholderCategory | str) -> str:
    """Convert a placeholder key to the camelCase key used in nested configs.

    Examples::

        key_to_config_key("TYPECHECK_COMMAND", "commands") -> "typecheck"
        key_to_config_key("COVERAGE_TARGET", "targets")    -> "coverageTarget"
        key_to_config_key("GITHUB_TOKEN_ENV", "environment") -> "githubToken"
    """
    name = PlaceholderCategory(category)
    clean = key
    if name is PlaceholderCategory.COMMANDS and key.endswith("_COMMAND"):
        clean = key[: -len("_COMMAND")]
    elif name is PlaceholderCategory.ENVIRONMENT and key.endswith("_ENV"):
        clean = key[: -len("_ENV")]
    return re.sub(r"_([a-z0-9])", lambda m: m.group(1).upper(), clean.lower())


def format_scan_summary(result: PlaceholderScanResult) -> str:
    """Human-readable multi-line summary of a scan."""
    lines = [f"Found {len(result.placeholders)} configurable placeholders:", ""]
    for category, tokens in result.by_category.items():
        if not tokens:
            continue
        lines.append(f"  {category} ({len(tokens)}):")
        for token in tokens:
            count = result.counts.get(token, 0)
            files = len(result.files_by_placeholder.get(token, []))
            lines.append(f"    {token} - {count} uses in {files} files")
        lines.append("")
    if result.unrecognized:
        lines.append(f"  unrecognized ({len(result.unrecognized)}):")
        lines.extend(f"    {token}" for token in result.unrecognized)
        lines.append("")
    return "\n".join(lines)
