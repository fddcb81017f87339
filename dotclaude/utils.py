"""Shared utility functions for dotclaude.

Provides JSON I/O, file-tree walking, Rich-based console output and progress
reporting, and a small HTTP helper for fetching remote template files.
"""

from __future__ import annotations

import asyncio
import json
import re
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import httpx
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.rule import Rule
from rich.table import Table

console = Console()

SKIP_DIRECTORIES: frozenset[str] = frozenset(
    {"node_modules", ".git", "dist", "build", ".next", ".turbo"}
)


class FetchError(Exception):
    """Raised when a remote template cannot be downloaded."""

    def __init__(self, url: str, message: str) -> None:
        self.url = url
        super().__init__(f"Failed to fetch {url}: {message}")


# ---------------------------------------------------------------------------
# String / name helpers
# ---------------------------------------------------------------------------


def sanitize_name(name: str) -> str:
    """Convert an arbitrary project name to a safe directory/package name.

    Examples::

        sanitize_name("My Cool App") -> "my-cool-app"
        sanitize_name("  Acme (v2)  ") -> "acme-v2"
    """
    result = re.sub(r"[^a-zA-Z0-9_-]", "-", name.strip().lower())
    result = re.sub(r"-+", "-", result)
    return result.strip("-")


def camel_to_upper_snake(key: str) -> str:
    """Convert ``camelCase``, ``snake_case`` or ``kebab-case`` to ``UPPER_SNAKE``.

    Examples::

        camel_to_upper_snake("indentStyle")  -> "INDENT_STYLE"
        camel_to_upper_snake("lcpTargetMs")  -> "LCP_TARGET_MS"
        camel_to_upper_snake("test_pattern") -> "TEST_PATTERN"
    """
    spaced = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", key)
    spaced = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", spaced)
    return re.sub(r"[^A-Za-z0-9]+", "_", spaced).strip("_").upper()


def upper_snake_to_camel(key: str) -> str:
    """Inverse of ``camel_to_upper_snake``: ``COVERAGE_TARGET`` -> ``coverageTarget``."""
    words = [word for word in key.lower().split("_") if word]
    if not words:
        return ""
    return words[0] + "".join(word.capitalize() for word in words[1:])


# ---------------------------------------------------------------------------
# JSON I/O
# ---------------------------------------------------------------------------


def load_json(path: str | Path) -> dict[str, Any]:
    """Load and parse a JSON file.

    Args:
        path: Path to the JSON file.

    Returns:
        Parsed dictionary.  A top-level non-object is wrapped as
        ``{"_root": data}``.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
    """
    raw = Path(path).read_text(encoding="utf-8")
    data = json.loads(raw)
    if not isinstance(data, dict):
        return {"_root": data}
    return data


async def save_json(data: dict[str, Any] | list[Any], path: str | Path) -> None:
    """Save data as pretty-printed JSON.

    Parent directories are created automatically and the write runs in a
    worker thread.
    """
    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    content = json.dumps(data, indent=2, ensure_ascii=False, default=str) + "\n"
    await asyncio.to_thread(file_path.write_text, content, "utf-8")


# ---------------------------------------------------------------------------
# File-system helpers
# ---------------------------------------------------------------------------


def ensure_dir(path: str | Path) -> Path:
    """Create a directory (and parents) if it does not exist."""
    dir_path = Path(path)
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path.resolve()


def iter_files(
    root: str | Path,
    extensions: Iterable[str],
    exclude: Iterable[str] = SKIP_DIRECTORIES,
) -> Iterator[Path]:
    """Yield files under *root* whose extension is in *extensions*.

    Directories named in *exclude* and every dot-directory are skipped.
    Files are yielded in sorted order so reports are stable.

    Args:
        root: Directory to walk.
        extensions: Extensions with or without the leading dot
            (``"md"`` and ``".md"`` are equivalent).
        exclude: Directory names to skip at any depth.
    """
    wanted = {ext.lower().lstrip(".") for ext in extensions}
    skipped = set(exclude)
    root_path = Path(root)
    if not root_path.is_dir():
        return

    for entry in sorted(root_path.iterdir()):
        if entry.is_dir():
            if entry.name in skipped or entry.name.startswith("."):
                continue
            yield from iter_files(entry, wanted, skipped)
        elif entry.is_file() and entry.suffix.lower().lstrip(".") in wanted:
            yield entry


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_duration(seconds: float) -> str:
    """Format a duration in seconds to a human-readable string.

    Examples::

        format_duration(3.7)    -> "3.7s"
        format_duration(65.2)   -> "1m 5s"
        format_duration(3661.0) -> "1h 1m 1s"
    """
    if seconds < 0:
        return "0.0s"

    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = seconds % 60

    parts: list[str] = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")

    if hours > 0 or minutes > 0:
        parts.append(f"{int(secs)}s")
    else:
        parts.append(f"{secs:.1f}s")

    return " ".join(parts)


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_section_header(title: str, color: str = "bright_cyan") -> None:
    """Print a full-width rule announcing a new section of output."""
    console.print()
    console.print(Rule(f"[bold {color}] {title} [/bold {color}]", style=color))
    console.print()


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print a two-column key/value summary table.

    Args:
        data: Mapping of label -> value.
        title: Table title.
    """
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)
    console.print()


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{message}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{message}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{message}[/bold yellow]")


def create_progress() -> Progress:
    """Create a Rich progress spinner for long-running file operations."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    )


# ---------------------------------------------------------------------------
# Remote templates
# ---------------------------------------------------------------------------


async def fetch_file(url: str, destination: str | Path, timeout: float = 30.0) -> Path:
    """Download a single template file and copy it into *destination*.

    If *destination* is an existing directory the file keeps the last path
    segment of the URL as its name.

    Args:
        url: ``http(s)`` URL of the file.
        destination: Target file or directory.
        timeout: Request timeout in seconds.

    Returns:
        The path that was written.

    Raises:
        FetchError: On a non-2xx response or any transport error.
    """
    target = Path(destination)
    if target.is_dir():
        name = Path(urlparse(url).path).name
        if not name:
            raise FetchError(url, "URL does not name a file")
        target = target / name

    try:
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(timeout, connect=10.0), follow_redirects=True
        ) as client:
            response = await client.get(url)
            response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise FetchError(url, f"HTTP {exc.response.status_code}") from exc
    except httpx.HTTPError as exc:
        raise FetchError(url, str(exc) or type(exc).__name__) from exc

    target.parent.mkdir(parents=True, exist_ok=True)
    await asyncio.to_thread(target.write_text, response.text, "utf-8")
    return target
