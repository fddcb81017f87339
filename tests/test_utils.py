"""Unit tests for utility functions (dotclaude.utils).

Tests cover:
- sanitize_name (various inputs)
- camel_to_upper_snake / upper_snake_to_camel
- load_json / save_json (use tmp_path)
- ensure_dir
- iter_files (extensions, skipped directories, ordering)
- format_duration
- fetch_file (mock httpx)
- Rich output helpers (print_section_header, print_summary_table, etc.)
"""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from dotclaude.utils import (
    FetchError,
    camel_to_upper_snake,
    create_progress,
    ensure_dir,
    fetch_file,
    format_duration,
    iter_files,
    load_json,
    print_error,
    print_section_header,
    print_success,
    print_summary_table,
    print_warning,
    sanitize_name,
    save_json,
    upper_snake_to_camel,
)


def _mock_client(get: AsyncMock) -> AsyncMock:
    mock_client = AsyncMock()
    mock_client.get = get
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    return mock_client


# ---------------------------------------------------------------------------
# sanitize_name
# ---------------------------------------------------------------------------


class TestSanitizeName:
    @pytest.mark.unit
    def test_simple_name(self):
        assert sanitize_name("Acme Shop") == "acme-shop"

    @pytest.mark.unit
    def test_special_chars(self):
        assert sanitize_name("  Acme (v2)  ") == "acme-v2"

    @pytest.mark.unit
    def test_underscores_preserved(self):
        assert sanitize_name("my_app_v2") == "my_app_v2"

    @pytest.mark.unit
    def test_consecutive_hyphens_collapsed(self):
        assert sanitize_name("a - - b") == "a-b"

    @pytest.mark.unit
    def test_empty_string(self):
        assert sanitize_name("") == ""


# ---------------------------------------------------------------------------
# Key case conversion
# ---------------------------------------------------------------------------


class TestKeyConversion:
    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("key", "expected"),
        [
            ("indentStyle", "INDENT_STYLE"),
            ("lcpTargetMs", "LCP_TARGET_MS"),
            ("test_pattern", "TEST_PATTERN"),
            ("lint-fix", "LINT_FIX"),
            ("TEST_COMMAND", "TEST_COMMAND"),
            ("HTMLParser", "HTML_PARSER"),
        ],
    )
    def test_camel_to_upper_snake(self, key, expected):
        assert camel_to_upper_snake(key) == expected

    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("key", "expected"),
        [
            ("COVERAGE_TARGET", "coverageTarget"),
            ("NAME", "name"),
            ("ENTITY_TYPE_PLURAL", "entityTypePlural"),
            ("", ""),
        ],
    )
    def test_upper_snake_to_camel(self, key, expected):
        assert upper_snake_to_camel(key) == expected


# ---------------------------------------------------------------------------
# load_json / save_json
# ---------------------------------------------------------------------------


class TestJsonIO:
    @pytest.mark.unit
    def test_load_json_dict(self, tmp_path: Path):
        data = {"key": "value", "number": 42}
        filepath = tmp_path / "test.json"
        filepath.write_text(json.dumps(data))

        assert load_json(filepath) == data

    @pytest.mark.unit
    def test_load_json_list_wraps_in_dict(self, tmp_path: Path):
        filepath = tmp_path / "test.json"
        filepath.write_text(json.dumps([1, 2, 3]))

        assert load_json(filepath) == {"_root": [1, 2, 3]}

    @pytest.mark.unit
    def test_load_json_file_not_found(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_json(tmp_path / "missing.json")

    @pytest.mark.unit
    def test_load_json_invalid_json(self, tmp_path: Path):
        filepath = tmp_path / "bad.json"
        filepath.write_text("{not valid json")

        with pytest.raises(json.JSONDecodeError):
            load_json(filepath)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_save_json_creates_parents(self, tmp_path: Path):
        filepath = tmp_path / "a" / "b" / "settings.json"
        await save_json({"permissions": {"allow": []}}, filepath)

        assert json.loads(filepath.read_text()) == {"permissions": {"allow": []}}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_save_json_pretty_printed(self, tmp_path: Path):
        filepath = tmp_path / "out.json"
        await save_json({"name": "Año", "path": Path("x")}, filepath)

        content = filepath.read_text(encoding="utf-8")
        assert content.endswith("}\n")
        assert '  "name": "Año"' in content
        assert '"path": "x"' in content


# ---------------------------------------------------------------------------
# ensure_dir / iter_files
# ---------------------------------------------------------------------------


class TestEnsureDir:
    @pytest.mark.unit
    def test_creates_new_dir(self, tmp_path: Path):
        new_dir = tmp_path / "x" / "y"
        result = ensure_dir(new_dir)
        assert new_dir.is_dir()
        assert result == new_dir.resolve()

    @pytest.mark.unit
    def test_existing_dir_no_error(self, tmp_path: Path):
        assert ensure_dir(tmp_path) == tmp_path.resolve()


class TestIterFiles:
    @pytest.mark.unit
    def test_filters_and_orders(self, tmp_path: Path):
        for relative in ("b.md", "a.md", "notes.txt", "docs/c.MD", "node_modules/x.md",
                         ".cache/y.md", "dist/z.md"):
            path = tmp_path / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text("x")

        found = [p.relative_to(tmp_path).as_posix() for p in iter_files(tmp_path, ["md"])]
        assert found == ["a.md", "b.md", "docs/c.MD"]

    @pytest.mark.unit
    def test_extensions_with_dots(self, tmp_path: Path):
        (tmp_path / "a.json").write_text("{}")
        assert list(iter_files(tmp_path, [".json"])) == [tmp_path / "a.json"]

    @pytest.mark.unit
    def test_missing_root(self, tmp_path: Path):
        assert list(iter_files(tmp_path / "nope", ["md"])) == []


# ---------------------------------------------------------------------------
# format_duration
# ---------------------------------------------------------------------------


class TestFormatDuration:
    @pytest.mark.unit
    def test_seconds_only(self):
        assert format_duration(3.7) == "3.7s"

    @pytest.mark.unit
    def test_minutes_and_seconds(self):
        assert format_duration(65.2) == "1m 5s"

    @pytest.mark.unit
    def test_hours_minutes_seconds(self):
        assert format_duration(3661.0) == "1h 1m 1s"

    @pytest.mark.unit
    def test_negative(self):
        assert format_duration(-5) == "0.0s"


# ---------------------------------------------------------------------------
# fetch_file
# ---------------------------------------------------------------------------


class TestFetchFile:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_writes_into_directory(self, tmp_path: Path):
        mock_response = MagicMock()
        mock_response.text = "# Reviewer\n"
        mock_client = _mock_client(AsyncMock(return_value=mock_response))

        with patch("httpx.AsyncClient", return_value=mock_client):
            written = await fetch_file("https://example.org/agents/reviewer.md", tmp_path)

        assert written == tmp_path / "reviewer.md"
        assert written.read_text(encoding="utf-8") == "# Reviewer\n"
        mock_client.get.assert_awaited_once_with("https://example.org/agents/reviewer.md")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_explicit_file_target(self, tmp_path: Path):
        mock_response = MagicMock()
        mock_response.text = "body"
        mock_client = _mock_client(AsyncMock(return_value=mock_response))
        target = tmp_path / "nested" / "custom.md"

        with patch("httpx.AsyncClient", return_value=mock_client):
            written = await fetch_file("https://example.org/raw", target)

        assert written == target
        assert target.read_text(encoding="utf-8") == "body"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_http_error_status(self, tmp_path: Path):
        mock_response = MagicMock()
        mock_response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "not found", request=MagicMock(), response=MagicMock(status_code=404)
        )
        mock_client = _mock_client(AsyncMock(return_value=mock_response))

        with patch("httpx.AsyncClient", return_value=mock_client):
            with pytest.raises(FetchError, match="HTTP 404"):
                await fetch_file("https://example.org/a.md", tmp_path)

        assert not (tmp_path / "a.md").exists()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_transport_error(self, tmp_path: Path):
        mock_client = _mock_client(AsyncMock(side_effect=httpx.ConnectError("refused")))

        with patch("httpx.AsyncClient", return_value=mock_client):
            with pytest.raises(FetchError) as exc_info:
                await fetch_file("https://example.org/a.md", tmp_path)

        assert exc_info.value.url == "https://example.org/a.md"
        assert "refused" in str(exc_info.value)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_url_without_file_name(self, tmp_path: Path):
        with pytest.raises(FetchError, match="does not name a file"):
            await fetch_file("https://example.org/", tmp_path)


# ---------------------------------------------------------------------------
# Rich output helpers (smoke tests - verify they don't raise)
# ---------------------------------------------------------------------------


class TestRichOutputHelpers:
    @pytest.mark.unit
    def test_print_section_header(self):
        print_section_header("Generating .claude/")

    @pytest.mark.unit
    def test_print_summary_table(self):
        print_summary_table({"Files copied": "8", "Files skipped": "0"}, title="Init")

    @pytest.mark.unit
    def test_print_messages(self):
        print_success("Done")
        print_error("Failed")
        print_warning("Careful")

    @pytest.mark.unit
    def test_create_progress(self):
        progress = create_progress()
        assert progress is not None
