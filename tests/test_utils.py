"""Unit tests for shared utilities (bundle_service.utils).

Tests cover:
- preview truncation
- run_command (success, failure, timeout kill, env merge)
- write_text / read_text
- strip_import_lines
- format_duration
- configure_logging idempotence
"""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from rich.logging import RichHandler

from bundle_service.utils import (
    PREVIEW_LENGTH,
    configure_logging,
    format_duration,
    preview,
    read_text,
    run_command,
    strip_import_lines,
    write_text,
)


class TestPreview:
    @pytest.mark.unit
    def test_short_text_unchanged(self):
        assert preview("abc") == "abc"

    @pytest.mark.unit
    def test_none_and_empty(self):
        assert preview(None) == ""
        assert preview("") == ""

    @pytest.mark.unit
    def test_long_text_truncated(self):
        result = preview("x" * 500)
        assert result == "x" * PREVIEW_LENGTH + "..."

    @pytest.mark.unit
    def test_custom_length(self):
        assert preview("abcdef", length=3) == "abc..."


class TestRunCommand:
    @pytest.mark.unit
    async def test_success(self, mock_subprocess):
        proc = mock_subprocess(stdout="  done\n", stderr="", returncode=0)
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=proc)) as exec_mock:
            code, out, err = await run_command(["npm", "install"], cwd="/tmp/x")
        assert (code, out, err) == (0, "done", "")
        args, kwargs = exec_mock.call_args
        assert args == ("npm", "install")
        assert kwargs["cwd"] == "/tmp/x"
        assert kwargs["env"] is None

    @pytest.mark.unit
    async def test_failure_returns_stderr(self, mock_subprocess):
        proc = mock_subprocess(stderr="E404 not found", returncode=1)
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=proc)):
            code, _, err = await run_command(["npm", "install"])
        assert code == 1
        assert err == "E404 not found"

    @pytest.mark.unit
    async def test_timeout_kills_process(self, mock_subprocess):
        proc = mock_subprocess()
        proc.communicate = AsyncMock(side_effect=asyncio.TimeoutError)
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=proc)):
            code, out, err = await run_command(["npx", "vite", "build"], timeout=1)
        assert code == -1
        assert out == ""
        assert "timed out after 1s" in err
        proc.kill.assert_called_once()
        proc.wait.assert_awaited_once()

    @pytest.mark.unit
    async def test_env_merged_over_os_environ(self, mock_subprocess):
        proc = mock_subprocess()
        with patch.dict(os.environ, {"BASE_VAR": "1"}, clear=True):
            with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=proc)) as exec_mock:
                await run_command(["node"], env={"NODE_ENV": "production"})
        env = exec_mock.call_args.kwargs["env"]
        assert env == {"BASE_VAR": "1", "NODE_ENV": "production"}

    @pytest.mark.unit
    async def test_missing_binary_propagates(self):
        with patch(
            "asyncio.create_subprocess_exec", AsyncMock(side_effect=FileNotFoundError("npm"))
        ):
            with pytest.raises(FileNotFoundError):
                await run_command(["npm", "install"])


class TestFileHelpers:
    @pytest.mark.unit
    async def test_write_creates_parents_and_reads_back(self, tmp_path: Path):
        target = tmp_path / "a" / "b" / "file.txt"
        written = await write_text(target, "héllo")
        assert written == target
        assert await read_text(target) == "héllo"


class TestStripImportLines:
    @pytest.mark.unit
    def test_removes_import_lines(self):
        source = 'import React from "react";\n  import "./x.css";\nconst a = <div className="p-4" />;'
        assert strip_import_lines(source) == 'const a = <div className="p-4" />;'

    @pytest.mark.unit
    def test_keeps_other_lines(self):
        source = "const important = 1;\nexport { important };"
        assert strip_import_lines(source) == source

    @pytest.mark.unit
    def test_none(self):
        assert strip_import_lines(None) == ""


class TestFormatDuration:
    @pytest.mark.unit
    def test_seconds(self):
        assert format_duration(3.7) == "3.7s"

    @pytest.mark.unit
    def test_minutes(self):
        assert format_duration(65.2) == "1m 5s"

    @pytest.mark.unit
    def test_negative(self):
        assert format_duration(-1) == "0.0s"


class TestConfigureLogging:
    @pytest.mark.unit
    def test_handler_installed_once(self):
        logger = configure_logging("debug")
        configure_logging("info")
        handlers = [h for h in logger.handlers if isinstance(h, RichHandler)]
        assert len(handlers) == 1
        assert logger.level == logging.INFO
        assert logger.name == "bundle_service"
