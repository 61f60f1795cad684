"""Shared utility functions for the bundle service.

Provides async command execution, async file writes, logging setup, log
preview truncation, source filtering and Rich-based summary output.
"""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

console = Console()

PREVIEW_LENGTH = 200

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach a Rich handler to the ``bundle_service`` logger.

    Safe to call more than once; the handler is only installed the first
    time.
    """
    logger = logging.getLogger("bundle_service")
    logger.setLevel(level.upper())
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(console=console, rich_tracebacks=True, show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
    logger.propagate = False
    return logger


def preview(text: str | None, length: int = PREVIEW_LENGTH) -> str:
    """Truncate untrusted text for log output.

    Examples::

        preview("abc")        -> "abc"
        preview("x" * 500)    -> "xxxx...x..." (200 chars + "...")
        preview(None)         -> ""
    """
    if not text:
        return ""
    if len(text) <= length:
        return text
    return text[:length] + "..."


# ---------------------------------------------------------------------------
# Async command execution
# ---------------------------------------------------------------------------


async def run_command(
    cmd: list[str],
    cwd: str | Path | None = None,
    timeout: float = 120,
    env: dict[str, str] | None = None,
) -> tuple[int, str, str]:
    """Run a command asynchronously without a shell.

    Args:
        cmd: Program and arguments.
        cwd: Working directory for the child process.
        timeout: Maximum wall-clock seconds before the process is killed.
        env: Optional extra environment variables merged on top of ``os.environ``.

    Returns:
        A ``(returncode, stdout, stderr)`` tuple.  A timed-out process yields
        return code ``-1`` and a descriptive stderr.

    Raises:
        FileNotFoundError: If the program does not exist.
        PermissionError: If the program is not executable.
    """
    merged_env: dict[str, str] | None = None
    if env:
        merged_env = {**os.environ, **env}

    process = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        cwd=str(cwd) if cwd else None,
        env=merged_env,
    )

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(
            process.communicate(), timeout=timeout
        )
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        return (-1, "", f"Command timed out after {timeout}s: {' '.join(cmd)}")

    stdout_str = (stdout_bytes or b"").decode("utf-8", errors="replace").strip()
    stderr_str = (stderr_bytes or b"").decode("utf-8", errors="replace").strip()
    return (process.returncode or 0, stdout_str, stderr_str)


# ---------------------------------------------------------------------------
# File-system helpers
# ---------------------------------------------------------------------------


def _write_file(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


async def write_text(path: str | Path, content: str) -> Path:
    """Write *content* to *path* in a worker thread, creating parents."""
    target = Path(path)
    await asyncio.to_thread(_write_file, target, content)
    return target


async def read_text(path: str | Path) -> str:
    """Read a UTF-8 text file in a worker thread."""
    return await asyncio.to_thread(Path(path).read_text, encoding="utf-8")


# ---------------------------------------------------------------------------
# Source helpers
# ---------------------------------------------------------------------------


def strip_import_lines(source: str | None) -> str:
    """Drop every line whose first token is ``import``.

    Used before scanning component code for class names so that module
    specifiers never leak into the generated stylesheet.
    """
    if not source:
        return ""
    return "\n".join(
        line for line in source.split("\n") if not line.strip().startswith("import")
    )


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_duration(seconds: float) -> str:
    """Format a duration in seconds to a human-readable string.

    Examples::

        format_duration(3.7)    -> "3.7s"
        format_duration(65.2)   -> "1m 5s"
    """
    if seconds < 0:
        return "0.0s"

    minutes = int(seconds // 60)
    secs = seconds % 60
    if minutes > 0:
        return f"{minutes}m {int(secs)}s"
    return f"{secs:.1f}s"


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print a two-column key/value summary table."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)
    console.print()
