"""
LaTeX Compilation Module

Runs the external LaTeX toolchain on a generated article source. Each
invocation runs as an asyncio subprocess inside the article's working
directory; a failed run is reported once and never retried.
"""

import asyncio
import os
import re
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from dotenv import load_dotenv

from papertex.contexts.rendering.logger import (
    _log_debug,
    _log_warning,
    log_compilation_result,
    log_compilation_start,
)
from papertex.utils.pdf_processing import page_count

load_dotenv()

LATEX_COMPILER = os.getenv("LATEX_COMPILER", "pdflatex")
BIBTEX_COMPILER = os.getenv("BIBTEX_COMPILER", "bibtex")
KEEP_LATEX_ARTIFACTS = os.getenv("KEEP_LATEX_ARTIFACTS", "false").lower() == "true"
LATEX_TIMEOUT_S = float(os.environ["LATEX_TIMEOUT_S"]) if os.getenv("LATEX_TIMEOUT_S") else None

# LaTeX and BibTeX intermediate files created during compilation
LATEX_ARTIFACTS = [".aux", ".log", ".out", ".toc", ".bbl", ".blg"]


class TypesetError(Exception):
    """
    Exception raised when an article could not be typeset to PDF.

    Attributes:
        message: Error description
        errors: Parsed LaTeX errors, if any
    """

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        self.message = message
        self.errors = errors or []

        parts = [message]
        for err in self.errors[:5]:
            parts.append(f"  - {err}")

        super().__init__("\n".join(parts))


@dataclass
class CompilationResult:
    """
    Result of LaTeX compilation.

    Attributes:
        success: Whether compilation succeeded
        pdf_path: Path to generated PDF (None if failed)
        stdout: Combined standard output of all passes
        stderr: Combined standard error of all passes
        errors: List of parsed LaTeX errors
        warnings: List of parsed LaTeX warnings
        page_count: Number of pages in generated PDF (None if not available)
    """

    success: bool
    pdf_path: Optional[Path] = None
    stdout: str = ""
    stderr: str = ""
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    page_count: Optional[int] = None


def _parse_latex_log(log_content: str) -> Tuple[List[str], List[str]]:
    """
    Parse LaTeX log file for errors and warnings.

    Args:
        log_content: Content of the .log file

    Returns:
        Tuple of (errors, warnings)
    """
    errors = []
    warnings = []

    # LaTeX error lines start with "! "; -file-line-error gives "file:line: message"
    for pattern in (r"^! (.+)$", r"^[^\s:]+\.tex:\d+: (.+)$"):
        for match in re.finditer(pattern, log_content, re.MULTILINE):
            message = match.group(1).strip()
            if message not in errors:
                errors.append(message)

    if "Emergency stop" in log_content and not errors:
        errors.append("Emergency stop")

    warning_patterns = [
        r"LaTeX Warning: (.+)",
        r"Package \w+ Warning: (.+)",
        r"Overfull \\hbox \((.+)\)",
        r"Underfull \\hbox \((.+)\)",
    ]
    for pattern in warning_patterns:
        for match in re.finditer(pattern, log_content, re.MULTILINE):
            warnings.append(match.group(1).strip())

    return errors, warnings


def compile_commands(article_name: str, bibtex: bool) -> List[List[str]]:
    """
    Command sequence for one article.

    With a bibliography: latex, bibtex, latex, latex. Without: latex twice so
    cross-references resolve.
    """
    latex = [LATEX_COMPILER, "-interaction=nonstopmode", "-file-line-error", f"{article_name}.tex"]
    if bibtex:
        return [latex, [BIBTEX_COMPILER, article_name], latex, latex]
    return [latex, latex]


async def _run_command(
    cmd: List[str], cwd: Path, timeout: Optional[float]
) -> Tuple[int, str, str]:
    """Run one subprocess, killing it when the timeout expires."""
    proc = await asyncio.create_subprocess_exec(
        *cmd,
        cwd=cwd,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(proc.communicate(), timeout)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        raise
    return (
        proc.returncode,
        stdout_bytes.decode("utf-8", errors="replace"),
        stderr_bytes.decode("utf-8", errors="replace"),
    )


def _remove_artifacts(latex_dir: Path, article_name: str) -> None:
    for ext in LATEX_ARTIFACTS:
        artifact_path = latex_dir / f"{article_name}{ext}"
        if artifact_path.exists():
            artifact_path.unlink()


async def run_latex(
    latex_dir: Path,
    article_name: str,
    bibtex: bool = False,
    timeout: Optional[float] = LATEX_TIMEOUT_S,
    keep_artifacts: bool = KEEP_LATEX_ARTIFACTS,
    verbose: bool = False,
) -> CompilationResult:
    """
    Compile <latex_dir>/<article_name>.tex to PDF.

    Pure compilation function: assumes the source (and bibliography) are
    already written. Failures are returned as unsuccessful results, never
    raised.

    Args:
        latex_dir: Working directory holding the generated source
        article_name: Source file stem
        bibtex: Run a BibTeX pass between LaTeX passes
        timeout: Per-command timeout in seconds (None waits indefinitely)
        keep_artifacts: Keep .aux/.log/... files after a successful run
        verbose: Log full compiler output even on success

    Returns:
        CompilationResult with success status and diagnostic information
    """
    latex_dir = Path(latex_dir)
    pdf_path = latex_dir / f"{article_name}.pdf"
    if not (latex_dir / f"{article_name}.tex").exists():
        return CompilationResult(success=False, errors=[f"TeX file not found: {article_name}.tex"])

    # Stale PDF would make a failed run look successful
    if pdf_path.exists():
        pdf_path.unlink()

    log_compilation_start(article_name, latex_dir, bibtex)
    start_time = time.time()

    all_stdout = []
    all_stderr = []
    errors: List[str] = []

    for cmd in compile_commands(article_name, bibtex):
        _log_debug(f"  $ {' '.join(cmd)}")
        try:
            returncode, stdout, stderr = await _run_command(cmd, latex_dir, timeout)
        except FileNotFoundError:
            errors.append(f"Compiler not found: {cmd[0]}")
            _log_warning(errors[-1])
            break
        except asyncio.TimeoutError:
            errors.append(f"{cmd[0]} timed out after {timeout}s")
            _log_warning(errors[-1])
            break

        all_stdout.append(stdout)
        all_stderr.append(stderr)

        # BibTeX exits non-zero for warnings; only a failed LaTeX pass stops the run
        if returncode != 0 and cmd[0] == LATEX_COMPILER:
            break

    log_file = latex_dir / f"{article_name}.log"
    warnings: List[str] = []
    if log_file.exists():
        # LaTeX writes log files in latin-1 (font metadata is not UTF-8)
        log_errors, warnings = _parse_latex_log(log_file.read_text(encoding="latin-1"))
        errors.extend(log_errors)

    success = pdf_path.exists() and not errors
    if not pdf_path.exists() and not errors:
        errors.append("PDF file was not generated")

    result = CompilationResult(
        success=success,
        pdf_path=pdf_path if pdf_path.exists() else None,
        stdout="\n".join(all_stdout),
        stderr="\n".join(all_stderr),
        errors=errors,
        warnings=warnings,
        page_count=page_count(pdf_path) if pdf_path.exists() else None,
    )

    log_compilation_result(article_name, result, time.time() - start_time, verbose=verbose)

    # Keep artifacts on failure for manual inspection
    if success and not keep_artifacts:
        _remove_artifacts(latex_dir, article_name)

    return result
