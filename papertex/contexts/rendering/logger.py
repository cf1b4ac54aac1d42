"""
Rendering context logger.

Provides logging interface for rendering context with automatic [render] prefix.
All rendering modules should import from this module, not from loguru directly.
"""

from pathlib import Path
from typing import Optional

from loguru import logger

from papertex.utils.logger import setup_logger as _setup_logger

CONTEXT_PREFIX = "[render]"


def setup_rendering_logger(
    log_dir: Optional[Path] = None, verbose: bool = False, extra_provenance: Optional[dict] = None
) -> Optional[Path]:
    """
    Setup logger for rendering context.

    Args:
        log_dir: Directory for the session log file (console only if None)
        verbose: Show DEBUG messages on the console
        extra_provenance: Additional provenance (e.g. compiler names)

    Returns:
        Path to log file, or None
    """
    return _setup_logger(
        context_name="render",
        log_dir=log_dir,
        extra_provenance=extra_provenance,
        verbose=verbose,
    )


# Wrapper functions with automatic [render] prefix


def _log_info(message: str) -> None:
    """Log info message with [render] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [render] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_error(message: str) -> None:
    """Log error message with [render] prefix."""
    logger.error(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [render] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [render] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


# High-level rendering-specific logging helpers


def log_compilation_start(article_name: str, working_dir: Path, bibtex: bool) -> None:
    """Log start of compilation with context."""
    _log_info(f"Starting compilation: {article_name}")
    _log_debug(f"  Working directory: {working_dir}")
    _log_debug(f"  Bibliography pass: {bibtex}")


def log_compilation_result(
    article_name: str,
    result,  # CompilationResult
    elapsed_time: float,
    verbose: bool = False,
) -> None:
    """
    Log compilation result with diagnostics.

    Args:
        article_name: Document base name
        result: CompilationResult from run_latex()
        elapsed_time: Time taken to compile
        verbose: Show detailed warnings and compiler output
    """
    if result.success:
        pages = f", {result.page_count} pages" if result.page_count else ""
        _log_success(f"{article_name}: {len(result.warnings)} warnings{pages} ({elapsed_time:.2f}s)")
    else:
        _log_error(f"{article_name}: {len(result.errors)} errors ({elapsed_time:.2f}s)")
        for i, err in enumerate(result.errors[:5], 1):
            _log_error(f"  Error {i}: {err}")
        if len(result.errors) > 5:
            _log_error(f"  ... and {len(result.errors) - 5} more errors")

    warning_limit = 10 if verbose else 3
    for i, warn in enumerate(result.warnings[:warning_limit], 1):
        _log_debug(f"  Warning {i}: {warn}")

    # Raw output bypasses the format template so multi-line output stays intact
    if verbose or not result.success:
        if result.stdout:
            logger.opt(raw=True).debug(
                f"\n{'=' * 80}\nLATEX STDOUT:\n{'=' * 80}\n{result.stdout}\n"
            )
        if result.stderr:
            logger.opt(raw=True).debug(
                f"\n{'=' * 80}\nLATEX STDERR:\n{'=' * 80}\n{result.stderr}\n"
            )
