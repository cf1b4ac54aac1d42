"""
Async filesystem helpers.

Blocking file operations run in worker threads so independent writes can be
awaited together with asyncio.gather().
"""

import asyncio
import shutil
from pathlib import Path
from typing import Optional


async def mkdirp(path: Path) -> None:
    await asyncio.to_thread(Path(path).mkdir, parents=True, exist_ok=True)


async def write_file(path: Path, data: Optional[str], encoding: str = "utf-8") -> Optional[Path]:
    """Write text to path; empty data writes nothing and returns None."""
    if not data:
        return None
    await asyncio.to_thread(Path(path).write_text, data, encoding=encoding)
    return Path(path)


async def copy(src: Path, dst: Path) -> Path:
    """Copy a file, preserving metadata."""
    return Path(await asyncio.to_thread(shutil.copy2, src, dst))
