"""Read-only file access used while computing edits."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Protocol


class FileSystem(Protocol):
    async def exists(self, path: str) -> bool: ...

    async def read_text(self, path: str) -> str: ...


class LocalFileSystem:
    """FileSystem reading from local disk off the event loop."""

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding

    async def exists(self, path: str) -> bool:
        return await asyncio.to_thread(Path(path).is_file)

    async def read_text(self, path: str) -> str:
        return await asyncio.to_thread(Path(path).read_text, encoding=self.encoding)
