"""Line-oriented model of a container's host config file.

The file consists of a main section followed by optional snapshot
sections, each introduced by a ``[name]`` header. Only the main section is
edited; snapshot sections are kept verbatim.
"""

import asyncio
import logging
import os
import re
import shutil
import tempfile
from pathlib import Path
from typing import Callable, Iterable, List, Optional


logger = logging.getLogger(__name__)

SECTION_HEADER = re.compile(r"^\[[^\]]+\]\s*$")
KEY_PATTERN = re.compile(r"^([A-Za-z0-9_.\-]+):")


def line_key(line: str) -> Optional[str]:
    """Key of a ``key: value`` line, or None for comments and blanks."""
    match = KEY_PATTERN.match(line)
    return match.group(1) if match else None


class LxcConfigFile:
    """In-memory structured view of ``<id>.conf``."""

    def __init__(self, main: Optional[List[str]] = None, sections: Optional[List[str]] = None):
        self.main: List[str] = list(main or [])
        self.sections: List[str] = list(sections or [])

    @classmethod
    def parse(cls, text: str) -> "LxcConfigFile":
        """Split file content into main lines and trailing sections."""
        lines = text.splitlines()
        for index, line in enumerate(lines):
            if SECTION_HEADER.match(line):
                return cls(lines[:index], lines[index:])
        return cls(lines, [])

    def remove(self, predicate: Callable[[str], bool]) -> int:
        """Drop main-section lines matching ``predicate``; return count."""
        kept = [line for line in self.main if not predicate(line)]
        removed = len(self.main) - len(kept)
        self.main = kept
        return removed

    def extend(self, lines: Iterable[str]) -> None:
        """Append lines at the end of the main section."""
        # Keep the block contiguous with existing content
        while self.main and not self.main[-1].strip():
            self.main.pop()
        self.main.extend(lines)

    def values(self, key: str) -> List[str]:
        """Values of all main-section lines with ``key``."""
        result = []
        for line in self.main:
            if line_key(line) == key:
                result.append(line.split(":", 1)[1].strip())
        return result

    def render(self) -> str:
        """Serialize back to file content."""
        body = list(self.main)
        if self.sections:
            if body and body[-1].strip():
                body.append("")
            body.extend(self.sections)
        return "\n".join(body) + "\n" if body else ""

    @classmethod
    async def load(cls, path: Path) -> "LxcConfigFile":
        """Read and parse a config file."""
        text = await asyncio.to_thread(Path(path).read_text)
        return cls.parse(text)

    async def save(self, path: Path) -> None:
        """Write atomically: temp file in the same directory, then replace."""
        await asyncio.to_thread(_atomic_write, Path(path), self.render())


def _atomic_write(path: Path, content: str) -> None:
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w") as handle:
            handle.write(content)
        try:
            shutil.copymode(path, tmp_name)
        except OSError as e:
            logger.debug(f"Could not copy mode of {path}: {e}")
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


async def backup(path: Path, suffix: str = ".bak") -> Path:
    """Copy ``path`` next to itself with ``suffix``."""
    target = Path(f"{path}{suffix}")
    await asyncio.to_thread(shutil.copy2, path, target)
    logger.debug(f"Backed up {path} to {target}")
    return target
