"""Unified diff model and parser.

The parser is deliberately forgiving: a malformed hunk header or a stray line
is skipped and parsing continues, so a partially broken diff still yields
every file and hunk that could be read.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator

logger = logging.getLogger(__name__)

_HUNK_RE = re.compile(
    r"^@@ -(?P<old_start>\d+)(?:,(?P<old_count>\d+))? \+(?P<new_start>\d+)(?:,(?P<new_count>\d+))? @@ ?(?P<section>.*)$"
)
_GIT_HEADER_RE = re.compile(r"^diff --git (?:a/)?(?P<old>\S+) (?:b/)?(?P<new>\S+)$")
_DEV_NULL = "/dev/null"


class LineKind(str, Enum):
    ADDED = "added"
    REMOVED = "removed"
    CONTEXT = "context"


@dataclass
class DiffLine:
    kind: LineKind
    text: str
    new_line_number: int | None = None
    old_line_number: int | None = None


@dataclass
class Hunk:
    old_start: int
    old_count: int
    new_start: int
    new_count: int
    section: str = ""
    lines: list[DiffLine] = field(default_factory=list)

    @property
    def added_lines(self) -> list[DiffLine]:
        return [line for line in self.lines if line.kind is LineKind.ADDED]


@dataclass
class FileDiff:
    """Changes to a single file. ``path`` is the new path, or the old one for deletions."""

    path: str
    old_path: str | None = None
    hunks: list[Hunk] = field(default_factory=list)
    is_new: bool = False
    is_deleted: bool = False
    is_binary: bool = False

    @property
    def is_rename(self) -> bool:
        return self.old_path is not None and self.old_path != self.path

    @property
    def added_line_numbers(self) -> list[int]:
        return [line.new_line_number for hunk in self.hunks for line in hunk.added_lines]


@dataclass
class UnifiedDiff:
    files: list[FileDiff] = field(default_factory=list)

    def get_file(self, path: str) -> FileDiff | None:
        for file_diff in self.files:
            if file_diff.path == path:
                return file_diff
        return None

    def added_lines(self) -> Iterator[tuple[FileDiff, DiffLine]]:
        """Yield every added line with its file, in document order."""
        for file_diff in self.files:
            for hunk in file_diff.hunks:
                for line in hunk.lines:
                    if line.kind is LineKind.ADDED:
                        yield file_diff, line


def _strip_prefix(path: str) -> str:
    # "--- a/src/x.py\t2024-01-01 ...": drop the optional timestamp and a/ b/ prefix.
    path = path.split("\t", 1)[0].strip()
    if path.startswith(("a/", "b/")):
        return path[2:]
    return path


class _DiffParser:
    def __init__(self):
        self.files: list[FileDiff] = []
        self.current: FileDiff | None = None
        self.hunk: Hunk | None = None
        self.old_line = 0
        self.new_line = 0
        self.old_left = 0
        self.new_left = 0
        self.saw_old_header = False

    def _start_file(self, path: str, old_path: str | None = None) -> FileDiff:
        self.current = FileDiff(path=path, old_path=old_path)
        self.files.append(self.current)
        self.hunk = None
        self.saw_old_header = False
        return self.current

    def _in_hunk(self) -> bool:
        return self.hunk is not None and (self.old_left > 0 or self.new_left > 0)

    def feed(self, raw: str) -> None:
        if self._in_hunk():
            self._feed_hunk_line(raw)
            return

        if raw.startswith("diff --git "):
            match = _GIT_HEADER_RE.match(raw)
            if match:
                self._start_file(match.group("new"), old_path=match.group("old"))
            else:
                logger.debug("Skipping unparseable diff header: %r", raw)
                self.current = None
                self.hunk = None
            return

        if raw.startswith("--- "):
            old = raw[4:].split("\t", 1)[0].strip()
            # A ---/+++ pair without a preceding git header starts a new file.
            if self.current is None or self.current.hunks or self.saw_old_header:
                self._start_file(_strip_prefix(old))
            self.saw_old_header = True
            if old == _DEV_NULL:
                self.current.is_new = True
                self.current.old_path = None
            else:
                self.current.old_path = _strip_prefix(old)
            return

        if raw.startswith("+++ ") and self.current is not None:
            new = raw[4:].split("\t", 1)[0].strip()
            if new == _DEV_NULL:
                self.current.is_deleted = True
                if self.current.old_path:
                    self.current.path = self.current.old_path
            else:
                self.current.path = _strip_prefix(new)
            return

        if raw.startswith("@@"):
            self._start_hunk(raw)
            return

        if self.current is None:
            return

        if raw.startswith("new file mode"):
            self.current.is_new = True
            self.current.old_path = None
        elif raw.startswith("deleted file mode"):
            self.current.is_deleted = True
        elif raw.startswith("rename from "):
            self.current.old_path = raw[len("rename from ") :].strip()
        elif raw.startswith("rename to "):
            self.current.path = raw[len("rename to ") :].strip()
        elif raw.startswith("Binary files ") or raw.startswith("GIT binary patch"):
            self.current.is_binary = True
        else:
            logger.debug("Ignoring line outside any hunk: %r", raw)

    def _start_hunk(self, raw: str) -> None:
        match = _HUNK_RE.match(raw)
        if match is None or self.current is None:
            logger.debug("Skipping malformed hunk header: %r", raw)
            self.hunk = None
            return
        old_count = int(match.group("old_count")) if match.group("old_count") is not None else 1
        new_count = int(match.group("new_count")) if match.group("new_count") is not None else 1
        self.hunk = Hunk(
            old_start=int(match.group("old_start")),
            old_count=old_count,
            new_start=int(match.group("new_start")),
            new_count=new_count,
            section=match.group("section").strip(),
        )
        self.current.hunks.append(self.hunk)
        self.old_line = self.hunk.old_start
        self.new_line = self.hunk.new_start
        self.old_left = old_count
        self.new_left = new_count

    def _feed_hunk_line(self, raw: str) -> None:
        prefix = raw[:1]
        text = raw[1:]
        if prefix == "\\":
            # "\ No newline at end of file"
            return
        if prefix == "+":
            self.hunk.lines.append(DiffLine(LineKind.ADDED, text, new_line_number=self.new_line))
            self.new_line += 1
            self.new_left -= 1
        elif prefix == "-":
            self.hunk.lines.append(DiffLine(LineKind.REMOVED, text, old_line_number=self.old_line))
            self.old_line += 1
            self.old_left -= 1
        elif prefix == " " or raw == "":
            # Some tools strip the single space from empty context lines.
            self.hunk.lines.append(
                DiffLine(LineKind.CONTEXT, text, new_line_number=self.new_line, old_line_number=self.old_line)
            )
            self.new_line += 1
            self.old_line += 1
            self.new_left -= 1
            self.old_left -= 1
        else:
            logger.debug("Hunk ended early at unexpected line: %r", raw)
            self.old_left = self.new_left = 0
            self.hunk = None
            self.feed(raw)


def split_lines(text: str) -> list[str]:
    r"""Split diff text on "\n" only, dropping one trailing "\r" per line.

    str.splitlines() also breaks on form feeds, U+2028 and other separators
    that can legitimately appear inside a changed line.
    """
    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def parse_diff(text: str) -> UnifiedDiff:
    """Parse unified-diff text into files, hunks and numbered lines.

    Context and added lines advance the new-side line counter; removed lines
    do not. Never raises on malformed input.
    """
    parser = _DiffParser()
    for raw in split_lines(text):
        parser.feed(raw)
    return UnifiedDiff(files=parser.files)
