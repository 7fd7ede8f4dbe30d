"""Anchor free-text model annotations to added lines of a diff.

The model describes each issue with a ``context`` snippet rather than a line
number. We turn that snippet into candidate phrases and look for the first
added line, in diff order, that contains one of them:

    context → BasePhraseExtractor.extract() → phrases (longest first)
            → find_anchor(diff, phrases) → MappedComment

Phrase extraction is a strategy object so a structural or embedding-based
matcher can replace the regex heuristic without touching the orchestrator.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Iterable

from prwarden_core.diff import UnifiedDiff
from prwarden_core.errors import UnanchorableAnnotation

logger = logging.getLogger(__name__)

RIGHT = "RIGHT"

# Contexts longer than this get broken into sub-phrases; it is also the
# length of the catch-all prefix phrase.
SHORT_CONTEXT_LIMIT = 30

_ELLIPSIS_RE = re.compile(r"\{\s*(?:\.\.\.|…)\s*\}")
_PHRASE_RE = re.compile(
    r"([a-zA-Z0-9_\.]+\([^)]+\))"  # call: foo.bar(x)
    r"|([a-zA-Z0-9_]+\.[a-zA-Z0-9_]+)"  # member access: req.body
    r"|([a-zA-Z0-9_]+\s*===\s*[^\s]+)"  # strict equality: t.id === id
)


@dataclass
class AnnotationCandidate:
    """One issue as reported by the model, before it is anchored."""

    context: str
    comment: str
    suggestion: str = ""

    @property
    def body(self) -> str:
        return f"Issue: {self.comment}\n\n**Suggestion:** {self.suggestion}"


@dataclass
class MappedComment:
    """An inline comment anchored to an added line (always the RIGHT side).

    Two comments are the same issue when their (path, line) anchors are equal;
    the body does not take part in that comparison.
    """

    path: str
    line: int
    body: str = field(compare=False)
    side: str = field(default=RIGHT, compare=False)

    @property
    def anchor(self) -> tuple[str, int]:
        return (self.path, self.line)

    def to_dict(self) -> dict:
        return {"path": self.path, "line": self.line, "side": self.side, "body": self.body}

    @classmethod
    def from_dict(cls, data: dict) -> MappedComment:
        return cls(path=data["path"], line=int(data["line"]), body=data.get("body", ""), side=data.get("side", RIGHT))


@dataclass(frozen=True)
class Anchor:
    path: str
    line: int
    phrase: str


def normalize(text: str) -> str:
    return text.strip().lower()


class BasePhraseExtractor(ABC):
    """Turns an annotation context into candidate phrases, longest first."""

    def extract(self, context: str) -> list[str]:
        phrases = [p.strip() for p in self._extract(normalize(context))]
        unique = list(dict.fromkeys(p for p in phrases if p))
        return sorted(unique, key=len, reverse=True)

    @abstractmethod
    def _extract(self, normalized: str) -> list[str]:
        """Return raw phrases for an already trimmed, lowercased context."""


class RegexPhraseExtractor(BasePhraseExtractor):
    """Default heuristic: skeleton stripping, code-shape regexes, prefix fallback."""

    def __init__(self, short_limit: int = SHORT_CONTEXT_LIMIT):
        self.short_limit = short_limit

    def _extract(self, normalized: str) -> list[str]:
        if _ELLIPSIS_RE.search(normalized):
            remainder = _ELLIPSIS_RE.sub("", normalized).strip()
            if remainder:
                return [remainder]
            return self._sub_phrases(normalized)
        if len(normalized) > self.short_limit:
            return self._sub_phrases(normalized)
        return [normalized]

    def _sub_phrases(self, normalized: str) -> list[str]:
        phrases = [m.group(0) for m in _PHRASE_RE.finditer(normalized)]
        phrases.append(normalized[: self.short_limit])
        return phrases


def find_anchor(diff: UnifiedDiff, phrases: list[str]) -> Anchor | None:
    """Return the first added line, in diff order, containing any phrase.

    Phrases are tried longest first on each line. The first line that matches
    wins for the whole diff, even if a later file has a better match.
    """
    ordered = sorted((p for p in phrases if p), key=len, reverse=True)
    if not ordered:
        return None
    for file_diff, line in diff.added_lines():
        content = normalize(line.text)
        for phrase in ordered:
            if phrase in content:
                return Anchor(path=file_diff.path, line=line.new_line_number, phrase=phrase)
    return None


def match_annotation(
    diff: UnifiedDiff,
    candidate: AnnotationCandidate,
    extractor: BasePhraseExtractor | None = None,
) -> MappedComment:
    """Anchor one annotation or raise UnanchorableAnnotation."""
    extractor = extractor or RegexPhraseExtractor()
    anchor = find_anchor(diff, extractor.extract(candidate.context))
    if anchor is None:
        raise UnanchorableAnnotation(candidate.context)
    logger.debug("Anchored %r to %s:%d via %r", candidate.context, anchor.path, anchor.line, anchor.phrase)
    return MappedComment(path=anchor.path, line=anchor.line, body=candidate.body)


def map_annotations(
    diff: UnifiedDiff,
    candidates: Iterable[AnnotationCandidate],
    extractor: BasePhraseExtractor | None = None,
) -> tuple[list[MappedComment], list[AnnotationCandidate]]:
    """Anchor every annotation; return (mapped, unmapped).

    Unmapped annotations are logged and dropped from the review, since an
    inline comment needs a concrete file and line.
    """
    extractor = extractor or RegexPhraseExtractor()
    mapped: list[MappedComment] = []
    unmapped: list[AnnotationCandidate] = []
    for candidate in candidates:
        try:
            mapped.append(match_annotation(diff, candidate, extractor))
        except UnanchorableAnnotation as e:
            logger.warning("%s", e)
            unmapped.append(candidate)
    return mapped, unmapped
