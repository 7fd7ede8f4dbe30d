"""Exceptions raised by the review engine.

Fatal kinds propagate out of run_review and are turned into a clean exit by
the CLI. UnanchorableAnnotation is the one non-fatal kind: map_annotations
absorbs it and carries on with the remaining annotations.
"""

from __future__ import annotations


class ReviewError(Exception):
    """Base exception for all review engine errors."""


class ConfigurationError(ReviewError):
    """A required setting or credential is missing."""


class TransportError(ReviewError):
    """A call to GitHub or the language model failed."""


class MalformedResponseError(ReviewError):
    """The model's answer is not the expected JSON shape."""

    def __init__(self, message: str, raw: str = ""):
        self.raw = raw
        super().__init__(message)


class ArtifactError(ReviewError):
    """A collected comments artifact could not be read."""


class UnanchorableAnnotation(ReviewError):
    """An annotation's context matches no added line in the diff."""

    def __init__(self, context: str):
        self.context = context
        super().__init__(f"Could not map annotation to an added line: {context!r}")
