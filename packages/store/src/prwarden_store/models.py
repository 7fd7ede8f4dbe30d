"""Persisted review state.

Decoupled from prwarden_core so the store layer can be used independently
and prwarden_core has no knowledge of persistence concerns.
"""

from __future__ import annotations

from dataclasses import dataclass, field


class StateReadError(Exception):
    """A stored record exists but cannot be decoded."""


@dataclass(frozen=True)
class StateKey:
    """Identifies one reviewed pull request."""

    owner: str
    repo: str
    number: int


@dataclass
class CommentRecord:
    """An inline comment still considered open."""

    path: str
    line: int
    body: str
    side: str = "RIGHT"


@dataclass
class StateRecord:
    """The last reviewed commit and the comments that were open after it.

    Stored as {"last_commit": ..., "previous_comments": [{path, line, side, body}]}.
    """

    last_commit: str
    previous_comments: list[CommentRecord] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "last_commit": self.last_commit,
            "previous_comments": [
                {"path": c.path, "line": c.line, "side": c.side, "body": c.body} for c in self.previous_comments
            ],
        }

    @classmethod
    def from_dict(cls, data) -> StateRecord:
        """Build a record from decoded JSON; raises StateReadError on a bad shape."""
        if not isinstance(data, dict) or not isinstance(data.get("last_commit"), str) or not data["last_commit"]:
            raise StateReadError("state record has no last_commit")
        comments = data.get("previous_comments") or []
        if not isinstance(comments, list):
            raise StateReadError("previous_comments is not a list")
        try:
            return cls(
                last_commit=data["last_commit"],
                previous_comments=[
                    CommentRecord(
                        path=c["path"],
                        line=int(c["line"]),
                        body=c.get("body", ""),
                        side=c.get("side", "RIGHT"),
                    )
                    for c in comments
                ],
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise StateReadError(f"malformed comment entry: {e}") from e
