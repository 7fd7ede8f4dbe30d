"""Intermediate artifact written by `collect` and read back by `submit`.

The artifact holds the mapped comments for one head commit, before any
reconciliation against stored state:

    {"repo": "owner/name", "pr_number": 7, "head_commit": "...",
     "base_commit": "...", "phase": "no_prior_review" | "reviewing",
     "comments": [{path, line, side, body}, ...]}
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

from prwarden_core.errors import ArtifactError
from prwarden_core.matching import MappedComment
from prwarden_core.state import Phase


@dataclass
class CollectedReview:
    repo: str
    pr_number: int
    head_commit: str
    base_commit: str
    comments: list[MappedComment] = field(default_factory=list)
    # Phase the comments were collected in; a REVIEWING artifact covers base_commit..head_commit only.
    phase: Phase = Phase.NO_PRIOR_REVIEW


def write_artifact(path: str, collected: CollectedReview) -> None:
    data = {
        "repo": collected.repo,
        "pr_number": collected.pr_number,
        "head_commit": collected.head_commit,
        "base_commit": collected.base_commit,
        "phase": collected.phase.value,
        "comments": [c.to_dict() for c in collected.comments],
    }
    Path(path).write_text(json.dumps(data, indent=2), encoding="utf-8")


def read_artifact(path: str) -> CollectedReview:
    p = Path(path)
    if not p.exists():
        raise ArtifactError(f"Artifact not found: {path}")
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
        return CollectedReview(
            repo=data["repo"],
            pr_number=int(data["pr_number"]),
            head_commit=data["head_commit"],
            base_commit=data.get("base_commit", ""),
            comments=[MappedComment.from_dict(c) for c in data.get("comments", [])],
            phase=Phase(data.get("phase", Phase.NO_PRIOR_REVIEW.value)),
        )
    except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
        raise ArtifactError(f"Artifact {path} is not a valid collected review: {e}") from e
