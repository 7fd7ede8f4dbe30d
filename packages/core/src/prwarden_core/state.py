"""Cross-run review state machine.

Each run lands in one of three phases, decided from the persisted state and
the pull request's current head commit:

    no prior state                  → NO_PRIOR_REVIEW  (diff base..head)
    prior.last_commit == head       → UP_TO_DATE       (nothing to do)
    otherwise                       → REVIEWING        (diff last_commit..head)

transition() is pure so the whole decision table is testable without GitHub
or a model.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from prwarden_core.matching import MappedComment

APPROVE = "APPROVE"
REQUEST_CHANGES = "REQUEST_CHANGES"
COMMENT = "COMMENT"

APPROVE_BODY = "All issues are resolved. Approving the PR ✅"
FIRST_APPROVE_BODY = "Automated PR review found no issues. Approving the PR ✅"
REQUEST_CHANGES_BODY = "Automated PR review found critical issues. See inline comments."


class Phase(str, Enum):
    NO_PRIOR_REVIEW = "no_prior_review"
    UP_TO_DATE = "up_to_date"
    REVIEWING = "reviewing"


@dataclass
class ReviewState:
    """What we remember about a pull request between runs."""

    last_commit: str
    open_comments: list[MappedComment] = field(default_factory=list)

    @property
    def anchors(self) -> set[tuple[str, int]]:
        return {c.anchor for c in self.open_comments}


@dataclass
class ReviewAction:
    event: str  # "APPROVE" | "REQUEST_CHANGES" | "COMMENT"
    body: str
    comments: list[MappedComment] = field(default_factory=list)

    def to_payload(self) -> dict:
        """Build the create_review payload.

        GitHub rejects an approval that carries inline comments, so APPROVE
        never includes them; other events include them only when non-empty.
        """
        payload: dict = {"event": self.event, "body": self.body}
        if self.event != APPROVE and self.comments:
            payload["comments"] = [c.to_dict() for c in self.comments]
        return payload


@dataclass
class Decision:
    action: ReviewAction
    state: ReviewState


def classify(prior: ReviewState | None, head_commit: str) -> Phase:
    if prior is None:
        return Phase.NO_PRIOR_REVIEW
    if prior.last_commit == head_commit:
        return Phase.UP_TO_DATE
    return Phase.REVIEWING


def diff_range(phase: Phase, prior: ReviewState | None, head_commit: str, base_commit: str) -> tuple[str, str]:
    """Return the (base, head) commits to diff for a phase.

    A first review covers the whole change set against the target branch; a
    re-review covers only what was pushed since the last reviewed commit.
    """
    if phase is Phase.NO_PRIOR_REVIEW:
        return base_commit, head_commit
    if phase is Phase.REVIEWING:
        return prior.last_commit, head_commit
    raise ValueError(f"No diff is needed in phase {phase.value!r}.")


def _incremental_note(prior: ReviewState | None, head_commit: str) -> str:
    if prior is None:
        return ""
    return f"\n\n_Incremental review: `{prior.last_commit[:7]}` → `{head_commit[:7]}`_"


def transition(
    phase: Phase,
    prior: ReviewState | None,
    head_commit: str,
    mapped: list[MappedComment],
) -> Decision | None:
    """Decide the review action and the state to persist.

    Returns None for UP_TO_DATE: no submission and no state write.
    """
    if phase is Phase.UP_TO_DATE:
        return None

    if phase is Phase.NO_PRIOR_REVIEW:
        if mapped:
            action = ReviewAction(REQUEST_CHANGES, REQUEST_CHANGES_BODY, list(mapped))
        else:
            action = ReviewAction(APPROVE, FIRST_APPROVE_BODY)
        return Decision(action=action, state=ReviewState(last_commit=head_commit, open_comments=list(mapped)))

    # REVIEWING: only issues that land on a previously open anchor still count.
    open_anchors = prior.anchors
    relevant = [c for c in mapped if c.anchor in open_anchors]
    note = _incremental_note(prior, head_commit)
    if not relevant:
        action = ReviewAction(APPROVE, APPROVE_BODY + note)
        return Decision(action=action, state=ReviewState(last_commit=head_commit, open_comments=[]))
    action = ReviewAction(REQUEST_CHANGES, REQUEST_CHANGES_BODY + note, relevant)
    return Decision(action=action, state=ReviewState(last_commit=head_commit, open_comments=list(relevant)))
