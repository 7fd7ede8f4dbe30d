"""Incremental PR review orchestration.

One run walks the pull request through:

    metadata → classify(prior, head) → diff → model → match → transition → submit

The stored state is read by the caller and passed in as ``prior``; the state
to persist comes back on the ReviewOutcome. Nothing here writes to a store,
so a failure at any step leaves the previous state in place and the next run
retries from the same baseline.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from rich.console import Console

from prwarden_core.config import ReviewTarget, Settings
from prwarden_core.diff import parse_diff
from prwarden_core.errors import ArtifactError
from prwarden_core.gh.pull_request import get_diff_text, get_pull, get_repo, get_review_commits, submit_review
from prwarden_core.matching import AnnotationCandidate, BasePhraseExtractor, MappedComment, map_annotations
from prwarden_core.providers.anthropic import AnthropicReviewer
from prwarden_core.providers.base import BaseReviewer
from prwarden_core.providers.openai import OpenAIReviewer
from prwarden_core.state import APPROVE, Phase, ReviewAction, ReviewState, classify, diff_range, transition
from prwarden_core.utils.artifact import CollectedReview, write_artifact

console = Console()
logger = logging.getLogger(__name__)

UNCONDITIONAL_APPROVE_BODY = "Approved without automated review."


@dataclass
class ReviewOutcome:
    """What a run decided. ``state`` is what the caller should persist."""

    repo: str
    pr_number: int
    phase: Phase | None
    event: str
    head_commit: str
    base_commit: str
    comments: list[MappedComment] = field(default_factory=list)
    state: ReviewState | None = None
    unmapped: int = 0
    submitted: bool = False
    reviewed_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


def _get_reviewer(settings: Settings) -> BaseReviewer:
    kwargs = {"max_comments": settings.max_comments, "guidelines": settings.guidelines}
    if settings.model == "anthropic":
        return AnthropicReviewer(api_key=settings.anthropic_api_key, **kwargs)
    if settings.model == "openai":
        return OpenAIReviewer(api_key=settings.openai_api_key, **kwargs)
    raise ValueError(f"Unknown model provider: {settings.model!r}. Choose 'anthropic' or 'openai'.")


def _is_off_topic(candidate: AnnotationCandidate) -> bool:
    """True for class-design remarks the model tends to make without evidence in the diff."""
    text = candidate.comment.lower()
    return ("class" in text and "instance" in text) or "static method" in text


def _truncate(diff_text: str, max_chars: int) -> str:
    if len(diff_text) > max_chars:
        return diff_text[:max_chars] + "\n... [diff truncated]"
    return diff_text


def annotate_diff(
    repo,
    base: str,
    head: str,
    settings: Settings,
    reviewer: BaseReviewer,
    extractor: BasePhraseExtractor | None = None,
) -> tuple[list[MappedComment], list[AnnotationCandidate]]:
    """Fetch the diff for base..head, ask the model, and anchor its answers."""
    diff_text = get_diff_text(repo, base, head)
    diff = parse_diff(diff_text)
    console.print(f"[cyan]Reviewing {base[:7]} → {head[:7]} ({len(diff.files)} file(s) changed)[/cyan]")

    candidates = reviewer.review(_truncate(diff_text, settings.max_diff_chars))
    if settings.filter_design_comments:
        kept = [c for c in candidates if not _is_off_topic(c)]
        if len(kept) < len(candidates):
            logger.info("Dropped %d off-topic annotation(s)", len(candidates) - len(kept))
        candidates = kept

    mapped, unmapped = map_annotations(diff, candidates, extractor)
    console.print(f"  {len(candidates)} annotation(s), {len(mapped)} anchored.")
    return mapped, unmapped


def print_shadow_comments(comments: list[MappedComment]) -> None:
    """Print review comments to the terminal without posting to GitHub."""
    if not comments:
        console.print("[yellow]Shadow mode: no comments generated.[/yellow]")
        return
    console.print(f"\n[bold]Shadow review — {len(comments)} comment(s) (not posted)[/bold]\n")
    for c in comments:
        console.print(f"[bold cyan]{c.path}[/bold cyan]  line [bold]{c.line}[/bold]")
        console.print(f"  {c.body}")
        console.print()


def _open_pull(target: ReviewTarget, settings: Settings, repo_obj=None):
    this_repo = repo_obj if repo_obj is not None else get_repo(target.full_name, token=settings.github_token)
    return this_repo, get_pull(this_repo, target.number)


def _plan(settings: Settings, prior: ReviewState | None, this_pr):
    """Return (phase, commits), or None when the run should stop here."""
    commits = get_review_commits(this_pr)
    if commits.draft and not settings.review_draft_prs:
        console.print(
            "[yellow]Skipping draft PR. Set review_draft_prs: true in .prwarden.yml to review drafts.[/yellow]"
        )
        return None
    phase = classify(prior, commits.head)
    if phase is Phase.UP_TO_DATE:
        console.print("[yellow]No new commits since the last review. Nothing to do.[/yellow]")
        return None
    return phase, commits


def _submit(this_pr, action: ReviewAction) -> None:
    submit_review(this_pr, action.to_payload())
    if action.event == APPROVE:
        console.print("\n[green]Review posted: APPROVE[/green]")
    else:
        console.print(f"\n[green]Review posted: {action.event}. {len(action.comments)} comment(s).[/green]")


def run_review(
    target: ReviewTarget,
    settings: Settings,
    prior: ReviewState | None,
    repo_obj=None,
    reviewer: BaseReviewer | None = None,
    extractor: BasePhraseExtractor | None = None,
    shadow: bool = False,
) -> ReviewOutcome | None:
    """Run the full review cycle for one pull request.

    Returns None when the PR is a skipped draft or nothing was pushed since
    the last review; in that case nothing was fetched beyond PR metadata and
    nothing should be persisted.
    """
    this_repo, this_pr = _open_pull(target, settings, repo_obj)
    plan = _plan(settings, prior, this_pr)
    if plan is None:
        return None
    phase, commits = plan

    base, head = diff_range(phase, prior, commits.head, commits.base)
    reviewer = reviewer or _get_reviewer(settings)
    mapped, unmapped = annotate_diff(this_repo, base, head, settings, reviewer, extractor)

    decision = transition(phase, prior, head, mapped)
    outcome = ReviewOutcome(
        repo=target.full_name,
        pr_number=target.number,
        phase=phase,
        event=decision.action.event,
        head_commit=head,
        base_commit=base,
        comments=decision.action.comments,
        state=decision.state,
        unmapped=len(unmapped),
    )

    if shadow:
        print_shadow_comments(decision.action.comments)
        console.print(f"[bold]Shadow review complete. Would post {decision.action.event}.[/bold]")
        return outcome

    _submit(this_pr, decision.action)
    outcome.submitted = True
    return outcome


def collect_review(
    target: ReviewTarget,
    settings: Settings,
    prior: ReviewState | None,
    output_path: str | None = None,
    repo_obj=None,
    reviewer: BaseReviewer | None = None,
    extractor: BasePhraseExtractor | None = None,
) -> CollectedReview | None:
    """Run the pipeline up to matching and write the mapped comments to an artifact.

    Nothing is submitted and no state is produced; `submit_collected` does the
    reconciliation later.
    """
    this_repo, this_pr = _open_pull(target, settings, repo_obj)
    plan = _plan(settings, prior, this_pr)
    if plan is None:
        return None
    phase, commits = plan

    base, head = diff_range(phase, prior, commits.head, commits.base)
    reviewer = reviewer or _get_reviewer(settings)
    mapped, _ = annotate_diff(this_repo, base, head, settings, reviewer, extractor)

    collected = CollectedReview(
        repo=target.full_name,
        pr_number=target.number,
        head_commit=head,
        base_commit=base,
        comments=mapped,
        phase=phase,
    )
    path = output_path or settings.artifact_path
    write_artifact(path, collected)
    console.print(f"[green]Wrote {len(mapped)} comment(s) to {path}[/green]")
    return collected


def _check_baseline(prior: ReviewState | None, collected: CollectedReview) -> None:
    if prior is None:
        if collected.phase is Phase.REVIEWING:
            raise ArtifactError(
                f"Artifact is an incremental review from {collected.base_commit[:7]} but no review state is stored."
            )
        return
    if collected.base_commit != prior.last_commit:
        raise ArtifactError(
            f"Stale artifact: collected from {collected.base_commit[:7]}, "
            f"but the last reviewed commit is {prior.last_commit[:7]}. Run collect again."
        )


def submit_collected(
    target: ReviewTarget,
    settings: Settings,
    prior: ReviewState | None,
    collected: CollectedReview,
    repo_obj=None,
) -> ReviewOutcome | None:
    """Reconcile a collected artifact against the stored state and submit it.

    The artifact must have been collected against the current baseline: its
    base is the stored last commit, or it is a first review when nothing is
    stored. Anything else is stale and raises ArtifactError.
    """
    if collected.repo != target.full_name or collected.pr_number != target.number:
        raise ArtifactError(
            f"Artifact is for {collected.repo}#{collected.pr_number}, not {target.full_name}#{target.number}."
        )

    phase = classify(prior, collected.head_commit)
    if phase is Phase.UP_TO_DATE:
        console.print("[yellow]Collected commit was already reviewed. Nothing to do.[/yellow]")
        return None

    _check_baseline(prior, collected)

    _, this_pr = _open_pull(target, settings, repo_obj)
    decision = transition(phase, prior, collected.head_commit, collected.comments)
    _submit(this_pr, decision.action)
    return ReviewOutcome(
        repo=target.full_name,
        pr_number=target.number,
        phase=phase,
        event=decision.action.event,
        head_commit=collected.head_commit,
        base_commit=collected.base_commit,
        comments=decision.action.comments,
        state=decision.state,
        submitted=True,
    )


def approve_pull(target: ReviewTarget, settings: Settings, repo_obj=None, body: str | None = None) -> ReviewOutcome:
    """Submit an approval without fetching the diff or calling the model.

    The stored state is left alone: ``state`` on the outcome is None.
    """
    _, this_pr = _open_pull(target, settings, repo_obj)
    commits = get_review_commits(this_pr)
    _submit(this_pr, ReviewAction(APPROVE, body or UNCONDITIONAL_APPROVE_BODY))
    return ReviewOutcome(
        repo=target.full_name,
        pr_number=target.number,
        phase=None,
        event=APPROVE,
        head_commit=commits.head,
        base_commit=commits.base,
        submitted=True,
    )
