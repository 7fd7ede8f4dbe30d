from __future__ import annotations

import logging
from dataclasses import dataclass

from github import Github, GithubException

from prwarden_core.diff import split_lines
from prwarden_core.errors import TransportError

logger = logging.getLogger(__name__)


@dataclass
class PullCommits:
    head: str
    base: str
    draft: bool = False


def get_repo(repo_name: str, token: str):
    try:
        return Github(token).get_repo(repo_name)
    except GithubException as e:
        raise TransportError(f"Could not open repository {repo_name}: {e}") from e


def get_pull(repo, pr_number: int):
    try:
        return repo.get_pull(pr_number)
    except GithubException as e:
        raise TransportError(f"PR #{pr_number} not found: {e}") from e


def get_review_commits(pr) -> PullCommits:
    """Return the head commit, the target branch commit and the draft flag."""
    return PullCommits(head=pr.head.sha, base=pr.base.sha, draft=bool(pr.draft))


def _file_header(f) -> list[str]:
    old_path = f.previous_filename or f.filename
    lines = [f"diff --git a/{old_path} b/{f.filename}"]
    if f.status == "added":
        lines += ["new file mode 100644", "--- /dev/null", f"+++ b/{f.filename}"]
    elif f.status == "removed":
        lines += ["deleted file mode 100644", f"--- a/{old_path}", "+++ /dev/null"]
    else:
        if f.status == "renamed":
            lines += [f"rename from {old_path}", f"rename to {f.filename}"]
        lines += [f"--- a/{old_path}", f"+++ b/{f.filename}"]
    return lines


def get_diff_text(repo, base_sha: str, head_sha: str) -> str:
    """Return unified-diff text for the commits after base up to and including head.

    Built from GitHub's compare API: each changed file contributes git-style
    headers followed by its patch. Files without a patch (binary or too large)
    keep their headers only.
    """
    try:
        comparison = repo.compare(base_sha, head_sha)
        files = list(comparison.files)
    except GithubException as e:
        raise TransportError(f"Could not compare {base_sha[:7]}...{head_sha[:7]}: {e}") from e

    lines: list[str] = []
    for f in files:
        lines.extend(_file_header(f))
        if f.patch:
            lines.extend(split_lines(f.patch))
        else:
            logger.debug("No patch for %s (binary or too large)", f.filename)
    return "\n".join(lines) + ("\n" if lines else "")


def submit_review(pr, payload: dict):
    """Post a review built by ReviewAction.to_payload()."""
    try:
        return pr.create_review(**payload)
    except GithubException as e:
        raise TransportError(f"Could not submit {payload.get('event')} review: {e}") from e
