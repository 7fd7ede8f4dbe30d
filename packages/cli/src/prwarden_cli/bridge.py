"""Glue between the click commands, prwarden_core and prwarden_store.

The CLI owns these mappings: prwarden_core has no store knowledge and
prwarden_store has no core knowledge. The CLI bridges the two.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager

import click

from prwarden_core.config import ReviewTarget, Settings, build_settings
from prwarden_core.errors import ConfigurationError, ReviewError
from prwarden_core.matching import MappedComment
from prwarden_core.state import ReviewState
from prwarden_store.models import CommentRecord, StateKey, StateRecord

logger = logging.getLogger(__name__)


def state_key(target: ReviewTarget) -> StateKey:
    return StateKey(owner=target.owner, repo=target.repo, number=target.number)


def record_to_state(record: StateRecord | None) -> ReviewState | None:
    if record is None:
        return None
    return ReviewState(
        last_commit=record.last_commit,
        open_comments=[MappedComment(path=c.path, line=c.line, body=c.body, side=c.side) for c in record.previous_comments],
    )


def state_to_record(state: ReviewState) -> StateRecord:
    return StateRecord(
        last_commit=state.last_commit,
        previous_comments=[CommentRecord(path=c.path, line=c.line, body=c.body, side=c.side) for c in state.open_comments],
    )


@contextmanager
def fatal_errors():
    """Turn engine errors into a clean click exit; nothing is persisted."""
    try:
        yield
    except ConfigurationError as e:
        raise click.UsageError(str(e))
    except ReviewError as e:
        logger.error("Review aborted (%s): %s", type(e).__name__, e)
        raise click.ClickException(f"{type(e).__name__}: {e}")


def save_state(store, key: StateKey, state: ReviewState) -> None:
    """Persist the state of a posted review, exiting cleanly if the store fails."""
    try:
        store.save(key, state_to_record(state))
    except (OSError, sqlite3.Error) as e:
        logger.error("Could not save review state for %s/%s#%d: %s", key.owner, key.repo, key.number, e)
        raise click.ClickException(
            f"The review was posted but its state could not be saved ({type(e).__name__}: {e}). "
            "The next run will review from the previous baseline."
        )


def prepare(ctx: click.Context, repo: str, pr_number: int, overrides: dict | None = None):
    """Assemble the immutable target and settings for one command.

    Returns (target, settings, store). Raises ConfigurationError before any
    network call when the repository name or a credential is missing.
    """
    config = dict(ctx.obj["config"])
    for key, value in (overrides or {}).items():
        if value is not None:
            config[key] = value
    target = ReviewTarget.parse(repo, pr_number)
    settings: Settings = build_settings(config)
    return target, settings, ctx.obj["store"]


repo_option = click.option(
    "--repo",
    required=True,
    envvar="GITHUB_REPOSITORY",
    help="GitHub repository in owner/name format.",
)
pr_option = click.option(
    "--pr",
    "pr_number",
    type=int,
    required=True,
    envvar="PR_NUMBER",
    help="Pull request number.",
)
