"""submit command — post a previously collected artifact."""

from __future__ import annotations

import click

from prwarden_cli.bridge import fatal_errors, pr_option, prepare, record_to_state, repo_option, save_state, state_key
from prwarden_core.reviewer import submit_collected
from prwarden_core.utils.artifact import read_artifact


@click.command("submit")
@repo_option
@pr_option
@click.option("--input", "input_path", default=None, help="Artifact path. Defaults to artifact_path in config.")
@click.pass_context
def submit_cmd(ctx, repo: str, pr_number: int, input_path: str | None):
    """Submit comments written by `collect`.

    The artifact goes through the same open/resolved reconciliation as a full
    review, and the stored state is updated after the review is posted.
    """
    with fatal_errors():
        target, settings, store = prepare(ctx, repo, pr_number)
        settings.require_credentials(need_model=False)
        collected = read_artifact(input_path or settings.artifact_path)
        key = state_key(target)
        prior = record_to_state(store.load(key))
        outcome = submit_collected(target, settings, prior, collected)

    if outcome is not None and outcome.state is not None:
        save_state(store, key, outcome.state)
