"""approve command — approve a pull request without reviewing it."""

from __future__ import annotations

import click

from prwarden_cli.bridge import fatal_errors, pr_option, prepare, repo_option
from prwarden_core.reviewer import approve_pull


@click.command("approve")
@repo_option
@pr_option
@click.option("--body", default=None, help="Review body. Defaults to a short approval note.")
@click.pass_context
def approve_cmd(ctx, repo: str, pr_number: int, body: str | None):
    """Submit an approval, skipping the diff and the model entirely.

    The stored review state is left unchanged.
    """
    with fatal_errors():
        target, settings, _ = prepare(ctx, repo, pr_number)
        settings.require_credentials(need_model=False)
        approve_pull(target, settings, body=body)
