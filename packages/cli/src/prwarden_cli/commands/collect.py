"""collect command — review a pull request but only write the comments to a file."""

from __future__ import annotations

import click

from prwarden_cli.bridge import fatal_errors, pr_option, prepare, record_to_state, repo_option, state_key
from prwarden_core.reviewer import collect_review


@click.command("collect")
@repo_option
@pr_option
@click.option("--output", "output_path", default=None, help="Artifact path. Defaults to artifact_path in config.")
@click.option(
    "--model",
    type=click.Choice(["openai", "anthropic"]),
    default=None,
    help="AI model provider. Overrides config file.",
)
@click.pass_context
def collect_cmd(ctx, repo: str, pr_number: int, output_path: str | None, model: str | None):
    """Run the review and write anchored comments to an artifact.

    Nothing is posted and the stored state is not changed. Use `submit` to
    post the artifact later, for example from a job with write permissions.
    """
    with fatal_errors():
        target, settings, store = prepare(ctx, repo, pr_number, {"model": model})
        settings.require_credentials()
        prior = record_to_state(store.load(state_key(target)))
        collect_review(target, settings, prior, output_path=output_path)
