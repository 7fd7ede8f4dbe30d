"""review command — run the full incremental review cycle on a pull request."""

from __future__ import annotations

import click
from rich.console import Console

from prwarden_cli.bridge import fatal_errors, pr_option, prepare, record_to_state, repo_option, save_state, state_key
from prwarden_core.reviewer import run_review

console = Console()


@click.command("review")
@repo_option
@pr_option
@click.option(
    "--model",
    type=click.Choice(["openai", "anthropic"]),
    default=None,
    help="AI model provider. Overrides config file.",
)
@click.option(
    "--guidelines",
    "guidelines_path",
    default=None,
    help="Path to a Markdown file of extra review rules. Overrides config file.",
)
@click.option(
    "--shadow",
    "-s",
    is_flag=True,
    help="Dry-run mode: print the decision and comments without posting or saving state.",
)
@click.pass_context
def review_cmd(ctx, repo: str, pr_number: int, model: str | None, guidelines_path: str | None, shadow: bool):
    """Review the commits pushed since the last run and post the result.

    The first run reviews the whole pull request against its base branch.
    Later runs review only new commits: if none of the previously flagged
    lines are flagged again the PR is approved, otherwise changes are
    requested on the lines that still have issues.

    \b
    Required environment variables:
      GITHUB_TOKEN         GitHub token (or use gh CLI)
      OPENAI_API_KEY       Required when using --model openai
      ANTHROPIC_API_KEY    Required when using --model anthropic
    """
    with fatal_errors():
        target, settings, store = prepare(ctx, repo, pr_number, {"model": model, "guidelines": guidelines_path})
        settings.require_credentials()
        key = state_key(target)
        prior = record_to_state(store.load(key))
        outcome = run_review(target, settings, prior, shadow=shadow)

    # Persist only once the review is posted; every earlier exit leaves the old state.
    if outcome is None or not outcome.submitted:
        return
    save_state(store, key, outcome.state)
    if outcome.unmapped:
        console.print(f"[dim]{outcome.unmapped} annotation(s) could not be anchored and were dropped.[/dim]")
