"""CLI entry point for prwarden.

Commands (all drive the same review engine):
  review   — full cycle: diff, annotate, decide, submit, persist state
  collect  — run the review and write mapped comments to an artifact only
  submit   — reconcile a collected artifact with stored state and submit it
  approve  — submit an approval without running the review
  state    — show the stored review state for a pull request
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console

from prwarden_cli.commands.approve import approve_cmd
from prwarden_cli.commands.collect import collect_cmd
from prwarden_cli.commands.review import review_cmd
from prwarden_cli.commands.state import state_cmd
from prwarden_cli.commands.submit import submit_cmd

console = Console()


def _build_store(config: dict):
    """Instantiate the configured state store from .prwarden.yml settings.

    Store selection:
      store: file   → FileStore   (JSON files under `workspace`, the default)
      store: sqlite → SQLiteStore (uses store_path or .prwarden.db)
      store: gist   → GistStore   (requires gist_id and github_token)

    This factory lives in cli.py so neither prwarden_core nor prwarden_store
    know about the CLI config format.
    """
    from prwarden_store.file import FileStore

    store_type = config.get("store", "file")

    if store_type == "gist":
        from prwarden_store.gist import GistStore

        gist_id = config.get("gist_id")
        token = config.get("github_token")
        if not gist_id or not token:
            raise click.UsageError("store: gist requires gist_id in .prwarden.yml and a GitHub token.")
        return GistStore(gist_id=gist_id, token=token)

    if store_type == "sqlite":
        from prwarden_store.sqlite import SQLiteStore

        return SQLiteStore(db_path=config.get("store_path") or ".prwarden.db")

    if store_type != "file":
        raise click.UsageError(f"Unknown store {store_type!r}. Choose 'file', 'sqlite' or 'gist'.")
    return FileStore(root=config.get("workspace") or ".")


@click.group()
@click.version_option(
    version=importlib.metadata.version("prwarden"),
    prog_name="prwarden",
)
@click.option(
    "--config",
    "config_path",
    default=".prwarden.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="PRWARDEN_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Log debug diagnostics (unmapped annotations, skipped lines).")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """Incremental AI review for GitHub pull requests."""
    from prwarden_cli.auth import resolve_github_token
    from prwarden_core.config import load_config

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)

    config = load_config(config_path)

    # Resolve token early so all subcommands share the same resolution.
    token = resolve_github_token()
    if token:
        config["github_token"] = token

    store = _build_store(config)
    ctx.obj["store"] = store
    ctx.obj["config"] = config
    ctx.call_on_close(store.close)


main.add_command(review_cmd)
main.add_command(collect_cmd)
main.add_command(submit_cmd)
main.add_command(approve_cmd)
main.add_command(state_cmd)
