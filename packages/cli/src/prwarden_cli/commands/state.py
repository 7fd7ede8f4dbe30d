"""state command — display the stored review state of a pull request."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from prwarden_cli.bridge import fatal_errors, pr_option, repo_option, state_key
from prwarden_core.config import ReviewTarget

console = Console()


@click.command("state")
@repo_option
@pr_option
@click.pass_context
def state_cmd(ctx, repo: str, pr_number: int):
    """Show the last reviewed commit and the comments still open."""
    with fatal_errors():
        target = ReviewTarget.parse(repo, pr_number)

    store = ctx.obj["store"]
    record = store.load(state_key(target))
    if record is None:
        console.print("[yellow]No review state stored. The next run will be a first review.[/yellow]")
        return

    console.print(f"Last reviewed commit: [bold]{record.last_commit[:7]}[/bold]")
    if not record.previous_comments:
        console.print("[green]No open comments.[/green]")
        return

    table = Table(title=f"Open comments — {target.full_name}#{target.number}", show_header=True, header_style="bold cyan")
    table.add_column("File", max_width=50)
    table.add_column("Line", justify="right", width=6)
    table.add_column("Comment", max_width=60)
    for c in record.previous_comments:
        first_line = c.body.splitlines()[0] if c.body else ""
        table.add_row(c.path, str(c.line), first_line)

    console.print(table)
