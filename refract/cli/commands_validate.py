"""``refract validate``: check OpenRPC documents."""

from __future__ import annotations

import json
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from refract.core.schemas import validate_file


@click.command("validate")
@click.argument("documents", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option("--format", "fmt", type=click.Choice(["table", "json"]), default="table",
              help="Output format.")
@click.option("--strict", is_flag=True, default=False,
              help="Exit with non-zero status if any document is invalid.")
def validate(documents: tuple[str, ...], fmt: str, strict: bool) -> None:
    """Validate OpenRPC DOCUMENTS and the JSON schemas they embed."""
    err_console = Console(stderr=True)

    results = []
    total_errors = 0
    for doc in documents:
        errs = validate_file(doc)
        total_errors += len(errs)
        results.append({
            "file": doc,
            "status": "invalid" if errs else "valid",
            "errors": errs,
        })

    if fmt == "json":
        click.echo(json.dumps({"results": results, "total_errors": total_errors}, indent=2))
    else:
        table = Table(title="OpenRPC Validation")
        table.add_column("File", style="cyan")
        table.add_column("Status")
        table.add_column("Errors", style="red")
        for r in results:
            status = "[green]valid[/green]" if r["status"] == "valid" else "[red]INVALID[/red]"
            err_text = "\n".join(r["errors"][:3])
            if len(r["errors"]) > 3:
                err_text += f"\n... +{len(r['errors']) - 3} more"
            table.add_row(Path(r["file"]).name, status, err_text)

        err_console.print(table)
        if total_errors:
            err_console.print(f"\n[red]{total_errors} validation error(s) found.[/red]")
        else:
            err_console.print("\n[green]All documents are valid.[/green]")

    if strict and total_errors:
        raise SystemExit(1)
