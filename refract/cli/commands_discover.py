"""``refract discover`` and ``refract methods``: build documents from receivers."""

from __future__ import annotations

import json
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from refract.config import DiscoverConfig, ReceiverSpec
from refract.conventions.base import available_conventions
from refract.core.errors import RefractError
from refract.core.model import OpenRPCDocument

console = Console()


def _parse_target(text: str) -> ReceiverSpec:
    """``[name=]package.module[:attribute]``."""
    name, sep, target = text.partition("=")
    if not sep:
        name, target = "", text
    if not target:
        raise click.BadParameter(f"empty target in {text!r}")
    return ReceiverSpec(target=target, name=name)


def _build(
    targets: tuple[str, ...],
    config_path: str | None,
    convention: str | None,
    title: str | None,
    base_version: str | None,
    flatten: bool,
    validate: bool,
    duplicates: str | None,
    source_links: tuple[str, ...],
) -> OpenRPCDocument:
    from refract.api import discover_from_config
    from refract.cli.validation import validate_json_file

    if config_path:
        config = DiscoverConfig.from_dict(validate_json_file(config_path, "config"))
    else:
        config = DiscoverConfig()
    config.receivers.extend(_parse_target(t) for t in targets)
    if not config.receivers:
        raise click.UsageError("No receivers: pass TARGET arguments or --config.")

    if convention:
        config.convention = convention
    if title is not None:
        config.title = title
    if base_version is not None:
        config.version = base_version
    if duplicates:
        config.duplicate_policy = duplicates
    config.flatten = config.flatten or flatten
    config.validate = config.validate or validate
    for entry in source_links:
        package, sep, url = entry.partition("=")
        if not sep or not package or not url:
            raise click.BadParameter(f"expected PACKAGE=URL, got {entry!r}", param_hint="--source-link")
        config.source_links[package] = url

    try:
        return discover_from_config(config)
    except (RefractError, KeyError) as exc:
        raise click.ClickException(str(exc)) from exc


def _methods_table(document: OpenRPCDocument) -> Table:
    table = Table(title=f"{document.info.title or 'OpenRPC'} {document.info.version}")
    table.add_column("Method", style="cyan")
    table.add_column("Params")
    table.add_column("Result", style="magenta")
    table.add_column("Deprecated", justify="center")
    for m in document.methods:
        params = ", ".join(f"{p.name}: {p.description}" for p in m.params)
        table.add_row(m.name, params, m.result.description, "[yellow]yes[/yellow]" if m.deprecated else "")
    return table


_common_options = [
    click.argument("targets", nargs=-1),
    click.option("--config", "config_path", type=click.Path(exists=True),
                 help="JSON discovery configuration."),
    click.option("--convention", "-c", type=click.Choice(available_conventions()), default=None,
                 help="Default convention (default: standard)."),
    click.option("--title", default=None, help="Document title."),
    click.option("--version", "base_version", default=None,
                 help="Base version; a build timestamp is appended."),
    click.option("--flatten", is_flag=True, default=False,
                 help="Move schemas into components.schemas."),
    click.option("--validate", is_flag=True, default=False,
                 help="Validate the document before writing it."),
    click.option("--duplicates", type=click.Choice(["allow", "error", "shadow"]), default=None,
                 help="Policy for method names produced twice."),
    click.option("--source-link", "source_links", multiple=True, metavar="PACKAGE=URL",
                 help="Repository base URL for a top-level package."),
]


def _with_common_options(fn):
    for decorator in reversed(_common_options):
        fn = decorator(fn)
    return fn


@click.command("discover")
@_with_common_options
@click.option("--out", "-o", type=click.Path(), default=None, help="Write the document here.")
@click.option("--format", "fmt", type=click.Choice(["json", "table"]), default="json",
              help="Output format.")
def discover(
    targets: tuple[str, ...],
    config_path: str | None,
    convention: str | None,
    title: str | None,
    base_version: str | None,
    flatten: bool,
    validate: bool,
    duplicates: str | None,
    source_links: tuple[str, ...],
    out: str | None,
    fmt: str,
) -> None:
    """Build an OpenRPC document.

    TARGET is ``[name=]package.module[:attribute]``; classes are instantiated
    without arguments and bare modules are described function by function.
    """
    document = _build(targets, config_path, convention, title, base_version,
                      flatten, validate, duplicates, source_links)

    if fmt == "table":
        console.print(_methods_table(document))
        return

    payload = json.dumps(document.to_dict(), indent=2)
    if out:
        Path(out).parent.mkdir(parents=True, exist_ok=True)
        Path(out).write_text(payload + "\n", encoding="utf-8")
        console.print(f"[green]Wrote {len(document.methods)} methods to {out}[/green]")
    else:
        click.echo(payload)


@click.command("methods")
@_with_common_options
def methods(
    targets: tuple[str, ...],
    config_path: str | None,
    convention: str | None,
    title: str | None,
    base_version: str | None,
    flatten: bool,
    validate: bool,
    duplicates: str | None,
    source_links: tuple[str, ...],
) -> None:
    """List the methods TARGET receivers expose."""
    document = _build(targets, config_path, convention, title, base_version,
                      flatten, validate, duplicates, source_links)
    console.print(_methods_table(document))
