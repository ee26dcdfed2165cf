"""
extloader CLI - inspect extension registrations from the command line.

Useful for checking which providers an abstraction resolves to in the
current environment, and whether they can be instantiated.
"""

from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from extloader.logging_config import setup_logging

app = typer.Typer(
    name="extloader",
    help="extloader - inspect declarative extension registrations",
    no_args_is_help=True,
)

console = Console()


def _build_registry(roots: Optional[List[Path]], entry_points: bool):
    from extloader.registry import ExtensionRegistry

    return ExtensionRegistry(extra_roots=roots or None, enable_entry_points=entry_points)


def _import_abstraction(abstraction: str) -> type:
    from extloader.discovery import resolve_identifier

    try:
        return resolve_identifier(abstraction)
    except Exception as e:
        console.print(
            f"[bold red]Error:[/bold red] Cannot import {escape(abstraction)}: {escape(str(e))}"
        )
        raise typer.Exit(1)


@app.command()
def providers(
    abstraction: str = typer.Argument(..., help="Abstraction path, e.g. 'pkg.module.Greeter'"),
    root: Optional[List[Path]] = typer.Option(
        None, "--root", help="Additional service root (repeatable)"
    ),
    entry_points: bool = typer.Option(True, help="Read package entry points"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """
    List the providers registered for an abstraction.

    The default provider, if declared, is marked with '*'.
    """
    from extloader.exceptions import ExtensionError, qualified_name

    setup_logging(level="DEBUG" if verbose else "WARNING")

    target = _import_abstraction(abstraction)
    registry = _build_registry(root, entry_points)

    try:
        loader = registry.get_extension_loader(target)
        classes = loader.get_extension_classes()
        default_name = loader.default_name
    except ExtensionError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)

    if not classes:
        console.print(f"[bold blue]Providers of:[/bold blue] {qualified_name(target)}")
        console.print("[yellow]No providers registered[/yellow]")
        raise typer.Exit(0)

    table = Table(title=f"Providers of {qualified_name(target)}")
    table.add_column("default", justify="center")
    table.add_column("name")
    table.add_column("implementation")
    for name, implementation in classes.items():
        table.add_row(
            "*" if name == default_name else "",
            escape(name),
            qualified_name(implementation),
        )

    console.print(table)
    console.print(f"Found {len(classes)} provider(s)")
    if default_name and default_name not in classes:
        console.print(
            f"[yellow]⚠ Default provider '{escape(default_name)}' is not registered[/yellow]"
        )


@app.command()
def get(
    abstraction: str = typer.Argument(..., help="Abstraction path, e.g. 'pkg.module.Greeter'"),
    name: Optional[str] = typer.Argument(None, help="Provider name (default provider if omitted)"),
    root: Optional[List[Path]] = typer.Option(
        None, "--root", help="Additional service root (repeatable)"
    ),
    entry_points: bool = typer.Option(True, help="Read package entry points"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """
    Instantiate a provider and print it.

    Fails when the provider cannot be resolved or constructed.
    """
    from extloader.exceptions import ExtensionError, qualified_name

    setup_logging(level="DEBUG" if verbose else "WARNING")

    target = _import_abstraction(abstraction)
    registry = _build_registry(root, entry_points)

    try:
        instance = registry.get_extension(target, name)
    except ExtensionError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)

    if instance is None:
        console.print(
            f"[bold red]Error:[/bold red] {qualified_name(target)} declares no default provider"
        )
        raise typer.Exit(1)

    console.print(f"[green]✓[/green] {qualified_name(type(instance))}")
    console.print(f"  {escape(repr(instance))}")


if __name__ == "__main__":
    app()
