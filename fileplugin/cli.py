"""CLI entry point for fileplugin."""

from __future__ import annotations

import time
from pathlib import Path
from typing import Annotated

import typer
import yaml
from rich import print as rprint
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from fileplugin.config import FilePluginConfig, load_config
from fileplugin.config.loader import DEFAULT_CONFIG_TEMPLATE
from fileplugin.host import InMemoryPluginHost, LoadedPlugin
from fileplugin.interfaces.host import ConnectMode, DisconnectMode
from fileplugin.log import configure_logging
from fileplugin.plugins import DependencyNotFoundError, FilePluginProvider

app = typer.Typer(
    name="fileplugin",
    help="Discover, load and watch plugin modules from directories.",
)

config_app = typer.Typer(help="Manage fileplugin configuration.")
app.add_typer(config_app, name="config")

# Global state
_config: FilePluginConfig | None = None

PathOption = Annotated[
    list[str] | None,
    typer.Option("--path", "-p", help="Plugin directory (repeatable, overrides config)"),
]


def _get_config() -> FilePluginConfig:
    if _config is None:
        return load_config()
    return _config


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to fileplugin.yaml")
    ] = None,
) -> None:
    """Global options."""
    global _config
    try:
        _config = load_config(config)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    configure_logging(_config.log_level, _config.log_format)


def _make_provider(
    paths: list[str] | None,
    host: InMemoryPluginHost,
) -> FilePluginProvider:
    cfg = _get_config()
    provider_cfg = cfg.provider
    if paths:
        provider_cfg = provider_cfg.model_copy(update={"plugin_paths": paths})
    provider = FilePluginProvider(host, provider_cfg)
    provider.on_activate(ConnectMode.startup)
    return provider


def _display_plugins(plugins: list[LoadedPlugin]) -> None:
    table = Table(title=f"Plugins ({len(plugins)})")
    table.add_column("Name", style="cyan")
    table.add_column("Source", style="green")
    table.add_column("Mode")
    for p in plugins:
        table.add_row(p.name, p.source, p.mode.value)
    rprint(table)


def _discover(provider: FilePluginProvider) -> None:
    try:
        provider.run_discovery()
    except RuntimeError as e:
        rprint(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)


@app.command()
def scan(paths: PathOption = None) -> None:
    """Load every plugin found in the plugin directories once."""
    host = InMemoryPluginHost()
    provider = _make_provider(paths, host)
    try:
        rprint(f"[bold]Scanning[/bold] {provider.paths}...")
        _discover(provider)
        _display_plugins(list(host.plugins))
    finally:
        provider.on_deactivate(DisconnectMode.host_shutdown)


def _idle(interval: float = 1.0) -> None:
    """Block until interrupted."""
    while True:
        time.sleep(interval)


@app.command()
def watch(paths: PathOption = None) -> None:
    """Load plugins, then keep loading new or modified files until interrupted."""

    def _announce(plugin: LoadedPlugin) -> None:
        if plugin.mode is ConnectMode.after_startup:
            rprint(f"[green]Loaded[/green] {escape(plugin.name)} [dim]({escape(plugin.source)})[/dim]")

    host = InMemoryPluginHost(on_loaded=_announce)
    provider = _make_provider(paths, host)
    try:
        _discover(provider)
        _display_plugins(list(host.plugins))
        rprint(f"[bold]Watching[/bold] {provider.paths} (Ctrl+C to stop)")
        _idle()
    except KeyboardInterrupt:
        rprint("[dim]Stopping...[/dim]")
    finally:
        provider.on_deactivate(DisconnectMode.host_shutdown)


@app.command()
def resolve(
    identity: str = typer.Argument(..., help="Dependency identity, e.g. 'mylib==1.2.0'"),
    paths: PathOption = None,
) -> None:
    """Locate and load a dependency by its declared identity."""
    host = InMemoryPluginHost()
    provider = _make_provider(paths, host)
    try:
        module = provider.resolve_dependency(identity)
    except (ValueError, RuntimeError, DependencyNotFoundError) as e:
        rprint(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    finally:
        provider.on_deactivate(DisconnectMode.host_shutdown)

    origin = getattr(module.__spec__, "origin", None) or getattr(module, "__file__", "?")
    rprint(f"[green]Resolved[/green] {escape(identity)} -> {module.__name__} ({escape(str(origin))})")


@config_app.command("show")
def config_show() -> None:
    """Show current resolved configuration."""
    cfg = _get_config()
    rprint(Syntax(yaml.dump(cfg.model_dump(), default_flow_style=False), "yaml"))


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config"),
) -> None:
    """Create default fileplugin.yaml in current directory."""
    target = Path("fileplugin.yaml")
    if target.exists() and not force:
        rprint("[yellow]fileplugin.yaml already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    target.write_text(DEFAULT_CONFIG_TEMPLATE)
    rprint(f"[green]Created[/green] {target}")


if __name__ == "__main__":
    app()
