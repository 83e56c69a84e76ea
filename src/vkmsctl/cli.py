"""vkmsctl CLI — manage VKMS virtual display devices through configfs.

Commands:
    vkmsctl create FILE          create a device from a JSON document
    vkmsctl list [--json]        show every device under <configfs>/vkms
    vkmsctl show NAME [--json]   show one device
    vkmsctl remove NAME          delete a device tree
    vkmsctl config               display the current configuration
    vkmsctl init [DIR]           write a default vkmsctl.toml
"""

from __future__ import annotations

import contextlib
import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING

import click

from vkmsctl.config import VkmsctlConfig, init_config, load_config
from vkmsctl.document import device_from_document, device_to_dict, read_document
from vkmsctl.errors import VkmsError
from vkmsctl.fs import is_configfs_mount
from vkmsctl.store import VkmsStore

if TYPE_CHECKING:
    from collections.abc import Iterator

    from rich.tree import Tree

    from vkmsctl.models import Device

logger = logging.getLogger("vkmsctl.cli")

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@contextlib.contextmanager
def _errors() -> Iterator[None]:
    """Report vkmsctl and I/O errors as click errors (exit status 1)."""
    try:
        yield
    except (VkmsError, OSError) as exc:
        raise click.ClickException(str(exc)) from exc


def _cfg() -> VkmsctlConfig:
    return click.get_current_context().find_object(VkmsctlConfig)


def _store() -> VkmsStore:
    return VkmsStore.from_config(_cfg())


def _device_tree(device: Device) -> Tree:
    from rich.markup import escape
    from rich.tree import Tree

    state = "[green]enabled[/green]" if device.enabled else "[dim]disabled[/dim]"
    tree = Tree(f"[bold]{escape(device.name)}[/bold] ({state})")

    crtcs = tree.add("crtcs")
    for crtc in device.crtcs:
        wb = "writeback" if crtc.writeback else "[dim]no writeback[/dim]"
        crtcs.add(f"{escape(crtc.name)}  {wb}")

    planes = tree.add("planes")
    for plane in device.planes:
        links = ", ".join(plane.possible_crtcs) or "-"
        planes.add(f"{escape(plane.name)}  [cyan]{plane.kind.value}[/cyan]  → {escape(links)}")

    encoders = tree.add("encoders")
    for encoder in device.encoders:
        links = ", ".join(encoder.possible_crtcs) or "-"
        encoders.add(f"{escape(encoder.name)}  → {escape(links)}")

    connectors = tree.add("connectors")
    for connector in device.connectors:
        links = ", ".join(connector.possible_encoders) or "-"
        connectors.add(
            f"{escape(connector.name)}  [cyan]{connector.status.value}[/cyan]  → {escape(links)}"
        )
    return tree


def _print_devices(devices: list[Device], as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps([device_to_dict(d) for d in devices], indent=2))
        return

    from rich.console import Console

    console = Console()
    for device in devices:
        console.print(_device_tree(device))


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="vkmsctl")
@click.option(
    "--configfs-path",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory where configfs is mounted [default: from vkmsctl.toml, else /config]",
)
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Path to vkmsctl.toml",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, configfs_path: Path | None, config_file: Path | None, verbose: bool) -> None:
    """vkmsctl — manage VKMS devices through configfs."""
    with _errors():
        cfg = load_config(config_file)
    if configfs_path is not None:
        cfg.configfs_path = configfs_path

    level = logging.DEBUG if verbose else getattr(logging, cfg.log_level)
    logging.basicConfig(level=level, format="%(levelname)s - %(message)s")
    logging.getLogger("vkmsctl").setLevel(level)
    logger.debug("Using configfs at %s (config: %s)", cfg.configfs_path, cfg.source or "defaults")
    ctx.obj = cfg


# ---------------------------------------------------------------------------
# vkmsctl create
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def create(path: Path) -> None:
    """Create a new VKMS device from the JSON file at PATH."""
    with _errors():
        device = device_from_document(read_document(path))

    store = _store()
    try:
        device_dir = store.create(device)
    except OSError as exc:
        message = str(exc)
        if not isinstance(exc, FileExistsError) and store.fs.exists(device.path(store.configfs_path)):
            message += f"\nThe device was partially created; run `vkmsctl remove {device.name}` before retrying."
        raise click.ClickException(message) from exc
    except VkmsError as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo(f"Created {device_dir}")


# ---------------------------------------------------------------------------
# vkmsctl list / show
# ---------------------------------------------------------------------------


@cli.command(name="list")
@click.option("--json", "as_json", is_flag=True, help="Print JSON device documents")
def list_devices(as_json: bool) -> None:
    """List every VKMS device under the configfs mount."""
    with _errors():
        devices = _store().list_devices()

    if not devices and not as_json:
        click.echo("No VKMS devices")
        return
    with _errors():
        _print_devices(devices, as_json)


@cli.command()
@click.argument("name")
@click.option("--json", "as_json", is_flag=True, help="Print a JSON device document")
def show(name: str, as_json: bool) -> None:
    """Show the VKMS device NAME.

    The --json output can be passed back to `vkmsctl create`.
    """
    with _errors():
        device = _store().get(name)
        if as_json:
            click.echo(json.dumps(device_to_dict(device), indent=2))
        else:
            _print_devices([device], as_json=False)


# ---------------------------------------------------------------------------
# vkmsctl remove
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("name")
def remove(name: str) -> None:
    """Remove the VKMS device NAME."""
    with _errors():
        _store().remove(name)
    click.echo(f"Removed {name}")


# ---------------------------------------------------------------------------
# vkmsctl config / init
# ---------------------------------------------------------------------------


@cli.command()
def config() -> None:
    """Display the current configuration and the devices it sees."""
    from rich.console import Console
    from rich.markup import escape
    from rich.table import Table

    cfg = _cfg()
    console = Console()

    table = Table(title="vkmsctl", show_header=True, header_style="bold")
    table.add_column("Setting", style="dim", no_wrap=True)
    table.add_column("Value")

    from importlib.metadata import PackageNotFoundError
    from importlib.metadata import version as _pkg_version
    try:
        _ver = _pkg_version("vkmsctl")
    except PackageNotFoundError:
        _ver = "unknown"
    table.add_row("Version", _ver)
    table.add_row("Config", escape(str(cfg.source)) if cfg.source else "[dim]defaults[/dim]")
    table.add_row("ConfigFS", escape(str(cfg.configfs_path)))

    if is_configfs_mount(cfg.configfs_path):
        table.add_row("Mount", "[green]configfs[/green]")
    elif cfg.configfs_path.is_dir():
        table.add_row("Mount", "[yellow]plain directory (not configfs)[/yellow]")
    else:
        table.add_row("Mount", "[red]missing[/red]")

    table.add_row("Locking", escape(str(cfg.lock_dir)) if cfg.locking else "[yellow]disabled[/yellow]")
    table.add_row("Log level", cfg.log_level)
    table.add_row("", "")

    if cfg.vkms_path.is_dir():
        with _errors():
            names = _store().names()
        table.add_row("Devices", escape(", ".join(names)) if names else "[dim]none[/dim]")
    else:
        table.add_row("Devices", "[red]no vkms directory (is the vkms module loaded?)[/red]")

    console.print(table)


@cli.command()
@click.argument("root", required=False, default=".", type=click.Path(file_okay=False, path_type=Path))
def init(root: Path) -> None:
    """Write a default vkmsctl.toml in ROOT (default: current directory)."""
    try:
        config_path = init_config(root.resolve())
    except FileExistsError:
        click.echo("vkmsctl.toml already exists — skipping init")
        return
    click.echo(f"Created {config_path}")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    cli(standalone_mode=True)


if __name__ == "__main__":
    main()
