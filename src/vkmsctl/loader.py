"""Read a VKMS device back from the configfs tree."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from vkmsctl.document import check_references
from vkmsctl.errors import ConfigurationError, InvalidDataError
from vkmsctl.fs import default_fs
from vkmsctl.models import (
    Connector,
    ConnectorStatus,
    Crtc,
    Device,
    Encoder,
    Plane,
    PlaneKind,
    bool_from_wire,
    device_path,
)

if TYPE_CHECKING:
    from vkmsctl.fs import TreeFS

logger = logging.getLogger("vkmsctl.loader")


def load(configfs_path: Path | str, name: str, fs: TreeFS | None = None) -> Device:
    """Load vkms/<name> into a Device.

    Raises FileNotFoundError if the device does not exist and
    InvalidDataError if an attribute holds an out-of-range value or a
    link points at an entity of the wrong kind or one that does not exist.
    Entities come back sorted by name.
    """
    fs = fs or default_fs(configfs_path)
    device_dir = device_path(configfs_path, name)
    if not fs.is_dir(device_dir):
        msg = f"no VKMS device at {device_dir}"
        raise FileNotFoundError(msg)

    logger.debug("Loading VKMS device %s from %s", name, device_dir)
    device = Device(name=name, enabled=bool_from_wire(fs.read_attr(device_dir / "enabled")))

    for crtc_name in _items(fs, device_dir / "crtcs"):
        crtc_dir = device_dir / "crtcs" / crtc_name
        device.add_crtc(Crtc(
            name=crtc_name,
            writeback=bool_from_wire(fs.read_attr(crtc_dir / "writeback")),
        ))

    for plane_name in _items(fs, device_dir / "planes"):
        plane_dir = device_dir / "planes" / plane_name
        device.add_plane(Plane(
            name=plane_name,
            kind=PlaneKind.from_wire(fs.read_attr(plane_dir / "type")),
            possible_crtcs=_links(fs, plane_dir / "possible_crtcs", "crtcs"),
        ))

    for encoder_name in _items(fs, device_dir / "encoders"):
        encoder_dir = device_dir / "encoders" / encoder_name
        device.add_encoder(Encoder(
            name=encoder_name,
            possible_crtcs=_links(fs, encoder_dir / "possible_crtcs", "crtcs"),
        ))

    for connector_name in _items(fs, device_dir / "connectors"):
        connector_dir = device_dir / "connectors" / connector_name
        device.add_connector(Connector(
            name=connector_name,
            status=ConnectorStatus.from_wire(fs.read_attr(connector_dir / "status")),
            possible_encoders=_links(fs, connector_dir / "possible_encoders", "encoders"),
        ))

    # links into the right group can still name an entity that is gone
    try:
        check_references(device)
    except ConfigurationError as exc:
        msg = f"{device_dir}: {exc}"
        raise InvalidDataError(msg) from exc

    logger.debug(
        "Loaded %s: %d planes, %d CRTCs, %d encoders, %d connectors",
        name, len(device.planes), len(device.crtcs), len(device.encoders), len(device.connectors),
    )
    return device


def device_names(configfs_path: Path | str, fs: TreeFS | None = None) -> list[str]:
    """Names of the devices under <configfs_path>/vkms. Empty if there is none."""
    fs = fs or default_fs(configfs_path)
    vkms_dir = Path(configfs_path) / "vkms"
    if not fs.is_dir(vkms_dir):
        return []
    return _items(fs, vkms_dir)


def load_all(configfs_path: Path | str, fs: TreeFS | None = None) -> list[Device]:
    fs = fs or default_fs(configfs_path)
    return [load(configfs_path, name, fs) for name in device_names(configfs_path, fs)]


def _items(fs: TreeFS, group_dir: Path) -> list[str]:
    """Item directories inside a group; a missing group has none."""
    if not fs.is_dir(group_dir):
        return []
    return sorted(name for name in fs.list_dir(group_dir) if fs.is_dir(group_dir / name))


def _links(fs: TreeFS, links_dir: Path, category: str) -> list[str]:
    """Entity names behind the symlinks in links_dir, which must all point into category."""
    if not fs.is_dir(links_dir):
        return []
    names = []
    for entry in fs.list_dir(links_dir):
        target = fs.link_target(links_dir / entry)
        if target.parent.name != category:
            msg = f"{links_dir / entry} points to {target}, expected an entry of {category}/"
            raise InvalidDataError(msg)
        names.append(target.name)
    return sorted(names)
