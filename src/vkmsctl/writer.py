"""Materialize a Device onto the configfs tree.

Write order matters: a symlink can only target an existing item, and the
driver must never see enabled=1 before the topology is complete.

    vkms/<device>/                       mkdir (fails if it exists)
        crtcs/<c>/writeback              1. CRTCs
        planes/<p>/type                  2. planes, then possible_crtcs links
        encoders/<e>/                    3. encoders, then possible_crtcs links
        connectors/<k>/status            4. connectors, then possible_encoders links
        enabled                          5. last

References are not re-validated here; vkmsctl.document checks them before
anything is written. Nothing is rolled back on failure.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from vkmsctl.fs import default_fs
from vkmsctl.models import bool_to_wire

if TYPE_CHECKING:
    from vkmsctl.fs import TreeFS
    from vkmsctl.models import Device

logger = logging.getLogger("vkmsctl.writer")


def materialize(device: Device, configfs_path: Path | str, fs: TreeFS | None = None) -> Path:
    """Write device under <configfs_path>/vkms. Returns the device directory."""
    root = Path(configfs_path)
    fs = fs or default_fs(root)
    device_dir = device.path(root)

    logger.debug("Creating VKMS device %s at %s", device.name, device_dir)
    fs.mkdir(root / "vkms", exist_ok=True)
    fs.mkdir(device_dir)

    crtcs_dir = _group(fs, device_dir, "crtcs")
    for crtc in device.crtcs:
        logger.debug(" - CRTC %s (writeback=%s)", crtc.name, crtc.writeback)
        crtc_dir = crtcs_dir / crtc.name
        fs.mkdir(crtc_dir)
        fs.write_attr(crtc_dir / "writeback", bool_to_wire(crtc.writeback))

    planes_dir = _group(fs, device_dir, "planes")
    for plane in device.planes:
        logger.debug(" - plane %s (type=%s)", plane.name, plane.kind.value)
        plane_dir = planes_dir / plane.name
        fs.mkdir(plane_dir)
        fs.write_attr(plane_dir / "type", plane.kind.wire)
        _link_all(fs, plane_dir, "possible_crtcs", "crtcs", plane.possible_crtcs)

    encoders_dir = _group(fs, device_dir, "encoders")
    for encoder in device.encoders:
        logger.debug(" - encoder %s", encoder.name)
        encoder_dir = encoders_dir / encoder.name
        fs.mkdir(encoder_dir)
        _link_all(fs, encoder_dir, "possible_crtcs", "crtcs", encoder.possible_crtcs)

    connectors_dir = _group(fs, device_dir, "connectors")
    for connector in device.connectors:
        logger.debug(" - connector %s (status=%s)", connector.name, connector.status.value)
        connector_dir = connectors_dir / connector.name
        fs.mkdir(connector_dir)
        fs.write_attr(connector_dir / "status", connector.status.wire)
        _link_all(fs, connector_dir, "possible_encoders", "encoders", connector.possible_encoders)

    logger.debug("Setting enabled=%s on %s", device.enabled, device.name)
    fs.write_attr(device_dir / "enabled", bool_to_wire(device.enabled))
    return device_dir


def _group(fs: TreeFS, parent: Path, name: str) -> Path:
    """Return parent/name, creating it unless the kernel already did."""
    path = parent / name
    fs.mkdir(path, exist_ok=True)
    return path


def _link_all(fs: TreeFS, item_dir: Path, group: str, category: str, names: list[str]) -> None:
    links_dir = _group(fs, item_dir, group)
    for name in names:
        # <item_dir>/<group>/<name> -> ../../../<category>/<name>
        target = Path("..", "..", "..", category, name)
        logger.debug("   link %s/%s -> %s", group, name, target)
        fs.symlink(target, links_dir / name)
