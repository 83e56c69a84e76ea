"""Delete a VKMS device tree.

Removal walks what is on disk rather than a Device model, so a tree left
half-built by a failed create is removed the same way as a complete one.
Items that hold links go first: configfs refuses to rmdir a link target.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from vkmsctl.fs import default_fs
from vkmsctl.models import Device, device_path

if TYPE_CHECKING:
    from pathlib import Path

    from vkmsctl.fs import TreeFS

logger = logging.getLogger("vkmsctl.remover")

# Linking categories before the categories they link to.
_REMOVAL_ORDER = ("connectors", "encoders", "planes", "crtcs")


def remove(configfs_path: Path | str, device: Device | str, fs: TreeFS | None = None) -> None:
    """Remove vkms/<device> and everything below it.

    Raises ConfigurationError for a name that is not a single path
    component and FileNotFoundError if the device directory does not exist.
    Both are raised before anything is touched.
    """
    fs = fs or default_fs(configfs_path)
    name = device.name if isinstance(device, Device) else device
    device_dir = device_path(configfs_path, name)
    if not fs.exists(device_dir):
        msg = f"no VKMS device at {device_dir}"
        raise FileNotFoundError(msg)

    logger.debug("Removing VKMS device %s at %s", name, device_dir)
    # The driver rejects topology changes on an enabled device.
    enabled = device_dir / "enabled"
    if fs.exists(enabled) and fs.read_attr(enabled) != "0":
        logger.debug(" - disabling %s", name)
        fs.write_attr(enabled, "0")

    for group in _REMOVAL_ORDER:
        group_dir = device_dir / group
        if not fs.is_dir(group_dir):
            continue
        for item in fs.list_dir(group_dir):
            logger.debug(" - removing %s/%s", group, item)
            fs.remove_tree(group_dir / item)
    fs.remove_tree(device_dir)
