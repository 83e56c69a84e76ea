"""VkmsStore: the locked, configfs-rooted API used by the CLI.

    store = VkmsStore("/config", lock_dir="/run/lock/vkmsctl")
    store.create(device)
    device = store.get("vkms0")
    store.remove("vkms0")
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from vkmsctl.document import check_references
from vkmsctl.fs import default_fs
from vkmsctl.loader import device_names, load
from vkmsctl.lock import device_lock
from vkmsctl.remover import remove
from vkmsctl.writer import materialize

if TYPE_CHECKING:
    from vkmsctl.config import VkmsctlConfig
    from vkmsctl.fs import TreeFS
    from vkmsctl.models import Device

logger = logging.getLogger("vkmsctl.store")


class VkmsStore:
    """VKMS devices under one configfs mount."""

    def __init__(
        self,
        configfs_path: Path | str,
        lock_dir: Path | str | None = None,
        fs: TreeFS | None = None,
    ) -> None:
        self.configfs_path = Path(configfs_path)
        self.lock_dir = Path(lock_dir) if lock_dir is not None else None
        self.fs = fs or default_fs(self.configfs_path)

    @classmethod
    def from_config(cls, cfg: VkmsctlConfig, fs: TreeFS | None = None) -> VkmsStore:
        return cls(cfg.configfs_path, lock_dir=cfg.effective_lock_dir, fs=fs)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def names(self) -> list[str]:
        return device_names(self.configfs_path, self.fs)

    def get(self, name: str) -> Device:
        with device_lock(self.lock_dir, name, shared=True):
            return load(self.configfs_path, name, self.fs)

    def list_devices(self) -> list[Device]:
        """Every device currently present, sorted by name."""
        return [self.get(name) for name in self.names()]

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def create(self, device: Device) -> Path:
        """Validate references, then materialize device. Returns its directory."""
        check_references(device)
        with device_lock(self.lock_dir, device.name):
            path = materialize(device, self.configfs_path, self.fs)
        logger.info("Created VKMS device %s", device.name)
        return path

    def remove(self, name: str) -> None:
        with device_lock(self.lock_dir, name):
            remove(self.configfs_path, name, self.fs)
        logger.info("Removed VKMS device %s", name)
