"""VkmsctlConfig: tool configuration.

Lookup order (first hit wins):

    --config FILE
    vkmsctl.toml in the cwd or any parent directory
    $XDG_CONFIG_HOME/vkmsctl/vkmsctl.toml   (~/.config when unset)
    built-in defaults

VKMSCTL_CONFIGFS_PATH overrides configfs_path from the file; the CLI
--configfs-path option overrides both.

vkmsctl.toml example:

    [vkmsctl]
    configfs_path = "/config"
    lock_dir = "/run/lock/vkmsctl"
    locking = true
    log_level = "INFO"
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from vkmsctl.errors import ConfigurationError

_CONFIG_FILENAME = "vkmsctl.toml"
_DEFAULT_CONFIGFS_PATH = "/config"
_DEFAULT_LOCK_DIR = "/run/lock/vkmsctl"
_DEFAULT_LOG_LEVEL = "INFO"
_ENV_CONFIGFS_PATH = "VKMSCTL_CONFIGFS_PATH"


@dataclass
class VkmsctlConfig:
    """Resolved configuration."""

    configfs_path: Path = Path(_DEFAULT_CONFIGFS_PATH)
    lock_dir: Path = Path(_DEFAULT_LOCK_DIR)
    locking: bool = True
    log_level: str = _DEFAULT_LOG_LEVEL
    source: Path | None = None          # file the values came from, None for defaults

    @property
    def vkms_path(self) -> Path:
        return self.configfs_path / "vkms"

    @property
    def effective_lock_dir(self) -> Path | None:
        """Lock directory, or None when locking is disabled."""
        return self.lock_dir if self.locking else None


def load_config(path: Path | str | None = None, env: dict[str, str] | None = None) -> VkmsctlConfig:
    """Load vkmsctl.toml from path, or search for it when path is None."""
    env = dict(os.environ) if env is None else env
    config_path = Path(path) if path else _find_config(Path.cwd(), env)

    raw: dict[str, Any] = {}
    if config_path is not None:
        try:
            with config_path.open("rb") as f:
                raw = tomllib.load(f)
        except tomllib.TOMLDecodeError as exc:
            msg = f"{config_path}: {exc}"
            raise ConfigurationError(msg) from exc

    section = raw.get("vkmsctl", {})
    configfs_path = env.get(_ENV_CONFIGFS_PATH) or str(section.get("configfs_path", _DEFAULT_CONFIGFS_PATH))
    log_level = str(section.get("log_level", _DEFAULT_LOG_LEVEL)).upper()
    if log_level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        msg = f"unknown log_level {log_level!r}"
        raise ConfigurationError(msg)

    locking = section.get("locking", True)
    if not isinstance(locking, bool):
        msg = f"{config_path}: locking must be true or false, got {locking!r}"
        raise ConfigurationError(msg)

    return VkmsctlConfig(
        configfs_path=Path(configfs_path),
        lock_dir=Path(section.get("lock_dir", _DEFAULT_LOCK_DIR)),
        locking=locking,
        log_level=log_level,
        source=config_path,
    )


def _find_config(start: Path, env: dict[str, str]) -> Path | None:
    """Walk upward from start looking for vkmsctl.toml, then try the XDG location."""
    for directory in (start, *start.parents):
        candidate = directory / _CONFIG_FILENAME
        if candidate.exists():
            return candidate
    xdg_home = Path(env.get("XDG_CONFIG_HOME") or Path.home() / ".config")
    candidate = xdg_home / "vkmsctl" / _CONFIG_FILENAME
    if candidate.exists():
        return candidate
    return None


def init_config(root: Path) -> Path:
    """Write a default vkmsctl.toml at root. Raises if already exists."""
    config_path = root / _CONFIG_FILENAME
    if config_path.exists():
        msg = f"vkmsctl.toml already exists at {config_path}"
        raise FileExistsError(msg)

    content = f"""\
[vkmsctl]
configfs_path = "{_DEFAULT_CONFIGFS_PATH}"   # where configfs is mounted (often /sys/kernel/config)

# Per-device flock() files serialize concurrent create/remove.
# lock_dir = "{_DEFAULT_LOCK_DIR}"
# locking = true

# log_level = "{_DEFAULT_LOG_LEVEL}"   # -v on the command line forces DEBUG
"""
    config_path.write_text(content)
    return config_path
