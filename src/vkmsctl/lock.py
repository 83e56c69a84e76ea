"""Per-device advisory locks.

configfs has no transactions: two processes creating or removing the same
device can interleave. Writers hold flock(LOCK_EX) on <lock_dir>/<name>.lock
for the whole operation; readers take LOCK_SH.
"""

from __future__ import annotations

import contextlib
import fcntl
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from vkmsctl.models import check_name

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = logging.getLogger("vkmsctl.lock")


@contextlib.contextmanager
def device_lock(lock_dir: Path | str | None, name: str, *, shared: bool = False) -> Iterator[None]:
    """Hold the lock for device `name`. A None lock_dir disables locking."""
    check_name(name)
    if lock_dir is None:
        yield
        return

    lock_dir = Path(lock_dir)
    lock_dir.mkdir(parents=True, exist_ok=True)
    path = lock_dir / f"{name}.lock"
    with path.open("a") as f:
        logger.debug("Waiting for %s lock on %s", "shared" if shared else "exclusive", path)
        fcntl.flock(f, fcntl.LOCK_SH if shared else fcntl.LOCK_EX)
        try:
            yield
        finally:
            fcntl.flock(f, fcntl.LOCK_UN)
