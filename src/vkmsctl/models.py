"""Data models for a VKMS device topology."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from pathlib import Path

from vkmsctl.errors import ConfigurationError, InvalidDataError


class PlaneKind(enum.Enum):
    """Plane types, as defined in the kernel. Stored 0-based in planes/<name>/type."""

    OVERLAY = "overlay"
    PRIMARY = "primary"
    CURSOR = "cursor"

    @property
    def wire(self) -> str:
        return _PLANE_KIND_WIRE[self]

    @classmethod
    def from_wire(cls, raw: str) -> PlaneKind:
        for kind, wire in _PLANE_KIND_WIRE.items():
            if wire == raw:
                return kind
        msg = f"invalid plane type: {raw!r}"
        raise InvalidDataError(msg)


class ConnectorStatus(enum.Enum):
    """Connector status. Stored 1-based in connectors/<name>/status."""

    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    UNKNOWN = "unknown"

    @property
    def wire(self) -> str:
        return _CONNECTOR_STATUS_WIRE[self]

    @classmethod
    def from_wire(cls, raw: str) -> ConnectorStatus:
        for status, wire in _CONNECTOR_STATUS_WIRE.items():
            if wire == raw:
                return status
        msg = f"invalid connector status: {raw!r}"
        raise InvalidDataError(msg)


# The asymmetric bases are the kernel's on-disk contract.
_PLANE_KIND_WIRE = {
    PlaneKind.OVERLAY: "0",
    PlaneKind.PRIMARY: "1",
    PlaneKind.CURSOR: "2",
}
_CONNECTOR_STATUS_WIRE = {
    ConnectorStatus.CONNECTED: "1",
    ConnectorStatus.DISCONNECTED: "2",
    ConnectorStatus.UNKNOWN: "3",
}


def bool_to_wire(value: bool) -> str:
    return "1" if value else "0"


def bool_from_wire(raw: str) -> bool:
    """Parse a boolean attribute. Only "0" and "1" are accepted."""
    if raw == "1":
        return True
    if raw == "0":
        return False
    msg = f"invalid boolean attribute: {raw!r}"
    raise InvalidDataError(msg)


@dataclass
class Crtc:
    """A CRTC node: vkms/<device>/crtcs/<name>."""

    name: str
    writeback: bool = False


@dataclass
class Plane:
    """A plane node: vkms/<device>/planes/<name>."""

    name: str
    kind: PlaneKind = PlaneKind.OVERLAY
    possible_crtcs: list[str] = field(default_factory=list)


@dataclass
class Encoder:
    """An encoder node: vkms/<device>/encoders/<name>."""

    name: str
    possible_crtcs: list[str] = field(default_factory=list)


@dataclass
class Connector:
    """A connector node: vkms/<device>/connectors/<name>."""

    name: str
    status: ConnectorStatus = ConnectorStatus.CONNECTED
    possible_encoders: list[str] = field(default_factory=list)


@dataclass
class Device:
    """A VKMS device and every entity it owns.

    Collections keep insertion order, but the on-disk tree has none: compare
    two devices with ``a.sorted() == b.sorted()``.
    """

    name: str
    enabled: bool = False
    planes: list[Plane] = field(default_factory=list)
    crtcs: list[Crtc] = field(default_factory=list)
    encoders: list[Encoder] = field(default_factory=list)
    connectors: list[Connector] = field(default_factory=list)

    def path(self, configfs_path: Path | str) -> Path:
        """Device directory: <configfs>/vkms/<name>."""
        return device_path(configfs_path, self.name)

    def add_plane(self, plane: Plane) -> Device:
        self.planes.append(plane)
        return self

    def add_crtc(self, crtc: Crtc) -> Device:
        self.crtcs.append(crtc)
        return self

    def add_encoder(self, encoder: Encoder) -> Device:
        self.encoders.append(encoder)
        return self

    def add_connector(self, connector: Connector) -> Device:
        self.connectors.append(connector)
        return self

    def sorted(self) -> Device:
        """Copy with every collection and reference list ordered by name."""
        return replace(
            self,
            planes=sorted(
                (replace(p, possible_crtcs=sorted(p.possible_crtcs)) for p in self.planes),
                key=lambda p: p.name,
            ),
            crtcs=sorted((replace(c) for c in self.crtcs), key=lambda c: c.name),
            encoders=sorted(
                (replace(e, possible_crtcs=sorted(e.possible_crtcs)) for e in self.encoders),
                key=lambda e: e.name,
            ),
            connectors=sorted(
                (replace(c, possible_encoders=sorted(c.possible_encoders)) for c in self.connectors),
                key=lambda c: c.name,
            ),
        )


def check_name(name: str) -> str:
    """Reject names that would resolve outside their parent directory."""
    if name in {"", ".", ".."} or "/" in name or "\0" in name:
        msg = f"invalid name: {name!r}"
        raise ConfigurationError(msg)
    return name


def device_path(configfs_path: Path | str, name: str) -> Path:
    return Path(configfs_path) / "vkms" / check_name(name)
