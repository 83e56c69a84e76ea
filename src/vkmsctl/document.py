"""JSON device documents: schema, and conversion to and from Device.

Document example:

    {
      "name": "vkms0",
      "enabled": true,
      "crtcs":      [{"name": "crtc0", "writeback": false}],
      "planes":     [{"name": "plane0", "type": "primary", "possible_crtcs": ["crtc0"]}],
      "encoders":   [{"name": "enc0", "possible_crtcs": ["crtc0"]}],
      "connectors": [{"name": "conn0", "status": "connected", "possible_encoders": ["enc0"]}]
    }

The pydantic models only check syntax (names, enumerations, unknown keys).
device_from_document() adds the cross-entity checks the schema cannot express:
unique names per category and no dangling possible_* references.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, StringConstraints, ValidationError

from vkmsctl.errors import ConfigurationError, DanglingReferenceError, DuplicateNameError
from vkmsctl.models import Connector, ConnectorStatus, Crtc, Device, Encoder, Plane, PlaneKind

logger = logging.getLogger("vkmsctl.document")

NAME_PATTERN = r"^[A-Za-z0-9._\- ]+$"


def _not_dot_entry(name: str) -> str:
    # "." and ".." match the pattern but are not usable directory names
    if name in {".", ".."}:
        msg = f"{name!r} is not a valid name"
        raise ValueError(msg)
    return name


Name = Annotated[
    str,
    StringConstraints(min_length=1, pattern=NAME_PATTERN),
    AfterValidator(_not_dot_entry),
]


class _Document(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)


class CrtcDocument(_Document):
    name: Name
    writeback: bool | None = None


class PlaneDocument(_Document):
    name: Name
    type: Literal["primary", "overlay", "cursor"] | None = None
    possible_crtcs: list[Name] | None = None


class EncoderDocument(_Document):
    name: Name
    possible_crtcs: Annotated[list[Name], Field(min_length=1)] | None = None


class ConnectorDocument(_Document):
    name: Name
    status: Literal["connected", "disconnected", "unknown"] | None = None
    possible_encoders: Annotated[list[Name], Field(min_length=1)] | None = None


class DeviceDocument(_Document):
    name: Name
    enabled: bool
    planes: list[PlaneDocument] = Field(default_factory=list)
    crtcs: list[CrtcDocument] = Field(default_factory=list)
    encoders: list[EncoderDocument] = Field(default_factory=list)
    connectors: list[ConnectorDocument] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def parse_document(data: dict[str, Any]) -> DeviceDocument:
    """Validate an already-decoded JSON object."""
    try:
        return DeviceDocument.model_validate(data)
    except ValidationError as exc:
        msg = f"invalid device document:\n{exc}"
        raise ConfigurationError(msg) from exc


def read_document(path: Path | str) -> DeviceDocument:
    """Read and validate a JSON device document. OSError propagates."""
    path = Path(path)
    logger.debug("Reading VKMS device document %s", path)
    text = path.read_text()
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        msg = f"{path}: invalid JSON: {exc}"
        raise ConfigurationError(msg) from exc
    if not isinstance(data, dict):
        msg = f"{path}: expected a JSON object"
        raise ConfigurationError(msg)
    return parse_document(data)


# ---------------------------------------------------------------------------
# Document -> Device
# ---------------------------------------------------------------------------


def device_from_document(doc: DeviceDocument) -> Device:
    """Build a Device, rejecting duplicate names and dangling references.

    Runs entirely in memory: a rejected document never touches the tree.
    """
    logger.debug("Building VKMS device %s (enabled=%s)", doc.name, doc.enabled)
    device = Device(name=doc.name, enabled=doc.enabled)

    for crtc_doc in doc.crtcs:
        crtc = Crtc(name=crtc_doc.name)
        if crtc_doc.writeback is not None:
            crtc.writeback = crtc_doc.writeback
        device.add_crtc(crtc)

    for plane_doc in doc.planes:
        plane = Plane(name=plane_doc.name)
        if plane_doc.type is not None:
            plane.kind = PlaneKind(plane_doc.type)
        if plane_doc.possible_crtcs is not None:
            plane.possible_crtcs = _unique(plane_doc.possible_crtcs)
        device.add_plane(plane)

    for encoder_doc in doc.encoders:
        encoder = Encoder(name=encoder_doc.name)
        if encoder_doc.possible_crtcs is not None:
            encoder.possible_crtcs = _unique(encoder_doc.possible_crtcs)
        device.add_encoder(encoder)

    for connector_doc in doc.connectors:
        connector = Connector(name=connector_doc.name)
        if connector_doc.status is not None:
            connector.status = ConnectorStatus(connector_doc.status)
        if connector_doc.possible_encoders is not None:
            connector.possible_encoders = _unique(connector_doc.possible_encoders)
        device.add_connector(connector)

    check_references(device)
    return device


def check_references(device: Device) -> None:
    """Raise DuplicateNameError or DanglingReferenceError if the topology is inconsistent."""
    crtc_names = _names("CRTC", [c.name for c in device.crtcs])
    _names("plane", [p.name for p in device.planes])
    encoder_names = _names("encoder", [e.name for e in device.encoders])
    _names("connector", [c.name for c in device.connectors])

    for plane in device.planes:
        for ref in plane.possible_crtcs:
            if ref not in crtc_names:
                raise DanglingReferenceError(f"plane {plane.name!r}", ref, "CRTC")
    for encoder in device.encoders:
        for ref in encoder.possible_crtcs:
            if ref not in crtc_names:
                raise DanglingReferenceError(f"encoder {encoder.name!r}", ref, "CRTC")
    for connector in device.connectors:
        for ref in connector.possible_encoders:
            if ref not in encoder_names:
                raise DanglingReferenceError(f"connector {connector.name!r}", ref, "encoder")


def _names(category: str, names: list[str]) -> set[str]:
    seen: set[str] = set()
    for name in names:
        if name in seen:
            raise DuplicateNameError(category, name)
        seen.add(name)
    return seen


def _unique(names: list[str]) -> list[str]:
    return list(dict.fromkeys(names))


# ---------------------------------------------------------------------------
# Device -> Document
# ---------------------------------------------------------------------------


def document_from_device(device: Device) -> DeviceDocument:
    """Inverse of device_from_document.

    Empty encoder/connector reference lists become None: the schema
    requires those lists to be non-empty when present. Raises
    ConfigurationError for a tree whose names a document cannot hold
    (configfs itself accepts almost any name).
    """
    try:
        return _document_from_device(device)
    except ValidationError as exc:
        msg = f"device {device.name!r} cannot be written as a device document:\n{exc}"
        raise ConfigurationError(msg) from exc


def _document_from_device(device: Device) -> DeviceDocument:
    return DeviceDocument(
        name=device.name,
        enabled=device.enabled,
        planes=[
            PlaneDocument(name=p.name, type=p.kind.value, possible_crtcs=list(p.possible_crtcs))
            for p in device.planes
        ],
        crtcs=[CrtcDocument(name=c.name, writeback=c.writeback) for c in device.crtcs],
        encoders=[
            EncoderDocument(name=e.name, possible_crtcs=list(e.possible_crtcs) or None)
            for e in device.encoders
        ],
        connectors=[
            ConnectorDocument(
                name=c.name,
                status=c.status.value,
                possible_encoders=list(c.possible_encoders) or None,
            )
            for c in device.connectors
        ],
    )


def device_to_dict(device: Device) -> dict[str, Any]:
    """JSON-ready dict for a device; None-valued optional fields are dropped."""
    return document_from_device(device).model_dump(exclude_none=True)
