"""Shared fixtures: a scratch configfs root and a representative topology."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from vkmsctl.models import Connector, ConnectorStatus, Crtc, Device, Encoder, Plane, PlaneKind


@pytest.fixture
def configfs(tmp_path: Path) -> Path:
    """A plain directory standing in for the configfs mount."""
    root = tmp_path / "config"
    root.mkdir()
    return root


@pytest.fixture
def device() -> Device:
    return (
        Device(name="vkms0", enabled=True)
        .add_crtc(Crtc("crtc0"))
        .add_crtc(Crtc("crtc1", writeback=True))
        .add_plane(Plane("primary0", kind=PlaneKind.PRIMARY, possible_crtcs=["crtc0"]))
        .add_plane(Plane("cursor0", kind=PlaneKind.CURSOR, possible_crtcs=["crtc0", "crtc1"]))
        .add_plane(Plane("overlay0"))
        .add_encoder(Encoder("enc0", possible_crtcs=["crtc0", "crtc1"]))
        .add_connector(Connector("hdmi-A 1", possible_encoders=["enc0"]))
        .add_connector(Connector("dp.2", status=ConnectorStatus.UNKNOWN, possible_encoders=["enc0"]))
    )


@pytest.fixture
def document() -> dict[str, Any]:
    return {
        "name": "vkms0",
        "enabled": True,
        "crtcs": [{"name": "crtc0"}, {"name": "crtc1", "writeback": True}],
        "planes": [
            {"name": "primary0", "type": "primary", "possible_crtcs": ["crtc0"]},
            {"name": "cursor0", "type": "cursor", "possible_crtcs": ["crtc0", "crtc1"]},
            {"name": "overlay0"},
        ],
        "encoders": [{"name": "enc0", "possible_crtcs": ["crtc0", "crtc1"]}],
        "connectors": [
            {"name": "hdmi-A 1", "possible_encoders": ["enc0"]},
            {"name": "dp.2", "status": "unknown", "possible_encoders": ["enc0"]},
        ],
    }
