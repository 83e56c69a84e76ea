"""Loading devices back from the tree."""

from __future__ import annotations

from pathlib import Path

import pytest
from memfs import MemoryFS

from vkmsctl.errors import ConfigurationError, InvalidDataError
from vkmsctl.fs import LocalFS
from vkmsctl.loader import device_names, load, load_all
from vkmsctl.models import ConnectorStatus, Crtc, Device, Encoder, Plane, PlaneKind
from vkmsctl.writer import materialize


def test_round_trip_on_disk(configfs: Path, device: Device) -> None:
    materialize(device, configfs, LocalFS())
    assert load(configfs, "vkms0", LocalFS()).sorted() == device.sorted()


def test_round_trip_in_memory(device: Device) -> None:
    fs = MemoryFS("/config")
    materialize(device, Path("/config"), fs)
    assert load(Path("/config"), "vkms0", fs).sorted() == device.sorted()


def test_loader_output_is_sorted_whatever_the_listing_order(device: Device) -> None:
    # MemoryFS lists entries newest first
    fs = MemoryFS("/config")
    materialize(device, Path("/config"), fs)
    loaded = load(Path("/config"), "vkms0", fs)
    assert [c.name for c in loaded.crtcs] == ["crtc0", "crtc1"]
    assert [p.name for p in loaded.planes] == ["cursor0", "overlay0", "primary0"]
    assert loaded.planes[0].possible_crtcs == ["crtc0", "crtc1"]


@pytest.mark.parametrize(
    ("wire", "kind"),
    [("0", PlaneKind.OVERLAY), ("1", PlaneKind.PRIMARY), ("2", PlaneKind.CURSOR)],
)
def test_plane_kind_round_trip(configfs: Path, wire: str, kind: PlaneKind) -> None:
    device = Device("d").add_crtc(Crtc("c")).add_plane(Plane("p", kind=kind, possible_crtcs=["c"]))
    device_dir = materialize(device, configfs, LocalFS())
    assert (device_dir / "planes" / "p" / "type").read_text() == wire
    assert load(configfs, "d", LocalFS()).planes[0].kind is kind


def test_kernel_newline_is_ignored(configfs: Path) -> None:
    device_dir = materialize(Device("d", enabled=True).add_crtc(Crtc("c")), configfs, LocalFS())
    (device_dir / "enabled").write_text("1\n")
    (device_dir / "crtcs" / "c" / "writeback").write_text("0\n")
    loaded = load(configfs, "d", LocalFS())
    assert loaded.enabled is True
    assert loaded.crtcs[0].writeback is False


def test_invalid_plane_type(configfs: Path) -> None:
    device_dir = materialize(Device("d").add_plane(Plane("p")), configfs, LocalFS())
    (device_dir / "planes" / "p" / "type").write_text("3")
    with pytest.raises(InvalidDataError, match="plane type"):
        load(configfs, "d", LocalFS())


@pytest.mark.parametrize("raw", ["0", "4", "x"])
def test_invalid_connector_status(configfs: Path, device: Device, raw: str) -> None:
    device_dir = materialize(device, configfs, LocalFS())
    (device_dir / "connectors" / "dp.2" / "status").write_text(raw)
    with pytest.raises(InvalidDataError, match="connector status"):
        load(configfs, "vkms0", LocalFS())


def test_connector_status_values(configfs: Path, device: Device) -> None:
    device_dir = materialize(device, configfs, LocalFS())
    (device_dir / "connectors" / "dp.2" / "status").write_text("2")
    loaded = load(configfs, "vkms0", LocalFS())
    statuses = {c.name: c.status for c in loaded.connectors}
    assert statuses == {"dp.2": ConnectorStatus.DISCONNECTED, "hdmi-A 1": ConnectorStatus.CONNECTED}


def test_invalid_enabled_value(configfs: Path) -> None:
    device_dir = materialize(Device("d"), configfs, LocalFS())
    (device_dir / "enabled").write_text("2")
    with pytest.raises(InvalidDataError):
        load(configfs, "d", LocalFS())


def test_missing_device(configfs: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load(configfs, "nope", LocalFS())


def test_missing_link_group_reads_as_empty(configfs: Path) -> None:
    device = Device("d").add_crtc(Crtc("c")).add_plane(Plane("p"))
    device_dir = materialize(device, configfs, LocalFS())
    (device_dir / "planes" / "p" / "possible_crtcs").rmdir()
    assert load(configfs, "d", LocalFS()).planes[0].possible_crtcs == []


def test_link_name_uses_final_component_of_absolute_target(configfs: Path) -> None:
    device_dir = materialize(Device("d").add_crtc(Crtc("c")).add_plane(Plane("p")), configfs, LocalFS())
    (device_dir / "planes" / "p" / "possible_crtcs" / "c").symlink_to(device_dir / "crtcs" / "c")
    assert load(configfs, "d", LocalFS()).planes[0].possible_crtcs == ["c"]


def test_empty_configfs_root_lists_nothing(configfs: Path) -> None:
    assert device_names(configfs, LocalFS()) == []
    assert load_all(configfs, LocalFS()) == []
    (configfs / "vkms").mkdir()
    assert load_all(configfs, LocalFS()) == []


def test_load_all(configfs: Path, device: Device) -> None:
    materialize(device, configfs, LocalFS())
    materialize(Device("vkms1"), configfs, LocalFS())
    assert [d.name for d in load_all(configfs, LocalFS())] == ["vkms0", "vkms1"]


def test_link_to_missing_entity_is_invalid(configfs: Path) -> None:
    device = Device("d").add_crtc(Crtc("c")).add_plane(Plane("p", kind=PlaneKind.PRIMARY))
    device_dir = materialize(device, configfs, LocalFS())
    (device_dir / "planes" / "p" / "possible_crtcs" / "ghost").symlink_to(Path("..", "..", "..", "crtcs", "ghost"))

    with pytest.raises(InvalidDataError, match="unknown CRTC 'ghost'"):
        load(configfs, "d", LocalFS())


def test_connector_link_to_missing_encoder_is_invalid(device: Device) -> None:
    fs = MemoryFS("/config")
    device_dir = materialize(device, Path("/config"), fs)
    fs.symlink(
        Path("..", "..", "..", "encoders", "enc9"),
        device_dir / "connectors" / "dp.2" / "possible_encoders" / "enc9",
    )

    with pytest.raises(InvalidDataError, match="unknown encoder 'enc9'"):
        load(Path("/config"), "vkms0", fs)


def test_link_into_the_wrong_group_is_invalid(configfs: Path) -> None:
    # a CRTC and an encoder share the name, so only the link's group tells them apart
    device = Device("d").add_crtc(Crtc("x")).add_encoder(Encoder("x")).add_plane(Plane("p"))
    device_dir = materialize(device, configfs, LocalFS())
    (device_dir / "planes" / "p" / "possible_crtcs" / "x").symlink_to(Path("..", "..", "..", "encoders", "x"))

    with pytest.raises(InvalidDataError, match="expected an entry of crtcs/"):
        load(configfs, "d", LocalFS())


@pytest.mark.parametrize("name", ["", ".."])
def test_load_rejects_names_outside_the_vkms_dir(configfs: Path, name: str) -> None:
    with pytest.raises(ConfigurationError):
        load(configfs, name, LocalFS())
