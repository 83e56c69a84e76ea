"""Manage VKMS virtual display devices through configfs.

Layout written and read (relative to the configfs mount):
    vkms/
        <device>/
            enabled                                "0" | "1"   (written last)
            crtcs/<crtc>/writeback                 "0" | "1"
            planes/<plane>/type                    "0" overlay | "1" primary | "2" cursor
            planes/<plane>/possible_crtcs/<crtc>   -> ../../../crtcs/<crtc>
            encoders/<enc>/possible_crtcs/<crtc>   -> ../../../crtcs/<crtc>
            connectors/<conn>/status               "1" connected | "2" disconnected | "3" unknown
            connectors/<conn>/possible_encoders/<enc> -> ../../../encoders/<enc>

No transactions: a failed create leaves a partial tree behind, which
remove() cleans up.
"""

from vkmsctl.document import device_from_document, document_from_device, read_document
from vkmsctl.errors import (
    ConfigurationError,
    DanglingReferenceError,
    DuplicateNameError,
    InvalidDataError,
    VkmsError,
)
from vkmsctl.loader import load, load_all
from vkmsctl.models import Connector, ConnectorStatus, Crtc, Device, Encoder, Plane, PlaneKind
from vkmsctl.remover import remove
from vkmsctl.store import VkmsStore
from vkmsctl.writer import materialize

__all__ = [
    "ConfigurationError",
    "Connector",
    "ConnectorStatus",
    "Crtc",
    "DanglingReferenceError",
    "Device",
    "DuplicateNameError",
    "Encoder",
    "InvalidDataError",
    "Plane",
    "PlaneKind",
    "VkmsError",
    "VkmsStore",
    "device_from_document",
    "document_from_device",
    "load",
    "load_all",
    "materialize",
    "read_document",
    "remove",
]
