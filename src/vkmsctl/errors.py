"""Exception hierarchy.

I/O failures are not wrapped: OSError and its subclasses (FileExistsError,
PermissionError, ...) reach the caller unchanged.
"""

from __future__ import annotations


class VkmsError(Exception):
    """Base class for every error raised by vkmsctl itself."""


class InvalidDataError(VkmsError, ValueError):
    """An attribute file holds a value outside its closed set."""


class ConfigurationError(VkmsError, ValueError):
    """A device document or the tool configuration is invalid."""


class DanglingReferenceError(ConfigurationError):
    """A possible_crtcs / possible_encoders entry names no sibling entity."""

    def __init__(self, owner: str, ref: str, category: str) -> None:
        self.owner = owner
        self.ref = ref
        self.category = category
        super().__init__(f"{owner} references unknown {category} {ref!r}")


class DuplicateNameError(ConfigurationError):
    """Two entities of the same category share a name."""

    def __init__(self, category: str, name: str) -> None:
        self.category = category
        self.name = name
        super().__init__(f"duplicate {category} name {name!r}")
