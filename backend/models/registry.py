"""
Canonical response shapes for registry entities.
"""

from typing import Any

from pydantic import AliasChoices, Field

from models.base import BaseSchema


class Platform(BaseSchema):
    """A provider build for one os/arch pair."""

    os: str
    arch: str
    location: str
    filename: str
    shasum: str = Field(validation_alias=AliasChoices("shasum", "checksum"))


class PlatformSummary(BaseSchema):
    """Platform as shown in version listings: location and checksum withheld."""

    os: str
    arch: str


class ProviderVersion(BaseSchema):
    version: str
    # No protocol negotiation data is tracked; always empty.
    protocols: list[str] = Field(default_factory=list)
    platforms: list[PlatformSummary] = Field(default_factory=list)


class ProviderVersionList(BaseSchema):
    id: str
    versions: list[ProviderVersion] = Field(default_factory=list)


class ModuleVersion(BaseSchema):
    version: str
    submodules: Any = None
    root: Any = None
