"""
Data models for the module registry store
"""

from models.base import BaseSchema
from models.pagination import PaginationMeta
from models.registry import (
    ModuleVersion,
    Platform,
    PlatformSummary,
    ProviderVersion,
    ProviderVersionList,
)

__all__ = [
    "BaseSchema",
    "PaginationMeta",
    "ModuleVersion",
    "Platform",
    "PlatformSummary",
    "ProviderVersion",
    "ProviderVersionList",
]
