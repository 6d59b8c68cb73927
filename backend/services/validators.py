"""
Request validation for registry operations.

Every check runs before the storage backend is touched and fails with a
ValidationError naming the offending field.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from core.exceptions import ValidationError, is_missing, validate_required_fields

MODULE_FIELDS = ["namespace", "name", "provider", "version"]
MODULE_LOOKUP_FIELDS = ["namespace", "name", "provider"]
PROVIDER_FIELDS = ["namespace", "type", "version"]
PROVIDER_LOOKUP_FIELDS = ["namespace", "type"]
PROVIDER_PACKAGE_FIELDS = ["namespace", "type", "version", "os", "arch"]
PLATFORM_FIELDS = ["os", "arch", "location", "filename"]
GPG_KEY_FIELDS = ["keyId", "asciiArmor"]


def require(data: Mapping[str, Any], fields: list[str]) -> None:
    validate_required_fields(dict(data), fields)


def validate_paging(offset: Any, limit: Any) -> tuple[int, int]:
    """Coerce offset/limit to ints; offset must be >= 0 and limit > 0."""
    try:
        offset = int(offset)
    except (TypeError, ValueError):
        raise ValidationError(
            "offset must be a non-negative integer.", field_name="offset", field_value=offset
        ) from None
    if offset < 0:
        raise ValidationError(
            "offset must be a non-negative integer.", field_name="offset", field_value=offset
        )

    try:
        limit = int(limit)
    except (TypeError, ValueError):
        raise ValidationError(
            "limit must be a positive integer.", field_name="limit", field_value=limit
        ) from None
    if limit <= 0:
        raise ValidationError(
            "limit must be a positive integer.", field_name="limit", field_value=limit
        )

    return offset, limit


def validate_definition(definition: Any) -> Mapping[str, Any]:
    if definition is None:
        return {}
    if not isinstance(definition, Mapping):
        raise ValidationError("definition must be an object.", field_name="definition")
    return definition


def validate_platforms(platforms: Any) -> list[Mapping[str, Any]]:
    """Each platform needs os, arch, location, filename and a shasum (or checksum)."""
    if platforms is None:
        return []
    if not isinstance(platforms, list):
        raise ValidationError("platforms must be a list.", field_name="platforms")

    for i, platform in enumerate(platforms):
        if not isinstance(platform, Mapping):
            platform = {}
        validate_required_fields(dict(platform), PLATFORM_FIELDS, prefix=f"platforms[{i}].")
        if is_missing(platform.get("shasum")) and is_missing(platform.get("checksum")):
            raise ValidationError(
                f"platforms[{i}].shasum required.", field_name=f"platforms[{i}].shasum"
            )
    return platforms


def validate_gpg_keys(gpg_keys: Any) -> list[Mapping[str, Any]]:
    """A publisher needs at least one key, each with keyId and asciiArmor."""
    if not isinstance(gpg_keys, list) or not gpg_keys:
        raise ValidationError("gpgKeys required.", field_name="gpgKeys")

    for i, key in enumerate(gpg_keys):
        if not isinstance(key, Mapping):
            key = {}
        validate_required_fields(dict(key), GPG_KEY_FIELDS, prefix=f"gpgKeys[{i}].")
    return gpg_keys
