"""
Reshaping between caller payloads, backend records and canonical responses.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping
from typing import Any

from models.pagination import PaginationMeta
from models.registry import (
    ModuleVersion,
    Platform,
    PlatformSummary,
    ProviderVersion,
    ProviderVersionList,
)

logger = logging.getLogger(__name__)

Record = dict[str, Any]

# Definition keys can never replace these on a module record.
RESERVED_MODULE_FIELDS = frozenset(
    {
        "namespace",
        "name",
        "provider",
        "version",
        "owner",
        "location",
        "downloads",
        "id",
        "createdAt",
    }
)


def build_module_record(data: Mapping[str, Any], definition: Mapping[str, Any]) -> Record:
    """
    Canonical module record with the free-form definition merged in.

    Definition keys colliding with RESERVED_MODULE_FIELDS are dropped.
    """
    dropped = sorted(key for key in definition if key in RESERVED_MODULE_FIELDS)
    if dropped:
        logger.debug("Ignoring reserved definition keys: %s", dropped)

    extension = {
        key: copy.deepcopy(value)
        for key, value in definition.items()
        if key not in RESERVED_MODULE_FIELDS
    }
    return {
        **extension,
        "owner": data.get("owner") or "",
        "namespace": data["namespace"],
        "name": data["name"],
        "provider": data["provider"],
        "version": data["version"],
        "location": data.get("location"),
    }


def build_provider_record(data: Mapping[str, Any], platforms: list[Mapping[str, Any]]) -> Record:
    return {
        "namespace": data["namespace"],
        "type": data["type"],
        "version": data["version"],
        "platforms": [Platform.model_validate(dict(p)).to_dict() for p in platforms],
    }


def build_publisher_record(data: Mapping[str, Any], gpg_keys: list[Mapping[str, Any]]) -> Record:
    return {
        "name": data["name"],
        "url": data.get("url"),
        "trustSignature": data.get("trustSignature"),
        "gpgKeys": [dict(key) for key in gpg_keys],
    }


def listing(meta: PaginationMeta, key: str, records: list[Record]) -> dict[str, Any]:
    """Listing response: backend records passed through with the window meta."""
    return {"meta": meta.to_dict(), key: records}


def module_versions(docs: list[Record]) -> list[Record]:
    return [
        ModuleVersion(
            version=doc.get("version"),
            submodules=doc.get("submodules"),
            root=doc.get("root"),
        ).to_dict()
        for doc in docs
    ]


def provider_versions(docs: list[Record]) -> Record:
    """
    Group provider records of one namespace/type into a version listing.

    Platforms are reduced to os/arch. No records gives an empty dict; a
    missing ``id`` is the not-found signal for this view.
    """
    if not docs:
        return {}

    first = docs[0]
    result = ProviderVersionList(
        id=f"{first['namespace']}/{first['type']}",
        versions=[
            ProviderVersion(
                version=doc["version"],
                platforms=[
                    PlatformSummary.model_validate(platform)
                    for platform in doc.get("platforms") or []
                ],
            )
            for doc in docs
        ],
    )
    return result.to_dict()
