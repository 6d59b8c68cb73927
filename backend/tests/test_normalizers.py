"""Tests for record building and response reshaping."""

from __future__ import annotations

from models.pagination import PaginationMeta
from services import normalizers
from payloads import module_payload, platform_payload


def test_build_module_record_defaults_owner() -> None:
    data = module_payload(owner=None)
    record = normalizers.build_module_record(data, {})
    assert record["owner"] == ""
    assert record["location"] == data["location"]


def test_build_module_record_merges_definition() -> None:
    definition = {"root": {"inputs": []}, "submodules": [{"path": "modules/a"}]}
    record = normalizers.build_module_record(module_payload(), definition)
    assert record["root"] == {"inputs": []}
    assert record["submodules"] == [{"path": "modules/a"}]


def test_definition_cannot_override_identity_fields() -> None:
    definition = {
        "namespace": "evil",
        "name": "evil",
        "provider": "evil",
        "version": "9.9.9",
        "downloads": 1000,
        "description": "kept",
    }
    record = normalizers.build_module_record(module_payload(), definition)
    assert record["namespace"] == "hashicorp"
    assert record["name"] == "consul"
    assert record["provider"] == "aws"
    assert record["version"] == "1.0.0"
    assert "downloads" not in record
    assert record["description"] == "kept"


def test_build_module_record_does_not_alias_definition() -> None:
    definition = {"root": {"inputs": ["a"]}}
    record = normalizers.build_module_record(module_payload(), definition)
    record["root"]["inputs"].append("b")
    assert definition["root"]["inputs"] == ["a"]


def test_build_provider_record_normalizes_platforms() -> None:
    platform = platform_payload(extra="dropped")
    platform["checksum"] = platform.pop("shasum")
    data = {"namespace": "hashicorp", "type": "aws", "version": "1.0.0"}

    record = normalizers.build_provider_record(data, [platform])

    assert record["platforms"] == [
        {
            "os": "linux",
            "arch": "amd64",
            "location": platform["location"],
            "filename": platform["filename"],
            "shasum": platform["checksum"],
        }
    ]


def test_build_publisher_record() -> None:
    data = {"name": "hashicorp", "url": "https://hashicorp.com", "extra": 1}
    keys = [{"keyId": "A", "asciiArmor": "B", "source": "HashiCorp"}]
    record = normalizers.build_publisher_record(data, keys)
    assert record == {
        "name": "hashicorp",
        "url": "https://hashicorp.com",
        "trustSignature": None,
        "gpgKeys": keys,
    }


def test_listing_attaches_meta() -> None:
    meta = PaginationMeta.calculate(0, 15, 1)
    result = normalizers.listing(meta, "modules", [{"name": "a"}])
    assert result["modules"] == [{"name": "a"}]
    assert result["meta"]["currentOffset"] == 0


def test_module_versions_keeps_only_version_fields() -> None:
    docs = [
        {"version": "1.0.0", "submodules": [], "root": {"path": ""}, "location": "x"},
        {"version": "1.1.0"},
    ]
    assert normalizers.module_versions(docs) == [
        {"version": "1.0.0", "submodules": [], "root": {"path": ""}},
        {"version": "1.1.0", "submodules": None, "root": None},
    ]


def test_provider_versions_empty_is_empty_dict() -> None:
    assert normalizers.provider_versions([]) == {}


def test_provider_versions_groups_and_strips_platforms() -> None:
    docs = [
        {
            "namespace": "hashicorp",
            "type": "aws",
            "version": "1.0.0",
            "platforms": [platform_payload(), platform_payload(os="darwin", arch="arm64")],
        },
        {"namespace": "hashicorp", "type": "aws", "version": "1.1.0", "platforms": []},
    ]

    result = normalizers.provider_versions(docs)

    assert result == {
        "id": "hashicorp/aws",
        "versions": [
            {
                "version": "1.0.0",
                "protocols": [],
                "platforms": [
                    {"os": "linux", "arch": "amd64"},
                    {"os": "darwin", "arch": "arm64"},
                ],
            },
            {"version": "1.1.0", "protocols": [], "platforms": []},
        ],
    }
