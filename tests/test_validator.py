"""Tests for artifact parsing, structure checks and version classification."""

import json

import pytest

from printops.errors import StructuralError
from printops.snapshot.checksum import compute_checksum
from printops.snapshot.validator import (
    classify_version,
    inspect_artifact,
    parse_artifact,
    validate_structure,
)


def _artifact(version: str = "2.0", **data) -> dict:
    raw = {
        "version": version,
        "exportDate": "2026-01-15T09:30:00+00:00",
        "metadata": {},
        "data": {"printers": [{"id": "p1"}], **data},
        "userPreferences": {},
    }
    raw["checksum"] = compute_checksum(raw)
    return raw


class TestParseArtifact:
    """parse_artifact accepts paths, JSON text and bytes."""

    def test_path(self, tmp_path):
        path = tmp_path / "a.json"
        path.write_text(json.dumps(_artifact()))
        assert parse_artifact(path)["version"] == "2.0"
        assert parse_artifact(str(path))["version"] == "2.0"

    def test_json_text_and_bytes(self):
        text = json.dumps(_artifact())
        assert parse_artifact(text)["data"]["printers"] == [{"id": "p1"}]
        assert parse_artifact(text.encode())["version"] == "2.0"

    def test_missing_file(self, tmp_path):
        with pytest.raises(StructuralError, match="not found"):
            parse_artifact(tmp_path / "nope.json")

    def test_invalid_json(self):
        with pytest.raises(StructuralError, match="Invalid JSON"):
            parse_artifact("{not json")

    def test_not_an_object(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2]")
        with pytest.raises(StructuralError, match="not a JSON object"):
            parse_artifact(path)


class TestValidateStructure:
    """validate_structure is a minimal shape check."""

    def test_valid(self):
        assert validate_structure(_artifact()) is True

    def test_printers_may_be_empty(self):
        assert validate_structure({"data": {"printers": []}}) is True

    @pytest.mark.parametrize(
        "raw",
        [
            None,
            [],
            "text",
            {},
            {"data": []},
            {"data": {}},
            {"data": {"printers": {}}},
            {"data": {"printers": None}},
        ],
    )
    def test_invalid(self, raw):
        assert validate_structure(raw) is False


class TestClassifyVersion:
    """classify_version reports compatibility and migration need."""

    def test_current(self):
        info = classify_version({"version": "2.0"})
        assert info.is_compatible and not info.needs_migration

    @pytest.mark.parametrize("version", ["1.0", "1.1", "1.2"])
    def test_older_supported(self, version):
        info = classify_version({"version": version})
        assert info.is_compatible and info.needs_migration

    def test_missing_version_is_oldest(self):
        info = classify_version({"data": {"printers": []}})
        assert info.version == "1.0"
        assert info.needs_migration

    def test_unknown_version(self):
        info = classify_version({"version": "3.0"})
        assert not info.is_compatible


class TestInspectArtifact:
    """inspect_artifact summarizes without importing."""

    def test_valid_current(self):
        report = inspect_artifact(_artifact(users=[{"id": "u1"}]))
        assert report.valid
        assert report.checksum_valid
        assert report.counts["printers"] == 1
        assert report.counts["users"] == 1
        assert report.exported_at == "2026-01-15T09:30:00+00:00"

    def test_bad_structure(self):
        report = inspect_artifact({"data": {}})
        assert not report.valid
        assert report.errors == ["Artifact does not have a valid structure"]

    def test_checksum_mismatch(self):
        raw = _artifact()
        raw["data"]["printers"][0]["id"] = "p9"
        report = inspect_artifact(raw)
        assert not report.valid
        assert not report.checksum_valid
        assert any("Checksum mismatch" in e for e in report.errors)

    def test_unsupported_version(self):
        report = inspect_artifact(_artifact(version="0.9"))
        assert not report.valid
        assert not report.is_compatible

    def test_old_version_warns(self):
        report = inspect_artifact(_artifact(version="1.1"))
        assert report.valid
        assert report.needs_migration
        assert any("migrated" in w for w in report.warnings)

    def test_missing_ids_and_unknown_collections(self):
        report = inspect_artifact(_artifact(users=[{"name": "no id"}], widgets=[]))
        assert any("users: 1 record(s) without an id" in w for w in report.warnings)
        assert any("widgets" in w for w in report.warnings)

    def test_non_list_collection(self):
        report = inspect_artifact(_artifact(users={"id": "u1"}))
        assert not report.valid
        assert "Collection users is not a list" in report.errors
