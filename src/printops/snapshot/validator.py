"""Artifact parsing, structural checks and version classification.

None of these functions touch a store or mutate their input.  The
structural check is deliberately minimal; per-field correctness is left to
the migrator and to the backing store on write.
"""

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from printops.errors import StructuralError
from printops.snapshot.checksum import verify_checksum
from printops.snapshot.models import (
    COLLECTIONS,
    CURRENT_VERSION,
    OLDEST_VERSION,
    SUPPORTED_VERSIONS,
    ArtifactReport,
    Snapshot,
    VersionInfo,
)


def parse_artifact(source: str | bytes | Path) -> dict[str, Any]:
    """Load an artifact from a path, JSON text or raw bytes.

    ``str`` values are treated as JSON text when they start with ``{``,
    otherwise as a file path.

    Raises:
        StructuralError: If the file cannot be read or is not a JSON object.
    """
    try:
        if isinstance(source, Path) or (
            isinstance(source, str) and not source.lstrip().startswith("{")
        ):
            with open(source, "r", encoding="utf-8") as f:
                data = json.load(f)
        else:
            data = json.loads(source)
    except FileNotFoundError as e:
        raise StructuralError(f"Artifact not found: {source}") from e
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise StructuralError(f"Invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise StructuralError("Artifact is not a JSON object")
    return data


def validate_structure(raw: Any) -> bool:
    """Minimal shape check: a mapping with a ``data`` mapping holding a ``printers`` list."""
    if not isinstance(raw, Mapping):
        return False
    data = raw.get("data")
    return isinstance(data, Mapping) and isinstance(data.get("printers"), list)


def classify_version(snapshot: Snapshot | Mapping[str, Any]) -> VersionInfo:
    """Report whether an artifact's version is supported and needs migration.

    A missing version is treated as the oldest known version.
    """
    if isinstance(snapshot, Snapshot):
        version = snapshot.version
    else:
        version = snapshot.get("version")
    version = version or OLDEST_VERSION
    return VersionInfo(
        version=version,
        is_compatible=version in SUPPORTED_VERSIONS,
        needs_migration=version != CURRENT_VERSION,
    )


def inspect_artifact(raw: Any) -> ArtifactReport:
    """Summarize an artifact for display without applying it.

    Returns:
        ``ArtifactReport`` whose ``valid`` flag is ``True`` when the
        artifact is structurally sound, checksum-valid and compatible.
        Errors make the artifact unimportable without
        ``skip_validation``; warnings are advisory.
    """
    if not validate_structure(raw):
        return ArtifactReport(
            valid=False,
            errors=["Artifact does not have a valid structure"],
        )

    errors: list[str] = []
    warnings: list[str] = []

    info = classify_version(raw)
    if not info.is_compatible:
        errors.append(f"Unsupported artifact version '{info.version}'")
    elif info.needs_migration:
        warnings.append(
            f"Artifact version {info.version} will be migrated to {CURRENT_VERSION}"
        )

    checksum_valid = verify_checksum(raw)
    if not checksum_valid:
        errors.append("Checksum mismatch: artifact is corrupt or was modified")

    data = raw["data"]
    counts: dict[str, int] = {}
    for name in COLLECTIONS:
        records = data.get(name)
        if records is None:
            if info.is_compatible and not info.needs_migration:
                warnings.append(f"Missing collection: {name}")
            continue
        if not isinstance(records, list):
            errors.append(f"Collection {name} is not a list")
            continue
        counts[name] = len(records)
        missing_ids = sum(
            1 for r in records if not isinstance(r, Mapping) or not r.get("id")
        )
        if missing_ids:
            warnings.append(f"{name}: {missing_ids} record(s) without an id")

    unknown = sorted(set(data) - set(COLLECTIONS))
    if unknown:
        warnings.append(f"Unknown collections ignored: {', '.join(unknown)}")

    return ArtifactReport(
        valid=not errors,
        version=info.version,
        is_compatible=info.is_compatible,
        needs_migration=info.needs_migration,
        checksum_valid=checksum_valid,
        exported_at=raw.get("exportDate"),
        counts=counts,
        errors=errors,
        warnings=warnings,
    )
