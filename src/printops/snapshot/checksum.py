"""Content checksum for snapshot artifacts.

The checksum covers the whole artifact except the ``checksum`` field
itself.  Payloads are encoded as canonical JSON (sorted keys, compact
separators, UTF-8) so the same content always hashes the same, regardless
of key order after a load/dump cycle.

SHA-256 is the primary digest.  When the runtime refuses SHA-256 (for
example an OpenSSL build with the algorithm disabled), a 32-bit rolling
hash is used instead.  It only detects accidental or casual tampering.
Verification picks the algorithm from the shape of the stored checksum,
so artifacts produced under either digest verify anywhere the digest is
available.
"""

import hashlib
import json
import logging
import re
from collections.abc import Mapping
from typing import Any

from printops.errors import StructuralError
from printops.snapshot.models import Snapshot

logger = logging.getLogger(__name__)

_SHA256_HEX = re.compile(r"^[0-9a-f]{64}$")


def canonical_json(obj: Any) -> str:
    """Encode ``obj`` as canonical JSON text."""
    return json.dumps(
        obj,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )


def rolling_hash(text: str) -> str:
    """32-bit ``h = h * 31 + code`` hash, hex-encoded absolute value."""
    h = 0
    for ch in text:
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return format(abs(h), "x")


def _sha256_hex(data: bytes) -> str | None:
    try:
        return hashlib.new("sha256", data).hexdigest()
    except ValueError:
        return None


def _payload(snapshot: Snapshot | Mapping[str, Any]) -> dict[str, Any]:
    if isinstance(snapshot, Snapshot):
        return snapshot.to_wire(include_checksum=False)
    return {k: v for k, v in snapshot.items() if k != "checksum"}


def compute_checksum(payload: Snapshot | Mapping[str, Any]) -> str:
    """Hash a snapshot (or its wire dict) with ``checksum`` excluded.

    Returns:
        64-char SHA-256 hex digest, or the rolling hash when SHA-256 is
        unavailable.

    Raises:
        StructuralError: If the payload holds values JSON cannot carry
            (NaN, Infinity, non-serializable objects).
    """
    try:
        text = canonical_json(_payload(payload))
    except (TypeError, ValueError) as e:
        raise StructuralError(f"Content cannot be encoded as JSON: {e}") from e
    digest = _sha256_hex(text.encode("utf-8"))
    if digest is None:
        logger.warning("SHA-256 unavailable, using rolling hash checksum")
        return rolling_hash(text)
    return digest


def verify_checksum(snapshot: Snapshot | Mapping[str, Any]) -> bool:
    """Recompute the checksum and compare it to the stored one.

    Args:
        snapshot: A ``Snapshot`` or the raw artifact dict as read from disk.
            Raw dicts are hashed as-is, so unknown keys count too.

    Returns:
        ``True`` only on an exact match.
    """
    if isinstance(snapshot, Snapshot):
        stored = snapshot.checksum
    else:
        stored = snapshot.get("checksum")
    if not isinstance(stored, str) or not stored:
        return False

    try:
        text = canonical_json(_payload(snapshot))
    except (TypeError, ValueError) as e:
        logger.warning("Artifact cannot be canonically encoded: %s", e)
        return False

    if _SHA256_HEX.match(stored):
        digest = _sha256_hex(text.encode("utf-8"))
        if digest is None:
            logger.warning("SHA-256 unavailable, cannot verify SHA-256 checksum")
            return False
        return digest == stored
    return rolling_hash(text) == stored
