"""Exception hierarchy for the snapshot pipeline.

Fatal errors (structural, integrity, compatibility) stop an import before
any write.  Record and collection errors are recoverable: the pipeline
counts them as skipped and keeps going.  Entry points convert all of them
into result models; only ``build_snapshot`` lets store errors escape.
"""


class SnapshotError(Exception):
    """Base class for snapshot pipeline errors."""

    pass


class StructuralError(SnapshotError):
    """Artifact cannot be parsed or lacks the minimal required shape."""

    pass


class IntegrityError(SnapshotError):
    """Stored checksum does not match the artifact content."""

    pass


class CompatibilityError(SnapshotError):
    """Artifact version is not in the supported set."""

    pass


class RecordError(SnapshotError):
    """A single record could not be read or written."""

    def __init__(self, collection: str, record_id: str | None, cause: Exception) -> None:
        self.collection = collection
        self.record_id = record_id
        self.cause = cause
        super().__init__(f"{collection}/{record_id}: {cause}")


class CollectionError(SnapshotError):
    """A whole collection is unreachable (e.g. its table does not exist)."""

    def __init__(self, collection: str, message: str) -> None:
        self.collection = collection
        super().__init__(f"{collection}: {message}")


class AdapterError(SnapshotError):
    """Any other store failure outside a record or batch write."""

    pass
