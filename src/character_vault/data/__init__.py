from .loader import ManifestEntry, SnapshotRepository
from .snapshot import CharacterDocument, actor_from_payload, guess_system, normalize_document
from .store import LocalStore, read_payload_files

__all__ = [
    "CharacterDocument",
    "LocalStore",
    "ManifestEntry",
    "SnapshotRepository",
    "actor_from_payload",
    "guess_system",
    "normalize_document",
    "read_payload_files",
]
