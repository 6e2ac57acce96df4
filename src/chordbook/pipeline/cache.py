"""In-process cache shared by successive builds (watch or serve mode)."""

from dataclasses import dataclass, field

from chordbook.models.song import SongDocument


@dataclass
class BuildCache:
    """Parse results and rendered bytes of the last successful work.

    Documents are keyed by song id and checked against a parse key (content
    hash plus parser configuration). Artifacts are keyed by a render
    fingerprint. Only the orchestrating thread writes to the cache.
    """

    documents: dict[str, tuple[str, SongDocument]] = field(default_factory=dict)
    artifacts: dict[str, bytes] = field(default_factory=dict)

    def document(self, song_id: str, parse_key: str) -> SongDocument | None:
        entry = self.documents.get(song_id)
        if entry is None or entry[0] != parse_key:
            return None
        return entry[1]

    def store_document(self, song_id: str, parse_key: str, document: SongDocument) -> None:
        self.documents[song_id] = (parse_key, document)

    def artifact(self, fingerprint: str | None) -> bytes | None:
        if fingerprint is None:
            return None
        return self.artifacts.get(fingerprint)

    def store_artifact(self, fingerprint: str | None, data: bytes) -> None:
        if fingerprint is not None:
            self.artifacts[fingerprint] = data

    def retain(self, song_ids: set[str], fingerprints: set[str]) -> None:
        """Drop entries the latest build no longer references."""
        self.documents = {k: v for k, v in self.documents.items() if k in song_ids}
        self.artifacts = {k: v for k, v in self.artifacts.items() if k in fingerprints}
