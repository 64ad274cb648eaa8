from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime


def utc_now_iso() -> str:
    return datetime.now(UTC).isoformat()


@dataclass(slots=True)
class ImageManifestEntry:
    image_id: str
    source_file: str
    status: str
    output_file: str | None = None
    error_kind: str | None = None
    error_message: str | None = None


@dataclass(slots=True)
class BatchManifest:
    logo_file: str
    placement: dict
    options: dict
    started_at: str
    archive_file: str | None = None
    cancelled: bool = False
    finished_at: str | None = None
    images: list[ImageManifestEntry] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)
