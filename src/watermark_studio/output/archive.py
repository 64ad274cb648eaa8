from __future__ import annotations

import io
import zipfile
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import PurePath

from watermark_studio.assets.library import ImageAsset

OUTPUT_PREFIX = "watermarked_"

# Entry date for every archive member.
_ZIP_TIMESTAMP = (1980, 1, 1, 0, 0, 0)


@dataclass(frozen=True, slots=True)
class ExportEntry:
    filename: str
    data: bytes
    image_id: str | None = None


def output_filename(original: str) -> str:
    """``photo.jpg`` -> ``watermarked_photo.png``; output is always PNG."""
    stem = PurePath(original).stem or "image"
    return f"{OUTPUT_PREFIX}{stem}.png"


def archive_filename(now: datetime | None = None) -> str:
    moment = now or datetime.now(UTC)
    return f"watermarked_images_{int(moment.timestamp() * 1000)}.zip"


def _unique_names(names: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    unique: list[str] = []
    for name in names:
        candidate = name
        path = PurePath(name)
        counter = 1
        while candidate in seen:
            candidate = f"{path.stem}_{counter}{path.suffix}"
            counter += 1
        seen.add(candidate)
        unique.append(candidate)
    return unique


def collect_exports(images: Iterable[ImageAsset]) -> list[ExportEntry]:
    processed = [asset for asset in images if asset.processed_bytes is not None]
    names = _unique_names(output_filename(asset.filename) for asset in processed)
    return [
        ExportEntry(filename=name, data=asset.processed_bytes, image_id=asset.id)  # type: ignore[arg-type]
        for name, asset in zip(names, processed)
    ]


def build_archive(entries: Iterable[ExportEntry]) -> bytes:
    entries = list(entries)
    names = _unique_names(entry.filename for entry in entries)
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, mode="w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name, entry in zip(names, entries):
            info = zipfile.ZipInfo(name, date_time=_ZIP_TIMESTAMP)
            info.compress_type = zipfile.ZIP_DEFLATED
            archive.writestr(info, entry.data)
    return buffer.getvalue()
