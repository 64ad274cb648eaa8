import io
import zipfile
from datetime import UTC, datetime

from watermark_studio.assets.library import ImageAsset
from watermark_studio.output.archive import (
    ExportEntry,
    archive_filename,
    build_archive,
    collect_exports,
    output_filename,
)


def test_output_filename_is_prefixed_png() -> None:
    assert output_filename("photo.jpg") == "watermarked_photo.png"
    assert output_filename("scan.final.png") == "watermarked_scan.final.png"


def test_archive_filename_uses_epoch_millis() -> None:
    moment = datetime(2026, 1, 1, tzinfo=UTC)
    assert archive_filename(moment) == "watermarked_images_1767225600000.zip"


def test_collect_exports_skips_unprocessed_and_disambiguates() -> None:
    images = [
        ImageAsset(id="1", filename="a.jpg", source_bytes=b"", processed_bytes=b"one"),
        ImageAsset(id="2", filename="b.jpg", source_bytes=b""),
        ImageAsset(id="3", filename="a.png", source_bytes=b"", processed_bytes=b"three"),
    ]

    exports = collect_exports(images)

    assert exports == [
        ExportEntry(filename="watermarked_a.png", data=b"one", image_id="1"),
        ExportEntry(filename="watermarked_a_1.png", data=b"three", image_id="3"),
    ]


def test_build_archive_contains_every_entry() -> None:
    entries = [ExportEntry("watermarked_a.png", b"alpha"), ExportEntry("watermarked_b.png", b"beta")]

    archive = zipfile.ZipFile(io.BytesIO(build_archive(entries)))

    assert archive.namelist() == ["watermarked_a.png", "watermarked_b.png"]
    assert archive.read("watermarked_b.png") == b"beta"


def test_build_archive_is_deterministic() -> None:
    entries = [ExportEntry("x.png", b"payload" * 100)]
    assert build_archive(entries) == build_archive(entries)
