import io
import logging

import pytest
from PIL import Image

from watermark_studio.assets import AssetLibrary, ImageAsset, is_image_payload
from watermark_studio.exceptions import DecodeFailure
from watermark_studio.imaging.raster import RasterImage


def _png(size: tuple[int, int] = (200, 100)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGBA", size, (10, 20, 30, 255)).save(buffer, format="PNG")
    return buffer.getvalue()


def test_image_payload_filter_uses_content_type_then_filename() -> None:
    assert is_image_payload("anything.bin", "image/png")
    assert not is_image_payload("photo.png", "text/plain")
    assert is_image_payload("photo.JPG")
    assert not is_image_payload("notes.txt")


def test_add_image_assigns_id_and_thumbnail_preview() -> None:
    library = AssetLibrary(preview_max_edge=64)
    asset = library.add_image("photo.png", _png())

    assert asset is not None
    assert asset.id
    assert asset.preview is not None and asset.preview.size == (64, 32)
    assert library.get_image(asset.id) is asset


def test_ids_are_unique_per_upload() -> None:
    library = AssetLibrary()
    first = library.add_image("a.png", _png())
    second = library.add_image("a.png", _png())
    assert first is not None and second is not None
    assert first.id != second.id


def test_non_image_upload_is_skipped(caplog: pytest.LogCaptureFixture) -> None:
    library = AssetLibrary()
    with caplog.at_level(logging.WARNING):
        assert library.add_image("notes.txt", b"hello", "text/plain") is None
    assert library.images == []
    assert "notes.txt" in caplog.text


def test_undecodable_image_upload_raises() -> None:
    library = AssetLibrary()
    with pytest.raises(DecodeFailure):
        library.add_image("broken.png", b"garbage", "image/png")
    assert library.images == []


def test_remove_image_releases_rasters() -> None:
    library = AssetLibrary()
    asset = library.add_image("photo.png", _png())
    assert asset is not None
    preview = asset.preview
    processed = RasterImage(Image.new("RGBA", (4, 4)))
    asset.mark_processed(processed, b"png-bytes")

    library.remove_image(asset.id)

    assert preview is not None and preview.released
    assert processed.released
    assert library.images == []
    with pytest.raises(KeyError):
        library.get_image(asset.id)


def test_first_logo_is_selected_and_selection_can_change() -> None:
    library = AssetLibrary()
    first = library.add_logo("first.png", _png((50, 50)))
    second = library.add_logo("second.png", _png((60, 30)))
    assert first is not None and second is not None

    assert library.selected_logo is first
    library.select_logo(second.id)
    assert library.selected_logo is second


def test_removing_selected_logo_clears_selection() -> None:
    library = AssetLibrary()
    logo = library.add_logo("brand.png", _png((50, 50)))
    assert logo is not None

    library.remove_logo(logo.id)

    assert library.selected_logo is None
    assert logo.preview is None


def test_mark_processed_replaces_previous_output() -> None:
    asset = ImageAsset(id="a", filename="a.png", source_bytes=b"")
    first = RasterImage(Image.new("RGBA", (2, 2)))
    second = RasterImage(Image.new("RGBA", (2, 2)))

    asset.mark_processed(first, b"first")
    asset.mark_processed(second, b"second")

    assert asset.processed is second
    assert asset.processed_bytes == b"second"
    assert first.released


def test_processed_images_and_clear() -> None:
    library = AssetLibrary()
    done = library.add_image("done.png", _png())
    pending = library.add_image("pending.png", _png())
    assert done is not None and pending is not None
    done.mark_processed(RasterImage(Image.new("RGBA", (2, 2))), b"out")

    assert library.processed_images() == [done]

    library.clear_images()
    assert library.images == []
