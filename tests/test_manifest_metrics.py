from watermark_studio.output.manifest import BatchManifest, ImageManifestEntry
from watermark_studio.output.metrics import RunMetrics


def test_manifest_and_metrics_serializable() -> None:
    manifest = BatchManifest(
        logo_file="logo.png",
        placement={"kind": "anchored", "corner": "bottom-right"},
        options={"scale_fraction": 0.15},
        started_at="2026-01-01T00:00:00Z",
    )
    manifest.images.append(ImageManifestEntry(image_id="a", source_file="a.png", status="processed"))
    metrics = RunMetrics(total_images=2, images_processed=1)

    payload = manifest.to_dict()
    assert payload["logo_file"] == "logo.png"
    assert payload["images"][0]["status"] == "processed"
    assert metrics.to_dict()["images_processed"] == 1
