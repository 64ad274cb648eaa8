from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from uuid import uuid4

from pydantic import ValidationError

from watermark_studio.assets.library import AssetLibrary, ImageAsset
from watermark_studio.batch.runner import BatchEvent, BatchRunner
from watermark_studio.config_loader import ConfigValidationError, load_watermark_config
from watermark_studio.exceptions import ConfigurationError, DecodeFailure
from watermark_studio.models.config import WatermarkConfig
from watermark_studio.output.archive import archive_filename, build_archive, collect_exports
from watermark_studio.output.manifest import BatchManifest, ImageManifestEntry, utc_now_iso
from watermark_studio.output.metrics import RunMetrics, Timer
from watermark_studio.output.writer import save_bytes, write_json

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RunConfig:
    image_paths: list[Path]
    logo_path: Path
    output_root: Path
    config_path: Path | None = None
    overrides: dict = field(default_factory=dict)
    archive: bool = False


def _resolve_config(config_path: Path | None, overrides: dict) -> WatermarkConfig:
    config = load_watermark_config(config_path) if config_path else WatermarkConfig()
    if not overrides:
        return config
    merged = config.model_dump()
    for section, values in overrides.items():
        if isinstance(values, dict) and isinstance(merged.get(section), dict) and section != "placement":
            merged[section].update(values)
        else:
            merged[section] = values
    try:
        return WatermarkConfig.model_validate(merged)
    except ValidationError as exc:
        errors = "\n".join(
            f"- {'.'.join(str(part) for part in item['loc'])}: {item['msg']}" for item in exc.errors()
        )
        raise ConfigValidationError(f"Invalid watermark settings:\n{errors}") from exc


def _load_assets(config: RunConfig, library: AssetLibrary) -> tuple[list[ImageAsset], list[ImageManifestEntry]]:
    if not config.logo_path.exists():
        raise ConfigurationError(f"Logo file not found: {config.logo_path}")
    logo = library.add_logo(config.logo_path.name, config.logo_path.read_bytes())
    if logo is None:
        raise ConfigurationError(f"Logo file is not an image: {config.logo_path}")

    images: list[ImageAsset] = []
    skipped: list[ImageManifestEntry] = []
    for image_path in config.image_paths:
        if not image_path.exists():
            logger.warning("Image file not found, skipping: %s", image_path)
            skipped.append(
                ImageManifestEntry(
                    image_id="",
                    source_file=str(image_path),
                    status="skipped",
                    error_message="file not found",
                )
            )
            continue

        data = image_path.read_bytes()
        try:
            asset = library.add_image(image_path.name, data)
        except DecodeFailure as exc:
            # The batch run reports it as a failed image.
            logger.warning("Preview decode failed for %s (%s)", image_path, exc.reason)
            asset = ImageAsset(id=uuid4().hex, filename=image_path.name, source_bytes=data)

        if asset is None:
            skipped.append(
                ImageManifestEntry(
                    image_id="",
                    source_file=str(image_path),
                    status="skipped",
                    error_message="not an image file",
                )
            )
            continue
        images.append(asset)
    return images, skipped


def run_batch(
    config: RunConfig,
    on_event: Callable[[BatchEvent], None] | None = None,
    should_cancel: Callable[[], bool] | None = None,
) -> tuple[dict, dict]:
    timer = Timer()
    watermark_config = _resolve_config(config.config_path, config.overrides)
    library = AssetLibrary(preview_max_edge=watermark_config.preview_max_edge)

    manifest = BatchManifest(
        logo_file=str(config.logo_path),
        placement=watermark_config.placement.model_dump(),
        options=watermark_config.options.model_dump(),
        started_at=utc_now_iso(),
    )
    metrics = RunMetrics(total_images=len(config.image_paths))

    try:
        images, skipped = _load_assets(config, library)
        manifest.images.extend(skipped)
        metrics.images_skipped = len(skipped)

        logo = library.selected_logo
        if logo is None:
            raise ConfigurationError("No logo selected for the batch run")

        runner = BatchRunner(logo, watermark_config.placement, watermark_config.options, watermark_config.encoder)
        sources = {asset.id: asset for asset in images}
        for event in runner.run(images, should_cancel=should_cancel):
            if on_event is not None:
                on_event(event)
            entry = ImageManifestEntry(
                image_id=event.image_id,
                source_file=sources[event.image_id].filename,
                status=event.status,
            )
            if event.status == "processed":
                metrics.images_processed += 1
            else:
                metrics.images_failed += 1
                entry.error_kind = event.error_kind
                entry.error_message = str(event.error)
            manifest.images.append(entry)
        manifest.cancelled = runner.cancelled

        exports = collect_exports(images)
        if config.archive:
            if exports:
                name = archive_filename()
                save_bytes(build_archive(exports), config.output_root / name)
                manifest.archive_file = name
                logger.info("Wrote archive %s with %d image(s)", name, len(exports))
        else:
            output_files: dict[str, str] = {}
            for export in exports:
                save_bytes(export.data, config.output_root / export.filename)
                if export.image_id is not None:
                    output_files[export.image_id] = export.filename
            for entry in manifest.images:
                entry.output_file = output_files.get(entry.image_id)
    finally:
        library.close()

    metrics.execution_time_seconds = round(timer.elapsed(), 3)
    manifest.finished_at = utc_now_iso()
    write_json(manifest.to_dict(), config.output_root / "manifest.json")
    write_json(metrics.to_dict(), config.output_root / "metrics.json")
    logger.info(
        "Batch run finished: %d processed, %d failed, %d skipped",
        metrics.images_processed,
        metrics.images_failed,
        metrics.images_skipped,
    )
    return manifest.to_dict(), metrics.to_dict()
