from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path

from watermark_studio.config_loader import ConfigValidationError
from watermark_studio.exceptions import WatermarkStudioError
from watermark_studio.models.placement import CORNERS
from watermark_studio.pipeline import RunConfig, run_batch


def _strip_optional_quotes(value: str) -> str:
    trimmed = value.strip()
    if len(trimmed) >= 2 and ((trimmed[0] == '"' and trimmed[-1] == '"') or (trimmed[0] == "'" and trimmed[-1] == "'")):
        return trimmed[1:-1]
    return trimmed


def _load_env_file(env_path: Path) -> None:
    if not env_path.exists() or not env_path.is_file():
        return

    for raw_line in env_path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue

        key, raw_value = line.split("=", 1)
        key = key.strip()
        if not key:
            continue

        value = _strip_optional_quotes(raw_value)
        os.environ.setdefault(key, value)


def _load_default_env_files() -> None:
    cwd_env = Path.cwd() / ".env"
    project_root_env = Path(__file__).resolve().parents[2] / ".env"

    _load_env_file(project_root_env)
    if cwd_env != project_root_env:
        _load_env_file(cwd_env)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Composite a logo onto a batch of images")
    parser.add_argument("--images", nargs="+", required=True, help="Image files to watermark")
    parser.add_argument("--logo", required=True, help="Logo image file")
    parser.add_argument("--output", required=True, help="Output folder")
    parser.add_argument(
        "--config",
        default=os.getenv("WATERMARK_CONFIG"),
        help="Watermark config file (.yaml/.yml/.json). Defaults to $WATERMARK_CONFIG when set.",
    )
    parser.add_argument("--position", choices=[*CORNERS, "custom"], default=None, help="Logo position")
    parser.add_argument("--x", type=float, default=None, help="Custom logo center X in percent (with --position custom)")
    parser.add_argument("--y", type=float, default=None, help="Custom logo center Y in percent (with --position custom)")
    parser.add_argument("--scale", type=float, default=None, help="Logo scale fraction in (0, 1]")
    parser.add_argument(
        "--scale-reference",
        choices=["logo", "base"],
        default=None,
        help="Whether --scale is relative to the logo's natural width or the image width",
    )
    parser.add_argument("--opacity", type=float, default=None, help="Logo opacity in [0, 1]")
    parser.add_argument("--margin", type=float, default=None, help="Corner margin as a fraction of the shorter side")
    parser.add_argument("--archive", action="store_true", help="Write a single zip archive instead of separate files")
    parser.add_argument(
        "--log-level",
        default=os.getenv("WATERMARK_LOG_LEVEL", "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    return parser.parse_args(argv)


def _build_overrides(args: argparse.Namespace) -> dict:
    overrides: dict = {}

    if args.position == "custom":
        if args.x is None or args.y is None:
            raise SystemExit("--x and --y are required with --position custom")
        overrides["placement"] = {"kind": "custom_fraction", "x_fraction": args.x, "y_fraction": args.y}
    elif args.position is not None:
        overrides["placement"] = {"kind": "anchored", "corner": args.position}

    options = {
        "scale_fraction": args.scale,
        "opacity_fraction": args.opacity,
        "margin_fraction": args.margin,
        "scale_reference": args.scale_reference,
    }
    options = {key: value for key, value in options.items() if value is not None}
    if options:
        overrides["options"] = options
    return overrides


def main(argv: list[str] | None = None) -> None:
    _load_default_env_files()
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(asctime)s | %(levelname)s | %(message)s")

    config = RunConfig(
        image_paths=[Path(path) for path in args.images],
        logo_path=Path(args.logo),
        output_root=Path(args.output),
        config_path=Path(args.config) if args.config else None,
        overrides=_build_overrides(args),
        archive=args.archive,
    )

    try:
        manifest, metrics = run_batch(config)
    except ConfigValidationError as exc:
        raise SystemExit(f"Validation error:\n{exc}") from exc
    except WatermarkStudioError as exc:
        raise SystemExit(f"Batch failed ({type(exc).__name__}): {exc}") from exc

    failed = [entry for entry in manifest["images"] if entry["status"] == "failed"]
    if failed:
        print("Failed images")
        for entry in failed:
            print(f"- {entry['source_file']}: {entry['error_kind']}: {entry['error_message']}")

    print("Run metrics")
    print(f"- Total images: {metrics['total_images']}")
    print(f"- Processed: {metrics['images_processed']}")
    print(f"- Failed: {metrics['images_failed']}")
    print(f"- Skipped: {metrics['images_skipped']}")
    if manifest.get("archive_file"):
        print(f"- Archive: {manifest['archive_file']}")
    print(f"- Execution time (s): {metrics['execution_time_seconds']}")


if __name__ == "__main__":
    main()
