from __future__ import annotations

import json
import sys
from pathlib import Path

from .config import WatermarkConfig


def watermark_config_json_schema() -> dict:
    """Pydantic-generated schema for watermark config files."""
    return WatermarkConfig.model_json_schema()


def write_config_schema(schema_path: Path) -> None:
    schema_path.parent.mkdir(parents=True, exist_ok=True)
    schema_path.write_text(json.dumps(watermark_config_json_schema(), indent=2), encoding="utf-8")


def main(argv: list[str] | None = None) -> None:
    args = sys.argv[1:] if argv is None else argv
    if not args:
        raise SystemExit("usage: python -m watermark_studio.models.schema_export <output.json>")
    write_config_schema(Path(args[0]))


if __name__ == "__main__":
    main()
