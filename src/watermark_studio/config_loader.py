from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError as JsonSchemaValidationError
from jsonschema import validate
from pydantic import ValidationError

from .models.config import WatermarkConfig

MIN_VALID_EXAMPLE_YAML = """placement:
  kind: anchored
  corner: bottom-right
options:
  scale_fraction: 0.15
  opacity_fraction: 0.8
  margin_fraction: 0.02
"""


class ConfigValidationError(ValueError):
    pass


def _default_schema_path() -> Path:
    return Path(__file__).resolve().parents[2] / "schemas" / "watermark_config.schema.json"


def _parse_config_file(config_path: Path) -> dict[str, Any]:
    suffix = config_path.suffix.lower()
    content = config_path.read_text(encoding="utf-8")

    if suffix in {".yaml", ".yml"}:
        parsed = yaml.safe_load(content)
    elif suffix == ".json":
        parsed = json.loads(content)
    else:
        raise ConfigValidationError(
            "Unsupported config format. Use .yaml, .yml, or .json files.\n\n"
            f"Minimal valid YAML example:\n{MIN_VALID_EXAMPLE_YAML}"
        )

    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ConfigValidationError(
            "Config root must be an object/map.\n\n"
            f"Minimal valid YAML example:\n{MIN_VALID_EXAMPLE_YAML}"
        )
    return parsed


def load_watermark_config(config_path: Path, schema_path: Path | None = None) -> WatermarkConfig:
    if not config_path.exists():
        raise ConfigValidationError(f"Config file not found: {config_path}")

    try:
        parsed = _parse_config_file(config_path)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigValidationError(
            f"Unable to parse config file: {exc}\n\n"
            f"Minimal valid YAML example:\n{MIN_VALID_EXAMPLE_YAML}"
        ) from exc

    schema_path = schema_path or _default_schema_path()
    if schema_path.exists():
        schema = json.loads(schema_path.read_text(encoding="utf-8"))
        try:
            validate(instance=parsed, schema=schema)
        except JsonSchemaValidationError as exc:
            location = ".".join(str(part) for part in exc.absolute_path) or "<root>"
            raise ConfigValidationError(
                f"Config schema validation failed at {location}: {exc.message}\n\n"
                f"Minimal valid YAML example:\n{MIN_VALID_EXAMPLE_YAML}"
            ) from exc

    try:
        return WatermarkConfig.model_validate(parsed)
    except ValidationError as exc:
        errors = []
        for item in exc.errors():
            location = ".".join(str(part) for part in item["loc"])
            errors.append(f"- {location}: {item['msg']}")
        raise ConfigValidationError(
            "Config validation failed:\n"
            + "\n".join(errors)
            + "\n\nMinimal valid YAML example:\n"
            + MIN_VALID_EXAMPLE_YAML
        ) from exc
