from __future__ import annotations

import hashlib
import json
import os
from pathlib import Path
from typing import Mapping

import yaml
from pydantic import ValidationError

from .config_schema import PipelineConfig
from .errors import ConfigError

INPUT_PATH_ENV = "INPUT_PATH"
DEBUG_ENV = "DEBUG"


def load_config(path: str | Path) -> PipelineConfig:
    """
    Load a YAML config file and validate it into a typed PipelineConfig.

    Raises ConfigError with a readable validation message on failure.
    """
    p = Path(path)

    if not p.exists():
        raise ConfigError(f"Config file not found: {p}")

    try:
        raw_text = p.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Failed to read config file: {p}") from e

    try:
        data = yaml.safe_load(raw_text)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML in {p}: {e}") from e

    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise ConfigError(f"Top-level YAML in {p} must be a mapping/object")

    return validate_config(data, source=str(p))


def validate_config(data: Mapping[str, object], *, source: str = "<config>") -> PipelineConfig:
    try:
        return PipelineConfig.model_validate(dict(data))
    except ValidationError as e:
        raise ConfigError(_format_pydantic_errors(e, source)) from e


def resolve_environment(
    config: PipelineConfig, *, environ: Mapping[str, str] | None = None
) -> PipelineConfig:
    """
    Apply INPUT_PATH and DEBUG from the environment on top of `config`.

    DEBUG enables identity rejection logging only when set to "true".
    Unset or blank variables leave the config value untouched.
    """
    env = os.environ if environ is None else environ

    update: dict[str, object] = {}

    input_path = (env.get(INPUT_PATH_ENV) or "").strip()
    if input_path:
        update["input_path"] = input_path

    debug = (env.get(DEBUG_ENV) or "").strip()
    if debug:
        update["debug"] = debug.lower() == "true"

    if not update:
        return config

    merged = config.model_dump()
    merged.update(update)
    return validate_config(merged, source="environment")


def config_sha256(config: PipelineConfig) -> str:
    """
    Compute a stable SHA-256 hash of the config values for reproducibility.
    """
    payload = json.dumps(
        config.model_dump(mode="json"),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    ).encode("utf-8")
    return hashlib.sha256(payload).hexdigest()


def _format_pydantic_errors(err: ValidationError, source: str) -> str:
    lines: list[str] = [f"Invalid configuration in {source}:"]
    for item in err.errors():
        loc = ".".join(str(part) for part in item.get("loc", [])) or "<root>"
        msg = item.get("msg", "invalid value")
        lines.append(f"- {loc}: {msg}")
    return "\n".join(lines)
