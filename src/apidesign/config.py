"""Generator configuration.

Values come from an optional YAML file, then the environment, then explicit
overrides (usually CLI options); later sources win.
"""

import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ValidationError

from apidesign.design.errors import ConfigurationError

ENV_LOCALES = "APIDESIGN_LOCALES"
ENV_OUTPUT_DIR = "APIDESIGN_OUTPUT_DIR"

DEFAULT_OUTPUT_DIR = Path("gen") / "http"


class GeneratorConfig(BaseModel):
    locales: list[str]
    output_dir: Path = DEFAULT_OUTPUT_DIR
    formats: list[Literal["json", "yaml"]] = ["json", "yaml"]

    @property
    def default_locale(self) -> str:
        return self.locales[0]


def parse_locales(value: str | list[str] | None) -> list[str]:
    """Split a comma-separated locale list, dropping blanks and duplicates."""
    if value is None:
        return []
    items = value.split(",") if isinstance(value, str) else value
    locales: list[str] = []
    for item in items:
        item = str(item).strip()
        if item and item not in locales:
            locales.append(item)
    return locales


def load_config(
    file_path: Path | None = None,
    locales: str | None = None,
    output_dir: Path | None = None,
    formats: list[str] | None = None,
) -> GeneratorConfig:
    """Resolve the configuration. A missing or empty locale list is fatal."""
    data: dict = {}
    if file_path is not None:
        loaded = yaml.safe_load(file_path.read_text(encoding="utf-8")) or {}
        if not isinstance(loaded, dict):
            raise ConfigurationError(f"{file_path}: configuration must be a mapping")
        data.update(loaded)

    if os.getenv(ENV_LOCALES):
        data["locales"] = os.environ[ENV_LOCALES]
    if os.getenv(ENV_OUTPUT_DIR):
        data["output_dir"] = os.environ[ENV_OUTPUT_DIR]

    if locales is not None:
        data["locales"] = locales
    if output_dir is not None:
        data["output_dir"] = output_dir
    if formats:
        data["formats"] = list(formats)

    data["locales"] = parse_locales(data.get("locales"))
    if not data["locales"]:
        raise ConfigurationError(
            f"no locales configured (set 'locales' in the config file, {ENV_LOCALES} or --locales)"
        )
    try:
        return GeneratorConfig(**data)
    except ValidationError as e:
        raise ConfigurationError(str(e)) from e
