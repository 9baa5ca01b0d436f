"""Application configuration: settings schema and config.yaml loader"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


CONFIG_FILE = "config.yaml"


class Settings(BaseModel):
    site_title:       str = ""
    site_description: str = ""
    base_url:         str = ""
    source_dir:     str = Field(default="content",  description="Directory of Markdown posts and HTML pages")
    layouts_dir:    str = Field(default="_layouts", description="Directory of named layout templates")
    static_dir:     str = Field(default="static",   description="Assets copied verbatim into the output; empty disables")
    output_dir:     str = Field(default="_site",    description="Directory for generated HTML")
    default_layout: str = Field(default="default",  description="Layout used when a document names none")
    default_title:  str = Field(default="Untitled", description="Title used when a document has none")
    parser_config:  str = Field(default="gfm-like", description="MarkdownIt parser preset name")
    log_level:      str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR)$", description="Logging level")


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from config.yaml, then MDSITE_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Invalid {CONFIG_FILE}: expected a mapping, got {type(data).__name__}")

    for name in Settings.model_fields:
        if val := os.getenv(f"MDSITE_{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)
