from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

VariableMap = dict[str, str]


class PluginsConfig(BaseModel):
    site_builder: str | None = None
    fragment_engine: str | None = None


class ServeSettings(BaseModel):
    port: int = Field(default=8080, ge=0, le=65535)
    host: str = "0.0.0.0"
    open_browser: bool = True
    output_dir: str = "_site"


class DocbindConfig(BaseModel):
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)
    serve: ServeSettings = Field(default_factory=ServeSettings)
    log_level: Literal["debug", "info", "warn", "error"] = "info"
    log_format: Literal["text", "json"] = "text"


class ProjectConfig(BaseModel):
    """Per-invocation scope handed to the fragment engine.

    Both maps are keyed by the string form of a root path.
    """

    root_path: Path
    base_url_map: dict[str, bool] = Field(default_factory=dict)
    user_defined_variables_map: dict[str, VariableMap] = Field(default_factory=dict)


class ServerConfig(BaseModel):
    """Immutable preview server settings, built once per ``serve``."""

    model_config = ConfigDict(frozen=True)

    root: Path
    mount_points: tuple[tuple[str, Path], ...]
    port: int = Field(default=8080, ge=0, le=65535)
    host: str = "0.0.0.0"
    open_browser: bool = True
    log_level: str = "warning"
