"""Project root resolution and YAML settings loading with env var expansion."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from docbind.errors import ConfigNotFound

from .models import DocbindConfig, ProjectConfig

logger = logging.getLogger(__name__)

SITE_CONFIG_NAME = "site.json"
SETTINGS_FILE_NAME = "docbind.yaml"


def resolve_root(start_dir: str | Path, marker: str = SITE_CONFIG_NAME) -> Path:
    """Return the nearest directory at or above ``start_dir`` holding ``marker``.

    Raises ConfigNotFound when the filesystem root is reached without a match.
    """
    start = Path(start_dir).resolve()
    for candidate in (start, *start.parents):
        if (candidate / marker).is_file():
            logger.debug("resolved project root %s", candidate)
            return candidate
    raise ConfigNotFound(start, marker)


def build_base_config(root_path: Path) -> ProjectConfig:
    """Skeleton config scoped to a single root, without user variables."""
    return ProjectConfig(
        root_path=root_path,
        base_url_map={str(root_path): True},
        user_defined_variables_map={},
    )


def load_config(
    cli_path: str | None = None, search_dir: str | Path | None = None
) -> DocbindConfig:
    """Load settings with resolution order: CLI > project-local > user-global > defaults."""
    config_paths = [
        Path(cli_path) if cli_path else None,
        Path(search_dir) / SETTINGS_FILE_NAME if search_dir else None,
        Path.home() / ".docbind" / "config.yaml",
    ]

    for path in config_paths:
        if path and path.exists():
            try:
                with open(path) as f:
                    raw = yaml.safe_load(f)
                if raw is None:
                    continue
                raw = _expand_env_vars(raw)
                return DocbindConfig(**raw)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {path}: {e}") from e
            except ValidationError as e:
                raise ValueError(f"Invalid config in {path}: {e}") from e

    return DocbindConfig()


def _expand_env_vars(obj: object) -> object:
    """Recursively expand ${VAR} references in strings."""
    if isinstance(obj, str):
        return re.sub(r"\$\{(\w+)\}", lambda m: os.environ.get(m.group(1), ""), obj)
    elif isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


# Default YAML template for `docbind config init`
DEFAULT_CONFIG_TEMPLATE = """\
# docbind.yaml

# Collaborator plugins (entry point names). Leave unset to use the only
# installed plugin of each kind.
# plugins:
#   site_builder: "default"
#   fragment_engine: "default"

# Live preview (`docbind serve`)
serve:
  port: 8080
  host: "0.0.0.0"
  open_browser: true
  output_dir: "_site"

# Logging
log_level: "info"              # debug | info | warn | error
log_format: "text"             # text | json
"""
