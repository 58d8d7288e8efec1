"""Dynamic collaborator discovery and loading via entry points."""

from __future__ import annotations

import importlib.metadata
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from docbind.config.models import DocbindConfig


class PluginNotFoundError(Exception):
    """Raised when a requested plugin cannot be found."""

    def __init__(self, plugin_type: str, name: str | None = None, reason: str | None = None):
        self.plugin_type = plugin_type
        self.name = name
        msg = f"No {plugin_type} plugin found"
        if name:
            msg += f" with name '{name}'"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)


class PluginLoader:
    """Discovers and loads collaborator classes via entry points or config."""

    # Entry point group names
    GROUPS = {
        "site_builder": "docbind.plugins.site_builder",
        "fragment_engine": "docbind.plugins.fragment_engine",
    }

    def __init__(self, config: DocbindConfig):
        self._config = config

    def discover(self) -> dict[str, list[str]]:
        """Scan entry_points for registered plugins. Returns {type: [name, ...]}."""
        result: dict[str, list[str]] = {}
        for plugin_type, group in self.GROUPS.items():
            eps = importlib.metadata.entry_points(group=group)
            result[plugin_type] = [ep.name for ep in eps]
        return result

    def _resolve_name(self, plugin_type: str, name: str | None) -> str | None:
        """Resolve plugin name: explicit arg > config > None."""
        if name is not None:
            return name
        return getattr(self._config.plugins, plugin_type, None)

    def _load_plugin(self, plugin_type: str, name: str | None) -> type:
        """Fallback chain: name/config > the only registered entry point."""
        eps = list(importlib.metadata.entry_points(group=self.GROUPS[plugin_type]))
        resolved = self._resolve_name(plugin_type, name)
        if resolved is not None:
            for ep in eps:
                if ep.name == resolved:
                    return ep.load()
            # Name was explicit but not found -- don't fallback silently
            raise PluginNotFoundError(plugin_type, resolved)

        if len(eps) == 1:
            return eps[0].load()
        if not eps:
            raise PluginNotFoundError(plugin_type)
        names = ", ".join(ep.name for ep in eps)
        raise PluginNotFoundError(plugin_type, reason=f"several installed, pick one of: {names}")

    def load_site_builder(self, name: str | None = None) -> type:
        return self._load_plugin("site_builder", name)

    def load_fragment_engine(self, name: str | None = None) -> type:
        return self._load_plugin("fragment_engine", name)
