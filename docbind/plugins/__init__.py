from docbind.plugins.loader import PluginLoader, PluginNotFoundError

__all__ = ["PluginLoader", "PluginNotFoundError"]
