"""docbind - command layer for a fragment-based static documentation site generator."""

__version__ = "0.1.0"
