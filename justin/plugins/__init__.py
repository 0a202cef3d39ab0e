"""Plugin hooks."""

from .hookspec import JustInSpecs, create_plugin_manager, hookimpl, hookspec

__all__ = ["JustInSpecs", "create_plugin_manager", "hookimpl", "hookspec"]
