"""Hook specifications for the JustIn plugin system."""
from __future__ import annotations

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from justin.handlers.models import HandlerResultRecord

PROJECT_NAME = "justin"

hookspec = pluggy.HookspecMarker(PROJECT_NAME)
hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class JustInSpecs:
    """Hook specifications for JustIn plugins."""

    @hookspec
    async def record_handler_result(self, record: HandlerResultRecord) -> None:
        """Receive the outcome of a task or decision rule run.

        Args:
            record: Steps executed by one handler for one subscriber
        """


def create_plugin_manager() -> pluggy.PluginManager:
    """Create a plugin manager with the JustIn hook specifications loaded."""
    pm = pluggy.PluginManager(PROJECT_NAME)
    pm.add_hookspecs(JustInSpecs)
    return pm
