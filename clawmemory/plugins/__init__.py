"""Plugin system for tool discovery and management.

Usage:
    from clawmemory.plugins import PluginRegistry

    registry = PluginRegistry()
    registry.discover()

    registry.expose_tool('memory', config={'apiKey': 'cm_...'})

    # Get tools for exposed plugins
    tool_schemas = registry.get_exposed_tool_schemas()
    executors = registry.get_exposed_executors()

    # Run lifecycle hooks around an agent run
    enriched = registry.run_before_agent_start(prompt)
    registry.run_agent_end(success=True, messages=history)

    # Unexpose when done
    registry.unexpose_all()
"""

from .base import ToolPlugin, UserCommand, CommandParameter
from .registry import PluginRegistry

__all__ = ['ToolPlugin', 'PluginRegistry', 'UserCommand', 'CommandParameter']
