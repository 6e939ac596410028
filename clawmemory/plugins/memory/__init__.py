"""ClawMemory plugin: cloud-based semantic memory for agents.

The plugin recalls relevant memories before each agent run, captures
memorable user statements after it, and offers memory_store/memory_recall
tools plus a `clawmemory` user command.

Usage:
    registry.expose_tool("memory", config={
        "apiKey": "cm_...",
        "agentId": "support-bot",
    })
"""

from .client import ClawMemoryClient, RemoteError
from .config_loader import ConfigurationError, MemoryConfig, load_config
from .plugin import MemoryPlugin, create_plugin

# Plugin kind identifier for registry discovery
PLUGIN_KIND = "tool"

__all__ = [
    'ClawMemoryClient',
    'ConfigurationError',
    'MemoryConfig',
    'MemoryPlugin',
    'RemoteError',
    'create_plugin',
    'load_config',
]
