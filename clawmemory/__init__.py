"""
clawmemory - Cloud-based semantic memory for AI agents

Public API for hosts and external plugins.
"""

# Registry and plugin protocol
from clawmemory.plugins import PluginRegistry
from clawmemory.plugins.base import (
    AgentEndEvent,
    AgentStartEvent,
    AgentStartResult,
    CommandParameter,
    PromptEnrichmentResult,
    ToolPlugin,
    UserCommand,
)

# Provider-agnostic message and tool types
from clawmemory.plugins.types import Message, Part, Role, ToolSchema

# The memory plugin and its client
from clawmemory.plugins.memory import (
    ClawMemoryClient,
    ConfigurationError,
    MemoryConfig,
    MemoryPlugin,
    RemoteError,
    create_plugin,
)
from clawmemory.plugins.memory.capture import extract_capture_candidates
from clawmemory.plugins.memory.models import CaptureCandidate, Memory, MemoryType

# Public API
__all__ = [
    # Registry and protocol
    "PluginRegistry",
    "ToolPlugin",
    "UserCommand",
    "CommandParameter",

    # Hook payloads
    "AgentStartEvent",
    "AgentStartResult",
    "AgentEndEvent",
    "PromptEnrichmentResult",

    # Message and tool types
    "Role",
    "Message",
    "Part",
    "ToolSchema",

    # Memory plugin
    "MemoryPlugin",
    "create_plugin",
    "ClawMemoryClient",
    "MemoryConfig",
    "ConfigurationError",
    "RemoteError",
    "Memory",
    "MemoryType",
    "CaptureCandidate",
    "extract_capture_candidates",
]

__version__ = "0.1.0"
