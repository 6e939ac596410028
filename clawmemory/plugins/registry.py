"""Reference host: finds plugins, tracks which are active, and runs their hooks.

An agent host embeds one PluginRegistry. It activates plugins with their
configuration, hands the model the combined tool declarations, routes user
commands, and calls the lifecycle hooks around every agent run.
"""

import importlib
import importlib.metadata
import logging
import pkgutil
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Set, Tuple, TypeVar

from .base import (
    AgentEndEvent,
    AgentStartEvent,
    AgentStartResult,
    HOOK_AGENT_END,
    HOOK_BEFORE_AGENT_START,
    PromptEnrichmentResult,
    ToolPlugin,
    UserCommand,
)
from .types import ToolSchema

logger = logging.getLogger(__name__)

# Entry point group external packages register their factories under
PLUGIN_ENTRY_POINT_GROUP = "clawmemory.plugins"

# Modules in this package that are never plugins
_NON_PLUGIN_MODULES = ("base", "registry", "types", "tests")

T = TypeVar("T")


class PluginRegistry:
    """Holds discovered plugins and the subset currently exposed to the agent.

    Usage:
        registry = PluginRegistry()
        registry.discover()
        registry.expose_tool('memory', config={'apiKey': 'cm_...'})

        enriched = registry.run_before_agent_start(prompt)
        # ... agent run with enriched.prompt, registry.get_exposed_tool_schemas()
        # and registry.get_exposed_executors() ...
        registry.run_agent_end(success=True, messages=history)

        registry.unexpose_all()
    """

    def __init__(self):
        self._plugins: Dict[str, ToolPlugin] = {}
        self._exposed: Set[str] = set()
        self._configs: Dict[str, Dict[str, Any]] = {}

    # ==================== Discovery ====================

    def discover(self, include_directory: bool = True) -> List[str]:
        """Load plugin factories and instantiate each plugin once.

        Installed packages register under the entry point group:
            [project.entry-points."clawmemory.plugins"]
            memory = "clawmemory.plugins.memory:create_plugin"

        Args:
            include_directory: Also import subpackages of clawmemory.plugins,
                which finds the bundled plugins in an uninstalled checkout.

        Returns:
            Names of the plugins found by this call.
        """
        found = self._discover_via_entry_points()
        if include_directory:
            found.extend(self._discover_via_directory())
        return found

    def _discover_via_entry_points(self) -> List[str]:
        found = []
        for ep in importlib.metadata.entry_points(group=PLUGIN_ENTRY_POINT_GROUP):
            if ep.name in self._plugins:
                continue
            try:
                plugin = ep.load()()
            except Exception:
                logger.exception("Could not load plugin entry point '%s'", ep.name)
                continue
            if self._accept(plugin, f"entry point '{ep.name}'"):
                found.append(plugin.name)
        return found

    def _discover_via_directory(self, plugin_dir: Optional[Path] = None) -> List[str]:
        """Import sibling subpackages that declare PLUGIN_KIND = "tool"."""
        plugin_dir = plugin_dir or Path(__file__).parent
        found = []

        for _, module_name, _ in pkgutil.iter_modules([str(plugin_dir)]):
            if module_name.startswith('_') or module_name in _NON_PLUGIN_MODULES:
                continue
            if module_name in self._plugins:
                continue

            try:
                module = importlib.import_module(f".{module_name}", package=__package__)
            except Exception:
                logger.exception("Could not import plugin package '%s'", module_name)
                continue

            factory = getattr(module, 'create_plugin', None)
            if getattr(module, 'PLUGIN_KIND', None) != "tool" or factory is None:
                continue
            plugin = factory()
            if self._accept(plugin, f"package '{module_name}'"):
                found.append(plugin.name)

        return found

    def _accept(self, plugin: Any, origin: str) -> bool:
        if not isinstance(plugin, ToolPlugin):
            logger.warning("Ignoring %s: not a ToolPlugin", origin)
            return False
        self._plugins[plugin.name] = plugin
        return True

    # ==================== Activation ====================

    def list_available(self) -> List[str]:
        return list(self._plugins)

    def list_exposed(self) -> List[str]:
        return list(self._exposed)

    def is_exposed(self, name: str) -> bool:
        return name in self._exposed

    def get_plugin(self, name: str) -> Optional[ToolPlugin]:
        return self._plugins.get(name)

    def register_plugin(
        self,
        plugin: ToolPlugin,
        expose: bool = False,
        config: Optional[Dict[str, Any]] = None
    ) -> None:
        """Add an already-built plugin, optionally exposing it right away."""
        self._plugins[plugin.name] = plugin
        if expose:
            self.expose_tool(plugin.name, config)

    def expose_tool(self, name: str, config: Optional[Dict[str, Any]] = None) -> None:
        """Activate a plugin so its tools, commands and hooks take effect.

        The plugin is initialized on first exposure. Exposing it again with a
        different config shuts it down and initializes it with the new one.
        A plugin that rejects its config (e.g. the memory plugin without a
        valid key) stays exposed but contributes nothing.

        Raises:
            ValueError: If no plugin with that name was discovered or registered.
        """
        plugin = self._plugins.get(name)
        if plugin is None:
            raise ValueError(f"Plugin '{name}' not found. Available: {self.list_available()}")

        if name in self._exposed:
            if not config or config == self._configs.get(name):
                return
            plugin.shutdown()

        plugin.initialize(config)
        self._exposed.add(name)
        if config:
            self._configs[name] = config

    def unexpose_tool(self, name: str) -> None:
        if name not in self._exposed:
            return
        self._plugins[name].shutdown()
        self._exposed.discard(name)
        self._configs.pop(name, None)

    def unexpose_all(self) -> None:
        for name in list(self._exposed):
            self.unexpose_tool(name)

    # ==================== Aggregation ====================

    def _collect(self, what: str, getter: Callable[[ToolPlugin], Optional[T]]) -> List[Tuple[str, T]]:
        """Call getter on every exposed plugin, skipping plugins that fail."""
        collected = []
        for name in sorted(self._exposed):
            try:
                value = getter(self._plugins[name])
            except Exception:
                logger.exception("Plugin '%s' failed to provide %s", name, what)
                continue
            if value:
                collected.append((name, value))
        return collected

    def get_exposed_tool_schemas(self) -> List[ToolSchema]:
        return [s for _, schemas in self._collect("tool schemas", lambda p: p.get_tool_schemas())
                for s in schemas]

    def get_exposed_executors(self) -> Dict[str, Callable[[Dict[str, Any]], Any]]:
        executors: Dict[str, Callable[[Dict[str, Any]], Any]] = {}
        for _, plugin_executors in self._collect("executors", lambda p: p.get_executors()):
            executors.update(plugin_executors)
        return executors

    def get_system_instructions(self) -> Optional[str]:
        """Instructions of all exposed plugins, blank-line separated, or None."""
        parts = [text for _, text in self._collect("system instructions",
                                                   lambda p: p.get_system_instructions())]
        return "\n\n".join(parts) if parts else None

    def get_auto_approved_tools(self) -> List[str]:
        return [t for _, tools in self._collect("auto-approved tools",
                                                lambda p: p.get_auto_approved_tools())
                for t in tools]

    def get_exposed_user_commands(self) -> List[UserCommand]:
        return [c for _, commands in self._collect("user commands", lambda p: p.get_user_commands())
                for c in commands]

    def execute_user_command(self, command_name: str, args: Dict[str, Any]) -> Any:
        """Run a user command through the executor registered under its name.

        Unlike hooks, command failures propagate to the caller.

        Raises:
            ValueError: If no exposed plugin declares the command.
        """
        known = {cmd.name for cmd in self.get_exposed_user_commands()}
        executor = self.get_exposed_executors().get(command_name)
        if command_name not in known or executor is None:
            raise ValueError(f"Unknown command '{command_name}'. Available: {sorted(known)}")
        return executor(args)

    # ==================== Lifecycle Hooks ====================

    def get_hook_subscribers(self, hook_name: str) -> List[Tuple[str, Callable[[Any], Any]]]:
        """(plugin name, hook) pairs for every exposed plugin subscribed to hook_name."""
        return self._collect(
            f"{hook_name} hook",
            lambda p: p.get_hooks().get(hook_name) if hasattr(p, 'get_hooks') else None,
        )

    def run_before_agent_start(self, prompt: str) -> PromptEnrichmentResult:
        """Run before_agent_start hooks and prepend their context to the prompt.

        Args:
            prompt: The incoming prompt, as the user wrote it.

        Returns:
            PromptEnrichmentResult whose prompt is every returned context
            block followed by the prompt, blank-line separated, and whose
            metadata maps plugin name to what that hook reported.
        """
        event = AgentStartEvent(prompt=prompt)
        blocks: List[str] = []
        metadata: Dict[str, Any] = {}

        for name, hook in self.get_hook_subscribers(HOOK_BEFORE_AGENT_START):
            try:
                result = hook(event)
            except Exception:
                logger.exception("%s hook of '%s' raised", HOOK_BEFORE_AGENT_START, name)
                continue
            if not isinstance(result, AgentStartResult) or not result.prepend_context:
                continue
            blocks.append(result.prepend_context)
            if result.metadata:
                metadata[name] = result.metadata

        return PromptEnrichmentResult(prompt="\n\n".join(blocks + [prompt]), metadata=metadata)

    def run_agent_end(self, success: bool, messages: List[Any]) -> List[Any]:
        """Run agent_end hooks with the finished conversation.

        Returns:
            What each hook returned, in call order. Hooks that raised are
            logged and left out.
        """
        event = AgentEndEvent(success=success, messages=list(messages))
        results = []
        for name, hook in self.get_hook_subscribers(HOOK_AGENT_END):
            try:
                results.append(hook(event))
            except Exception:
                logger.exception("%s hook of '%s' raised", HOOK_AGENT_END, name)
        return results
