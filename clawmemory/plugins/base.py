"""The contract between an agent host and its plugins.

A plugin contributes up to three things: tools the model may call, user
commands, and lifecycle hooks the host runs before and after each agent
run. Hook payloads and results are plain dataclasses defined here.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Protocol, runtime_checkable

from .types import ToolSchema


# Hook names accepted in the mapping returned by get_hooks()
HOOK_BEFORE_AGENT_START = "before_agent_start"
HOOK_AGENT_END = "agent_end"

LIFECYCLE_HOOKS = (HOOK_BEFORE_AGENT_START, HOOK_AGENT_END)


@dataclass
class AgentStartEvent:
    """Passed to before_agent_start hooks.

    Attributes:
        prompt: The incoming user prompt, before any context is added.
    """
    prompt: str


@dataclass
class AgentStartResult:
    """Returned by a before_agent_start hook that has context to add.

    Attributes:
        prepend_context: Text placed in front of the agent's working context.
        metadata: Details for the host (counts, ids); not shown to the model.
    """
    prepend_context: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class AgentEndEvent:
    """Passed to agent_end hooks once a run finishes.

    Attributes:
        success: False if the run failed; hooks should then do nothing.
        messages: The final conversation, oldest first, as Message objects
            or dicts with 'role' and 'content'.
    """
    success: bool
    messages: List[Any] = field(default_factory=list)


@dataclass
class PromptEnrichmentResult:
    """What the host gets after running every before_agent_start hook.

    Attributes:
        prompt: Context blocks followed by the original prompt.
        metadata: Hook metadata keyed by plugin name.
    """
    prompt: str
    metadata: Dict[str, Any] = field(default_factory=dict)


class CommandCompletion(NamedTuple):
    """One suggestion offered while the user types a command argument."""
    value: str
    description: str = ""


class CommandParameter(NamedTuple):
    """Positional parameter of a user command.

    Attributes:
        name: Key of the parsed value in the executor's args dict.
        description: Help text.
        required: Whether the command fails without it.
        capture_rest: Take the rest of the input line verbatim.
    """
    name: str
    description: str = ""
    required: bool = False
    capture_rest: bool = False


class UserCommand(NamedTuple):
    """A command the user runs directly, bypassing the model.

    The host runs it through the executor registered under the same name
    in get_executors().

    Attributes:
        name: What the user types to invoke it.
        description: One-line help.
        share_with_model: Whether the output also goes into the
            conversation history. Defaults to showing it to the user only.
        parameters: Positional parameters in order.
    """
    name: str
    description: str
    share_with_model: bool = False
    parameters: Optional[List[CommandParameter]] = None


@runtime_checkable
class ToolPlugin(Protocol):
    """What every plugin implements.

    Tools are declared by get_tool_schemas() and run by get_executors().
    User commands are declared by get_user_commands() and run by the
    executor of the same name. A plugin that is not usable (for example,
    missing credentials) returns empty declarations everywhere.
    """

    @property
    def name(self) -> str:
        """Registry key, e.g. 'memory'."""
        ...

    def get_tool_schemas(self) -> List[ToolSchema]:
        ...

    def get_executors(self) -> Dict[str, Callable[[Dict[str, Any]], Any]]:
        """Map tool and command names to callables taking an args dict.

        Tool executors return JSON-serializable dicts and report failures
        inside them rather than raising.
        """
        ...

    def initialize(self, config: Optional[Dict[str, Any]] = None) -> None:
        """Apply configuration; called when the host exposes the plugin."""
        ...

    def shutdown(self) -> None:
        """Release state; called when the host unexposes the plugin."""
        ...

    def get_system_instructions(self) -> Optional[str]:
        """Text added to the model's system prompt, or None."""
        ...

    def get_auto_approved_tools(self) -> List[str]:
        """Tool and command names the host may run without asking."""
        ...

    def get_user_commands(self) -> List[UserCommand]:
        ...

    # Optional, looked up with hasattr():
    #
    # def get_hooks(self) -> Dict[str, Callable[[Any], Any]]:
    #     Lifecycle hooks keyed by HOOK_BEFORE_AGENT_START (called with an
    #     AgentStartEvent, may return an AgentStartResult) and HOOK_AGENT_END
    #     (called with an AgentEndEvent). A hook that raises is logged and
    #     skipped by the registry.
    #
    # def get_command_completions(self, command: str, args: List[str]) -> List[CommandCompletion]:
    #     Suggestions for the next argument of one of this plugin's commands.
