"""Types exchanged between plugins and the agent host.

Plugins describe their tools with ToolSchema; hosts pass finished
conversations back as Message objects (plain role/content dicts are
accepted wherever messages are read).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union


class Role(str, Enum):
    """Who produced a message. Only USER messages are ever captured."""
    USER = "user"
    MODEL = "model"
    TOOL = "tool"
    SYSTEM = "system"


@dataclass
class ToolSchema:
    """A tool offered to the model.

    Attributes:
        name: Name the model calls the tool by, e.g. 'memory_recall'.
        description: What the tool is for, shown to the model.
        parameters: JSON Schema of the argument object.
    """
    name: str
    description: str
    parameters: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Part:
    """One piece of message content: text, or inline binary data."""
    text: Optional[str] = None
    inline_data: Optional[Dict[str, Any]] = None  # {"mime_type": str, "data": bytes}

    @classmethod
    def from_text(cls, text: str) -> 'Part':
        return cls(text=text)


@dataclass
class Message:
    """A conversation turn made of ordered parts."""
    role: Role
    parts: List[Part] = field(default_factory=list)

    @classmethod
    def from_text(cls, role: Union[Role, str], text: str) -> 'Message':
        """Single-part text message; role may be given by its string value."""
        return cls(role=Role(role), parts=[Part.from_text(text)])
