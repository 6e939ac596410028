"""Data models for the memory plugin.

Memories are owned by the remote service; these classes only give the
JSON payloads a typed shape for the lifetime of one request/response.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union


class MemoryType(str, Enum):
    """Kinds of memory the service accepts."""
    FACT = "fact"
    PREFERENCE = "preference"
    DECISION = "decision"
    EVENT = "event"
    TASK = "task"
    CONTEXT = "context"

    @classmethod
    def values(cls) -> List[str]:
        return [member.value for member in cls]


def _coerce_type(value: Any) -> Union[MemoryType, str]:
    # Unknown types are kept verbatim; the service owns the vocabulary.
    try:
        return MemoryType(value)
    except ValueError:
        return str(value)


def type_label(value: Union[MemoryType, str]) -> str:
    """Return the wire name of a memory type (enum or plain string)."""
    return value.value if isinstance(value, MemoryType) else str(value)


@dataclass
class Memory:
    """A stored memory as returned by the service.

    Attributes:
        id: Service-assigned identifier.
        content: The remembered text.
        type: Memory category.
        tags: Free-form labels.
        importance: Score in [0, 1].
        relevance: Similarity to the query, only present on recall results.
        created_at: Creation timestamp as sent by the service.
        agent_id: Agent scope, if the memory was stored with one.
    """

    id: str
    content: str
    type: Union[MemoryType, str] = MemoryType.FACT
    tags: List[str] = field(default_factory=list)
    importance: float = 0.0
    relevance: Optional[float] = None
    created_at: Optional[str] = None
    agent_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Memory":
        return cls(
            id=str(data.get("id", "")),
            content=data.get("content", ""),
            type=_coerce_type(data.get("type", MemoryType.FACT.value)),
            tags=list(data.get("tags") or []),
            importance=data.get("importance", 0.0),
            relevance=data.get("relevance"),
            created_at=data.get("created_at"),
            agent_id=data.get("agent_id"),
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "id": self.id,
            "content": self.content,
            "type": type_label(self.type),
            "tags": list(self.tags),
            "importance": self.importance,
            "created_at": self.created_at,
        }
        if self.relevance is not None:
            result["relevance"] = self.relevance
        if self.agent_id is not None:
            result["agent_id"] = self.agent_id
        return result

    @property
    def relevance_percent(self) -> int:
        """Relevance as a rounded percentage (0 when absent)."""
        return int((self.relevance or 0) * 100 + 0.5)


@dataclass(frozen=True)
class CaptureCandidate:
    """A user utterance judged worth remembering."""

    content: str
    type: MemoryType


@dataclass
class CallOutcome:
    """Result of a best-effort remote call.

    Hooks never let a remote failure escape; instead they receive one of
    these and decide what to log.

    Attributes:
        value: The call's return value when it succeeded.
        error: Description of the failure, or None on success.
    """

    value: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class CaptureReport:
    """What the agent_end hook did with a finished conversation.

    Attributes:
        candidates: Everything the classifier picked out.
        stored_ids: Identifiers returned for candidates that were stored.
        errors: One message per candidate whose store call failed.
    """

    candidates: List[CaptureCandidate] = field(default_factory=list)
    stored_ids: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
