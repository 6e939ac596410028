"""Pattern-based detection of capture-worthy user messages.

Only user messages are considered. Each message is matched against an
ordered list of patterns and takes the category of the first one that
matches.
"""

import re
from typing import Any, Iterable, List, Optional, Pattern, Tuple

from ..types import Message, Role
from .models import CaptureCandidate, MemoryType

MIN_CAPTURE_LENGTH = 10
MAX_CAPTURE_LENGTH = 500

# Priority order matters: the first matching pattern decides the type.
# Colon-terminated markers carry no trailing word boundary so that
# "todo: ship it" matches.
CAPTURE_PATTERNS: List[Tuple[Pattern[str], MemoryType]] = [
    (re.compile(r"\b(?:my name is|i'?m called|call me)\s+(\w+)", re.IGNORECASE), MemoryType.FACT),
    (re.compile(r"\b(?:i prefer|i like|i want|i need)\b", re.IGNORECASE), MemoryType.PREFERENCE),
    (re.compile(r"\b(?:we decided|let'?s go with|we'?ll use)\b|\bdecision:", re.IGNORECASE), MemoryType.DECISION),
    (re.compile(r"\b(?:remember that|don'?t forget)\b|\bimportant:", re.IGNORECASE), MemoryType.FACT),
    (re.compile(r"\b(?:todo|task|action item):", re.IGNORECASE), MemoryType.TASK),
    (re.compile(r"\b(?:deployed|launched|shipped|released|published)\b", re.IGNORECASE), MemoryType.EVENT),
]


def classify_text(text: str) -> Optional[MemoryType]:
    """Return the category of the first matching pattern, or None."""
    for pattern, memory_type in CAPTURE_PATTERNS:
        if pattern.search(text):
            return memory_type
    return None


def _role_of(message: Any) -> Optional[str]:
    if isinstance(message, Message):
        return message.role.value if isinstance(message.role, Role) else str(message.role)
    if isinstance(message, dict):
        return message.get("role")
    return None


def extract_text(message: Any) -> str:
    """Flatten a message's content to plain text.

    String content is used verbatim. A list of parts contributes the text
    of its text parts, space-joined; images, tool calls and other parts
    are ignored.
    """
    if isinstance(message, Message):
        return " ".join(p.text for p in message.parts if p.text is not None)

    content = message.get("content") if isinstance(message, dict) else None
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return " ".join(
            part["text"]
            for part in content
            if isinstance(part, dict)
            and part.get("type") == "text"
            and isinstance(part.get("text"), str)
        )
    return ""


def extract_capture_candidates(messages: Iterable[Any]) -> List[CaptureCandidate]:
    """Pick out the user messages worth remembering.

    Args:
        messages: Conversation messages, oldest first. Either Message
            objects or dicts with 'role' and 'content'.

    Returns:
        One candidate per matching user message, in message order.
    """
    candidates: List[CaptureCandidate] = []

    for message in messages:
        if _role_of(message) != Role.USER.value:
            continue

        text = extract_text(message)
        if len(text) < MIN_CAPTURE_LENGTH:
            continue

        memory_type = classify_text(text)
        if memory_type is None:
            continue

        candidates.append(CaptureCandidate(content=text[:MAX_CAPTURE_LENGTH], type=memory_type))

    return candidates
