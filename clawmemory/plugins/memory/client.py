"""HTTP client for the ClawMemory API.

Each method issues exactly one request. Nothing is retried and nothing is
cached; ranking, storage and agent isolation are the service's business.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

import requests

from .config_loader import API_BASE
from .models import Memory, MemoryType, type_label

logger = logging.getLogger(__name__)


def _is_object(value: Any) -> bool:
    return isinstance(value, dict)


def _is_object_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(item, dict) for item in value)


def _is_recall_data(value: Any) -> bool:
    return _is_object(value) and _is_object_list(value.get("memories") or [])


class RemoteError(Exception):
    """The service answered with a non-success status or could not be reached.

    Attributes:
        status: HTTP status code, or None for transport failures.
        body: Response body text (or the transport error message).
    """

    def __init__(self, status: Optional[int], body: str):
        self.status = status
        self.body = body
        label = status if status is not None else "request failed"
        super().__init__(f"ClawMemory API error: {label} {body}".rstrip())


class ClawMemoryClient:
    """Authenticated wrapper around the ClawMemory REST endpoints."""

    def __init__(
        self,
        api_key: str,
        agent_id: Optional[str] = None,
        base_url: str = API_BASE,
        timeout: Optional[float] = None,
    ):
        self._api_key = api_key
        self._agent_id = agent_id
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    @property
    def agent_id(self) -> Optional[str]:
        return self._agent_id

    def _request(
        self,
        endpoint: str,
        method: str,
        body: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        data_check: Optional[Callable[[Any], bool]] = None,
    ) -> Dict[str, Any]:
        """Send one request and return the decoded JSON envelope.

        Args:
            data_check: Predicate the envelope's `data` must satisfy when the
                service reports success with a non-empty payload.

        Raises:
            RemoteError: On transport failure, non-2xx status, a body that
                is not a JSON object, or a `data` payload of the wrong shape.
        """
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_key}",
        }
        url = f"{self._base_url}{endpoint}"
        logger.debug("%s %s", method, endpoint)

        try:
            response = requests.request(
                method,
                url,
                json=body,
                params=params,
                headers=headers,
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            raise RemoteError(None, str(e)) from e

        if not 200 <= response.status_code < 300:
            raise RemoteError(response.status_code, response.text)

        try:
            data = response.json()
        except ValueError as e:
            raise RemoteError(response.status_code, f"invalid JSON body: {e}") from e

        if not isinstance(data, dict):
            raise RemoteError(response.status_code, f"unexpected body: {data!r}")

        payload = data.get("data")
        if data_check and data.get("success") and payload and not data_check(payload):
            raise RemoteError(response.status_code, f"unexpected data: {payload!r}")
        return data

    def _with_agent(self, body: Dict[str, Any]) -> Dict[str, Any]:
        if self._agent_id:
            body["agentId"] = self._agent_id
        return body

    def recall(self, query: str, limit: int = 5, threshold: float = 0.3) -> List[Memory]:
        """Search memories semantically.

        Args:
            query: Free-text query.
            limit: Maximum number of results.
            threshold: Minimum relevance in [0, 1].

        Returns:
            Memories in the order the service ranked them. Empty if the
            service reported success:false or sent no data.
        """
        response = self._request("/memories/recall", "POST", self._with_agent({
            "query": query,
            "limit": limit,
            "threshold": threshold,
        }), data_check=_is_recall_data)

        if not response.get("success") or not response.get("data"):
            return []

        return [Memory.from_dict(m) for m in response["data"].get("memories") or []]

    def store(
        self,
        content: str,
        type: Union[MemoryType, str] = MemoryType.FACT,
        importance: float = 0.7,
        tags: Optional[Sequence[str]] = None,
    ) -> Optional[str]:
        """Store a memory.

        Returns:
            The new memory's identifier, or None if the service reported
            success:false or sent no data.
        """
        response = self._request("/memories", "POST", self._with_agent({
            "content": content,
            "type": type_label(type),
            "importance": importance,
            "tags": list(tags or []),
        }), data_check=_is_object)

        if not response.get("success") or not response.get("data"):
            return None

        return response["data"].get("id")

    def list(self, limit: int = 10) -> List[Memory]:
        """List stored memories, newest first as the service orders them."""
        response = self._request("/memories", "GET", params={"limit": limit}, data_check=_is_object_list)

        if not response.get("success") or not response.get("data"):
            return []

        return [Memory.from_dict(m) for m in response["data"]]

    def get(self, memory_id: str) -> Optional[Memory]:
        """Fetch one memory by identifier."""
        response = self._request(f"/memories/{memory_id}", "GET", data_check=_is_object)

        if not response.get("success") or not response.get("data"):
            return None

        return Memory.from_dict(response["data"])

    def update(
        self,
        memory_id: str,
        content: Optional[str] = None,
        importance: Optional[float] = None,
        type: Union[MemoryType, str, None] = None,
        tags: Optional[Sequence[str]] = None,
    ) -> bool:
        """Patch the given fields of a memory. Returns True on success."""
        body: Dict[str, Any] = {}
        if content is not None:
            body["content"] = content
        if importance is not None:
            body["importance"] = importance
        if type is not None:
            body["type"] = type_label(type)
        if tags is not None:
            body["tags"] = list(tags)

        response = self._request(f"/memories/{memory_id}", "PATCH", body)
        return bool(response.get("success"))

    def delete(self, memory_id: str) -> bool:
        """Delete a memory. Returns True on success."""
        response = self._request(f"/memories/{memory_id}", "DELETE")
        return bool(response.get("success"))
