"""Wire contract shared by the live visualizer client and its wrappers.

Everything the client knows about the service's REST layout and about how a
response is judged a success lives here, so call sites never inspect raw
response text themselves.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional
from urllib.parse import quote

API_PREFIX = "/api/live"
JSON_HEADERS = {"Content-Type": "application/json"}

NODE_NOT_CREATED = -1


class StructureKind(str, Enum):
    """Data structure layouts understood by the visualizer."""

    LINKED_LIST = "linked_list"
    ARRAY = "array"
    TREE = "tree"
    GRAPH = "graph"

    @classmethod
    def parse(cls, value: "StructureKind | str") -> Optional["StructureKind"]:
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        normalized = value.strip().lower().replace("-", "_")
        for kind in cls:
            if kind.value == normalized:
                return kind
        return None


class FailureReason(str, Enum):
    TRANSPORT = "transport"
    DECODE = "decode"
    REJECTED = "rejected"
    INVALID_ARGUMENT = "invalid_argument"


@dataclass(frozen=True)
class CallResult:
    """Outcome of a single exchange with the visualizer service.

    ``body`` is always a string; a transport failure leaves it empty.
    ``failure`` is set once the exchange has been classified as unusable.
    """

    body: str = ""
    status_code: Optional[int] = None
    failure: Optional[FailureReason] = None
    detail: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def transport_error(cls, detail: str) -> "CallResult":
        return cls(failure=FailureReason.TRANSPORT, detail=detail)

    @classmethod
    def invalid(cls, detail: str) -> "CallResult":
        return cls(failure=FailureReason.INVALID_ARGUMENT, detail=detail)


def structures_path() -> str:
    return f"{API_PREFIX}/structures"


def structure_path(name: Optional[str] = None) -> str:
    if name is None:
        return f"{API_PREFIX}/structure"
    return f"{API_PREFIX}/structure/{quote(name, safe='')}"


def nodes_path(structure_name: str) -> str:
    return f"{structure_path(structure_name)}/node"


def node_path(structure_name: str, node_id: int) -> str:
    return f"{nodes_path(structure_name)}/{node_id}"


def matrix_path() -> str:
    return f"{API_PREFIX}/matrix"


def structure_payload(name: str, kind: StructureKind, depth: int, initial_size: int) -> dict[str, Any]:
    return {
        "name": name,
        "type": kind.value,
        "depth": depth,
        "initialSize": initial_size,
    }


def node_payload(value: Any, metadata: Optional[Mapping[str, Any]] = None, index: Optional[int] = None) -> dict[str, Any]:
    """Build the body for node creation and update requests.

    ``metadata`` is always present (possibly empty); ``index`` only when it is
    a non-negative position.
    """
    payload: dict[str, Any] = {
        "value": value,
        "metadata": dict(metadata) if metadata else {},
    }
    if index is not None and index >= 0:
        payload["index"] = index
    return payload


def is_created(result: CallResult) -> bool:
    """A creation succeeded when the reply mentions an ``"id"`` field."""
    return result.ok and bool(result.body) and '"id"' in result.body


def is_accepted(result: CallResult) -> bool:
    """A mutation succeeded when the reply is non-empty and never says ``error``.

    Matching is on the raw text, so a node value containing the word "error"
    reads as a failure.
    """
    return result.ok and bool(result.body) and "error" not in result.body


def is_reachable(result: CallResult) -> bool:
    return result.ok and bool(result.body)


def decode_body(result: CallResult) -> tuple[Any, Optional[str]]:
    """Parse a JSON reply, returning ``(value, error)``."""
    if not result.ok:
        return None, result.detail or (result.failure.value if result.failure else None)
    try:
        return json.loads(result.body), None
    except json.JSONDecodeError as exc:
        return None, str(exc)


def extract_node_id(document: Any) -> Optional[int]:
    """Return ``document["node"]["id"]`` when it is an integer."""
    if not isinstance(document, dict):
        return None
    node = document.get("node")
    if not isinstance(node, dict):
        return None
    node_id = node.get("id")
    if isinstance(node_id, bool) or not isinstance(node_id, int):
        return None
    return node_id
