"""Synchronous client for the live data structure visualizer REST API."""
from __future__ import annotations

import json
import logging
import time
from typing import TYPE_CHECKING, Any, Mapping, Optional

import requests

from .config import ClientSettings, load_settings
from .protocol import (
    JSON_HEADERS,
    NODE_NOT_CREATED,
    CallResult,
    FailureReason,
    StructureKind,
    decode_body,
    extract_node_id,
    is_accepted,
    is_created,
    is_reachable,
    matrix_path,
    node_path,
    node_payload,
    nodes_path,
    structure_path,
    structure_payload,
    structures_path,
)

if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from .managed import ManagedStructure

_LOGGER = logging.getLogger(__name__)

_CHUNK_SIZE = 512


class VisualizerClient:
    """Narrate data structure operations to a running visualizer service.

    Every public method performs at most one HTTP exchange and never raises:
    failures come back as ``False``, ``NODE_NOT_CREATED`` or an empty
    container. Diagnostics are logged only when ``verbose`` is enabled.

    One instance owns one ``requests.Session`` and must not be shared between
    threads; give each thread its own client.
    """

    def __init__(self, settings: Optional[ClientSettings] = None, session: Optional[requests.Session] = None):
        self._settings = settings or ClientSettings()
        self._base_url = self._settings.base_url.rstrip("/")
        self._session = session or requests.Session()
        self._verbose = bool(self._settings.verbose)

    @classmethod
    def from_env(cls, session: Optional[requests.Session] = None) -> "VisualizerClient":
        return cls(load_settings().client, session=session)

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def verbose(self) -> bool:
        return self._verbose

    def set_verbose(self, verbose: bool) -> None:
        """Enable or disable failure diagnostics."""
        self._verbose = bool(verbose)

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "VisualizerClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def structure(
        self,
        name: str,
        kind: StructureKind | str = StructureKind.LINKED_LIST,
        depth: int = 1,
        initial_size: int = 0,
    ) -> "ManagedStructure":
        """Create ``name`` and return a wrapper that deletes it on exit."""
        from .managed import ManagedStructure

        return ManagedStructure(self, name, kind=kind, depth=depth, initial_size=initial_size)

    # Structure lifecycle

    def create_structure(
        self,
        name: str,
        kind: StructureKind | str = StructureKind.LINKED_LIST,
        depth: int = 1,
        initial_size: int = 0,
    ) -> bool:
        """Create a named structure; ``True`` once the server echoes an id."""
        parsed_kind = StructureKind.parse(kind)
        if not self._valid_name(name):
            result = CallResult.invalid("structure name must be a non-empty string")
        elif parsed_kind is None:
            result = CallResult.invalid(f"unknown structure kind {kind!r}")
        elif not self._non_negative(depth) or not self._non_negative(initial_size):
            result = CallResult.invalid("depth and initial_size must be non-negative integers")
        else:
            result = self._request(
                "POST",
                structure_path(),
                structure_payload(name, parsed_kind, depth, initial_size),
            )
        return self._judge("createStructure", result, is_created)

    def delete_structure(self, name: str) -> bool:
        """Delete a structure and, implicitly, every node id issued for it."""
        if not self._valid_name(name):
            result = CallResult.invalid("structure name must be a non-empty string")
        else:
            result = self._request("DELETE", structure_path(name))
        return self._judge("deleteStructure", result, is_accepted)

    # Node operations

    def add_node(
        self,
        structure_name: str,
        value: Any,
        index: Optional[int] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> int:
        """Append (or insert at ``index``) a node and return its server id.

        Returns ``NODE_NOT_CREATED`` when the server did not report an id.
        """
        if not self._valid_name(structure_name):
            result = CallResult.invalid("structure name must be a non-empty string")
        elif index is not None and (isinstance(index, bool) or not isinstance(index, int)):
            result = CallResult.invalid(f"index must be an integer, got {index!r}")
        elif not self._valid_metadata(metadata):
            result = CallResult.invalid(f"metadata must be a mapping, got {type(metadata).__name__}")
        else:
            result = self._request("POST", nodes_path(structure_name), node_payload(value, metadata, index))

        if self._skipped("addNode", result):
            return NODE_NOT_CREATED
        document, error = decode_body(result)
        if error is not None:
            self._log_error(f"Failed to parse addNode response: {error}")
            return NODE_NOT_CREATED
        node_id = extract_node_id(document)
        if node_id is None:
            self._log_error("addNode response did not contain node.id")
            return NODE_NOT_CREATED
        return node_id

    def remove_node(self, structure_name: str, node_id: int) -> bool:
        """Mark a node as removed; the server keeps it in its history."""
        if not self._valid_name(structure_name):
            result = CallResult.invalid("structure name must be a non-empty string")
        elif not self._valid_node_id(node_id):
            result = CallResult.invalid(f"node id must be a non-negative integer, got {node_id!r}")
        else:
            result = self._request("DELETE", node_path(structure_name, node_id))
        return self._judge("removeNode", result, is_accepted)

    def update_node(
        self,
        structure_name: str,
        node_id: int,
        value: Any,
        metadata: Optional[dict[str, Any]] = None,
    ) -> bool:
        """Replace a node's value and send the given metadata keys for merging."""
        if not self._valid_name(structure_name):
            result = CallResult.invalid("structure name must be a non-empty string")
        elif not self._valid_node_id(node_id):
            result = CallResult.invalid(f"node id must be a non-negative integer, got {node_id!r}")
        elif not self._valid_metadata(metadata):
            result = CallResult.invalid(f"metadata must be a mapping, got {type(metadata).__name__}")
        else:
            result = self._request("PUT", node_path(structure_name, node_id), node_payload(value, metadata))
        return self._judge("updateNode", result, is_accepted)

    # Queries

    def get_structure(self, name: str) -> dict[str, Any]:
        if not self._valid_name(name):
            result = CallResult.invalid("structure name must be a non-empty string")
        else:
            result = self._request("GET", structure_path(name))
        return self._decode_object("getStructure", result)

    def get_all_structures(self) -> list[Any]:
        result = self._request("GET", structures_path())
        document, error = decode_body(result)
        if error is not None:
            self._log_error(f"Failed to parse getAllStructures response: {error}")
            return []
        if not isinstance(document, list):
            self._log_error("getAllStructures response was not a JSON array")
            return []
        return document

    def get_matrix(self) -> dict[str, Any]:
        return self._decode_object("getMatrix", self._request("GET", matrix_path()))

    def is_connected(self) -> bool:
        """Liveness check: any non-empty reply from the listing endpoint counts."""
        return is_reachable(self._request("GET", structures_path()))

    # Internals

    def _request(self, method: str, endpoint: str, payload: Optional[dict[str, Any]] = None) -> CallResult:
        url = f"{self._base_url}{endpoint}"
        data = None
        if method in ("POST", "PUT"):
            try:
                data = json.dumps(payload if payload is not None else {})
            except (TypeError, ValueError, RecursionError) as exc:
                return CallResult.invalid(f"payload is not JSON serializable: {exc}")
        _LOGGER.debug("%s %s", method, url)
        deadline = time.monotonic() + self._settings.timeout
        try:
            response = self._session.request(
                method,
                url,
                headers=dict(JSON_HEADERS),
                data=data,
                timeout=(self._settings.connect_timeout, self._settings.timeout),
                stream=True,
            )
            try:
                body = self._read_body(response, deadline)
            finally:
                response.close()
        except requests.RequestException as exc:
            self._log_error(f"Request {method} {url} failed: {exc}")
            return CallResult.transport_error(str(exc))
        if body is None:
            self._log_error(f"Request {method} {url} exceeded the {self._settings.timeout:g}s response deadline")
            return CallResult.transport_error("response deadline exceeded")
        _LOGGER.debug("%s %s -> HTTP %s (%d bytes)", method, url, response.status_code, len(body))
        return CallResult(body=body, status_code=response.status_code)

    @staticmethod
    def _read_body(response: requests.Response, deadline: float) -> Optional[str]:
        """Read the whole body, or return ``None`` once ``deadline`` has passed.

        The deadline is checked between chunks; a single stalled read is still
        bounded by the socket read timeout.
        """
        chunks: list[bytes] = []
        for chunk in response.iter_content(chunk_size=_CHUNK_SIZE):
            if time.monotonic() > deadline:
                return None
            if chunk:
                chunks.append(chunk)
        if time.monotonic() > deadline:
            return None
        raw = b"".join(chunks)
        try:
            return raw.decode(response.encoding or "utf-8", errors="replace")
        except LookupError:
            return raw.decode("utf-8", errors="replace")

    def _judge(self, operation: str, result: CallResult, classify) -> bool:
        accepted = classify(result)
        if accepted:
            return True
        if self._skipped(operation, result):
            return False
        if result.failure is None:
            self._log_error(
                f"{operation} rejected (HTTP {result.status_code}): {result.body[:200] or '<empty response>'}"
            )
        return False

    def _decode_object(self, operation: str, result: CallResult) -> dict[str, Any]:
        if self._skipped(operation, result):
            return {}
        document, error = decode_body(result)
        if error is not None:
            self._log_error(f"Failed to parse {operation} response: {error}")
            return {}
        if not isinstance(document, dict):
            self._log_error(f"{operation} response was not a JSON object")
            return {}
        return document

    def _skipped(self, operation: str, result: CallResult) -> bool:
        if result.failure is not FailureReason.INVALID_ARGUMENT:
            return False
        self._log_error(f"{operation} skipped: {result.detail}")
        return True

    def _log_error(self, message: str) -> None:
        if self._verbose:
            _LOGGER.error("[VisualizerClient] %s", message)

    @staticmethod
    def _valid_name(name: Any) -> bool:
        return isinstance(name, str) and bool(name)

    @staticmethod
    def _non_negative(value: Any) -> bool:
        return isinstance(value, int) and not isinstance(value, bool) and value >= 0

    @staticmethod
    def _valid_node_id(node_id: Any) -> bool:
        return isinstance(node_id, int) and not isinstance(node_id, bool) and node_id >= 0

    @staticmethod
    def _valid_metadata(metadata: Any) -> bool:
        return metadata is None or isinstance(metadata, Mapping)
