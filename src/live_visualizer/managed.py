"""Scope-bound structures that clean up after themselves on the server."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional

from .protocol import StructureKind

if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from .client import VisualizerClient

_LOGGER = logging.getLogger(__name__)


class ManagedStructure:
    """Tie a remote structure's lifetime to a ``with`` block.

    The structure is created on construction and deleted exactly once when the
    block exits, whichever way it exits. Creation is not verified; a failed
    create simply makes the forwarded node calls fail, and the final delete
    returns ``False`` without raising.
    """

    def __init__(
        self,
        client: "VisualizerClient",
        name: str,
        kind: StructureKind | str = StructureKind.LINKED_LIST,
        depth: int = 1,
        initial_size: int = 0,
    ):
        self._client = client
        self._name = name
        self._released = False
        self._created = client.create_structure(name, kind, depth, initial_size)
        if not self._created:
            _LOGGER.debug("Structure '%s' was not confirmed by the server", name)

    @property
    def name(self) -> str:
        return self._name

    @property
    def created(self) -> bool:
        """Whether the server confirmed creation when the wrapper was built."""
        return self._created

    @property
    def released(self) -> bool:
        return self._released

    def __enter__(self) -> "ManagedStructure":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> bool:
        """Delete the structure on the server; later calls do nothing."""
        if self._released:
            return False
        self._released = True
        return self._client.delete_structure(self._name)

    def add_node(self, value: Any, index: Optional[int] = None, metadata: Optional[dict[str, Any]] = None) -> int:
        return self._client.add_node(self._name, value, index=index, metadata=metadata)

    def remove_node(self, node_id: int) -> bool:
        return self._client.remove_node(self._name, node_id)

    def update_node(self, node_id: int, value: Any, metadata: Optional[dict[str, Any]] = None) -> bool:
        return self._client.update_node(self._name, node_id, value, metadata=metadata)

    def get_structure(self) -> dict[str, Any]:
        return self._client.get_structure(self._name)

    def __repr__(self) -> str:
        return f"ManagedStructure(name={self._name!r}, created={self._created}, released={self._released})"
