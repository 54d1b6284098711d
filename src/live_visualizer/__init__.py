"""Client library for the live data structure visualizer."""

from .client import VisualizerClient
from .config import ClientSettings, load_settings
from .managed import ManagedStructure
from .protocol import NODE_NOT_CREATED, CallResult, FailureReason, StructureKind

__all__ = [
    "VisualizerClient",
    "ManagedStructure",
    "ClientSettings",
    "load_settings",
    "StructureKind",
    "FailureReason",
    "CallResult",
    "NODE_NOT_CREATED",
]
