"""Data model classes for map annotations.

Separates geometry (where things are) from presentation (how they look):
- PointItem, RingItem, PathItem: Immutable geometry items
- Layer: Named, styled annotation owning items of one type
- LayerStore: Central manager owning all layers and folders
- NetworkOverlay: Derived view of the live node feed

Workspace (everything persisted between sessions) depends on core.viewport_fitter;
import it directly:
    from map_annotator.model.workspace import Workspace
"""

from map_annotator.model.geometry import Coordinate, GeometryItem, PathItem, PointItem, RingItem
from map_annotator.model.layer import Layer, LayerKind, LayerOrigin, LayerStyle
from map_annotator.model.layer_store import FolderRegistry, ImportBatch, LayerStore
from map_annotator.model.network_overlay import (
    NetworkDisplayState,
    NetworkOverlay,
    NodeRecord,
    build_overlay,
    hit_test,
)

__all__ = [
    "Coordinate",
    "GeometryItem",
    "PointItem",
    "RingItem",
    "PathItem",
    "Layer",
    "LayerKind",
    "LayerOrigin",
    "LayerStyle",
    "FolderRegistry",
    "ImportBatch",
    "LayerStore",
    "NetworkDisplayState",
    "NetworkOverlay",
    "NodeRecord",
    "build_overlay",
    "hit_test",
]
