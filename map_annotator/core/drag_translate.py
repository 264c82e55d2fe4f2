"""Drag-translate engine - rigid-body moves of drawn layers.

A gesture snapshots the layer's geometry at press time; every move recomputes
the new geometry from that snapshot and the total offset since the press, so
replaying the same pointer position always yields the same result.
"""

import logging
from dataclasses import dataclass

from map_annotator.model.geometry import Coordinate, GeometryItem, translate_items
from map_annotator.model.layer_store import LayerStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DragGesture:
    """Press-time state of a drag: which layer, where, and its geometry then."""

    layer_id: str
    start: Coordinate
    snapshot: tuple[GeometryItem, ...]

    def geometry_at(self, current: Coordinate) -> tuple[GeometryItem, ...]:
        dlon = current[0] - self.start[0]
        dlat = current[1] - self.start[1]
        return translate_items(self.snapshot, dlon, dlat)


class DragTranslateEngine:
    """Applies drag gestures to layers in a LayerStore.

    One gesture at a time. Uploaded layers cannot be dragged.
    """

    def __init__(self, store: LayerStore) -> None:
        self.store = store
        self.gesture: DragGesture | None = None

    @property
    def is_dragging(self) -> bool:
        return self.gesture is not None

    def start(self, layer_id: str, coordinate: Coordinate) -> bool:
        """Begin dragging; returns False if the layer is not draggable."""
        layer = self.store.get(layer_id=layer_id)
        if not layer.is_draggable:
            logger.info(f"[DRAG] {layer_id} is {layer.origin.value}, not draggable")
            return False
        # Items are immutable, so holding the tuple is a deep snapshot.
        self.gesture = DragGesture(layer_id=layer_id, start=coordinate, snapshot=layer.geometry)
        logger.info(f"[DRAG] Start {layer_id} at {coordinate}")
        return True

    def move(self, coordinate: Coordinate) -> None:
        if self.gesture is None:
            return
        geometry = self.gesture.geometry_at(current=coordinate)
        self.store.set_geometry(layer_id=self.gesture.layer_id, geometry=geometry)

    def end(self) -> None:
        if self.gesture is not None:
            logger.info(f"[DRAG] End {self.gesture.layer_id}")
        self.gesture = None
