"""Shared pytest fixtures for map_annotator tests.

COORDINATE SYSTEM:
    Tests draw near the equator (lat~0) and prime meridian (lon~0) where
    1 degree ≈ 111.19 km in both directions and cos(lat) ≈ 1, so expected
    distances and areas can be written down by hand.
"""

import pytest

from map_annotator.model.geometry import PathItem, PointItem, RingItem
from map_annotator.model.layer import LayerKind
from map_annotator.model.layer_store import ImportBatch, LayerStore
from map_annotator.model.network_overlay import NodeRecord
from map_annotator.ui.drawing_session import DrawingSession, DrawingStateMachine

# Unit-degree square, counter-clockwise, closed
UNIT_SQUARE = ((0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0), (0.0, 0.0))

# Zoom at which the ring-closing tolerance is exactly 0.05°
REFERENCE_ZOOM = 5


# =============================================================================
# STORE FIXTURES
# =============================================================================


@pytest.fixture
def empty_store() -> LayerStore:
    return LayerStore()


@pytest.fixture
def store_with_drawn_layers() -> LayerStore:
    """Store with one drawn point, one drawn polygon (unit square) and one drawn line."""
    store = LayerStore()
    store.commit_drawn(kind=LayerKind.POINT, geometry=(PointItem(position=(0.5, 0.5)),))
    store.commit_drawn(kind=LayerKind.POLYGON, geometry=(RingItem(ring=UNIT_SQUARE),))
    store.commit_drawn(kind=LayerKind.LINE, geometry=(PathItem(path=((0.0, 0.0), (2.0, 1.0))),))
    return store


@pytest.fixture
def uploaded_points_batch() -> ImportBatch:
    """Three uploaded points spread over 0.2° (a multi-item point layer)."""
    return ImportBatch(
        kind=LayerKind.POINT,
        items=(
            PointItem(position=(10.0, 20.0), properties={"name": "A"}),
            PointItem(position=(10.1, 20.1), properties={"name": "B"}),
            PointItem(position=(10.2, 20.0), properties={"name": "C"}),
        ),
        name="stations Points",
    )


# =============================================================================
# STATE MACHINE FIXTURES
# =============================================================================


@pytest.fixture
def state_machine_and_session() -> tuple[DrawingStateMachine, DrawingSession]:
    """Drawing state machine without the Streamlit listener (no rerun, no backup)."""
    return DrawingStateMachine.create(add_ui_listener=False)


# =============================================================================
# FEED FIXTURES
# =============================================================================


@pytest.fixture
def raw_feed_nodes() -> list[dict]:
    """Raw feed payload nodes: a gateway linked to two relays, one link dangling."""
    return [
        {"userId": "gw", "longitude": 77.0, "latitude": 28.0, "snr": 25.0, "connectedNodeIds": ["r1", "r2"]},
        {"userId": "r1", "longitude": 77.1, "latitude": 28.1, "snr": 12.5, "rssi": -80, "hopCount": 1},
        {"userId": "r2", "longitude": 77.2, "latitude": 28.0, "snr": 5.0, "connectedNodeIds": ["ghost"]},
    ]


@pytest.fixture
def node_records() -> list[NodeRecord]:
    return [
        NodeRecord(id="gw", position=(77.0, 28.0), signal_metric=25.0, connections=("r1",)),
        NodeRecord(id="r1", position=(77.1, 28.1), signal_metric=12.5),
    ]
