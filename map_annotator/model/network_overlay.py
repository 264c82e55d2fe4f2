"""NetworkOverlay - Ephemeral layer built from the live node feed.

The overlay is rebuilt wholesale for every feed update and never persisted.
Item i always corresponds to feed record i; hit-testing relies on that
alignment.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from map_annotator.constants import OverlayConfig
from map_annotator.model.geometry import Coordinate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NodeRecord:
    """One network node as reported by the feed.

    Attributes:
        id: Node identifier
        position: (lon, lat)
        signal_metric: Signal-to-noise ratio in dB
        connections: Ids of nodes this node links to
        rssi: Received signal strength (tooltip only)
        distance: Reported distance (tooltip only)
        hop_count: Hops from the gateway (tooltip only)
    """

    id: str
    position: Coordinate
    signal_metric: float
    connections: tuple[str, ...] = ()
    rssi: float | None = None
    distance: float | None = None
    hop_count: int | None = None


def signal_quality(signal_metric: float) -> str:
    """Map a signal metric to excellent/good/fair/poor (strict '>' bands)."""
    for threshold, quality in OverlayConfig.QUALITY_THRESHOLDS:
        if signal_metric > threshold:
            return quality
    return OverlayConfig.FALLBACK_QUALITY


@dataclass(frozen=True)
class OverlayItem:
    position: Coordinate
    quality: str

    @property
    def color(self) -> list[int]:
        return OverlayConfig.QUALITY_COLORS[self.quality]


@dataclass(frozen=True)
class ConnectionSegment:
    source_id: str
    target_id: str
    path: tuple[Coordinate, Coordinate]


@dataclass(frozen=True)
class NetworkOverlay:
    items: tuple[OverlayItem, ...]
    connections: tuple[ConnectionSegment, ...]

    def __len__(self) -> int:
        return len(self.items)


@dataclass
class NetworkDisplayState:
    """User-controlled display settings for the overlay (persisted)."""

    visible: bool = OverlayConfig.DEFAULT_VISIBLE
    radius: int = OverlayConfig.DEFAULT_RADIUS
    display: str = OverlayConfig.DEFAULT_DISPLAY
    icon_kind: str = OverlayConfig.DEFAULT_ICON_KIND

    def to_dict(self) -> dict[str, Any]:
        return {"visible": self.visible, "radius": self.radius, "display": self.display, "icon_kind": self.icon_kind}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NetworkDisplayState":
        return cls(
            visible=bool(data.get("visible", OverlayConfig.DEFAULT_VISIBLE)),
            radius=int(data.get("radius", OverlayConfig.DEFAULT_RADIUS)),
            display=data.get("display", OverlayConfig.DEFAULT_DISPLAY),
            icon_kind=data.get("icon_kind", OverlayConfig.DEFAULT_ICON_KIND),
        )


def connection_segments(records: list[NodeRecord]) -> list[ConnectionSegment]:
    """Resolve every node's connections against ids in the same snapshot.

    Connections to ids not present in the snapshot are skipped.
    """
    by_id = {record.id: record for record in records}
    segments = []
    for record in records:
        for target_id in record.connections:
            target = by_id.get(target_id)
            if target is None:
                continue
            segments.append(
                ConnectionSegment(source_id=record.id, target_id=target_id, path=(record.position, target.position))
            )
    return segments


def build_overlay(records: Any) -> NetworkOverlay | None:
    """Build the overlay for one feed update.

    Absent, empty or non-sequence payloads yield None.
    """
    if not isinstance(records, (list, tuple)) or not records:
        return None
    items = tuple(OverlayItem(position=r.position, quality=signal_quality(r.signal_metric)) for r in records)
    return NetworkOverlay(items=items, connections=tuple(connection_segments(records=list(records))))


def hit_test(overlay: NetworkOverlay | None, records: list[NodeRecord], coordinate: Coordinate) -> NodeRecord | None:
    """Return the feed record under the hovered overlay item.

    Matches the first overlay item whose position equals `coordinate` exactly
    and returns the record at the same index. Duplicate positions resolve to
    the first match.
    """
    if overlay is None:
        return None
    target = (float(coordinate[0]), float(coordinate[1]))
    for index, item in enumerate(overlay.items):
        if item.position == target:
            if index < len(records):
                return records[index]
            return None
    return None
