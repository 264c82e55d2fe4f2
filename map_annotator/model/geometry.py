"""Geometry items - the tagged union stored inside a Layer.

Each layer kind carries exactly one item type:
- point -> PointItem (a single position)
- polygon / sector / area -> RingItem (a closed or wedge ring)
- line / distance / azimuth -> PathItem (the clicked vertices, in order)

Items are immutable; translation returns a new item. Imported items may
carry a properties map copied from the source feature.
"""

from dataclasses import dataclass, field
from typing import Any, Union

Coordinate = tuple[float, float]  # (lon, lat)


def _shift(coord: Coordinate, dlon: float, dlat: float) -> Coordinate:
    return (coord[0] + dlon, coord[1] + dlat)


def _coord_from_list(value: Any) -> Coordinate:
    return (float(value[0]), float(value[1]))


@dataclass(frozen=True)
class PointItem:
    """A single marker position."""

    position: Coordinate
    properties: dict[str, Any] = field(default_factory=dict)

    def coordinates(self) -> list[Coordinate]:
        return [self.position]

    def translated(self, dlon: float, dlat: float) -> "PointItem":
        return PointItem(position=_shift(self.position, dlon, dlat), properties=self.properties)

    def to_dict(self) -> dict[str, Any]:
        return {"position": list(self.position), "properties": dict(self.properties)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PointItem":
        return cls(position=_coord_from_list(data["position"]), properties=dict(data.get("properties") or {}))


@dataclass(frozen=True)
class RingItem:
    """A polygon ring: closed for polygon/area, center-plus-arc for sectors."""

    ring: tuple[Coordinate, ...]
    properties: dict[str, Any] = field(default_factory=dict)

    @property
    def is_closed(self) -> bool:
        return len(self.ring) >= 2 and self.ring[0] == self.ring[-1]

    def coordinates(self) -> list[Coordinate]:
        return list(self.ring)

    def translated(self, dlon: float, dlat: float) -> "RingItem":
        return RingItem(ring=tuple(_shift(c, dlon, dlat) for c in self.ring), properties=self.properties)

    def to_dict(self) -> dict[str, Any]:
        return {"ring": [list(c) for c in self.ring], "properties": dict(self.properties)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RingItem":
        return cls(
            ring=tuple(_coord_from_list(c) for c in data["ring"]),
            properties=dict(data.get("properties") or {}),
        )


@dataclass(frozen=True)
class PathItem:
    """An open polyline through the clicked vertices."""

    path: tuple[Coordinate, ...]
    properties: dict[str, Any] = field(default_factory=dict)

    def coordinates(self) -> list[Coordinate]:
        return list(self.path)

    def translated(self, dlon: float, dlat: float) -> "PathItem":
        return PathItem(path=tuple(_shift(c, dlon, dlat) for c in self.path), properties=self.properties)

    def to_dict(self) -> dict[str, Any]:
        return {"path": [list(c) for c in self.path], "properties": dict(self.properties)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PathItem":
        return cls(
            path=tuple(_coord_from_list(c) for c in data["path"]),
            properties=dict(data.get("properties") or {}),
        )


GeometryItem = Union[PointItem, RingItem, PathItem]


def iter_coordinates(items: tuple[GeometryItem, ...] | list[GeometryItem]) -> list[Coordinate]:
    """Flatten every coordinate of every item, in order."""
    return [coord for item in items for coord in item.coordinates()]


def translate_items(items: tuple[GeometryItem, ...], dlon: float, dlat: float) -> tuple[GeometryItem, ...]:
    """Rigidly shift every coordinate by (dlon, dlat)."""
    return tuple(item.translated(dlon, dlat) for item in items)
