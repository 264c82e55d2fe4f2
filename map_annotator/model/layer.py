"""Layer - A named, styled annotation on the map.

A Layer owns an ordered tuple of geometry items whose type is fixed by the
layer's kind. Layers are immutable values: the LayerStore replaces a layer
with an updated copy for every single-field change, so `kind`, `origin` and
`measurement` can never drift after commit.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from map_annotator.constants import FolderConfig, StyleConfig
from map_annotator.model.geometry import (
    Coordinate,
    GeometryItem,
    PathItem,
    PointItem,
    RingItem,
    iter_coordinates,
)

RGB = tuple[int, int, int]


class LayerKind(str, Enum):
    """What a layer depicts; selects its geometry item type."""

    POINT = "point"
    POLYGON = "polygon"
    LINE = "line"
    SECTOR = "sector"
    DISTANCE = "distance"
    AREA = "area"
    AZIMUTH = "azimuth"

    @property
    def item_type(self) -> type:
        return KIND_ITEM_TYPES[self]

    @property
    def is_measurement(self) -> bool:
        return self in (LayerKind.SECTOR, LayerKind.DISTANCE, LayerKind.AREA, LayerKind.AZIMUTH)

    @property
    def requires_closed_ring(self) -> bool:
        return self in (LayerKind.POLYGON, LayerKind.AREA)


KIND_ITEM_TYPES: dict[LayerKind, type] = {
    LayerKind.POINT: PointItem,
    LayerKind.POLYGON: RingItem,
    LayerKind.SECTOR: RingItem,
    LayerKind.AREA: RingItem,
    LayerKind.LINE: PathItem,
    LayerKind.DISTANCE: PathItem,
    LayerKind.AZIMUTH: PathItem,
}
assert set(KIND_ITEM_TYPES.keys()) == set(LayerKind)


class LayerOrigin(str, Enum):
    """Where a layer came from."""

    DRAWN = "drawn"
    UPLOADED = "uploaded"


def hex_to_rgb(color: str) -> RGB:
    """Convert '#rrggbb' to an (r, g, b) tuple.

    Raises:
        ValueError: If the string is not a 6-digit hex color.
    """
    value = color.lstrip("#")
    if len(value) != 6:
        raise ValueError(f"Invalid hex color '{color}'")
    return (int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16))


def rgb_to_hex(rgb: RGB) -> str:
    return "#{:02x}{:02x}{:02x}".format(*rgb)


@dataclass(frozen=True)
class LayerStyle:
    """Visual style of a layer.

    Attributes:
        color: RGB fill/stroke color
        icon: Icon symbol identifier shown in the layer list (e.g., "mdi:ruler")
        point_display: "circle" or "icon" (points only)
        icon_kind: "marker", "pin", "star" or "circle" (points only)
        radius: Pixel radius (points only)
    """

    color: RGB
    icon: str
    point_display: str = StyleConfig.DEFAULT_POINT_DISPLAY
    icon_kind: str = StyleConfig.DEFAULT_ICON_KIND
    radius: int = StyleConfig.DEFAULT_POINT_RADIUS

    def __post_init__(self) -> None:
        if self.point_display not in StyleConfig.POINT_DISPLAY_MODES:
            raise ValueError(f"Unknown point display mode '{self.point_display}'")
        if self.icon_kind not in StyleConfig.ICON_KINDS:
            raise ValueError(f"Unknown icon kind '{self.icon_kind}'")

    @staticmethod
    def default_for(kind: LayerKind, origin: LayerOrigin = LayerOrigin.DRAWN) -> "LayerStyle":
        """Default style for a freshly drawn or imported layer of this kind."""
        if origin == LayerOrigin.UPLOADED:
            icon = StyleConfig.UPLOADED_ICONS.get(kind.value, StyleConfig.DEFAULT_ICONS[kind.value])
        else:
            icon = StyleConfig.DEFAULT_ICONS[kind.value]
        return LayerStyle(color=hex_to_rgb(StyleConfig.DEFAULT_COLORS[kind.value]), icon=icon)

    def to_dict(self) -> dict[str, Any]:
        return {
            "color": list(self.color),
            "icon": self.icon,
            "point_display": self.point_display,
            "icon_kind": self.icon_kind,
            "radius": self.radius,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LayerStyle":
        r, g, b = data["color"]
        return cls(
            color=(int(r), int(g), int(b)),
            icon=data["icon"],
            point_display=data.get("point_display", StyleConfig.DEFAULT_POINT_DISPLAY),
            icon_kind=data.get("icon_kind", StyleConfig.DEFAULT_ICON_KIND),
            radius=int(data.get("radius", StyleConfig.DEFAULT_POINT_RADIUS)),
        )


@dataclass(frozen=True)
class Layer:
    """A committed annotation.

    Attributes:
        id: Unique identifier ("layer-{counter}-{epoch_ms}")
        kind: What the layer depicts
        geometry: Non-empty tuple of items matching kind.item_type
        style: Visual style
        label: Display name (e.g., "Polygon 3")
        origin: Drawn on the map or imported from a file
        group: Folder key the layer is listed under
        visible: Whether the layer is rendered
        measurement: Formatted measurement text, measurement kinds only
    """

    id: str
    kind: LayerKind
    geometry: tuple[GeometryItem, ...]
    style: LayerStyle
    label: str
    origin: LayerOrigin = LayerOrigin.DRAWN
    group: str = FolderConfig.DRAWN
    visible: bool = True
    measurement: str | None = None

    def __post_init__(self) -> None:
        if not self.geometry:
            raise ValueError(f"Layer {self.id} must have at least one geometry item")
        item_type = self.kind.item_type
        for item in self.geometry:
            if not isinstance(item, item_type):
                raise ValueError(f"Layer {self.id} of kind {self.kind.value} cannot hold {type(item).__name__}")
            if self.kind.requires_closed_ring and not item.is_closed:
                raise ValueError(f"Layer {self.id}: {self.kind.value} ring must start and end on the same vertex")
        if self.measurement is not None and not self.kind.is_measurement:
            raise ValueError(f"Layer {self.id}: only measurement kinds carry a measurement")

    @property
    def is_draggable(self) -> bool:
        return self.origin == LayerOrigin.DRAWN

    def coordinates(self) -> list[Coordinate]:
        return iter_coordinates(self.geometry)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "geometry": [item.to_dict() for item in self.geometry],
            "style": self.style.to_dict(),
            "label": self.label,
            "origin": self.origin.value,
            "group": self.group,
            "visible": self.visible,
            "measurement": self.measurement,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Layer":
        kind = LayerKind(data["kind"])
        item_type = kind.item_type
        return cls(
            id=data["id"],
            kind=kind,
            geometry=tuple(item_type.from_dict(item) for item in data["geometry"]),
            style=LayerStyle.from_dict(data["style"]),
            label=data["label"],
            origin=LayerOrigin(data["origin"]),
            group=data["group"],
            visible=bool(data["visible"]),
            measurement=data.get("measurement"),
        )

    def __repr__(self) -> str:
        return f"Layer({self.id}, {self.kind.value}, '{self.label}', items={len(self.geometry)})"
