"""LayerStore - Central manager for annotation layers and their folders.

Owns the ordered collection of layers plus the folder labels they are grouped
under. Provides operations for:
- Committing drawn layers with per-kind defaults
- Adding one uploaded layer per non-empty import batch
- Single-field updates (visibility, label, color, icon, radius, geometry, folder)
- Custom folder management
- Serialization/deserialization
"""

import logging
import time
from dataclasses import dataclass, field, replace
from typing import Any

from map_annotator.constants import EntityPrefixes, FolderConfig, StyleConfig
from map_annotator.model.geometry import GeometryItem
from map_annotator.model.layer import (
    RGB,
    Layer,
    LayerKind,
    LayerOrigin,
    LayerStyle,
    hex_to_rgb,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImportBatch:
    """Parsed geometry handed over by an importer.

    Attributes:
        kind: point, polygon or line
        items: Geometry items of the matching type (may be empty)
        name: Display name for the resulting layer, or None for the default
    """

    kind: LayerKind
    items: tuple[GeometryItem, ...]
    name: str | None = None

    def __post_init__(self) -> None:
        if self.kind not in (LayerKind.POINT, LayerKind.POLYGON, LayerKind.LINE):
            raise ValueError(f"Import batches hold points, polygons or lines, not {self.kind.value}")


@dataclass
class FolderRegistry:
    """Folder keys and their display labels.

    Built-in folders (untitled, drawn, uploaded) always exist; custom folders
    are added and removed by the user.
    """

    labels: dict[str, str] = field(default_factory=lambda: dict(FolderConfig.DEFAULT_LABELS))
    custom: list[str] = field(default_factory=list)
    _counter: int = 0

    def keys(self) -> list[str]:
        return list(FolderConfig.BUILTIN_FOLDERS) + list(self.custom)

    def add(self, label: str) -> str:
        self._counter += 1
        key = f"{FolderConfig.CUSTOM_PREFIX}-{self._counter}-{int(time.time() * 1000)}"
        self.custom.append(key)
        self.labels[key] = label
        return key

    def rename(self, key: str, label: str) -> None:
        if key not in self.labels:
            raise KeyError(f"Unknown folder '{key}'")
        self.labels[key] = label

    def remove(self, key: str) -> None:
        if key not in self.custom:
            raise ValueError(f"Only custom folders can be removed, got '{key}'")
        self.custom.remove(key)
        del self.labels[key]

    def to_dict(self) -> dict[str, Any]:
        return {"labels": dict(self.labels), "custom": list(self.custom), "counter": self._counter}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FolderRegistry":
        labels = dict(FolderConfig.DEFAULT_LABELS)
        labels.update(data.get("labels", {}))
        return cls(labels=labels, custom=list(data.get("custom", [])), _counter=int(data.get("counter", 0)))


class LayerStore:
    """Ordered collection of annotation layers.

    Layers are immutable; every update replaces the stored layer with a copy
    differing in exactly one field. Insertion order is render order.

    Example:
        store = LayerStore()
        layer = store.commit_drawn(kind=LayerKind.POINT, geometry=(PointItem(position=(1.0, 2.0)),))
        store.set_visible(layer_id=layer.id, visible=False)
    """

    def __init__(self) -> None:
        """Initialize empty store."""
        self.layers: dict[str, Layer] = {}
        self.folders = FolderRegistry()
        self.revision = 0
        self._layer_counter = 0

    def _next_layer_id(self) -> str:
        self._layer_counter += 1
        return f"{EntityPrefixes.LAYER}-{self._layer_counter}-{int(time.time() * 1000)}"

    def _next_label(self, kind: LayerKind) -> str:
        return f"{StyleConfig.LAYER_NAMES[kind.value]} {len(self.layers) + 1}"

    def _touch(self) -> None:
        self.revision += 1

    def __len__(self) -> int:
        return len(self.layers)

    def __contains__(self, layer_id: str) -> bool:
        return layer_id in self.layers

    def get(self, layer_id: str) -> Layer:
        """Return the layer with this id.

        Raises:
            KeyError: If no such layer exists.
        """
        if layer_id not in self.layers:
            raise KeyError(f"Layer {layer_id} not found")
        return self.layers[layer_id]

    def ordered(self) -> list[Layer]:
        return list(self.layers.values())

    def visible_layers(self, limit: int | None = None) -> list[Layer]:
        """Visible layers in insertion order, optionally capped at `limit`."""
        visible = [layer for layer in self.layers.values() if layer.visible]
        return visible if limit is None else visible[:limit]

    def in_folder(self, folder: str) -> list[Layer]:
        return [layer for layer in self.layers.values() if layer.group == folder]

    # =========================================================================
    # Commit Operations
    # =========================================================================

    def commit_drawn(
        self,
        kind: LayerKind,
        geometry: tuple[GeometryItem, ...],
        measurement: str | None = None,
    ) -> Layer:
        """Create and append a drawn layer with per-kind default style and label."""
        layer = Layer(
            id=self._next_layer_id(),
            kind=kind,
            geometry=geometry,
            style=LayerStyle.default_for(kind=kind),
            label=self._next_label(kind=kind),
            origin=LayerOrigin.DRAWN,
            group=FolderConfig.DRAWN,
            visible=True,
            measurement=measurement,
        )
        self.layers[layer.id] = layer
        self._touch()
        logger.info(f"[LAYER] Committed {layer!r}")
        return layer

    def import_batch(self, batch: ImportBatch) -> Layer | None:
        """Add one uploaded layer for a non-empty batch; empty batches add nothing."""
        if not batch.items:
            logger.info(f"[LAYER] Skipped empty {batch.kind.value} import batch")
            return None
        layer = Layer(
            id=self._next_layer_id(),
            kind=batch.kind,
            geometry=tuple(batch.items),
            style=LayerStyle.default_for(kind=batch.kind, origin=LayerOrigin.UPLOADED),
            label=batch.name or self._next_label(kind=batch.kind),
            origin=LayerOrigin.UPLOADED,
            group=FolderConfig.UPLOADED,
            visible=True,
        )
        self.layers[layer.id] = layer
        self._touch()
        logger.info(f"[LAYER] Imported {layer!r}")
        return layer

    def remove(self, layer_id: str) -> Layer:
        layer = self.get(layer_id=layer_id)
        del self.layers[layer_id]
        self._touch()
        logger.info(f"[LAYER] Removed {layer!r}")
        return layer

    def clear(self) -> None:
        """Drop every layer and custom folder, keeping the id counter monotonic."""
        self.layers = {}
        self.folders = FolderRegistry()
        self._touch()

    # =========================================================================
    # Single-Field Updates
    # =========================================================================

    def _replace(self, layer_id: str, **changes: Any) -> Layer:
        updated = replace(self.get(layer_id=layer_id), **changes)
        self.layers[layer_id] = updated
        self._touch()
        return updated

    def _replace_style(self, layer_id: str, **changes: Any) -> Layer:
        style = replace(self.get(layer_id=layer_id).style, **changes)
        return self._replace(layer_id, style=style)

    def set_visible(self, layer_id: str, visible: bool) -> Layer:
        return self._replace(layer_id, visible=visible)

    def toggle_visibility(self, layer_id: str) -> Layer:
        return self.set_visible(layer_id=layer_id, visible=not self.get(layer_id=layer_id).visible)

    def rename(self, layer_id: str, label: str) -> Layer:
        return self._replace(layer_id, label=label)

    def set_color(self, layer_id: str, color: RGB | str) -> Layer:
        """Change color; accepts '#rrggbb' or an RGB tuple."""
        rgb = hex_to_rgb(color) if isinstance(color, str) else tuple(color)
        return self._replace_style(layer_id, color=rgb)

    def set_icon(self, layer_id: str, icon: str) -> Layer:
        return self._replace_style(layer_id, icon=icon)

    def set_radius(self, layer_id: str, radius: int) -> Layer:
        if not StyleConfig.MIN_POINT_RADIUS <= radius <= StyleConfig.MAX_POINT_RADIUS:
            bounds = f"[{StyleConfig.MIN_POINT_RADIUS}, {StyleConfig.MAX_POINT_RADIUS}]"
            raise ValueError(f"Radius {radius} outside {bounds}")
        return self._replace_style(layer_id, radius=radius)

    def set_point_display(self, layer_id: str, point_display: str) -> Layer:
        return self._replace_style(layer_id, point_display=point_display)

    def set_icon_kind(self, layer_id: str, icon_kind: str) -> Layer:
        return self._replace_style(layer_id, icon_kind=icon_kind)

    def set_geometry(self, layer_id: str, geometry: tuple[GeometryItem, ...]) -> Layer:
        return self._replace(layer_id, geometry=geometry)

    def move_to_folder(self, layer_id: str, folder: str) -> Layer:
        if folder not in self.folders.keys():
            raise KeyError(f"Unknown folder '{folder}'")
        return self._replace(layer_id, group=folder)

    # =========================================================================
    # Folder Operations
    # =========================================================================

    def add_folder(self, label: str) -> str:
        key = self.folders.add(label=label)
        self._touch()
        logger.info(f"[FOLDER] Added '{label}' ({key})")
        return key

    def rename_folder(self, key: str, label: str) -> None:
        self.folders.rename(key=key, label=label)
        self._touch()

    def remove_folder(self, key: str) -> None:
        """Remove a custom folder; its layers fall back to 'untitled'."""
        self.folders.remove(key=key)
        for layer in self.in_folder(folder=key):
            self.layers[layer.id] = replace(layer, group=FolderConfig.UNTITLED)
        self._touch()
        logger.info(f"[FOLDER] Removed {key}")

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        return {
            "layers": [layer.to_dict() for layer in self.layers.values()],
            "folders": self.folders.to_dict(),
            "counters": {"layer": self._layer_counter},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LayerStore":
        store = cls()
        for layer_data in data["layers"]:
            layer = Layer.from_dict(data=layer_data)
            store.layers[layer.id] = layer
        store.folders = FolderRegistry.from_dict(data=data.get("folders", {}))
        store._layer_counter = int(data.get("counters", {}).get("layer", len(store.layers)))
        return store
