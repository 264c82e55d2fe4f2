"""Workspace - Everything the user would expect to find again after a reload.

Bundles the LayerStore with the camera, basemap style, collapsed sidebar
sections and the network overlay display settings. Provides:
- Snapshot serialization (to_dict/from_dict)
- JSON save/load
- Automatic backup to output/map_annotator/backups/, restored on startup
- "Start fresh" reset

The live overlay itself is never part of a snapshot.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from map_annotator.constants import FolderConfig, MapConfig, PersistenceConfig
from map_annotator.core.viewport_fitter import ViewportState
from map_annotator.model.layer_store import LayerStore
from map_annotator.model.network_overlay import NetworkDisplayState

logger = logging.getLogger(__name__)


def _default_collapsed() -> dict[str, bool]:
    return {section: False for section in FolderConfig.SECTIONS}


class Workspace:
    """Persistent application state.

    Example:
        workspace = Workspace()
        workspace.save(path=Path("my_map.json"))
        restored = Workspace.load(path=Path("my_map.json"))
    """

    def __init__(self) -> None:
        self.store = LayerStore()
        self.viewport = ViewportState()
        self.map_style: str = MapConfig.DEFAULT_MAP_STYLE
        self.collapsed_sections: dict[str, bool] = _default_collapsed()
        self.network_display = NetworkDisplayState()
        self._last_backup_state: str | None = None

    # =========================================================================
    # Commands
    # =========================================================================

    def toggle_section(self, section: str) -> bool:
        if section not in FolderConfig.SECTIONS and section not in self.store.folders.keys():
            raise KeyError(f"Unknown section '{section}'")
        self.collapsed_sections[section] = not self.collapsed_sections.get(section, False)
        return self.collapsed_sections[section]

    def set_map_style(self, style: str) -> None:
        if style not in MapConfig.MAP_STYLES.values():
            raise ValueError(f"Unknown map style '{style}'")
        self.map_style = style

    def start_fresh(self) -> None:
        """Drop all layers and folders and return every setting to its default."""
        self.store.clear()
        self.viewport = ViewportState()
        self.map_style = MapConfig.DEFAULT_MAP_STYLE
        self.collapsed_sections = _default_collapsed()
        self.network_display = NetworkDisplayState()
        logger.info("[WORKSPACE] Started fresh")

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        """Serialize workspace to a JSON-compatible snapshot."""
        return {
            "version": PersistenceConfig.SNAPSHOT_VERSION,
            "viewState": self.viewport.to_dict(),
            "store": self.store.to_dict(),
            "collapsedSections": dict(self.collapsed_sections),
            "mapStyle": self.map_style,
            "networkLayerState": self.network_display.to_dict(),
            "timestamp": datetime.now().isoformat(),
        }

    def apply_dict(self, data: dict[str, Any]) -> None:
        """Replace each piece present in the snapshot; absent pieces are kept."""
        if "viewState" in data:
            self.viewport = ViewportState.from_dict(data=data["viewState"])
        if "store" in data:
            self.store = LayerStore.from_dict(data=data["store"])
        if "collapsedSections" in data:
            collapsed = _default_collapsed()
            collapsed.update({k: bool(v) for k, v in data["collapsedSections"].items()})
            self.collapsed_sections = collapsed
        if "mapStyle" in data:
            self.map_style = data["mapStyle"]
        if "networkLayerState" in data:
            self.network_display = NetworkDisplayState.from_dict(data=data["networkLayerState"])

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Workspace":
        workspace = cls()
        workspace.apply_dict(data=data)
        return workspace

    def save(self, path: Path) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)
        logger.info(f"[WORKSPACE] Saved {len(self.store)} layer(s) to {path}")
        return path

    @classmethod
    def load(cls, path: Path) -> "Workspace":
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        workspace = cls.from_dict(data=data)
        logger.info(f"[WORKSPACE] Loaded {len(workspace.store)} layer(s) from {path}")
        return workspace

    # =========================================================================
    # Backup
    # =========================================================================

    def _state_key(self) -> str:
        snapshot = self.to_dict()
        del snapshot["timestamp"]
        return json.dumps(snapshot, sort_keys=True)

    def create_auto_backup(self, backup_dir: Path | None = None) -> Path | None:
        """Write the snapshot to a fixed backup file, overwriting the previous one.

        Failures are logged, never raised.
        """
        backup_dir = backup_dir or PersistenceConfig.BACKUP_DIR
        backup_path = backup_dir / PersistenceConfig.BACKUP_FILENAME
        try:
            backup_dir.mkdir(parents=True, exist_ok=True)
            with open(backup_path, "w", encoding="utf-8") as f:
                json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)
        except OSError as e:
            logger.error(f"Failed to create auto-backup: {e}")
            return None
        logger.info(f"Auto-backup created: {backup_path.name}")
        return backup_path

    def perform_backup(self, backup_dir: Path | None = None) -> Path | None:
        """Back up only when the persisted state changed since the last backup.

        An emptied workspace is written too, so a cleared map stays cleared.
        """
        state = self._state_key()
        if state == self._last_backup_state:
            return None
        self._last_backup_state = state
        return self.create_auto_backup(backup_dir=backup_dir)

    @classmethod
    def restore_backup(cls, backup_dir: Path | None = None) -> "Workspace":
        """Workspace from the auto-backup, or a fresh one if there is none.

        An unreadable backup is logged and ignored.
        """
        backup_path = (backup_dir or PersistenceConfig.BACKUP_DIR) / PersistenceConfig.BACKUP_FILENAME
        if not backup_path.exists():
            return cls()
        try:
            workspace = cls.load(path=backup_path)
        except (OSError, KeyError, TypeError, ValueError) as e:
            logger.error(f"Failed to restore auto-backup {backup_path}: {e}")
            return cls()
        workspace._last_backup_state = workspace._state_key()
        return workspace
