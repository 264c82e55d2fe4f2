"""Smoke tests for module imports, configuration and the Streamlit app.

Quick tests that verify the system is correctly installed and configured.
"""

from pathlib import Path

import pytest
from streamlit.testing.v1 import AppTest

from map_annotator.constants import PersistenceConfig
from map_annotator.model.geometry import PointItem
from map_annotator.model.layer import LayerKind
from map_annotator.model.workspace import Workspace

APP_PATH = Path(__file__).resolve().parent.parent / "map_annotator" / "app.py"


class TestModuleImports:
    @pytest.mark.parametrize(
        "module_path,name",
        [
            pytest.param("map_annotator.core.geo_calculator", "GeoCalculator", id="core_geo"),
            pytest.param("map_annotator.core.viewport_fitter", "focus_on_layer", id="core_viewport"),
            pytest.param("map_annotator.core.drag_translate", "DragTranslateEngine", id="core_drag"),
            pytest.param("map_annotator.core.feature_importer", "import_file", id="core_importer"),
            pytest.param("map_annotator.core.feed_parser", "fetch_feed_snapshot", id="core_feed"),
            pytest.param("map_annotator.model.layer_store", "LayerStore", id="model_store"),
            pytest.param("map_annotator.model.workspace", "Workspace", id="model_workspace"),
            pytest.param("map_annotator.ui.drawing_session", "DrawingStateMachine", id="ui_statemachine"),
            pytest.param("map_annotator.ui.left_panel", "SidebarRenderer", id="ui_sidebar"),
            pytest.param("map_annotator.ui.center_map", "MapRenderer", id="ui_map"),
        ],
    )
    def test_module_import(self, module_path: str, name: str) -> None:
        import importlib

        module = importlib.import_module(module_path)
        assert getattr(module, name) is not None


class TestConfigurationValidation:
    def test_span_thresholds_ascending(self) -> None:
        from map_annotator.constants import FocusZoomConfig

        spans = [span for span, _, _ in FocusZoomConfig.SPAN_THRESHOLDS]
        assert spans == sorted(spans)

    def test_drawn_zoom_not_below_uploaded(self) -> None:
        from map_annotator.constants import FocusZoomConfig

        for _, drawn, uploaded in FocusZoomConfig.SPAN_THRESHOLDS:
            assert drawn >= uploaded

    def test_quality_thresholds_descending(self) -> None:
        from map_annotator.constants import OverlayConfig

        thresholds = [t for t, _ in OverlayConfig.QUALITY_THRESHOLDS]
        assert thresholds == sorted(thresholds, reverse=True)

    def test_default_style_is_known(self) -> None:
        from map_annotator.constants import MapConfig

        assert MapConfig.DEFAULT_MAP_STYLE in MapConfig.MAP_STYLES.values()


class TestAppSmoke:
    """Run the real script through Streamlit's AppTest harness."""

    @pytest.fixture(autouse=True)
    def isolated_backup_dir(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
        monkeypatch.setattr(PersistenceConfig, "BACKUP_DIR", tmp_path)
        return tmp_path

    @pytest.fixture
    def app(self) -> AppTest:
        at = AppTest.from_file(str(APP_PATH), default_timeout=30)
        at.run()
        return at

    def test_first_render(self, app: AppTest) -> None:
        assert not app.exception
        assert not app.error
        assert app.session_state["state_machine"].mode == "none"
        assert len(app.session_state["workspace"].store) == 0

    def test_startup_restores_backup(self, isolated_backup_dir: Path) -> None:
        previous = Workspace()
        previous.store.commit_drawn(kind=LayerKind.POINT, geometry=(PointItem(position=(77.0, 28.0)),))
        previous.create_auto_backup(backup_dir=isolated_backup_dir)

        at = AppTest.from_file(str(APP_PATH), default_timeout=30)
        at.run()
        assert not at.exception
        assert len(at.session_state["workspace"].store) == 1

    def test_tool_button_enters_drawing_mode(self, app: AppTest) -> None:
        app.button(key="tool_polygon").click().run()
        assert not app.exception
        assert app.session_state["state_machine"].mode == "polygon"

        app.button(key="tool_polygon").click().run()
        assert app.session_state["state_machine"].mode == "none"
