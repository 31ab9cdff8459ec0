import sys

from loguru import logger
from PySide6.QtCore import Qt, QTimer
from PySide6.QtGui import QAction, QResizeEvent
from PySide6.QtWidgets import (
    QApplication,
    QMainWindow,
    QWidget,
    QToolBar,
    QStyle,
    QVBoxLayout,
    QHBoxLayout,
    QLabel,
)

from config_dialog import ConfigDialog
from config.settings import get_settings
from api.client import ApiClient
from api.entity_store import EntityStore, SUCCESS
from core.entity import EntityKind, kind_color
from core.draw_controller import DrawController, DrawingMode
from core.drag_adapters import PointDragAdapter, PolygonDragAdapter
from core.filter_engine import counts_by_kind, visible_entities
from widgets.entity_dialog import EntityDialog
from widgets.entity_table import EntityTable
from widgets.filter_panel import FilterPanel, TYPE_LABELS
from widgets.map_canvas import MapCanvas

TOAST_MS = 3000
TOAST_STYLES = {
    SUCCESS: "color: #065f46; background-color: rgba(236, 253, 245, 230); padding: 6px; border: 1px solid #10b981; border-radius: 3px;",
    "error": "color: #991b1b; background-color: rgba(254, 242, 242, 230); padding: 6px; border: 1px solid #ef4444; border-radius: 3px;",
}
DRAGGING_OPACITY = {EntityKind.POINT: 0.6, EntityKind.POLYGON: 0.5}
ADAPTERS = {EntityKind.POINT: PointDragAdapter, EntityKind.POLYGON: PolygonDragAdapter}


class MainWindow(QMainWindow):
    def __init__(self, settings=None, store=None):
        super().__init__()
        self.setWindowTitle("Geo Editor: Gestión de Entidades")
        self.settings = settings or get_settings()
        self.store = store or EntityStore(
            ApiClient(self.settings.api_base_url, self.settings.request_timeout), parent=self
        )
        self.selected_id = None
        self._drag_adapters = []
        self._build_ui()
        self._create_toolbar()
        self._connect()
        self._refresh_views()

    # --- Notificaciones sobre el lienzo ---
    def _show_toast(self, level: str, message: str):
        self.toast_label.setStyleSheet(TOAST_STYLES.get(level, TOAST_STYLES["error"]))
        self.toast_label.setText(message)
        self.toast_label.adjustSize()
        self.toast_label.show()
        self._position_canvas_widgets()
        self._toast_timer.start()

    def _position_canvas_widgets(self):
        if self.toast_label.isVisible():
            self.toast_label.move(
                self.canvas.width() // 2 - self.toast_label.width() // 2,
                self.canvas.height() - self.toast_label.height() - 10
            )
            self.toast_label.raise_() # Asegurar que esté encima

    def resizeEvent(self, event: QResizeEvent):
        super().resizeEvent(event)
        self._position_canvas_widgets()

    # --- Métodos de UI ---
    def _build_ui(self):
        central = QWidget()
        self.setCentralWidget(central)
        main_layout = QHBoxLayout(central)

        map_panel = QWidget()
        map_layout = QVBoxLayout(map_panel)
        self.canvas = MapCanvas()
        self.canvas.set_view(self.settings.map_center_lat, self.settings.map_center_lng, self.settings.map_zoom)
        map_layout.addWidget(self.canvas)

        counts = QHBoxLayout()
        self.count_labels = {}
        for kind in EntityKind:
            lbl = QLabel()
            lbl.setStyleSheet(f"color: {kind_color(kind)}; font-weight: bold;")
            counts.addWidget(lbl)
            self.count_labels[kind] = lbl
        counts.addStretch()
        map_layout.addLayout(counts)

        self.toast_label = QLabel(self.canvas)
        self.toast_label.hide()
        self._toast_timer = QTimer(self)
        self._toast_timer.setSingleShot(True)
        self._toast_timer.setInterval(TOAST_MS)
        self._toast_timer.timeout.connect(self.toast_label.hide)

        side_panel = QWidget()
        side = QVBoxLayout(side_panel)
        self.filter_panel = FilterPanel(self.settings.search_debounce_ms)
        side.addWidget(self.filter_panel)
        self.table = EntityTable()
        side.addWidget(self.table)

        main_layout.addWidget(map_panel, 2)
        main_layout.addWidget(side_panel, 1)

        self.draw = DrawController(self.canvas, parent=self)

        self.cursor_label = QLabel()
        self.statusBar().addPermanentWidget(self.cursor_label)

    def _create_toolbar(self):
        tb = QToolBar("Principal"); self.addToolBar(tb)
        self.draw_actions = {}
        self.actions_by_label = {}
        actions_data = [
            (QStyle.SP_BrowserReload, "Actualizar", self._on_refresh),
            (QStyle.SP_FileIcon, "Nueva entidad", self._on_add),
            None,
            (QStyle.SP_DialogApplyButton, "Dibujar punto", lambda: self._on_draw(DrawingMode.POINT), True, False, DrawingMode.POINT),
            (QStyle.SP_ArrowRight, "Dibujar línea", lambda: self._on_draw(DrawingMode.LINE), True, False, DrawingMode.LINE),
            (QStyle.SP_TitleBarNormalButton, "Dibujar área", lambda: self._on_draw(DrawingMode.POLYGON), True, False, DrawingMode.POLYGON),
            (QStyle.SP_DialogCancelButton, "Cancelar dibujo", self.draw.cancel),
            None,
            (QStyle.SP_FileDialogDetailedView, "Configuraciones", self._on_settings),
        ]
        for item_data in actions_data:
            if item_data is None: tb.addSeparator(); continue
            action = QAction(self.style().standardIcon(item_data[0]), item_data[1], self)
            action.triggered.connect(item_data[2])
            if len(item_data) > 3: action.setCheckable(item_data[3])
            if len(item_data) > 4: action.setChecked(item_data[4])
            if len(item_data) > 5: self.draw_actions[item_data[5]] = action
            self.actions_by_label[item_data[1]] = action
            tb.addAction(action)
        self.cancel_draw_action = self.actions_by_label["Cancelar dibujo"]
        self.cancel_draw_action.setEnabled(False)

    def _connect(self):
        self.store.entities_changed.connect(lambda _: self._refresh_views())
        self.store.hidden_changed.connect(lambda _: self._refresh_views())
        self.store.notify.connect(self._show_toast)
        self.store.drag_state_changed.connect(self._on_drag_state_changed)
        self.store.loading_changed.connect(self._on_loading_changed)

        self.canvas.clicked.connect(self._on_map_click)
        self.canvas.entity_clicked.connect(self._on_entity_clicked)
        self.canvas.cursor_moved.connect(self._on_cursor_moved)
        self.draw.shape_drawn.connect(self._on_shape_drawn)
        self.draw.mode_changed.connect(self._sync_draw_actions)

        self.filter_panel.filters_changed.connect(lambda _: self._refresh_views())
        self.table.entity_selected.connect(lambda e: self._select(e.id))
        self.table.edit_requested.connect(self._open_dialog)
        self.table.delete_requested.connect(lambda e: self.store.delete(e.id))
        self.table.visibility_toggled.connect(self.store.toggle_hidden)

    # --- Vistas ---
    def _refresh_views(self):
        entities = self.store.entities
        visible = visible_entities(entities, self.filter_panel.state)
        counts = counts_by_kind(entities)
        self.filter_panel.update_counts(counts, len(visible), len(entities))
        for kind, lbl in self.count_labels.items():
            lbl.setText(f"{TYPE_LABELS[kind]}: {counts[kind]}")
        self.table.set_entities(visible, self.store.hidden_ids, self.selected_id)
        self._render_map(visible)

    def _render_map(self, entities):
        for adapter in self._drag_adapters:
            adapter.release()
        self._drag_adapters = []

        overlays = self.canvas.render_entities(entities, self.store.hidden_ids, self.selected_id)
        for entity in entities:
            overlay = overlays.get(entity.id)
            adapter_cls = ADAPTERS.get(entity.kind)
            if overlay is None or adapter_cls is None:
                continue
            self._drag_adapters.append(adapter_cls(overlay, entity, self._on_drag_end, self.canvas))
            if self.store.is_dragging(entity.id):
                overlay.set_opacity(DRAGGING_OPACITY[entity.kind])

    def _select(self, entity_id):
        self.selected_id = entity_id
        entity = self.store.find(entity_id)
        self.setWindowTitle(f"Geo Editor: Gestión de Entidades - {entity.name}" if entity else "Geo Editor: Gestión de Entidades")
        self._refresh_views()

    # --- Slots ---
    def _on_refresh(self): self.store.fetch()
    def _on_add(self): self._open_dialog()

    def _on_loading_changed(self, loading: bool):
        if loading: self.statusBar().showMessage("Cargando entidades...")
        else: self.statusBar().clearMessage()

    def _on_draw(self, mode: DrawingMode):
        # volver a pulsar el modo activo no lo reinicia
        self.draw.set_mode(mode)
        self._sync_draw_actions(self.draw.mode)

    def _sync_draw_actions(self, mode):
        for m, action in self.draw_actions.items():
            action.setChecked(m == mode)
        self.cancel_draw_action.setEnabled(mode is not DrawingMode.OFF)

    def _on_map_click(self, lat: float, lng: float):
        if self.draw.mode is not DrawingMode.OFF:
            return
        self._open_dialog(initial_coordinates=(lat, lng))

    def _on_entity_clicked(self, entity_id: int):
        self._select(entity_id)

    def _on_cursor_moved(self, lat: float, lng: float):
        p = self.settings.coordinate_precision
        self.cursor_label.setText(f"Lat: {lat:.{p}f}  Lng: {lng:.{p}f}")

    def _on_shape_drawn(self, kind, geometry: str):
        logger.info(f"Forma dibujada: {EntityKind(kind).name} {geometry}")
        # el diálogo se abre después de que el controlador vuelva a 'off'
        QTimer.singleShot(0, lambda: self._open_dialog(new_shape=(kind, geometry)))

    def _on_drag_end(self, entity, coordinates):
        self.store.update_geometry_from_drag(entity, coordinates)

    def _on_drag_state_changed(self, entity_id: int, dragging: bool):
        self.table.set_dragging(entity_id, dragging)
        overlay = self.canvas.overlay_for(entity_id)
        entity = self.store.find(entity_id)
        if overlay is not None and entity is not None and entity.kind in DRAGGING_OPACITY:
            overlay.set_opacity(DRAGGING_OPACITY[entity.kind] if dragging else 1.0)

    def _open_dialog(self, entity=None, initial_coordinates=None, new_shape=None):
        dlg = EntityDialog(
            self.store.save, entity=entity,
            initial_coordinates=initial_coordinates, new_shape=new_shape, parent=self
        )
        dlg.exec()
        self.draw.clear_scratch()

    def _on_settings(self):
        dlg = ConfigDialog(self.settings, self)
        if dlg.exec():
            client = self.store.client
            client.base_url = self.settings.api_base_url.rstrip("/")
            client.timeout = self.settings.request_timeout
            self.store.fetch()

    def keyPressEvent(self, event):
        if event.key() == Qt.Key_Escape and self.draw.mode is not DrawingMode.OFF:
            self.draw.cancel()
            return
        super().keyPressEvent(event)

    def closeEvent(self, event):
        for adapter in self._drag_adapters:
            adapter.release()
        self._drag_adapters = []
        self.draw.teardown()
        super().closeEvent(event)


def main():
    app = QApplication(sys.argv)
    win = MainWindow()
    win.resize(1280, 800)
    win.show()
    win.store.fetch()
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
