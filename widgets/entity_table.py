from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QBrush, QColor
from PySide6.QtWidgets import (
    QHeaderView,
    QMenu,
    QMessageBox,
    QTableWidget,
    QTableWidgetItem,
)

from core.entity import kind_color, kind_label

GEOMETRY_PREVIEW_CHARS = 30
ID_ROLE = Qt.UserRole


def truncate_geometry(geometry: str, max_length: int = GEOMETRY_PREVIEW_CHARS) -> str:
    if len(geometry) <= max_length:
        return geometry
    return geometry[:max_length] + "..."


class EntityTable(QTableWidget):
    """Lista de entidades: tipo, nombre, geometría; menú editar/eliminar/ocultar."""

    edit_requested = Signal(object)
    delete_requested = Signal(object)
    visibility_toggled = Signal(int)
    entity_selected = Signal(object)

    def __init__(self, parent=None):
        super().__init__(0, 3, parent)
        self.setHorizontalHeaderLabels(["Tipo", "Nombre", "Coordenadas"])
        hdr = self.horizontalHeader()
        hdr.setSectionResizeMode(0, QHeaderView.ResizeToContents)
        hdr.setSectionResizeMode(1, QHeaderView.Stretch); hdr.setSectionResizeMode(2, QHeaderView.Stretch)
        self.verticalHeader().setVisible(False)
        self.setSelectionBehavior(QTableWidget.SelectRows)
        self.setSelectionMode(QTableWidget.SingleSelection)
        self.setEditTriggers(QTableWidget.NoEditTriggers)
        self.setContextMenuPolicy(Qt.CustomContextMenu)
        self.customContextMenuRequested.connect(self._show_menu)
        self.cellClicked.connect(self._on_cell_clicked)
        self.cellDoubleClicked.connect(lambda row, col: self._emit_for_row(row, self.edit_requested))
        self._entities = {}
        self._hidden = frozenset()
        self._dragging = set()

    def set_entities(self, entities, hidden_ids=frozenset(), selected_id=None):
        self._entities = {e.id: e for e in entities}
        self._hidden = frozenset(hidden_ids)
        self.setRowCount(0)
        self.setRowCount(len(entities))
        for r, entity in enumerate(entities):
            kind_item = QTableWidgetItem(kind_label(entity.kind))
            kind_item.setForeground(QBrush(QColor(kind_color(entity.kind))))
            kind_item.setData(ID_ROLE, entity.id)
            self.setItem(r, 0, kind_item)
            self.setItem(r, 1, QTableWidgetItem(entity.name))
            geom_item = QTableWidgetItem(truncate_geometry(entity.geometry))
            geom_item.setToolTip(entity.geometry)
            self.setItem(r, 2, geom_item)
            self._paint_row(r, entity.id)
            if entity.id == selected_id:
                self.selectRow(r)

    def set_dragging(self, entity_id: int, dragging: bool):
        if dragging:
            self._dragging.add(entity_id)
        else:
            self._dragging.discard(entity_id)
        row = self._row_for(entity_id)
        if row is not None:
            self._paint_row(row, entity_id)

    def _paint_row(self, row, entity_id):
        dimmed = entity_id in self._hidden or entity_id in self._dragging
        color = QColor("#9ca3af") if dimmed else QColor("#111827")
        for col in (1, 2):
            item = self.item(row, col)
            if item:
                item.setForeground(QBrush(color))

    def _row_for(self, entity_id):
        for r in range(self.rowCount()):
            item = self.item(r, 0)
            if item and item.data(ID_ROLE) == entity_id:
                return r
        return None

    def entity_at(self, row):
        item = self.item(row, 0)
        if item is None:
            return None
        return self._entities.get(item.data(ID_ROLE))

    def _emit_for_row(self, row, signal):
        entity = self.entity_at(row)
        if entity is not None:
            signal.emit(entity)

    def _on_cell_clicked(self, row, col):
        self._emit_for_row(row, self.entity_selected)

    def _show_menu(self, pos):
        row = self.rowAt(pos.y())
        entity = self.entity_at(row)
        if entity is None:
            return
        hidden = entity.id in self._hidden
        menu = QMenu(self)
        menu.addAction("Editar", lambda: self.edit_requested.emit(entity))
        menu.addAction("Mostrar en el mapa" if hidden else "Ocultar en el mapa",
                       lambda: self.visibility_toggled.emit(entity.id))
        menu.addSeparator()
        menu.addAction("Eliminar", lambda: self._confirm_delete(entity))
        menu.exec(self.viewport().mapToGlobal(pos))

    def _confirm_delete(self, entity):
        answer = QMessageBox.question(
            self, "Eliminar entidad",
            f"¿Eliminar '{entity.name}'? Esta acción no se puede deshacer.",
        )
        if answer == QMessageBox.Yes:
            self.delete_requested.emit(entity)
