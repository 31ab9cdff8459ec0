from PySide6.QtWidgets import (
    QDialog, QVBoxLayout, QFormLayout,
    QLabel, QLineEdit, QComboBox, QPlainTextEdit,
    QDialogButtonBox
)
from PySide6.QtCore import Qt

from core.entity import EntityKind, kind_label
from core.geometry_codec import format_point
from core.validator import validate_form, NAME_FIELD, GEOMETRY_FIELD

PLACEHOLDERS = {
    EntityKind.POINT: "28.9784 41.0082",
    EntityKind.LINE: "28.9784 41.0082, 32.8597 39.9334",
    EntityKind.POLYGON: "28.5 40.5, 29.5 40.5, 29.5 41.5, 28.5 41.5, 28.5 40.5",
}

ERROR_STYLE = "color: #dc2626;"


class EntityDialog(QDialog):
    """
    Formulario de alta/edición. `on_save(request, done)` recibe un dict
    {id?, name, geometry, kind} y debe llamar a done(ok); el diálogo se
    cierra sólo si ok es True.
    """

    def __init__(self, on_save, entity=None, initial_coordinates=None, new_shape=None, parent=None):
        super().__init__(parent)
        self._on_save = on_save
        self.entity = entity
        self.setWindowTitle("Editar entidad" if entity else "Nueva entidad")
        self._build_ui()
        self._load(entity, initial_coordinates, new_shape)

    @property
    def is_editing(self) -> bool:
        return self.entity is not None

    def _build_ui(self):
        layout = QVBoxLayout(self)
        form = QFormLayout()

        self.name_edit = QLineEdit()
        form.addRow("Nombre:", self.name_edit)
        self.name_error = QLabel(); self.name_error.setStyleSheet(ERROR_STYLE); self.name_error.hide()
        form.addRow("", self.name_error)

        self.kind_combo = QComboBox()
        for kind in EntityKind:
            self.kind_combo.addItem(kind_label(kind), kind)
        self.kind_combo.currentIndexChanged.connect(self._on_kind_changed)
        form.addRow("Tipo:", self.kind_combo)

        self.geometry_edit = QPlainTextEdit()
        self.geometry_edit.setFixedHeight(80)
        form.addRow("Coordenadas (lng lat):", self.geometry_edit)
        self.geometry_error = QLabel(); self.geometry_error.setStyleSheet(ERROR_STYLE)
        self.geometry_error.setWordWrap(True); self.geometry_error.hide()
        form.addRow("", self.geometry_error)

        layout.addLayout(form)

        self.buttons = QDialogButtonBox(
            QDialogButtonBox.Save | QDialogButtonBox.Cancel,
            Qt.Horizontal, self
        )
        self.buttons.accepted.connect(self._on_accept)
        self.buttons.rejected.connect(self.reject)
        layout.addWidget(self.buttons)

    def _load(self, entity, initial_coordinates, new_shape):
        if entity is not None:
            name, kind, geometry = entity.name, entity.kind, entity.geometry
        elif new_shape is not None:
            name, (kind, geometry) = "", new_shape
        elif initial_coordinates is not None:
            lat, lng = initial_coordinates
            name, kind, geometry = "", EntityKind.POINT, format_point(lat, lng)
        else:
            name, kind, geometry = "", EntityKind.POINT, ""

        self.name_edit.setText(name)
        self.kind_combo.setCurrentIndex(self.kind_combo.findData(EntityKind(kind)))
        self.geometry_edit.setPlainText(geometry)
        self._on_kind_changed()
        self.show_errors({})

    def _on_kind_changed(self, *args):
        self.geometry_edit.setPlaceholderText(PLACEHOLDERS.get(self.current_kind(), ""))

    def current_kind(self) -> EntityKind:
        return EntityKind(self.kind_combo.currentData())

    def request(self) -> dict:
        req = {
            "name": self.name_edit.text().strip(),
            "geometry": self.geometry_edit.toPlainText().strip(),
            "kind": self.current_kind(),
        }
        if self.is_editing:
            req["id"] = self.entity.id
        return req

    def validate(self) -> bool:
        errors = validate_form(
            self.name_edit.text(), self.geometry_edit.toPlainText(), self.current_kind()
        )
        self.show_errors(errors)
        return not errors

    def show_errors(self, errors: dict):
        for field, label in ((NAME_FIELD, self.name_error), (GEOMETRY_FIELD, self.geometry_error)):
            message = errors.get(field)
            label.setText(message or "")
            label.setVisible(bool(message))

    def _on_accept(self):
        if not self.validate():
            return
        self.buttons.setEnabled(False)
        self._on_save(self.request(), self._on_saved)

    def _on_saved(self, ok: bool):
        self.buttons.setEnabled(True)
        if ok:
            self.accept()
