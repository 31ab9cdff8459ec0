from pydantic import ValidationError
from PySide6.QtWidgets import (
    QDialog, QVBoxLayout, QFormLayout,
    QLabel, QLineEdit, QSpinBox, QDoubleSpinBox,
    QDialogButtonBox
)
from PySide6.QtCore import Qt

from config.settings import Settings


class ConfigDialog(QDialog):
    def __init__(self, settings: Settings, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Configuraciones")
        self.settings = settings
        self._build_ui()

    def _build_ui(self):
        # Layout principal
        layout = QVBoxLayout(self)

        # Formulario de ajustes
        form = QFormLayout()
        # Servidor
        self.url_edit = QLineEdit(self.settings.api_base_url)
        self.url_edit.setPlaceholderText("http://localhost:5000/api")
        form.addRow("URL del API:", self.url_edit)

        self.timeout_spin = QDoubleSpinBox()
        self.timeout_spin.setRange(0.5, 120.0); self.timeout_spin.setSuffix(" s")
        self.timeout_spin.setValue(self.settings.request_timeout)
        form.addRow("Tiempo de espera:", self.timeout_spin)

        # Precisión de decimales
        self.precision_spin = QSpinBox()
        self.precision_spin.setRange(0, 12)
        self.precision_spin.setValue(self.settings.coordinate_precision)
        form.addRow("Decimales (precisión):", self.precision_spin)

        layout.addLayout(form)

        self.error_label = QLabel(); self.error_label.setStyleSheet("color: red;"); self.error_label.hide()
        layout.addWidget(self.error_label)

        # Botones Aceptar / Cancelar
        buttons = QDialogButtonBox(
            QDialogButtonBox.Ok | QDialogButtonBox.Cancel,
            Qt.Horizontal, self
        )
        buttons.accepted.connect(self._on_accept)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)

    def get_values(self):
        """
        Devuelve un dict con los valores ingresados.
        """
        return {
            "api_base_url":         self.url_edit.text().strip(),
            "request_timeout":      self.timeout_spin.value(),
            "coordinate_precision": self.precision_spin.value(),
        }

    def apply(self) -> bool:
        """Aplica los valores a `settings`; False si alguno no es válido."""
        values = self.get_values()
        if not values["api_base_url"]:
            self._show_error("La URL del API es obligatoria.")
            return False
        try:
            for key, value in values.items():
                setattr(self.settings, key, value)
        except ValidationError as e:
            self._show_error(f"Valor inválido: {e.errors()[0].get('msg', e)}")
            return False
        return True

    def _show_error(self, message: str):
        self.error_label.setText(message)
        self.error_label.show()

    def _on_accept(self):
        if self.apply():
            self.accept()
