from PySide6.QtCore import Signal
from PySide6.QtWidgets import (
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from core.entity import EntityKind, kind_color
from core.filter_engine import FilterState, SearchDebouncer, SEARCH_DEBOUNCE_MS

TYPE_LABELS = {
    EntityKind.POINT: "Puntos",
    EntityKind.LINE: "Líneas",
    EntityKind.POLYGON: "Áreas",
}


class FilterPanel(QWidget):
    """
    Búsqueda por nombre (con espera de inactividad) y filtro por tipo.
    Emite `filters_changed(FilterState)` cada vez que cambia el estado.
    """

    filters_changed = Signal(object)

    def __init__(self, debounce_ms: int = SEARCH_DEBOUNCE_MS, parent=None):
        super().__init__(parent)
        self.state = FilterState()
        self.debouncer = SearchDebouncer(debounce_ms, self)
        self.debouncer.committed.connect(self._on_search_committed)
        self._build_ui()
        self.update_counts({k: 0 for k in EntityKind}, 0, 0)

    def _build_ui(self):
        layout = QVBoxLayout(self)

        header = QHBoxLayout()
        header.addWidget(QLabel("<b>Filtros</b>"))
        self.badge = QLabel(); self.badge.hide()
        header.addWidget(self.badge)
        header.addStretch()
        layout.addLayout(header)

        self.search_edit = QLineEdit()
        self.search_edit.setPlaceholderText("Nombre de la entidad...")
        self.search_edit.setClearButtonEnabled(True)
        self.search_edit.textChanged.connect(self.debouncer.set_text)
        layout.addWidget(self.search_edit)

        kinds = QHBoxLayout()
        self.kind_buttons = {}
        for kind in EntityKind:
            btn = QPushButton(TYPE_LABELS[kind])
            btn.setCheckable(True); btn.setChecked(True)
            btn.setStyleSheet(f"QPushButton:checked {{ background-color: {kind_color(kind)}; color: white; }}")
            btn.clicked.connect(lambda checked=False, k=kind: self.toggle_kind(k))
            kinds.addWidget(btn)
            self.kind_buttons[kind] = btn
        layout.addLayout(kinds)

        actions = QHBoxLayout()
        btn_all = QPushButton("Mostrar todo"); btn_all.clicked.connect(self.show_all)
        btn_none = QPushButton("Ocultar todo"); btn_none.clicked.connect(self.hide_all)
        actions.addWidget(btn_all); actions.addWidget(btn_none)
        layout.addLayout(actions)

        self.clear_button = QPushButton("Limpiar filtros")
        self.clear_button.clicked.connect(self.clear_filters)
        self.clear_button.hide()
        layout.addWidget(self.clear_button)

    # --- Acciones ---
    def toggle_kind(self, kind):
        self._apply(self.state.toggle_kind(kind))

    def show_all(self):
        self._apply(self.state.show_all())

    def hide_all(self):
        self._apply(self.state.hide_all())

    def clear_filters(self):
        self.debouncer.reset("")
        self.search_edit.blockSignals(True)
        self.search_edit.clear()
        self.search_edit.blockSignals(False)
        self._apply(self.state.cleared())

    def _on_search_committed(self, term: str):
        self._apply(self.state.with_search(term))

    def _apply(self, state: FilterState):
        self.state = state
        for kind, btn in self.kind_buttons.items():
            btn.setChecked(kind in state.active_kinds)
        self.clear_button.setVisible(state.has_active_filters)
        self.filters_changed.emit(state)

    def update_counts(self, counts: dict, visible: int, total: int):
        for kind, btn in self.kind_buttons.items():
            btn.setText(f"{TYPE_LABELS[kind]} ({counts.get(kind, 0)})")
        self.badge.setText(f"{visible} / {total}")
        self.badge.setVisible(self.state.has_active_filters)
