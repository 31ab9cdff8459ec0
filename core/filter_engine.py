# core/filter_engine.py
from dataclasses import dataclass, field, replace

from PySide6.QtCore import QObject, QTimer, Signal

from core.entity import EntityKind

SEARCH_DEBOUNCE_MS = 300
ALL_KINDS = frozenset(EntityKind)


@dataclass(frozen=True)
class FilterState:
    active_kinds: frozenset = field(default=ALL_KINDS)
    search_term: str = ""

    @property
    def has_active_filters(self) -> bool:
        return bool(self.search_term) or len(self.active_kinds) < len(ALL_KINDS)

    def toggle_kind(self, kind) -> "FilterState":
        kind = EntityKind(kind)
        return replace(self, active_kinds=self.active_kinds ^ {kind})

    def show_all(self) -> "FilterState":
        return replace(self, active_kinds=ALL_KINDS)

    def hide_all(self) -> "FilterState":
        return replace(self, active_kinds=frozenset())

    def with_search(self, term: str) -> "FilterState":
        return replace(self, search_term=term)

    def cleared(self) -> "FilterState":
        return FilterState()


def matches(entity, state: FilterState) -> bool:
    if entity.kind not in state.active_kinds:
        return False
    if not state.search_term:
        return True
    return state.search_term.casefold() in entity.name.casefold()


def visible_entities(entities, state: FilterState) -> list:
    """Subconjunto visible, conservando el orden de `entities`."""
    return [e for e in entities if matches(e, state)]


def counts_by_kind(entities) -> dict:
    counts = {kind: 0 for kind in EntityKind}
    for e in entities:
        if e.kind in counts:
            counts[e.kind] += 1
    return counts


class SearchDebouncer(QObject):
    """
    Guarda lo que se teclea en `text` al instante y emite `committed`
    sólo tras `delay_ms` sin actividad; cada tecla reinicia el temporizador.
    """

    committed = Signal(str)

    def __init__(self, delay_ms: int = SEARCH_DEBOUNCE_MS, parent=None):
        super().__init__(parent)
        self.text = ""
        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setInterval(delay_ms)
        self._timer.timeout.connect(self._commit)

    @property
    def delay_ms(self) -> int:
        return self._timer.interval()

    def set_delay(self, delay_ms: int):
        self._timer.setInterval(delay_ms)

    def is_pending(self) -> bool:
        return self._timer.isActive()

    def set_text(self, text: str):
        self.text = text
        self._timer.start()

    def reset(self, text: str = ""):
        """Fija el buffer sin esperar y sin emitir (p.ej. al limpiar filtros)."""
        self._timer.stop()
        self.text = text

    def flush(self):
        if self._timer.isActive():
            self._timer.stop()
            self._commit()

    def _commit(self):
        self.committed.emit(self.text)
