import unittest

from PySide6.QtTest import QTest

from tests.qt_app import dispose, ensure_app

from core.entity import Entity, EntityKind
from core.filter_engine import (
    ALL_KINDS,
    FilterState,
    SearchDebouncer,
    counts_by_kind,
    visible_entities,
)
from widgets.filter_panel import FilterPanel

ENTITIES = [
    Entity(1, "Estambul", "28.9784 41.0082", EntityKind.POINT),
    Entity(2, "Ankara - Estambul", "32.8597 39.9334, 28.9784 41.0082", EntityKind.LINE),
    Entity(3, "Parque", "28.5 40.5, 29.5 40.5, 29.5 41.5, 28.5 40.5", EntityKind.POLYGON),
    Entity(4, "ankara", "32.8597 39.9334", EntityKind.POINT),
]


class TestFilterState(unittest.TestCase):

    def test_default_shows_everything(self):
        state = FilterState()
        self.assertEqual(visible_entities(ENTITIES, state), ENTITIES)
        self.assertFalse(state.has_active_filters)

    def test_search_is_case_insensitive_substring(self):
        state = FilterState().with_search("ANK")
        self.assertEqual([e.id for e in visible_entities(ENTITIES, state)], [2, 4])

    def test_search_and_kind_combine(self):
        state = FilterState().with_search("ank").toggle_kind(EntityKind.LINE)
        self.assertEqual([e.id for e in visible_entities(ENTITIES, state)], [4])
        self.assertTrue(state.has_active_filters)

    def test_toggle_kind_twice_restores(self):
        state = FilterState().toggle_kind(EntityKind.POINT)
        self.assertNotIn(EntityKind.POINT, state.active_kinds)
        self.assertEqual(state.toggle_kind(EntityKind.POINT).active_kinds, ALL_KINDS)

    def test_hide_all_then_show_all(self):
        hidden = FilterState().hide_all()
        self.assertEqual(visible_entities(ENTITIES, hidden), [])
        self.assertEqual(visible_entities(ENTITIES, hidden.show_all()), ENTITIES)

    def test_cleared(self):
        state = FilterState().with_search("x").hide_all().cleared()
        self.assertEqual(state, FilterState())

    def test_counts_by_kind(self):
        self.assertEqual(
            counts_by_kind(ENTITIES),
            {EntityKind.POINT: 2, EntityKind.LINE: 1, EntityKind.POLYGON: 1},
        )
        self.assertEqual(counts_by_kind([]), {k: 0 for k in EntityKind})


class TestSearchDebouncer(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        cls.app = ensure_app()

    def setUp(self):
        self.debouncer = SearchDebouncer(300)
        self.committed = []
        self.debouncer.committed.connect(self.committed.append)

    def tearDown(self):
        self.debouncer.reset()
        dispose(self.debouncer)

    def test_buffer_updates_immediately_without_commit(self):
        self.debouncer.set_text("an")
        self.assertEqual(self.debouncer.text, "an")
        self.assertEqual(self.committed, [])
        self.assertTrue(self.debouncer.is_pending())

    def test_each_keystroke_restarts_the_wait(self):
        self.debouncer.set_text("an")
        QTest.qWait(150)
        self.debouncer.set_text("ank")
        QTest.qWait(200)
        self.assertEqual(self.committed, [])
        QTest.qWait(250)
        self.assertEqual(self.committed, ["ank"])

    def test_reset_does_not_commit(self):
        self.debouncer.set_text("an")
        self.debouncer.reset("")
        QTest.qWait(400)
        self.assertEqual(self.committed, [])
        self.assertEqual(self.debouncer.text, "")

    def test_flush_commits_now(self):
        self.debouncer.set_text("par")
        self.debouncer.flush()
        self.assertEqual(self.committed, ["par"])
        self.assertFalse(self.debouncer.is_pending())

    def test_default_delay(self):
        debouncer = SearchDebouncer()
        self.assertEqual(debouncer.delay_ms, 300)
        dispose(debouncer)


class TestFilterPanel(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        cls.app = ensure_app()

    def setUp(self):
        self.panel = FilterPanel(debounce_ms=300)
        self.states = []
        self.panel.filters_changed.connect(self.states.append)

    def tearDown(self):
        self.panel.debouncer.reset()
        dispose(self.panel)

    def test_typing_is_debounced(self):
        self.panel.search_edit.setText("ank")
        self.assertEqual(self.states, [])
        self.panel.debouncer.flush()
        self.assertEqual(self.states[-1].search_term, "ank")

    def test_clear_filters_is_immediate(self):
        self.panel.toggle_kind(EntityKind.LINE)
        self.panel.search_edit.setText("ank")
        self.panel.clear_filters()
        self.assertEqual(self.states[-1], FilterState())
        self.assertEqual(self.panel.search_edit.text(), "")
        self.assertFalse(self.panel.debouncer.is_pending())

    def test_kind_buttons_follow_state(self):
        self.panel.hide_all()
        self.assertFalse(any(b.isChecked() for b in self.panel.kind_buttons.values()))
        self.panel.show_all()
        self.assertTrue(all(b.isChecked() for b in self.panel.kind_buttons.values()))

    def test_update_counts(self):
        self.panel.toggle_kind(EntityKind.POINT)
        self.panel.update_counts({EntityKind.POINT: 2, EntityKind.LINE: 1, EntityKind.POLYGON: 0}, 1, 3)
        self.assertEqual(self.panel.kind_buttons[EntityKind.POINT].text(), "Puntos (2)")
        self.assertEqual(self.panel.badge.text(), "1 / 3")
        self.assertFalse(self.panel.badge.isHidden())


if __name__ == '__main__':
    unittest.main()
