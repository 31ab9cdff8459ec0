import unittest

from core.entity import EntityKind
from core.validator import (
    GEOMETRY_FIELD,
    NAME_FIELD,
    ValidationError,
    raise_for_errors,
    validate_form,
    validate_geometry,
    validate_name,
)


def closed_ring(vertex_count):
    pts = [f"{i} {i * i}" for i in range(vertex_count)]
    return ", ".join(pts + [pts[0]])


class TestPointRules(unittest.TestCase):

    def test_accepts_single_pair(self):
        self.assertIsNone(validate_geometry("28.9784 41.0082", EntityKind.POINT))

    def test_rejects_two_pairs(self):
        self.assertIsNotNone(validate_geometry("28.9 41.0, 29.0 42.0", EntityKind.POINT))

    def test_rejects_non_numeric(self):
        self.assertIn("inválido", validate_geometry("abc def", EntityKind.POINT))

    def test_rejects_non_finite(self):
        self.assertIsNotNone(validate_geometry("nan 41.0", EntityKind.POINT))

    def test_rejects_empty(self):
        self.assertIn("obligatoria", validate_geometry("  ", EntityKind.POINT))


class TestLineRules(unittest.TestCase):

    def test_rejects_single_pair(self):
        self.assertIsNotNone(validate_geometry("28.9 41.0", EntityKind.LINE))

    def test_accepts_two_pairs(self):
        self.assertIsNone(validate_geometry("28.9784 41.0082, 32.8597 39.9334", EntityKind.LINE))

    def test_accepts_more_than_two_pairs(self):
        # el formulario admite líneas largas aunque el dibujo se corte en 2 vértices
        self.assertIsNone(validate_geometry("0 0, 1 1, 2 2, 3 3", EntityKind.LINE))


class TestPolygonRules(unittest.TestCase):

    def test_accepts_triangle(self):
        self.assertIsNone(validate_geometry("0 0, 1 0, 1 1, 0 0", EntityKind.POLYGON))

    def test_accepts_ten_vertices(self):
        self.assertIsNone(validate_geometry(closed_ring(10), EntityKind.POLYGON))

    def test_rejects_eleven_vertices(self):
        self.assertIsNotNone(validate_geometry(closed_ring(11), EntityKind.POLYGON))

    def test_rejects_too_few_pairs(self):
        self.assertIsNotNone(validate_geometry("0 0, 1 0, 0 0", EntityKind.POLYGON))

    def test_rejects_unclosed_ring(self):
        message = validate_geometry("0 0, 1 0, 1 1, 0 1", EntityKind.POLYGON)
        self.assertIn("cerrado", message)

    def test_closure_is_numeric(self):
        self.assertIsNone(validate_geometry("0 0, 1 0, 1 1, 0.0 0", EntityKind.POLYGON))


class TestForm(unittest.TestCase):

    def test_name_must_not_be_blank(self):
        self.assertIsNotNone(validate_name("   "))
        self.assertIsNone(validate_name(" Ankara "))

    def test_unknown_kind(self):
        self.assertIsNotNone(validate_geometry("1 2", 9))

    def test_form_reports_each_field(self):
        errors = validate_form("", "1 2, 3 4", EntityKind.POINT)
        self.assertEqual(set(errors), {NAME_FIELD, GEOMETRY_FIELD})

    def test_valid_form_has_no_errors(self):
        self.assertEqual(validate_form("Ankara", "32.8597 39.9334", EntityKind.POINT), {})

    def test_raise_for_errors(self):
        raise_for_errors({})
        with self.assertRaises(ValidationError) as ctx:
            raise_for_errors({NAME_FIELD: "El nombre es obligatorio"})
        self.assertEqual(ctx.exception.field, NAME_FIELD)


if __name__ == '__main__':
    unittest.main()
