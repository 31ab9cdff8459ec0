import unittest

from loguru import logger

from core.entity import EntityKind
from core.geometry_codec import (
    GeometryParseError,
    close_ring,
    decode,
    encode,
    format_number,
    format_point,
    parse_pairs,
)


class TestEncode(unittest.TestCase):

    def test_single_point_swaps_to_lng_first(self):
        self.assertEqual(encode([(41.0, 29.0)]), "29 41")

    def test_line_uses_comma_space_between_pairs(self):
        self.assertEqual(encode([(40.5, 28.5), (40.5, 29.5)]), "28.5 40.5, 29.5 40.5")

    def test_polygon_ring_is_closed(self):
        text = encode([(0.0, 0.0), (0.0, 1.0), (1.0, 1.0)], EntityKind.POLYGON)
        self.assertEqual(text, "0 0, 1 0, 1 1, 0 0")

    def test_closed_polygon_is_not_closed_twice(self):
        ring = [(0.0, 0.0), (0.0, 1.0), (1.0, 1.0), (0.0, 0.0)]
        self.assertEqual(encode(ring, EntityKind.POLYGON), "0 0, 1 0, 1 1, 0 0")

    def test_line_is_never_closed(self):
        self.assertEqual(encode([(0.0, 0.0), (1.0, 1.0)], EntityKind.LINE), "0 0, 1 1")

    def test_format_point(self):
        self.assertEqual(format_point(41.0082, 28.9784), "28.9784 41.0082")

    def test_format_number(self):
        self.assertEqual(format_number(29.0), "29")
        self.assertEqual(format_number(-0.0), "0")
        self.assertEqual(format_number(1.5), "1.5")
        self.assertEqual(format_number(-12.25), "-12.25")
        self.assertEqual(format_number(0.1 + 0.2), repr(0.1 + 0.2))


class TestDecode(unittest.TestCase):

    def setUp(self):
        self.warnings = []
        self._sink = logger.add(self.warnings.append, level="WARNING")

    def tearDown(self):
        logger.remove(self._sink)

    def test_decode_returns_lat_lng_pairs(self):
        self.assertEqual(
            decode("28.5 40.5, 29.5 40.5", EntityKind.LINE),
            [(40.5, 28.5), (40.5, 29.5)],
        )

    def test_decode_tolerates_extra_whitespace(self):
        self.assertEqual(decode("  28.5   40.5 ,29.5 40.5 "), [(40.5, 28.5), (40.5, 29.5)])

    def test_round_trip(self):
        coords = [(41.0082, 28.9784), (39.9334, 32.8597), (-33.8688, 151.2093)]
        self.assertEqual(decode(encode(coords), EntityKind.LINE), coords)

    def test_polygon_round_trip_keeps_closure(self):
        ring = [(40.5, 28.5), (40.5, 29.5), (41.5, 29.5)]
        decoded = decode(encode(ring, EntityKind.POLYGON), EntityKind.POLYGON)
        self.assertEqual(decoded[0], decoded[-1])
        self.assertEqual(decoded[:-1], ring)

    def test_malformed_text_yields_empty_and_logs(self):
        self.assertEqual(decode("abc def", EntityKind.POINT), [])
        self.assertEqual(len(self.warnings), 1)

    def test_pair_with_three_numbers_is_rejected(self):
        self.assertEqual(decode("1 2 3"), [])

    def test_pair_with_one_number_is_rejected(self):
        self.assertEqual(decode("1 2, 3"), [])

    def test_non_finite_is_rejected(self):
        self.assertEqual(decode("nan 1"), [])
        self.assertEqual(decode("1 inf"), [])

    def test_blank_text_is_empty_without_warning(self):
        self.assertEqual(decode(""), [])
        self.assertEqual(decode("   "), [])
        self.assertEqual(decode(None), [])
        self.assertEqual(self.warnings, [])


class TestHelpers(unittest.TestCase):

    def test_parse_pairs_keeps_canonical_order(self):
        self.assertEqual(parse_pairs("28.9784 41.0082"), [(28.9784, 41.0082)])

    def test_parse_pairs_raises(self):
        with self.assertRaises(GeometryParseError):
            parse_pairs("28.9784")
        with self.assertRaises(GeometryParseError):
            parse_pairs("")

    def test_close_ring(self):
        self.assertEqual(close_ring([(0, 0), (1, 0), (1, 1)]), [(0, 0), (1, 0), (1, 1), (0, 0)])
        self.assertEqual(close_ring([]), [])


if __name__ == '__main__':
    unittest.main()
