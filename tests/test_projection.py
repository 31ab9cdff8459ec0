import unittest

from core.projection import MAX_LATITUDE, MapProjection, ProjectionError


class TestMapProjection(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        cls.projection = MapProjection()

    def test_origin(self):
        x, y = self.projection.to_scene(0.0, 0.0)
        self.assertAlmostEqual(x, 0.0, places=6)
        self.assertAlmostEqual(y, 0.0, places=6)

    def test_north_is_up(self):
        _, y = self.projection.to_scene(41.0, 29.0)
        self.assertLess(y, 0)

    def test_east_is_right(self):
        x, _ = self.projection.to_scene(0.0, 29.0)
        self.assertGreater(x, 0)

    def test_round_trip(self):
        x, y = self.projection.to_scene(41.0082, 28.9784)
        lat, lng = self.projection.to_lat_lng(x, y)
        self.assertAlmostEqual(lat, 41.0082, places=7)
        self.assertAlmostEqual(lng, 28.9784, places=7)

    def test_poles_are_clamped(self):
        _, y_pole = self.projection.to_scene(90.0, 0.0)
        _, y_limit = self.projection.to_scene(MAX_LATITUDE, 0.0)
        self.assertAlmostEqual(y_pole, y_limit, places=6)

    def test_unknown_crs(self):
        with self.assertRaises(ProjectionError):
            MapProjection(crs_to="EPSG:999999")


if __name__ == '__main__':
    unittest.main()
