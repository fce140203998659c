from django.test import SimpleTestCase

from common.clock import FixedClock
from common.utils import bounding_box, calculate_distance, longitude_ranges


class GeoTests(SimpleTestCase):
	def test_same_point_is_zero(self):
		self.assertEqual(calculate_distance(14.5995, 120.9842, 14.5995, 120.9842), 0)

	def test_one_hundredth_degree_of_latitude(self):
		distance = calculate_distance(14.5995, 120.9842, 14.6095, 120.9842)

		self.assertAlmostEqual(distance, 1112, delta=2)

	def test_distance_is_symmetric(self):
		a = calculate_distance(14.55, 121.02, 14.65, 121.05)
		b = calculate_distance(14.65, 121.05, 14.55, 121.02)

		self.assertAlmostEqual(a, b)

	def test_bounding_box_contains_radius(self):
		min_lat, max_lat, min_lon, max_lon = bounding_box(14.5995, 120.9842, 5)

		self.assertLess(min_lat, 14.5995)
		self.assertGreater(max_lat, 14.5995)
		# The box edge is about radius away from the center
		self.assertAlmostEqual(calculate_distance(14.5995, 120.9842, max_lat, 120.9842), 5000, delta=5)
		self.assertAlmostEqual(calculate_distance(14.5995, 120.9842, 14.5995, max_lon), 5000, delta=5)

	def test_longitude_ranges_inside_the_map(self):
		self.assertEqual(longitude_ranges(120.9, 121.1), [(120.9, 121.1)])

	def test_longitude_ranges_split_at_the_antimeridian(self):
		(east_low, east_high), (west_low, west_high) = longitude_ranges(179.9, 180.1)

		self.assertEqual((east_low, east_high), (179.9, 180.0))
		self.assertEqual(west_low, -180.0)
		self.assertAlmostEqual(west_high, -179.9)

		(east_low, east_high), (west_low, west_high) = longitude_ranges(-180.1, -179.9)
		self.assertAlmostEqual(east_low, 179.9)
		self.assertEqual((east_high, west_low, west_high), (180.0, -180.0, -179.9))

	def test_longitude_ranges_cover_everything_near_the_pole(self):
		self.assertEqual(longitude_ranges(-300.0, 300.0), [(-180.0, 180.0)])


class ClockTests(SimpleTestCase):
	def test_fixed_clock_advances(self):
		clock = FixedClock()
		start = clock.now()

		clock.advance(minutes=5)

		self.assertEqual((clock.now() - start).total_seconds(), 300)
