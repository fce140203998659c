"""Common utility functions."""

from .geo import EARTH_RADIUS_METERS, bounding_box, calculate_distance, longitude_ranges

__all__ = [
    "EARTH_RADIUS_METERS",
    "bounding_box",
    "calculate_distance",
    "longitude_ranges",
]
