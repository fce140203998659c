"""
Ratings service.

This module handles:
    - One rating per completed booking
    - Driver rating aggregates
"""

from .rating_ledger import rate_booking

__all__ = ["rate_booking"]
