"""Paginated booking listings for passengers and drivers."""

from dataclasses import dataclass
from math import ceil
from typing import List, Optional, Sequence

from bookings.models import Booking, BookingStatus
from .exceptions import BookingValidationError
from .repository import BookingRepository

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


@dataclass
class BookingPage:
    bookings: List[Booking]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return ceil(self.total / self.limit) if self.total else 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    def pagination(self) -> dict:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "total_pages": self.total_pages,
            "has_next": self.has_next,
        }


def parse_status_filter(raw: Optional[str]) -> List[str]:
    """Turn ``"pending,accepted"`` into a validated list of statuses."""
    if not raw:
        return []
    statuses = [part.strip() for part in raw.split(",") if part.strip()]
    unknown = [s for s in statuses if s not in BookingStatus.values]
    if unknown:
        raise BookingValidationError(f"Unknown status: {', '.join(unknown)}", field="status")
    return statuses


def _page(queryset, page: int, limit: int) -> BookingPage:
    if page < 1:
        raise BookingValidationError("Page must be at least 1", field="page")
    if not 1 <= limit <= MAX_PAGE_SIZE:
        raise BookingValidationError(f"Limit must be between 1 and {MAX_PAGE_SIZE}", field="limit")

    total = queryset.count()
    offset = (page - 1) * limit
    return BookingPage(bookings=list(queryset[offset:offset + limit]), page=page, limit=limit, total=total)


def list_user_bookings(
    user,
    statuses: Optional[Sequence[str]] = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
    repository: Optional[BookingRepository] = None,
) -> BookingPage:
    repository = repository or BookingRepository()
    return _page(repository.for_user(user.pk, statuses), page, limit)


def list_driver_bookings(
    driver,
    statuses: Optional[Sequence[str]] = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
    repository: Optional[BookingRepository] = None,
) -> BookingPage:
    repository = repository or BookingRepository()
    return _page(repository.for_driver(driver.pk, statuses), page, limit)
