"""
Typed inputs for booking operations.

Each record validates its own fields on construction and raises
BookingValidationError, so nothing reaches the state machine half-formed.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from .exceptions import BookingValidationError, InvalidRequestError


def _to_decimal(value: Any, field: str) -> Decimal:
    if isinstance(value, bool):
        raise BookingValidationError(f"{field} must be a number", field=field)
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise BookingValidationError(f"{field} must be a number", field=field)
    if not amount.is_finite():
        raise BookingValidationError(f"{field} must be a number", field=field)
    return amount


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float
    address: str = ""

    def __post_init__(self):
        try:
            lat = float(self.latitude)
            lon = float(self.longitude)
        except (TypeError, ValueError):
            raise BookingValidationError("Latitude and longitude must be numbers")
        if not -90 <= lat <= 90:
            raise BookingValidationError("Latitude must be between -90 and 90", field="latitude")
        if not -180 <= lon <= 180:
            raise BookingValidationError("Longitude must be between -180 and 180", field="longitude")
        object.__setattr__(self, "latitude", lat)
        object.__setattr__(self, "longitude", lon)
        object.__setattr__(self, "address", self.address or "")

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> Optional["Location"]:
        if data is None:
            return None
        if not isinstance(data, dict) or "latitude" not in data or "longitude" not in data:
            raise BookingValidationError("Location requires latitude and longitude")
        return cls(
            latitude=data["latitude"],
            longitude=data["longitude"],
            address=data.get("address") or "",
        )


@dataclass(frozen=True)
class CreateBookingParams:
    pickup: Location
    destination: Location
    preferred_fare: Decimal
    user_location: Optional[Location] = None

    def __post_init__(self):
        if self.pickup is None or self.destination is None:
            raise BookingValidationError("Pickup, destination, and preferred fare are required")
        if self.preferred_fare is None:
            raise BookingValidationError("Pickup, destination, and preferred fare are required")
        fare = _to_decimal(self.preferred_fare, "preferred_fare")
        if fare < 0:
            raise BookingValidationError("Fare cannot be negative", field="preferred_fare")
        object.__setattr__(self, "preferred_fare", fare)


@dataclass(frozen=True)
class DriverResponseParams:
    accept: bool = False
    counter_offer: Optional[Decimal] = None
    message: str = ""

    def __post_init__(self):
        if self.counter_offer is not None:
            amount = _to_decimal(self.counter_offer, "counter_offer")
            if amount <= 0:
                raise BookingValidationError("Counter offer must be greater than zero", field="counter_offer")
            object.__setattr__(self, "counter_offer", amount)
        elif not self.accept:
            raise InvalidRequestError()
        object.__setattr__(self, "message", self.message or "")

    @property
    def is_counter_offer(self) -> bool:
        return self.counter_offer is not None


@dataclass(frozen=True)
class RatingParams:
    rating: int
    comment: str = ""
    driver_id: Optional[int] = None

    def __post_init__(self):
        value = self.rating
        if isinstance(value, bool) or value is None:
            raise BookingValidationError("Rating must be between 1 and 5", field="rating")
        try:
            as_number = Decimal(str(value))
        except (InvalidOperation, TypeError, ValueError):
            raise BookingValidationError("Rating must be between 1 and 5", field="rating")
        if as_number != as_number.to_integral_value() or not 1 <= as_number <= 5:
            raise BookingValidationError("Rating must be between 1 and 5", field="rating")
        object.__setattr__(self, "rating", int(as_number))
        object.__setattr__(self, "comment", self.comment or "")
