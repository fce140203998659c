from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.utils import timezone

from bookings.models import Booking, BookingStatus
from services.booking_management import CreateBookingParams, Location

User = get_user_model()

# Manila: Rizal Park -> Intramuros
PICKUP = (14.5826, 120.9787)
DESTINATION = (14.5896, 120.9747)


def make_user(username, role='passenger', token=None, **extra):
	return User.objects.create_user(
		username=username,
		password='pass1234',
		role=role,
		fcm_token=token,
		**extra
	)


def booking_params(fare='150.00', user_location=None):
	return CreateBookingParams(
		pickup=Location(*PICKUP, address='Rizal Park'),
		destination=Location(*DESTINATION, address='Intramuros'),
		preferred_fare=Decimal(fare),
		user_location=user_location,
	)


def make_booking(user, status=BookingStatus.PENDING, driver=None, now=None, **extra):
	"""Insert a booking row directly, bypassing the broadcast."""
	now = now or timezone.now()
	fields = dict(
		user=user,
		driver=driver,
		pickup_latitude=PICKUP[0],
		pickup_longitude=PICKUP[1],
		pickup_address='Rizal Park',
		destination_latitude=DESTINATION[0],
		destination_longitude=DESTINATION[1],
		destination_address='Intramuros',
		user_latitude_at_booking=PICKUP[0],
		user_longitude_at_booking=PICKUP[1],
		preferred_fare=Decimal('150.00'),
		status=status,
		created_at=now,
		expires_at=now + timedelta(minutes=30),
	)
	fields.update(extra)
	return Booking.objects.create(**fields)
