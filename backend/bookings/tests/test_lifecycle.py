from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

from django.test import TestCase
from django.utils import timezone

from bookings.models import Booking, BookingStatus, CancelledBy
from common.clock import FixedClock
from realtime.notifier import InMemoryNotifier
from services.booking_management import (
	ActiveBookingExistsError,
	AlreadyTerminalError,
	BookingAuthorizationError,
	BookingExpiredError,
	BookingRepository,
	BookingValidationError,
	DriverResponseParams,
	InvalidRequestError,
	Location,
	StaleStateError,
	TooFarFromDestinationError,
	cancel_booking,
	complete_trip,
	create_booking,
	driver_respond,
	get_active_booking,
	respond_to_offer,
)

from .helpers import DESTINATION, booking_params, make_booking, make_user


class RecordingNotifier:
	"""Keeps its own record, separate from the shared in-memory outbox."""

	def __init__(self):
		self.sent = []

	def send(self, address_token, title, body, data=None):
		self.sent.append((address_token, (data or {}).get('type')))
		return True


class CreateBookingTests(TestCase):
	def setUp(self):
		InMemoryNotifier.clear()
		self.passenger = make_user('passenger', token='tok-passenger')
		self.driver_one = make_user('driver_one', role='driver', token='tok-driver-1')
		self.driver_two = make_user('driver_two', role='driver', token='tok-driver-2')
		self.silent_driver = make_user('driver_silent', role='driver')

	def test_create_booking_sets_pending_with_expiry(self):
		clock = FixedClock()
		result = create_booking(self.passenger, booking_params(), clock=clock)

		booking = Booking.objects.get(pk=result.booking.pk)
		self.assertEqual(booking.status, BookingStatus.PENDING)
		self.assertEqual(booking.expires_at, clock.now() + timedelta(minutes=30))
		self.assertEqual(booking.preferred_fare, Decimal('150.00'))
		self.assertIsNone(booking.driver)
		self.assertGreater(booking.estimated_distance, 0)

	def test_user_location_defaults_to_pickup(self):
		result = create_booking(self.passenger, booking_params())

		booking = result.booking
		self.assertEqual(booking.user_latitude_at_booking, booking.pickup_latitude)
		self.assertEqual(booking.user_longitude_at_booking, booking.pickup_longitude)

	def test_create_broadcasts_to_drivers_with_tokens(self):
		result = create_booking(self.passenger, booking_params())

		self.assertEqual(result.extra['drivers_notified'], 2)
		notified = set(result.booking.notified_drivers.values_list('id', flat=True))
		self.assertEqual(notified, {self.driver_one.id, self.driver_two.id})

		tokens = {n.address_token for n in InMemoryNotifier.outbox}
		self.assertEqual(tokens, {'tok-driver-1', 'tok-driver-2'})
		self.assertEqual(InMemoryNotifier.outbox[0].data['type'], 'new_booking')
		self.assertEqual(InMemoryNotifier.outbox[0].data['bookingId'], str(result.booking.id))

	def test_second_active_booking_is_rejected(self):
		create_booking(self.passenger, booking_params())

		with self.assertRaises(ActiveBookingExistsError):
			create_booking(self.passenger, booking_params())

		self.assertEqual(Booking.objects.filter(user=self.passenger).count(), 1)

	def test_concurrent_duplicate_hits_unique_constraint(self):
		make_booking(self.passenger)

		# Simulate the other request having passed the pre-check already
		with patch.object(BookingRepository, 'active_for_user', return_value=None):
			with self.assertRaises(ActiveBookingExistsError):
				create_booking(self.passenger, booking_params())

		self.assertEqual(Booking.objects.filter(user=self.passenger).count(), 1)

	def test_stale_pending_booking_does_not_block_new_one(self):
		clock = FixedClock()
		stale = make_booking(self.passenger, now=clock.now() - timedelta(minutes=45))

		result = create_booking(self.passenger, booking_params(), clock=clock)

		stale.refresh_from_db()
		self.assertEqual(stale.status, BookingStatus.EXPIRED)
		self.assertEqual(result.booking.status, BookingStatus.PENDING)

	def test_broadcast_failure_does_not_fail_creation(self):
		with patch('services.dispatch.broadcast_new_booking', side_effect=RuntimeError('push down')):
			result = create_booking(self.passenger, booking_params())

		self.assertTrue(result.success)
		self.assertEqual(result.extra['drivers_notified'], 0)
		self.assertTrue(Booking.objects.filter(pk=result.booking.pk).exists())

	def test_negative_fare_is_invalid(self):
		with self.assertRaises(BookingValidationError):
			booking_params(fare='-1')
		self.assertFalse(Booking.objects.exists())


class DriverRespondTests(TestCase):
	def setUp(self):
		InMemoryNotifier.clear()
		self.clock = FixedClock()
		self.passenger = make_user('passenger', token='tok-passenger')
		self.driver_one = make_user('driver_one', role='driver', token='tok-driver-1', first_name='Juan')
		self.driver_two = make_user('driver_two', role='driver', token='tok-driver-2')
		self.booking = make_booking(self.passenger, now=self.clock.now())

	def test_accept_assigns_driver_at_preferred_fare(self):
		result = driver_respond(self.booking.id, self.driver_one, DriverResponseParams(accept=True), clock=self.clock)

		self.booking.refresh_from_db()
		self.assertEqual(self.booking.status, BookingStatus.ACCEPTED)
		self.assertEqual(self.booking.driver, self.driver_one)
		self.assertEqual(self.booking.agreed_fare, Decimal('150.00'))
		self.assertEqual(self.booking.accepted_at, self.clock.now())
		self.assertEqual(result.message, 'Booking accepted')

		passenger_msgs = [n for n in InMemoryNotifier.outbox if n.address_token == 'tok-passenger']
		self.assertEqual(len(passenger_msgs), 1)
		self.assertEqual(passenger_msgs[0].data['type'], 'booking_accepted')

	def test_counter_offer_moves_to_offer_made(self):
		params = DriverResponseParams(counter_offer=Decimal('180'), message='Traffic is heavy')
		driver_respond(self.booking.id, self.driver_one, params, clock=self.clock)

		self.booking.refresh_from_db()
		self.assertEqual(self.booking.status, BookingStatus.OFFER_MADE)
		self.assertEqual(self.booking.driver, self.driver_one)
		self.assertEqual(self.booking.driver_offer_amount, Decimal('180.00'))
		self.assertEqual(self.booking.driver_offer_message, 'Traffic is heavy')
		self.assertIsNone(self.booking.agreed_fare)

		msg = InMemoryNotifier.outbox[-1]
		self.assertEqual(msg.data['type'], 'driver_offer')
		self.assertEqual(msg.title, '💰 Counter Offer Received!')

	def test_neither_accept_nor_counter_is_invalid(self):
		with self.assertRaises(InvalidRequestError):
			DriverResponseParams(accept=False)

	def test_non_positive_counter_is_invalid(self):
		with self.assertRaises(BookingValidationError):
			DriverResponseParams(counter_offer=Decimal('0'))

	def test_passenger_cannot_respond(self):
		with self.assertRaises(BookingAuthorizationError):
			driver_respond(self.booking.id, self.passenger, DriverResponseParams(accept=True), clock=self.clock)

	def test_second_driver_gets_stale_state(self):
		driver_respond(self.booking.id, self.driver_one, DriverResponseParams(accept=True), clock=self.clock)

		with self.assertRaises(StaleStateError):
			driver_respond(self.booking.id, self.driver_two, DriverResponseParams(accept=True), clock=self.clock)

		self.booking.refresh_from_db()
		self.assertEqual(self.booking.driver, self.driver_one)

	def test_losing_the_conditional_update_is_stale_state(self):
		# Driver two read the booking while it was still pending
		stale_read = Booking.objects.get(pk=self.booking.pk)
		driver_respond(self.booking.id, self.driver_one, DriverResponseParams(accept=True), clock=self.clock)
		fresh = Booking.objects.get(pk=self.booking.pk)

		with patch.object(BookingRepository, 'get', side_effect=[stale_read, fresh]):
			with self.assertRaises(StaleStateError):
				driver_respond(self.booking.id, self.driver_two, DriverResponseParams(counter_offer=200), clock=self.clock)

		self.booking.refresh_from_db()
		self.assertEqual(self.booking.status, BookingStatus.ACCEPTED)
		self.assertEqual(self.booking.driver, self.driver_one)
		self.assertIsNone(self.booking.driver_offer_amount)

	def test_compare_and_set_only_succeeds_once(self):
		repo = BookingRepository()
		first = repo.compare_and_set(self.booking.id, BookingStatus.PENDING, status=BookingStatus.ACCEPTED, driver=self.driver_one)
		second = repo.compare_and_set(self.booking.id, BookingStatus.PENDING, status=BookingStatus.ACCEPTED, driver=self.driver_two)

		self.assertTrue(first)
		self.assertFalse(second)
		self.booking.refresh_from_db()
		self.assertEqual(self.booking.version, 1)

	def test_transition_moves_updated_at_forward(self):
		earlier = timezone.now() - timedelta(hours=1)
		Booking.objects.filter(pk=self.booking.pk).update(updated_at=earlier)

		driver_respond(self.booking.id, self.driver_one, DriverResponseParams(accept=True), clock=self.clock)

		self.booking.refresh_from_db()
		self.assertEqual(self.booking.status, BookingStatus.ACCEPTED)
		self.assertGreater(self.booking.updated_at, earlier)

	def test_expiry_found_on_conflict_uses_callers_notifier(self):
		# Read before the window closed; by the time of the update it has
		stale_read = Booking.objects.get(pk=self.booking.pk)
		stale_read.expires_at = self.clock.now() + timedelta(hours=1)
		self.clock.advance(minutes=31)
		fresh = Booking.objects.get(pk=self.booking.pk)
		notifier = RecordingNotifier()

		with patch.object(BookingRepository, 'get', side_effect=[stale_read, fresh]):
			with self.assertRaises(BookingExpiredError):
				driver_respond(
					self.booking.id, self.driver_one, DriverResponseParams(accept=True),
					clock=self.clock, notifier=notifier,
				)

		self.booking.refresh_from_db()
		self.assertEqual(self.booking.status, BookingStatus.EXPIRED)
		self.assertEqual(notifier.sent, [('tok-passenger', 'booking_expired')])
		self.assertEqual(InMemoryNotifier.outbox, [])

	def test_respond_after_expiry_expires_booking(self):
		self.clock.advance(minutes=31)

		with self.assertRaises(BookingExpiredError):
			driver_respond(self.booking.id, self.driver_one, DriverResponseParams(accept=True), clock=self.clock)

		self.booking.refresh_from_db()
		self.assertEqual(self.booking.status, BookingStatus.EXPIRED)
		self.assertIsNone(self.booking.driver)

	def test_respond_to_already_expired_booking(self):
		Booking.objects.filter(pk=self.booking.pk).update(status=BookingStatus.EXPIRED)

		with self.assertRaises(BookingExpiredError):
			driver_respond(self.booking.id, self.driver_one, DriverResponseParams(accept=True), clock=self.clock)


class OfferResponseTests(TestCase):
	def setUp(self):
		InMemoryNotifier.clear()
		self.clock = FixedClock()
		self.passenger = make_user('passenger', token='tok-passenger')
		self.other = make_user('other_passenger')
		self.driver = make_user('driver', role='driver', token='tok-driver')
		self.booking = make_booking(self.passenger, now=self.clock.now())
		driver_respond(
			self.booking.id,
			self.driver,
			DriverResponseParams(counter_offer=Decimal('200')),
			clock=self.clock,
		)
		InMemoryNotifier.clear()

	def test_accepting_offer_sets_agreed_fare(self):
		respond_to_offer(self.booking.id, self.passenger, True, clock=self.clock)

		self.booking.refresh_from_db()
		self.assertEqual(self.booking.status, BookingStatus.ACCEPTED)
		self.assertEqual(self.booking.agreed_fare, Decimal('200.00'))
		self.assertEqual(self.booking.driver, self.driver)

		self.assertEqual(InMemoryNotifier.outbox[-1].address_token, 'tok-driver')
		self.assertEqual(InMemoryNotifier.outbox[-1].data['type'], 'offer_accepted')

	def test_declining_offer_reopens_booking(self):
		self.clock.advance(minutes=10)
		respond_to_offer(self.booking.id, self.passenger, False, clock=self.clock)

		self.booking.refresh_from_db()
		self.assertEqual(self.booking.status, BookingStatus.PENDING)
		self.assertIsNone(self.booking.driver)
		self.assertIsNone(self.booking.driver_offer_amount)
		self.assertIsNone(self.booking.driver_offer_at)
		self.assertEqual(self.booking.expires_at, self.clock.now() + timedelta(minutes=5))

		# The declined driver is still told, even though the booking no longer names them
		declined = InMemoryNotifier.outbox[-1]
		self.assertEqual(declined.address_token, 'tok-driver')
		self.assertEqual(declined.data['type'], 'offer_declined')

	def test_declined_booking_can_be_taken_by_another_driver(self):
		respond_to_offer(self.booking.id, self.passenger, False, clock=self.clock)
		other_driver = make_user('driver_two', role='driver')

		driver_respond(self.booking.id, other_driver, DriverResponseParams(accept=True), clock=self.clock)

		self.booking.refresh_from_db()
		self.assertEqual(self.booking.driver, other_driver)
		self.assertEqual(self.booking.agreed_fare, Decimal('150.00'))

	def test_only_owner_can_respond(self):
		with self.assertRaises(BookingAuthorizationError):
			respond_to_offer(self.booking.id, self.other, True, clock=self.clock)

	def test_responding_twice_is_stale(self):
		respond_to_offer(self.booking.id, self.passenger, True, clock=self.clock)

		with self.assertRaises(StaleStateError):
			respond_to_offer(self.booking.id, self.passenger, False, clock=self.clock)


class CompletionTests(TestCase):
	def setUp(self):
		InMemoryNotifier.clear()
		self.passenger = make_user('passenger', token='tok-passenger')
		self.driver = make_user('driver', role='driver', token='tok-driver')
		self.booking = make_booking(self.passenger, status=BookingStatus.ACCEPTED, driver=self.driver)
		self.at_destination = Location(DESTINATION[0] + 0.001, DESTINATION[1])
		self.far_away = Location(DESTINATION[0] + 0.01, DESTINATION[1])

	def test_passenger_completes_within_radius(self):
		result = complete_trip(self.booking.id, self.passenger, location=self.at_destination)

		self.booking.refresh_from_db()
		self.passenger.refresh_from_db()
		self.assertEqual(self.booking.status, BookingStatus.COMPLETED)
		self.assertTrue(self.booking.user_confirmed_completion)
		self.assertIsNotNone(self.booking.completed_at)
		self.assertEqual(self.booking.completion_latitude, self.at_destination.latitude)
		self.assertEqual(self.passenger.trip_count, 1)
		self.assertTrue(result.extra['completed'])
		self.assertEqual(InMemoryNotifier.outbox[-1].data['type'], 'trip_completed')

	def test_completion_too_far_changes_nothing(self):
		with self.assertRaises(TooFarFromDestinationError) as ctx:
			complete_trip(self.booking.id, self.passenger, location=self.far_away)

		self.assertGreater(ctx.exception.distance_meters, 1000)
		self.assertEqual(ctx.exception.as_dict()['radius_meters'], 300.0)

		self.booking.refresh_from_db()
		self.passenger.refresh_from_db()
		self.assertEqual(self.booking.status, BookingStatus.ACCEPTED)
		self.assertFalse(self.booking.user_confirmed_completion)
		self.assertEqual(self.passenger.trip_count, 0)

	def test_completion_without_location_skips_geofence(self):
		complete_trip(self.booking.id, self.passenger)

		self.booking.refresh_from_db()
		self.assertEqual(self.booking.status, BookingStatus.COMPLETED)
		self.assertIsNone(self.booking.completion_latitude)

	def test_driver_confirmation_does_not_complete(self):
		result = complete_trip(self.booking.id, self.driver, location=self.at_destination)

		self.booking.refresh_from_db()
		self.assertEqual(self.booking.status, BookingStatus.ACCEPTED)
		self.assertTrue(self.booking.driver_confirmed_completion)
		self.assertFalse(result.extra['completed'])
		self.assertEqual(InMemoryNotifier.outbox[-1].address_token, 'tok-passenger')

	def test_trip_count_increments_once(self):
		complete_trip(self.booking.id, self.passenger)

		with self.assertRaises(AlreadyTerminalError):
			complete_trip(self.booking.id, self.passenger)

		self.passenger.refresh_from_db()
		self.assertEqual(self.passenger.trip_count, 1)

	def test_pending_booking_cannot_be_completed(self):
		Booking.objects.filter(pk=self.booking.pk).update(status=BookingStatus.PENDING, driver=None)

		with self.assertRaises(StaleStateError):
			complete_trip(self.booking.id, self.passenger)

	def test_stranger_cannot_complete(self):
		stranger = make_user('stranger')

		with self.assertRaises(BookingAuthorizationError):
			complete_trip(self.booking.id, stranger)


class CancelTests(TestCase):
	def setUp(self):
		InMemoryNotifier.clear()
		self.passenger = make_user('passenger', token='tok-passenger')
		self.driver = make_user('driver', role='driver', token='tok-driver')
		self.admin = make_user('admin', role='admin')

	def test_passenger_cancels_and_driver_is_notified(self):
		booking = make_booking(self.passenger, status=BookingStatus.ACCEPTED, driver=self.driver)

		cancel_booking(booking.id, self.passenger, reason='Changed plans')

		booking.refresh_from_db()
		self.assertEqual(booking.status, BookingStatus.CANCELLED)
		self.assertEqual(booking.cancelled_by, CancelledBy.USER)
		self.assertEqual(booking.cancellation_reason, 'Changed plans')
		self.assertEqual(InMemoryNotifier.outbox[-1].address_token, 'tok-driver')

	def test_driver_cancel_notifies_passenger(self):
		booking = make_booking(self.passenger, status=BookingStatus.ACCEPTED, driver=self.driver)

		cancel_booking(booking.id, self.driver)

		booking.refresh_from_db()
		self.assertEqual(booking.cancelled_by, CancelledBy.DRIVER)
		self.assertEqual(InMemoryNotifier.outbox[-1].address_token, 'tok-passenger')

	def test_admin_cancel_is_recorded_as_system(self):
		booking = make_booking(self.passenger)

		cancel_booking(booking.id, self.admin)

		booking.refresh_from_db()
		self.assertEqual(booking.cancelled_by, CancelledBy.SYSTEM)

	def test_cancelling_terminal_booking_fails(self):
		booking = make_booking(self.passenger, status=BookingStatus.COMPLETED, driver=self.driver)

		with self.assertRaises(AlreadyTerminalError):
			cancel_booking(booking.id, self.passenger)

		booking.refresh_from_db()
		self.assertEqual(booking.status, BookingStatus.COMPLETED)

	def test_unrelated_driver_cannot_cancel(self):
		booking = make_booking(self.passenger)
		other_driver = make_user('other_driver', role='driver')

		with self.assertRaises(BookingAuthorizationError):
			cancel_booking(booking.id, other_driver)

	def test_cancel_frees_passenger_for_new_booking(self):
		booking = make_booking(self.passenger)
		cancel_booking(booking.id, self.passenger)

		result = create_booking(self.passenger, booking_params())

		self.assertEqual(result.booking.status, BookingStatus.PENDING)


class ActiveBookingTests(TestCase):
	def setUp(self):
		self.clock = FixedClock()
		self.passenger = make_user('passenger', token='tok-passenger')

	def test_returns_current_booking(self):
		booking = make_booking(self.passenger, now=self.clock.now())

		self.assertEqual(get_active_booking(self.passenger, clock=self.clock), booking)

	def test_stale_pending_booking_is_expired_lazily(self):
		booking = make_booking(self.passenger, now=self.clock.now())
		self.clock.advance(minutes=30)

		self.assertIsNone(get_active_booking(self.passenger, clock=self.clock))
		booking.refresh_from_db()
		self.assertEqual(booking.status, BookingStatus.EXPIRED)

	def test_lazy_expiry_uses_callers_notifier(self):
		InMemoryNotifier.clear()
		make_booking(self.passenger, now=self.clock.now())
		self.clock.advance(minutes=30)
		notifier = RecordingNotifier()

		self.assertIsNone(get_active_booking(self.passenger, clock=self.clock, notifier=notifier))
		self.assertEqual(notifier.sent, [('tok-passenger', 'booking_expired')])
		self.assertEqual(InMemoryNotifier.outbox, [])
