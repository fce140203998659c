from datetime import timedelta
from io import StringIO
from unittest.mock import patch

from django.core.management import call_command
from django.test import TestCase
from django.utils import timezone

from bookings.models import Booking, BookingStatus, Review
from bookings.services.booking_expiry import expire_stale_bookings
from bookings.tasks import expire_stale_bookings_task
from common.clock import FixedClock
from realtime.notifier import InMemoryNotifier
from services.booking_management import BookingRepository, DriverResponseParams, driver_respond

from .helpers import make_booking, make_user


class ExpirySweepTests(TestCase):
	def setUp(self):
		InMemoryNotifier.clear()
		self.clock = FixedClock()
		self.passengers = [make_user('passenger_%d' % i, token='tok-%d' % i) for i in range(3)]

	def test_sweep_expires_only_stale_pending(self):
		stale = make_booking(self.passengers[0], now=self.clock.now() - timedelta(minutes=40))
		fresh = make_booking(self.passengers[1], now=self.clock.now())
		accepted = make_booking(
			self.passengers[2],
			status=BookingStatus.ACCEPTED,
			now=self.clock.now() - timedelta(minutes=40),
		)

		expired = expire_stale_bookings(clock=self.clock)

		self.assertEqual(expired, 1)
		stale.refresh_from_db()
		fresh.refresh_from_db()
		accepted.refresh_from_db()
		self.assertEqual(stale.status, BookingStatus.EXPIRED)
		self.assertEqual(fresh.status, BookingStatus.PENDING)
		self.assertEqual(accepted.status, BookingStatus.ACCEPTED)

		self.assertEqual(InMemoryNotifier.outbox[-1].address_token, 'tok-0')
		self.assertEqual(InMemoryNotifier.outbox[-1].data['type'], 'booking_expired')

	def test_second_sweep_is_a_no_op(self):
		make_booking(self.passengers[0], now=self.clock.now() - timedelta(minutes=40))

		self.assertEqual(expire_stale_bookings(clock=self.clock), 1)
		self.assertEqual(expire_stale_bookings(clock=self.clock), 0)

	def test_sweep_walks_every_batch(self):
		for passenger in self.passengers:
			make_booking(passenger, now=self.clock.now() - timedelta(minutes=40))

		expired = expire_stale_bookings(clock=self.clock, batch_size=2)

		self.assertEqual(expired, 3)
		self.assertFalse(Booking.objects.filter(status=BookingStatus.PENDING).exists())

	def test_sweep_losing_to_driver_accept_changes_nothing(self):
		driver = make_user('driver', role='driver', token='tok-driver')
		booking = make_booking(self.passengers[0], now=self.clock.now() - timedelta(minutes=29))
		# The sweep listed and read the booking while it was still pending
		stale_read = Booking.objects.get(pk=booking.pk)
		driver_respond(booking.id, driver, DriverResponseParams(accept=True), clock=self.clock)
		InMemoryNotifier.clear()
		self.clock.advance(minutes=5)

		with patch.object(BookingRepository, 'stale_pending_ids', return_value=[booking.id]):
			with patch.object(BookingRepository, 'get', return_value=stale_read):
				expired = expire_stale_bookings(clock=self.clock)

		self.assertEqual(expired, 0)
		booking.refresh_from_db()
		self.assertEqual(booking.status, BookingStatus.ACCEPTED)
		self.assertEqual(booking.driver, driver)
		self.assertEqual(booking.version, 1)
		self.assertEqual(InMemoryNotifier.outbox, [])

	def test_expire_bookings_command(self):
		make_booking(self.passengers[0], now=timezone.now() - timedelta(hours=1))
		out = StringIO()

		call_command('expire_bookings', stdout=out)

		self.assertIn('Expired 1 booking(s).', out.getvalue())
		self.assertEqual(Booking.objects.get().status, BookingStatus.EXPIRED)

	def test_celery_task_runs_sweep(self):
		make_booking(self.passengers[0], now=timezone.now() - timedelta(hours=1))

		self.assertEqual(expire_stale_bookings_task.apply().get(), 1)


class CleanupCommandTests(TestCase):
	def setUp(self):
		self.passenger = make_user('passenger')
		self.other = make_user('other')
		self.old = make_booking(
			self.passenger,
			status=BookingStatus.COMPLETED,
			now=timezone.now() - timedelta(days=120),
		)
		self.active = make_booking(self.other, now=timezone.now() - timedelta(days=120))

	def test_dry_run_deletes_nothing(self):
		out = StringIO()
		call_command('cleanup_old_bookings', days=90, dry_run=True, stdout=out)

		self.assertIn('DRY RUN: Would delete 1', out.getvalue())
		self.assertEqual(Booking.objects.count(), 2)

	def test_only_old_closed_bookings_are_deleted(self):
		call_command('cleanup_old_bookings', days=90, stdout=StringIO())

		self.assertFalse(Booking.objects.filter(pk=self.old.pk).exists())
		self.assertTrue(Booking.objects.filter(pk=self.active.pk).exists())

	def test_reviewed_booking_survives_cleanup(self):
		driver = make_user('driver', role='driver', rating=5.0, num_reviews=1)
		rated = make_booking(
			self.passenger,
			status=BookingStatus.COMPLETED,
			driver=driver,
			now=timezone.now() - timedelta(days=100),
			rating=5,
		)
		Review.objects.create(user=self.passenger, driver=driver, booking=rated, rating=5)

		call_command('cleanup_old_bookings', days=90, stdout=StringIO())

		self.assertTrue(Booking.objects.filter(pk=rated.pk).exists())
		self.assertEqual(Review.objects.filter(driver=driver).count(), 1)
		self.assertFalse(Booking.objects.filter(pk=self.old.pk).exists())
