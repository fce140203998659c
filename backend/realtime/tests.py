from asgiref.sync import async_to_sync, sync_to_async
from channels.testing import WebsocketCommunicator
from django.contrib.auth.models import AnonymousUser
from django.test import SimpleTestCase

from accounts.models import User
from .consumers import NotificationConsumer
from .notifier import ChannelLayerNotifier, InMemoryNotifier, push_group_name


def _communicator(user):
	communicator = WebsocketCommunicator(NotificationConsumer.as_asgi(), '/ws/notifications/')
	communicator.scope['user'] = user
	return communicator


class NotificationConsumerTests(SimpleTestCase):
	def setUp(self):
		self.driver = User(id=7, username='pedro', role='driver', fcm_token='device-7')

	def test_push_group_is_stable_per_token(self):
		self.assertEqual(push_group_name('device-7'), push_group_name('device-7'))
		self.assertNotEqual(push_group_name('device-7'), push_group_name('device-8'))
		self.assertTrue(push_group_name('device-7').startswith('push_'))

	def test_anonymous_connection_is_rejected(self):
		async def run():
			connected, _ = await _communicator(AnonymousUser()).connect()
			return connected

		self.assertFalse(async_to_sync(run)())

	def test_user_without_token_is_rejected(self):
		async def run():
			connected, code = await _communicator(User(id=8, username='ana', role='passenger')).connect()
			return connected, code

		self.assertEqual(async_to_sync(run)(), (False, 4003))

	def test_notifier_push_reaches_socket(self):
		async def run():
			communicator = _communicator(self.driver)
			connected, _ = await communicator.connect()
			self.assertTrue(connected)
			greeting = await communicator.receive_json_from()

			sent = await sync_to_async(ChannelLayerNotifier().send)(
				'device-7', 'New booking', 'Fare 250', {'booking_id': 12, 'type': 'new_booking'},
			)
			pushed = await communicator.receive_json_from()
			await communicator.disconnect()
			return greeting, sent, pushed

		greeting, sent, pushed = async_to_sync(run)()

		self.assertEqual(greeting['type'], 'connection_established')
		self.assertTrue(sent)
		self.assertEqual(pushed, {
			'type': 'notification',
			'title': 'New booking',
			'body': 'Fare 250',
			'data': {'booking_id': '12', 'type': 'new_booking'},
		})

	def test_ping_pong(self):
		async def run():
			communicator = _communicator(self.driver)
			await communicator.connect()
			await communicator.receive_json_from()
			await communicator.send_json_to({'type': 'ping'})
			reply = await communicator.receive_json_from()
			await communicator.disconnect()
			return reply

		self.assertEqual(async_to_sync(run)(), {'type': 'pong'})


class InMemoryNotifierTests(SimpleTestCase):
	def setUp(self):
		InMemoryNotifier.clear()

	def test_instances_share_one_outbox(self):
		InMemoryNotifier().send('device-1', 'First', 'one')
		InMemoryNotifier().send('device-2', 'Second', 'two', {'booking_id': 3})

		self.assertEqual([sent.title for sent in InMemoryNotifier.outbox], ['First', 'Second'])
		self.assertEqual(InMemoryNotifier.outbox[1].data, {'booking_id': '3'})

	def test_missing_address_is_not_recorded(self):
		self.assertFalse(InMemoryNotifier().send(None, 'Nobody', 'home'))
		self.assertEqual(InMemoryNotifier.outbox, [])
