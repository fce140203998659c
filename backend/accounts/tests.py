from django.test import TestCase
from rest_framework.test import APIRequestFactory, force_authenticate

from .identity import lookup_identity
from .models import User
from .views import LoginView, NotificationAddressView, RefreshTokenView, RegisterView


class AuthFlowTests(TestCase):
	def setUp(self):
		self.factory = APIRequestFactory()

	def test_register_returns_tokens(self):
		request = self.factory.post('/api/auth/register/', {
			'username': 'juan',
			'password': 'S3cure-pass!',
			'role': 'driver',
			'fcm_token': 'device-1',
		}, format='json')
		response = RegisterView.as_view()(request)

		self.assertEqual(response.status_code, 201)
		self.assertIn('access', response.data['tokens'])
		user = User.objects.get(username='juan')
		self.assertEqual(user.role, 'driver')
		self.assertEqual(user.fcm_token, 'device-1')

	def test_register_rejects_admin_role(self):
		request = self.factory.post('/api/auth/register/', {
			'username': 'sneaky',
			'password': 'S3cure-pass!',
			'role': 'admin',
		}, format='json')
		response = RegisterView.as_view()(request)

		self.assertEqual(response.status_code, 400)

	def test_login_and_refresh(self):
		User.objects.create_user(username='maria', password='S3cure-pass!')

		request = self.factory.post('/api/auth/login/', {'username': 'maria', 'password': 'S3cure-pass!'}, format='json')
		response = LoginView.as_view()(request)
		self.assertEqual(response.status_code, 200)

		refresh = response.data['tokens']['refresh']
		request = self.factory.post('/api/auth/refresh/', {'refresh': refresh}, format='json')
		response = RefreshTokenView.as_view()(request)
		self.assertEqual(response.status_code, 200)
		self.assertIn('access', response.data)

	def test_bad_refresh_token(self):
		request = self.factory.post('/api/auth/refresh/', {'refresh': 'garbage'}, format='json')
		response = RefreshTokenView.as_view()(request)

		self.assertEqual(response.status_code, 401)

	def test_wrong_password(self):
		User.objects.create_user(username='maria', password='S3cure-pass!')

		request = self.factory.post('/api/auth/login/', {'username': 'maria', 'password': 'nope'}, format='json')
		response = LoginView.as_view()(request)

		self.assertEqual(response.status_code, 400)


class NotificationAddressTests(TestCase):
	def setUp(self):
		self.factory = APIRequestFactory()
		self.user = User.objects.create_user(username='pedro', password='pass1234', role='driver')

	def _put(self, token):
		request = self.factory.put('/api/auth/notification-address/', {'fcm_token': token}, format='json')
		force_authenticate(request, user=self.user)
		return NotificationAddressView.as_view()(request)

	def test_set_and_clear_token(self):
		response = self._put('device-xyz')
		self.assertTrue(response.data['registered'])
		self.assertEqual(lookup_identity(self.user.id).notification_address, 'device-xyz')

		response = self._put('')
		self.assertFalse(response.data['registered'])
		self.assertIsNone(lookup_identity(self.user.id).notification_address)

	def test_unknown_user_has_no_identity(self):
		self.assertIsNone(lookup_identity(self.user.id + 1000))
