from rest_framework import status
from rest_framework.test import APITestCase
from rest_framework_simplejwt.tokens import AccessToken

from common.testing import make_tenant, make_worker


class TenantLoginTests(APITestCase):
    def setUp(self):
        self.tenant_a = make_tenant("acme-co")
        self.tenant_b = make_tenant("globex")
        self.worker_a = make_worker(self.tenant_a, "alice", rfid="RF-1")
        # same username in another tenant is a different worker
        self.worker_b = make_worker(self.tenant_b, "alice", rfid="RF-1")

    def _login(self, username, subdomain, password="pwd12345"):
        payload = {'username': username, 'password': password, 'subdomain': subdomain}
        return self.client.post('/api/auth/token/', payload, format='json')

    def test_worker_login_carries_role_and_tenant_claims(self):
        response = self._login('alice', 'globex')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['role'], 'worker')
        token = AccessToken(response.data['access'])
        self.assertEqual(token['role'], 'worker')
        self.assertEqual(token['tenant'], 'globex')
        self.assertEqual(str(token['user_id']), str(self.worker_b.user_id))

    def test_admin_login(self):
        response = self._login('admin', 'acme-co')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['role'], 'admin')

    def test_login_with_wrong_subdomain_fails(self):
        response = self._login('alice', 'initech')

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_login_with_reserved_subdomain_fails(self):
        response = self._login('alice', 'main')

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['message'], 'Subdomain is missing, check')

    def test_bearer_token_resolves_actor(self):
        access = self._login('alice', 'acme-co').data['access']
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {access}')

        response = self.client.get('/api/auth/me/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['role'], 'worker')
        self.assertEqual(response.data['tenant_code'], 'acme-co')
        self.assertEqual(response.data['worker_id'], self.worker_a.pk)

    def test_missing_token_is_rejected(self):
        response = self.client.get('/api/auth/me/')

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
