from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings
from rest_framework import status
from rest_framework.test import APITestCase

from common.exceptions import InvalidTenant
from common.testing import make_tenant
from tenants.models import Tenant
from tenants.services import is_valid_subdomain, resolve_tenant


class TenantDirectoryTests(TestCase):
    def setUp(self):
        self.tenant = make_tenant("acme-co")

    def test_resolves_known_tenant(self):
        self.assertEqual(resolve_tenant(" acme-co "), self.tenant)

    def test_rejects_reserved_placeholder(self):
        with self.assertRaises(InvalidTenant):
            resolve_tenant("main")

    def test_rejects_empty_and_unknown_codes(self):
        for code in ("", None, "   ", "unknown-co"):
            with self.assertRaises(InvalidTenant):
                resolve_tenant(code)

    @override_settings(WORKFORCE_RESERVED_TENANT="default")
    def test_reserved_placeholder_is_configurable(self):
        Tenant.objects.create(name="Default", code="default")
        with self.assertRaises(InvalidTenant):
            resolve_tenant("default")

    def test_subdomain_rules(self):
        self.assertTrue(is_valid_subdomain("acme-co"))
        self.assertTrue(is_valid_subdomain("Globex42"))
        self.assertFalse(is_valid_subdomain("abc"))
        self.assertFalse(is_valid_subdomain("-acme"))
        self.assertFalse(is_valid_subdomain("acme-"))
        self.assertFalse(is_valid_subdomain("acme_co"))


class TenantApiTests(APITestCase):
    def setUp(self):
        self.tenant_a = make_tenant("acme-co")
        self.tenant_b = make_tenant("globex")

    def test_availability_reports_taken_and_free_codes(self):
        response = self.client.post('/api/tenants/availability/', {'subdomain': 'acme-co'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['available'])

        response = self.client.post('/api/tenants/availability/', {'subdomain': 'initech'}, format='json')
        self.assertTrue(response.data['available'])

    def test_availability_rejects_malformed_code(self):
        response = self.client.post('/api/tenants/availability/', {'subdomain': 'ab'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('subdomain', response.data)

    def test_register_creates_tenant_with_admin_and_tokens(self):
        payload = {
            'subdomain': 'initech',
            'username': 'bill',
            'email': 'bill@initech.example.com',
            'password': 'tps-report',
        }

        response = self.client.post('/api/tenants/register/', payload, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['code'], 'initech')
        self.assertEqual(response.data['role'], 'admin')
        self.assertIn('access', response.data)
        tenant = Tenant.objects.get(code='initech')
        self.assertEqual(tenant.owner.username, 'bill@initech')

    def test_register_rejects_taken_subdomain(self):
        payload = {
            'subdomain': 'acme-co',
            'username': 'wile',
            'email': 'wile@acme.example.com',
            'password': 'pwd12345',
        }

        response = self.client.post('/api/tenants/register/', payload, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Tenant.objects.filter(code='acme-co').count(), 1)

    def test_admin_only_sees_own_tenant(self):
        self.client.force_authenticate(self.tenant_a.owner)
        response = self.client.get('/api/tenants/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([item['code'] for item in response.data], ['acme-co'])

    def test_user_without_tenant_is_denied(self):
        stranger = get_user_model().objects.create_user(username='stranger', password='pwd12345')
        self.client.force_authenticate(stranger)

        response = self.client.get('/api/tenants/')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
