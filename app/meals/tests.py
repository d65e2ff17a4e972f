from datetime import date, datetime, timezone as dt_timezone

from django.test import TestCase
from rest_framework import status
from rest_framework.test import APITestCase

from common.exceptions import DuplicateFoodRequest, FoodRequestsDisabled, InvalidDateRange, WorkerNotFound
from common.testing import make_tenant, make_worker
from meals.models import FoodRequest, MealSettings
from meals.services import (
    SubmitFoodRequestCommand,
    food_requests_enabled,
    list_food_requests,
    submit_food_request,
    toggle_food_requests,
)


def utc(*args):
    return datetime(*args, tzinfo=dt_timezone.utc)


class FoodRequestServiceTests(TestCase):
    def setUp(self):
        self.tenant = make_tenant("acme-co")
        self.worker = make_worker(self.tenant, "alice")

    def submit(self, now=None, worker=None, tenant_code="acme-co"):
        worker = worker or self.worker
        return submit_food_request(SubmitFoodRequestCommand(tenant_code=tenant_code, worker_id=worker.pk, now=now))

    def test_request_is_dated_in_local_time(self):
        # 20:00 UTC is already the next day in Asia/Kolkata
        food_request = self.submit(now=utc(2026, 3, 1, 20, 0))

        self.assertEqual(food_request.date, date(2026, 3, 2))
        self.assertEqual(food_request.status, FoodRequest.STATUS_FULFILLED)
        self.assertEqual(food_request.created_at, utc(2026, 3, 1, 20, 0))

    def test_one_request_per_local_day(self):
        self.submit(now=utc(2026, 3, 1, 3, 0))

        with self.assertRaises(DuplicateFoodRequest):
            self.submit(now=utc(2026, 3, 1, 18, 0))
        # 00:30 on Mar 2 in Asia/Kolkata
        self.submit(now=utc(2026, 3, 1, 19, 0))

        self.assertEqual(FoodRequest.objects.filter(worker=self.worker).count(), 2)

    def test_other_workers_request_independently(self):
        bob = make_worker(self.tenant, "bob")
        moment = utc(2026, 3, 1, 6, 0)

        self.submit(now=moment)
        self.submit(now=moment, worker=bob)

        self.assertEqual(FoodRequest.objects.count(), 2)

    def test_enabled_by_default_and_toggle_flips(self):
        self.assertTrue(food_requests_enabled("acme-co"))

        self.assertFalse(toggle_food_requests("acme-co", self.tenant.owner))
        self.assertFalse(food_requests_enabled("acme-co"))
        self.assertEqual(MealSettings.objects.get(tenant=self.tenant).updated_by, self.tenant.owner)

        self.assertTrue(toggle_food_requests("acme-co", self.tenant.owner))

    def test_disabled_requests_are_rejected(self):
        toggle_food_requests("acme-co")

        with self.assertRaises(FoodRequestsDisabled):
            self.submit()
        self.assertEqual(FoodRequest.objects.count(), 0)

    def test_settings_are_per_tenant(self):
        make_tenant("globex")
        toggle_food_requests("acme-co")

        self.assertTrue(food_requests_enabled("globex"))

    def test_worker_of_other_tenant_is_not_found(self):
        carol = make_worker(make_tenant("globex"), "carol")

        with self.assertRaises(WorkerNotFound):
            self.submit(worker=carol)

    def test_listing_is_per_day_and_tenant(self):
        other = make_tenant("globex")
        carol = make_worker(other, "carol")
        self.submit(now=utc(2026, 3, 1, 6, 0))
        self.submit(now=utc(2026, 3, 2, 6, 0))
        self.submit(now=utc(2026, 3, 1, 6, 0), worker=carol, tenant_code="globex")

        requests = list_food_requests("acme-co", "2026-03-01")

        self.assertEqual([r.date for r in requests], [date(2026, 3, 1)])
        with self.assertRaises(InvalidDateRange):
            list_food_requests("acme-co", "yesterday")


class FoodRequestApiTests(APITestCase):
    def setUp(self):
        self.tenant = make_tenant("acme-co")
        self.worker = make_worker(self.tenant, "alice")

    def test_worker_submits_once_per_day(self):
        self.client.force_authenticate(self.worker.user)

        response = self.client.post('/api/food-requests/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['worker_name'], 'Alice')

        response = self.client.post('/api/food-requests/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'You have already submitted a food request today')

    def test_admin_lists_todays_requests(self):
        submit_food_request(SubmitFoodRequestCommand(tenant_code='acme-co', worker_id=self.worker.pk))
        self.client.force_authenticate(self.tenant.owner)

        response = self.client.get('/api/food-requests/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([item['worker'] for item in response.data], [self.worker.pk])

    def test_admin_toggles_and_workers_are_turned_away(self):
        self.client.force_authenticate(self.tenant.owner)
        response = self.client.put('/api/food-requests/toggle/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {'enabled': False})

        self.client.force_authenticate(self.worker.user)
        response = self.client.get('/api/food-requests/settings/')
        self.assertEqual(response.data, {'enabled': False})

        response = self.client.post('/api/food-requests/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Food requests are currently disabled')

    def test_role_checks(self):
        self.client.force_authenticate(self.worker.user)
        self.assertEqual(self.client.put('/api/food-requests/toggle/').status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(self.client.get('/api/food-requests/').status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.tenant.owner)
        response = self.client.post('/api/food-requests/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_other_tenant_is_forbidden(self):
        make_tenant("globex")
        self.client.force_authenticate(self.tenant.owner)

        response = self.client.put('/api/food-requests/toggle/?subdomain=globex')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(food_requests_enabled("globex"))
