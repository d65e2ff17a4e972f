from django.test import TestCase
from rest_framework import status
from rest_framework.test import APITestCase

from attendance.services.engine import RecordScanCommand, record_scan
from common.exceptions import MissingCredential, WorkerNotFound
from common.testing import make_tenant, make_worker
from scoring.models import Task
from scoring.services.engine import SubmitTaskCommand, submit_task
from workforce.models import Department, Worker
from workforce.services import find_by_rfid, identity_conflicts, update_worker


class WorkerLookupTests(TestCase):
    def setUp(self):
        self.tenant = make_tenant("acme-co")
        self.worker = make_worker(self.tenant, "alice", rfid="RF-1")

    def test_find_by_rfid_trims_input(self):
        self.assertEqual(find_by_rfid(self.tenant, " RF-1 "), self.worker)

    def test_find_by_rfid_errors(self):
        with self.assertRaises(MissingCredential):
            find_by_rfid(self.tenant, None)
        with self.assertRaises(WorkerNotFound):
            find_by_rfid(make_tenant("globex"), "RF-1")

    def test_identity_conflicts_are_tenant_scoped(self):
        values = {'username': 'alice', 'email': 'alice@acme-co.example.com', 'rfid': 'RF-1'}

        self.assertEqual(set(identity_conflicts(self.tenant, values)), {'username', 'email', 'rfid'})
        self.assertEqual(identity_conflicts(self.tenant, values, exclude_pk=self.worker.pk), {})
        self.assertEqual(identity_conflicts(make_tenant("globex"), values), {})

    def test_blank_rfid_is_not_a_conflict(self):
        make_worker(self.tenant, "bob")

        self.assertEqual(identity_conflicts(self.tenant, {'username': 'carol', 'rfid': ''}), {})


class WorkerUpdateTests(TestCase):
    def setUp(self):
        self.tenant = make_tenant("acme-co")
        self.worker = make_worker(self.tenant, "alice", rfid="RF-1")

    def test_update_keeps_concurrent_scoring_and_presence(self):
        stale = Worker.objects.get(pk=self.worker.pk)
        submit_task(SubmitTaskCommand(worker_id=self.worker.pk, tenant_code="acme-co", data={"a": 7}))
        record_scan(RecordScanCommand(tenant_code="acme-co", rfid="RF-1"))

        updated = update_worker(stale, name="Alice B")

        self.worker.refresh_from_db()
        self.assertEqual(self.worker.name, "Alice B")
        self.assertEqual(self.worker.total_points, 7)
        self.assertTrue(self.worker.last_presence)
        self.assertEqual(self.worker.last_submission["details"], {"a": 7})
        self.assertEqual(updated.total_points, 7)

    def test_password_only_update_changes_login(self):
        update_worker(self.worker, password="changed99")

        self.worker.user.refresh_from_db()
        self.assertTrue(self.worker.user.check_password("changed99"))
        self.assertEqual(self.worker.user.username, "alice@acme-co")


class DepartmentApiTests(APITestCase):
    def setUp(self):
        self.tenant = make_tenant("acme-co")
        self.client.force_authenticate(self.tenant.owner)

    def test_names_are_normalised_and_unique(self):
        response = self.client.post('/api/departments/', {'name': '  Assembly '}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['name'], 'assembly')
        self.assertEqual(response.data['worker_count'], 0)

        response = self.client.post('/api/departments/', {'name': 'ASSEMBLY'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post('/api/departments/', {'name': 'x'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_counts_workers_per_tenant(self):
        assembly = Department.objects.create(tenant=self.tenant, name="assembly")
        make_worker(self.tenant, "alice", department=assembly)
        make_worker(self.tenant, "bob", department=assembly)
        Department.objects.create(tenant=make_tenant("globex"), name="finance")

        response = self.client.get('/api/departments/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([(d['name'], d['worker_count']) for d in response.data], [('assembly', 2)])


class WorkerApiTests(APITestCase):
    def setUp(self):
        self.tenant = make_tenant("acme-co")
        self.other = make_tenant("globex")
        self.department = Department.objects.create(tenant=self.tenant, name="assembly")
        self.alice = make_worker(self.tenant, "alice", rfid="RF-1", department=self.department)

    def payload(self, **overrides):
        data = {
            'name': 'Dave',
            'username': 'dave',
            'email': 'dave@acme.test',
            'rfid': 'RF-7',
            'department': self.department.pk,
            'password': 'secret99',
        }
        data.update(overrides)
        return data

    def test_admin_creates_worker_who_can_log_in(self):
        self.client.force_authenticate(self.tenant.owner)

        response = self.client.post('/api/workers/', self.payload(), format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['department_name'], 'assembly')
        self.assertEqual(response.data['total_points'], 0)
        self.assertNotIn('password', response.data)

        self.client.force_authenticate(None)
        response = self.client.post(
            '/api/auth/token/',
            {'username': 'dave', 'password': 'secret99', 'subdomain': 'acme-co'},
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['role'], 'worker')

    def test_password_is_required_on_create(self):
        self.client.force_authenticate(self.tenant.owner)

        response = self.client.post('/api/workers/', self.payload(password=''), format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_identity_must_be_unique_within_tenant(self):
        self.client.force_authenticate(self.tenant.owner)

        for field, value in (('username', 'alice'), ('email', 'alice@acme-co.example.com'), ('rfid', 'RF-1')):
            response = self.client.post('/api/workers/', self.payload(**{field: value}), format='json')
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
            self.assertIn(field, response.data)

    def test_same_identity_allowed_in_other_tenant(self):
        self.client.force_authenticate(self.other.owner)

        response = self.client.post(
            '/api/workers/',
            self.payload(username='alice', email='alice@acme-co.example.com', rfid='RF-1', department=None),
            format='json',
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['department_name'], 'Unassigned')

    def test_department_of_other_tenant_is_rejected(self):
        foreign = Department.objects.create(tenant=self.other, name="finance")
        self.client.force_authenticate(self.tenant.owner)

        response = self.client.post('/api/workers/', self.payload(department=foreign.pk), format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_renames_login(self):
        self.client.force_authenticate(self.tenant.owner)

        response = self.client.patch(f'/api/workers/{self.alice.pk}/', {'username': 'alicia'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.alice.user.refresh_from_db()
        self.assertEqual(self.alice.user.username, 'alicia@acme-co')

    def test_worker_sees_only_self(self):
        bob = make_worker(self.tenant, "bob")
        self.client.force_authenticate(self.alice.user)

        self.assertEqual(self.client.get(f'/api/workers/{self.alice.pk}/').status_code, status.HTTP_200_OK)
        self.assertEqual(self.client.get(f'/api/workers/{bob.pk}/').status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(self.client.get('/api/workers/').status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_cannot_see_other_tenant_workers(self):
        carol = make_worker(self.other, "carol")
        self.client.force_authenticate(self.tenant.owner)

        response = self.client.get('/api/workers/')
        self.assertEqual([w['username'] for w in response.data], ['alice'])
        self.assertEqual(self.client.get(f'/api/workers/{carol.pk}/').status_code, status.HTTP_404_NOT_FOUND)

    def test_delete_removes_worker_and_login(self):
        user_id = self.alice.user_id
        self.client.force_authenticate(self.tenant.owner)

        response = self.client.delete(f'/api/workers/{self.alice.pk}/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Worker.objects.filter(pk=self.alice.pk).exists())
        self.assertFalse(type(self.tenant.owner).objects.filter(pk=user_id).exists())

    def test_activities_listing_and_reset(self):
        bob = make_worker(self.tenant, "bob")
        for worker in (self.alice, bob):
            submit_task(SubmitTaskCommand(worker_id=worker.pk, tenant_code='acme-co', data={'a': 4}))

        self.client.force_authenticate(self.alice.user)
        response = self.client.get(f'/api/workers/{self.alice.pk}/activities/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)

        response = self.client.delete(f'/api/workers/{self.alice.pk}/activities/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.tenant.owner)
        response = self.client.delete(f'/api/workers/{self.alice.pk}/activities/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        self.alice.refresh_from_db()
        self.assertEqual(self.alice.total_points, 0)
        self.assertFalse(Task.objects.filter(worker=self.alice).exists())
        self.assertEqual(Task.objects.filter(worker=bob).count(), 1)
