from datetime import date, datetime, timezone as dt_timezone

from django.test import SimpleTestCase, TestCase, TransactionTestCase, skipUnlessDBFeature
from rest_framework import status
from rest_framework.test import APITestCase

from attendance.models import AttendanceRecord
from attendance.services.engine import RecordScanCommand, list_by_tenant, list_by_worker, next_presence, record_scan
from common.exceptions import InvalidTenant, MissingCredential, WorkerNotFound
from common.testing import make_tenant, make_worker, run_concurrently
from workforce.models import Department


def utc(*args):
    return datetime(*args, tzinfo=dt_timezone.utc)


class NextPresenceTests(SimpleTestCase):
    def test_first_scan_is_in(self):
        self.assertTrue(next_presence(None))

    def test_presence_flips(self):
        self.assertFalse(next_presence(True))
        self.assertTrue(next_presence(False))


class RecordScanTests(TestCase):
    def setUp(self):
        self.tenant = make_tenant("acme-co")
        self.department = Department.objects.create(tenant=self.tenant, name="assembly")
        self.worker = make_worker(self.tenant, "alice", rfid="RF-1", department=self.department, photo="alice.png")

    def scan(self, rfid="RF-1", tenant_code="acme-co", now=None):
        return record_scan(RecordScanCommand(tenant_code=tenant_code, rfid=rfid, now=now))

    def test_first_scan_marks_worker_in(self):
        result = self.scan()

        self.assertTrue(result.record.presence)
        self.assertEqual(result.message, "Attendance marked as in")

    def test_consecutive_scans_alternate(self):
        presences = [self.scan().record.presence for _ in range(5)]

        self.assertEqual(presences, [True, False, True, False, True])
        self.assertEqual(self.scan().message, "Attendance marked as out")

    def test_toggle_ignores_calendar_day(self):
        first = self.scan(now=utc(2026, 3, 2, 3, 0))
        second = self.scan(now=utc(2026, 3, 2, 12, 0))
        third = self.scan(now=utc(2026, 3, 3, 3, 0))

        self.assertEqual(
            [first.record.presence, second.record.presence, third.record.presence],
            [True, False, True],
        )
        self.assertEqual(third.record.date, date(2026, 3, 3))

    def test_date_and_time_use_configured_timezone(self):
        # 20:00 UTC is 01:30 the next day in Asia/Kolkata
        record = self.scan(now=utc(2026, 2, 1, 20, 0)).record

        self.assertEqual(record.date, date(2026, 2, 2))
        self.assertEqual(record.time, "1:30:00 AM")

    def test_created_at_follows_scan_clock(self):
        moment = utc(2026, 2, 1, 20, 0)

        record = self.scan(now=moment).record
        record.refresh_from_db()

        self.assertEqual(record.created_at, moment)

    def test_record_snapshots_worker_details(self):
        record = self.scan().record

        self.assertEqual(record.worker, self.worker)
        self.assertEqual(record.name, "Alice")
        self.assertEqual(record.username, "alice")
        self.assertEqual(record.email, "alice@acme-co.example.com")
        self.assertEqual(record.department, "assembly")
        self.assertEqual(record.photo, "alice.png")

        self.worker.name = "Alice Renamed"
        self.worker.save()
        record.refresh_from_db()
        self.assertEqual(record.name, "Alice")

    def test_scan_stores_last_presence_on_worker_only(self):
        self.scan()
        self.worker.refresh_from_db()

        self.assertTrue(self.worker.last_presence)
        self.assertEqual(self.worker.total_points, 0)
        self.assertEqual(self.worker.last_submission, {})

    def test_reserved_tenant_is_rejected_before_anything_else(self):
        for rfid in ("RF-1", "", "unknown"):
            with self.assertRaises(InvalidTenant):
                self.scan(rfid=rfid, tenant_code="main")
        self.assertEqual(AttendanceRecord.objects.count(), 0)

    def test_missing_rfid(self):
        with self.assertRaises(MissingCredential):
            self.scan(rfid="  ")

    def test_unknown_rfid(self):
        with self.assertRaises(WorkerNotFound):
            self.scan(rfid="RF-404")

    def test_rfid_from_other_tenant_is_not_found(self):
        other = make_tenant("globex")
        make_worker(other, "bob", rfid="RF-2")

        with self.assertRaises(WorkerNotFound):
            self.scan(rfid="RF-2")

    def test_same_rfid_in_two_tenants_toggles_independently(self):
        other = make_tenant("globex")
        make_worker(other, "bob", rfid="RF-1")

        self.scan()
        result = self.scan(tenant_code="globex")

        self.assertTrue(result.record.presence)
        self.assertEqual(list_by_tenant("globex").count(), 1)

    def test_listings_are_tenant_scoped(self):
        other = make_tenant("globex")
        make_worker(other, "bob", rfid="RF-9")
        make_worker(self.tenant, "carol", rfid="RF-3")
        self.scan()
        self.scan(rfid="RF-3")
        self.scan(rfid="RF-9", tenant_code="globex")

        self.assertEqual(list_by_tenant("acme-co").count(), 2)
        self.assertEqual([r.rfid for r in list_by_worker("acme-co", "RF-3")], ["RF-3"])
        self.assertEqual(list_by_worker("acme-co", "RF-9").count(), 0)
        with self.assertRaises(InvalidTenant):
            list_by_tenant("main")


class AttendanceApiTests(APITestCase):
    def setUp(self):
        self.tenant = make_tenant("acme-co")
        self.other = make_tenant("globex")
        self.worker = make_worker(self.tenant, "alice", rfid="RF-1")
        self.client.force_authenticate(self.tenant.owner)

    def test_put_records_scan(self):
        response = self.client.put('/api/attendance/', {'rfid': 'RF-1', 'subdomain': 'acme-co'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['message'], 'Attendance marked as in')
        self.assertTrue(response.data['attendance']['presence'])
        self.assertEqual(response.data['attendance']['subdomain'], 'acme-co')

        response = self.client.put('/api/attendance/', {'rfid': 'RF-1', 'subdomain': 'acme-co'}, format='json')
        self.assertEqual(response.data['message'], 'Attendance marked as out')

    def test_tenant_can_come_from_header(self):
        response = self.client.put(
            '/api/attendance/',
            {'rfid': 'RF-1'},
            format='json',
            HTTP_X_TENANT_CODE='acme-co',
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_missing_or_reserved_tenant_is_401(self):
        for payload in ({'rfid': 'RF-1'}, {'rfid': 'RF-1', 'subdomain': 'main'}):
            response = self.client.put('/api/attendance/', payload, format='json')
            self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
            self.assertEqual(response.data['message'], 'Subdomain is missing, check')

    def test_missing_rfid_is_401(self):
        response = self.client.put('/api/attendance/', {'subdomain': 'acme-co'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['message'], 'RFID is required')

    def test_unknown_worker_is_404(self):
        response = self.client.put('/api/attendance/', {'rfid': 'RF-404', 'subdomain': 'acme-co'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['message'], 'Worker not found')

    def test_cannot_scan_into_another_tenant(self):
        make_worker(self.other, "bob", rfid="RF-1")

        response = self.client.put('/api/attendance/', {'rfid': 'RF-1', 'subdomain': 'globex'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(AttendanceRecord.objects.count(), 0)

    def test_list_tenant_and_worker_attendance(self):
        make_worker(self.tenant, "carol", rfid="RF-3")
        record_scan(RecordScanCommand(tenant_code='acme-co', rfid='RF-1'))
        record_scan(RecordScanCommand(tenant_code='acme-co', rfid='RF-3'))

        response = self.client.get('/api/attendance/', {'subdomain': 'acme-co'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['attendance']), 2)

        response = self.client.get('/api/attendance/worker/', {'subdomain': 'acme-co', 'rfid': 'RF-3'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([item['rfid'] for item in response.data['attendance']], ['RF-3'])

    def test_listing_requires_tenant(self):
        response = self.client.get('/api/attendance/')

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_requires_authentication(self):
        self.client.force_authenticate(None)

        response = self.client.put('/api/attendance/', {'rfid': 'RF-1', 'subdomain': 'acme-co'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


@skipUnlessDBFeature("has_select_for_update")
class ConcurrentScanTests(TransactionTestCase):
    def setUp(self):
        self.tenant = make_tenant("acme-co")
        self.worker = make_worker(self.tenant, "alice", rfid="RF-1")

    def scan(self):
        return record_scan(RecordScanCommand(tenant_code="acme-co", rfid="RF-1")).record.presence

    def test_simultaneous_scans_of_one_card_alternate(self):
        run_concurrently(*[self.scan for _ in range(6)])

        presences = list(
            AttendanceRecord.objects.filter(worker=self.worker).order_by("created_at", "id").values_list("presence", flat=True)
        )
        self.assertEqual(presences, [True, False, True, False, True, False])
        self.worker.refresh_from_db()
        self.assertFalse(self.worker.last_presence)
