from datetime import datetime, timezone as dt_timezone
from unittest.mock import patch

from django.db import DatabaseError
from django.db.models import QuerySet, Sum
from django.test import SimpleTestCase, TestCase, TransactionTestCase, override_settings, skipUnlessDBFeature
from rest_framework import status
from rest_framework.test import APIClient, APITestCase

from common.exceptions import (
    AlreadyReviewed,
    EmptyTaskData,
    InvalidDateRange,
    InvalidPoints,
    NotACustomTask,
    TaskNotFound,
    WorkerNotFound,
)
from common.testing import make_tenant, make_worker, run_concurrently
from scoring.models import Task, Topic
from scoring.services.engine import (
    ReviewCustomTaskCommand,
    SubmitTaskCommand,
    get_totals,
    list_by_date_range,
    list_tasks,
    parse_date_range,
    reset_all,
    review_custom_task,
    submit_custom_task,
    submit_task,
)
from scoring.services.points import (
    MAX_TASK_POINTS,
    awarded_points,
    base_points,
    coerce_points,
    in_points_range,
    topic_ids,
)


class PointCoercionTests(SimpleTestCase):
    def test_numbers_and_numeric_strings(self):
        self.assertEqual(coerce_points(3), 3)
        self.assertEqual(coerce_points("5"), 5)
        self.assertEqual(coerce_points(" 7"), 7)
        self.assertEqual(coerce_points("-2"), -2)
        self.assertEqual(coerce_points(4.9), 4)

    def test_leading_integer_of_strings(self):
        self.assertEqual(coerce_points("12abc"), 12)
        self.assertEqual(coerce_points("5.7"), 5)

    def test_non_numeric_counts_as_zero(self):
        for value in ("x", "", None, True, [], {}, float("nan")):
            self.assertEqual(coerce_points(value), 0)

    def test_base_points_of_mixed_data(self):
        self.assertEqual(base_points({"a": "5", "b": "x", "c": 3}), 8)

    def test_awarded_points(self):
        self.assertEqual(awarded_points(0), 0)
        self.assertEqual(awarded_points(20), 20)
        self.assertEqual(awarded_points(20.0), 20)
        self.assertEqual(awarded_points("15"), 15)
        for value in (-1, 2.5, "abc", None, True, "-3"):
            self.assertIsNone(awarded_points(value))

    def test_topic_ids_skip_garbage(self):
        self.assertEqual(topic_ids([1, "2", "abc", None, True, " 3 "]), [1, 2, 3])

    def test_oversized_values_stay_out_of_range(self):
        self.assertFalse(in_points_range(coerce_points(10**30)))
        self.assertFalse(in_points_range(coerce_points("9" * 5000)))
        self.assertFalse(in_points_range(coerce_points("-" + "9" * 40)))
        self.assertFalse(in_points_range(coerce_points(1e300)))
        self.assertEqual(coerce_points("000000000000000000042"), 42)
        self.assertTrue(in_points_range(MAX_TASK_POINTS))

    def test_awarded_points_are_bounded(self):
        self.assertEqual(awarded_points(MAX_TASK_POINTS), MAX_TASK_POINTS)
        for value in (MAX_TASK_POINTS + 1, 10**30, "9" * 5000, 1e300):
            self.assertIsNone(awarded_points(value))

    def test_topic_ids_skip_oversized_ids(self):
        self.assertEqual(topic_ids([10**30, "9" * 40, 0, -4, 7]), [7])


class SubmitTaskTests(TestCase):
    def setUp(self):
        self.tenant = make_tenant("acme-co")
        self.worker = make_worker(self.tenant, "alice")
        self.safety = Topic.objects.create(tenant=self.tenant, name="Safety", points=10)
        self.quality = Topic.objects.create(tenant=self.tenant, name="Quality", points=5)

    def submit(self, data, topics=(), worker=None):
        worker = worker or self.worker
        return submit_task(
            SubmitTaskCommand(worker_id=worker.pk, tenant_code=worker.tenant.code, data=data, topic_ids=list(topics))
        )

    def test_non_numeric_values_contribute_zero(self):
        task = self.submit({"a": "5", "b": "x", "c": 3})

        self.assertEqual(task.points, 8)
        self.worker.refresh_from_db()
        self.assertEqual(self.worker.total_points, 8)
        self.assertEqual(self.worker.topic_points, 0)

    def test_topic_points_are_added(self):
        task = self.submit({"a": 2}, topics=[self.safety.pk, self.quality.pk])

        self.assertEqual(task.points, 17)
        self.assertEqual(set(task.topics.values_list("pk", flat=True)), {self.safety.pk, self.quality.pk})
        self.worker.refresh_from_db()
        self.assertEqual(self.worker.total_points, 17)
        self.assertEqual(self.worker.topic_points, 15)

    def test_unknown_and_foreign_topics_are_dropped(self):
        foreign = Topic.objects.create(tenant=make_tenant("globex"), name="Safety", points=100)

        task = self.submit({"a": 1}, topics=[self.safety.pk, 999999, "abc", foreign.pk])

        self.assertEqual(task.points, 11)
        self.assertEqual(list(task.topics.all()), [self.safety])

    def test_duplicate_topic_ids_count_once(self):
        task = self.submit({"a": 0}, topics=[self.safety.pk, self.safety.pk])

        self.assertEqual(task.points, 10)

    def test_last_submission_snapshot(self):
        now = datetime(2026, 5, 4, 9, 30, tzinfo=dt_timezone.utc)
        submit_task(
            SubmitTaskCommand(worker_id=self.worker.pk, tenant_code="acme-co", data={"units": "4"}, now=now)
        )

        self.worker.refresh_from_db()
        self.assertEqual(self.worker.last_submission, {"timestamp": now.isoformat(), "details": {"units": "4"}})

    def test_empty_data_is_rejected(self):
        with self.assertRaises(EmptyTaskData):
            self.submit({})
        with self.assertRaises(EmptyTaskData):
            self.submit({}, topics=[self.safety.pk])
        self.assertEqual(Task.objects.count(), 0)

    @override_settings(WORKFORCE_ALLOW_EMPTY_TASK_DATA=True)
    def test_pure_topic_submission_when_allowed(self):
        task = self.submit({}, topics=[self.safety.pk])

        self.assertEqual(task.points, 10)
        with self.assertRaises(EmptyTaskData):
            self.submit({})

    def test_worker_of_other_tenant_is_not_found(self):
        other = make_worker(make_tenant("globex"), "bob")

        with self.assertRaises(WorkerNotFound):
            submit_task(SubmitTaskCommand(worker_id=other.pk, tenant_code="acme-co", data={"a": 1}))

    def test_out_of_range_points_are_rejected_without_side_effects(self):
        big = Topic.objects.create(tenant=self.tenant, name="Jackpot", points=MAX_TASK_POINTS)

        with self.assertRaises(InvalidPoints):
            self.submit({"a": 10**30})
        with self.assertRaises(InvalidPoints):
            self.submit({"a": 1}, topics=[big.pk])

        self.assertEqual(Task.objects.count(), 0)
        self.worker.refresh_from_db()
        self.assertEqual(self.worker.total_points, 0)

    def test_totals_match_task_points(self):
        self.submit({"a": 3, "b": "4"})
        self.submit({"a": 1}, topics=[self.quality.pk])
        self.submit({"x": "nope"}, topics=[self.safety.pk])
        custom = submit_custom_task("acme-co", self.worker.pk, "Cleaned the warehouse")
        review_custom_task(ReviewCustomTaskCommand("acme-co", custom.pk, "approved", 12))
        rejected = submit_custom_task("acme-co", self.worker.pk, "Moved a box")
        review_custom_task(ReviewCustomTaskCommand("acme-co", rejected.pk, "rejected"))
        submit_custom_task("acme-co", self.worker.pk, "Still pending")

        expected = Task.objects.filter(worker=self.worker).exclude(status__in=["pending", "rejected"]).aggregate(
            total=Sum("points")
        )["total"]
        totals = get_totals("acme-co", self.worker.pk)
        self.assertEqual(totals.total_points, expected)
        self.assertEqual(totals.total_points, 7 + 6 + 10 + 12)
        self.assertEqual(totals.topic_points, 15)


class ReviewCustomTaskTests(TestCase):
    def setUp(self):
        self.tenant = make_tenant("acme-co")
        self.worker = make_worker(self.tenant, "alice")
        self.task = submit_custom_task("acme-co", self.worker.pk, "Organised the stockroom")

    def review(self, decision, points=None, task_id=None, tenant_code="acme-co"):
        return review_custom_task(
            ReviewCustomTaskCommand(tenant_code, task_id or self.task.pk, decision, points)
        )

    def test_custom_task_starts_pending_without_credit(self):
        self.assertTrue(self.task.is_custom)
        self.assertEqual(self.task.status, "pending")
        self.assertEqual(self.task.points, 0)
        self.worker.refresh_from_db()
        self.assertEqual(self.worker.total_points, 0)

    def test_approval_credits_worker(self):
        task = self.review("approved", 20)

        self.assertEqual(task.status, "approved")
        self.assertEqual(task.points, 20)
        self.worker.refresh_from_db()
        self.assertEqual(self.worker.total_points, 20)
        self.assertEqual(self.worker.topic_points, 0)

    def test_zero_points_approval_is_allowed(self):
        self.assertEqual(self.review("approved", 0).points, 0)

    def test_second_review_is_rejected_without_double_credit(self):
        self.review("approved", 20)

        with self.assertRaises(AlreadyReviewed):
            self.review("approved", 20)
        with self.assertRaises(AlreadyReviewed):
            self.review("rejected")

        self.worker.refresh_from_db()
        self.assertEqual(self.worker.total_points, 20)

    def test_rejection_does_not_credit(self):
        task = self.review("rejected", 50)

        self.assertEqual(task.status, "rejected")
        self.assertEqual(task.points, 0)
        self.worker.refresh_from_db()
        self.assertEqual(self.worker.total_points, 0)

    def test_invalid_points(self):
        for points in (None, -5, "lots", 2.5):
            with self.assertRaises(InvalidPoints):
                self.review("approved", points)

    def test_regular_task_cannot_be_reviewed(self):
        regular = submit_task(SubmitTaskCommand(worker_id=self.worker.pk, tenant_code="acme-co", data={"a": 1}))

        with self.assertRaises(NotACustomTask):
            self.review("approved", 5, task_id=regular.pk)

    def test_task_of_other_tenant_is_not_found(self):
        make_tenant("globex")

        with self.assertRaises(TaskNotFound):
            self.review("approved", 5, tenant_code="globex")
        with self.assertRaises(TaskNotFound):
            self.review("approved", 5, task_id=999999)


class ResetAndRangeTests(TestCase):
    def setUp(self):
        self.tenant = make_tenant("acme-co")
        self.other = make_tenant("globex")
        self.alice = make_worker(self.tenant, "alice")
        self.bob = make_worker(self.tenant, "bob")
        self.carol = make_worker(self.other, "carol")
        for worker in (self.alice, self.bob, self.carol):
            submit_task(SubmitTaskCommand(worker_id=worker.pk, tenant_code=worker.tenant.code, data={"a": 5}))

    def test_reset_clears_tasks_and_totals_of_tenant(self):
        removed = reset_all("acme-co")

        self.assertEqual(removed, 2)
        self.assertEqual(list_tasks("acme-co").count(), 0)
        for worker in (self.alice, self.bob):
            totals = get_totals("acme-co", worker.pk)
            self.assertEqual((totals.total_points, totals.topic_points, totals.last_submission), (0, 0, {}))

    def test_reset_leaves_other_tenants_alone(self):
        reset_all("acme-co")

        self.assertEqual(list_tasks("globex").count(), 1)
        self.assertEqual(get_totals("globex", self.carol.pk).total_points, 5)

    def test_submissions_after_reset_start_from_zero(self):
        reset_all("acme-co")
        submit_task(SubmitTaskCommand(worker_id=self.alice.pk, tenant_code="acme-co", data={"a": 3}))

        self.assertEqual(get_totals("acme-co", self.alice.pk).total_points, 3)

    def test_date_range_is_inclusive_in_local_days(self):
        task = Task.objects.filter(worker=self.alice).get()
        late = Task.objects.filter(worker=self.bob).get()
        # 23:30 on Jan 31 in Asia/Kolkata, and 00:30 on Feb 1
        Task.objects.filter(pk=task.pk).update(created_at=datetime(2026, 1, 31, 18, 0, tzinfo=dt_timezone.utc))
        Task.objects.filter(pk=late.pk).update(created_at=datetime(2026, 1, 31, 19, 0, tzinfo=dt_timezone.utc))

        tasks = list_by_date_range("acme-co", "2026-01-01", "2026-01-31")

        self.assertEqual([t.pk for t in tasks], [task.pk])

    def test_date_range_validation(self):
        for start, end in ((None, "2026-01-31"), ("2026-01-01", ""), ("yesterday", "2026-01-31"), ("2026-02-01", "2026-01-01")):
            with self.assertRaises(InvalidDateRange):
                parse_date_range(start, end)

    def test_date_range_accepts_datetimes(self):
        start, end = parse_date_range("2026-01-01T10:00:00Z", "2026-01-01T18:00:00+05:30")

        self.assertEqual(start, datetime(2026, 1, 1, 10, 0, tzinfo=dt_timezone.utc))
        self.assertEqual(end, datetime(2026, 1, 1, 12, 30, tzinfo=dt_timezone.utc))


class TaskApiTests(APITestCase):
    def setUp(self):
        self.tenant = make_tenant("acme-co")
        self.other = make_tenant("globex")
        self.worker = make_worker(self.tenant, "alice")
        self.topic = Topic.objects.create(tenant=self.tenant, name="Safety", points=10)

    def as_worker(self):
        self.client.force_authenticate(self.worker.user)

    def as_admin(self, tenant=None):
        self.client.force_authenticate((tenant or self.tenant).owner)

    def test_worker_submits_task(self):
        self.as_worker()

        response = self.client.post(
            '/api/tasks/',
            {'data': {'a': '5', 'b': 'x', 'c': 3}, 'topics': [self.topic.pk], 'subdomain': 'acme-co'},
            format='json',
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['points'], 18)
        self.assertEqual(response.data['topics'][0]['name'], 'Safety')
        self.worker.refresh_from_db()
        self.assertEqual(self.worker.total_points, 18)

    def test_empty_task_data_is_400(self):
        self.as_worker()

        response = self.client.post('/api/tasks/', {'data': {}}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Please provide task data')

    def test_nested_values_are_rejected(self):
        self.as_worker()

        response = self.client.post('/api/tasks/', {'data': {'a': {'b': 1}}}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('data', response.data)

    def test_oversized_values_are_400(self):
        self.as_worker()

        for data in ({'a': 10**30}, {'a': '9' * 400}, {'a': 2**30, 'b': 2**30}):
            response = self.client.post('/api/tasks/', {'data': data}, format='json')
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
            self.assertIn('data', response.data)

        self.assertEqual(Task.objects.count(), 0)

    def test_worker_cannot_submit_into_other_tenant(self):
        self.as_worker()

        response = self.client.post('/api/tasks/', {'data': {'a': 1}, 'subdomain': 'globex'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_cannot_submit_tasks(self):
        self.as_admin()

        response = self.client.post('/api/tasks/', {'data': {'a': 1}}, format='json')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_lists_only_own_tenant_tasks(self):
        submit_task(SubmitTaskCommand(worker_id=self.worker.pk, tenant_code='acme-co', data={'a': 1}))
        bob = make_worker(self.other, 'bob')
        submit_task(SubmitTaskCommand(worker_id=bob.pk, tenant_code='globex', data={'a': 1}))
        self.as_admin()

        response = self.client.get('/api/tasks/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([item['worker_name'] for item in response.data], ['Alice'])

    def test_worker_lists_own_tasks_and_totals(self):
        submit_task(SubmitTaskCommand(worker_id=self.worker.pk, tenant_code='acme-co', data={'a': 4}))
        self.as_worker()

        response = self.client.get('/api/tasks/me/')
        self.assertEqual(len(response.data), 1)

        response = self.client.get('/api/tasks/totals/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_points'], 4)
        self.assertEqual(response.data['worker'], self.worker.pk)

    def test_admin_reads_worker_totals(self):
        self.as_admin()

        response = self.client.get('/api/tasks/totals/', {'worker': self.worker.pk})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_points'], 0)

        response = self.client.get('/api/tasks/totals/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_range_requires_dates(self):
        self.as_admin()

        response = self.client.get('/api/tasks/range/')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Please provide start and end dates')

    def test_reset_is_admin_only(self):
        submit_task(SubmitTaskCommand(worker_id=self.worker.pk, tenant_code='acme-co', data={'a': 4}))
        self.as_worker()
        response = self.client.delete('/api/tasks/reset/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.as_admin()
        response = self.client.delete('/api/tasks/reset/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['message'], 'All tasks reset successfully')
        self.assertEqual(Task.objects.count(), 0)

    def test_custom_task_flow(self):
        self.as_worker()
        response = self.client.post('/api/tasks/custom/', {'description': 'Fixed the conveyor'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        task_id = response.data['id']
        self.assertEqual(response.data['status'], 'pending')

        response = self.client.get('/api/tasks/custom/me/')
        self.assertEqual([item['id'] for item in response.data], [task_id])

        self.as_admin()
        response = self.client.get('/api/tasks/custom/')
        self.assertEqual([item['id'] for item in response.data], [task_id])

        url = f'/api/tasks/custom/{task_id}/review/'
        response = self.client.put(url, {'status': 'approved', 'points': 25}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['points'], 25)

        response = self.client.put(url, {'status': 'approved', 'points': 25}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.worker.refresh_from_db()
        self.assertEqual(self.worker.total_points, 25)

    def test_review_errors(self):
        task = submit_custom_task('acme-co', self.worker.pk, 'Fixed the conveyor')
        regular = submit_task(SubmitTaskCommand(worker_id=self.worker.pk, tenant_code='acme-co', data={'a': 1}))
        self.as_admin()

        response = self.client.put(f'/api/tasks/custom/{task.pk}/review/', {'status': 'maybe'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.put(f'/api/tasks/custom/{task.pk}/review/', {'status': 'approved', 'points': -1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.put(f'/api/tasks/custom/{regular.pk}/review/', {'status': 'approved', 'points': 3}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'This is not a custom task')

        response = self.client.put('/api/tasks/custom/999999/review/', {'status': 'approved', 'points': 3}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

        response = self.client.put(f'/api/tasks/custom/{task.pk}/review/', {'status': 'approved', 'points': 10**12}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.put('/api/tasks/custom/' + '9' * 30 + '/review/', {'status': 'approved', 'points': 3}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_admin_of_other_tenant_cannot_review(self):
        task = submit_custom_task('acme-co', self.worker.pk, 'Fixed the conveyor')
        self.as_admin(self.other)

        response = self.client.put(f'/api/tasks/custom/{task.pk}/review/', {'status': 'approved', 'points': 3}, format='json')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class TopicApiTests(APITestCase):
    def setUp(self):
        self.tenant = make_tenant("acme-co")
        self.worker = make_worker(self.tenant, "alice")

    def test_admin_creates_topic_with_defaults(self):
        self.client.force_authenticate(self.tenant.owner)

        response = self.client.post('/api/topics/', {'name': '  Safety  '}, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['name'], 'Safety')
        self.assertEqual(response.data['points'], 0)
        self.assertEqual(response.data['department'], 'all')

    def test_topic_names_are_unique_per_tenant_ignoring_case(self):
        Topic.objects.create(tenant=self.tenant, name="Safety", points=10)
        Topic.objects.create(tenant=make_tenant("globex"), name="Quality", points=10)
        self.client.force_authenticate(self.tenant.owner)

        response = self.client.post('/api/topics/', {'name': 'safety'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post('/api/topics/', {'name': 'Quality'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_worker_lists_topics_for_department(self):
        Topic.objects.create(tenant=self.tenant, name="General", department="all")
        Topic.objects.create(tenant=self.tenant, name="Welding", department="assembly")
        Topic.objects.create(tenant=self.tenant, name="Invoices", department="finance")
        self.client.force_authenticate(self.worker.user)

        response = self.client.get('/api/topics/', {'department': 'assembly'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(sorted(item['name'] for item in response.data), ['General', 'Welding'])

        response = self.client.post('/api/topics/', {'name': 'Sneaky'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class SubmissionAtomicityTests(TransactionTestCase):
    def setUp(self):
        self.tenant = make_tenant("acme-co")
        self.worker = make_worker(self.tenant, "alice")

    @patch.object(QuerySet, "update", side_effect=DatabaseError("connection lost"))
    def test_failed_total_update_leaves_no_task(self, mock_update):
        with self.assertRaises(DatabaseError):
            submit_task(SubmitTaskCommand(worker_id=self.worker.pk, tenant_code="acme-co", data={"a": 5}))

        mock_update.assert_called_once()
        self.assertEqual(Task.objects.count(), 0)
        self.worker.refresh_from_db()
        self.assertEqual(self.worker.total_points, 0)
        self.assertEqual(self.worker.last_submission, {})

    def test_storage_failure_is_reported_as_503(self):
        client = APIClient()
        client.force_authenticate(self.worker.user)

        with patch.object(QuerySet, "update", side_effect=DatabaseError("connection lost")):
            response = client.post('/api/tasks/', {'data': {'a': 5}}, format='json')

        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertEqual(response.data['message'], 'Storage is unavailable, try again later')
        self.assertEqual(Task.objects.count(), 0)


@skipUnlessDBFeature("has_select_for_update")
class ConcurrentScoringTests(TransactionTestCase):
    def setUp(self):
        self.tenant = make_tenant("acme-co")
        self.worker = make_worker(self.tenant, "alice")

    def submit(self):
        return submit_task(SubmitTaskCommand(worker_id=self.worker.pk, tenant_code="acme-co", data={"a": 3}))

    def assert_totals_match_tasks(self):
        self.worker.refresh_from_db()
        remaining = Task.objects.filter(worker=self.worker).aggregate(total=Sum("points"))["total"] or 0
        self.assertEqual(self.worker.total_points, remaining)

    def test_simultaneous_submissions_are_all_counted(self):
        run_concurrently(*[self.submit for _ in range(8)])

        self.assertEqual(Task.objects.filter(worker=self.worker).count(), 8)
        self.worker.refresh_from_db()
        self.assertEqual(self.worker.total_points, 24)

    def test_reset_racing_submissions_loses_nothing(self):
        for _ in range(3):
            run_concurrently(*[self.submit for _ in range(4)], lambda: reset_all("acme-co"))

            self.assert_totals_match_tasks()

    def test_review_racing_reset_keeps_totals_consistent(self):
        custom = submit_custom_task("acme-co", self.worker.pk, "Fixed the conveyor")

        def review():
            try:
                return review_custom_task(ReviewCustomTaskCommand("acme-co", custom.pk, "approved", 9))
            except TaskNotFound:
                return None

        run_concurrently(review, self.submit, lambda: reset_all("acme-co"))

        self.assert_totals_match_tasks()
