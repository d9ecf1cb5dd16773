"""
Test suite for the agile board
Tests: column ordering on move, status change, review flags, board grouping and statistics
"""
from datetime import timedelta

from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from backend.core.exceptions import BusinessRuleError
from backend.core.models import ACCESS_READ_WRITE
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.core.models import AuditLog
from backend.agile.models import Status, RoadmapBucket, Issue
from backend.agile import services


def column_titles(board_status):
    return list(Issue.objects.filter(status=board_status).order_by('ordering').values_list('title', flat=True))


class StatusTests(TestCase):
    def test_done_detection(self):
        """Test done columns are recognised by name"""
        self.assertTrue(Status(name='Done').is_done)
        self.assertTrue(Status(name='Done - Released').is_done)
        self.assertTrue(Status(name=' Complete ').is_done)
        self.assertFalse(Status(name='Completed review').is_done)
        self.assertFalse(Status(name='In Progress').is_done)

    def test_seed_defaults_is_idempotent(self):
        self.assertEqual(services.seed_defaults(), 6)
        self.assertEqual(services.seed_defaults(), 0)
        self.assertEqual(list(Status.objects.values_list('name', flat=True)), ['To Do', 'In Progress', 'Done'])
        self.assertEqual(RoadmapBucket.objects.count(), 3)


class MoveIssueTests(TestCase):
    """Drag-and-drop ordering"""

    def setUp(self):
        self.todo = TestDataFactory.create_status('To Do', position=1)
        self.doing = TestDataFactory.create_status('In Progress', position=2)
        self.done = TestDataFactory.create_status('Done', position=3)
        self.a = TestDataFactory.create_issue(self.todo, title='A')
        self.b = TestDataFactory.create_issue(self.todo, title='B')
        self.c = TestDataFactory.create_issue(self.todo, title='C')

    def test_reorder_within_column(self):
        services.move_issue(self.c, self.todo, 0)
        self.assertEqual(column_titles(self.todo), ['C', 'A', 'B'])
        self.assertEqual(list(Issue.objects.filter(status=self.todo).order_by('ordering').values_list('ordering', flat=True)), [0, 1, 2])

    def test_move_across_columns_reindexes_both(self):
        """Test both source and target columns end up with 0..n-1 orderings"""
        d = TestDataFactory.create_issue(self.doing, title='D')
        services.move_issue(self.a, self.doing, 0)
        self.assertEqual(column_titles(self.doing), ['A', 'D'])
        self.assertEqual(column_titles(self.todo), ['B', 'C'])
        self.b.refresh_from_db()
        d.refresh_from_db()
        self.assertEqual(self.b.ordering, 0)
        self.assertEqual(d.ordering, 1)

    def test_index_is_clamped(self):
        services.move_issue(self.a, self.doing, 99)
        self.a.refresh_from_db()
        self.assertEqual(self.a.status, self.doing)
        self.assertEqual(self.a.ordering, 0)

    def test_move_to_done_clears_review(self):
        self.a.ready_for_review = True
        self.a.review_rejected = True
        self.a.save()
        issue = services.move_issue(self.a, self.done, 0)
        self.assertFalse(issue.ready_for_review)
        self.assertFalse(issue.review_rejected)

    def test_change_status_appends_and_clears_bucket(self):
        """Test status change sends the issue to the column end and off the roadmap"""
        bucket = RoadmapBucket.objects.create(key='now', name='Now', sort_order=1)
        TestDataFactory.create_issue(self.doing, title='D')
        self.a.roadmap_bucket = bucket
        self.a.save()
        issue = services.change_status(self.a, self.doing)
        self.assertEqual(issue.ordering, 1)
        self.assertIsNone(issue.roadmap_bucket)


class ReviewTests(TestCase):
    """Ready-for-review and rejection flags"""

    def setUp(self):
        self.owner = TestDataFactory.create_user()
        self.other = TestDataFactory.create_user()
        self.doing = TestDataFactory.create_status('In Progress')
        self.done = TestDataFactory.create_status('Done')
        self.issue = TestDataFactory.create_issue(self.doing, owner=self.owner)

    def test_owner_requests_review(self):
        issue = services.request_review(self.issue, self.owner)
        self.assertTrue(issue.ready_for_review)
        self.assertFalse(issue.review_rejected)

    def test_only_owner_requests_review(self):
        with self.assertRaises(BusinessRuleError):
            services.request_review(self.issue, self.other)

    def test_closed_issue_cannot_request_review(self):
        closed = TestDataFactory.create_issue(self.done, owner=self.owner)
        with self.assertRaises(BusinessRuleError):
            services.request_review(closed, self.owner)

    def test_reject_then_request_again(self):
        """Test a rejected review can be requested again"""
        services.request_review(self.issue, self.owner)
        issue = services.reject_review(self.issue)
        self.assertTrue(issue.review_rejected)
        issue = services.request_review(issue, self.owner)
        self.assertTrue(issue.ready_for_review)
        self.assertFalse(issue.review_rejected)

    def test_reject_requires_pending_review(self):
        with self.assertRaises(BusinessRuleError):
            services.reject_review(self.issue)


class BoardAndStatsTests(TestCase):
    def setUp(self):
        self.todo = TestDataFactory.create_status('To Do', position=1)
        self.done = TestDataFactory.create_status('Done', position=2)

    def test_build_board_groups_and_orders(self):
        second = TestDataFactory.create_issue(self.todo, title='Second', ordering=1)
        first = TestDataFactory.create_issue(self.todo, title='First', ordering=0)
        orphan = TestDataFactory.create_issue(None, title='Orphan')
        columns, unassigned = services.build_board([self.todo, self.done], [second, orphan, first])
        self.assertEqual(columns[0][1], [first, second])
        self.assertEqual(columns[1][1], [])
        self.assertEqual(unassigned, [orphan])

    def test_issue_stats(self):
        """Test points, completion percentage and counts"""
        TestDataFactory.create_issue(self.todo, estimate=3)
        TestDataFactory.create_issue(self.todo, estimate=None, ready_for_review=True)
        TestDataFactory.create_issue(self.done, estimate=5)
        TestDataFactory.create_issue(self.done, estimate=1, ready_for_review=True, review_rejected=True)
        stats = services.issue_stats([self.todo, self.done], list(Issue.objects.all()))
        self.assertEqual(stats['total_points'], 9)
        self.assertEqual(stats['done_points'], 6)
        self.assertEqual(stats['completion_percentage'], 67)
        self.assertEqual(stats['completed_count'], 2)
        self.assertEqual(stats['in_progress_count'], 2)
        self.assertEqual(stats['ready_for_review_count'], 1)

    def test_stats_without_points(self):
        TestDataFactory.create_issue(self.todo)
        stats = services.issue_stats([self.todo, self.done], list(Issue.objects.all()))
        self.assertEqual(stats['completion_percentage'], 0)


class AgileAPITests(TestCase):
    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user(module_access={'agile': ACCESS_READ_WRITE})
        self.client.authenticate_user(self.user)
        self.todo = TestDataFactory.create_status('To Do', position=1)
        self.done = TestDataFactory.create_status('Done', position=2)

    def test_create_issue_appends_and_dedupes_tags(self):
        TestDataFactory.create_issue(self.todo, title='Existing')
        response = self.client.post('/api/v1/agile/issues/', {
            'title': 'Label printer integration',
            'status': self.todo.id,
            'owner': self.user.id,
            'estimate': 3,
            'tags': ['backend', ' backend ', 'printing'],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['ordering'], 1)
        self.assertEqual(response.data['tags'], ['backend', 'printing'])
        self.assertEqual(response.data['owner_name'], self.user.display_name)

    def test_new_status_goes_last(self):
        response = self.client.post('/api/v1/agile/statuses/', {'name': 'Review'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['position'], 3)

    def test_move_endpoint_logs_audit(self):
        issue = TestDataFactory.create_issue(self.todo)
        response = self.client.post(f'/api/v1/agile/issues/{issue.id}/move/',
                                    {'status': self.done.id, 'index': 0}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], self.done.id)
        self.assertTrue(AuditLog.objects.filter(action='issue_move', object_id=str(issue.id)).exists())

    def test_board_filters_by_tag(self):
        """Test the board honours the tag filter"""
        TestDataFactory.create_issue(self.todo, title='Tagged', tags=['ux'])
        TestDataFactory.create_issue(self.todo, title='Plain')
        response = self.client.get('/api/v1/agile/board/?tag=ux')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        titles = [issue['title'] for issue in response.data['columns'][0]['issues']]
        self.assertEqual(titles, ['Tagged'])

    def test_issue_list_filters_by_status_ids(self):
        TestDataFactory.create_issue(self.todo, title='Open')
        TestDataFactory.create_issue(self.done, title='Closed')
        response = self.client.get(f'/api/v1/agile/issues/?status_ids={self.done.id}')
        self.assertEqual([issue['title'] for issue in response.data], ['Closed'])

    def test_request_review_by_non_owner(self):
        issue = TestDataFactory.create_issue(self.todo, owner=TestDataFactory.create_user())
        response = self.client.post(f'/api/v1/agile/issues/{issue.id}/request-review/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Only the issue owner can request a review')

    def test_deleting_status_leaves_issues_unassigned(self):
        issue = TestDataFactory.create_issue(self.todo)
        response = self.client.delete(f'/api/v1/agile/statuses/{self.todo.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        issue.refresh_from_db()
        self.assertIsNone(issue.status)

    def test_issue_list_filters_by_due_range(self):
        """Test overdue, today and week ranges; issues without a deadline never match"""
        today = timezone.localdate()
        TestDataFactory.create_issue(self.todo, title='Late', deadline_date=today - timedelta(days=1))
        TestDataFactory.create_issue(self.todo, title='Now', deadline_date=today)
        TestDataFactory.create_issue(self.todo, title='Soon', deadline_date=today + timedelta(days=7))
        TestDataFactory.create_issue(self.todo, title='Later', deadline_date=today + timedelta(days=8))
        TestDataFactory.create_issue(self.todo, title='Undated')

        def titles(due_range):
            response = self.client.get(f'/api/v1/agile/issues/?due_range={due_range}')
            self.assertEqual(response.status_code, status.HTTP_200_OK)
            return [issue['title'] for issue in response.data]

        self.assertEqual(titles('overdue'), ['Late'])
        self.assertEqual(titles('today'), ['Now'])
        self.assertEqual(titles('week'), ['Now', 'Soon'])

    def test_issue_list_sort_by_deadline(self):
        """Test deadline sort puts undated issues last"""
        today = timezone.localdate()
        TestDataFactory.create_issue(self.todo, title='Undated')
        TestDataFactory.create_issue(self.todo, title='Next week', deadline_date=today + timedelta(days=7))
        TestDataFactory.create_issue(self.todo, title='Tomorrow', deadline_date=today + timedelta(days=1))
        response = self.client.get('/api/v1/agile/issues/?sort=deadline')
        self.assertEqual([issue['title'] for issue in response.data], ['Tomorrow', 'Next week', 'Undated'])

    def test_issue_list_sort_by_status(self):
        TestDataFactory.create_issue(None, title='Loose')
        TestDataFactory.create_issue(self.done, title='Closed')
        TestDataFactory.create_issue(self.todo, title='Open')
        response = self.client.get('/api/v1/agile/issues/?sort=status')
        self.assertEqual([issue['title'] for issue in response.data], ['Open', 'Closed', 'Loose'])

    def test_issue_list_assigned_to_me(self):
        TestDataFactory.create_issue(self.todo, title='Mine', owner=self.user)
        TestDataFactory.create_issue(self.todo, title='Theirs', owner=TestDataFactory.create_user())
        TestDataFactory.create_issue(self.todo, title='Nobody')
        response = self.client.get('/api/v1/agile/issues/?assigned_to_me=true')
        self.assertEqual([issue['title'] for issue in response.data], ['Mine'])
        response = self.client.get('/api/v1/agile/issues/?assigned_to_me=false')
        self.assertEqual(len(response.data), 3)
