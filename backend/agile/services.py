"""Board ordering, review flags and point statistics for agile issues"""
import logging

from django.db import transaction
from django.db.models import Max

from backend.core.exceptions import BusinessRuleError
from .models import Status, RoadmapBucket, Issue

logger = logging.getLogger('backend.agile')

DEFAULT_STATUSES = [
    ('To Do', 'Planned and ready to start', 1, 'sky'),
    ('In Progress', 'Currently being worked on', 2, 'amber'),
    ('Done', 'Completed items', 3, 'emerald'),
]

DEFAULT_BUCKETS = [
    ('now', 'Now', 1),
    ('next', 'Next', 2),
    ('later', 'Later', 3),
]


def seed_defaults():
    """Create the default board columns and roadmap buckets when missing"""
    created = 0
    if not Status.objects.exists():
        for name, description, position, color in DEFAULT_STATUSES:
            Status.objects.create(name=name, description=description, position=position, color=color)
            created += 1
    for key, name, sort_order in DEFAULT_BUCKETS:
        _, was_created = RoadmapBucket.objects.update_or_create(key=key, defaults={'name': name, 'sort_order': sort_order})
        created += int(was_created)
    return created


def next_status_position():
    current = Status.objects.aggregate(top=Max('position'))['top']
    return 0 if current is None else current + 1


def next_ordering(status_id, exclude=None):
    queryset = Issue.objects.filter(status_id=status_id)
    if exclude is not None:
        queryset = queryset.exclude(pk=exclude.pk)
    current = queryset.aggregate(top=Max('ordering'))['top']
    return 0 if current is None else current + 1


def _clear_review(issue):
    issue.ready_for_review = False
    issue.review_rejected = False


def _reindex(issues):
    """Write 0..n-1 orderings for a column, touching only rows that changed"""
    for index, issue in enumerate(issues):
        if issue.ordering != index:
            Issue.objects.filter(pk=issue.pk).update(ordering=index)
            issue.ordering = index


@transaction.atomic
def create_issue(data, user=None):
    issue = Issue(**data)
    issue.created_by = user
    if 'ordering' not in data:
        issue.ordering = next_ordering(issue.status_id)
    if issue.owner and not issue.owner_name:
        issue.owner_name = issue.owner.display_name
    issue.save()
    logger.info(f"Created issue {issue.id} '{issue.title}'")
    return issue


@transaction.atomic
def move_issue(issue, target_status, target_index, user=None):
    """
    Move an issue into target_status at target_index.

    Both the source and the target column are re-indexed to 0..n-1.
    Moving into a done column clears the review flags.
    """
    issue = Issue.objects.select_for_update().get(pk=issue.pk)
    source_status_id = issue.status_id

    column = list(
        Issue.objects.select_for_update()
        .filter(status=target_status)
        .exclude(pk=issue.pk)
        .order_by('ordering', 'id')
    )
    index = max(0, min(int(target_index), len(column)))
    column.insert(index, issue)

    issue.status = target_status
    if target_status.is_done:
        _clear_review(issue)
    issue.ordering = index
    issue.save(update_fields=['status', 'ordering', 'ready_for_review', 'review_rejected', 'updated_at'])
    _reindex(column)

    if source_status_id != target_status.id:
        source_column = list(
            Issue.objects.select_for_update()
            .filter(status_id=source_status_id)
            .exclude(pk=issue.pk)
            .order_by('ordering', 'id')
        )
        _reindex(source_column)

    logger.info(f"Moved issue {issue.id} to '{target_status.name}' at {index}")
    return issue


@transaction.atomic
def change_status(issue, target_status, user=None):
    """Send an issue to the end of another column and take it off the roadmap"""
    issue = Issue.objects.select_for_update().get(pk=issue.pk)
    issue.status = target_status
    issue.ordering = next_ordering(target_status.id, exclude=issue)
    issue.roadmap_bucket = None
    _clear_review(issue)
    issue.save()
    logger.info(f"Issue {issue.id} status changed to '{target_status.name}'")
    return issue


def request_review(issue, user):
    if issue.owner_id != user.id:
        raise BusinessRuleError("Only the issue owner can request a review")
    if issue.status and issue.status.is_done and not issue.ready_for_review and not issue.review_rejected:
        raise BusinessRuleError("Issue is already closed")
    issue.ready_for_review = True
    issue.review_rejected = False
    issue.save(update_fields=['ready_for_review', 'review_rejected', 'updated_at'])
    return issue


def reject_review(issue, user=None):
    if not issue.ready_for_review or issue.review_rejected:
        raise BusinessRuleError("Issue is not waiting for review")
    issue.review_rejected = True
    issue.save(update_fields=['review_rejected', 'updated_at'])
    return issue


def build_board(statuses, issues):
    """Group issues under their status, each column ordered by `ordering`"""
    columns = {status.id: [] for status in statuses}
    unassigned = []
    for issue in issues:
        columns.get(issue.status_id, unassigned).append(issue)
    for column in columns.values():
        column.sort(key=lambda issue: (issue.ordering, issue.id))
    unassigned.sort(key=lambda issue: (issue.ordering, issue.id))
    return [(status, columns[status.id]) for status in statuses], unassigned


def issue_stats(statuses, issues):
    points_by_status = {status.id: 0 for status in statuses}
    done_ids = {status.id for status in statuses if status.is_done}
    for issue in issues:
        if issue.status_id in points_by_status:
            points_by_status[issue.status_id] += issue.estimate or 0

    total_points = sum(points_by_status.values())
    done_points = sum(points for status_id, points in points_by_status.items() if status_id in done_ids)
    completion = round(done_points / total_points * 100) if total_points > 0 else 0

    return {
        'points_by_status': [
            {'status': status.id, 'name': status.name, 'points': points_by_status[status.id]}
            for status in statuses
        ],
        'total_points': total_points,
        'done_points': done_points,
        'completion_percentage': completion,
        'completed_count': sum(1 for issue in issues if issue.status_id in done_ids),
        'in_progress_count': sum(1 for issue in issues if issue.status_id and issue.status_id not in done_ids),
        'ready_for_review_count': sum(1 for issue in issues if issue.ready_for_review and not issue.review_rejected),
    }
