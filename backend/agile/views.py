import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.contrib.auth import get_user_model
from django.shortcuts import get_object_or_404
from backend.core.permissions import module_access
from backend.core.utils import create_audit_log
from .models import Status, RoadmapBucket, Issue
from .serializers import (
    StatusSerializer, RoadmapBucketSerializer, IssueSerializer, MoveIssueSerializer, ChangeStatusSerializer
)
from .filters import IssueFilter
from . import services

logger = logging.getLogger('backend.agile')

AgileAccess = module_access('agile')

User = get_user_model()


def _filtered_issues(request):
    queryset = Issue.objects.select_related('status', 'owner', 'roadmap_bucket')
    return IssueFilter(request.query_params, queryset=queryset, request=request).qs


# Statuses
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, AgileAccess])
def status_list_create(request):
    """List board columns or add a new one at the end"""
    if request.method == 'GET':
        serializer = StatusSerializer(Status.objects.all(), many=True)
        return Response(serializer.data)
    else:
        serializer = StatusSerializer(data=request.data)
        if serializer.is_valid():
            position = serializer.validated_data.get('position', services.next_status_position())
            serializer.save(created_by=request.user, position=position)
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, AgileAccess])
def status_detail(request, pk):
    """Retrieve, update or delete a board column; its issues become unassigned"""
    board_status = get_object_or_404(Status, pk=pk)

    if request.method == 'GET':
        return Response(StatusSerializer(board_status).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = StatusSerializer(board_status, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        board_status.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# Roadmap buckets
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, AgileAccess])
def bucket_list_create(request):
    if request.method == 'GET':
        serializer = RoadmapBucketSerializer(RoadmapBucket.objects.all(), many=True)
        return Response(serializer.data)
    else:
        serializer = RoadmapBucketSerializer(data=request.data)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, AgileAccess])
def bucket_detail(request, key):
    bucket = get_object_or_404(RoadmapBucket, key=key)

    if request.method == 'GET':
        return Response(RoadmapBucketSerializer(bucket).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = RoadmapBucketSerializer(bucket, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        bucket.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# Issues
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, AgileAccess])
def issue_list_create(request):
    """
    List issues or create one.

    Query params: status_ids, owner_ids (comma separated), tag, ready_only,
    assigned_to_me, due_range (overdue, today, week), sort (deadline, status),
    priority, roadmap_bucket.
    """
    if request.method == 'GET':
        serializer = IssueSerializer(_filtered_issues(request), many=True)
        return Response(serializer.data)
    else:
        serializer = IssueSerializer(data=request.data)
        if serializer.is_valid():
            issue = services.create_issue(dict(serializer.validated_data), user=request.user)
            create_audit_log(request, 'create', 'Issue', issue.id, object_reference=issue.title)
            return Response(IssueSerializer(issue).data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, AgileAccess])
def issue_detail(request, pk):
    issue = get_object_or_404(Issue, pk=pk)

    if request.method == 'GET':
        return Response(IssueSerializer(issue).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = IssueSerializer(issue, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        title = issue.title
        issue.delete()
        create_audit_log(request, 'delete', 'Issue', pk, object_reference=title)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated, AgileAccess])
def issue_move(request, pk):
    """Drag-and-drop: place the issue at `index` within `status`"""
    issue = get_object_or_404(Issue, pk=pk)
    serializer = MoveIssueSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    source_status_id = issue.status_id
    target_status = serializer.validated_data['status']
    issue = services.move_issue(issue, target_status, serializer.validated_data['index'], user=request.user)
    create_audit_log(request, 'issue_move', 'Issue', issue.id,
                     changes={'from_status': source_status_id, 'to_status': target_status.id, 'index': issue.ordering},
                     object_reference=issue.title)
    return Response(IssueSerializer(issue).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, AgileAccess])
def issue_change_status(request, pk):
    """Send the issue to the bottom of another column"""
    issue = get_object_or_404(Issue, pk=pk)
    serializer = ChangeStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    issue = services.change_status(issue, serializer.validated_data['status'], user=request.user)
    return Response(IssueSerializer(issue).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, AgileAccess])
def issue_request_review(request, pk):
    issue = get_object_or_404(Issue.objects.select_related('status'), pk=pk)
    issue = services.request_review(issue, request.user)
    return Response(IssueSerializer(issue).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, AgileAccess])
def issue_reject_review(request, pk):
    issue = get_object_or_404(Issue, pk=pk)
    issue = services.reject_review(issue, request.user)
    return Response(IssueSerializer(issue).data)


# Board and stats
@api_view(['GET'])
@permission_classes([IsAuthenticated, AgileAccess])
def board(request):
    """Columns ordered by position, each with its filtered issues ordered by `ordering`"""
    statuses = list(Status.objects.all())
    columns, unassigned = services.build_board(statuses, list(_filtered_issues(request)))
    return Response({
        'columns': [
            {'status': StatusSerializer(column_status).data, 'issues': IssueSerializer(issues, many=True).data}
            for column_status, issues in columns
        ],
        'unassigned': IssueSerializer(unassigned, many=True).data,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, AgileAccess])
def stats(request):
    statuses = list(Status.objects.all())
    return Response(services.issue_stats(statuses, list(_filtered_issues(request))))


@api_view(['GET'])
@permission_classes([IsAuthenticated, AgileAccess])
def owners(request):
    """Active users that issues can be assigned to"""
    users = User.objects.filter(is_active=True).order_by('full_name', 'username')
    return Response([{'id': user.id, 'name': user.display_name} for user in users])
