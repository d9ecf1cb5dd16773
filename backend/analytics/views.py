import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from backend.core.permissions import module_access
from backend.core.utils import create_audit_log
from .models import AnalyticsTarget
from .serializers import AnalyticsTargetSerializer, TargetProgressSerializer
from . import services

logger = logging.getLogger('backend.analytics')

AnalyticsAccess = module_access('analytics')


def _date_range(request):
    """(start, end) from ?date_range=today|month|quarter|year|custom&start_date=&end_date="""
    return services.resolve_date_range(
        request.query_params.get('date_range', None),
        request.query_params.get('start_date', None),
        request.query_params.get('end_date', None),
    )


def _range_payload(start, end):
    return {'start_date': start, 'end_date': end}


@api_view(['GET'])
@permission_classes([IsAuthenticated, AnalyticsAccess])
def sales_metrics(request):
    start, end = _date_range(request)
    return Response({**_range_payload(start, end), **services.sales_metrics(start, end)})


@api_view(['GET'])
@permission_classes([IsAuthenticated, AnalyticsAccess])
def sales_by_tag(request):
    start, end = _date_range(request)
    tag_id = request.query_params.get('tag', None)
    return Response({**_range_payload(start, end), 'results': services.sales_by_tag(start, end, tag_id=tag_id)})


@api_view(['GET'])
@permission_classes([IsAuthenticated, AnalyticsAccess])
def raw_material_waste(request):
    start, end = _date_range(request)
    return Response({**_range_payload(start, end), 'results': services.raw_material_waste(start, end)})


@api_view(['GET'])
@permission_classes([IsAuthenticated, AnalyticsAccess])
def produced_goods(request):
    start, end = _date_range(request)
    tag_id = request.query_params.get('tag', None)
    return Response({**_range_payload(start, end), 'results': services.produced_goods(start, end, tag_id=tag_id)})


@api_view(['GET'])
@permission_classes([IsAuthenticated, AnalyticsAccess])
def financial_verdict(request):
    start, end = _date_range(request)
    return Response({**_range_payload(start, end), **services.financial_verdict(start, end)})


@api_view(['GET'])
@permission_classes([IsAuthenticated, AnalyticsAccess])
def recommendations(request):
    start, end = _date_range(request)
    return Response({**_range_payload(start, end), 'results': services.recommendations(start, end)})


@api_view(['GET'])
@permission_classes([IsAuthenticated, AnalyticsAccess])
def overview(request):
    """Sales metrics, verdict and recommendations for one range in a single call"""
    start, end = _date_range(request)
    return Response({
        **_range_payload(start, end),
        'sales': services.sales_metrics(start, end),
        'verdict': services.financial_verdict(start, end),
        'recommendations': services.recommendations(start, end),
    })


# Targets
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, AnalyticsAccess])
def target_list_create(request):
    """List targets (?status=active by default, 'all' for every status) or create one"""
    if request.method == 'GET':
        queryset = AnalyticsTarget.objects.select_related('tag')
        target_status = request.query_params.get('status', 'active')
        if target_status != 'all':
            queryset = queryset.filter(status=target_status)
        return Response(AnalyticsTargetSerializer(queryset, many=True).data)
    else:
        serializer = AnalyticsTargetSerializer(data=request.data)
        if serializer.is_valid():
            target = serializer.save(created_by=request.user)
            create_audit_log(request, 'create', 'AnalyticsTarget', target.id, object_reference=target.target_name)
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, AnalyticsAccess])
def target_detail(request, pk):
    target = get_object_or_404(AnalyticsTarget, pk=pk)

    if request.method == 'GET':
        return Response(AnalyticsTargetSerializer(target).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = AnalyticsTargetSerializer(target, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        name = target.target_name
        target.delete()
        create_audit_log(request, 'delete', 'AnalyticsTarget', pk, object_reference=name)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated, AnalyticsAccess])
def target_progress(request, pk):
    target = get_object_or_404(AnalyticsTarget.objects.select_related('tag'), pk=pk)
    progress = {'target': target, **services.target_progress(target)}
    return Response(TargetProgressSerializer(progress).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, AnalyticsAccess])
def active_target_progress(request):
    """Progress of every active target"""
    targets = AnalyticsTarget.objects.filter(status='active').select_related('tag')
    progress = [{'target': target, **services.target_progress(target)} for target in targets]
    return Response(TargetProgressSerializer(progress, many=True).data)
