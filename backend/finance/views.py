import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from backend.core.permissions import module_access
from backend.core.utils import create_audit_log, paginated_response_data
from .models import Contribution, Income, Expense
from .serializers import ContributionSerializer, IncomeSerializer, ExpenseSerializer
from .filters import transaction_filter_for
from . import services

logger = logging.getLogger('backend.finance')

FinanceAccess = module_access('finance')

LEDGERS = {
    'contribution': (Contribution, ContributionSerializer, transaction_filter_for(Contribution, 'contribution_type')),
    'income': (Income, IncomeSerializer, transaction_filter_for(Income, 'income_type')),
    'expense': (Expense, ExpenseSerializer, transaction_filter_for(Expense, 'expense_type')),
}


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, FinanceAccess])
def transaction_list_create(request, kind):
    """List or record contributions, income or expenses"""
    model, serializer_class, filter_class = LEDGERS[kind]

    if request.method == 'GET':
        queryset = model.objects.select_related('paid_to_user', 'recorded_by')
        filterset = filter_class(request.query_params, queryset=queryset)
        queryset = filterset.qs.order_by('-payment_at', '-created_at')
        return Response(paginated_response_data(request, queryset, serializer_class))
    else:
        serializer = serializer_class(data=request.data)
        if serializer.is_valid():
            instance = services.create_transaction(model, dict(serializer.validated_data), user=request.user)
            create_audit_log(request, 'create', model.__name__, instance.id,
                             changes={'amount': str(instance.amount)}, object_reference=instance.transaction_id)
            return Response(serializer_class(instance).data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, FinanceAccess])
def transaction_detail(request, kind, pk):
    """Retrieve, update or delete a finance row"""
    model, serializer_class, _ = LEDGERS[kind]
    instance = get_object_or_404(model, pk=pk)

    if request.method == 'GET':
        return Response(serializer_class(instance).data)

    if kind == 'income':
        services.require_manual_income(instance)

    if request.method in ('PUT', 'PATCH'):
        serializer = serializer_class(instance, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            create_audit_log(request, 'update', model.__name__, instance.id, object_reference=instance.transaction_id)
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        reference = instance.transaction_id
        instance.delete()
        create_audit_log(request, 'delete', model.__name__, pk, object_reference=reference)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated, FinanceAccess])
def finance_summary(request):
    """Ledger totals and net cash, optionally within start_date/end_date"""
    start = request.query_params.get('start_date', None)
    end = request.query_params.get('end_date', None)
    return Response(services.finance_summary(start, end))


@api_view(['GET'])
@permission_classes([IsAuthenticated, FinanceAccess])
def recent_transactions(request):
    """Most recent rows across contributions, income and expenses"""
    try:
        limit = min(max(int(request.query_params.get('limit', 10)), 1), 100)
    except ValueError:
        return Response({'error': 'limit must be an integer'}, status=status.HTTP_400_BAD_REQUEST)
    return Response(services.recent_transactions(limit=limit))


@api_view(['GET'])
@permission_classes([IsAuthenticated, FinanceAccess])
def search_transactions(request):
    """Search every ledger by transaction id or reason"""
    query = request.query_params.get('q', '').strip()
    if not query:
        return Response({'error': 'Query parameter q is required'}, status=status.HTTP_400_BAD_REQUEST)
    return Response(services.recent_transactions(limit=50, search=query))
