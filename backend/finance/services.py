"""Transaction numbering, summaries and search across the three ledgers"""
import logging
from datetime import datetime, time
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Q, Sum, Count
from django.utils import timezone

from backend.core.exceptions import BusinessRuleError
from backend.core.utils import next_sequence_number
from .models import Contribution, Income, Expense

logger = logging.getLogger('backend.finance')

TRANSACTION_MODELS = {
    'contribution': Contribution,
    'income': Income,
    'expense': Expense,
}

SALES_PAYMENT_METHODS = {
    'Cash': 'cash',
    'UPI': 'upi',
    'Bank': 'bank_transfer',
}


def next_transaction_id(model):
    return next_sequence_number(model.objects.all(), 'transaction_id', model.transaction_prefix, 3)


@transaction.atomic
def create_transaction(model, data, user=None):
    """Create a finance row with the next transaction id"""
    instance = model(**data)
    instance.transaction_id = next_transaction_id(model)
    instance.recorded_by = user
    if not instance.payment_at:
        instance.payment_at = timezone.now()
    try:
        instance.full_clean()
    except ValidationError as e:
        raise BusinessRuleError(e.messages)
    instance.save()
    logger.info(f"Recorded {model.__name__.lower()} {instance.transaction_id} for {instance.amount}")
    return instance


def require_manual_income(income):
    if income.from_sales_payment:
        raise BusinessRuleError(
            f"Income {income.transaction_id} was created by a sales payment for order "
            f"{income.order_number}; edit the payment instead"
        )


# Sales payment mirror

def _sales_income_fields(payment):
    order = payment.order
    return {
        'amount': payment.amount_received,
        'reason': f"Payment for Order {order.order_number} - Customer: {order.customer.name}",
        'payment_method': SALES_PAYMENT_METHODS.get(payment.payment_mode, 'cash'),
        'payment_at': timezone.make_aware(datetime.combine(payment.payment_date, time.min)),
        'bank_reference': payment.transaction_reference or '',
        'evidence_url': payment.evidence_url or '',
        'description': payment.notes or '',
        'order_number': order.order_number,
    }


def create_income_for_payment(payment, user=None):
    """Mirror a sales order payment into the income ledger"""
    fields = _sales_income_fields(payment)
    income = Income(
        transaction_id=next_transaction_id(Income),
        income_type='sales',
        source='Sales order',
        from_sales_payment=True,
        recorded_by=user,
        **fields
    )
    income.save()
    logger.info(f"Created income {income.transaction_id} for payment on {fields['order_number']}")
    return income


def sync_income_for_payment(payment):
    income = payment.income
    if income is None:
        return None
    for field, value in _sales_income_fields(payment).items():
        setattr(income, field, value)
    income.save()
    return income


# Reporting

def _totals(model, start=None, end=None):
    queryset = model.objects.all()
    if start:
        queryset = queryset.filter(payment_at__date__gte=start)
    if end:
        queryset = queryset.filter(payment_at__date__lte=end)
    totals = queryset.aggregate(total=Sum('amount'), count=Count('id'))
    return totals['total'] or Decimal('0'), totals['count']


def finance_summary(start=None, end=None):
    """Totals and counts per ledger and the resulting net cash position"""
    contributions, contribution_count = _totals(Contribution, start, end)
    income, income_count = _totals(Income, start, end)
    expenses, expense_count = _totals(Expense, start, end)
    return {
        'total_contributions': contributions,
        'total_income': income,
        'total_expenses': expenses,
        'contribution_count': contribution_count,
        'income_count': income_count,
        'expense_count': expense_count,
        'net_cash': contributions + income - expenses,
    }


def _as_row(kind, instance):
    return {
        'kind': kind,
        'id': instance.id,
        'transaction_id': instance.transaction_id,
        'amount': instance.amount,
        'reason': instance.reason,
        'payment_method': instance.payment_method,
        'payment_at': instance.payment_at,
        'category': instance.category,
    }


def recent_transactions(limit=10, search=None):
    """Newest rows across all three ledgers, merged"""
    rows = []
    for kind, model in TRANSACTION_MODELS.items():
        queryset = model.objects.all()
        if search:
            queryset = queryset.filter(Q(transaction_id__icontains=search) | Q(reason__icontains=search))
        rows.extend(_as_row(kind, instance) for instance in queryset.order_by('-payment_at', '-created_at')[:limit])
    rows.sort(key=lambda row: row['payment_at'], reverse=True)
    return rows[:limit]
