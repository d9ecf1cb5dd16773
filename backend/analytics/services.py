"""
Sales, production and finance aggregations behind the analytics pages.

Every aggregation takes an inclusive (start, end) date range and is cached
under the analytics key prefix; writes to the source tables invalidate it
(see backend.core.cache_signals).
"""
import logging
from datetime import date, timedelta
from decimal import Decimal

from django.conf import settings
from django.db.models import Sum, Count
from django.utils import timezone
from django.utils.dateparse import parse_date

from backend.core.cache_utils import cached_query
from backend.core.exceptions import BusinessRuleError
from backend.finance.models import Income, Expense
from backend.operations.models import RawMaterial, WasteRecord, ProcessedGood
from backend.sales.models import Order, OrderItem, OrderPayment, DeliveryDispatch
from backend.sales.services import orders_with_paid

logger = logging.getLogger('backend.analytics')

ZERO = Decimal('0')
CACHE_TTL = settings.ANALYTICS_CACHE_TTL

DATE_RANGE_PRESETS = ['today', 'month', 'quarter', 'year', 'custom']
DEFAULT_RANGE_DAYS = 30

SEVERITY_ORDER = {'critical': 0, 'warning': 1, 'info': 2}


def _parse(value, field):
    if isinstance(value, date) or value is None:
        return value
    parsed = parse_date(value)
    if parsed is None:
        raise BusinessRuleError(f"Invalid {field}: {value}")
    return parsed


def resolve_date_range(preset=None, start_date=None, end_date=None, today=None):
    """
    Turn a preset into an inclusive (start, end) pair.

    today, month, quarter and year run from the start of the period to
    today; custom needs start_date and defaults end_date to today; no
    preset means the last 30 days.
    """
    today = today or timezone.localdate()

    if not preset:
        return today - timedelta(days=DEFAULT_RANGE_DAYS), today
    if preset not in DATE_RANGE_PRESETS:
        raise BusinessRuleError(f"Unknown date range '{preset}'. Use one of: {', '.join(DATE_RANGE_PRESETS)}")

    if preset == 'today':
        return today, today
    if preset == 'month':
        return today.replace(day=1), today
    if preset == 'quarter':
        first_month = (today.month - 1) // 3 * 3 + 1
        return today.replace(month=first_month, day=1), today
    if preset == 'year':
        return today.replace(month=1, day=1), today

    start = _parse(start_date, 'start_date')
    end = _parse(end_date, 'end_date') or today
    if start is None:
        raise BusinessRuleError("start_date is required for a custom date range")
    if end < start:
        raise BusinessRuleError("end_date cannot be before start_date")
    return start, end


def previous_period(start, end):
    """The equal-length period that ends the day before start"""
    length = (end - start).days + 1
    previous_end = start - timedelta(days=1)
    return previous_end - timedelta(days=length - 1), previous_end


def _pct(part, whole):
    if not whole:
        return 0.0
    return float(part) / float(whole) * 100


# Sales

def _orders_in(start, end):
    return Order.objects.filter(order_date__gte=start, order_date__lte=end)


@cached_query(cache_ttl=CACHE_TTL, key_prefix='analytics_sales_metrics')
def sales_metrics(start, end):
    orders = _orders_in(start, end)
    totals = orders.aggregate(total=Sum('total_amount'), discount=Sum('discount_amount'), count=Count('id'))
    sales_value = (totals['total'] or ZERO) - (totals['discount'] or ZERO)
    order_count = totals['count']

    quantity = OrderItem.objects.filter(order__in=orders).aggregate(total=Sum('quantity'))['total'] or ZERO
    collected = OrderPayment.objects.filter(order__in=orders).aggregate(total=Sum('amount_received'))['total'] or ZERO

    pending = ZERO
    for order in orders_with_paid(orders).only('id', 'total_amount', 'discount_amount'):
        pending += max(ZERO, order.net_amount - order.paid)

    return {
        'total_sales_value': sales_value,
        'total_quantity_sold': quantity,
        'number_of_orders': order_count,
        'average_order_value': (sales_value / order_count).quantize(Decimal('0.01')) if order_count else ZERO,
        'payment_collected': collected,
        'payment_pending': pending,
    }


@cached_query(cache_ttl=CACHE_TTL, key_prefix='analytics_sales_by_tag')
def sales_by_tag(start, end, tag_id=None):
    """Quantity and value sold per produced-goods tag, highest value first"""
    items = OrderItem.objects.filter(order__order_date__gte=start, order__order_date__lte=end)
    if tag_id:
        items = items.filter(processed_good__produced_goods_tag_id=tag_id)
    rows = items.values(
        'processed_good__produced_goods_tag_id',
        'processed_good__produced_goods_tag__key',
        'processed_good__produced_goods_tag__display_name',
    ).annotate(
        quantity=Sum('quantity'),
        value=Sum('line_total'),
        orders=Count('order', distinct=True),
    ).order_by('-value')

    return [
        {
            'tag_id': row['processed_good__produced_goods_tag_id'],
            'tag_key': row['processed_good__produced_goods_tag__key'],
            'tag_name': row['processed_good__produced_goods_tag__display_name'] or 'Untagged',
            'order_count': row['orders'],
            'total_quantity_sold': row['quantity'] or ZERO,
            'total_sales_value': row['value'] or ZERO,
        }
        for row in rows
    ]


# Production

@cached_query(cache_ttl=CACHE_TTL, key_prefix='analytics_raw_material_waste')
def raw_material_waste(start, end):
    """
    Per raw-material tag, the worst lot waste percentage (wasted / received)
    among lots with waste recorded in the range.
    """
    wasted_by_lot = dict(
        WasteRecord.objects.filter(lot_type='raw_material', waste_date__gte=start, waste_date__lte=end)
        .values('item_id').annotate(wasted=Sum('quantity_wasted')).values_list('item_id', 'wasted')
    )
    by_tag = {}
    for lot in RawMaterial.objects.filter(id__in=wasted_by_lot.keys()).select_related('tag'):
        if lot.tag is None:
            continue
        wasted = wasted_by_lot[lot.id]
        waste_pct = _pct(wasted, lot.quantity_received)
        entry = by_tag.setdefault(lot.tag_id, {
            'tag_id': lot.tag_id,
            'tag_key': lot.tag.key,
            'tag_name': lot.tag.display_name,
            'total_intake': ZERO,
            'total_waste': ZERO,
            'max_waste_percentage': 0.0,
        })
        entry['total_intake'] += lot.quantity_received
        entry['total_waste'] += wasted
        entry['max_waste_percentage'] = max(entry['max_waste_percentage'], round(waste_pct, 2))
    return sorted(by_tag.values(), key=lambda entry: entry['max_waste_percentage'], reverse=True)


@cached_query(cache_ttl=CACHE_TTL, key_prefix='analytics_produced_goods')
def produced_goods(start, end, tag_id=None):
    """Production, stock and sell-through (delivered / created) per produced-goods tag"""
    goods = ProcessedGood.objects.filter(production_date__gte=start, production_date__lte=end)
    if tag_id:
        goods = goods.filter(produced_goods_tag_id=tag_id)

    rows = goods.values(
        'produced_goods_tag_id', 'produced_goods_tag__key', 'produced_goods_tag__display_name'
    ).annotate(
        batches=Count('batch_reference', distinct=True),
        created=Sum('quantity_created'),
        available=Sum('quantity_available'),
    )
    delivered = dict(
        DeliveryDispatch.objects.filter(processed_good__in=goods)
        .values('processed_good__produced_goods_tag_id')
        .annotate(total=Sum('quantity_delivered'))
        .values_list('processed_good__produced_goods_tag_id', 'total')
    )

    result = []
    for row in rows:
        sold = delivered.get(row['produced_goods_tag_id']) or ZERO
        created = row['created'] or ZERO
        result.append({
            'tag_id': row['produced_goods_tag_id'],
            'tag_key': row['produced_goods_tag__key'],
            'tag_name': row['produced_goods_tag__display_name'] or 'Untagged',
            'batches_produced': row['batches'],
            'total_quantity_produced': created,
            'total_quantity_available': row['available'] or ZERO,
            'total_quantity_sold': sold,
            'sell_through_rate': round(_pct(sold, created), 2),
        })
    return sorted(result, key=lambda entry: entry['tag_name'])


# Finance

def _ledger_total(model, start, end, **filters):
    queryset = model.objects.filter(payment_at__date__gte=start, payment_at__date__lte=end, **filters)
    return queryset.aggregate(total=Sum('amount'))['total'] or ZERO


@cached_query(cache_ttl=CACHE_TTL, key_prefix='analytics_cash')
def cash_totals(start, end):
    income = _ledger_total(Income, start, end)
    expenses = _ledger_total(Expense, start, end)
    return {
        'total_income': income,
        'total_expense': expenses,
        'operational_expense': _ledger_total(Expense, start, end, expense_type='operational'),
        'net_position': income - expenses,
    }


def income_change_percentage(income, previous_income):
    if previous_income > 0:
        return float(income - previous_income) / float(previous_income) * 100
    return 100.0 if income > 0 else 0.0


def financial_verdict(start, end):
    """Overall health, revenue trend, expense pressure and inventory risk with a one-line summary"""
    current = cash_totals(start, end)
    previous = cash_totals(*previous_period(start, end))

    income = current['total_income']
    net = current['net_position']
    income_change = income_change_percentage(income, previous['total_income'])
    expense_ratio = _pct(current['total_expense'], income)

    if income_change > 5:
        revenue_trend = 'growing'
    elif income_change < -5:
        revenue_trend = 'declining'
    else:
        revenue_trend = 'flat'

    if expense_ratio > 80:
        expense_pressure = 'high'
    elif expense_ratio < 50:
        expense_pressure = 'low'
    else:
        expense_pressure = 'normal'

    if net < 0 or expense_ratio > 90 or income_change < -20:
        overall_health = 'critical'
    elif net < income * Decimal('0.1') or expense_ratio > 70 or income_change < -10:
        overall_health = 'warning'
    else:
        overall_health = 'stable'

    goods = produced_goods(start, end)
    average_sell_through = sum(row['sell_through_rate'] for row in goods) / len(goods) if goods else 0.0
    if average_sell_through < 30:
        inventory_risk = 'overstock'
    elif average_sell_through > 80:
        inventory_risk = 'shortage'
    else:
        inventory_risk = 'balanced'

    if revenue_trend == 'growing':
        message = f"Sales increased by {abs(income_change):.1f}%"
    elif revenue_trend == 'declining':
        message = f"Sales decreased by {abs(income_change):.1f}%"
    else:
        message = "Sales remained relatively flat"

    if expense_pressure == 'high':
        message += (f", but expenses grew faster than income ({expense_ratio:.1f}% of income), "
                    f"resulting in lower net cash movement.")
    elif expense_pressure == 'low':
        message += f", and expenses are well-controlled ({expense_ratio:.1f}% of income), resulting in positive cash flow."
    else:
        message += f", with expenses at {expense_ratio:.1f}% of income."

    return {
        'overall_health': overall_health,
        'revenue_trend': revenue_trend,
        'expense_pressure': expense_pressure,
        'inventory_risk': inventory_risk,
        'message': message,
        'total_income': income,
        'total_expense': current['total_expense'],
        'net_position': net,
        'previous_income': previous['total_income'],
        'income_change_percentage': round(income_change, 2),
        'expense_ratio': round(expense_ratio, 2),
        'average_sell_through': round(average_sell_through, 2),
    }


def recommendations(start, end):
    """Actionable warnings, critical first"""
    result = []

    for row in raw_material_waste(start, end):
        waste = row['max_waste_percentage']
        if waste > 15:
            result.append({
                'id': f"waste-{row['tag_id']}",
                'type': 'waste',
                'severity': 'critical' if waste > 25 else 'warning',
                'title': 'High Waste Detected',
                'message': f"High waste detected in {row['tag_name']}. Waste rate: {waste:.1f}%",
                'related_tag_id': row['tag_id'],
                'related_tag_name': row['tag_name'],
            })

    for row in produced_goods(start, end):
        rate = row['sell_through_rate']
        if rate < 30 and row['total_quantity_available'] > 0:
            result.append({
                'id': f"sell-through-{row['tag_id']}",
                'type': 'sell_through',
                'severity': 'critical' if rate < 15 else 'warning',
                'title': 'Low Sales Observed',
                'message': f"Low sales observed for {row['tag_name']}. Sell-through rate: {rate:.1f}%",
                'related_tag_id': row['tag_id'],
                'related_tag_name': row['tag_name'],
            })

    cash = cash_totals(start, end)
    if cash['operational_expense'] > 0 and cash['total_income'] > 0:
        ratio = _pct(cash['operational_expense'], cash['total_income'])
        if ratio > 20:
            result.append({
                'id': 'expense-growth',
                'type': 'expense',
                'severity': 'critical' if ratio > 30 else 'warning',
                'title': 'Rising Expenses',
                'message': (f"Operational costs increased without proportional sales growth. "
                            f"Expenses are {ratio:.1f}% of income."),
            })

    metrics = sales_metrics(start, end)
    if metrics['payment_pending'] > 0 and metrics['total_sales_value'] > 0:
        ratio = _pct(metrics['payment_pending'], metrics['total_sales_value'])
        if ratio > 30:
            result.append({
                'id': 'pending-payments',
                'type': 'payment',
                'severity': 'critical' if ratio > 50 else 'warning',
                'title': 'High Pending Payments',
                'message': (f"Pending payments are {ratio:.1f}% of sales. "
                            f"Consider following up on outstanding invoices."),
            })

    result.sort(key=lambda item: SEVERITY_ORDER.get(item['severity'], 2))
    return result


# Targets

def target_achieved(target):
    start, end = target.period_start, target.period_end
    if target.target_type == 'sales_count':
        return Decimal(sales_metrics(start, end)['number_of_orders'])
    if target.target_type == 'sales_revenue':
        return sales_metrics(start, end)['total_sales_value']
    if target.tag_id is None:
        return ZERO
    if target.target_type == 'product_sales':
        return sum((row['total_quantity_sold'] for row in sales_by_tag(start, end, tag_id=target.tag_id)), ZERO)
    if target.target_type == 'production_quantity':
        return sum((row['total_quantity_produced'] for row in produced_goods(start, end, tag_id=target.tag_id)), ZERO)
    return ZERO


def target_progress(target, today=None):
    """
    Achieved vs target for the target period. A target is on track while its
    percentage is at most 10 points behind the share of the period elapsed.
    """
    today = today or timezone.localdate()
    achieved = target_achieved(target)
    target_value = target.target_value

    remaining = max(ZERO, target_value - achieved)
    percentage = _pct(achieved, target_value) if target_value > 0 else 0.0

    days_remaining = max(0, (target.period_end - today).days)
    total_days = (target.period_end - target.period_start).days
    days_elapsed = total_days - days_remaining
    expected = days_elapsed / total_days * 100 if days_elapsed > 0 and total_days > 0 else 0.0

    return {
        'achieved': achieved,
        'remaining': remaining,
        'percentage': round(min(100.0, percentage), 2),
        'days_remaining': days_remaining,
        'expected_percentage': round(expected, 2),
        'is_on_track': percentage >= expected - 10,
    }
