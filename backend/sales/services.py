"""
Order workflows: items, deliveries, payments, holds and locks.

Orders never touch inventory when they are created or edited; processed
goods are reduced only by record_delivery. Every workflow recomputes the
order's status and payment status before returning.
"""
import logging
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.db.models import Sum, Max, Count, DecimalField, Value, OuterRef, Subquery
from django.db.models.functions import Coalesce
from django.utils import timezone

from backend.core.exceptions import BusinessRuleError, OrderLockedError
from backend.core.utils import next_sequence_number
from backend.finance.services import create_income_for_payment, sync_income_for_payment
from backend.operations.models import ProcessedGood
from backend.operations.services import reduce_processed_good
from .models import (
    Order, OrderItem, DeliveryDispatch, OrderPayment, Invoice, OrderLockLog, OrderAuditLog,
    ThirdPartyDelivery, CustomerType
)

logger = logging.getLogger('backend.sales')

ZERO = Decimal('0')
PAYMENT_TOLERANCE = Decimal('0.01')
MONEY = DecimalField(max_digits=14, decimal_places=2)

DEFAULT_CUSTOMER_TYPES = ['Hotel', 'Restaurant', 'Retail', 'Direct', 'Other']


def next_order_number():
    return next_sequence_number(Order.objects.all(), 'order_number', 'ORD-', 6)


def next_invoice_number():
    return next_sequence_number(Invoice.objects.all(), 'invoice_number', 'INV-', 6)


def active_customer_type_keys():
    return set(CustomerType.objects.filter(status='active').values_list('key', flat=True))


def log_order_event(order, event_type, user=None, description='', data=None):
    return OrderAuditLog.objects.create(
        order=order,
        event_type=event_type,
        performed_by=user if user and user.is_authenticated else None,
        description=description,
        event_data=data or {},
    )


def _require_unlocked(order):
    if order.is_locked:
        raise OrderLockedError(f"Order {order.order_number} is locked and cannot be modified")


def _lock_order_row(order):
    return Order.objects.select_for_update().select_related('customer').get(pk=order.pk)


# Status

def total_paid(order, exclude_payment=None):
    payments = order.payments.all()
    if exclude_payment is not None:
        payments = payments.exclude(pk=exclude_payment.pk)
    return payments.aggregate(total=Sum('amount_received'))['total'] or ZERO


def _validate_payment_amount(order, amount, payment=None):
    """Amount must be positive and no more than what is still owed, ignoring `payment` itself"""
    if amount <= 0:
        raise BusinessRuleError("Payment amount must be greater than zero")
    remaining = max(ZERO, order.net_amount - total_paid(order, exclude_payment=payment))
    if amount > remaining:
        raise BusinessRuleError(
            f"Payment amount cannot exceed remaining amount ({remaining}) for order {order.order_number}"
        )


def compute_payment_status(net_amount, paid):
    if paid <= 0:
        return 'READY_FOR_PAYMENT'
    if paid >= net_amount - PAYMENT_TOLERANCE:
        return 'FULL_PAYMENT'
    return 'PARTIAL_PAYMENT'


def compute_order_status(is_on_hold, net_amount, paid, has_items):
    if is_on_hold:
        return 'HOLD'
    if net_amount > 0 and paid >= net_amount - PAYMENT_TOLERANCE:
        return 'ORDER_COMPLETED'
    if has_items:
        return 'READY_FOR_PAYMENT'
    return 'ORDER_CREATED'


def refresh_order(order, user=None):
    """Recalculate totals, status, payment status and completed_at"""
    order.total_amount = order.items.aggregate(total=Sum('line_total'))['total'] or ZERO
    if order.discount_amount > order.total_amount:
        order.discount_amount = order.total_amount
    paid = total_paid(order)
    has_items = order.items.exists()

    previous = order.status
    order.payment_status = compute_payment_status(order.net_amount, paid)
    order.status = compute_order_status(order.is_on_hold, order.net_amount, paid, has_items)
    if order.status == 'ORDER_COMPLETED' and not order.completed_at:
        order.completed_at = timezone.now()
    order.save(update_fields=['total_amount', 'discount_amount', 'payment_status', 'status', 'completed_at', 'updated_at'])

    if previous != order.status:
        event = 'ORDER_COMPLETED' if order.status == 'ORDER_COMPLETED' else 'STATUS_CHANGED'
        log_order_event(order, event, user, f"Status changed from {previous} to {order.status}",
                        {'from': previous, 'to': order.status})
    return order


# Items

def _check_availability(processed_good, quantity, product_type):
    """Pending (undelivered) quantity must be covered by current stock"""
    if quantity > processed_good.quantity_available:
        raise BusinessRuleError(
            f"{product_type}: Requested {quantity} {processed_good.unit}, but only "
            f"{processed_good.quantity_available} {processed_good.unit} available"
        )


def _build_item(order, data):
    processed_good = data['processed_good']
    quantity = Decimal(data['quantity'])
    if quantity <= 0:
        raise BusinessRuleError("Item quantity must be greater than zero")
    product_type = data.get('product_type') or processed_good.product_type
    _check_availability(processed_good, quantity, product_type)
    return OrderItem(
        order=order,
        processed_good=processed_good,
        product_type=product_type,
        form=data.get('form', ''),
        size=data.get('size', ''),
        quantity=quantity,
        unit_price=data['unit_price'],
        unit=data.get('unit') or processed_good.unit,
    )


@transaction.atomic
def create_order(data, items=None, user=None):
    """Create an order with its items; inventory is validated but not reduced"""
    order = Order.objects.create(
        order_number=next_order_number(),
        customer=data['customer'],
        order_date=data.get('order_date') or timezone.localdate(),
        sold_by=data.get('sold_by') or user,
        discount_amount=ZERO,
        notes=data.get('notes', ''),
        third_party_delivery_enabled=data.get('third_party_delivery_enabled', False),
        created_by=user,
    )
    errors = []
    for item_data in items or []:
        try:
            _build_item(order, item_data).save()
        except BusinessRuleError as e:
            errors.extend(e.messages)
    if errors:
        raise BusinessRuleError(["Inventory validation failed"] + errors)

    log_order_event(order, 'ORDER_CREATED', user, f"Order {order.order_number} created",
                    {'items': len(items or []), 'customer': order.customer.name})
    refresh_order(order, user)

    discount = Decimal(data.get('discount_amount') or 0)
    if discount:
        order = apply_discount(order, discount, user)
    logger.info(f"Created order {order.order_number} for {order.customer.name}")
    return order


@transaction.atomic
def apply_discount(order, discount, user=None):
    order = _lock_order_row(order)
    _require_unlocked(order)
    discount = Decimal(discount)
    if discount < 0 or discount > order.total_amount:
        raise BusinessRuleError(f"Discount must be between 0 and the order total ({order.total_amount})")
    previous = order.discount_amount
    order.discount_amount = discount
    order.save(update_fields=['discount_amount', 'updated_at'])
    log_order_event(order, 'DISCOUNT_APPLIED', user, f"Discount changed from {previous} to {discount}",
                    {'from': str(previous), 'to': str(discount)})
    return refresh_order(order, user)


@transaction.atomic
def update_order(order, data, user=None):
    """Edit order header fields (customer, date, seller, notes, discount)"""
    order = _lock_order_row(order)
    _require_unlocked(order)
    for field in ('customer', 'order_date', 'sold_by', 'notes', 'third_party_delivery_enabled'):
        if field in data:
            setattr(order, field, data[field])
    order.save()
    if 'discount_amount' in data and Decimal(data['discount_amount']) != order.discount_amount:
        order = apply_discount(order, data['discount_amount'], user)
    return order


@transaction.atomic
def add_item(order, data, user=None):
    order = _lock_order_row(order)
    _require_unlocked(order)
    item = _build_item(order, data)
    item.save()
    log_order_event(order, 'ITEM_ADDED', user, f"Added {item.quantity} {item.unit} of {item.product_type}",
                    {'item_id': item.id, 'quantity': str(item.quantity), 'unit_price': str(item.unit_price)})
    refresh_order(order, user)
    return item


@transaction.atomic
def update_item(item, data, user=None):
    order = _lock_order_row(item.order)
    _require_unlocked(order)
    item = OrderItem.objects.select_for_update().select_related('processed_good').get(pk=item.pk)
    changes = {}

    if 'quantity' in data:
        quantity = Decimal(data['quantity'])
        if quantity <= 0:
            raise BusinessRuleError("Item quantity must be greater than zero")
        if quantity < item.quantity_delivered:
            raise BusinessRuleError(
                f"Quantity cannot be less than already delivered quantity ({item.quantity_delivered} {item.unit})"
            )
        if quantity > item.quantity:
            _check_availability(item.processed_good, quantity - item.quantity_delivered, item.product_type)
        changes['quantity'] = {'from': str(item.quantity), 'to': str(quantity)}
        item.quantity = quantity
    for field in ('unit_price', 'form', 'size', 'product_type', 'unit'):
        if field in data and data[field] != getattr(item, field):
            changes[field] = {'from': str(getattr(item, field)), 'to': str(data[field])}
            setattr(item, field, data[field])
    item.save()

    if changes:
        log_order_event(order, 'ITEM_UPDATED', user, f"Updated {item.product_type}", {'item_id': item.id, 'changes': changes})
    refresh_order(order, user)
    return item


@transaction.atomic
def delete_item(item, user=None):
    order = _lock_order_row(item.order)
    _require_unlocked(order)
    if item.quantity_delivered > 0 or item.deliveries.exists():
        raise BusinessRuleError(f"{item.product_type} has deliveries recorded and cannot be deleted")
    description = f"Removed {item.quantity} {item.unit} of {item.product_type}"
    item_id = item.id
    item.delete()
    log_order_event(order, 'ITEM_DELETED', user, description, {'item_id': item_id})
    refresh_order(order, user)


# Deliveries

@transaction.atomic
def record_delivery(item, quantity, delivery_date=None, notes='', user=None):
    """
    Deliver part of an order item. This is the only place processed goods
    stock is reduced for sales.
    """
    item = OrderItem.objects.select_for_update().select_related('order', 'processed_good').get(pk=item.pk)
    quantity = Decimal(quantity)
    if quantity <= 0:
        raise BusinessRuleError("Delivery quantity must be greater than zero")
    remaining = item.quantity - item.quantity_delivered
    if quantity > remaining:
        raise BusinessRuleError(
            f"Delivered quantity cannot exceed ordered quantity: {remaining} {item.unit} remaining for {item.product_type}"
        )
    good = ProcessedGood.objects.select_for_update().get(pk=item.processed_good_id)
    if good.quantity_available < quantity:
        raise BusinessRuleError(
            f"Insufficient inventory. Available: {good.quantity_available} {item.unit}, Required: {quantity} {item.unit}"
        )

    delivery_date = delivery_date or timezone.localdate()
    dispatch = DeliveryDispatch.objects.create(
        order=item.order,
        order_item=item,
        processed_good=good,
        quantity_delivered=quantity,
        delivery_date=delivery_date,
        notes=notes or '',
        created_by=user,
    )
    reduce_processed_good(good, quantity, user=user, order_number=item.order.order_number,
                          delivery_dispatch_id=dispatch.id, effective_date=delivery_date)
    item.quantity_delivered += quantity
    item.save(update_fields=['quantity_delivered', 'updated_at'])
    logger.info(f"Delivered {quantity} {item.unit} of {item.product_type} on {item.order.order_number}")
    return dispatch


# Payments

@transaction.atomic
def create_payment(order, data, user=None):
    order = _lock_order_row(order)
    _require_unlocked(order)
    amount = Decimal(data['amount_received'])
    _validate_payment_amount(order, amount)

    payment = OrderPayment.objects.create(
        order=order,
        payment_date=data.get('payment_date') or timezone.localdate(),
        payment_mode=data['payment_mode'],
        transaction_reference=data.get('transaction_reference', ''),
        evidence_url=data.get('evidence_url', ''),
        amount_received=amount,
        notes=data.get('notes', ''),
        created_by=user,
    )
    payment.income = create_income_for_payment(payment, user)
    payment.save(update_fields=['income'])

    log_order_event(order, 'PAYMENT_RECEIVED', user, f"Payment of {amount} received via {payment.payment_mode}",
                    {'payment_id': payment.id, 'amount': str(amount), 'mode': payment.payment_mode})
    refresh_order(order, user)
    return payment


@transaction.atomic
def update_payment(payment, data, user=None):
    order = _lock_order_row(payment.order)
    _require_unlocked(order)
    if 'amount_received' in data:
        _validate_payment_amount(order, Decimal(data['amount_received']), payment=payment)
    for field in ('payment_date', 'payment_mode', 'transaction_reference', 'evidence_url', 'amount_received', 'notes'):
        if field in data:
            setattr(payment, field, data[field])
    payment.save()
    if payment.income_id:
        sync_income_for_payment(payment)
    else:
        payment.income = create_income_for_payment(payment, user)
        payment.save(update_fields=['income'])
    refresh_order(order, user)
    return payment


@transaction.atomic
def delete_payment(payment, user=None):
    order = _lock_order_row(payment.order)
    _require_unlocked(order)
    income = payment.income
    amount = payment.amount_received
    payment_id = payment.id
    payment.delete()
    if income is not None:
        income.delete()
    log_order_event(order, 'PAYMENT_DELETED', user, f"Payment of {amount} deleted",
                    {'payment_id': payment_id, 'amount': str(amount)})
    refresh_order(order, user)


# Hold and lock

@transaction.atomic
def place_hold(order, reason, user=None):
    order = _lock_order_row(order)
    _require_unlocked(order)
    reason = (reason or '').strip()
    if not reason:
        raise BusinessRuleError("A reason is required to put an order on hold")
    order.is_on_hold = True
    order.hold_reason = reason
    order.held_at = timezone.now()
    order.held_by = user
    order.save(update_fields=['is_on_hold', 'hold_reason', 'held_at', 'held_by', 'updated_at'])
    log_order_event(order, 'HOLD_PLACED', user, f"Order put on hold: {reason}", {'reason': reason})
    return refresh_order(order, user)


@transaction.atomic
def remove_hold(order, user=None):
    order = _lock_order_row(order)
    _require_unlocked(order)
    if not order.is_on_hold:
        raise BusinessRuleError(f"Order {order.order_number} is not on hold")
    order.is_on_hold = False
    order.hold_reason = ''
    order.held_at = None
    order.held_by = None
    order.save(update_fields=['is_on_hold', 'hold_reason', 'held_at', 'held_by', 'updated_at'])
    log_order_event(order, 'HOLD_REMOVED', user, "Hold removed")
    return refresh_order(order, user)


@transaction.atomic
def lock_order(order, user=None):
    order = _lock_order_row(order)
    if order.is_locked:
        raise BusinessRuleError(f"Order {order.order_number} is already locked")
    if order.status != 'ORDER_COMPLETED':
        raise BusinessRuleError("Only completed orders can be locked")
    now = timezone.now()
    order.is_locked = True
    order.locked_at = now
    order.locked_by = user
    order.can_unlock_until = now + timedelta(days=settings.ORDER_UNLOCK_WINDOW_DAYS)
    order.save(update_fields=['is_locked', 'locked_at', 'locked_by', 'can_unlock_until', 'updated_at'])
    OrderLockLog.objects.create(order=order, action='LOCK', performed_by=user)
    log_order_event(order, 'ORDER_LOCKED', user, "Order locked",
                    {'can_unlock_until': order.can_unlock_until.isoformat()})
    return order


@transaction.atomic
def unlock_order(order, reason, user=None):
    order = _lock_order_row(order)
    reason = (reason or '').strip()
    if not order.is_locked:
        raise BusinessRuleError(f"Order {order.order_number} is not locked")
    if not reason:
        raise BusinessRuleError("Unlock reason is required")
    if order.can_unlock_until and timezone.now() > order.can_unlock_until:
        raise BusinessRuleError(
            f"Unlock window expired on {order.can_unlock_until:%Y-%m-%d %H:%M}; the order is permanently locked"
        )
    order.is_locked = False
    order.locked_at = None
    order.locked_by = None
    order.can_unlock_until = None
    order.save(update_fields=['is_locked', 'locked_at', 'locked_by', 'can_unlock_until', 'updated_at'])
    OrderLockLog.objects.create(order=order, action='UNLOCK', performed_by=user, unlock_reason=reason)
    log_order_event(order, 'ORDER_UNLOCKED', user, f"Order unlocked: {reason}", {'reason': reason})
    return order


@transaction.atomic
def delete_order(order, user=None):
    order = _lock_order_row(order)
    _require_unlocked(order)
    if order.deliveries.exists():
        raise BusinessRuleError(f"Order {order.order_number} has deliveries recorded and cannot be deleted")
    incomes = [payment.income for payment in order.payments.select_related('income') if payment.income_id]
    order_number = order.order_number
    order.delete()
    for income in incomes:
        income.delete()
    logger.info(f"Deleted order {order_number} and {len(incomes)} linked income rows")


# Invoices and third-party delivery

@transaction.atomic
def generate_invoice(order, invoice_date=None, notes='', user=None):
    """Return (invoice, created); an order has at most one invoice"""
    existing = Invoice.objects.filter(order=order).first()
    if existing:
        return existing, False
    if not order.items.exists():
        raise BusinessRuleError("Cannot generate an invoice for an order without items")
    invoice = Invoice.objects.create(
        invoice_number=next_invoice_number(),
        order=order,
        invoice_date=invoice_date or timezone.localdate(),
        generated_by=user,
        notes=notes or '',
    )
    return invoice, True


@transaction.atomic
def upsert_third_party_delivery(order, data, user=None):
    if not order.third_party_delivery_enabled:
        raise BusinessRuleError("Third-party delivery tracking is not enabled for this order")
    record, created = ThirdPartyDelivery.objects.get_or_create(order=order, defaults={'created_by': user})
    for field in ('quantity_delivered', 'delivery_partner_name', 'delivery_notes'):
        if field in data:
            setattr(record, field, data[field])
    record.save()
    return record


# Customer statistics

def orders_with_paid(queryset=None):
    queryset = queryset if queryset is not None else Order.objects.all()
    paid = OrderPayment.objects.filter(order=OuterRef('pk')).values('order').annotate(
        total=Sum('amount_received')
    ).values('total')
    return queryset.annotate(paid=Coalesce(Subquery(paid, output_field=MONEY), Value(ZERO), output_field=MONEY))


def customer_stats(customer_ids=None):
    """
    {customer_id: stats} with total sales value (net of discount),
    outstanding amount, last order date and order count.
    """
    orders = Order.objects.all()
    if customer_ids is not None:
        orders = orders.filter(customer_id__in=customer_ids)

    stats = {}
    for row in orders.values('customer_id').annotate(order_count=Count('id'), last_order_date=Max('order_date')):
        stats[row['customer_id']] = {
            'total_sales_value': ZERO,
            'outstanding_amount': ZERO,
            'last_order_date': row['last_order_date'],
            'order_count': row['order_count'],
        }
    for order in orders_with_paid(orders).only('id', 'customer_id', 'total_amount', 'discount_amount'):
        entry = stats[order.customer_id]
        net = order.net_amount
        entry['total_sales_value'] += net
        entry['outstanding_amount'] += max(ZERO, net - order.paid)
    return stats
