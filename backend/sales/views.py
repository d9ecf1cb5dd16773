import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Q, ProtectedError, Prefetch
from django.shortcuts import get_object_or_404
from backend.core.permissions import module_access
from backend.core.utils import create_audit_log, paginated_response_data
from backend.operations.models import ProcessedGood
from .models import CustomerType, Customer, Order, OrderItem, OrderPayment, Invoice, ThirdPartyDelivery
from .serializers import (
    CustomerTypeSerializer, CustomerSerializer, CustomerWithStatsSerializer, OrderSerializer,
    OrderCreateSerializer, OrderDetailSerializer, OrderItemSerializer, OrderPaymentSerializer,
    DeliveryDispatchSerializer, DeliveryCreateSerializer, InvoiceSerializer, OrderLockLogSerializer,
    OrderAuditLogSerializer, ThirdPartyDeliverySerializer, HoldSerializer, UnlockSerializer
)
from .filters import OrderFilter
from . import services

logger = logging.getLogger('backend.sales')

SalesAccess = module_access('sales')


def _order_detail_data(pk):
    order = get_object_or_404(
        services.orders_with_paid(Order.objects.select_related('customer', 'sold_by', 'held_by', 'locked_by')).prefetch_related(
            Prefetch('items', queryset=OrderItem.objects.select_related('processed_good')),
            'payments__income', 'payments__order__customer', 'deliveries__order_item'
        ),
        pk=pk
    )
    return OrderDetailSerializer(order).data


# Customer type views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, SalesAccess])
def customer_type_list_create(request):
    """List customer types or add a new one"""
    if request.method == 'GET':
        queryset = CustomerType.objects.all()
        if request.query_params.get('active_only') == 'true':
            queryset = queryset.filter(status='active')
        serializer = CustomerTypeSerializer(queryset, many=True)
        return Response(serializer.data)
    else:
        serializer = CustomerTypeSerializer(data=request.data)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH'])
@permission_classes([IsAuthenticated, SalesAccess])
def customer_type_detail(request, pk):
    """Retrieve or update a customer type (deactivate instead of deleting)"""
    customer_type = get_object_or_404(CustomerType, pk=pk)

    if request.method == 'GET':
        return Response(CustomerTypeSerializer(customer_type).data)
    serializer = CustomerTypeSerializer(customer_type, data=request.data, partial=request.method == 'PATCH')
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


# Customer views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, SalesAccess])
def customer_list_create(request):
    """List customers with their sales statistics or create a customer"""
    if request.method == 'GET':
        queryset = Customer.objects.all()
        customer_status = request.query_params.get('status', None)
        customer_type = request.query_params.get('customer_type', None)
        search = request.query_params.get('search', None)
        if customer_status:
            queryset = queryset.filter(status=customer_status)
        if customer_type:
            queryset = queryset.filter(customer_type=customer_type)
        if search:
            queryset = queryset.filter(
                Q(name__icontains=search) | Q(contact_person__icontains=search) | Q(phone__icontains=search)
            )
        customers = list(queryset)
        stats = services.customer_stats([c.id for c in customers])
        serializer = CustomerWithStatsSerializer(customers, many=True, context={'stats': stats})
        return Response(serializer.data)
    else:
        serializer = CustomerSerializer(data=request.data)
        if serializer.is_valid():
            customer = serializer.save(created_by=request.user)
            create_audit_log(request, 'create', 'Customer', customer.id, object_reference=customer.name)
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, SalesAccess])
def customer_detail(request, pk):
    """Retrieve (with stats), update or delete a customer"""
    customer = get_object_or_404(Customer, pk=pk)

    if request.method == 'GET':
        stats = services.customer_stats([customer.id])
        return Response(CustomerWithStatsSerializer(customer, context={'stats': stats}).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = CustomerSerializer(customer, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        try:
            customer.delete()
        except ProtectedError:
            return Response({'error': 'Customer has orders and cannot be deleted; mark it Inactive instead'},
                            status=status.HTTP_400_BAD_REQUEST)
        create_audit_log(request, 'delete', 'Customer', pk, object_reference=customer.name)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated, SalesAccess])
def customer_orders(request, pk):
    """Orders of one customer"""
    customer = get_object_or_404(Customer, pk=pk)
    queryset = services.orders_with_paid(customer.orders.select_related('customer', 'sold_by'))
    return Response(OrderSerializer(queryset, many=True).data)


# Order views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, SalesAccess])
def order_list_create(request):
    """List orders (filtered, paginated) or create an order with items"""
    if request.method == 'GET':
        queryset = Order.objects.select_related('customer', 'sold_by', 'held_by', 'locked_by')
        filterset = OrderFilter(request.query_params, queryset=queryset)
        queryset = services.orders_with_paid(filterset.qs).order_by('-order_date', '-created_at')
        return Response(paginated_response_data(request, queryset, OrderSerializer))
    else:
        serializer = OrderCreateSerializer(data=request.data)
        if serializer.is_valid():
            data = dict(serializer.validated_data)
            items = data.pop('items', [])
            order = services.create_order(data, items, user=request.user)
            create_audit_log(request, 'create', 'Order', order.id,
                             changes={'items': len(items)}, object_reference=order.order_number)
            return Response(_order_detail_data(order.pk), status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, SalesAccess])
def order_detail(request, pk):
    """Retrieve an order with items, payments and deliveries; edit header; delete"""
    order = get_object_or_404(Order, pk=pk)

    if request.method == 'GET':
        return Response(_order_detail_data(pk))
    elif request.method == 'PATCH':
        serializer = OrderSerializer(order, data=request.data, partial=True)
        if serializer.is_valid():
            services.update_order(order, serializer.validated_data, user=request.user)
            create_audit_log(request, 'update', 'Order', order.id,
                             changes={k: str(v) for k, v in serializer.validated_data.items()},
                             object_reference=order.order_number)
            return Response(_order_detail_data(pk))
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        services.delete_order(order, user=request.user)
        create_audit_log(request, 'delete', 'Order', pk, object_reference=order.order_number)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated, SalesAccess])
def order_item_create(request, pk):
    """Add an item to an order"""
    order = get_object_or_404(Order, pk=pk)
    serializer = OrderItemSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    item = services.add_item(order, serializer.validated_data, user=request.user)
    return Response(OrderItemSerializer(item).data, status=status.HTTP_201_CREATED)


@api_view(['PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, SalesAccess])
def order_item_detail(request, pk, item_pk):
    """Update or delete an order item"""
    item = get_object_or_404(OrderItem.objects.select_related('order'), pk=item_pk, order_id=pk)

    if request.method == 'PATCH':
        serializer = OrderItemSerializer(item, data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = dict(serializer.validated_data)
        data.pop('processed_good', None)
        item = services.update_item(item, data, user=request.user)
        return Response(OrderItemSerializer(item).data)
    else:  # DELETE
        services.delete_item(item, user=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)


# Deliveries
@api_view(['POST'])
@permission_classes([IsAuthenticated, SalesAccess])
def order_item_delivery(request, pk, item_pk):
    """Record a delivery against an order item (reduces processed goods stock)"""
    item = get_object_or_404(OrderItem, pk=item_pk, order_id=pk)
    serializer = DeliveryCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    dispatch = services.record_delivery(item, data['quantity'], delivery_date=data.get('delivery_date'),
                                        notes=data.get('notes', ''), user=request.user)
    create_audit_log(request, 'delivery', 'DeliveryDispatch', dispatch.id,
                     changes={'quantity': str(dispatch.quantity_delivered), 'item': item.id},
                     object_reference=dispatch.order.order_number)
    return Response(DeliveryDispatchSerializer(dispatch).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated, SalesAccess])
def order_deliveries(request, pk):
    """Delivery history of an order"""
    order = get_object_or_404(Order, pk=pk)
    queryset = order.deliveries.select_related('order_item')
    item_id = request.query_params.get('item_id', None)
    if item_id:
        queryset = queryset.filter(order_item_id=item_id)
    return Response(DeliveryDispatchSerializer(queryset, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, SalesAccess])
def processed_good_sales_history(request, pk):
    """Order lines that sold a processed good, newest first"""
    good = get_object_or_404(ProcessedGood, pk=pk)
    items = good.order_items.select_related('order__customer').prefetch_related('deliveries').order_by('-created_at')
    history = []
    for item in items:
        dispatches = sorted(item.deliveries.all(), key=lambda d: d.delivery_date, reverse=True)
        latest = dispatches[0] if dispatches else None
        history.append({
            'order_item_id': item.id,
            'order_id': item.order_id,
            'order_number': item.order.order_number,
            'order_date': item.order.order_date,
            'customer_id': item.order.customer_id,
            'customer_name': item.order.customer.name,
            'product_type': item.product_type,
            'quantity': item.quantity,
            'quantity_delivered': item.quantity_delivered,
            'unit': item.unit,
            'unit_price': item.unit_price,
            'line_total': item.line_total,
            'delivery_date': latest.delivery_date if latest else item.order.order_date,
            'delivery_notes': latest.notes if latest else '',
        })
    return Response(history)


# Payments
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, SalesAccess])
def order_payments(request, pk):
    """List payments of an order or record a payment"""
    order = get_object_or_404(Order, pk=pk)

    if request.method == 'GET':
        serializer = OrderPaymentSerializer(order.payments.select_related('order__customer', 'income'), many=True)
        return Response(serializer.data)
    serializer = OrderPaymentSerializer(data=request.data)
    if serializer.is_valid():
        payment = services.create_payment(order, serializer.validated_data, user=request.user)
        create_audit_log(request, 'payment_add', 'OrderPayment', payment.id,
                         changes={'amount': str(payment.amount_received), 'income': payment.income.transaction_id},
                         object_reference=order.order_number)
        return Response(OrderPaymentSerializer(payment).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET'])
@permission_classes([IsAuthenticated, SalesAccess])
def payment_list(request):
    """All payments across orders"""
    queryset = OrderPayment.objects.select_related('order__customer', 'income')
    payment_mode = request.query_params.get('payment_mode', None)
    start_date = request.query_params.get('start_date', None)
    end_date = request.query_params.get('end_date', None)
    if payment_mode:
        queryset = queryset.filter(payment_mode=payment_mode)
    if start_date:
        queryset = queryset.filter(payment_date__gte=start_date)
    if end_date:
        queryset = queryset.filter(payment_date__lte=end_date)
    return Response(paginated_response_data(request, queryset, OrderPaymentSerializer))


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, SalesAccess])
def payment_detail(request, pk):
    """Retrieve, update or delete a payment (keeps its income row in sync)"""
    payment = get_object_or_404(OrderPayment.objects.select_related('order__customer', 'income'), pk=pk)

    if request.method == 'GET':
        return Response(OrderPaymentSerializer(payment).data)
    elif request.method == 'PATCH':
        serializer = OrderPaymentSerializer(payment, data=request.data, partial=True)
        if serializer.is_valid():
            payment = services.update_payment(payment, serializer.validated_data, user=request.user)
            return Response(OrderPaymentSerializer(payment).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        services.delete_payment(payment, user=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)


# Hold and lock
@api_view(['POST', 'DELETE'])
@permission_classes([IsAuthenticated, SalesAccess])
def order_hold(request, pk):
    """POST places a hold (reason required); DELETE removes it"""
    order = get_object_or_404(Order, pk=pk)

    if request.method == 'POST':
        serializer = HoldSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        services.place_hold(order, serializer.validated_data['reason'], user=request.user)
    else:  # DELETE
        services.remove_hold(order, user=request.user)
    return Response(_order_detail_data(pk))


@api_view(['POST'])
@permission_classes([IsAuthenticated, SalesAccess])
def order_lock(request, pk):
    """Lock a completed order"""
    order = get_object_or_404(Order, pk=pk)
    order = services.lock_order(order, user=request.user)
    create_audit_log(request, 'order_lock', 'Order', order.id,
                     changes={'can_unlock_until': order.can_unlock_until.isoformat()},
                     object_reference=order.order_number)
    return Response(_order_detail_data(pk))


@api_view(['POST'])
@permission_classes([IsAuthenticated, SalesAccess])
def order_unlock(request, pk):
    """Unlock an order inside its unlock window"""
    order = get_object_or_404(Order, pk=pk)
    serializer = UnlockSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    order = services.unlock_order(order, serializer.validated_data['reason'], user=request.user)
    create_audit_log(request, 'order_unlock', 'Order', order.id,
                     changes={'reason': serializer.validated_data['reason']},
                     object_reference=order.order_number)
    return Response(_order_detail_data(pk))


@api_view(['GET'])
@permission_classes([IsAuthenticated, SalesAccess])
def order_lock_history(request, pk):
    order = get_object_or_404(Order, pk=pk)
    return Response(OrderLockLogSerializer(order.lock_logs.select_related('performed_by'), many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, SalesAccess])
def order_audit_log(request, pk):
    order = get_object_or_404(Order, pk=pk)
    return Response(OrderAuditLogSerializer(order.audit_events.select_related('performed_by'), many=True).data)


# Invoices
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, SalesAccess])
def order_invoice(request, pk):
    """Get the order's invoice data or generate the invoice"""
    order = get_object_or_404(Order, pk=pk)

    if request.method == 'GET':
        invoice = get_object_or_404(Invoice, order=order)
        paid = services.total_paid(order)
        return Response({
            'invoice': InvoiceSerializer(invoice).data,
            'order': _order_detail_data(pk),
            'customer': CustomerSerializer(order.customer).data,
            'payment_status': order.payment_status,
            'total_paid': paid,
            'outstanding_amount': max(order.net_amount - paid, 0),
        })
    serializer = InvoiceSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    invoice, created = services.generate_invoice(order, invoice_date=serializer.validated_data.get('invoice_date'),
                                                 notes=serializer.validated_data.get('notes', ''), user=request.user)
    return Response(InvoiceSerializer(invoice).data,
                    status=status.HTTP_201_CREATED if created else status.HTTP_200_OK)


@api_view(['GET'])
@permission_classes([IsAuthenticated, SalesAccess])
def invoice_list(request):
    queryset = Invoice.objects.select_related('order__customer')
    return Response(paginated_response_data(request, queryset, InvoiceSerializer))


# Third-party delivery
@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated, SalesAccess])
def order_third_party_delivery(request, pk):
    """Get or upsert the third-party delivery record of an order"""
    order = get_object_or_404(Order, pk=pk)

    if request.method == 'GET':
        record = ThirdPartyDelivery.objects.filter(order=order).first()
        return Response(ThirdPartyDeliverySerializer(record).data if record else None)
    serializer = ThirdPartyDeliverySerializer(data=request.data, partial=True)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    record = services.upsert_third_party_delivery(order, serializer.validated_data, user=request.user)
    return Response(ThirdPartyDeliverySerializer(record).data)
