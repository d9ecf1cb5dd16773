from decimal import Decimal

from rest_framework import serializers
from backend.operations.models import ProcessedGood
from .models import (
    CustomerType, Customer, Order, OrderItem, DeliveryDispatch, OrderPayment, Invoice,
    OrderLockLog, OrderAuditLog, ThirdPartyDelivery
)
from .services import active_customer_type_keys


class CustomerTypeSerializer(serializers.ModelSerializer):
    class Meta:
        model = CustomerType
        fields = ['id', 'key', 'display_name', 'status', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']


class CustomerSerializer(serializers.ModelSerializer):
    class Meta:
        model = Customer
        fields = ['id', 'name', 'customer_type', 'contact_person', 'phone', 'address', 'status', 'notes',
                  'photo_url', 'created_by', 'created_at', 'updated_at']
        read_only_fields = ['created_by', 'created_at', 'updated_at']

    def validate_customer_type(self, value):
        if value not in active_customer_type_keys():
            raise serializers.ValidationError(f"Unknown customer type: {value}")
        return value


class CustomerWithStatsSerializer(CustomerSerializer):
    """Customer plus sales statistics passed in through context['stats']"""
    total_sales_value = serializers.SerializerMethodField()
    outstanding_amount = serializers.SerializerMethodField()
    last_order_date = serializers.SerializerMethodField()
    order_count = serializers.SerializerMethodField()

    class Meta(CustomerSerializer.Meta):
        fields = CustomerSerializer.Meta.fields + ['total_sales_value', 'outstanding_amount', 'last_order_date', 'order_count']

    def _stats(self, obj):
        return self.context.get('stats', {}).get(obj.id, {})

    def get_total_sales_value(self, obj):
        return self._stats(obj).get('total_sales_value', 0)

    def get_outstanding_amount(self, obj):
        return self._stats(obj).get('outstanding_amount', 0)

    def get_last_order_date(self, obj):
        return self._stats(obj).get('last_order_date')

    def get_order_count(self, obj):
        return self._stats(obj).get('order_count', 0)


class OrderItemSerializer(serializers.ModelSerializer):
    batch_reference = serializers.CharField(source='processed_good.batch_reference', read_only=True)
    processed_good_quantity_available = serializers.DecimalField(
        source='processed_good.quantity_available', max_digits=12, decimal_places=3, read_only=True
    )

    class Meta:
        model = OrderItem
        fields = ['id', 'order', 'processed_good', 'batch_reference', 'processed_good_quantity_available',
                  'product_type', 'form', 'size', 'quantity', 'quantity_delivered', 'unit_price', 'unit',
                  'line_total', 'created_at', 'updated_at']
        read_only_fields = ['order', 'quantity_delivered', 'line_total', 'created_at', 'updated_at']
        extra_kwargs = {
            'product_type': {'required': False},
            'unit': {'required': False},
        }

    def validate_quantity(self, value):
        if value <= 0:
            raise serializers.ValidationError("Quantity must be greater than zero")
        return value

    def validate_unit_price(self, value):
        if value < 0:
            raise serializers.ValidationError("Unit price cannot be negative")
        return value


class OrderItemWriteSerializer(serializers.Serializer):
    """Item payload nested in order creation"""
    processed_good = serializers.PrimaryKeyRelatedField(queryset=ProcessedGood.objects.all())
    product_type = serializers.CharField(max_length=200, required=False, allow_blank=True)
    form = serializers.CharField(max_length=100, required=False, allow_blank=True)
    size = serializers.CharField(max_length=100, required=False, allow_blank=True)
    quantity = serializers.DecimalField(max_digits=12, decimal_places=3, min_value=Decimal('0.001'))
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'))
    unit = serializers.CharField(max_length=50, required=False, allow_blank=True)


class OrderSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source='customer.name', read_only=True)
    customer_type = serializers.CharField(source='customer.customer_type', read_only=True)
    sold_by_name = serializers.CharField(source='sold_by.display_name', read_only=True, default=None)
    held_by_name = serializers.CharField(source='held_by.display_name', read_only=True, default=None)
    locked_by_name = serializers.CharField(source='locked_by.display_name', read_only=True, default=None)
    net_amount = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    total_paid = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = ['id', 'order_number', 'customer', 'customer_name', 'customer_type', 'order_date', 'status',
                  'payment_status', 'sold_by', 'sold_by_name', 'total_amount', 'discount_amount', 'net_amount',
                  'total_paid', 'notes', 'is_on_hold', 'hold_reason', 'held_at', 'held_by', 'held_by_name',
                  'is_locked', 'locked_at', 'locked_by', 'locked_by_name', 'can_unlock_until', 'completed_at',
                  'third_party_delivery_enabled', 'created_by', 'created_at', 'updated_at']
        read_only_fields = ['order_number', 'status', 'payment_status', 'total_amount', 'is_on_hold', 'hold_reason',
                            'held_at', 'held_by', 'is_locked', 'locked_at', 'locked_by', 'can_unlock_until',
                            'completed_at', 'created_by', 'created_at', 'updated_at']

    def get_total_paid(self, obj):
        paid = getattr(obj, 'paid', None)
        if paid is None:
            paid = sum((p.amount_received for p in obj.payments.all()), 0)
        return paid

    def validate_discount_amount(self, value):
        if value < 0:
            raise serializers.ValidationError("Discount cannot be negative")
        return value


class OrderCreateSerializer(OrderSerializer):
    items = OrderItemWriteSerializer(many=True, required=False)

    class Meta(OrderSerializer.Meta):
        fields = OrderSerializer.Meta.fields + ['items']


class OrderPaymentSerializer(serializers.ModelSerializer):
    order_number = serializers.CharField(source='order.order_number', read_only=True)
    customer_name = serializers.CharField(source='order.customer.name', read_only=True)
    income_transaction_id = serializers.CharField(source='income.transaction_id', read_only=True, default=None)

    class Meta:
        model = OrderPayment
        fields = ['id', 'order', 'order_number', 'customer_name', 'payment_date', 'payment_mode',
                  'transaction_reference', 'evidence_url', 'amount_received', 'notes', 'income',
                  'income_transaction_id', 'created_by', 'created_at', 'updated_at']
        read_only_fields = ['order', 'income', 'created_by', 'created_at', 'updated_at']

    def validate_amount_received(self, value):
        if value <= 0:
            raise serializers.ValidationError("Payment amount must be greater than zero")
        return value


class DeliveryDispatchSerializer(serializers.ModelSerializer):
    product_type = serializers.CharField(source='order_item.product_type', read_only=True)
    unit = serializers.CharField(source='order_item.unit', read_only=True)

    class Meta:
        model = DeliveryDispatch
        fields = ['id', 'order', 'order_item', 'processed_good', 'product_type', 'unit', 'quantity_delivered',
                  'delivery_date', 'notes', 'created_by', 'created_at']
        read_only_fields = ['order', 'order_item', 'processed_good', 'created_by', 'created_at']


class DeliveryCreateSerializer(serializers.Serializer):
    quantity = serializers.DecimalField(max_digits=12, decimal_places=3)
    delivery_date = serializers.DateField(required=False)
    notes = serializers.CharField(required=False, allow_blank=True)


class InvoiceSerializer(serializers.ModelSerializer):
    order_number = serializers.CharField(source='order.order_number', read_only=True)
    customer_name = serializers.CharField(source='order.customer.name', read_only=True)

    class Meta:
        model = Invoice
        fields = ['id', 'invoice_number', 'order', 'order_number', 'customer_name', 'invoice_date',
                  'generated_at', 'generated_by', 'notes', 'updated_at']
        read_only_fields = ['invoice_number', 'order', 'generated_at', 'generated_by', 'updated_at']
        extra_kwargs = {'invoice_date': {'required': False}}


class OrderLockLogSerializer(serializers.ModelSerializer):
    performed_by_name = serializers.CharField(source='performed_by.display_name', read_only=True, default=None)

    class Meta:
        model = OrderLockLog
        fields = ['id', 'order', 'action', 'performed_by', 'performed_by_name', 'performed_at', 'unlock_reason']


class OrderAuditLogSerializer(serializers.ModelSerializer):
    performed_by_name = serializers.SerializerMethodField()

    class Meta:
        model = OrderAuditLog
        fields = ['id', 'order', 'event_type', 'performed_by', 'performed_by_name', 'performed_at',
                  'event_data', 'description']

    def get_performed_by_name(self, obj):
        return obj.performed_by.display_name if obj.performed_by else 'System'


class ThirdPartyDeliverySerializer(serializers.ModelSerializer):
    class Meta:
        model = ThirdPartyDelivery
        fields = ['id', 'order', 'quantity_delivered', 'delivery_partner_name', 'delivery_notes',
                  'created_by', 'created_at', 'updated_at']
        read_only_fields = ['order', 'created_by', 'created_at', 'updated_at']


class OrderDetailSerializer(OrderSerializer):
    items = OrderItemSerializer(many=True, read_only=True)
    payments = OrderPaymentSerializer(many=True, read_only=True)
    deliveries = DeliveryDispatchSerializer(many=True, read_only=True)
    outstanding_amount = serializers.SerializerMethodField()

    class Meta(OrderSerializer.Meta):
        fields = OrderSerializer.Meta.fields + ['items', 'payments', 'deliveries', 'outstanding_amount']

    def get_outstanding_amount(self, obj):
        return max(obj.net_amount - self.get_total_paid(obj), 0)


class HoldSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=1000)


class UnlockSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=1000)

