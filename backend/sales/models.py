from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from decimal import Decimal


ORDER_STATUS_CHOICES = [
    ('ORDER_CREATED', 'Order Created'),
    ('READY_FOR_PAYMENT', 'Ready for Payment'),
    ('HOLD', 'Hold'),
    ('ORDER_COMPLETED', 'Order Completed'),
]

PAYMENT_STATUS_CHOICES = [
    ('READY_FOR_PAYMENT', 'Ready for Payment'),
    ('PARTIAL_PAYMENT', 'Partial Payment'),
    ('FULL_PAYMENT', 'Full Payment'),
]

PAYMENT_MODE_CHOICES = [
    ('Cash', 'Cash'),
    ('UPI', 'UPI'),
    ('Bank', 'Bank'),
]


class CustomerType(models.Model):
    key = models.CharField(max_length=50, unique=True)
    display_name = models.CharField(max_length=100)
    status = models.CharField(max_length=20, choices=[('active', 'Active'), ('inactive', 'Inactive')], default='active')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.display_name

    class Meta:
        db_table = 'customer_types'
        ordering = ['display_name']


class Customer(models.Model):
    STATUS_CHOICES = [
        ('Active', 'Active'),
        ('Inactive', 'Inactive'),
    ]

    name = models.CharField(max_length=200)
    customer_type = models.CharField(max_length=50)
    contact_person = models.CharField(max_length=200, blank=True)
    phone = models.CharField(max_length=20, blank=True)
    address = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='Active')
    notes = models.TextField(blank=True)
    photo_url = models.URLField(max_length=500, blank=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'customers'
        ordering = ['name']


class Order(models.Model):
    order_number = models.CharField(max_length=20, unique=True)
    customer = models.ForeignKey(Customer, on_delete=models.PROTECT, related_name='orders')
    order_date = models.DateField()
    status = models.CharField(max_length=30, choices=ORDER_STATUS_CHOICES, default='ORDER_CREATED')
    payment_status = models.CharField(max_length=30, choices=PAYMENT_STATUS_CHOICES, default='READY_FOR_PAYMENT')
    sold_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    discount_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    notes = models.TextField(blank=True)

    is_on_hold = models.BooleanField(default=False)
    hold_reason = models.TextField(blank=True)
    held_at = models.DateTimeField(null=True, blank=True)
    held_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')

    is_locked = models.BooleanField(default=False)
    locked_at = models.DateTimeField(null=True, blank=True)
    locked_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    can_unlock_until = models.DateTimeField(null=True, blank=True)

    completed_at = models.DateTimeField(null=True, blank=True)
    third_party_delivery_enabled = models.BooleanField(default=False)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def net_amount(self):
        return (self.total_amount or Decimal('0')) - (self.discount_amount or Decimal('0'))

    def clean(self):
        if self.discount_amount is not None and self.discount_amount < 0:
            raise ValidationError({'discount_amount': 'Discount cannot be negative'})
        if self.discount_amount and self.discount_amount > self.total_amount:
            raise ValidationError({'discount_amount': 'Discount cannot exceed the order total'})

    def __str__(self):
        return self.order_number

    class Meta:
        db_table = 'orders'
        ordering = ['-order_date', '-created_at']
        indexes = [
            models.Index(fields=['status'], name='orders_status_idx'),
            models.Index(fields=['order_date'], name='orders_date_idx'),
        ]


class OrderItem(models.Model):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')
    processed_good = models.ForeignKey('operations.ProcessedGood', on_delete=models.PROTECT, related_name='order_items')
    product_type = models.CharField(max_length=200)
    form = models.CharField(max_length=100, blank=True)
    size = models.CharField(max_length=100, blank=True)
    quantity = models.DecimalField(max_digits=12, decimal_places=3)
    quantity_delivered = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0'))
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    unit = models.CharField(max_length=50)
    line_total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def clean(self):
        if self.quantity is not None and self.quantity <= 0:
            raise ValidationError({'quantity': 'Quantity must be greater than zero'})
        if self.unit_price is not None and self.unit_price < 0:
            raise ValidationError({'unit_price': 'Unit price cannot be negative'})
        if self.quantity is not None and self.quantity_delivered > self.quantity:
            raise ValidationError({'quantity': 'Delivered quantity cannot exceed ordered quantity'})

    def save(self, *args, **kwargs):
        self.line_total = (self.quantity * self.unit_price).quantize(Decimal('0.01'))
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.product_type} x {self.quantity} ({self.order.order_number})"

    class Meta:
        db_table = 'order_items'
        ordering = ['created_at', 'id']


class DeliveryDispatch(models.Model):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='deliveries')
    order_item = models.ForeignKey(OrderItem, on_delete=models.CASCADE, related_name='deliveries')
    processed_good = models.ForeignKey('operations.ProcessedGood', on_delete=models.PROTECT, related_name='deliveries')
    quantity_delivered = models.DecimalField(max_digits=12, decimal_places=3)
    delivery_date = models.DateField()
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'delivery_dispatches'
        ordering = ['-delivery_date', '-created_at']


class OrderPayment(models.Model):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='payments')
    payment_date = models.DateField()
    payment_mode = models.CharField(max_length=10, choices=PAYMENT_MODE_CHOICES)
    transaction_reference = models.CharField(max_length=200, blank=True)
    evidence_url = models.URLField(max_length=500, blank=True)
    amount_received = models.DecimalField(max_digits=12, decimal_places=2)
    notes = models.TextField(blank=True)
    income = models.OneToOneField('finance.Income', on_delete=models.SET_NULL, null=True, blank=True, related_name='sales_payment')
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.amount_received} on {self.order.order_number}"

    class Meta:
        db_table = 'order_payments'
        ordering = ['-payment_date', '-created_at']


class Invoice(models.Model):
    invoice_number = models.CharField(max_length=20, unique=True)
    order = models.OneToOneField(Order, on_delete=models.CASCADE, related_name='invoice')
    invoice_date = models.DateField()
    generated_at = models.DateTimeField(auto_now_add=True)
    generated_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    notes = models.TextField(blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.invoice_number

    class Meta:
        db_table = 'invoices'
        ordering = ['-invoice_date', '-generated_at']


class OrderLockLog(models.Model):
    ACTION_CHOICES = [
        ('LOCK', 'Lock'),
        ('UNLOCK', 'Unlock'),
    ]

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='lock_logs')
    action = models.CharField(max_length=10, choices=ACTION_CHOICES)
    performed_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    performed_at = models.DateTimeField(auto_now_add=True)
    unlock_reason = models.TextField(blank=True)

    class Meta:
        db_table = 'order_lock_logs'
        ordering = ['-performed_at', '-id']


class OrderAuditLog(models.Model):
    """Per-order event trail shown on the order detail page"""
    EVENT_TYPE_CHOICES = [
        ('ORDER_CREATED', 'Order Created'),
        ('ITEM_ADDED', 'Item Added'),
        ('ITEM_UPDATED', 'Item Updated'),
        ('ITEM_DELETED', 'Item Deleted'),
        ('PAYMENT_RECEIVED', 'Payment Received'),
        ('PAYMENT_DELETED', 'Payment Deleted'),
        ('STATUS_CHANGED', 'Status Changed'),
        ('HOLD_PLACED', 'Hold Placed'),
        ('HOLD_REMOVED', 'Hold Removed'),
        ('ORDER_LOCKED', 'Order Locked'),
        ('ORDER_UNLOCKED', 'Order Unlocked'),
        ('DISCOUNT_APPLIED', 'Discount Applied'),
        ('ORDER_COMPLETED', 'Order Completed'),
    ]

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='audit_events')
    event_type = models.CharField(max_length=30, choices=EVENT_TYPE_CHOICES)
    performed_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    performed_at = models.DateTimeField(auto_now_add=True)
    event_data = models.JSONField(default=dict, blank=True)
    description = models.TextField(blank=True)

    class Meta:
        db_table = 'order_audit_log'
        ordering = ['-performed_at', '-id']
        indexes = [
            models.Index(fields=['order', 'performed_at'], name='order_audit_order_idx'),
        ]


class ThirdPartyDelivery(models.Model):
    order = models.OneToOneField(Order, on_delete=models.CASCADE, related_name='third_party_delivery')
    quantity_delivered = models.DecimalField(max_digits=12, decimal_places=3, null=True, blank=True)
    delivery_partner_name = models.CharField(max_length=200, blank=True)
    delivery_notes = models.TextField(blank=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'third_party_deliveries'
