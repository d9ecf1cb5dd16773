from django.contrib import admin
from .models import (
    CustomerType, Customer, Order, OrderItem, DeliveryDispatch, OrderPayment, Invoice,
    OrderLockLog, OrderAuditLog, ThirdPartyDelivery
)


@admin.register(CustomerType)
class CustomerTypeAdmin(admin.ModelAdmin):
    list_display = ['display_name', 'key', 'status']
    list_filter = ['status']


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ['name', 'customer_type', 'contact_person', 'phone', 'status', 'created_at']
    list_filter = ['customer_type', 'status']
    search_fields = ['name', 'contact_person', 'phone']
    ordering = ['name']


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ['quantity_delivered', 'line_total']


class OrderPaymentInline(admin.TabularInline):
    model = OrderPayment
    extra = 0
    readonly_fields = ['income']


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['order_number', 'customer', 'order_date', 'status', 'payment_status', 'total_amount',
                    'discount_amount', 'is_on_hold', 'is_locked']
    list_filter = ['status', 'payment_status', 'is_locked', 'is_on_hold', 'order_date']
    search_fields = ['order_number', 'customer__name']
    readonly_fields = ['order_number', 'total_amount', 'status', 'payment_status', 'completed_at',
                       'locked_at', 'locked_by', 'can_unlock_until', 'created_at', 'updated_at']
    inlines = [OrderItemInline, OrderPaymentInline]


@admin.register(DeliveryDispatch)
class DeliveryDispatchAdmin(admin.ModelAdmin):
    list_display = ['order', 'order_item', 'quantity_delivered', 'delivery_date', 'created_by']
    list_filter = ['delivery_date']
    search_fields = ['order__order_number']


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = ['invoice_number', 'order', 'invoice_date', 'generated_by']
    search_fields = ['invoice_number', 'order__order_number']


@admin.register(OrderLockLog)
class OrderLockLogAdmin(admin.ModelAdmin):
    list_display = ['order', 'action', 'performed_by', 'performed_at', 'unlock_reason']
    list_filter = ['action']


@admin.register(OrderAuditLog)
class OrderAuditLogAdmin(admin.ModelAdmin):
    list_display = ['order', 'event_type', 'performed_by', 'performed_at', 'description']
    list_filter = ['event_type']
    search_fields = ['order__order_number', 'description']


admin.site.register(ThirdPartyDelivery)
