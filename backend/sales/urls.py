from django.urls import path
from . import views

urlpatterns = [
    # Customers
    path('customer-types/', views.customer_type_list_create, name='customer-type-list-create'),
    path('customer-types/<int:pk>/', views.customer_type_detail, name='customer-type-detail'),
    path('customers/', views.customer_list_create, name='customer-list-create'),
    path('customers/<int:pk>/', views.customer_detail, name='customer-detail'),
    path('customers/<int:pk>/orders/', views.customer_orders, name='customer-orders'),

    # Orders
    path('orders/', views.order_list_create, name='order-list-create'),
    path('orders/<int:pk>/', views.order_detail, name='order-detail'),
    path('orders/<int:pk>/items/', views.order_item_create, name='order-item-create'),
    path('orders/<int:pk>/items/<int:item_pk>/', views.order_item_detail, name='order-item-detail'),
    path('orders/<int:pk>/items/<int:item_pk>/deliveries/', views.order_item_delivery, name='order-item-delivery'),
    path('orders/<int:pk>/deliveries/', views.order_deliveries, name='order-deliveries'),
    path('orders/<int:pk>/payments/', views.order_payments, name='order-payments'),
    path('orders/<int:pk>/hold/', views.order_hold, name='order-hold'),
    path('orders/<int:pk>/lock/', views.order_lock, name='order-lock'),
    path('orders/<int:pk>/unlock/', views.order_unlock, name='order-unlock'),
    path('orders/<int:pk>/lock-history/', views.order_lock_history, name='order-lock-history'),
    path('orders/<int:pk>/audit-log/', views.order_audit_log, name='order-audit-log'),
    path('orders/<int:pk>/invoice/', views.order_invoice, name='order-invoice'),
    path('orders/<int:pk>/third-party-delivery/', views.order_third_party_delivery, name='order-third-party-delivery'),

    # Payments and invoices
    path('payments/', views.payment_list, name='payment-list'),
    path('payments/<int:pk>/', views.payment_detail, name='payment-detail'),
    path('invoices/', views.invoice_list, name='invoice-list'),

    path('processed-goods/<int:pk>/sales-history/', views.processed_good_sales_history, name='processed-good-sales-history'),
]
