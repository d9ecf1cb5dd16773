# Generated manually
import django.db.models.deletion
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


def user_fk(related_name='+', **kwargs):
    return models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name=related_name, to=settings.AUTH_USER_MODEL, **kwargs)


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('operations', '0001_initial'),
        ('finance', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='CustomerType',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('key', models.CharField(max_length=50, unique=True)),
                ('display_name', models.CharField(max_length=100)),
                ('status', models.CharField(choices=[('active', 'Active'), ('inactive', 'Inactive')], default='active', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'customer_types',
                'ordering': ['display_name'],
            },
        ),
        migrations.CreateModel(
            name='Customer',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('customer_type', models.CharField(max_length=50)),
                ('contact_person', models.CharField(blank=True, max_length=200)),
                ('phone', models.CharField(blank=True, max_length=20)),
                ('address', models.TextField(blank=True)),
                ('status', models.CharField(choices=[('Active', 'Active'), ('Inactive', 'Inactive')], default='Active', max_length=20)),
                ('notes', models.TextField(blank=True)),
                ('photo_url', models.URLField(blank=True, max_length=500)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', user_fk()),
            ],
            options={
                'db_table': 'customers',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Order',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('order_number', models.CharField(max_length=20, unique=True)),
                ('order_date', models.DateField()),
                ('status', models.CharField(choices=[('ORDER_CREATED', 'Order Created'), ('READY_FOR_PAYMENT', 'Ready for Payment'), ('HOLD', 'Hold'), ('ORDER_COMPLETED', 'Order Completed')], default='ORDER_CREATED', max_length=30)),
                ('payment_status', models.CharField(choices=[('READY_FOR_PAYMENT', 'Ready for Payment'), ('PARTIAL_PAYMENT', 'Partial Payment'), ('FULL_PAYMENT', 'Full Payment')], default='READY_FOR_PAYMENT', max_length=30)),
                ('total_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('discount_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('notes', models.TextField(blank=True)),
                ('is_on_hold', models.BooleanField(default=False)),
                ('hold_reason', models.TextField(blank=True)),
                ('held_at', models.DateTimeField(blank=True, null=True)),
                ('is_locked', models.BooleanField(default=False)),
                ('locked_at', models.DateTimeField(blank=True, null=True)),
                ('can_unlock_until', models.DateTimeField(blank=True, null=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('third_party_delivery_enabled', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', user_fk()),
                ('customer', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='orders', to='sales.customer')),
                ('held_by', user_fk()),
                ('locked_by', user_fk()),
                ('sold_by', user_fk()),
            ],
            options={
                'db_table': 'orders',
                'ordering': ['-order_date', '-created_at'],
                'indexes': [
                    models.Index(fields=['status'], name='orders_status_idx'),
                    models.Index(fields=['order_date'], name='orders_date_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='OrderItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('product_type', models.CharField(max_length=200)),
                ('form', models.CharField(blank=True, max_length=100)),
                ('size', models.CharField(blank=True, max_length=100)),
                ('quantity', models.DecimalField(decimal_places=3, max_digits=12)),
                ('quantity_delivered', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=12)),
                ('unit_price', models.DecimalField(decimal_places=2, max_digits=12)),
                ('unit', models.CharField(max_length=50)),
                ('line_total', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='sales.order')),
                ('processed_good', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='order_items', to='operations.processedgood')),
            ],
            options={
                'db_table': 'order_items',
                'ordering': ['created_at', 'id'],
            },
        ),
        migrations.CreateModel(
            name='DeliveryDispatch',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity_delivered', models.DecimalField(decimal_places=3, max_digits=12)),
                ('delivery_date', models.DateField()),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('created_by', user_fk()),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='deliveries', to='sales.order')),
                ('order_item', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='deliveries', to='sales.orderitem')),
                ('processed_good', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='deliveries', to='operations.processedgood')),
            ],
            options={
                'db_table': 'delivery_dispatches',
                'ordering': ['-delivery_date', '-created_at'],
            },
        ),
        migrations.CreateModel(
            name='OrderPayment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('payment_date', models.DateField()),
                ('payment_mode', models.CharField(choices=[('Cash', 'Cash'), ('UPI', 'UPI'), ('Bank', 'Bank')], max_length=10)),
                ('transaction_reference', models.CharField(blank=True, max_length=200)),
                ('evidence_url', models.URLField(blank=True, max_length=500)),
                ('amount_received', models.DecimalField(decimal_places=2, max_digits=12)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', user_fk()),
                ('income', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='sales_payment', to='finance.income')),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='payments', to='sales.order')),
            ],
            options={
                'db_table': 'order_payments',
                'ordering': ['-payment_date', '-created_at'],
            },
        ),
        migrations.CreateModel(
            name='Invoice',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('invoice_number', models.CharField(max_length=20, unique=True)),
                ('invoice_date', models.DateField()),
                ('generated_at', models.DateTimeField(auto_now_add=True)),
                ('notes', models.TextField(blank=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('generated_by', user_fk()),
                ('order', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='invoice', to='sales.order')),
            ],
            options={
                'db_table': 'invoices',
                'ordering': ['-invoice_date', '-generated_at'],
            },
        ),
        migrations.CreateModel(
            name='OrderLockLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('action', models.CharField(choices=[('LOCK', 'Lock'), ('UNLOCK', 'Unlock')], max_length=10)),
                ('performed_at', models.DateTimeField(auto_now_add=True)),
                ('unlock_reason', models.TextField(blank=True)),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='lock_logs', to='sales.order')),
                ('performed_by', user_fk()),
            ],
            options={
                'db_table': 'order_lock_logs',
                'ordering': ['-performed_at', '-id'],
            },
        ),
        migrations.CreateModel(
            name='OrderAuditLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('event_type', models.CharField(choices=[('ORDER_CREATED', 'Order Created'), ('ITEM_ADDED', 'Item Added'), ('ITEM_UPDATED', 'Item Updated'), ('ITEM_DELETED', 'Item Deleted'), ('PAYMENT_RECEIVED', 'Payment Received'), ('PAYMENT_DELETED', 'Payment Deleted'), ('STATUS_CHANGED', 'Status Changed'), ('HOLD_PLACED', 'Hold Placed'), ('HOLD_REMOVED', 'Hold Removed'), ('ORDER_LOCKED', 'Order Locked'), ('ORDER_UNLOCKED', 'Order Unlocked'), ('DISCOUNT_APPLIED', 'Discount Applied'), ('ORDER_COMPLETED', 'Order Completed')], max_length=30)),
                ('performed_at', models.DateTimeField(auto_now_add=True)),
                ('event_data', models.JSONField(blank=True, default=dict)),
                ('description', models.TextField(blank=True)),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='audit_events', to='sales.order')),
                ('performed_by', user_fk()),
            ],
            options={
                'db_table': 'order_audit_log',
                'ordering': ['-performed_at', '-id'],
                'indexes': [
                    models.Index(fields=['order', 'performed_at'], name='order_audit_order_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ThirdPartyDelivery',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity_delivered', models.DecimalField(blank=True, decimal_places=3, max_digits=12, null=True)),
                ('delivery_partner_name', models.CharField(blank=True, max_length=200)),
                ('delivery_notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', user_fk()),
                ('order', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='third_party_delivery', to='sales.order')),
            ],
            options={
                'db_table': 'third_party_deliveries',
            },
        ),
    ]
