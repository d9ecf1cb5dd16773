# Generated manually
import django.db.models.deletion
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models

TAG_TYPES = [('raw_material', 'Raw Material'), ('recurring_product', 'Recurring Product'), ('produced_goods', 'Produced Goods')]
LOT_TYPES = [('raw_material', 'Raw Material'), ('recurring_product', 'Recurring Product')]
STATUSES = [('active', 'Active'), ('inactive', 'Inactive')]


def lot_fields():
    return [
        ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
        ('name', models.CharField(max_length=200)),
        ('lot_id', models.CharField(max_length=100, unique=True)),
        ('quantity_received', models.DecimalField(decimal_places=3, max_digits=12)),
        ('quantity_available', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=12)),
        ('unit', models.CharField(max_length=50)),
        ('received_date', models.DateField()),
        ('amount_paid', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
        ('is_archived', models.BooleanField(default=False)),
        ('notes', models.TextField(blank=True)),
        ('created_at', models.DateTimeField(auto_now_add=True)),
        ('updated_at', models.DateTimeField(auto_now=True)),
        ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
        ('handover_to', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
        ('supplier', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to='operations.supplier')),
        ('tag', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to='operations.tag')),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Supplier',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('supplier_type', models.CharField(choices=[('raw_material', 'Raw Material'), ('recurring_product', 'Recurring Product'), ('machine', 'Machine'), ('multiple', 'Multiple')], max_length=30)),
                ('contact_details', models.TextField(blank=True)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'suppliers',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Tag',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('tag_type', models.CharField(choices=TAG_TYPES, max_length=30)),
                ('key', models.CharField(max_length=100)),
                ('display_name', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True)),
                ('status', models.CharField(choices=STATUSES, default='active', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'tags',
                'ordering': ['display_name'],
                'unique_together': {('tag_type', 'key')},
            },
        ),
        migrations.CreateModel(
            name='Unit',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('unit_type', models.CharField(choices=TAG_TYPES, max_length=30)),
                ('key', models.CharField(max_length=50)),
                ('display_name', models.CharField(max_length=100)),
                ('description', models.TextField(blank=True)),
                ('allows_decimal', models.BooleanField(default=True)),
                ('status', models.CharField(choices=STATUSES, default='active', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'units',
                'ordering': ['display_name'],
                'unique_together': {('unit_type', 'key')},
            },
        ),
        migrations.CreateModel(
            name='RawMaterial',
            fields=lot_fields() + [
                ('condition', models.CharField(blank=True, max_length=100)),
                ('storage_notes', models.TextField(blank=True)),
            ],
            options={
                'db_table': 'raw_materials',
                'ordering': ['-received_date', '-created_at'],
                'abstract': False,
            },
        ),
        migrations.CreateModel(
            name='RecurringProduct',
            fields=lot_fields() + [
                ('category', models.CharField(blank=True, max_length=100)),
            ],
            options={
                'db_table': 'recurring_products',
                'ordering': ['-received_date', '-created_at'],
                'abstract': False,
            },
        ),
        migrations.CreateModel(
            name='StockMovement',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('item_type', models.CharField(choices=LOT_TYPES, max_length=30)),
                ('item_id', models.PositiveBigIntegerField()),
                ('lot_reference', models.CharField(blank=True, max_length=100)),
                ('movement_type', models.CharField(choices=[('IN', 'In'), ('CONSUMPTION', 'Consumption'), ('WASTE', 'Waste'), ('TRANSFER_OUT', 'Transfer Out'), ('TRANSFER_IN', 'Transfer In')], max_length=20)),
                ('quantity', models.DecimalField(decimal_places=3, max_digits=12)),
                ('unit', models.CharField(max_length=50)),
                ('effective_date', models.DateField()),
                ('reference_type', models.CharField(blank=True, choices=[('initial_intake', 'Initial Intake'), ('waste_record', 'Waste Record'), ('transfer_record', 'Transfer Record'), ('production_batch', 'Production Batch')], max_length=30)),
                ('reference_id', models.PositiveBigIntegerField(blank=True, null=True)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'stock_movements',
                'ordering': ['effective_date', 'created_at', 'id'],
                'indexes': [
                    models.Index(fields=['item_type', 'item_id'], name='stock_mov_item_idx'),
                    models.Index(fields=['effective_date'], name='stock_mov_date_idx'),
                    models.Index(fields=['reference_type', 'reference_id'], name='stock_mov_ref_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='WasteRecord',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('lot_type', models.CharField(choices=LOT_TYPES, max_length=30)),
                ('item_id', models.PositiveBigIntegerField()),
                ('lot_identifier', models.CharField(max_length=100)),
                ('quantity_wasted', models.DecimalField(decimal_places=3, max_digits=12)),
                ('unit', models.CharField(max_length=50)),
                ('reason', models.CharField(max_length=255)),
                ('notes', models.TextField(blank=True)),
                ('waste_date', models.DateField()),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('stock_movement', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='waste_record', to='operations.stockmovement')),
            ],
            options={
                'db_table': 'waste_records',
                'ordering': ['-waste_date', '-created_at'],
            },
        ),
        migrations.CreateModel(
            name='TransferRecord',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('lot_type', models.CharField(choices=LOT_TYPES, max_length=30)),
                ('from_item_id', models.PositiveBigIntegerField()),
                ('from_lot_identifier', models.CharField(max_length=100)),
                ('to_item_id', models.PositiveBigIntegerField()),
                ('to_lot_identifier', models.CharField(max_length=100)),
                ('quantity_transferred', models.DecimalField(decimal_places=3, max_digits=12)),
                ('unit', models.CharField(max_length=50)),
                ('reason', models.CharField(max_length=255)),
                ('notes', models.TextField(blank=True)),
                ('transfer_date', models.DateField()),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('in_movement', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='transfer_in_record', to='operations.stockmovement')),
                ('out_movement', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='transfer_out_record', to='operations.stockmovement')),
            ],
            options={
                'db_table': 'transfer_records',
                'ordering': ['-transfer_date', '-created_at'],
            },
        ),
        migrations.CreateModel(
            name='ProductionBatch',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('batch_id', models.CharField(max_length=50, unique=True)),
                ('batch_date', models.DateField()),
                ('qa_status', models.CharField(choices=[('pending', 'Pending'), ('approved', 'Approved'), ('rejected', 'Rejected'), ('hold', 'Hold')], default='pending', max_length=20)),
                ('qa_reason', models.TextField(blank=True)),
                ('notes', models.TextField(blank=True)),
                ('is_locked', models.BooleanField(default=False)),
                ('production_start_date', models.DateField(blank=True, null=True)),
                ('production_end_date', models.DateField(blank=True, null=True)),
                ('custom_fields', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('responsible_user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'production_batches',
                'ordering': ['-batch_date', '-created_at'],
            },
        ),
        migrations.CreateModel(
            name='BatchRawMaterial',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity_consumed', models.DecimalField(decimal_places=3, max_digits=12)),
                ('unit', models.CharField(max_length=50)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('batch', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='raw_materials', to='operations.productionbatch')),
                ('raw_material', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='batch_usages', to='operations.rawmaterial')),
                ('stock_movement', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='batch_raw_material', to='operations.stockmovement')),
            ],
            options={
                'db_table': 'batch_raw_materials',
            },
        ),
        migrations.CreateModel(
            name='BatchRecurringProduct',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity_consumed', models.DecimalField(decimal_places=3, max_digits=12)),
                ('unit', models.CharField(max_length=50)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('batch', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='recurring_products', to='operations.productionbatch')),
                ('recurring_product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='batch_usages', to='operations.recurringproduct')),
                ('stock_movement', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='batch_recurring_product', to='operations.stockmovement')),
            ],
            options={
                'db_table': 'batch_recurring_products',
            },
        ),
        migrations.CreateModel(
            name='BatchOutput',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('output_name', models.CharField(max_length=200)),
                ('output_size', models.DecimalField(blank=True, decimal_places=3, max_digits=10, null=True)),
                ('output_size_unit', models.CharField(blank=True, max_length=50)),
                ('produced_quantity', models.DecimalField(decimal_places=3, max_digits=12)),
                ('produced_unit', models.CharField(max_length=50)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('batch', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='outputs', to='operations.productionbatch')),
                ('produced_goods_tag', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='+', to='operations.tag')),
            ],
            options={
                'db_table': 'batch_outputs',
            },
        ),
        migrations.CreateModel(
            name='ProcessedGood',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('batch_reference', models.CharField(max_length=50)),
                ('product_type', models.CharField(max_length=200)),
                ('quantity_created', models.DecimalField(decimal_places=3, max_digits=12)),
                ('quantity_available', models.DecimalField(decimal_places=3, max_digits=12)),
                ('unit', models.CharField(max_length=50)),
                ('production_date', models.DateField()),
                ('qa_status', models.CharField(default='approved', max_length=20)),
                ('output_size', models.DecimalField(blank=True, decimal_places=3, max_digits=10, null=True)),
                ('output_size_unit', models.CharField(blank=True, max_length=50)),
                ('additional_information', models.TextField(blank=True)),
                ('custom_fields', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('batch', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='processed_goods', to='operations.productionbatch')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('produced_goods_tag', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to='operations.tag')),
            ],
            options={
                'db_table': 'processed_goods',
                'ordering': ['-production_date', '-created_at'],
            },
        ),
        migrations.CreateModel(
            name='ProcessedGoodHistory',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity_before', models.DecimalField(decimal_places=3, max_digits=12)),
                ('quantity_after', models.DecimalField(decimal_places=3, max_digits=12)),
                ('quantity_change', models.DecimalField(decimal_places=3, max_digits=12)),
                ('change_type', models.CharField(choices=[('delivery', 'Delivery'), ('adjustment', 'Adjustment'), ('correction', 'Correction'), ('other', 'Other')], max_length=20)),
                ('change_reason', models.TextField(blank=True)),
                ('order_number', models.CharField(blank=True, max_length=50)),
                ('delivery_dispatch_id', models.PositiveBigIntegerField(blank=True, null=True)),
                ('effective_date', models.DateField()),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('processed_good', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='history', to='operations.processedgood')),
            ],
            options={
                'db_table': 'processed_goods_history',
                'ordering': ['-effective_date', '-created_at'],
            },
        ),
        migrations.CreateModel(
            name='Machine',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('category', models.CharField(blank=True, max_length=100)),
                ('purchase_date', models.DateField(blank=True, null=True)),
                ('purchase_cost', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('status', models.CharField(choices=[('active', 'Active'), ('maintenance', 'Maintenance'), ('idle', 'Idle')], default='active', max_length=20)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('responsible_user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('supplier', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='machines', to='operations.supplier')),
            ],
            options={
                'db_table': 'machines',
                'ordering': ['name'],
            },
        ),
    ]
