from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from decimal import Decimal


TAG_TYPE_CHOICES = [
    ('raw_material', 'Raw Material'),
    ('recurring_product', 'Recurring Product'),
    ('produced_goods', 'Produced Goods'),
]

LOT_TYPE_CHOICES = [
    ('raw_material', 'Raw Material'),
    ('recurring_product', 'Recurring Product'),
]

STATUS_CHOICES = [
    ('active', 'Active'),
    ('inactive', 'Inactive'),
]


class Supplier(models.Model):
    """Supplier of raw materials, recurring products or machines"""
    SUPPLIER_TYPE_CHOICES = [
        ('raw_material', 'Raw Material'),
        ('recurring_product', 'Recurring Product'),
        ('machine', 'Machine'),
        ('multiple', 'Multiple'),
    ]

    name = models.CharField(max_length=200)
    supplier_type = models.CharField(max_length=30, choices=SUPPLIER_TYPE_CHOICES)
    contact_details = models.TextField(blank=True)
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'suppliers'
        ordering = ['name']


class Tag(models.Model):
    """Classification tag for lots and produced goods"""
    tag_type = models.CharField(max_length=30, choices=TAG_TYPE_CHOICES)
    key = models.CharField(max_length=100)
    display_name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active')
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.display_name} ({self.tag_type})"

    class Meta:
        db_table = 'tags'
        ordering = ['display_name']
        unique_together = [['tag_type', 'key']]


class Unit(models.Model):
    """Unit of measure available for a given item type"""
    unit_type = models.CharField(max_length=30, choices=TAG_TYPE_CHOICES)
    key = models.CharField(max_length=50)
    display_name = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    allows_decimal = models.BooleanField(default=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.display_name

    class Meta:
        db_table = 'units'
        ordering = ['display_name']
        unique_together = [['unit_type', 'key']]


class StockLot(models.Model):
    """Fields shared by raw material and recurring product lots"""
    name = models.CharField(max_length=200)
    supplier = models.ForeignKey(Supplier, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    tag = models.ForeignKey(Tag, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    lot_id = models.CharField(max_length=100, unique=True)
    quantity_received = models.DecimalField(max_digits=12, decimal_places=3)
    quantity_available = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0'))
    unit = models.CharField(max_length=50)
    received_date = models.DateField()
    handover_to = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    amount_paid = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    is_archived = models.BooleanField(default=False)
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    lot_type = None

    def clean(self):
        if self.quantity_received is not None and self.quantity_received <= 0:
            raise ValidationError({'quantity_received': 'Quantity received must be greater than zero'})

    def __str__(self):
        return f"{self.name} ({self.lot_id})"

    class Meta:
        abstract = True
        ordering = ['-received_date', '-created_at']


class RawMaterial(StockLot):
    condition = models.CharField(max_length=100, blank=True)
    storage_notes = models.TextField(blank=True)

    lot_type = 'raw_material'

    class Meta(StockLot.Meta):
        db_table = 'raw_materials'


class RecurringProduct(StockLot):
    category = models.CharField(max_length=100, blank=True)

    lot_type = 'recurring_product'

    class Meta(StockLot.Meta):
        db_table = 'recurring_products'


class StockMovement(models.Model):
    """Append-only ledger row; quantities are always positive"""
    MOVEMENT_IN = 'IN'
    MOVEMENT_CONSUMPTION = 'CONSUMPTION'
    MOVEMENT_WASTE = 'WASTE'
    MOVEMENT_TRANSFER_OUT = 'TRANSFER_OUT'
    MOVEMENT_TRANSFER_IN = 'TRANSFER_IN'

    MOVEMENT_TYPE_CHOICES = [
        (MOVEMENT_IN, 'In'),
        (MOVEMENT_CONSUMPTION, 'Consumption'),
        (MOVEMENT_WASTE, 'Waste'),
        (MOVEMENT_TRANSFER_OUT, 'Transfer Out'),
        (MOVEMENT_TRANSFER_IN, 'Transfer In'),
    ]
    INBOUND_TYPES = [MOVEMENT_IN, MOVEMENT_TRANSFER_IN]
    OUTBOUND_TYPES = [MOVEMENT_CONSUMPTION, MOVEMENT_WASTE, MOVEMENT_TRANSFER_OUT]

    REFERENCE_TYPE_CHOICES = [
        ('initial_intake', 'Initial Intake'),
        ('waste_record', 'Waste Record'),
        ('transfer_record', 'Transfer Record'),
        ('production_batch', 'Production Batch'),
    ]

    item_type = models.CharField(max_length=30, choices=LOT_TYPE_CHOICES)
    item_id = models.PositiveBigIntegerField()
    lot_reference = models.CharField(max_length=100, blank=True)
    movement_type = models.CharField(max_length=20, choices=MOVEMENT_TYPE_CHOICES)
    quantity = models.DecimalField(max_digits=12, decimal_places=3)
    unit = models.CharField(max_length=50)
    effective_date = models.DateField()
    reference_type = models.CharField(max_length=30, choices=REFERENCE_TYPE_CHOICES, blank=True)
    reference_id = models.PositiveBigIntegerField(null=True, blank=True)
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)

    def clean(self):
        if self.quantity is not None and self.quantity <= 0:
            raise ValidationError({'quantity': 'Movement quantity must be positive'})

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.movement_type} {self.quantity} {self.unit} ({self.lot_reference})"

    class Meta:
        db_table = 'stock_movements'
        ordering = ['effective_date', 'created_at', 'id']
        indexes = [
            models.Index(fields=['item_type', 'item_id'], name='stock_mov_item_idx'),
            models.Index(fields=['effective_date'], name='stock_mov_date_idx'),
            models.Index(fields=['reference_type', 'reference_id'], name='stock_mov_ref_idx'),
        ]


class WasteRecord(models.Model):
    lot_type = models.CharField(max_length=30, choices=LOT_TYPE_CHOICES)
    item_id = models.PositiveBigIntegerField()
    lot_identifier = models.CharField(max_length=100)
    quantity_wasted = models.DecimalField(max_digits=12, decimal_places=3)
    unit = models.CharField(max_length=50)
    reason = models.CharField(max_length=255)
    notes = models.TextField(blank=True)
    waste_date = models.DateField()
    stock_movement = models.OneToOneField(StockMovement, on_delete=models.SET_NULL, null=True, blank=True, related_name='waste_record')
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Waste {self.quantity_wasted} {self.unit} from {self.lot_identifier}"

    class Meta:
        db_table = 'waste_records'
        ordering = ['-waste_date', '-created_at']


class TransferRecord(models.Model):
    lot_type = models.CharField(max_length=30, choices=LOT_TYPE_CHOICES)
    from_item_id = models.PositiveBigIntegerField()
    from_lot_identifier = models.CharField(max_length=100)
    to_item_id = models.PositiveBigIntegerField()
    to_lot_identifier = models.CharField(max_length=100)
    quantity_transferred = models.DecimalField(max_digits=12, decimal_places=3)
    unit = models.CharField(max_length=50)
    reason = models.CharField(max_length=255)
    notes = models.TextField(blank=True)
    transfer_date = models.DateField()
    out_movement = models.OneToOneField(StockMovement, on_delete=models.SET_NULL, null=True, blank=True, related_name='transfer_out_record')
    in_movement = models.OneToOneField(StockMovement, on_delete=models.SET_NULL, null=True, blank=True, related_name='transfer_in_record')
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Transfer {self.quantity_transferred} {self.unit}: {self.from_lot_identifier} -> {self.to_lot_identifier}"

    class Meta:
        db_table = 'transfer_records'
        ordering = ['-transfer_date', '-created_at']


class ProductionBatch(models.Model):
    """Production run consuming lots and producing outputs"""
    QA_STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('approved', 'Approved'),
        ('rejected', 'Rejected'),
        ('hold', 'Hold'),
    ]

    batch_id = models.CharField(max_length=50, unique=True)
    batch_date = models.DateField()
    responsible_user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    qa_status = models.CharField(max_length=20, choices=QA_STATUS_CHOICES, default='pending')
    qa_reason = models.TextField(blank=True)
    notes = models.TextField(blank=True)
    is_locked = models.BooleanField(default=False)
    production_start_date = models.DateField(null=True, blank=True)
    production_end_date = models.DateField(null=True, blank=True)
    custom_fields = models.JSONField(default=dict, blank=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def clean(self):
        if self.production_start_date and self.production_end_date and self.production_end_date < self.production_start_date:
            raise ValidationError({'production_end_date': 'Production end date cannot be before start date'})

    def __str__(self):
        return self.batch_id

    class Meta:
        db_table = 'production_batches'
        ordering = ['-batch_date', '-created_at']


class BatchRawMaterial(models.Model):
    batch = models.ForeignKey(ProductionBatch, on_delete=models.CASCADE, related_name='raw_materials')
    raw_material = models.ForeignKey(RawMaterial, on_delete=models.PROTECT, related_name='batch_usages')
    quantity_consumed = models.DecimalField(max_digits=12, decimal_places=3)
    unit = models.CharField(max_length=50)
    stock_movement = models.OneToOneField(StockMovement, on_delete=models.SET_NULL, null=True, blank=True, related_name='batch_raw_material')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'batch_raw_materials'


class BatchRecurringProduct(models.Model):
    batch = models.ForeignKey(ProductionBatch, on_delete=models.CASCADE, related_name='recurring_products')
    recurring_product = models.ForeignKey(RecurringProduct, on_delete=models.PROTECT, related_name='batch_usages')
    quantity_consumed = models.DecimalField(max_digits=12, decimal_places=3)
    unit = models.CharField(max_length=50)
    stock_movement = models.OneToOneField(StockMovement, on_delete=models.SET_NULL, null=True, blank=True, related_name='batch_recurring_product')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'batch_recurring_products'


class BatchOutput(models.Model):
    batch = models.ForeignKey(ProductionBatch, on_delete=models.CASCADE, related_name='outputs')
    output_name = models.CharField(max_length=200)
    output_size = models.DecimalField(max_digits=10, decimal_places=3, null=True, blank=True)
    output_size_unit = models.CharField(max_length=50, blank=True)
    produced_quantity = models.DecimalField(max_digits=12, decimal_places=3)
    produced_unit = models.CharField(max_length=50)
    produced_goods_tag = models.ForeignKey(Tag, on_delete=models.PROTECT, null=True, blank=True, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'batch_outputs'


class ProcessedGood(models.Model):
    """Finished goods created from an approved production batch"""
    batch = models.ForeignKey(ProductionBatch, on_delete=models.SET_NULL, null=True, blank=True, related_name='processed_goods')
    batch_reference = models.CharField(max_length=50)
    product_type = models.CharField(max_length=200)
    produced_goods_tag = models.ForeignKey(Tag, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    quantity_created = models.DecimalField(max_digits=12, decimal_places=3)
    quantity_available = models.DecimalField(max_digits=12, decimal_places=3)
    unit = models.CharField(max_length=50)
    production_date = models.DateField()
    qa_status = models.CharField(max_length=20, default='approved')
    output_size = models.DecimalField(max_digits=10, decimal_places=3, null=True, blank=True)
    output_size_unit = models.CharField(max_length=50, blank=True)
    additional_information = models.TextField(blank=True)
    custom_fields = models.JSONField(default=dict, blank=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)

    def clean(self):
        if self.quantity_available is not None and self.quantity_available < 0:
            raise ValidationError({'quantity_available': 'Available quantity cannot be negative'})

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.product_type} ({self.batch_reference})"

    class Meta:
        db_table = 'processed_goods'
        ordering = ['-production_date', '-created_at']


class ProcessedGoodHistory(models.Model):
    """Quantity change log for a processed good"""
    CHANGE_TYPE_CHOICES = [
        ('delivery', 'Delivery'),
        ('adjustment', 'Adjustment'),
        ('correction', 'Correction'),
        ('other', 'Other'),
    ]

    processed_good = models.ForeignKey(ProcessedGood, on_delete=models.CASCADE, related_name='history')
    quantity_before = models.DecimalField(max_digits=12, decimal_places=3)
    quantity_after = models.DecimalField(max_digits=12, decimal_places=3)
    quantity_change = models.DecimalField(max_digits=12, decimal_places=3)
    change_type = models.CharField(max_length=20, choices=CHANGE_TYPE_CHOICES)
    change_reason = models.TextField(blank=True)
    order_number = models.CharField(max_length=50, blank=True)
    delivery_dispatch_id = models.PositiveBigIntegerField(null=True, blank=True)
    effective_date = models.DateField()
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'processed_goods_history'
        ordering = ['-effective_date', '-created_at']


class Machine(models.Model):
    STATUS_CHOICES = [
        ('active', 'Active'),
        ('maintenance', 'Maintenance'),
        ('idle', 'Idle'),
    ]

    name = models.CharField(max_length=200)
    category = models.CharField(max_length=100, blank=True)
    supplier = models.ForeignKey(Supplier, on_delete=models.SET_NULL, null=True, blank=True, related_name='machines')
    responsible_user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    purchase_date = models.DateField(null=True, blank=True)
    purchase_cost = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active')
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'machines'
        ordering = ['name']
