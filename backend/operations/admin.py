from django.contrib import admin
from .models import (
    Supplier, Tag, Unit, RawMaterial, RecurringProduct, StockMovement, WasteRecord, TransferRecord,
    ProductionBatch, BatchRawMaterial, BatchRecurringProduct, BatchOutput, ProcessedGood,
    ProcessedGoodHistory, Machine
)


@admin.register(Supplier)
class SupplierAdmin(admin.ModelAdmin):
    list_display = ['name', 'supplier_type', 'created_at']
    list_filter = ['supplier_type']
    search_fields = ['name', 'contact_details']
    ordering = ['name']


@admin.register(Tag)
class TagAdmin(admin.ModelAdmin):
    list_display = ['display_name', 'key', 'tag_type', 'status']
    list_filter = ['tag_type', 'status']
    search_fields = ['display_name', 'key']


@admin.register(Unit)
class UnitAdmin(admin.ModelAdmin):
    list_display = ['display_name', 'key', 'unit_type', 'allows_decimal', 'status']
    list_filter = ['unit_type', 'status']


class LotAdmin(admin.ModelAdmin):
    list_display = ['lot_id', 'name', 'tag', 'quantity_received', 'quantity_available', 'unit', 'received_date', 'is_archived']
    list_filter = ['is_archived', 'tag', 'received_date']
    search_fields = ['lot_id', 'name']
    readonly_fields = ['quantity_available', 'created_at', 'updated_at']


admin.site.register(RawMaterial, LotAdmin)
admin.site.register(RecurringProduct, LotAdmin)


@admin.register(StockMovement)
class StockMovementAdmin(admin.ModelAdmin):
    list_display = ['lot_reference', 'item_type', 'movement_type', 'quantity', 'unit', 'effective_date', 'reference_type']
    list_filter = ['item_type', 'movement_type', 'reference_type']
    search_fields = ['lot_reference']
    readonly_fields = [f.name for f in StockMovement._meta.fields]


@admin.register(WasteRecord)
class WasteRecordAdmin(admin.ModelAdmin):
    list_display = ['lot_identifier', 'quantity_wasted', 'unit', 'reason', 'waste_date']
    list_filter = ['lot_type', 'waste_date']
    search_fields = ['lot_identifier', 'reason']


@admin.register(TransferRecord)
class TransferRecordAdmin(admin.ModelAdmin):
    list_display = ['from_lot_identifier', 'to_lot_identifier', 'quantity_transferred', 'unit', 'transfer_date']
    list_filter = ['lot_type', 'transfer_date']
    search_fields = ['from_lot_identifier', 'to_lot_identifier']


class BatchRawMaterialInline(admin.TabularInline):
    model = BatchRawMaterial
    extra = 0
    readonly_fields = ['stock_movement']


class BatchRecurringProductInline(admin.TabularInline):
    model = BatchRecurringProduct
    extra = 0
    readonly_fields = ['stock_movement']


class BatchOutputInline(admin.TabularInline):
    model = BatchOutput
    extra = 0


@admin.register(ProductionBatch)
class ProductionBatchAdmin(admin.ModelAdmin):
    list_display = ['batch_id', 'batch_date', 'qa_status', 'is_locked', 'responsible_user']
    list_filter = ['qa_status', 'is_locked', 'batch_date']
    search_fields = ['batch_id']
    inlines = [BatchRawMaterialInline, BatchRecurringProductInline, BatchOutputInline]


class ProcessedGoodHistoryInline(admin.TabularInline):
    model = ProcessedGoodHistory
    extra = 0
    readonly_fields = ['quantity_before', 'quantity_after', 'quantity_change', 'change_type', 'change_reason',
                       'order_number', 'effective_date', 'created_by']


@admin.register(ProcessedGood)
class ProcessedGoodAdmin(admin.ModelAdmin):
    list_display = ['product_type', 'batch_reference', 'quantity_created', 'quantity_available', 'unit', 'production_date']
    list_filter = ['produced_goods_tag', 'production_date']
    search_fields = ['product_type', 'batch_reference']
    inlines = [ProcessedGoodHistoryInline]


@admin.register(Machine)
class MachineAdmin(admin.ModelAdmin):
    list_display = ['name', 'category', 'status', 'supplier', 'purchase_date']
    list_filter = ['status']
    search_fields = ['name', 'category']
