from rest_framework import serializers
from .models import (
    Supplier, Tag, Unit, RawMaterial, RecurringProduct, StockMovement, WasteRecord,
    TransferRecord, ProductionBatch, BatchRawMaterial, BatchRecurringProduct, BatchOutput,
    ProcessedGood, ProcessedGoodHistory, Machine, LOT_TYPE_CHOICES
)


class SupplierSerializer(serializers.ModelSerializer):
    class Meta:
        model = Supplier
        fields = ['id', 'name', 'supplier_type', 'contact_details', 'notes', 'created_by', 'created_at', 'updated_at']
        read_only_fields = ['created_by', 'created_at', 'updated_at']


class TagSerializer(serializers.ModelSerializer):
    class Meta:
        model = Tag
        fields = ['id', 'tag_type', 'key', 'display_name', 'description', 'status', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']


class UnitSerializer(serializers.ModelSerializer):
    class Meta:
        model = Unit
        fields = ['id', 'unit_type', 'key', 'display_name', 'description', 'allows_decimal', 'status', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']


LOT_FIELDS = [
    'id', 'name', 'supplier', 'supplier_name', 'tag', 'tag_name', 'lot_id', 'quantity_received',
    'quantity_available', 'unit', 'received_date', 'handover_to', 'handover_to_name', 'amount_paid',
    'is_archived', 'notes', 'created_by', 'created_at', 'updated_at',
]
LOT_READ_ONLY = ['quantity_available', 'is_archived', 'created_by', 'created_at', 'updated_at']


class LotSerializerMixin(serializers.Serializer):
    supplier_name = serializers.CharField(source='supplier.name', read_only=True, default=None)
    tag_name = serializers.CharField(source='tag.display_name', read_only=True, default=None)
    handover_to_name = serializers.CharField(source='handover_to.display_name', read_only=True, default=None)

    def validate_quantity_received(self, value):
        if value <= 0:
            raise serializers.ValidationError("Quantity received must be greater than zero")
        return value

    def validate(self, attrs):
        tag = attrs.get('tag')
        if tag and tag.tag_type != self.Meta.model.lot_type:
            raise serializers.ValidationError({'tag': f"Tag must be a {self.Meta.model.lot_type} tag"})
        return attrs


class RawMaterialSerializer(LotSerializerMixin, serializers.ModelSerializer):
    class Meta:
        model = RawMaterial
        fields = LOT_FIELDS + ['condition', 'storage_notes']
        read_only_fields = LOT_READ_ONLY


class RecurringProductSerializer(LotSerializerMixin, serializers.ModelSerializer):
    class Meta:
        model = RecurringProduct
        fields = LOT_FIELDS + ['category']
        read_only_fields = LOT_READ_ONLY


class StockMovementSerializer(serializers.ModelSerializer):
    class Meta:
        model = StockMovement
        fields = ['id', 'item_type', 'item_id', 'lot_reference', 'movement_type', 'quantity', 'unit',
                  'effective_date', 'reference_type', 'reference_id', 'notes', 'created_by', 'created_at']


class WasteRecordSerializer(serializers.ModelSerializer):
    created_by_name = serializers.CharField(source='created_by.display_name', read_only=True, default=None)

    class Meta:
        model = WasteRecord
        fields = ['id', 'lot_type', 'item_id', 'lot_identifier', 'quantity_wasted', 'unit', 'reason', 'notes',
                  'waste_date', 'created_by', 'created_by_name', 'created_at', 'updated_at']
        read_only_fields = ['lot_identifier', 'unit', 'created_by', 'created_at', 'updated_at']


class WasteUpdateSerializer(serializers.Serializer):
    quantity_wasted = serializers.DecimalField(max_digits=12, decimal_places=3, required=False)
    reason = serializers.CharField(max_length=255, required=False)
    notes = serializers.CharField(required=False, allow_blank=True)
    waste_date = serializers.DateField(required=False)


class TransferRecordSerializer(serializers.ModelSerializer):
    created_by_name = serializers.CharField(source='created_by.display_name', read_only=True, default=None)

    class Meta:
        model = TransferRecord
        fields = ['id', 'lot_type', 'from_item_id', 'from_lot_identifier', 'to_item_id', 'to_lot_identifier',
                  'quantity_transferred', 'unit', 'reason', 'notes', 'transfer_date', 'created_by',
                  'created_by_name', 'created_at', 'updated_at']
        read_only_fields = ['from_lot_identifier', 'to_lot_identifier', 'unit', 'created_by', 'created_at', 'updated_at']


class TransferUpdateSerializer(serializers.Serializer):
    quantity_transferred = serializers.DecimalField(max_digits=12, decimal_places=3, required=False)
    reason = serializers.CharField(max_length=255, required=False)
    notes = serializers.CharField(required=False, allow_blank=True)
    transfer_date = serializers.DateField(required=False)


class BatchRawMaterialSerializer(serializers.ModelSerializer):
    raw_material_name = serializers.CharField(source='raw_material.name', read_only=True)
    lot_id = serializers.CharField(source='raw_material.lot_id', read_only=True)

    class Meta:
        model = BatchRawMaterial
        fields = ['id', 'batch', 'raw_material', 'raw_material_name', 'lot_id', 'quantity_consumed', 'unit', 'created_at']
        read_only_fields = ['batch', 'unit', 'created_at']


class BatchRecurringProductSerializer(serializers.ModelSerializer):
    recurring_product_name = serializers.CharField(source='recurring_product.name', read_only=True)
    lot_id = serializers.CharField(source='recurring_product.lot_id', read_only=True)

    class Meta:
        model = BatchRecurringProduct
        fields = ['id', 'batch', 'recurring_product', 'recurring_product_name', 'lot_id', 'quantity_consumed', 'unit', 'created_at']
        read_only_fields = ['batch', 'unit', 'created_at']


class BatchConsumptionSerializer(serializers.Serializer):
    lot_type = serializers.ChoiceField(choices=LOT_TYPE_CHOICES)
    item_id = serializers.IntegerField(min_value=1)
    quantity = serializers.DecimalField(max_digits=12, decimal_places=3)


class BatchOutputSerializer(serializers.ModelSerializer):
    produced_goods_tag_name = serializers.CharField(source='produced_goods_tag.display_name', read_only=True, default=None)

    class Meta:
        model = BatchOutput
        fields = ['id', 'batch', 'output_name', 'output_size', 'output_size_unit', 'produced_quantity',
                  'produced_unit', 'produced_goods_tag', 'produced_goods_tag_name', 'created_at', 'updated_at']
        read_only_fields = ['batch', 'created_at', 'updated_at']

    def validate_produced_goods_tag(self, value):
        if value and value.tag_type != 'produced_goods':
            raise serializers.ValidationError("Output tag must be a produced goods tag")
        return value


class ProductionBatchSerializer(serializers.ModelSerializer):
    responsible_user_name = serializers.CharField(source='responsible_user.display_name', read_only=True, default=None)
    raw_materials = BatchRawMaterialSerializer(many=True, read_only=True)
    recurring_products = BatchRecurringProductSerializer(many=True, read_only=True)
    outputs = BatchOutputSerializer(many=True, read_only=True)

    class Meta:
        model = ProductionBatch
        fields = ['id', 'batch_id', 'batch_date', 'responsible_user', 'responsible_user_name', 'qa_status',
                  'qa_reason', 'notes', 'is_locked', 'production_start_date', 'production_end_date',
                  'custom_fields', 'raw_materials', 'recurring_products', 'outputs', 'created_by',
                  'created_at', 'updated_at']
        read_only_fields = ['batch_id', 'is_locked', 'created_by', 'created_at', 'updated_at']

    def validate(self, attrs):
        start = attrs.get('production_start_date', getattr(self.instance, 'production_start_date', None))
        end = attrs.get('production_end_date', getattr(self.instance, 'production_end_date', None))
        if start and end and end < start:
            raise serializers.ValidationError({'production_end_date': 'Production end date cannot be before start date'})
        return attrs


class ProcessedGoodSerializer(serializers.ModelSerializer):
    produced_goods_tag_name = serializers.CharField(source='produced_goods_tag.display_name', read_only=True, default=None)
    quantity_delivered = serializers.SerializerMethodField()

    class Meta:
        model = ProcessedGood
        fields = ['id', 'batch', 'batch_reference', 'product_type', 'produced_goods_tag', 'produced_goods_tag_name',
                  'quantity_created', 'quantity_available', 'quantity_delivered', 'unit', 'production_date',
                  'qa_status', 'output_size', 'output_size_unit', 'additional_information', 'custom_fields',
                  'created_by', 'created_at']
        read_only_fields = ['batch', 'batch_reference', 'quantity_created', 'quantity_available', 'qa_status',
                            'created_by', 'created_at']

    def get_quantity_delivered(self, obj):
        delivered = getattr(obj, 'quantity_delivered', None)
        if delivered is None:
            delivered = sum((-h.quantity_change for h in obj.history.all() if h.change_type == 'delivery'), 0)
        return delivered


class ProcessedGoodAdjustSerializer(serializers.Serializer):
    quantity_available = serializers.DecimalField(max_digits=12, decimal_places=3, min_value=0)
    reason = serializers.CharField(max_length=500)
    change_type = serializers.ChoiceField(choices=['adjustment', 'correction', 'other'], default='adjustment')


class ProcessedGoodHistorySerializer(serializers.ModelSerializer):
    class Meta:
        model = ProcessedGoodHistory
        fields = ['id', 'processed_good', 'quantity_before', 'quantity_after', 'quantity_change', 'change_type',
                  'change_reason', 'order_number', 'delivery_dispatch_id', 'effective_date', 'created_by', 'created_at']


class MachineSerializer(serializers.ModelSerializer):
    supplier_name = serializers.CharField(source='supplier.name', read_only=True, default=None)
    responsible_user_name = serializers.CharField(source='responsible_user.display_name', read_only=True, default=None)

    class Meta:
        model = Machine
        fields = ['id', 'name', 'category', 'supplier', 'supplier_name', 'responsible_user', 'responsible_user_name',
                  'purchase_date', 'purchase_cost', 'status', 'notes', 'created_by', 'created_at', 'updated_at']
        read_only_fields = ['created_by', 'created_at', 'updated_at']
