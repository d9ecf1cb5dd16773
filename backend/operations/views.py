import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db import transaction
from django.db.models import Q
from django.shortcuts import get_object_or_404
from django.utils.dateparse import parse_date
from backend.core.permissions import module_access
from backend.core.utils import create_audit_log
from .models import (
    Supplier, Tag, Unit, StockMovement, WasteRecord, TransferRecord, ProductionBatch,
    BatchRawMaterial, BatchRecurringProduct, BatchOutput, ProcessedGood, Machine, TAG_TYPE_CHOICES
)
from .serializers import (
    SupplierSerializer, TagSerializer, UnitSerializer, RawMaterialSerializer, RecurringProductSerializer,
    StockMovementSerializer, WasteRecordSerializer, WasteUpdateSerializer, TransferRecordSerializer,
    TransferUpdateSerializer, ProductionBatchSerializer, BatchConsumptionSerializer, BatchOutputSerializer,
    BatchRawMaterialSerializer, BatchRecurringProductSerializer, ProcessedGoodSerializer,
    ProcessedGoodAdjustSerializer, ProcessedGoodHistorySerializer, MachineSerializer
)
from . import services

logger = logging.getLogger('backend.operations')

OperationsAccess = module_access('operations')

LOT_SERIALIZERS = {
    'raw_material': RawMaterialSerializer,
    'recurring_product': RecurringProductSerializer,
}


# Supplier views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, OperationsAccess])
def supplier_list_create(request):
    """List all suppliers or create a new supplier"""
    if request.method == 'GET':
        queryset = Supplier.objects.all()
        supplier_type = request.query_params.get('supplier_type', None)
        search = request.query_params.get('search', None)
        if supplier_type:
            queryset = queryset.filter(Q(supplier_type=supplier_type) | Q(supplier_type='multiple'))
        if search:
            queryset = queryset.filter(Q(name__icontains=search) | Q(contact_details__icontains=search))
        serializer = SupplierSerializer(queryset, many=True)
        return Response(serializer.data)
    else:
        serializer = SupplierSerializer(data=request.data)
        if serializer.is_valid():
            serializer.save(created_by=request.user)
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, OperationsAccess])
def supplier_detail(request, pk):
    """Retrieve, update or delete a supplier"""
    supplier = get_object_or_404(Supplier, pk=pk)

    if request.method == 'GET':
        serializer = SupplierSerializer(supplier)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = SupplierSerializer(supplier, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        supplier.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# Tag and unit views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, OperationsAccess])
def tag_list_create(request):
    """List tags (optionally by tag_type) or create a tag"""
    if request.method == 'GET':
        queryset = Tag.objects.all()
        tag_type = request.query_params.get('tag_type', None)
        tag_status = request.query_params.get('status', None)
        if tag_type:
            queryset = queryset.filter(tag_type=tag_type)
        if tag_status:
            queryset = queryset.filter(status=tag_status)
        serializer = TagSerializer(queryset, many=True)
        return Response(serializer.data)
    else:
        serializer = TagSerializer(data=request.data)
        if serializer.is_valid():
            serializer.save(created_by=request.user)
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, OperationsAccess])
def tag_detail(request, pk):
    """Retrieve, update or delete a tag"""
    tag = get_object_or_404(Tag, pk=pk)

    if request.method == 'GET':
        return Response(TagSerializer(tag).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = TagSerializer(tag, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        tag.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated, OperationsAccess])
def tag_overview(request):
    """Inventory roll-up per tag"""
    tag_type = request.query_params.get('tag_type', 'produced_goods')
    if tag_type not in dict(TAG_TYPE_CHOICES):
        return Response({'error': f'Invalid tag_type: {tag_type}'}, status=status.HTTP_400_BAD_REQUEST)
    return Response(services.tag_overview(tag_type))


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, OperationsAccess])
def unit_list_create(request):
    """List units (optionally by unit_type) or create a unit"""
    if request.method == 'GET':
        queryset = Unit.objects.all()
        unit_type = request.query_params.get('unit_type', None)
        if unit_type:
            queryset = queryset.filter(unit_type=unit_type)
        if request.query_params.get('active_only') == 'true':
            queryset = queryset.filter(status='active')
        serializer = UnitSerializer(queryset, many=True)
        return Response(serializer.data)
    else:
        serializer = UnitSerializer(data=request.data)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, OperationsAccess])
def unit_detail(request, pk):
    """Retrieve, update or delete a unit"""
    unit = get_object_or_404(Unit, pk=pk)

    if request.method == 'GET':
        return Response(UnitSerializer(unit).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = UnitSerializer(unit, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        unit.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# Lot views (raw materials and recurring products share one implementation)
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, OperationsAccess])
def lot_list_create(request, lot_type):
    """List lots of a kind or create a new lot"""
    model = services.get_lot_model(lot_type)
    serializer_class = LOT_SERIALIZERS[lot_type]

    if request.method == 'GET':
        queryset = model.objects.select_related('supplier', 'tag', 'handover_to')
        if request.query_params.get('include_archived') != 'true':
            queryset = queryset.filter(is_archived=False)
        tag_id = request.query_params.get('tag_id', None)
        supplier_id = request.query_params.get('supplier_id', None)
        search = request.query_params.get('search', None)
        if tag_id:
            queryset = queryset.filter(tag_id=tag_id)
        if supplier_id:
            queryset = queryset.filter(supplier_id=supplier_id)
        if request.query_params.get('in_stock') == 'true':
            queryset = queryset.filter(quantity_available__gt=0)
        if search:
            queryset = queryset.filter(Q(name__icontains=search) | Q(lot_id__icontains=search))
        serializer = serializer_class(queryset, many=True)
        return Response(serializer.data)
    else:
        serializer = serializer_class(data=request.data)
        if serializer.is_valid():
            lot = services.create_lot(lot_type, dict(serializer.validated_data), user=request.user)
            create_audit_log(request, 'create', model.__name__, lot.id, object_reference=lot.lot_id)
            return Response(serializer_class(lot).data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, OperationsAccess])
def lot_detail(request, lot_type, pk):
    """Retrieve, update or delete a lot"""
    model = services.get_lot_model(lot_type)
    serializer_class = LOT_SERIALIZERS[lot_type]
    lot = get_object_or_404(model, pk=pk)

    if request.method == 'GET':
        return Response(serializer_class(lot).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = serializer_class(lot, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            new_quantity = serializer.validated_data.pop('quantity_received', None)
            with transaction.atomic():
                serializer.save()
                if new_quantity is not None and new_quantity != lot.quantity_received:
                    lot = services.update_lot_received_quantity(lot, new_quantity, user=request.user)
            lot.refresh_from_db()
            return Response(serializer_class(lot).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        services.delete_lot(lot)
        create_audit_log(request, 'delete', model.__name__, pk, object_reference=lot.lot_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated, OperationsAccess])
def lot_archive(request, lot_type, pk):
    """Archive or unarchive a lot (body: {"archived": true|false})"""
    model = services.get_lot_model(lot_type)
    lot = get_object_or_404(model, pk=pk)
    archived = request.data.get('archived', True)
    if isinstance(archived, str):
        archived = archived.lower() == 'true'
    services.set_archived(lot, bool(archived))
    return Response(LOT_SERIALIZERS[lot_type](lot).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, OperationsAccess])
def lot_movements(request, lot_type, pk):
    """Stock movement history of a lot with running balance"""
    model = services.get_lot_model(lot_type)
    lot = get_object_or_404(model, pk=pk)
    as_of = request.query_params.get('as_of', None)
    if as_of:
        try:
            as_of = parse_date(as_of)
        except ValueError:
            as_of = None
        if as_of is None:
            return Response({'error': 'as_of must be a valid date (YYYY-MM-DD)'}, status=status.HTTP_400_BAD_REQUEST)

    history = []
    for movement, running_balance in services.movement_history(lot_type, lot.pk):
        row = StockMovementSerializer(movement).data
        row['running_balance'] = running_balance
        history.append(row)
    return Response({
        'lot_id': lot.lot_id,
        'unit': lot.unit,
        'balance': services.lot_balance(lot_type, lot.pk, as_of=as_of),
        'movements': history,
    })


# Waste and transfer views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, OperationsAccess])
def waste_list_create(request):
    """List waste records or record waste against a lot"""
    if request.method == 'GET':
        queryset = WasteRecord.objects.select_related('created_by')
        lot_type = request.query_params.get('lot_type', None)
        item_id = request.query_params.get('item_id', None)
        if lot_type:
            queryset = queryset.filter(lot_type=lot_type)
        if item_id:
            queryset = queryset.filter(item_id=item_id)
        serializer = WasteRecordSerializer(queryset, many=True)
        return Response(serializer.data)
    else:
        serializer = WasteRecordSerializer(data=request.data)
        if serializer.is_valid():
            data = serializer.validated_data
            record = services.record_waste(
                data['lot_type'], data['item_id'], data['quantity_wasted'], data['reason'],
                waste_date=data.get('waste_date'), notes=data.get('notes', ''), user=request.user
            )
            create_audit_log(request, 'stock_waste', 'WasteRecord', record.id,
                             changes={'quantity': str(record.quantity_wasted)}, object_reference=record.lot_identifier)
            return Response(WasteRecordSerializer(record).data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, OperationsAccess])
def waste_detail(request, pk):
    """Retrieve, edit (within the edit window) or delete a waste record"""
    record = get_object_or_404(WasteRecord, pk=pk)

    if request.method == 'GET':
        return Response(WasteRecordSerializer(record).data)
    elif request.method == 'PATCH':
        serializer = WasteUpdateSerializer(data=request.data)
        if serializer.is_valid():
            data = serializer.validated_data
            record = services.update_waste(
                record, quantity=data.get('quantity_wasted'), reason=data.get('reason'),
                notes=data.get('notes'), waste_date=data.get('waste_date')
            )
            return Response(WasteRecordSerializer(record).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        services.delete_waste(record)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, OperationsAccess])
def transfer_list_create(request):
    """List transfer records or move stock between two lots"""
    if request.method == 'GET':
        queryset = TransferRecord.objects.select_related('created_by')
        lot_type = request.query_params.get('lot_type', None)
        item_id = request.query_params.get('item_id', None)
        if lot_type:
            queryset = queryset.filter(lot_type=lot_type)
        if item_id:
            queryset = queryset.filter(Q(from_item_id=item_id) | Q(to_item_id=item_id))
        serializer = TransferRecordSerializer(queryset, many=True)
        return Response(serializer.data)
    else:
        serializer = TransferRecordSerializer(data=request.data)
        if serializer.is_valid():
            data = serializer.validated_data
            record = services.record_transfer(
                data['lot_type'], data['from_item_id'], data['to_item_id'], data['quantity_transferred'],
                data['reason'], transfer_date=data.get('transfer_date'), notes=data.get('notes', ''),
                user=request.user
            )
            create_audit_log(request, 'stock_transfer', 'TransferRecord', record.id,
                             changes={'quantity': str(record.quantity_transferred), 'to': record.to_lot_identifier},
                             object_reference=record.from_lot_identifier)
            return Response(TransferRecordSerializer(record).data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, OperationsAccess])
def transfer_detail(request, pk):
    """Retrieve, edit (within the edit window) or delete a transfer"""
    record = get_object_or_404(TransferRecord, pk=pk)

    if request.method == 'GET':
        return Response(TransferRecordSerializer(record).data)
    elif request.method == 'PATCH':
        serializer = TransferUpdateSerializer(data=request.data)
        if serializer.is_valid():
            data = serializer.validated_data
            record = services.update_transfer(
                record, quantity=data.get('quantity_transferred'), reason=data.get('reason'),
                notes=data.get('notes'), transfer_date=data.get('transfer_date')
            )
            return Response(TransferRecordSerializer(record).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        services.delete_transfer(record)
        return Response(status=status.HTTP_204_NO_CONTENT)


# Production batch views
def _batch_queryset():
    return ProductionBatch.objects.select_related('responsible_user').prefetch_related(
        'raw_materials__raw_material', 'recurring_products__recurring_product', 'outputs__produced_goods_tag'
    )


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, OperationsAccess])
def batch_list_create(request):
    """List production batches or start a new one"""
    if request.method == 'GET':
        queryset = _batch_queryset()
        qa_status = request.query_params.get('qa_status', None)
        is_locked = request.query_params.get('is_locked', None)
        if qa_status:
            queryset = queryset.filter(qa_status=qa_status)
        if is_locked in ('true', 'false'):
            queryset = queryset.filter(is_locked=is_locked == 'true')
        serializer = ProductionBatchSerializer(queryset, many=True)
        return Response(serializer.data)
    else:
        serializer = ProductionBatchSerializer(data=request.data)
        if serializer.is_valid():
            batch = serializer.save(batch_id=services.next_batch_id(), created_by=request.user)
            return Response(ProductionBatchSerializer(batch).data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, OperationsAccess])
def batch_detail(request, pk):
    """Retrieve, update or delete a production batch"""
    batch = get_object_or_404(_batch_queryset(), pk=pk)

    if request.method == 'GET':
        return Response(ProductionBatchSerializer(batch).data)
    elif request.method in ('PUT', 'PATCH'):
        if batch.is_locked:
            return Response({'error': f'Batch {batch.batch_id} is locked and cannot be modified'},
                            status=status.HTTP_400_BAD_REQUEST)
        serializer = ProductionBatchSerializer(batch, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(ProductionBatchSerializer(get_object_or_404(_batch_queryset(), pk=pk)).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        services.delete_batch(batch)
        create_audit_log(request, 'delete', 'ProductionBatch', pk, object_reference=batch.batch_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated, OperationsAccess])
def batch_add_consumption(request, pk):
    """Consume a raw material or recurring product lot into a batch"""
    batch = get_object_or_404(ProductionBatch, pk=pk)
    serializer = BatchConsumptionSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    usage = services.add_batch_consumption(batch, data['lot_type'], data['item_id'], data['quantity'], user=request.user)
    if data['lot_type'] == 'raw_material':
        payload = BatchRawMaterialSerializer(usage).data
    else:
        payload = BatchRecurringProductSerializer(usage).data
    return Response(payload, status=status.HTTP_201_CREATED)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated, OperationsAccess])
def batch_remove_consumption(request, pk, lot_type, usage_pk):
    """Remove a consumption row and restore the lot balance"""
    model = BatchRawMaterial if lot_type == 'raw_material' else BatchRecurringProduct
    usage = get_object_or_404(model, pk=usage_pk, batch_id=pk)
    services.remove_batch_consumption(usage)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated, OperationsAccess])
def batch_output_create(request, pk):
    """Add an output definition to an unlocked batch"""
    batch = get_object_or_404(ProductionBatch, pk=pk)
    if batch.is_locked:
        return Response({'error': f'Batch {batch.batch_id} is locked and cannot be modified'},
                        status=status.HTTP_400_BAD_REQUEST)
    serializer = BatchOutputSerializer(data=request.data)
    if serializer.is_valid():
        serializer.save(batch=batch)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, OperationsAccess])
def batch_output_detail(request, pk, output_pk):
    """Update or delete a batch output"""
    output = get_object_or_404(BatchOutput.objects.select_related('batch'), pk=output_pk, batch_id=pk)
    if output.batch.is_locked:
        return Response({'error': f'Batch {output.batch.batch_id} is locked and cannot be modified'},
                        status=status.HTTP_400_BAD_REQUEST)

    if request.method in ('PUT', 'PATCH'):
        serializer = BatchOutputSerializer(output, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        output.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated, OperationsAccess])
def batch_complete(request, pk):
    """Lock a batch; approved batches produce processed goods"""
    batch = get_object_or_404(ProductionBatch, pk=pk)
    batch, created = services.complete_batch(batch, user=request.user)
    create_audit_log(request, 'batch_complete', 'ProductionBatch', batch.id,
                     changes={'qa_status': batch.qa_status, 'processed_goods': [g.id for g in created]},
                     object_reference=batch.batch_id)
    return Response({
        'batch': ProductionBatchSerializer(get_object_or_404(_batch_queryset(), pk=pk)).data,
        'processed_goods': ProcessedGoodSerializer(created, many=True).data,
    })


# Processed goods views
@api_view(['GET'])
@permission_classes([IsAuthenticated, OperationsAccess])
def processed_good_list(request):
    """List processed goods with optional filters"""
    queryset = ProcessedGood.objects.select_related('produced_goods_tag').prefetch_related('history')
    tag_id = request.query_params.get('tag_id', None)
    batch_reference = request.query_params.get('batch_reference', None)
    search = request.query_params.get('search', None)
    if tag_id:
        queryset = queryset.filter(produced_goods_tag_id=tag_id)
    if batch_reference:
        queryset = queryset.filter(batch_reference=batch_reference)
    if request.query_params.get('in_stock') == 'true':
        queryset = queryset.filter(quantity_available__gt=0)
    if search:
        queryset = queryset.filter(Q(product_type__icontains=search) | Q(batch_reference__icontains=search))
    serializer = ProcessedGoodSerializer(queryset, many=True)
    return Response(serializer.data)


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated, OperationsAccess])
def processed_good_detail(request, pk):
    """Retrieve a processed good or edit its descriptive fields"""
    good = get_object_or_404(ProcessedGood.objects.prefetch_related('history'), pk=pk)

    if request.method == 'GET':
        return Response(ProcessedGoodSerializer(good).data)
    serializer = ProcessedGoodSerializer(good, data=request.data, partial=True)
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['POST'])
@permission_classes([IsAuthenticated, OperationsAccess])
def processed_good_adjust(request, pk):
    """Correct the available quantity of a processed good"""
    good = get_object_or_404(ProcessedGood, pk=pk)
    serializer = ProcessedGoodAdjustSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    good = services.adjust_processed_good(good, data['quantity_available'], data['reason'],
                                          user=request.user, change_type=data['change_type'])
    return Response(ProcessedGoodSerializer(good).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, OperationsAccess])
def processed_good_history(request, pk):
    """Quantity change history of a processed good"""
    good = get_object_or_404(ProcessedGood, pk=pk)
    serializer = ProcessedGoodHistorySerializer(good.history.all(), many=True)
    return Response(serializer.data)


# Machine views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, OperationsAccess])
def machine_list_create(request):
    """List all machines or create a new machine"""
    if request.method == 'GET':
        queryset = Machine.objects.select_related('supplier', 'responsible_user')
        machine_status = request.query_params.get('status', None)
        if machine_status:
            queryset = queryset.filter(status=machine_status)
        serializer = MachineSerializer(queryset, many=True)
        return Response(serializer.data)
    else:
        serializer = MachineSerializer(data=request.data)
        if serializer.is_valid():
            serializer.save(created_by=request.user)
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, OperationsAccess])
def machine_detail(request, pk):
    """Retrieve, update or delete a machine"""
    machine = get_object_or_404(Machine, pk=pk)

    if request.method == 'GET':
        return Response(MachineSerializer(machine).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = MachineSerializer(machine, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        machine.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)
