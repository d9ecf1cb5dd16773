"""
Inventory workflows for lots, production batches and processed goods.

Lot quantities are derived from the StockMovement ledger:
    balance = IN + TRANSFER_IN - CONSUMPTION - WASTE - TRANSFER_OUT
and `quantity_available` on each lot is a cached copy of that balance,
re-synced by every workflow that writes a movement.
"""
import logging
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Q, Sum
from django.utils import timezone

from backend.core.exceptions import BusinessRuleError
from backend.core.utils import next_sequence_number
from .models import (
    RawMaterial, RecurringProduct, StockMovement, WasteRecord, TransferRecord,
    ProductionBatch, BatchRawMaterial, BatchRecurringProduct, ProcessedGood,
    ProcessedGoodHistory, Tag
)

logger = logging.getLogger('backend.operations')

ZERO = Decimal('0')

LOT_MODELS = {
    'raw_material': RawMaterial,
    'recurring_product': RecurringProduct,
}


def get_lot_model(lot_type):
    try:
        return LOT_MODELS[lot_type]
    except KeyError:
        raise BusinessRuleError(f"Unknown lot type: {lot_type}")


def get_lot(lot_type, pk, for_update=False):
    model = get_lot_model(lot_type)
    queryset = model.objects.select_for_update() if for_update else model.objects.all()
    try:
        return queryset.get(pk=pk)
    except model.DoesNotExist:
        raise BusinessRuleError(f"{model.__name__} {pk} not found")


# Ledger

def lot_balance(lot_type, item_id, as_of=None):
    """Ledger balance of a lot, optionally as of a date (inclusive)"""
    movements = StockMovement.objects.filter(item_type=lot_type, item_id=item_id)
    if as_of:
        movements = movements.filter(effective_date__lte=as_of)
    totals = movements.aggregate(
        inbound=Sum('quantity', filter=Q(movement_type__in=StockMovement.INBOUND_TYPES)),
        outbound=Sum('quantity', filter=Q(movement_type__in=StockMovement.OUTBOUND_TYPES)),
    )
    return (totals['inbound'] or ZERO) - (totals['outbound'] or ZERO)


def sync_quantity_available(lot):
    lot.quantity_available = lot_balance(lot.lot_type, lot.pk)
    lot.save(update_fields=['quantity_available', 'updated_at'])
    return lot.quantity_available


def movement_history(lot_type, item_id):
    """Movements of a lot in ledger order with a running balance"""
    history = []
    running = ZERO
    movements = StockMovement.objects.filter(item_type=lot_type, item_id=item_id).order_by('effective_date', 'created_at', 'id')
    for movement in movements:
        if movement.movement_type in StockMovement.INBOUND_TYPES:
            running += movement.quantity
        else:
            running -= movement.quantity
        history.append((movement, running))
    return history


def _write_movement(lot, movement_type, quantity, effective_date, user=None, reference_type='', reference_id=None, notes=''):
    return StockMovement.objects.create(
        item_type=lot.lot_type,
        item_id=lot.pk,
        lot_reference=lot.lot_id,
        movement_type=movement_type,
        quantity=quantity,
        unit=lot.unit,
        effective_date=effective_date,
        reference_type=reference_type,
        reference_id=reference_id,
        notes=notes or '',
        created_by=user,
    )


def _require_positive(quantity, label='Quantity'):
    if quantity is None or Decimal(quantity) <= 0:
        raise BusinessRuleError(f"{label} must be greater than zero")
    return Decimal(quantity)


def _require_editable(record):
    window = timedelta(days=settings.WASTE_TRANSFER_EDIT_WINDOW_DAYS)
    if timezone.now() - record.created_at > window:
        raise BusinessRuleError(
            f"Records can only be changed within {settings.WASTE_TRANSFER_EDIT_WINDOW_DAYS} days of creation"
        )


# Lots

@transaction.atomic
def create_lot(lot_type, data, user=None):
    """Create a lot and its initial IN movement"""
    model = get_lot_model(lot_type)
    quantity = _require_positive(data.get('quantity_received'), 'Quantity received')
    lot = model(**data)
    lot.quantity_available = quantity
    lot.created_by = user
    try:
        lot.full_clean()
    except ValidationError as e:
        raise BusinessRuleError(e.messages)
    lot.save()
    _write_movement(lot, StockMovement.MOVEMENT_IN, quantity, lot.received_date, user,
                    reference_type='initial_intake', reference_id=lot.pk, notes='Initial intake')
    logger.info(f"Created {lot_type} lot {lot.lot_id} with {quantity} {lot.unit}")
    return lot


@transaction.atomic
def update_lot_received_quantity(lot, new_quantity, user=None):
    """Change the intake quantity; the ledger must stay non-negative"""
    new_quantity = _require_positive(new_quantity, 'Quantity received')
    lot = get_lot(lot.lot_type, lot.pk, for_update=True)
    intake = StockMovement.objects.filter(
        item_type=lot.lot_type, item_id=lot.pk,
        movement_type=StockMovement.MOVEMENT_IN, reference_type='initial_intake'
    ).first()
    delta = new_quantity - lot.quantity_received
    if lot_balance(lot.lot_type, lot.pk) + delta < 0:
        raise BusinessRuleError("Quantity received cannot be lower than the quantity already used")
    if intake:
        intake.quantity = new_quantity
        intake.save()
    else:
        _write_movement(lot, StockMovement.MOVEMENT_IN, new_quantity, lot.received_date, user,
                        reference_type='initial_intake', reference_id=lot.pk)
    lot.quantity_received = new_quantity
    lot.save(update_fields=['quantity_received', 'updated_at'])
    sync_quantity_available(lot)
    return lot


def delete_lot(lot):
    if StockMovement.objects.filter(item_type=lot.lot_type, item_id=lot.pk).exclude(reference_type='initial_intake').exists():
        raise BusinessRuleError("Lot has stock movements and cannot be deleted; archive it instead")
    with transaction.atomic():
        StockMovement.objects.filter(item_type=lot.lot_type, item_id=lot.pk).delete()
        lot.delete()


def set_archived(lot, archived):
    lot.is_archived = archived
    lot.save(update_fields=['is_archived', 'updated_at'])
    return lot


# Waste

@transaction.atomic
def record_waste(lot_type, item_id, quantity, reason, waste_date=None, notes='', user=None):
    quantity = _require_positive(quantity, 'Waste quantity')
    if not reason:
        raise BusinessRuleError("A reason is required to record waste")
    lot = get_lot(lot_type, item_id, for_update=True)
    balance = lot_balance(lot_type, lot.pk)
    if quantity > balance:
        raise BusinessRuleError(f"Waste quantity ({quantity}) exceeds available balance ({balance} {lot.unit})")

    waste_date = waste_date or timezone.localdate()
    record = WasteRecord.objects.create(
        lot_type=lot_type, item_id=lot.pk, lot_identifier=lot.lot_id,
        quantity_wasted=quantity, unit=lot.unit, reason=reason, notes=notes or '',
        waste_date=waste_date, created_by=user,
    )
    record.stock_movement = _write_movement(lot, StockMovement.MOVEMENT_WASTE, quantity, waste_date, user,
                                            reference_type='waste_record', reference_id=record.pk, notes=reason)
    record.save(update_fields=['stock_movement'])
    sync_quantity_available(lot)
    logger.info(f"Recorded waste of {quantity} {lot.unit} on lot {lot.lot_id}")
    return record


@transaction.atomic
def update_waste(record, quantity=None, reason=None, notes=None, waste_date=None):
    _require_editable(record)
    lot = get_lot(record.lot_type, record.item_id, for_update=True)
    if quantity is not None:
        quantity = _require_positive(quantity, 'Waste quantity')
        available = lot_balance(record.lot_type, lot.pk) + record.quantity_wasted
        if quantity > available:
            raise BusinessRuleError(f"Waste quantity ({quantity}) exceeds available balance ({available} {lot.unit})")
        record.quantity_wasted = quantity
    if reason is not None:
        record.reason = reason
    if notes is not None:
        record.notes = notes
    if waste_date is not None:
        record.waste_date = waste_date
    record.save()

    movement = record.stock_movement
    if movement:
        movement.quantity = record.quantity_wasted
        movement.effective_date = record.waste_date
        movement.notes = record.reason
        movement.save()
    sync_quantity_available(lot)
    return record


@transaction.atomic
def delete_waste(record):
    _require_editable(record)
    lot = get_lot(record.lot_type, record.item_id, for_update=True)
    if record.stock_movement:
        record.stock_movement.delete()
    record.delete()
    sync_quantity_available(lot)


# Transfers

@transaction.atomic
def record_transfer(lot_type, from_item_id, to_item_id, quantity, reason, transfer_date=None, notes='', user=None):
    quantity = _require_positive(quantity, 'Transfer quantity')
    if str(from_item_id) == str(to_item_id):
        raise BusinessRuleError("Source and destination lots must be different")
    if not reason:
        raise BusinessRuleError("A reason is required to record a transfer")

    source = get_lot(lot_type, from_item_id, for_update=True)
    target = get_lot(lot_type, to_item_id, for_update=True)
    if source.unit.strip().lower() != target.unit.strip().lower():
        raise BusinessRuleError(f"Unit mismatch: {source.unit} cannot be transferred into {target.unit}")
    balance = lot_balance(lot_type, source.pk)
    if quantity > balance:
        raise BusinessRuleError(f"Transfer quantity ({quantity}) exceeds available balance ({balance} {source.unit})")

    transfer_date = transfer_date or timezone.localdate()
    record = TransferRecord.objects.create(
        lot_type=lot_type,
        from_item_id=source.pk, from_lot_identifier=source.lot_id,
        to_item_id=target.pk, to_lot_identifier=target.lot_id,
        quantity_transferred=quantity, unit=source.unit, reason=reason, notes=notes or '',
        transfer_date=transfer_date, created_by=user,
    )
    record.out_movement = _write_movement(source, StockMovement.MOVEMENT_TRANSFER_OUT, quantity, transfer_date, user,
                                          reference_type='transfer_record', reference_id=record.pk,
                                          notes=f"Transfer to {target.lot_id}")
    record.in_movement = _write_movement(target, StockMovement.MOVEMENT_TRANSFER_IN, quantity, transfer_date, user,
                                         reference_type='transfer_record', reference_id=record.pk,
                                         notes=f"Transfer from {source.lot_id}")
    record.save(update_fields=['out_movement', 'in_movement'])
    sync_quantity_available(source)
    sync_quantity_available(target)
    logger.info(f"Transferred {quantity} {source.unit} from {source.lot_id} to {target.lot_id}")
    return record


@transaction.atomic
def update_transfer(record, quantity=None, reason=None, notes=None, transfer_date=None):
    _require_editable(record)
    source = get_lot(record.lot_type, record.from_item_id, for_update=True)
    target = get_lot(record.lot_type, record.to_item_id, for_update=True)
    if quantity is not None:
        quantity = _require_positive(quantity, 'Transfer quantity')
        delta = quantity - record.quantity_transferred
        source_balance = lot_balance(record.lot_type, source.pk)
        target_balance = lot_balance(record.lot_type, target.pk)
        if delta > source_balance:
            raise BusinessRuleError(f"Transfer quantity ({quantity}) exceeds available balance of {source.lot_id}")
        if target_balance + delta < 0:
            raise BusinessRuleError(f"Transferred stock in {target.lot_id} has already been used")
        record.quantity_transferred = quantity
    if reason is not None:
        record.reason = reason
    if notes is not None:
        record.notes = notes
    if transfer_date is not None:
        record.transfer_date = transfer_date
    record.save()

    for movement in (record.out_movement, record.in_movement):
        if movement:
            movement.quantity = record.quantity_transferred
            movement.effective_date = record.transfer_date
            movement.save()
    sync_quantity_available(source)
    sync_quantity_available(target)
    return record


@transaction.atomic
def delete_transfer(record):
    _require_editable(record)
    source = get_lot(record.lot_type, record.from_item_id, for_update=True)
    target = get_lot(record.lot_type, record.to_item_id, for_update=True)
    if lot_balance(record.lot_type, target.pk) < record.quantity_transferred:
        raise BusinessRuleError(f"Transferred stock in {target.lot_id} has already been used")
    for movement in (record.out_movement, record.in_movement):
        if movement:
            movement.delete()
    record.delete()
    sync_quantity_available(source)
    sync_quantity_available(target)


# Production batches

def next_batch_id():
    return next_sequence_number(ProductionBatch.objects.all(), 'batch_id', 'BATCH-', 4)


def _require_unlocked(batch):
    if batch.is_locked:
        raise BusinessRuleError(f"Batch {batch.batch_id} is locked and cannot be modified")


@transaction.atomic
def add_batch_consumption(batch, lot_type, item_id, quantity, user=None):
    """Consume stock from a lot into a batch (writes a CONSUMPTION movement)"""
    _require_unlocked(batch)
    quantity = _require_positive(quantity, 'Consumed quantity')
    lot = get_lot(lot_type, item_id, for_update=True)
    if lot.is_archived:
        raise BusinessRuleError(f"Lot {lot.lot_id} is archived")
    balance = lot_balance(lot_type, lot.pk)
    if quantity > balance:
        raise BusinessRuleError(f"Insufficient stock in lot {lot.lot_id}: requested {quantity}, available {balance} {lot.unit}")

    movement = _write_movement(lot, StockMovement.MOVEMENT_CONSUMPTION, quantity, batch.batch_date, user,
                               reference_type='production_batch', reference_id=batch.pk,
                               notes=f"Consumed in {batch.batch_id}")
    if lot_type == 'raw_material':
        usage = BatchRawMaterial.objects.create(batch=batch, raw_material=lot, quantity_consumed=quantity,
                                                unit=lot.unit, stock_movement=movement)
    else:
        usage = BatchRecurringProduct.objects.create(batch=batch, recurring_product=lot, quantity_consumed=quantity,
                                                     unit=lot.unit, stock_movement=movement)
    sync_quantity_available(lot)
    return usage


def _usage_lot(usage):
    if isinstance(usage, BatchRawMaterial):
        return usage.raw_material
    return usage.recurring_product


@transaction.atomic
def remove_batch_consumption(usage):
    _require_unlocked(usage.batch)
    lot = _usage_lot(usage)
    if usage.stock_movement:
        usage.stock_movement.delete()
    usage.delete()
    sync_quantity_available(lot)


def validate_batch_outputs(outputs):
    if not outputs:
        raise BusinessRuleError("At least one output is required to complete the batch")
    for index, output in enumerate(outputs, start=1):
        missing = []
        if not (output.output_name or '').strip():
            missing.append('name')
        if output.produced_quantity is None or output.produced_quantity <= 0:
            missing.append('produced quantity')
        if not (output.produced_unit or '').strip():
            missing.append('unit')
        if not output.produced_goods_tag_id:
            missing.append('produced goods tag')
        if missing:
            raise BusinessRuleError(f"Output #{index} is incomplete: missing {', '.join(missing)}")


@transaction.atomic
def complete_batch(batch, user=None):
    """
    Lock a batch. Approved batches create one ProcessedGood per output;
    rejected batches are locked without producing stock.
    """
    batch = ProductionBatch.objects.select_for_update().get(pk=batch.pk)
    if batch.is_locked:
        raise BusinessRuleError(f"Batch {batch.batch_id} is already completed")
    if batch.qa_status in ('pending', 'hold'):
        raise BusinessRuleError("QA status must be approved or rejected before completing the batch")

    outputs = list(batch.outputs.select_related('produced_goods_tag'))
    validate_batch_outputs(outputs)

    batch.is_locked = True
    if not batch.production_end_date:
        batch.production_end_date = timezone.localdate()
    batch.save(update_fields=['is_locked', 'production_end_date', 'updated_at'])

    created = []
    if batch.qa_status == 'approved':
        for output in outputs:
            created.append(ProcessedGood.objects.create(
                batch=batch,
                batch_reference=batch.batch_id,
                product_type=output.output_name.strip(),
                produced_goods_tag=output.produced_goods_tag,
                quantity_created=output.produced_quantity,
                quantity_available=output.produced_quantity,
                unit=output.produced_unit,
                production_date=batch.production_end_date,
                qa_status='approved',
                output_size=output.output_size,
                output_size_unit=output.output_size_unit or '',
                custom_fields=batch.custom_fields or {},
                created_by=user,
            ))
    logger.info(f"Completed batch {batch.batch_id} (qa={batch.qa_status}), created {len(created)} processed goods")
    return batch, created


@transaction.atomic
def delete_batch(batch):
    """Delete an unlocked batch and give its consumption back to the lots"""
    _require_unlocked(batch)
    lots = []
    for usage in list(batch.raw_materials.select_related('raw_material', 'stock_movement')) + \
            list(batch.recurring_products.select_related('recurring_product', 'stock_movement')):
        lots.append(_usage_lot(usage))
        if usage.stock_movement:
            usage.stock_movement.delete()
    batch_id = batch.batch_id
    batch.delete()
    for lot in lots:
        sync_quantity_available(lot)
    logger.info(f"Deleted batch {batch_id} and restored consumption for {len(lots)} lot usages")


# Processed goods

@transaction.atomic
def reduce_processed_good(processed_good, quantity, user=None, order_number='', delivery_dispatch_id=None,
                          effective_date=None, reason=''):
    """Take delivered stock out of a processed good and log the change"""
    quantity = _require_positive(quantity, 'Delivered quantity')
    good = ProcessedGood.objects.select_for_update().get(pk=processed_good.pk)
    if good.quantity_available < quantity:
        raise BusinessRuleError(
            f"Insufficient inventory for {good.product_type} ({good.batch_reference}): "
            f"requested {quantity}, available {good.quantity_available} {good.unit}"
        )
    before = good.quantity_available
    good.quantity_available = before - quantity
    good.save()
    ProcessedGoodHistory.objects.create(
        processed_good=good,
        quantity_before=before,
        quantity_after=good.quantity_available,
        quantity_change=-quantity,
        change_type='delivery',
        change_reason=reason or f"Delivered for order {order_number}",
        order_number=order_number,
        delivery_dispatch_id=delivery_dispatch_id,
        effective_date=effective_date or timezone.localdate(),
        created_by=user,
    )
    return good


@transaction.atomic
def adjust_processed_good(processed_good, new_quantity, reason, user=None, change_type='adjustment'):
    """Manually correct the available quantity of a processed good"""
    if not reason:
        raise BusinessRuleError("A reason is required to adjust inventory")
    new_quantity = Decimal(new_quantity)
    if new_quantity < 0:
        raise BusinessRuleError("Available quantity cannot be negative")
    good = ProcessedGood.objects.select_for_update().get(pk=processed_good.pk)
    before = good.quantity_available
    good.quantity_available = new_quantity
    good.save()
    ProcessedGoodHistory.objects.create(
        processed_good=good,
        quantity_before=before,
        quantity_after=new_quantity,
        quantity_change=new_quantity - before,
        change_type=change_type,
        change_reason=reason,
        effective_date=timezone.localdate(),
        created_by=user,
    )
    return good


# Tag overview

def _status_for(total, base):
    if total <= 0:
        return 'out-of-stock'
    if base > 0 and total / base < Decimal(str(settings.LOW_STOCK_RATIO)):
        return 'low-stock'
    return 'in-stock'


def tag_overview(tag_type):
    """
    Roll inventory up per tag: totals, lot counts and a stock status.
    Status compares available stock with what was originally received/produced.
    """
    tags = Tag.objects.filter(tag_type=tag_type, status='active')
    if tag_type == 'produced_goods':
        items = ProcessedGood.objects.filter(produced_goods_tag__isnull=False).values_list(
            'produced_goods_tag_id', 'quantity_available', 'quantity_created', 'unit')
    elif tag_type in LOT_MODELS:
        items = LOT_MODELS[tag_type].objects.filter(is_archived=False, tag__isnull=False).values_list(
            'tag_id', 'quantity_available', 'quantity_received', 'unit')
    else:
        raise BusinessRuleError(f"Unknown tag type: {tag_type}")

    summaries = {
        tag.pk: {
            'tag_id': tag.pk,
            'tag_key': tag.key,
            'tag_display_name': tag.display_name,
            'unit': '',
            'total_quantity': ZERO,
            'total_base_quantity': ZERO,
            'lots_count': 0,
            'in_stock_lots': 0,
            'in_stock_quantity': ZERO,
            'out_of_stock_lots': 0,
        }
        for tag in tags
    }
    for tag_id, available, base, unit in items:
        summary = summaries.get(tag_id)
        if summary is None:
            continue
        summary['total_quantity'] += available
        summary['total_base_quantity'] += base
        summary['lots_count'] += 1
        if unit and not summary['unit']:
            summary['unit'] = unit
        if available > 0:
            summary['in_stock_lots'] += 1
            summary['in_stock_quantity'] += available
        else:
            summary['out_of_stock_lots'] += 1

    result = []
    for summary in summaries.values():
        summary['status'] = _status_for(summary['total_quantity'], summary['total_base_quantity'])
        result.append(summary)
    result.sort(key=lambda s: s['tag_display_name'].lower())
    return result
