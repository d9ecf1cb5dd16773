"""
Test suite for the operations module
Tests: stock ledger, waste and transfers, production batches, processed goods and tag overview
"""
from datetime import timedelta
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from backend.core.exceptions import BusinessRuleError
from backend.core.models import ACCESS_READ_WRITE
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.operations.models import (
    StockMovement, WasteRecord, TransferRecord, BatchOutput, ProcessedGood, ProcessedGoodHistory
)
from backend.operations import services


class StockLedgerTests(TestCase):
    """Lot creation and balance derived from movements"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.lot = TestDataFactory.create_raw_material(
            quantity=Decimal('100'), received_date=timezone.localdate() - timedelta(days=10), user=self.user
        )

    def test_create_lot_writes_intake_movement(self):
        movement = StockMovement.objects.get(item_type='raw_material', item_id=self.lot.pk)
        self.assertEqual(movement.movement_type, StockMovement.MOVEMENT_IN)
        self.assertEqual(movement.quantity, Decimal('100'))
        self.assertEqual(movement.reference_type, 'initial_intake')
        self.assertEqual(self.lot.quantity_available, Decimal('100'))

    def test_zero_quantity_lot_rejected(self):
        with self.assertRaises(BusinessRuleError):
            TestDataFactory.create_raw_material(quantity=Decimal('0'))

    def test_balance_as_of_date(self):
        """Test balance only counts movements up to the given date"""
        services.record_waste('raw_material', self.lot.pk, Decimal('15'), 'Moisture damage')
        yesterday = timezone.localdate() - timedelta(days=1)
        self.assertEqual(services.lot_balance('raw_material', self.lot.pk, as_of=yesterday), Decimal('100'))
        self.assertEqual(services.lot_balance('raw_material', self.lot.pk), Decimal('85'))

    def test_movement_history_running_balance(self):
        services.record_waste('raw_material', self.lot.pk, Decimal('10'), 'Spillage')
        history = services.movement_history('raw_material', self.lot.pk)
        self.assertEqual([balance for _, balance in history], [Decimal('100'), Decimal('90')])

    def test_received_quantity_cannot_drop_below_usage(self):
        """Test intake edits keep the ledger non-negative"""
        services.record_waste('raw_material', self.lot.pk, Decimal('80'), 'Rot')
        with self.assertRaises(BusinessRuleError):
            services.update_lot_received_quantity(self.lot, Decimal('50'))
        lot = services.update_lot_received_quantity(self.lot, Decimal('90'))
        self.assertEqual(lot.quantity_available, Decimal('10'))

    def test_lot_with_movements_cannot_be_deleted(self):
        services.record_waste('raw_material', self.lot.pk, Decimal('1'), 'Sample')
        with self.assertRaises(BusinessRuleError):
            services.delete_lot(self.lot)

    def test_unused_lot_can_be_deleted(self):
        services.delete_lot(self.lot)
        self.assertFalse(StockMovement.objects.filter(item_type='raw_material', item_id=self.lot.pk).exists())


class WasteAndTransferTests(TestCase):
    """Waste and transfer records keep their movements in sync"""

    def setUp(self):
        self.source = TestDataFactory.create_raw_material(quantity=Decimal('50'), unit='kg')
        self.target = TestDataFactory.create_raw_material(quantity=Decimal('5'), unit='KG')

    def test_waste_reduces_balance(self):
        record = services.record_waste('raw_material', self.source.pk, Decimal('12.5'), 'Pest damage')
        self.source.refresh_from_db()
        self.assertEqual(self.source.quantity_available, Decimal('37.5'))
        self.assertEqual(record.stock_movement.movement_type, StockMovement.MOVEMENT_WASTE)

    def test_waste_over_balance_rejected(self):
        with self.assertRaises(BusinessRuleError):
            services.record_waste('raw_material', self.source.pk, Decimal('51'), 'Too much')

    def test_waste_requires_reason(self):
        with self.assertRaises(BusinessRuleError):
            services.record_waste('raw_material', self.source.pk, Decimal('1'), '')

    def test_update_and_delete_waste(self):
        record = services.record_waste('raw_material', self.source.pk, Decimal('10'), 'Spoiled')
        services.update_waste(record, quantity=Decimal('4'))
        self.source.refresh_from_db()
        self.assertEqual(self.source.quantity_available, Decimal('46'))
        services.delete_waste(record)
        self.source.refresh_from_db()
        self.assertEqual(self.source.quantity_available, Decimal('50'))

    def test_waste_edit_window(self):
        """Test waste older than the edit window cannot be changed"""
        record = services.record_waste('raw_material', self.source.pk, Decimal('2'), 'Spoiled')
        WasteRecord.objects.filter(pk=record.pk).update(created_at=timezone.now() - timedelta(days=16))
        record.refresh_from_db()
        with self.assertRaises(BusinessRuleError):
            services.update_waste(record, quantity=Decimal('1'))

    def test_transfer_moves_stock(self):
        """Test transfer writes paired movements (units compared case-insensitively)"""
        record = services.record_transfer('raw_material', self.source.pk, self.target.pk, Decimal('20'), 'Consolidate')
        self.source.refresh_from_db()
        self.target.refresh_from_db()
        self.assertEqual(self.source.quantity_available, Decimal('30'))
        self.assertEqual(self.target.quantity_available, Decimal('25'))
        self.assertEqual(record.out_movement.movement_type, StockMovement.MOVEMENT_TRANSFER_OUT)
        self.assertEqual(record.in_movement.movement_type, StockMovement.MOVEMENT_TRANSFER_IN)

    def test_transfer_to_same_lot_rejected(self):
        with self.assertRaises(BusinessRuleError):
            services.record_transfer('raw_material', self.source.pk, self.source.pk, Decimal('1'), 'Loop')

    def test_transfer_unit_mismatch_rejected(self):
        litres = TestDataFactory.create_raw_material(quantity=Decimal('10'), unit='litre')
        with self.assertRaises(BusinessRuleError):
            services.record_transfer('raw_material', self.source.pk, litres.pk, Decimal('1'), 'Mixed')

    def test_transfer_edit_window(self):
        """Test transfers older than the edit window cannot be changed or removed"""
        record = services.record_transfer('raw_material', self.source.pk, self.target.pk, Decimal('5'), 'Move')
        TransferRecord.objects.filter(pk=record.pk).update(created_at=timezone.now() - timedelta(days=16))
        record.refresh_from_db()
        with self.assertRaises(BusinessRuleError):
            services.update_transfer(record, quantity=Decimal('3'))
        with self.assertRaises(BusinessRuleError):
            services.delete_transfer(record)
        record.refresh_from_db()
        self.assertEqual(record.quantity_transferred, Decimal('5'))

    def test_delete_transfer_after_target_used(self):
        """Test a transfer cannot be undone once its stock was consumed"""
        record = services.record_transfer('raw_material', self.source.pk, self.target.pk, Decimal('20'), 'Move')
        services.record_waste('raw_material', self.target.pk, Decimal('10'), 'Spoiled')
        with self.assertRaises(BusinessRuleError):
            services.delete_transfer(record)


class ProductionBatchTests(TestCase):
    """Consumption, QA and completion of production batches"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.lot = TestDataFactory.create_raw_material(quantity=Decimal('100'))
        self.goods_tag = TestDataFactory.create_tag('produced_goods', key='pulp')
        self.batch = TestDataFactory.create_batch(user=self.user)

    def _add_output(self):
        return BatchOutput.objects.create(
            batch=self.batch,
            output_name='Mango Pulp',
            produced_quantity=Decimal('40'),
            produced_unit='kg',
            produced_goods_tag=self.goods_tag
        )

    def test_batch_ids_are_sequential(self):
        self.assertEqual(self.batch.batch_id, 'BATCH-0001')
        self.assertEqual(TestDataFactory.create_batch().batch_id, 'BATCH-0002')

    def test_consumption_reduces_lot(self):
        services.add_batch_consumption(self.batch, 'raw_material', self.lot.pk, Decimal('30'), user=self.user)
        self.lot.refresh_from_db()
        self.assertEqual(self.lot.quantity_available, Decimal('70'))

    def test_consumption_over_balance_rejected(self):
        with self.assertRaises(BusinessRuleError):
            services.add_batch_consumption(self.batch, 'raw_material', self.lot.pk, Decimal('101'))

    def test_archived_lot_cannot_be_consumed(self):
        services.set_archived(self.lot, True)
        with self.assertRaises(BusinessRuleError):
            services.add_batch_consumption(self.batch, 'raw_material', self.lot.pk, Decimal('1'))

    def test_pending_batch_cannot_complete(self):
        self._add_output()
        with self.assertRaises(BusinessRuleError):
            services.complete_batch(self.batch)

    def test_output_needs_tag(self):
        """Test completion requires every output to carry a produced goods tag"""
        self.batch.qa_status = 'approved'
        self.batch.save()
        BatchOutput.objects.create(batch=self.batch, output_name='Juice', produced_quantity=Decimal('5'),
                                   produced_unit='litre')
        with self.assertRaises(BusinessRuleError):
            services.complete_batch(self.batch)

    def test_approved_batch_creates_processed_goods(self):
        """Test completing an approved batch locks it and creates goods"""
        services.add_batch_consumption(self.batch, 'raw_material', self.lot.pk, Decimal('30'))
        self._add_output()
        self.batch.qa_status = 'approved'
        self.batch.save()
        batch, created = services.complete_batch(self.batch, user=self.user)
        self.assertTrue(batch.is_locked)
        self.assertEqual(len(created), 1)
        good = created[0]
        self.assertEqual(good.batch_reference, 'BATCH-0001')
        self.assertEqual(good.quantity_available, Decimal('40'))
        self.assertEqual(good.produced_goods_tag, self.goods_tag)

    def test_rejected_batch_creates_nothing(self):
        self._add_output()
        self.batch.qa_status = 'rejected'
        self.batch.save()
        batch, created = services.complete_batch(self.batch)
        self.assertTrue(batch.is_locked)
        self.assertEqual(created, [])
        self.assertFalse(ProcessedGood.objects.exists())

    def test_locked_batch_refuses_consumption(self):
        self._add_output()
        self.batch.qa_status = 'approved'
        self.batch.save()
        batch, _ = services.complete_batch(self.batch)
        with self.assertRaises(BusinessRuleError):
            services.add_batch_consumption(batch, 'raw_material', self.lot.pk, Decimal('1'))

    def test_delete_batch_restores_lots(self):
        services.add_batch_consumption(self.batch, 'raw_material', self.lot.pk, Decimal('25'))
        services.delete_batch(self.batch)
        self.lot.refresh_from_db()
        self.assertEqual(self.lot.quantity_available, Decimal('100'))


class ProcessedGoodTests(TestCase):
    def setUp(self):
        self.good = TestDataFactory.create_processed_good(quantity=Decimal('20'))

    def test_adjust_logs_history(self):
        services.adjust_processed_good(self.good, Decimal('18'), 'Recount')
        history = ProcessedGoodHistory.objects.get(processed_good=self.good)
        self.assertEqual(history.quantity_change, Decimal('-2'))
        self.assertEqual(history.change_type, 'adjustment')

    def test_adjust_requires_reason(self):
        with self.assertRaises(BusinessRuleError):
            services.adjust_processed_good(self.good, Decimal('18'), '')

    def test_reduce_below_zero_rejected(self):
        with self.assertRaises(BusinessRuleError):
            services.reduce_processed_good(self.good, Decimal('21'))


class TagOverviewTests(TestCase):
    """Stock status roll-up per tag"""

    def test_raw_material_statuses(self):
        low = TestDataFactory.create_tag('raw_material', key='mango', display_name='Mango')
        full = TestDataFactory.create_tag('raw_material', key='sugar', display_name='Sugar')
        TestDataFactory.create_tag('raw_material', key='salt', display_name='Salt')
        lot = TestDataFactory.create_raw_material(quantity=Decimal('100'), tag=low)
        services.record_waste('raw_material', lot.pk, Decimal('80'), 'Rot')
        TestDataFactory.create_raw_material(quantity=Decimal('10'), tag=full)

        overview = {row['tag_key']: row for row in services.tag_overview('raw_material')}
        self.assertEqual(overview['mango']['status'], 'low-stock')
        self.assertEqual(overview['mango']['total_quantity'], Decimal('20'))
        self.assertEqual(overview['mango']['in_stock_quantity'], Decimal('20'))
        self.assertEqual(overview['salt']['in_stock_quantity'], Decimal('0'))
        self.assertEqual(overview['sugar']['status'], 'in-stock')
        self.assertEqual(overview['salt']['status'], 'out-of-stock')
        self.assertEqual(overview['salt']['lots_count'], 0)

    def test_produced_goods_overview(self):
        tag = TestDataFactory.create_tag('produced_goods', key='jam')
        TestDataFactory.create_processed_good(quantity=Decimal('10'), quantity_available=Decimal('0'), tag=tag)
        TestDataFactory.create_processed_good(quantity=Decimal('10'), tag=tag)
        row = services.tag_overview('produced_goods')[0]
        self.assertEqual(row['lots_count'], 2)
        self.assertEqual(row['in_stock_lots'], 1)
        self.assertEqual(row['in_stock_quantity'], Decimal('10'))
        self.assertEqual(row['out_of_stock_lots'], 1)

    def test_unknown_tag_type(self):
        with self.assertRaises(BusinessRuleError):
            services.tag_overview('machines')


class OperationsAPITests(TestCase):
    """API endpoints for lots, waste and batches"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user(module_access={'operations': ACCESS_READ_WRITE})
        self.client.authenticate_user(self.user)

    def test_create_raw_material(self):
        tag = TestDataFactory.create_tag('raw_material')
        response = self.client.post('/api/v1/raw-materials/', {
            'name': 'Alphonso Mango',
            'lot_id': 'RM-001',
            'quantity_received': '250',
            'unit': 'kg',
            'received_date': str(timezone.localdate()),
            'tag': tag.id,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Decimal(response.data['quantity_available']), Decimal('250'))

    def test_lot_tag_type_must_match(self):
        tag = TestDataFactory.create_tag('produced_goods')
        response = self.client.post('/api/v1/raw-materials/', {
            'name': 'Wrong tag',
            'lot_id': 'RM-002',
            'quantity_received': '10',
            'unit': 'kg',
            'received_date': str(timezone.localdate()),
            'tag': tag.id,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_waste_endpoint_and_movements(self):
        """Test waste via API shows up in the movement history"""
        lot = TestDataFactory.create_raw_material(quantity=Decimal('40'))
        response = self.client.post('/api/v1/waste/', {
            'lot_type': 'raw_material',
            'item_id': lot.id,
            'quantity_wasted': '5',
            'reason': 'Damaged in transit',
            'waste_date': str(timezone.localdate()),
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.get(f'/api/v1/raw-materials/{lot.id}/movements/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['movements']), 2)
        self.assertEqual(response.data['balance'], Decimal('35'))

    def test_movements_reject_malformed_as_of(self):
        lot = TestDataFactory.create_raw_material(quantity=Decimal('40'))
        response = self.client.get(f'/api/v1/raw-materials/{lot.id}/movements/?as_of=last-week')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('as_of', response.data['error'])
        response = self.client.get(f'/api/v1/raw-materials/{lot.id}/movements/?as_of=2026-02-30')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.get(f'/api/v1/raw-materials/{lot.id}/movements/?as_of={timezone.localdate()}')
        self.assertEqual(response.data['balance'], Decimal('40'))

    def test_rejected_quantity_edit_keeps_other_fields(self):
        """Test a refused received-quantity change does not save the rest of the edit"""
        lot = TestDataFactory.create_raw_material(quantity=Decimal('100'), name='Kesar Mango')
        services.record_waste('raw_material', lot.pk, Decimal('80'), 'Rot')
        response = self.client.patch(f'/api/v1/raw-materials/{lot.id}/', {
            'name': 'Renamed',
            'quantity_received': '50',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        lot.refresh_from_db()
        self.assertEqual(lot.name, 'Kesar Mango')
        self.assertEqual(lot.quantity_received, Decimal('100'))

    def test_waste_over_balance_returns_error(self):
        lot = TestDataFactory.create_raw_material(quantity=Decimal('1'))
        response = self.client.post('/api/v1/waste/', {
            'lot_type': 'raw_material',
            'item_id': lot.id,
            'quantity_wasted': '5',
            'reason': 'Too much',
            'waste_date': str(timezone.localdate()),
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('exceeds available balance', response.data['error'])

    def test_batch_complete_endpoint(self):
        tag = TestDataFactory.create_tag('produced_goods')
        batch = TestDataFactory.create_batch(qa_status='approved')
        response = self.client.post(f'/api/v1/batches/{batch.id}/outputs/', {
            'output_name': 'Pulp',
            'produced_quantity': '12',
            'produced_unit': 'kg',
            'produced_goods_tag': tag.id,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        response = self.client.post(f'/api/v1/batches/{batch.id}/complete/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['batch']['is_locked'])
        self.assertEqual(len(response.data['processed_goods']), 1)

    def test_tag_overview_invalid_type(self):
        response = self.client.get('/api/v1/tags/overview/?tag_type=bogus')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
