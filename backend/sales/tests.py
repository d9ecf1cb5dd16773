"""
Test suite for the sales module
Tests: order totals and status, deliveries, payments mirrored to income, holds, locks and invoices
"""
from datetime import timedelta
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from backend.core.exceptions import BusinessRuleError, OrderLockedError
from backend.core.models import ACCESS_READ_WRITE
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.finance.models import Income
from backend.operations.models import ProcessedGoodHistory
from backend.sales.models import Order, OrderAuditLog, OrderLockLog, CustomerType
from backend.sales import services


class OrderServiceTests(TestCase):
    """Order creation, items and status computation"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.customer = TestDataFactory.create_customer(name='Hotel Blue')
        self.good = TestDataFactory.create_processed_good(quantity=Decimal('50'), product_type='Mango Pulp')

    def test_create_order_computes_totals(self):
        """Test order total, status and numbering after creation"""
        order = TestDataFactory.create_order(self.customer, [(self.good, '10', '100')], user=self.user)
        self.assertEqual(order.order_number, 'ORD-000001')
        self.assertEqual(order.total_amount, Decimal('1000.00'))
        self.assertEqual(order.net_amount, Decimal('1000.00'))
        self.assertEqual(order.status, 'READY_FOR_PAYMENT')
        self.assertEqual(order.payment_status, 'READY_FOR_PAYMENT')
        self.assertTrue(OrderAuditLog.objects.filter(order=order, event_type='ORDER_CREATED').exists())

    def test_order_without_items_is_created_status(self):
        order = TestDataFactory.create_order(self.customer)
        self.assertEqual(order.status, 'ORDER_CREATED')
        self.assertEqual(order.total_amount, Decimal('0'))

    def test_order_creation_does_not_touch_inventory(self):
        """Test stock is reduced by deliveries only"""
        TestDataFactory.create_order(self.customer, [(self.good, '10', '100')])
        self.good.refresh_from_db()
        self.assertEqual(self.good.quantity_available, Decimal('50'))

    def test_order_exceeding_stock_rejected(self):
        """Test order item larger than available stock is refused"""
        with self.assertRaises(BusinessRuleError) as ctx:
            TestDataFactory.create_order(self.customer, [(self.good, '60', '100')])
        self.assertIn('Inventory validation failed', ctx.exception.messages)
        self.assertFalse(Order.objects.exists())

    def test_order_numbers_are_sequential(self):
        first = TestDataFactory.create_order(self.customer)
        second = TestDataFactory.create_order(self.customer)
        self.assertEqual(first.order_number, 'ORD-000001')
        self.assertEqual(second.order_number, 'ORD-000002')

    def test_discount_reduces_net_amount(self):
        order = TestDataFactory.create_order(self.customer, [(self.good, '10', '100')], discount_amount='150')
        self.assertEqual(order.discount_amount, Decimal('150'))
        self.assertEqual(order.net_amount, Decimal('850.00'))

    def test_discount_above_total_rejected(self):
        order = TestDataFactory.create_order(self.customer, [(self.good, '1', '100')])
        with self.assertRaises(BusinessRuleError):
            services.apply_discount(order, Decimal('101'))

    def test_add_and_delete_item_recalculates(self):
        """Test adding then removing an item keeps totals in sync"""
        order = TestDataFactory.create_order(self.customer, [(self.good, '2', '100')])
        item = services.add_item(order, {'processed_good': self.good, 'quantity': '3', 'unit_price': Decimal('50')})
        order.refresh_from_db()
        self.assertEqual(order.total_amount, Decimal('350.00'))
        services.delete_item(item)
        order.refresh_from_db()
        self.assertEqual(order.total_amount, Decimal('200.00'))

    def test_item_quantity_cannot_drop_below_delivered(self):
        order = TestDataFactory.create_order(self.customer, [(self.good, '10', '100')])
        item = order.items.get()
        services.record_delivery(item, Decimal('6'))
        with self.assertRaises(BusinessRuleError):
            services.update_item(item, {'quantity': Decimal('5')})


class DeliveryTests(TestCase):
    """Deliveries are the only sales path that reduces processed goods"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.good = TestDataFactory.create_processed_good(quantity=Decimal('20'))
        self.order = TestDataFactory.create_order(items=[(self.good, '8', '25')], user=self.user)
        self.item = self.order.items.get()

    def test_delivery_reduces_stock_and_logs_history(self):
        dispatch = services.record_delivery(self.item, Decimal('5'), user=self.user)
        self.good.refresh_from_db()
        self.item.refresh_from_db()
        self.assertEqual(self.good.quantity_available, Decimal('15'))
        self.assertEqual(self.item.quantity_delivered, Decimal('5'))
        history = ProcessedGoodHistory.objects.get(processed_good=self.good)
        self.assertEqual(history.quantity_change, Decimal('-5'))
        self.assertEqual(history.order_number, self.order.order_number)
        self.assertEqual(history.delivery_dispatch_id, dispatch.id)

    def test_delivery_cannot_exceed_remaining(self):
        """Test cumulative deliveries are capped at the ordered quantity"""
        services.record_delivery(self.item, Decimal('5'))
        with self.assertRaises(BusinessRuleError):
            services.record_delivery(self.item, Decimal('4'))

    def test_delivery_needs_stock(self):
        """Test delivery fails when stock was adjusted away"""
        from backend.operations.services import adjust_processed_good
        adjust_processed_good(self.good, Decimal('2'), 'Spoilage found during audit')
        with self.assertRaises(BusinessRuleError):
            services.record_delivery(self.item, Decimal('3'))

    def test_item_with_delivery_cannot_be_deleted(self):
        services.record_delivery(self.item, Decimal('1'))
        with self.assertRaises(BusinessRuleError):
            services.delete_item(self.item)


class PaymentTests(TestCase):
    """Payments drive payment status and mirror into income"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.good = TestDataFactory.create_processed_good(quantity=Decimal('100'))
        self.order = TestDataFactory.create_order(items=[(self.good, '10', '100')], user=self.user)

    def test_partial_payment(self):
        payment = TestDataFactory.create_payment(self.order, '400', payment_mode='UPI', user=self.user)
        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, 'PARTIAL_PAYMENT')
        self.assertEqual(self.order.status, 'READY_FOR_PAYMENT')
        self.assertEqual(payment.income.amount, Decimal('400'))
        self.assertEqual(payment.income.payment_method, 'upi')
        self.assertTrue(payment.income.from_sales_payment)
        self.assertEqual(payment.income.order_number, self.order.order_number)

    def test_full_payment_completes_order(self):
        """Test paying the net amount completes the order"""
        TestDataFactory.create_payment(self.order, '600')
        TestDataFactory.create_payment(self.order, '400')
        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, 'FULL_PAYMENT')
        self.assertEqual(self.order.status, 'ORDER_COMPLETED')
        self.assertIsNotNone(self.order.completed_at)
        self.assertEqual(Income.objects.count(), 2)

    def test_income_ids_are_sequential(self):
        first = TestDataFactory.create_payment(self.order, '100')
        second = TestDataFactory.create_payment(self.order, '100')
        self.assertEqual(first.income.transaction_id, 'TXN-INC-001')
        self.assertEqual(second.income.transaction_id, 'TXN-INC-002')

    def test_update_payment_syncs_income(self):
        payment = TestDataFactory.create_payment(self.order, '100')
        services.update_payment(payment, {'amount_received': Decimal('250')})
        payment.income.refresh_from_db()
        self.assertEqual(payment.income.amount, Decimal('250'))

    def test_delete_payment_removes_income(self):
        """Test deleting a payment deletes its income row and resets status"""
        payment = TestDataFactory.create_payment(self.order, '1000')
        services.delete_payment(payment)
        self.order.refresh_from_db()
        self.assertEqual(Income.objects.count(), 0)
        self.assertEqual(self.order.payment_status, 'READY_FOR_PAYMENT')
        self.assertEqual(self.order.status, 'READY_FOR_PAYMENT')

    def test_zero_payment_rejected(self):
        with self.assertRaises(BusinessRuleError):
            TestDataFactory.create_payment(self.order, '0')

    def test_payment_cannot_exceed_remaining(self):
        """Test an overpayment is refused and leaves no income behind"""
        TestDataFactory.create_payment(self.order, '700')
        with self.assertRaises(BusinessRuleError) as ctx:
            TestDataFactory.create_payment(self.order, '301')
        self.assertIn('cannot exceed remaining amount', ctx.exception.messages[0])
        self.assertEqual(Income.objects.count(), 1)
        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, 'PARTIAL_PAYMENT')

    def test_update_payment_cannot_exceed_remaining(self):
        """Test an edited payment is checked against the other payments only"""
        TestDataFactory.create_payment(self.order, '600')
        payment = TestDataFactory.create_payment(self.order, '100')
        services.update_payment(payment, {'amount_received': Decimal('400')})
        with self.assertRaises(BusinessRuleError):
            services.update_payment(payment, {'amount_received': Decimal('401')})
        payment.refresh_from_db()
        self.assertEqual(payment.amount_received, Decimal('400'))

    def test_order_with_deliveries_cannot_be_deleted(self):
        services.record_delivery(self.order.items.get(), Decimal('1'))
        with self.assertRaises(BusinessRuleError):
            services.delete_order(self.order)
        self.assertTrue(Order.objects.filter(pk=self.order.pk).exists())

    def test_delete_order_removes_mirrored_income(self):
        TestDataFactory.create_payment(self.order, '300')
        services.delete_order(self.order)
        self.assertFalse(Order.objects.filter(pk=self.order.pk).exists())
        self.assertEqual(Income.objects.count(), 0)


class HoldAndLockTests(TestCase):
    """Hold, lock and unlock rules"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.good = TestDataFactory.create_processed_good(quantity=Decimal('100'))
        self.order = TestDataFactory.create_order(items=[(self.good, '5', '20')], user=self.user)

    def _complete(self):
        TestDataFactory.create_payment(self.order, '100')
        self.order.refresh_from_db()

    def test_hold_and_release(self):
        order = services.place_hold(self.order, 'Customer asked to wait', user=self.user)
        self.assertEqual(order.status, 'HOLD')
        self.assertEqual(order.held_by, self.user)
        order = services.remove_hold(order, user=self.user)
        self.assertEqual(order.status, 'READY_FOR_PAYMENT')
        self.assertEqual(order.hold_reason, '')

    def test_hold_requires_reason(self):
        with self.assertRaises(BusinessRuleError):
            services.place_hold(self.order, '   ')

    def test_only_completed_orders_lock(self):
        with self.assertRaises(BusinessRuleError):
            services.lock_order(self.order)

    def test_lock_sets_unlock_window(self):
        """Test locking records the unlock deadline and a lock log"""
        self._complete()
        order = services.lock_order(self.order, user=self.user)
        self.assertTrue(order.is_locked)
        self.assertAlmostEqual(
            (order.can_unlock_until - order.locked_at).total_seconds(),
            timedelta(days=7).total_seconds(), delta=1
        )
        self.assertTrue(OrderLockLog.objects.filter(order=order, action='LOCK').exists())

    def test_locked_order_rejects_changes(self):
        """Test locked orders refuse payments and edits"""
        self._complete()
        services.lock_order(self.order)
        with self.assertRaises(OrderLockedError):
            TestDataFactory.create_payment(self.order, '10')
        with self.assertRaises(OrderLockedError):
            services.place_hold(self.order, 'Late')

    def test_locked_order_still_accepts_deliveries(self):
        self._complete()
        services.lock_order(self.order)
        dispatch = services.record_delivery(self.order.items.get(), Decimal('5'))
        self.assertEqual(dispatch.quantity_delivered, Decimal('5'))

    def test_unlock_requires_reason(self):
        self._complete()
        services.lock_order(self.order)
        with self.assertRaises(BusinessRuleError):
            services.unlock_order(self.order, '')

    def test_unlock_within_window(self):
        self._complete()
        services.lock_order(self.order)
        order = services.unlock_order(self.order, 'Wrong payment mode', user=self.user)
        self.assertFalse(order.is_locked)
        self.assertIsNone(order.can_unlock_until)
        log = OrderLockLog.objects.get(order=order, action='UNLOCK')
        self.assertEqual(log.unlock_reason, 'Wrong payment mode')

    def test_unlock_after_window_fails(self):
        """Test orders past the unlock window stay locked"""
        self._complete()
        order = services.lock_order(self.order)
        order.can_unlock_until = timezone.now() - timedelta(hours=1)
        order.save(update_fields=['can_unlock_until'])
        with self.assertRaises(BusinessRuleError):
            services.unlock_order(order, 'Too late')
        order.refresh_from_db()
        self.assertTrue(order.is_locked)


class InvoiceAndStatsTests(TestCase):
    """Invoices, third-party delivery and customer statistics"""

    def setUp(self):
        self.customer = TestDataFactory.create_customer()
        self.good = TestDataFactory.create_processed_good(quantity=Decimal('100'))

    def test_invoice_generated_once(self):
        order = TestDataFactory.create_order(self.customer, [(self.good, '1', '100')])
        invoice, created = services.generate_invoice(order)
        again, created_again = services.generate_invoice(order)
        self.assertTrue(created)
        self.assertFalse(created_again)
        self.assertEqual(invoice.pk, again.pk)
        self.assertEqual(invoice.invoice_number, 'INV-000001')

    def test_invoice_needs_items(self):
        order = TestDataFactory.create_order(self.customer)
        with self.assertRaises(BusinessRuleError):
            services.generate_invoice(order)

    def test_third_party_delivery_requires_flag(self):
        order = TestDataFactory.create_order(self.customer)
        with self.assertRaises(BusinessRuleError):
            services.upsert_third_party_delivery(order, {'delivery_partner_name': 'FastShip'})
        order = services.update_order(order, {'third_party_delivery_enabled': True})
        record = services.upsert_third_party_delivery(order, {'delivery_partner_name': 'FastShip'})
        self.assertEqual(record.delivery_partner_name, 'FastShip')

    def test_customer_stats(self):
        """Test sales value is net of discount and outstanding ignores overpayment"""
        first = TestDataFactory.create_order(self.customer, [(self.good, '10', '100')])
        TestDataFactory.create_order(self.customer, [(self.good, '5', '100')], discount_amount='100')
        TestDataFactory.create_payment(first, '300')
        stats = services.customer_stats([self.customer.id])[self.customer.id]
        self.assertEqual(stats['total_sales_value'], Decimal('1400'))
        self.assertEqual(stats['outstanding_amount'], Decimal('1100'))
        self.assertEqual(stats['order_count'], 2)


class SalesAPITests(TestCase):
    """API endpoints for customers, orders and payments"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user(module_access={'sales': ACCESS_READ_WRITE})
        self.client.authenticate_user(self.user)
        self.customer = TestDataFactory.create_customer()
        self.good = TestDataFactory.create_processed_good(quantity=Decimal('30'))

    def _create_order(self, quantity='5'):
        return self.client.post('/api/v1/orders/', {
            'customer': self.customer.id,
            'order_date': str(timezone.localdate()),
            'items': [{'processed_good': self.good.id, 'quantity': quantity, 'unit_price': '40.00'}],
        }, format='json')

    def test_create_order(self):
        """Test order creation returns order detail with items"""
        response = self._create_order()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['order_number'], 'ORD-000001')
        self.assertEqual(len(response.data['items']), 1)
        self.assertEqual(Decimal(str(response.data['total_amount'])), Decimal('200.00'))

    def test_create_order_over_stock(self):
        response = self._create_order(quantity='31')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('Inventory validation failed', response.data['error'])

    def test_payment_and_lock_flow(self):
        """Test paying, locking and the 409 on a locked order"""
        order_id = self._create_order().data['id']
        response = self.client.post(f'/api/v1/orders/{order_id}/payments/', {
            'amount_received': '200.00',
            'payment_mode': 'Cash',
            'payment_date': str(timezone.localdate()),
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['income_transaction_id'], 'TXN-INC-001')

        response = self.client.post(f'/api/v1/orders/{order_id}/lock/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['is_locked'])

        response = self.client.post(f'/api/v1/orders/{order_id}/hold/', {'reason': 'Check'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_delivery_endpoint(self):
        order = self._create_order().data
        item_id = order['items'][0]['id']
        response = self.client.post(f"/api/v1/orders/{order['id']}/items/{item_id}/deliveries/",
                                    {'quantity': '2'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.good.refresh_from_db()
        self.assertEqual(self.good.quantity_available, Decimal('28'))

    def test_customer_type_must_exist(self):
        response = self.client.post('/api/v1/customers/', {
            'name': 'Cafe One', 'customer_type': 'spaceport'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_customer_list_has_stats(self):
        self._create_order()
        response = self.client.get('/api/v1/customers/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        row = next(c for c in response.data if c['id'] == self.customer.id)
        self.assertEqual(row['order_count'], 1)

    def test_customer_with_orders_cannot_be_deleted(self):
        self._create_order()
        response = self.client.delete(f'/api/v1/customers/{self.customer.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_order_list_is_paginated(self):
        self._create_order()
        response = self.client.get('/api/v1/orders/?limit=10')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)

    def test_user_without_sales_access(self):
        other = TestDataFactory.create_user()
        self.client.authenticate_user(other)
        response = self.client.get('/api/v1/orders/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class SeedCustomerTypesTests(TestCase):
    def test_seed_defaults_command(self):
        from django.core.management import call_command
        from io import StringIO
        call_command('seed_defaults', stdout=StringIO())
        call_command('seed_defaults', stdout=StringIO())
        self.assertEqual(CustomerType.objects.count(), len(services.DEFAULT_CUSTOMER_TYPES))
