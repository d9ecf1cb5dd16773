"""
Test suite for the finance module
Tests: transaction numbering, validation, sales-mirrored income protection, summaries and search
"""
from datetime import timedelta
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from backend.core.exceptions import BusinessRuleError
from backend.core.models import ACCESS_READ_WRITE, ACCESS_READ_ONLY
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.finance.models import Contribution, Income, Expense
from backend.finance import services
from backend.sales import services as sales_services


class TransactionServiceTests(TestCase):
    """create_transaction numbering and validation"""

    def setUp(self):
        self.user = TestDataFactory.create_user()

    def test_transaction_ids_per_ledger(self):
        """Test each ledger has its own prefix and sequence"""
        first = TestDataFactory.create_expense(user=self.user)
        second = TestDataFactory.create_expense(user=self.user)
        income = TestDataFactory.create_income(user=self.user)
        self.assertEqual(first.transaction_id, 'TXN-EXP-001')
        self.assertEqual(second.transaction_id, 'TXN-EXP-002')
        self.assertEqual(income.transaction_id, 'TXN-INC-001')
        self.assertEqual(first.recorded_by, self.user)

    def test_non_positive_amount_rejected(self):
        with self.assertRaises(BusinessRuleError):
            TestDataFactory.create_expense(amount=Decimal('0'))

    def test_other_bank_account_needs_user(self):
        """Test payments to another account must name the account holder"""
        with self.assertRaises(BusinessRuleError):
            services.create_transaction(Contribution, {
                'amount': Decimal('5000'),
                'reason': 'Founder top-up',
                'payment_to': 'other_bank_account',
            })
        contribution = services.create_transaction(Contribution, {
            'amount': Decimal('5000'),
            'reason': 'Founder top-up',
            'payment_to': 'other_bank_account',
            'paid_to_user': self.user,
        })
        self.assertEqual(contribution.transaction_id, 'TXN-CNT-001')

    def test_payment_at_defaults_to_now(self):
        expense = services.create_transaction(Expense, {'amount': Decimal('10'), 'reason': 'Tea'})
        self.assertIsNotNone(expense.payment_at)

    def test_sales_income_is_read_only(self):
        good = TestDataFactory.create_processed_good(quantity=Decimal('10'))
        order = TestDataFactory.create_order(items=[(good, '1', '100')])
        payment = TestDataFactory.create_payment(order, '100')
        with self.assertRaises(BusinessRuleError):
            services.require_manual_income(payment.income)

    def test_overpayment_does_not_reach_income(self):
        """Test a refused overpayment leaves the mirrored income untouched"""
        good = TestDataFactory.create_processed_good(quantity=Decimal('10'))
        order = TestDataFactory.create_order(items=[(good, '1', '100')])
        payment = TestDataFactory.create_payment(order, '60')
        with self.assertRaises(BusinessRuleError):
            TestDataFactory.create_payment(order, '50')
        with self.assertRaises(BusinessRuleError):
            sales_services.update_payment(payment, {'amount_received': Decimal('150')})
        self.assertEqual(Income.objects.count(), 1)
        payment.income.refresh_from_db()
        self.assertEqual(payment.income.amount, Decimal('60'))


class FinanceSummaryTests(TestCase):
    """Totals, date filtering and cross-ledger search"""

    def setUp(self):
        now = timezone.now()
        services.create_transaction(Contribution, {'amount': Decimal('10000'), 'reason': 'Seed capital',
                                                   'payment_at': now - timedelta(days=40)})
        TestDataFactory.create_income(amount=Decimal('2500'), reason='Consulting', payment_at=now - timedelta(days=2))
        TestDataFactory.create_expense(amount=Decimal('700'), reason='Packaging film', payment_at=now - timedelta(days=1))

    def test_summary_totals(self):
        summary = services.finance_summary()
        self.assertEqual(summary['total_contributions'], Decimal('10000'))
        self.assertEqual(summary['total_income'], Decimal('2500'))
        self.assertEqual(summary['total_expenses'], Decimal('700'))
        self.assertEqual(summary['net_cash'], Decimal('11800'))

    def test_summary_date_range(self):
        """Test summary only counts rows inside the range"""
        start = timezone.localdate() - timedelta(days=7)
        summary = services.finance_summary(start=start)
        self.assertEqual(summary['total_contributions'], Decimal('0'))
        self.assertEqual(summary['contribution_count'], 0)
        self.assertEqual(summary['income_count'], 1)

    def test_recent_transactions_newest_first(self):
        rows = services.recent_transactions(limit=2)
        self.assertEqual([row['kind'] for row in rows], ['expense', 'income'])

    def test_search_by_reason(self):
        rows = services.recent_transactions(search='packaging')
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]['transaction_id'], 'TXN-EXP-001')


class FinanceAPITests(TestCase):
    """Finance ledger endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user(module_access={'finance': ACCESS_READ_WRITE})
        self.client.authenticate_user(self.user)

    def test_create_expense(self):
        response = self.client.post('/api/v1/finance/expenses/', {
            'amount': '1250.00',
            'reason': 'Cold storage rent',
            'expense_type': 'operational',
            'payment_method': 'bank_transfer',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['transaction_id'], 'TXN-EXP-001')
        self.assertEqual(response.data['recorded_by'], self.user.id)

    def test_negative_amount_returns_400(self):
        response = self.client.post('/api/v1/finance/income/', {'amount': '-5', 'reason': 'Refund'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('amount', response.data)

    def test_list_filters_by_type(self):
        TestDataFactory.create_expense(expense_type='salary')
        TestDataFactory.create_expense(expense_type='utilities')
        response = self.client.get('/api/v1/finance/expenses/?type=salary')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)

    def test_sales_income_cannot_be_deleted(self):
        """Test mirrored income must be changed through the payment"""
        good = TestDataFactory.create_processed_good(quantity=Decimal('10'))
        order = TestDataFactory.create_order(items=[(good, '1', '100')])
        payment = TestDataFactory.create_payment(order, '100')
        response = self.client.delete(f'/api/v1/finance/income/{payment.income.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Income.objects.filter(pk=payment.income.id).exists())

    def test_manual_income_can_be_deleted(self):
        income = TestDataFactory.create_income()
        response = self.client.delete(f'/api/v1/finance/income/{income.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

    def test_search_requires_query(self):
        response = self.client.get('/api/v1/finance/search/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_read_only_user_cannot_create(self):
        reader = TestDataFactory.create_user(module_access={'finance': ACCESS_READ_ONLY})
        self.client.authenticate_user(reader)
        self.assertEqual(self.client.get('/api/v1/finance/summary/').status_code, status.HTTP_200_OK)
        response = self.client.post('/api/v1/finance/expenses/', {'amount': '1', 'reason': 'x'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
