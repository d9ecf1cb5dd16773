"""
Test suite for analytics
Tests: date range presets, sales and production aggregations, verdict, recommendations and targets
"""
from datetime import date, timedelta
from decimal import Decimal

from django.core.cache import cache
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from backend.core.exceptions import BusinessRuleError
from backend.core.models import ACCESS_READ_WRITE
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.analytics.models import AnalyticsTarget
from backend.analytics import services
from backend.operations import services as operations_services
from backend.sales import services as sales_services


class DateRangeTests(TestCase):
    today = date(2026, 5, 20)

    def test_presets(self):
        self.assertEqual(services.resolve_date_range('today', today=self.today), (self.today, self.today))
        self.assertEqual(services.resolve_date_range('month', today=self.today), (date(2026, 5, 1), self.today))
        self.assertEqual(services.resolve_date_range('quarter', today=self.today), (date(2026, 4, 1), self.today))
        self.assertEqual(services.resolve_date_range('year', today=self.today), (date(2026, 1, 1), self.today))

    def test_default_is_last_thirty_days(self):
        self.assertEqual(services.resolve_date_range(today=self.today), (date(2026, 4, 20), self.today))

    def test_custom_range(self):
        """Test custom ranges parse ISO dates and default the end to today"""
        self.assertEqual(services.resolve_date_range('custom', '2026-03-01', '2026-03-31'),
                         (date(2026, 3, 1), date(2026, 3, 31)))
        self.assertEqual(services.resolve_date_range('custom', '2026-05-10', today=self.today),
                         (date(2026, 5, 10), self.today))

    def test_invalid_ranges(self):
        with self.assertRaises(BusinessRuleError):
            services.resolve_date_range('custom', today=self.today)
        with self.assertRaises(BusinessRuleError):
            services.resolve_date_range('custom', '2026-03-31', '2026-03-01')
        with self.assertRaises(BusinessRuleError):
            services.resolve_date_range('custom', 'not-a-date')
        with self.assertRaises(BusinessRuleError):
            services.resolve_date_range('fortnight')

    def test_previous_period_has_equal_length(self):
        self.assertEqual(services.previous_period(date(2026, 3, 1), date(2026, 3, 31)),
                         (date(2026, 1, 29), date(2026, 2, 28)))
        self.assertEqual(services.previous_period(self.today, self.today), (date(2026, 5, 19), date(2026, 5, 19)))


class SalesAnalyticsTests(TestCase):
    """Sales metrics and per-tag sales"""

    def setUp(self):
        cache.clear()
        self.today = timezone.localdate()
        self.start = self.today - timedelta(days=30)
        self.jam_tag = TestDataFactory.create_tag('produced_goods', key='mango-jam', display_name='Mango Jam')
        self.pickle_tag = TestDataFactory.create_tag('produced_goods', key='lime-pickle', display_name='Lime Pickle')
        self.jam = TestDataFactory.create_processed_good(quantity=Decimal('100'), tag=self.jam_tag)
        self.pickle = TestDataFactory.create_processed_good(quantity=Decimal('100'), tag=self.pickle_tag)

        first = TestDataFactory.create_order(items=[(self.jam, '10', '50')], discount_amount=Decimal('100'))
        TestDataFactory.create_payment(first, '150')
        TestDataFactory.create_order(items=[(self.pickle, '5', '60')])
        TestDataFactory.create_order(items=[(self.jam, '2', '10')], order_date=self.today - timedelta(days=60))

    def test_sales_metrics(self):
        """Test values are net of discount and limited to the range"""
        metrics = services.sales_metrics(self.start, self.today)
        self.assertEqual(metrics['total_sales_value'], Decimal('700'))
        self.assertEqual(metrics['total_quantity_sold'], Decimal('15'))
        self.assertEqual(metrics['number_of_orders'], 2)
        self.assertEqual(metrics['average_order_value'], Decimal('350.00'))
        self.assertEqual(metrics['payment_collected'], Decimal('150'))
        self.assertEqual(metrics['payment_pending'], Decimal('550'))

    def test_empty_range(self):
        metrics = services.sales_metrics(self.today + timedelta(days=1), self.today + timedelta(days=5))
        self.assertEqual(metrics['number_of_orders'], 0)
        self.assertEqual(metrics['average_order_value'], Decimal('0'))

    def test_sales_by_tag(self):
        rows = services.sales_by_tag(self.start, self.today)
        self.assertEqual([row['tag_name'] for row in rows], ['Mango Jam', 'Lime Pickle'])
        self.assertEqual(rows[0]['total_sales_value'], Decimal('500'))
        self.assertEqual(rows[1]['total_quantity_sold'], Decimal('5'))
        self.assertEqual(rows[1]['order_count'], 1)

    def test_sales_by_tag_filter(self):
        rows = services.sales_by_tag(self.start, self.today, tag_id=self.pickle_tag.id)
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]['tag_key'], 'lime-pickle')


class ProductionAnalyticsTests(TestCase):
    """Raw material waste and produced goods sell-through"""

    def setUp(self):
        cache.clear()
        self.today = timezone.localdate()
        self.start = self.today - timedelta(days=30)

    def test_raw_material_waste_keeps_worst_lot(self):
        mango = TestDataFactory.create_tag(key='mango', display_name='Mango')
        sugar = TestDataFactory.create_tag(key='sugar', display_name='Sugar')
        bad_lot = TestDataFactory.create_raw_material(tag=mango, quantity=Decimal('100'))
        good_lot = TestDataFactory.create_raw_material(tag=mango, quantity=Decimal('200'))
        sugar_lot = TestDataFactory.create_raw_material(tag=sugar, quantity=Decimal('100'))
        operations_services.record_waste('raw_material', bad_lot.pk, Decimal('30'), 'Rot')
        operations_services.record_waste('raw_material', good_lot.pk, Decimal('10'), 'Bruising')
        operations_services.record_waste('raw_material', sugar_lot.pk, Decimal('5'), 'Spillage')

        rows = services.raw_material_waste(self.start, self.today)
        self.assertEqual([row['tag_key'] for row in rows], ['mango', 'sugar'])
        self.assertEqual(rows[0]['max_waste_percentage'], 30.0)
        self.assertEqual(rows[0]['total_intake'], Decimal('300'))
        self.assertEqual(rows[0]['total_waste'], Decimal('40'))

    def test_produced_goods_sell_through(self):
        """Test sell-through counts deliveries, not orders"""
        tag = TestDataFactory.create_tag('produced_goods', key='jam', display_name='Jam')
        good = TestDataFactory.create_processed_good(quantity=Decimal('100'), tag=tag)
        order = TestDataFactory.create_order(items=[(good, '60', '10')])
        sales_services.record_delivery(order.items.get(), Decimal('40'))

        rows = services.produced_goods(self.start, self.today)
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]['total_quantity_produced'], Decimal('100'))
        self.assertEqual(rows[0]['total_quantity_available'], Decimal('60'))
        self.assertEqual(rows[0]['total_quantity_sold'], Decimal('40'))
        self.assertEqual(rows[0]['sell_through_rate'], 40.0)
        self.assertEqual(rows[0]['batches_produced'], 1)


class FinancialVerdictTests(TestCase):
    def setUp(self):
        cache.clear()
        self.end = timezone.localdate()
        self.start = self.end - timedelta(days=9)
        TestDataFactory.create_income(amount=Decimal('500'), payment_at=timezone.now() - timedelta(days=15))

    def test_growing_and_controlled(self):
        TestDataFactory.create_income(amount=Decimal('1000'))
        TestDataFactory.create_expense(amount=Decimal('300'))
        verdict = services.financial_verdict(self.start, self.end)
        self.assertEqual(verdict['revenue_trend'], 'growing')
        self.assertEqual(verdict['expense_pressure'], 'low')
        self.assertEqual(verdict['overall_health'], 'stable')
        self.assertEqual(verdict['inventory_risk'], 'overstock')
        self.assertEqual(verdict['income_change_percentage'], 100.0)
        self.assertEqual(verdict['net_position'], Decimal('700'))
        self.assertEqual(verdict['message'], 'Sales increased by 100.0%, and expenses are well-controlled '
                                             '(30.0% of income), resulting in positive cash flow.')

    def test_negative_net_is_critical(self):
        TestDataFactory.create_income(amount=Decimal('1000'))
        TestDataFactory.create_expense(amount=Decimal('1200'))
        verdict = services.financial_verdict(self.start, self.end)
        self.assertEqual(verdict['overall_health'], 'critical')
        self.assertEqual(verdict['expense_pressure'], 'high')
        self.assertTrue(verdict['message'].endswith('resulting in lower net cash movement.'))

    def test_declining_revenue(self):
        TestDataFactory.create_income(amount=Decimal('300'))
        verdict = services.financial_verdict(self.start, self.end)
        self.assertEqual(verdict['revenue_trend'], 'declining')
        self.assertEqual(verdict['income_change_percentage'], -40.0)
        self.assertEqual(verdict['overall_health'], 'critical')


class RecommendationTests(TestCase):
    def setUp(self):
        cache.clear()
        self.today = timezone.localdate()

    def test_recommendations_sorted_by_severity(self):
        """Test every rule fires and critical items come first"""
        mango = TestDataFactory.create_tag(key='mango', display_name='Mango')
        lot = TestDataFactory.create_raw_material(tag=mango, quantity=Decimal('100'))
        operations_services.record_waste('raw_material', lot.pk, Decimal('30'), 'Rot')
        good = TestDataFactory.create_processed_good(quantity=Decimal('100'))
        TestDataFactory.create_order(items=[(good, '10', '100')])
        TestDataFactory.create_income(amount=Decimal('1000'))
        TestDataFactory.create_expense(amount=Decimal('250'), expense_type='operational')

        result = services.recommendations(self.today - timedelta(days=30), self.today)
        self.assertEqual({item['id'] for item in result}, {
            f'waste-{mango.id}',
            f'sell-through-{good.produced_goods_tag_id}',
            'pending-payments',
            'expense-growth',
        })
        self.assertEqual([item['severity'] for item in result], ['critical', 'critical', 'critical', 'warning'])
        self.assertEqual(result[-1]['id'], 'expense-growth')

    def test_quiet_period_has_no_recommendations(self):
        self.assertEqual(services.recommendations(self.today - timedelta(days=30), self.today), [])


class TargetProgressTests(TestCase):
    def setUp(self):
        cache.clear()
        self.today = timezone.localdate()
        self.tag = TestDataFactory.create_tag('produced_goods', key='jam', display_name='Jam')
        good = TestDataFactory.create_processed_good(quantity=Decimal('100'), tag=self.tag)
        TestDataFactory.create_order(items=[(good, '10', '50')])
        TestDataFactory.create_order(items=[(good, '5', '40')])

    def _target(self, target_type, value, start_offset=10, end_offset=10, tag=None):
        return AnalyticsTarget.objects.create(
            target_name=f'{target_type} goal',
            target_type=target_type,
            target_value=Decimal(value),
            tag=tag,
            period_start=self.today - timedelta(days=start_offset),
            period_end=self.today + timedelta(days=end_offset),
        )

    def test_sales_count_on_track(self):
        progress = services.target_progress(self._target('sales_count', '4'), today=self.today)
        self.assertEqual(progress['achieved'], Decimal('2'))
        self.assertEqual(progress['remaining'], Decimal('2'))
        self.assertEqual(progress['percentage'], 50.0)
        self.assertEqual(progress['days_remaining'], 10)
        self.assertEqual(progress['expected_percentage'], 50.0)
        self.assertTrue(progress['is_on_track'])

    def test_revenue_behind_schedule(self):
        """Test a target far behind the elapsed share is off track"""
        target = self._target('sales_revenue', '10000', start_offset=18, end_offset=2)
        progress = services.target_progress(target, today=self.today)
        self.assertEqual(progress['achieved'], Decimal('700'))
        self.assertEqual(progress['expected_percentage'], 90.0)
        self.assertFalse(progress['is_on_track'])

    def test_product_sales_uses_tag(self):
        progress = services.target_progress(self._target('product_sales', '30', tag=self.tag), today=self.today)
        self.assertEqual(progress['achieved'], Decimal('15'))
        self.assertEqual(progress['percentage'], 50.0)

    def test_percentage_is_capped(self):
        progress = services.target_progress(self._target('sales_count', '1'), today=self.today)
        self.assertEqual(progress['percentage'], 100.0)
        self.assertEqual(progress['remaining'], Decimal('0'))


class AnalyticsAPITests(TestCase):
    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user(module_access={'analytics': ACCESS_READ_WRITE})
        self.client.authenticate_user(self.user)
        self.today = timezone.localdate()

    def test_sales_endpoint(self):
        good = TestDataFactory.create_processed_good(quantity=Decimal('10'))
        TestDataFactory.create_order(items=[(good, '2', '25')])
        response = self.client.get('/api/v1/analytics/sales/?date_range=today')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['start_date'], self.today)
        self.assertEqual(response.data['number_of_orders'], 1)
        self.assertEqual(response.data['total_sales_value'], Decimal('50'))

    def test_unknown_range_returns_400(self):
        response = self.client.get('/api/v1/analytics/verdict/?date_range=fortnight')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('Unknown date range', response.data['error'])

    def test_custom_range_needs_start(self):
        response = self.client.get('/api/v1/analytics/overview/?date_range=custom')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_overview(self):
        response = self.client.get('/api/v1/analytics/overview/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['start_date'], self.today - timedelta(days=30))
        self.assertEqual(response.data['recommendations'], [])
        self.assertEqual(response.data['verdict']['revenue_trend'], 'flat')

    def test_tagged_target_requires_tag(self):
        response = self.client.post('/api/v1/analytics/targets/', {
            'target_name': 'Jam volume',
            'target_type': 'production_quantity',
            'target_value': '500',
            'period_start': str(self.today),
            'period_end': str(self.today + timedelta(days=30)),
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('tag', response.data)

    def test_create_target_and_progress(self):
        """Test a created target shows up in the active progress list"""
        response = self.client.post('/api/v1/analytics/targets/', {
            'target_name': 'Orders this month',
            'target_type': 'sales_count',
            'target_value': '20',
            'period_start': str(self.today - timedelta(days=5)),
            'period_end': str(self.today + timedelta(days=5)),
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        target_id = response.data['id']

        response = self.client.get(f'/api/v1/analytics/targets/{target_id}/progress/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Decimal(response.data['achieved']), Decimal('0'))
        self.assertEqual(response.data['target']['target_name'], 'Orders this month')

        response = self.client.get('/api/v1/analytics/targets/progress/')
        self.assertEqual([row['target']['id'] for row in response.data], [target_id])

    def test_period_end_before_start(self):
        response = self.client.post('/api/v1/analytics/targets/', {
            'target_name': 'Backwards',
            'target_type': 'sales_count',
            'target_value': '5',
            'period_start': str(self.today),
            'period_end': str(self.today - timedelta(days=1)),
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('period_end', response.data)

    def test_no_module_access(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get('/api/v1/analytics/sales/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
