"""
Tests for authentication, users, module access and shared helpers
"""
from django.test import TestCase
from rest_framework import status
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.core.models import ModuleAccess, AuditLog, ACCESS_READ_ONLY, ACCESS_READ_WRITE, ACCESS_NONE
from backend.core.permissions import get_access_level, get_access_map, can_read, can_write
from backend.core.utils import next_sequence_number
from backend.sales.models import Invoice


class AuthenticationTests(TestCase):
    """Login, token refresh and current user"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user(username='alice', password='secretpass123')

    def test_login_returns_tokens(self):
        """Test login with valid credentials"""
        response = self.client.post('/api/v1/auth/login/', {
            'username': 'alice', 'password': 'secretpass123'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)
        self.assertFalse(response.data['requires_password_change'])

    def test_login_wrong_password(self):
        """Test login is refused with a bad password"""
        response = self.client.post('/api/v1/auth/login/', {
            'username': 'alice', 'password': 'nope'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_unauthenticated_request_rejected(self):
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_includes_module_access(self):
        """Test current user payload lists access for every module"""
        ModuleAccess.objects.create(user=self.user, module='sales', access_level=ACCESS_READ_ONLY)
        self.client.authenticate_user(self.user)
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['module_access']['sales'], ACCESS_READ_ONLY)
        self.assertEqual(response.data['module_access']['finance'], ACCESS_NONE)
        self.assertFalse(response.data['is_admin'])

    def test_change_password(self):
        """Test password change clears the forced-change flag"""
        self.user.requires_password_change = True
        self.user.save()
        self.client.authenticate_user(self.user)
        response = self.client.post('/api/v1/auth/change-password/', {
            'current_password': 'secretpass123',
            'new_password': 'An0ther-Secret!',
            'new_password_confirm': 'An0ther-Secret!',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password('An0ther-Secret!'))
        self.assertFalse(self.user.requires_password_change)
        self.assertTrue(AuditLog.objects.filter(action='password_change', object_id=str(self.user.id)).exists())

    def test_change_password_wrong_current(self):
        self.client.authenticate_user(self.user)
        response = self.client.post('/api/v1/auth/change-password/', {
            'current_password': 'incorrect',
            'new_password': 'An0ther-Secret!',
            'new_password_confirm': 'An0ther-Secret!',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('current_password', response.data)


class ModuleAccessTests(TestCase):
    """Effective access levels and the admin access endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.admin = TestDataFactory.create_admin()
        self.user = TestDataFactory.create_user()

    def test_admin_has_read_write_everywhere(self):
        self.assertEqual(get_access_level(self.admin, 'finance'), ACCESS_READ_WRITE)
        self.assertTrue(all(level == ACCESS_READ_WRITE for level in get_access_map(self.admin).values()))

    def test_user_without_rows_has_no_access(self):
        """Test missing access rows mean no access"""
        self.assertEqual(get_access_level(self.user, 'sales'), ACCESS_NONE)
        self.assertFalse(can_read(self.user, 'sales'))

    def test_read_only_can_read_not_write(self):
        ModuleAccess.objects.create(user=self.user, module='operations', access_level=ACCESS_READ_ONLY)
        self.assertTrue(can_read(self.user, 'operations'))
        self.assertFalse(can_write(self.user, 'operations'))

    def test_read_only_user_cannot_post(self):
        """Test read-only access rejects unsafe methods"""
        ModuleAccess.objects.create(user=self.user, module='operations', access_level=ACCESS_READ_ONLY)
        self.client.authenticate_user(self.user)
        self.assertEqual(self.client.get('/api/v1/suppliers/').status_code, status.HTTP_200_OK)
        response = self.client.post('/api/v1/suppliers/', {'name': 'Acme', 'supplier_type': 'raw_material'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_no_access_user_cannot_read(self):
        self.client.authenticate_user(self.user)
        response = self.client.get('/api/v1/finance/summary/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_updates_module_access(self):
        """Test admin replaces a user's access map"""
        self.client.authenticate_user(self.admin)
        response = self.client.put(f'/api/v1/users/{self.user.id}/module-access/', {
            'access': {'sales': ACCESS_READ_WRITE, 'finance': ACCESS_READ_ONLY}
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['access']['sales'], ACCESS_READ_WRITE)
        self.assertEqual(response.data['access']['finance'], ACCESS_READ_ONLY)
        self.assertEqual(response.data['access']['agile'], ACCESS_NONE)
        self.assertTrue(AuditLog.objects.filter(action='access_change').exists())

    def test_unknown_module_rejected(self):
        self.client.authenticate_user(self.admin)
        response = self.client.put(f'/api/v1/users/{self.user.id}/module-access/', {
            'access': {'payroll': ACCESS_READ_WRITE}
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_non_admin_cannot_manage_users(self):
        self.client.authenticate_user(self.user)
        response = self.client.get('/api/v1/users/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class UserAPITests(TestCase):
    """Admin user management"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.admin = TestDataFactory.create_admin()
        self.client.authenticate_user(self.admin)

    def test_create_user_requires_password_change(self):
        """Test created users must change their initial password"""
        response = self.client.post('/api/v1/users/', {
            'username': 'bob',
            'email': 'bob@test.com',
            'password': 'Str0ng-Pass!',
            'password_confirm': 'Str0ng-Pass!',
            'full_name': 'Bob Builder',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['requires_password_change'])

    def test_create_user_password_mismatch(self):
        response = self.client.post('/api/v1/users/', {
            'username': 'bob',
            'password': 'Str0ng-Pass!',
            'password_confirm': 'different-Pass1',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_admin_cannot_delete_self(self):
        response = self.client.delete(f'/api/v1/users/{self.admin.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_module_list(self):
        response = self.client.get('/api/v1/modules/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('documents', [module['id'] for module in response.data])

    def test_audit_log_filters(self):
        """Test audit logs filter by action and model_name"""
        AuditLog.objects.create(user=self.admin, action='create', model_name='Order', object_id='1')
        AuditLog.objects.create(user=self.admin, action='delete', model_name='Order', object_id='2')
        AuditLog.objects.create(user=self.admin, action='create', model_name='Folder', object_id='3')
        response = self.client.get('/api/v1/audit-logs/?model_name=Order')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(sorted(log['object_id'] for log in response.data), ['1', '2'])
        response = self.client.get('/api/v1/audit-logs/?model_name=Order&action=create')
        self.assertEqual([log['object_id'] for log in response.data], ['1'])


class SequenceNumberTests(TestCase):
    """next_sequence_number formatting and gap handling"""

    def test_first_number(self):
        self.assertEqual(next_sequence_number(Invoice.objects.all(), 'invoice_number', 'INV-', 6), 'INV-000001')

    def test_gaps_are_not_reused(self):
        """Test numbering continues after the highest existing value"""
        order = TestDataFactory.create_order()
        Invoice.objects.create(invoice_number='INV-000007', order=order, invoice_date=order.order_date)
        self.assertEqual(next_sequence_number(Invoice.objects.all(), 'invoice_number', 'INV-', 6), 'INV-000008')
