"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from backend.core.models import ModuleAccess, MODULE_IDS, ACCESS_READ_WRITE
from backend.operations.models import Tag, Supplier, ProcessedGood, ProductionBatch
from backend.operations import services as operations_services
from backend.sales.models import CustomerType, Customer
from backend.sales import services as sales_services
from backend.finance.models import Income, Expense
from backend.finance import services as finance_services
from backend.agile.models import Status, Issue
from backend.documents.models import Folder
from decimal import Decimal
from django.utils import timezone
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', role='user', is_superuser=False,
                    module_access=None):
        """
        Create a test user. module_access maps module ids to access levels;
        pass 'all' to grant read-write on every module.
        """
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        user = User.objects.create_user(
            username=username,
            email=email,
            password=password,
            role=role,
            is_superuser=is_superuser
        )
        if module_access == 'all':
            module_access = {module: ACCESS_READ_WRITE for module in MODULE_IDS}
        for module, level in (module_access or {}).items():
            ModuleAccess.objects.create(user=user, module=module, access_level=level)
        return user

    @staticmethod
    def create_admin(username=None):
        """Create an application admin"""
        return TestDataFactory.create_user(username=username, role='admin')

    # Operations

    @staticmethod
    def create_tag(tag_type='raw_material', key=None, display_name=None, status='active'):
        """Create a test tag"""
        if not key:
            key = f'tag-{TestDataFactory.random_string(6).lower()}'
        return Tag.objects.create(
            tag_type=tag_type,
            key=key,
            display_name=display_name or key.replace('-', ' ').title(),
            status=status
        )

    @staticmethod
    def create_supplier(name=None, supplier_type='raw_material'):
        """Create a test supplier"""
        return Supplier.objects.create(
            name=name or f'Supplier_{TestDataFactory.random_string(6)}',
            supplier_type=supplier_type
        )

    @staticmethod
    def create_lot(lot_type='raw_material', quantity=Decimal('100'), unit='kg', tag=None, lot_id=None,
                   received_date=None, user=None, **extra):
        """Create a raw material or recurring product lot through the ledger"""
        data = {
            'name': extra.pop('name', f'Lot_{TestDataFactory.random_string(6)}'),
            'lot_id': lot_id or f'LOT-{TestDataFactory.random_string(8).upper()}',
            'quantity_received': Decimal(quantity),
            'unit': unit,
            'received_date': received_date or timezone.localdate(),
            'tag': tag,
        }
        data.update(extra)
        return operations_services.create_lot(lot_type, data, user)

    @staticmethod
    def create_raw_material(**kwargs):
        return TestDataFactory.create_lot('raw_material', **kwargs)

    @staticmethod
    def create_batch(batch_date=None, qa_status='pending', user=None):
        """Create an open production batch"""
        return ProductionBatch.objects.create(
            batch_id=operations_services.next_batch_id(),
            batch_date=batch_date or timezone.localdate(),
            qa_status=qa_status,
            created_by=user
        )

    @staticmethod
    def create_processed_good(quantity=Decimal('50'), product_type=None, tag=None, unit='kg',
                              production_date=None, quantity_available=None):
        """Create a processed good directly"""
        if tag is None:
            tag = TestDataFactory.create_tag('produced_goods')
        return ProcessedGood.objects.create(
            batch_reference=f'BATCH-{TestDataFactory.random_string(4).upper()}',
            product_type=product_type or f'Product_{TestDataFactory.random_string(5)}',
            produced_goods_tag=tag,
            quantity_created=Decimal(quantity),
            quantity_available=Decimal(quantity if quantity_available is None else quantity_available),
            unit=unit,
            production_date=production_date or timezone.localdate()
        )

    # Sales

    @staticmethod
    def create_customer_type(key='hotel', display_name='Hotel'):
        customer_type, _ = CustomerType.objects.get_or_create(key=key, defaults={'display_name': display_name})
        return customer_type

    @staticmethod
    def create_customer(name=None, customer_type='hotel'):
        """Create a test customer"""
        TestDataFactory.create_customer_type(key=customer_type, display_name=customer_type.title())
        return Customer.objects.create(
            name=name or f'Customer_{TestDataFactory.random_string(6)}',
            customer_type=customer_type,
            phone=f'98{random.randint(10000000, 99999999)}'
        )

    @staticmethod
    def create_order(customer=None, items=None, user=None, order_date=None, discount_amount=None):
        """
        Create an order through the sales workflow. items is a list of
        (processed_good, quantity, unit_price) tuples.
        """
        if customer is None:
            customer = TestDataFactory.create_customer()
        data = {'customer': customer, 'order_date': order_date or timezone.localdate()}
        if discount_amount is not None:
            data['discount_amount'] = discount_amount
        item_data = [
            {'processed_good': good, 'quantity': Decimal(quantity), 'unit_price': Decimal(price)}
            for good, quantity, price in (items or [])
        ]
        return sales_services.create_order(data, item_data, user)

    @staticmethod
    def create_payment(order, amount, payment_mode='Cash', payment_date=None, user=None):
        return sales_services.create_payment(order, {
            'amount_received': Decimal(amount),
            'payment_mode': payment_mode,
            'payment_date': payment_date or timezone.localdate(),
        }, user)

    # Finance

    @staticmethod
    def create_income(amount=Decimal('1000'), reason='Service income', payment_at=None, user=None, **extra):
        data = {'amount': Decimal(amount), 'reason': reason, 'payment_at': payment_at or timezone.now()}
        data.update(extra)
        return finance_services.create_transaction(Income, data, user)

    @staticmethod
    def create_expense(amount=Decimal('500'), reason='Electricity bill', expense_type='operational',
                       payment_at=None, user=None, **extra):
        data = {
            'amount': Decimal(amount),
            'reason': reason,
            'expense_type': expense_type,
            'payment_at': payment_at or timezone.now(),
        }
        data.update(extra)
        return finance_services.create_transaction(Expense, data, user)

    # Agile and documents

    @staticmethod
    def create_status(name=None, position=None, user=None):
        """Create a board status at the end of the board"""
        if position is None:
            position = Status.objects.count() + 1
        return Status.objects.create(
            name=name or f'Status {TestDataFactory.random_string(4)}',
            position=position,
            created_by=user
        )

    @staticmethod
    def create_issue(status=None, title=None, owner=None, estimate=None, ordering=None, **extra):
        """Create an issue at the bottom of its column unless ordering is given"""
        if ordering is None:
            ordering = Issue.objects.filter(status=status).count()
        return Issue.objects.create(
            title=title or f'Issue {TestDataFactory.random_string(6)}',
            status=status,
            owner=owner,
            owner_name=owner.display_name if owner else '',
            estimate=estimate,
            ordering=ordering,
            **extra
        )

    @staticmethod
    def create_folder(name=None, user=None):
        return Folder.objects.create(
            name=name or f'Folder_{TestDataFactory.random_string(6)}',
            created_by=user
        )


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
