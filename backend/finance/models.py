from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models


PAYMENT_TO_CHOICES = [
    ('organization_bank', 'Organization Bank'),
    ('other_bank_account', 'Other Bank Account'),
]

PAYMENT_METHOD_CHOICES = [
    ('cash', 'Cash'),
    ('bank_transfer', 'Bank Transfer'),
    ('upi', 'UPI'),
    ('cheque', 'Cheque'),
    ('card', 'Card'),
]


class FinanceTransaction(models.Model):
    """Fields shared by contributions, income and expenses"""
    transaction_id = models.CharField(max_length=30, unique=True)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    reason = models.CharField(max_length=500)
    payment_to = models.CharField(max_length=30, choices=PAYMENT_TO_CHOICES, default='organization_bank')
    paid_to_user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    payment_at = models.DateTimeField()
    payment_method = models.CharField(max_length=20, choices=PAYMENT_METHOD_CHOICES, default='cash')
    bank_reference = models.CharField(max_length=200, blank=True)
    evidence_url = models.URLField(max_length=500, blank=True)
    description = models.TextField(blank=True)
    category = models.CharField(max_length=100, blank=True)
    recorded_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    transaction_prefix = None

    def clean(self):
        if self.amount is not None and self.amount <= 0:
            raise ValidationError({'amount': 'Amount must be greater than zero'})
        if self.payment_to == 'other_bank_account' and not self.paid_to_user_id:
            raise ValidationError({'paid_to_user': 'Select the user whose account received the payment'})

    def __str__(self):
        return f"{self.transaction_id} - {self.amount}"

    class Meta:
        abstract = True
        ordering = ['-payment_at', '-created_at']


class Contribution(FinanceTransaction):
    CONTRIBUTION_TYPE_CHOICES = [
        ('investment', 'Investment'),
        ('capital', 'Capital'),
        ('loan', 'Loan'),
        ('other', 'Other'),
    ]

    contribution_type = models.CharField(max_length=20, choices=CONTRIBUTION_TYPE_CHOICES, default='investment')

    transaction_prefix = 'TXN-CNT-'

    class Meta(FinanceTransaction.Meta):
        db_table = 'finance_contributions'


class Income(FinanceTransaction):
    INCOME_TYPE_CHOICES = [
        ('sales', 'Sales'),
        ('service', 'Service'),
        ('interest', 'Interest'),
        ('other', 'Other'),
    ]

    income_type = models.CharField(max_length=20, choices=INCOME_TYPE_CHOICES, default='other')
    source = models.CharField(max_length=200, blank=True)
    from_sales_payment = models.BooleanField(default=False)
    order_number = models.CharField(max_length=50, blank=True)

    transaction_prefix = 'TXN-INC-'

    class Meta(FinanceTransaction.Meta):
        db_table = 'finance_income'
        indexes = [
            models.Index(fields=['order_number'], name='finance_income_order_idx'),
        ]


class Expense(FinanceTransaction):
    EXPENSE_TYPE_CHOICES = [
        ('operational', 'Operational'),
        ('salary', 'Salary'),
        ('utilities', 'Utilities'),
        ('maintenance', 'Maintenance'),
        ('raw_material', 'Raw Material'),
        ('other', 'Other'),
    ]

    expense_type = models.CharField(max_length=20, choices=EXPENSE_TYPE_CHOICES, default='operational')
    vendor = models.CharField(max_length=200, blank=True)

    transaction_prefix = 'TXN-EXP-'

    class Meta(FinanceTransaction.Meta):
        db_table = 'finance_expenses'
