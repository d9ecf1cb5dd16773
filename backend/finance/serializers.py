from rest_framework import serializers
from .models import Contribution, Income, Expense

TRANSACTION_FIELDS = [
    'id', 'transaction_id', 'amount', 'reason', 'payment_to', 'paid_to_user', 'paid_to_user_name',
    'payment_at', 'payment_method', 'bank_reference', 'evidence_url', 'description', 'category',
    'recorded_by', 'recorded_by_name', 'created_at', 'updated_at',
]
TRANSACTION_READ_ONLY = ['transaction_id', 'recorded_by', 'created_at', 'updated_at']


class FinanceTransactionSerializer(serializers.ModelSerializer):
    paid_to_user_name = serializers.CharField(source='paid_to_user.display_name', read_only=True, default=None)
    recorded_by_name = serializers.CharField(source='recorded_by.display_name', read_only=True, default=None)
    payment_at = serializers.DateTimeField(required=False)

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("Amount must be greater than zero")
        return value

    def validate(self, attrs):
        payment_to = attrs.get('payment_to', getattr(self.instance, 'payment_to', 'organization_bank'))
        paid_to_user = attrs.get('paid_to_user', getattr(self.instance, 'paid_to_user', None))
        if payment_to == 'other_bank_account' and not paid_to_user:
            raise serializers.ValidationError({'paid_to_user': 'Select the user whose account received the payment'})
        return attrs


class ContributionSerializer(FinanceTransactionSerializer):
    class Meta:
        model = Contribution
        fields = TRANSACTION_FIELDS + ['contribution_type']
        read_only_fields = TRANSACTION_READ_ONLY


class IncomeSerializer(FinanceTransactionSerializer):
    class Meta:
        model = Income
        fields = TRANSACTION_FIELDS + ['income_type', 'source', 'from_sales_payment', 'order_number']
        read_only_fields = TRANSACTION_READ_ONLY + ['from_sales_payment', 'order_number']


class ExpenseSerializer(FinanceTransactionSerializer):
    class Meta:
        model = Expense
        fields = TRANSACTION_FIELDS + ['expense_type', 'vendor']
        read_only_fields = TRANSACTION_READ_ONLY
