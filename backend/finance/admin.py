from django.contrib import admin
from .models import Contribution, Income, Expense


class FinanceTransactionAdmin(admin.ModelAdmin):
    list_display = ['transaction_id', 'amount', 'reason', 'payment_method', 'payment_at', 'recorded_by']
    list_filter = ['payment_method', 'payment_to', 'payment_at']
    search_fields = ['transaction_id', 'reason', 'description']
    ordering = ['-payment_at']
    readonly_fields = ['transaction_id', 'created_at', 'updated_at']


@admin.register(Contribution)
class ContributionAdmin(FinanceTransactionAdmin):
    list_filter = FinanceTransactionAdmin.list_filter + ['contribution_type']


@admin.register(Income)
class IncomeAdmin(FinanceTransactionAdmin):
    list_display = FinanceTransactionAdmin.list_display + ['from_sales_payment', 'order_number']
    list_filter = FinanceTransactionAdmin.list_filter + ['income_type', 'from_sales_payment']


@admin.register(Expense)
class ExpenseAdmin(FinanceTransactionAdmin):
    list_filter = FinanceTransactionAdmin.list_filter + ['expense_type']
