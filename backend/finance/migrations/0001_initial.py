# Generated manually
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

PAYMENT_TO = [('organization_bank', 'Organization Bank'), ('other_bank_account', 'Other Bank Account')]
PAYMENT_METHODS = [('cash', 'Cash'), ('bank_transfer', 'Bank Transfer'), ('upi', 'UPI'), ('cheque', 'Cheque'), ('card', 'Card')]


def transaction_fields():
    return [
        ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
        ('transaction_id', models.CharField(max_length=30, unique=True)),
        ('amount', models.DecimalField(decimal_places=2, max_digits=12)),
        ('reason', models.CharField(max_length=500)),
        ('payment_to', models.CharField(choices=PAYMENT_TO, default='organization_bank', max_length=30)),
        ('payment_at', models.DateTimeField()),
        ('payment_method', models.CharField(choices=PAYMENT_METHODS, default='cash', max_length=20)),
        ('bank_reference', models.CharField(blank=True, max_length=200)),
        ('evidence_url', models.URLField(blank=True, max_length=500)),
        ('description', models.TextField(blank=True)),
        ('category', models.CharField(blank=True, max_length=100)),
        ('created_at', models.DateTimeField(auto_now_add=True)),
        ('updated_at', models.DateTimeField(auto_now=True)),
        ('paid_to_user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
        ('recorded_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Contribution',
            fields=transaction_fields() + [
                ('contribution_type', models.CharField(choices=[('investment', 'Investment'), ('capital', 'Capital'), ('loan', 'Loan'), ('other', 'Other')], default='investment', max_length=20)),
            ],
            options={
                'db_table': 'finance_contributions',
                'ordering': ['-payment_at', '-created_at'],
                'abstract': False,
            },
        ),
        migrations.CreateModel(
            name='Income',
            fields=transaction_fields() + [
                ('income_type', models.CharField(choices=[('sales', 'Sales'), ('service', 'Service'), ('interest', 'Interest'), ('other', 'Other')], default='other', max_length=20)),
                ('source', models.CharField(blank=True, max_length=200)),
                ('from_sales_payment', models.BooleanField(default=False)),
                ('order_number', models.CharField(blank=True, max_length=50)),
            ],
            options={
                'db_table': 'finance_income',
                'ordering': ['-payment_at', '-created_at'],
                'abstract': False,
                'indexes': [
                    models.Index(fields=['order_number'], name='finance_income_order_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Expense',
            fields=transaction_fields() + [
                ('expense_type', models.CharField(choices=[('operational', 'Operational'), ('salary', 'Salary'), ('utilities', 'Utilities'), ('maintenance', 'Maintenance'), ('raw_material', 'Raw Material'), ('other', 'Other')], default='operational', max_length=20)),
                ('vendor', models.CharField(blank=True, max_length=200)),
            ],
            options={
                'db_table': 'finance_expenses',
                'ordering': ['-payment_at', '-created_at'],
                'abstract': False,
            },
        ),
    ]
