from django.urls import path
from . import views

urlpatterns = [
    path('finance/contributions/', views.transaction_list_create, {'kind': 'contribution'}, name='contribution-list-create'),
    path('finance/contributions/<int:pk>/', views.transaction_detail, {'kind': 'contribution'}, name='contribution-detail'),
    path('finance/income/', views.transaction_list_create, {'kind': 'income'}, name='income-list-create'),
    path('finance/income/<int:pk>/', views.transaction_detail, {'kind': 'income'}, name='income-detail'),
    path('finance/expenses/', views.transaction_list_create, {'kind': 'expense'}, name='expense-list-create'),
    path('finance/expenses/<int:pk>/', views.transaction_detail, {'kind': 'expense'}, name='expense-detail'),

    path('finance/summary/', views.finance_summary, name='finance-summary'),
    path('finance/recent/', views.recent_transactions, name='finance-recent'),
    path('finance/search/', views.search_transactions, name='finance-search'),
]
