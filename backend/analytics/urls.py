from django.urls import path
from . import views

urlpatterns = [
    path('analytics/overview/', views.overview, name='analytics-overview'),
    path('analytics/sales/', views.sales_metrics, name='analytics-sales'),
    path('analytics/sales-by-tag/', views.sales_by_tag, name='analytics-sales-by-tag'),
    path('analytics/raw-material-waste/', views.raw_material_waste, name='analytics-raw-material-waste'),
    path('analytics/produced-goods/', views.produced_goods, name='analytics-produced-goods'),
    path('analytics/verdict/', views.financial_verdict, name='analytics-verdict'),
    path('analytics/recommendations/', views.recommendations, name='analytics-recommendations'),

    path('analytics/targets/', views.target_list_create, name='analytics-target-list-create'),
    path('analytics/targets/progress/', views.active_target_progress, name='analytics-target-progress-list'),
    path('analytics/targets/<int:pk>/', views.target_detail, name='analytics-target-detail'),
    path('analytics/targets/<int:pk>/progress/', views.target_progress, name='analytics-target-progress'),
]
