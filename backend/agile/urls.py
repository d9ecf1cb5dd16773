from django.urls import path
from . import views

urlpatterns = [
    path('agile/statuses/', views.status_list_create, name='agile-status-list-create'),
    path('agile/statuses/<int:pk>/', views.status_detail, name='agile-status-detail'),
    path('agile/buckets/', views.bucket_list_create, name='agile-bucket-list-create'),
    path('agile/buckets/<slug:key>/', views.bucket_detail, name='agile-bucket-detail'),

    path('agile/issues/', views.issue_list_create, name='agile-issue-list-create'),
    path('agile/issues/<int:pk>/', views.issue_detail, name='agile-issue-detail'),
    path('agile/issues/<int:pk>/move/', views.issue_move, name='agile-issue-move'),
    path('agile/issues/<int:pk>/status/', views.issue_change_status, name='agile-issue-status'),
    path('agile/issues/<int:pk>/request-review/', views.issue_request_review, name='agile-issue-request-review'),
    path('agile/issues/<int:pk>/reject-review/', views.issue_reject_review, name='agile-issue-reject-review'),

    path('agile/board/', views.board, name='agile-board'),
    path('agile/stats/', views.stats, name='agile-stats'),
    path('agile/owners/', views.owners, name='agile-owners'),
]
