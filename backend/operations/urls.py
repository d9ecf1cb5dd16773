from django.urls import path
from . import views

RAW = {'lot_type': 'raw_material'}
RECURRING = {'lot_type': 'recurring_product'}

urlpatterns = [
    # Master data
    path('suppliers/', views.supplier_list_create, name='supplier-list-create'),
    path('suppliers/<int:pk>/', views.supplier_detail, name='supplier-detail'),
    path('tags/', views.tag_list_create, name='tag-list-create'),
    path('tags/overview/', views.tag_overview, name='tag-overview'),
    path('tags/<int:pk>/', views.tag_detail, name='tag-detail'),
    path('units/', views.unit_list_create, name='unit-list-create'),
    path('units/<int:pk>/', views.unit_detail, name='unit-detail'),

    # Raw materials
    path('raw-materials/', views.lot_list_create, RAW, name='raw-material-list-create'),
    path('raw-materials/<int:pk>/', views.lot_detail, RAW, name='raw-material-detail'),
    path('raw-materials/<int:pk>/archive/', views.lot_archive, RAW, name='raw-material-archive'),
    path('raw-materials/<int:pk>/movements/', views.lot_movements, RAW, name='raw-material-movements'),

    # Recurring products
    path('recurring-products/', views.lot_list_create, RECURRING, name='recurring-product-list-create'),
    path('recurring-products/<int:pk>/', views.lot_detail, RECURRING, name='recurring-product-detail'),
    path('recurring-products/<int:pk>/archive/', views.lot_archive, RECURRING, name='recurring-product-archive'),
    path('recurring-products/<int:pk>/movements/', views.lot_movements, RECURRING, name='recurring-product-movements'),

    # Waste and transfers
    path('waste/', views.waste_list_create, name='waste-list-create'),
    path('waste/<int:pk>/', views.waste_detail, name='waste-detail'),
    path('transfers/', views.transfer_list_create, name='transfer-list-create'),
    path('transfers/<int:pk>/', views.transfer_detail, name='transfer-detail'),

    # Production batches
    path('batches/', views.batch_list_create, name='batch-list-create'),
    path('batches/<int:pk>/', views.batch_detail, name='batch-detail'),
    path('batches/<int:pk>/consumption/', views.batch_add_consumption, name='batch-add-consumption'),
    path('batches/<int:pk>/consumption/<str:lot_type>/<int:usage_pk>/', views.batch_remove_consumption, name='batch-remove-consumption'),
    path('batches/<int:pk>/outputs/', views.batch_output_create, name='batch-output-create'),
    path('batches/<int:pk>/outputs/<int:output_pk>/', views.batch_output_detail, name='batch-output-detail'),
    path('batches/<int:pk>/complete/', views.batch_complete, name='batch-complete'),

    # Processed goods
    path('processed-goods/', views.processed_good_list, name='processed-good-list'),
    path('processed-goods/<int:pk>/', views.processed_good_detail, name='processed-good-detail'),
    path('processed-goods/<int:pk>/adjust/', views.processed_good_adjust, name='processed-good-adjust'),
    path('processed-goods/<int:pk>/history/', views.processed_good_history, name='processed-good-history'),

    # Machines
    path('machines/', views.machine_list_create, name='machine-list-create'),
    path('machines/<int:pk>/', views.machine_detail, name='machine-detail'),
]
