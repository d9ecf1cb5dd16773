from django.urls import path
from . import views

urlpatterns = [
    path('documents/folders/', views.folder_list_create, name='folder-list-create'),
    path('documents/folders/<int:pk>/', views.folder_detail, name='folder-detail'),
    path('documents/folders/<int:pk>/access/', views.folder_access, name='folder-access'),
    path('documents/folders/<int:pk>/documents/', views.folder_documents, name='folder-documents'),
    path('documents/<int:pk>/', views.document_detail, name='document-detail'),
    path('documents/<int:pk>/download/', views.document_download, name='document-download'),
]
