"""
URL configuration for backend project.

Every app exposes its endpoints under /api/v1/.
"""
from django.contrib import admin
from django.urls import path, include, re_path
from django.conf import settings
from django.views.static import serve

admin.site.site_header = "Business Suite Admin Panel"
admin.site.site_title = "Business Suite Admin Portal"
admin.site.index_title = "Welcome to Business Suite Administration"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('backend.core.urls')),
    path('api/v1/', include('backend.sales.urls')),
    path('api/v1/', include('backend.operations.urls')),
    path('api/v1/', include('backend.finance.urls')),
    path('api/v1/', include('backend.agile.urls')),
    path('api/v1/', include('backend.documents.urls')),
    path('api/v1/', include('backend.analytics.urls')),
    re_path(r'^media/(?P<path>.*)$', serve, {'document_root': settings.MEDIA_ROOT}),
]
