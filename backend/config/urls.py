"""
URL configuration for the spice back office.

All API routes live under /api/v1/; each app contributes its own urls module.
"""
from django.contrib import admin
from django.urls import path, include

admin.site.site_header = "Spice Back Office Admin Panel"
admin.site.site_title = "Spice Back Office Admin Portal"
admin.site.index_title = "Payment reminders and caterers"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('backend.core.urls')),
    path('api/v1/', include('backend.reminders.urls')),
]
