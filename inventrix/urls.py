from django.conf import settings
from django.contrib import admin
from django.urls import path, include

admin.site.site_header = settings.ADMIN_SITE_HEADER
admin.site.site_title = settings.ADMIN_SITE_TITLE
admin.site.index_title = settings.ADMIN_INDEX_TITLE

urlpatterns = [
    path('admin/', admin.site.urls),

    # REST API
    path('api/auth/', include('users.urls')),
    path('api/', include('inventory.urls')),
    path('api/', include('orders.urls')),
]
