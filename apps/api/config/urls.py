"""
SehatNama URL configuration.

Probes and the admin sit at the root; everything under /api/ needs a JWT
except the token endpoints themselves.
"""
from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import (
    SpectacularAPIView,
    SpectacularRedocView,
    SpectacularSwaggerView,
)

from apps.core.observability.health import HealthzView, ReadyzView

api_v1 = [
    path('', include('apps.authz.urls')),
    path('', include('apps.clinical.urls')),
    path('', include('apps.documents.urls')),
    path('', include('apps.catalog.urls')),
]

urlpatterns = [
    path('healthz', HealthzView.as_view(), name='healthz'),
    path('readyz', ReadyzView.as_view(), name='readyz'),
    path('admin/', admin.site.urls),

    path('api/', include('apps.core.urls')),
    path('api/v1/', include(api_v1)),

    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/schema/swagger-ui/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
    path('api/schema/redoc/', SpectacularRedocView.as_view(url_name='schema'), name='redoc'),
]
