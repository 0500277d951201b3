"""Clinic backend URL configuration.

API routes:
    /api/health/, /api/auth/  - Health check & JWT (core)
    /api/patients/            - Patient master data (patients)
    /api/queues/              - Visit queue / care sessions (queues)
"""

from django.contrib import admin
from django.http import HttpResponse
from django.urls import include, path


def root(request):
    """Plain-text root endpoint, doubles as a trivial liveness probe."""
    return HttpResponse("Clinic backend is running.")


urlpatterns = [
    path("", root, name="root"),
    path("admin/", admin.site.urls),

    path("api/", include("clinic_backend.core.urls")),
    path("api/", include("clinic_backend.patients.urls")),
    path("api/", include("clinic_backend.queues.urls")),
]
