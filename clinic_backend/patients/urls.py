"""Patients app URLs.

Prefix: /api/
Routes:
    GET/POST        /api/patients/       - List/register patients
    GET/PUT/PATCH   /api/patients/<pk>/  - Retrieve/update a patient
"""

from django.urls import path

from clinic_backend.patients.views import (
    PatientListCreateView,
    PatientRetrieveUpdateView,
)

app_name = 'patients'

urlpatterns = [
    path('patients/', PatientListCreateView.as_view(), name='list'),
    path('patients/<int:pk>/', PatientRetrieveUpdateView.as_view(), name='detail'),
]
