"""Queues app URLs.

Prefix: /api/
Routes:
    GET/POST    /api/queues/                         - Search sessions / register a patient
    GET         /api/queues/waiting/                 - Waiting-room display snapshot
    GET         /api/queues/pharmacy/active/         - Pharmacy worklist
    GET         /api/queues/doctor/<doctor_id>/active/ - Doctor worklist
    GET/PATCH   /api/queues/<id>/                    - Retrieve / update status and clinical fields
    POST        /api/queues/<id>/treatments/         - Apply treatments
    PUT         /api/queues/<id>/vital-sign/         - Record vital signs
    POST        /api/queues/<id>/diagnoses/          - Add diagnoses
    POST        /api/queues/<id>/drug-orders/        - Order drugs

``<id>`` is matched as a string so that malformed ids get a 400 instead of a 404.
"""

from django.urls import path

from .views import (
    DoctorActiveQueueView,
    PharmacyActiveQueueView,
    QueueDetailView,
    QueueListCreateView,
    SessionDiagnosesView,
    SessionDrugOrdersView,
    SessionTreatmentsView,
    SessionVitalSignView,
    WaitingQueueView,
)

app_name = 'queues'

urlpatterns = [
    path('queues/', QueueListCreateView.as_view(), name='list'),
    path('queues/waiting/', WaitingQueueView.as_view(), name='waiting'),
    path('queues/pharmacy/active/', PharmacyActiveQueueView.as_view(), name='pharmacy_active'),
    path('queues/doctor/<int:doctor_id>/active/', DoctorActiveQueueView.as_view(), name='doctor_active'),
    path('queues/<str:session_id>/', QueueDetailView.as_view(), name='detail'),
    path('queues/<str:session_id>/treatments/', SessionTreatmentsView.as_view(), name='treatments'),
    path('queues/<str:session_id>/vital-sign/', SessionVitalSignView.as_view(), name='vital_sign'),
    path('queues/<str:session_id>/diagnoses/', SessionDiagnosesView.as_view(), name='diagnoses'),
    path('queues/<str:session_id>/drug-orders/', SessionDrugOrdersView.as_view(), name='drug_orders'),
]
