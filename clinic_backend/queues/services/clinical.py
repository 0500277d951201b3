"""
Clinical records attached to a care session.

- Vital signs taken at triage (one set per visit, re-recording replaces it)
- Diagnoses picked from the catalog
- Drug orders for the pharmacy; every order adds to ``Drug.amount_sold``
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import TYPE_CHECKING

from django.db import transaction
from django.db.models import F

from clinic_backend.catalog.models import Diagnosis, Drug
from clinic_backend.core.utils import log_patient_action
from clinic_backend.queues.exceptions import InvalidQueueData, SessionNotFound
from clinic_backend.queues.models import CareSession, CareSessionDiagnosis, DrugOrder, VitalSign

if TYPE_CHECKING:
    from django.contrib.auth.models import AbstractUser

logger = logging.getLogger(__name__)

VITAL_SIGN_FIELDS = (
    'height_cm',
    'weight_kg',
    'body_temperature_c',
    'blood_pressure',
    'heart_rate_bpm',
    'respiratory_rate_bpm',
)


def _get_session(session_id: int) -> CareSession:
    session = CareSession.objects.filter(id=session_id).only('id', 'patient_id').first()
    if session is None:
        raise SessionNotFound(session_id)
    return session


def _unknown_ids(requested: set[int], found: set[int], label: str, field: str) -> None:
    missing = sorted(requested - found)
    if missing:
        raise InvalidQueueData(
            f'Unknown {label}(s): {", ".join(str(i) for i in missing)}',
            field=field,
        )


def record_vital_signs(
    session_id: int,
    values: dict,
    user: 'AbstractUser | None' = None,
) -> tuple[VitalSign, bool]:
    """
    Create or replace the vital signs of a care session.

    Only the keys present in ``values`` are written; on an existing row the
    other measurements are kept.

    Returns:
        ``(vital_sign, created)``

    Raises:
        SessionNotFound: If the session does not exist
        InvalidQueueData: If ``values`` holds no measurement
    """
    values = {key: value for key, value in (values or {}).items() if key in VITAL_SIGN_FIELDS}
    logger.info('record_vital_signs(session_id=%s, fields=%s)', session_id, sorted(values))
    if not values:
        raise InvalidQueueData('At least one measurement is required', field='vital_sign')

    with transaction.atomic():
        session = _get_session(session_id)
        vital_sign, created = VitalSign.objects.update_or_create(
            care_session_id=session.id,
            defaults=values,
        )

    log_patient_action(
        user,
        'vital_signs_recorded',
        patient_id=session.patient_id,
        meta={'session_id': session.id, 'fields': sorted(values)},
    )
    return vital_sign, created


def add_diagnoses(
    session_id: int,
    diagnosis_ids: list[int],
    user: 'AbstractUser | None' = None,
) -> list[CareSessionDiagnosis]:
    """
    Attach catalog diagnoses to a care session.

    Diagnoses already on the session are skipped. Returns the rows that were
    added.

    Raises:
        SessionNotFound: If the session does not exist
        InvalidQueueData: If the list is empty or names unknown diagnoses
    """
    logger.info('add_diagnoses(session_id=%s, diagnosis_ids=%s)', session_id, diagnosis_ids)
    if not diagnosis_ids:
        raise InvalidQueueData('At least one diagnosis is required', field='diagnoses')

    requested = set(diagnosis_ids)
    with transaction.atomic():
        session = _get_session(session_id)
        found = set(Diagnosis.objects.filter(id__in=requested).values_list('id', flat=True))
        _unknown_ids(requested, found, 'diagnosis', 'diagnoses')

        existing = set(
            CareSessionDiagnosis.objects.filter(care_session_id=session.id).values_list('diagnosis_id', flat=True)
        )
        created = CareSessionDiagnosis.objects.bulk_create(
            [
                CareSessionDiagnosis(care_session_id=session.id, diagnosis_id=diagnosis_id)
                for diagnosis_id in sorted(requested - existing)
            ]
        )

    log_patient_action(
        user,
        'diagnoses_added',
        patient_id=session.patient_id,
        meta={'session_id': session.id, 'diagnosis_ids': [row.diagnosis_id for row in created]},
    )
    return created


def add_drug_orders(
    session_id: int,
    items: list[dict],
    user: 'AbstractUser | None' = None,
) -> list[DrugOrder]:
    """
    Order drugs for a care session.

    ``Drug.amount_sold`` grows by the ordered quantity in the same
    transaction as the order rows.

    Args:
        session_id: Care session the orders belong to
        items: ``[{'drug_id': int, 'quantity': int, 'dose': str}, ...]``;
            quantity defaults to 1, dose to ``''``
        user: The user placing the orders (for audit logging)

    Raises:
        SessionNotFound: If the session does not exist
        InvalidQueueData: If ``items`` is empty or names unknown drugs
    """
    logger.info('add_drug_orders(session_id=%s, items=%d)', session_id, len(items or []))
    if not items:
        raise InvalidQueueData('At least one drug order is required', field='drug_orders')

    orders = [
        DrugOrder(
            drug_id=item['drug_id'],
            quantity=item.get('quantity') or 1,
            dose=item.get('dose') or '',
        )
        for item in items
    ]
    sold = Counter()
    for order in orders:
        sold[order.drug_id] += order.quantity

    with transaction.atomic():
        session = _get_session(session_id)
        found = set(Drug.objects.filter(id__in=sold.keys()).values_list('id', flat=True))
        _unknown_ids(set(sold), found, 'drug', 'drug_orders')

        for order in orders:
            order.care_session_id = session.id
        created = DrugOrder.objects.bulk_create(orders)

        for drug_id, quantity in sorted(sold.items()):
            Drug.objects.filter(id=drug_id).update(amount_sold=F('amount_sold') + quantity)

    log_patient_action(
        user,
        'drug_orders_added',
        patient_id=session.patient_id,
        meta={'session_id': session.id, 'drugs': {str(k): v for k, v in sorted(sold.items())}},
    )
    return created
