"""Treatments applied during a care session, billed at the catalog price of the day."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.db import transaction

from clinic_backend.catalog.models import Treatment
from clinic_backend.core.utils import log_patient_action
from clinic_backend.queues.exceptions import InvalidQueueData, SessionNotFound
from clinic_backend.queues.models import CareSession, CareSessionTreatment

if TYPE_CHECKING:
    from django.contrib.auth.models import AbstractUser

logger = logging.getLogger(__name__)


def apply_treatments(
    session_id: int,
    items: list[dict],
    user: 'AbstractUser | None' = None,
) -> list[CareSessionTreatment]:
    """
    Attach treatments to a care session.

    ``applied_price`` is copied from the catalog here and never recalculated,
    so later price changes do not touch past visits.

    Args:
        session_id: Care session the treatments belong to
        items: ``[{'treatment_id': int, 'quantity': int}, ...]``; quantity
            defaults to 1
        user: The user applying the treatments (for audit logging)

    Raises:
        SessionNotFound: If the session does not exist
        InvalidQueueData: If ``items`` is empty or names unknown treatments
    """
    logger.info('apply_treatments(session_id=%s, items=%d)', session_id, len(items or []))
    if not items:
        raise InvalidQueueData('At least one treatment is required', field='treatments')

    with transaction.atomic():
        session = CareSession.objects.filter(id=session_id).only('id', 'patient_id').first()
        if session is None:
            raise SessionNotFound(session_id)

        treatment_ids = {item['treatment_id'] for item in items}
        prices = dict(Treatment.objects.filter(id__in=treatment_ids).values_list('id', 'price'))
        missing = sorted(treatment_ids - set(prices))
        if missing:
            raise InvalidQueueData(
                f'Unknown treatment(s): {", ".join(str(i) for i in missing)}',
                field='treatments',
            )

        created = CareSessionTreatment.objects.bulk_create(
            [
                CareSessionTreatment(
                    care_session_id=session.id,
                    treatment_id=item['treatment_id'],
                    quantity=item.get('quantity') or 1,
                    applied_price=prices[item['treatment_id']],
                )
                for item in items
            ]
        )

    log_patient_action(
        user,
        'treatments_applied',
        patient_id=session.patient_id,
        meta={'session_id': session.id, 'treatment_ids': sorted(treatment_ids)},
    )
    return created
