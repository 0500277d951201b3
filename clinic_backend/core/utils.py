import logging

from .models import AuditLog

logger = logging.getLogger(__name__)


def log_patient_action(user, action, patient_id=None, meta=None):
    """Write a patient-related action to the audit trail.

    Audit failures are logged and never break the calling request.
    """

    role_name = getattr(getattr(user, 'role', None), 'name', '') or ''
    actor = user if getattr(user, 'is_authenticated', False) else None

    try:
        AuditLog.objects.create(
            user=actor,
            role_name=role_name,
            action=action,
            patient_id=patient_id,
            meta=meta,
        )
    except Exception:
        logger.exception('AuditLog write failed (action=%s, patient_id=%s)', action, patient_id)
