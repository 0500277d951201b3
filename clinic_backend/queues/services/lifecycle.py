"""
Queue Lifecycle Engine for the clinic.

Registers patients into the visit queue and moves their care sessions through

    WAITING_CONSULTATION -> IN_CONSULTATION -> WAITING_MEDICATION
    -> WAITING_PAYMENT -> COMPLETED

Views should delegate to these functions rather than touching the models
directly.

Architecture Rules:
- Every write runs in a single transaction; a failed call leaves no rows behind
- Live updates are published only after commit (``transaction.on_commit``)
  and a failing publish never fails the write
- All exceptions are custom types from queues.exceptions
- Views translate exceptions to appropriate DRF responses
"""

from __future__ import annotations

import logging
from functools import partial
from typing import TYPE_CHECKING, Any

from django.conf import settings
from django.db import DatabaseError, transaction

from clinic_backend.catalog.models import Room
from clinic_backend.core.models import Role, User
from clinic_backend.core.utils import log_patient_action
from clinic_backend.patients.models import Patient
from clinic_backend.queues.broadcast import get_broadcaster
from clinic_backend.queues.exceptions import (
    InvalidQueueData,
    InvalidSessionId,
    InvalidStatus,
    InvalidTransition,
    PatientNotFound,
    QueueError,
    SessionNotFound,
)
from clinic_backend.queues.models import CareSession
from clinic_backend.queues.services.read_models import waiting_queue_snapshot
from clinic_backend.queues.services.sequence import next_medical_record_number, next_queue_number

if TYPE_CHECKING:
    from django.contrib.auth.models import AbstractUser

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ('complaints', 'diagnosis', 'doctor_id', 'room_id')

# Only consulted when settings.QUEUE_STRICT_TRANSITIONS is enabled.
STRICT_TRANSITIONS = {
    CareSession.STATUS_WAITING_CONSULTATION: {CareSession.STATUS_IN_CONSULTATION},
    CareSession.STATUS_IN_CONSULTATION: {
        CareSession.STATUS_WAITING_MEDICATION,
        CareSession.STATUS_WAITING_PAYMENT,
        CareSession.STATUS_COMPLETED,
    },
    CareSession.STATUS_WAITING_MEDICATION: {
        CareSession.STATUS_WAITING_PAYMENT,
        CareSession.STATUS_COMPLETED,
    },
    CareSession.STATUS_WAITING_PAYMENT: {CareSession.STATUS_COMPLETED},
    CareSession.STATUS_COMPLETED: set(),
}


# ---------------------------------------------------------------------------
# Helper Functions
# ---------------------------------------------------------------------------

def parse_session_id(raw: Any) -> int:
    """Parse a care-session id from a URL segment.

    Raises:
        InvalidSessionId: If ``raw`` is not a positive integer
    """
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        raise InvalidSessionId(raw) from None
    if value < 1:
        raise InvalidSessionId(raw)
    return value


def is_allowed_transition(old: str, new: str) -> bool:
    if old == new:
        return True
    if not getattr(settings, 'QUEUE_STRICT_TRANSITIONS', False):
        return True
    return new in STRICT_TRANSITIONS.get(old, set())


def _resolve_doctor(doctor_id: Any) -> User:
    doctor = User.objects.select_related('role').filter(id=doctor_id, is_active=True).first()
    if doctor is None:
        raise InvalidQueueData(f'Doctor with ID {doctor_id} not found or inactive', field='doctor_id')
    if doctor.role_name != Role.DOCTOR:
        raise InvalidQueueData('Specified user is not a doctor', field='doctor_id')
    return doctor


def _resolve_room(room_id: Any) -> Room:
    room = Room.objects.filter(id=room_id, is_active=True).first()
    if room is None:
        raise InvalidQueueData(f'Room with ID {room_id} not found or inactive', field='room_id')
    return room


def _resolve_patient(patient_id: int | None, patient_data: dict | None) -> tuple[Patient, bool]:
    """Return ``(patient, created)``. An explicit ``patient_id`` wins over ``patient_data``."""
    if patient_id is not None:
        patient = Patient.objects.filter(id=patient_id).first()
        if patient is None:
            raise PatientNotFound(patient_id)
        return patient, False

    if patient_data:
        data = dict(patient_data)
        data.pop('medical_record_number', None)
        patient = Patient.objects.create(**data)
        logger.info('New patient registered from the front desk: id=%s', patient.id)
        return patient, True

    raise InvalidQueueData('Either patient_id or patient_data is required', field='patient_id')


def _ensure_medical_record_number(patient_id: int) -> str | None:
    """Assign a medical record number if the patient has none yet.

    Returns the new number, or ``None`` if the patient already had one.
    """
    patient = Patient.objects.select_for_update().get(id=patient_id)
    if patient.medical_record_number:
        return None
    patient.medical_record_number = next_medical_record_number()
    patient.save(update_fields=['medical_record_number', 'updated_at'])
    logger.info('Assigned medical record number %s to patient %s', patient.medical_record_number, patient.id)
    return patient.medical_record_number


# ---------------------------------------------------------------------------
# Live updates
# ---------------------------------------------------------------------------

def publish_waiting_queue() -> None:
    """Push the current waiting-queue snapshot. Never raises."""
    try:
        get_broadcaster().publish_waiting_queue(waiting_queue_snapshot())
    except Exception:
        logger.exception('Publishing the waiting queue snapshot failed')


def publish_called(session_id: int, queue_number: str) -> None:
    """Announce that ``queue_number`` was called in. Never raises."""
    try:
        get_broadcaster().publish_called(session_id, queue_number)
    except Exception:
        logger.exception('Publishing called queue %s failed', queue_number)


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------

def create_queue_entry(
    *,
    doctor_id: int,
    room_id: int,
    complaints: str = '',
    patient_id: int | None = None,
    patient_data: dict | None = None,
    user: 'AbstractUser | None' = None,
) -> CareSession:
    """
    Register a patient into today's queue.

    Resolves the patient (or creates one from ``patient_data``), allocates
    the next queue number and stores a WAITING_CONSULTATION session, all in
    one transaction. The waiting-queue snapshot is published after commit.

    Args:
        doctor_id: Active user with the doctor role
        room_id: Active room
        complaints: Free text from the front desk
        patient_id: Existing patient
        patient_data: Demographics for a new patient, used when no
            ``patient_id`` is given
        user: The user registering the patient (for audit logging)

    Returns:
        The created CareSession

    Raises:
        PatientNotFound: If ``patient_id`` does not exist
        InvalidQueueData: If doctor/room are unusable or no patient was given
        CapacityExceeded: If today's queue is full
        DatabaseError: If the insert fails
    """
    logger.info(
        'create_queue_entry(doctor_id=%s, room_id=%s, patient_id=%s, new_patient=%s)',
        doctor_id, room_id, patient_id, patient_id is None and bool(patient_data),
    )

    try:
        with transaction.atomic():
            doctor = _resolve_doctor(doctor_id)
            room = _resolve_room(room_id)
            patient, patient_created = _resolve_patient(patient_id, patient_data)

            session = CareSession.objects.create(
                queue_number=next_queue_number(),
                status=CareSession.STATUS_WAITING_CONSULTATION,
                doctor=doctor,
                room=room,
                patient=patient,
                complaints=complaints or '',
            )
            transaction.on_commit(publish_waiting_queue)
    except (QueueError, DatabaseError) as exc:
        logger.error('Error in create_queue_entry: %s', exc)
        raise

    if patient_created:
        log_patient_action(user, 'patient_created', patient_id=patient.id)
    log_patient_action(
        user,
        'queue_created',
        patient_id=patient.id,
        meta={'session_id': session.id, 'queue_number': session.queue_number},
    )
    return session


def transition(
    session_id: int,
    *,
    status: str | None = None,
    fields: dict | None = None,
    user: 'AbstractUser | None' = None,
) -> CareSession:
    """
    Update a care session: status and/or clinical fields.

    When the resulting status is COMPLETED and the patient has no medical
    record number yet, one is allocated in the same transaction.

    After commit the waiting-queue snapshot is published once, and if the
    session is IN_CONSULTATION a ``called`` message follows.

    Args:
        session_id: Parsed care-session id (see ``parse_session_id``)
        status: New lifecycle status
        fields: Any of ``complaints``, ``diagnosis``, ``doctor_id``, ``room_id``
        user: The user performing the update (for audit logging)

    Returns:
        The updated CareSession

    Raises:
        SessionNotFound: If the session does not exist (nothing is published)
        InvalidStatus: If ``status`` is not a lifecycle value
        InvalidTransition: If strict transitions are on and the move is not allowed
        InvalidQueueData: If a field is unknown or doctor/room are unusable
    """
    fields = dict(fields or {})
    logger.info('transition(session_id=%s, status=%s, fields=%s)', session_id, status, sorted(fields))

    if status is not None and status not in CareSession.LIFECYCLE:
        raise InvalidStatus(status)
    unknown = sorted(set(fields) - set(UPDATABLE_FIELDS))
    if unknown:
        raise InvalidQueueData(f'Unknown field(s): {", ".join(unknown)}', field=unknown[0])

    with transaction.atomic():
        session = CareSession.objects.select_for_update().filter(id=session_id).first()
        if session is None:
            logger.error('transition: care session %s not found', session_id)
            raise SessionNotFound(session_id)

        old_status = session.status
        if status is not None and not is_allowed_transition(old_status, status):
            logger.error('transition: %s -> %s rejected for session %s', old_status, status, session_id)
            raise InvalidTransition(old_status, status)

        if 'doctor_id' in fields:
            session.doctor = _resolve_doctor(fields.pop('doctor_id'))
        if 'room_id' in fields:
            session.room = _resolve_room(fields.pop('room_id'))
        for name, value in fields.items():
            setattr(session, name, value if value is not None else '')
        if status is not None:
            session.status = status
        session.save()

        assigned = None
        if session.status == CareSession.STATUS_COMPLETED:
            assigned = _ensure_medical_record_number(session.patient_id)

        transaction.on_commit(publish_waiting_queue)
        if session.status == CareSession.STATUS_IN_CONSULTATION:
            transaction.on_commit(partial(publish_called, session.id, session.queue_number))

    if session.status != old_status:
        log_patient_action(
            user,
            'queue_status_update',
            patient_id=session.patient_id,
            meta={'session_id': session.id, 'from': old_status, 'to': session.status},
        )
    if assigned:
        log_patient_action(
            user,
            'medical_record_assigned',
            patient_id=session.patient_id,
            meta={'session_id': session.id, 'medical_record_number': assigned},
        )
    return session
