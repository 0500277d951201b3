"""
Read models for the visit queue.

Queries behind the display boards and worklists. The waiting order is always
``created_at`` ascending (ties broken by id); nothing here writes.
"""

from __future__ import annotations

from django.db.models import Q, QuerySet

from clinic_backend.queues.exceptions import InvalidStatus
from clinic_backend.queues.models import CareSession


def list_waiting() -> QuerySet:
    """All sessions waiting for a consultation, first come first served."""
    return (
        CareSession.objects.filter(status=CareSession.STATUS_WAITING_CONSULTATION)
        .select_related('doctor', 'room', 'patient')
        .order_by('created_at', 'id')
    )


def waiting_queue_snapshot() -> list[dict]:
    """The waiting queue in the shape pushed to display boards.

    Used both for the ``waiting_queue_update`` broadcast and for the polling
    endpoint, so a screen that joins late sees exactly what was pushed.
    """
    return [
        {
            'id': session.id,
            'doctor': {'id': session.doctor_id, 'username': session.doctor.username},
            'room': {'id': session.room_id, 'name': session.room.name},
            'queue_number': session.queue_number,
        }
        for session in list_waiting()
    ]


def current_for_doctor(doctor_id: int) -> dict:
    """
    What a doctor's screen shows: the patient currently in consultation with
    them (or ``None``) and their waiting list in arrival order.
    """
    current = (
        CareSession.objects.filter(doctor_id=doctor_id, status=CareSession.STATUS_IN_CONSULTATION)
        .select_related('doctor', 'room', 'patient', 'vital_sign')
        .order_by('created_at', 'id')
        .first()
    )
    next_queues = list(
        CareSession.objects.filter(doctor_id=doctor_id, status=CareSession.STATUS_WAITING_CONSULTATION)
        .order_by('created_at', 'id')
        .only('id', 'queue_number')
    )
    return {'current': current, 'next_queues': next_queues}


def current_for_pharmacy() -> dict:
    """
    What the pharmacy screen shows: the oldest session waiting for medication
    (with its diagnoses and drug orders) and the rest of that queue.
    """
    waiting = CareSession.objects.filter(status=CareSession.STATUS_WAITING_MEDICATION).order_by('created_at', 'id')
    current = (
        waiting.select_related('doctor', 'room', 'patient')
        .prefetch_related('diagnoses__diagnosis', 'drug_orders__drug')
        .first()
    )
    next_queues = waiting.only('id', 'queue_number')
    if current is not None:
        next_queues = next_queues.exclude(id=current.id)
    return {'current': current, 'next_queues': list(next_queues)}


def search_sessions(
    *,
    active: bool = False,
    room_id: int | None = None,
    status: str | None = None,
    search: str | None = None,
) -> QuerySet:
    """
    Filtered list of care sessions for the worklists.

    Args:
        active: Active sessions (everything but COMPLETED), oldest first.
            Otherwise the COMPLETED history, newest first.
        room_id: Only sessions in this room
        status: Only sessions with this status (replaces the active/completed
            status set, the ordering still follows ``active``)
        search: Case-insensitive match on patient name or medical record number

    Raises:
        InvalidStatus: If ``status`` is not a lifecycle value
    """
    statuses = CareSession.ACTIVE_STATUSES if active else (CareSession.STATUS_COMPLETED,)
    if status:
        if status not in CareSession.LIFECYCLE:
            raise InvalidStatus(status)
        statuses = (status,)

    qs = CareSession.objects.filter(status__in=statuses)
    if room_id is not None:
        qs = qs.filter(room_id=room_id)
    search = (search or '').strip()
    if search:
        qs = qs.filter(
            Q(patient__name__icontains=search)
            | Q(patient__medical_record_number__icontains=search)
        )

    qs = qs.select_related('doctor', 'room', 'patient', 'vital_sign').prefetch_related(
        'diagnoses__diagnosis',
        'treatments__treatment',
        'drug_orders__drug',
    )
    if active:
        return qs.order_by('created_at', 'id')
    return qs.order_by('-created_at', '-id')
