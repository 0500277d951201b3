"""
Queues Services Module.

This package contains service-layer logic for the queues app:
- sequence: Queue number and medical record number allocation
- lifecycle: Registration and status transitions of care sessions
- read_models: Waiting queue, doctor/pharmacy worklists and search
- treatments: Treatments applied during a visit
- clinical: Vital signs, diagnoses and drug orders of a visit
"""

from clinic_backend.queues.services.clinical import (
    add_diagnoses,
    add_drug_orders,
    record_vital_signs,
)
from clinic_backend.queues.services.lifecycle import (
    create_queue_entry,
    parse_session_id,
    publish_called,
    publish_waiting_queue,
    transition,
)
from clinic_backend.queues.services.read_models import (
    current_for_doctor,
    current_for_pharmacy,
    list_waiting,
    search_sessions,
    waiting_queue_snapshot,
)
from clinic_backend.queues.services.sequence import (
    format_medical_record_number,
    format_queue_number,
    next_medical_record_number,
    next_queue_number,
    parse_medical_record_number,
)
from clinic_backend.queues.services.treatments import apply_treatments

__all__ = [
    'add_diagnoses',
    'add_drug_orders',
    'apply_treatments',
    'create_queue_entry',
    'current_for_doctor',
    'current_for_pharmacy',
    'format_medical_record_number',
    'format_queue_number',
    'list_waiting',
    'next_medical_record_number',
    'next_queue_number',
    'parse_medical_record_number',
    'parse_session_id',
    'publish_called',
    'publish_waiting_queue',
    'record_vital_signs',
    'search_sessions',
    'transition',
    'waiting_queue_snapshot',
]
