"""
Sequence Allocator for the clinic queue.

Hands out the two human-facing numbers of the system:

- Daily queue numbers ``U001`` ... ``U999``. The number is derived from how
  many care sessions were created since local midnight, so numbering restarts
  every day without any reset job.
- Medical record numbers ``NN.NN.NN`` (``00.00.01`` ... ``99.99.99``), one per
  patient, assigned once and never changed.

Both allocators are "read the current state, then write the next value".
Callers hold a ``SequenceLock`` row (``SELECT ... FOR UPDATE``) until their
transaction commits, so two concurrent registrations can never be handed the
same number.
"""

from __future__ import annotations

import logging
from datetime import datetime, time, timedelta

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from clinic_backend.patients.models import Patient
from clinic_backend.queues.exceptions import CapacityExceeded
from clinic_backend.queues.models import CareSession, SequenceLock

logger = logging.getLogger(__name__)

MEDICAL_RECORD_LOCK_KEY = 'medical-record'
MEDICAL_RECORD_MAX = 999_999


# ---------------------------------------------------------------------------
# Helper Functions
# ---------------------------------------------------------------------------

def _acquire(key: str) -> SequenceLock:
    """Lock the sequence row for ``key``, creating it on first use.

    Must run inside a transaction; the lock is held until it ends.
    """
    SequenceLock.objects.get_or_create(key=key)
    return SequenceLock.objects.select_for_update().get(key=key)


def day_window(now: datetime | None = None) -> tuple[datetime, datetime]:
    """Return ``[start, end)`` of the local calendar day containing ``now``."""
    local_now = timezone.localtime(now or timezone.now())
    tz = timezone.get_current_timezone()
    start = timezone.make_aware(datetime.combine(local_now.date(), time.min), tz)
    end = timezone.make_aware(datetime.combine(local_now.date() + timedelta(days=1), time.min), tz)
    return start, end


# ---------------------------------------------------------------------------
# Queue numbers
# ---------------------------------------------------------------------------

def format_queue_number(number: int) -> str:
    """``7`` -> ``U007``."""
    return f"{settings.QUEUE_NUMBER_PREFIX}{number:03d}"


def count_sessions_today(now: datetime | None = None) -> int:
    start, end = day_window(now)
    return CareSession.objects.filter(created_at__gte=start, created_at__lt=end).count()


@transaction.atomic
def next_queue_number(now: datetime | None = None) -> str:
    """
    Allocate the next queue number for today.

    The caller must insert the new care session inside the same transaction,
    otherwise the lock is released before the count changes.

    Raises:
        CapacityExceeded: If today's capacity (999 by default) is used up
    """
    start, _end = day_window(now)
    _acquire(f"queue:{start.date().isoformat()}")

    number = count_sessions_today(now) + 1
    capacity = settings.QUEUE_DAILY_CAPACITY
    if number > capacity:
        logger.warning('Queue capacity reached for %s (%d entries)', start.date(), capacity)
        raise CapacityExceeded(
            f"Queue limit exceeded for today ({capacity} entries).",
            limit=capacity,
        )
    return format_queue_number(number)


# ---------------------------------------------------------------------------
# Medical record numbers
# ---------------------------------------------------------------------------

def format_medical_record_number(number: int) -> str:
    """``123456`` -> ``12.34.56``; ``1`` -> ``00.00.01``."""
    if not 1 <= number <= MEDICAL_RECORD_MAX:
        raise ValueError(f"Medical record number out of range: {number}")
    digits = f"{number:06d}"
    return f"{digits[0:2]}.{digits[2:4]}.{digits[4:6]}"


def parse_medical_record_number(value: str) -> int:
    """``12.34.56`` -> ``123456``."""
    return int(value.replace('.', ''))


def max_medical_record_number() -> str | None:
    """Highest medical record number handed out so far, or ``None``.

    Numbers are zero padded to a fixed width, so string order is numeric order.
    """
    return (
        Patient.objects.exclude(medical_record_number__isnull=True)
        .exclude(medical_record_number='')
        .order_by('-medical_record_number')
        .values_list('medical_record_number', flat=True)
        .first()
    )


@transaction.atomic
def next_medical_record_number() -> str:
    """
    Allocate the next medical record number.

    The caller must store the number on the patient inside the same
    transaction.

    Raises:
        CapacityExceeded: If ``99.99.99`` has already been assigned
    """
    _acquire(MEDICAL_RECORD_LOCK_KEY)

    last = max_medical_record_number()
    number = parse_medical_record_number(last) + 1 if last else 1
    if number > MEDICAL_RECORD_MAX:
        logger.error('Medical record numbers exhausted (last=%s)', last)
        raise CapacityExceeded(
            "No medical record numbers left.",
            limit=MEDICAL_RECORD_MAX,
        )
    return format_medical_record_number(number)
