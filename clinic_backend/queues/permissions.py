"""
Queue permissions.

Every clinic role works the queue: the front desk registers, nurses and
midwives take vital signs, doctors call patients in, the pharmacy hands out
medication and closes the visit.
"""

from clinic_backend.core.permissions import ALL_ROLES, RBACPermission


class QueuePermission(RBACPermission):
    read_roles = set(ALL_ROLES)
    write_roles = {"admin", "doctor", "nurse", "midwife", "pharmacist", "staff"}
