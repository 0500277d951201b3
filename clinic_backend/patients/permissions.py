from clinic_backend.core.permissions import ALL_ROLES, RBACPermission


class PatientPermission(RBACPermission):
    """RBAC for patient endpoints.

    - every clinic role may read
    - pharmacists only read; everybody else may register/update patients
    """

    read_roles = set(ALL_ROLES)
    write_roles = {"admin", "doctor", "nurse", "midwife", "staff"}
